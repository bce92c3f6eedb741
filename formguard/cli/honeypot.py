# SPDX-License-Identifier: Apache-2.0

import click

from formguard.cli import find_service, formguard


def _honeypot(config):
    from formguard.captcha import ICaptchaService

    return find_service(config, ICaptchaService, name="honeypot")


@formguard.group()
def honeypot():
    """
    Manage the honeypot shared by every form of the site.
    """


@honeypot.command("rotate-field")
@click.pass_obj
def rotate_field(config):
    """
    Replace the name of the field the page script injects.

    Forms rendered before the rotation will fail verification.
    """
    field_name = _honeypot(config).regenerate_field_name()
    click.echo(f"New honeypot field name: {field_name}")


@honeypot.command()
@click.pass_obj
def stats(config):
    """
    Show how many submissions the honeypot rejected.
    """
    spam = _honeypot(config).spam_stats()
    click.echo(f"Rejected today: {spam['today']}")
    click.echo(f"Rejected in total: {spam['total']}")

# SPDX-License-Identifier: Apache-2.0

import click

from formguard.cli import find_service, formguard


def _limiter(config):
    from formguard.rate_limiting import IRateLimiter

    return find_service(config, IRateLimiter)


@formguard.group()
def ratelimit():
    """
    Inspect and manage failed attempt lockouts.
    """


@ratelimit.command()
@click.argument("ip")
@click.pass_obj
def status(config, ip):
    """
    Show the failures and lockout of an address.
    """
    limiter = _limiter(config)

    remaining = limiter.lockout_remaining(ip)
    if remaining is not None:
        click.echo(f"{ip} is locked out: {limiter.lockout_message(ip)}")
    else:
        click.echo(
            f"{ip} is not locked out, {limiter.remaining_attempts(ip)} attempt(s) "
            f"remaining."
        )


@ratelimit.command()
@click.argument("ip")
@click.pass_obj
def unlock(config, ip):
    """
    Clear the failures and lockout of an address.
    """
    _limiter(config).clear(ip)
    click.echo(f"Cleared the failures and lockout of {ip}.")

# SPDX-License-Identifier: Apache-2.0

import click

from formguard.cli import find_service, formguard


@formguard.command("check-keys")
@click.pass_obj
def check_keys(config):
    """
    Check the format of the configured provider keys.
    """
    # Imported here because we don't want to trigger an import from anything
    # but formguard.cli at the module scope.
    from formguard.captcha import ICaptchaService
    from formguard.config import get_protection_settings

    provider = get_protection_settings(config.registry).provider
    if provider.id is None:
        raise click.ClickException("No CAPTCHA provider is configured.")

    service = find_service(config, ICaptchaService, name="captcha")
    result = service.test_connection(provider.site_key, provider.secret_key)
    if not result.ok:
        raise click.ClickException(f"{service.name}: {result.message}")

    click.echo(f"{service.name}: keys look valid.")

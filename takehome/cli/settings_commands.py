"""Settings CLI commands for Take Home.

Manages settings.json - tax year, remote rule-data service, cache TTL.
"""

import click

from takehome.sdk import (
    get_rules_cache_path,
    get_setting,
    get_settings_path,
    load_settings,
    set_setting,
    unset_setting,
)
from takehome.sdk.config import DEFAULT_SETTINGS


def _positive_number(value: str) -> float:
    number = float(value)
    if number <= 0:
        raise ValueError("must be positive")
    return number


def _url(value: str) -> str:
    if not value.startswith(("http://", "https://")):
        raise ValueError("must start with http:// or https://")
    return value.rstrip("/")


SETTING_PARSERS = {
    "tax_year": int,
    "remote_url": _url,
    "fetch_timeout": _positive_number,
    "cache_ttl_hours": _positive_number,
}


@click.group()
def settings():
    """Manage settings (settings.json).

    Available settings:
    - tax_year: year calculations default to
    - remote_url: base URL of the tax data service
    - fetch_timeout: seconds before a remote fetch gives up
    - cache_ttl_hours: how long fetched tax data stays cached
    """
    pass


@settings.command("show")
def settings_show():
    """Show current settings and their values."""
    settings_path = get_settings_path()
    current = load_settings()

    click.echo(f"Settings file: {settings_path}")
    click.echo(f"File exists: {settings_path.exists()}")
    click.echo()

    click.echo("Effective settings:")
    for key in DEFAULT_SETTINGS:
        source = "" if key in current else " (default)"
        click.echo(f"  {key}: {get_setting(key)}{source}")

    click.echo()
    click.echo("Effective paths:")
    click.echo(f"  tax data cache: {get_rules_cache_path()}")


@settings.command("set")
@click.argument("key", type=click.Choice(sorted(SETTING_PARSERS)))
@click.argument("value")
def settings_set(key, value):
    """Set a setting.

    Examples:
        take-home settings set tax_year 2024
        take-home settings set remote_url https://tax-data.example.com
    """
    try:
        parsed = SETTING_PARSERS[key](value)
    except ValueError as e:
        raise click.ClickException(f"Invalid value for {key}: {value} ({e})")

    path = set_setting(key, parsed)
    click.echo(f"Set {key}: {parsed}")
    click.echo(f"Saved to: {path}")


@settings.command("unset")
@click.argument("key", type=click.Choice(sorted(SETTING_PARSERS)))
def settings_unset(key):
    """Remove a setting, reverting it to its default."""
    if unset_setting(key):
        click.echo(f"Cleared {key}. Now: {get_setting(key)} (default)")
    else:
        click.echo(f"{key} was not set.")

"""Rules CLI commands for Take Home.

Inspects, refreshes and validates the tax rule data in use.
"""

import json
from datetime import date

import click
from rich.console import Console

from takehome import __version__
from takehome.sdk import FilingStatus, NetworkFailure, TaxDataError, ValidationFailure, get_remote_url
from takehome.sdk.rules import RuleDataProvider, available_years, check_bundle, load_manifest

from .renderers.result_renderer import render_freshness


@click.group()
def rules():
    """Inspect and refresh tax rule data.

    Bundled data is always available. When remote_url is set (see
    'take-home settings set remote_url URL'), 'rules refresh' fetches newer
    data and caches it for cache_ttl_hours.
    """
    pass


def _open(year):
    try:
        return RuleDataProvider.from_settings(year)
    except TaxDataError as e:
        raise click.ClickException(str(e))


@rules.command("show")
@click.option("--year", "-y", type=int, help="Tax year (default: settings tax_year)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def rules_show(year, as_json):
    """Show which tax data is active and where it came from."""
    with _open(year) as provider:
        freshness = provider.freshness()
        manifest = load_manifest(provider.year)

    if as_json:
        click.echo(json.dumps({
            "library_version": __version__,
            "freshness": freshness.model_dump(mode="json"),
            "embedded": manifest.model_dump(mode="json", exclude={"checksums"}),
            "embedded_current": manifest.is_current(date.today()),
            "available_years": available_years(),
            "filing_statuses": [s.value for s in FilingStatus],
        }, indent=2))
        return

    console = Console()
    render_freshness(console, freshness, get_remote_url())
    console.print(
        f"Embedded: {manifest.version} "
        f"(valid {manifest.effective_date} to {manifest.expiration_date})"
    )
    if not manifest.is_current(date.today()):
        console.print("[yellow]Embedded data is outside its validity window; run 'take-home rules refresh'.[/yellow]")
    console.print(f"Embedded years: {', '.join(str(y) for y in available_years())}")


@rules.command("refresh")
@click.option("--year", "-y", type=int, help="Tax year (default: settings tax_year)")
@click.option("--check", is_flag=True, help="Only ask the server whether an update exists")
def rules_refresh(year, check):
    """Fetch the latest tax data from remote_url and cache it."""
    if not get_remote_url():
        raise click.ClickException(
            "No remote_url configured. Set one with: take-home settings set remote_url URL"
        )

    with _open(year) as provider:
        if check:
            try:
                info = provider.check_for_update()
            except (NetworkFailure, ValidationFailure) as e:
                raise click.ClickException(str(e))
            if info.has_update:
                required = " (required)" if info.is_required else ""
                click.echo(f"Update available: {provider.version} -> {info.latest_version}{required}")
                if info.change_log:
                    click.echo(info.change_log)
            else:
                click.echo(f"Up to date: {provider.version}")
            return

        result = provider.refresh().result()

    if result.error:
        raise click.ClickException(f"Refresh failed, still using {result.tier.value} {result.version}: {result.error}")
    if result.updated:
        click.echo(click.style(f"Now using {result.tier.value} tax data {result.version}", fg="green"))
    else:
        click.echo(f"Tax data unchanged: {result.version}")


@rules.command("validate")
@click.option("--year", "-y", type=int, help="Tax year (default: settings tax_year)")
def rules_validate(year):
    """Check the active and embedded tax data for consistency."""
    with _open(year) as provider:
        targets = [("embedded", provider.embedded)]
        if provider.tier.value != "embedded":
            targets.append((provider.tier.value, provider.active.ruleset))

    failed = False
    for label, ruleset in targets:
        problems = check_bundle(ruleset)
        if problems:
            failed = True
            click.echo(click.style(f"{label} {ruleset.version}: {len(problems)} problem(s)", fg="red"))
            for problem in problems:
                click.echo(f"  - {problem}")
        else:
            click.echo(click.style(f"{label} {ruleset.version}: OK", fg="green"))

    if failed:
        raise SystemExit(1)


@rules.command("clear-cache")
@click.option("--year", "-y", type=int, help="Only this tax year (default: all years)")
def rules_clear_cache(year):
    """Delete cached tax data so the bundled data is used until the next refresh."""
    with _open(year) as provider:
        if year is not None:
            removed = provider.clear_cache()
            click.echo(f"Cleared cached tax data for {year}." if removed else f"No cached tax data for {year}.")
            return
        count = provider.cache.clear() if provider.cache is not None else 0
    click.echo(f"Cleared cached tax data for {count} year(s).")

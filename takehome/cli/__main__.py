"""Take Home CLI - Command-line interface for after-tax income calculations."""

import json
from decimal import Decimal, InvalidOperation
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from takehome import __version__
from takehome.sdk import (
    FilingStatus,
    TaxCalculationEngine,
    TaxCalculationInput,
    TaxDataError,
    Timeframe,
    USState,
    configure_logging,
    days_to_earn,
    hours_to_earn,
    split,
    split_expenses,
    to_all_timeframes,
    to_all_timeframes_custom,
    to_annual,
)
from takehome.sdk.household import CustomSplit, EqualSplit, ProportionalSplit
from takehome.sdk.rules import RuleDataProvider
from takehome.sdk.scenarios import ScenarioError, load_household, load_scenario

from .renderers.result_renderer import (
    render_calculation,
    render_comparison,
    render_timeframes,
)
from .rules_commands import rules as rules_group
from .settings_commands import settings as settings_group


class DecimalType(click.ParamType):
    """Click parameter parsed straight to Decimal, never through float."""

    name = "amount"

    def convert(self, value, param, ctx):
        if isinstance(value, Decimal):
            return value
        try:
            return Decimal(str(value).replace(",", "").lstrip("$"))
        except InvalidOperation:
            self.fail(f"{value!r} is not a valid amount", param, ctx)


AMOUNT = DecimalType()


@click.group()
@click.version_option(version=__version__, prog_name="take-home")
def cli():
    """Take Home - After-tax income calculations.

    Computes federal, state and payroll taxes for a gross income and
    expresses take-home pay over every pay timeframe.

    Tax data comes from (in order of preference):

    \b
    1. A snapshot refreshed from the configured remote_url
    2. A cached snapshot under ~/.cache/take-home/tax-data/
    3. The data bundled with this package

    Run 'take-home rules show' to see which one is active.
    """
    configure_logging()


cli.add_command(settings_group)
cli.add_command(rules_group)


def open_provider(year: Optional[int]) -> RuleDataProvider:
    try:
        return RuleDataProvider.from_settings(year)
    except TaxDataError as e:
        raise click.ClickException(str(e))


def echo_json(model) -> None:
    click.echo(model.model_dump_json(indent=2))


@cli.command("calc")
@click.option("--gross", "-g", type=AMOUNT, help="Annual gross income")
@click.option("--filing-status", "-f", type=click.Choice([s.value for s in FilingStatus]),
              help="Filing status (default: single)")
@click.option("--state", "-s", help="Two-letter state code (default: CA)")
@click.option("--pre-tax", type=AMOUNT, help="Annual pre-tax deductions, excluding 401(k)")
@click.option("--post-tax", type=AMOUNT, help="Annual post-tax deductions, excluding Roth")
@click.option("--traditional-401k", type=AMOUNT, help="Annual traditional 401(k) contribution")
@click.option("--roth-401k", type=AMOUNT, help="Annual Roth 401(k) contribution")
@click.option("--input", "-i", "input_file", type=click.Path(dir_okay=False),
              help="Scenario YAML file; options given on the command line override it")
@click.option("--year", "-y", type=int, help="Tax year (default: settings tax_year)")
@click.option("--format", "output_format", type=click.Choice(["text", "json"]), default="text",
              help="Output format (default: text)")
def calc(gross, filing_status, state, pre_tax, post_tax, traditional_401k, roth_401k,
         input_file, year, output_format):
    """Calculate taxes and take-home pay for one income.

    \b
    Examples:
      take-home calc --gross 120000 --state NY
      take-home calc -g 250000 -f married_filing_jointly -s TX --format json
      take-home calc --input scenario.yaml --traditional-401k 23000
    """
    try:
        base = load_scenario(input_file) if input_file else TaxCalculationInput()
    except ScenarioError as e:
        raise click.ClickException(str(e))

    overrides = {
        "gross_income": gross,
        "filing_status": filing_status,
        "state": state,
        "pre_tax_deductions": pre_tax,
        "post_tax_deductions": post_tax,
        "traditional_401k": traditional_401k,
        "roth_401k": roth_401k,
    }
    overrides = {k: v for k, v in overrides.items() if v is not None}
    if not input_file and "gross_income" not in overrides:
        raise click.UsageError("Provide --gross or --input.")

    try:
        data = TaxCalculationInput.model_validate({**base.model_dump(), **overrides})
    except ValueError as e:
        raise click.ClickException(f"Invalid input: {e}")

    with open_provider(year) as provider:
        engine = TaxCalculationEngine(provider, provider.year)
        try:
            result = engine.calculate(data)
        except TaxDataError as e:
            raise click.ClickException(str(e))

    if output_format == "json":
        echo_json(result)
    else:
        render_calculation(Console(), result)


@cli.command("compare")
@click.argument("base_file", type=click.Path(dir_okay=False))
@click.argument("scenario_file", type=click.Path(dir_okay=False))
@click.option("--year", "-y", type=int, help="Tax year (default: settings tax_year)")
@click.option("--format", "output_format", type=click.Choice(["text", "json"]), default="text",
              help="Output format (default: text)")
def compare(base_file, scenario_file, year, output_format):
    """Compare take-home pay between two scenario files.

    \b
    Example:
      take-home compare current.yaml max-401k.yaml
    """
    try:
        base = load_scenario(base_file)
        scenario = load_scenario(scenario_file)
    except ScenarioError as e:
        raise click.ClickException(str(e))

    with open_provider(year) as provider:
        engine = TaxCalculationEngine(provider, provider.year)
        try:
            comparison = engine.compare_scenarios(base, scenario)
        except TaxDataError as e:
            raise click.ClickException(str(e))

    if output_format == "json":
        echo_json(comparison)
    else:
        render_comparison(Console(), comparison)


@cli.command("split")
@click.option("--primary-net", type=AMOUNT, required=True, help="Primary earner's net income")
@click.option("--partner-net", type=AMOUNT, help="Partner's net income (same timeframe)")
@click.option("--amount", type=AMOUNT, help="Shared amount to split")
@click.option("--method", type=click.Choice(["proportional", "equal", "custom"]), default="proportional",
              help="Split method (default: proportional)")
@click.option("--primary-ratio", type=AMOUNT, help="Primary's share for --method custom, 0..1")
@click.option("--household", "household_file", type=click.Path(dir_okay=False),
              help="Household YAML; splits each shared expense")
@click.option("--format", "output_format", type=click.Choice(["text", "json"]), default="text",
              help="Output format (default: text)")
def split_cmd(primary_net, partner_net, amount, method, primary_ratio, household_file, output_format):
    """Split shared expenses between two earners.

    \b
    Examples:
      take-home split --primary-net 103247 --partner-net 22000 --amount 3272
      take-home split --primary-net 8600 --household household.yaml
    """
    console = Console()

    if household_file:
        try:
            household = load_household(household_file)
        except ScenarioError as e:
            raise click.ClickException(str(e))
        splits = split_expenses(primary_net, household)

        if output_format == "json":
            click.echo(json.dumps([s.model_dump(mode="json") for s in splits], indent=2))
            return

        table = Table(title=f"Shared Expenses with {household.partner.name or 'partner'}")
        table.add_column("Expense", style="cyan")
        table.add_column("Method")
        table.add_column("You", justify="right")
        table.add_column("Partner", justify="right")
        for s in splits:
            table.add_row(
                s.name, s.method,
                f"${s.split.primary_amount:,.2f} ({s.split.primary_percent:.1f}%)",
                f"${s.split.partner_amount:,.2f} ({s.split.partner_percent:.1f}%)",
            )
        console.print(table)
        return

    if partner_net is None or amount is None:
        raise click.UsageError("Provide --partner-net and --amount, or --household.")

    if method == "custom":
        if primary_ratio is None:
            raise click.UsageError("--method custom requires --primary-ratio.")
        try:
            split_method = CustomSplit(primary_ratio=primary_ratio)
        except ValueError as e:
            raise click.ClickException(f"Invalid --primary-ratio: {e}")
    elif method == "equal":
        split_method = EqualSplit()
    else:
        split_method = ProportionalSplit()

    result = split(primary_net, partner_net, amount, split_method)

    if output_format == "json":
        echo_json(result)
        return

    console.print(f"[bold]{method.title()} split of ${amount:,.2f}[/bold]")
    console.print(f"  You:     ${result.primary_amount:,.2f} ({result.primary_percent:.2f}%)")
    console.print(f"  Partner: ${result.partner_amount:,.2f} ({result.partner_percent:.2f}%)")


@cli.command("timeframes")
@click.argument("amount", type=AMOUNT)
@click.option("--from", "from_timeframe", type=click.Choice([t.value for t in Timeframe]), default="annual",
              help="Timeframe AMOUNT is expressed in (default: annual)")
@click.option("--hours-per-week", type=AMOUNT, help="Custom work week for daily/hourly")
@click.option("--days-per-week", type=AMOUNT, help="Custom work week for daily")
@click.option("--target", type=AMOUNT, help="Also show hours/days of work needed to earn this amount")
def timeframes(amount, from_timeframe, hours_per_week, days_per_week, target):
    """Express an amount over every pay timeframe.

    \b
    Examples:
      take-home timeframes 85000
      take-home timeframes 4000 --from monthly
      take-home timeframes 85000 --hours-per-week 32 --days-per-week 4 --target 1200
    """
    annual = to_annual(amount, Timeframe(from_timeframe))

    if hours_per_week is not None or days_per_week is not None:
        try:
            result = to_all_timeframes_custom(
                annual,
                hours_per_week if hours_per_week is not None else Decimal("40"),
                days_per_week if days_per_week is not None else Decimal("5"),
            )
        except ValueError as e:
            raise click.ClickException(str(e))
    else:
        result = to_all_timeframes(annual)

    console = Console()
    render_timeframes(console, result)

    if target is not None:
        console.print(f"Hours to earn ${target:,.2f}: {hours_to_earn(result.hourly, target):,.1f}")
        console.print(f"Days to earn ${target:,.2f}:  {days_to_earn(result.daily, target):,.1f}")


@cli.command("states")
@click.option("--year", "-y", type=int, help="Tax year (default: settings tax_year)")
@click.option("--format", "output_format", type=click.Choice(["text", "json"]), default="text",
              help="Output format (default: text)")
def states(year, output_format):
    """List jurisdictions and how each taxes income."""
    with open_provider(year) as provider:
        rows = []
        for state in USState.all():
            try:
                config = provider.state_config(state, provider.year)
            except TaxDataError as e:
                raise click.ClickException(str(e))
            rows.append({
                "code": state.code,
                "name": state.display_name,
                "tax_type": config.tax_type,
                "flat_rate": str(config.flat_rate) if config.tax_type == "flat" else None,
                "sdi": config.sdi is not None,
                "local_tax": config.local_tax is not None,
            })
        version = provider.version

    if output_format == "json":
        click.echo(json.dumps({"version": version, "states": rows}, indent=2))
        return

    table = Table(title=f"States ({version})")
    table.add_column("Code", style="cyan")
    table.add_column("Name")
    table.add_column("Tax Type")
    table.add_column("SDI", justify="center")
    table.add_column("Local", justify="center")
    for row in rows:
        tax_type = row["tax_type"]
        if row["flat_rate"]:
            tax_type = f"flat {Decimal(row['flat_rate']) * 100:.2f}%"
        table.add_row(
            row["code"], row["name"], tax_type,
            "✓" if row["sdi"] else "",
            "✓" if row["local_tax"] else "",
        )
    Console().print(table)


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()

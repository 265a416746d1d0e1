"""Rich renderers for calculation results.

Transforms SDK result models into formatted Rich tables.
"""

from decimal import Decimal
from typing import Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from takehome.sdk.rules import DataFreshness
from takehome.sdk.schemas import (
    HUNDRED,
    ScenarioComparison,
    TaxCalculationResult,
    TimeframeIncome,
)
from takehome.sdk.timeframe import Timeframe


def render_calculation(console: Console, result: TaxCalculationResult, title: str = "Take-Home Pay") -> None:
    """Render one calculation as a tax table followed by a timeframe table."""
    income = result.income
    taxes = result.tax_breakdown
    rates = result.effective_rates

    table = Table(title=f"{title} ({result.tax_year}, rules {result.rules_version})", box=box.ROUNDED)
    table.add_column("", style="bold", min_width=28)
    table.add_column("Annual", justify="right", min_width=14)
    table.add_column("Rate", justify="right", min_width=8)

    table.add_row("Gross Income", _fmt(income.gross), "")
    if income.total_pre_tax:
        table.add_row("  Pre-Tax Deductions", _fmt(-income.total_pre_tax), "")
    table.add_row("", "", "")

    table.add_row("[bold]TAXES[/bold]", "", "")
    table.add_row(
        f"  Federal (marginal {_pct(taxes.federal.marginal_rate)})",
        _fmt(taxes.federal.tax),
        _pct(rates.federal),
    )
    state = taxes.state
    table.add_row(f"  State {state.state_code} ({state.tax_type})", _fmt(state.income_tax), "")
    if state.local_tax:
        table.add_row("  Local (estimate)", _fmt(state.local_tax), "")
    if state.sdi:
        table.add_row("  SDI", _fmt(state.sdi), "")
    table.add_row("  [dim]State Total[/dim]", f"[dim]{_fmt(state.total_tax)}[/dim]", _pct(rates.state))
    table.add_row("  Social Security", _fmt(taxes.fica.social_security), "")
    table.add_row("  Medicare", _fmt(taxes.fica.medicare), "")
    if taxes.fica.additional_medicare:
        table.add_row("  Additional Medicare", _fmt(taxes.fica.additional_medicare), "")
    table.add_row("  [dim]FICA Total[/dim]", f"[dim]{_fmt(taxes.fica.total)}[/dim]", _pct(rates.fica))
    table.add_row("  [dim]Total Taxes[/dim]", f"[dim]{_fmt(taxes.total_taxes)}[/dim]", _pct(rates.total))
    table.add_row("", "", "")

    if income.total_post_tax:
        table.add_row("Post-Tax Deductions", _fmt(-income.total_post_tax), "")
    table.add_row(
        "[bold green]NET PAY[/bold green]",
        f"[bold green]{_fmt(income.net)}[/bold green]",
        f"{income.take_home_percentage:.1f}%",
    )

    console.print(table)
    render_timeframes(console, income.timeframes, title="Net Pay by Timeframe")


def render_timeframes(console: Console, timeframes: TimeframeIncome, title: str = "Timeframes") -> None:
    table = Table(title=title, box=box.SIMPLE)
    table.add_column("Timeframe", style="cyan")
    table.add_column("Amount", justify="right")
    for tf in Timeframe:
        table.add_row(tf.display_name, _fmt(getattr(timeframes, tf.value)))
    console.print(table)


def render_comparison(console: Console, comparison: ScenarioComparison) -> None:
    base = comparison.base
    scenario = comparison.scenario

    table = Table(title="Scenario Comparison", box=box.ROUNDED)
    table.add_column("", style="bold", min_width=22)
    table.add_column("Base", justify="right")
    table.add_column("Scenario", justify="right")
    table.add_column("Diff", justify="right")

    rows = [
        ("Gross", base.income.gross, scenario.income.gross),
        ("Federal Tax", base.tax_breakdown.federal.tax, scenario.tax_breakdown.federal.tax),
        ("State Tax", base.tax_breakdown.state.total_tax, scenario.tax_breakdown.state.total_tax),
        ("FICA", base.tax_breakdown.fica.total, scenario.tax_breakdown.fica.total),
        ("Total Taxes", base.tax_breakdown.total_taxes, scenario.tax_breakdown.total_taxes),
        ("Net", base.income.net, scenario.income.net),
        ("Net Monthly", base.income.timeframes.monthly, scenario.income.timeframes.monthly),
    ]
    for label, before, after in rows:
        table.add_row(label, _fmt(before), _fmt(after), _diff(after - before))

    console.print(table)

    color = "green" if comparison.is_positive() else "red"
    console.print(
        f"[{color}]Net change: {_diff(comparison.net_difference)} per year, "
        f"{_diff(comparison.monthly_difference)} per month "
        f"({comparison.net_difference_percent():+.2f}%)[/{color}]"
    )


def render_freshness(console: Console, freshness: DataFreshness, remote_url: Optional[str]) -> None:
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("key", style="dim")
    table.add_column("value")

    table.add_row("Tax Year", str(freshness.tax_year))
    table.add_row("Version", freshness.version)
    table.add_row("Tier", freshness.tier.value)
    table.add_row("Activated", freshness.activated_at.isoformat(timespec="seconds"))
    table.add_row("Remote", remote_url or "[dim]not configured[/dim]")
    if freshness.last_refresh_at:
        table.add_row("Last Refresh", freshness.last_refresh_at.isoformat(timespec="seconds"))
    if freshness.last_error:
        table.add_row("Last Error", f"[yellow]{freshness.last_error}[/yellow]")

    console.print(Panel(table, title="Tax Data", border_style="dim"))


def _fmt(amount: Optional[Decimal]) -> str:
    """Format currency amount."""
    if amount is None:
        return "-"
    if amount < 0:
        return f"-${-amount:,.2f}"
    return f"${amount:,.2f}"


def _diff(amount: Decimal) -> str:
    return f"+{_fmt(amount)}" if amount > 0 else _fmt(amount)


def _pct(rate: Decimal) -> str:
    return f"{rate * HUNDRED:.2f}%"

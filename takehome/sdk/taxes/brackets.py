"""Progressive rate schedule evaluation, shared by federal and state taxes.

Tax is computed with the base-tax formula from the one bracket the income
falls in:

    tax = bracket.base_tax + (income - bracket.floor) * bracket.rate

The per-bracket breakdown is built separately by walking every bracket the
income reaches. The two must agree to the cent and beyond; with Decimal
inputs and a consistent base_tax column they agree exactly.
"""

from decimal import Decimal
from typing import List

from ..schemas import ZERO, BracketAmount, ScheduleEvaluation
from .schemas import RateSchedule, TaxBracket


def find_bracket(taxable_income: Decimal, schedule: RateSchedule) -> TaxBracket:
    """Bracket with the greatest floor <= taxable_income."""
    selected = schedule[0]
    for bracket in schedule:
        if bracket.floor <= taxable_income:
            selected = bracket
        else:
            break
    return selected


def bracket_breakdown(taxable_income: Decimal, schedule: RateSchedule) -> List[BracketAmount]:
    """Income and tax in every bracket whose floor is below taxable_income."""
    breakdown = []
    for bracket in schedule:
        if bracket.floor >= taxable_income:
            break
        top = taxable_income if bracket.ceiling is None else min(taxable_income, bracket.ceiling)
        in_bracket = top - bracket.floor
        breakdown.append(BracketAmount(
            floor=bracket.floor,
            ceiling=bracket.ceiling,
            rate=bracket.rate,
            taxable_in_bracket=in_bracket,
            tax_paid=in_bracket * bracket.rate,
        ))
    return breakdown


def evaluate(taxable_income: Decimal, schedule: RateSchedule) -> ScheduleEvaluation:
    """Evaluate a rate schedule.

    Args:
        taxable_income: Income after deductions. Zero or negative yields no tax.
        schedule: Validated, contiguous schedule (base_tax filled in)

    Returns:
        ScheduleEvaluation with tax, marginal and effective rate, and breakdown.
        At zero income the marginal rate is still the first bracket's rate.
    """
    if taxable_income <= ZERO:
        return ScheduleEvaluation(
            tax=ZERO,
            marginal_rate=schedule[0].rate,
            effective_rate=ZERO,
            breakdown=[],
        )

    bracket = find_bracket(taxable_income, schedule)
    tax = bracket.base_tax + (taxable_income - bracket.floor) * bracket.rate

    return ScheduleEvaluation(
        tax=tax,
        marginal_rate=bracket.rate,
        effective_rate=tax / taxable_income,
        breakdown=bracket_breakdown(taxable_income, schedule),
    )

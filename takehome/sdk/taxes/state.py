"""State income tax, SDI and local tax estimates.

Dispatch follows the rule data's tax_type tag:

- no_tax: all-zero result, no bracket or deduction lookups
- flat: taxable_income * flat_rate
- progressive: the state's own standard deduction (not the federal one) is
  subtracted, clamped at zero, then the rate schedule is evaluated

SDI and the local-tax estimate are computed independently of the branch and
simply added; neither reduces the other or the income tax.
"""

import logging
from decimal import Decimal
from typing import Optional

from ..errors import DataUnavailable
from ..schemas import ZERO, FilingStatus, StateTaxResult, USState
from .brackets import evaluate
from .schemas import (
    FlatTaxStateConfig,
    LocalTaxConfig,
    NoTaxStateConfig,
    ProgressiveStateConfig,
    RuleSource,
    SdiConfig,
)

logger = logging.getLogger(__name__)


def calculate_sdi(income: Decimal, sdi: Optional[SdiConfig]) -> Decimal:
    """SDI = min(income, wage_cap or income) * rate; zero when the state has none."""
    if sdi is None or income <= ZERO:
        return ZERO
    cap = sdi.wage_cap if sdi.wage_cap is not None else income
    return min(income, cap) * sdi.rate


def estimate_local_tax(income: Decimal, local_tax: Optional[LocalTaxConfig]) -> Decimal:
    """Average-rate approximation of local income taxes."""
    if local_tax is None or income <= ZERO:
        return ZERO
    return income * local_tax.average_rate


def calculate_state_tax(
    source: RuleSource,
    taxable_income: Decimal,
    state: USState,
    filing_status: FilingStatus,
    year: int,
) -> StateTaxResult:
    """Calculate state taxes on income already reduced by pre-tax deductions.

    Raises:
        DataUnavailable: If the source has no config for the state, or a
            progressive state has no usable schedule
    """
    config = source.state_config(state, year)

    if isinstance(config, NoTaxStateConfig):
        return StateTaxResult(
            state_code=state.code,
            tax_type=config.tax_type,
            taxable_income=taxable_income,
        )

    marginal_rate = ZERO
    breakdown = None

    if isinstance(config, FlatTaxStateConfig):
        income_tax = max(taxable_income, ZERO) * config.flat_rate
        marginal_rate = config.flat_rate
    elif isinstance(config, ProgressiveStateConfig):
        schedule = config.schedule_for(filing_status)
        if schedule is None:
            raise DataUnavailable(
                f"No {state.code} schedule for {filing_status.value} in {year}", year=year
            )
        adjusted = max(taxable_income - config.deduction_for(filing_status), ZERO)
        evaluation = evaluate(adjusted, schedule)
        income_tax = evaluation.tax
        marginal_rate = evaluation.marginal_rate
        breakdown = evaluation.breakdown
    else:
        raise DataUnavailable(f"Unsupported tax type for {state.code}: {config.tax_type}", year=year)

    sdi = calculate_sdi(taxable_income, config.sdi)
    local_tax = estimate_local_tax(taxable_income, config.local_tax)
    total_tax = income_tax + sdi + local_tax
    effective_rate = total_tax / taxable_income if taxable_income > ZERO else ZERO

    logger.debug(
        f"state {state.code} {config.tax_type}: income_tax={income_tax} sdi={sdi} local={local_tax}"
    )

    return StateTaxResult(
        state_code=state.code,
        tax_type=config.tax_type,
        taxable_income=taxable_income,
        income_tax=income_tax,
        local_tax=local_tax,
        sdi=sdi,
        total_tax=total_tax,
        effective_rate=effective_rate,
        marginal_rate=marginal_rate,
        bracket_breakdown=breakdown,
    )

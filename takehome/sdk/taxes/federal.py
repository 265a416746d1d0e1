"""Federal income tax."""

import logging
from decimal import Decimal

from ..schemas import FederalTaxResult, FilingStatus
from .brackets import evaluate
from .schemas import RuleSource

logger = logging.getLogger(__name__)


def calculate_federal_tax(
    source: RuleSource,
    taxable_income: Decimal,
    filing_status: FilingStatus,
    year: int,
) -> FederalTaxResult:
    """Calculate federal income tax on already-deducted taxable income.

    Raises:
        DataUnavailable: If the source has no schedule for (filing_status, year)
    """
    schedule = source.federal_schedule(filing_status, year)
    deduction = source.standard_deduction(filing_status, year)
    result = evaluate(taxable_income, schedule)

    logger.debug(
        f"federal {year} {filing_status.value}: taxable={taxable_income} "
        f"tax={result.tax} marginal={result.marginal_rate}"
    )

    return FederalTaxResult(
        taxable_income=max(taxable_income, Decimal("0")),
        standard_deduction=deduction,
        tax=result.tax,
        marginal_rate=result.marginal_rate,
        effective_rate=result.effective_rate,
        bracket_breakdown=result.breakdown,
    )


def federal_standard_deduction(source: RuleSource, filing_status: FilingStatus, year: int) -> Decimal:
    return source.standard_deduction(filing_status, year)

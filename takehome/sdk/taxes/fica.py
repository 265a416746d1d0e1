"""Payroll (FICA) tax: Social Security and Medicare.

Always computed on gross income. Pre-tax deductions, including traditional
401(k) contributions, reduce income tax but never FICA wages here.
"""

import logging
from decimal import Decimal

from ..schemas import ZERO, FicaResult, FilingStatus
from .schemas import RuleSource

logger = logging.getLogger(__name__)


def calculate_social_security(gross_income: Decimal, wage_base: Decimal, rate: Decimal) -> Decimal:
    """Capped at wage_base, identical for every filing status."""
    taxable = min(max(gross_income, ZERO), wage_base)
    return taxable * rate


def calculate_additional_medicare(gross_income: Decimal, threshold: Decimal, rate: Decimal) -> Decimal:
    """Additional Medicare on wages strictly above the threshold."""
    if gross_income > threshold:
        return (gross_income - threshold) * rate
    return ZERO


def calculate_fica(
    source: RuleSource,
    gross_income: Decimal,
    filing_status: FilingStatus,
    year: int,
) -> FicaResult:
    """Calculate Social Security, Medicare and additional Medicare.

    Args:
        source: Rule data
        gross_income: Annual gross wages, NOT reduced by any deduction
        filing_status: Picks the additional Medicare threshold
        year: Tax year

    Returns:
        FicaResult with each component and the total
    """
    config = source.fica_config(year)
    threshold = config.additional_medicare_threshold(filing_status)

    social_security = calculate_social_security(
        gross_income, config.wage_base, config.social_security_rate
    )
    medicare = max(gross_income, ZERO) * config.medicare_rate
    additional = calculate_additional_medicare(
        gross_income, threshold, config.additional_medicare_rate
    )

    logger.debug(f"fica {year}: ss={social_security} medicare={medicare} additional={additional}")

    return FicaResult(
        social_security=social_security,
        social_security_wage_base=config.wage_base,
        medicare=medicare,
        additional_medicare=additional,
        additional_medicare_threshold=threshold,
        total=social_security + medicare + additional,
    )

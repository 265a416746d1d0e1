"""Gross-to-net calculation engine and scenario comparison.

The pipeline order is fixed:

1.  total_pre_tax = pre-tax deductions + traditional 401(k)
2.  federal_taxable = gross - total_pre_tax - federal standard deduction, >= 0
3.  federal tax
4.  state_taxable = gross - total_pre_tax (state deduction applied by the state calculator)
5.  state tax
6.  FICA on raw gross, never on federal_taxable or state_taxable
7.  total_post_tax = post-tax deductions + Roth 401(k)
8.  total_taxes = federal + state total + FICA total
9.  net = gross - total_taxes - total_pre_tax - total_post_tax
10. net expanded over every timeframe
"""

import logging
from decimal import Decimal

from .schemas import (
    HUNDRED,
    ZERO,
    CalculatedIncome,
    EffectiveRates,
    ScenarioComparison,
    TaxBreakdown,
    TaxCalculationInput,
    TaxCalculationResult,
)
from .taxes.federal import calculate_federal_tax
from .taxes.fica import calculate_fica
from .taxes.schemas import RuleSource
from .taxes.state import calculate_state_tax
from .timeframe import to_all_timeframes

logger = logging.getLogger(__name__)

MONTHS_PER_YEAR = Decimal("12")


class TaxCalculationEngine:
    """Runs the gross-to-net pipeline against one rule source and tax year.

    Holds no mutable state of its own, so one engine may be shared across
    threads.
    """

    def __init__(self, source: RuleSource, year: int):
        self.source = source
        self.year = year

    def calculate(self, data: TaxCalculationInput) -> TaxCalculationResult:
        """Compute taxes and take-home pay for one input.

        Raises:
            DataUnavailable: If the rule source has no data for self.year
        """
        rules = self.source.snapshot()
        gross = data.gross_income

        total_pre_tax = data.pre_tax_deductions + data.traditional_401k

        std_deduction = rules.standard_deduction(data.filing_status, self.year)
        federal_taxable = max(gross - total_pre_tax - std_deduction, ZERO)

        federal = calculate_federal_tax(rules, federal_taxable, data.filing_status, self.year)

        state_taxable = gross - total_pre_tax
        state = calculate_state_tax(
            rules, state_taxable, data.state, data.filing_status, self.year
        )

        fica = calculate_fica(rules, gross, data.filing_status, self.year)

        total_post_tax = data.post_tax_deductions + data.roth_401k

        total_taxes = federal.tax + state.total_tax + fica.total

        net = gross - total_taxes - total_pre_tax - total_post_tax

        timeframes = to_all_timeframes(net)

        if gross > ZERO:
            rates = EffectiveRates(
                federal=federal.tax / gross,
                state=state.total_tax / gross,
                fica=fica.total / gross,
                total=total_taxes / gross,
            )
            take_home_pct = net / gross * HUNDRED
        else:
            rates = EffectiveRates()
            take_home_pct = ZERO

        logger.debug(
            f"calculate {data.state.code} {data.filing_status.value}: gross={gross} "
            f"taxes={total_taxes} net={net}"
        )

        return TaxCalculationResult(
            tax_year=self.year,
            rules_version=getattr(rules, "version", None) or "unknown",
            income=CalculatedIncome(
                gross=gross,
                net=net,
                total_pre_tax=total_pre_tax,
                total_post_tax=total_post_tax,
                timeframes=timeframes,
                take_home_percentage=take_home_pct,
            ),
            tax_breakdown=TaxBreakdown(
                federal=federal,
                state=state,
                fica=fica,
                total_taxes=total_taxes,
                effective_rate=rates.total,
            ),
            effective_rates=rates,
        )

    def compare_scenarios(
        self,
        base: TaxCalculationInput,
        scenario: TaxCalculationInput,
    ) -> ScenarioComparison:
        """Run both inputs and diff their net income."""
        base_result = self.calculate(base)
        scenario_result = self.calculate(scenario)
        net_difference = scenario_result.income.net - base_result.income.net

        return ScenarioComparison(
            base=base_result,
            scenario=scenario_result,
            net_difference=net_difference,
            monthly_difference=net_difference / MONTHS_PER_YEAR,
        )

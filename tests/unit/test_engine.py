"""Tests for the gross-to-net engine and scenario comparison.

Reference figures (2024, single):
    $100k gross, no deductions
    federal: (100000 - 14600) = 85400 taxable -> 5426 + 38250 * 0.22 = 13841
    FICA:    6200 SS + 1450 Medicare = 7650
    TX net:  100000 - 13841 - 7650 = 78509
"""

from decimal import Decimal

import pytest

from takehome.sdk.engine import TaxCalculationEngine
from takehome.sdk.errors import DataUnavailable
from takehome.sdk.schemas import FilingStatus, TaxCalculationInput, USState


def make_input(**kwargs):
    kwargs.setdefault("gross_income", Decimal("100000"))
    kwargs.setdefault("state", USState.TX)
    return TaxCalculationInput(**kwargs)


class TestCalculate:

    def test_texas_single_100k(self, engine):
        result = engine.calculate(make_input())

        assert result.tax_breakdown.federal.taxable_income == Decimal("85400")
        assert result.tax_breakdown.federal.tax == Decimal("13841")
        assert result.tax_breakdown.state.total_tax == 0
        assert result.tax_breakdown.fica.total == Decimal("7650")
        assert result.tax_breakdown.total_taxes == Decimal("21491")
        assert result.net == Decimal("78509")
        assert result.income.take_home_percentage == Decimal("78.509")
        assert result.rules_version == "2024.1.0"
        assert result.tax_year == 2024

    def test_california_single_100k(self, engine):
        result = engine.calculate(make_input(state=USState.CA))

        assert result.tax_breakdown.state.total_tax == Decimal("6554.091")
        assert result.net == Decimal("71954.909")

    def test_net_identity(self, engine):
        data = make_input(
            state=USState.NY,
            filing_status=FilingStatus.HEAD_OF_HOUSEHOLD,
            gross_income=Decimal("187500"),
            pre_tax_deductions=Decimal("4200"),
            post_tax_deductions=Decimal("900"),
            traditional_401k=Decimal("15000"),
            roth_401k=Decimal("3000"),
        )
        result = engine.calculate(data)
        income = result.income

        assert income.total_pre_tax == Decimal("19200")
        assert income.total_post_tax == Decimal("3900")
        assert income.net == (
            income.gross
            - result.tax_breakdown.total_taxes
            - income.total_pre_tax
            - income.total_post_tax
        )

    def test_traditional_401k_reduces_income_tax_not_fica(self, engine):
        result = engine.calculate(make_input(traditional_401k=Decimal("10000")))

        assert result.tax_breakdown.federal.tax == Decimal("11641")
        assert result.tax_breakdown.fica.total == Decimal("7650")
        assert result.net == Decimal("70709")

    def test_pre_tax_deductions_do_not_reduce_fica(self, engine):
        result = engine.calculate(make_input(pre_tax_deductions=Decimal("20000")))
        assert result.tax_breakdown.fica.total == Decimal("7650")

    def test_roth_is_post_tax(self, engine):
        result = engine.calculate(make_input(roth_401k=Decimal("5000")))

        assert result.tax_breakdown.federal.tax == Decimal("13841")
        assert result.net == Decimal("73509")

    def test_deductions_exceeding_gross_clamp_taxable(self, engine):
        result = engine.calculate(make_input(
            gross_income=Decimal("20000"), pre_tax_deductions=Decimal("10000")
        ))
        assert result.tax_breakdown.federal.taxable_income == 0
        assert result.tax_breakdown.federal.tax == 0

    def test_zero_gross(self, engine):
        result = engine.calculate(make_input(gross_income=Decimal("0")))

        assert result.net == 0
        assert result.effective_rates.total == 0
        assert result.income.take_home_percentage == 0
        assert result.income.timeframes.hourly == 0

    def test_effective_rates(self, engine):
        rates = engine.calculate(make_input()).effective_rates

        assert rates.federal == Decimal("0.13841")
        assert rates.fica == Decimal("0.0765")
        assert rates.total == Decimal("0.21491")
        assert rates.as_percentages()["total"] == Decimal("21.491")

    def test_timeframes_follow_net(self, engine):
        result = engine.calculate(make_input())
        timeframes = result.income.timeframes

        assert timeframes.annual == result.net
        assert timeframes.weekly == result.net / 52
        assert timeframes.hourly == result.net / 2080

    def test_unsupported_year(self, ruleset):
        engine = TaxCalculationEngine(ruleset, 2031)
        with pytest.raises(DataUnavailable):
            engine.calculate(make_input())


class TestCompareScenarios:

    def test_moving_to_california(self, engine):
        comparison = engine.compare_scenarios(make_input(), make_input(state=USState.CA))

        assert comparison.net_difference == Decimal("-6554.091")
        assert comparison.monthly_difference == Decimal("-6554.091") / 12
        assert not comparison.is_positive()
        assert comparison.net_difference_percent() < 0

    def test_raise_is_positive(self, engine):
        comparison = engine.compare_scenarios(
            make_input(), make_input(gross_income=Decimal("110000"))
        )
        assert comparison.is_positive()
        assert comparison.scenario.net - comparison.base.net == comparison.net_difference

    def test_identical_inputs(self, engine):
        comparison = engine.compare_scenarios(make_input(), make_input())
        assert comparison.net_difference == 0
        assert not comparison.is_positive()

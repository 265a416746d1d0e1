"""Tests for progressive rate schedule evaluation."""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from takehome.sdk.schemas import FilingStatus
from takehome.sdk.taxes.brackets import bracket_breakdown, evaluate, find_bracket
from takehome.sdk.taxes.schemas import RateSchedule


@pytest.fixture
def single_schedule(ruleset):
    return ruleset.federal_schedule(FilingStatus.SINGLE, 2024)


class TestFindBracket:

    def test_floor_is_inclusive(self, single_schedule):
        """Income exactly at a floor belongs to the bracket starting there."""
        assert find_bracket(Decimal("11600"), single_schedule).rate == Decimal("0.12")

    def test_just_below_floor_stays_in_lower_bracket(self, single_schedule):
        assert find_bracket(Decimal("11599.99"), single_schedule).rate == Decimal("0.10")

    def test_top_bracket_is_open(self, single_schedule):
        bracket = find_bracket(Decimal("5000000"), single_schedule)
        assert bracket.is_top
        assert bracket.rate == Decimal("0.37")


class TestEvaluate:

    def test_single_100k(self, single_schedule):
        """$100k single falls in the 22% bracket: 5426 + 52850 * 0.22."""
        result = evaluate(Decimal("100000"), single_schedule)

        assert result.tax == Decimal("17053.00")
        assert result.marginal_rate == Decimal("0.22")
        assert result.effective_rate == Decimal("17053") / Decimal("100000")

    def test_zero_income(self, single_schedule):
        """No tax, no breakdown, but the first bracket's rate is still marginal."""
        result = evaluate(Decimal("0"), single_schedule)

        assert result.tax == 0
        assert result.marginal_rate == Decimal("0.10")
        assert result.effective_rate == 0
        assert result.breakdown == []

    def test_negative_income_treated_as_zero(self, single_schedule):
        result = evaluate(Decimal("-5000"), single_schedule)
        assert result.tax == 0
        assert result.breakdown == []

    @pytest.mark.parametrize("income", ["1", "11600", "47150.01", "100000", "243725", "609350", "1250000"])
    def test_breakdown_sums_to_tax(self, single_schedule, income):
        """Base-tax formula and the bracket walk agree exactly."""
        result = evaluate(Decimal(income), single_schedule)
        assert sum(b.tax_paid for b in result.breakdown) == result.tax

    def test_breakdown_stops_at_income(self, single_schedule):
        breakdown = bracket_breakdown(Decimal("50000"), single_schedule)

        assert [b.rate for b in breakdown] == [Decimal("0.10"), Decimal("0.12"), Decimal("0.22")]
        assert breakdown[-1].taxable_in_bracket == Decimal("2850")

    def test_tax_never_decreases(self, single_schedule):
        taxes = [evaluate(Decimal(i * 2500), single_schedule).tax for i in range(0, 400)]
        assert taxes == sorted(taxes)


class TestRateSchedule:

    def test_base_tax_derived_when_omitted(self):
        schedule = RateSchedule.model_validate([
            {"floor": 0, "ceiling": 10000, "rate": "0.01"},
            {"floor": 10000, "ceiling": 20000, "rate": "0.02"},
            {"floor": 20000, "rate": "0.03"},
        ])

        assert [b.base_tax for b in schedule] == [Decimal("0"), Decimal("100"), Decimal("300")]

    def test_declared_base_tax_must_match(self):
        with pytest.raises(ValidationError, match="declares base_tax"):
            RateSchedule.model_validate([
                {"floor": 0, "ceiling": 10000, "rate": "0.01", "base_tax": 0},
                {"floor": 10000, "rate": "0.02", "base_tax": 99},
            ])

    def test_gap_rejected(self):
        with pytest.raises(ValidationError, match="gap or overlap"):
            RateSchedule.model_validate([
                {"floor": 0, "ceiling": 10000, "rate": "0.01"},
                {"floor": 10001, "rate": "0.02"},
            ])

    def test_must_start_at_zero(self):
        with pytest.raises(ValidationError, match="not 0"):
            RateSchedule.model_validate([{"floor": 100, "rate": "0.01"}])

    def test_top_bracket_must_be_open(self):
        with pytest.raises(ValidationError, match="capped"):
            RateSchedule.model_validate([{"floor": 0, "ceiling": 1000, "rate": "0.01"}])

    def test_empty_rejected(self):
        with pytest.raises(ValidationError, match="no brackets"):
            RateSchedule.model_validate([])

"""Tests for timeframe conversion."""

import itertools
from decimal import Decimal

import pytest

from takehome.sdk.timeframe import (
    Timeframe,
    convert,
    days_to_earn,
    hours_to_earn,
    to_all_timeframes,
    to_all_timeframes_custom,
    to_annual,
)


def test_standard_divisors():
    result = to_all_timeframes(Decimal("52000"))

    assert result.annual == Decimal("52000")
    assert result.monthly == Decimal("52000") / 12
    assert result.bi_weekly == Decimal("2000")
    assert result.semi_monthly == Decimal("52000") / 24
    assert result.weekly == Decimal("1000")
    assert result.daily == Decimal("200")
    assert result.hourly == Decimal("25")


def test_custom_work_week_changes_only_daily_and_hourly():
    standard = to_all_timeframes(Decimal("52000"))
    custom = to_all_timeframes_custom(Decimal("52000"), Decimal("32"), Decimal("4"))

    assert custom.hourly == Decimal("31.25")
    assert custom.daily == Decimal("250")
    assert custom.weekly == standard.weekly
    assert custom.monthly == standard.monthly


@pytest.mark.parametrize("hours,days", [("0", "5"), ("40", "0"), ("-1", "5")])
def test_custom_work_week_rejects_non_positive(hours, days):
    with pytest.raises(ValueError):
        to_all_timeframes_custom(Decimal("52000"), Decimal(hours), Decimal(days))


def test_to_annual():
    assert to_annual(Decimal("1000"), Timeframe.WEEKLY) == Decimal("52000")
    assert to_annual(Decimal("25"), Timeframe.HOURLY) == Decimal("52000")


def test_convert_goes_through_annual():
    assert convert(Decimal("4000"), Timeframe.MONTHLY, Timeframe.BI_WEEKLY) == Decimal("48000") / 26
    assert convert(Decimal("2000"), Timeframe.BI_WEEKLY, Timeframe.WEEKLY) == Decimal("1000")


@pytest.mark.parametrize("source,target", list(itertools.product(Timeframe, repeat=2)))
def test_convert_round_trip(source, target):
    amount = Decimal("1234.56")

    back = convert(convert(amount, source, target), target, source)

    assert abs(back - amount) < Decimal("1e-9")


def test_hours_and_days_to_earn():
    assert hours_to_earn(Decimal("25"), Decimal("1000")) == Decimal("40")
    assert days_to_earn(Decimal("200"), Decimal("1000")) == Decimal("5")


def test_to_earn_with_non_positive_rate_is_zero():
    assert hours_to_earn(Decimal("0"), Decimal("1000")) == 0
    assert days_to_earn(Decimal("-5"), Decimal("1000")) == 0


def test_display_names():
    assert Timeframe.BI_WEEKLY.display_name == "Bi-Weekly"
    assert Timeframe.HOURLY.divisor == Decimal("2080")

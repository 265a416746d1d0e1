"""Timeframe conversion between annual and per-period amounts.

Standard divisors assume a 40-hour, 5-day week. Conversions between any
two timeframes go through the annual amount.
"""

from decimal import Decimal
from enum import Enum

from .schemas import ZERO, TimeframeIncome

WEEKS_PER_YEAR = Decimal("52")


class Timeframe(str, Enum):
    ANNUAL = "annual"
    MONTHLY = "monthly"
    BI_WEEKLY = "bi_weekly"
    SEMI_MONTHLY = "semi_monthly"
    WEEKLY = "weekly"
    DAILY = "daily"
    HOURLY = "hourly"

    @property
    def divisor(self) -> Decimal:
        """Periods per year."""
        return DIVISORS[self]

    @property
    def display_name(self) -> str:
        return DISPLAY_NAMES[self]


DIVISORS = {
    Timeframe.ANNUAL: Decimal("1"),
    Timeframe.MONTHLY: Decimal("12"),
    Timeframe.BI_WEEKLY: Decimal("26"),
    Timeframe.SEMI_MONTHLY: Decimal("24"),
    Timeframe.WEEKLY: Decimal("52"),
    Timeframe.DAILY: Decimal("260"),
    Timeframe.HOURLY: Decimal("2080"),
}

DISPLAY_NAMES = {
    Timeframe.ANNUAL: "Annual",
    Timeframe.MONTHLY: "Monthly",
    Timeframe.BI_WEEKLY: "Bi-Weekly",
    Timeframe.SEMI_MONTHLY: "Semi-Monthly",
    Timeframe.WEEKLY: "Weekly",
    Timeframe.DAILY: "Daily",
    Timeframe.HOURLY: "Hourly",
}


def to_all_timeframes(annual: Decimal) -> TimeframeIncome:
    """Express an annual amount over every standard timeframe."""
    return TimeframeIncome(**{tf.value: annual / tf.divisor for tf in Timeframe})


def to_all_timeframes_custom(
    annual: Decimal,
    hours_per_week: Decimal,
    days_per_week: Decimal,
) -> TimeframeIncome:
    """Like to_all_timeframes, but daily/hourly use a custom work week.

    Only daily and hourly change: they divide by 52 * days_per_week and
    52 * hours_per_week.
    """
    if hours_per_week <= ZERO or days_per_week <= ZERO:
        raise ValueError("hours_per_week and days_per_week must be positive")
    standard = to_all_timeframes(annual)
    return standard.model_copy(update={
        "daily": annual / (WEEKS_PER_YEAR * days_per_week),
        "hourly": annual / (WEEKS_PER_YEAR * hours_per_week),
    })


def to_annual(amount: Decimal, from_timeframe: Timeframe) -> Decimal:
    return amount * from_timeframe.divisor


def convert(amount: Decimal, from_timeframe: Timeframe, to_timeframe: Timeframe) -> Decimal:
    """Convert between timeframes via the annual amount."""
    return to_annual(amount, from_timeframe) / to_timeframe.divisor


def hours_to_earn(hourly_rate: Decimal, target_amount: Decimal) -> Decimal:
    """Hours of work needed to earn target_amount; zero for a non-positive rate."""
    if hourly_rate <= ZERO:
        return ZERO
    return target_amount / hourly_rate


def days_to_earn(daily_rate: Decimal, target_amount: Decimal) -> Decimal:
    if daily_rate <= ZERO:
        return ZERO
    return target_amount / daily_rate

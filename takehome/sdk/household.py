"""Household expense splitting between a primary earner and a partner.

Three methods:
- proportional: by share of combined net income (50/50 if both are zero)
- equal: always 50/50
- custom: a fixed primary share

primary_ratio + partner_ratio is always exactly 1: the partner ratio is
computed as 1 - primary_ratio, never independently.

A SharedExpense may carry its own split method, which replaces the
household default for that expense only.
"""

from decimal import Decimal
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .schemas import HUNDRED, ONE, ZERO, to_decimal

HALF = Decimal("0.5")


class ProportionalSplit(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    method: Literal["proportional"] = "proportional"


class EqualSplit(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    method: Literal["equal"] = "equal"


class CustomSplit(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    method: Literal["custom"] = "custom"
    primary_ratio: Decimal = Field(..., ge=0, le=1, description="Primary's share, 0..1")

    @field_validator("primary_ratio", mode="before")
    @classmethod
    def coerce_ratio(cls, v):
        return to_decimal(v)


SplitMethod = Annotated[
    Union[ProportionalSplit, EqualSplit, CustomSplit],
    Field(discriminator="method"),
]


class HouseholdSplit(BaseModel):
    model_config = ConfigDict(frozen=True)

    primary_ratio: Decimal
    partner_ratio: Decimal
    primary_amount: Decimal
    partner_amount: Decimal

    @property
    def primary_percent(self) -> Decimal:
        return self.primary_ratio * HUNDRED

    @property
    def partner_percent(self) -> Decimal:
        return self.partner_ratio * HUNDRED


class PartnerProfile(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = ""
    gross_income: Decimal = ZERO
    net_income: Decimal = ZERO

    @field_validator("gross_income", "net_income", mode="before")
    @classmethod
    def coerce_amounts(cls, v):
        return to_decimal(v)


class SharedExpense(BaseModel):
    """A monthly shared cost, optionally with its own split method."""

    model_config = ConfigDict(extra="forbid")

    name: str
    monthly_amount: Decimal = Field(..., ge=0)
    split_override: Optional[SplitMethod] = None

    @field_validator("monthly_amount", mode="before")
    @classmethod
    def coerce_amount(cls, v):
        return to_decimal(v)


class Household(BaseModel):
    model_config = ConfigDict(extra="forbid")

    partner: PartnerProfile = Field(default_factory=PartnerProfile)
    split_method: SplitMethod = Field(default_factory=ProportionalSplit)
    shared_expenses: List[SharedExpense] = Field(default_factory=list)

    @property
    def shared_expenses_monthly(self) -> Decimal:
        return sum((e.monthly_amount for e in self.shared_expenses), ZERO)


class ExpenseSplit(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    method: str
    split: HouseholdSplit


def primary_ratio_for(primary_net: Decimal, partner_net: Decimal, method: SplitMethod) -> Decimal:
    if isinstance(method, CustomSplit):
        return method.primary_ratio
    if isinstance(method, EqualSplit):
        return HALF
    total = primary_net + partner_net
    if total == ZERO:
        return HALF
    return primary_net / total


def split(
    primary_net: Decimal,
    partner_net: Decimal,
    shared_amount: Decimal,
    method: Optional[SplitMethod] = None,
) -> HouseholdSplit:
    """Split a shared amount between primary and partner.

    Args:
        primary_net: Primary's net income (any timeframe, same as partner's)
        partner_net: Partner's net income
        shared_amount: Amount to divide
        method: Split method; proportional when omitted

    Returns:
        HouseholdSplit with both ratios and amounts
    """
    if method is None:
        method = ProportionalSplit()
    primary_ratio = primary_ratio_for(primary_net, partner_net, method)
    partner_ratio = ONE - primary_ratio
    return HouseholdSplit(
        primary_ratio=primary_ratio,
        partner_ratio=partner_ratio,
        primary_amount=shared_amount * primary_ratio,
        partner_amount=shared_amount * partner_ratio,
    )


def split_expenses(
    primary_net: Decimal,
    household: Household,
) -> List[ExpenseSplit]:
    """Split each shared expense, honoring per-expense overrides."""
    results = []
    for expense in household.shared_expenses:
        method = expense.split_override or household.split_method
        results.append(ExpenseSplit(
            name=expense.name,
            method=method.method,
            split=split(primary_net, household.partner.net_income, expense.monthly_amount, method),
        ))
    return results

"""Elective deductions and retirement contributions.

Collapses itemized paycheck deductions into the two totals the engine
takes (pre-tax and post-tax), and checks retirement elections against the
year's contribution limits.

Tax treatment:
- Section 125 benefits (health, dental, vision, HSA, FSA, commuter) and
  traditional 401(k) are pre-tax for income tax
- Roth 401(k), life/disability insurance, union dues are post-tax
- FICA is always computed on gross regardless (see taxes/fica.py)
"""

from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .schemas import ONE, ZERO, TaxCalculationInput, to_decimal
from .taxes.schemas import RetirementConfig


class PayFrequency(str, Enum):
    WEEKLY = "weekly"
    BI_WEEKLY = "bi_weekly"
    SEMI_MONTHLY = "semi_monthly"
    MONTHLY = "monthly"

    @property
    def periods_per_year(self) -> int:
        return PAY_PERIODS[self]


PAY_PERIODS = {
    PayFrequency.WEEKLY: 52,
    PayFrequency.BI_WEEKLY: 26,
    PayFrequency.SEMI_MONTHLY: 24,
    PayFrequency.MONTHLY: 12,
}


class DeductionType(str, Enum):
    HEALTH_INSURANCE = "health_insurance"
    DENTAL_INSURANCE = "dental_insurance"
    VISION_INSURANCE = "vision_insurance"
    HSA = "hsa"
    FSA = "fsa"
    COMMUTER = "commuter"
    LIFE_INSURANCE = "life_insurance"
    DISABILITY_INSURANCE = "disability_insurance"
    UNION_DUES = "union_dues"
    TRADITIONAL_401K = "traditional_401k"
    ROTH_401K = "roth_401k"
    OTHER = "other"

    @property
    def display_name(self) -> str:
        return DEDUCTION_NAMES[self]

    @property
    def is_pre_tax(self) -> bool:
        """Default tax treatment; a Deduction may override it."""
        return self in PRE_TAX_TYPES


DEDUCTION_NAMES = {
    DeductionType.HEALTH_INSURANCE: "Health Insurance",
    DeductionType.DENTAL_INSURANCE: "Dental Insurance",
    DeductionType.VISION_INSURANCE: "Vision Insurance",
    DeductionType.HSA: "HSA Contribution",
    DeductionType.FSA: "FSA Contribution",
    DeductionType.COMMUTER: "Commuter Benefits",
    DeductionType.LIFE_INSURANCE: "Life Insurance",
    DeductionType.DISABILITY_INSURANCE: "Disability Insurance",
    DeductionType.UNION_DUES: "Union Dues",
    DeductionType.TRADITIONAL_401K: "Traditional 401(k)",
    DeductionType.ROTH_401K: "Roth 401(k)",
    DeductionType.OTHER: "Other",
}

PRE_TAX_TYPES = frozenset({
    DeductionType.HEALTH_INSURANCE,
    DeductionType.DENTAL_INSURANCE,
    DeductionType.VISION_INSURANCE,
    DeductionType.HSA,
    DeductionType.FSA,
    DeductionType.COMMUTER,
    DeductionType.TRADITIONAL_401K,
})


class DeductionFrequency(str, Enum):
    PER_PAYCHECK = "per_paycheck"
    MONTHLY = "monthly"
    ANNUAL = "annual"


class Deduction(BaseModel):
    """A single recurring deduction."""

    model_config = ConfigDict(extra="forbid")

    deduction_type: DeductionType
    name: Optional[str] = None
    amount: Decimal = Field(..., ge=0)
    frequency: DeductionFrequency = DeductionFrequency.PER_PAYCHECK
    pay_frequency: PayFrequency = PayFrequency.BI_WEEKLY
    is_pre_tax: Optional[bool] = Field(default=None, description="None = type default")

    @field_validator("amount", mode="before")
    @classmethod
    def coerce_amount(cls, v):
        return to_decimal(v)

    @model_validator(mode="after")
    def fill_defaults(self) -> "Deduction":
        if self.name is None:
            self.name = self.deduction_type.display_name
        if self.is_pre_tax is None:
            self.is_pre_tax = self.deduction_type.is_pre_tax
        return self

    def annual_amount(self) -> Decimal:
        if self.frequency == DeductionFrequency.PER_PAYCHECK:
            return self.amount * self.pay_frequency.periods_per_year
        if self.frequency == DeductionFrequency.MONTHLY:
            return self.amount * 12
        return self.amount


class RetirementContributions(BaseModel):
    """Annual retirement elections. Employer match never touches take-home pay."""

    model_config = ConfigDict(extra="forbid")

    traditional_401k: Decimal = ZERO
    roth_401k: Decimal = ZERO
    employer_match: Decimal = ZERO
    vesting_percentage: Decimal = Field(default=ONE, ge=0, le=1)

    @field_validator("traditional_401k", "roth_401k", "employer_match", "vesting_percentage", mode="before")
    @classmethod
    def coerce_amounts(cls, v):
        return to_decimal(v)

    @property
    def total_employee_contributions(self) -> Decimal:
        return self.traditional_401k + self.roth_401k

    @property
    def vested_employer_match(self) -> Decimal:
        return self.employer_match * self.vesting_percentage

    @property
    def total_with_match(self) -> Decimal:
        return self.total_employee_contributions + self.vested_employer_match


class DeductionsSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    pre_tax_total: Decimal = ZERO
    post_tax_total: Decimal = ZERO
    retirement: RetirementContributions = Field(default_factory=RetirementContributions)

    @property
    def total(self) -> Decimal:
        return self.pre_tax_total + self.post_tax_total + self.retirement.total_employee_contributions


def summarize_deductions(
    deductions: List[Deduction],
    retirement: Optional[RetirementContributions] = None,
) -> DeductionsSummary:
    """Annualize and bucket deductions by tax treatment.

    401(k) entries in the deduction list are folded into the retirement
    elections rather than the pre/post-tax totals, since the engine takes
    them as separate inputs.
    """
    retirement = retirement.model_copy() if retirement else RetirementContributions()
    pre_tax = ZERO
    post_tax = ZERO

    for deduction in deductions:
        annual = deduction.annual_amount()
        if deduction.deduction_type == DeductionType.TRADITIONAL_401K:
            retirement.traditional_401k += annual
        elif deduction.deduction_type == DeductionType.ROTH_401K:
            retirement.roth_401k += annual
        elif deduction.is_pre_tax:
            pre_tax += annual
        else:
            post_tax += annual

    return DeductionsSummary(
        pre_tax_total=pre_tax,
        post_tax_total=post_tax,
        retirement=retirement,
    )


def apply_deductions(base: TaxCalculationInput, summary: DeductionsSummary) -> TaxCalculationInput:
    """Return a copy of base with its deduction fields taken from summary."""
    return base.model_copy(update={
        "pre_tax_deductions": summary.pre_tax_total,
        "post_tax_deductions": summary.post_tax_total,
        "traditional_401k": summary.retirement.traditional_401k,
        "roth_401k": summary.retirement.roth_401k,
    })


def check_retirement_limits(
    contributions: RetirementContributions,
    limits: RetirementConfig,
    age: Optional[int] = None,
) -> List[str]:
    """Return problems with the elections against the year's limits (empty if fine)."""
    problems = []
    elective_limit = limits.employee_elective_limit
    if age is not None and age >= limits.catch_up_age:
        elective_limit += limits.catch_up_limit

    employee = contributions.total_employee_contributions
    if employee > elective_limit:
        problems.append(
            f"Employee contributions {employee} exceed the {limits.tax_year} "
            f"elective deferral limit {elective_limit}"
        )

    total = employee + contributions.employer_match
    if total > limits.total_annual_limit:
        problems.append(
            f"Total contributions {total} exceed the {limits.tax_year} "
            f"annual additions limit {limits.total_annual_limit}"
        )
    return problems

"""Pydantic schemas for take-home calculation inputs and results.

Inputs use extra='forbid' so a typo in a scenario file is a clear error
rather than a silently ignored field. Results are frozen snapshots; the
engine builds them once and never mutates them.

All money and rates are Decimal. Floats coming from YAML or JSON are
converted through str() so 0.1 stays 0.1.
"""

from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")


def to_decimal(value):
    """Coerce floats through their string form; leave everything else to pydantic."""
    if isinstance(value, float):
        return Decimal(str(value))
    return value


# =============================================================================
# Enumerations
# =============================================================================


class FilingStatus(str, Enum):
    """IRS filing status."""

    SINGLE = "single"
    MARRIED_FILING_JOINTLY = "married_filing_jointly"
    MARRIED_FILING_SEPARATELY = "married_filing_separately"
    HEAD_OF_HOUSEHOLD = "head_of_household"
    QUALIFYING_WIDOWER = "qualifying_widower"

    @property
    def display_name(self) -> str:
        return _FILING_DISPLAY[self][0]

    @property
    def short_name(self) -> str:
        return _FILING_DISPLAY[self][1]


_FILING_DISPLAY = {
    FilingStatus.SINGLE: ("Single", "Single"),
    FilingStatus.MARRIED_FILING_JOINTLY: ("Married Filing Jointly", "MFJ"),
    FilingStatus.MARRIED_FILING_SEPARATELY: ("Married Filing Separately", "MFS"),
    FilingStatus.HEAD_OF_HOUSEHOLD: ("Head of Household", "HoH"),
    FilingStatus.QUALIFYING_WIDOWER: ("Qualifying Widow(er)", "QW"),
}


class USState(str, Enum):
    """The 50 states plus DC, valued by two-letter code."""

    AL = "AL"
    AK = "AK"
    AZ = "AZ"
    AR = "AR"
    CA = "CA"
    CO = "CO"
    CT = "CT"
    DE = "DE"
    FL = "FL"
    GA = "GA"
    HI = "HI"
    ID = "ID"
    IL = "IL"
    IN = "IN"
    IA = "IA"
    KS = "KS"
    KY = "KY"
    LA = "LA"
    ME = "ME"
    MD = "MD"
    MA = "MA"
    MI = "MI"
    MN = "MN"
    MS = "MS"
    MO = "MO"
    MT = "MT"
    NE = "NE"
    NV = "NV"
    NH = "NH"
    NJ = "NJ"
    NM = "NM"
    NY = "NY"
    NC = "NC"
    ND = "ND"
    OH = "OH"
    OK = "OK"
    OR = "OR"
    PA = "PA"
    RI = "RI"
    SC = "SC"
    SD = "SD"
    TN = "TN"
    TX = "TX"
    UT = "UT"
    VT = "VT"
    VA = "VA"
    WA = "WA"
    DC = "DC"
    WV = "WV"
    WI = "WI"
    WY = "WY"

    @property
    def code(self) -> str:
        return self.value

    @property
    def display_name(self) -> str:
        return STATE_NAMES[self.value]

    def has_no_income_tax(self) -> bool:
        return self.value in NO_INCOME_TAX_STATES

    def has_flat_tax(self) -> bool:
        return self.value in FLAT_TAX_STATES

    def has_sdi(self) -> bool:
        return self.value in SDI_STATES

    def has_local_tax(self) -> bool:
        return self.value in LOCAL_TAX_STATES

    @classmethod
    def from_code(cls, code: str) -> Optional["USState"]:
        """Parse a two-letter code, case-insensitive. None if unknown."""
        try:
            return cls(code.strip().upper())
        except ValueError:
            return None

    @classmethod
    def all(cls) -> List["USState"]:
        return list(cls)


STATE_NAMES = {
    "AL": "Alabama", "AK": "Alaska", "AZ": "Arizona", "AR": "Arkansas",
    "CA": "California", "CO": "Colorado", "CT": "Connecticut", "DE": "Delaware",
    "FL": "Florida", "GA": "Georgia", "HI": "Hawaii", "ID": "Idaho",
    "IL": "Illinois", "IN": "Indiana", "IA": "Iowa", "KS": "Kansas",
    "KY": "Kentucky", "LA": "Louisiana", "ME": "Maine", "MD": "Maryland",
    "MA": "Massachusetts", "MI": "Michigan", "MN": "Minnesota",
    "MS": "Mississippi", "MO": "Missouri", "MT": "Montana", "NE": "Nebraska",
    "NV": "Nevada", "NH": "New Hampshire", "NJ": "New Jersey",
    "NM": "New Mexico", "NY": "New York", "NC": "North Carolina",
    "ND": "North Dakota", "OH": "Ohio", "OK": "Oklahoma", "OR": "Oregon",
    "PA": "Pennsylvania", "RI": "Rhode Island", "SC": "South Carolina",
    "SD": "South Dakota", "TN": "Tennessee", "TX": "Texas", "UT": "Utah",
    "VT": "Vermont", "VA": "Virginia", "WA": "Washington",
    "DC": "Washington D.C.", "WV": "West Virginia", "WI": "Wisconsin",
    "WY": "Wyoming",
}

NO_INCOME_TAX_STATES = frozenset({"AK", "FL", "NV", "NH", "SD", "TN", "TX", "WA", "WY"})
FLAT_TAX_STATES = frozenset({"CO", "IL", "IN", "KY", "MA", "MI", "NC", "PA", "UT"})
SDI_STATES = frozenset({"CA", "HI", "NJ", "NY", "RI"})
LOCAL_TAX_STATES = frozenset({
    "AL", "CO", "DE", "IN", "IA", "KY", "MD", "MI", "MO", "NJ", "NY", "OH",
    "OR", "PA", "WV",
})


# =============================================================================
# Calculation input
# =============================================================================


class TaxCalculationInput(BaseModel):
    """Everything the engine needs for one gross-to-net calculation.

    All amounts are annual. preTaxDeductions excludes the traditional 401(k)
    contribution and postTaxDeductions excludes the Roth contribution; the
    engine adds those itself.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    gross_income: Decimal = Field(default=ZERO, description="Annual gross income")
    filing_status: FilingStatus = Field(default=FilingStatus.SINGLE)
    state: USState = Field(default=USState.CA)
    pre_tax_deductions: Decimal = Field(default=ZERO, description="Section 125 style deductions")
    post_tax_deductions: Decimal = Field(default=ZERO, description="After-tax deductions")
    traditional_401k: Decimal = Field(default=ZERO, description="Pre-tax retirement contribution")
    roth_401k: Decimal = Field(default=ZERO, description="Roth retirement contribution")

    @field_validator(
        "gross_income", "pre_tax_deductions", "post_tax_deductions",
        "traditional_401k", "roth_401k", mode="before",
    )
    @classmethod
    def coerce_amounts(cls, v):
        return to_decimal(v)

    @field_validator("state", mode="before")
    @classmethod
    def state_code_case(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v


# =============================================================================
# Calculator results
# =============================================================================


class BracketAmount(BaseModel):
    """Income and tax falling in one bracket, for breakdown display."""

    model_config = ConfigDict(frozen=True)

    floor: Decimal
    ceiling: Optional[Decimal] = Field(None, description="None for the open top bracket")
    rate: Decimal
    taxable_in_bracket: Decimal
    tax_paid: Decimal


class ScheduleEvaluation(BaseModel):
    """Output of the rate schedule evaluator."""

    model_config = ConfigDict(frozen=True)

    tax: Decimal
    marginal_rate: Decimal
    effective_rate: Decimal
    breakdown: List[BracketAmount] = Field(default_factory=list)


class FederalTaxResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    taxable_income: Decimal = ZERO
    standard_deduction: Decimal = ZERO
    tax: Decimal = ZERO
    marginal_rate: Decimal = ZERO
    effective_rate: Decimal = ZERO
    bracket_breakdown: List[BracketAmount] = Field(default_factory=list)


class StateTaxResult(BaseModel):
    """State tax result.

    bracket_breakdown is None for tax types that are not bracketed (no-tax
    and flat states), and a list (possibly empty) for progressive states.
    """

    model_config = ConfigDict(frozen=True)

    state_code: str
    tax_type: str = "no_tax"
    taxable_income: Decimal = ZERO
    income_tax: Decimal = ZERO
    local_tax: Decimal = ZERO
    sdi: Decimal = ZERO
    total_tax: Decimal = ZERO
    effective_rate: Decimal = ZERO
    marginal_rate: Decimal = ZERO
    bracket_breakdown: Optional[List[BracketAmount]] = None


class FicaResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    social_security: Decimal = ZERO
    social_security_wage_base: Decimal = ZERO
    medicare: Decimal = ZERO
    additional_medicare: Decimal = ZERO
    additional_medicare_threshold: Decimal = ZERO
    total: Decimal = ZERO


class TaxBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    federal: FederalTaxResult
    state: StateTaxResult
    fica: FicaResult
    total_taxes: Decimal
    effective_rate: Decimal


class EffectiveRates(BaseModel):
    """Each tax as a fraction of gross income."""

    model_config = ConfigDict(frozen=True)

    federal: Decimal = ZERO
    state: Decimal = ZERO
    fica: Decimal = ZERO
    total: Decimal = ZERO

    def as_percentages(self) -> dict:
        return {
            "federal": self.federal * HUNDRED,
            "state": self.state * HUNDRED,
            "fica": self.fica * HUNDRED,
            "total": self.total * HUNDRED,
        }


class TimeframeIncome(BaseModel):
    """One annual amount expressed over every pay timeframe."""

    model_config = ConfigDict(frozen=True)

    annual: Decimal
    monthly: Decimal
    bi_weekly: Decimal
    semi_monthly: Decimal
    weekly: Decimal
    daily: Decimal
    hourly: Decimal


class CalculatedIncome(BaseModel):
    model_config = ConfigDict(frozen=True)

    gross: Decimal
    net: Decimal
    total_pre_tax: Decimal
    total_post_tax: Decimal
    timeframes: TimeframeIncome
    take_home_percentage: Decimal


class TaxCalculationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    tax_year: int
    rules_version: str
    income: CalculatedIncome
    tax_breakdown: TaxBreakdown
    effective_rates: EffectiveRates

    @property
    def net(self) -> Decimal:
        return self.income.net


class ScenarioComparison(BaseModel):
    """Structural diff of two engine runs. Says nothing about which input caused it."""

    model_config = ConfigDict(frozen=True)

    base: TaxCalculationResult
    scenario: TaxCalculationResult
    net_difference: Decimal
    monthly_difference: Decimal

    def is_positive(self) -> bool:
        return self.net_difference > ZERO

    def net_difference_percent(self) -> Decimal:
        if self.base.income.net > ZERO:
            return self.net_difference / self.base.income.net * HUNDRED
        return ZERO

"""Pydantic schemas for tax rule data.

These schemas validate the embedded rules/data/<year>/*.json files, cached
snapshots and remote payloads, and provide typed access to brackets, rates
and deduction tables.

Rule files are parsed with parse_float=Decimal so every amount here is exact.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Dict, List, Literal, Optional, Protocol, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    RootModel,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from ..errors import DataUnavailable
from ..schemas import ZERO, FilingStatus, USState, to_decimal


# =============================================================================
# Brackets
# =============================================================================


class TaxBracket(BaseModel):
    """Single tax bracket entry.

    ceiling is exclusive; None marks the open top bracket. base_tax is the
    cumulative tax owed at floor. Rule files may omit it, in which case the
    owning RateSchedule derives it from the lower brackets.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    floor: Decimal = Field(..., ge=0, description="Inclusive lower bound")
    ceiling: Optional[Decimal] = Field(default=None, description="Exclusive upper bound, None if top bracket")
    rate: Decimal = Field(..., ge=0, le=1, description="Tax rate as decimal")
    base_tax: Optional[Decimal] = Field(default=None, ge=0, description="Cumulative tax at floor")

    @field_validator("floor", "ceiling", "rate", "base_tax", mode="before")
    @classmethod
    def coerce_amounts(cls, v):
        return to_decimal(v)

    @property
    def is_top(self) -> bool:
        return self.ceiling is None


def schedule_problems(brackets: List[TaxBracket]) -> List[str]:
    """Return the ways a bracket list fails to cover [0, inf) contiguously."""
    if not brackets:
        return ["schedule has no brackets"]

    problems = []
    if brackets[0].floor != ZERO:
        problems.append(f"first bracket starts at {brackets[0].floor}, not 0")

    for lower, upper in zip(brackets, brackets[1:]):
        if lower.ceiling is None:
            problems.append(f"bracket at {lower.floor} is open-ended but not last")
        elif upper.floor != lower.ceiling:
            problems.append(
                f"gap or overlap: bracket ceiling {lower.ceiling} != next floor {upper.floor}"
            )

    if brackets[-1].ceiling is not None:
        problems.append(f"top bracket is capped at {brackets[-1].ceiling}")

    for bracket in brackets:
        if bracket.ceiling is not None and bracket.ceiling <= bracket.floor:
            problems.append(f"bracket at {bracket.floor} has ceiling {bracket.ceiling} below floor")

    return problems


class RateSchedule(RootModel[List[TaxBracket]]):
    """Ordered, contiguous brackets covering [0, inf) for one filing status."""

    @model_validator(mode="after")
    def check_and_fill_base_tax(self) -> "RateSchedule":
        problems = schedule_problems(self.root)
        if problems:
            raise ValueError("; ".join(problems))

        running = ZERO
        for i, bracket in enumerate(self.root):
            if bracket.base_tax is None:
                self.root[i] = bracket.model_copy(update={"base_tax": running})
            elif bracket.base_tax != running:
                raise ValueError(
                    f"bracket at {bracket.floor} declares base_tax {bracket.base_tax}, "
                    f"lower brackets sum to {running}"
                )
            if bracket.ceiling is not None:
                running += (bracket.ceiling - bracket.floor) * bracket.rate
        return self

    @property
    def brackets(self) -> List[TaxBracket]:
        return self.root

    def __iter__(self):
        return iter(self.root)

    def __len__(self) -> int:
        return len(self.root)

    def __getitem__(self, index: int) -> TaxBracket:
        return self.root[index]


# =============================================================================
# Per-jurisdiction configs
# =============================================================================


class FederalTaxConfig(BaseModel):
    """Federal brackets and standard deductions for one tax year."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    tax_year: int
    standard_deduction: Dict[FilingStatus, Decimal]
    brackets: Dict[FilingStatus, RateSchedule]


class FicaConfig(BaseModel):
    """Payroll tax rates. Social Security is capped, Medicare is not."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    tax_year: int
    social_security_rate: Decimal = Field(..., ge=0, le=1, description="SS tax rate (employee portion)")
    wage_base: Decimal = Field(..., gt=0, description="SS wage base (max taxable)")
    medicare_rate: Decimal = Field(..., ge=0, le=1)
    additional_medicare_rate: Decimal = Field(..., ge=0, le=1)
    additional_medicare_thresholds: Dict[FilingStatus, Decimal]

    def additional_medicare_threshold(self, filing_status: FilingStatus) -> Decimal:
        try:
            return self.additional_medicare_thresholds[filing_status]
        except KeyError:
            raise DataUnavailable(
                f"No additional Medicare threshold for {filing_status.value} in {self.tax_year}",
                year=self.tax_year,
            )


class RetirementConfig(BaseModel):
    """401(k) and IRA contribution limits."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    tax_year: int
    employee_elective_limit: Decimal = Field(..., ge=0, description="Pre-tax + Roth employee limit")
    catch_up_limit: Decimal = Field(default=ZERO, ge=0, description="Extra elective deferral at age 50+")
    catch_up_age: int = Field(default=50)
    total_annual_limit: Decimal = Field(..., ge=0, description="Total including employer match")
    ira_limit: Decimal = Field(default=ZERO, ge=0)


class SdiConfig(BaseModel):
    """State disability insurance: flat rate, optionally capped."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    rate: Decimal = Field(..., ge=0, le=1)
    wage_cap: Optional[Decimal] = Field(default=None, gt=0, description="None means uncapped")


class LocalTaxConfig(BaseModel):
    """Average local income tax rate, an approximation rather than a city table."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    average_rate: Decimal = Field(..., ge=0, le=1)


class _StateConfigBase(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    sdi: Optional[SdiConfig] = None
    local_tax: Optional[LocalTaxConfig] = None


class NoTaxStateConfig(_StateConfigBase):
    tax_type: Literal["no_tax"] = "no_tax"


class FlatTaxStateConfig(_StateConfigBase):
    tax_type: Literal["flat"] = "flat"
    flat_rate: Decimal = Field(..., ge=0, le=1)


class ProgressiveStateConfig(_StateConfigBase):
    """Bracketed state tax.

    States often publish a single schedule; a filing status without its own
    schedule or deduction uses the single one.
    """

    tax_type: Literal["progressive"] = "progressive"
    brackets: Dict[FilingStatus, RateSchedule]
    standard_deduction: Dict[FilingStatus, Decimal] = Field(default_factory=dict)

    def schedule_for(self, filing_status: FilingStatus) -> Optional[RateSchedule]:
        return self.brackets.get(filing_status, self.brackets.get(FilingStatus.SINGLE))

    def deduction_for(self, filing_status: FilingStatus) -> Decimal:
        if filing_status in self.standard_deduction:
            return self.standard_deduction[filing_status]
        return self.standard_deduction.get(FilingStatus.SINGLE, ZERO)


StateTaxConfig = Annotated[
    Union[NoTaxStateConfig, FlatTaxStateConfig, ProgressiveStateConfig],
    Field(discriminator="tax_type"),
]


class StatesConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    tax_year: int
    states: Dict[USState, StateTaxConfig]


# =============================================================================
# Complete snapshot
# =============================================================================


class TaxRuleSet(BaseModel):
    """A complete, immutable rule-data snapshot for one tax year.

    Lookups raise DataUnavailable rather than returning empty data, so a
    calculator never divides by a missing schedule.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)  # forward compat

    version: str
    tax_year: int
    federal: FederalTaxConfig
    fica: FicaConfig
    states: Dict[USState, StateTaxConfig]
    retirement: RetirementConfig

    def _check_year(self, year: int) -> None:
        if year != self.tax_year:
            raise DataUnavailable(
                f"Rule data version {self.version} covers {self.tax_year}, not {year}",
                year=year,
            )

    def federal_schedule(self, filing_status: FilingStatus, year: int) -> RateSchedule:
        self._check_year(year)
        try:
            return self.federal.brackets[filing_status]
        except KeyError:
            raise DataUnavailable(
                f"No federal schedule for {filing_status.value} in {year}", year=year
            )

    def standard_deduction(self, filing_status: FilingStatus, year: int) -> Decimal:
        self._check_year(year)
        try:
            return self.federal.standard_deduction[filing_status]
        except KeyError:
            raise DataUnavailable(
                f"No federal standard deduction for {filing_status.value} in {year}", year=year
            )

    def fica_config(self, year: int) -> FicaConfig:
        self._check_year(year)
        return self.fica

    def state_config(self, state: USState, year: int) -> StateTaxConfig:
        self._check_year(year)
        try:
            return self.states[state]
        except KeyError:
            raise DataUnavailable(f"No state config for {state.value} in {year}", year=year)

    def retirement_config(self, year: int) -> RetirementConfig:
        self._check_year(year)
        return self.retirement

    def snapshot(self) -> "TaxRuleSet":
        """A rule set never changes, so it is its own snapshot."""
        return self


class RuleSource(Protocol):
    """What calculators need from rule data.

    RuleDataProvider is the production implementation; a bare TaxRuleSet
    satisfies it too and is what tests pass in.

    snapshot() returns a source pinned to the data active at call time. The
    engine pins once per calculation so federal, state and FICA lookups all
    read the same version even if a refresh lands mid-calculation.
    """

    def snapshot(self) -> "RuleSource": ...

    def federal_schedule(self, filing_status: FilingStatus, year: int) -> RateSchedule: ...

    def standard_deduction(self, filing_status: FilingStatus, year: int) -> Decimal: ...

    def fica_config(self, year: int) -> FicaConfig: ...

    def state_config(self, state: USState, year: int) -> StateTaxConfig: ...

    def retirement_config(self, year: int) -> RetirementConfig: ...


# =============================================================================
# Manifest, cache and remote version metadata
# =============================================================================


class TaxDataManifest(BaseModel):
    """Describes an embedded bundle: year, validity window and file checksums."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    schema_version: int = Field(..., ge=1)
    version: str
    tax_year: int
    effective_date: date
    expiration_date: date
    checksums: Dict[str, str] = Field(..., description="File name -> SHA-256 hex digest")

    def is_current(self, today: date) -> bool:
        return self.effective_date <= today <= self.expiration_date


class CacheMetadata(BaseModel):
    """Sidecar record written next to a cached snapshot."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    version: str
    tax_year: int
    cached_at: datetime
    expires_at: datetime
    checksum: str

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


class VersionInfo(BaseModel):
    """Response of GET /tax-data/{year}/version."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    has_update: bool
    latest_version: str
    is_required: bool = False
    change_log: Optional[str] = None

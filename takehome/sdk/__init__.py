"""Take Home SDK - Core functionality for after-tax income calculations."""

from .config import (
    get_config_dir,
    get_settings_path,
    load_settings,
    save_settings,
    get_setting,
    set_setting,
    unset_setting,
    get_tax_year,
    get_remote_url,
    get_fetch_timeout,
    get_cache_ttl_hours,
    # XDG paths
    get_cache_path,
    get_rules_cache_path,
    configure_logging,
)

from .errors import (
    TaxDataError,
    DataUnavailable,
    ValidationFailure,
    CacheCorruption,
    NetworkFailure,
)

from .schemas import (
    FilingStatus,
    USState,
    TaxCalculationInput,
    TaxCalculationResult,
    TaxBreakdown,
    FederalTaxResult,
    StateTaxResult,
    FicaResult,
    EffectiveRates,
    CalculatedIncome,
    TimeframeIncome,
    ScenarioComparison,
)

from .engine import TaxCalculationEngine

from .timeframe import (
    Timeframe,
    to_all_timeframes,
    to_all_timeframes_custom,
    to_annual,
    convert,
    hours_to_earn,
    days_to_earn,
)

from .household import (
    Household,
    HouseholdSplit,
    PartnerProfile,
    SharedExpense,
    ProportionalSplit,
    EqualSplit,
    CustomSplit,
    split,
    split_expenses,
)

from .deductions import (
    Deduction,
    DeductionType,
    PayFrequency,
    RetirementContributions,
    summarize_deductions,
    apply_deductions,
    check_retirement_limits,
)

from .rules import (
    RuleDataProvider,
    RuleDataCache,
    RemoteRuleSource,
    DataFreshness,
    Tier,
    load_embedded,
    available_years,
    check_bundle,
)

__all__ = [
    # Config
    "get_config_dir",
    "get_settings_path",
    "load_settings",
    "save_settings",
    "get_setting",
    "set_setting",
    "unset_setting",
    "get_tax_year",
    "get_remote_url",
    "get_fetch_timeout",
    "get_cache_ttl_hours",
    "get_cache_path",
    "get_rules_cache_path",
    "configure_logging",
    # Errors
    "TaxDataError",
    "DataUnavailable",
    "ValidationFailure",
    "CacheCorruption",
    "NetworkFailure",
    # Schemas
    "FilingStatus",
    "USState",
    "TaxCalculationInput",
    "TaxCalculationResult",
    "TaxBreakdown",
    "FederalTaxResult",
    "StateTaxResult",
    "FicaResult",
    "EffectiveRates",
    "CalculatedIncome",
    "TimeframeIncome",
    "ScenarioComparison",
    # Engine
    "TaxCalculationEngine",
    # Timeframes
    "Timeframe",
    "to_all_timeframes",
    "to_all_timeframes_custom",
    "to_annual",
    "convert",
    "hours_to_earn",
    "days_to_earn",
    # Household
    "Household",
    "HouseholdSplit",
    "PartnerProfile",
    "SharedExpense",
    "ProportionalSplit",
    "EqualSplit",
    "CustomSplit",
    "split",
    "split_expenses",
    # Deductions
    "Deduction",
    "DeductionType",
    "PayFrequency",
    "RetirementContributions",
    "summarize_deductions",
    "apply_deductions",
    "check_retirement_limits",
    # Rule data
    "RuleDataProvider",
    "RuleDataCache",
    "RemoteRuleSource",
    "DataFreshness",
    "Tier",
    "load_embedded",
    "available_years",
    "check_bundle",
]

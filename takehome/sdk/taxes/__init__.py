"""taxes - Tax rule schemas and per-jurisdiction calculators.

Scope:
- Rule data schemas (brackets, schedules, federal/state/FICA/retirement configs)
- Progressive rate schedule evaluation (brackets.py)
- Federal, state and payroll tax calculators

Constraints:
- Pure calculation over a rule source; no I/O, no caching of their own
- Safe to call concurrently: rule snapshots are immutable
- Rule data comes from sdk.rules (embedded / cached / remote tiers)

Usage:
    from takehome.sdk.taxes import calculate_federal_tax

    result = calculate_federal_tax(provider, Decimal("100000"), FilingStatus.SINGLE, 2024)
"""

from .brackets import evaluate, find_bracket, bracket_breakdown
from .federal import calculate_federal_tax, federal_standard_deduction
from .state import calculate_state_tax, calculate_sdi, estimate_local_tax
from .fica import calculate_fica, calculate_social_security, calculate_additional_medicare
from .schemas import (
    TaxBracket,
    RateSchedule,
    FederalTaxConfig,
    FicaConfig,
    RetirementConfig,
    SdiConfig,
    LocalTaxConfig,
    NoTaxStateConfig,
    FlatTaxStateConfig,
    ProgressiveStateConfig,
    StateTaxConfig,
    StatesConfig,
    TaxRuleSet,
    RuleSource,
    TaxDataManifest,
    CacheMetadata,
    VersionInfo,
    schedule_problems,
)

__all__ = [
    # Evaluation
    "evaluate",
    "find_bracket",
    "bracket_breakdown",
    # Calculators
    "calculate_federal_tax",
    "federal_standard_deduction",
    "calculate_state_tax",
    "calculate_sdi",
    "estimate_local_tax",
    "calculate_fica",
    "calculate_social_security",
    "calculate_additional_medicare",
    # Schemas
    "TaxBracket",
    "RateSchedule",
    "FederalTaxConfig",
    "FicaConfig",
    "RetirementConfig",
    "SdiConfig",
    "LocalTaxConfig",
    "NoTaxStateConfig",
    "FlatTaxStateConfig",
    "ProgressiveStateConfig",
    "StateTaxConfig",
    "StatesConfig",
    "TaxRuleSet",
    "RuleSource",
    "TaxDataManifest",
    "CacheMetadata",
    "VersionInfo",
    "schedule_problems",
]

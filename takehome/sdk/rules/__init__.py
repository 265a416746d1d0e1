"""rules - Tax rule data: embedded bundles, cache, remote refresh.

Scope:
- Embedded per-year bundles with SHA-256 manifests (bundle.py)
- Payload validation and offline bundle checks (validation.py)
- On-disk snapshot cache with TTL and integrity check (cache.py)
- HTTP client for the rule-data service (remote.py)
- RuleDataProvider: tier selection, background refresh, embedded fallback

Constraints:
- Reads never fail because of the cache or remote tiers
- Snapshots are immutable and swapped whole
- Only validated payloads are cached or promoted

Usage:
    from takehome.sdk.rules import RuleDataProvider

    provider = RuleDataProvider.from_settings()
    provider.refresh()
"""

from .bundle import available_years, load_embedded, load_manifest
from .cache import RuleDataCache
from .provider import (
    ActiveRules,
    DataFreshness,
    PinnedRules,
    RefreshResult,
    RuleDataProvider,
    Tier,
)
from .remote import RemoteRuleSource
from .validation import check_bundle, parse_payload, validate_payload

__all__ = [
    "available_years",
    "load_embedded",
    "load_manifest",
    "RuleDataCache",
    "ActiveRules",
    "DataFreshness",
    "PinnedRules",
    "RefreshResult",
    "RuleDataProvider",
    "Tier",
    "RemoteRuleSource",
    "check_bundle",
    "parse_payload",
    "validate_payload",
]

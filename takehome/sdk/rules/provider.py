"""Tiered rule-data provider.

Three tiers, in increasing order of preference:

    EMBEDDED  bundle shipped in the package; always present, always valid
    CACHED    snapshot fetched earlier, persisted with a TTL and checksum
    REMOTE    snapshot fetched and validated during this process

The active snapshot is one immutable TaxRuleSet. Promotion and demotion
replace it whole under a lock, so a reader holds either the old snapshot or
the new one and never a mix.

Reads never fail because of the upper tiers. A lookup the active snapshot
cannot answer is answered from the embedded bundle instead, and a refresh
that fails (network, bad payload) is logged and recorded in freshness()
without disturbing the active snapshot.

Refreshes run on a single background worker. A refresh requested while one
is in flight gets the in-flight one's future. When two results race, the one
that finished validating last wins. Only a result that becomes active is
written to the cache.
"""

import itertools
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Optional, Protocol

from pydantic import BaseModel, ConfigDict

from ..config import (
    get_cache_ttl_hours,
    get_fetch_timeout,
    get_remote_url,
    get_rules_cache_path,
    get_tax_year,
)
from ..errors import CacheCorruption, DataUnavailable, TaxDataError
from ..schemas import FilingStatus, USState
from ..taxes.schemas import (
    FicaConfig,
    RateSchedule,
    RetirementConfig,
    StateTaxConfig,
    TaxRuleSet,
    VersionInfo,
)
from .bundle import load_embedded
from .cache import RuleDataCache, utcnow
from .remote import RemoteRuleSource
from .validation import parse_payload

logger = logging.getLogger(__name__)


class Tier(str, Enum):
    EMBEDDED = "embedded"
    CACHED = "cached"
    REMOTE = "remote"


class RemoteSource(Protocol):
    def fetch(self, year: int) -> Any: ...

    def check_version(self, year: int, current: Optional[str] = None) -> VersionInfo: ...


class ActiveRules(BaseModel):
    """The snapshot currently served, with where it came from."""

    model_config = ConfigDict(frozen=True)

    tier: Tier
    ruleset: TaxRuleSet
    activated_at: datetime
    sequence: int = 0


class DataFreshness(BaseModel):
    """What the provider is serving and how the last refresh went."""

    model_config = ConfigDict(frozen=True)

    tier: Tier
    version: str
    tax_year: int
    activated_at: datetime
    last_refresh_at: Optional[datetime] = None
    last_error: Optional[str] = None
    refresh_in_flight: bool = False


class RefreshResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    updated: bool
    tier: Tier
    version: str
    error: Optional[str] = None


class PinnedRules:
    """A RuleSource fixed to one active snapshot, with the embedded fallback."""

    def __init__(self, active: ActiveRules, embedded: TaxRuleSet):
        self.active = active
        self.embedded = embedded

    @property
    def version(self) -> str:
        return self.active.ruleset.version

    @property
    def tier(self) -> Tier:
        return self.active.tier

    def _lookup(self, getter: Callable[[TaxRuleSet], Any]) -> Any:
        try:
            return getter(self.active.ruleset)
        except DataUnavailable as e:
            if self.active.tier == Tier.EMBEDDED:
                raise
            logger.debug(f"{self.active.tier.value} data incomplete ({e}), using embedded")
            return getter(self.embedded)

    def federal_schedule(self, filing_status: FilingStatus, year: int) -> RateSchedule:
        return self._lookup(lambda rules: rules.federal_schedule(filing_status, year))

    def standard_deduction(self, filing_status: FilingStatus, year: int) -> Decimal:
        return self._lookup(lambda rules: rules.standard_deduction(filing_status, year))

    def fica_config(self, year: int) -> FicaConfig:
        return self._lookup(lambda rules: rules.fica_config(year))

    def state_config(self, state: USState, year: int) -> StateTaxConfig:
        return self._lookup(lambda rules: rules.state_config(state, year))

    def retirement_config(self, year: int) -> RetirementConfig:
        return self._lookup(lambda rules: rules.retirement_config(year))

    def snapshot(self) -> "PinnedRules":
        return self


class RuleDataProvider:
    """Serves rule data for one tax year from the best available tier.

    Usage:
        with RuleDataProvider.from_settings() as provider:
            provider.refresh()                # background, never raises
            engine = TaxCalculationEngine(provider, provider.year)

    Args:
        year: Tax year to serve; must have an embedded bundle
        cache: Cache to promote from and persist to (None disables the tier)
        remote: Remote source to refresh from (None disables the tier)
        clock: Returns the current aware datetime (tests pin it)
    """

    def __init__(
        self,
        year: int,
        cache: Optional[RuleDataCache] = None,
        remote: Optional[RemoteSource] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.year = year
        self.cache = cache
        self.remote = remote
        self._clock = clock

        self._embedded = load_embedded(year)
        self._lock = threading.Lock()
        self._sequence = itertools.count(1)
        self._active = ActiveRules(tier=Tier.EMBEDDED, ruleset=self._embedded, activated_at=clock())
        self._executor: Optional[ThreadPoolExecutor] = None
        self._in_flight: Optional[Future] = None
        self._last_refresh_at: Optional[datetime] = None
        self._last_error: Optional[str] = None
        self._closed = False

        if cache is not None:
            self._promote_cached()

    @classmethod
    def from_settings(cls, year: Optional[int] = None) -> "RuleDataProvider":
        """Build a provider from settings.json (cache always on, remote if configured)."""
        year = year or get_tax_year()
        try:
            cache = RuleDataCache(get_rules_cache_path(), timedelta(hours=get_cache_ttl_hours()))
        except OSError as e:
            logger.warning(f"Tax data cache disabled: {e}")
            cache = None
        remote_url = get_remote_url()
        remote = RemoteRuleSource(remote_url, get_fetch_timeout()) if remote_url else None
        return cls(year, cache=cache, remote=remote)

    # ------------------------------------------------------------------
    # Tier transitions
    # ------------------------------------------------------------------

    def _promote_cached(self) -> None:
        try:
            cached = self.cache.read(self.year, now=self._clock())
        except (CacheCorruption, OSError) as e:
            logger.warning(f"Discarding unusable tax data cache: {e}")
            self.cache.invalidate(self.year)
            return
        if cached is None:
            return
        self._activate(Tier.CACHED, cached, next(self._sequence))

    def _activate(self, tier: Tier, ruleset: TaxRuleSet, sequence: int) -> bool:
        """Swap in a new snapshot unless a later-validated one is already active."""
        with self._lock:
            if self._closed:
                logger.debug(f"Provider closed, discarding {tier.value} data {ruleset.version}")
                return False
            if sequence <= self._active.sequence:
                logger.debug(
                    f"Discarding {tier.value} data {ruleset.version}: "
                    f"sequence {sequence} superseded by {self._active.sequence}"
                )
                return False
            previous = self._active
            self._active = ActiveRules(
                tier=tier,
                ruleset=ruleset,
                activated_at=self._clock(),
                sequence=sequence,
            )
        logger.info(
            f"Tax data {previous.tier.value} {previous.ruleset.version} -> "
            f"{tier.value} {ruleset.version}"
        )
        return True

    def demote(self) -> None:
        """Fall back to the embedded bundle."""
        with self._lock:
            if self._active.tier == Tier.EMBEDDED:
                return
            self._active = ActiveRules(
                tier=Tier.EMBEDDED,
                ruleset=self._embedded,
                activated_at=self._clock(),
                sequence=next(self._sequence),
            )
        logger.info(f"Tax data demoted to embedded {self._embedded.version}")

    def clear_cache(self) -> bool:
        """Invalidate the cached entry for this year and stop serving it."""
        removed = self.cache.invalidate(self.year) if self.cache is not None else False
        if self._active.tier == Tier.CACHED:
            self.demote()
        return removed

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    def refresh(self) -> Future:
        """Start a background refresh, or join the one already running.

        The returned future resolves to a RefreshResult and never raises.
        """
        with self._lock:
            if self._in_flight is not None and not self._in_flight.done():
                return self._in_flight

            if self.remote is None or self._closed:
                future: Future = Future()
                future.set_result(RefreshResult(
                    updated=False,
                    tier=self._active.tier,
                    version=self._active.ruleset.version,
                    error="provider closed" if self._closed else "no remote source configured",
                ))
                return future

            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="tax-data-refresh")
            self._in_flight = self._executor.submit(self._refresh_once)
            return self._in_flight

    def _refresh_once(self) -> RefreshResult:
        error = None
        updated = False
        try:
            payload = self.remote.fetch(self.year)
            ruleset = parse_payload(payload, expected_year=self.year)
            updated = self._activate(Tier.REMOTE, ruleset, next(self._sequence))
            if updated and self.cache is not None:
                try:
                    self.cache.write(ruleset, now=self._clock())
                except OSError as e:
                    logger.warning(f"Could not cache tax data {ruleset.version}: {e}")
        except TaxDataError as e:
            error = str(e)
            logger.warning(f"Tax data refresh failed, keeping {self._active.tier.value} data: {e}")
        except Exception as e:
            error = f"{type(e).__name__}: {e}"
            logger.exception(f"Unexpected error refreshing tax data for {self.year}")

        with self._lock:
            self._last_refresh_at = self._clock()
            self._last_error = error
            active = self._active

        return RefreshResult(
            updated=updated,
            tier=active.tier,
            version=active.ruleset.version,
            error=error,
        )

    def check_for_update(self) -> Optional[VersionInfo]:
        """Ask the remote whether a newer version exists. None if no remote.

        Raises:
            NetworkFailure, ValidationFailure: From the remote source
        """
        if self.remote is None:
            return None
        return self.remote.check_version(self.year, current=self.version)

    def close(self) -> None:
        """Stop accepting refreshes. Results arriving after this are discarded."""
        with self._lock:
            self._closed = True
            executor = self._executor
        if executor is not None:
            executor.shutdown(wait=False, cancel_futures=True)

    def __enter__(self) -> "RuleDataProvider":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def active(self) -> ActiveRules:
        return self._active

    @property
    def tier(self) -> Tier:
        return self._active.tier

    @property
    def version(self) -> str:
        return self._active.ruleset.version

    @property
    def embedded(self) -> TaxRuleSet:
        return self._embedded

    def freshness(self) -> DataFreshness:
        with self._lock:
            active = self._active
            in_flight = self._in_flight is not None and not self._in_flight.done()
            return DataFreshness(
                tier=active.tier,
                version=active.ruleset.version,
                tax_year=active.ruleset.tax_year,
                activated_at=active.activated_at,
                last_refresh_at=self._last_refresh_at,
                last_error=self._last_error,
                refresh_in_flight=in_flight,
            )

    # ------------------------------------------------------------------
    # RuleSource
    # ------------------------------------------------------------------

    def snapshot(self) -> PinnedRules:
        return PinnedRules(self._active, self._embedded)

    def federal_schedule(self, filing_status: FilingStatus, year: int) -> RateSchedule:
        return self.snapshot().federal_schedule(filing_status, year)

    def standard_deduction(self, filing_status: FilingStatus, year: int) -> Decimal:
        return self.snapshot().standard_deduction(filing_status, year)

    def fica_config(self, year: int) -> FicaConfig:
        return self.snapshot().fica_config(year)

    def state_config(self, state: USState, year: int) -> StateTaxConfig:
        return self.snapshot().state_config(state, year)

    def retirement_config(self, year: int) -> RetirementConfig:
        return self.snapshot().retirement_config(year)

"""On-disk cache of validated rule-data snapshots.

Layout under the rules cache directory (see config.get_rules_cache_path):

    {year}.json        the TaxRuleSet, serialized by pydantic
    {year}.meta.json   CacheMetadata: version, cached/expiry times, SHA-256

Only snapshots that already passed validation are written here. A read
re-hashes the snapshot and compares it with the sidecar checksum; any
mismatch or unreadable entry raises CacheCorruption and the caller is
expected to invalidate the entry and fall back to the embedded data.
"""

import logging
import os
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from ..errors import CacheCorruption
from ..taxes.schemas import CacheMetadata, TaxRuleSet
from .bundle import sha256_hex

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RuleDataCache:
    """Per-year rule snapshots with a TTL and integrity check."""

    def __init__(self, directory: Path, ttl: timedelta):
        self.directory = Path(directory)
        self.ttl = ttl

    def data_path(self, year: int) -> Path:
        return self.directory / f"{year}.json"

    def meta_path(self, year: int) -> Path:
        return self.directory / f"{year}.meta.json"

    def _write_atomic(self, path: Path, data: bytes) -> None:
        tmp = path.with_name(path.name + ".tmp")
        tmp.write_bytes(data)
        os.replace(tmp, path)

    def write(self, ruleset: TaxRuleSet, now: Optional[datetime] = None) -> CacheMetadata:
        """Persist a validated snapshot, replacing any existing entry for its year."""
        now = now or utcnow()
        self.directory.mkdir(parents=True, exist_ok=True)

        data = ruleset.model_dump_json(indent=2).encode("utf-8")
        meta = CacheMetadata(
            version=ruleset.version,
            tax_year=ruleset.tax_year,
            cached_at=now,
            expires_at=now + self.ttl,
            checksum=sha256_hex(data),
        )

        # Data first; an interrupted write reads back as a checksum mismatch.
        self._write_atomic(self.data_path(ruleset.tax_year), data)
        self._write_atomic(self.meta_path(ruleset.tax_year), meta.model_dump_json(indent=2).encode("utf-8"))

        logger.info(f"Cached tax data {ruleset.version} for {ruleset.tax_year} until {meta.expires_at}")
        return meta

    def read_metadata(self, year: int) -> Optional[CacheMetadata]:
        meta_path = self.meta_path(year)
        try:
            if not meta_path.exists():
                return None
            return CacheMetadata.model_validate_json(meta_path.read_bytes())
        except (OSError, ValidationError) as e:
            raise CacheCorruption(f"Unreadable cache metadata for {year}: {e}") from e

    def read(self, year: int, now: Optional[datetime] = None) -> Optional[TaxRuleSet]:
        """Return the cached snapshot for a year.

        Returns:
            The snapshot, or None if nothing is cached or the entry expired

        Raises:
            CacheCorruption: If the entry is incomplete, unparseable or fails its checksum
        """
        now = now or utcnow()
        meta = self.read_metadata(year)
        data_path = self.data_path(year)

        if meta is None:
            if data_path.exists():
                raise CacheCorruption(f"Cached tax data for {year} has no metadata")
            return None

        if meta.is_expired(now):
            logger.info(f"Cached tax data {meta.version} for {year} expired at {meta.expires_at}")
            return None

        if not data_path.exists():
            raise CacheCorruption(f"Cache metadata for {year} has no data file")

        try:
            data = data_path.read_bytes()
        except OSError as e:
            raise CacheCorruption(f"Unreadable cached tax data for {year}: {e}") from e
        actual = sha256_hex(data)
        if actual != meta.checksum:
            raise CacheCorruption(
                f"Cached tax data for {year} checksum mismatch: expected {meta.checksum}, got {actual}"
            )

        try:
            ruleset = TaxRuleSet.model_validate_json(data)
        except ValidationError as e:
            raise CacheCorruption(f"Cached tax data for {year} failed validation: {e}") from e

        if ruleset.tax_year != year or ruleset.version != meta.version:
            raise CacheCorruption(
                f"Cached tax data for {year} does not match its metadata "
                f"({ruleset.version}/{ruleset.tax_year} vs {meta.version}/{meta.tax_year})"
            )
        return ruleset

    def invalidate(self, year: int) -> bool:
        """Delete the entry for a year. Returns False if nothing was cached."""
        removed = False
        for path in (self.data_path(year), self.meta_path(year)):
            if not path.exists():
                continue
            try:
                path.unlink()
                removed = True
            except OSError as e:
                logger.warning(f"Could not remove cached tax data {path}: {e}")
        if removed:
            logger.info(f"Invalidated cached tax data for {year}")
        return removed

    def clear(self) -> int:
        """Delete every cached entry. Returns the number of years removed."""
        if not self.directory.exists():
            return 0
        years = {
            int(p.name.split(".")[0]) for p in self.directory.glob("*.json")
            if p.name.split(".")[0].isdigit()
        }
        for year in years:
            self.invalidate(year)
        return len(years)

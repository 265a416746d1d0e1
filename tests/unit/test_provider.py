"""Tests for RuleDataProvider tier selection and background refresh.

The remote tier is replaced by an in-process FakeRemote; no network is used.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta
from decimal import Decimal

import pytest

from takehome.sdk.config import set_setting
from takehome.sdk.engine import TaxCalculationEngine
from takehome.sdk.errors import DataUnavailable, NetworkFailure
from takehome.sdk.rules import provider as provider_module
from takehome.sdk.rules import RemoteRuleSource, RuleDataCache, RuleDataProvider, Tier
from takehome.sdk.rules.cache import utcnow
from takehome.sdk.rules.validation import parse_payload
from takehome.sdk.schemas import FilingStatus, TaxCalculationInput, USState
from takehome.sdk.taxes.schemas import VersionInfo


class FakeRemote:
    """Serves one payload (or error), optionally blocking until a gate opens."""

    def __init__(self, payload=None, error=None, gate=None):
        self.payload = payload
        self.error = error
        self.gate = gate
        self.calls = 0
        self.started = threading.Event()

    def fetch(self, year):
        self.calls += 1
        self.started.set()
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if self.error is not None:
            raise self.error
        return self.payload

    def check_version(self, year, current=None):
        return VersionInfo(has_update=current != "2024.2.0", latest_version="2024.2.0")


@pytest.fixture
def cache(tmp_path):
    return RuleDataCache(tmp_path / "tax-data", timedelta(hours=24))


@pytest.fixture
def cached(cache, make_payload):
    """A valid cache entry for 2024.1.5."""
    cache.write(parse_payload(make_payload(version="2024.1.5")))
    return cache


class TestStartup:

    def test_starts_on_embedded(self):
        provider = RuleDataProvider(2024)

        assert provider.tier == Tier.EMBEDDED
        assert provider.version == "2024.1.0"

    def test_promotes_valid_cache(self, cached):
        provider = RuleDataProvider(2024, cache=cached)

        assert provider.tier == Tier.CACHED
        assert provider.version == "2024.1.5"

    def test_corrupt_cache_invalidated(self, cached):
        path = cached.data_path(2024)
        path.write_text(path.read_text().replace("0.062", "0.5"))

        provider = RuleDataProvider(2024, cache=cached)

        assert provider.tier == Tier.EMBEDDED
        assert not path.exists()
        assert not cached.meta_path(2024).exists()

    def test_expired_cache_ignored(self, cache, make_payload):
        cache.write(parse_payload(make_payload(version="2024.1.5")), now=utcnow() - timedelta(hours=48))

        assert RuleDataProvider(2024, cache=cache).tier == Tier.EMBEDDED

    def test_unreadable_metadata_falls_back(self, cache):
        cache.directory.mkdir(parents=True)
        cache.meta_path(2024).mkdir()

        provider = RuleDataProvider(2024, cache=cache)

        assert provider.tier == Tier.EMBEDDED
        assert provider.version == "2024.1.0"

    def test_unreadable_data_falls_back(self, cached):
        path = cached.data_path(2024)
        path.unlink()
        path.mkdir()

        provider = RuleDataProvider(2024, cache=cached)

        assert provider.tier == Tier.EMBEDDED
        assert not cached.meta_path(2024).exists()

    def test_year_without_bundle(self):
        with pytest.raises(DataUnavailable):
            RuleDataProvider(1990)


class TestRefresh:

    def test_valid_payload_promoted_and_cached(self, cache, make_payload):
        remote = FakeRemote(make_payload(version="2024.2.0"))
        with RuleDataProvider(2024, cache=cache, remote=remote) as provider:
            result = provider.refresh().result(timeout=5)

            assert result.updated is True
            assert result.tier == Tier.REMOTE
            assert provider.tier == Tier.REMOTE
            assert provider.version == "2024.2.0"
            assert cache.read(2024).version == "2024.2.0"

            freshness = provider.freshness()
            assert freshness.last_error is None
            assert freshness.last_refresh_at is not None
            assert freshness.refresh_in_flight is False

    def test_empty_states_rejected(self, cache, make_payload):
        """An invalid payload leaves the tier alone and is never cached."""
        payload = make_payload(version="2024.2.0")
        payload["states"]["states"] = {}

        with RuleDataProvider(2024, cache=cache, remote=FakeRemote(payload)) as provider:
            result = provider.refresh().result(timeout=5)

            assert result.updated is False
            assert "states map is empty" in result.error
            assert provider.tier == Tier.EMBEDDED
            assert provider.version == "2024.1.0"
            assert "states map is empty" in provider.freshness().last_error
            assert not cache.data_path(2024).exists()

    def test_wrong_section_types_reported(self, make_payload):
        payload = make_payload(version="2024.2.0")
        payload["federal"]["brackets"] = []
        payload["states"]["states"] = ["CA"]

        with RuleDataProvider(2024, remote=FakeRemote(payload)) as provider:
            result = provider.refresh().result(timeout=5)

        assert result.updated is False
        assert "states map must be an object" in result.error
        assert "AttributeError" not in result.error

    def test_network_failure_keeps_current_tier(self, cached):
        remote = FakeRemote(error=NetworkFailure("Could not reach https://x: timed out"))

        with RuleDataProvider(2024, cache=cached, remote=remote) as provider:
            result = provider.refresh().result(timeout=5)

            assert result.updated is False
            assert "timed out" in result.error
            assert provider.tier == Tier.CACHED
            assert provider.version == "2024.1.5"

    def test_no_remote_configured(self):
        result = RuleDataProvider(2024).refresh().result(timeout=5)

        assert result.updated is False
        assert result.error == "no remote source configured"

    def test_concurrent_triggers_share_one_fetch(self, make_payload):
        gate = threading.Event()
        remote = FakeRemote(make_payload(version="2024.2.0"), gate=gate)

        with RuleDataProvider(2024, remote=remote) as provider:
            first = provider.refresh()
            assert remote.started.wait(timeout=5)
            second = provider.refresh()
            assert provider.freshness().refresh_in_flight is True

            gate.set()
            first.result(timeout=5)

            assert second is first
            assert remote.calls == 1

            provider.refresh().result(timeout=5)
            assert remote.calls == 2

    def test_result_after_close_discarded(self, cache, make_payload):
        gate = threading.Event()
        remote = FakeRemote(make_payload(version="2024.2.0"), gate=gate)
        provider = RuleDataProvider(2024, cache=cache, remote=remote)

        future = provider.refresh()
        assert remote.started.wait(timeout=5)
        provider.close()
        gate.set()

        assert future.result(timeout=5).updated is False
        assert provider.tier == Tier.EMBEDDED
        assert not cache.data_path(2024).exists()

    def test_refresh_after_close_is_noop(self, make_payload):
        remote = FakeRemote(make_payload())
        provider = RuleDataProvider(2024, remote=remote)
        provider.close()

        assert provider.refresh().result(timeout=5).error == "provider closed"
        assert remote.calls == 0

    def test_earlier_validated_result_discarded(self, make_payload):
        with RuleDataProvider(2024, remote=FakeRemote(make_payload(version="2024.2.0"))) as provider:
            provider.refresh().result(timeout=5)
            stale = parse_payload(make_payload(version="2024.1.9"))

            assert provider._activate(Tier.REMOTE, stale, sequence=0) is False
            assert provider.version == "2024.2.0"

    def test_check_for_update(self):
        with RuleDataProvider(2024, remote=FakeRemote()) as provider:
            info = provider.check_for_update()
        assert info.has_update is True
        assert RuleDataProvider(2024).check_for_update() is None


class TestLookups:

    def test_incomplete_remote_falls_back_to_embedded(self, make_payload):
        payload = make_payload(version="2024.2.0")
        payload["states"]["states"] = {"CA": payload["states"]["states"]["CA"]}
        del payload["federal"]["brackets"]["head_of_household"]
        del payload["federal"]["standard_deduction"]["head_of_household"]

        with RuleDataProvider(2024, remote=FakeRemote(payload)) as provider:
            assert provider.refresh().result(timeout=5).updated is True

            assert provider.state_config(USState.TX, 2024).tax_type == "no_tax"
            assert provider.standard_deduction(FilingStatus.HEAD_OF_HOUSEHOLD, 2024) == Decimal("21900")

            result = TaxCalculationEngine(provider, 2024).calculate(TaxCalculationInput(
                gross_income=Decimal("100000"),
                state=USState.TX,
                filing_status=FilingStatus.HEAD_OF_HOUSEHOLD,
            ))
            assert result.rules_version == "2024.2.0"
            assert result.tax_breakdown.state.total_tax == 0

    def test_embedded_gaps_still_raise(self):
        with pytest.raises(DataUnavailable):
            RuleDataProvider(2024).fica_config(2030)

    def test_snapshot_pins_version(self, make_payload):
        with RuleDataProvider(2024, remote=FakeRemote(make_payload(version="2024.2.0"))) as provider:
            pinned = provider.snapshot()
            provider.refresh().result(timeout=5)

            assert pinned.version == "2024.1.0"
            assert provider.snapshot().version == "2024.2.0"

    def test_readers_see_whole_snapshots(self, make_payload):
        """Calculations racing a refresh report one version or the other."""
        remote = FakeRemote(make_payload(version="2024.2.0"))
        data = TaxCalculationInput(gross_income=Decimal("100000"), state=USState.CA)

        with RuleDataProvider(2024, remote=remote) as provider:
            engine = TaxCalculationEngine(provider, 2024)
            with ThreadPoolExecutor(max_workers=4) as pool:
                futures = [pool.submit(engine.calculate, data) for _ in range(20)]
                provider.refresh()
                futures += [pool.submit(engine.calculate, data) for _ in range(20)]
                results = [f.result(timeout=10) for f in futures]

        assert {r.rules_version for r in results} <= {"2024.1.0", "2024.2.0"}
        assert {r.net for r in results} == {Decimal("71954.909")}

    def test_clear_cache_demotes(self, cached):
        provider = RuleDataProvider(2024, cache=cached)

        assert provider.clear_cache() is True
        assert provider.tier == Tier.EMBEDDED
        assert not cached.data_path(2024).exists()


class TestFromSettings:

    def test_defaults(self, isolated_env):
        with RuleDataProvider.from_settings() as provider:
            assert provider.year == 2024
            assert provider.remote is None
            assert provider.cache.directory == isolated_env["rules_cache_dir"]

    def test_cache_dir_unavailable(self, isolated_env, monkeypatch):
        def read_only():
            raise PermissionError(13, "Permission denied", str(isolated_env["rules_cache_dir"]))

        monkeypatch.setattr(provider_module, "get_rules_cache_path", read_only)

        with RuleDataProvider.from_settings() as provider:
            assert provider.cache is None
            assert provider.tier == Tier.EMBEDDED
            assert provider.clear_cache() is False

    def test_remote_url_enables_remote(self, isolated_env):
        set_setting("remote_url", "https://rules.example.com/")
        set_setting("fetch_timeout", 2.5)

        with RuleDataProvider.from_settings() as provider:
            assert isinstance(provider.remote, RemoteRuleSource)
            assert provider.remote.base_url == "https://rules.example.com"
            assert provider.remote.timeout == 2.5

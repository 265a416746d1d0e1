"""Tests for the rule-data cache and the remote client."""

import json
import urllib.error
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from takehome.sdk.errors import CacheCorruption, NetworkFailure, ValidationFailure
from takehome.sdk.rules.cache import RuleDataCache
from takehome.sdk.rules.remote import RemoteRuleSource
from takehome.sdk.rules.validation import parse_payload

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def cache(tmp_path):
    return RuleDataCache(tmp_path / "tax-data", timedelta(hours=24))


@pytest.fixture
def fetched(make_payload):
    return parse_payload(make_payload(version="2024.2.0"))


class TestRuleDataCache:

    def test_round_trip(self, cache, fetched):
        meta = cache.write(fetched, now=NOW)
        cached = cache.read(2024, now=NOW + timedelta(hours=1))

        assert meta.expires_at == NOW + timedelta(hours=24)
        assert cached.model_dump() == fetched.model_dump()
        assert cached.version == "2024.2.0"

    def test_nothing_cached(self, cache):
        assert cache.read(2024, now=NOW) is None

    def test_expired_entry_ignored(self, cache, fetched):
        cache.write(fetched, now=NOW)
        assert cache.read(2024, now=NOW + timedelta(hours=24)) is None

    def test_tampered_data_is_corruption(self, cache, fetched):
        cache.write(fetched, now=NOW)
        path = cache.data_path(2024)
        path.write_text(path.read_text().replace("0.062", "0.061"))

        with pytest.raises(CacheCorruption, match="checksum mismatch"):
            cache.read(2024, now=NOW)

    def test_data_without_metadata_is_corruption(self, cache, fetched):
        cache.write(fetched, now=NOW)
        cache.meta_path(2024).unlink()

        with pytest.raises(CacheCorruption):
            cache.read(2024, now=NOW)

    def test_unreadable_metadata_is_corruption(self, cache, fetched):
        cache.write(fetched, now=NOW)
        cache.meta_path(2024).write_text("{not json")

        with pytest.raises(CacheCorruption):
            cache.read(2024, now=NOW)

    def test_unreadable_data_is_corruption(self, cache, fetched):
        cache.write(fetched, now=NOW)
        path = cache.data_path(2024)
        path.unlink()
        path.mkdir()

        with pytest.raises(CacheCorruption, match="Unreadable"):
            cache.read(2024, now=NOW)
        assert cache.invalidate(2024) is True
        assert not cache.meta_path(2024).exists()

    def test_invalidate(self, cache, fetched):
        cache.write(fetched, now=NOW)

        assert cache.invalidate(2024) is True
        assert not cache.data_path(2024).exists()
        assert not cache.meta_path(2024).exists()
        assert cache.invalidate(2024) is False

    def test_clear(self, cache, fetched):
        cache.write(fetched, now=NOW)
        assert cache.clear() == 1
        assert cache.read(2024, now=NOW) is None


class FakeFetcher:
    """Records requested URLs and returns canned bodies or raises."""

    def __init__(self, body=b"{}", error=None):
        self.body = body
        self.error = error
        self.calls = []

    def __call__(self, url, timeout):
        self.calls.append((url, timeout))
        if self.error is not None:
            raise self.error
        return self.body


class TestRemoteRuleSource:

    def test_fetch_parses_decimals(self):
        fetcher = FakeFetcher(b'{"version": "2024.2.0", "fica": {"medicare_rate": 0.0145}}')
        remote = RemoteRuleSource("https://rules.example.com/", timeout=3, fetcher=fetcher)

        payload = remote.fetch(2024)

        assert fetcher.calls == [("https://rules.example.com/tax-data/2024", 3)]
        assert payload["version"] == "2024.2.0"
        assert payload["fica"]["medicare_rate"] == Decimal("0.0145")

    def test_http_error(self):
        error = urllib.error.HTTPError("https://x/tax-data/2024", 503, "Unavailable", {}, None)
        remote = RemoteRuleSource("https://x", fetcher=FakeFetcher(error=error))

        with pytest.raises(NetworkFailure, match="HTTP 503"):
            remote.fetch(2024)

    @pytest.mark.parametrize("error", [
        urllib.error.URLError("connection refused"),
        TimeoutError("timed out"),
    ])
    def test_unreachable(self, error):
        remote = RemoteRuleSource("https://x", fetcher=FakeFetcher(error=error))
        with pytest.raises(NetworkFailure):
            remote.fetch(2024)

    def test_invalid_json(self):
        remote = RemoteRuleSource("https://x", fetcher=FakeFetcher(b"<html>"))
        with pytest.raises(ValidationFailure, match="not valid JSON"):
            remote.fetch(2024)

    def test_check_version(self):
        body = json.dumps({
            "hasUpdate": True,
            "latestVersion": "2024.2.0",
            "isRequired": False,
            "changeLog": "CA SDI rate",
        }).encode()
        fetcher = FakeFetcher(body)
        remote = RemoteRuleSource("https://x", fetcher=fetcher)

        info = remote.check_version(2024, current="2024.1.0")

        assert fetcher.calls[0][0] == "https://x/tax-data/2024/version?current=2024.1.0"
        assert info.has_update is True
        assert info.latest_version == "2024.2.0"
        assert info.change_log == "CA SDI rate"

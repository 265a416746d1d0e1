"""Shared fixtures.

The embedded 2024 bundle doubles as the static rule source for calculator
tests: a TaxRuleSet satisfies the same lookups RuleDataProvider does.
"""

import json
from decimal import Decimal

import pytest

from takehome.sdk.engine import TaxCalculationEngine
from takehome.sdk.rules.bundle import DOCUMENTS, document_filename, get_embedded_data_dir, load_embedded

YEAR = 2024


@pytest.fixture(scope="session")
def ruleset():
    """Embedded 2024 rules as a static RuleSource."""
    return load_embedded(YEAR)


@pytest.fixture
def engine(ruleset):
    return TaxCalculationEngine(ruleset, YEAR)


@pytest.fixture
def isolated_env(tmp_path, monkeypatch):
    """Point config and cache directories at tmp_path."""
    config_dir = tmp_path / "config"
    cache_dir = tmp_path / "cache"
    config_dir.mkdir()
    cache_dir.mkdir()

    monkeypatch.setenv("TAKE_HOME_CONFIG_PATH", str(config_dir))
    monkeypatch.setenv("XDG_CACHE_HOME", str(cache_dir))
    monkeypatch.delenv("LOG_LEVEL", raising=False)

    return {
        "config_dir": config_dir,
        "cache_dir": cache_dir,
        "rules_cache_dir": cache_dir / "take-home" / "tax-data",
    }


def build_payload(version: str = "2024.2.0", year: int = YEAR) -> dict:
    """A remote payload built from the embedded documents (fresh copy per call)."""
    bundle_dir = get_embedded_data_dir() / str(YEAR)
    payload = {"version": version, "tax_year": year}
    for name in DOCUMENTS:
        with open(bundle_dir / document_filename(name, YEAR)) as f:
            payload[name] = json.load(f, parse_float=Decimal)
    return payload


@pytest.fixture
def make_payload():
    return build_payload

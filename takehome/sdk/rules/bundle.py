"""Embedded rule-data bundles.

Each supported tax year ships as a directory of JSON documents under
rules/data/<year>/:

    manifest.json          version, validity window, SHA-256 per file
    federal_<year>.json    brackets + standard deductions
    fica_<year>.json       Social Security / Medicare rates
    states_<year>.json     one entry per jurisdiction, tagged by tax_type
    retirement_<year>.json contribution limits

The bundle is the floor of the data tiers: it is always present and
always validated, so a checksum mismatch or schema failure here is a
packaging defect and raises at load time.
"""

import hashlib
import json
import logging
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List

from pydantic import ValidationError

from ..errors import DataUnavailable, TaxDataError
from ..taxes.schemas import (
    FederalTaxConfig,
    FicaConfig,
    RetirementConfig,
    StatesConfig,
    TaxDataManifest,
    TaxRuleSet,
)

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "manifest.json"
DOCUMENTS = ("federal", "fica", "states", "retirement")


def get_embedded_data_dir() -> Path:
    """Root of the packaged rules/data tree."""
    return Path(__file__).parent / "data"


def available_years() -> List[int]:
    """Tax years with an embedded bundle, newest first."""
    data_dir = get_embedded_data_dir()
    years = [
        int(p.name) for p in data_dir.iterdir()
        if p.is_dir() and p.name.isdigit() and (p / MANIFEST_FILENAME).exists()
    ]
    return sorted(years, reverse=True)


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def loads_exact(data: bytes) -> Any:
    """Parse JSON keeping every non-integer number as a Decimal."""
    return json.loads(data, parse_float=Decimal)


def document_filename(name: str, year: int) -> str:
    return f"{name}_{year}.json"


def assemble_ruleset(
    version: str,
    tax_year: int,
    documents: Dict[str, Any],
) -> TaxRuleSet:
    """Build a TaxRuleSet from the four rule documents.

    Used for embedded bundles and remote payloads alike, which share the
    document schema. Raises pydantic.ValidationError on schema failure.
    """
    federal = FederalTaxConfig.model_validate(documents["federal"])
    fica = FicaConfig.model_validate(documents["fica"])
    states = StatesConfig.model_validate(documents["states"])
    retirement = RetirementConfig.model_validate(documents["retirement"])

    return TaxRuleSet(
        version=version,
        tax_year=tax_year,
        federal=federal,
        fica=fica,
        states=states.states,
        retirement=retirement,
    )


def load_manifest(year: int) -> TaxDataManifest:
    manifest_path = get_embedded_data_dir() / str(year) / MANIFEST_FILENAME
    if not manifest_path.exists():
        raise DataUnavailable(f"No embedded tax data for {year}", year=year)

    with open(manifest_path, "rb") as f:
        return TaxDataManifest.model_validate(loads_exact(f.read()))


def load_embedded(year: int) -> TaxRuleSet:
    """Load and verify the embedded bundle for a tax year.

    Raises:
        DataUnavailable: If no bundle ships for the year
        TaxDataError: If a file is missing, fails its checksum or fails validation
    """
    manifest = load_manifest(year)
    bundle_dir = get_embedded_data_dir() / str(year)

    documents = {}
    for name in DOCUMENTS:
        filename = document_filename(name, year)
        path = bundle_dir / filename
        if not path.exists():
            raise TaxDataError(f"Embedded bundle {year} is missing {filename}")

        raw = path.read_bytes()
        expected = manifest.checksums.get(filename)
        if expected is None:
            raise TaxDataError(f"Embedded manifest {year} has no checksum for {filename}")
        actual = sha256_hex(raw)
        if actual != expected:
            raise TaxDataError(
                f"Embedded {filename} checksum mismatch: expected {expected}, got {actual}"
            )
        documents[name] = loads_exact(raw)

    try:
        ruleset = assemble_ruleset(manifest.version, manifest.tax_year, documents)
    except ValidationError as e:
        raise TaxDataError(f"Embedded bundle {year} failed validation: {e}") from e

    logger.debug(f"Loaded embedded tax data {manifest.version} for {year}")
    return ruleset

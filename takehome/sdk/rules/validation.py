"""Rule-data validation.

Two entry points:

- validate_payload / parse_payload: structural checks every remote payload
  must pass before it can replace the active snapshot. A failing payload is
  discarded and never cached.
- check_bundle: offline consistency checks over a parsed TaxRuleSet, used by
  `take-home rules validate`.

Problems are collected into a list rather than raised one at a time, so a
single run reports everything wrong with a payload.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional

from pydantic import ValidationError

from ..errors import ValidationFailure
from ..schemas import FilingStatus, USState
from ..taxes.schemas import ProgressiveStateConfig, TaxRuleSet, schedule_problems
from .bundle import DOCUMENTS, assemble_ruleset

REQUIRED_FEDERAL_STATUSES = (FilingStatus.SINGLE, FilingStatus.MARRIED_FILING_JOINTLY)


def validate_payload(payload: Any) -> List[str]:
    """Check a raw remote payload for the minimum it must carry.

    Returns:
        List of problems (empty if the payload is acceptable)
    """
    if not isinstance(payload, dict):
        return ["payload is not a JSON object"]

    problems = []

    version = payload.get("version")
    if not isinstance(version, str) or not version.strip():
        problems.append("version is missing or empty")

    if not isinstance(payload.get("tax_year"), int):
        problems.append("tax_year is missing or not an integer")

    for name in DOCUMENTS:
        if not isinstance(payload.get(name), dict):
            problems.append(f"{name} section is missing")

    federal = payload.get("federal")
    if isinstance(federal, dict):
        brackets = federal.get("brackets") or {}
        if not isinstance(brackets, dict):
            problems.append("federal brackets must be an object keyed by filing status")
        else:
            for status in REQUIRED_FEDERAL_STATUSES:
                if not brackets.get(status.value):
                    problems.append(f"federal brackets missing for {status.value}")

    fica = payload.get("fica")
    if isinstance(fica, dict):
        try:
            ss_rate = Decimal(str(fica.get("social_security_rate")))
        except InvalidOperation:
            ss_rate = None
        if ss_rate is None or not ss_rate.is_finite() or ss_rate <= 0:
            problems.append("fica social_security_rate must be greater than 0")

    states = payload.get("states")
    if isinstance(states, dict):
        state_map = states.get("states")
        if state_map is not None and not isinstance(state_map, dict):
            problems.append("states map must be an object keyed by state code")
        elif not state_map:
            problems.append("states map is empty")

    return problems


def parse_payload(payload: Any, expected_year: Optional[int] = None) -> TaxRuleSet:
    """Validate a raw payload and build a TaxRuleSet from it.

    Raises:
        ValidationFailure: On any structural or schema problem, or a year mismatch
    """
    problems = validate_payload(payload)
    if problems:
        raise ValidationFailure(problems)

    if expected_year is not None and payload["tax_year"] != expected_year:
        raise ValidationFailure([
            f"payload is for {payload['tax_year']}, expected {expected_year}"
        ])

    try:
        return assemble_ruleset(payload["version"], payload["tax_year"], payload)
    except ValidationError as e:
        raise ValidationFailure([
            f"{'.'.join(str(p) for p in err['loc']) or 'payload'}: {err['msg']}"
            for err in e.errors()
        ]) from e


def check_bundle(ruleset: TaxRuleSet) -> List[str]:
    """Offline consistency checks over a complete rule set.

    Covers bracket contiguity for every schedule, federal coverage of every
    filing status, one entry per jurisdiction, and agreement between each
    state's tax_type and the known classification of that state.
    """
    problems = []
    year = ruleset.tax_year

    for section in ("federal", "fica", "retirement"):
        section_year = getattr(ruleset, section).tax_year
        if section_year != year:
            problems.append(f"{section} data is for {section_year}, bundle is {year}")

    for status in FilingStatus:
        schedule = ruleset.federal.brackets.get(status)
        if schedule is None:
            problems.append(f"federal: no schedule for {status.value}")
        else:
            problems.extend(f"federal {status.value}: {p}" for p in schedule_problems(schedule.brackets))
        if status not in ruleset.federal.standard_deduction:
            problems.append(f"federal: no standard deduction for {status.value}")
        if status not in ruleset.fica.additional_medicare_thresholds:
            problems.append(f"fica: no additional Medicare threshold for {status.value}")

    missing = [s.code for s in USState if s not in ruleset.states]
    if missing:
        problems.append(f"states: no entry for {', '.join(missing)}")

    for state, config in ruleset.states.items():
        if state.has_no_income_tax() and config.tax_type != "no_tax":
            problems.append(f"{state.code}: has no income tax but is tagged {config.tax_type}")
        if state.has_flat_tax() and config.tax_type != "flat":
            problems.append(f"{state.code}: has a flat tax but is tagged {config.tax_type}")
        if config.sdi is not None and not state.has_sdi():
            problems.append(f"{state.code}: carries SDI but does not levy one")
        if config.local_tax is not None and not state.has_local_tax():
            problems.append(f"{state.code}: carries a local tax but has none")

        if isinstance(config, ProgressiveStateConfig):
            if FilingStatus.SINGLE not in config.brackets:
                problems.append(f"{state.code}: progressive schedule has no single brackets")
            for status, schedule in config.brackets.items():
                problems.extend(
                    f"{state.code} {status.value}: {p}" for p in schedule_problems(schedule.brackets)
                )

    return problems

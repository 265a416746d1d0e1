"""YAML scenario and household files.

A scenario file holds TaxCalculationInput fields, optionally with itemized
deductions that are collapsed into the pre/post-tax totals:

    gross_income: 150000
    filing_status: single
    state: CA
    traditional_401k: 23000
    deductions:
      - deduction_type: health_insurance
        amount: 120
        pay_frequency: bi_weekly

A household file holds a Household (partner, split_method, shared_expenses).
"""

from pathlib import Path
from typing import Union

import yaml
from pydantic import ValidationError

from .deductions import (
    Deduction,
    RetirementContributions,
    apply_deductions,
    summarize_deductions,
)
from .household import Household
from .schemas import TaxCalculationInput


class ScenarioError(ValueError):
    """A scenario or household file is missing, malformed or invalid."""
    pass


def _load_yaml(path: Union[str, Path]) -> dict:
    path = Path(path)
    if not path.exists():
        raise ScenarioError(f"File not found: {path}")

    with open(path, "r") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ScenarioError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ScenarioError(f"{path} must contain a mapping, got {type(data).__name__}")
    return data


def parse_scenario(data: dict) -> TaxCalculationInput:
    """Build a calculation input from a scenario mapping."""
    data = dict(data)
    deductions = data.pop("deductions", None)
    retirement = data.pop("retirement", None)

    try:
        base = TaxCalculationInput.model_validate(data)
        if deductions is None and retirement is None:
            return base

        summary = summarize_deductions(
            [Deduction.model_validate(d) for d in deductions or []],
            RetirementContributions.model_validate(retirement) if retirement else None,
        )
    except ValidationError as e:
        raise ScenarioError(str(e)) from e

    # Itemized deductions add to any totals given directly.
    summary = summary.model_copy(update={
        "pre_tax_total": summary.pre_tax_total + base.pre_tax_deductions,
        "post_tax_total": summary.post_tax_total + base.post_tax_deductions,
        "retirement": summary.retirement.model_copy(update={
            "traditional_401k": summary.retirement.traditional_401k + base.traditional_401k,
            "roth_401k": summary.retirement.roth_401k + base.roth_401k,
        }),
    })
    return apply_deductions(base, summary)


def load_scenario(path: Union[str, Path]) -> TaxCalculationInput:
    return parse_scenario(_load_yaml(path))


def load_household(path: Union[str, Path]) -> Household:
    try:
        return Household.model_validate(_load_yaml(path))
    except ValidationError as e:
        raise ScenarioError(str(e)) from e

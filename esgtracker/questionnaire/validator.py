"""
Questionnaire business-rule validator.

Validates ESGRawData against the questionnaire rules AFTER Pydantic structural
validation has already passed. Every rule is evaluated against the full record
and all violations are returned together, so the user fixes everything in one
round-trip. Nothing here raises; callers decide what to do with the list.

The rules are a declarative table:

  FieldRule       one field, one predicate, one message
  CrossFieldRule  predicate over several fields, reported against one field

A rule is skipped when any of its operands is missing, except the presence
rules themselves (REQUIRED and the privacy-policy rule), which exist to report
the absence.

Rules enforced:
  1. Required: every numeric answer must be present (0 allowed where the
     other rules allow it); hasDataPrivacyPolicy must be exactly true/false.
  2. >= 0:  renewable electricity, fuel, emissions, community investment,
            revenue, independent board members.
  3. > 0:   total electricity, average training hours, total and female
            employees; employee counts must also be whole numbers.
  4. female <= total employees, renewable <= total electricity,
     community investment <= revenue, 0 <= independent board members <= 100.

Note: rule 3 rejects legitimate zeros (e.g. no training delivered). Kept as-is
until product confirms the intended behaviour.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

from pydantic.alias_generators import to_camel

from esgtracker.questionnaire.schemas import ESGRawData

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Questionnaire labels: wording shown next to each input field
# ---------------------------------------------------------------------------
FIELD_LABELS: dict[str, str] = {
    "total_electricity_consumption":     "Total Electricity Consumption (kWh)",
    "renewable_electricity_consumption": "Renewable Electricity Consumption (kWh)",
    "total_fuel_consumption":            "Total Fuel Consumption (liters)",
    "carbon_emissions":                  "Carbon Emissions (T CO2e)",
    "total_employees":                   "Total Number of Employees",
    "female_employees":                  "Number of Female Employees",
    "average_training_hours":            "Average Training Hours per Employee (per year)",
    "community_investment":              "Community Investment Spend (INR)",
    "independent_board_members":         "% of Independent Board Members",
    "has_data_privacy_policy":           "Data Privacy Policy",
    "total_revenue":                     "Total Revenue (INR)",
}

BOARD_PERCENT_MAX = 100


@dataclass(frozen=True)
class Violation:
    """One failed rule. field is the camelCase wire name, optionally year-prefixed."""
    field: str
    issue: str

    def as_dict(self) -> dict[str, str]:
        return {"field": self.field, "issue": self.issue}


@dataclass(frozen=True)
class FieldRule:
    field: str
    check: Callable[[Any], bool]     # True when the value is acceptable
    message: str
    applies_to_missing: bool = False


@dataclass(frozen=True)
class CrossFieldRule:
    field: str                       # field the violation is reported against
    operands: tuple[str, ...]
    check: Callable[..., bool]       # called with operand values in order
    message: str


def _label(field: str) -> str:
    return FIELD_LABELS.get(field, field)


def _is_present(value: Any) -> bool:
    return value is not None


def _is_whole(value: float) -> bool:
    return float(value).is_integer()


# ---------------------------------------------------------------------------
# Rule table
# ---------------------------------------------------------------------------
REQUIRED_FIELDS: tuple[str, ...] = (
    "total_electricity_consumption",
    "renewable_electricity_consumption",
    "total_fuel_consumption",
    "carbon_emissions",
    "total_employees",
    "female_employees",
    "average_training_hours",
    "community_investment",
    "independent_board_members",
    "total_revenue",
)

NON_NEGATIVE_FIELDS: tuple[str, ...] = (
    "renewable_electricity_consumption",
    "total_fuel_consumption",
    "carbon_emissions",
    "community_investment",
    "total_revenue",
    "independent_board_members",
)

POSITIVE_FIELDS: tuple[str, ...] = (
    "total_electricity_consumption",
    "average_training_hours",
    "total_employees",
    "female_employees",
)

WHOLE_NUMBER_FIELDS: tuple[str, ...] = (
    "total_employees",
    "female_employees",
)


def _build_field_rules() -> list[FieldRule]:
    rules: list[FieldRule] = []

    for field in REQUIRED_FIELDS:
        rules.append(FieldRule(
            field=field,
            check=_is_present,
            message=f"{_label(field)} is required. Please enter a value (use 0 if applicable).",
            applies_to_missing=True,
        ))

    rules.append(FieldRule(
        field="has_data_privacy_policy",
        check=lambda v: v is True or v is False,
        message='Please select an option for "Does the company have a data privacy policy?".',
        applies_to_missing=True,
    ))

    for field in NON_NEGATIVE_FIELDS:
        rules.append(FieldRule(
            field=field,
            check=lambda v: v >= 0,
            message=f"{_label(field)} must be greater than or equal to 0.",
        ))

    for field in POSITIVE_FIELDS:
        rules.append(FieldRule(
            field=field,
            check=lambda v: v > 0,
            message=f"{_label(field)} must be greater than 0.",
        ))

    # Only reported once the count is positive: a non-positive count already failed above
    for field in WHOLE_NUMBER_FIELDS:
        rules.append(FieldRule(
            field=field,
            check=lambda v: v <= 0 or _is_whole(v),
            message=f"{_label(field)} must be a whole number (integer).",
        ))

    return rules


FIELD_RULES: tuple[FieldRule, ...] = tuple(_build_field_rules())

CROSS_FIELD_RULES: tuple[CrossFieldRule, ...] = (
    CrossFieldRule(
        field="female_employees",
        operands=("female_employees", "total_employees"),
        check=lambda female, total: female <= total,
        message="Number of female employees cannot be greater than total employees.",
    ),
    CrossFieldRule(
        field="renewable_electricity_consumption",
        operands=("renewable_electricity_consumption", "total_electricity_consumption"),
        check=lambda renewable, total: renewable <= total,
        message=(
            "Renewable electricity consumption cannot be greater than "
            "total electricity consumption."
        ),
    ),
    CrossFieldRule(
        field="community_investment",
        operands=("community_investment", "total_revenue"),
        check=lambda spend, revenue: spend <= revenue,
        message="Community investment spend cannot be greater than total revenue.",
    ),
    CrossFieldRule(
        field="independent_board_members",
        operands=("independent_board_members",),
        check=lambda pct: 0 <= pct <= BOARD_PERCENT_MAX,
        message="% of independent board members must be between 0 and 100.",
    ),
)


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------

def _wire_field(field: str, prefix: Optional[str]) -> str:
    name = to_camel(field)
    return f"{prefix}.{name}" if prefix else name


def validate_year(data: ESGRawData, prefix: Optional[str] = None) -> list[Violation]:
    """
    Evaluate every field and cross-field rule against one year's answers.

    Args:
        data: Structurally-valid answers for one year.
        prefix: Prepended to each field path (the year, when validating a batch).

    Returns:
        Every violation found, in rule-table order. Empty list means valid.
    """
    values = data.model_dump()
    violations: list[Violation] = []

    for rule in FIELD_RULES:
        value = values.get(rule.field)
        if value is None and not rule.applies_to_missing:
            continue
        if not rule.check(value):
            violations.append(Violation(_wire_field(rule.field, prefix), rule.message))

    for rule in CROSS_FIELD_RULES:
        operands = [values.get(name) for name in rule.operands]
        if any(v is None for v in operands):
            continue
        if not rule.check(*operands):
            violations.append(Violation(_wire_field(rule.field, prefix), rule.message))

    return violations


def validate_responses(responses: Mapping[int, ESGRawData]) -> list[Violation]:
    """Validate several years at once; field paths are prefixed with the year."""
    violations: list[Violation] = []
    for year in sorted(responses):
        violations.extend(validate_year(responses[year], prefix=str(year)))

    if violations:
        # Log counts only: no submitted values
        logger.info(
            "Questionnaire validation failed: %d violation(s) across %d year(s)",
            len(violations),
            len(responses),
        )
    return violations

"""
Matching criteria: the configuration of the duplicate detector.

Criteria are immutable. Every "update" returns a new MatchingCriteria, so
a single instance can be cached and shared across concurrent requests.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Mapping, Optional

from registrar.matching.errors import (
    CriteriaConfigurationError,
    CrossFieldRuleNotFoundError,
    FieldRuleNotFoundError,
)
from registrar.matching.fields import MatchableField, MatchType

logger = logging.getLogger(__name__)

F = MatchableField

DEFAULT_FIELD_THRESHOLDS: dict[MatchableField, float] = {
    F.PHONE_NUMBER: 1.0,
    F.EMAIL: 1.0,
    F.AADHAR_NUMBER: 1.0,
    F.FIRST_NAME: 0.85,
    F.LAST_NAME: 0.85,
    F.FULL_NAME: 0.85,
    F.DATE_OF_BIRTH: 1.0,
    F.GUARDIAN_PHONE: 1.0,
    F.PAN_NUMBER: 1.0,
}

DEFAULT_FIELD_WEIGHTS: dict[MatchableField, float] = {
    F.PHONE_NUMBER: 3.0,
    F.EMAIL: 3.0,
    F.AADHAR_NUMBER: 3.0,
    F.FIRST_NAME: 1.5,
    F.LAST_NAME: 1.5,
    F.FULL_NAME: 2.0,
    F.DATE_OF_BIRTH: 2.0,
    F.GUARDIAN_PHONE: 1.0,
    F.PAN_NUMBER: 2.5,
}

DEFAULT_FIELD_MATCH_TYPES: dict[MatchableField, MatchType] = {
    F.PHONE_NUMBER: MatchType.NORMALIZED,
    F.EMAIL: MatchType.NORMALIZED,
    F.AADHAR_NUMBER: MatchType.NORMALIZED,
    F.FIRST_NAME: MatchType.FUZZY,
    F.LAST_NAME: MatchType.FUZZY,
    F.FULL_NAME: MatchType.FUZZY,
    F.DATE_OF_BIRTH: MatchType.EXACT,
    F.GUARDIAN_PHONE: MatchType.NORMALIZED,
    F.PAN_NUMBER: MatchType.NORMALIZED,
}

DEFAULT_OVERALL_THRESHOLD = 0.7
DEFAULT_MAX_RESULTS = 10


@dataclass(frozen=True)
class FieldMatchingRule:
    """How one field is compared and how much it counts."""

    field: MatchableField
    threshold: float
    weight: float
    enabled: bool = True
    match_type: MatchType = MatchType.NORMALIZED

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "field": self.field.value,
            "threshold": self.threshold,
            "weight": self.weight,
            "enabled": self.enabled,
            "match_type": self.match_type.value,
        }


@dataclass(frozen=True)
class CrossFieldRule:
    """
    Compound evidence rule.

    Fires when at least `required_matches` of `fields` individually met
    their own field-rule thresholds, adding `weight` to the aggregate.
    """

    name: str
    fields: tuple[MatchableField, ...]
    required_matches: int
    weight: float
    enabled: bool = True
    description: str = ""

    def __post_init__(self):
        object.__setattr__(self, "fields", tuple(self.fields))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "fields": [f.value for f in self.fields],
            "required_matches": self.required_matches,
            "weight": self.weight,
            "enabled": self.enabled,
            "description": self.description,
        }


DEFAULT_CROSS_FIELD_RULES: tuple[CrossFieldRule, ...] = (
    CrossFieldRule(
        name="same_name_and_dob",
        fields=(F.FULL_NAME, F.DATE_OF_BIRTH),
        required_matches=2,
        weight=5.0,
        description="Same full name and date of birth indicates likely duplicate",
    ),
    CrossFieldRule(
        name="same_name_and_phone",
        fields=(F.FULL_NAME, F.PHONE_NUMBER),
        required_matches=2,
        weight=4.5,
        description="Same full name and phone number indicates likely duplicate",
    ),
    CrossFieldRule(
        name="same_name_and_email",
        fields=(F.FULL_NAME, F.EMAIL),
        required_matches=2,
        weight=4.5,
        description="Same full name and email indicates likely duplicate",
    ),
    CrossFieldRule(
        name="same_first_last_dob",
        fields=(F.FIRST_NAME, F.LAST_NAME, F.DATE_OF_BIRTH),
        required_matches=3,
        weight=5.0,
        description="Same first name, last name, and DOB indicates likely duplicate",
    ),
    CrossFieldRule(
        name="same_phone_and_email",
        fields=(F.PHONE_NUMBER, F.EMAIL),
        required_matches=2,
        weight=6.0,
        description="Same phone and email indicates very likely duplicate",
    ),
    CrossFieldRule(
        name="same_aadhar_and_name",
        fields=(F.AADHAR_NUMBER, F.FULL_NAME),
        required_matches=2,
        weight=6.0,
        description="Same AADHAR and name indicates very likely duplicate",
    ),
)


@dataclass(frozen=True)
class MatchingCriteria:
    """Full detector configuration."""

    field_rules: tuple[FieldMatchingRule, ...]
    cross_field_rules: tuple[CrossFieldRule, ...] = ()
    overall_threshold: float = DEFAULT_OVERALL_THRESHOLD
    max_results: int = DEFAULT_MAX_RESULTS

    def __post_init__(self):
        object.__setattr__(self, "field_rules", tuple(self.field_rules))
        object.__setattr__(self, "cross_field_rules", tuple(self.cross_field_rules))

    def field_rule_for(self, field_name: MatchableField) -> Optional[FieldMatchingRule]:
        """Get the rule for a field, if any."""
        for rule in self.field_rules:
            if rule.field == field_name:
                return rule
        return None

    def cross_field_rule_named(self, name: str) -> Optional[CrossFieldRule]:
        """Get a cross-field rule by name, if any."""
        for rule in self.cross_field_rules:
            if rule.name == name:
                return rule
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "field_rules": [r.to_dict() for r in self.field_rules],
            "cross_field_rules": [r.to_dict() for r in self.cross_field_rules],
            "overall_threshold": self.overall_threshold,
            "max_results": self.max_results,
        }


@dataclass
class CriteriaValidation:
    """Outcome of validate_criteria()."""

    valid: bool
    errors: list[str] = field(default_factory=list)


def default_field_rules() -> tuple[FieldMatchingRule, ...]:
    """One enabled rule per matchable field with the default settings."""
    return tuple(
        FieldMatchingRule(
            field=f,
            threshold=DEFAULT_FIELD_THRESHOLDS[f],
            weight=DEFAULT_FIELD_WEIGHTS[f],
            enabled=True,
            match_type=DEFAULT_FIELD_MATCH_TYPES[f],
        )
        for f in MatchableField
    )


def default_criteria() -> MatchingCriteria:
    """Build the default (moderate) criteria."""
    return MatchingCriteria(
        field_rules=default_field_rules(),
        cross_field_rules=DEFAULT_CROSS_FIELD_RULES,
        overall_threshold=DEFAULT_OVERALL_THRESHOLD,
        max_results=DEFAULT_MAX_RESULTS,
    )


def with_overrides(
    criteria: MatchingCriteria,
    field_rules: Optional[Iterable[FieldMatchingRule]] = None,
    cross_field_rules: Optional[Iterable[CrossFieldRule]] = None,
    overall_threshold: Optional[float] = None,
    max_results: Optional[int] = None,
) -> MatchingCriteria:
    """
    Derive new criteria from a base.

    Scalars are merged; rule lists replace the base's wholesale when given.
    """
    return MatchingCriteria(
        field_rules=tuple(field_rules) if field_rules is not None else criteria.field_rules,
        cross_field_rules=(
            tuple(cross_field_rules)
            if cross_field_rules is not None
            else criteria.cross_field_rules
        ),
        overall_threshold=(
            overall_threshold
            if overall_threshold is not None
            else criteria.overall_threshold
        ),
        max_results=max_results if max_results is not None else criteria.max_results,
    )


def update_field_rule(
    criteria: MatchingCriteria,
    field_name: MatchableField,
    **changes: Any,
) -> MatchingCriteria:
    """
    Return criteria with one field rule patched.

    Raises:
        FieldRuleNotFoundError: If no rule exists for the field
        CriteriaConfigurationError: If the patch tries to change the field
    """
    try:
        field_name = MatchableField(field_name)
    except ValueError as e:
        raise FieldRuleNotFoundError(str(field_name)) from e
    if "field" in changes and changes["field"] != field_name:
        raise CriteriaConfigurationError("A field rule cannot be moved to another field")
    if criteria.field_rule_for(field_name) is None:
        raise FieldRuleNotFoundError(field_name.value)

    return replace(
        criteria,
        field_rules=tuple(
            replace(rule, **changes) if rule.field == field_name else rule
            for rule in criteria.field_rules
        ),
    )


def enable_field_rule(criteria: MatchingCriteria, field_name: MatchableField) -> MatchingCriteria:
    return update_field_rule(criteria, field_name, enabled=True)


def disable_field_rule(criteria: MatchingCriteria, field_name: MatchableField) -> MatchingCriteria:
    return update_field_rule(criteria, field_name, enabled=False)


def update_cross_field_rule(
    criteria: MatchingCriteria,
    rule_name: str,
    **changes: Any,
) -> MatchingCriteria:
    """
    Return criteria with one cross-field rule patched.

    Raises:
        CrossFieldRuleNotFoundError: If no rule has that name
    """
    if criteria.cross_field_rule_named(rule_name) is None:
        raise CrossFieldRuleNotFoundError(rule_name)

    return replace(
        criteria,
        cross_field_rules=tuple(
            replace(rule, **changes) if rule.name == rule_name else rule
            for rule in criteria.cross_field_rules
        ),
    )


def enable_cross_field_rule(criteria: MatchingCriteria, rule_name: str) -> MatchingCriteria:
    return update_cross_field_rule(criteria, rule_name, enabled=True)


def disable_cross_field_rule(criteria: MatchingCriteria, rule_name: str) -> MatchingCriteria:
    return update_cross_field_rule(criteria, rule_name, enabled=False)


def enabled_field_rules(criteria: MatchingCriteria) -> list[FieldMatchingRule]:
    return [rule for rule in criteria.field_rules if rule.enabled]


def enabled_cross_field_rules(criteria: MatchingCriteria) -> list[CrossFieldRule]:
    return [rule for rule in criteria.cross_field_rules if rule.enabled]


def validate_criteria(criteria: MatchingCriteria) -> CriteriaValidation:
    """
    Check criteria for out-of-range values.

    Never raises and never mutates. The detector does not call this;
    callers must check `valid` before detection.
    """
    errors: list[str] = []

    if not 0 <= criteria.overall_threshold <= 1:
        errors.append("Overall threshold must be between 0 and 1")

    if criteria.max_results < 1:
        errors.append("Max results must be at least 1")

    seen: set[MatchableField] = set()
    for rule in criteria.field_rules:
        name = rule.field.value
        if rule.field in seen:
            errors.append(f"Field {name} has more than one rule")
        seen.add(rule.field)
        if not 0 <= rule.threshold <= 1:
            errors.append(f"Field {name} threshold must be between 0 and 1")
        if rule.weight < 0:
            errors.append(f"Field {name} weight must be non-negative")

    for rule in criteria.cross_field_rules:
        if not 1 <= rule.required_matches <= len(rule.fields):
            errors.append(
                f"Cross-field rule {rule.name} required_matches must be between 1 "
                f"and {len(rule.fields)}"
            )
        if rule.weight < 0:
            errors.append(f"Cross-field rule {rule.name} weight must be non-negative")
        missing = [f.value for f in rule.fields if f not in seen]
        if missing:
            errors.append(
                f"Cross-field rule {rule.name} references fields without a rule: "
                f"{', '.join(missing)}"
            )

    return CriteriaValidation(valid=not errors, errors=errors)


def _parse_field(value: Any) -> MatchableField:
    try:
        return MatchableField(value)
    except ValueError as e:
        raise CriteriaConfigurationError(f"Unknown matchable field: {value!r}") from e


def field_rule_from_dict(data: Mapping[str, Any]) -> FieldMatchingRule:
    """Build a field rule from a plain mapping."""
    field_name = _parse_field(data.get("field"))
    try:
        match_type = MatchType(data.get("match_type", DEFAULT_FIELD_MATCH_TYPES[field_name]))
    except ValueError as e:
        raise CriteriaConfigurationError(
            f"Unknown match type for {field_name.value}: {data.get('match_type')!r}"
        ) from e

    return FieldMatchingRule(
        field=field_name,
        threshold=float(data.get("threshold", DEFAULT_FIELD_THRESHOLDS[field_name])),
        weight=float(data.get("weight", DEFAULT_FIELD_WEIGHTS[field_name])),
        enabled=bool(data.get("enabled", True)),
        match_type=match_type,
    )


def cross_field_rule_from_dict(data: Mapping[str, Any]) -> CrossFieldRule:
    """Build a cross-field rule from a plain mapping."""
    if not data.get("name"):
        raise CriteriaConfigurationError("Cross-field rule requires a name")
    fields = tuple(_parse_field(f) for f in data.get("fields", ()))
    return CrossFieldRule(
        name=str(data["name"]),
        fields=fields,
        required_matches=int(data.get("required_matches", len(fields))),
        weight=float(data.get("weight", 1.0)),
        enabled=bool(data.get("enabled", True)),
        description=str(data.get("description", "")),
    )


def criteria_from_dict(
    data: Mapping[str, Any],
    base: Optional[MatchingCriteria] = None,
) -> MatchingCriteria:
    """
    Build criteria from a plain mapping (e.g. a JSON request body).

    Keys that are missing or None fall back to `base` (the defaults when
    not given), following with_overrides() semantics.

    Raises:
        CriteriaConfigurationError: On unknown field names or match types
    """
    base = base or default_criteria()

    field_rules = data.get("field_rules")
    cross_field_rules = data.get("cross_field_rules")

    return with_overrides(
        base,
        field_rules=(
            [field_rule_from_dict(r) for r in field_rules]
            if field_rules is not None
            else None
        ),
        cross_field_rules=(
            [cross_field_rule_from_dict(r) for r in cross_field_rules]
            if cross_field_rules is not None
            else None
        ),
        overall_threshold=data.get("overall_threshold"),
        max_results=data.get("max_results"),
    )

"""
Named matching-criteria presets.

Each preset is derived from the defaults through pure transforms; the
default criteria are never modified.
"""

from dataclasses import dataclass, replace
from typing import Optional

from registrar.matching.criteria import (
    MatchingCriteria,
    default_criteria,
    with_overrides,
)
from registrar.matching.fields import (
    IDENTIFIER_FIELDS,
    NAME_FIELDS,
    MatchableField,
    MatchType,
)

STRICT_MIN_THRESHOLD = 0.95
LENIENT_THRESHOLD_DROP = 0.15
LENIENT_MIN_THRESHOLD = 0.7


@dataclass(frozen=True)
class MatchingPreset:
    """A named, pre-tuned criteria variant."""

    key: str
    name: str
    description: str
    criteria: MatchingCriteria

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "key": self.key,
            "name": self.name,
            "description": self.description,
            "criteria": self.criteria.to_dict(),
        }


def strict_criteria() -> MatchingCriteria:
    """Every field threshold raised to at least 0.95, overall 0.9."""
    base = default_criteria()
    return with_overrides(
        base,
        field_rules=[
            replace(rule, threshold=max(STRICT_MIN_THRESHOLD, rule.threshold))
            for rule in base.field_rules
        ],
        overall_threshold=0.9,
    )


def lenient_criteria() -> MatchingCriteria:
    """Fuzzy-field thresholds lowered by 0.15 (floor 0.7), overall 0.6."""
    base = default_criteria()
    rules = []
    for rule in base.field_rules:
        if rule.match_type != MatchType.FUZZY:
            rules.append(rule)
            continue
        rules.append(
            replace(
                rule,
                threshold=max(LENIENT_MIN_THRESHOLD, rule.threshold - LENIENT_THRESHOLD_DROP),
            )
        )
    return with_overrides(base, field_rules=rules, overall_threshold=0.6)


def _only_enabled(
    enabled: frozenset[MatchableField],
    overall_threshold: float,
) -> MatchingCriteria:
    base = default_criteria()
    return with_overrides(
        base,
        field_rules=[replace(rule, enabled=rule.field in enabled) for rule in base.field_rules],
        overall_threshold=overall_threshold,
    )


def contact_only_criteria() -> MatchingCriteria:
    """Only phone, email, government IDs and guardian phone are compared."""
    return _only_enabled(IDENTIFIER_FIELDS, overall_threshold=0.8)


def name_and_dob_criteria() -> MatchingCriteria:
    """Only name fields and date of birth are compared."""
    return _only_enabled(
        NAME_FIELDS | {MatchableField.DATE_OF_BIRTH},
        overall_threshold=0.75,
    )


MATCHING_PRESETS: dict[str, MatchingPreset] = {
    "strict": MatchingPreset(
        key="strict",
        name="Strict Matching",
        description="Only matches on exact or near-exact field matches",
        criteria=strict_criteria(),
    ),
    "moderate": MatchingPreset(
        key="moderate",
        name="Moderate Matching",
        description="Balanced approach with reasonable fuzzy matching",
        criteria=default_criteria(),
    ),
    "lenient": MatchingPreset(
        key="lenient",
        name="Lenient Matching",
        description="More permissive matching to catch potential duplicates with variations",
        criteria=lenient_criteria(),
    ),
    "contact_only": MatchingPreset(
        key="contact_only",
        name="Contact Information Only",
        description="Only matches on phone, email, and AADHAR",
        criteria=contact_only_criteria(),
    ),
    "name_and_dob": MatchingPreset(
        key="name_and_dob",
        name="Name and Date of Birth",
        description="Focuses on name and DOB matching",
        criteria=name_and_dob_criteria(),
    ),
}

PRESET_NAMES = tuple(MATCHING_PRESETS)


def get_preset(key: str) -> Optional[MatchingPreset]:
    """Get a preset by key, or None if unknown."""
    return MATCHING_PRESETS.get(key)


def list_presets() -> list[MatchingPreset]:
    return list(MATCHING_PRESETS.values())

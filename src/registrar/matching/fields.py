"""
Matchable identity fields and matching enums.

Field names double as the stored column names used by candidate stores,
so a typo in a rule or a lookup fails at parse time instead of silently
never matching.
"""

from enum import Enum


class MatchableField(str, Enum):
    """Identity attributes eligible for duplicate comparison."""

    PHONE_NUMBER = "phone_number"
    EMAIL = "email"
    AADHAR_NUMBER = "aadhar_number"  # Government ID
    FIRST_NAME = "first_name"
    LAST_NAME = "last_name"
    FULL_NAME = "full_name"  # Derived from first + last
    DATE_OF_BIRTH = "date_of_birth"
    GUARDIAN_PHONE = "guardian_phone"
    PAN_NUMBER = "pan_number"  # Secondary ID


class MatchType(str, Enum):
    """How a field's values are compared."""

    EXACT = "exact"
    NORMALIZED = "normalized"
    FUZZY = "fuzzy"


class Confidence(str, Enum):
    """Coarse classification of the best match score."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# Fields whose comparison is a normalized identifier equality
IDENTIFIER_FIELDS = frozenset(
    {
        MatchableField.PHONE_NUMBER,
        MatchableField.EMAIL,
        MatchableField.AADHAR_NUMBER,
        MatchableField.GUARDIAN_PHONE,
        MatchableField.PAN_NUMBER,
    }
)

NAME_FIELDS = frozenset(
    {
        MatchableField.FIRST_NAME,
        MatchableField.LAST_NAME,
        MatchableField.FULL_NAME,
    }
)

HIGH_CONFIDENCE_SCORE = 0.95
MEDIUM_CONFIDENCE_SCORE = 0.8


def classify_confidence(score: float) -> Confidence:
    """Map a match score to a confidence level."""
    if score >= HIGH_CONFIDENCE_SCORE:
        return Confidence.HIGH
    if score >= MEDIUM_CONFIDENCE_SCORE:
        return Confidence.MEDIUM
    return Confidence.LOW

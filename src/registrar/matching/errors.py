"""
Errors raised by the duplicate-detection engine.
"""

from typing import Optional


class MatchingError(Exception):
    """Base class for duplicate-detection errors."""

    pass


class CriteriaConfigurationError(MatchingError):
    """Raised when matching criteria cannot be built from caller input."""

    pass


class FieldRuleNotFoundError(CriteriaConfigurationError, KeyError):
    """Raised when updating a field rule that does not exist."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"No field rule for '{field}'")

    def __str__(self) -> str:
        return self.args[0]


class CrossFieldRuleNotFoundError(CriteriaConfigurationError, KeyError):
    """Raised when updating a cross-field rule that does not exist."""

    def __init__(self, rule_name: str):
        self.rule_name = rule_name
        super().__init__(f"No cross-field rule named '{rule_name}'")

    def __str__(self) -> str:
        return self.args[0]


class CandidateLookupError(MatchingError):
    """
    Raised when the candidate store fails a lookup.

    Distinct from an empty result: callers must not treat this as
    "no duplicates found".
    """

    def __init__(self, field: str, message: Optional[str] = None):
        self.field = field
        detail = message or "lookup failed"
        super().__init__(f"Candidate lookup on '{field}' failed: {detail}")

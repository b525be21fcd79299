"""
Records compared and produced by the duplicate detector.

- IdentityInput: the (possibly partial) record being checked
- CandidateRecord: an already-stored identity returned by a store
- DuplicateMatch / DuplicateDetectionResult: detection output
"""

from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Any, Mapping, Optional, Union

from registrar.matching.criteria import MatchingCriteria
from registrar.matching.fields import Confidence, MatchableField
from registrar.matching.normalize import build_full_name, normalize_date, normalize_field

DateLike = Union[date, str, None]

_RECORD_FIELDS = (
    "phone_number",
    "email",
    "first_name",
    "last_name",
    "date_of_birth",
    "aadhar_number",
    "guardian_phone",
    "pan_number",
)


class _IdentityFields:
    """Field access shared by inputs and stored candidates."""

    first_name: Optional[str]
    last_name: Optional[str]

    @property
    def full_name(self) -> str:
        return build_full_name(self.first_name, self.last_name)

    def value_for(self, field_name: MatchableField) -> Any:
        """Get the raw value for a matchable field (None or '' if absent)."""
        if field_name == MatchableField.FULL_NAME:
            return self.full_name
        return getattr(self, field_name.value)

    def has_value(self, field_name: MatchableField) -> bool:
        """Check whether the field carries a usable (normalizable) value."""
        value = self.value_for(field_name)
        if value is None or value == "":
            return False
        return bool(normalize_field(field_name, value))

    def populated_fields(self) -> list[MatchableField]:
        """Matchable fields that carry a usable value."""
        return [f for f in MatchableField if self.has_value(f)]


@dataclass(frozen=True)
class IdentityInput(_IdentityFields):
    """An identity record to check for duplicates. All fields optional."""

    phone_number: Optional[str] = None
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: DateLike = None
    aadhar_number: Optional[str] = None
    guardian_phone: Optional[str] = None
    pan_number: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "IdentityInput":
        """Build from a mapping, ignoring unknown keys."""
        return cls(**{k: data.get(k) for k in _RECORD_FIELDS})

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary (dates as ISO strings)."""
        data = asdict(self)
        dob = normalize_date(self.date_of_birth)
        data["date_of_birth"] = dob.isoformat() if dob else self.date_of_birth
        return data


@dataclass(frozen=True)
class CandidateRecord(_IdentityFields):
    """Snapshot of a stored identity, addressed by an opaque id."""

    id: str
    phone_number: Optional[str] = None
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: DateLike = None
    aadhar_number: Optional[str] = None
    guardian_phone: Optional[str] = None
    pan_number: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CandidateRecord":
        """Build from a row-like mapping; `id` is required."""
        return cls(id=str(data["id"]), **{k: data.get(k) for k in _RECORD_FIELDS})

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary (dates as ISO strings)."""
        data = asdict(self)
        dob = normalize_date(self.date_of_birth)
        data["date_of_birth"] = dob.isoformat() if dob else self.date_of_birth
        return data


@dataclass
class DuplicateMatch:
    """A stored candidate that scored above the overall threshold."""

    candidate_id: str
    overall_score: float
    matched_fields: list[MatchableField] = field(default_factory=list)
    # Every comparable field, including those below their threshold
    field_scores: dict[MatchableField, float] = field(default_factory=dict)
    matched_cross_field_rules: list[str] = field(default_factory=list)
    confidence: Confidence = Confidence.LOW
    candidate: Optional[CandidateRecord] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "candidate_id": self.candidate_id,
            "overall_score": self.overall_score,
            "matched_fields": [f.value for f in self.matched_fields],
            "field_scores": {f.value: s for f, s in self.field_scores.items()},
            "matched_cross_field_rules": list(self.matched_cross_field_rules),
            "confidence": self.confidence.value,
            "candidate": self.candidate.to_dict() if self.candidate else None,
        }


@dataclass
class DuplicateDetectionResult:
    """Ranked, capped set of potential duplicates."""

    has_potential_duplicates: bool
    confidence: Confidence
    matches: list[DuplicateMatch] = field(default_factory=list)
    total_matches: int = 0  # Before truncation to max_results
    criteria: Optional[MatchingCriteria] = None

    @classmethod
    def empty(cls, criteria: Optional[MatchingCriteria] = None) -> "DuplicateDetectionResult":
        """A well-formed "no duplicates" result."""
        return cls(
            has_potential_duplicates=False,
            confidence=Confidence.LOW,
            matches=[],
            total_matches=0,
            criteria=criteria,
        )

    def to_dict(self, include_criteria: bool = False) -> dict[str, Any]:
        """Convert to dictionary."""
        data: dict[str, Any] = {
            "has_potential_duplicates": self.has_potential_duplicates,
            "confidence": self.confidence.value,
            "matches": [m.to_dict() for m in self.matches],
            "total_matches": self.total_matches,
        }
        if include_criteria and self.criteria is not None:
            data["criteria"] = self.criteria.to_dict()
        return data

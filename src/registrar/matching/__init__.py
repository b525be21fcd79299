"""
Duplicate-candidate detection for student identity records.

This module implements weighted rule-based duplicate detection:
- Normalize: Canonical forms for phones, emails, IDs, names, dates
- Similarity: Exact, edit-distance, name, date and address scorers
- Criteria: Field rules, cross-field rules, presets and validation
- Detector: Concurrent candidate lookup, scoring and ranking
- Store: Candidate store interface and in-memory implementation
"""

from registrar.matching.cache import DUPLICATE_NAMESPACE, DetectionCache
from registrar.matching.criteria import (
    CriteriaValidation,
    CrossFieldRule,
    FieldMatchingRule,
    MatchingCriteria,
    criteria_from_dict,
    default_criteria,
    disable_cross_field_rule,
    disable_field_rule,
    enable_cross_field_rule,
    enable_field_rule,
    enabled_cross_field_rules,
    enabled_field_rules,
    update_cross_field_rule,
    update_field_rule,
    validate_criteria,
    with_overrides,
)
from registrar.matching.detector import DuplicateDetector, detect_duplicates
from registrar.matching.errors import (
    CandidateLookupError,
    CriteriaConfigurationError,
    CrossFieldRuleNotFoundError,
    FieldRuleNotFoundError,
    MatchingError,
)
from registrar.matching.fields import Confidence, MatchableField, MatchType
from registrar.matching.models import (
    CandidateRecord,
    DuplicateDetectionResult,
    DuplicateMatch,
    IdentityInput,
)
from registrar.matching.presets import (
    MATCHING_PRESETS,
    PRESET_NAMES,
    MatchingPreset,
    get_preset,
    list_presets,
)
from registrar.matching.store import CandidateStore, InMemoryCandidateStore

__all__ = [
    # Fields
    "MatchableField",
    "MatchType",
    "Confidence",
    # Criteria
    "FieldMatchingRule",
    "CrossFieldRule",
    "MatchingCriteria",
    "CriteriaValidation",
    "default_criteria",
    "with_overrides",
    "update_field_rule",
    "enable_field_rule",
    "disable_field_rule",
    "update_cross_field_rule",
    "enable_cross_field_rule",
    "disable_cross_field_rule",
    "enabled_field_rules",
    "enabled_cross_field_rules",
    "validate_criteria",
    "criteria_from_dict",
    # Presets
    "MatchingPreset",
    "MATCHING_PRESETS",
    "PRESET_NAMES",
    "get_preset",
    "list_presets",
    # Records
    "IdentityInput",
    "CandidateRecord",
    "DuplicateMatch",
    "DuplicateDetectionResult",
    # Detection
    "DuplicateDetector",
    "detect_duplicates",
    "CandidateStore",
    "InMemoryCandidateStore",
    "DetectionCache",
    "DUPLICATE_NAMESPACE",
    # Errors
    "MatchingError",
    "CriteriaConfigurationError",
    "FieldRuleNotFoundError",
    "CrossFieldRuleNotFoundError",
    "CandidateLookupError",
]

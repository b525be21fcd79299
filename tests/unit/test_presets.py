"""
Unit tests for matching presets.
"""

import pytest

from registrar.matching.criteria import default_criteria, validate_criteria
from registrar.matching.fields import IDENTIFIER_FIELDS, MatchableField, MatchType
from registrar.matching.presets import (
    MATCHING_PRESETS,
    PRESET_NAMES,
    get_preset,
    list_presets,
)


def _enabled_fields(criteria):
    return {r.field for r in criteria.field_rules if r.enabled}


class TestPresetRegistry:
    """Tests for preset lookup."""

    def test_known_presets(self):
        assert set(PRESET_NAMES) == {
            "strict",
            "moderate",
            "lenient",
            "contact_only",
            "name_and_dob",
        }

    def test_get_unknown_preset(self):
        assert get_preset("aggressive") is None

    def test_list_presets(self):
        assert [p.key for p in list_presets()] == list(PRESET_NAMES)

    @pytest.mark.parametrize("key", list(MATCHING_PRESETS))
    def test_every_preset_is_valid(self, key):
        assert validate_criteria(get_preset(key).criteria).valid

    def test_moderate_is_default(self):
        assert get_preset("moderate").criteria == default_criteria()

    def test_to_dict(self):
        data = get_preset("strict").to_dict()
        assert data["key"] == "strict"
        assert data["name"] == "Strict Matching"
        assert data["criteria"]["overall_threshold"] == 0.9


class TestPresetCriteria:
    """Tests for preset-specific criteria."""

    def test_strict_raises_thresholds(self):
        criteria = get_preset("strict").criteria
        assert criteria.overall_threshold == 0.9
        assert all(r.threshold >= 0.95 for r in criteria.field_rules)

    def test_lenient_lowers_fuzzy_thresholds(self):
        criteria = get_preset("lenient").criteria
        assert criteria.overall_threshold == 0.6
        for rule in criteria.field_rules:
            if rule.match_type == MatchType.FUZZY:
                assert rule.threshold == pytest.approx(0.7)
            else:
                assert rule.threshold == 1.0

    def test_contact_only_fields(self):
        criteria = get_preset("contact_only").criteria
        assert _enabled_fields(criteria) == set(IDENTIFIER_FIELDS)
        assert criteria.overall_threshold == 0.8

    def test_name_and_dob_fields(self):
        criteria = get_preset("name_and_dob").criteria
        assert _enabled_fields(criteria) == {
            MatchableField.FIRST_NAME,
            MatchableField.LAST_NAME,
            MatchableField.FULL_NAME,
            MatchableField.DATE_OF_BIRTH,
        }
        assert criteria.overall_threshold == 0.75

    def test_defaults_untouched(self):
        """Building presets never mutates the default criteria."""
        criteria = default_criteria()
        assert criteria.overall_threshold == 0.7
        assert criteria.field_rule_for(MatchableField.FULL_NAME).threshold == 0.85

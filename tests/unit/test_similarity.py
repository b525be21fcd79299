"""
Unit tests for similarity primitives.
"""

from datetime import date, timedelta

import pytest

from registrar.matching.normalize import normalize_email, normalize_phone
from registrar.matching.similarity import (
    NameComponents,
    WeightedScore,
    address_similarity,
    date_similarity,
    emails_match,
    exact_match,
    extract_name_components,
    id_numbers_match,
    indian_name_similarity,
    name_similarity,
    phones_match,
    string_similarity,
    weighted_aggregate,
)

NAME_PAIRS = [
    ("Rahul Sharma", "Rahul Sharma"),
    ("Rahul Sharma", "Sharma Rahul"),
    ("Rahul Kumar Sharma", "Rahul Sharma"),
    ("Jon", "John"),
    ("Priya", "Nair Priya Devi"),
    ("", "Rahul"),
    ("A B C D", "X"),
]


class TestStringSimilarity:
    """Tests for normalized Levenshtein similarity."""

    def test_identical(self):
        assert string_similarity("rahul", "rahul") == 1.0

    def test_case_and_whitespace_insensitive(self):
        assert string_similarity(" Rahul", "rahul ") == 1.0

    def test_classic_distance(self):
        """kitten/sitting is three edits over seven characters."""
        assert string_similarity("kitten", "sitting") == pytest.approx(4 / 7)

    def test_empty_is_zero(self):
        assert string_similarity("", "abc") == 0.0
        assert string_similarity(None, "abc") == 0.0

    def test_completely_different(self):
        assert string_similarity("abc", "xyz") == 0.0


class TestExactMatch:
    """Tests for normalized equality scorers."""

    def test_normalizer_applied(self):
        assert exact_match("+91 9876543210", "98765 43210", normalize_phone) == 1.0

    def test_different_values(self):
        assert exact_match("a@b.com", "c@d.com", normalize_email) == 0.0

    def test_empty_never_matches(self):
        assert exact_match("", "", normalize_email) == 0.0
        assert exact_match(None, None) == 0.0

    def test_values_that_normalize_to_empty(self):
        """Two phone strings without digits are not a match."""
        assert exact_match("n/a", "none", normalize_phone) == 0.0

    def test_helpers(self):
        assert phones_match("+91-98765-43210", "9876543210")
        assert emails_match("Test@Example.com ", "test@example.com")
        assert id_numbers_match("1234 5678 9012", "1234-5678-9012")
        assert not id_numbers_match("1234 5678 9012", "1234 5678 9013")


class TestNameSimilarity:
    """Tests for word-level name similarity."""

    def test_identical(self):
        assert name_similarity("Rahul Sharma", "rahul  SHARMA") == 1.0

    def test_word_order_ignored(self):
        assert name_similarity("Rahul Sharma", "Sharma Rahul") == 1.0

    def test_single_typo(self):
        assert name_similarity("Jon", "John") == pytest.approx(0.75)

    def test_extra_word_penalized(self):
        score = name_similarity("Rahul Kumar Sharma", "Rahul Sharma")
        assert 0.0 < score < 1.0

    def test_empty_is_zero(self):
        assert name_similarity("", "Rahul") == 0.0
        assert name_similarity("123", "Rahul") == 0.0

    @pytest.mark.parametrize("a,b", NAME_PAIRS)
    def test_symmetric(self, a, b):
        assert name_similarity(a, b) == pytest.approx(name_similarity(b, a))

    @pytest.mark.parametrize("a,b", NAME_PAIRS)
    def test_bounded(self, a, b):
        assert 0.0 <= name_similarity(a, b) <= 1.0


class TestExtractNameComponents:
    """Tests for positional name splitting."""

    def test_single_token(self):
        assert extract_name_components("Rahul") == NameComponents("rahul", "", "")

    def test_two_tokens(self):
        assert extract_name_components("Rahul Sharma") == NameComponents("rahul", "", "sharma")

    def test_middle_names_joined(self):
        parts = extract_name_components("Venkata Rama Krishna Rao")
        assert parts == NameComponents("venkata", "rama krishna", "rao")

    def test_empty(self):
        assert extract_name_components(None) == NameComponents("", "", "")


class TestIndianNameSimilarity:
    """Tests for positional full-name similarity."""

    def test_identical(self):
        assert indian_name_similarity("Rahul Sharma", "rahul sharma") == 1.0

    def test_single_token_capped_by_empty_last_name(self):
        """An empty last-name slot contributes nothing."""
        assert indian_name_similarity("Rahul", "Rahul") == 0.5

    def test_middle_name_weighted(self):
        score = indian_name_similarity("Rahul Kumar Sharma", "Rahul Kumaar Sharma")
        assert score == pytest.approx(0.4 + 0.2 * (5 / 6) + 0.4)

    def test_middle_ignored_when_one_side_lacks_it(self):
        assert indian_name_similarity("Rahul Sharma", "Rahul Kumar Sharma") == 1.0

    def test_typos_in_first_and_last(self):
        score = indian_name_similarity("Jon Do", "John Doe")
        assert score == pytest.approx(0.5 * 0.75 + 0.5 * (2 / 3))

    def test_missing_is_zero(self):
        assert indian_name_similarity("", "Rahul Sharma") == 0.0
        assert indian_name_similarity("Rahul Sharma", None) == 0.0


class TestDateSimilarity:
    """Tests for date decay scoring."""

    BASE = date(2001, 5, 14)

    @pytest.mark.parametrize(
        "days,expected",
        [(0, 1.0), (1, 0.9), (5, 0.7), (7, 0.7), (20, 0.5), (200, 0.3), (365, 0.3), (400, 0.0)],
    )
    def test_decay_steps(self, days, expected):
        assert date_similarity(self.BASE, self.BASE + timedelta(days=days)) == expected

    def test_non_increasing_with_distance(self):
        scores = [
            date_similarity(self.BASE, self.BASE + timedelta(days=d))
            for d in (0, 1, 2, 7, 8, 30, 31, 365, 366)
        ]
        assert scores == sorted(scores, reverse=True)

    def test_order_irrelevant(self):
        other = self.BASE - timedelta(days=3)
        assert date_similarity(self.BASE, other) == date_similarity(other, self.BASE)

    def test_accepts_strings(self):
        assert date_similarity("2001-05-14", self.BASE) == 1.0

    def test_unparseable_is_zero(self):
        assert date_similarity("yesterday", self.BASE) == 0.0
        assert date_similarity(None, self.BASE) == 0.0


class TestAddressSimilarity:
    """Tests for address similarity."""

    def test_identical_after_normalization(self):
        assert address_similarity("12, MG Road, Pune", "12 mg road pune") == 1.0

    def test_partial_overlap(self):
        score = address_similarity("12 MG Road Pune", "MG Road, Pune")
        assert score == pytest.approx(0.6 * (6 / 7) + 0.4 * 0.8)

    def test_repeated_tokens_stay_bounded(self):
        score = address_similarity("road road", "road")
        assert score <= 1.0
        assert score == pytest.approx(0.6 + 0.4 * (4 / 9))

    def test_empty_is_zero(self):
        assert address_similarity("", "12 MG Road") == 0.0


class TestWeightedAggregate:
    """Tests for weighted mean aggregation."""

    def test_weighted_mean(self):
        scores = [WeightedScore(1.0, 3.0), WeightedScore(0.5, 1.0)]
        assert weighted_aggregate(scores) == pytest.approx(0.875)

    def test_empty_is_zero(self):
        assert weighted_aggregate([]) == 0.0

    def test_zero_weights_is_zero(self):
        assert weighted_aggregate([WeightedScore(1.0, 0.0)]) == 0.0

    def test_bounded_by_inputs(self):
        scores = [WeightedScore(0.9, 2.0), WeightedScore(0.7, 5.0), WeightedScore(0.8, 1.0)]
        assert 0.7 <= weighted_aggregate(scores) <= 0.9

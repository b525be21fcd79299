"""
Unit tests for identity field normalization.
"""

from datetime import date, datetime

import pytest

from registrar.matching.fields import MatchableField
from registrar.matching.normalize import (
    build_full_name,
    normalize_address,
    normalize_date,
    normalize_email,
    normalize_field,
    normalize_id_number,
    normalize_name,
    normalize_pan,
    normalize_phone,
)


class TestNormalizePhone:
    """Tests for phone normalization."""

    def test_strips_country_code_and_formatting(self):
        assert normalize_phone("+91 98765-43210") == "9876543210"

    def test_keeps_last_ten_digits(self):
        assert normalize_phone("0091 9876543210") == "9876543210"

    def test_short_number_kept_whole(self):
        """Numbers shorter than 10 digits are returned as-is (digits only)."""
        assert normalize_phone("(022) 2345") == "0222345"

    def test_empty_and_none(self):
        assert normalize_phone("") == ""
        assert normalize_phone(None) == ""

    def test_no_digits(self):
        assert normalize_phone("call me") == ""


class TestNormalizeEmail:
    """Tests for email normalization."""

    def test_trims_and_lowercases(self):
        assert normalize_email("  Test@Example.COM ") == "test@example.com"

    def test_none(self):
        assert normalize_email(None) == ""


class TestNormalizeIds:
    """Tests for government ID normalization."""

    def test_aadhar_digits_only(self):
        assert normalize_id_number("1234 5678 9012") == "123456789012"

    def test_aadhar_dashes(self):
        assert normalize_id_number("1234-5678-9012") == "123456789012"

    def test_pan_uppercased_without_spaces(self):
        assert normalize_pan(" abcde 1234 f ") == "ABCDE1234F"

    def test_pan_none(self):
        assert normalize_pan(None) == ""


class TestNormalizeName:
    """Tests for name normalization."""

    def test_lowercases_and_collapses_whitespace(self):
        assert normalize_name("  Rahul   KUMAR  Sharma ") == "rahul kumar sharma"

    def test_drops_punctuation_and_digits(self):
        assert normalize_name("O'Brien-Smith 3rd") == "obriensmith rd"

    def test_non_latin_only_is_empty(self):
        assert normalize_name("राहुल") == ""

    def test_none(self):
        assert normalize_name(None) == ""


class TestNormalizeAddress:
    """Tests for address normalization."""

    def test_punctuation_becomes_space(self):
        assert normalize_address("12, MG Road; Pune-411001") == "12 mg road pune 411001"

    def test_empty(self):
        assert normalize_address("") == ""


class TestNormalizeDate:
    """Tests for date coercion."""

    def test_date_passthrough(self):
        assert normalize_date(date(2001, 5, 14)) == date(2001, 5, 14)

    def test_datetime_truncated(self):
        assert normalize_date(datetime(2001, 5, 14, 18, 30)) == date(2001, 5, 14)

    def test_iso_string(self):
        assert normalize_date("2001-05-14") == date(2001, 5, 14)

    def test_iso_timestamp(self):
        assert normalize_date("2001-05-14T10:00:00Z") == date(2001, 5, 14)

    @pytest.mark.parametrize("value", [None, "", "not a date", "14/05/2001"])
    def test_unparseable_is_none(self, value):
        assert normalize_date(value) is None


class TestBuildFullName:
    """Tests for full name construction."""

    def test_joins_parts(self):
        assert build_full_name("Rahul", "Sharma") == "Rahul Sharma"

    def test_skips_blank_parts(self):
        assert build_full_name("Rahul", "  ") == "Rahul"
        assert build_full_name(None, "Sharma") == "Sharma"

    def test_both_missing(self):
        assert build_full_name(None, None) == ""


class TestNormalizeField:
    """Tests for per-field dispatch."""

    def test_phone_fields(self):
        assert normalize_field(MatchableField.PHONE_NUMBER, "+91 9876543210") == "9876543210"
        assert normalize_field(MatchableField.GUARDIAN_PHONE, "98765 43210") == "9876543210"

    def test_email(self):
        assert normalize_field(MatchableField.EMAIL, "A@B.COM") == "a@b.com"

    def test_names(self):
        assert normalize_field(MatchableField.FULL_NAME, "Rahul  Sharma") == "rahul sharma"

    def test_pan(self):
        assert normalize_field(MatchableField.PAN_NUMBER, "abcde1234f") == "ABCDE1234F"

    def test_date_of_birth_as_iso(self):
        assert normalize_field(MatchableField.DATE_OF_BIRTH, date(2001, 5, 14)) == "2001-05-14"

    def test_bad_date_is_empty(self):
        assert normalize_field(MatchableField.DATE_OF_BIRTH, "soon") == ""

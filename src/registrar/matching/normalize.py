"""
Normalization of identity fields for duplicate matching.

All functions are total: garbage in gives a best-effort canonical form
out, never an exception. Empty results mean "no usable value".
"""

import re
from datetime import date, datetime
from typing import Any, Optional

from registrar.matching.fields import MatchableField

PHONE_DIGITS = 10

_NON_DIGIT = re.compile(r"\D")
_NON_NAME_CHAR = re.compile(r"[^a-z\s]")
_NON_ALNUM = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize_phone(phone: Optional[str]) -> str:
    """
    Normalize a phone number to its last 10 digits.

    Drops country codes and formatting, so "+91 98765-43210" and
    "9876543210" compare equal.
    """
    if not phone:
        return ""
    return _NON_DIGIT.sub("", str(phone))[-PHONE_DIGITS:]


def normalize_email(email: Optional[str]) -> str:
    """Trim and lowercase an email address."""
    if not email:
        return ""
    return str(email).strip().lower()


def normalize_id_number(id_number: Optional[str]) -> str:
    """Strip everything but digits from a numeric government ID (Aadhar)."""
    if not id_number:
        return ""
    return _NON_DIGIT.sub("", str(id_number))


def normalize_pan(pan: Optional[str]) -> str:
    """Normalize a PAN: whitespace removed, uppercased."""
    if not pan:
        return ""
    return _WHITESPACE.sub("", str(pan)).upper()


def normalize_name(name: Optional[str]) -> str:
    """
    Normalize a person name for comparison.

    Lowercases, drops anything outside [a-z] and whitespace, and collapses
    runs of whitespace to single spaces.
    """
    if not name:
        return ""
    text = _NON_NAME_CHAR.sub("", str(name).lower().strip())
    return _WHITESPACE.sub(" ", text).strip()


def normalize_address(address: Optional[str]) -> str:
    """Lowercase, replace punctuation with spaces, collapse whitespace."""
    if not address:
        return ""
    text = _NON_ALNUM.sub(" ", str(address).lower().strip())
    return _WHITESPACE.sub(" ", text).strip()


def normalize_date(value: Any) -> Optional[date]:
    """
    Coerce a date-like value to a date.

    Accepts date, datetime, or ISO-8601 strings (date or timestamp).
    Returns None when the value cannot be parsed.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def build_full_name(first_name: Optional[str], last_name: Optional[str]) -> str:
    """Join the non-blank name parts with a single space."""
    parts = [p.strip() for p in (first_name, last_name) if p and p.strip()]
    return " ".join(parts)


def normalize_field(field: MatchableField, value: Any) -> Any:
    """
    Normalize a raw value for the given field.

    Used to build candidate-store lookup values. Dates come back as
    ISO strings, everything else as normalized strings.
    """
    if field in (MatchableField.PHONE_NUMBER, MatchableField.GUARDIAN_PHONE):
        return normalize_phone(value)
    if field == MatchableField.EMAIL:
        return normalize_email(value)
    if field == MatchableField.AADHAR_NUMBER:
        return normalize_id_number(value)
    if field == MatchableField.PAN_NUMBER:
        return normalize_pan(value)
    if field == MatchableField.DATE_OF_BIRTH:
        parsed = normalize_date(value)
        return parsed.isoformat() if parsed else ""
    if field in (
        MatchableField.FIRST_NAME,
        MatchableField.LAST_NAME,
        MatchableField.FULL_NAME,
    ):
        return normalize_name(value)
    raise ValueError(f"Unhandled field: {field}")

"""
Candidate stores: where the detector fetches previously stored identities.

A store answers one question per call: which records have this normalized
value in this field? It must return an empty list when nothing matches and
raise when the underlying query fails.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from registrar.matching.fields import NAME_FIELDS, MatchableField
from registrar.matching.models import CandidateRecord
from registrar.matching.normalize import normalize_field, normalize_name

logger = logging.getLogger(__name__)


class CandidateStore(ABC):
    """Abstract base class for candidate lookups."""

    @abstractmethod
    async def find_by_field(
        self,
        field: MatchableField,
        normalized_value: str,
        exclude_id: Optional[str] = None,
    ) -> list[CandidateRecord]:
        """
        Find stored records matching a normalized field value.

        Args:
            field: The field to look up
            normalized_value: Value already passed through normalize_field()
            exclude_id: Record id to leave out (e.g. the record being updated)

        Returns:
            Matching records, empty if none
        """
        pass


def name_lookup_parts(normalized_full_name: str) -> tuple[str, Optional[str]]:
    """
    Split a normalized full name into the (first, last) lookup terms.

    A single-token name has no last term.
    """
    tokens = normalized_full_name.split()
    if not tokens:
        return "", None
    if len(tokens) == 1:
        return tokens[0], None
    return tokens[0], tokens[-1]


def matches_name_lookup(record: CandidateRecord, field: MatchableField, term: str) -> bool:
    """
    Check whether a record's name contains a normalized lookup term.

    Stored names are normalized before the containment check, so
    punctuation and spacing in the stored value do not hide a match.
    """
    if field == MatchableField.FULL_NAME:
        first, last = name_lookup_parts(term)
        return first in normalize_name(record.first_name) and (
            last is None or last in normalize_name(record.last_name)
        )
    return term in normalize_name(record.value_for(field))


class InMemoryCandidateStore(CandidateStore):
    """
    Dictionary-backed candidate store.

    Identifier and date fields are indexed by normalized value. Name fields
    match by containment of the normalized search term, the same semantics
    as the SQL store's ILIKE lookups.
    """

    def __init__(self, records: Optional[list[CandidateRecord]] = None):
        self._records: dict[str, CandidateRecord] = {}
        self._index: dict[tuple[MatchableField, str], set[str]] = {}
        for record in records or []:
            self.add(record)

    def add(self, record: CandidateRecord) -> None:
        """Add or replace a record."""
        if record.id in self._records:
            self.remove(record.id)

        self._records[record.id] = record
        for field in MatchableField:
            if field in NAME_FIELDS:
                continue
            value = record.value_for(field)
            if not value:
                continue
            key = (field, normalize_field(field, value))
            if not key[1]:
                continue
            self._index.setdefault(key, set()).add(record.id)

    def remove(self, record_id: str) -> bool:
        """Remove a record. Returns False if it was not stored."""
        if self._records.pop(record_id, None) is None:
            return False
        for key in list(self._index):
            ids = self._index[key]
            ids.discard(record_id)
            if not ids:
                del self._index[key]
        return True

    def clear(self) -> None:
        """Remove all records."""
        self._records.clear()
        self._index.clear()

    def stats(self) -> dict[str, int]:
        """Get store statistics."""
        return {
            "records": len(self._records),
            "index_keys": len(self._index),
        }

    async def find_by_field(
        self,
        field: MatchableField,
        normalized_value: str,
        exclude_id: Optional[str] = None,
    ) -> list[CandidateRecord]:
        if not normalized_value:
            return []

        if field in NAME_FIELDS:
            records = self._find_by_name(field, normalized_value)
        else:
            ids = self._index.get((field, normalized_value), set())
            records = [self._records[i] for i in sorted(ids)]

        results = [r for r in records if r.id != exclude_id]
        logger.debug(f"In-memory lookup on {field.value}: {len(results)} records")
        return results

    def _find_by_name(self, field: MatchableField, term: str) -> list[CandidateRecord]:
        return [r for r in self._records.values() if matches_name_lookup(r, field, term)]

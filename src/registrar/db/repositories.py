"""
Database repositories for duplicate-detection lookups.
"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from registrar.db.orm import Student
from registrar.matching.errors import CandidateLookupError
from registrar.matching.fields import NAME_FIELDS, MatchableField
from registrar.matching.models import CandidateRecord
from registrar.matching.normalize import normalize_email
from registrar.matching.store import CandidateStore, matches_name_lookup, name_lookup_parts

logger = logging.getLogger(__name__)

# Columns compared by plain equality on the stored (normalized) value
_EQUALITY_COLUMNS = {
    MatchableField.PHONE_NUMBER: Student.phone_number,
    MatchableField.EMAIL: Student.email,
    MatchableField.AADHAR_NUMBER: Student.aadhar_number,
    MatchableField.GUARDIAN_PHONE: Student.guardian_phone,
    MatchableField.PAN_NUMBER: Student.pan_number,
}


def _name_pattern(term: str) -> str:
    """
    ILIKE pattern matching any stored name whose letters contain the term.

    Normalized terms are letters only, while stored names keep their
    punctuation and spacing ("Mary-Jane", "O'Brien"). Allowing anything
    between letters gives a superset that matches_name_lookup then narrows.
    """
    return "%" + "%".join(term.replace(" ", "")) + "%"


class StudentRepository(CandidateStore):
    """
    Candidate store backed by the students table.

    Each lookup opens its own session from the factory, since the detector
    runs lookups concurrently and an AsyncSession must not be shared
    between concurrent tasks.

    A lookup returns at most lookup_limit rows (ordered by id). Hitting the
    cap is logged as a warning, since candidates past it are never scored.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        lookup_limit: int = 100,
    ):
        self.session_factory = session_factory
        self.lookup_limit = lookup_limit

    def _build_query(self, field: MatchableField, value: str):
        stmt = select(Student)

        if field in _EQUALITY_COLUMNS:
            return stmt.where(_EQUALITY_COLUMNS[field] == value)

        if field == MatchableField.DATE_OF_BIRTH:
            return stmt.where(Student.date_of_birth == date.fromisoformat(value))

        if field == MatchableField.FIRST_NAME:
            return stmt.where(Student.first_name.ilike(_name_pattern(value)))

        if field == MatchableField.LAST_NAME:
            return stmt.where(Student.last_name.ilike(_name_pattern(value)))

        if field == MatchableField.FULL_NAME:
            first, last = name_lookup_parts(value)
            stmt = stmt.where(Student.first_name.ilike(_name_pattern(first)))
            if last:
                stmt = stmt.where(Student.last_name.ilike(_name_pattern(last)))
            return stmt

        raise ValueError(f"Unhandled field: {field}")

    async def find_by_field(
        self,
        field: MatchableField,
        normalized_value: str,
        exclude_id: Optional[str] = None,
    ) -> list[CandidateRecord]:
        """
        Find students whose field matches the normalized value.

        Raises:
            CandidateLookupError: If the query fails
        """
        if not normalized_value:
            return []

        try:
            stmt = self._build_query(field, normalized_value)
        except ValueError as e:
            raise CandidateLookupError(field.value, str(e)) from e

        if exclude_id:
            stmt = stmt.where(Student.id != exclude_id)
        stmt = stmt.order_by(Student.id).limit(self.lookup_limit)

        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                students = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Student lookup by {field.value} failed: {e}")
            raise CandidateLookupError(field.value, str(e)) from e

        if len(students) >= self.lookup_limit:
            logger.warning(
                f"Student lookup by {field.value} hit the limit of {self.lookup_limit} rows; "
                f"further candidates were not considered"
            )

        candidates = [s.to_candidate() for s in students]
        if field in NAME_FIELDS:
            candidates = [
                c for c in candidates if matches_name_lookup(c, field, normalized_value)
            ]

        logger.debug(f"Student lookup by {field.value}: {len(candidates)} rows")
        return candidates

    async def is_email_unique(self, email: str, exclude_id: Optional[str] = None) -> bool:
        """
        Check that no stored student uses this email.

        Raises:
            CandidateLookupError: If the query fails
        """
        stmt = select(func.count()).select_from(Student).where(
            Student.email == normalize_email(email)
        )
        if exclude_id:
            stmt = stmt.where(Student.id != exclude_id)

        try:
            async with self.session_factory() as session:
                count = (await session.execute(stmt)).scalar_one()
        except SQLAlchemyError as e:
            logger.error(f"Email uniqueness check failed: {e}")
            raise CandidateLookupError(MatchableField.EMAIL.value, str(e)) from e

        return count == 0

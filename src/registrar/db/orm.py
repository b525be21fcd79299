"""
SQLAlchemy models for the columns duplicate detection reads.

Only the matchable identity columns of the students table are mapped here;
the rest of the student schema is owned elsewhere.
"""

import uuid
from datetime import date, datetime
from typing import Optional

from sqlalchemy import Date, DateTime, Index, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from registrar.matching.models import CandidateRecord


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class Student(Base):
    """
    A stored student identity.

    Phone numbers, emails and IDs are stored in normalized form, so
    candidate lookups use plain equality on indexed columns.
    """

    __tablename__ = "students"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )

    phone_number: Mapped[Optional[str]] = mapped_column(String(20), index=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), index=True)
    first_name: Mapped[Optional[str]] = mapped_column(String(100))
    last_name: Mapped[Optional[str]] = mapped_column(String(100))
    date_of_birth: Mapped[Optional[date]] = mapped_column(Date, index=True)
    aadhar_number: Mapped[Optional[str]] = mapped_column(String(12), index=True)
    guardian_phone: Mapped[Optional[str]] = mapped_column(String(20), index=True)
    pan_number: Mapped[Optional[str]] = mapped_column(String(10), index=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("ix_students_name", "last_name", "first_name"),
    )

    def to_candidate(self) -> CandidateRecord:
        """Snapshot this row as an immutable candidate record."""
        return CandidateRecord(
            id=str(self.id),
            phone_number=self.phone_number,
            email=self.email,
            first_name=self.first_name,
            last_name=self.last_name,
            date_of_birth=self.date_of_birth,
            aadhar_number=self.aadhar_number,
            guardian_phone=self.guardian_phone,
            pan_number=self.pan_number,
        )

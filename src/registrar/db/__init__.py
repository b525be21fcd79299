"""
Database module for Registrar.
"""

from registrar.db.orm import Base, Student
from registrar.db.repositories import StudentRepository

__all__ = [
    "Base",
    "Student",
    "StudentRepository",
]

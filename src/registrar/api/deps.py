"""
FastAPI dependencies for the API.

Provides:
- Candidate store for duplicate detection
- Detection result cache
"""

import logging
from typing import Annotated, Optional

from fastapi import Depends, Request

from registrar.db.repositories import StudentRepository
from registrar.matching.cache import DetectionCache
from registrar.matching.store import CandidateStore

logger = logging.getLogger(__name__)


def get_candidate_store(request: Request) -> CandidateStore:
    """Candidate store over the students table."""
    return StudentRepository(request.app.state.db_session)


def get_detection_cache(request: Request) -> Optional[DetectionCache]:
    """Detection cache, or None when caching is disabled."""
    return getattr(request.app.state, "detection_cache", None)


# Type aliases for dependency injection
Store = Annotated[CandidateStore, Depends(get_candidate_store)]
Cache = Annotated[Optional[DetectionCache], Depends(get_detection_cache)]

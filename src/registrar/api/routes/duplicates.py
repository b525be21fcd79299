"""
Duplicate detection API routes.

Provides endpoints for:
- Checking a student identity for potential duplicates
- Listing matching presets
- Validating caller-supplied matching criteria
- Dropping cached detection results
"""

import logging
from datetime import date
from typing import Any, Optional

import redis.asyncio as redis
from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field

from registrar.api.deps import Cache, Store
from registrar.config import settings
from registrar.matching.cache import DUPLICATE_NAMESPACE, DetectionCache
from registrar.matching.criteria import (
    MatchingCriteria,
    criteria_from_dict,
    validate_criteria,
)
from registrar.matching.detector import DuplicateDetector
from registrar.matching.errors import CandidateLookupError, CriteriaConfigurationError
from registrar.matching.fields import MatchableField, MatchType
from registrar.matching.models import IdentityInput
from registrar.matching.presets import PRESET_NAMES, get_preset, list_presets

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/duplicates", tags=["duplicates"])


# ========== Request/Response Models ==========


class StudentIdentity(BaseModel):
    """Identity fields to check. At least one must be set."""

    phone_number: Optional[str] = None
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: Optional[date] = None
    aadhar_number: Optional[str] = None
    guardian_phone: Optional[str] = None
    pan_number: Optional[str] = None


class FieldRuleModel(BaseModel):
    """A field rule; omitted values take the field's defaults."""

    field: MatchableField
    threshold: Optional[float] = None
    weight: Optional[float] = None
    enabled: Optional[bool] = None
    match_type: Optional[MatchType] = None


class CrossFieldRuleModel(BaseModel):
    """A cross-field rule."""

    name: str
    fields: list[MatchableField]
    required_matches: Optional[int] = None
    weight: Optional[float] = None
    enabled: Optional[bool] = None
    description: Optional[str] = None


class CriteriaModel(BaseModel):
    """Matching criteria overrides; omitted parts keep the defaults."""

    field_rules: Optional[list[FieldRuleModel]] = None
    cross_field_rules: Optional[list[CrossFieldRuleModel]] = None
    overall_threshold: Optional[float] = None
    max_results: Optional[int] = None


class DuplicateCheckRequest(BaseModel):
    """Request to check a student for duplicates."""

    student: StudentIdentity
    preset: Optional[str] = Field(None, description=f"One of: {', '.join(PRESET_NAMES)}")
    criteria: Optional[CriteriaModel] = None
    exclude_id: Optional[str] = Field(
        None, description="Stored student id to ignore (when validating an update)"
    )


class DuplicateMatchResponse(BaseModel):
    """A potential duplicate."""

    candidate_id: str
    overall_score: float = Field(ge=0.0, le=1.0)
    matched_fields: list[str]
    field_scores: dict[str, float]
    matched_cross_field_rules: list[str]
    confidence: str
    candidate: Optional[dict[str, Any]] = None


class DuplicateCheckResponse(BaseModel):
    """Result of a duplicate check."""

    has_potential_duplicates: bool
    confidence: str
    matches: list[DuplicateMatchResponse]
    total_matches: int
    cached: bool = False


class PresetResponse(BaseModel):
    """A named matching preset."""

    key: str
    name: str
    description: str
    criteria: dict[str, Any]


class CriteriaValidationResponse(BaseModel):
    """Outcome of criteria validation."""

    valid: bool
    errors: list[str]


# ========== Helpers ==========


def _criteria_from_model(model: CriteriaModel) -> MatchingCriteria:
    # Omitted values fall back to the defaults inside criteria_from_dict
    return criteria_from_dict(model.model_dump(exclude_none=True))


def resolve_criteria(
    preset: Optional[str],
    criteria: Optional[CriteriaModel],
) -> MatchingCriteria:
    """
    Pick the criteria for a request.

    A named preset wins over explicit criteria; with neither, the configured
    default preset is used. Explicit criteria are validated before use.

    Raises:
        HTTPException: 400 for unknown presets or invalid criteria
    """
    if preset:
        found = get_preset(preset)
        if found is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Unknown preset '{preset}'. Expected one of: {', '.join(PRESET_NAMES)}",
            )
        return found.criteria

    if criteria is None:
        return get_preset(settings.duplicate_default_preset).criteria

    try:
        built = _criteria_from_model(criteria)
    except CriteriaConfigurationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    validation = validate_criteria(built)
    if not validation.valid:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Invalid matching criteria", "errors": validation.errors},
        )
    return built


# ========== Endpoints ==========


@router.post("/check", response_model=DuplicateCheckResponse)
async def check_duplicates(request: DuplicateCheckRequest, store: Store, cache: Cache):
    """
    Check a student identity against stored students.

    Returns ranked potential duplicates. A failed store lookup is reported
    as 503, never as "no duplicates".
    """
    identity = IdentityInput(**request.student.model_dump())
    if not identity.populated_fields():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="At least one field must be provided for duplicate detection",
        )

    criteria = resolve_criteria(request.preset, request.criteria)

    cache_key = DetectionCache.build_key(
        DUPLICATE_NAMESPACE, identity.to_dict(), criteria.to_dict(), request.exclude_id
    )
    if cache is not None:
        try:
            cached = await cache.get(cache_key)
        except redis.RedisError as e:
            logger.warning(f"Detection cache read failed, checking uncached: {e}")
            cached = None
        if cached is not None:
            logger.debug("Serving duplicate check from cache")
            return {**cached, "cached": True}

    detector = DuplicateDetector(store, criteria)
    try:
        result = await detector.detect(identity, exclude_id=request.exclude_id)
    except CandidateLookupError as e:
        logger.error(f"Duplicate check failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"error": "Candidate lookup failed", "field": e.field},
        ) from e

    response = result.to_dict()
    if cache is not None:
        try:
            await cache.set(cache_key, response)
        except redis.RedisError as e:
            logger.warning(f"Detection cache write failed: {e}")
    return response


@router.get("/presets", response_model=list[PresetResponse])
async def get_presets():
    """List the named matching presets."""
    return [preset.to_dict() for preset in list_presets()]


@router.post("/criteria/validate", response_model=CriteriaValidationResponse)
async def validate_matching_criteria(criteria: CriteriaModel):
    """Validate matching criteria without running a detection."""
    try:
        built = _criteria_from_model(criteria)
    except CriteriaConfigurationError as e:
        return CriteriaValidationResponse(valid=False, errors=[str(e)])

    validation = validate_criteria(built)
    return CriteriaValidationResponse(valid=validation.valid, errors=validation.errors)


@router.delete("/cache", status_code=status.HTTP_204_NO_CONTENT)
async def clear_detection_cache(cache: Cache):
    """Drop cached detection results (call after student records change)."""
    if cache is not None:
        removed = await cache.clear()
        logger.info(f"Dropped {removed} cached duplicate checks")

"""
Duplicate-candidate detection.

Flow:
1. Query plan: one lookup per populated field with an enabled rule
2. Fetch: lookups run concurrently and are all awaited before scoring
3. Merge: candidates deduplicated by id
4. Score: per-field scores, field thresholds, cross-field bonuses
5. Decide: overall threshold, rank, cap, confidence
"""

import asyncio
import logging
from typing import Any, Mapping, Optional, Union

from registrar.matching.criteria import (
    FieldMatchingRule,
    MatchingCriteria,
    default_criteria,
    enabled_cross_field_rules,
    enabled_field_rules,
)
from registrar.matching.errors import CandidateLookupError
from registrar.matching.fields import NAME_FIELDS, MatchableField, MatchType, classify_confidence
from registrar.matching.models import (
    CandidateRecord,
    DuplicateDetectionResult,
    DuplicateMatch,
    IdentityInput,
)
from registrar.matching.normalize import normalize_field
from registrar.matching.similarity import (
    WeightedScore,
    date_similarity,
    exact_match,
    indian_name_similarity,
    name_similarity,
    string_similarity,
    weighted_aggregate,
)
from registrar.matching.store import CandidateStore

logger = logging.getLogger(__name__)


def compare_field(rule: FieldMatchingRule, value1: Any, value2: Any) -> float:
    """
    Score two raw values of the rule's field according to its match type.

    - normalized: equality of normalized forms
    - exact: date decay for date of birth, normalized equality otherwise
    - fuzzy: positional similarity for full names, word-level similarity
      for name parts, edit-distance similarity for anything else
    """
    field = rule.field

    def normalizer(value: Any) -> str:
        return normalize_field(field, value)

    if rule.match_type == MatchType.NORMALIZED:
        return exact_match(value1, value2, normalizer)

    if rule.match_type == MatchType.EXACT:
        if field == MatchableField.DATE_OF_BIRTH:
            return date_similarity(value1, value2)
        return exact_match(value1, value2, normalizer)

    # Fuzzy
    if field == MatchableField.FULL_NAME:
        return indian_name_similarity(value1, value2)
    if field in NAME_FIELDS:
        return name_similarity(value1, value2)
    if field == MatchableField.DATE_OF_BIRTH:
        return date_similarity(value1, value2)
    return string_similarity(normalizer(value1), normalizer(value2))


def build_query_plan(
    identity: IdentityInput,
    criteria: MatchingCriteria,
) -> list[tuple[MatchableField, str]]:
    """List the (field, normalized value) lookups for an identity."""
    plan = []
    for rule in enabled_field_rules(criteria):
        if not identity.has_value(rule.field):
            continue
        plan.append((rule.field, normalize_field(rule.field, identity.value_for(rule.field))))
    return plan


class DuplicateDetector:
    """
    Finds stored identities that plausibly refer to the same person.

    The detector holds default criteria but never mutates them; per-call
    criteria can be passed to detect(). Criteria are not re-validated here,
    callers must run validate_criteria() on anything user-supplied.
    """

    def __init__(
        self,
        store: CandidateStore,
        criteria: Optional[MatchingCriteria] = None,
    ):
        self.store = store
        self._criteria = criteria or default_criteria()

    @property
    def criteria(self) -> MatchingCriteria:
        """Criteria used when detect() is called without any."""
        return self._criteria

    def configure(self, criteria: MatchingCriteria) -> None:
        """Replace the default criteria."""
        self._criteria = criteria

    async def detect(
        self,
        identity: IdentityInput,
        criteria: Optional[MatchingCriteria] = None,
        exclude_id: Optional[str] = None,
    ) -> DuplicateDetectionResult:
        """
        Detect potential duplicates of an identity.

        Args:
            identity: The record to check
            criteria: Matching criteria (detector default if None)
            exclude_id: Stored record id that must never be reported

        Returns:
            Ranked, capped detection result

        Raises:
            CandidateLookupError: If any field lookup fails
        """
        criteria = criteria or self._criteria

        if not identity.populated_fields():
            logger.debug("No populated fields, skipping duplicate lookup")
            return DuplicateDetectionResult.empty(criteria)

        plan = build_query_plan(identity, criteria)
        candidates = await self._fetch_candidates(plan, exclude_id)

        matches: list[DuplicateMatch] = []
        for candidate in candidates:
            match = self.score_candidate(identity, candidate, criteria)
            if match.overall_score >= criteria.overall_threshold:
                matches.append(match)

        matches.sort(key=lambda m: (-m.overall_score, m.candidate_id))
        limited = matches[: criteria.max_results]

        if not limited:
            logger.debug(f"No duplicates among {len(candidates)} candidates")
            return DuplicateDetectionResult.empty(criteria)

        logger.info(
            f"Found {len(matches)} potential duplicates among {len(candidates)} "
            f"candidates (best score={limited[0].overall_score:.3f})"
        )
        return DuplicateDetectionResult(
            has_potential_duplicates=True,
            confidence=classify_confidence(limited[0].overall_score),
            matches=limited,
            total_matches=len(matches),
            criteria=criteria,
        )

    def score_candidate(
        self,
        identity: IdentityInput,
        candidate: CandidateRecord,
        criteria: MatchingCriteria,
    ) -> DuplicateMatch:
        """
        Score one candidate against an identity.

        Sub-threshold field scores are recorded but carry no weight.
        Cross-field rules that fire add a full-score entry at their weight.
        """
        field_scores: dict[MatchableField, float] = {}
        matched_fields: list[MatchableField] = []
        pool: list[WeightedScore] = []

        for rule in enabled_field_rules(criteria):
            if not (identity.has_value(rule.field) and candidate.has_value(rule.field)):
                continue

            score = compare_field(
                rule, identity.value_for(rule.field), candidate.value_for(rule.field)
            )
            field_scores[rule.field] = score
            if score >= rule.threshold:
                matched_fields.append(rule.field)
                pool.append(WeightedScore(score, rule.weight))

        matched = set(matched_fields)
        matched_rules: list[str] = []
        for rule in enabled_cross_field_rules(criteria):
            hits = sum(1 for f in rule.fields if f in matched)
            if hits >= rule.required_matches:
                matched_rules.append(rule.name)
                pool.append(WeightedScore(1.0, rule.weight))

        overall = weighted_aggregate(pool)

        return DuplicateMatch(
            candidate_id=candidate.id,
            overall_score=overall,
            matched_fields=matched_fields,
            field_scores=field_scores,
            matched_cross_field_rules=matched_rules,
            confidence=classify_confidence(overall),
            candidate=candidate,
        )

    async def _lookup(
        self,
        field: MatchableField,
        value: str,
        exclude_id: Optional[str],
    ) -> list[CandidateRecord]:
        try:
            return await self.store.find_by_field(field, value, exclude_id)
        except CandidateLookupError:
            logger.error(f"Candidate lookup on {field.value} failed")
            raise
        except Exception as e:
            logger.error(f"Candidate lookup on {field.value} failed: {e}")
            raise CandidateLookupError(field.value, str(e)) from e

    async def _fetch_candidates(
        self,
        plan: list[tuple[MatchableField, str]],
        exclude_id: Optional[str],
    ) -> list[CandidateRecord]:
        """Run all lookups concurrently and merge their results by id."""
        if not plan:
            return []

        logger.debug(f"Candidate lookups on: {', '.join(f.value for f, _ in plan)}")

        tasks = [
            asyncio.ensure_future(self._lookup(field, value, exclude_id))
            for field, value in plan
        ]
        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            raise

        candidates: dict[str, CandidateRecord] = {}
        for records in results:
            for record in records:
                if exclude_id is not None and record.id == exclude_id:
                    continue
                candidates.setdefault(record.id, record)

        return list(candidates.values())


async def detect_duplicates(
    store: CandidateStore,
    identity: Union[IdentityInput, Mapping[str, Any]],
    criteria: Optional[MatchingCriteria] = None,
    exclude_id: Optional[str] = None,
) -> DuplicateDetectionResult:
    """
    Convenience function for one-off detection.

    Accepts the identity as an IdentityInput or a plain mapping.
    """
    if not isinstance(identity, IdentityInput):
        identity = IdentityInput.from_dict(identity)
    return await DuplicateDetector(store).detect(identity, criteria, exclude_id)

"""
Similarity primitives for duplicate detection.

Every scorer returns a float in [0, 1]:
- Exact scorers: 1.0 iff normalized forms are equal and non-empty
- String similarity: normalized Levenshtein (via jellyfish)
- Name similarity: word-level best-match average with a length penalty
- Indian name similarity: positional first/middle/last comparison
- Date similarity: step decay by day difference
- Address similarity: token overlap blended with string similarity
"""

from typing import Any, Callable, NamedTuple, Optional, Sequence

import jellyfish

from registrar.matching.normalize import (
    normalize_address,
    normalize_date,
    normalize_email,
    normalize_id_number,
    normalize_name,
    normalize_phone,
)

NAME_LENGTH_PENALTY_FACTOR = 0.1

# (max day difference, score), checked in order
DATE_DECAY_STEPS = (
    (1, 0.9),
    (7, 0.7),
    (30, 0.5),
    (365, 0.3),
)


class WeightedScore(NamedTuple):
    """A score and the weight it carries in an aggregate."""

    score: float
    weight: float


class NameComponents(NamedTuple):
    """Positional decomposition of a full name."""

    first: str
    middle: str
    last: str


def string_similarity(s1: Optional[str], s2: Optional[str]) -> float:
    """Compute normalized Levenshtein similarity (1 - distance / max length)."""
    if not s1 or not s2:
        return 0.0

    a = s1.lower().strip()
    b = s2.lower().strip()
    if a == b:
        return 1.0

    distance = jellyfish.levenshtein_distance(a, b)
    return 1.0 - distance / max(len(a), len(b))


def exact_match(
    v1: Optional[str],
    v2: Optional[str],
    normalizer: Callable[[Any], str] = lambda v: str(v).strip(),
) -> float:
    """Return 1.0 if both values normalize to the same non-empty form."""
    if not v1 or not v2:
        return 0.0
    n1 = normalizer(v1)
    n2 = normalizer(v2)
    if not n1 or not n2:
        return 0.0
    return 1.0 if n1 == n2 else 0.0


def phones_match(p1: Optional[str], p2: Optional[str]) -> bool:
    return exact_match(p1, p2, normalize_phone) == 1.0


def emails_match(e1: Optional[str], e2: Optional[str]) -> bool:
    return exact_match(e1, e2, normalize_email) == 1.0


def id_numbers_match(i1: Optional[str], i2: Optional[str]) -> bool:
    return exact_match(i1, i2, normalize_id_number) == 1.0


def _directional_name_score(words1: list[str], words2: list[str]) -> float:
    total = 0.0
    for w1 in words1:
        total += max(string_similarity(w1, w2) for w2 in words2)
    return total / len(words1)


def name_similarity(name1: Optional[str], name2: Optional[str]) -> float:
    """
    Compute word-level similarity between two names.

    Each word is matched to its most similar counterpart in the other name
    and the maxima are averaged. The average is taken in both directions
    and the two are combined, so the score is symmetric. A penalty of 0.1
    per differing word count is subtracted, floored at 0.
    """
    words1 = normalize_name(name1).split()
    words2 = normalize_name(name2).split()
    if not words1 or not words2:
        return 0.0
    if words1 == words2:
        return 1.0

    average = (
        _directional_name_score(words1, words2)
        + _directional_name_score(words2, words1)
    ) / 2
    penalty = abs(len(words1) - len(words2)) * NAME_LENGTH_PENALTY_FACTOR
    return max(0.0, average - penalty)


def extract_name_components(full_name: Optional[str]) -> NameComponents:
    """
    Split a full name into first, middle and last by position.

    One token is a first name only, two are first + last, and three or
    more put everything between the first and last token into the middle.
    """
    parts = normalize_name(full_name).split()
    if not parts:
        return NameComponents("", "", "")
    if len(parts) == 1:
        return NameComponents(parts[0], "", "")
    if len(parts) == 2:
        return NameComponents(parts[0], "", parts[1])
    return NameComponents(parts[0], " ".join(parts[1:-1]), parts[-1])


def indian_name_similarity(name1: Optional[str], name2: Optional[str]) -> float:
    """
    Compare full names component by component.

    Weights are 0.4/0.2/0.4 for first/middle/last when both names carry a
    middle component, otherwise 0.5/0.5 for first/last. A side without a
    last name scores 0 for that slot, so single-token names top out at 0.5.
    """
    if not name1 or not name2:
        return 0.0

    c1 = extract_name_components(name1)
    c2 = extract_name_components(name2)

    first_sim = string_similarity(c1.first, c2.first)
    last_sim = string_similarity(c1.last, c2.last)

    if c1.middle and c2.middle:
        middle_sim = string_similarity(c1.middle, c2.middle)
        return first_sim * 0.4 + middle_sim * 0.2 + last_sim * 0.4

    return first_sim * 0.5 + last_sim * 0.5


def date_similarity(d1: Any, d2: Any) -> float:
    """Score two dates by how many days apart they are."""
    date1 = normalize_date(d1)
    date2 = normalize_date(d2)
    if date1 is None or date2 is None:
        return 0.0
    if date1 == date2:
        return 1.0

    days = abs((date1 - date2).days)
    for max_days, score in DATE_DECAY_STEPS:
        if days <= max_days:
            return score
    return 0.0


def address_similarity(address1: Optional[str], address2: Optional[str]) -> float:
    """
    Compare two free-text addresses.

    Blends the token overlap ratio (Dice coefficient over tokens longer
    than one character) at 0.6 with string similarity at 0.4.
    """
    n1 = normalize_address(address1)
    n2 = normalize_address(address2)
    if not n1 or not n2:
        return 0.0
    if n1 == n2:
        return 1.0

    tokens1 = [t for t in n1.split(" ") if len(t) > 1]
    tokens2 = [t for t in n2.split(" ") if len(t) > 1]
    if not tokens1 or not tokens2:
        return 0.0

    common = [t for t in tokens1 if t in tokens2]
    # Repeated tokens can push the raw ratio past 1
    overlap_ratio = min(1.0, (2 * len(common)) / (len(tokens1) + len(tokens2)))

    return overlap_ratio * 0.6 + string_similarity(n1, n2) * 0.4


def weighted_aggregate(scores: Sequence[WeightedScore]) -> float:
    """
    Compute the weighted mean of scores.

    Returns 0.0 for an empty sequence or when all weights are zero.
    """
    total_weight = 0.0
    total = 0.0
    for item in scores:
        total += item.score * item.weight
        total_weight += item.weight

    if total_weight <= 0:
        return 0.0
    return total / total_weight

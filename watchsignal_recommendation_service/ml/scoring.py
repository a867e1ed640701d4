"""Rule-based scoring for the recommendation algorithms.

All functions are pure: they take plain values, return finite,
non-negative floats, and never touch the store.
"""
from collections import Counter
from typing import Dict, Iterable, List, Optional, Sequence

# Content-based weights. They sum to 100 so that content-based scores stay
# on the same 0-100 scale as the hybrid combiner.
GENRE_MATCH_POINTS = 40
DIRECTOR_MATCH_POINTS = 30
CAST_MATCH_POINTS = 20
STUDIO_MATCH_POINTS = 10

PREFERRED_GENRE_COUNT = 3
PREFERRED_GENRE_STEP = 30

COLD_START_RATING_WEIGHT = 50
COLD_START_AGE_WEIGHT = 5

HYBRID_WEIGHTS: Dict[str, float] = {
    "collaborative": 0.4,
    "personalized": 0.4,
    "trending": 0.2,
}


def content_similarity_score(
    source_genres: Iterable[str],
    source_director: Optional[str],
    source_cast: Iterable[str],
    source_studio: Optional[str],
    genres: Iterable[str],
    director: Optional[str],
    cast: Iterable[str],
    studio: Optional[str],
) -> int:
    """
    Score how alike two catalog items are.

    Director and studio only match when both sides carry a value.

    Returns:
        Integer score in [0, 100]
    """
    score = 0
    if set(source_genres or ()) & set(genres or ()):
        score += GENRE_MATCH_POINTS
    if source_director and source_director == director:
        score += DIRECTOR_MATCH_POINTS
    if set(source_cast or ()) & set(cast or ()):
        score += CAST_MATCH_POINTS
    if source_studio and source_studio == studio:
        score += STUDIO_MATCH_POINTS
    return score


def top_genres(genre_lists: Iterable[Iterable[str]], n: int = PREFERRED_GENRE_COUNT) -> List[str]:
    """
    Most frequent genres across the given genre lists.

    Ties keep first-appearance order.
    """
    counts: Counter = Counter()
    for genres in genre_lists:
        counts.update(genres or ())
    return [genre for genre, _ in counts.most_common(n)]


def personalization_score(genres: Iterable[str], preferred_genres: Sequence[str]) -> int:
    """
    Sum of rank bonuses for every preferred genre the item carries.

    Rank 0 is worth 90, rank 1 60, rank 2 30.
    """
    score = 0
    for genre in set(genres or ()):
        if genre in preferred_genres:
            rank = preferred_genres.index(genre)
            score += max(PREFERRED_GENRE_COUNT - rank, 0) * PREFERRED_GENRE_STEP
    return score


def cold_start_score(avg_rating: Optional[float], release_year: Optional[int], current_year: int) -> float:
    """
    Catalog-quality score for users without history.

    The age term grows with age, so older titles are not buried under new
    releases. A missing release year counts as age 0; the total never goes
    below zero (future release years).
    """
    age = (current_year - release_year) if release_year is not None else 0
    score = (avg_rating or 0.0) * COLD_START_RATING_WEIGHT + age * COLD_START_AGE_WEIGHT
    return float(max(score, 0.0))


def rank_decay_contribution(weight: float, idx: int, limit: int) -> float:
    """
    Weighted contribution of the item at position ``idx`` in a ranked list.

    Decays linearly from ``weight * 100`` at the top of the list.
    """
    if limit <= 0:
        return 0.0
    return weight * (1 - idx / limit) * 100


def rank_order_score(idx: int, limit: int) -> float:
    """Score for lists that are ordered but carry no numeric score."""
    return float(max(limit - idx, 0))

from __future__ import annotations

import math
from datetime import datetime, timezone

import numpy as np
from sklearn.metrics.pairwise import cosine_similarity

from mindweave.constants import (
    NOVELTY_DAY_DAYS,
    NOVELTY_NEVER_VIEWED,
    NOVELTY_VIEWED_LONG_AGO,
    NOVELTY_VIEWED_THIS_WEEK,
    NOVELTY_VIEWED_TODAY,
    NOVELTY_WEEK_DAYS,
    NOVELTY_WEIGHT,
    RECENCY_DECAY_DAYS,
    RECENCY_WEIGHT,
    SECONDS_PER_DAY,
    SIMILAR_DEFAULT_LIMIT,
    SIMILAR_DEFAULT_MIN_SIMILARITY,
    SIMILARITY_WEIGHT,
)
from mindweave.models import Recommendation
from mindweave.store import ContentStore


def _as_utc(dt: datetime) -> datetime:
    # Naive timestamps are taken as UTC, same as store.parse_timestamp
    return dt.replace(tzinfo=timezone.utc) if dt.tzinfo is None else dt


def _days_between(earlier: datetime, later: datetime) -> float:
    return (_as_utc(later) - _as_utc(earlier)).total_seconds() / SECONDS_PER_DAY


def recency_factor(content_created_at: datetime, now: datetime) -> float:
    """exp(-age/90) with age in days; future timestamps count as age 0."""
    age_in_days = max(0.0, _days_between(content_created_at, now))
    return math.exp(-age_in_days / RECENCY_DECAY_DAYS)


def novelty_bonus(last_viewed_at: datetime | None, now: datetime) -> float:
    if last_viewed_at is None:
        return NOVELTY_NEVER_VIEWED
    view_age_in_days = _days_between(last_viewed_at, now)
    if view_age_in_days > NOVELTY_WEEK_DAYS:
        return NOVELTY_VIEWED_LONG_AGO
    if view_age_in_days >= NOVELTY_DAY_DAYS:
        return NOVELTY_VIEWED_THIS_WEEK
    return NOVELTY_VIEWED_TODAY


def calculate_blended_score(
    similarity: float,
    content_created_at: datetime,
    last_viewed_at: datetime | None,
    now: datetime,
) -> float:
    """
    Rank score blending semantic similarity with recency and novelty.

    similarity * 0.5 + recency * 0.2 + novelty * 0.3, so inputs in their
    expected ranges give a score in [0, 1].
    """
    return (
        similarity * SIMILARITY_WEIGHT
        + recency_factor(content_created_at, now) * RECENCY_WEIGHT
        + novelty_bonus(last_viewed_at, now) * NOVELTY_WEIGHT
    )


def find_similar(
    store: ContentStore,
    user_id: str,
    content_id: str,
    limit: int = SIMILAR_DEFAULT_LIMIT,
    min_similarity: float = SIMILAR_DEFAULT_MIN_SIMILARITY,
) -> list[Recommendation]:
    """
    Nearest neighbours of one item among the user's embedded content.

    Candidates with a different dimension or non-finite values are skipped.
    """
    seed = store.get_content(user_id, content_id)
    if seed is None or seed.embedding is None:
        return []

    seed_vec = np.asarray(seed.embedding, dtype=np.float64)
    if seed_vec.size == 0 or not np.all(np.isfinite(seed_vec)):
        return []

    candidates = []
    vectors = []
    for item in store.list_content(user_id):
        if item.id == content_id or item.embedding is None:
            continue
        vec = np.asarray(item.embedding, dtype=np.float64)
        if vec.shape != seed_vec.shape or not np.all(np.isfinite(vec)):
            continue
        candidates.append(item)
        vectors.append(vec)

    if not candidates:
        return []

    sims = cosine_similarity(seed_vec.reshape(1, -1), np.vstack(vectors))[0]

    results: list[Recommendation] = []
    for item, sim in zip(candidates, sims):
        similarity = float(sim) if np.isfinite(sim) else 0.0
        if similarity >= min_similarity:
            results.append(Recommendation(item=item, similarity=similarity))

    results.sort(key=lambda r: r.similarity, reverse=True)
    return results[: max(0, limit)]

"""
Discovery feeds built on the blended recommendation score.

Each feed picks seed items, expands them through embedding neighbours, drops
what the user has just seen, and ranks the rest with calculate_blended_score.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import datetime, timedelta, timezone

from mindweave.constants import (
    ACTIVITY_EXCLUDE_HOURS,
    ACTIVITY_MIN_SIMILARITY,
    ACTIVITY_NEIGHBORS,
    ACTIVITY_SEED_COUNT,
    BLENDED_MIN_SIMILARITY,
    BLENDED_NEIGHBORS,
    BLENDED_SEED_COUNT,
    DISCOVER_MAX_LIMIT,
    DISCOVER_MIN_LIMIT,
    REDISCOVER_MIN_SIMILARITY,
    REDISCOVER_NEIGHBORS,
    REDISCOVER_SEED_COUNT,
    STALE_CONTENT_DAYS,
    UNEXPLORED_CANDIDATE_FACTOR,
    UNEXPLORED_SIMILARITY,
)
from mindweave.logging_config import get_logger
from mindweave.models import ContentItem, DiscoverResponse, DiscoverResult
from mindweave.recommendations import calculate_blended_score, find_similar
from mindweave.store import ContentStore, last_viewed_map

logger = get_logger(__name__)


def clamp_limit(limit: int) -> int:
    return min(max(DISCOVER_MIN_LIMIT, limit), DISCOVER_MAX_LIMIT)


def _now(now: datetime | None) -> datetime:
    return now or datetime.now(timezone.utc)


def _top(results: list[DiscoverResult], limit: int) -> list[DiscoverResult]:
    return sorted(results, key=lambda r: r.score, reverse=True)[: clamp_limit(limit)]


def _most_recent_seeds(last_viewed: dict[str, datetime], count: int) -> list[str]:
    ordered = sorted(last_viewed.items(), key=lambda kv: kv[1], reverse=True)
    return [content_id for content_id, _ in ordered[:count]]


def _expand_seeds(
    store: ContentStore,
    user_id: str,
    seeds: Iterable[str],
    neighbors: int,
    min_similarity: float,
    now: datetime,
    last_viewed: dict[str, datetime] | None,
    exclude: set[str],
    keep: Callable[[ContentItem], bool] | None = None,
) -> list[DiscoverResult]:
    """
    Score the neighbours of every seed once each.

    Seeds themselves and ids in exclude are skipped. When last_viewed is None
    every item is scored as never viewed.
    """
    seeds = list(seeds)
    seen = set(seeds)
    results: list[DiscoverResult] = []

    for seed_id in seeds:
        for rec in find_similar(store, user_id, seed_id, neighbors, min_similarity):
            if rec.item.id in seen or rec.item.id in exclude:
                continue
            seen.add(rec.item.id)
            if keep is not None and not keep(rec.item):
                continue

            viewed_at = last_viewed.get(rec.item.id) if last_viewed is not None else None
            results.append(
                DiscoverResult(
                    item=rec.item,
                    similarity=rec.similarity,
                    score=calculate_blended_score(
                        rec.similarity, rec.item.created_at, viewed_at, now
                    ),
                    last_viewed_at=viewed_at,
                )
            )
    return results


def activity_recommendations(
    store: ContentStore,
    user_id: str,
    limit: int = 8,
    now: datetime | None = None,
) -> DiscoverResponse:
    """Neighbours of the user's most recently viewed items."""
    now = _now(now)
    try:
        last_viewed = last_viewed_map(store.list_views(user_id))
        seeds = _most_recent_seeds(last_viewed, ACTIVITY_SEED_COUNT)
        if not seeds:
            return DiscoverResponse(success=True)

        threshold = now - timedelta(hours=ACTIVITY_EXCLUDE_HOURS)
        just_viewed = {cid for cid, ts in last_viewed.items() if ts >= threshold}

        results = _expand_seeds(
            store,
            user_id,
            seeds,
            ACTIVITY_NEIGHBORS,
            ACTIVITY_MIN_SIMILARITY,
            now,
            last_viewed,
            exclude=just_viewed,
        )
        return DiscoverResponse(success=True, results=_top(results, limit))
    except Exception as e:
        logger.error("activity recommendations failed", user_id=user_id, error=str(e))
        return DiscoverResponse(success=False, message="Failed to get recommendations.")


def unexplored_topics(
    store: ContentStore,
    user_id: str,
    limit: int = 8,
    now: datetime | None = None,
) -> DiscoverResponse:
    """Recent items whose tags share nothing with what the user read lately."""
    now = _now(now)
    try:
        window_start = now - timedelta(days=STALE_CONTENT_DAYS)
        viewed_ids = {
            view.content_id
            for view in store.list_views(user_id)
            if view.viewed_at >= window_start
        }

        viewed_tags: set[str] = set()
        for content_id in viewed_ids:
            item = store.get_content(user_id, content_id)
            if item is not None:
                viewed_tags.update(tag.lower() for tag in item.all_tags)

        if not viewed_tags:
            return DiscoverResponse(success=True)

        valid_limit = clamp_limit(limit)
        candidates = sorted(
            (item for item in store.list_content(user_id) if item.id not in viewed_ids),
            key=lambda item: item.created_at,
            reverse=True,
        )[: valid_limit * UNEXPLORED_CANDIDATE_FACTOR]

        results: list[DiscoverResult] = []
        for item in candidates:
            tags = item.all_tags
            if not tags or any(tag.lower() in viewed_tags for tag in tags):
                continue
            results.append(
                DiscoverResult(
                    item=item,
                    similarity=0.0,
                    score=calculate_blended_score(
                        UNEXPLORED_SIMILARITY, item.created_at, None, now
                    ),
                )
            )
        return DiscoverResponse(success=True, results=results[:valid_limit])
    except Exception as e:
        logger.error("unexplored topics failed", user_id=user_id, error=str(e))
        return DiscoverResponse(success=False, message="Failed to get unexplored topics.")


def rediscover(
    store: ContentStore,
    user_id: str,
    limit: int = 8,
    now: datetime | None = None,
) -> DiscoverResponse:
    """Old, unvisited items similar to what the user is reading now."""
    now = _now(now)
    try:
        last_viewed = last_viewed_map(store.list_views(user_id))
        seeds = _most_recent_seeds(last_viewed, REDISCOVER_SEED_COUNT)
        if not seeds:
            return DiscoverResponse(success=True)

        cutoff = now - timedelta(days=STALE_CONTENT_DAYS)
        recently_viewed = {cid for cid, ts in last_viewed.items() if ts >= cutoff}

        results = _expand_seeds(
            store,
            user_id,
            seeds,
            REDISCOVER_NEIGHBORS,
            REDISCOVER_MIN_SIMILARITY,
            now,
            None,
            exclude=set(),
            keep=lambda item: item.created_at < cutoff and item.id not in recently_viewed,
        )
        return DiscoverResponse(success=True, results=_top(results, limit))
    except Exception as e:
        logger.error("rediscover failed", user_id=user_id, error=str(e))
        return DiscoverResponse(success=False, message="Failed to get rediscover content.")


def blended_recommendations(
    store: ContentStore,
    user_id: str,
    limit: int = 6,
    now: datetime | None = None,
) -> DiscoverResponse:
    """Dashboard feed: neighbours of the user's newest captures."""
    now = _now(now)
    try:
        newest = sorted(
            store.list_content(user_id), key=lambda item: item.created_at, reverse=True
        )[:BLENDED_SEED_COUNT]
        if not newest:
            return DiscoverResponse(success=True)

        results = _expand_seeds(
            store,
            user_id,
            [item.id for item in newest],
            BLENDED_NEIGHBORS,
            BLENDED_MIN_SIMILARITY,
            now,
            last_viewed_map(store.list_views(user_id)),
            exclude=set(),
        )
        return DiscoverResponse(success=True, results=_top(results, limit))
    except Exception as e:
        logger.error("blended recommendations failed", user_id=user_id, error=str(e))
        return DiscoverResponse(success=False, message="Failed to get recommendations.")

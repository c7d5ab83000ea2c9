from __future__ import annotations

import math
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeAlias

import httpx
import numpy as np
from numpy.typing import NDArray

from mindweave.config import get_anthropic_api_key
from mindweave.constants import (
    CLUSTER_PREVIEW_COUNT,
    DEFAULT_CLUSTER_COUNT,
    DEFAULT_CLUSTER_DESCRIPTION,
    DEFAULT_CLUSTER_NAME,
    KMEANS_MAX_ITERATIONS,
    LLM_CLUSTER_MAX_TOKENS,
    LLM_CLUSTER_NAME_MODEL,
    LLM_CLUSTER_TITLE_SAMPLES,
    MAX_CLUSTERS,
    MIN_ITEMS_TO_CLUSTER,
)
from mindweave.llm_utils import generate_text, parse_cluster_name
from mindweave.logging_config import get_logger
from mindweave.models import ContentCluster, ContentPreview, EmbeddedContent
from mindweave.store import ContentStore

logger = get_logger(__name__)

ClusterNamer: TypeAlias = Callable[[Sequence[EmbeddedContent]], Awaitable[tuple[str, str]]]


def euclidean_distance(a: Sequence[float] | NDArray, b: Sequence[float] | NDArray) -> float:
    return float(np.linalg.norm(np.asarray(a, dtype=np.float64) - np.asarray(b, dtype=np.float64)))


def _distances_to_centroids(
    data: NDArray[np.float64], centroids: NDArray[np.float64]
) -> NDArray[np.float64]:
    """Euclidean distances, shape (n_points, n_centroids)."""
    return np.linalg.norm(data[:, None, :] - centroids[None, :, :], axis=2)


def initialize_centroids(
    data: NDArray[np.float64],
    k: int,
    rng: np.random.Generator | None = None,
) -> NDArray[np.float64]:
    """
    k-means++ seeding.

    The first centroid is a uniformly random point; each further centroid is
    drawn with probability proportional to the squared distance from the
    point to its nearest chosen centroid.
    """
    rng = rng or np.random.default_rng()
    n = len(data)
    centroids = [data[int(rng.integers(n))].copy()]

    for _ in range(1, k):
        nearest = _distances_to_centroids(data, np.array(centroids)).min(axis=1)
        weights = nearest**2
        draw = rng.random() * float(weights.sum())
        # First index whose running total reaches the draw
        idx = int(np.searchsorted(np.cumsum(weights), draw, side="left"))
        centroids.append(data[min(idx, n - 1)].copy())

    return np.array(centroids, dtype=np.float64)


def assign_clusters(
    data: NDArray[np.float64], centroids: NDArray[np.float64]
) -> NDArray[np.int64]:
    """Index of the nearest centroid per point; ties go to the lowest index."""
    return np.argmin(_distances_to_centroids(data, centroids), axis=1).astype(np.int64)


def update_centroids(
    data: NDArray[np.float64],
    assignments: NDArray[np.int64],
    previous: NDArray[np.float64],
) -> NDArray[np.float64]:
    """Mean of each cluster's points. Empty clusters keep their previous centroid."""
    centroids = previous.copy()
    for cluster in range(len(previous)):
        mask = assignments == cluster
        if mask.any():
            centroids[cluster] = data[mask].mean(axis=0)
    return centroids


def k_means(
    data: NDArray[np.float64],
    k: int,
    max_iterations: int = KMEANS_MAX_ITERATIONS,
    rng: np.random.Generator | None = None,
) -> tuple[NDArray[np.float64], NDArray[np.int64]]:
    """
    Lloyd's k-means with k-means++ seeding.

    Returns (centroids, assignments). Stops when the assignment vector is
    unchanged between iterations or after max_iterations.
    """
    data = np.asarray(data, dtype=np.float64)
    if len(data) == 0 or k <= 0:
        return np.empty((0, data.shape[1] if data.ndim == 2 else 0)), np.array(
            [], dtype=np.int64
        )

    k = min(k, len(data))
    centroids = initialize_centroids(data, k, rng)
    assignments: NDArray[np.int64] | None = None

    for _ in range(max_iterations):
        new_assignments = assign_clusters(data, centroids)
        if assignments is not None and np.array_equal(assignments, new_assignments):
            break
        assignments = new_assignments
        centroids = update_centroids(data, assignments, centroids)

    if assignments is None:
        assignments = assign_clusters(data, centroids)
    return centroids, assignments


def effective_cluster_count(requested: int, n_items: int) -> int:
    """Clamp k by sqrt(N) and the naming budget; never below 1."""
    return max(1, min(requested, math.isqrt(n_items), MAX_CLUSTERS))


def _build_naming_prompt(items: Sequence[EmbeddedContent]) -> str:
    titles = ", ".join(item.title for item in items[:LLM_CLUSTER_TITLE_SAMPLES])
    types = ", ".join(dict.fromkeys(item.type for item in items))
    return (
        "Based on these content items, suggest a short cluster name (2-4 words) "
        "and brief description (1 sentence).\n\n"
        f"Content titles: {titles}\n"
        f"Content types: {types}\n\n"
        "Respond in JSON format:\n"
        '{"name": "cluster name", "description": "brief description"}'
    )


async def generate_cluster_name(
    items: Sequence[EmbeddedContent],
    api_key: str | None = None,
    client: httpx.AsyncClient | None = None,
) -> tuple[str, str]:
    """Ask the LLM for a (name, description) pair; defaults on any failure."""
    api_key = api_key or get_anthropic_api_key()
    if not api_key:
        logger.warning("ANTHROPIC_API_KEY not set, using default cluster name")
        return DEFAULT_CLUSTER_NAME, DEFAULT_CLUSTER_DESCRIPTION

    try:
        text = await generate_text(
            _build_naming_prompt(items),
            model=LLM_CLUSTER_NAME_MODEL,
            max_tokens=LLM_CLUSTER_MAX_TOKENS,
            api_key=api_key,
            client=client,
        )
    except Exception as e:
        logger.error("cluster name generation failed", error=str(e))
        return DEFAULT_CLUSTER_NAME, DEFAULT_CLUSTER_DESCRIPTION

    return parse_cluster_name(text)


def _preview(item: EmbeddedContent) -> ContentPreview:
    return {"id": item.content_id, "title": item.title, "type": item.type}


async def cluster_content(
    store: ContentStore,
    user_id: str,
    num_clusters: int = DEFAULT_CLUSTER_COUNT,
    namer: ClusterNamer | None = None,
    rng: np.random.Generator | None = None,
) -> list[ContentCluster]:
    """
    Group a user's embedded content into named clusters, largest first.

    Never raises: a failed fetch yields [] and a failed naming call yields the
    default name for that cluster only.
    """
    namer = namer or generate_cluster_name

    try:
        rows = store.fetch_embedded_content(user_id)
        if len(rows) < MIN_ITEMS_TO_CLUSTER:
            return []

        data = np.array([row.embedding for row in rows], dtype=np.float64)
        if data.ndim != 2:
            raise ValueError("embeddings have inconsistent dimensions")

        k = effective_cluster_count(num_clusters, len(rows))
        _, assignments = k_means(data, k, rng=rng)

        groups: dict[int, list[EmbeddedContent]] = {}
        for row, label in zip(rows, assignments):
            groups.setdefault(int(label), []).append(row)

        clusters: list[ContentCluster] = []
        for label, items in groups.items():
            try:
                name, description = await namer(items)
            except Exception as e:
                logger.error("cluster naming failed", cluster=label, error=str(e))
                name, description = DEFAULT_CLUSTER_NAME, DEFAULT_CLUSTER_DESCRIPTION

            clusters.append(
                ContentCluster(
                    id=f"cluster-{label}",
                    name=name,
                    description=description,
                    content_ids=[item.content_id for item in items],
                    content_previews=[
                        _preview(item) for item in items[:CLUSTER_PREVIEW_COUNT]
                    ],
                    size=len(items),
                )
            )

        clusters.sort(key=lambda c: c.size, reverse=True)
        logger.info(
            "clustered content", user_id=user_id, items=len(rows), clusters=len(clusters)
        )
        return clusters
    except Exception as e:
        logger.error("content clustering failed", user_id=user_id, error=str(e))
        return []


async def get_content_cluster(
    store: ContentStore,
    user_id: str,
    content_id: str,
    namer: ClusterNamer | None = None,
    rng: np.random.Generator | None = None,
) -> ContentCluster | None:
    """The cluster containing content_id, or None."""
    clusters = await cluster_content(store, user_id, namer=namer, rng=rng)
    return next((c for c in clusters if content_id in c.content_ids), None)

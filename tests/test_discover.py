"""Tests for the discovery feeds."""

from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from factories import NOW, make_item, make_view
from mindweave import discover
from mindweave.recommendations import calculate_blended_score
from mindweave.store import InMemoryContentStore


@pytest.mark.parametrize("limit, expected", [(-5, 1), (0, 1), (1, 1), (8, 8), (20, 20), (99, 20)])
def test_clamp_limit(limit, expected):
    assert discover.clamp_limit(limit) == expected


# =============================================================================
# Activity-based
# =============================================================================


def test_activity_no_views_is_empty(store):
    response = discover.activity_recommendations(store, "nobody", now=NOW)
    assert response.success is True
    assert response.results == []


def test_activity_skips_seeds(store):
    # Seeds: py-1 (viewed 0.1d ago), ck-1 (2d ago)
    response = discover.activity_recommendations(store, "u1", now=NOW)

    assert response.success
    ids = [r.item.id for r in response.results]
    assert set(ids) == {"py-2", "py-3", "ck-2"}
    scores = [r.score for r in response.results]
    assert scores == sorted(scores, reverse=True)


def test_activity_drops_neighbours_viewed_in_last_day():
    # All vectors identical, so neighbour order follows insertion order
    items = [
        make_item("old", [1.0, 0.0]),
        make_item("hot", [1.0, 0.0]),
        make_item("cold", [1.0, 0.0]),
    ] + [make_item(f"s{i}", [1.0, 0.0]) for i in range(5)]
    views = [make_view(f"s{i}", (i + 1) / 24) for i in range(5)]
    views += [make_view("hot", 20 / 24), make_view("old", 10)]
    store = InMemoryContentStore({"u": items}, {"u": views})

    response = discover.activity_recommendations(store, "u", limit=20, now=NOW)

    # s0..s4 are the seeds; "hot" was viewed 20 hours ago
    assert [r.item.id for r in response.results] == ["cold", "old"]
    cold, old = response.results
    assert cold.last_viewed_at is None
    assert old.last_viewed_at == NOW - timedelta(days=10)
    assert cold.score - old.score == pytest.approx((1.0 - 0.67) * 0.3)


def test_activity_limit_applied(store):
    response = discover.activity_recommendations(store, "u1", limit=1, now=NOW)
    assert len(response.results) == 1


def test_activity_store_error():
    store = MagicMock()
    store.list_views.side_effect = RuntimeError("db down")

    response = discover.activity_recommendations(store, "u", now=NOW)

    assert response.success is False
    assert response.results == []
    assert response.message == "Failed to get recommendations."


# =============================================================================
# Unexplored topics
# =============================================================================


def test_unexplored_returns_items_with_new_tags():
    items = [
        make_item("seen", None, days_old=5, tags=["python"]),
        make_item("overlap", None, days_old=1, tags=["Python", "web"]),
        make_item("untagged", None, days_old=1),
        make_item("fresh", None, days_old=2, tags=["gardening"]),
        make_item("auto", None, days_old=3, auto_tags=["Music"]),
    ]
    store = InMemoryContentStore({"u": items}, {"u": [make_view("seen", 3)]})

    response = discover.unexplored_topics(store, "u", now=NOW)

    assert response.success
    assert [r.item.id for r in response.results] == ["fresh", "auto"]
    fresh = response.results[0]
    assert fresh.similarity == 0.0
    assert fresh.last_viewed_at is None
    assert fresh.score == calculate_blended_score(0.5, fresh.item.created_at, None, NOW)


def test_unexplored_without_recent_tags_is_empty():
    items = [make_item("old", None, tags=["python"]), make_item("x", None, tags=["x"])]
    store = InMemoryContentStore({"u": items}, {"u": [make_view("old", 45)]})

    response = discover.unexplored_topics(store, "u", now=NOW)
    assert response.success
    assert response.results == []


def test_unexplored_candidate_window():
    items = [make_item("seen", None, tags=["a"])]
    # limit 1 -> only the 3 newest unseen items are considered
    items += [make_item(f"n{i}", None, days_old=i + 1, tags=["a"]) for i in range(3)]
    items.append(make_item("oldest", None, days_old=100, tags=["new-topic"]))
    store = InMemoryContentStore({"u": items}, {"u": [make_view("seen", 1)]})

    response = discover.unexplored_topics(store, "u", limit=1, now=NOW)
    assert response.success
    assert response.results == []


def test_unexplored_store_error():
    store = MagicMock()
    store.list_views.side_effect = RuntimeError("boom")

    response = discover.unexplored_topics(store, "u", now=NOW)
    assert response.success is False
    assert response.message == "Failed to get unexplored topics."


# =============================================================================
# Rediscover
# =============================================================================


def test_rediscover_keeps_old_unvisited_content(store):
    response = discover.rediscover(store, "u1", now=NOW)

    assert response.success
    ids = [r.item.id for r in response.results]
    # py-3 (60d) and ck-2 (45d) are old; py-2 is only 10 days old
    assert set(ids) == {"py-3", "ck-2"}
    assert all(r.last_viewed_at is None for r in response.results)


def test_rediscover_skips_recently_viewed_old_content():
    items = [
        make_item("seed", [1.0, 0.0], days_old=1),
        make_item("old-seen", [1.0, 0.1], days_old=90),
        make_item("old-unseen", [1.0, 0.2], days_old=90),
    ]
    views = [
        make_view("seed", 0.1),
        make_view("deleted-1", 0.2),
        make_view("deleted-2", 0.3),
        make_view("old-seen", 20),
    ]
    store = InMemoryContentStore({"u": items}, {"u": views})

    response = discover.rediscover(store, "u", now=NOW)
    assert [r.item.id for r in response.results] == ["old-unseen"]


def test_rediscover_no_views(store):
    response = discover.rediscover(store, "nobody", now=NOW)
    assert response.success and response.results == []


def test_rediscover_store_error():
    store = MagicMock()
    store.list_views.side_effect = RuntimeError("boom")

    response = discover.rediscover(store, "u", now=NOW)
    assert response.success is False
    assert response.message == "Failed to get rediscover content."


# =============================================================================
# Blended
# =============================================================================


def test_blended_seeds_are_newest_items(store):
    # Newest: no-emb (0.5d), py-1 (2d), ck-1 (3d)
    response = discover.blended_recommendations(store, "u1", now=NOW)

    assert response.success
    ids = {r.item.id for r in response.results}
    assert ids == {"py-2", "py-3", "ck-2"}


def test_blended_uses_view_history():
    items = [
        make_item("seed-1", [1.0, 0.0], days_old=0),
        make_item("seed-2", [1.0, 0.0], days_old=0.1),
        make_item("seed-3", [1.0, 0.0], days_old=0.2),
        make_item("viewed", [1.0, 0.1], days_old=5),
        make_item("unviewed", [1.0, 0.1], days_old=5),
    ]
    store = InMemoryContentStore({"u": items}, {"u": [make_view("viewed", 0.2)]})

    response = discover.blended_recommendations(store, "u", now=NOW)

    assert [r.item.id for r in response.results] == ["unviewed", "viewed"]
    unviewed, viewed = response.results
    assert viewed.last_viewed_at == NOW - timedelta(days=0.2)
    assert unviewed.score - viewed.score == pytest.approx(0.3)


def test_blended_empty_user(store):
    response = discover.blended_recommendations(store, "nobody", now=NOW)
    assert response.success and response.results == []


def test_blended_store_error():
    store = MagicMock()
    store.list_content.side_effect = RuntimeError("boom")

    response = discover.blended_recommendations(store, "u", now=NOW)
    assert response.success is False
    assert response.message == "Failed to get recommendations."

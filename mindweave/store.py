"""
Content store boundary.

Rows are decoded into typed records once, here, so the clusterer and the
discovery feeds never see raw JSON.
"""

from __future__ import annotations

import json
import math
from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from mindweave.models import ContentItem, ContentView, EmbeddedContent


class ContentStore(Protocol):
    def fetch_embedded_content(self, user_id: str) -> list[EmbeddedContent]: ...

    def list_content(self, user_id: str) -> list[ContentItem]: ...

    def get_content(self, user_id: str, content_id: str) -> ContentItem | None: ...

    def list_views(self, user_id: str) -> list[ContentView]: ...


def decode_embedding(value: object) -> list[float]:
    """Decode an embedding stored as a list or as a JSON array string."""
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError as e:
            raise ValueError(f"embedding is not valid JSON: {e}") from e
    if not isinstance(value, (list, tuple)):
        raise ValueError(f"embedding must be a list, got {type(value).__name__}")
    vector: list[float] = []
    for x in value:
        if isinstance(x, bool) or not isinstance(x, (int, float)):
            raise ValueError(f"embedding element is not a number: {x!r}")
        vector.append(float(x))
    return vector


def parse_timestamp(value: object) -> datetime:
    """Parse ISO-8601 strings or epoch seconds into aware UTC datetimes."""
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        if not math.isfinite(value):
            raise ValueError(f"timestamp is not finite: {value!r}")
        return datetime.fromtimestamp(value, tz=timezone.utc)
    elif isinstance(value, str):
        try:
            dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as e:
            raise ValueError(f"invalid timestamp: {value!r}") from e
    else:
        raise ValueError(f"invalid timestamp: {value!r}")
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def content_from_dict(d: Mapping[str, object]) -> ContentItem:
    raw_embedding = d.get("embedding")
    return ContentItem(
        id=str(d["id"]),
        title=str(d.get("title") or ""),
        type=str(d.get("type") or "note"),
        created_at=parse_timestamp(d.get("createdAt", d.get("created_at"))),
        tags=[str(t) for t in d.get("tags") or []],  # type: ignore[union-attr]
        auto_tags=[
            str(t) for t in d.get("autoTags", d.get("auto_tags")) or []  # type: ignore[union-attr]
        ],
        body=str(d["body"]) if d.get("body") is not None else None,
        url=str(d["url"]) if d.get("url") is not None else None,
        embedding=decode_embedding(raw_embedding) if raw_embedding is not None else None,
    )


def view_from_dict(d: Mapping[str, object]) -> ContentView:
    return ContentView(
        content_id=str(d.get("contentId", d.get("content_id"))),
        viewed_at=parse_timestamp(d.get("viewedAt", d.get("viewed_at"))),
    )


def last_viewed_map(views: Iterable[ContentView]) -> dict[str, datetime]:
    """Latest view time per content id."""
    latest: dict[str, datetime] = {}
    for view in views:
        prev = latest.get(view.content_id)
        if prev is None or view.viewed_at > prev:
            latest[view.content_id] = view.viewed_at
    return latest


class InMemoryContentStore:
    """ContentStore backed by plain dicts; also loads JSON exports."""

    def __init__(
        self,
        content: Mapping[str, Sequence[ContentItem]] | None = None,
        views: Mapping[str, Sequence[ContentView]] | None = None,
    ) -> None:
        self._content: dict[str, list[ContentItem]] = {
            uid: list(items) for uid, items in (content or {}).items()
        }
        self._views: dict[str, list[ContentView]] = {
            uid: list(v) for uid, v in (views or {}).items()
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> InMemoryContentStore:
        users = data.get("users")
        if not isinstance(users, dict):
            raise ValueError("export must contain a 'users' object")
        content: dict[str, list[ContentItem]] = {}
        views: dict[str, list[ContentView]] = {}
        for uid, user_data in users.items():
            if not isinstance(user_data, dict):
                raise ValueError(f"user {uid!r} must be an object")
            content[str(uid)] = [
                content_from_dict(row) for row in user_data.get("content") or []
            ]
            views[str(uid)] = [view_from_dict(row) for row in user_data.get("views") or []]
        return cls(content, views)

    @classmethod
    def from_json(cls, path: Path) -> InMemoryContentStore:
        with open(path, "r") as f:
            return cls.from_dict(json.load(f))

    def add_content(self, user_id: str, item: ContentItem) -> None:
        self._content.setdefault(user_id, []).append(item)

    def add_view(self, user_id: str, view: ContentView) -> None:
        self._views.setdefault(user_id, []).append(view)

    def fetch_embedded_content(self, user_id: str) -> list[EmbeddedContent]:
        return [
            EmbeddedContent(
                content_id=item.id,
                title=item.title,
                type=item.type,
                embedding=item.embedding,
            )
            for item in self._content.get(user_id, [])
            if item.embedding is not None
        ]

    def list_content(self, user_id: str) -> list[ContentItem]:
        return list(self._content.get(user_id, []))

    def get_content(self, user_id: str, content_id: str) -> ContentItem | None:
        for item in self._content.get(user_id, []):
            if item.id == content_id:
                return item
        return None

    def list_views(self, user_id: str) -> list[ContentView]:
        return list(self._views.get(user_id, []))

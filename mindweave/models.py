"""Typed data models for Mindweave discovery."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, TypedDict


class ContentPreview(TypedDict):
    """Short item summary shown inside a cluster card."""

    id: str
    title: str
    type: str


class ContentClusterDict(TypedDict):
    """Serialized ContentCluster payload for API boundaries."""

    id: str
    name: str
    description: str
    contentIds: list[str]
    contentPreviews: list[ContentPreview]
    size: int


@dataclass
class ContentItem:
    """A captured note, link or file owned by a user."""

    id: str
    title: str
    type: str
    created_at: datetime
    tags: list[str] = field(default_factory=list)
    auto_tags: list[str] = field(default_factory=list)
    body: Optional[str] = None
    url: Optional[str] = None
    embedding: Optional[list[float]] = None

    @property
    def all_tags(self) -> list[str]:
        return [*self.tags, *self.auto_tags]


@dataclass(frozen=True)
class EmbeddedContent:
    """Row fed to the clusterer: an item with its embedding vector."""

    content_id: str
    title: str
    type: str
    embedding: list[float]


@dataclass(frozen=True)
class ContentView:
    content_id: str
    viewed_at: datetime


@dataclass
class ContentCluster:
    """A named group of similar content items."""

    id: str
    name: str
    description: str
    content_ids: list[str]
    content_previews: list[ContentPreview]
    size: int

    def to_dict(self) -> ContentClusterDict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "contentIds": list(self.content_ids),
            "contentPreviews": list(self.content_previews),
            "size": self.size,
        }


@dataclass
class Recommendation:
    """A neighbour of a seed item, with its cosine similarity."""

    item: ContentItem
    similarity: float


@dataclass
class DiscoverResult:
    """A scored recommendation ready for display."""

    item: ContentItem
    similarity: float
    score: float
    last_viewed_at: Optional[datetime] = None

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.item.id,
            "title": self.item.title,
            "body": self.item.body,
            "type": self.item.type,
            "tags": list(self.item.tags),
            "autoTags": list(self.item.auto_tags),
            "url": self.item.url,
            "createdAt": self.item.created_at.isoformat(),
            "similarity": self.similarity,
            "score": self.score,
            "lastViewedAt": self.last_viewed_at.isoformat()
            if self.last_viewed_at
            else None,
        }


@dataclass
class DiscoverResponse:
    success: bool
    results: list[DiscoverResult] = field(default_factory=list)
    message: Optional[str] = None

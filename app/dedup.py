"""Deduplication of media items across paged loads.

A :class:`SeenIds` context records the composite key (``source-id``) of every
item already handed to the caller for one media type. It is owned by the
caller's session, passed into each fetch and cleared when a new top-level
query starts. Concurrent fetches of the same media type must not share one
context.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator

from .models import MEDIA_TYPES, MediaItem, MediaType


@dataclass
class SeenIds:
    """Composite keys already returned for one media type."""

    keys: set[str] = field(default_factory=set)

    def __contains__(self, key: object) -> bool:
        return key in self.keys

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys)

    def __len__(self) -> int:
        return len(self.keys)

    def add(self, key: str) -> None:
        self.keys.add(key)

    def clear(self) -> None:
        self.keys.clear()


@dataclass
class SeenIdRegistry:
    """One :class:`SeenIds` context per media type."""

    contexts: dict[str, SeenIds] = field(
        default_factory=lambda: {media_type: SeenIds() for media_type in MEDIA_TYPES}
    )

    def for_type(self, media_type: MediaType) -> SeenIds:
        return self.contexts[media_type]

    def clear(self) -> None:
        for context in self.contexts.values():
            context.clear()


def deduplicate(items: Iterable[MediaItem], seen: SeenIds) -> list[MediaItem]:
    """Return items not yet seen, first occurrence wins, and record them."""

    unique: dict[str, MediaItem] = {}
    for item in items:
        key = item.composite_key
        if key in unique or key in seen:
            continue
        unique[key] = item
    for key in unique:
        seen.add(key)
    return list(unique.values())

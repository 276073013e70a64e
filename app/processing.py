"""Filtering and ordering applied to merged provider results."""

from __future__ import annotations

import unicodedata
from typing import Callable, Iterable

from .models import MediaItem, MediaSource, SortKey, SourceFilter
from .query import has_license_filter


def exclusion_terms(exclude_words: str | None) -> list[str]:
    if not exclude_words:
        return []
    return [term for term in exclude_words.lower().split() if term]


def searchable_text(item: MediaItem) -> str:
    return f"{item.title.lower()} {' '.join(item.tags).lower()}"


def apply_exclusions(items: Iterable[MediaItem], exclude_words: str | None) -> list[MediaItem]:
    """Drop items whose title or tags contain any excluded term."""

    terms = exclusion_terms(exclude_words)
    if not terms:
        return list(items)
    return [
        item
        for item in items
        if not any(term in searchable_text(item) for term in terms)
    ]


def apply_license_filter(
    items: Iterable[MediaItem],
    license_filter: str | None,
    source_filter: SourceFilter = "all",
) -> list[MediaItem]:
    """Keep Openverse items with the requested licence.

    Only Openverse reports per-item licences. Pixabay items share a single
    licence and are never removed here.
    """

    items = list(items)
    if not has_license_filter(license_filter) or source_filter == "catalogB":
        return items
    return [
        item
        for item in items
        if item.source is not MediaSource.CATALOG_A or item.license == license_filter
    ]


def _title_key(item: MediaItem) -> str:
    # Accents compare as their base letter, so "éa" sorts before "eb".
    # Accents compare as their base letter, so "\u00e9a" sorts before "eb".
    normalized = unicodedata.normalize("NFKD", item.title)
    base = "".join(char for char in normalized if not unicodedata.combining(char))
    return base.casefold()


def _size_key(item: MediaItem) -> int:
    return item.size or 0


def _source_key(item: MediaItem) -> str:
    return item.source.value


_SORTS: dict[str, tuple[Callable[[MediaItem], object], bool]] = {
    "size": (_size_key, True),
    "title-asc": (_title_key, False),
    "title-desc": (_title_key, True),
    "source-asc": (_source_key, False),
    "source-desc": (_source_key, True),
}


def sort_items(items: Iterable[MediaItem], sort_by: SortKey | str) -> list[MediaItem]:
    """Return items ordered by ``sort_by``; relevance keeps provider order."""

    items = list(items)
    ordering = _SORTS.get(sort_by)
    if ordering is None:
        return items
    key, reverse = ordering
    return sorted(items, key=key, reverse=reverse)  # type: ignore[arg-type]


def post_process(
    items: Iterable[MediaItem],
    *,
    exclude_words: str | None,
    license_filter: str | None,
    sort_by: SortKey | str,
    source_filter: SourceFilter = "all",
) -> list[MediaItem]:
    filtered = apply_exclusions(items, exclude_words)
    filtered = apply_license_filter(filtered, license_filter, source_filter)
    return sort_items(filtered, sort_by)

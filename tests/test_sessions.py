"""Tests for per-session tab state."""

from __future__ import annotations

from typing import Any

import pytest

from app.dedup import SeenIds
from app.errors import FetchError
from app.models import FetchResult, MediaItem, MediaSource
from app.query import SearchParams
from app.services.aggregator import MediaAggregator
from app.sessions import SearchSession, SessionStore


class ScriptedAggregator(MediaAggregator):
    """Aggregator stub replaying queued results."""

    def __init__(self, *results: FetchResult | Exception) -> None:
        # Deliberately skip super().__init__; no providers are needed.
        self.results = list(results)
        self.calls: list[dict[str, Any]] = []

    async def fetch_media(  # type: ignore[override]
        self,
        media_type,
        page,
        query,
        exact_phrase="",
        exclude_words="",
        license_filter="all",
        sort_by="relevance",
        source_filter="all",
        seen: SeenIds | None = None,
        append: bool = False,
    ) -> FetchResult:
        self.calls.append(
            {"media_type": media_type, "page": page, "query": query, "seen": seen, "append": append}
        )
        outcome = self.results.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def page_of(*ids: str, total: int = 0) -> FetchResult:
    return FetchResult(
        items=[MediaItem(id=item_id, title=item_id, source=MediaSource.CATALOG_A) for item_id in ids],
        total=total,
    )


@pytest.mark.anyio("asyncio")
async def test_first_page_is_cached_per_query() -> None:
    aggregator = ScriptedAggregator(page_of("1", "2", total=5))
    session = SearchSession("s", aggregator)
    params = SearchParams(query="nature")

    first = await session.search("images", params)
    again = await session.search("images", SearchParams(query="nature"))

    assert again is first
    assert len(aggregator.calls) == 1
    assert aggregator.calls[0]["page"] == 1
    assert aggregator.calls[0]["append"] is False
    assert aggregator.calls[0]["seen"] is session.seen.for_type("images")
    assert first.to_payload()["hasMore"] is True


@pytest.mark.anyio("asyncio")
async def test_load_more_appends_next_page() -> None:
    aggregator = ScriptedAggregator(page_of("1", "2", total=4), page_of("3", "4", total=4))
    session = SearchSession("s", aggregator)

    await session.search("images", SearchParams(query="nature"))
    tab = await session.load_more("images")

    assert [item.id for item in tab.items] == ["1", "2", "3", "4"]
    assert tab.page == 2
    assert aggregator.calls[1]["page"] == 2
    assert aggregator.calls[1]["append"] is True
    assert tab.has_more is False


@pytest.mark.anyio("asyncio")
async def test_failed_load_more_keeps_earlier_pages() -> None:
    aggregator = ScriptedAggregator(
        page_of("1", "2", total=10), FetchError("Failed to fetch images", provider="catalogA")
    )
    session = SearchSession("s", aggregator)

    await session.search("images", SearchParams(query="nature", source_filter="catalogA"))
    with pytest.raises(FetchError):
        await session.load_more("images")

    tab = session.tabs["images"]
    assert [item.id for item in tab.items] == ["1", "2"]
    assert tab.page == 1
    assert tab.total == 10


@pytest.mark.anyio("asyncio")
async def test_new_query_resets_every_tab_and_seen_context() -> None:
    aggregator = ScriptedAggregator(page_of("1", total=1), page_of("9", total=1))
    session = SearchSession("s", aggregator)

    await session.search("images", SearchParams(query="nature"))
    session.tabs["audio"].fetched = True
    session.seen.for_type("audio").add("catalogA-old")

    tab = await session.search("images", SearchParams(query="city"))

    assert [item.id for item in tab.items] == ["9"]
    assert session.tabs["audio"].fetched is False
    assert len(session.seen.for_type("audio")) == 0


@pytest.mark.anyio("asyncio")
async def test_load_more_requires_an_active_query() -> None:
    session = SearchSession("s", ScriptedAggregator())

    with pytest.raises(ValueError):
        await session.load_more("images")


def test_store_expires_idle_sessions() -> None:
    store = SessionStore(ScriptedAggregator(), ttl_seconds=60)
    fresh = store.create()
    stale = store.create()
    stale.last_used -= 120

    assert store.get(fresh.id) is fresh
    assert store.get(stale.id) is None
    assert len(store) == 1
    assert store.drop(fresh.id) is True
    assert store.drop(fresh.id) is False

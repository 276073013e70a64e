"""Per-browser search sessions holding paged results for each media type."""

from __future__ import annotations

import asyncio
import logging
import secrets
import time
from dataclasses import dataclass, field

from .dedup import SeenIdRegistry
from .models import MEDIA_TYPES, MediaItem, MediaType
from .query import SearchParams
from .services.aggregator import MediaAggregator

logger = logging.getLogger(__name__)


@dataclass
class MediaTab:
    """Accumulated results for one media type of the current query."""

    items: list[MediaItem] = field(default_factory=list)
    page: int = 0
    total: int = 0
    fetched: bool = False

    @property
    def has_more(self) -> bool:
        return self.fetched and len(self.items) < self.total

    def reset(self) -> None:
        self.items = []
        self.page = 0
        self.total = 0
        self.fetched = False

    def to_payload(self) -> dict[str, object]:
        return {
            "items": [item.model_dump(mode="json", by_alias=True) for item in self.items],
            "page": self.page,
            "total": self.total,
            "hasMore": self.has_more,
        }


class SearchSession:
    """State of one user's browsing session.

    A new top-level query clears every tab and every seen-id context. Loading
    more pages appends to the tab; a failed load leaves earlier pages intact.
    """

    def __init__(self, session_id: str, aggregator: MediaAggregator) -> None:
        self.id = session_id
        self._aggregator = aggregator
        self.params: SearchParams | None = None
        self.tabs: dict[str, MediaTab] = {media_type: MediaTab() for media_type in MEDIA_TYPES}
        self.seen = SeenIdRegistry()
        self._locks: dict[str, asyncio.Lock] = {
            media_type: asyncio.Lock() for media_type in MEDIA_TYPES
        }
        self.last_used = time.monotonic()

    def touch(self) -> None:
        self.last_used = time.monotonic()

    def reset(self) -> None:
        for tab in self.tabs.values():
            tab.reset()
        self.seen.clear()

    def start_query(self, params: SearchParams) -> bool:
        """Switch to ``params``, clearing all state when the query changed."""

        if params == self.params:
            return False
        self.params = params
        self.reset()
        return True

    async def search(self, media_type: MediaType, params: SearchParams) -> MediaTab:
        """Return the first page for ``media_type``, fetching it at most once."""

        self.touch()
        async with self._locks[media_type]:
            self.start_query(params)
            tab = self.tabs[media_type]
            if tab.fetched:
                return tab
            result = await self._aggregator.fetch_media(
                media_type,
                1,
                params.query,
                params.exact_phrase,
                params.exclude_words,
                params.license_filter,
                params.sort_by,
                params.source_filter,
                self.seen.for_type(media_type),
                append=False,
            )
            tab.items = list(result.items)
            tab.total = result.total
            tab.page = 1
            tab.fetched = True
            return tab

    async def load_more(self, media_type: MediaType) -> MediaTab:
        """Fetch and append the next page of ``media_type``."""

        self.touch()
        if self.params is None:
            raise ValueError("No active query for this session")
        params = self.params
        async with self._locks[media_type]:
            tab = self.tabs[media_type]
            next_page = tab.page + 1
            result = await self._aggregator.fetch_media(
                media_type,
                next_page,
                params.query,
                params.exact_phrase,
                params.exclude_words,
                params.license_filter,
                params.sort_by,
                params.source_filter,
                self.seen.for_type(media_type),
                append=True,
            )
            tab.items = [*tab.items, *result.items]
            tab.page = next_page
            tab.fetched = True
            if result.total:
                tab.total = result.total
            return tab


class SessionStore:
    """In-memory registry of search sessions with idle expiry."""

    def __init__(self, aggregator: MediaAggregator, *, ttl_seconds: int = 3_600) -> None:
        self._aggregator = aggregator
        self._ttl = ttl_seconds
        self._sessions: dict[str, SearchSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def create(self) -> SearchSession:
        self.prune()
        session_id = secrets.token_urlsafe(16)
        session = SearchSession(session_id, self._aggregator)
        self._sessions[session_id] = session
        return session

    def get(self, session_id: str) -> SearchSession | None:
        self.prune()
        session = self._sessions.get(session_id)
        if session is not None:
            session.touch()
        return session

    def drop(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def prune(self) -> None:
        cutoff = time.monotonic() - self._ttl
        expired = [key for key, session in self._sessions.items() if session.last_used < cutoff]
        for key in expired:
            self._sessions.pop(key, None)
        if expired:
            logger.info("Pruned %s idle search sessions", len(expired))

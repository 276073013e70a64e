"""Fan a search out to the media providers and merge the results."""

from __future__ import annotations

import asyncio
import logging
from typing import Union

from ..config import Settings
from ..dedup import SeenIds, deduplicate
from ..errors import FetchError
from ..models import FetchResult, MediaItem, MediaSource, MediaType, SortKey, SourceFilter
from ..processing import post_process
from ..query import RELATED_PAGE_SIZE, SEARCH_PAGE_SIZE, build_search_text
from .openverse import OpenverseClient
from .pixabay import PixabayClient
from .providers import ProviderBatch

logger = logging.getLogger(__name__)

ProviderClient = Union[OpenverseClient, PixabayClient]


class MediaAggregator:
    """Run one ``(media type, page)`` search across Openverse and Pixabay.

    Providers are selected by media type and source filter. A provider is
    required when it is the only one serving the request, either because the
    caller selected it exclusively or because it alone offers the media type.
    A required failure fails the whole fetch. When both providers serve the
    request a failing one is logged and simply contributes nothing.
    """

    def __init__(
        self,
        settings: Settings,
        openverse: OpenverseClient,
        pixabay: PixabayClient,
    ) -> None:
        self._settings = settings
        self._openverse = openverse
        self._pixabay = pixabay

    def select_providers(
        self, media_type: MediaType, source_filter: SourceFilter
    ) -> list[ProviderClient]:
        clients: list[ProviderClient] = [
            client
            for client in (self._openverse, self._pixabay)
            if media_type in client.media_types
        ]
        if source_filter != "all":
            clients = [client for client in clients if client.source.value == source_filter]
        return clients

    async def fetch_media(
        self,
        media_type: MediaType,
        page: int,
        query: str,
        exact_phrase: str = "",
        exclude_words: str = "",
        license_filter: str = "all",
        sort_by: SortKey = "relevance",
        source_filter: SourceFilter = "all",
        seen: SeenIds | None = None,
        append: bool = False,
    ) -> FetchResult:
        """Return the merged, filtered, sorted and deduplicated page.

        ``seen`` is only modified once every required provider succeeded.
        Without ``append`` the context is reset first so the page starts a
        fresh listing.
        """

        if page < 1:
            raise ValueError("page must be a positive integer")

        text = build_search_text(query, exact_phrase)
        if text is None:
            return FetchResult(items=[], total=0)

        providers = self.select_providers(media_type, source_filter)
        if not providers:
            return FetchResult(items=[], total=0)

        required = source_filter != "all" or len(providers) == 1
        batches = await asyncio.gather(
            *(
                self._search_provider(
                    client,
                    media_type,
                    text,
                    page,
                    license_filter=license_filter,
                    sort_by=sort_by,
                    required=required,
                )
                for client in providers
            )
        )

        merged: list[MediaItem] = []
        counts: list[int] = []
        for batch in batches:
            if batch is None:
                continue
            merged.extend(batch.items)
            counts.append(batch.total)

        processed = post_process(
            merged,
            exclude_words=exclude_words,
            license_filter=license_filter,
            sort_by=sort_by,
            source_filter=source_filter,
        )

        if seen is None:
            seen = SeenIds()
        elif not append:
            seen.clear()
        items = deduplicate(processed, seen)
        return FetchResult(items=items, total=max(counts, default=0))

    async def _search_provider(
        self,
        client: ProviderClient,
        media_type: MediaType,
        text: str,
        page: int,
        *,
        license_filter: str,
        sort_by: SortKey,
        required: bool,
    ) -> ProviderBatch | None:
        probe_sizes = self._settings.size_probe_enabled
        try:
            if isinstance(client, OpenverseClient):
                return await client.search(
                    media_type,
                    text,
                    page,
                    page_size=SEARCH_PAGE_SIZE,
                    license_filter=license_filter,
                    probe_sizes=probe_sizes,
                )
            return await client.search(
                media_type,
                text,
                page,
                page_size=SEARCH_PAGE_SIZE,
                sort_by=sort_by,
                probe_sizes=probe_sizes,
            )
        except FetchError as exc:
            if required:
                logger.error("%s %s fetch failed: %s", client.name, media_type, exc)
                raise
            logger.warning(
                "%s %s fetch failed, continuing without it: %s",
                client.name,
                media_type,
                exc,
            )
            return None

    async def fetch_related(
        self,
        item: MediaItem,
        media_type: MediaType,
        page: int = 1,
        license_filter: str = "all",
    ) -> FetchResult:
        """Return items sharing the first tag of ``item`` from its own provider."""

        if not item.tags:
            return FetchResult(items=[], total=0)

        tag_query = item.tags[0]
        batch: ProviderBatch
        if item.source is MediaSource.CATALOG_A:
            related_type: MediaType = "audio" if media_type == "audio" else "images"
            batch = await self._openverse.search(
                related_type,
                tag_query,
                page,
                page_size=RELATED_PAGE_SIZE,
                license_filter=license_filter,
                probe_sizes=False,
            )
        else:
            related_type = "videos" if media_type == "videos" else "images"
            batch = await self._pixabay.search(
                related_type,
                tag_query,
                page,
                page_size=RELATED_PAGE_SIZE,
                probe_sizes=False,
            )

        related = [candidate for candidate in batch.items if candidate.id != item.id]
        return FetchResult(items=related, total=batch.total)

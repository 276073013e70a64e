"""Client for the Pixabay stock image and video API."""

from __future__ import annotations

import logging

import httpx

from ..config import Settings
from ..errors import MissingCredentialError
from ..models import RAW_RECORD_TYPES, MediaItem, MediaSource, MediaType, SortKey
from ..query import SEARCH_PAGE_SIZE, pixabay_params
from .providers import ProviderBatch, coerce_count, get_json, parse_records
from .size_probe import SizeProbe

logger = logging.getLogger(__name__)


class PixabayClient:
    """Search Pixabay images and videos. Requires an API key."""

    name = "Pixabay"
    source = MediaSource.CATALOG_B
    media_types: tuple[MediaType, ...] = ("images", "videos")

    _SEARCH_PATHS: dict[str, str] = {
        "images": "/api/",
        "videos": "/api/videos/",
    }

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient,
        size_probe: SizeProbe | None = None,
    ) -> None:
        self._settings = settings
        self._client = http_client
        self._size_probe = size_probe

    def require_api_key(self) -> str:
        """Return the configured key or fail before any request is issued."""

        api_key = self._settings.pixabay_api_key
        if not api_key:
            raise MissingCredentialError(
                "Pixabay API key is not set", provider=self.source.value
            )
        return api_key

    async def search(
        self,
        media_type: MediaType,
        text: str,
        page: int,
        *,
        page_size: int = SEARCH_PAGE_SIZE,
        sort_by: SortKey = "relevance",
        probe_sizes: bool = True,
    ) -> ProviderBatch:
        """Return one page of Pixabay hits mapped to media items."""

        path = self._SEARCH_PATHS.get(media_type)
        if path is None:
            raise ValueError(f"Pixabay does not provide {media_type}")
        api_key = self.require_api_key()

        payload = await get_json(
            self._client,
            path,
            provider=self.source.value,
            description=f"{media_type} from {self.name}",
            params=pixabay_params(
                text,
                page,
                api_key=api_key,
                media_type=media_type,
                page_size=page_size,
                sort_by=sort_by,
            ),
        )
        record_type = RAW_RECORD_TYPES[(self.source, media_type)]
        items = parse_records(record_type, payload.get("hits") or [], provider=self.name)
        if probe_sizes and self._size_probe is not None:
            # Video hits usually carry their size already and are skipped.
            items = await self._size_probe.fill_sizes(items, self._probe_url)

        total = coerce_count(payload.get("totalHits")) or len(items)
        logger.debug(
            "Pixabay returned %s %s for %r (page %s, total %s)",
            len(items),
            media_type,
            text,
            page,
            total,
        )
        return ProviderBatch(items=items, total=total)

    @staticmethod
    def _probe_url(item: MediaItem) -> str | None:
        return item.video_url or item.large_image_url or item.thumbnail or None

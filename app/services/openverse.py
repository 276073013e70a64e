"""Client for the Openverse Creative-Commons media API."""

from __future__ import annotations

import logging

import httpx

from ..config import Settings
from ..models import RAW_RECORD_TYPES, MediaItem, MediaSource, MediaType
from ..query import SEARCH_PAGE_SIZE, openverse_params
from .providers import ProviderBatch, coerce_count, get_json, parse_records
from .size_probe import SizeProbe

logger = logging.getLogger(__name__)


class OpenverseClient:
    """Search Openverse images and audio."""

    name = "Openverse"
    source = MediaSource.CATALOG_A
    media_types: tuple[MediaType, ...] = ("images", "audio")

    _SEARCH_PATHS: dict[str, str] = {
        "images": "/v1/images/",
        "audio": "/v1/audio/",
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

    def _headers(self) -> dict[str, str]:
        headers = {"User-Agent": f"{self._settings.app_name} (mediasearch)"}
        token = self._settings.openverse_access_token
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def search(
        self,
        media_type: MediaType,
        text: str,
        page: int,
        *,
        page_size: int = SEARCH_PAGE_SIZE,
        license_filter: str | None = None,
        probe_sizes: bool = True,
    ) -> ProviderBatch:
        """Return one page of Openverse results mapped to media items."""

        path = self._SEARCH_PATHS.get(media_type)
        if path is None:
            raise ValueError(f"Openverse does not provide {media_type}")

        payload = await get_json(
            self._client,
            path,
            provider=self.source.value,
            description=f"{media_type} from {self.name}",
            params=openverse_params(
                text, page, page_size=page_size, license_filter=license_filter
            ),
            headers=self._headers(),
        )
        record_type = RAW_RECORD_TYPES[(self.source, media_type)]
        items = parse_records(
            record_type, payload.get("results") or [], provider=self.name
        )
        if probe_sizes and self._size_probe is not None:
            items = await self._size_probe.fill_sizes(items, self._probe_url)

        total = coerce_count(payload.get("result_count")) or len(items)
        logger.debug(
            "Openverse returned %s %s for %r (page %s, total %s)",
            len(items),
            media_type,
            text,
            page,
            total,
        )
        return ProviderBatch(items=items, total=total)

    @staticmethod
    def _probe_url(item: MediaItem) -> str | None:
        return item.url or None

"""Helpers shared by the media provider clients."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

import httpx
from pydantic import ValidationError

from ..errors import ProviderHTTPError
from ..models import MediaItem, RawRecord

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ProviderBatch:
    """Container for one provider page and the reported total size."""

    items: list[MediaItem] = field(default_factory=list)
    total: int = 0


def coerce_count(value: Any) -> int:
    try:
        count = int(value)
    except (TypeError, ValueError):
        return 0
    return max(count, 0)


def parse_records(
    record_type: type[RawRecord], entries: Iterable[Any], *, provider: str
) -> list[MediaItem]:
    """Map raw provider hits to media items, skipping malformed entries."""

    items: list[MediaItem] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        try:
            record = record_type.model_validate(entry)
        except ValidationError as exc:
            logger.warning("Skipping malformed %s result: %s", provider, exc)
            continue
        items.append(record.to_media_item())
    return items


async def get_json(
    client: httpx.AsyncClient,
    path: str,
    *,
    provider: str,
    description: str,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> dict[str, Any]:
    """Issue a GET and return the JSON object, raising ``ProviderHTTPError``."""

    try:
        response = await client.get(path, params=params, headers=headers)
    except httpx.HTTPError as exc:
        raise ProviderHTTPError(
            f"Failed to fetch {description}: {exc.__class__.__name__}: {exc}",
            provider=provider,
        ) from exc

    if response.status_code >= 400:
        raise ProviderHTTPError(
            f"Failed to fetch {description}: {response.text}",
            provider=provider,
            status_code=response.status_code,
        )

    try:
        payload = response.json()
    except ValueError as exc:
        raise ProviderHTTPError(
            f"Failed to fetch {description}: response was not valid JSON",
            provider=provider,
            status_code=response.status_code,
        ) from exc
    if not isinstance(payload, dict):
        raise ProviderHTTPError(
            f"Failed to fetch {description}: unexpected response structure",
            provider=provider,
            status_code=response.status_code,
        )
    return payload

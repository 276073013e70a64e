"""Best-effort discovery of remote media sizes.

The probe walks a small state machine::

    NOT_ATTEMPTED --HEAD--> RESOLVED | HEAD_PROBE_FAILED
    HEAD_PROBE_FAILED --GET Range: bytes=0-0--> RESOLVED | RANGE_PROBE_FAILED

``RANGE_PROBE_FAILED`` is terminal and yields ``size=None``. Each transition is a
pure function of the HTTP response (or the lack of one) so the policy can be
tested without a network.
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Mapping

import httpx

from ..models import MediaItem

logger = logging.getLogger(__name__)

CONTENT_RANGE_TOTAL_RE = re.compile(r"/(\d+)\s*$")

UrlSelector = Callable[[MediaItem], "str | None"]


class ProbeState(str, Enum):
    NOT_ATTEMPTED = "not_attempted"
    HEAD_PROBE_FAILED = "head_probe_failed"
    RANGE_PROBE_FAILED = "range_probe_failed"
    RESOLVED = "resolved"


@dataclass(slots=True, frozen=True)
class ProbeOutcome:
    """Current probe state and, once resolved, the size in bytes."""

    state: ProbeState
    size: int | None = None

    @property
    def finished(self) -> bool:
        return self.state in {ProbeState.RESOLVED, ProbeState.RANGE_PROBE_FAILED}


START = ProbeOutcome(ProbeState.NOT_ATTEMPTED)


def _parse_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        parsed = int(value.strip())
    except ValueError:
        return None
    return parsed if parsed >= 0 else None


def parse_content_range_total(value: str | None) -> int | None:
    """Return the complete length from a ``Content-Range`` header."""

    if not value:
        return None
    match = CONTENT_RANGE_TOTAL_RE.search(value)
    if not match:
        return None
    return int(match.group(1))


def after_head(
    status_code: int | None, headers: Mapping[str, str] | None
) -> ProbeOutcome:
    """Transition out of ``NOT_ATTEMPTED`` given the HEAD response."""

    if status_code is None or not 200 <= status_code < 300 or headers is None:
        return ProbeOutcome(ProbeState.HEAD_PROBE_FAILED)
    size = _parse_int(headers.get("content-length"))
    if size is None:
        return ProbeOutcome(ProbeState.HEAD_PROBE_FAILED)
    return ProbeOutcome(ProbeState.RESOLVED, size)


def after_range(
    status_code: int | None, headers: Mapping[str, str] | None
) -> ProbeOutcome:
    """Transition out of ``HEAD_PROBE_FAILED`` given the ranged GET response."""

    if status_code is None or not 200 <= status_code < 300 or headers is None:
        return ProbeOutcome(ProbeState.RANGE_PROBE_FAILED)
    content_range = headers.get("content-range")
    if content_range:
        size = parse_content_range_total(content_range)
    else:
        size = _parse_int(headers.get("content-length"))
    if size is None:
        return ProbeOutcome(ProbeState.RANGE_PROBE_FAILED)
    return ProbeOutcome(ProbeState.RESOLVED, size)


class SizeProbe:
    """Resolve media byte sizes with HEAD and ranged GET requests."""

    def __init__(self, http_client: httpx.AsyncClient, *, timeout: float = 5.0) -> None:
        self._client = http_client
        self._timeout = httpx.Timeout(timeout)

    async def probe(self, url: str | None) -> ProbeOutcome:
        """Run the probe state machine to completion for ``url``."""

        if not url or not url.startswith("http"):
            logger.warning("Invalid URL provided for size probe: %r", url)
            return ProbeOutcome(ProbeState.RANGE_PROBE_FAILED)

        outcome = START
        try:
            response = await self._client.head(
                url, timeout=self._timeout, follow_redirects=True
            )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.debug("HEAD request for %s failed: %s", url, exc)
            outcome = after_head(None, None)
        else:
            outcome = after_head(response.status_code, response.headers)
        if outcome.finished:
            return outcome

        try:
            async with self._client.stream(
                "GET",
                url,
                headers={"Range": "bytes=0-0"},
                timeout=self._timeout,
                follow_redirects=True,
            ) as response:
                outcome = after_range(response.status_code, response.headers)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.debug("Ranged GET for %s failed: %s", url, exc)
            outcome = after_range(None, None)

        if outcome.state is ProbeState.RANGE_PROBE_FAILED:
            logger.warning("Unable to determine size for %s", url)
        return outcome

    async def size_of(self, url: str | None) -> int | None:
        return (await self.probe(url)).size

    async def fill_sizes(
        self, items: Iterable[MediaItem], url_for: UrlSelector
    ) -> list[MediaItem]:
        """Backfill ``size`` on items lacking it, probing concurrently."""

        items = list(items)
        pending = [index for index, item in enumerate(items) if item.size is None]
        if not pending:
            return items
        sizes = await asyncio.gather(
            *(self.size_of(url_for(items[index])) for index in pending)
        )
        for index, size in zip(pending, sizes):
            if size is not None:
                items[index] = items[index].model_copy(update={"size": size})
        return items

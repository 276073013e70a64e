"""Tests for the HEAD / ranged GET size probe."""

from __future__ import annotations

import httpx
import pytest

from app.models import MediaItem, MediaSource
from app.services.size_probe import (
    ProbeState,
    SizeProbe,
    after_head,
    after_range,
    parse_content_range_total,
)


def test_head_transition_reads_content_length() -> None:
    outcome = after_head(200, {"content-length": "2048"})

    assert outcome.state is ProbeState.RESOLVED
    assert outcome.size == 2048


@pytest.mark.parametrize(
    ("status_code", "headers"),
    [
        (None, None),
        (405, {"content-length": "10"}),
        (200, {}),
        (200, {"content-length": "not-a-number"}),
    ],
)
def test_head_transition_failures(status_code, headers) -> None:
    outcome = after_head(status_code, headers)

    assert outcome.state is ProbeState.HEAD_PROBE_FAILED
    assert not outcome.finished


def test_range_transition_prefers_content_range_total() -> None:
    outcome = after_range(206, {"content-range": "bytes 0-0/98765", "content-length": "1"})

    assert outcome.state is ProbeState.RESOLVED
    assert outcome.size == 98765


def test_range_transition_falls_back_to_content_length() -> None:
    assert after_range(200, {"content-length": "77"}).size == 77
    assert after_range(206, {"content-range": "bytes 0-0/*"}).state is ProbeState.RANGE_PROBE_FAILED
    assert after_range(None, None).finished


def test_parse_content_range_total() -> None:
    assert parse_content_range_total("bytes 0-0/1234") == 1234
    assert parse_content_range_total("bytes */1234") == 1234
    assert parse_content_range_total("bytes 0-0/*") is None
    assert parse_content_range_total(None) is None


@pytest.mark.anyio("asyncio")
async def test_probe_uses_head_when_available() -> None:
    methods: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        methods.append(request.method)
        return httpx.Response(200, headers={"content-length": "4096"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        outcome = await SizeProbe(http_client).probe("https://cdn.example.com/a.jpg")

    assert outcome.state is ProbeState.RESOLVED
    assert outcome.size == 4096
    assert methods == ["HEAD"]


@pytest.mark.anyio("asyncio")
async def test_probe_falls_back_to_ranged_get() -> None:
    seen_requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen_requests.append(request)
        if request.method == "HEAD":
            return httpx.Response(405)
        return httpx.Response(
            206, headers={"content-range": "bytes 0-0/5000"}, content=b"x"
        )

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        size = await SizeProbe(http_client).size_of("https://cdn.example.com/b.mp4")

    assert size == 5000
    assert [request.method for request in seen_requests] == ["HEAD", "GET"]
    assert seen_requests[1].headers["range"] == "bytes=0-0"


@pytest.mark.anyio("asyncio")
async def test_probe_gives_up_after_both_requests_fail() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        outcome = await SizeProbe(http_client).probe("https://cdn.example.com/c.jpg")

    assert outcome.state is ProbeState.RANGE_PROBE_FAILED
    assert outcome.size is None


@pytest.mark.anyio("asyncio")
async def test_probe_rejects_non_http_urls_without_requests() -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:  # pragma: no cover - must not run
        calls.append(request)
        return httpx.Response(200)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        probe = SizeProbe(http_client)
        assert await probe.size_of("") is None
        assert await probe.size_of("/placeholder-audio.png") is None

    assert calls == []


@pytest.mark.anyio("asyncio")
async def test_fill_sizes_only_probes_items_without_size() -> None:
    probed: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        probed.append(str(request.url))
        return httpx.Response(200, headers={"content-length": "321"})

    items = [
        MediaItem(id="1", title="known", source=MediaSource.CATALOG_B, url="https://cdn.example.com/1", size=99),
        MediaItem(id="2", title="unknown", source=MediaSource.CATALOG_A, url="https://cdn.example.com/2"),
    ]

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        filled = await SizeProbe(http_client).fill_sizes(items, lambda item: item.url)

    assert [item.size for item in filled] == [99, 321]
    assert probed == ["https://cdn.example.com/2"]

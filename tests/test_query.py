"""Tests for query building helpers."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from app.query import (
    RELATED_PAGE_SIZE,
    SEARCH_PAGE_SIZE,
    SearchParams,
    build_search_text,
    openverse_params,
    pixabay_params,
)


@pytest.mark.parametrize(
    ("query", "phrase", "expected"),
    [
        ("  nature  ", "", "nature"),
        ("nature", "green hills", '"green hills" nature'),
        ("nature", "   ", "nature"),
        ("", "green hills", None),
        ("   ", "", None),
    ],
)
def test_build_search_text(query: str, phrase: str, expected: str | None) -> None:
    assert build_search_text(query, phrase) == expected


def test_page_sizes() -> None:
    assert SEARCH_PAGE_SIZE == 20
    assert RELATED_PAGE_SIZE == 4


def test_openverse_params_only_include_specific_licences() -> None:
    assert openverse_params("cat", 2) == {"q": "cat", "page": 2, "page_size": 20}
    assert openverse_params("cat", 1, license_filter="all") == {
        "q": "cat",
        "page": 1,
        "page_size": 20,
    }
    assert openverse_params("cat", 1, page_size=4, license_filter="by")["license"] == "by"


def test_pixabay_params_for_images_and_videos() -> None:
    images = pixabay_params("cat", 1, api_key="k", media_type="images", sort_by="size")
    videos = pixabay_params("cat", 3, api_key="k", media_type="videos")

    assert images == {
        "key": "k",
        "q": "cat",
        "image_type": "photo",
        "page": 1,
        "per_page": 20,
        "order": "popular",
    }
    assert "image_type" not in videos
    assert "order" not in videos
    assert "license" not in videos
    assert videos["page"] == 3


def test_search_params_accept_short_query_names() -> None:
    params = SearchParams.from_query(
        {"q": " sunset ", "exact": "red sky", "license": "", "sort": "title-desc", "source": "catalogA"}
    )

    assert params.query == "sunset"
    assert params.license_filter == "all"
    assert params.sort_by == "title-desc"
    assert params.source_filter == "catalogA"
    assert params.exact_phrase == "red sky"


def test_search_params_reject_unknown_sort() -> None:
    with pytest.raises(ValidationError):
        SearchParams.from_query({"q": "x", "sort": "popularity"})

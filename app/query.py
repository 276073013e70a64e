"""Translate user search input into provider query parameters."""

from __future__ import annotations

from typing import Any, Mapping

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .models import MediaType, SortKey, SourceFilter

SEARCH_PAGE_SIZE = 20
RELATED_PAGE_SIZE = 4
ALL_LICENSES = "all"


class SearchParams(BaseModel):
    """Normalized search options shared by every page of one query."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    query: str = Field(default="", validation_alias=AliasChoices("q", "query"))
    exact_phrase: str = Field(
        default="", validation_alias=AliasChoices("exact", "exactPhrase", "exact_phrase")
    )
    exclude_words: str = Field(
        default="",
        validation_alias=AliasChoices("exclude", "excludeWords", "exclude_words"),
    )
    license_filter: str = Field(
        default=ALL_LICENSES,
        validation_alias=AliasChoices("license", "licenseFilter", "license_filter"),
    )
    sort_by: SortKey = Field(
        default="relevance", validation_alias=AliasChoices("sort", "sortBy", "sort_by")
    )
    source_filter: SourceFilter = Field(
        default="all",
        validation_alias=AliasChoices("source", "sourceFilter", "source_filter"),
    )

    @classmethod
    def from_query(cls, params: Mapping[str, str]) -> "SearchParams":
        return cls.model_validate(dict(params))

    @field_validator("query", "exact_phrase", "exclude_words", mode="before")
    @classmethod
    def _strip_text(cls, value: object) -> object:
        if value is None:
            return ""
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("license_filter", mode="before")
    @classmethod
    def _default_license(cls, value: object) -> object:
        if value is None:
            return ALL_LICENSES
        if isinstance(value, str):
            value = value.strip()
            return value or ALL_LICENSES
        return value


def build_search_text(query: str, exact_phrase: str = "") -> str | None:
    """Return the provider search string, or ``None`` for an empty query."""

    text = (query or "").strip()
    if not text:
        return None
    phrase = (exact_phrase or "").strip()
    if phrase:
        text = f'"{phrase}" {text}'
    return text


def has_license_filter(license_filter: str | None) -> bool:
    return bool(license_filter) and license_filter != ALL_LICENSES


def openverse_params(
    text: str,
    page: int,
    *,
    page_size: int = SEARCH_PAGE_SIZE,
    license_filter: str | None = None,
) -> dict[str, Any]:
    """Query parameters for the Openverse search endpoints."""

    params: dict[str, Any] = {"q": text, "page": page, "page_size": page_size}
    if has_license_filter(license_filter):
        params["license"] = license_filter
    return params


def pixabay_params(
    text: str,
    page: int,
    *,
    api_key: str,
    media_type: MediaType,
    page_size: int = SEARCH_PAGE_SIZE,
    sort_by: SortKey = "relevance",
) -> dict[str, Any]:
    """Query parameters for the Pixabay image and video endpoints."""

    params: dict[str, Any] = {"key": api_key, "q": text}
    if media_type == "images":
        params["image_type"] = "photo"
    params["page"] = page
    params["per_page"] = page_size
    if sort_by == "size":
        params["order"] = "popular"
    return params

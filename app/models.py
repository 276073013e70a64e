"""Pydantic models describing media search payloads."""

from __future__ import annotations

from enum import Enum
from typing import Any, ClassVar, Literal, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
)

from .utils import download_filename as build_download_filename, format_size

MediaType = Literal["images", "audio", "videos"]
SortKey = Literal[
    "relevance", "size", "title-asc", "title-desc", "source-asc", "source-desc"
]
SourceFilter = Literal["all", "catalogA", "catalogB"]

MEDIA_TYPES: tuple[MediaType, ...] = ("images", "audio", "videos")

PIXABAY_LICENSE = "Pixabay License"
AUDIO_PLACEHOLDER = "/placeholder-audio.png"
VIDEO_PLACEHOLDER = "/placeholder-video.png"
UNTITLED = "Untitled"
UNKNOWN = "Unknown"


class MediaSource(str, Enum):
    """Provenance of a media item."""

    CATALOG_A = "catalogA"
    CATALOG_B = "catalogB"


class MediaItem(BaseModel):
    """Unified search result shared by every provider."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    title: str = Field(min_length=1)
    url: str = ""
    thumbnail: str = ""
    video_url: str | None = Field(default=None, alias="videoURL")
    creator: str = UNKNOWN
    license: str = UNKNOWN
    source: MediaSource
    tags: list[str] = Field(default_factory=list)
    large_image_url: str | None = Field(default=None, alias="largeImageURL")
    preview_url: str | None = Field(default=None, alias="previewURL")
    size: int | None = None

    @property
    def composite_key(self) -> str:
        """Return the deduplication identity ``source-id``."""

        return f"{self.source.value}-{self.id}"

    @computed_field(alias="downloadURL")  # type: ignore[prop-decorator]
    @property
    def download_url(self) -> str:
        """Return the most direct media URL for downloads."""

        return self.video_url or self.large_image_url or self.url

    @computed_field(alias="downloadFilename")  # type: ignore[prop-decorator]
    @property
    def download_filename(self) -> str:
        return build_download_filename(self.display_title(), self.download_url)

    @computed_field(alias="sizeLabel")  # type: ignore[prop-decorator]
    @property
    def size_label(self) -> str:
        return format_size(self.size)

    def display_title(self) -> str:
        """Return a short human-friendly title for result cards."""

        if self.source is MediaSource.CATALOG_B and self.tags:
            return self.tags[0]
        if len(self.title) > 50:
            return f"{self.title[:47]}..."
        return self.title


class FetchResult(BaseModel):
    """Page of aggregated results with the provider-reported total."""

    items: list[MediaItem] = Field(default_factory=list)
    total: int = 0

    def to_payload(self) -> dict[str, object]:
        return {
            "items": [item.model_dump(mode="json", by_alias=True) for item in self.items],
            "total": self.total,
        }


class RelatedRequest(BaseModel):
    """Body of a related-items lookup for the detail view."""

    model_config = ConfigDict(populate_by_name=True)

    item: MediaItem
    media_type: MediaType = Field(
        default="images", validation_alias=AliasChoices("mediaType", "media_type", "type")
    )
    page: int = Field(default=1, ge=1)
    license_filter: str = Field(
        default="all",
        validation_alias=AliasChoices("license", "licenseFilter", "license_filter"),
    )


def _stringify_id(value: Any) -> str:
    if value is None:
        raise ValueError("Provider record is missing an id")
    return str(value)


def _split_tag_string(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [tag.strip() for tag in raw.split(",") if tag.strip()]


class OpenverseRecord(BaseModel):
    """Common shape of Openverse image and audio results."""

    model_config = ConfigDict(extra="ignore")

    source: ClassVar[MediaSource] = MediaSource.CATALOG_A

    id: str
    title: str | None = None
    url: str | None = None
    thumbnail: str | None = None
    creator: str | None = None
    license: str | None = None
    tags: list[str] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str:
        return _stringify_id(value)

    @field_validator("tags", mode="before")
    @classmethod
    def _flatten_tags(cls, value: Any) -> list[str]:
        """Openverse tags are objects with a ``name`` key."""

        if not value:
            return []
        names: list[str] = []
        for entry in value:
            if isinstance(entry, dict):
                name = entry.get("name")
            else:
                name = entry
            if name:
                names.append(str(name))
        return names

    def _fallback_thumbnail(self) -> str:
        return self.url or ""

    def to_media_item(self) -> MediaItem:
        return MediaItem(
            id=self.id,
            title=self.title or UNTITLED,
            url=self.url or "",
            thumbnail=self.thumbnail or self._fallback_thumbnail(),
            creator=self.creator or UNKNOWN,
            license=self.license or UNKNOWN,
            source=self.source,
            tags=list(self.tags),
        )


class OpenverseImage(OpenverseRecord):
    """Openverse image search hit."""


class OpenverseAudio(OpenverseRecord):
    """Openverse audio search hit."""

    def _fallback_thumbnail(self) -> str:
        return AUDIO_PLACEHOLDER


class PixabayRecord(BaseModel):
    """Fields shared by Pixabay image and video hits."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    source: ClassVar[MediaSource] = MediaSource.CATALOG_B

    id: str
    tags: str | None = None
    page_url: str | None = Field(default=None, alias="pageURL")
    user: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str:
        return _stringify_id(value)

    @property
    def tag_list(self) -> list[str]:
        return _split_tag_string(self.tags)

    @property
    def title(self) -> str:
        # The whole comma-joined tag string doubles as the title.
        return (self.tags or "").strip() or UNTITLED


class PixabayImage(PixabayRecord):
    """Pixabay image search hit."""

    webformat_url: str | None = Field(default=None, alias="webformatURL")
    large_image_url: str | None = Field(default=None, alias="largeImageURL")
    preview_url: str | None = Field(default=None, alias="previewURL")

    def to_media_item(self) -> MediaItem:
        return MediaItem(
            id=self.id,
            title=self.title,
            url=self.page_url or "",
            thumbnail=self.webformat_url or "",
            creator=self.user or UNKNOWN,
            license=PIXABAY_LICENSE,
            source=self.source,
            tags=self.tag_list,
            large_image_url=self.large_image_url,
            preview_url=self.preview_url,
        )


class PixabayVideoVariant(BaseModel):
    """One encoded rendition of a Pixabay video."""

    model_config = ConfigDict(extra="ignore")

    url: str | None = None
    size: int | None = None
    thumbnail: str | None = None

    @field_validator("size", mode="before")
    @classmethod
    def _ignore_empty_size(cls, value: Any) -> Any:
        if value in (None, "", 0):
            return None
        return value


class PixabayVideoFiles(BaseModel):
    model_config = ConfigDict(extra="ignore")

    large: PixabayVideoVariant | None = None
    medium: PixabayVideoVariant | None = None
    small: PixabayVideoVariant | None = None
    tiny: PixabayVideoVariant | None = None


class PixabayVideo(PixabayRecord):
    """Pixabay video search hit."""

    videos: PixabayVideoFiles = Field(default_factory=PixabayVideoFiles)

    def playable_variant(self) -> PixabayVideoVariant | None:
        """Prefer the medium rendition, then the small one."""

        for variant in (self.videos.medium, self.videos.small):
            if variant is not None and variant.url:
                return variant
        return None

    def to_media_item(self) -> MediaItem:
        variant = self.playable_variant()
        tiny = self.videos.tiny
        return MediaItem(
            id=self.id,
            title=self.title,
            url=self.page_url or "",
            thumbnail=(tiny.thumbnail if tiny else None) or VIDEO_PLACEHOLDER,
            video_url=variant.url if variant else "",
            creator=self.user or UNKNOWN,
            license=PIXABAY_LICENSE,
            source=self.source,
            tags=self.tag_list,
            size=variant.size if variant else None,
        )


RawRecord = Union[OpenverseImage, OpenverseAudio, PixabayImage, PixabayVideo]

RAW_RECORD_TYPES: dict[tuple[MediaSource, MediaType], type[RawRecord]] = {
    (MediaSource.CATALOG_A, "images"): OpenverseImage,
    (MediaSource.CATALOG_A, "audio"): OpenverseAudio,
    (MediaSource.CATALOG_B, "images"): PixabayImage,
    (MediaSource.CATALOG_B, "videos"): PixabayVideo,
}

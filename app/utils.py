"""Utility helpers for the media search service."""

from __future__ import annotations

import posixpath
import re
import unicodedata
from urllib.parse import urlparse


def slugify(value: str) -> str:
    """Return a URL-friendly slug."""

    value = unicodedata.normalize("NFKD", value)
    value = value.encode("ascii", "ignore").decode("ascii")
    value = re.sub(r"[^a-zA-Z0-9]+", "-", value)
    value = value.strip("-")
    value = re.sub(r"-+", "-", value)
    return value.lower() or "media"


def format_size(size: int | None) -> str:
    """Render a byte count the way the detail view shows it."""

    if not size:
        return "Unknown"
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


def url_extension(url: str | None) -> str:
    """Return the lowercase file extension of a URL path, including the dot."""

    if not url:
        return ""
    path = urlparse(url).path
    _, extension = posixpath.splitext(path)
    if not re.fullmatch(r"\.[A-Za-z0-9]{1,5}", extension):
        return ""
    return extension.lower()


def download_filename(title: str, url: str | None, fallback: str = "download") -> str:
    """Build a filesystem-friendly download name from a title and media URL."""

    stem = slugify(title)[:80].strip("-") if title else ""
    return f"{stem or fallback}{url_extension(url)}"

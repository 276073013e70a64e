"""Repository-level integrity checks."""

from __future__ import annotations

import re
from pathlib import Path

CONFLICT_PATTERN = re.compile(r"^(<<<<<<<|=======|>>>>>>>)", re.MULTILINE)
IGNORED_PARTS = {".git", "__pycache__", ".mypy_cache", ".pytest_cache", ".venv"}
REPO_ROOT = Path(__file__).resolve().parents[1]


def _repository_files() -> list[Path]:
    return [
        path
        for path in REPO_ROOT.rglob("*")
        if path.is_file() and not any(part in IGNORED_PARTS for part in path.parts)
    ]


def test_repository_has_no_merge_conflict_markers() -> None:
    """Ensure no files in the repo still contain git conflict markers."""

    offending_files: list[Path] = []
    for path in _repository_files():
        contents = path.read_text(encoding="utf-8", errors="ignore")
        if CONFLICT_PATTERN.search(contents):
            offending_files.append(path.relative_to(REPO_ROOT))

    assert not offending_files, (
        "The following files still contain git conflict markers: "
        + ", ".join(str(path) for path in offending_files)
    )


def test_provider_credentials_are_not_committed() -> None:
    """API keys belong in the environment, never in a checked-in .env file."""

    committed = [
        path.relative_to(REPO_ROOT)
        for path in _repository_files()
        if path.name == ".env"
    ]

    assert not committed

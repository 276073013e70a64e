"""Installable entry point for the media search service."""

from __future__ import annotations

from app.main import app, create_app

from .__main__ import main

__all__ = ["app", "create_app", "main"]

"""Application configuration models."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file."""

    app_name: str = Field(default="MediaSearch", alias="APP_NAME")
    server_host: str = Field(default="0.0.0.0", alias="HOST")
    server_port: int = Field(default=3000, alias="PORT")

    openverse_access_token: str | None = Field(
        default=None, alias="OPENVERSE_ACCESS_TOKEN"
    )
    pixabay_api_key: str | None = Field(default=None, alias="PIXABAY_API_KEY")

    openverse_api_url: HttpUrl = Field(
        default="https://api.openverse.org", alias="OPENVERSE_API_URL"
    )
    pixabay_api_url: HttpUrl = Field(
        default="https://pixabay.com", alias="PIXABAY_API_URL"
    )

    provider_timeout_seconds: float = Field(
        default=20.0, alias="PROVIDER_TIMEOUT", gt=0, le=300
    )
    size_probe_timeout_seconds: float = Field(
        default=5.0, alias="SIZE_PROBE_TIMEOUT", gt=0, le=60
    )
    size_probe_enabled: bool = Field(default=True, alias="SIZE_PROBE_ENABLED")

    session_ttl_seconds: int = Field(
        default=3_600, alias="SESSION_TTL", ge=60
    )
    history_limit: int = Field(
        default=20, alias="SEARCH_HISTORY_LIMIT", ge=1, le=500
    )

    database_url: str = Field(
        default="sqlite+aiosqlite:///./mediasearch.db", alias="DATABASE_URL"
    )

    environment: Literal["development", "production"] = Field(
        default="development", alias="ENVIRONMENT"
    )
    log_level: Literal["debug", "info", "warning", "error"] = Field(
        default="info", alias="LOG_LEVEL"
    )

    @field_validator("openverse_access_token", "pixabay_api_key", mode="before")
    @classmethod
    def _blank_credentials_are_missing(cls, value: object) -> object:
        """Treat empty or whitespace-only credentials as not configured."""

        if isinstance(value, str):
            value = value.strip()
            if not value:
                return None
        return value

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[call-arg]


settings = get_settings()

"""Application configuration models."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file."""

    app_name: str = Field(default="Cinerow", alias="APP_NAME")
    server_host: str = Field(default="0.0.0.0", alias="HOST")
    server_port: int = Field(default=3000, alias="PORT")

    tmdb_api_key: str | None = Field(default=None, alias="TMDB_API_KEY")
    tmdb_api_url: HttpUrl = Field(
        default="https://api.themoviedb.org/3", alias="TMDB_API_URL"
    )
    tmdb_language: str = Field(default="en-US", alias="TMDB_LANGUAGE")

    gateway_url: HttpUrl | None = Field(default=None, alias="GATEWAY_URL")
    upstream_timeout_seconds: float = Field(
        default=10.0, alias="UPSTREAM_TIMEOUT", gt=0, le=120
    )

    hero_pool_size: int = Field(default=10, alias="HERO_POOL_SIZE", ge=1, le=20)
    continue_watching_limit: int = Field(
        default=20, alias="CONTINUE_WATCHING_LIMIT", ge=1, le=200
    )
    search_debounce_seconds: float = Field(
        default=0.3, alias="SEARCH_DEBOUNCE_SECONDS", ge=0, le=5
    )
    max_sessions: int = Field(default=32, alias="MAX_SESSIONS", ge=1, le=1000)

    player_base_url: HttpUrl = Field(
        default="https://www.2embed.cc", alias="PLAYER_BASE_URL"
    )

    database_url: str = Field(
        default="sqlite+aiosqlite:///./cinerow.db", alias="DATABASE_URL"
    )

    environment: Literal["development", "production"] = Field(
        default="development", alias="ENVIRONMENT"
    )

    @field_validator("tmdb_api_key", "gateway_url", mode="before")
    @classmethod
    def _strip_blank(cls, value: object) -> object:
        if value is None:
            return None
        if isinstance(value, str):
            stripped = value.strip()
            return stripped or None
        return value

    @field_validator("tmdb_language")
    @classmethod
    def _default_language(cls, value: str) -> str:
        return value.strip() or "en-US"

    @property
    def tmdb_base_url(self) -> str:
        """Return the upstream base URL with a trailing slash for path joins."""

        return str(self.tmdb_api_url).rstrip("/") + "/"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[call-arg]


settings = get_settings()

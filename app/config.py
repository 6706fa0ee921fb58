"""Application configuration models."""

from __future__ import annotations

import logging
import re
from functools import lru_cache
from typing import Literal

from pydantic import Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LANGUAGE_RE = re.compile(r"^[a-z]{2}(-[A-Z]{2})?$")


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file."""

    app_name: str = Field(default="Watchlist", alias="APP_NAME")
    server_host: str = Field(default="0.0.0.0", alias="HOST")
    server_port: int = Field(default=3000, alias="PORT")

    tmdb_api_key: str | None = Field(default=None, alias="TMDB_API_KEY")
    tmdb_api_url: HttpUrl = Field(
        default="https://api.themoviedb.org/3", alias="TMDB_API_URL"
    )
    tmdb_language: str = Field(default="en-US", alias="TMDB_LANGUAGE")
    tmdb_timeout_seconds: float = Field(
        default=20.0, alias="TMDB_TIMEOUT_SECONDS", ge=1, le=120
    )

    database_url: str = Field(
        default="sqlite+aiosqlite:///./watchlist.db", alias="DATABASE_URL"
    )

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    environment: Literal["development", "production"] = Field(
        default="development", alias="ENVIRONMENT"
    )

    @field_validator("tmdb_language", mode="before")
    @classmethod
    def _parse_language(cls, value: object) -> str:
        """Normalise language tags such as ``EN_us`` into ``en-US``."""

        if value is None:
            return "en-US"
        raw = str(value).strip().replace("_", "-")
        if not raw:
            return "en-US"
        language, _, region = raw.partition("-")
        tag = language.lower()
        if region:
            tag = f"{tag}-{region.upper()}"
        if not LANGUAGE_RE.match(tag):
            raise ValueError("TMDB_LANGUAGE must look like 'en' or 'en-US'")
        return tag

    @field_validator("log_level", mode="before")
    @classmethod
    def _parse_log_level(cls, value: object) -> str:
        level = str(value or "INFO").strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level {value!r}")
        return level

    @property
    def tmdb_enabled(self) -> bool:
        return bool(self.tmdb_api_key)

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[call-arg]


settings = get_settings()

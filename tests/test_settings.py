"""Configuration settings behaviour tests."""

from __future__ import annotations

import pytest

from app.config import Settings


def test_defaults_point_at_public_tmdb() -> None:
    settings = Settings(_env_file=None)  # type: ignore[call-arg]

    assert str(settings.tmdb_api_url).startswith("https://api.themoviedb.org/3")
    assert settings.tmdb_language == "en-US"
    assert settings.log_level == "INFO"


def test_tmdb_language_is_normalised() -> None:
    """Language tags should accept underscores and mixed case."""

    settings = Settings(_env_file=None, TMDB_LANGUAGE="PT_br")  # type: ignore[call-arg]

    assert settings.tmdb_language == "pt-BR"


def test_tmdb_language_rejects_garbage() -> None:
    with pytest.raises(ValueError, match="TMDB_LANGUAGE"):
        Settings(_env_file=None, TMDB_LANGUAGE="english please")  # type: ignore[call-arg]


def test_log_level_is_validated() -> None:
    settings = Settings(_env_file=None, LOG_LEVEL="debug")  # type: ignore[call-arg]
    assert settings.log_level == "DEBUG"

    with pytest.raises(ValueError, match="Unknown log level"):
        Settings(_env_file=None, LOG_LEVEL="chatty")  # type: ignore[call-arg]


def test_tmdb_enabled_requires_api_key() -> None:
    assert not Settings(_env_file=None, TMDB_API_KEY="").tmdb_enabled  # type: ignore[call-arg]
    assert Settings(_env_file=None, TMDB_API_KEY="abc").tmdb_enabled  # type: ignore[call-arg]

"""Pytest configuration and test helpers."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import httpx
import pytest


# Ensure the application package is importable when running tests without an
# editable install. This mirrors the expected runtime layout where ``app`` sits
# at the project root.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


from app.config import Settings  # noqa: E402


SHOW_ID = "100"

SHOW_PAYLOAD: dict[str, Any] = {
    "id": 100,
    "name": "Night Shift",
    "seasons": [
        {"id": 1001, "season_number": 1, "air_date": "2020-01-01", "poster_path": "/s1.jpg"},
        {"id": 1002, "season_number": 2, "air_date": "2021-01-01", "poster_path": None},
        {"id": 1003, "season_number": 3, "air_date": None, "poster_path": None},
    ],
}

SEASON_PAYLOADS: dict[int, dict[str, Any]] = {
    1: {
        "name": "Season 1",
        "episodes": [
            {"id": 5001, "name": "Pilot", "episode_number": 1, "air_date": "2020-01-01", "still_path": "/e1.jpg"},
            {"id": 5002, "name": "Overtime", "episode_number": 2, "air_date": "2020-01-08", "still_path": None},
        ],
    },
    2: {
        "name": "Season 2",
        "episodes": [
            {"id": 6001, "name": "Return", "episode_number": 1, "air_date": "2021-01-01", "still_path": None},
            {"id": 6002, "name": "Graveyard", "episode_number": 2, "air_date": "2021-01-08", "still_path": None},
        ],
    },
}

SEARCH_PAYLOAD: dict[str, Any] = {
    "results": [
        {"id": 100, "name": "Night Shift", "first_air_date": "2019-05-01", "media_type": "tv", "poster_path": "/show.jpg"},
        {"id": 200, "title": "Day Shift", "release_date": "2019-05-01", "media_type": "movie", "poster_path": None},
        {"id": 300, "title": "Unreleased", "release_date": "", "media_type": "movie"},
        {"id": 400, "name": "Some Actor", "media_type": "person"},
        {"id": 500, "title": "Early Shift", "release_date": "2001-02-03", "media_type": "movie"},
    ]
}


class FakeCatalog:
    """In-memory TMDB stand-in served through ``httpx.MockTransport``."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.fail_with: int | None = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with is not None:
            return httpx.Response(self.fail_with, json={"status_message": "unavailable"})

        path = request.url.path.removeprefix("/3")
        if path == f"/tv/{SHOW_ID}":
            return httpx.Response(200, json=SHOW_PAYLOAD)
        if path.startswith(f"/tv/{SHOW_ID}/season/"):
            number = int(path.rsplit("/", 1)[-1])
            if number in SEASON_PAYLOADS:
                return httpx.Response(200, json=SEASON_PAYLOADS[number])
        if path == "/search/multi":
            return httpx.Response(200, json=SEARCH_PAYLOAD)
        return httpx.Response(404, json={"status_message": "not found"})

    def client(self, settings: Settings) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=httpx.MockTransport(self.handler),
            base_url=str(settings.tmdb_api_url),
        )


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO tests to run on asyncio without requiring trio."""

    return "asyncio"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        TMDB_API_KEY="test-key",
        TMDB_API_URL="https://api.example.com/3",
    )  # type: ignore[call-arg]


@pytest.fixture
def catalog() -> FakeCatalog:
    return FakeCatalog()

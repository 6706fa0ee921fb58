"""Client for the parts of The Movie Database (TMDB) API the watchlist uses."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..config import Settings
from ..errors import CatalogUnavailable

logger = logging.getLogger(__name__)


class TMDBClient:
    """Fetches show, season and search payloads from TMDB.

    Every failure, whether a transport error, a non-2xx status or an
    undecodable body, surfaces as :class:`CatalogUnavailable`. Nothing is
    retried here.
    """

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self._settings = settings
        self._client = http_client

    async def fetch_seasons(self, catalog_show_id: str) -> dict[str, Any]:
        """Return the show payload, including its ``seasons`` array."""

        payload = await self._get(f"/tv/{catalog_show_id}")
        payload.setdefault("seasons", [])
        return payload

    async def fetch_episodes(
        self, catalog_show_id: str, season_number: int
    ) -> dict[str, Any]:
        """Return the season payload, including its ``episodes`` array."""

        payload = await self._get(f"/tv/{catalog_show_id}/season/{season_number}")
        payload.setdefault("episodes", [])
        return payload

    async def fetch_search(self, query: str) -> dict[str, Any]:
        """Run a multi search across movies and shows."""

        payload = await self._get(
            "/search/multi",
            params={"query": query, "page": 1, "include_adult": "false"},
        )
        payload.setdefault("results", [])
        return payload

    async def _get(
        self, endpoint: str, *, params: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        if not self._settings.tmdb_api_key:
            raise CatalogUnavailable("TMDB API key is not configured")

        query: dict[str, Any] = {
            "api_key": self._settings.tmdb_api_key,
            "language": self._settings.tmdb_language,
        }
        if params:
            query.update(params)

        try:
            response = await self._client.get(endpoint, params=query)
        except httpx.HTTPError as exc:
            logger.warning("TMDB request to %s failed: %s", endpoint, exc)
            raise CatalogUnavailable(f"TMDB request to {endpoint} failed") from exc

        if response.status_code >= 400:
            logger.warning(
                "TMDB request to %s returned %s: %s",
                endpoint,
                response.status_code,
                response.text,
            )
            raise CatalogUnavailable(
                f"TMDB request to {endpoint} returned {response.status_code}",
                upstream_status=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise CatalogUnavailable(f"TMDB returned invalid JSON for {endpoint}") from exc
        if not isinstance(data, dict):
            raise CatalogUnavailable(f"TMDB returned an unexpected payload for {endpoint}")
        return data

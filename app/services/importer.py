"""Importing seasons and episodes from the catalog into the media store."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from ..errors import NotFound, ValidationError
from ..models import MediaFields, MediaRecord, SearchResult, catalog_key
from ..utils import parse_release_date
from .media_store import MediaStore
from .tmdb import TMDBClient

logger = logging.getLogger(__name__)


class CatalogImporter:
    """Normalises catalog payloads into media records and upserts them.

    Imports are idempotent because the store matches on the type-prefixed
    catalog key: running the same import twice yields the same local ids.
    """

    def __init__(self, tmdb: TMDBClient, media_store: MediaStore):
        self._tmdb = tmdb
        self._media_store = media_store

    async def import_seasons(self, show_local_id: str) -> list[MediaRecord]:
        show = await self._require(show_local_id, kind="show")
        data = await self._tmdb.fetch_seasons(show.tmdb_id)
        show_name = data.get("name") or show.title

        batch: list[tuple[str, MediaFields]] = []
        for season in data.get("seasons") or []:
            fields = self._season_fields(season, show_name, show.local_id)
            if fields is not None:
                batch.append((fields.catalog_id, fields))

        records = await self._media_store.upsert_many(batch)
        logger.info(
            "Imported %d seasons for show %s (%s)",
            len(records),
            show.local_id,
            show.catalog_id,
        )
        return records

    async def import_episodes(
        self, season_local_id: str, season_number: int, show_local_id: str
    ) -> list[MediaRecord]:
        season = await self._require(season_local_id, kind="season")
        show = await self._require(show_local_id, kind="show")
        if season.parent_show != show.local_id:
            raise ValidationError(
                f"Season {season.local_id} does not belong to show {show.local_id}"
            )
        data = await self._tmdb.fetch_episodes(show.tmdb_id, season_number)
        title = f"{show.title}: {data.get('name') or f'Season {season_number}'}"

        batch: list[tuple[str, MediaFields]] = []
        for episode in data.get("episodes") or []:
            fields = self._episode_fields(
                episode, title, season.local_id, show.local_id
            )
            if fields is not None:
                batch.append((fields.catalog_id, fields))

        records = await self._media_store.upsert_many(batch)
        logger.info(
            "Imported %d episodes for season %s of show %s",
            len(records),
            season_number,
            show.local_id,
        )
        return records

    async def import_selection(self, selection: SearchResult) -> MediaRecord:
        """Store a single search hit, e.g. one picked for ``add_to_list``."""

        fields = selection.to_media_fields()
        return await self._media_store.upsert(fields.catalog_id, fields)

    async def _require(self, local_id: str, *, kind: str) -> MediaRecord:
        record = await self._media_store.get(local_id)
        if record is None:
            raise NotFound(f"Media {local_id} does not exist")
        if record.kind != kind:
            raise ValidationError(f"Media {local_id} is a {record.kind}, not a {kind}")
        return record

    @staticmethod
    def _season_fields(
        season: dict[str, Any], show_name: str, show_local_id: str
    ) -> MediaFields | None:
        if parse_release_date(season.get("air_date")) is None:
            logger.debug("Skipping undated season %s", season.get("id"))
            return None
        try:
            return MediaFields(
                catalog_id=catalog_key("season", season["id"]),
                name=season.get("name"),
                title=show_name,
                release_date=season.get("air_date"),
                kind="season",
                poster_path=season.get("poster_path"),
                parent_show=show_local_id,
                number=season.get("season_number") or 0,
            )
        except (KeyError, PydanticValidationError) as exc:
            raise ValidationError(f"Malformed season payload: {exc}") from exc

    @staticmethod
    def _episode_fields(
        episode: dict[str, Any],
        title: str,
        season_local_id: str,
        show_local_id: str,
    ) -> MediaFields | None:
        if parse_release_date(episode.get("air_date")) is None:
            logger.debug("Skipping undated episode %s", episode.get("id"))
            return None
        try:
            return MediaFields(
                catalog_id=catalog_key("episode", episode["id"]),
                name=episode.get("name"),
                title=title,
                episode_label=episode.get("name"),
                release_date=episode.get("air_date"),
                kind="episode",
                poster_path=episode.get("still_path"),
                parent_season=season_local_id,
                parent_show=show_local_id,
                number=episode.get("episode_number") or 1,
            )
        except (KeyError, PydanticValidationError) as exc:
            raise ValidationError(f"Malformed episode payload: {exc}") from exc

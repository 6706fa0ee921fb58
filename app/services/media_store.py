"""Content-addressed cache of catalog items."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..db_models import MediaRow
from ..errors import StorageError
from ..models import MediaFields, MediaRecord
from ..utils import new_local_id

logger = logging.getLogger(__name__)

_STORED_FIELDS = (
    "name",
    "title",
    "release_date",
    "kind",
    "poster_path",
    "number",
    "parent_show",
    "parent_season",
    "episode_label",
)


class MediaStore:
    """Upserts media records by catalog id and hydrates them by local id.

    Records are never deleted; removal from a list only drops the membership
    entry that references them.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def upsert(
        self, catalog_id: str, fields: MediaFields | Mapping[str, Any]
    ) -> MediaRecord:
        """Create or replace the record whose catalog id matches."""

        records = await self.upsert_many([(catalog_id, fields)])
        return records[0]

    async def upsert_many(
        self, items: Iterable[tuple[str, MediaFields | Mapping[str, Any]]]
    ) -> list[MediaRecord]:
        """Upsert several records in one transaction, preserving input order."""

        prepared = [
            (str(catalog_id), self._coerce_fields(catalog_id, fields))
            for catalog_id, fields in items
        ]
        if not prepared:
            return []
        try:
            return await self._write(prepared)
        except IntegrityError:
            # A concurrent import inserted one of the catalog ids first; the
            # second pass finds it and updates in place.
            logger.info("Retrying media upsert after concurrent insert")
            try:
                return await self._write(prepared)
            except SQLAlchemyError as exc:
                raise StorageError("Failed to upsert media records") from exc
        except SQLAlchemyError as exc:
            raise StorageError("Failed to upsert media records") from exc

    async def find_by_local_ids(self, local_ids: Iterable[str]) -> list[MediaRecord]:
        """Return the records that exist for ``local_ids``; unknown ids are skipped."""

        wanted = {str(local_id) for local_id in local_ids if local_id}
        if not wanted:
            return []
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(MediaRow).where(MediaRow.local_id.in_(wanted))
                )
                rows = result.scalars().all()
        except SQLAlchemyError as exc:
            raise StorageError("Failed to load media records") from exc
        return [self._to_record(row) for row in rows]

    async def get(self, local_id: str) -> MediaRecord | None:
        try:
            async with self._session_factory() as session:
                row = await session.get(MediaRow, str(local_id))
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to load media record {local_id}") from exc
        return self._to_record(row) if row is not None else None

    async def _write(
        self, prepared: list[tuple[str, MediaFields]]
    ) -> list[MediaRecord]:
        async with self._session_factory() as session:
            catalog_ids = {catalog_id for catalog_id, _ in prepared}
            result = await session.execute(
                select(MediaRow).where(MediaRow.catalog_id.in_(catalog_ids))
            )
            existing = {row.catalog_id: row for row in result.scalars().all()}

            rows: list[MediaRow] = []
            for catalog_id, fields in prepared:
                values = {key: getattr(fields, key) for key in _STORED_FIELDS}
                row = existing.get(catalog_id)
                if row is None:
                    row = MediaRow(local_id=new_local_id(), catalog_id=catalog_id, **values)
                    session.add(row)
                    existing[catalog_id] = row
                else:
                    for key, value in values.items():
                        setattr(row, key, value)
                rows.append(row)
            await session.commit()
            return [self._to_record(row) for row in rows]

    @staticmethod
    def _coerce_fields(
        catalog_id: str, fields: MediaFields | Mapping[str, Any]
    ) -> MediaFields:
        if isinstance(fields, MediaFields):
            return fields.model_copy(update={"catalog_id": str(catalog_id)})
        return MediaFields.model_validate({**fields, "catalog_id": str(catalog_id)})

    @staticmethod
    def _to_record(row: MediaRow) -> MediaRecord:
        return MediaRecord(
            local_id=row.local_id,
            catalog_id=row.catalog_id,
            name=row.name,
            title=row.title,
            release_date=row.release_date,
            kind=row.kind,  # type: ignore[arg-type]
            poster_path=row.poster_path,
            number=row.number if row.number is not None else 1,
            parent_show=row.parent_show,
            parent_season=row.parent_season,
            episode_label=row.episode_label,
        )

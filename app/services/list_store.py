"""Persistence for user lists and their membership documents."""

from __future__ import annotations

import logging
from typing import Sequence

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..db_models import ListRow
from ..errors import StorageError, ValidationError
from ..models import ListMembershipEntry, WatchList
from ..utils import new_local_id

logger = logging.getLogger(__name__)


class ListStore:
    """Reads and replaces list documents.

    ``save_membership`` overwrites the whole membership array, so two
    concurrent writers to the same list resolve as last-write-wins.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def find_list(self, list_id: str) -> WatchList | None:
        try:
            async with self._session_factory() as session:
                row = await session.get(ListRow, str(list_id))
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to load list {list_id}") from exc
        return self._to_model(row) if row is not None else None

    async def all_lists(self, *, owner_id: str | None = None) -> list[WatchList]:
        """Return lists ordered by name descending, optionally for one owner."""

        stmt = select(ListRow).order_by(ListRow.name.desc())
        if owner_id is not None:
            stmt = stmt.where(ListRow.owner_id == str(owner_id))
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                rows = result.scalars().all()
        except SQLAlchemyError as exc:
            raise StorageError("Failed to load lists") from exc
        return [self._to_model(row) for row in rows]

    async def create_list(self, name: str, owner_id: str) -> WatchList:
        try:
            async with self._session_factory() as session:
                existing = await session.execute(
                    select(ListRow.id).where(ListRow.name == name)
                )
                if existing.first() is not None:
                    raise ValidationError("A list with this name already exists.")
                row = ListRow(
                    id=new_local_id(), name=name, owner_id=str(owner_id), membership=[]
                )
                session.add(row)
                await session.commit()
        except IntegrityError as exc:
            raise ValidationError("A list with this name already exists.") from exc
        except SQLAlchemyError as exc:
            raise StorageError("Failed to create list") from exc
        return self._to_model(row)

    async def upsert_list(
        self,
        list_id: str,
        *,
        name: str | None = None,
        membership: Sequence[ListMembershipEntry] | None = None,
    ) -> WatchList | None:
        """Replace the given fields of a list; ``None`` when the list is gone."""

        try:
            async with self._session_factory() as session:
                row = await session.get(ListRow, str(list_id))
                if row is None:
                    return None
                if name is not None:
                    row.name = name
                if membership is not None:
                    row.membership = [entry.model_dump() for entry in membership]
                await session.commit()
        except IntegrityError as exc:
            raise ValidationError("A list with this name already exists.") from exc
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to update list {list_id}") from exc
        return self._to_model(row)

    async def save_membership(
        self, list_id: str, membership: Sequence[ListMembershipEntry]
    ) -> WatchList | None:
        return await self.upsert_list(list_id, membership=membership)

    async def delete_list(self, list_id: str) -> bool:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    delete(ListRow).where(ListRow.id == str(list_id))
                )
                await session.commit()
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to delete list {list_id}") from exc
        return bool(result.rowcount)

    @staticmethod
    def _to_model(row: ListRow) -> WatchList:
        membership: list[ListMembershipEntry] = []
        for raw in row.membership or []:
            if not isinstance(raw, dict) or not raw.get("item_ref"):
                logger.warning("Skipping malformed membership entry on list %s", row.id)
                continue
            membership.append(ListMembershipEntry.model_validate(raw))
        return WatchList(
            id=row.id, name=row.name, owner_id=row.owner_id, membership=membership
        )

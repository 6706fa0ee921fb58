"""Media store upsert and lookup behaviour against SQLite."""

from __future__ import annotations

from datetime import date

import pytest

from app.database import Database
from app.errors import StorageError
from app.services.media_store import MediaStore


def _movie(title: str = "Arrival", released: str = "2016-11-11") -> dict[str, object]:
    return {"title": title, "release_date": released, "kind": "movie", "poster_path": None}


@pytest.mark.anyio("asyncio")
async def test_upsert_matches_on_catalog_id(tmp_path) -> None:
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'media.db'}")
    await database.create_all()
    store = MediaStore(database.session_factory)
    try:
        first = await store.upsert("329865", _movie())
        second = await store.upsert("329865", _movie(title="Arrival (2016)"))
        other = await store.upsert("27205", _movie(title="Inception", released="2010-07-16"))
        found = await store.find_by_local_ids({first.local_id})
    finally:
        await database.dispose()

    assert first.local_id == second.local_id
    assert second.title == "Arrival (2016)"
    assert other.local_id != first.local_id
    assert [record.title for record in found] == ["Arrival (2016)"]


@pytest.mark.anyio("asyncio")
async def test_find_by_local_ids_skips_unknown_ids(tmp_path) -> None:
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'media.db'}")
    await database.create_all()
    store = MediaStore(database.session_factory)
    try:
        record = await store.upsert("1", _movie())
        found = await store.find_by_local_ids([record.local_id, "missing"])
        nothing = await store.find_by_local_ids([])
        missing = await store.get("missing")
    finally:
        await database.dispose()

    assert [item.local_id for item in found] == [record.local_id]
    assert found[0].release_date == date(2016, 11, 11)
    assert nothing == []
    assert missing is None


@pytest.mark.anyio("asyncio")
async def test_upsert_many_preserves_input_order(tmp_path) -> None:
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'media.db'}")
    await database.create_all()
    store = MediaStore(database.session_factory)
    try:
        records = await store.upsert_many(
            [
                ("b", _movie(title="Second")),
                ("a", _movie(title="First")),
            ]
        )
    finally:
        await database.dispose()

    assert [record.catalog_id for record in records] == ["b", "a"]


@pytest.mark.anyio("asyncio")
async def test_storage_failures_raise_storage_error(tmp_path) -> None:
    # Tables are never created, so every query fails.
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'empty.db'}")
    store = MediaStore(database.session_factory)
    try:
        with pytest.raises(StorageError):
            await store.find_by_local_ids(["anything"])
    finally:
        await database.dispose()

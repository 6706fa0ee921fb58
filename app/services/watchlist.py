"""Coordinates catalog imports, list membership and hierarchy views."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Mapping

from pydantic import ValidationError as PydanticValidationError

from ..errors import (
    CatalogUnavailable,
    NotFound,
    StorageError,
    Unauthorized,
    ValidationError,
)
from ..models import (
    ListMembershipEntry,
    ResolvedMediaView,
    SearchResult,
    WatchList,
    normalize_kind,
)
from ..outcome import Outcome
from .hierarchy import CascadeEngine, HierarchyResolver
from .importer import CatalogImporter
from .list_store import ListStore
from .media_store import MediaStore
from .membership import merge_batch, readd_item, update_entry
from .tmdb import TMDBClient

logger = logging.getLogger(__name__)

MembershipChange = Callable[[WatchList], Awaitable[list[ListMembershipEntry]]]

# Failures that membership mutations report as an empty outcome instead of
# raising. Ownership and input errors always propagate.
DEGRADABLE_ERRORS = (StorageError, CatalogUnavailable)


class WatchlistService:
    """Entry point for every list and media operation exposed over HTTP."""

    def __init__(
        self,
        tmdb: TMDBClient,
        media_store: MediaStore,
        list_store: ListStore,
    ):
        self._tmdb = tmdb
        self._media_store = media_store
        self._lists = list_store
        self._importer = CatalogImporter(tmdb, media_store)
        self._resolver = HierarchyResolver(media_store)
        self._cascade = CascadeEngine(self._resolver)

    # Catalog search -------------------------------------------------------

    async def search_media(self, query: str) -> list[SearchResult]:
        """Search the catalog for movies and shows, oldest release first."""

        cleaned = (query or "").strip()
        if not cleaned:
            raise ValidationError("A search query is required")
        payload = await self._tmdb.fetch_search(cleaned)
        results: list[SearchResult] = []
        for raw in payload.get("results") or []:
            if not isinstance(raw, dict):
                continue
            try:
                result = SearchResult.from_catalog(raw)
            except PydanticValidationError:
                logger.debug("Dropping malformed search result %s", raw.get("id"))
                continue
            if result is not None:
                results.append(result)
        return sorted(results, key=lambda result: result.order_key())

    # Lists ----------------------------------------------------------------

    async def list_lists(self) -> list[WatchList]:
        return await self._lists.all_lists()

    async def user_lists(self, user_id: str) -> list[WatchList]:
        return await self._lists.all_lists(owner_id=user_id)

    async def fetch_list(self, list_id: str) -> WatchList:
        watch_list = await self._lists.find_list(list_id)
        if watch_list is None:
            raise NotFound(f"List {list_id} does not exist")
        return watch_list

    async def create_list(self, name: str, user_id: str) -> WatchList:
        cleaned = self._clean_name(name)
        self._require_user(user_id)
        watch_list = await self._lists.create_list(cleaned, user_id)
        logger.info("Created list %s for user %s", watch_list.id, user_id)
        return watch_list

    async def rename_list(self, list_id: str, name: str, user_id: str) -> WatchList:
        cleaned = self._clean_name(name)
        await self.get_authorized_list(list_id, user_id)
        updated = await self._lists.upsert_list(list_id, name=cleaned)
        if updated is None:
            raise NotFound(f"List {list_id} does not exist")
        return updated

    async def delete_list(self, list_id: str, user_id: str) -> None:
        await self.get_authorized_list(list_id, user_id)
        await self._lists.delete_list(list_id)
        logger.info("Deleted list %s", list_id)

    async def get_authorized_list(self, list_id: str, user_id: str) -> WatchList:
        """Return the list when ``user_id`` owns it."""

        self._require_user(user_id)
        watch_list = await self.fetch_list(list_id)
        if not watch_list.is_owned_by(user_id):
            logger.warning("User %s may not modify list %s", user_id, list_id)
            raise Unauthorized("Unauthorized!")
        return watch_list

    async def list_media(self, list_id: str) -> list[ResolvedMediaView]:
        """Return the hydrated, release-ordered contents of a list."""

        watch_list = await self.fetch_list(list_id)
        return await self._resolver.resolve(watch_list.membership)

    # Membership mutations -------------------------------------------------

    async def add_to_list(
        self,
        list_id: str,
        selection: SearchResult | Mapping[str, Any],
        user_id: str,
    ) -> Outcome[WatchList]:
        """Store a search hit and (re-)add it at the end of the list."""

        if not isinstance(selection, SearchResult):
            selection = self._parse_selection(selection)

        async def change(watch_list: WatchList) -> list[ListMembershipEntry]:
            record = await self._importer.import_selection(selection)
            return readd_item(watch_list.membership, record)

        return await self._mutate(list_id, user_id, "add_to_list", change)

    async def remove_from_list(
        self, list_id: str, ref: str, user_id: str, kind: str | None = None
    ) -> Outcome[WatchList]:
        """Remove an item and everything beneath it in the hierarchy.

        ``ref`` is a catalog key, a local id or a bare TMDB id; ``kind``
        disambiguates a bare id shared by a movie and a show.
        """

        async def change(watch_list: WatchList) -> list[ListMembershipEntry]:
            return await self._cascade.remove_subtree(watch_list.membership, ref, kind)

        return await self._mutate(list_id, user_id, "remove_from_list", change)

    async def toggle_watched(
        self, list_id: str, item_ref: str, is_watched: bool, user_id: str
    ) -> Outcome[WatchList]:
        if not isinstance(is_watched, bool):
            raise ValidationError("is_watched must be a boolean")

        async def change(watch_list: WatchList) -> list[ListMembershipEntry]:
            return update_entry(watch_list.membership, item_ref, is_watched=is_watched)

        return await self._mutate(list_id, user_id, "toggle_watched", change)

    async def hide_children(
        self, list_id: str, item_ref: str, user_id: str
    ) -> Outcome[WatchList]:
        async def change(watch_list: WatchList) -> list[ListMembershipEntry]:
            return self._cascade.collapse_children(watch_list.membership, item_ref)

        return await self._mutate(list_id, user_id, "hide_children", change)

    async def add_seasons(
        self, list_id: str, show_local_id: str, user_id: str
    ) -> Outcome[WatchList]:
        """Import a show's seasons into the list and expand the show."""

        async def change(watch_list: WatchList) -> list[ListMembershipEntry]:
            self._require_member(watch_list, show_local_id)
            seasons = await self._importer.import_seasons(show_local_id)
            return merge_batch(
                watch_list.membership, seasons, reveal_parent=show_local_id
            )

        return await self._mutate(list_id, user_id, "add_seasons", change)

    async def add_episodes(
        self,
        list_id: str,
        season_local_id: str,
        season_number: int,
        show_local_id: str,
        user_id: str,
    ) -> Outcome[WatchList]:
        """Import a season's episodes into the list and expand the season."""

        if isinstance(season_number, bool) or not isinstance(season_number, int):
            raise ValidationError("season_number must be an integer")
        if season_number < 0:
            raise ValidationError("season_number must not be negative")

        async def change(watch_list: WatchList) -> list[ListMembershipEntry]:
            self._require_member(watch_list, season_local_id)
            episodes = await self._importer.import_episodes(
                season_local_id, season_number, show_local_id
            )
            return merge_batch(
                watch_list.membership, episodes, reveal_parent=season_local_id
            )

        return await self._mutate(list_id, user_id, "add_episodes", change)

    async def _mutate(
        self,
        list_id: str,
        user_id: str,
        operation: str,
        change: MembershipChange,
    ) -> Outcome[WatchList]:
        """Read, change and write back one list's membership.

        Storage and catalog failures are logged and reported as a failed
        outcome; every other error propagates.
        """

        try:
            watch_list = await self.get_authorized_list(list_id, user_id)
            membership = await change(watch_list)
            updated = await self._lists.save_membership(list_id, membership)
        except DEGRADABLE_ERRORS as exc:
            logger.warning("%s on list %s failed: %s", operation, list_id, exc)
            return Outcome.failure(exc)
        if updated is None:
            raise NotFound(f"List {list_id} does not exist")
        return Outcome.success(updated)

    @staticmethod
    def _require_member(watch_list: WatchList, item_ref: str) -> None:
        if not any(entry.item_ref == str(item_ref) for entry in watch_list.membership):
            raise NotFound(f"Media {item_ref} is not on list {watch_list.id}")

    @staticmethod
    def _require_user(user_id: str | None) -> None:
        if not user_id:
            raise Unauthorized("Authentication required")

    @staticmethod
    def _clean_name(name: str | None) -> str:
        cleaned = (name or "").strip()
        if not cleaned:
            raise ValidationError("A list name is required")
        if len(cleaned) > 120:
            raise ValidationError("List names are limited to 120 characters")
        return cleaned

    @staticmethod
    def _parse_selection(payload: Mapping[str, Any]) -> SearchResult:
        data = dict(payload)
        if data.get("catalog_id") is None and data.get("id") is not None:
            data["catalog_id"] = data["id"]
        if data.get("catalog_id") is not None:
            data["catalog_id"] = str(data["catalog_id"])
        if "kind" not in data and "media_type" in data:
            data["kind"] = data["media_type"]
        data["kind"] = normalize_kind(data.get("kind"))
        try:
            return SearchResult.model_validate(data)
        except PydanticValidationError as exc:
            raise ValidationError(f"Invalid media selection: {exc.errors()}") from exc

"""Hydrating list membership into sorted views and cascading changes."""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from ..errors import NotFound, ValidationError
from ..models import ListMembershipEntry, MediaRecord, ResolvedMediaView, normalize_kind
from .media_store import MediaStore
from .membership import update_entry

logger = logging.getLogger(__name__)


def hydrate(
    membership: Sequence[ListMembershipEntry], records: Iterable[MediaRecord]
) -> list[ResolvedMediaView]:
    """Merge membership flags into records and sort by release order.

    Entries whose record is missing are dropped. The sort is stable, so
    items with equal date, kind and title keep their membership order.
    """

    # A duplicated ref takes both its position and its flags from the first entry.
    entries: dict[str, ListMembershipEntry] = {}
    for entry in membership:
        entries.setdefault(entry.item_ref, entry)
    record_map = {record.local_id: record for record in records}

    views: list[ResolvedMediaView] = []
    for item_ref, entry in entries.items():
        record = record_map.get(item_ref)
        if record is None:
            logger.warning("Membership references unknown media %s", item_ref)
            continue
        views.append(ResolvedMediaView.from_record(record, entry))
    return sorted(views, key=lambda view: view.order_key())


def find_view(
    views: Sequence[ResolvedMediaView], ref: str, kind: str | None = None
) -> ResolvedMediaView:
    """Locate a view by catalog key, local id or bare TMDB id.

    A bare TMDB id can match a movie and a show at once; ``kind`` picks
    between them.
    """

    ref = str(ref)
    for view in views:
        if view.catalog_id == ref or view.local_id == ref:
            return view
    wanted = normalize_kind(kind) if kind else None
    matches = [
        view
        for view in views
        if view.tmdb_id == ref and (wanted is None or view.kind == wanted)
    ]
    if len(matches) > 1:
        raise ValidationError(f"Media {ref} is ambiguous; pass its kind")
    if matches:
        return matches[0]
    raise NotFound(f"Media {ref} is not on this list")


def descendant_ids(views: Sequence[ResolvedMediaView], local_id: str) -> set[str]:
    """Return every view below ``local_id`` in the show/season/episode tree."""

    found: set[str] = set()
    frontier = {local_id}
    while frontier:
        children = {
            view.local_id
            for view in views
            if view.local_id not in found
            and (view.parent_show in frontier or view.parent_season in frontier)
        }
        children.discard(local_id)
        found |= children
        frontier = children
    return found


def prune_subtree(
    membership: Sequence[ListMembershipEntry],
    views: Sequence[ResolvedMediaView],
    ref: str,
    kind: str | None = None,
) -> list[ListMembershipEntry]:
    target = find_view(views, ref, kind)
    removed = descendant_ids(views, target.local_id) | {target.local_id}
    return [entry.model_copy() for entry in membership if entry.item_ref not in removed]


class HierarchyResolver:
    """Turns a membership sequence into hydrated, sorted views."""

    def __init__(self, media_store: MediaStore):
        self._media_store = media_store

    async def resolve(
        self, membership: Sequence[ListMembershipEntry]
    ) -> list[ResolvedMediaView]:
        if not membership:
            return []
        records = await self._media_store.find_by_local_ids(
            entry.item_ref for entry in membership
        )
        return hydrate(membership, records)


class CascadeEngine:
    """Applies removals and visibility changes to a whole subtree."""

    def __init__(self, resolver: HierarchyResolver):
        self._resolver = resolver

    async def remove_subtree(
        self,
        membership: Sequence[ListMembershipEntry],
        ref: str,
        kind: str | None = None,
    ) -> list[ListMembershipEntry]:
        """Drop the target and all of its descendants from ``membership``.

        ``ref`` may be the catalog key, the local id or the bare TMDB id of
        the target.
        """

        views = await self._resolver.resolve(membership)
        return prune_subtree(membership, views, ref, kind)

    @staticmethod
    def collapse_children(
        membership: Sequence[ListMembershipEntry], ref: str
    ) -> list[ListMembershipEntry]:
        return update_entry(membership, ref, show_children=False)

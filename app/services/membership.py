"""Merging media records into a list's de-duplicated membership."""

from __future__ import annotations

from typing import Iterable, Sequence

from ..errors import NotFound
from ..models import ListMembershipEntry, MediaRecord


def _copy(membership: Iterable[ListMembershipEntry]) -> list[ListMembershipEntry]:
    return [entry.model_copy() for entry in membership]


def find_entry_index(membership: Sequence[ListMembershipEntry], item_ref: str) -> int:
    for index, entry in enumerate(membership):
        if entry.item_ref == str(item_ref):
            return index
    return -1


def merge_batch(
    membership: Sequence[ListMembershipEntry],
    records: Sequence[MediaRecord],
    *,
    reveal_parent: str | None = None,
    show_children: bool = False,
) -> list[ListMembershipEntry]:
    """Append records that are not already members.

    Existing entries keep their flags. New entries follow the order of
    ``records``. When ``reveal_parent`` is given, that entry's
    ``show_children`` flag is switched on in the same update, even if the
    batch was empty.
    """

    merged = _copy(membership)
    present = {entry.item_ref for entry in merged}
    for record in records:
        if record.local_id in present:
            continue
        present.add(record.local_id)
        merged.append(
            ListMembershipEntry(item_ref=record.local_id, show_children=show_children)
        )

    if reveal_parent is not None:
        index = find_entry_index(merged, reveal_parent)
        if index < 0:
            raise NotFound(f"Media {reveal_parent} is not on this list")
        merged[index].show_children = True
    return merged


def readd_item(
    membership: Sequence[ListMembershipEntry], record: MediaRecord
) -> list[ListMembershipEntry]:
    """Put ``record`` at the end of the list with default flags.

    An existing entry for the same record is dropped first, so re-adding an
    item resets it instead of duplicating it.
    """

    merged = [entry.model_copy() for entry in membership if entry.item_ref != record.local_id]
    merged.append(ListMembershipEntry(item_ref=record.local_id))
    return merged


def update_entry(
    membership: Sequence[ListMembershipEntry],
    item_ref: str,
    *,
    is_watched: bool | None = None,
    show_children: bool | None = None,
) -> list[ListMembershipEntry]:
    """Return a copy of ``membership`` with one entry's flags changed."""

    updated = _copy(membership)
    index = find_entry_index(updated, item_ref)
    if index < 0:
        raise NotFound(f"Media {item_ref} is not on this list")
    if is_watched is not None:
        updated[index].is_watched = is_watched
    if show_children is not None:
        updated[index].show_children = show_children
    return updated

"""List membership merge behaviour."""

from __future__ import annotations

from datetime import date

import pytest

from app.errors import NotFound
from app.models import ListMembershipEntry, MediaRecord
from app.services.membership import merge_batch, readd_item, update_entry


def _record(local_id: str, **overrides) -> MediaRecord:
    data = {
        "local_id": local_id,
        "catalog_id": f"cat-{local_id}",
        "title": local_id.title(),
        "release_date": date(2023, 1, 1),
        "kind": "movie",
    }
    data.update(overrides)
    return MediaRecord(**data)


def _refs(membership: list[ListMembershipEntry]) -> list[str]:
    return [entry.item_ref for entry in membership]


def test_merge_skips_existing_members() -> None:
    membership = [ListMembershipEntry(item_ref="a", is_watched=True)]

    merged = merge_batch(membership, [_record("a")])

    assert len(merged) == 1
    assert merged[0].is_watched is True


def test_merge_appends_new_records_in_input_order() -> None:
    membership = [ListMembershipEntry(item_ref="a")]

    merged = merge_batch(membership, [_record("c"), _record("a"), _record("b")])

    assert _refs(merged) == ["a", "c", "b"]
    assert all(not entry.is_watched and not entry.show_children for entry in merged[1:])


def test_merge_ignores_duplicates_within_batch() -> None:
    merged = merge_batch([], [_record("a"), _record("a")])

    assert _refs(merged) == ["a"]


def test_merge_reveals_parent_and_leaves_input_untouched() -> None:
    membership = [ListMembershipEntry(item_ref="show")]

    merged = merge_batch(membership, [_record("s1")], reveal_parent="show")

    assert merged[0].show_children is True
    assert membership[0].show_children is False


def test_empty_batch_still_reveals_parent() -> None:
    membership = [ListMembershipEntry(item_ref="show")]

    merged = merge_batch(membership, [], reveal_parent="show")

    assert _refs(merged) == ["show"]
    assert merged[0].show_children is True


def test_reveal_of_missing_parent_raises() -> None:
    with pytest.raises(NotFound):
        merge_batch([], [_record("s1")], reveal_parent="show")


def test_readd_resets_flags_and_moves_to_end() -> None:
    membership = [
        ListMembershipEntry(item_ref="a", is_watched=True, show_children=True),
        ListMembershipEntry(item_ref="b"),
    ]

    merged = readd_item(membership, _record("a"))

    assert _refs(merged) == ["b", "a"]
    assert merged[-1].is_watched is False
    assert merged[-1].show_children is False


def test_readd_of_new_item_appends() -> None:
    merged = readd_item([ListMembershipEntry(item_ref="a")], _record("b"))

    assert _refs(merged) == ["a", "b"]


def test_update_entry_changes_only_requested_flag() -> None:
    membership = [ListMembershipEntry(item_ref="a", show_children=True)]

    updated = update_entry(membership, "a", is_watched=True)

    assert updated[0].is_watched is True
    assert updated[0].show_children is True


def test_update_entry_requires_member() -> None:
    with pytest.raises(NotFound):
        update_entry([ListMembershipEntry(item_ref="a")], "b", is_watched=True)

"""Utility helpers for the watchlist service."""

from __future__ import annotations

import uuid
from datetime import date, datetime


def new_local_id() -> str:
    """Return a fresh opaque identifier for stored records."""

    return uuid.uuid4().hex


def parse_release_date(value: object) -> date | None:
    """Coerce catalog date values into ``date`` objects.

    The catalog reports dates as ``YYYY-MM-DD`` strings and uses empty strings
    or ``null`` for unknown dates; both map to ``None``.
    """

    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    raw = value.strip()
    if not raw:
        return None
    try:
        return date.fromisoformat(raw[:10])
    except ValueError:
        return None

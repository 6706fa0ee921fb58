"""Pydantic models describing media records, lists and their views."""

from __future__ import annotations

from datetime import date
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

from .utils import parse_release_date

MediaKind = Literal["movie", "show", "season", "episode"]

KIND_ORDER: dict[str, int] = {"movie": 0, "show": 1, "season": 2, "episode": 3}

# The catalog calls shows "tv"; everything else already matches.
CATALOG_KIND_ALIASES: dict[str, str] = {"tv": "show"}


def normalize_kind(value: object) -> object:
    if isinstance(value, str):
        cleaned = value.strip().lower()
        return CATALOG_KIND_ALIASES.get(cleaned, cleaned)
    return value


def release_order_key(release_date: date, kind: str, title: str) -> tuple[date, int, str]:
    """Sort key ordering by release date, then kind, then title."""

    return (release_date, KIND_ORDER.get(kind, len(KIND_ORDER)), title)


# TMDB numbers each media type separately, so stored keys carry a prefix.
CATALOG_KEY_PREFIXES: dict[str, str] = {
    "movie": "movie",
    "show": "tv",
    "season": "season",
    "episode": "episode",
}


def catalog_key(kind: str, tmdb_id: object) -> str:
    """Return the stored catalog key, e.g. ``tv:100`` for TMDB show 100."""

    return f"{CATALOG_KEY_PREFIXES[kind]}:{tmdb_id}"


def tmdb_id_from_key(key: str) -> str:
    """Strip the media type prefix from a stored catalog key."""

    prefix, separator, tmdb_id = key.partition(":")
    if separator and prefix in CATALOG_KEY_PREFIXES.values():
        return tmdb_id
    return key


class MediaFields(BaseModel):
    """Everything a catalog import knows about an item before it is stored."""

    model_config = ConfigDict(populate_by_name=True)

    catalog_id: str = Field(validation_alias=AliasChoices("catalog_id", "id", "media_id"))
    name: str | None = None
    title: str
    release_date: date
    kind: MediaKind = Field(validation_alias=AliasChoices("kind", "media_type"))
    poster_path: str | None = None
    number: int = 1
    parent_show: str | None = None
    parent_season: str | None = None
    episode_label: str | None = Field(
        default=None, validation_alias=AliasChoices("episode_label", "episode")
    )

    @model_validator(mode="before")
    @classmethod
    def _coerce_catalog_values(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        payload = dict(data)
        for key in ("catalog_id", "id", "media_id"):
            if isinstance(payload.get(key), int):
                payload[key] = str(payload[key])
        for key in ("kind", "media_type"):
            if key in payload:
                payload[key] = normalize_kind(payload[key])
        if "release_date" in payload:
            payload["release_date"] = parse_release_date(payload["release_date"])
        return payload

    @model_validator(mode="after")
    def _check_parents(self) -> "MediaFields":
        if self.kind == "season" and not self.parent_show:
            raise ValueError("season records require a parent show")
        if self.kind == "episode" and not self.parent_season:
            raise ValueError("episode records require a parent season")
        return self


class MediaRecord(MediaFields):
    """Canonical cached catalog entry."""

    local_id: str

    @property
    def tmdb_id(self) -> str:
        return tmdb_id_from_key(self.catalog_id)

    def order_key(self) -> tuple[date, int, str]:
        return release_order_key(self.release_date, self.kind, self.title)


class ListMembershipEntry(BaseModel):
    """One row of a list's ordered membership."""

    item_ref: str
    is_watched: bool = False
    show_children: bool = False


class WatchList(BaseModel):
    """A named, user-owned, ordered membership of media records."""

    id: str
    name: str
    owner_id: str
    membership: list[ListMembershipEntry] = Field(default_factory=list)

    def is_owned_by(self, user_id: str | None) -> bool:
        return user_id is not None and self.owner_id == str(user_id)


class ResolvedMediaView(MediaRecord):
    """A media record hydrated with the flags of its membership entry."""

    is_watched: bool = False
    show_children: bool = False

    @classmethod
    def from_record(
        cls, record: MediaRecord, entry: ListMembershipEntry
    ) -> "ResolvedMediaView":
        return cls(
            **record.model_dump(),
            is_watched=entry.is_watched,
            show_children=entry.show_children,
        )


class SearchResult(BaseModel):
    """Normalised catalog search hit that can be added to a list."""

    catalog_id: str
    title: str
    release_date: date
    poster_path: str | None = None
    kind: MediaKind

    @classmethod
    def from_catalog(cls, payload: dict[str, Any]) -> "SearchResult | None":
        """Return a search hit, or ``None`` for undated or unsupported results."""

        kind = normalize_kind(payload.get("media_type") or "movie")
        if kind not in ("movie", "show"):
            return None
        raw_date = payload.get("release_date") or payload.get("first_air_date")
        release_date = parse_release_date(raw_date)
        if release_date is None:
            return None
        title = payload.get("title") or payload.get("name")
        if kind == "show":
            title = payload.get("name") or title
        if not title or payload.get("id") is None:
            return None
        return cls(
            catalog_id=str(payload["id"]),
            title=str(title),
            release_date=release_date,
            poster_path=payload.get("poster_path"),
            kind=kind,  # type: ignore[arg-type]
        )

    def order_key(self) -> tuple[date, int, str]:
        return release_order_key(self.release_date, self.kind, self.title)

    def to_media_fields(self) -> MediaFields:
        return MediaFields(
            catalog_id=catalog_key(self.kind, tmdb_id_from_key(self.catalog_id)),
            title=self.title,
            name=self.title,
            release_date=self.release_date,
            kind=self.kind,
            poster_path=self.poster_path,
        )

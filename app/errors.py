"""Exception taxonomy shared by the watchlist services."""

from __future__ import annotations


class WatchlistError(Exception):
    """Base class for every failure raised by the watchlist core."""

    status_code = 500

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message or self.__class__.__name__


class ValidationError(WatchlistError):
    """Malformed input supplied by the caller."""

    status_code = 400


class NotFound(WatchlistError):
    """A list, media record or membership entry does not exist."""

    status_code = 404


class Unauthorized(WatchlistError):
    """The authenticated user does not own the target list."""

    status_code = 403


class CatalogUnavailable(WatchlistError):
    """The external catalog could not be reached or answered with an error."""

    status_code = 502

    def __init__(self, message: str = "", *, upstream_status: int | None = None) -> None:
        super().__init__(message)
        self.upstream_status = upstream_status


class StorageError(WatchlistError):
    """The persistence layer rejected or failed an operation."""

    status_code = 503

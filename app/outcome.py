"""Tagged success/failure values returned by degradable operations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from .errors import WatchlistError

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Outcome(Generic[T]):
    """Either a value or the error that prevented producing one.

    ``Outcome.success(None)`` is a legitimate "found nothing" answer and is
    distinct from ``Outcome.failure(...)``.
    """

    value: T | None = None
    error: WatchlistError | None = None

    @classmethod
    def success(cls, value: T | None) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: WatchlistError) -> "Outcome[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T | None:
        """Return the value or re-raise the captured error."""

        if self.error is not None:
            raise self.error
        return self.value

"""Movie and TV watchlists served over HTTP.

``app.main`` builds the service at import time, so the attributes below
are only resolved on first access.
"""

from __future__ import annotations

from importlib import import_module
from typing import Any

__all__ = ["app", "create_app"]


def __getattr__(name: str) -> Any:
    if name not in __all__:
        raise AttributeError(f"module 'app' has no attribute {name}")
    return getattr(import_module("app.main"), name)

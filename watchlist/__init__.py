"""Distribution name for the watchlist service; re-exports the ASGI app."""

from __future__ import annotations

from app.main import app, create_app

__all__ = ["app", "create_app"]

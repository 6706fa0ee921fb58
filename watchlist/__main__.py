"""``python -m watchlist`` and the ``watchlist`` console script."""

from __future__ import annotations

import uvicorn

from app.config import settings


def main() -> None:
    # Auto-reload only makes sense against a working tree.
    uvicorn.run(
        "app.main:app",
        host=settings.server_host,
        port=settings.server_port,
        log_level=settings.log_level.lower(),
        reload=settings.environment == "development",
    )


if __name__ == "__main__":
    main()

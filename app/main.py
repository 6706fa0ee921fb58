"""Entry point for the FastAPI-powered watchlist service."""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any

import httpx
from fastapi import Body, FastAPI, Header, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .config import settings
from .database import Database
from .errors import WatchlistError
from .models import WatchList
from .outcome import Outcome
from .services.list_store import ListStore
from .services.media_store import MediaStore
from .services.tmdb import TMDBClient
from .services.watchlist import WatchlistService

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app: FastAPI


class ListNamePayload(BaseModel):
    name: str


class WatchedPayload(BaseModel):
    is_watched: bool = Field(alias="isWatched")

    model_config = {"populate_by_name": True}


class EpisodesPayload(BaseModel):
    season_number: int
    show_id: str


@asynccontextmanager
async def lifespan(_: FastAPI):
    exit_stack = AsyncExitStack()
    tmdb_http_client = await exit_stack.enter_async_context(
        httpx.AsyncClient(
            base_url=str(settings.tmdb_api_url),
            timeout=httpx.Timeout(settings.tmdb_timeout_seconds, connect=10.0),
        )
    )
    database = Database(settings.database_url)
    await database.create_all()

    if not settings.tmdb_enabled:
        logger.warning("TMDB_API_KEY is not set; catalog lookups will fail")

    service = WatchlistService(
        TMDBClient(settings, tmdb_http_client),
        MediaStore(database.session_factory),
        ListStore(database.session_factory),
    )
    app.state.watchlist_service = service
    app.state.database = database

    try:
        yield
    finally:
        await database.dispose()
        await exit_stack.aclose()


def create_app() -> FastAPI:
    fastapi_app = FastAPI(
        title=settings.app_name,
        description="Movie and TV watchlists backed by TMDB",
        version="1.0.0",
        lifespan=lifespan,
    )

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PATCH", "DELETE"],
        allow_headers=["*"],
    )

    register_routes(fastapi_app)
    return fastapi_app


def get_watchlist_service(app: FastAPI) -> WatchlistService:
    service = getattr(app.state, "watchlist_service", None)
    if not isinstance(service, WatchlistService):
        raise RuntimeError("Watchlist service not initialised")
    return service


def _outcome_payload(outcome: Outcome[WatchList]) -> dict[str, Any]:
    value = outcome.value
    return {
        "list": value.model_dump(mode="json") if value is not None else None,
        "error": str(outcome.error) if outcome.error is not None else None,
    }


def register_routes(fastapi_app: FastAPI) -> None:
    async def _watchlist_error(_: Request, exc: WatchlistError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"detail": str(exc)})

    fastapi_app.add_exception_handler(WatchlistError, _watchlist_error)

    def service() -> WatchlistService:
        return get_watchlist_service(fastapi_app)

    @fastapi_app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @fastapi_app.get("/search")
    async def search(q: str = Query(default="")) -> list[dict[str, Any]]:
        results = await service().search_media(q)
        return [result.model_dump(mode="json") for result in results]

    @fastapi_app.get("/lists")
    async def lists(
        user_id: str | None = Header(default=None, alias="X-User-Id"),
        mine: bool = Query(default=False),
    ) -> list[dict[str, Any]]:
        if mine and user_id:
            found = await service().user_lists(user_id)
        else:
            found = await service().list_lists()
        return [watch_list.model_dump(mode="json") for watch_list in found]

    @fastapi_app.post("/lists", status_code=201)
    async def create_list(
        payload: ListNamePayload,
        user_id: str | None = Header(default=None, alias="X-User-Id"),
    ) -> dict[str, Any]:
        created = await service().create_list(payload.name, user_id or "")
        return created.model_dump(mode="json")

    @fastapi_app.get("/lists/{list_id}")
    async def get_list(list_id: str) -> dict[str, Any]:
        watch_list = await service().fetch_list(list_id)
        return watch_list.model_dump(mode="json")

    @fastapi_app.patch("/lists/{list_id}")
    async def rename_list(
        list_id: str,
        payload: ListNamePayload,
        user_id: str | None = Header(default=None, alias="X-User-Id"),
    ) -> dict[str, Any]:
        renamed = await service().rename_list(list_id, payload.name, user_id or "")
        return renamed.model_dump(mode="json")

    @fastapi_app.delete("/lists/{list_id}", status_code=204)
    async def delete_list(
        list_id: str,
        user_id: str | None = Header(default=None, alias="X-User-Id"),
    ) -> None:
        await service().delete_list(list_id, user_id or "")

    @fastapi_app.get("/lists/{list_id}/media")
    async def list_media(list_id: str) -> list[dict[str, Any]]:
        views = await service().list_media(list_id)
        return [view.model_dump(mode="json") for view in views]

    @fastapi_app.post("/lists/{list_id}/media")
    async def add_media(
        list_id: str,
        payload: dict[str, Any] = Body(...),
        user_id: str | None = Header(default=None, alias="X-User-Id"),
    ) -> dict[str, Any]:
        outcome = await service().add_to_list(list_id, payload, user_id or "")
        return _outcome_payload(outcome)

    @fastapi_app.delete("/lists/{list_id}/media/{ref}")
    async def remove_media(
        list_id: str,
        ref: str,
        kind: str | None = Query(default=None),
        user_id: str | None = Header(default=None, alias="X-User-Id"),
    ) -> dict[str, Any]:
        outcome = await service().remove_from_list(
            list_id, ref, user_id or "", kind=kind
        )
        return _outcome_payload(outcome)

    @fastapi_app.post("/lists/{list_id}/media/{local_id}/watched")
    async def toggle_watched(
        list_id: str,
        local_id: str,
        payload: WatchedPayload,
        user_id: str | None = Header(default=None, alias="X-User-Id"),
    ) -> dict[str, Any]:
        outcome = await service().toggle_watched(
            list_id, local_id, payload.is_watched, user_id or ""
        )
        return _outcome_payload(outcome)

    @fastapi_app.post("/lists/{list_id}/media/{local_id}/seasons")
    async def add_seasons(
        list_id: str,
        local_id: str,
        user_id: str | None = Header(default=None, alias="X-User-Id"),
    ) -> dict[str, Any]:
        outcome = await service().add_seasons(list_id, local_id, user_id or "")
        return _outcome_payload(outcome)

    @fastapi_app.post("/lists/{list_id}/media/{local_id}/episodes")
    async def add_episodes(
        list_id: str,
        local_id: str,
        payload: EpisodesPayload,
        user_id: str | None = Header(default=None, alias="X-User-Id"),
    ) -> dict[str, Any]:
        outcome = await service().add_episodes(
            list_id, local_id, payload.season_number, payload.show_id, user_id or ""
        )
        return _outcome_payload(outcome)

    @fastapi_app.post("/lists/{list_id}/media/{local_id}/collapse")
    async def collapse(
        list_id: str,
        local_id: str,
        user_id: str | None = Header(default=None, alias="X-User-Id"),
    ) -> dict[str, Any]:
        outcome = await service().hide_children(list_id, local_id, user_id or "")
        return _outcome_payload(outcome)


app = create_app()

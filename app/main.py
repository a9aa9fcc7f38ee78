"""Entry point for the FastAPI-powered content browser backend."""

from __future__ import annotations

import json
import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any

import httpx
from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from .config import Settings, settings
from .database import Database
from .models import MEDIA_KINDS, UserListEntry
from .player import embed_url
from .services.details import TRAILER_UNAVAILABLE, TitleService
from .services.fetch_client import FetchClient
from .services.gateway import GatewayConfigurationError, TMDBGateway
from .services.sessions import BrowserSession, SessionRegistry
from .utils import InvalidUpstreamPath
from .views import CONTINUE_WATCHING, LIST_NAMES, TOGGLE_LISTS

logging.basicConfig(level=logging.INFO)
# httpx logs full request URLs at INFO, which would include the TMDB key.
logging.getLogger("httpx").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)

INTERNAL_GATEWAY_URL = "http://gateway.internal"

app: FastAPI


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    exit_stack = AsyncExitStack()
    timeout = httpx.Timeout(settings.upstream_timeout_seconds, connect=5.0)
    upstream_client = await exit_stack.enter_async_context(
        httpx.AsyncClient(base_url=settings.tmdb_base_url, timeout=timeout)
    )
    if settings.gateway_url is not None:
        gateway_client = httpx.AsyncClient(
            base_url=str(settings.gateway_url), timeout=timeout
        )
    else:
        gateway_client = httpx.AsyncClient(
            transport=httpx.ASGITransport(app=fastapi_app),
            base_url=INTERNAL_GATEWAY_URL,
            timeout=timeout,
        )
    gateway_client = await exit_stack.enter_async_context(gateway_client)

    database = Database(settings.database_url)
    await database.create_all()

    gateway = TMDBGateway(settings, upstream_client)
    if not gateway.is_configured:
        logger.warning("TMDB_API_KEY is not set; proxied requests will fail")
    fetch_client = FetchClient(gateway_client)
    sessions = SessionRegistry(settings, fetch_client, database.session_factory)

    fastapi_app.state.settings = settings
    fastapi_app.state.gateway = gateway
    fastapi_app.state.sessions = sessions
    fastapi_app.state.titles = TitleService(fetch_client)
    fastapi_app.state.database = database

    try:
        yield
    finally:  # pragma: no cover - teardown path exercised at runtime
        await sessions.stop()
        await database.dispose()
        await exit_stack.aclose()


def create_app() -> FastAPI:
    fastapi_app = FastAPI(
        title=settings.app_name,
        description="TMDB proxy and catalog aggregation for a streaming browser",
        version="1.0.0",
        lifespan=lifespan,
    )

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["*"],
    )

    register_routes(fastapi_app)
    return fastapi_app


def get_gateway(app: FastAPI) -> TMDBGateway:
    gateway = getattr(app.state, "gateway", None)
    if not isinstance(gateway, TMDBGateway):
        raise RuntimeError("Gateway not initialised")
    return gateway


def get_sessions(app: FastAPI) -> SessionRegistry:
    sessions = getattr(app.state, "sessions", None)
    if not isinstance(sessions, SessionRegistry):
        raise RuntimeError("Session registry not initialised")
    return sessions


def get_titles(app: FastAPI) -> TitleService:
    titles = getattr(app.state, "titles", None)
    if not isinstance(titles, TitleService):
        raise RuntimeError("Title service not initialised")
    return titles


def get_app_settings(app: FastAPI) -> Settings:
    configured = getattr(app.state, "settings", None)
    return configured if isinstance(configured, Settings) else settings


def register_routes(fastapi_app: FastAPI) -> None:
    def _check_kind(kind: str) -> None:
        if kind not in MEDIA_KINDS:
            raise HTTPException(status_code=400, detail="Unsupported media kind")

    def _check_list(list_name: str) -> None:
        if list_name not in LIST_NAMES:
            raise HTTPException(status_code=404, detail=f"Unknown list {list_name}")

    async def _session(profile: str | None) -> BrowserSession:
        return await get_sessions(fastapi_app).get(profile)

    async def _entry_from_body(request: Request) -> UserListEntry:
        try:
            payload = await request.json()
        except json.JSONDecodeError:
            payload = None
        if not isinstance(payload, dict):
            raise HTTPException(status_code=400, detail="Invalid payload")
        try:
            return UserListEntry.model_validate(payload)
        except ValidationError as exc:
            raise HTTPException(
                status_code=400, detail=exc.errors(include_url=False)
            ) from exc

    def _list_payload(session: BrowserSession, list_name: str) -> dict[str, Any]:
        return {
            "list": list_name,
            "items": [
                entry.model_dump(mode="json") for entry in session.store.load(list_name)
            ],
        }

    @fastapi_app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @fastapi_app.get("/api/tmdb")
    async def tmdb_proxy(request: Request) -> Response:
        gateway = get_gateway(fastapi_app)
        params = dict(request.query_params)
        path = params.pop("path", None)
        try:
            result = await gateway.forward(path, params)
        except InvalidUpstreamPath as exc:
            return JSONResponse({"message": str(exc)}, status_code=400)
        except GatewayConfigurationError as exc:
            return JSONResponse({"message": str(exc)}, status_code=500)
        if result.raw is not None:
            return Response(
                content=result.raw,
                status_code=result.status_code,
                media_type=result.media_type,
            )
        return JSONResponse(result.body, status_code=result.status_code)

    @fastapi_app.get("/api/views/{view_name}")
    async def load_view(view_name: str, profile: str | None = None) -> JSONResponse:
        session = await _session(profile)
        view_model = await session.aggregator.load_view(view_name)
        return JSONResponse(view_model.to_payload())

    @fastapi_app.get("/api/search")
    async def search(q: str = "", profile: str | None = None) -> JSONResponse:
        session = await _session(profile)
        view_model = await session.aggregator.search(q)
        return JSONResponse(
            {
                "query": view_model.search_query,
                "results": [
                    item.model_dump(mode="json") for item in view_model.search_results
                ],
            }
        )

    @fastapi_app.get("/api/titles/{kind}/{title_id}")
    async def title_details(kind: str, title_id: int) -> JSONResponse:
        _check_kind(kind)
        details = await get_titles(fastapi_app).load_details(kind, title_id)  # type: ignore[arg-type]
        if details is None:
            raise HTTPException(status_code=404, detail="Title not found")
        return JSONResponse(details.model_dump(mode="json"))

    @fastapi_app.get("/api/titles/{kind}/{title_id}/trailer")
    async def title_trailer(kind: str, title_id: int) -> dict[str, Any]:
        _check_kind(kind)
        key = await get_titles(fastapi_app).find_trailer(kind, title_id)  # type: ignore[arg-type]
        return {"key": key, "notice": None if key else TRAILER_UNAVAILABLE}

    @fastapi_app.get("/api/tv/{tv_id}/season/{season_number}")
    async def tv_season(tv_id: int, season_number: int) -> JSONResponse:
        season = await get_titles(fastapi_app).load_season(tv_id, season_number)
        if season is None:
            raise HTTPException(status_code=404, detail="Season not found")
        return JSONResponse(season.model_dump(mode="json"))

    @fastapi_app.get("/api/player/{kind}/{title_id}")
    async def player_url(
        kind: str,
        title_id: int,
        season: int | None = None,
        episode: int | None = None,
    ) -> dict[str, str]:
        _check_kind(kind)
        base_url = str(get_app_settings(fastapi_app).player_base_url)
        try:
            url = embed_url(base_url, kind, title_id, season, episode)  # type: ignore[arg-type]
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return {"url": url}

    @fastapi_app.get("/api/lists/{list_name}")
    async def get_list(list_name: str, profile: str | None = None) -> dict[str, Any]:
        _check_list(list_name)
        session = await _session(profile)
        return _list_payload(session, list_name)

    @fastapi_app.post("/api/lists/continueWatching")
    async def record_watch(request: Request, profile: str | None = None) -> dict[str, Any]:
        entry = await _entry_from_body(request)
        session = await _session(profile)
        await session.store.record_watch(entry)
        return _list_payload(session, CONTINUE_WATCHING)

    @fastapi_app.post("/api/lists/{list_name}/toggle")
    async def toggle_list(
        list_name: str, request: Request, profile: str | None = None
    ) -> dict[str, Any]:
        _check_list(list_name)
        if list_name not in TOGGLE_LISTS:
            raise HTTPException(status_code=400, detail="List does not support toggling")
        entry = await _entry_from_body(request)
        session = await _session(profile)
        member = await session.store.toggle_list_membership(list_name, entry)
        payload = _list_payload(session, list_name)
        payload["member"] = member
        return payload

    @fastapi_app.delete("/api/lists/{list_name}")
    async def clear_list(list_name: str, profile: str | None = None) -> dict[str, Any]:
        _check_list(list_name)
        session = await _session(profile)
        await session.store.clear(list_name)
        return _list_payload(session, list_name)

    @fastapi_app.get("/api/theme")
    async def get_theme(profile: str | None = None) -> dict[str, str]:
        session = await _session(profile)
        return {"theme": session.store.theme}

    @fastapi_app.put("/api/theme")
    async def set_theme(request: Request, profile: str | None = None) -> dict[str, str]:
        try:
            payload = await request.json()
        except json.JSONDecodeError:
            payload = None
        if not isinstance(payload, dict):
            raise HTTPException(status_code=400, detail="Invalid payload")
        session = await _session(profile)
        try:
            theme = await session.store.set_theme(str(payload.get("theme") or ""))
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return {"theme": theme}


app = create_app()

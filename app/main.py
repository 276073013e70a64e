"""Entry point for the FastAPI-powered media search service."""

from __future__ import annotations

import json
import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any

import httpx
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from .config import settings
from .database import Database
from .errors import FetchError, MissingCredentialError
from .models import MEDIA_TYPES, MediaType, RelatedRequest
from .query import SearchParams
from .services.aggregator import MediaAggregator
from .services.history import SearchHistoryStore
from .services.openverse import OpenverseClient
from .services.pixabay import PixabayClient
from .services.size_probe import SizeProbe
from .sessions import SearchSession, SessionStore

logging.basicConfig(level=settings.log_level.upper())
logger = logging.getLogger(__name__)

USER_HEADER = "x-user-id"

app: FastAPI


@asynccontextmanager
async def lifespan(_: FastAPI):
    exit_stack = AsyncExitStack()
    provider_timeout = httpx.Timeout(settings.provider_timeout_seconds, connect=10.0)
    openverse_http = await exit_stack.enter_async_context(
        httpx.AsyncClient(
            base_url=str(settings.openverse_api_url),
            timeout=provider_timeout,
        )
    )
    pixabay_http = await exit_stack.enter_async_context(
        httpx.AsyncClient(
            base_url=str(settings.pixabay_api_url),
            timeout=provider_timeout,
        )
    )
    probe_http = await exit_stack.enter_async_context(
        httpx.AsyncClient(
            timeout=httpx.Timeout(settings.size_probe_timeout_seconds),
        )
    )
    database = Database(settings.database_url)
    await database.create_all()

    size_probe = SizeProbe(probe_http, timeout=settings.size_probe_timeout_seconds)
    aggregator = MediaAggregator(
        settings,
        OpenverseClient(settings, openverse_http, size_probe),
        PixabayClient(settings, pixabay_http, size_probe),
    )

    app.state.aggregator = aggregator
    app.state.sessions = SessionStore(aggregator, ttl_seconds=settings.session_ttl_seconds)
    app.state.history = SearchHistoryStore(
        database.session_factory, default_limit=settings.history_limit
    )
    app.state.database = database

    try:
        yield
    finally:  # pragma: no cover - teardown path exercised at runtime
        await database.dispose()
        await exit_stack.aclose()


def create_app() -> FastAPI:
    fastapi_app = FastAPI(
        title=settings.app_name,
        description="Search Openverse and Pixabay media in one place",
        version="1.0.0",
        lifespan=lifespan,
    )

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
    )

    register_routes(fastapi_app)
    return fastapi_app


def get_aggregator(app: FastAPI) -> MediaAggregator:
    aggregator = getattr(app.state, "aggregator", None)
    if not isinstance(aggregator, MediaAggregator):
        raise RuntimeError("Media aggregator not initialised")
    return aggregator


def get_sessions(app: FastAPI) -> SessionStore:
    store = getattr(app.state, "sessions", None)
    if not isinstance(store, SessionStore):
        raise RuntimeError("Session store not initialised")
    return store


def get_history(app: FastAPI) -> SearchHistoryStore:
    store = getattr(app.state, "history", None)
    if not isinstance(store, SearchHistoryStore):
        raise RuntimeError("Search history store not initialised")
    return store


def register_routes(fastapi_app: FastAPI) -> None:
    def _session_or_404(session_id: str) -> SearchSession:
        session = get_sessions(fastapi_app).get(session_id)
        if session is None:
            raise HTTPException(status_code=404, detail="Search session not found")
        return session

    async def _record_search(request: Request, query: str, media_type: str) -> None:
        user_id = _user_id(request)
        if not user_id or not query:
            return
        try:
            await get_history(fastapi_app).add(user_id, query, media_type)
        except Exception:  # pragma: no cover - history must never break searching
            logger.exception("Failed to save search %r for user %s", query, user_id)

    @fastapi_app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        database = getattr(fastapi_app.state, "database", None)
        if not isinstance(database, Database):
            return {"status": "ok"}
        try:
            healthy = await database.ping()
        except SQLAlchemyError:
            logger.exception("Database health check failed")
            healthy = False
        return {"status": "ok", "database": "ok" if healthy else "unavailable"}

    @fastapi_app.post("/api/sessions", status_code=201)
    async def create_session() -> dict[str, str]:
        session = get_sessions(fastapi_app).create()
        return {"sessionId": session.id}

    @fastapi_app.delete("/api/sessions/{session_id}")
    async def drop_session(session_id: str) -> dict[str, str]:
        if not get_sessions(fastapi_app).drop(session_id):
            raise HTTPException(status_code=404, detail="Search session not found")
        return {"status": "deleted"}

    @fastapi_app.get("/api/sessions/{session_id}/search/{media_type}")
    async def search(request: Request, session_id: str, media_type: str) -> JSONResponse:
        resolved_type = _media_type(media_type)
        session = _session_or_404(session_id)
        try:
            params = SearchParams.from_query(request.query_params)
        except ValidationError as exc:
            raise _validation_error(exc) from exc

        is_new_query = params != session.params
        try:
            tab = await session.search(resolved_type, params)
        except FetchError as exc:
            raise _fetch_error_response(resolved_type, exc) from exc
        if is_new_query:
            await _record_search(request, params.query, resolved_type)
        return JSONResponse(tab.to_payload())

    @fastapi_app.post("/api/sessions/{session_id}/search/{media_type}/more")
    async def load_more(session_id: str, media_type: str) -> JSONResponse:
        resolved_type = _media_type(media_type)
        session = _session_or_404(session_id)
        try:
            tab = await session.load_more(resolved_type)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except FetchError as exc:
            raise _fetch_error_response(resolved_type, exc) from exc
        return JSONResponse(tab.to_payload())

    @fastapi_app.post("/api/related")
    async def related(request: Request) -> JSONResponse:
        payload = await _json_body(request)
        try:
            body = RelatedRequest.model_validate(payload)
        except ValidationError as exc:
            raise _validation_error(exc) from exc
        try:
            result = await get_aggregator(fastapi_app).fetch_related(
                body.item,
                body.media_type,
                page=body.page,
                license_filter=body.license_filter,
            )
        except FetchError as exc:
            raise _fetch_error_response("related items", exc) from exc
        return JSONResponse(result.to_payload())

    @fastapi_app.get("/api/search-history")
    async def list_history(request: Request) -> JSONResponse:
        user_id = _require_user(request)
        records = await get_history(fastapi_app).recent(user_id)
        return JSONResponse([record.to_payload() for record in records])

    @fastapi_app.post("/api/search-history")
    async def save_history(request: Request) -> JSONResponse:
        user_id = _require_user(request)
        payload = await _json_body(request)
        query = str(payload.get("query") or "").strip()
        media_type = str(payload.get("type") or "").strip()
        try:
            record = await get_history(fastapi_app).add(user_id, query, media_type)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return JSONResponse(record.to_payload(), status_code=201)

    @fastapi_app.delete("/api/search-history")
    async def delete_history(request: Request, id: str | None = None) -> dict[str, Any]:
        user_id = _require_user(request)
        store = get_history(fastapi_app)
        if id:
            if not await store.delete(user_id, id):
                raise HTTPException(
                    status_code=404, detail="Search not found or unauthorized"
                )
            return {"message": "Search deleted successfully"}
        removed = await store.clear(user_id)
        return {"message": "Search history cleared successfully", "removed": removed}


def _media_type(value: str) -> MediaType:
    if value not in MEDIA_TYPES:
        raise HTTPException(status_code=400, detail="Unsupported media type")
    return value  # type: ignore[return-value]


def _user_id(request: Request) -> str | None:
    value = request.headers.get(USER_HEADER)
    if not value:
        return None
    return value.strip() or None


def _require_user(request: Request) -> str:
    user_id = _user_id(request)
    if not user_id:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user_id


async def _json_body(request: Request) -> dict[str, Any]:
    try:
        payload = await request.json()
    except json.JSONDecodeError:
        payload = {}
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Invalid payload")
    return payload


def _validation_error(exc: ValidationError) -> HTTPException:
    return HTTPException(
        status_code=400,
        detail=exc.errors(include_url=False, include_context=False),
    )


def _fetch_error_response(what: str, exc: FetchError) -> HTTPException:
    status_code = 503 if isinstance(exc, MissingCredentialError) else 502
    return HTTPException(
        status_code=status_code,
        detail={
            "error": str(exc),
            "provider": exc.provider,
            "description": f"Failed to fetch {what}, please try again.",
        },
    )


app = create_app()


if __name__ == "__main__":  # pragma: no cover - manual execution
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.environment == "development",
    )

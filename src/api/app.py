"""FastAPI application factory for the vocabulary review API."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette.middleware.cors import CORSMiddleware

from src.app.settings import AppSettings
from src.db import get_session_factory
from src.db.words import DuplicateWordError, ReviewConflictError, WordNotFoundError

from .routes_words import router as words_router


LOGGER = logging.getLogger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(WordNotFoundError)
    async def word_not_found(_request: Request, _exc: WordNotFoundError) -> JSONResponse:
        return _error(status.HTTP_404_NOT_FOUND, "Word not found")

    @app.exception_handler(DuplicateWordError)
    async def duplicate_word(_request: Request, exc: DuplicateWordError) -> JSONResponse:
        return _error(status.HTTP_409_CONFLICT, str(exc))

    @app.exception_handler(ReviewConflictError)
    async def review_conflict(_request: Request, exc: ReviewConflictError) -> JSONResponse:
        return _error(status.HTTP_409_CONFLICT, str(exc))

    @app.exception_handler(SQLAlchemyError)
    async def storage_failure(request: Request, _exc: SQLAlchemyError) -> JSONResponse:
        LOGGER.exception("Storage failure while handling %s %s.", request.method, request.url.path)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Storage failure")


def create_app(
    settings: Optional[AppSettings] = None,
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
) -> FastAPI:
    """Build the API application around an explicit session factory."""
    if settings is None:
        settings = AppSettings.from_env()
    if session_factory is None:
        session_factory = get_session_factory()

    app = FastAPI(title=settings.app_name, version="1.0.0")
    app.state.settings = settings
    app.state.session_factory = session_factory

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def access_log(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        LOGGER.info(
            "%s %s -> %s (%.1f ms)",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
        )
        return response

    _register_error_handlers(app)

    @app.get("/health", tags=["health"])
    async def health() -> dict[str, str]:
        return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}

    app.include_router(words_router)

    static_dir = Path(settings.static_dir)
    if static_dir.is_dir():
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="frontend")
        LOGGER.info("Serving front end from %s.", static_dir.resolve())

    return app

"""
Main API module for Dove Platform.

Responsibilities:
    - Expose the HTTP surface: create short URLs, redirect, health/readiness
    - Translate service errors into status codes:
        ValidationFailedError -> 400, ShortCodeExistsError -> 409,
        URLNotFoundError -> 404, RepositoryUnavailableError -> 500/503
    - Never fail a redirect because the click increment failed

Architecture:
    - App Factory pattern (create_app) for test isolation and DI.
    - Storage and cache are chosen from config by their factories unless
      injected; the URLManager owns all allocation/resolution logic.
    - Lifespan shutdown closes the storage backend and the cache client.
"""

import contextlib
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse, RedirectResponse
from pydantic import BaseModel

from dove_platform.cache.base import BaseCache
from dove_platform.cache.cache_factory import get_cache
from dove_platform.config import load_settings
from dove_platform.exceptions import (
    DoveError,
    RepositoryUnavailableError,
    ShortCodeExistsError,
    URLNotFoundError,
    ValidationFailedError,
)
from dove_platform.logging_config import configure_logging
from dove_platform.manager.strategies import get_strategy_from_config
from dove_platform.manager.url_manager import URLManager
from dove_platform.storage.base import BaseStorage
from dove_platform.storage.storage_factory import get_storage


class ShortenRequest(BaseModel):
    """Request payload for creating a new short URL."""
    url: Optional[str] = None
    customAlias: Optional[str] = None


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"message": message}, "timestamp": _now_iso()},
    )


def create_app(storage: Optional[BaseStorage] = None, cache: Optional[BaseCache] = None) -> FastAPI:
    """
    Factory function to build and configure a new FastAPI app instance.

    Args:
        storage: Storage backend to use; built from config when omitted.
        cache: Cache to use; built from config when omitted.

    Returns:
        FastAPI: A fully configured application instance with its own
                 storage, cache and manager.
    """
    cfg = load_settings()

    # Leave existing handlers alone (e.g. pytest's log capture).
    if not logging.getLogger().handlers:
        configure_logging(cfg.LOG_LEVEL)
    log = logging.getLogger("dove.http")

    # ----------------------------------------------------------------
    # Per-app instances (isolated for tests, swappable for production)
    # ----------------------------------------------------------------
    storage = storage if storage is not None else get_storage()
    cache = cache if cache is not None else get_cache()
    manager = URLManager(
        storage=storage,
        cache=cache,
        cache_ttl=cfg.CACHE_TTL,
        code_strategy=get_strategy_from_config(cfg.CODE_STRATEGY),
        code_length=cfg.CODE_LENGTH,
        base_url=cfg.BASE_URL,
        max_attempts=cfg.CODE_MAX_ATTEMPTS,
    )

    @contextlib.asynccontextmanager
    async def lifespan(_app: FastAPI):
        log.info("dove started", extra={"storage": type(storage).__name__, "cache": type(cache).__name__})
        yield
        manager.close()
        log.info("dove stopped")

    app = FastAPI(title="Dove Platform", description="URL shortener with pluggable storage and cache", lifespan=lifespan)
    app.state.manager = manager

    @app.exception_handler(RequestValidationError)
    async def _bad_body(_request: Request, exc: RequestValidationError) -> JSONResponse:
        log.error("failed to decode request", extra={"error": str(exc)})
        return _error(400, "Invalid request body")

    # ----------------------------------------------------------------
    # Routes
    # ----------------------------------------------------------------
    @app.get("/health")
    def health() -> PlainTextResponse:
        return PlainTextResponse("OK")

    @app.get("/ready")
    def ready():
        try:
            status = manager.health_check()
        except RepositoryUnavailableError as e:
            log.error("readiness check failed", extra={"error": str(e)})
            return _error(503, "Service not ready: database unavailable")
        return {"status": "ready", "timestamp": _now_iso(), **status}

    @app.post("/shorten", status_code=201)
    def shorten(req: ShortenRequest):
        """
        Create a short URL.

        Returns 201 with the created record, 400 with per-field details on
        validation failure, 409 when the code is taken, 500 on storage failure.
        """
        try:
            response = manager.create_short_url(req.url, req.customAlias)
        except ValidationFailedError as e:
            return JSONResponse(status_code=400, content={"error": "Validation failed", "details": e.details})
        except ShortCodeExistsError:
            return _error(409, "Short code already exists")
        except DoveError as e:
            log.error("failed to create short url", extra={"error": str(e)})
            return _error(500, "Failed to create short URL")

        log.info("created short url", extra={"short_code": response.short_code, "original_url": response.original_url})
        body: Dict[str, Any] = response.model_dump(mode="json", by_alias=True)
        return JSONResponse(status_code=201, content=body)

    @app.get("/{short_code}")
    def redirect(short_code: str):
        """
        Redirect to the original URL and count the click.

        The click increment is best effort: when it fails the redirect still
        happens and the failure is logged.
        """
        try:
            record = manager.get_url(short_code)
        except URLNotFoundError:
            return _error(404, "Short URL not found")
        except DoveError as e:
            log.error("failed to get url", extra={"short_code": short_code, "error": str(e)})
            return _error(500, "Failed to get URL")

        clicks = record.clicks
        try:
            clicks = manager.increment_clicks(short_code).clicks
        except DoveError as e:
            log.error("failed to increment clicks", extra={"short_code": short_code, "error": str(e)})

        log.info("redirecting", extra={"short_code": short_code, "original_url": record.original_url, "clicks": clicks})
        return RedirectResponse(url=record.original_url, status_code=301)

    return app


# `uvicorn main:app` and `from main import app` keep working.
app = create_app()

"""
api/main.py -- FastAPI application factory for RecordVault.

Run with:      uvicorn asgi:app --reload
               python main.py

create_app(settings) builds a fully wired application from one explicit
Settings object. Nothing here reads the environment: asgi.py constructs the
Settings at process start, tests construct their own. The settings and both
stores live on app.state, where dependencies and route handlers find them.

Middleware stack (outermost to innermost):
  1. CORSMiddleware      -- one configured browser origin, credentials allowed
  2. log_requests        -- method, path, status, latency, client
  3. security_headers    -- nosniff / frame deny / referrer policy
  4. BodyLimitMiddleware -- 413 for bodies over 1 MiB, declared or streamed
  5. SlowAPIMiddleware   -- per-route rate limits from api.limiter

Lifespan opens the stores on startup and closes them on shutdown.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.limiter import limiter
from api.middleware import BodyLimitMiddleware
from api.models import INVALID_FIELDS, ErrorResponse, HealthResponse
from api.routes.auth import router as auth_router
from api.routes.data import router as data_router
from auth.store import UserStore
from core.config import Settings
from core.errors import AppError
from records.store import RecordStore

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("recordvault.api")

VERSION = "1.0.0"

_MAX_BODY_BYTES = 1 * 1024 * 1024  # 1 MiB

_SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the stores on startup and dispose of them on shutdown.

    Both stores point at the same DATABASE_URL; each creates its own tables.
    """
    settings: Settings = app.state.settings
    logger.info("RecordVault API starting up")
    app.state.user_store = UserStore(settings.database_url)
    app.state.record_store = RecordStore(settings.database_url)
    logger.info("Stores initialized")

    yield

    app.state.record_store.close()
    app.state.user_store.close()
    logger.info("RecordVault API shutdown complete")


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------


def create_app(settings: Settings) -> FastAPI:
    """Build the ASGI application for the given settings."""
    app = FastAPI(
        title="RecordVault API",
        description="JWT authentication and ownership-scoped records.",
        version=VERSION,
        lifespan=lifespan,
        # Interactive docs only in development.
        docs_url="/docs" if settings.debug else None,
        redoc_url=None,
    )
    app.state.settings = settings

    # SlowAPI looks for app.state.limiter by convention. The route decorators
    # bind to the one module-level limiter, so every app built in this process
    # shares its on/off switch and its counters; the last create_app() wins.
    limiter.enabled = settings.rate_limit_enabled
    app.state.limiter = limiter

    _register_middleware(app, settings)
    _register_exception_handlers(app)

    app.include_router(auth_router, prefix="/api", tags=["Auth"])
    app.include_router(data_router, prefix="/api", tags=["Data"])

    @app.get("/health", tags=["Health"])
    async def health() -> HealthResponse:
        """Liveness probe. No auth, no rate limit."""
        return HealthResponse(timestamp=datetime.now(timezone.utc).isoformat())

    return app


# ---------------------------------------------------------------------------
# Middleware
#
# Each add_middleware() / @app.middleware() call wraps everything registered
# before it, so registration runs innermost first.
# ---------------------------------------------------------------------------


def _register_middleware(app: FastAPI, settings: Settings) -> None:
    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(BodyLimitMiddleware, max_bytes=_MAX_BODY_BYTES)

    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        for name, value in _SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        ms = (time.perf_counter() - start) * 1000
        logger.info(
            "%s %s %d %.1fms %s",
            request.method,
            request.url.path,
            response.status_code,
            ms,
            request.client.host if request.client else "unknown",
        )
        return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.cors_origin],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
        max_age=3600,
    )


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same {"error": "<message>"} envelope. Internal
# details (stack traces, SQL, token failure sub-causes) go to the log only.
# ---------------------------------------------------------------------------


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        return _error(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Return 400 with the request model's own message when it supplied one.

        Request models raise PydanticCustomError(INVALID_FIELDS, ...) for the
        checks clients are expected to hit; anything else (broken JSON, wrong
        types, oversized fields) gets a generic message.
        """
        for err in exc.errors():
            if err.get("type") == INVALID_FIELDS:
                return _error(400, err["msg"])
        return _error(400, "Invalid request body")

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """Framework-raised HTTP errors (unknown route, wrong method)."""
        response = _error(exc.status_code, str(exc.detail))
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
        """Return 429; Retry-After tells clients how long to back off."""
        retry_after = int(getattr(exc, "retry_after", 60))
        response = _error(429, "Too many requests")
        response.headers["Retry-After"] = str(retry_after)
        return response

    @app.exception_handler(SQLAlchemyError)
    async def store_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.exception("Store failure on %s %s", request.method, request.url.path)
        return _error(500, "Server error")

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unexpected server errors. Never echoes the exception.

        Starlette runs this handler outside the middleware stack, so the
        security headers are set here as well.
        """
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        response = _error(500, "Server error")
        response.headers.update(_SECURITY_HEADERS)
        return response

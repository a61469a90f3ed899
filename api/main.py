"""
api/main.py -- FastAPI application entry point for the Tripmate auth service.

Exposes the Authenticator over HTTP for the travel-planner front end.

Run with:      python main.py serve
               uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  1. log_requests      -- method, path, status, latency; never the body
  2. reject_foreign_origin -- 403 for an Origin outside the allow-list
  3. CORSMiddleware    -- CORS headers and preflight for allowed origins
  4. SlowAPIMiddleware -- enforces per-route rate limits from api.limiter

Starlette wraps middleware in reverse registration order: the last one
registered is the outermost. Registration below is therefore innermost-first.

Lifespan opens the account store on startup and disposes it on shutdown.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.limiter import limiter
from api.models import ErrorResponse, HealthResponse
from api.routes.auth import router as auth_router
from auth.errors import (
    AuthError,
    DuplicateEmail,
    InvalidCredentials,
    InvalidToken,
    MissingToken,
    NotFound,
    ValidationError,
)
from auth.service import Authenticator
from auth.store import AccountStore
from core.config import get_settings

API_VERSION = "1.0.0"

_settings = get_settings()

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=getattr(logging, _settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("tripmate.api")

# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the account store and build the Authenticator for the server lifetime.

    Everything before yield runs on startup; everything after yield runs on
    shutdown. Tests replace this lifespan to wire in-memory stores.
    """
    logger.info("Tripmate auth API starting up")
    app.state.account_store = AccountStore(_settings.database_url)
    app.state.authenticator = Authenticator(app.state.account_store)
    logger.info("Account store initialized")

    yield

    app.state.account_store.close()
    logger.info("Tripmate auth API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Tripmate Auth API",
    description="Account signup, login, and profile for the Tripmate travel planner.",
    version=API_VERSION,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack -- registered innermost first (see module docstring)
# ---------------------------------------------------------------------------

app.add_middleware(SlowAPIMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter


@app.middleware("http")
async def reject_foreign_origin(request: Request, call_next):
    """Refuse cross-origin requests from origins outside the allow-list.

    CORSMiddleware alone only withholds CORS headers, which stops a browser
    from reading the response but still lets the request reach the handler.
    Requests without an Origin header (same-origin, curl, server-to-server)
    pass through.
    """
    origin = request.headers.get("origin")
    if origin and origin not in _settings.cors_allowed_origins:
        logger.warning("Rejected request from origin %s", origin)
        return _error(403, "Not allowed by CORS", "origin_not_allowed")
    return await call_next(request)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:
        # The catch-all handler answers 500 once the error leaves the stack.
        _log_access(request, 500, start)
        raise
    _log_access(request, response.status_code, start)
    return response


def _log_access(request: Request, status_code: int, start: float) -> None:
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        status_code,
        ms,
        request.client.host if request.client else "unknown",
    )


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api", tags=["Auth"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so the front end can
# show error messages without inspecting status codes.
# ---------------------------------------------------------------------------

# Looked up along the exception's MRO, so MissingToken matches before its
# parent InvalidToken.
_AUTH_ERROR_STATUS: dict[type[AuthError], int] = {
    ValidationError: 400,
    DuplicateEmail: 400,
    InvalidCredentials: 401,
    MissingToken: 401,
    InvalidToken: 403,
    NotFound: 404,
}


def _error(status_code: int, message: str, code: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message, code=code).model_dump(),
    )


def status_for(exc: AuthError) -> int:
    for cls in type(exc).__mro__:
        if cls in _AUTH_ERROR_STATUS:
            return _AUTH_ERROR_STATUS[cls]
    return 400


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    """Map a domain error to its status code. The message is already user-safe."""
    status_code = status_for(exc)
    logger.info("%s %s -> %d %s", request.method, request.url.path, status_code, exc.code)
    response = _error(status_code, exc.message, exc.code)
    response.headers["Cache-Control"] = "no-store"
    return response


@app.exception_handler(RateLimitExceeded)
def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with a structured error when a rate limit is exceeded.

    Retry-After tells clients how many seconds to wait before retrying.
    Sync on purpose: SlowAPIMiddleware calls this handler directly (without
    awaiting) when the limited endpoint is a sync function.
    """
    retry_after = int(getattr(exc, "retry_after", 60))
    response = _error(429, "Too many requests. Please try again later.", "rate_limited")
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 when the request body has the wrong shape (bad JSON, wrong types, oversized fields)."""
    logger.info("%s %s -> 400 malformed body", request.method, request.url.path)
    return _error(400, "Request validation failed.", "validation_error")


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Wrap router-level errors (404 unknown path, 405 wrong method) in the same envelope."""
    return _error(exc.status_code, str(exc.detail), f"http_{exc.status_code}")


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error(500, "Server error", "internal_error")


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py (not in a router) so it is always reachable
# regardless of router registration state. No rate limit applied.
# ---------------------------------------------------------------------------


@app.get("/api/health", tags=["Health"])
async def health() -> HealthResponse:
    """Return API liveness and current version."""
    return HealthResponse(version=API_VERSION)

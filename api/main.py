"""
api/main.py -- FastAPI application entry point for ResortGate.

Run with:      python main.py serve
               uvicorn api.main:app --reload

Middleware stack (outermost to innermost):
  1. log_requests      -- method, path, status, latency, client key
  2. CORSMiddleware    -- FRONTEND_URL is the only allowed browser origin

The app-wide ceiling is applied per endpoint by the @general_limit decorator
from api.limiter rather than by middleware.

Lifespan builds every long-lived object once from Settings (stores, token
codec, password hasher, rate limiters, auth service) and hangs them on
app.state. Nothing downstream reads the environment at request time.
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.limiter import limiter
from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.v1.auth import router as auth_router
from api.routes.v1.locations import router as locations_router
from api.routes.v1.resorts import router as resorts_router
from auth.errors import AuthError, RateLimited
from auth.passwords import PasswordHasher
from auth.ratelimit import ClientKeyResolver, FixedWindowRateLimiter
from auth.service import AuthService
from auth.store import UserStore
from auth.tokens import TokenCodec
from core.config import Settings, get_settings
from places.store import PlacesStore

_VERSION = "1.0.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("resortgate.api")

# Read once at import: a missing SECRET_KEY stops the process here.
_settings = get_settings()


# ---------------------------------------------------------------------------
# Application state wiring
# ---------------------------------------------------------------------------


def init_state(
    app: FastAPI,
    settings: Settings,
    user_store: UserStore,
    places: PlacesStore,
    hasher: PasswordHasher | None = None,
    auth_limiter: FixedWindowRateLimiter | None = None,
) -> None:
    """Build the auth components from settings and attach them to app.state.

    hasher and auth_limiter are injectable so tests can use cheap bcrypt
    rounds and their own ceilings; production passes neither.
    """
    hasher = hasher or PasswordHasher()
    # Computed now so the first unknown-user login is not measurably slower.
    _ = hasher.dummy_hash
    codec = TokenCodec(settings.secret_key, ttl_seconds=settings.token_expire_seconds)

    app.state.user_store = user_store
    app.state.places = places
    app.state.token_codec = codec
    app.state.client_keys = ClientKeyResolver(settings.trusted_proxy_list)
    app.state.auth_limiter = auth_limiter or FixedWindowRateLimiter(
        max_attempts=settings.auth_rate_limit_max,
        window_seconds=settings.rate_limit_window_seconds,
    )
    app.state.auth_service = AuthService(user_store, hasher, codec)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open stores and wire auth components on startup; close stores on shutdown."""
    settings = get_settings()
    logger.info("ResortGate API starting up")
    user_store = UserStore(settings.database_url)
    places = PlacesStore(settings.database_url)
    init_state(app, settings, user_store, places)
    logger.info(
        "Auth initialized (token_ttl=%ds, auth_limit=%d/%ds, trusted_proxies=%d)",
        settings.token_expire_seconds,
        settings.auth_rate_limit_max,
        settings.rate_limit_window_seconds,
        len(settings.trusted_proxy_list),
    )

    yield

    user_store.close()
    places.close()
    logger.info("ResortGate API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="ResortGate API",
    description="Resort directory and user location pings behind token authentication.",
    version=_VERSION,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=[_settings.frontend_url],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

# slowapi decorators find the limiter on app.state by convention.
app.state.limiter = limiter


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    resolver = getattr(request.app.state, "client_keys", None)
    client = resolver.client_key(request) if resolver else (request.client.host if request.client else "unknown")
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        client,
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api/v1", tags=["Users"])
app.include_router(resorts_router, prefix="/api/v1", tags=["Resorts"])
app.include_router(locations_router, prefix="/api/v1", tags=["Locations"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


def _error_body(code: str, message: str, detail: str | None = None, fields: dict | None = None) -> dict:
    return ErrorResponse(
        error=ErrorDetail(code=code, message=message, detail=detail, fields=fields or None)
    ).model_dump(exclude_none=True)


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    """Map the auth error taxonomy to its HTTP status and fixed message.

    401s carry WWW-Authenticate: Bearer. RateLimited carries Retry-After.
    """
    response = JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.code, exc.message, fields=exc.fields),
    )
    if exc.status_code == 401:
        response.headers["WWW-Authenticate"] = "Bearer"
    if isinstance(exc, RateLimited):
        logger.warning("Auth rate limit hit on %s", request.url.path)
        if exc.retry_after:
            response.headers["Retry-After"] = str(exc.retry_after)
    return response


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 when the general ceiling is exceeded.

    Distinct code ("rate_limited") from the auth ceiling ("too_many_attempts").
    Retry-After is the time left in the client's current window, read back from
    the limiter storage; the full window length if that is unavailable.
    """
    retry_after = get_settings().rate_limit_window_seconds
    view_limit = getattr(request.state, "view_rate_limit", None)
    if view_limit is not None:
        item, identifiers = view_limit
        reset_at = limiter.limiter.get_window_stats(item, *identifiers)[0]
        retry_after = max(1, math.ceil(reset_at - time.time()))
    logger.warning("General rate limit hit on %s", request.url.path)
    response = JSONResponse(
        status_code=429,
        content=_error_body("rate_limited", "Too many requests.", detail=str(exc.detail)),
    )
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 with a {field: [messages]} map when a body or query param fails validation."""
    fields: dict[str, list[str]] = {}
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        fields.setdefault(".".join(loc) or "body", []).append(err.get("msg", "Invalid value."))
    return JSONResponse(
        status_code=400,
        content=_error_body("validation_error", "Request validation failed.", fields=fields),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Return a structured error for all FastAPI/Starlette HTTP exceptions.

    Route handlers raise HTTPException with detail=ErrorDetail(...).model_dump()
    (a dict). When detail is already a structured dict, use it directly as the
    error field rather than stringifying it.
    """
    if isinstance(exc.detail, dict):
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": exc.detail},
            headers=exc.headers,
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(f"http_{exc.status_code}", str(exc.detail)),
        headers=exc.headers,
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The full stack trace goes to the log with method and path. The client gets
    a generic message; the exception text is added only when DEBUG=true.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    detail = f"{type(exc).__name__}: {exc}" if get_settings().debug else None
    return JSONResponse(
        status_code=500,
        content=_error_body("internal_error", "Internal server error", detail=detail),
    )


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py (not in a router) so it is always reachable.
# Carries no @general_limit: load balancer health checks are never throttled.
# ---------------------------------------------------------------------------


@app.get("/health", tags=["Health"])
async def health() -> HealthResponse:
    """Return liveness, server time and run mode."""
    return HealthResponse(
        timestamp=datetime.now(timezone.utc).isoformat(),
        environment="development" if get_settings().debug else "production",
        version=_VERSION,
    )

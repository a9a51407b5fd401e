"""
api/limiter.py -- Shared slowapi rate limiter instance (general traffic).

Import this in api/main.py (app.state.limiter, the 429 handler) and in every
router: each rate-limited endpoint carries @general_limit directly under its
@router.<method>(...) decorator and takes a `request: Request` parameter.

general_limit is one shared bucket (scope "general") holding the app-wide
ceiling, RATE_LIMIT_MAX per RATE_LIMIT_WINDOW_SECONDS (100 per 15 minutes by
default), so a client's calls to every route draw on the same budget. The
limit string is read from settings on each request. /health carries no
decorator and is never limited. The tighter register/login ceiling is
enforced separately by auth.dependencies.limit_auth_attempts.

Using a single shared instance ensures all routes share the same in-memory
counter store.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from core.config import get_settings


def client_key(request: Request) -> str:
    """Bucket requests by the same client key the auth limiter uses.

    Falls back to the socket address before the lifespan has wired the
    resolver into app.state.
    """
    resolver = getattr(request.app.state, "client_keys", None)
    if resolver is None:
        return get_remote_address(request)
    return resolver.client_key(request)


def _general_limit() -> str:
    return get_settings().general_rate_limit


limiter = Limiter(key_func=client_key, storage_uri="memory://")

general_limit = limiter.shared_limit(_general_limit, scope="general")

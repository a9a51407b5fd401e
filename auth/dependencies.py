"""
auth/dependencies.py -- FastAPI Depends() helpers: access gate and role guard.

Request pipeline for protected routes:
  authenticate()     -- Authorization: Bearer <token> -> AuthenticatedContext
  require_roles(...) -- depends on authenticate(), checks the role

The guard's only input is the AuthenticatedContext that authenticate()
returns, so a route cannot apply a role check without the token check having
run first.

Failures raise AuthError subclasses; api/main.py maps them to JSON responses.

Layer rule: no imports from api/, core/, or places/.
  auth/dependencies.py may import from fastapi (for Depends/Request)
  because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from collections.abc import Callable

from fastapi import Depends, Request

from auth.errors import Forbidden, MissingCredential, RateLimited
from auth.models import AuthenticatedContext, Role
from auth.ratelimit import ClientKeyResolver, FixedWindowRateLimiter
from auth.tokens import TokenCodec

_BEARER_PREFIX = "Bearer "


def authenticate(request: Request) -> AuthenticatedContext:
    """Require a valid Bearer token.

    Raises MissingCredential when the header is absent or not a Bearer token,
    TokenExpired / TokenMalformed from the codec otherwise. On success the
    context is also stored on request.state.identity for middleware and
    logging.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(ctx: AuthenticatedContext = Depends(authenticate)): ...
    """
    header = request.headers.get("Authorization", "")
    if not header.startswith(_BEARER_PREFIX):
        raise MissingCredential()
    token = header[len(_BEARER_PREFIX) :].strip()
    if not token:
        raise MissingCredential()

    codec: TokenCodec = request.app.state.token_codec
    context = AuthenticatedContext(claims=codec.verify(token))
    request.state.identity = context
    return context


def require_roles(*roles: Role) -> Callable[..., AuthenticatedContext]:
    """Build a dependency that admits only the given roles.

    Use as a FastAPI dependency:
        @router.get("/admin-only")
        def route(ctx: AuthenticatedContext = Depends(require_roles(Role.admin))): ...
    """
    if not roles:
        raise ValueError("require_roles() needs at least one role")
    allowed = frozenset(Role(r) for r in roles)

    def guard(context: AuthenticatedContext = Depends(authenticate)) -> AuthenticatedContext:
        if context.role not in allowed:
            raise Forbidden()
        return context

    return guard


require_admin = require_roles(Role.admin)


def limit_auth_attempts(request: Request) -> None:
    """Count one register/login attempt for the caller; raise RateLimited past the ceiling.

    Runs before the route body, so over-limit callers are rejected whether or
    not their credentials are valid.
    """
    limiter: FixedWindowRateLimiter = request.app.state.auth_limiter
    resolver: ClientKeyResolver = request.app.state.client_keys
    key = resolver.client_key(request)
    if not limiter.allow(key):
        raise RateLimited(retry_after=limiter.retry_after(key))

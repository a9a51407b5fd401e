"""
api/routes/v1/auth.py -- Registration, login and user listing endpoints.

Routes:
  POST /api/v1/users/register  -- create account, returns token (201)
  POST /api/v1/users/login     -- password login, returns token
  GET  /api/v1/users/me        -- identity from the Bearer token (requires auth)
  GET  /api/v1/users           -- list all users (admin only)

Security:
  register and login pass through limit_auth_attempts (default 5 attempts per
  15 minutes per client key) before any credential work happens.
  AuthService gives unknown-user and wrong-password logins the same error and
  the same bcrypt cost.
  Cache-Control: no-store on every response that carries a token.
  All four routes also count against the app-wide ceiling (@general_limit).

Handlers are plain `def`: bcrypt and SQL run on FastAPI's worker thread pool,
not on the event loop.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.limiter import general_limit
from api.models import AuthResponse, IdentityView, LoginRequest, MeResponse, RegisterRequest, UserListResponse, UserView
from auth.dependencies import authenticate, limit_auth_attempts, require_admin
from auth.models import AuthenticatedContext, AuthSuccess
from auth.result import Err
from auth.service import AuthService
from auth.store import UserStore

# Auth policy:
# - POST /api/v1/users/register: public, auth-rate-limited
# - POST /api/v1/users/login:    public, auth-rate-limited
# - GET  /api/v1/users/me:       requires auth (authenticate)
# - GET  /api/v1/users:          requires admin (require_admin)
router = APIRouter()


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post(
    "/users/register",
    response_model=AuthResponse,
    status_code=201,
    dependencies=[Depends(limit_auth_attempts)],
)
@general_limit
def register(request: Request, body: RegisterRequest) -> JSONResponse:
    """Create a "user"-role account and return a session token for it."""
    service: AuthService = request.app.state.auth_service
    result = service.register(body.username, body.password, body.email)
    if isinstance(result, Err):
        raise result.error
    return _token_response(result.value, status_code=201)


@router.post(
    "/users/login",
    response_model=AuthResponse,
    dependencies=[Depends(limit_auth_attempts)],
)
@general_limit
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with username and password; return a new session token."""
    service: AuthService = request.app.state.auth_service
    result = service.login(body.username, body.password)
    if isinstance(result, Err):
        raise result.error
    return _token_response(result.value, status_code=200)


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/users/me", response_model=MeResponse)
@general_limit
def me(request: Request, context: AuthenticatedContext = Depends(authenticate)) -> MeResponse:
    """Return the identity asserted by the caller's token. No store lookup."""
    return MeResponse(user=IdentityView.from_context(context))


@router.get("/users", response_model=UserListResponse)
@general_limit
def list_users(request: Request, context: AuthenticatedContext = Depends(require_admin)) -> UserListResponse:
    """List all accounts without password hashes. Admin only."""
    user_store: UserStore = request.app.state.user_store
    return UserListResponse(users=[UserView.from_user(u) for u in user_store.list_users()])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _token_response(success: AuthSuccess, status_code: int) -> JSONResponse:
    resp = JSONResponse(
        status_code=status_code,
        content=AuthResponse(token=success.token, user=UserView.from_user(success.user)).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp

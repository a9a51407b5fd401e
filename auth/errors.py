"""
auth/errors.py -- Error taxonomy for the auth subsystem.

Each AuthError subclass carries the HTTP status, a machine-readable code and a
fixed user-facing message. The API layer has one exception handler for the
whole family (api/main.py), so routes and dependencies raise these directly
and the service returns them inside Err(...) values.

ConfigurationError is deliberately NOT an AuthError: it signals a broken
deployment (no signing key) and must abort startup rather than become a 4xx.

Layer rule: no imports from api/, core/, or places/.
"""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """Startup-fatal misconfiguration (e.g. empty signing secret)."""


class AuthError(Exception):
    status_code: int = 400
    code: str = "auth_error"
    message: str = "Authentication error."

    def __init__(self, message: str | None = None, fields: dict[str, list[str]] | None = None) -> None:
        self.message = message or type(self).message
        self.fields = fields or {}
        super().__init__(self.message)


class ValidationError(AuthError):
    """Malformed input. fields maps each failing field to all of its messages."""

    status_code = 400
    code = "validation_error"
    message = "Request validation failed."


class Conflict(AuthError):
    status_code = 409
    code = "conflict"
    message = "Username or email already exists."


class InvalidCredentials(AuthError):
    # Same message for unknown user and wrong password -- no enumeration signal.
    status_code = 401
    code = "invalid_credentials"
    message = "Invalid username or password."


class MissingCredential(AuthError):
    status_code = 401
    code = "missing_credential"
    message = "Authorization token required (Bearer token)."


class TokenExpired(AuthError):
    status_code = 401
    code = "token_expired"
    message = "Token expired."


class TokenMalformed(AuthError):
    status_code = 401
    code = "token_malformed"
    message = "Malformed or invalid token."


class Forbidden(AuthError):
    status_code = 403
    code = "forbidden"
    message = "You do not have permission to perform this action."


class RateLimited(AuthError):
    status_code = 429
    code = "too_many_attempts"
    message = "Too many attempts, please try again later."

    def __init__(self, retry_after: int = 0, message: str | None = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after

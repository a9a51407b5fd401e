"""
auth/tokens.py -- Signed session tokens (JWT via python-jose, HS256).

Tokens carry the user id (sub), username, role, issued-at and expiry. They are
never stored server-side: validity is the signature plus the expiry check, so
there is no revocation. Leaking the secret key compromises every outstanding
token until the key is rotated.

Expiry is checked here against an injectable clock instead of by jose itself,
which lets tests move time and gives exact semantics: a token is expired from
the instant now >= exp.

Layer rule: no imports from api/, core/, or places/. The secret and TTL are
passed in by the application lifespan.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from jose import JWTError, jwt

from auth.errors import ConfigurationError, TokenExpired, TokenMalformed
from auth.models import Role, TokenClaims

logger = logging.getLogger("resortgate.auth")

_ALGORITHM = "HS256"

# jose only verifies the signature and claim types; exp is ours to check.
_DECODE_OPTIONS = {"verify_exp": False, "verify_nbf": False, "verify_iat": False, "verify_aud": False}


class TokenCodec:
    """Issue and verify session tokens.

    Args:
        secret_key:  HS256 signing key. Empty raises ConfigurationError.
        ttl_seconds: Default token lifetime.
        clock:       Returns the current epoch time in seconds.
    """

    def __init__(
        self,
        secret_key: str,
        ttl_seconds: int = 3600,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not secret_key:
            raise ConfigurationError("Token signing secret is not configured.")
        if ttl_seconds <= 0:
            raise ConfigurationError("Token TTL must be positive.")
        self._secret_key = secret_key
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    def issue(self, claims: TokenClaims, ttl_seconds: int | None = None) -> str:
        """Encode a signed JWT for claims. exp = iat + ttl."""
        issued_at = int(self._clock())
        ttl = ttl_seconds if ttl_seconds is not None else self.ttl_seconds
        payload = {
            "sub": str(claims.subject_id),
            "username": claims.username,
            "role": claims.role.value,
            "iat": issued_at,
            "exp": issued_at + ttl,
        }
        return jwt.encode(payload, self._secret_key, algorithm=_ALGORITHM)

    def verify(self, token: str) -> TokenClaims:
        """Decode and check a token.

        Raises TokenMalformed for a bad signature, an unparseable token, or
        missing / ill-typed claims (including an unknown role). Raises
        TokenExpired when the current time is at or past exp.
        """
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[_ALGORITHM], options=_DECODE_OPTIONS)
        except JWTError as exc:
            logger.debug("Token rejected: %s", exc)
            raise TokenMalformed() from exc

        try:
            claims = TokenClaims(
                subject_id=int(payload["sub"]),
                username=str(payload["username"]),
                role=Role(payload["role"]),
                issued_at=int(payload["iat"]),
                expires_at=int(payload["exp"]),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise TokenMalformed() from exc

        if self._clock() >= claims.expires_at:
            raise TokenExpired()
        return claims

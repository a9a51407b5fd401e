"""
auth/service.py -- Registration and login orchestration.

AuthService composes the three auth primitives:
  UserStore       -- persistence, uniqueness
  PasswordHasher  -- bcrypt hash / verify
  TokenCodec      -- session token issue

Both operations return Ok(AuthSuccess) or Err(AuthError) (see auth/result.py).
Store or codec faults are not caught here; they propagate to the API's 500
handler.

Threading: every method is synchronous and CPU/IO heavy (bcrypt, SQL). Routes
call it from plain `def` handlers, which FastAPI runs on its worker pool.

Layer rule: no imports from api/, core/, or places/.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from auth.errors import Conflict, InvalidCredentials, ValidationError
from auth.models import AuthSuccess, Role, TokenClaims, User
from auth.passwords import PasswordHasher
from auth.result import Err, Ok, Result
from auth.store import UserStore
from auth.tokens import TokenCodec
from auth.validation import login_errors, normalize_email, registration_errors

logger = logging.getLogger("resortgate.auth")


class AuthService:
    def __init__(self, store: UserStore, hasher: PasswordHasher, codec: TokenCodec) -> None:
        self._store = store
        self._hasher = hasher
        self._codec = codec

    def register(self, username: str, password: str, email: str) -> Result[AuthSuccess]:
        """Create a user with role "user" and return a token for it.

        Fails with ValidationError (all field problems at once) or Conflict
        when the username or email is taken -- including the case where a
        concurrent registration wins the race between the existence check and
        the insert.
        """
        errors = registration_errors(username, password, email)
        if errors:
            return Err(ValidationError(fields=errors))

        username = username.strip()
        email = normalize_email(email)

        if self._store.exists(username, email):
            logger.info("Registration conflict for username=%r", username)
            return Err(Conflict())

        user = User(
            username=username,
            email=email,
            role=Role.user,
            password_hash=self._hasher.hash(password),
        )
        try:
            user_id = self._store.create_user(user)
        except IntegrityError:
            logger.info("Registration lost insert race for username=%r", username)
            return Err(Conflict())

        created = self._store.get_by_id(user_id)
        if created is None:
            raise RuntimeError(f"User {user_id} not found after insert.")
        logger.info("Registered user id=%d username=%r", created.id, created.username)
        return Ok(self._issue(created))

    def login(self, username: str, password: str) -> Result[AuthSuccess]:
        """Check credentials and return a fresh token.

        Unknown username and wrong password both return InvalidCredentials
        with the same message, and both pay for one bcrypt verification.
        """
        errors = login_errors(username, password)
        if errors:
            return Err(ValidationError(fields=errors))

        username = username.strip()
        user = self._store.get_by_username(username)
        if user is None:
            # Equalize timing -- do NOT return before running bcrypt.
            self._hasher.verify(password, self._hasher.dummy_hash)
            logger.warning("Failed login for username=%r", username)
            return Err(InvalidCredentials())
        if not self._hasher.verify(password, user.password_hash):
            logger.warning("Failed login for username=%r", username)
            return Err(InvalidCredentials())

        return Ok(self._issue(user))

    def _issue(self, user: User) -> AuthSuccess:
        return AuthSuccess(token=self._codec.issue(TokenClaims.for_user(user)), user=user)

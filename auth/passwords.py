"""
auth/passwords.py -- bcrypt password hashing.

Using bcrypt directly rather than passlib[bcrypt] because passlib's internal
wrap-bug detection creates a password longer than 72 bytes, which bcrypt 4.x+
rejects with an explicit error.

The cost factor is fixed at BCRYPT_ROUNDS (12). It is embedded in every hash
together with the salt, so verify() needs nothing but the stored string.
Tests construct PasswordHasher(rounds=4) to keep the suite fast; the API
always uses the default.

Layer rule: no imports from api/, core/, or places/.
"""

from __future__ import annotations

import bcrypt

BCRYPT_ROUNDS = 12

# bcrypt only looks at the first 72 bytes; bcrypt>=5 raises on longer input.
MAX_PASSWORD_BYTES = 72


class PasswordHasher:
    """Salted one-way hashing with constant-time verification."""

    def __init__(self, rounds: int = BCRYPT_ROUNDS) -> None:
        self.rounds = rounds
        self._dummy_hash: str | None = None

    def hash(self, plain: str) -> str:
        """Return a bcrypt hash of the given plaintext password.

        bcrypt>=5 raises ValueError for passwords longer than
        MAX_PASSWORD_BYTES; the registration policy rejects those before they
        get here.
        """
        return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")

    def verify(self, plain: str, hashed: str) -> bool:
        """Return True if the plaintext password matches the bcrypt hash.

        Never raises: an over-long password or a corrupt stored hash is a
        mismatch.
        """
        try:
            return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
        except (ValueError, TypeError):
            return False

    @property
    def dummy_hash(self) -> str:
        """A real hash at this hasher's cost, for timing equalization.

        Login verifies against it when the username does not exist, so the
        response time does not reveal whether an account exists.
        """
        if self._dummy_hash is None:
            self._dummy_hash = self.hash("resortgate_timing_dummy")
        return self._dummy_hash

"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in places/models.py -- dataclasses own domain shape; stores, the service and
routes do the work.

Layer rule: no imports from api/, core/, or places/.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Role(str, Enum):
    """Closed set of roles. Registration always assigns Role.user."""

    user = "user"
    admin = "admin"


@dataclass
class User:
    """A registered identity.

    email is stored in its normalized (lowercased) form so the UNIQUE index
    catches case variants of the same address.

    password_hash is the bcrypt output and must never leave the API layer;
    route handlers map User to the public UserView model.
    """

    username: str
    email: str
    role: Role = Role.user
    id: int | None = None
    password_hash: str = ""
    created_at: str = ""  # ISO 8601, set by store on insert


@dataclass(frozen=True)
class TokenClaims:
    """Identity asserted by a session token.

    issued_at / expires_at are excluded from equality so a verified token
    compares equal to the identity it was issued for.
    """

    subject_id: int
    username: str
    role: Role
    issued_at: int = field(default=0, compare=False)  # epoch seconds
    expires_at: int = field(default=0, compare=False)  # epoch seconds

    @classmethod
    def for_user(cls, user: User) -> "TokenClaims":
        if user.id is None:
            raise ValueError("Cannot issue claims for an unsaved user.")
        return cls(subject_id=user.id, username=user.username, role=user.role)


@dataclass(frozen=True)
class AuthenticatedContext:
    """Output of the access gate; the only input the role guard accepts."""

    claims: TokenClaims

    @property
    def subject_id(self) -> int:
        return self.claims.subject_id

    @property
    def username(self) -> str:
        return self.claims.username

    @property
    def role(self) -> Role:
        return self.claims.role


@dataclass(frozen=True)
class AuthSuccess:
    """Result of a successful register() or login()."""

    token: str
    user: User

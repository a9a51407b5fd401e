"""
auth/store.py -- SQLAlchemy Core persistence layer for user records.

Pattern: Repository + Data Mapper (same as places/store.py).
UserStore is the repository; _row_to_user is the mapper. Route, dependency
and service code never touch SQL directly.

Uniqueness:
  username and email each carry a UNIQUE index. AuthService checks for a
  collision before inserting, but two concurrent registrations can both pass
  that check; the index is what actually stops the second insert, and
  create_user() lets the resulting IntegrityError propagate so the service
  can turn it into a Conflict.

Security:
  All queries use bound parameters. No f-strings in SQL.

Layer rule: no imports from api/ or places/. core/ (engine factory) is allowed.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, or_, select
from sqlalchemy.engine import Engine

from auth.models import Role, User
from core.db import make_engine

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("user_id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(30), nullable=False, unique=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("password", Text, nullable=False),  # bcrypt hash, never plaintext
    Column("type", String(10), nullable=False, server_default=Role.user.value),
    Column("created_at", String(32), nullable=False),
)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User records.

    Usage:
        store = UserStore("sqlite:///resortgate.db")
        uid = store.create_user(User(username="alice01", email="alice@example.com", password_hash=h))
        user = store.get_by_username("alice01")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        self.engine: Engine = make_engine(db_url)
        _metadata.create_all(self.engine)

    def create_user(self, user: User) -> int:
        """Insert a new user and return its assigned database ID.

        Raises sqlalchemy.exc.IntegrityError if the username or email already
        exists. The insert is a single statement, so a failure leaves nothing
        behind.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.insert().values(
                    username=user.username,
                    email=user.email,
                    password=user.password_hash,
                    type=user.role.value,
                    created_at=_now_iso(),
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_by_username(self, username: str) -> User | None:
        """Look up a user by exact username (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.username == username)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: int) -> User | None:
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.user_id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def exists(self, username: str, email: str) -> bool:
        """Return True if either the username or the email is already registered."""
        with self.engine.connect() as conn:
            row = conn.execute(
                select(_users.c.user_id).where(or_(_users.c.username == username, _users.c.email == email)).limit(1)
            ).fetchone()
        return row is not None

    def list_users(self) -> list[User]:
        """Return all users ordered by id. Admin-only operation."""
        with self.engine.connect() as conn:
            rows = conn.execute(_users.select().order_by(_users.c.user_id)).fetchall()
        return [_row_to_user(r) for r in rows]

    def set_role(self, username: str, role: Role) -> bool:
        """Change a user's role. Returns True if a row was updated.

        Operator tooling only (main.py promote); no HTTP route calls this.
        """
        with self.engine.connect() as conn:
            result = conn.execute(_users.update().where(_users.c.username == username).values(type=role.value))
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.user_id,
        username=row.username,
        email=row.email,
        password_hash=row.password,
        role=Role(row.type),
        created_at=row.created_at,
    )

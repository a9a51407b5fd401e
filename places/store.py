"""
places/store.py -- SQLAlchemy-backed persistence for resorts and location pings.

Uses SQLAlchemy Core (not ORM) so the dataclasses in places/models.py remain
the authoritative domain representation. Swapping SQLite for MySQL or
PostgreSQL is a connection string change, not a rewrite.

Pattern: Repository + Data Mapper. PlacesStore is the repository; the _row_to_*
functions are the mappers. Route handlers never touch SQL directly.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = PlacesStore("sqlite:///resortgate.db")
    resort_id = store.create_resort(resort)
    store.record_ping(LocationPing(user_id=1, lat=14.6, longitude=121.0))
    store.close()
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, Float, Integer, MetaData, String, Table, Text, func, select
from sqlalchemy.engine import Engine

from core.db import make_engine
from places.models import LocationPing, Resort

logger = logging.getLogger("resortgate.places")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_resorts = Table(
    "resorts",
    metadata,
    Column("resort_id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("lat", Float, nullable=False),
    Column("longitude", Float, nullable=False),
    Column("description", Text),
    Column("address", String(255)),
    Column("contact_number", String(50)),
    Column("email", String(255)),
    Column("website", String(2048)),
    Column("created_at", String(32), nullable=False),
)

_pings = Table(
    "location_pings",
    metadata,
    Column("ping_id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, nullable=False, index=True),
    Column("lat", Float, nullable=False),
    Column("longitude", Float, nullable=False),
    Column("accuracy_m", Float),
    Column("recorded_at", String(32), nullable=False),
)

# Columns a PUT may overwrite -- everything except identity and timestamps.
_RESORT_FIELDS = ("name", "lat", "longitude", "description", "address", "contact_number", "email", "website")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class PlacesStore:
    def __init__(self, db_url: str) -> None:
        self.engine: Engine = make_engine(db_url)
        metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Resorts
    # ------------------------------------------------------------------

    def create_resort(self, resort: Resort) -> int:
        """Insert a resort and return its resort_id."""
        values = {f: getattr(resort, f) for f in _RESORT_FIELDS}
        with self.engine.connect() as conn:
            result = conn.execute(_resorts.insert().values(created_at=_now_iso(), **values))
            conn.commit()
            resort_id = result.inserted_primary_key[0]
        logger.info("Created resort id=%d name=%r", resort_id, resort.name)
        return resort_id

    def get_resort(self, resort_id: int) -> Optional[Resort]:
        with self.engine.connect() as conn:
            row = conn.execute(_resorts.select().where(_resorts.c.resort_id == resort_id)).fetchone()
        return _row_to_resort(row) if row is not None else None

    def list_resorts(self) -> list[Resort]:
        """Return all resorts ordered by resort_id."""
        with self.engine.connect() as conn:
            rows = conn.execute(_resorts.select().order_by(_resorts.c.resort_id)).fetchall()
        return [_row_to_resort(r) for r in rows]

    def update_resort(self, resort_id: int, resort: Resort) -> bool:
        """Overwrite every editable field. Returns False if resort_id does not exist."""
        values = {f: getattr(resort, f) for f in _RESORT_FIELDS}
        with self.engine.connect() as conn:
            result = conn.execute(_resorts.update().where(_resorts.c.resort_id == resort_id).values(**values))
            conn.commit()
        return result.rowcount > 0

    def delete_resort(self, resort_id: int) -> bool:
        with self.engine.connect() as conn:
            result = conn.execute(_resorts.delete().where(_resorts.c.resort_id == resort_id))
            conn.commit()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Location pings
    # ------------------------------------------------------------------

    def record_ping(self, ping: LocationPing) -> LocationPing:
        """Insert a ping and return it with id and recorded_at filled in."""
        recorded_at = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                _pings.insert().values(
                    user_id=ping.user_id,
                    lat=ping.lat,
                    longitude=ping.longitude,
                    accuracy_m=ping.accuracy_m,
                    recorded_at=recorded_at,
                )
            )
            conn.commit()
            ping_id = result.inserted_primary_key[0]
        return LocationPing(
            id=ping_id,
            user_id=ping.user_id,
            lat=ping.lat,
            longitude=ping.longitude,
            accuracy_m=ping.accuracy_m,
            recorded_at=recorded_at,
        )

    def list_pings(self, user_id: int, limit: int = 50) -> list[LocationPing]:
        """Return a user's pings, newest first."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                _pings.select().where(_pings.c.user_id == user_id).order_by(_pings.c.ping_id.desc()).limit(limit)
            ).fetchall()
        return [_row_to_ping(r) for r in rows]

    def latest_pings(self) -> list[LocationPing]:
        """Return the most recent ping of every user, ordered by user_id.

        ping_id is monotonic, so MAX(ping_id) per user is the latest ping.
        """
        newest = select(func.max(_pings.c.ping_id)).group_by(_pings.c.user_id)
        with self.engine.connect() as conn:
            rows = conn.execute(
                _pings.select().where(_pings.c.ping_id.in_(newest)).order_by(_pings.c.user_id)
            ).fetchall()
        return [_row_to_ping(r) for r in rows]

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_resort(row) -> Resort:
    return Resort(
        id=row.resort_id,
        name=row.name,
        lat=row.lat,
        longitude=row.longitude,
        description=row.description,
        address=row.address,
        contact_number=row.contact_number,
        email=row.email,
        website=row.website,
        created_at=row.created_at,
    )


def _row_to_ping(row) -> LocationPing:
    return LocationPing(
        id=row.ping_id,
        user_id=row.user_id,
        lat=row.lat,
        longitude=row.longitude,
        accuracy_m=row.accuracy_m,
        recorded_at=row.recorded_at,
    )

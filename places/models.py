"""
places/models.py -- Domain dataclasses for resorts and user location pings.

These are pure data containers with zero logic. Persistence lives in
places/store.py; validation lives on the API request models.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class Resort:
    """A resort with its map position and optional contact details.

    Column names match the existing database schema (lat / longitude, resort_id).
    id is None before the record is written to the database.
    """

    name: str
    lat: float
    longitude: float
    description: Optional[str] = None
    address: Optional[str] = None
    contact_number: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    id: Optional[int] = None
    created_at: str = ""  # ISO 8601, set by store on insert


@dataclass
class LocationPing:
    """One reported position of a user.

    user_id always comes from the verified token, never from the request body.
    """

    user_id: int
    lat: float
    longitude: float
    accuracy_m: Optional[float] = None
    id: Optional[int] = None
    recorded_at: str = ""  # ISO 8601, set by store on insert

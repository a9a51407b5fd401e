"""
API request and response models for ResortGate REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
places/models.py, which own the internal domain representation. Route
handlers map between the two.

Credential request fields are plain strings with empty defaults: their rules
live in auth/validation.py so that a bad register/login body produces the
same collected field errors whether a field is missing, empty or invalid.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, HttpUrl

from auth.models import AuthenticatedContext, User
from places.models import LocationPing, Resort

# ---------------------------------------------------------------------------
# Errors / health
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None
    fields: Optional[dict[str, list[str]]] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    success: bool = False
    error: ErrorDetail


class HealthResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    timestamp: str
    environment: str
    version: str


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/v1/users/register."""

    username: str = ""
    password: str = ""
    email: str = ""


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/users/login."""

    username: str = ""
    password: str = ""


class UserView(BaseModel):
    """Public view of a user. Never carries the password hash."""

    model_config = ConfigDict(frozen=True)

    id: int
    username: str
    email: str
    role: str
    created_at: str

    @classmethod
    def from_user(cls, user: User) -> "UserView":
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            role=user.role.value,
            created_at=user.created_at,
        )


class AuthResponse(BaseModel):
    """Response for a successful register or login."""

    model_config = ConfigDict(frozen=True)

    success: bool = True
    token: str
    user: UserView


class IdentityView(BaseModel):
    """The caller's identity as asserted by their token."""

    model_config = ConfigDict(frozen=True)

    id: int
    username: str
    role: str
    expires_at: int

    @classmethod
    def from_context(cls, context: AuthenticatedContext) -> "IdentityView":
        return cls(
            id=context.subject_id,
            username=context.username,
            role=context.role.value,
            expires_at=context.claims.expires_at,
        )


class MeResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    user: IdentityView


class UserListResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    users: list[UserView]


# ---------------------------------------------------------------------------
# Resorts
# ---------------------------------------------------------------------------


class ResortWrite(BaseModel):
    """Request body for POST /api/v1/resorts and PUT /api/v1/resorts/{id}."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=255)
    lat: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    description: Optional[str] = Field(default=None, max_length=5000)
    address: Optional[str] = Field(default=None, max_length=255)
    contact_number: Optional[str] = Field(default=None, max_length=50)
    email: Optional[EmailStr] = None
    website: Optional[HttpUrl] = None

    def to_resort(self) -> Resort:
        return Resort(
            name=self.name,
            lat=self.lat,
            longitude=self.longitude,
            description=self.description,
            address=self.address,
            contact_number=self.contact_number,
            email=str(self.email) if self.email else None,
            website=str(self.website) if self.website else None,
        )


class ResortSummary(BaseModel):
    """One row in the GET /resorts list."""

    model_config = ConfigDict(frozen=True)

    resort_id: int
    name: str
    lat: float
    longitude: float
    description: Optional[str]

    @classmethod
    def from_resort(cls, resort: Resort) -> "ResortSummary":
        return cls(
            resort_id=resort.id,
            name=resort.name,
            lat=resort.lat,
            longitude=resort.longitude,
            description=resort.description,
        )


class ResortDetail(ResortSummary):
    address: Optional[str]
    contact_number: Optional[str]
    email: Optional[str]
    website: Optional[str]
    created_at: str

    @classmethod
    def from_resort(cls, resort: Resort) -> "ResortDetail":
        return cls(
            resort_id=resort.id,
            name=resort.name,
            lat=resort.lat,
            longitude=resort.longitude,
            description=resort.description,
            address=resort.address,
            contact_number=resort.contact_number,
            email=resort.email,
            website=resort.website,
            created_at=resort.created_at,
        )


class ResortListResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    data: list[ResortSummary]


class ResortDetailResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    data: ResortDetail


class ResortCreatedResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    resort_id: int
    message: str = "Resort created successfully"


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    message: str


# ---------------------------------------------------------------------------
# Location pings
# ---------------------------------------------------------------------------


class LocationPingCreate(BaseModel):
    """Request body for POST /api/v1/locations. The user comes from the token."""

    lat: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    accuracy_m: Optional[float] = Field(default=None, ge=0)


class LocationPingView(BaseModel):
    model_config = ConfigDict(frozen=True)

    ping_id: int
    user_id: int
    lat: float
    longitude: float
    accuracy_m: Optional[float]
    recorded_at: str

    @classmethod
    def from_ping(cls, ping: LocationPing) -> "LocationPingView":
        return cls(
            ping_id=ping.id,
            user_id=ping.user_id,
            lat=ping.lat,
            longitude=ping.longitude,
            accuracy_m=ping.accuracy_m,
            recorded_at=ping.recorded_at,
        )


class LocationPingListResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True
    data: list[LocationPingView]

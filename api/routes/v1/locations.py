"""
api/routes/v1/locations.py -- User location pings.

Routes (registration order: /locations/me and /locations/latest are literal
paths, so nothing here can be captured by a path parameter):
  POST /locations         -- record a ping for the caller (requires auth)
  GET  /locations/me      -- caller's pings, newest first (requires auth)
  GET  /locations/latest  -- latest ping of every user (admin only)

The user id always comes from the verified token. A client cannot record or
read another user's pings by putting an id in the body or query string.
"""

from fastapi import APIRouter, Depends, Query, Request

from api.limiter import general_limit
from api.models import LocationPingCreate, LocationPingListResponse, LocationPingView
from auth.dependencies import authenticate, require_admin
from auth.models import AuthenticatedContext
from places.models import LocationPing
from places.store import PlacesStore

router = APIRouter()


@router.post("/locations", response_model=LocationPingView, status_code=201)
@general_limit
def record_location(
    request: Request,
    body: LocationPingCreate,
    context: AuthenticatedContext = Depends(authenticate),
) -> LocationPingView:
    places: PlacesStore = request.app.state.places
    ping = places.record_ping(
        LocationPing(
            user_id=context.subject_id,
            lat=body.lat,
            longitude=body.longitude,
            accuracy_m=body.accuracy_m,
        )
    )
    return LocationPingView.from_ping(ping)


@router.get("/locations/me", response_model=LocationPingListResponse)
@general_limit
def my_locations(
    request: Request,
    limit: int = Query(default=50, ge=1, le=500),
    context: AuthenticatedContext = Depends(authenticate),
) -> LocationPingListResponse:
    places: PlacesStore = request.app.state.places
    pings = places.list_pings(context.subject_id, limit=limit)
    return LocationPingListResponse(data=[LocationPingView.from_ping(p) for p in pings])


@router.get("/locations/latest", response_model=LocationPingListResponse)
@general_limit
def latest_locations(
    request: Request,
    context: AuthenticatedContext = Depends(require_admin),
) -> LocationPingListResponse:
    """Most recent position of every user. Admin only."""
    places: PlacesStore = request.app.state.places
    return LocationPingListResponse(data=[LocationPingView.from_ping(p) for p in places.latest_pings()])

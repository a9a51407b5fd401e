"""
api/routes/v1/resorts.py -- Resort CRUD routes.

Routes:
  GET    /resorts              -- list resorts (public)
  GET    /resorts/{resort_id}  -- resort detail (public)
  POST   /resorts              -- create resort (requires auth)
  PUT    /resorts/{resort_id}  -- replace resort fields (requires auth)
  DELETE /resorts/{resort_id}  -- delete resort (requires auth)

Reads are public so the map can render before login; writes need any valid
token. Body validation failures surface as 400 via the RequestValidationError
handler in api/main.py.

Every route draws on the app-wide ceiling through @general_limit, which must
sit BELOW @router.<method>(...) so FastAPI registers the rate-limited wrapper.
"""

from fastapi import APIRouter, Depends, HTTPException, Request

from api.limiter import general_limit
from api.models import (
    ErrorDetail,
    MessageResponse,
    ResortCreatedResponse,
    ResortDetail,
    ResortDetailResponse,
    ResortListResponse,
    ResortSummary,
    ResortWrite,
)
from auth.dependencies import authenticate
from places.store import PlacesStore

router = APIRouter()


def _not_found() -> HTTPException:
    return HTTPException(
        status_code=404,
        detail=ErrorDetail(code="not_found", message="Resort not found").model_dump(exclude_none=True),
    )


@router.get("/resorts", response_model=ResortListResponse)
@general_limit
def list_resorts(request: Request) -> ResortListResponse:
    places: PlacesStore = request.app.state.places
    return ResortListResponse(data=[ResortSummary.from_resort(r) for r in places.list_resorts()])


@router.get("/resorts/{resort_id}", response_model=ResortDetailResponse)
@general_limit
def get_resort(request: Request, resort_id: int) -> ResortDetailResponse:
    places: PlacesStore = request.app.state.places
    resort = places.get_resort(resort_id)
    if resort is None:
        raise _not_found()
    return ResortDetailResponse(data=ResortDetail.from_resort(resort))


@router.post(
    "/resorts",
    response_model=ResortCreatedResponse,
    status_code=201,
    dependencies=[Depends(authenticate)],
)
@general_limit
def create_resort(request: Request, body: ResortWrite) -> ResortCreatedResponse:
    places: PlacesStore = request.app.state.places
    resort_id = places.create_resort(body.to_resort())
    return ResortCreatedResponse(resort_id=resort_id)


@router.put(
    "/resorts/{resort_id}",
    response_model=MessageResponse,
    dependencies=[Depends(authenticate)],
)
@general_limit
def update_resort(request: Request, resort_id: int, body: ResortWrite) -> MessageResponse:
    places: PlacesStore = request.app.state.places
    if not places.update_resort(resort_id, body.to_resort()):
        raise _not_found()
    return MessageResponse(message="Resort updated successfully")


@router.delete(
    "/resorts/{resort_id}",
    response_model=MessageResponse,
    dependencies=[Depends(authenticate)],
)
@general_limit
def delete_resort(request: Request, resort_id: int) -> MessageResponse:
    places: PlacesStore = request.app.state.places
    if not places.delete_resort(resort_id):
        raise _not_found()
    return MessageResponse(message="Resort deleted successfully")

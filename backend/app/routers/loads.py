"""Load router — posting, review, dispatch and the load board.

Endpoints:
    POST   /api/loads/                   Post a load (supplier, or admin for any/no company)
    GET    /api/loads/                   Admin list with status / company filters and search
    GET    /api/loads/available          Load board: approved loads only
    GET    /api/loads/mine               Own company's loads, every status
    GET    /api/loads/map                Loads with pickup coordinates
    GET    /api/loads/pending            Review queue (admin)
    GET    /api/loads/{id}               Get load
    PATCH  /api/loads/{id}               Edit (pending / rejected only)
    DELETE /api/loads/{id}               Delete (pending only)
    POST   /api/loads/{id}/transition    Change status (admin)
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import get_current_profile
from app.database import get_db
from app.models.load import Load, LoadStatus
from app.models.profile import Profile
from app.models.trailer import TrailerType
from app.schemas.common import PaginatedResponse
from app.schemas.load import (
    LoadCreate,
    LoadMapPoint,
    LoadOut,
    LoadSummary,
    LoadTransition,
    LoadUpdate,
)
from app.services import loads
from app.services.geocoding import MapboxGeocoder, get_geocoder
from app.services.loads import Assignment

router = APIRouter()


def _summary(load: Load, company_name: str | None) -> LoadSummary:
    return LoadSummary.model_validate(load).model_copy(update={"company_name": company_name})


@router.post("/", response_model=LoadOut, status_code=201)
async def create_load(
    body: LoadCreate,
    db: AsyncSession = Depends(get_db),
    geocoder: MapboxGeocoder = Depends(get_geocoder),
    profile: Profile = Depends(get_current_profile),
):
    """Post a load.

    Starts ``pending`` unless an admin sets ``publish_approved``.
    Missing coordinates are geocoded from the addresses.
    """
    load = await loads.create_load(
        db, geocoder, profile,
        body.model_dump(exclude={"company_id", "publish_approved"}),
        company_id=body.company_id,
        publish_approved=body.publish_approved,
    )
    return LoadOut.model_validate(load)


@router.get("/", response_model=PaginatedResponse[LoadSummary])
async def admin_list_loads(
    status: LoadStatus | None = Query(None),
    search: str | None = None,
    company_id: str | None = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    rows, total = await loads.admin_list(
        db, profile, status=status, search=search, company_id=company_id,
        limit=limit, offset=offset,
    )
    return PaginatedResponse[LoadSummary](
        items=[_summary(load, name) for load, name in rows],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/available", response_model=list[LoadSummary])
async def available_loads(
    trailer_type: TrailerType | None = Query(None),
    pickup_province: str | None = None,
    cross_border: bool | None = None,
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    """Approved loads open to transporters."""
    rows = await loads.list_available(
        db, profile, trailer_type=trailer_type,
        pickup_province=pickup_province, cross_border=cross_border,
    )
    return [_summary(load, name) for load, name in rows]


@router.get("/mine", response_model=list[LoadOut])
async def my_loads(
    status: LoadStatus | None = Query(None),
    company_id: str | None = None,
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    rows = await loads.list_company_loads(db, profile, company_id=company_id, status=status)
    return [LoadOut.model_validate(load) for load in rows]


@router.get("/map", response_model=list[LoadMapPoint])
async def map_loads(
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    rows = await loads.map_loads(db, profile)
    return [
        LoadMapPoint(
            id=load.id,
            title=load.title,
            status=load.status,
            company_name=name,
            pickup_city=load.pickup_city,
            delivery_city=load.delivery_city,
            pickup_lat=load.pickup_lat,
            pickup_lng=load.pickup_lng,
            delivery_lat=load.delivery_lat,
            delivery_lng=load.delivery_lng,
        )
        for load, name in rows
    ]


@router.get("/pending", response_model=list[LoadSummary])
async def pending_loads(
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    rows = await loads.pending_queue(db, profile)
    return [_summary(load, name) for load, name in rows]


@router.get("/{load_id}", response_model=LoadOut)
async def get_load(
    load_id: str,
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    load = await loads.get_load(db, profile, load_id)
    return LoadOut.model_validate(load)


@router.patch("/{load_id}", response_model=LoadOut)
async def update_load(
    load_id: str,
    body: LoadUpdate,
    db: AsyncSession = Depends(get_db),
    geocoder: MapboxGeocoder = Depends(get_geocoder),
    profile: Profile = Depends(get_current_profile),
):
    load = await loads.update_load(
        db, geocoder, profile, load_id, body.model_dump(exclude_unset=True)
    )
    return LoadOut.model_validate(load)


@router.delete("/{load_id}", status_code=204)
async def delete_load(
    load_id: str,
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    await loads.delete_load(db, profile, load_id)


@router.post("/{load_id}/transition", response_model=LoadOut)
async def transition_load(
    load_id: str,
    body: LoadTransition,
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    """Move a load to a new status (admin).

    ``assignment`` is accepted when dispatching to ``in_transit``.
    """
    assignment = Assignment(**body.assignment.model_dump()) if body.assignment else None
    load = await loads.transition(
        db, profile, load_id, body.status, reason=body.reason, assignment=assignment
    )
    return LoadOut.model_validate(load)

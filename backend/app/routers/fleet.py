"""Fleet routers — drivers, trucks and trailers.

The three asset kinds expose the same endpoints, mounted at
/api/drivers, /api/trucks and /api/trailers:

    GET    /                     List assets (own company; admin may filter by company_id)
    POST   /                     Register asset
    GET    /{id}                 Get asset
    PATCH  /{id}                 Update asset
    DELETE /{id}                 Delete asset and all of its documents
    PUT    /{id}/active          Activate / deactivate
    PUT    /{id}/verification    Set verified flag (admin)
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import get_current_profile
from app.database import get_db
from app.models.document import ParentType
from app.models.profile import Profile
from app.schemas.fleet import (
    ActiveToggle,
    DeletedAsset,
    DriverCreate,
    DriverOut,
    DriverUpdate,
    TrailerCreate,
    TrailerOut,
    TrailerUpdate,
    TruckCreate,
    TruckOut,
    TruckUpdate,
    VerifiedToggle,
)
from app.services import fleet
from app.services.storage import ObjectStorage, get_storage


def build_fleet_router(
    kind: ParentType,
    create_schema: type[BaseModel],
    update_schema: type[BaseModel],
    out_schema: type[BaseModel],
) -> APIRouter:
    router = APIRouter()

    @router.get("/", response_model=list[out_schema])
    async def list_assets(
        company_id: str | None = None,
        active_only: bool = False,
        db: AsyncSession = Depends(get_db),
        profile: Profile = Depends(get_current_profile),
    ):
        assets = await fleet.list_assets(db, profile, kind, company_id, active_only)
        return [out_schema.model_validate(a) for a in assets]

    @router.post("/", response_model=out_schema, status_code=201)
    async def create_asset(
        body: create_schema,
        db: AsyncSession = Depends(get_db),
        profile: Profile = Depends(get_current_profile),
    ):
        asset = await fleet.create_asset(
            db, profile, kind, body.model_dump(exclude={"company_id"}),
            company_id=body.company_id,
        )
        return out_schema.model_validate(asset)

    @router.get("/{asset_id}", response_model=out_schema)
    async def get_asset(
        asset_id: str,
        db: AsyncSession = Depends(get_db),
        profile: Profile = Depends(get_current_profile),
    ):
        asset = await fleet.get_asset(db, profile, kind, asset_id)
        return out_schema.model_validate(asset)

    @router.patch("/{asset_id}", response_model=out_schema)
    async def update_asset(
        asset_id: str,
        body: update_schema,
        db: AsyncSession = Depends(get_db),
        profile: Profile = Depends(get_current_profile),
    ):
        asset = await fleet.update_asset(
            db, profile, kind, asset_id, body.model_dump(exclude_unset=True)
        )
        return out_schema.model_validate(asset)

    @router.delete("/{asset_id}", response_model=DeletedAsset)
    async def delete_asset(
        asset_id: str,
        db: AsyncSession = Depends(get_db),
        storage: ObjectStorage = Depends(get_storage),
        profile: Profile = Depends(get_current_profile),
    ):
        removed = await fleet.delete_asset(db, storage, profile, kind, asset_id)
        return DeletedAsset(id=asset_id, documents_removed=removed)

    @router.put("/{asset_id}/active", response_model=out_schema)
    async def set_active(
        asset_id: str,
        body: ActiveToggle,
        db: AsyncSession = Depends(get_db),
        profile: Profile = Depends(get_current_profile),
    ):
        asset = await fleet.set_active(db, profile, kind, asset_id, body.is_active)
        return out_schema.model_validate(asset)

    @router.put("/{asset_id}/verification", response_model=out_schema)
    async def set_verified(
        asset_id: str,
        body: VerifiedToggle,
        db: AsyncSession = Depends(get_db),
        profile: Profile = Depends(get_current_profile),
    ):
        asset = await fleet.set_verified(db, profile, kind, asset_id, body.is_verified)
        return out_schema.model_validate(asset)

    return router


drivers_router = build_fleet_router(ParentType.DRIVER, DriverCreate, DriverUpdate, DriverOut)
trucks_router = build_fleet_router(ParentType.TRUCK, TruckCreate, TruckUpdate, TruckOut)
trailers_router = build_fleet_router(ParentType.TRAILER, TrailerCreate, TrailerUpdate, TrailerOut)

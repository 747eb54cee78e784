"""Load Lifecycle — posting, review, dispatch and visibility of loads.

State machine (``LOAD_TRANSITIONS``):

    pending    → approved | rejected | cancelled
    rejected   → approved | pending | cancelled
    approved   → in_transit | cancelled
    in_transit → completed | cancelled
    completed, cancelled: terminal

Editing is allowed while pending or rejected; deletion only while
pending.  Every status change goes through ``transition`` and is reserved
for admins.  Transporters only ever see approved loads.

``is_cross_border`` is derived on every write: the creator's explicit
flag OR pickup and delivery countries differ.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.gate import Action, Target, ensure
from app.config import settings
from app.middleware.exceptions import (
    DomainValidationError,
    InvalidStateError,
    LoadLockedError,
    ResourceNotFoundError,
)
from app.models.company import Company, CompanyType
from app.models.driver import Driver
from app.models.load import Load, LoadStatus
from app.models.profile import Profile, UserRole
from app.models.trailer import TrailerType
from app.models.truck import Truck
from app.services.geocoding import Coordinates
from app.utils.activity import log_activity

logger = logging.getLogger("freightlink.loads")

LOAD_TRANSITIONS: dict[LoadStatus, frozenset[LoadStatus]] = {
    LoadStatus.PENDING: frozenset({LoadStatus.APPROVED, LoadStatus.REJECTED, LoadStatus.CANCELLED}),
    LoadStatus.REJECTED: frozenset({LoadStatus.APPROVED, LoadStatus.PENDING, LoadStatus.CANCELLED}),
    LoadStatus.APPROVED: frozenset({LoadStatus.IN_TRANSIT, LoadStatus.CANCELLED}),
    LoadStatus.IN_TRANSIT: frozenset({LoadStatus.COMPLETED, LoadStatus.CANCELLED}),
    LoadStatus.COMPLETED: frozenset(),
    LoadStatus.CANCELLED: frozenset(),
}

EDITABLE_STATUSES = frozenset({LoadStatus.PENDING, LoadStatus.REJECTED})
DELETABLE_STATUSES = frozenset({LoadStatus.PENDING})

# Fields a create/update payload may carry
LOAD_FIELDS = frozenset({
    "title", "description", "cargo_type", "weight_tons",
    "pickup_address", "pickup_city", "pickup_province", "pickup_country",
    "pickup_lat", "pickup_lng", "pickup_date", "pickup_time_window",
    "delivery_address", "delivery_city", "delivery_province", "delivery_country",
    "delivery_lat", "delivery_lng", "delivery_date", "delivery_time_window",
    "required_trailer_type", "budget_amount", "special_instructions",
    "is_hazardous", "cross_border_flagged",
})

ADDRESS_PARTS = ("address", "city", "province", "country")


class Geocoder(Protocol):
    async def geocode(self, address: str) -> Coordinates | None: ...


@dataclass(frozen=True)
class Assignment:
    """Transporter, truck and driver a load is dispatched with."""
    transporter_id: str
    truck_id: str | None = None
    driver_id: str | None = None


def derive_cross_border(load: Load) -> bool:
    pickup = (load.pickup_country or "").strip().lower()
    delivery = (load.delivery_country or "").strip().lower()
    countries_differ = bool(pickup and delivery and pickup != delivery)
    return bool(load.cross_border_flagged) or countries_differ


def _clean(fields: dict) -> dict:
    cleaned = {}
    for key, value in fields.items():
        if key not in LOAD_FIELDS:
            continue
        if isinstance(value, str):
            value = value.strip() or None
        cleaned[key] = value

    if "title" in cleaned and not cleaned["title"]:
        raise DomainValidationError("Load title is required", details={"field": "title"})
    for field in ("weight_tons", "budget_amount"):
        if cleaned.get(field) is not None and cleaned[field] < 0:
            raise DomainValidationError(
                f"{field.replace('_', ' ').capitalize()} cannot be negative",
                details={"field": field},
            )
    if "required_trailer_type" in cleaned:
        try:
            cleaned["required_trailer_type"] = [
                TrailerType(t).value for t in (cleaned["required_trailer_type"] or [])
            ]
        except ValueError as e:
            raise DomainValidationError(str(e), details={"field": "required_trailer_type"}) from None
    for flag in ("is_hazardous", "cross_border_flagged"):
        if flag in cleaned and cleaned[flag] is None:
            cleaned[flag] = False
    return cleaned


def _full_address(load: Load, side: str) -> str:
    parts = [getattr(load, f"{side}_{part}") for part in ADDRESS_PARTS]
    return ", ".join(p for p in parts if p)


async def _fill_coordinates(load: Load, geocoder: Geocoder, side: str) -> None:
    address = _full_address(load, side)
    coordinates = await geocoder.geocode(address) if address else None
    setattr(load, f"{side}_lat", coordinates.latitude if coordinates else None)
    setattr(load, f"{side}_lng", coordinates.longitude if coordinates else None)


async def _get_load(db: AsyncSession, load_id: str) -> Load:
    load = await db.get(Load, load_id)
    if load is None:
        raise ResourceNotFoundError("Load", load_id)
    return load


def _target(load: Load) -> Target:
    return Target(company_id=load.company_id, load_status=load.status)


# ── Create / edit / delete ───────────────────────────────────

async def create_load(
    db: AsyncSession,
    geocoder: Geocoder,
    actor: Profile,
    fields: dict,
    company_id: str | None = None,
    publish_approved: bool = False,
) -> Load:
    """Post a new load.

    Suppliers post for their own company.  Admins may post for any
    supplier company or none, and may publish straight to ``approved``.
    """
    owner_id = company_id if actor.is_admin else actor.company_id
    ensure(actor, Action.LOAD_CREATE, Target(company_id=owner_id, acting_as=actor.id))
    if publish_approved:
        ensure(actor, Action.LOAD_PUBLISH)

    if owner_id is not None:
        company = await db.get(Company, owner_id)
        if company is None:
            raise ResourceNotFoundError("Company", owner_id)
        if company.company_type != CompanyType.SUPPLIER:
            raise DomainValidationError(
                "Loads can only be posted for a supplier company",
                error_code="NOT_SUPPLIER",
            )

    values = _clean(fields)
    if not values.get("title"):
        raise DomainValidationError("Load title is required", details={"field": "title"})
    load = Load(**values, company_id=owner_id, created_by=actor.id)
    if load.pickup_country is None:
        load.pickup_country = settings.default_country
    if load.delivery_country is None:
        load.delivery_country = settings.default_country
    if load.required_trailer_type is None:
        load.required_trailer_type = []

    for side in ("pickup", "delivery"):
        if getattr(load, f"{side}_lat") is None or getattr(load, f"{side}_lng") is None:
            await _fill_coordinates(load, geocoder, side)

    load.is_cross_border = derive_cross_border(load)

    if publish_approved:
        load.status = LoadStatus.APPROVED
        load.reviewed_by = actor.id
        load.reviewed_at = datetime.utcnow()
    else:
        load.status = LoadStatus.PENDING

    db.add(load)
    await db.flush()

    await log_activity(
        db, actor, action="created", entity_type="load", entity_id=load.id,
        summary=f"Posted load '{load.title}' ({load.status.value})",
    )
    logger.info("Load %s created by %s with status %s", load.id, actor.id, load.status.value)
    return load


async def update_load(
    db: AsyncSession,
    geocoder: Geocoder,
    actor: Profile,
    load_id: str,
    fields: dict,
) -> Load:
    """Edit a pending or rejected load; the status is never changed here."""
    load = await _get_load(db, load_id)
    ensure(actor, Action.LOAD_UPDATE, _target(load))
    if load.status not in EDITABLE_STATUSES:
        raise LoadLockedError(load.id, load.status.value)

    changes = _clean(fields)
    for key, value in changes.items():
        setattr(load, key, value)

    for side in ("pickup", "delivery"):
        address_changed = any(f"{side}_{part}" in changes for part in ADDRESS_PARTS)
        coordinates_given = f"{side}_lat" in changes and f"{side}_lng" in changes
        if address_changed and not coordinates_given:
            await _fill_coordinates(load, geocoder, side)

    load.is_cross_border = derive_cross_border(load)
    await db.flush()

    await log_activity(
        db, actor, action="updated", entity_type="load", entity_id=load.id,
        summary=f"Edited load '{load.title}'",
        details={"fields": sorted(changes)},
    )
    return load


async def delete_load(db: AsyncSession, actor: Profile, load_id: str) -> None:
    load = await _get_load(db, load_id)
    ensure(actor, Action.LOAD_DELETE, _target(load))
    if load.status not in DELETABLE_STATUSES:
        raise LoadLockedError(load.id, load.status.value)

    title = load.title
    await db.delete(load)
    await db.flush()
    await log_activity(
        db, actor, action="deleted", entity_type="load", entity_id=load_id,
        summary=f"Deleted load '{title}'",
    )


# ── Status transitions ───────────────────────────────────────

def _transition_action(new_status: LoadStatus) -> Action:
    if new_status == LoadStatus.CANCELLED:
        return Action.LOAD_CANCEL
    if new_status in (LoadStatus.IN_TRANSIT, LoadStatus.COMPLETED):
        return Action.LOAD_ADVANCE
    return Action.LOAD_REVIEW


async def _check_assignment(db: AsyncSession, assignment: Assignment) -> None:
    transporter = await db.get(Company, assignment.transporter_id)
    if transporter is None:
        raise ResourceNotFoundError("Company", assignment.transporter_id)
    if transporter.company_type != CompanyType.TRANSPORTER:
        raise DomainValidationError(
            "Loads can only be assigned to a transporter company",
            error_code="NOT_TRANSPORTER",
        )
    for model, asset_id, label in (
        (Truck, assignment.truck_id, "Truck"),
        (Driver, assignment.driver_id, "Driver"),
    ):
        if asset_id is None:
            continue
        asset = await db.get(model, asset_id)
        if asset is None:
            raise ResourceNotFoundError(label, asset_id)
        if asset.company_id != transporter.id:
            raise DomainValidationError(
                f"{label} {asset_id} does not belong to {transporter.name}",
                error_code="ASSIGNMENT_MISMATCH",
            )


async def transition(
    db: AsyncSession,
    actor: Profile,
    load_id: str,
    new_status: LoadStatus,
    reason: str | None = None,
    assignment: Assignment | None = None,
) -> Load:
    """Move a load along ``LOAD_TRANSITIONS`` (admin only)."""
    load = await _get_load(db, load_id)
    ensure(actor, _transition_action(new_status), _target(load))

    previous = load.status
    if new_status not in LOAD_TRANSITIONS[previous]:
        raise InvalidStateError(
            f"Load cannot move from {previous.value} to {new_status.value}"
        )

    if assignment is not None:
        if new_status != LoadStatus.IN_TRANSIT:
            raise DomainValidationError(
                "An assignment can only be given when dispatching a load",
                error_code="UNEXPECTED_ASSIGNMENT",
            )
        await _check_assignment(db, assignment)
        load.assigned_transporter_id = assignment.transporter_id
        load.assigned_truck_id = assignment.truck_id
        load.assigned_driver_id = assignment.driver_id

    load.status = new_status
    if new_status == LoadStatus.REJECTED:
        load.rejection_reason = (reason or "").strip() or None
    elif previous == LoadStatus.REJECTED:
        load.rejection_reason = None

    if new_status in (LoadStatus.APPROVED, LoadStatus.REJECTED):
        load.reviewed_by = actor.id
        load.reviewed_at = datetime.utcnow()

    await db.flush()

    await log_activity(
        db, actor, action="status_changed", entity_type="load", entity_id=load.id,
        summary=f"Load '{load.title}' {previous.value} → {new_status.value}",
        details={"reason": load.rejection_reason} if load.rejection_reason else None,
    )
    logger.info("Load %s: %s → %s", load.id, previous.value, new_status.value)
    return load


# ── Visibility ───────────────────────────────────────────────

def _with_company():
    return select(Load, Company.name).outerjoin(Company, Company.id == Load.company_id)


def _pairs(result) -> list[tuple[Load, str | None]]:
    return [(row[0], row[1]) for row in result.all()]


async def get_load(db: AsyncSession, actor: Profile, load_id: str) -> Load:
    load = await _get_load(db, load_id)
    ensure(actor, Action.LOAD_READ, _target(load))
    return load


async def list_available(
    db: AsyncSession,
    actor: Profile,
    trailer_type: TrailerType | None = None,
    pickup_province: str | None = None,
    cross_border: bool | None = None,
) -> list[tuple[Load, str | None]]:
    """The transporter load board: approved loads only, newest first."""
    ensure(actor, Action.LOAD_READ, Target(load_status=LoadStatus.APPROVED))

    query = _with_company().where(Load.status == LoadStatus.APPROVED)
    if pickup_province:
        query = query.where(Load.pickup_province == pickup_province)
    if cross_border is not None:
        query = query.where(Load.is_cross_border.is_(cross_border))

    result = await db.execute(query.order_by(Load.created_at.desc()))
    pairs = _pairs(result)
    if trailer_type is not None:
        # Empty requirement list means any trailer will do
        pairs = [
            (load, name) for load, name in pairs
            if not load.required_trailer_type or trailer_type.value in load.required_trailer_type
        ]
    return pairs


async def list_company_loads(
    db: AsyncSession,
    actor: Profile,
    company_id: str | None = None,
    status: LoadStatus | None = None,
) -> list[Load]:
    """All loads of one company in every status (owners and admins)."""
    owner_id = company_id if actor.is_admin else actor.company_id
    if owner_id is None:
        raise DomainValidationError("A company is required", error_code="NO_COMPANY")
    ensure(actor, Action.LOAD_READ, Target(company_id=owner_id))

    query = select(Load).where(Load.company_id == owner_id)
    if status is not None:
        query = query.where(Load.status == status)
    result = await db.execute(query.order_by(Load.created_at.desc()))
    return list(result.scalars().all())


async def admin_list(
    db: AsyncSession,
    actor: Profile,
    status: LoadStatus | None = None,
    search: str | None = None,
    company_id: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[tuple[Load, str | None]], int]:
    """Unfiltered admin view with optional status/company filters and search."""
    ensure(actor, Action.LOAD_REVIEW)

    conditions = []
    if status is not None:
        conditions.append(Load.status == status)
    if company_id:
        conditions.append(Load.company_id == company_id)
    if search:
        term = f"%{search.strip()}%"
        conditions.append(or_(
            Load.title.ilike(term),
            Load.cargo_type.ilike(term),
            Load.pickup_city.ilike(term),
            Load.delivery_city.ilike(term),
            Company.name.ilike(term),
        ))

    query = _with_company().where(*conditions)
    count_query = (
        select(func.count(Load.id))
        .select_from(Load)
        .outerjoin(Company, Company.id == Load.company_id)
        .where(*conditions)
    )
    total = (await db.execute(count_query)).scalar() or 0
    result = await db.execute(
        query.order_by(Load.created_at.desc()).limit(limit).offset(offset)
    )
    return _pairs(result), total


async def pending_queue(db: AsyncSession, actor: Profile) -> list[tuple[Load, str | None]]:
    ensure(actor, Action.LOAD_REVIEW)
    result = await db.execute(
        _with_company()
        .where(Load.status == LoadStatus.PENDING)
        .order_by(Load.created_at.asc())
    )
    return _pairs(result)


async def map_loads(db: AsyncSession, actor: Profile) -> list[tuple[Load, str | None]]:
    """Loads with pickup coordinates, under the same visibility as lists.

    Transporters see approved loads, suppliers their own company's loads,
    admins everything that is not cancelled.
    """
    query = _with_company().where(
        Load.pickup_lat.is_not(None), Load.pickup_lng.is_not(None)
    )
    if actor.role == UserRole.ADMIN:
        query = query.where(Load.status != LoadStatus.CANCELLED)
    elif actor.role == UserRole.TRANSPORTER:
        ensure(actor, Action.LOAD_READ, Target(load_status=LoadStatus.APPROVED))
        query = query.where(Load.status == LoadStatus.APPROVED)
    else:
        if actor.company_id is None:
            return []
        ensure(actor, Action.LOAD_READ, Target(company_id=actor.company_id))
        query = query.where(Load.company_id == actor.company_id)

    result = await db.execute(query.order_by(Load.created_at.desc()))
    return _pairs(result)

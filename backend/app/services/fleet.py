"""Fleet Registry — drivers, trucks and trailers of transporter companies.

All three asset kinds share one code path keyed by ``ParentType`` (the
same enum documents use to name their parent).  Assets only ever live
under a ``transporter`` company.  Deleting an asset first removes every
document attached to it through the Document Workflow, so stored files
go with their rows.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.gate import Action, Target, ensure
from app.middleware.exceptions import DomainValidationError, ResourceNotFoundError
from app.models.company import Company, CompanyType
from app.models.document import Document, ParentType
from app.models.driver import Driver
from app.models.profile import Profile
from app.models.trailer import Trailer, TrailerType
from app.models.truck import Truck
from app.services import documents
from app.services.storage import ObjectStorage
from app.utils.activity import log_activity

logger = logging.getLogger("freightlink.fleet")

FLEET_MODELS = {
    ParentType.DRIVER: Driver,
    ParentType.TRUCK: Truck,
    ParentType.TRAILER: Trailer,
}

REQUIRED_FIELDS = {
    ParentType.DRIVER: ("first_name", "last_name"),
    ParentType.TRUCK: ("registration_number",),
    ParentType.TRAILER: ("registration_number", "trailer_type"),
}

NON_NEGATIVE_FIELDS = ("year", "number_of_axles", "length_meters", "payload_capacity_tons")

# Never writable through create/update payloads
PROTECTED_FIELDS = frozenset({
    "id", "company_id", "is_verified", "created_by", "created_at", "updated_at",
})


def _model_for(kind: ParentType):
    try:
        return FLEET_MODELS[kind]
    except KeyError:
        raise DomainValidationError(f"'{kind.value}' is not a fleet asset kind") from None


def _label(kind: ParentType) -> str:
    return kind.value.capitalize()


def _describe(asset) -> str:
    if isinstance(asset, Driver):
        return asset.full_name
    return asset.registration_number


def _clean(kind: ParentType, fields: dict) -> dict:
    model = _model_for(kind)
    columns = set(model.__table__.columns.keys())
    cleaned = {}
    for key, value in fields.items():
        if key in PROTECTED_FIELDS or key not in columns:
            continue
        if isinstance(value, str):
            value = value.strip()
        cleaned[key] = value
    if "trailer_type" in cleaned and cleaned["trailer_type"] is not None:
        try:
            cleaned["trailer_type"] = TrailerType(cleaned["trailer_type"])
        except ValueError:
            raise DomainValidationError(
                f"Unknown trailer type '{cleaned['trailer_type']}'"
            ) from None
    return cleaned


def validate_asset(kind: ParentType, values: dict) -> None:
    """Check required text fields and non-negative numbers.

    ``values`` is the complete post-write state of the asset.
    """
    for field in REQUIRED_FIELDS[kind]:
        value = values.get(field)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise DomainValidationError(
                f"{field.replace('_', ' ').capitalize()} is required",
                details={"field": field},
            )
    for field in NON_NEGATIVE_FIELDS:
        value = values.get(field)
        if value is not None and value < 0:
            raise DomainValidationError(
                f"{field.replace('_', ' ').capitalize()} cannot be negative",
                details={"field": field},
            )


async def _transporter_company(db: AsyncSession, company_id: str | None) -> Company:
    if not company_id:
        raise DomainValidationError("A company is required for fleet assets", error_code="NO_COMPANY")
    company = await db.get(Company, company_id)
    if company is None:
        raise ResourceNotFoundError("Company", company_id)
    if company.company_type != CompanyType.TRANSPORTER:
        raise DomainValidationError(
            "Fleet assets can only be registered under a transporter company",
            error_code="NOT_TRANSPORTER",
        )
    return company


async def _get_asset(db: AsyncSession, kind: ParentType, asset_id: str):
    asset = await db.get(_model_for(kind), asset_id)
    if asset is None:
        raise ResourceNotFoundError(_label(kind), asset_id)
    return asset


# ── Writes ───────────────────────────────────────────────────

async def create_asset(
    db: AsyncSession,
    actor: Profile,
    kind: ParentType,
    fields: dict,
    company_id: str | None = None,
):
    """Register a driver, truck or trailer.

    Non-admins always register under their own company; an admin passes
    the target ``company_id`` explicitly.
    """
    model = _model_for(kind)
    owner_id = company_id if actor.is_admin else actor.company_id
    ensure(actor, Action.FLEET_CREATE, Target(company_id=owner_id))
    company = await _transporter_company(db, owner_id)

    values = _clean(kind, fields)
    validate_asset(kind, values)

    asset = model(**values, company_id=company.id, created_by=actor.id)
    db.add(asset)
    await db.flush()

    await log_activity(
        db, actor, action="created", entity_type=kind.value, entity_id=asset.id,
        summary=f"Added {kind.value} {_describe(asset)} to {company.name}",
    )
    logger.info("%s %s created for company %s", _label(kind), asset.id, company.id)
    return asset


async def update_asset(
    db: AsyncSession,
    actor: Profile,
    kind: ParentType,
    asset_id: str,
    fields: dict,
):
    asset = await _get_asset(db, kind, asset_id)
    ensure(actor, Action.FLEET_UPDATE, Target(company_id=asset.company_id))

    changes = _clean(kind, fields)
    merged = {
        column: getattr(asset, column) for column in asset.__table__.columns.keys()
    }
    merged.update(changes)
    validate_asset(kind, merged)

    for key, value in changes.items():
        setattr(asset, key, value)
    await db.flush()

    await log_activity(
        db, actor, action="updated", entity_type=kind.value, entity_id=asset.id,
        summary=f"Updated {kind.value} {_describe(asset)}",
        details={"fields": sorted(changes)},
    )
    return asset


async def delete_asset(
    db: AsyncSession,
    storage: ObjectStorage,
    actor: Profile,
    kind: ParentType,
    asset_id: str,
) -> int:
    """Delete an asset and all of its documents; returns documents removed."""
    asset = await _get_asset(db, kind, asset_id)
    ensure(actor, Action.FLEET_DELETE, Target(company_id=asset.company_id))

    removed = await documents.remove_for_parent(db, storage, actor, kind, asset.id)
    description = _describe(asset)
    await db.delete(asset)
    await db.flush()

    await log_activity(
        db, actor, action="deleted", entity_type=kind.value, entity_id=asset_id,
        summary=f"Deleted {kind.value} {description} and {removed} document(s)",
    )
    logger.info("%s %s deleted with %d document(s)", _label(kind), asset_id, removed)
    return removed


async def set_active(
    db: AsyncSession,
    actor: Profile,
    kind: ParentType,
    asset_id: str,
    is_active: bool,
):
    asset = await _get_asset(db, kind, asset_id)
    ensure(actor, Action.FLEET_UPDATE, Target(company_id=asset.company_id))
    asset.is_active = is_active
    await db.flush()
    await log_activity(
        db, actor, action="activated" if is_active else "deactivated",
        entity_type=kind.value, entity_id=asset.id,
        summary=f"{'Activated' if is_active else 'Deactivated'} {kind.value} {_describe(asset)}",
    )
    return asset


async def set_verified(
    db: AsyncSession,
    actor: Profile,
    kind: ParentType,
    asset_id: str,
    is_verified: bool,
):
    asset = await _get_asset(db, kind, asset_id)
    ensure(actor, Action.FLEET_VERIFY, Target(company_id=asset.company_id))
    asset.is_verified = is_verified
    await db.flush()
    await log_activity(
        db, actor, action="verified" if is_verified else "unverified",
        entity_type=kind.value, entity_id=asset.id,
        summary=f"{'Verified' if is_verified else 'Unverified'} {kind.value} {_describe(asset)}",
    )
    return asset


# ── Reads ────────────────────────────────────────────────────

async def get_asset(db: AsyncSession, actor: Profile, kind: ParentType, asset_id: str):
    asset = await _get_asset(db, kind, asset_id)
    ensure(actor, Action.FLEET_READ, Target(company_id=asset.company_id))
    return asset


async def list_assets(
    db: AsyncSession,
    actor: Profile,
    kind: ParentType,
    company_id: str | None = None,
    active_only: bool = False,
) -> list:
    """Assets of one company, newest first.

    Non-admins always get their own company; admins without a
    ``company_id`` get every company's assets.
    """
    model = _model_for(kind)
    owner_id = company_id if actor.is_admin else actor.company_id
    ensure(actor, Action.FLEET_READ, Target(company_id=owner_id))

    query = select(model)
    if owner_id is not None:
        query = query.where(model.company_id == owner_id)
    if active_only:
        query = query.where(model.is_active.is_(True))

    result = await db.execute(query.order_by(model.created_at.desc()))
    return list(result.scalars().all())


async def list_with_documents(
    db: AsyncSession,
    actor: Profile,
    kind: ParentType,
    company_id: str,
) -> list[tuple[object, list[Document]]]:
    """Assets of a company, each paired with its documents."""
    model = _model_for(kind)
    ensure(actor, Action.FLEET_READ, Target(company_id=company_id))

    result = await db.execute(
        select(model).where(model.company_id == company_id).order_by(model.created_at.desc())
    )
    assets = list(result.scalars().all())
    if not assets:
        return []

    column = {
        ParentType.DRIVER: Document.driver_id,
        ParentType.TRUCK: Document.truck_id,
        ParentType.TRAILER: Document.trailer_id,
    }[kind]
    doc_result = await db.execute(
        select(Document)
        .where(column.in_([a.id for a in assets]))
        .order_by(Document.created_at.desc())
    )
    by_asset: dict[str, list[Document]] = {}
    for document in doc_result.scalars().all():
        by_asset.setdefault(getattr(document, column.key), []).append(document)

    return [(asset, by_asset.get(asset.id, [])) for asset in assets]

"""Company Verification — company records, linking and the verified flag.

``is_verified`` has exactly one write path: ``set_verified`` (admin).
``suggest_verification`` is a read-only hint computed from a company's
document statuses; it is shown next to the flag on admin listings and
never written back.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.gate import Action, Target, ensure
from app.config import settings
from app.middleware.exceptions import (
    DomainValidationError,
    InvalidStateError,
    ResourceNotFoundError,
)
from app.models.company import Company, CompanyType
from app.models.document import Document, DocumentStatus, ParentType
from app.models.driver import Driver
from app.models.load import Load, LoadStatus
from app.models.profile import Profile, UserRole
from app.models.trailer import Trailer
from app.models.truck import Truck
from app.services import documents, fleet, loads
from app.utils.activity import log_activity

logger = logging.getLogger("freightlink.companies")

COMPANY_FIELDS = frozenset({
    "name", "registration_number", "tax_number",
    "address", "city", "province", "postal_code", "country",
    "phone", "email", "website", "does_cross_border",
})


class SuggestedVerification(str, enum.Enum):
    NONE = "none"
    PARTIAL = "partial"
    PENDING = "pending"
    VERIFIED = "verified"


def suggest_verification(statuses: Iterable[DocumentStatus]) -> SuggestedVerification:
    """Suggest a verification state from document statuses.

    none      no documents at all
    verified  at least ``suggested_verified_min_approved`` approved
    pending   otherwise, any still awaiting review
    partial   everything else
    """
    statuses = list(statuses)
    if not statuses:
        return SuggestedVerification.NONE
    approved = sum(1 for s in statuses if s == DocumentStatus.APPROVED)
    if approved >= settings.suggested_verified_min_approved:
        return SuggestedVerification.VERIFIED
    if any(s == DocumentStatus.PENDING for s in statuses):
        return SuggestedVerification.PENDING
    return SuggestedVerification.PARTIAL


@dataclass
class CompanyDetails:
    company: Company
    documents: list[Document]
    members: list[Profile]
    drivers: list[tuple[Driver, list[Document]]] = field(default_factory=list)
    trucks: list[tuple[Truck, list[Document]]] = field(default_factory=list)
    trailers: list[tuple[Trailer, list[Document]]] = field(default_factory=list)

    @property
    def suggested_verification(self) -> SuggestedVerification:
        return suggest_verification(d.status for d in self.documents)


def _clean(fields: dict) -> dict:
    cleaned = {}
    for key, value in fields.items():
        if key not in COMPANY_FIELDS:
            continue
        if isinstance(value, str):
            value = value.strip() or None
        cleaned[key] = value
    if "name" in cleaned and not cleaned["name"]:
        raise DomainValidationError("Company name is required", details={"field": "name"})
    return cleaned


async def _get_company(db: AsyncSession, company_id: str) -> Company:
    company = await db.get(Company, company_id)
    if company is None:
        raise ResourceNotFoundError("Company", company_id)
    return company


# ── Writes ───────────────────────────────────────────────────

async def create_company(
    db: AsyncSession,
    actor: Profile,
    fields: dict,
    company_type: CompanyType | None = None,
) -> Company:
    """Create a company.

    A supplier or transporter creates their own company (its type is their
    role) and is linked to it.  An admin creates one under their own
    identity and links it to a profile afterwards with ``link_profile``.
    """
    if not actor.is_admin:
        company_type = company_type or CompanyType(actor.role.value)
    ensure(actor, Action.COMPANY_CREATE, Target(
        company_type=company_type.value if company_type else None,
        acting_as=actor.id,
    ))
    if company_type is None:
        raise DomainValidationError("Company type is required", details={"field": "company_type"})

    values = _clean(fields)
    if not values.get("name"):
        raise DomainValidationError("Company name is required", details={"field": "name"})
    if values.get("country") is None:
        values["country"] = settings.default_country

    company = Company(**values, company_type=company_type, created_by=actor.id)
    db.add(company)
    await db.flush()

    if not actor.is_admin:
        actor.company_id = company.id
        await db.flush()

    await log_activity(
        db, actor, action="created", entity_type="company", entity_id=company.id,
        summary=f"Created {company_type.value} company {company.name}",
    )
    logger.info("Company %s (%s) created by %s", company.id, company_type.value, actor.id)
    return company


async def link_profile(
    db: AsyncSession,
    actor: Profile,
    company_id: str,
    profile_id: str,
) -> Profile:
    """Attach a company-less profile to a company of the matching type."""
    company = await _get_company(db, company_id)
    ensure(actor, Action.COMPANY_LINK_PROFILE, Target(company_id=company.id))

    profile = await db.get(Profile, profile_id)
    if profile is None:
        raise ResourceNotFoundError("Profile", profile_id)
    if profile.company_id is not None:
        raise InvalidStateError(
            f"Profile {profile.email} is already linked to a company",
            error_code="PROFILE_ALREADY_LINKED",
        )
    if profile.role.value != company.company_type.value:
        raise DomainValidationError(
            f"A {profile.role.value} profile cannot be linked to a "
            f"{company.company_type.value} company",
            error_code="ROLE_MISMATCH",
        )

    profile.company_id = company.id
    await db.flush()

    await log_activity(
        db, actor, action="linked", entity_type="company", entity_id=company.id,
        summary=f"Linked {profile.email} to {company.name}",
    )
    return profile


async def update_company(
    db: AsyncSession,
    actor: Profile,
    company_id: str,
    fields: dict,
) -> Company:
    """Edit company details; type and verification are not writable here."""
    company = await _get_company(db, company_id)
    ensure(actor, Action.COMPANY_UPDATE, Target(company_id=company.id))

    changes = _clean(fields)
    for key, value in changes.items():
        setattr(company, key, value)
    await db.flush()

    await log_activity(
        db, actor, action="updated", entity_type="company", entity_id=company.id,
        summary=f"Updated company {company.name}",
        details={"fields": sorted(changes)},
    )
    return company


async def set_verified(
    db: AsyncSession,
    actor: Profile,
    company_id: str,
    is_verified: bool,
) -> Company:
    company = await _get_company(db, company_id)
    ensure(actor, Action.COMPANY_VERIFY, Target(company_id=company.id))

    company.is_verified = is_verified
    await db.flush()

    await log_activity(
        db, actor, action="verified" if is_verified else "unverified",
        entity_type="company", entity_id=company.id,
        summary=f"{'Verified' if is_verified else 'Removed verification from'} {company.name}",
    )
    logger.info("Company %s verification set to %s by %s", company.id, is_verified, actor.id)
    return company


# ── Reads ────────────────────────────────────────────────────

async def is_verified(db: AsyncSession, actor: Profile, company_id: str) -> bool:
    """Public verification flag, readable by any signed-in actor."""
    company = await _get_company(db, company_id)
    ensure(actor, Action.COMPANY_READ_VERIFICATION, Target(company_id=company.id))
    return company.is_verified


async def get_company(db: AsyncSession, actor: Profile, company_id: str) -> Company:
    company = await _get_company(db, company_id)
    ensure(actor, Action.COMPANY_READ, Target(company_id=company.id))
    return company


async def company_details(db: AsyncSession, actor: Profile, company_id: str) -> CompanyDetails:
    """Company with its documents, members and (for transporters) fleet."""
    company = await get_company(db, actor, company_id)

    doc_result = await db.execute(
        select(Document)
        .where(
            Document.company_id == company.id,
            Document.driver_id.is_(None),
            Document.truck_id.is_(None),
            Document.trailer_id.is_(None),
        )
        .order_by(Document.created_at.desc())
    )
    member_result = await db.execute(
        select(Profile).where(Profile.company_id == company.id).order_by(Profile.created_at)
    )
    details = CompanyDetails(
        company=company,
        documents=list(doc_result.scalars().all()),
        members=list(member_result.scalars().all()),
    )

    if company.company_type == CompanyType.TRANSPORTER:
        details.drivers = await fleet.list_with_documents(db, actor, ParentType.DRIVER, company.id)
        details.trucks = await fleet.list_with_documents(db, actor, ParentType.TRUCK, company.id)
        details.trailers = await fleet.list_with_documents(db, actor, ParentType.TRAILER, company.id)
    return details


async def admin_list_companies(
    db: AsyncSession,
    actor: Profile,
    company_type: CompanyType | None = None,
    search: str | None = None,
) -> list[tuple[Company, SuggestedVerification, int]]:
    """Admin listing: each company with its suggested verification and
    company-level document count."""
    ensure(actor, Action.COMPANY_VERIFY)

    query = select(Company)
    if company_type is not None:
        query = query.where(Company.company_type == company_type)
    if search:
        term = f"%{search.strip()}%"
        query = query.where(or_(
            Company.name.ilike(term),
            Company.registration_number.ilike(term),
            Company.city.ilike(term),
        ))
    companies = list((await db.execute(query.order_by(Company.name))).scalars().all())
    if not companies:
        return []

    status_result = await db.execute(
        select(Document.company_id, Document.status)
        .where(
            Document.company_id.in_([c.id for c in companies]),
            Document.driver_id.is_(None),
            Document.truck_id.is_(None),
            Document.trailer_id.is_(None),
        )
    )
    statuses: dict[str, list[DocumentStatus]] = {}
    for company_id, doc_status in status_result.all():
        statuses.setdefault(company_id, []).append(doc_status)

    return [
        (c, suggest_verification(statuses.get(c.id, [])), len(statuses.get(c.id, [])))
        for c in companies
    ]


async def _count(db: AsyncSession, model, *conditions) -> int:
    result = await db.execute(select(func.count(model.id)).where(*conditions))
    return result.scalar() or 0


async def dashboard_stats(db: AsyncSession, actor: Profile) -> dict[str, int]:
    """Platform counters for the admin dashboard (count queries only)."""
    ensure(actor, Action.PLATFORM_STATS)
    return {
        "suppliers": await _count(db, Company, Company.company_type == CompanyType.SUPPLIER),
        "transporters": await _count(db, Company, Company.company_type == CompanyType.TRANSPORTER),
        "verified_companies": await _count(db, Company, Company.is_verified.is_(True)),
        "pending_documents": await _count(db, Document, Document.status == DocumentStatus.PENDING),
        "pending_loads": await _count(db, Load, Load.status == LoadStatus.PENDING),
        "active_loads": await _count(db, Load, Load.status == LoadStatus.APPROVED),
        "loads_in_transit": await _count(db, Load, Load.status == LoadStatus.IN_TRANSIT),
        "trucks": await _count(db, Truck),
        "trailers": await _count(db, Trailer),
        "drivers": await _count(db, Driver),
        "unlinked_profiles": await _count(
            db, Profile, Profile.company_id.is_(None), Profile.role != UserRole.ADMIN,
        ),
    }


async def pending_approvals(db: AsyncSession, actor: Profile) -> dict[str, list]:
    """Everything waiting on an admin: documents and loads, with company names."""
    ensure(actor, Action.PLATFORM_STATS)
    return {
        "documents": await documents.list_pending(db, actor),
        "loads": await loads.pending_queue(db, actor),
    }

"""Admin-only router for platform administration.

Endpoints:
    GET    /api/admin/stats                          Dashboard counters
    GET    /api/admin/pending                        Documents and loads awaiting review
    GET    /api/admin/companies                      Companies with suggested verification
    GET    /api/admin/activity                       Activity log
    GET    /api/admin/profiles                       List profiles (optionally unlinked only)
    POST   /api/admin/profiles/{profile_id}/disable  Disable profile and revoke its tokens
    DELETE /api/admin/profiles/{profile_id}          Purge a disabled profile
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import require_role
from app.database import get_db
from app.models.activity_log import ActivityLog
from app.models.company import CompanyType
from app.models.profile import Profile, UserRole
from app.schemas.admin import (
    ActivityEntry,
    ActivityListResponse,
    AdminCompanyOut,
    DashboardStats,
    PendingApprovals,
    ProfileAdminOut,
)
from app.schemas.company import CompanyOut
from app.schemas.document import PendingDocumentOut
from app.schemas.load import LoadSummary
from app.services import companies, profiles

router = APIRouter()

require_admin = require_role(UserRole.ADMIN)


# ══════════════════════════════════════════════════════════════
# OVERVIEW
# ══════════════════════════════════════════════════════════════

@router.get("/stats", response_model=DashboardStats)
async def dashboard_stats(
    db: AsyncSession = Depends(get_db),
    admin: Profile = Depends(require_admin),
):
    return DashboardStats(**await companies.dashboard_stats(db, admin))


@router.get("/pending", response_model=PendingApprovals)
async def pending_approvals(
    db: AsyncSession = Depends(get_db),
    admin: Profile = Depends(require_admin),
):
    """Everything waiting on a review decision."""
    pending = await companies.pending_approvals(db, admin)
    return PendingApprovals(
        documents=[
            PendingDocumentOut.model_validate(doc).model_copy(update={"company_name": name})
            for doc, name in pending["documents"]
        ],
        loads=[
            LoadSummary.model_validate(load).model_copy(update={"company_name": name})
            for load, name in pending["loads"]
        ],
    )


@router.get("/companies", response_model=list[AdminCompanyOut])
async def list_companies(
    company_type: CompanyType | None = Query(None),
    search: str | None = None,
    db: AsyncSession = Depends(get_db),
    admin: Profile = Depends(require_admin),
):
    """Companies with the verification suggested by their documents.

    The suggestion is a hint only; ``is_verified`` changes solely through
    PUT /api/companies/{id}/verification.
    """
    rows = await companies.admin_list_companies(db, admin, company_type, search)
    return [
        AdminCompanyOut(
            **CompanyOut.model_validate(company).model_dump(),
            suggested_verification=suggestion.value,
            document_count=count,
        )
        for company, suggestion, count in rows
    ]


# ══════════════════════════════════════════════════════════════
# ACTIVITY LOG
# ══════════════════════════════════════════════════════════════

@router.get("/activity", response_model=ActivityListResponse)
async def list_activity(
    entity_type: str | None = Query(None),
    action: str | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    _admin: Profile = Depends(require_admin),
):
    """List activity log entries with optional filters."""
    query = select(ActivityLog)
    count_query = select(func.count()).select_from(ActivityLog)

    if entity_type:
        query = query.where(ActivityLog.entity_type == entity_type)
        count_query = count_query.where(ActivityLog.entity_type == entity_type)
    if action:
        query = query.where(ActivityLog.action == action)
        count_query = count_query.where(ActivityLog.action == action)

    total_r = await db.execute(count_query)
    total = total_r.scalar() or 0

    result = await db.execute(
        query.order_by(ActivityLog.created_at.desc())
        .offset(offset)
        .limit(limit)
    )
    items = [ActivityEntry.model_validate(a) for a in result.scalars().all()]

    return ActivityListResponse(items=items, total=total)


# ══════════════════════════════════════════════════════════════
# PROFILE MANAGEMENT
# ══════════════════════════════════════════════════════════════

@router.get("/profiles", response_model=list[ProfileAdminOut])
async def list_profiles(
    role: UserRole | None = Query(None),
    unlinked_only: bool = False,
    db: AsyncSession = Depends(get_db),
    admin: Profile = Depends(require_admin),
):
    rows = await profiles.list_profiles(db, admin, role=role, unlinked_only=unlinked_only)
    return [ProfileAdminOut.model_validate(p) for p in rows]


@router.post("/profiles/{profile_id}/disable", response_model=ProfileAdminOut)
async def disable_profile(
    profile_id: str,
    db: AsyncSession = Depends(get_db),
    admin: Profile = Depends(require_admin),
):
    """Phase one of deletion: access stops immediately."""
    profile = await profiles.disable_profile(db, admin, profile_id)
    return ProfileAdminOut.model_validate(profile)


@router.delete("/profiles/{profile_id}", status_code=204)
async def purge_profile(
    profile_id: str,
    db: AsyncSession = Depends(get_db),
    admin: Profile = Depends(require_admin),
):
    """Phase two of deletion: only for a profile disabled beforehand."""
    await profiles.purge_profile(db, admin, profile_id)

"""Pydantic schemas for the admin dashboard."""

from datetime import datetime

from pydantic import BaseModel

from app.schemas.auth import ProfileOut
from app.schemas.company import CompanyOut
from app.schemas.document import PendingDocumentOut
from app.schemas.load import LoadSummary


class DashboardStats(BaseModel):
    suppliers: int
    transporters: int
    verified_companies: int
    pending_documents: int
    pending_loads: int
    active_loads: int
    loads_in_transit: int
    trucks: int
    trailers: int
    drivers: int
    unlinked_profiles: int


class PendingApprovals(BaseModel):
    documents: list[PendingDocumentOut]
    loads: list[LoadSummary]


class AdminCompanyOut(CompanyOut):
    suggested_verification: str
    document_count: int


class ProfileAdminOut(ProfileOut):
    disabled_at: datetime | None
    created_at: datetime


class ActivityEntry(BaseModel):
    id: str
    profile_name: str
    action: str
    entity_type: str
    entity_id: str | None = None
    summary: str | None = None
    details: dict | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class ActivityListResponse(BaseModel):
    items: list[ActivityEntry]
    total: int

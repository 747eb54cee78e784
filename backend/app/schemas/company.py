"""Pydantic schemas for companies and their verification state."""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from app.models.company import CompanyType
from app.schemas.auth import ProfileOut
from app.schemas.document import DocumentOut
from app.schemas.fleet import DriverWithDocuments, TrailerWithDocuments, TruckWithDocuments


class CompanyCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    registration_number: str | None = None
    tax_number: str | None = None
    address: str | None = None
    city: str | None = None
    province: str | None = None
    postal_code: str | None = None
    country: str | None = None
    phone: str | None = None
    email: EmailStr | None = None
    website: str | None = None
    does_cross_border: bool = False
    # Admin only; suppliers and transporters get their own role
    company_type: CompanyType | None = None


class CompanyUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    registration_number: str | None = None
    tax_number: str | None = None
    address: str | None = None
    city: str | None = None
    province: str | None = None
    postal_code: str | None = None
    country: str | None = None
    phone: str | None = None
    email: EmailStr | None = None
    website: str | None = None
    does_cross_border: bool | None = None


class CompanyOut(BaseModel):
    id: str
    name: str
    registration_number: str | None
    tax_number: str | None
    address: str | None
    city: str | None
    province: str | None
    postal_code: str | None
    country: str | None
    phone: str | None
    email: str | None
    website: str | None
    company_type: CompanyType
    does_cross_border: bool
    is_verified: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class CompanyVerification(BaseModel):
    company_id: str
    is_verified: bool


class CompanyDetailsOut(BaseModel):
    company: CompanyOut
    suggested_verification: str
    documents: list[DocumentOut]
    members: list[ProfileOut]
    drivers: list[DriverWithDocuments] = []
    trucks: list[TruckWithDocuments] = []
    trailers: list[TrailerWithDocuments] = []


class LinkProfileRequest(BaseModel):
    profile_id: str


class VerifyRequest(BaseModel):
    is_verified: bool

"""Pydantic schemas for drivers, trucks and trailers."""

from datetime import date, datetime

from pydantic import BaseModel, Field

from app.models.trailer import TrailerType
from app.schemas.document import DocumentOut


# ── Drivers ──────────────────────────────────────────────────

class DriverCreate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    id_number: str | None = None
    license_number: str | None = None
    license_expiry: date | None = None
    phone: str | None = None
    email: str | None = None
    company_id: str | None = None   # admin only


class DriverUpdate(BaseModel):
    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)
    id_number: str | None = None
    license_number: str | None = None
    license_expiry: date | None = None
    phone: str | None = None
    email: str | None = None


class DriverOut(BaseModel):
    id: str
    company_id: str
    first_name: str
    last_name: str
    id_number: str | None
    license_number: str | None
    license_expiry: date | None
    phone: str | None
    email: str | None
    is_active: bool
    is_verified: bool
    created_at: datetime

    model_config = {"from_attributes": True}


# ── Trucks ───────────────────────────────────────────────────

class TruckCreate(BaseModel):
    registration_number: str = Field(..., min_length=1, max_length=50)
    make: str | None = None
    model: str | None = None
    year: int | None = Field(None, ge=0)
    horse_type: str | None = None
    number_of_axles: int | None = Field(None, ge=0)
    company_id: str | None = None


class TruckUpdate(BaseModel):
    registration_number: str | None = Field(None, min_length=1, max_length=50)
    make: str | None = None
    model: str | None = None
    year: int | None = Field(None, ge=0)
    horse_type: str | None = None
    number_of_axles: int | None = Field(None, ge=0)


class TruckOut(BaseModel):
    id: str
    company_id: str
    registration_number: str
    make: str | None
    model: str | None
    year: int | None
    horse_type: str | None
    number_of_axles: int | None
    is_active: bool
    is_verified: bool
    created_at: datetime

    model_config = {"from_attributes": True}


# ── Trailers ─────────────────────────────────────────────────

class TrailerCreate(BaseModel):
    registration_number: str = Field(..., min_length=1, max_length=50)
    trailer_type: TrailerType
    make: str | None = None
    model: str | None = None
    year: int | None = Field(None, ge=0)
    length_meters: float | None = Field(None, ge=0)
    payload_capacity_tons: float | None = Field(None, ge=0)
    company_id: str | None = None


class TrailerUpdate(BaseModel):
    registration_number: str | None = Field(None, min_length=1, max_length=50)
    trailer_type: TrailerType | None = None
    make: str | None = None
    model: str | None = None
    year: int | None = Field(None, ge=0)
    length_meters: float | None = Field(None, ge=0)
    payload_capacity_tons: float | None = Field(None, ge=0)


class TrailerOut(BaseModel):
    id: str
    company_id: str
    registration_number: str
    trailer_type: TrailerType
    make: str | None
    model: str | None
    year: int | None
    length_meters: float | None
    payload_capacity_tons: float | None
    is_active: bool
    is_verified: bool
    created_at: datetime

    model_config = {"from_attributes": True}


# ── Status toggles ───────────────────────────────────────────

class ActiveToggle(BaseModel):
    is_active: bool


class VerifiedToggle(BaseModel):
    is_verified: bool


class DeletedAsset(BaseModel):
    id: str
    documents_removed: int


# ── With documents (company details view) ────────────────────

class DriverWithDocuments(DriverOut):
    documents: list[DocumentOut] = []


class TruckWithDocuments(TruckOut):
    documents: list[DocumentOut] = []


class TrailerWithDocuments(TrailerOut):
    documents: list[DocumentOut] = []

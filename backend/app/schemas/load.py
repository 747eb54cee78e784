"""Pydantic schemas for loads."""

from datetime import date, datetime

from pydantic import BaseModel, Field, model_validator

from app.models.load import LoadStatus
from app.models.trailer import TrailerType


class LoadCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    cargo_type: str | None = None
    weight_tons: float | None = Field(None, ge=0)

    pickup_address: str | None = None
    pickup_city: str | None = None
    pickup_province: str | None = None
    pickup_country: str | None = None
    pickup_lat: float | None = None
    pickup_lng: float | None = None
    pickup_date: date | None = None
    pickup_time_window: str | None = None

    delivery_address: str | None = None
    delivery_city: str | None = None
    delivery_province: str | None = None
    delivery_country: str | None = None
    delivery_lat: float | None = None
    delivery_lng: float | None = None
    delivery_date: date | None = None
    delivery_time_window: str | None = None

    required_trailer_type: list[TrailerType] = []
    budget_amount: float | None = Field(None, ge=0)
    special_instructions: str | None = None
    is_hazardous: bool = False
    cross_border_flagged: bool = False

    # Admin only
    company_id: str | None = None
    publish_approved: bool = False

    @model_validator(mode="after")
    def delivery_not_before_pickup(self):
        if self.pickup_date and self.delivery_date and self.delivery_date < self.pickup_date:
            raise ValueError("delivery_date cannot be before pickup_date")
        return self


class LoadUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    cargo_type: str | None = None
    weight_tons: float | None = Field(None, ge=0)

    pickup_address: str | None = None
    pickup_city: str | None = None
    pickup_province: str | None = None
    pickup_country: str | None = None
    pickup_lat: float | None = None
    pickup_lng: float | None = None
    pickup_date: date | None = None
    pickup_time_window: str | None = None

    delivery_address: str | None = None
    delivery_city: str | None = None
    delivery_province: str | None = None
    delivery_country: str | None = None
    delivery_lat: float | None = None
    delivery_lng: float | None = None
    delivery_date: date | None = None
    delivery_time_window: str | None = None

    required_trailer_type: list[TrailerType] | None = None
    budget_amount: float | None = Field(None, ge=0)
    special_instructions: str | None = None
    is_hazardous: bool | None = None
    cross_border_flagged: bool | None = None


class LoadOut(BaseModel):
    id: str
    company_id: str | None
    title: str
    description: str | None
    cargo_type: str | None
    weight_tons: float | None

    pickup_address: str | None
    pickup_city: str | None
    pickup_province: str | None
    pickup_country: str | None
    pickup_lat: float | None
    pickup_lng: float | None
    pickup_date: date | None
    pickup_time_window: str | None

    delivery_address: str | None
    delivery_city: str | None
    delivery_province: str | None
    delivery_country: str | None
    delivery_lat: float | None
    delivery_lng: float | None
    delivery_date: date | None
    delivery_time_window: str | None

    required_trailer_type: list[str]
    budget_amount: float | None
    special_instructions: str | None
    is_hazardous: bool
    cross_border_flagged: bool
    is_cross_border: bool

    status: LoadStatus
    rejection_reason: str | None
    reviewed_by: str | None
    reviewed_at: datetime | None
    assigned_transporter_id: str | None
    assigned_truck_id: str | None
    assigned_driver_id: str | None
    created_by: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class LoadSummary(LoadOut):
    company_name: str | None = None


class LoadMapPoint(BaseModel):
    id: str
    title: str
    status: LoadStatus
    company_name: str | None
    pickup_city: str | None
    delivery_city: str | None
    pickup_lat: float
    pickup_lng: float
    delivery_lat: float | None
    delivery_lng: float | None


class AssignmentIn(BaseModel):
    transporter_id: str
    truck_id: str | None = None
    driver_id: str | None = None


class LoadTransition(BaseModel):
    status: LoadStatus
    reason: str | None = None
    assignment: AssignmentIn | None = None

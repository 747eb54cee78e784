"""Load — a transport job posted by a supplier (or by an admin).

Lifecycle:
    pending → approved | rejected | cancelled
    rejected → approved | pending | cancelled
    approved → in_transit → completed      (or → cancelled)

Only ``approved`` loads are visible to transporters.  Field edits are
allowed while pending/rejected; deletion only while pending.
"""

import enum
import uuid
from datetime import date, datetime

from sqlalchemy import (
    Boolean, Date, DateTime, Enum as SAEnum, Float, ForeignKey, JSON, String, Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class LoadStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    IN_TRANSIT = "in_transit"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Load(Base):
    __tablename__ = "loads"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    # Nullable: admin-authored loads may have no supplier company
    company_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("companies.id"), index=True
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    cargo_type: Mapped[str | None] = mapped_column(String(100))
    weight_tons: Mapped[float | None] = mapped_column(Float)

    # ── Pickup ───────────────────────────────────────────────
    pickup_address: Mapped[str | None] = mapped_column(Text)
    pickup_city: Mapped[str | None] = mapped_column(String(100))
    pickup_province: Mapped[str | None] = mapped_column(String(100))
    pickup_country: Mapped[str | None] = mapped_column(String(100))
    pickup_lat: Mapped[float | None] = mapped_column(Float)
    pickup_lng: Mapped[float | None] = mapped_column(Float)
    pickup_date: Mapped[date | None] = mapped_column(Date)
    pickup_time_window: Mapped[str | None] = mapped_column(String(100))

    # ── Delivery ─────────────────────────────────────────────
    delivery_address: Mapped[str | None] = mapped_column(Text)
    delivery_city: Mapped[str | None] = mapped_column(String(100))
    delivery_province: Mapped[str | None] = mapped_column(String(100))
    delivery_country: Mapped[str | None] = mapped_column(String(100))
    delivery_lat: Mapped[float | None] = mapped_column(Float)
    delivery_lng: Mapped[float | None] = mapped_column(Float)
    delivery_date: Mapped[date | None] = mapped_column(Date)
    delivery_time_window: Mapped[str | None] = mapped_column(String(100))

    # ── Requirements ─────────────────────────────────────────
    # JSON list of TrailerType values; empty list means any trailer
    required_trailer_type: Mapped[list] = mapped_column(JSON, default=list)
    budget_amount: Mapped[float | None] = mapped_column(Float)
    special_instructions: Mapped[str | None] = mapped_column(Text)
    is_hazardous: Mapped[bool] = mapped_column(Boolean, default=False)

    # Creator's explicit flag; is_cross_border = flag OR countries differ
    cross_border_flagged: Mapped[bool] = mapped_column(Boolean, default=False)
    is_cross_border: Mapped[bool] = mapped_column(Boolean, default=False)

    # ── Status / review ──────────────────────────────────────
    status: Mapped[LoadStatus] = mapped_column(
        SAEnum(LoadStatus, name="load_status", values_callable=lambda e: [m.value for m in e]),
        default=LoadStatus.PENDING,
        nullable=False,
        index=True,
    )
    reviewed_by: Mapped[str | None] = mapped_column(String(36))
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime)
    rejection_reason: Mapped[str | None] = mapped_column(Text)

    # ── Assignment (set on dispatch) ─────────────────────────
    assigned_transporter_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("companies.id")
    )
    assigned_truck_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("trucks.id", ondelete="SET NULL")
    )
    assigned_driver_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("drivers.id", ondelete="SET NULL")
    )

    created_by: Mapped[str | None] = mapped_column(String(36))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

"""Trailer — a fleet asset owned by a transporter company.

``trailer_type`` is also the vocabulary loads use for
``required_trailer_type``.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum as SAEnum, Float, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class TrailerType(str, enum.Enum):
    TAUTLINER = "tautliner"
    FLATBED = "flatbed"
    LOWBED = "lowbed"
    TANKER = "tanker"
    REFRIGERATED = "refrigerated"
    CONTAINER = "container"
    SIDE_TIPPER = "side_tipper"
    END_TIPPER = "end_tipper"
    OTHER = "other"


class Trailer(Base):
    __tablename__ = "trailers"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    company_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("companies.id"), nullable=False, index=True
    )
    registration_number: Mapped[str] = mapped_column(String(50), nullable=False)
    trailer_type: Mapped[TrailerType] = mapped_column(
        SAEnum(TrailerType, name="trailer_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    make: Mapped[str | None] = mapped_column(String(100))
    model: Mapped[str | None] = mapped_column(String(100))
    year: Mapped[int | None] = mapped_column(Integer)
    length_meters: Mapped[float | None] = mapped_column(Float)
    payload_capacity_tons: Mapped[float | None] = mapped_column(Float)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False)

    created_by: Mapped[str | None] = mapped_column(String(36))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

"""Document — an uploaded artifact under admin review.

Every document carries its owning ``company_id``.  The *parent* is the
company itself (no asset id set) or exactly one of driver / truck /
trailer; the CHECK constraint below keeps asset references to at most one.

Lifecycle:  pending → approved | rejected  (re-review may flip the two)
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    CheckConstraint, DateTime, Enum as SAEnum, ForeignKey, Integer, String, Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class DocumentStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class DocumentCategory(str, enum.Enum):
    REGISTRATION = "registration"
    CIPC = "cipc"
    TAX_DOCUMENT = "tax_document"
    ID_DOCUMENT = "id_document"
    DRIVERS_LICENSE = "drivers_license"
    PDP = "pdp"
    PASSPORT = "passport"
    TRUCK_REGISTRATION = "truck_registration"
    BRAKE_TEST = "brake_test"
    ROADWORTHY = "roadworthy"
    TRAILER_REGISTRATION = "trailer_registration"
    OTHER = "other"


class ParentType(str, enum.Enum):
    COMPANY = "company"
    DRIVER = "driver"
    TRUCK = "truck"
    TRAILER = "trailer"


ALLOWED_CATEGORIES: dict[ParentType, frozenset[DocumentCategory]] = {
    ParentType.COMPANY: frozenset({
        DocumentCategory.REGISTRATION,
        DocumentCategory.CIPC,
        DocumentCategory.TAX_DOCUMENT,
        DocumentCategory.OTHER,
    }),
    ParentType.DRIVER: frozenset({
        DocumentCategory.ID_DOCUMENT,
        DocumentCategory.DRIVERS_LICENSE,
        DocumentCategory.PDP,
        DocumentCategory.PASSPORT,
        DocumentCategory.OTHER,
    }),
    ParentType.TRUCK: frozenset({
        DocumentCategory.TRUCK_REGISTRATION,
        DocumentCategory.ROADWORTHY,
        DocumentCategory.BRAKE_TEST,
        DocumentCategory.OTHER,
    }),
    ParentType.TRAILER: frozenset({
        DocumentCategory.TRAILER_REGISTRATION,
        DocumentCategory.ROADWORTHY,
        DocumentCategory.BRAKE_TEST,
        DocumentCategory.OTHER,
    }),
}


class Document(Base):
    __tablename__ = "documents"
    __table_args__ = (
        CheckConstraint(
            "(CASE WHEN driver_id IS NULL THEN 0 ELSE 1 END"
            " + CASE WHEN truck_id IS NULL THEN 0 ELSE 1 END"
            " + CASE WHEN trailer_id IS NULL THEN 0 ELSE 1 END) <= 1",
            name="ck_documents_single_parent",
        ),
        CheckConstraint(
            "(status = 'rejected') = (rejection_reason IS NOT NULL)",
            name="ck_documents_rejection_reason",
        ),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )

    # ── Ownership / parent ───────────────────────────────────
    company_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("companies.id"), nullable=False, index=True
    )
    driver_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("drivers.id"), index=True
    )
    truck_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("trucks.id"), index=True
    )
    trailer_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("trailers.id"), index=True
    )

    category: Mapped[DocumentCategory] = mapped_column(
        SAEnum(DocumentCategory, name="document_category", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)

    # ── Stored file ──────────────────────────────────────────
    file_path: Mapped[str] = mapped_column(String(500), nullable=False)
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_size: Mapped[int | None] = mapped_column(Integer)
    mime_type: Mapped[str | None] = mapped_column(String(100))

    # ── Review ───────────────────────────────────────────────
    status: Mapped[DocumentStatus] = mapped_column(
        SAEnum(DocumentStatus, name="document_status", values_callable=lambda e: [m.value for m in e]),
        default=DocumentStatus.PENDING,
        nullable=False,
        index=True,
    )
    rejection_reason: Mapped[str | None] = mapped_column(Text)
    reviewed_by: Mapped[str | None] = mapped_column(String(36))
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime)

    uploaded_by: Mapped[str | None] = mapped_column(String(36))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    @property
    def parent_type(self) -> ParentType:
        if self.driver_id:
            return ParentType.DRIVER
        if self.truck_id:
            return ParentType.TRUCK
        if self.trailer_id:
            return ParentType.TRAILER
        return ParentType.COMPANY

    @property
    def parent_id(self) -> str:
        return self.driver_id or self.truck_id or self.trailer_id or self.company_id

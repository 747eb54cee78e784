"""Pydantic schemas for documents and their review."""

from datetime import datetime

from pydantic import BaseModel, Field, model_validator

from app.models.document import DocumentCategory, DocumentStatus


class DocumentOut(BaseModel):
    id: str
    company_id: str
    driver_id: str | None
    truck_id: str | None
    trailer_id: str | None
    category: DocumentCategory
    title: str
    file_name: str
    file_size: int | None
    mime_type: str | None
    status: DocumentStatus
    rejection_reason: str | None
    reviewed_by: str | None
    reviewed_at: datetime | None
    uploaded_by: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class PendingDocumentOut(DocumentOut):
    company_name: str | None = None


class DocumentReview(BaseModel):
    status: DocumentStatus
    rejection_reason: str | None = None

    @model_validator(mode="after")
    def decision_only(self):
        if self.status == DocumentStatus.PENDING:
            raise ValueError("status must be 'approved' or 'rejected'")
        return self


class DocumentRename(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)


class DownloadUrl(BaseModel):
    url: str
    expires_in: int

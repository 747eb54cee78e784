"""Document router — upload, review and removal of supporting documents.

Endpoints:
    POST   /api/documents/                 Upload (multipart: file, category, title, one parent id)
    GET    /api/documents/                 List documents of one parent
    GET    /api/documents/pending          Review queue with company names (admin)
    GET    /api/documents/{id}             Get document
    GET    /api/documents/{id}/download    Signed download URL
    PATCH  /api/documents/{id}             Rename
    PUT    /api/documents/{id}/review      Approve / reject (admin)
    DELETE /api/documents/{id}             Delete row and stored file
"""

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import get_current_profile
from app.config import settings
from app.database import get_db
from app.models.document import DocumentCategory
from app.models.profile import Profile
from app.schemas.document import (
    DocumentOut,
    DocumentRename,
    DocumentReview,
    DownloadUrl,
    PendingDocumentOut,
)
from app.services import documents
from app.services.documents import ParentRef
from app.services.storage import ObjectStorage, get_storage

router = APIRouter()


@router.post("/", response_model=DocumentOut, status_code=201)
async def upload_document(
    file: UploadFile = File(...),
    category: DocumentCategory = Form(...),
    title: str = Form(...),
    company_id: str | None = Form(None),
    driver_id: str | None = Form(None),
    truck_id: str | None = Form(None),
    trailer_id: str | None = Form(None),
    db: AsyncSession = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    profile: Profile = Depends(get_current_profile),
):
    """Upload a document for a company, driver, truck or trailer.

    Exactly one asset id may be given; with none, ``company_id`` is the
    parent.
    """
    data = await file.read()
    document = await documents.upload(
        db, storage, profile,
        ParentRef.of(company_id, driver_id, truck_id, trailer_id),
        category=category,
        title=title,
        filename=file.filename or "upload",
        data=data,
        content_type=file.content_type,
    )
    return DocumentOut.model_validate(document)


@router.get("/", response_model=list[DocumentOut])
async def list_documents(
    company_id: str | None = None,
    driver_id: str | None = None,
    truck_id: str | None = None,
    trailer_id: str | None = None,
    category: DocumentCategory | None = Query(None),
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    """Documents of one parent, newest first.

    Defaults to the caller's company-level documents.
    """
    parent = ParentRef.of(company_id, driver_id, truck_id, trailer_id)
    if parent == ParentRef():
        parent = ParentRef.of(company_id=profile.company_id)
    docs = await documents.list_for_parent(db, profile, parent, category)
    return [DocumentOut.model_validate(d) for d in docs]


@router.get("/pending", response_model=list[PendingDocumentOut])
async def pending_documents(
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    rows = await documents.list_pending(db, profile)
    return [
        PendingDocumentOut.model_validate(doc).model_copy(update={"company_name": name})
        for doc, name in rows
    ]


@router.get("/{document_id}", response_model=DocumentOut)
async def get_document(
    document_id: str,
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    document = await documents.get_document(db, profile, document_id)
    return DocumentOut.model_validate(document)


@router.get("/{document_id}/download", response_model=DownloadUrl)
async def download_document(
    document_id: str,
    db: AsyncSession = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    profile: Profile = Depends(get_current_profile),
):
    url = await documents.download_url(db, storage, profile, document_id)
    return DownloadUrl(url=url, expires_in=settings.signed_url_expiry_seconds)


@router.patch("/{document_id}", response_model=DocumentOut)
async def rename_document(
    document_id: str,
    body: DocumentRename,
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    document = await documents.rename(db, profile, document_id, body.title)
    return DocumentOut.model_validate(document)


@router.put("/{document_id}/review", response_model=DocumentOut)
async def review_document(
    document_id: str,
    body: DocumentReview,
    db: AsyncSession = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    """Approve or reject a document (admin). Rejection needs a reason."""
    document = await documents.review(
        db, profile, document_id, body.status, body.rejection_reason
    )
    return DocumentOut.model_validate(document)


@router.delete("/{document_id}", status_code=204)
async def delete_document(
    document_id: str,
    db: AsyncSession = Depends(get_db),
    storage: ObjectStorage = Depends(get_storage),
    profile: Profile = Depends(get_current_profile),
):
    await documents.remove(db, storage, profile, document_id)

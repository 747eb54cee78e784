"""Document Workflow — upload, review and removal of supporting documents.

A document hangs off exactly one parent: the company itself or one of
its drivers, trucks or trailers.  Each parent type accepts its own set of
categories (see ``ALLOWED_CATEGORIES``).

Store + storage consistency:
  - upload:  file is written first; if that fails no row is created.  If
             the row write fails, the request is cancelled or the
             transaction later rolls back, the file is deleted best-effort
             and a failed cleanup is logged with its path.
  - remove:  rows are deleted first; files are deleted only once the
             transaction has committed.  A storage failure at that point
             leaves a logged orphan file, never a row without its file.

Concurrent reviews of the same document are last-write-wins.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from functools import partial

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.gate import Action, Target, ensure
from app.config import settings
from app.database import on_commit, on_rollback
from app.middleware.exceptions import (
    DomainValidationError,
    InvalidStateError,
    ResourceNotFoundError,
    StorageFailureError,
)
from app.models.company import Company
from app.models.document import (
    ALLOWED_CATEGORIES,
    Document,
    DocumentCategory,
    DocumentStatus,
    ParentType,
)
from app.models.driver import Driver
from app.models.profile import Profile
from app.models.trailer import Trailer
from app.models.truck import Truck
from app.services.storage import ObjectStorage, document_path, file_extension, infer_content_type
from app.utils.activity import log_activity

logger = logging.getLogger("freightlink.documents")

PARENT_MODELS = {
    ParentType.COMPANY: Company,
    ParentType.DRIVER: Driver,
    ParentType.TRUCK: Truck,
    ParentType.TRAILER: Trailer,
}

# Review decisions reachable from each status.  Re-review flips between
# approved and rejected; nothing returns a document to pending.
DOCUMENT_TRANSITIONS: dict[DocumentStatus, frozenset[DocumentStatus]] = {
    DocumentStatus.PENDING: frozenset({DocumentStatus.APPROVED, DocumentStatus.REJECTED}),
    DocumentStatus.APPROVED: frozenset({DocumentStatus.REJECTED}),
    DocumentStatus.REJECTED: frozenset({DocumentStatus.APPROVED}),
}


@dataclass(frozen=True)
class ParentRef:
    """Raw parent ids as supplied by the caller (blank strings count as unset)."""
    company_id: str | None = None
    driver_id: str | None = None
    truck_id: str | None = None
    trailer_id: str | None = None

    @classmethod
    def of(cls, company_id=None, driver_id=None, truck_id=None, trailer_id=None) -> "ParentRef":
        return cls(
            company_id=company_id or None,
            driver_id=driver_id or None,
            truck_id=truck_id or None,
            trailer_id=trailer_id or None,
        )

    def resolve(self) -> tuple[ParentType, str]:
        """Return the single parent this reference names.

        Raises ``DomainValidationError`` (MULTIPLE_PARENTS / NO_PARENT) when
        the asset references are not at most one, or nothing is given.
        """
        assets = [
            (parent_type, parent_id)
            for parent_type, parent_id in (
                (ParentType.DRIVER, self.driver_id),
                (ParentType.TRUCK, self.truck_id),
                (ParentType.TRAILER, self.trailer_id),
            )
            if parent_id
        ]
        if len(assets) > 1:
            names = ", ".join(f"{t.value}_id" for t, _ in assets)
            raise DomainValidationError(
                f"A document belongs to exactly one parent; got {names}",
                error_code="MULTIPLE_PARENTS",
            )
        if assets:
            return assets[0]
        if self.company_id:
            return ParentType.COMPANY, self.company_id
        raise DomainValidationError(
            "A document needs a parent: company_id, driver_id, truck_id or trailer_id",
            error_code="NO_PARENT",
        )


def check_category(parent_type: ParentType, category: DocumentCategory) -> None:
    allowed = ALLOWED_CATEGORIES[parent_type]
    if category not in allowed:
        raise DomainValidationError(
            f"Category '{category.value}' is not valid for a {parent_type.value} document. "
            f"Allowed: {', '.join(sorted(c.value for c in allowed))}",
            error_code="INVALID_CATEGORY",
        )


def check_file(filename: str, size: int) -> None:
    allowed = {ext.strip().lower() for ext in settings.allowed_upload_extensions.split(",")}
    extension = file_extension(filename)
    if extension not in allowed:
        raise DomainValidationError(
            f"File type .{extension or '?'} is not allowed. Allowed: {', '.join(sorted(allowed))}",
            error_code="INVALID_FILE_TYPE",
        )
    if size <= 0:
        raise DomainValidationError("Uploaded file is empty", error_code="EMPTY_FILE")
    if size > settings.max_upload_mb * 1024 * 1024:
        raise DomainValidationError(
            f"File size must be less than {settings.max_upload_mb}MB",
            error_code="FILE_TOO_LARGE",
        )


async def load_parent(db: AsyncSession, parent_type: ParentType, parent_id: str):
    """Fetch the parent row; raises ``ResourceNotFoundError`` if missing."""
    model = PARENT_MODELS[parent_type]
    parent = await db.get(model, parent_id)
    if parent is None:
        raise ResourceNotFoundError(parent_type.value.capitalize(), parent_id)
    return parent


def _owning_company_id(parent_type: ParentType, parent) -> str:
    return parent.id if parent_type == ParentType.COMPANY else parent.company_id


async def _get_document(db: AsyncSession, document_id: str) -> Document:
    document = await db.get(Document, document_id)
    if document is None:
        raise ResourceNotFoundError("Document", document_id)
    return document


async def _discard_orphan(storage: ObjectStorage, path: str) -> None:
    try:
        await storage.delete(path)
    except StorageFailureError as e:
        logger.error(
            "Orphaned file left in storage at %s after failed document write: %s",
            path, e.cause,
        )


async def _delete_removed_file(storage: ObjectStorage, path: str) -> None:
    try:
        await storage.delete(path)
    except StorageFailureError as e:
        logger.error(
            "Orphaned file left in storage at %s after its document was deleted: %s",
            path, e.cause,
        )


# ── Upload ───────────────────────────────────────────────────

async def upload(
    db: AsyncSession,
    storage: ObjectStorage,
    actor: Profile,
    parent: ParentRef,
    category: DocumentCategory,
    title: str,
    filename: str,
    data: bytes,
    content_type: str | None = None,
) -> Document:
    """Store a file and create its pending document row."""
    parent_type, parent_id = parent.resolve()
    parent_row = await load_parent(db, parent_type, parent_id)
    company_id = _owning_company_id(parent_type, parent_row)
    ensure(actor, Action.DOCUMENT_UPLOAD, Target(company_id=company_id))

    if parent.company_id and parent.company_id != company_id:
        raise DomainValidationError(
            f"{parent_type.value.capitalize()} {parent_id} does not belong to company {parent.company_id}",
            error_code="COMPANY_MISMATCH",
        )

    check_category(parent_type, category)
    title = (title or "").strip()
    if not title:
        raise DomainValidationError("Document title is required")
    check_file(filename, len(data))

    path = document_path(company_id, category.value, filename)
    try:
        await storage.put(path, data, content_type or infer_content_type(filename))

        document = Document(
            company_id=company_id,
            driver_id=parent_id if parent_type == ParentType.DRIVER else None,
            truck_id=parent_id if parent_type == ParentType.TRUCK else None,
            trailer_id=parent_id if parent_type == ParentType.TRAILER else None,
            category=category,
            title=title,
            file_path=path,
            file_name=filename,
            file_size=len(data),
            mime_type=content_type or infer_content_type(filename),
            status=DocumentStatus.PENDING,
            uploaded_by=actor.id,
        )
        db.add(document)
        await db.flush()
    except StorageFailureError:
        raise
    except (Exception, asyncio.CancelledError):
        await _discard_orphan(storage, path)
        raise
    on_rollback(db, partial(_discard_orphan, storage, path))

    await log_activity(
        db, actor, action="uploaded", entity_type="document", entity_id=document.id,
        summary=f"Uploaded {category.value} for {parent_type.value} {parent_id}",
    )
    logger.info("Document %s uploaded to %s", document.id, path)
    return document


# ── Review ───────────────────────────────────────────────────

async def review(
    db: AsyncSession,
    actor: Profile,
    document_id: str,
    decision: DocumentStatus,
    reason: str | None = None,
) -> Document:
    """Approve or reject a document (admin only).

    Repeating the current decision is a no-op apart from the reviewer
    stamp.  Rejection requires a non-empty reason; approval clears it.
    """
    document = await _get_document(db, document_id)
    ensure(actor, Action.DOCUMENT_REVIEW, Target(company_id=document.company_id))

    if decision == DocumentStatus.PENDING:
        raise DomainValidationError(
            "Review decision must be 'approved' or 'rejected'",
            error_code="INVALID_DECISION",
        )

    reason = (reason or "").strip() or None
    if decision == DocumentStatus.REJECTED and not reason:
        raise DomainValidationError(
            "A rejection reason is required", error_code="MISSING_REASON"
        )

    previous = document.status
    if decision != previous and decision not in DOCUMENT_TRANSITIONS[previous]:
        raise InvalidStateError(
            f"Document cannot move from {previous.value} to {decision.value}"
        )

    document.status = decision
    document.rejection_reason = reason if decision == DocumentStatus.REJECTED else None
    document.reviewed_by = actor.id
    document.reviewed_at = datetime.utcnow()
    await db.flush()

    await log_activity(
        db, actor, action="reviewed", entity_type="document", entity_id=document.id,
        summary=f"Document {previous.value} → {decision.value}",
        details={"reason": document.rejection_reason} if document.rejection_reason else None,
    )
    logger.info("Document %s reviewed: %s → %s", document.id, previous.value, decision.value)
    return document


# ── Remove ───────────────────────────────────────────────────

async def _remove(db: AsyncSession, storage: ObjectStorage, documents: list[Document]) -> None:
    paths = [document.file_path for document in documents]
    for document in documents:
        await db.delete(document)
    await db.flush()
    for path in paths:
        on_commit(db, partial(_delete_removed_file, storage, path))


async def remove(
    db: AsyncSession,
    storage: ObjectStorage,
    actor: Profile,
    document_id: str,
) -> None:
    """Delete a document row; its stored file goes once the delete commits."""
    document = await _get_document(db, document_id)
    ensure(actor, Action.DOCUMENT_DELETE, Target(company_id=document.company_id))

    await _remove(db, storage, [document])
    await log_activity(
        db, actor, action="deleted", entity_type="document", entity_id=document_id,
        summary=f"Deleted {document.category.value} document '{document.title}'",
    )


async def remove_for_parent(
    db: AsyncSession,
    storage: ObjectStorage,
    actor: Profile,
    parent_type: ParentType,
    parent_id: str,
) -> int:
    """Remove every document attached to a fleet asset; returns the count."""
    column = {
        ParentType.DRIVER: Document.driver_id,
        ParentType.TRUCK: Document.truck_id,
        ParentType.TRAILER: Document.trailer_id,
    }[parent_type]
    result = await db.execute(select(Document).where(column == parent_id))
    documents = list(result.scalars().all())
    for document in documents:
        ensure(actor, Action.DOCUMENT_DELETE, Target(company_id=document.company_id))
    await _remove(db, storage, documents)
    return len(documents)


# ── Read side ────────────────────────────────────────────────

async def get_document(db: AsyncSession, actor: Profile, document_id: str) -> Document:
    document = await _get_document(db, document_id)
    ensure(actor, Action.DOCUMENT_READ, Target(company_id=document.company_id))
    return document


async def list_for_parent(
    db: AsyncSession,
    actor: Profile,
    parent: ParentRef,
    category: DocumentCategory | None = None,
) -> list[Document]:
    """Documents of one parent, newest first.

    For a company this returns company-level documents only, not those of
    its fleet assets.
    """
    parent_type, parent_id = parent.resolve()
    parent_row = await load_parent(db, parent_type, parent_id)
    ensure(actor, Action.DOCUMENT_READ, Target(company_id=_owning_company_id(parent_type, parent_row)))

    query = select(Document)
    if parent_type == ParentType.COMPANY:
        query = query.where(
            Document.company_id == parent_id,
            Document.driver_id.is_(None),
            Document.truck_id.is_(None),
            Document.trailer_id.is_(None),
        )
    elif parent_type == ParentType.DRIVER:
        query = query.where(Document.driver_id == parent_id)
    elif parent_type == ParentType.TRUCK:
        query = query.where(Document.truck_id == parent_id)
    else:
        query = query.where(Document.trailer_id == parent_id)

    if category is not None:
        query = query.where(Document.category == category)

    result = await db.execute(query.order_by(Document.created_at.desc()))
    return list(result.scalars().all())


async def list_pending(db: AsyncSession, actor: Profile) -> list[tuple[Document, str]]:
    """Admin review queue: pending documents with their company name."""
    ensure(actor, Action.DOCUMENT_REVIEW)
    result = await db.execute(
        select(Document, Company.name)
        .join(Company, Company.id == Document.company_id)
        .where(Document.status == DocumentStatus.PENDING)
        .order_by(Document.created_at.desc())
    )
    return [(row[0], row[1]) for row in result.all()]


async def download_url(
    db: AsyncSession,
    storage: ObjectStorage,
    actor: Profile,
    document_id: str,
) -> str:
    document = await get_document(db, actor, document_id)
    return await storage.resolve(document.file_path)


async def rename(db: AsyncSession, actor: Profile, document_id: str, title: str) -> Document:
    document = await _get_document(db, document_id)
    ensure(actor, Action.DOCUMENT_UPDATE, Target(company_id=document.company_id))
    title = (title or "").strip()
    if not title:
        raise DomainValidationError("Document title is required")
    document.title = title
    await db.flush()
    return document

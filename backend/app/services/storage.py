"""Object storage for uploaded documents (S3 / Cloudflare R2 compatible).

Interface consumed by the Document Workflow:

    put(path, data, content_type) -> path
    delete(path)
    resolve(path) -> signed URL

Every failure is raised as ``StorageFailureError`` with the original
botocore error preserved as the cause.  Paths are namespaced by the
owning company: ``<company_id>/<category>/<uuid>.<ext>``.
"""

from __future__ import annotations

import asyncio
import uuid
from typing import Protocol

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from app.config import settings
from app.middleware.exceptions import StorageFailureError

CONTENT_TYPES = {
    "pdf": "application/pdf",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
}


class ObjectStorage(Protocol):
    async def put(self, path: str, data: bytes, content_type: str | None = None) -> str: ...

    async def delete(self, path: str) -> None: ...

    async def resolve(self, path: str, expires_in: int | None = None) -> str: ...


def file_extension(filename: str) -> str:
    return filename.rsplit(".", 1)[-1].lower() if "." in filename else ""


def document_path(company_id: str, category: str, filename: str) -> str:
    """Build a unique, company-namespaced storage key for an upload."""
    extension = file_extension(filename)
    unique_name = f"{uuid.uuid4()}.{extension}" if extension else str(uuid.uuid4())
    return f"{company_id}/{category}/{unique_name}"


def infer_content_type(filename: str) -> str:
    return CONTENT_TYPES.get(file_extension(filename), "application/octet-stream")


class S3ObjectStorage:
    """boto3-backed storage; the blocking client runs in a worker thread."""

    def __init__(self) -> None:
        self._client = None
        self._bucket_name = settings.storage_bucket

    @property
    def client(self):
        """Lazy initialization of the S3 client."""
        if self._client is None:
            if not all([
                settings.storage_access_key_id,
                settings.storage_secret_access_key,
                settings.storage_bucket,
            ]):
                raise StorageFailureError(
                    "configure",
                    settings.storage_bucket,
                    "Storage configuration incomplete. Set STORAGE_ACCESS_KEY_ID, "
                    "STORAGE_SECRET_ACCESS_KEY and STORAGE_BUCKET",
                )

            self._client = boto3.client(
                "s3",
                endpoint_url=settings.storage_endpoint_url or None,
                aws_access_key_id=settings.storage_access_key_id,
                aws_secret_access_key=settings.storage_secret_access_key,
                region_name=settings.storage_region,
                config=Config(signature_version="s3v4"),
            )
        return self._client

    async def put(self, path: str, data: bytes, content_type: str | None = None) -> str:
        try:
            await asyncio.to_thread(
                self.client.put_object,
                Bucket=self._bucket_name,
                Key=path,
                Body=data,
                ContentType=content_type or infer_content_type(path),
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageFailureError("put", path, e) from e
        return path

    async def delete(self, path: str) -> None:
        try:
            await asyncio.to_thread(
                self.client.delete_object, Bucket=self._bucket_name, Key=path
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageFailureError("delete", path, e) from e

    async def resolve(self, path: str, expires_in: int | None = None) -> str:
        try:
            return await asyncio.to_thread(
                self.client.generate_presigned_url,
                "get_object",
                Params={"Bucket": self._bucket_name, "Key": path},
                ExpiresIn=expires_in or settings.signed_url_expiry_seconds,
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageFailureError("resolve", path, e) from e


_storage: ObjectStorage | None = None


def get_storage() -> ObjectStorage:
    """FastAPI dependency returning the process-wide storage client."""
    global _storage
    if _storage is None:
        _storage = S3ObjectStorage()
    return _storage

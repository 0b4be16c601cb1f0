"""
Document Storage using Cloudinary

Blob store for technician application documents. The rest of the code
depends on the ``BlobStore`` protocol; ``CloudinaryBlobStore`` is the
production implementation.

The Cloudinary SDK is synchronous, so every call runs on a worker thread
and is bounded by ``settings.upstream_timeout_seconds``. A timeout is
reported like any other upstream failure.
"""

import asyncio
import io
import logging
import re
from datetime import UTC, datetime
from typing import Protocol

import cloudinary
import cloudinary.uploader
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from it13.core.config import settings
from it13.core.exceptions import UpstreamError

logger = logging.getLogger(__name__)

DOCUMENT_EXTENSIONS = {"pdf", "doc", "docx"}
IMAGE_EXTENSIONS = {"jpg", "jpeg", "png", "gif"}

# Deletion does not know how a document was stored, so try each type in turn
DELETE_RESOURCE_TYPES = ("raw", "image", "auto")


class DocHandle(BaseModel):
    """Reference to an uploaded document, as returned by the blob store."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    public_id: str
    url: str
    resource_type: str
    format: str | None = None
    bytes: int = Field(0, ge=0)
    created_at: str | None = None


class DeleteResult(BaseModel):
    ok: bool


class BlobStore(Protocol):
    async def upload(
        self, content: bytes, filename: str, kind: str, owner_id: str
    ) -> DocHandle: ...

    async def delete(self, public_id: str) -> DeleteResult: ...


def sanitize_filename(filename: str) -> str:
    return re.sub(r"[^a-zA-Z0-9.-]", "_", filename)


def resource_type_for(filename: str) -> str:
    extension = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    if extension in DOCUMENT_EXTENSIONS:
        return "raw"
    if extension in IMAGE_EXTENSIONS:
        return "image"
    return "auto"


class CloudinaryBlobStore:
    """Cloudinary-backed document store."""

    def __init__(self, folder: str | None = None, timeout: float | None = None):
        self.folder = folder or settings.cloudinary_folder
        self.timeout = timeout or settings.upstream_timeout_seconds
        if settings.cloudinary_configured:
            cloudinary.config(
                cloud_name=settings.cloudinary_cloud_name,
                api_key=settings.cloudinary_api_key,
                api_secret=settings.cloudinary_api_secret,
                secure=True,
            )

    def _require_configuration(self) -> None:
        if not settings.cloudinary_configured:
            logger.error("Cloudinary credentials are not configured")
            raise UpstreamError(
                "Le stockage des documents n'est pas configuré.",
                error_code="BLOB_STORE_NOT_CONFIGURED",
            )

    async def _call(self, func, *args, **kwargs) -> dict:
        return await asyncio.wait_for(
            asyncio.to_thread(func, *args, **kwargs),
            timeout=self.timeout,
        )

    async def upload(self, content: bytes, filename: str, kind: str, owner_id: str) -> DocHandle:
        """
        Upload one document.

        The public id is ``{owner}_{kind}_{timestamp}_{filename}`` inside the
        configured folder, tagged with the owner and document kind.

        Raises:
            UpstreamError: Missing configuration, network error or timeout
        """
        self._require_configuration()

        timestamp = int(datetime.now(UTC).timestamp() * 1000)
        public_id = f"{owner_id}_{kind}_{timestamp}_{sanitize_filename(filename)}"

        options = {
            "resource_type": resource_type_for(filename),
            "folder": self.folder,
            "public_id": public_id,
            "overwrite": True,
            "use_filename": False,
            "unique_filename": False,
            "tags": ["technician_application", kind, owner_id],
            "context": {
                "document_type": kind,
                "applicant_id": owner_id,
                "upload_date": datetime.now(UTC).isoformat(),
            },
        }

        try:
            result = await self._call(cloudinary.uploader.upload, io.BytesIO(content), **options)
        except TimeoutError as e:
            logger.error(f"Upload of {kind} for {owner_id} timed out")
            raise UpstreamError("Le téléversement du document a expiré.") from e
        except Exception as e:
            logger.error(f"Upload of {kind} for {owner_id} failed: {e}")
            raise UpstreamError("Le téléversement du document a échoué.") from e

        logger.info(f"Document uploaded: {result['public_id']}")
        return DocHandle(
            public_id=result["public_id"],
            url=result.get("secure_url") or result.get("url", ""),
            resource_type=result.get("resource_type", options["resource_type"]),
            format=result.get("format"),
            bytes=result.get("bytes", len(content)),
            created_at=result.get("created_at"),
        )

    async def delete(self, public_id: str) -> DeleteResult:
        """
        Delete a document, trying each resource type until one succeeds.

        Raises:
            UpstreamError: Missing configuration or every attempt errored
        """
        self._require_configuration()

        last_error: Exception | None = None
        for resource_type in DELETE_RESOURCE_TYPES:
            try:
                result = await self._call(
                    cloudinary.uploader.destroy, public_id, resource_type=resource_type
                )
            except Exception as e:
                last_error = e
                continue
            if result.get("result") == "ok":
                logger.info(f"Document deleted: {public_id} ({resource_type})")
                return DeleteResult(ok=True)

        if last_error is not None:
            raise UpstreamError(f"Suppression du document {public_id} impossible.") from last_error

        logger.warning(f"Document not found in any resource type: {public_id}")
        return DeleteResult(ok=False)


_blob_store: BlobStore | None = None


def get_blob_store() -> BlobStore:
    """FastAPI dependency returning the shared blob store."""
    global _blob_store
    if _blob_store is None:
        _blob_store = CloudinaryBlobStore()
    return _blob_store

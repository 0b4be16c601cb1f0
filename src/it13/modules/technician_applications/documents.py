"""
Application Document Staging

Uploads the documents of one submission to the blob store and undoes
them if the submission fails.

``DocumentStager`` remembers every handle it created. Any validation or
upload failure part way through deletes all of them before the error is
raised, and the caller runs ``compensate()`` again if persisting the
application fails afterwards. Compensation is best effort: a failed
delete is logged and reported, never raised.
"""

import logging
from dataclasses import dataclass, field

from it13.core.exceptions import UpstreamError, ValidationError
from it13.core.storage import BlobStore, DocHandle
from it13.modules.technician_applications.schemas import ApplicationDocuments

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 5 * 1024 * 1024

WORD_TYPES = (
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
)
IMAGE_OR_PDF_TYPES = ("application/pdf", "image/jpeg", "image/png", "image/jpg")

ALLOWED_TYPES: dict[str, tuple[str, ...]] = {
    "cv": WORD_TYPES,
    "diplomas": IMAGE_OR_PDF_TYPES,
    "motivationLetter": WORD_TYPES,
}

_TYPE_LABELS = {
    "application/pdf": "PDF",
    "application/msword": "DOC",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "DOCX",
    "image/jpeg": "JPG",
    "image/jpg": "JPG",
    "image/png": "PNG",
}

# Blob store document kind per form field
STORAGE_KINDS = {"cv": "cv", "diplomas": "diploma", "motivationLetter": "motivation_letter"}


@dataclass
class IncomingFile:
    """An uploaded file read into memory."""

    filename: str
    content_type: str
    content: bytes
    # Size of the received part when its body was not read into memory
    declared_size: int | None = None

    @property
    def size(self) -> int:
        return max(len(self.content), self.declared_size or 0)


@dataclass
class FileValidationResult:
    is_valid: bool
    error: str | None = None


@dataclass
class CompensationReport:
    deleted: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


def validate_document_file(file: IncomingFile | None, kind: str) -> FileValidationResult:
    """Check size and MIME type against the allow-list for ``kind``."""
    if file is None:
        return FileValidationResult(False, "Aucun fichier fourni")

    if file.size > MAX_FILE_SIZE:
        size_mb = round(file.size / 1024 / 1024, 2)
        return FileValidationResult(
            False,
            f"Le fichier est trop volumineux. Taille maximale: 5MB (actuel: {size_mb}MB)",
        )

    allowed = ALLOWED_TYPES.get(kind, ())
    if file.content_type not in allowed:
        labels = ", ".join(dict.fromkeys(_TYPE_LABELS[t] for t in allowed))
        return FileValidationResult(
            False, f"Type de fichier non autorisé. Formats acceptés: {labels}"
        )

    return FileValidationResult(True)


class DocumentStager:
    """Uploads one submission's documents, tracking handles for rollback."""

    def __init__(self, store: BlobStore, owner_id: str):
        self.store = store
        self.owner_id = owner_id
        self.uploaded_ids: list[str] = []

    async def stage(self, kind: str, file: IncomingFile, label: str) -> DocHandle:
        """
        Validate and upload one file.

        On failure every document staged so far is deleted first.

        Raises:
            ValidationError: File too large or wrong type
            UpstreamError: Blob store failure
        """
        check = validate_document_file(file, kind)
        if not check.is_valid:
            await self.compensate()
            raise ValidationError(f"{label}: {check.error}", errors=[f"{label}: {check.error}"])

        try:
            handle = await self.store.upload(
                file.content, file.filename, STORAGE_KINDS[kind], self.owner_id
            )
        except Exception as e:
            logger.error(f"Upload of {label} failed for {self.owner_id}: {e}")
            await self.compensate()
            if isinstance(e, UpstreamError):
                raise
            raise UpstreamError("Le téléversement des documents a échoué.") from e

        self.uploaded_ids.append(handle.public_id)
        return handle

    async def stage_all(
        self,
        cv: IncomingFile | None,
        diplomas: list[IncomingFile],
        motivation_letter: IncomingFile | None,
    ) -> ApplicationDocuments:
        """Upload CV, then diplomas in order, then the motivation letter."""
        if cv is None:
            raise ValidationError("Le CV est requis", errors=["Le CV est requis"])

        cv_handle = await self.stage("cv", cv, "CV")

        diploma_handles = []
        for index, diploma in enumerate(diplomas):
            diploma_handles.append(await self.stage("diplomas", diploma, f"Diplôme {index + 1}"))

        letter_handle = None
        if motivation_letter is not None:
            letter_handle = await self.stage(
                "motivationLetter", motivation_letter, "Lettre de motivation"
            )

        return ApplicationDocuments(
            cv=cv_handle,
            diplomas=diploma_handles,
            motivation_letter=letter_handle,
        )

    async def compensate(self) -> CompensationReport:
        """Delete every staged document. Never raises."""
        report = await delete_documents(self.store, self.uploaded_ids)
        self.uploaded_ids = []
        return report


async def delete_documents(store: BlobStore, public_ids: list[str]) -> CompensationReport:
    """Best-effort deletion of a list of handles."""
    report = CompensationReport()
    for public_id in public_ids:
        try:
            result = await store.delete(public_id)
        except Exception as e:
            logger.error(f"Failed to delete document {public_id}: {e}")
            report.failed.append(public_id)
            continue
        if result.ok:
            report.deleted.append(public_id)
        else:
            report.failed.append(public_id)

    if public_ids:
        logger.info(
            f"Document cleanup: {len(report.deleted)} deleted, {len(report.failed)} failed"
            + (f" ({', '.join(report.failed)})" if report.failed else "")
        )
    return report


async def delete_application_documents(
    store: BlobStore, documents: ApplicationDocuments
) -> CompensationReport:
    return await delete_documents(store, documents.public_ids())

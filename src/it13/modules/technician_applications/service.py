"""
Technician Applications Service Layer

Business logic for technician applications.

1. Submission:
   - Validate and sanitise the form sections (nothing is uploaded if they fail)
   - Upload CV, diplomas and motivation letter through a DocumentStager
   - Persist the application; any failure after the first upload deletes
     every document of this submission before the error propagates

2. Review state machine:
   - pending -> reviewing | approved | rejected
   - reviewing -> approved | rejected
   - approved and rejected are terminal; acting on them again is a conflict
   - The status write is conditional on the status read, so two concurrent
     admin actions cannot both succeed

3. Approval:
   - Provisions the technician account in the same transaction as the
     status change and links it to the application
   - Mails the temporary password after commit; a mail failure is reported
     as ``email_sent=False`` and never undoes the approval
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from it13.core.auth import ROLE_TECHNICIAN
from it13.core.config import settings
from it13.core.email import send_application_rejected, send_temporary_password
from it13.core.exceptions import ConflictError, NotFoundError, ServiceError, ValidationError
from it13.core.storage import BlobStore
from it13.modules.auth.tokens import TokenKind, issue_token
from it13.modules.technician_applications import repository
from it13.modules.technician_applications.documents import (
    DocumentStager,
    IncomingFile,
    delete_application_documents,
)
from it13.modules.technician_applications.models import ApplicationStatus, TERMINAL_STATUSES
from it13.modules.technician_applications.repository import (
    VALID_STATUS_TRANSITIONS,
    allowed_sources,
    to_domain,
)
from it13.modules.technician_applications.schemas import (
    Application,
    ApplicationDocuments,
    DocumentsUploaded,
)
from it13.modules.technician_applications.validation import (
    build_applicant_id,
    sanitize_application_data,
    validate_technician_application,
)
from it13.modules.technicians import credentials
from it13.modules.technicians.credentials import split_full_name

logger = logging.getLogger(__name__)


class ApplicationNotFoundError(NotFoundError):
    def __init__(self, application_id: UUID):
        super().__init__(
            f"Candidature {application_id} non trouvée",
            error_code="APPLICATION_NOT_FOUND",
        )


class InvalidTransitionError(ConflictError):
    def __init__(self, current: ApplicationStatus, target: ApplicationStatus):
        self.current = current
        self.target = target
        if current in TERMINAL_STATUSES:
            message = f"La candidature a déjà été traitée (statut: {current.value})."
            code = "APPLICATION_ALREADY_DECIDED"
        else:
            message = f"Transition de statut non autorisée: {current.value} -> {target.value}."
            code = "INVALID_STATUS_TRANSITION"
        super().__init__(message, error_code=code)


class SubmissionFailedError(ServiceError):
    def __init__(self):
        super().__init__(
            message="Erreur lors de la soumission de la candidature.",
            error_code="SUBMISSION_FAILED",
            status_code=500,
        )


class ProvisioningError(ServiceError):
    def __init__(self):
        super().__init__(
            message="La création du compte technicien a échoué. Veuillez réessayer.",
            error_code="PROVISIONING_FAILED",
            status_code=500,
        )


@dataclass
class SubmissionResult:
    application: Application
    documents_uploaded: DocumentsUploaded


@dataclass
class TransitionResult:
    application: Application
    technician_id: UUID | None
    # None when the transition sends no mail
    email_sent: bool | None


# ============================================
# Submission
# ============================================


def parse_application_data(raw: str | dict | None) -> dict:
    """Decode the ``data`` form field."""
    if isinstance(raw, dict):
        return raw
    if not raw:
        raise ValidationError("Données de candidature manquantes", errors=["Champ 'data' requis"])
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValidationError(
            "Données de candidature invalides", errors=["JSON invalide"]
        ) from e
    if not isinstance(data, dict):
        raise ValidationError("Données de candidature invalides", errors=["JSON invalide"])
    return data


async def _compensate(stager: DocumentStager) -> None:
    # Shielded so a cancelled request still removes what it uploaded
    await asyncio.shield(stager.compensate())


async def submit_application(
    db: AsyncSession,
    store: BlobStore,
    raw_data: str | dict | None,
    cv: IncomingFile | None,
    diplomas: list[IncomingFile],
    motivation_letter: IncomingFile | None,
    submitted_at: datetime | None = None,
) -> SubmissionResult:
    """
    Validate, upload documents and persist a new application.

    Raises:
        ValidationError: Bad fields or files (400)
        UpstreamError: Blob store failure, after compensation (500)
        SubmissionFailedError: Persistence failure, after compensation (500)
    """
    data = parse_application_data(raw_data)

    validation = validate_technician_application(data)
    if not validation.is_valid:
        logger.info(f"Application rejected by validation: {len(validation.errors)} errors")
        raise ValidationError("Données de candidature invalides", errors=validation.errors)

    submission = sanitize_application_data(data)
    now = submitted_at or datetime.now(UTC)
    applicant_id = build_applicant_id(
        int(now.timestamp() * 1000), submission.personal_info.full_name
    )

    stager = DocumentStager(store, applicant_id)
    try:
        documents = await stager.stage_all(cv, diplomas, motivation_letter)
        row = await repository.create(db, submission, documents, applicant_id, now)
    except ServiceError:
        await _compensate(stager)
        raise
    except asyncio.CancelledError:
        logger.warning(f"Submission {applicant_id} cancelled, removing uploaded documents")
        await _compensate(stager)
        raise
    except Exception as e:
        logger.error(f"Failed to persist application {applicant_id}: {e}", exc_info=True)
        await db.rollback()
        await _compensate(stager)
        raise SubmissionFailedError() from e

    logger.info(f"Application {row.id} submitted by {applicant_id}")
    return SubmissionResult(
        application=to_domain(row),
        documents_uploaded=DocumentsUploaded(
            cv=True,
            diplomas=len(documents.diplomas),
            motivation_letter=documents.motivation_letter is not None,
        ),
    )


# ============================================
# Queries
# ============================================


async def get_application(db: AsyncSession, application_id: UUID) -> Application:
    row = await repository.get_by_id(db, application_id)
    if not row:
        raise ApplicationNotFoundError(application_id)
    return to_domain(row)


async def list_applications(
    db: AsyncSession, status: ApplicationStatus | None = None
) -> list[Application]:
    rows = await repository.list_applications(db, status=status)
    return [to_domain(row) for row in rows]


# ============================================
# State machine
# ============================================


async def _notify_approved(application: Application, provisioned) -> bool:
    try:
        token = issue_token(
            provisioned.email,
            TokenKind.TEMPORARY_PASSWORD,
            timedelta(hours=settings.temporary_password_ttl_hours),
            role=ROLE_TECHNICIAN,
        )
        result = await send_temporary_password(
            to_email=provisioned.email,
            name=provisioned.name,
            surname=provisioned.surname,
            temporary_password=provisioned.temporary_password,
            change_password_token=token,
        )
    except Exception as e:
        logger.error(f"Failed to send credentials for application {application.id}: {e}")
        return False

    if not result.success:
        logger.error(
            f"Credentials email failed for application {application.id}: {result.error}. "
            f"Technician {provisioned.technician_id} was created."
        )
    return result.success


async def _notify_rejected(application: Application, reason: str | None) -> bool:
    name, surname = split_full_name(application.personal_info.full_name)
    try:
        result = await send_application_rejected(
            to_email=application.personal_info.email,
            name=name,
            surname=surname,
            rejection_reason=reason,
        )
    except Exception as e:
        logger.error(f"Failed to send rejection for application {application.id}: {e}")
        return False

    if not result.success:
        logger.error(f"Rejection email failed for application {application.id}: {result.error}")
    return result.success


async def transition(
    db: AsyncSession,
    application_id: UUID,
    target: ApplicationStatus,
    notes: str | None = None,
) -> TransitionResult:
    """
    Move an application to ``target`` and run the side effects.

    Raises:
        ApplicationNotFoundError: Unknown application
        InvalidTransitionError: Terminal application, illegal pair, or lost race
        ConflictError: Approval for an email that already has an account
        ProvisioningError: Account creation failed; nothing was committed
    """
    row = await repository.get_by_id(db, application_id)
    if not row:
        raise ApplicationNotFoundError(application_id)

    current = row.status
    if target not in VALID_STATUS_TRANSITIONS.get(current, set()):
        logger.warning(
            f"Rejected transition for application {application_id}: "
            f"{current.value} -> {target.value}"
        )
        raise InvalidTransitionError(current, target)

    application = to_domain(row)
    provisioned = None

    try:
        updated = await repository.update_status(
            db, application_id, target, notes, allowed_from=allowed_sources(target)
        )
        if not updated:
            # Someone else moved it between our read and write
            fresh = await repository.get_by_id(db, application_id)
            raise InvalidTransitionError(fresh.status if fresh else current, target)

        if target == ApplicationStatus.APPROVED:
            provisioned = await credentials.provision(db, application)
            await repository.link_technician(db, application_id, provisioned.technician_id)

        await db.commit()
    except ServiceError:
        await db.rollback()
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Transition of application {application_id} failed: {e}", exc_info=True)
        raise ProvisioningError() from e

    logger.info(f"Application {application_id}: {current.value} -> {target.value}")

    email_sent: bool | None = None
    if target == ApplicationStatus.APPROVED:
        email_sent = await _notify_approved(application, provisioned)
    elif target == ApplicationStatus.REJECTED:
        email_sent = await _notify_rejected(application, notes)

    refreshed = await repository.get_by_id(db, application_id)
    return TransitionResult(
        application=to_domain(refreshed) if refreshed else application,
        technician_id=provisioned.technician_id if provisioned else None,
        email_sent=email_sent,
    )


async def approve_application(
    db: AsyncSession, application_id: UUID, notes: str | None = None
) -> TransitionResult:
    return await transition(db, application_id, ApplicationStatus.APPROVED, notes)


# ============================================
# Deletion
# ============================================


async def delete_application(db: AsyncSession, store: BlobStore, application_id: UUID) -> None:
    """
    Delete an application and its documents.

    Documents go first. If the row delete then fails the documents are
    already gone; this is logged and the error propagates.
    """
    row = await repository.get_by_id(db, application_id)
    if not row:
        raise ApplicationNotFoundError(application_id)

    documents = ApplicationDocuments.model_validate(row.documents)
    report = await delete_application_documents(store, documents)

    try:
        await repository.delete(db, application_id)
    except Exception:
        logger.error(
            f"Application {application_id} row delete failed after document cleanup "
            f"(deleted={report.deleted}, failed={report.failed})"
        )
        raise

    logger.info(f"Deleted application {application_id}")

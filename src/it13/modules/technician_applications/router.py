"""
Technician Applications Router

Endpoints:
- POST /technician-applications - Submit an application (public, multipart)
- GET /technician-applications - List applications (admin)
- GET /technician-applications/{id} - Application detail (admin)
- PATCH /technician-applications/{id}/status - Change status (admin)
- POST /technician-applications/{id}/approve - Approve and provision account (admin)
- DELETE /technician-applications/{id} - Delete application and documents (admin)
"""

import logging
from typing import NoReturn
from uuid import UUID

from fastapi import (
    APIRouter,
    Depends,
    File,
    Form,
    HTTPException,
    Query,
    Request,
    UploadFile,
    status,
)
from sqlalchemy.ext.asyncio import AsyncSession

from it13.core.auth import CurrentUser, get_current_admin_user
from it13.core.database import get_db
from it13.core.exceptions import ServiceError, to_http_exception
from it13.core.rate_limit import RateLimitExceeded, check_rate_limit
from it13.core.storage import BlobStore, get_blob_store
from it13.modules.technician_applications import service
from it13.modules.technician_applications.documents import MAX_FILE_SIZE, IncomingFile
from it13.modules.technician_applications.models import ApplicationStatus
from it13.modules.technician_applications.schemas import (
    ApplicationListResponse,
    ApplicationResponse,
    ApproveRequest,
    DeleteResponse,
    StatusUpdateRequest,
    SubmissionData,
    SubmissionResponse,
    TransitionData,
    TransitionResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

# Diploma fields are diploma_0 .. diploma_{N-1}, contiguous
MAX_DIPLOMAS = 20

RATE_LIMIT_DECISIONS = (20, 60)  # 20 decisions per minute per admin


def _handle_service_error(e: ServiceError) -> NoReturn:
    raise to_http_exception(e) from e


def _internal_error(e: Exception, action: str) -> HTTPException:
    logger.exception(f"Error {action}: {e}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={
            "error": "INTERNAL_ERROR",
            "message": "Une erreur inattendue est survenue.",
        },
    )


async def _to_incoming(upload: UploadFile | None) -> IncomingFile | None:
    if upload is None or not upload.filename:
        return None
    if upload.size is not None and upload.size > MAX_FILE_SIZE:
        # Rejected on size later; no need to buffer it
        content = b""
    else:
        content = await upload.read(MAX_FILE_SIZE + 1)
    return IncomingFile(
        filename=upload.filename,
        content_type=upload.content_type or "application/octet-stream",
        content=content,
        declared_size=upload.size,
    )


async def _collect_diplomas(request: Request) -> list[IncomingFile]:
    form = await request.form()
    diplomas = []
    for index in range(MAX_DIPLOMAS):
        upload = form.get(f"diploma_{index}")
        if upload is None or isinstance(upload, str):
            break
        incoming = await _to_incoming(upload)
        if incoming is None:
            break
        diplomas.append(incoming)
    return diplomas


async def _check_decision_rate_limit(admin: CurrentUser) -> None:
    limit, window = RATE_LIMIT_DECISIONS
    if not await check_rate_limit(f"admin:decision:{admin.id}", limit, window):
        logger.warning(f"Rate limit exceeded for admin {admin.id} on decisions")
        raise RateLimitExceeded(limit, window)


def _transition_response(result: service.TransitionResult, message: str) -> TransitionResponse:
    return TransitionResponse(
        message=message,
        data=TransitionData(
            application_id=result.application.id,
            status=result.application.status,
            technician_id=result.technician_id,
            email_sent=result.email_sent,
        ),
    )


@router.post(
    "",
    response_model=SubmissionResponse,
    response_model_by_alias=True,
    status_code=status.HTTP_201_CREATED,
    summary="Submit Technician Application",
    responses={
        400: {"description": "Validation error (fields or files)"},
        500: {"description": "Upload or persistence failed; uploaded documents were removed"},
    },
)
async def submit_application(
    request: Request,
    data: str = Form(..., description="JSON of personalInfo, professionalInfo, background, additionalInfo"),
    cv: UploadFile | None = File(None),
    motivation_letter: UploadFile | None = File(None, alias="motivationLetter"),
    db: AsyncSession = Depends(get_db),
    store: BlobStore = Depends(get_blob_store),
) -> SubmissionResponse:
    """
    Submit a technician application with its documents.

    Files: ``cv`` (required), ``diploma_0..N`` (optional), ``motivationLetter``
    (optional). All fields are validated before any upload.
    """
    try:
        result = await service.submit_application(
            db,
            store,
            raw_data=data,
            cv=await _to_incoming(cv),
            diplomas=await _collect_diplomas(request),
            motivation_letter=await _to_incoming(motivation_letter),
        )
    except ServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        raise _internal_error(e, "submitting application") from e

    application = result.application
    return SubmissionResponse(
        message="Candidature soumise avec succès",
        data=SubmissionData(
            application_id=application.id,
            applicant_id=application.applicant_id,
            status=application.status,
            documents_uploaded=result.documents_uploaded,
        ),
    )


@router.get(
    "",
    response_model=ApplicationListResponse,
    response_model_by_alias=True,
    summary="List Technician Applications",
)
async def list_applications(
    status_filter: ApplicationStatus | None = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> ApplicationListResponse:
    try:
        applications = await service.list_applications(db, status=status_filter)
    except Exception as e:
        raise _internal_error(e, "listing applications") from e

    return ApplicationListResponse(data=applications, total=len(applications))


@router.get(
    "/{application_id}",
    response_model=ApplicationResponse,
    response_model_by_alias=True,
    summary="Get Technician Application",
)
async def get_application(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> ApplicationResponse:
    try:
        application = await service.get_application(db, application_id)
    except ServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        raise _internal_error(e, "fetching application") from e

    return ApplicationResponse(data=application)


@router.patch(
    "/{application_id}/status",
    response_model=TransitionResponse,
    response_model_by_alias=True,
    summary="Update Application Status",
    responses={
        404: {"description": "Application not found"},
        409: {"description": "Illegal transition or application already decided"},
    },
)
async def update_status(
    application_id: UUID,
    body: StatusUpdateRequest,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> TransitionResponse:
    """
    Move an application through the review workflow.

    ``approved`` provisions the technician account and mails a temporary
    password; ``rejected`` mails the notes as the reason.
    """
    await _check_decision_rate_limit(admin)

    try:
        result = await service.transition(db, application_id, body.status, body.notes)
    except ServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        raise _internal_error(e, "updating application status") from e

    logger.info(f"Admin {admin.id} set application {application_id} to {body.status.value}")
    return _transition_response(result, "Statut de la candidature mis à jour avec succès")


@router.post(
    "/{application_id}/approve",
    response_model=TransitionResponse,
    response_model_by_alias=True,
    summary="Approve Application",
    responses={
        404: {"description": "Application not found"},
        409: {"description": "Application already decided or technician already exists"},
        500: {"description": "Account provisioning failed"},
    },
)
async def approve_application(
    application_id: UUID,
    body: ApproveRequest | None = None,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> TransitionResponse:
    await _check_decision_rate_limit(admin)

    try:
        result = await service.approve_application(
            db, application_id, body.notes if body else None
        )
    except ServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        raise _internal_error(e, "approving application") from e

    logger.info(
        f"Admin {admin.id} approved application {application_id}. "
        f"Technician: {result.technician_id}"
    )
    return _transition_response(result, "Candidature approuvée, compte technicien créé")


@router.delete(
    "/{application_id}",
    response_model=DeleteResponse,
    response_model_by_alias=True,
    summary="Delete Application",
)
async def delete_application(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    store: BlobStore = Depends(get_blob_store),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> DeleteResponse:
    try:
        await service.delete_application(db, store, application_id)
    except ServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        raise _internal_error(e, "deleting application") from e

    logger.info(f"Admin {admin.id} deleted application {application_id}")
    return DeleteResponse(message="Candidature supprimée avec succès")

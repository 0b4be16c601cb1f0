"""
Technician Applications Repository

Database operations for technician applications. JSON sections are
converted to and from typed schemas here and nowhere else.

``create`` and ``delete`` commit. ``update_status`` and
``link_technician`` only flush, so an approval can commit the status
change and the new technician account together.
"""

import logging
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import delete as sql_delete
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from it13.modules.technician_applications.models import ApplicationStatus, TechnicianApplication
from it13.modules.technician_applications.schemas import (
    AdditionalInfo,
    Application,
    ApplicationDocuments,
    ApplicationSubmission,
    Background,
    PersonalInfo,
    ProfessionalInfo,
)

logger = logging.getLogger(__name__)


VALID_STATUS_TRANSITIONS: dict[ApplicationStatus, set[ApplicationStatus]] = {
    ApplicationStatus.PENDING: {
        ApplicationStatus.REVIEWING,
        ApplicationStatus.APPROVED,
        ApplicationStatus.REJECTED,
    },
    ApplicationStatus.REVIEWING: {
        ApplicationStatus.APPROVED,
        ApplicationStatus.REJECTED,
    },
    # Terminal states
    ApplicationStatus.APPROVED: set(),
    ApplicationStatus.REJECTED: set(),
}


def allowed_sources(target: ApplicationStatus) -> set[ApplicationStatus]:
    """Statuses from which ``target`` may be reached."""
    return {source for source, targets in VALID_STATUS_TRANSITIONS.items() if target in targets}


def _dump(model) -> dict:
    return model.model_dump(mode="json", by_alias=True)


def to_domain(row: TechnicianApplication) -> Application:
    """Convert a stored row into the typed Application."""
    return Application(
        id=row.id,
        applicant_id=row.applicant_id,
        personal_info=PersonalInfo.model_validate(row.personal_info),
        professional_info=ProfessionalInfo.model_validate(row.professional_info),
        background=Background.model_validate(row.background or {}),
        additional_info=AdditionalInfo.model_validate(row.additional_info or {}),
        documents=ApplicationDocuments.model_validate(row.documents),
        status=row.status,
        admin_notes=row.admin_notes,
        technician_id=row.technician_id,
        submitted_at=row.submitted_at,
        updated_at=row.updated_at,
    )


async def create(
    db: AsyncSession,
    submission: ApplicationSubmission,
    documents: ApplicationDocuments,
    applicant_id: str,
    submitted_at: datetime | None = None,
) -> TechnicianApplication:
    """Persist a new application with status ``pending``."""
    now = submitted_at or datetime.now(UTC)
    application = TechnicianApplication(
        applicant_id=applicant_id,
        personal_info=_dump(submission.personal_info),
        professional_info=_dump(submission.professional_info),
        background=_dump(submission.background),
        additional_info=_dump(submission.additional_info),
        documents=_dump(documents),
        status=ApplicationStatus.PENDING,
        submitted_at=now,
        updated_at=now,
    )

    db.add(application)
    await db.commit()
    await db.refresh(application)

    logger.info(f"Created technician application {application.id} ({applicant_id})")
    return application


async def get_by_id(db: AsyncSession, id: UUID) -> TechnicianApplication | None:
    """Fetch an application, always reloading its columns from the database."""
    result = await db.execute(
        select(TechnicianApplication)
        .where(TechnicianApplication.id == id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def list_applications(
    db: AsyncSession,
    status: ApplicationStatus | None = None,
) -> list[TechnicianApplication]:
    """All applications, newest first, optionally filtered by status."""
    query = select(TechnicianApplication)
    if status is not None:
        query = query.where(TechnicianApplication.status == status)
    query = query.order_by(TechnicianApplication.submitted_at.desc())

    result = await db.execute(query)
    return list(result.scalars().all())


async def update_status(
    db: AsyncSession,
    id: UUID,
    status: ApplicationStatus,
    notes: str | None,
    allowed_from: set[ApplicationStatus],
) -> bool:
    """
    Conditionally move an application to ``status``.

    The write only applies while the stored status is still one of
    ``allowed_from``, so of two concurrent admin actions at most one wins.

    Returns:
        True if the row was updated
    """
    result = await db.execute(
        update(TechnicianApplication)
        .where(
            TechnicianApplication.id == id,
            TechnicianApplication.status.in_(allowed_from),
        )
        .values(status=status, admin_notes=notes, updated_at=datetime.now(UTC))
        .execution_options(synchronize_session=False)
    )
    await db.flush()
    return result.rowcount == 1


async def link_technician(db: AsyncSession, id: UUID, technician_id: UUID) -> None:
    await db.execute(
        update(TechnicianApplication)
        .where(TechnicianApplication.id == id)
        .values(technician_id=technician_id, updated_at=datetime.now(UTC))
        .execution_options(synchronize_session=False)
    )
    await db.flush()


async def delete(db: AsyncSession, id: UUID) -> bool:
    result = await db.execute(sql_delete(TechnicianApplication).where(TechnicianApplication.id == id))
    await db.commit()
    return result.rowcount == 1

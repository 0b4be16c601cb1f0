"""
Technician Applications Models

Candidacy records submitted through the public "become a technician"
form. The four form sections and the document handles are stored as
JSON; the repository converts them to typed schemas.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Index, String, Text, func
from sqlalchemy.dialects.postgresql import JSON, UUID
from sqlalchemy.orm import Mapped, mapped_column

from it13.core.database import Base


class ApplicationStatus(str, enum.Enum):
    """Status of a technician application."""

    PENDING = "pending"
    REVIEWING = "reviewing"
    APPROVED = "approved"
    REJECTED = "rejected"


TERMINAL_STATUSES = frozenset({ApplicationStatus.APPROVED, ApplicationStatus.REJECTED})


class TechnicianApplication(Base):
    """
    Technician application.

    ``technician_id`` is set only once the application is approved and
    the technician account was provisioned in the same transaction.
    """

    __tablename__ = "technician_applications"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # "{submission ms}_{normalised full name}", also the blob store owner id
    applicant_id: Mapped[str] = mapped_column(String(255), nullable=False)

    personal_info: Mapped[dict] = mapped_column(JSON, nullable=False)
    professional_info: Mapped[dict] = mapped_column(JSON, nullable=False)
    background: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    additional_info: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    documents: Mapped[dict] = mapped_column(JSON, nullable=False)

    status: Mapped[ApplicationStatus] = mapped_column(
        Enum(
            ApplicationStatus,
            name="technician_application_status",
            values_callable=lambda e: [member.value for member in e],
        ),
        nullable=False,
        default=ApplicationStatus.PENDING,
    )
    admin_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # ON DELETE SET NULL: removing a technician keeps the application history
    technician_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("technicians.id", ondelete="SET NULL"),
        nullable=True,
    )

    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("ix_technician_applications_status", "status"),
        Index("ix_technician_applications_submitted_at", "submitted_at"),
    )

    def __repr__(self) -> str:
        return f"<TechnicianApplication(id={self.id}, status={self.status.value})>"

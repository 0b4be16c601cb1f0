"""
Technician Models

Technician accounts. Only the identity and credential fields live here;
scheduling and inventory data belong to other modules.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from it13.core.database import Base


class TechnicianStatus(str, enum.Enum):
    """Account status. Stored as a plain string so unknown values survive a read."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING_APPROVAL = "pending_approval"
    REJECTED = "rejected"


class Technician(Base):
    """
    Technician account.

    Credential invariants:
    - ``is_temporary_password`` implies ``temporary_password_expires`` is set
      and ``must_change_password`` is true, until the password is changed.
    - ``password_reset_token`` and ``password_reset_expires`` are set and
      cleared together.
    """

    __tablename__ = "technicians"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    surname: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    phone_number: Mapped[str | None] = mapped_column(String(20), nullable=True)
    specialization: Mapped[str | None] = mapped_column(String(200), nullable=True)
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default=TechnicianStatus.PENDING_APPROVAL.value
    )

    password_hash: Mapped[str] = mapped_column(Text, nullable=False)
    is_temporary_password: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    temporary_password_expires: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    must_change_password: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # SHA-256 digest of the outstanding reset token
    password_reset_token: Mapped[str | None] = mapped_column(String(64), nullable=True)
    password_reset_expires: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<Technician(id={self.id}, email={self.email}, status={self.status})>"

    @property
    def full_name(self) -> str:
        return f"{self.name} {self.surname}".strip()

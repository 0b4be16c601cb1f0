"""
Technician Repository

Database operations for technician accounts. Methods flush but never
commit: the calling service owns the transaction, so account creation
can share one unit of work with an application status change.
"""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from it13.modules.shared import password_reset
from it13.modules.technicians.models import Technician, TechnicianStatus

logger = logging.getLogger(__name__)

# Columns reset whenever a definitive password is set
CLEARED_TEMPORARY_FLAGS = {
    "is_temporary_password": False,
    "temporary_password_expires": None,
    "must_change_password": False,
}


class TechnicianRepository:
    """Repository for technician database operations."""

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        email: str,
        password_hash: str,
        name: str,
        surname: str,
        phone_number: str | None = None,
        specialization: str | None = None,
        status: TechnicianStatus = TechnicianStatus.ACTIVE,
        is_temporary_password: bool = False,
        temporary_password_expires: datetime | None = None,
        must_change_password: bool = False,
    ) -> Technician:
        """
        Create a technician record.

        Returns:
            The flushed Technician, with its generated id
        """
        technician = Technician(
            email=email.lower(),
            password_hash=password_hash,
            name=name,
            surname=surname,
            phone_number=phone_number,
            specialization=specialization,
            status=status.value,
            is_temporary_password=is_temporary_password,
            temporary_password_expires=temporary_password_expires,
            must_change_password=must_change_password,
        )

        db.add(technician)
        await db.flush()
        await db.refresh(technician)

        logger.info(f"Created technician: {technician.id} - {technician.email}")
        return technician

    @staticmethod
    async def get_by_id(db: AsyncSession, technician_id: UUID) -> Technician | None:
        result = await db.execute(select(Technician).where(Technician.id == technician_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> Technician | None:
        """Case-insensitive lookup by email."""
        result = await db.execute(
            select(Technician).where(func.lower(Technician.email) == email.lower())
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def get_pending_temporary(db: AsyncSession, email: str) -> Technician | None:
        """
        Technician still holding an unredeemed temporary password.

        Returns None once the temporary password has been replaced, which
        is what stops a change-password token from being redeemed twice.
        """
        result = await db.execute(
            select(Technician).where(
                func.lower(Technician.email) == email.lower(),
                Technician.is_temporary_password.is_(True),
                Technician.must_change_password.is_(True),
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def update_password(
        db: AsyncSession,
        technician_id: UUID,
        password_hash: str,
        *,
        require_temporary: bool = False,
    ) -> bool:
        """
        Store a new definitive password and clear the temporary flags.

        With ``require_temporary`` the write only applies while the
        temporary password is still outstanding.

        Returns:
            True if the row was updated
        """
        stmt = update(Technician).where(Technician.id == technician_id)
        if require_temporary:
            stmt = stmt.where(
                Technician.is_temporary_password.is_(True),
                Technician.must_change_password.is_(True),
            )
        result = await db.execute(
            stmt.values(
                password_hash=password_hash,
                password_reset_token=None,
                password_reset_expires=None,
                **CLEARED_TEMPORARY_FLAGS,
            )
        )
        return result.rowcount == 1

    @staticmethod
    async def set_reset_token(
        db: AsyncSession, technician_id: UUID, token_digest: str, expires_at: datetime
    ) -> None:
        await password_reset.store_reset_token(
            db, Technician, technician_id, token_digest, expires_at
        )

    @staticmethod
    async def consume_reset_token(
        db: AsyncSession, email: str, token_digest: str, password_hash: str, now: datetime
    ) -> bool:
        """Redeem a reset token; also clears any outstanding temporary password."""
        return await password_reset.consume_reset_token(
            db,
            Technician,
            email,
            token_digest,
            password_hash,
            now,
            **CLEARED_TEMPORARY_FLAGS,
        )

    @staticmethod
    async def purge_expired_reset_tokens(db: AsyncSession, now: datetime) -> int:
        return await password_reset.purge_expired_reset_tokens(db, Technician, now)

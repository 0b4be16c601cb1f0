"""
Admin Repository

Database operations for admin accounts. Flush only; callers commit.
"""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from it13.modules.admins.models import Admin
from it13.modules.shared import password_reset

logger = logging.getLogger(__name__)


class AdminRepository:
    """Repository for admin database operations."""

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        email: str,
        password_hash: str,
        name: str,
        surname: str = "",
    ) -> Admin:
        admin = Admin(email=email.lower(), password_hash=password_hash, name=name, surname=surname)
        db.add(admin)
        await db.flush()
        await db.refresh(admin)

        logger.info(f"Created admin: {admin.id} - {admin.email}")
        return admin

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> Admin | None:
        """Case-insensitive lookup by email."""
        result = await db.execute(select(Admin).where(func.lower(Admin.email) == email.lower()))
        return result.scalar_one_or_none()

    @staticmethod
    async def set_reset_token(
        db: AsyncSession, admin_id: UUID, token_digest: str, expires_at: datetime
    ) -> None:
        await password_reset.store_reset_token(db, Admin, admin_id, token_digest, expires_at)

    @staticmethod
    async def consume_reset_token(
        db: AsyncSession, email: str, token_digest: str, password_hash: str, now: datetime
    ) -> bool:
        return await password_reset.consume_reset_token(
            db, Admin, email, token_digest, password_hash, now
        )

    @staticmethod
    async def purge_expired_reset_tokens(db: AsyncSession, now: datetime) -> int:
        return await password_reset.purge_expired_reset_tokens(db, Admin, now)

"""
Password Reset Persistence

Single-use reset values stored on a user row. Both ``Admin`` and
``Technician`` carry ``password_reset_token`` and
``password_reset_expires``; these helpers operate on either model.

Redemption is one conditional UPDATE matching the stored digest and an
unexpired deadline, so two concurrent redemptions of the same token can
never both succeed.
"""

import logging
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import func, update
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


async def store_reset_token(
    db: AsyncSession,
    model: type,
    user_id: UUID,
    token_digest: str,
    expires_at: datetime,
) -> None:
    """Store a reset digest, superseding any outstanding one."""
    await db.execute(
        update(model)
        .where(model.id == user_id)
        .values(password_reset_token=token_digest, password_reset_expires=expires_at)
    )


async def consume_reset_token(
    db: AsyncSession,
    model: type,
    email: str,
    token_digest: str,
    password_hash: str,
    now: datetime,
    **extra_values: Any,
) -> bool:
    """
    Set a new password if the digest is still the stored, unexpired one.

    Clears the reset pair in the same statement.

    Returns:
        True if a row was updated, False if the token was superseded,
        already used, or expired
    """
    result = await db.execute(
        update(model)
        .where(
            func.lower(model.email) == email.lower(),
            model.password_reset_token == token_digest,
            model.password_reset_expires > now,
        )
        .values(
            password_hash=password_hash,
            password_reset_token=None,
            password_reset_expires=None,
            **extra_values,
        )
    )
    return result.rowcount == 1


async def purge_expired_reset_tokens(db: AsyncSession, model: type, now: datetime) -> int:
    """Clear reset pairs whose deadline has passed. Returns the number of rows touched."""
    result = await db.execute(
        update(model)
        .where(
            model.password_reset_token.is_not(None),
            model.password_reset_expires <= now,
        )
        .values(password_reset_token=None, password_reset_expires=None)
    )
    return result.rowcount or 0

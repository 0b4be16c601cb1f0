"""
Authentication Background Jobs

Hourly cleanup of reset links that were never redeemed. Redemption
already refuses expired links, so this only keeps stale digests from
lingering on user rows. The job is idempotent and handles its own
database session.
"""

import logging
from datetime import UTC, datetime
from typing import Any

from apscheduler.triggers.interval import IntervalTrigger

from it13.core.database import async_session_maker
from it13.core.scheduler import register_job
from it13.modules.admins.repository import AdminRepository
from it13.modules.technicians.repository import TechnicianRepository

logger = logging.getLogger(__name__)

JOB_ID_PURGE_RESET_TOKENS = "auth_purge_expired_reset_tokens"


async def purge_expired_reset_tokens() -> dict[str, Any]:
    """
    Clear expired reset digests for admins and technicians.

    Returns:
        Counts of cleared rows per account type
    """
    now = datetime.now(UTC)

    async with async_session_maker() as db:
        try:
            admins = await AdminRepository.purge_expired_reset_tokens(db, now)
            technicians = await TechnicianRepository.purge_expired_reset_tokens(db, now)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

    if admins or technicians:
        logger.info(f"Purged expired reset tokens: {admins} admins, {technicians} technicians")

    return {"admins": admins, "technicians": technicians}


def register_auth_jobs() -> None:
    """Register authentication jobs. Call during startup, before the scheduler starts."""
    register_job(
        job_id=JOB_ID_PURGE_RESET_TOKENS,
        func=purge_expired_reset_tokens,
        trigger=IntervalTrigger(hours=1),
    )
    logger.info(f"Registered job: {JOB_ID_PURGE_RESET_TOKENS} (interval: 1 hour)")

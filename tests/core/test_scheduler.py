"""
Unit tests for the job registry and the reset token purge job.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from apscheduler.triggers.interval import IntervalTrigger

from it13.core import scheduler
from it13.modules.auth import jobs


@pytest.fixture(autouse=True)
def clean_registry():
    saved = dict(scheduler._job_registry)
    scheduler._job_registry.clear()
    yield
    scheduler._job_registry.clear()
    scheduler._job_registry.update(saved)


class TestRegistry:
    @pytest.mark.asyncio
    async def test_trigger_unknown_job(self):
        with pytest.raises(ValueError):
            await scheduler.trigger_job_manually("missing")

    @pytest.mark.asyncio
    async def test_trigger_reports_errors(self):
        scheduler.register_job(
            "broken", AsyncMock(side_effect=RuntimeError("boom")), IntervalTrigger(hours=1)
        )

        result = await scheduler.trigger_job_manually("broken")

        assert result["status"] == "error"
        assert result["error"] == "boom"

    def test_register_auth_jobs(self):
        jobs.register_auth_jobs()

        assert [job["job_id"] for job in scheduler.list_registered_jobs()] == [
            "auth_purge_expired_reset_tokens"
        ]


class TestPurgeJob:
    @pytest.mark.asyncio
    async def test_purges_both_account_types(self):
        session = AsyncMock()
        session_maker = MagicMock()
        session_maker.return_value.__aenter__ = AsyncMock(return_value=session)
        session_maker.return_value.__aexit__ = AsyncMock(return_value=False)

        with (
            patch.object(jobs, "async_session_maker", session_maker),
            patch.object(jobs, "AdminRepository") as mock_admins,
            patch.object(jobs, "TechnicianRepository") as mock_technicians,
        ):
            mock_admins.purge_expired_reset_tokens = AsyncMock(return_value=1)
            mock_technicians.purge_expired_reset_tokens = AsyncMock(return_value=3)

            result = await jobs.purge_expired_reset_tokens()

        assert result == {"admins": 1, "technicians": 3}
        session.commit.assert_awaited_once()

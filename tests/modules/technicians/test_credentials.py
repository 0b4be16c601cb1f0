"""
Unit tests for technician credential issuance.
"""

import string
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest

from it13.core.exceptions import ConflictError
from it13.modules.auth.password_policy import is_valid_password
from it13.modules.technicians.credentials import (
    TEMPORARY_PASSWORD_LENGTH,
    TEMPORARY_PASSWORD_SPECIALS,
    generate_temporary_password,
    provision,
    split_full_name,
)
from it13.modules.technicians.models import TechnicianStatus

CREDENTIALS = "it13.modules.technicians.credentials"


class TestGenerateTemporaryPassword:
    """Tests for generate_temporary_password."""

    def test_every_password_meets_policy(self):
        for _ in range(500):
            password = generate_temporary_password()
            assert len(password) == TEMPORARY_PASSWORD_LENGTH
            assert any(c in string.ascii_uppercase for c in password)
            assert any(c in string.ascii_lowercase for c in password)
            assert any(c in string.digits for c in password)
            assert any(c in TEMPORARY_PASSWORD_SPECIALS for c in password)
            assert is_valid_password(password)

    def test_passwords_differ(self):
        passwords = {generate_temporary_password() for _ in range(100)}
        assert len(passwords) == 100


class TestSplitFullName:
    def test_splits_on_first_space(self):
        assert split_full_name("Jean Pierre Dupont") == ("Jean", "Pierre Dupont")

    def test_single_word(self):
        assert split_full_name("Madonna") == ("Madonna", "")


class TestProvision:
    """Tests for provision."""

    @pytest.mark.asyncio
    async def test_creates_active_account_with_temporary_password(
        self, mock_db, approved_application
    ):
        now = datetime(2026, 3, 1, 9, 0, tzinfo=UTC)
        technician = MagicMock(id=uuid4())

        with (
            patch(f"{CREDENTIALS}.TechnicianRepository") as mock_repo,
            patch(
                f"{CREDENTIALS}.hash_password_async", new=AsyncMock(return_value="hashed")
            ) as mock_hash,
        ):
            mock_repo.get_by_email = AsyncMock(return_value=None)
            mock_repo.create = AsyncMock(return_value=technician)

            result = await provision(mock_db, approved_application, now=now)

            kwargs = mock_repo.create.await_args.kwargs
            mock_hash.assert_awaited_once_with(result.temporary_password)

        assert kwargs["email"] == "jean.dupont@example.fr"
        assert kwargs["name"] == "Jean"
        assert kwargs["surname"] == "Pierre Dupont"
        assert kwargs["password_hash"] == "hashed"
        assert kwargs["status"] == TechnicianStatus.ACTIVE
        assert kwargs["is_temporary_password"] is True
        assert kwargs["must_change_password"] is True
        assert kwargs["temporary_password_expires"] == now + timedelta(hours=24)
        assert kwargs["specialization"] == "Réseaux"

        assert result.technician_id == technician.id
        assert result.expires_at == now + timedelta(hours=24)
        assert is_valid_password(result.temporary_password)

    @pytest.mark.asyncio
    async def test_existing_email_conflicts(self, mock_db, approved_application):
        with patch(f"{CREDENTIALS}.TechnicianRepository") as mock_repo:
            mock_repo.get_by_email = AsyncMock(return_value=MagicMock())
            mock_repo.create = AsyncMock()

            with pytest.raises(ConflictError) as exc_info:
                await provision(mock_db, approved_application)

            mock_repo.create.assert_not_called()

        assert exc_info.value.error_code == "TECHNICIAN_EXISTS"
        assert exc_info.value.status_code == 409

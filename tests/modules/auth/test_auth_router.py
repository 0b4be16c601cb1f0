"""
HTTP tests for the authentication router.
"""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from it13.core.database import get_db
from it13.core.email import MailResult
from it13.core.exceptions import AuthError, InvalidTokenError, NotFoundError
from it13.core.rate_limit import reset_memory_store
from it13.main import app
from it13.modules.auth.router import FORGOT_PASSWORD_MESSAGE
from it13.modules.auth.service import LoginResult

SERVICE = "it13.modules.auth.service"


@pytest.fixture
def client(mock_db):
    async def override_get_db():
        yield mock_db

    app.dependency_overrides[get_db] = override_get_db
    reset_memory_store()
    yield TestClient(app)
    app.dependency_overrides.clear()
    reset_memory_store()


class TestTechnicianLogin:
    def test_pending_account_gets_reason(self, client):
        error = AuthError("Votre compte est en attente d'approbation.", reason="pending")

        with patch(f"{SERVICE}.login_technician", new=AsyncMock(side_effect=error)):
            response = client.post(
                "/api/auth/technician/login",
                json={"email": "jean.dupont@example.fr", "password": "whatever"},
            )

        assert response.status_code == 403
        detail = response.json()["detail"]
        assert detail["reason"] == "pending"
        assert detail["error"] == "PENDING"

    def test_success_envelope(self, client):
        result = LoginResult(
            access_token="jwt",
            user_id="42",
            email="jean.dupont@example.fr",
            name="Jean",
            surname="Dupont",
            role="technician",
            must_change_password=True,
            is_temporary_password=True,
        )

        with patch(f"{SERVICE}.login_technician", new=AsyncMock(return_value=result)):
            response = client.post(
                "/api/auth/technician/login",
                json={"email": "jean.dupont@example.fr", "password": "Tmp#Pass9word"},
            )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["token"] == "jwt"
        assert data["tokenType"] == "bearer"
        assert data["mustChangePassword"] is True
        assert data["user"]["surname"] == "Dupont"

    def test_invalid_email_is_422(self, client):
        response = client.post(
            "/api/auth/technician/login", json={"email": "not-an-email", "password": "x"}
        )
        assert response.status_code == 422

    def test_rate_limited(self, client):
        error = AuthError("Identifiants invalides", reason="invalid_credentials", status_code=401)

        with patch(f"{SERVICE}.login_technician", new=AsyncMock(side_effect=error)):
            statuses = [
                client.post(
                    "/api/auth/technician/login",
                    json={"email": "jean.dupont@example.fr", "password": "wrong"},
                ).status_code
                for _ in range(11)
            ]

        assert statuses[:10] == [401] * 10
        assert statuses[10] == 429


class TestChangeTemporaryPassword:
    def test_not_found(self, client):
        error = NotFoundError("Aucun", error_code="TEMPORARY_PASSWORD_NOT_FOUND")

        with patch(f"{SERVICE}.change_temporary_password", new=AsyncMock(side_effect=error)):
            response = client.post(
                "/api/auth/technician/change-temporary-password",
                json={"token": "abc", "newPassword": "Nouveau#Pass2026"},
            )

        assert response.status_code == 404
        assert response.json()["detail"]["error"] == "TEMPORARY_PASSWORD_NOT_FOUND"


class TestForgotPassword:
    def test_unknown_email_same_answer_no_mail(self, client):
        with (
            patch(f"{SERVICE}.TechnicianRepository") as mock_repo,
            patch(f"{SERVICE}.send_password_reset") as mock_email,
        ):
            mock_repo.get_by_email = AsyncMock(return_value=None)

            response = client.post(
                "/api/auth/forgot-password", json={"email": "nobody@example.fr"}
            )

            mock_email.assert_not_called()

        assert response.status_code == 200
        assert response.json()["message"] == FORGOT_PASSWORD_MESSAGE

    def test_known_email_same_answer(self, client, active_technician):
        with (
            patch(f"{SERVICE}.TechnicianRepository") as mock_repo,
            patch(f"{SERVICE}.send_password_reset") as mock_email,
        ):
            mock_repo.get_by_email = AsyncMock(return_value=active_technician)
            mock_repo.set_reset_token = AsyncMock()
            mock_email.return_value = MailResult(success=True, message_id="msg")

            response = client.post(
                "/api/auth/forgot-password", json={"email": active_technician.email}
            )

            mock_email.assert_awaited_once()

        assert response.status_code == 200
        assert response.json()["message"] == FORGOT_PASSWORD_MESSAGE

    def test_internal_failure_same_answer(self, client):
        with patch(
            f"{SERVICE}.request_password_reset", new=AsyncMock(side_effect=RuntimeError("db"))
        ):
            response = client.post("/api/auth/forgot-password", json={"email": "a@b.fr"})

        assert response.status_code == 200
        assert response.json()["message"] == FORGOT_PASSWORD_MESSAGE


class TestResetPassword:
    def test_invalid_token(self, client):
        with patch(
            f"{SERVICE}.reset_password", new=AsyncMock(side_effect=InvalidTokenError())
        ):
            response = client.post(
                "/api/auth/reset-password",
                json={"token": "stale", "newPassword": "Nouveau#Pass2026"},
            )

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "INVALID_TOKEN"


class TestPasswordStrength:
    def test_reports_checks(self, client):
        response = client.post("/api/auth/password-strength", json={"password": "abc"})

        assert response.status_code == 200
        body = response.json()
        assert body["isValid"] is False
        assert body["checks"]["lowercase"] is True
        assert body["checks"]["min_length"] is False
        assert "Au moins 8 caractères" in body["messages"]

"""
Authentication Router

Endpoints:
- POST /auth/technician/login - Technician login (status gate applies)
- POST /auth/admin/login - Admin login
- POST /auth/technician/change-password - Change password with current one
- POST /auth/technician/change-temporary-password - Redeem the approval email link
- POST /auth/password-strength - Check a password against the policy
- POST /auth/forgot-password - Request a reset link (same answer for unknown emails)
- POST /auth/reset-password - Redeem a reset link
"""

import logging
from typing import NoReturn

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from it13.core.database import get_db
from it13.core.exceptions import ServiceError, to_http_exception
from it13.core.rate_limit import enforce_rate_limit
from it13.modules.auth import service
from it13.modules.auth.password_policy import check_password_strength
from it13.modules.auth.schemas import (
    ChangePasswordRequest,
    ChangeTemporaryPasswordRequest,
    ForgotPasswordRequest,
    LoginData,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    PasswordStrengthRequest,
    PasswordStrengthResponse,
    ResetPasswordRequest,
    UserSummary,
)

logger = logging.getLogger(__name__)

router = APIRouter()

# (requests, window seconds) per client IP
RATE_LIMIT_LOGIN = (10, 60)
RATE_LIMIT_FORGOT_PASSWORD = (3, 3600)
RATE_LIMIT_RESET_PASSWORD = (10, 3600)

FORGOT_PASSWORD_MESSAGE = (
    "Si un compte existe avec cette adresse, un lien de réinitialisation a été envoyé."
)


def _handle_service_error(e: ServiceError) -> NoReturn:
    raise to_http_exception(e) from e


def _internal_error(e: Exception, action: str) -> HTTPException:
    logger.exception(f"Error {action}: {e}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={
            "error": "INTERNAL_ERROR",
            "message": "Une erreur inattendue est survenue.",
        },
    )


def _login_response(result: service.LoginResult) -> LoginResponse:
    return LoginResponse(
        data=LoginData(
            token=result.access_token,
            user=UserSummary(
                id=result.user_id,
                email=result.email,
                name=result.name,
                surname=result.surname,
                role=result.role,
            ),
            must_change_password=result.must_change_password,
            is_temporary_password=result.is_temporary_password,
        )
    )


@router.post(
    "/technician/login",
    response_model=LoginResponse,
    response_model_by_alias=True,
    summary="Technician Login",
    responses={
        401: {"description": "Invalid credentials"},
        403: {"description": "Account not active or temporary password expired"},
        429: {"description": "Too many attempts"},
    },
)
async def technician_login(
    request: Request,
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> LoginResponse:
    """
    Authenticate a technician.

    The account status is checked before the password, so a pending or
    rejected applicant learns why they cannot log in.
    """
    await enforce_rate_limit(request, "technician_login", *RATE_LIMIT_LOGIN)

    try:
        result = await service.login_technician(db, credentials.email, credentials.password)
    except ServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        raise _internal_error(e, "logging in technician") from e

    return _login_response(result)


@router.post(
    "/admin/login",
    response_model=LoginResponse,
    response_model_by_alias=True,
    summary="Admin Login",
)
async def admin_login(
    request: Request,
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> LoginResponse:
    await enforce_rate_limit(request, "admin_login", *RATE_LIMIT_LOGIN)

    try:
        result = await service.login_admin(db, credentials.email, credentials.password)
    except ServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        raise _internal_error(e, "logging in admin") from e

    return _login_response(result)


@router.post(
    "/technician/change-password",
    response_model=MessageResponse,
    response_model_by_alias=True,
    summary="Change Technician Password",
)
async def change_password(
    request: Request,
    body: ChangePasswordRequest,
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    await enforce_rate_limit(request, "change_password", *RATE_LIMIT_LOGIN)

    try:
        await service.change_password(db, body.email, body.current_password, body.new_password)
    except ServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        raise _internal_error(e, "changing password") from e

    return MessageResponse(message="Mot de passe modifié avec succès")


@router.post(
    "/technician/change-temporary-password",
    response_model=MessageResponse,
    response_model_by_alias=True,
    summary="Replace Temporary Password",
    responses={
        400: {"description": "Invalid or expired link, or weak password"},
        404: {"description": "No temporary password pending"},
    },
)
async def change_temporary_password(
    request: Request,
    body: ChangeTemporaryPasswordRequest,
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    await enforce_rate_limit(request, "change_temporary_password", *RATE_LIMIT_RESET_PASSWORD)

    try:
        await service.change_temporary_password(db, body.token, body.new_password)
    except ServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        raise _internal_error(e, "changing temporary password") from e

    return MessageResponse(message="Mot de passe modifié avec succès")


@router.post(
    "/password-strength",
    response_model=PasswordStrengthResponse,
    response_model_by_alias=True,
    summary="Check Password Strength",
)
async def password_strength(body: PasswordStrengthRequest) -> PasswordStrengthResponse:
    strength = check_password_strength(body.password)
    return PasswordStrengthResponse(
        is_valid=strength.is_valid,
        checks=strength.checks,
        messages=strength.messages,
    )


@router.post(
    "/forgot-password",
    response_model=MessageResponse,
    response_model_by_alias=True,
    summary="Request Password Reset",
)
async def forgot_password(
    request: Request,
    body: ForgotPasswordRequest,
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """
    Send a reset link if the account exists.

    Always answers with the same message so the endpoint cannot be used to
    discover registered emails.
    """
    await enforce_rate_limit(request, "forgot_password", *RATE_LIMIT_FORGOT_PASSWORD)

    try:
        await service.request_password_reset(db, body.email.strip(), body.user_type)
    except Exception:
        logger.exception(f"Password reset request failed for {service.mask_email(body.email)}")

    return MessageResponse(message=FORGOT_PASSWORD_MESSAGE)


@router.post(
    "/reset-password",
    response_model=MessageResponse,
    response_model_by_alias=True,
    summary="Reset Password",
    responses={400: {"description": "Invalid, expired or already used link, or weak password"}},
)
async def reset_password(
    request: Request,
    body: ResetPasswordRequest,
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    await enforce_rate_limit(request, "reset_password", *RATE_LIMIT_RESET_PASSWORD)

    try:
        await service.reset_password(db, body.token, body.new_password)
    except ServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        raise _internal_error(e, "resetting password") from e

    return MessageResponse(message="Mot de passe réinitialisé avec succès")

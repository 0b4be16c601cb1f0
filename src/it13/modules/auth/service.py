"""
Authentication Service Layer

Login for both roles and the credential recovery flows.

1. Technician login gate:
   - Account status is checked before the password: pending_approval,
     inactive, rejected and unknown statuses are refused outright
   - An active account whose temporary password has lapsed is refused
     with ``temporary_password_expired``, even with the right password
   - Only then is the password compared

2. Temporary password redemption:
   - Path A: log in with the temporary password, then change it with
     ``change_password`` (current + new password)
   - Path B: ``change_temporary_password`` with the signed link from the
     approval email; only works while the temporary password is pending

3. Password reset (admins and technicians):
   - ``request_password_reset`` never reveals whether the email exists
   - The mailed token is signed, and its SHA-256 digest is stored on the
     user row. A new request overwrites the digest, so older links stop
     working before they expire
   - ``reset_password`` redeems with a single conditional UPDATE
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from it13.core.auth import ROLE_ADMIN, ROLE_TECHNICIAN
from it13.core.config import settings
from it13.core.email import send_password_reset
from it13.core.exceptions import (
    AuthError,
    ExpiredTokenError,
    InvalidTokenError,
    NotFoundError,
    ValidationError,
)
from it13.core.security import create_access_token, hash_password_async, verify_password_async
from it13.modules.admins.repository import AdminRepository
from it13.modules.auth.password_policy import check_password_strength
from it13.modules.auth.schemas import UserType
from it13.modules.auth.tokens import TokenKind, hash_token, issue_token, verify_token
from it13.modules.technicians.models import Technician, TechnicianStatus
from it13.modules.technicians.repository import TechnicianRepository

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Identifiants invalides"

_STATUS_REFUSALS = {
    TechnicianStatus.PENDING_APPROVAL.value: (
        "pending",
        "Votre compte est en attente d'approbation.",
    ),
    TechnicianStatus.INACTIVE.value: (
        "inactive",
        "Votre compte a été désactivé. Contactez l'administrateur.",
    ),
    TechnicianStatus.REJECTED.value: (
        "rejected",
        "Votre candidature a été refusée.",
    ),
}


@dataclass
class LoginResult:
    access_token: str
    user_id: str
    email: str
    name: str
    surname: str
    role: str
    must_change_password: bool = False
    is_temporary_password: bool = False


def mask_email(email: str) -> str:
    """``jean.dupont@example.fr`` -> ``je***@example.fr``."""
    local, _, domain = email.partition("@")
    return f"{local[:2]}***@{domain}" if domain else "***"


def _invalid_credentials() -> AuthError:
    return AuthError(INVALID_CREDENTIALS_MESSAGE, reason="invalid_credentials", status_code=401)


def _temporary_password_expired(technician: Technician, now: datetime) -> bool:
    return bool(
        technician.is_temporary_password
        and technician.temporary_password_expires is not None
        and now > technician.temporary_password_expires
    )


def _require_strong_password(password: str) -> None:
    strength = check_password_strength(password)
    if not strength.is_valid:
        raise ValidationError(
            "Le mot de passe ne respecte pas les exigences de sécurité.",
            errors=strength.messages,
            error_code="WEAK_PASSWORD",
        )


def check_technician_gate(technician: Technician, now: datetime) -> None:
    """
    Refuse login for anything but an active account with a live password.

    Raises:
        AuthError 403: With the refusal reason
    """
    if technician.status != TechnicianStatus.ACTIVE.value:
        reason, message = _STATUS_REFUSALS.get(
            technician.status,
            ("status_invalid", "Statut de compte invalide. Contactez l'administrateur."),
        )
        raise AuthError(message, reason=reason)

    if _temporary_password_expired(technician, now):
        raise AuthError(
            "Votre mot de passe temporaire a expiré. Contactez l'administrateur.",
            reason="temporary_password_expired",
        )


# ============================================
# Login
# ============================================


async def login_technician(
    db: AsyncSession, email: str, password: str, now: datetime | None = None
) -> LoginResult:
    """
    Authenticate a technician.

    Raises:
        AuthError 401: Unknown email or wrong password
        AuthError 403: Gate refusal (see ``check_technician_gate``)
    """
    technician = await TechnicianRepository.get_by_email(db, email)
    if not technician:
        logger.warning(f"Technician login for unknown email: {mask_email(email)}")
        raise _invalid_credentials()

    check_technician_gate(technician, now or datetime.now(UTC))

    if not await verify_password_async(password, technician.password_hash):
        logger.warning(f"Invalid password for technician {technician.id}")
        raise _invalid_credentials()

    token = create_access_token(
        subject=str(technician.id),
        additional_claims={
            "email": technician.email,
            "role": ROLE_TECHNICIAN,
            "name": technician.full_name,
        },
    )
    logger.info(f"Technician logged in: {technician.id}")

    return LoginResult(
        access_token=token,
        user_id=str(technician.id),
        email=technician.email,
        name=technician.name,
        surname=technician.surname,
        role=ROLE_TECHNICIAN,
        must_change_password=technician.must_change_password,
        is_temporary_password=technician.is_temporary_password,
    )


async def login_admin(db: AsyncSession, email: str, password: str) -> LoginResult:
    admin = await AdminRepository.get_by_email(db, email)
    if not admin or not await verify_password_async(password, admin.password_hash):
        logger.warning(f"Failed admin login for {mask_email(email)}")
        raise _invalid_credentials()

    token = create_access_token(
        subject=str(admin.id),
        additional_claims={"email": admin.email, "role": ROLE_ADMIN, "name": admin.full_name},
    )
    logger.info(f"Admin logged in: {admin.id}")

    return LoginResult(
        access_token=token,
        user_id=str(admin.id),
        email=admin.email,
        name=admin.name,
        surname=admin.surname,
        role=ROLE_ADMIN,
    )


# ============================================
# Temporary password redemption
# ============================================


async def change_password(
    db: AsyncSession,
    email: str,
    current_password: str,
    new_password: str,
    now: datetime | None = None,
) -> None:
    """
    Replace a technician's password given the current one (path A).

    Raises:
        AuthError 401: Unknown email or wrong current password
        ExpiredTokenError: Temporary password lapsed
        ValidationError: Policy failure or unchanged password
    """
    technician = await TechnicianRepository.get_by_email(db, email)
    if not technician or not await verify_password_async(
        current_password, technician.password_hash
    ):
        raise _invalid_credentials()

    if _temporary_password_expired(technician, now or datetime.now(UTC)):
        raise ExpiredTokenError(
            "Votre mot de passe temporaire a expiré.",
            error_code="TEMPORARY_PASSWORD_EXPIRED",
        )

    _require_strong_password(new_password)
    if new_password == current_password:
        raise ValidationError(
            "Le nouveau mot de passe doit être différent de l'ancien.",
            error_code="PASSWORD_UNCHANGED",
        )

    password_hash = await hash_password_async(new_password)
    await TechnicianRepository.update_password(db, technician.id, password_hash)
    await db.commit()

    logger.info(f"Technician {technician.id} changed password")


async def change_temporary_password(
    db: AsyncSession, token: str, new_password: str, now: datetime | None = None
) -> None:
    """
    Replace a temporary password using the link from the approval email (path B).

    Raises:
        InvalidTokenError: Bad signature or wrong kind of token
        ExpiredTokenError: Link or temporary password lapsed
        NotFoundError: No temporary password is pending for the subject
        ValidationError: Policy failure
    """
    current = now or datetime.now(UTC)
    verified = verify_token(token, now=current)
    if verified.kind != TokenKind.TEMPORARY_PASSWORD:
        raise InvalidTokenError()
    if verified.expired:
        raise ExpiredTokenError("Le lien de changement de mot de passe a expiré.")

    technician = await TechnicianRepository.get_pending_temporary(db, verified.subject_email)
    if not technician:
        raise NotFoundError(
            "Aucun mot de passe temporaire en attente pour ce compte.",
            error_code="TEMPORARY_PASSWORD_NOT_FOUND",
        )

    if _temporary_password_expired(technician, current):
        raise ExpiredTokenError(
            "Votre mot de passe temporaire a expiré.",
            error_code="TEMPORARY_PASSWORD_EXPIRED",
        )

    _require_strong_password(new_password)

    password_hash = await hash_password_async(new_password)
    updated = await TechnicianRepository.update_password(
        db, technician.id, password_hash, require_temporary=True
    )
    if not updated:
        # Redeemed concurrently through the other path
        await db.rollback()
        raise NotFoundError(
            "Aucun mot de passe temporaire en attente pour ce compte.",
            error_code="TEMPORARY_PASSWORD_NOT_FOUND",
        )
    await db.commit()

    logger.info(f"Technician {technician.id} replaced temporary password")


# ============================================
# Password reset
# ============================================


async def request_password_reset(
    db: AsyncSession, email: str, user_type: UserType, now: datetime | None = None
) -> None:
    """
    Issue a reset link if the account exists. Silent otherwise.

    A new request supersedes any outstanding link for the same account.
    """
    if user_type == UserType.ADMIN:
        user = await AdminRepository.get_by_email(db, email)
        repo = AdminRepository
    else:
        user = await TechnicianRepository.get_by_email(db, email)
        repo = TechnicianRepository

    if not user:
        logger.info(f"Password reset requested for unknown {user_type.value}: {mask_email(email)}")
        return

    issued_at = now or datetime.now(UTC)
    ttl = timedelta(minutes=settings.password_reset_ttl_minutes)
    token = issue_token(user.email, TokenKind.PASSWORD_RESET, ttl, role=user_type.value, now=issued_at)

    await repo.set_reset_token(db, user.id, hash_token(token), issued_at + ttl)
    await db.commit()

    result = await send_password_reset(to_email=user.email, name=user.name, reset_token=token)
    if not result.success:
        logger.error(f"Password reset email failed for {user_type.value} {user.id}: {result.error}")
    else:
        logger.info(f"Password reset link sent to {user_type.value} {user.id}")


async def reset_password(
    db: AsyncSession, token: str, new_password: str, now: datetime | None = None
) -> None:
    """
    Redeem a reset link.

    Raises:
        InvalidTokenError: Bad signature, wrong kind, superseded or already used
        ExpiredTokenError: Link lapsed
        ValidationError: Policy failure
    """
    current = now or datetime.now(UTC)
    verified = verify_token(token, now=current)
    if verified.kind != TokenKind.PASSWORD_RESET:
        raise InvalidTokenError()
    if verified.expired:
        raise ExpiredTokenError("Le lien de réinitialisation a expiré.")

    if verified.role == UserType.ADMIN.value:
        repo = AdminRepository
    elif verified.role == UserType.TECHNICIAN.value:
        repo = TechnicianRepository
    else:
        raise InvalidTokenError()

    _require_strong_password(new_password)

    password_hash = await hash_password_async(new_password)
    consumed = await repo.consume_reset_token(
        db, verified.subject_email, hash_token(token), password_hash, current
    )
    if not consumed:
        await db.rollback()
        logger.warning(f"Reset token not redeemable for {mask_email(verified.subject_email)}")
        raise InvalidTokenError("Lien de réinitialisation invalide ou déjà utilisé.")

    await db.commit()
    logger.info(f"Password reset completed for {verified.role} {mask_email(verified.subject_email)}")

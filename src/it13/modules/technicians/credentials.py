"""
Credential Issuance

Creates the technician account for an approved application, with a
generated temporary password that must be changed within 24 hours.
"""

import logging
import secrets
import string
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from it13.core.config import settings
from it13.core.exceptions import ConflictError
from it13.core.security import hash_password_async
from it13.modules.auth.password_policy import is_valid_password
from it13.modules.technicians.models import TechnicianStatus
from it13.modules.technicians.repository import TechnicianRepository

if TYPE_CHECKING:
    from it13.modules.technician_applications.schemas import Application

logger = logging.getLogger(__name__)

TEMPORARY_PASSWORD_LENGTH = 12
TEMPORARY_PASSWORD_SPECIALS = "!@#$%^&*"
_CLASSES = (
    string.ascii_uppercase,
    string.ascii_lowercase,
    string.digits,
    TEMPORARY_PASSWORD_SPECIALS,
)
_POOL = "".join(_CLASSES)
_random = secrets.SystemRandom()


@dataclass(frozen=True)
class ProvisionedCredential:
    technician_id: UUID
    email: str
    name: str
    surname: str
    temporary_password: str
    expires_at: datetime


def generate_temporary_password() -> str:
    """
    Generate a 12-character temporary password.

    One character from each class, the rest from the combined pool, then
    shuffled with the system CSPRNG. Regenerated in the rare case the
    result trips the common-pattern check.
    """
    while True:
        chars = [secrets.choice(cls) for cls in _CLASSES]
        chars += [secrets.choice(_POOL) for _ in range(TEMPORARY_PASSWORD_LENGTH - len(chars))]
        _random.shuffle(chars)
        password = "".join(chars)
        if is_valid_password(password):
            return password


def split_full_name(full_name: str) -> tuple[str, str]:
    """Split on the first space: ``"Jean Pierre Dupont"`` -> ``("Jean", "Pierre Dupont")``."""
    parts = full_name.strip().split(" ", 1)
    name = parts[0]
    surname = parts[1].strip() if len(parts) > 1 else ""
    return name, surname


async def provision(
    db: AsyncSession,
    application: "Application",
    now: datetime | None = None,
) -> ProvisionedCredential:
    """
    Create the technician account for an approved application.

    The row is flushed, not committed: approval commits it together with
    the status change, or rolls both back.

    Raises:
        ConflictError: If a technician already exists for the email
    """
    personal = application.personal_info
    email = personal.email.lower()

    existing = await TechnicianRepository.get_by_email(db, email)
    if existing:
        logger.warning(f"Technician with email {email} already exists")
        raise ConflictError(
            f"Un compte technicien existe déjà pour {email}.",
            error_code="TECHNICIAN_EXISTS",
        )

    name, surname = split_full_name(personal.full_name)
    temporary_password = generate_temporary_password()
    password_hash = await hash_password_async(temporary_password)
    expires_at = (now or datetime.now(UTC)) + timedelta(
        hours=settings.temporary_password_ttl_hours
    )

    technician = await TechnicianRepository.create(
        db,
        email=email,
        password_hash=password_hash,
        name=name,
        surname=surname,
        phone_number=personal.phone,
        specialization=application.professional_info.specialization,
        status=TechnicianStatus.ACTIVE,
        is_temporary_password=True,
        temporary_password_expires=expires_at,
        must_change_password=True,
    )

    return ProvisionedCredential(
        technician_id=technician.id,
        email=email,
        name=name,
        surname=surname,
        temporary_password=temporary_password,
        expires_at=expires_at,
    )

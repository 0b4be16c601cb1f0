"""
Signed Credential Tokens

Time-bounded tokens mailed to users: the direct change link sent with a
temporary password, and the password reset link.

``verify_token`` is pure. It checks the signature and claim shapes and
reports expiry instead of raising on it, so callers can tell an expired
link apart from a forged one. Reset tokens are additionally matched
against a digest stored on the user row (see ``hash_token``), which is
what makes them single use.
"""

import enum
import hashlib
import logging
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import jwt

from it13.core.config import settings
from it13.core.exceptions import InvalidTokenError

logger = logging.getLogger(__name__)


class TokenKind(str, enum.Enum):
    TEMPORARY_PASSWORD = "temporary_password"
    PASSWORD_RESET = "password_reset"


@dataclass(frozen=True)
class VerifiedToken:
    subject_email: str
    kind: TokenKind
    role: str | None
    issued_at: datetime
    expires_at: datetime
    expired: bool


def issue_token(
    subject_email: str,
    kind: TokenKind,
    ttl: timedelta,
    role: str | None = None,
    now: datetime | None = None,
) -> str:
    """Sign a token for ``subject_email`` valid for ``ttl``."""
    issued_at = now or datetime.now(UTC)
    payload = {
        "sub": subject_email.lower(),
        "type": kind.value,
        "iat": int(issued_at.timestamp()),
        "exp": int((issued_at + ttl).timestamp()),
        # Two tokens issued in the same second must still differ
        "jti": secrets.token_urlsafe(16),
    }
    if role:
        payload["role"] = role
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str, now: datetime | None = None) -> VerifiedToken:
    """
    Check a token's signature and claims.

    Raises:
        InvalidTokenError: Bad signature, malformed token or unknown kind
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"verify_exp": False, "require": ["sub", "type", "iat", "exp"]},
        )
    except jwt.PyJWTError as e:
        logger.warning(f"Rejected credential token: {e.__class__.__name__}")
        raise InvalidTokenError() from e

    try:
        kind = TokenKind(payload["type"])
        issued_at = datetime.fromtimestamp(int(payload["iat"]), UTC)
        expires_at = datetime.fromtimestamp(int(payload["exp"]), UTC)
    except (ValueError, TypeError) as e:
        logger.warning("Rejected credential token with malformed claims")
        raise InvalidTokenError() from e

    current = now or datetime.now(UTC)
    return VerifiedToken(
        subject_email=str(payload["sub"]).lower(),
        kind=kind,
        role=payload.get("role"),
        issued_at=issued_at,
        expires_at=expires_at,
        expired=current >= expires_at,
    )


def hash_token(token: str) -> str:
    """SHA-256 digest stored in place of the token itself."""
    return hashlib.sha256(token.encode()).hexdigest()

"""
Authentication Dependencies

FastAPI dependencies that validate bearer access tokens and enforce the
two roles the portal knows about: ``admin`` and ``technician``.
"""

import logging
from dataclasses import dataclass

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from it13.core.security import decode_token

logger = logging.getLogger(__name__)

ROLE_ADMIN = "admin"
ROLE_TECHNICIAN = "technician"

security = HTTPBearer(
    auto_error=True,
    description="JWT Bearer token for authentication",
)


@dataclass
class CurrentUser:
    """
    Authenticated caller, populated from access token claims.

    Attributes:
        id: User's unique identifier
        email: User's email address
        role: ``admin`` or ``technician``
    """

    id: str
    email: str
    role: str

    def __str__(self) -> str:
        return f"CurrentUser(id={self.id}, email={self.email}, role={self.role})"


def _unauthorized(error: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": error, "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


def _validate_access_token(token: str) -> CurrentUser:
    """
    Validate an access token and extract the caller.

    Raises:
        HTTPException 401: If token is invalid, expired, or not an access token
    """
    payload = decode_token(token)

    if payload is None:
        logger.warning("Invalid or expired access token")
        raise _unauthorized("INVALID_TOKEN", "Jeton d'authentification invalide ou expiré.")

    if payload.get("type") != "access":
        logger.warning(f"Invalid token type: {payload.get('type')}")
        raise _unauthorized("INVALID_TOKEN_TYPE", "Un jeton d'accès est requis.")

    user_id = payload.get("sub")
    role = payload.get("role")
    if not user_id or not role:
        raise _unauthorized("INVALID_TOKEN_CLAIMS", "Le jeton ne contient pas les champs requis.")

    return CurrentUser(id=str(user_id), email=payload.get("email", ""), role=role)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> CurrentUser:
    """Any authenticated caller."""
    return _validate_access_token(credentials.credentials)


async def get_current_admin_user(
    user: CurrentUser = Depends(get_current_user),
) -> CurrentUser:
    """
    Require an admin caller.

    Raises:
        HTTPException 401: If token is missing, invalid, or expired
        HTTPException 403: If the caller is not an admin
    """
    if user.role != ROLE_ADMIN:
        logger.warning(f"Access denied: {user.email} has role '{user.role}', 'admin' is required")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "ADMIN_ACCESS_REQUIRED",
                "message": "Accès réservé aux administrateurs.",
            },
        )

    logger.debug(f"Authenticated admin: {user.id} ({user.email})")
    return user


__all__ = [
    "ROLE_ADMIN",
    "ROLE_TECHNICIAN",
    "CurrentUser",
    "get_current_user",
    "get_current_admin_user",
]

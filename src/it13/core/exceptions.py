"""
Service Errors

Exception taxonomy shared by every module. Services raise these and
routers translate them into HTTPException responses with a structured
``{"error": ..., "message": ...}`` detail.
"""

from typing import Any

from fastapi import HTTPException


class ServiceError(Exception):
    """Base exception for service errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)

    def to_detail(self) -> dict[str, Any]:
        return {"error": self.error_code, "message": self.message}


class ValidationError(ServiceError):
    """Bad or missing fields or files."""

    def __init__(
        self,
        message: str = "Données invalides.",
        errors: list[str] | None = None,
        error_code: str = "VALIDATION_ERROR",
    ):
        self.errors = errors or []
        super().__init__(message=message, error_code=error_code, status_code=400)

    def to_detail(self) -> dict[str, Any]:
        detail = super().to_detail()
        if self.errors:
            detail["errors"] = self.errors
        return detail


class InvalidTokenError(ValidationError):
    """Token signature, kind or stored single-use value does not match."""

    def __init__(self, message: str = "Token invalide ou expiré."):
        super().__init__(message=message, error_code="INVALID_TOKEN")


class NotFoundError(ServiceError):
    """Unknown application, technician or token subject."""

    def __init__(self, message: str, error_code: str = "NOT_FOUND"):
        super().__init__(message=message, error_code=error_code, status_code=404)


class ConflictError(ServiceError):
    """Illegal state transition or duplicate resource."""

    def __init__(self, message: str, error_code: str = "CONFLICT"):
        super().__init__(message=message, error_code=error_code, status_code=409)


class ExpiredTokenError(ServiceError):
    """Token or temporary password past its expiry."""

    def __init__(self, message: str = "Le lien a expiré.", error_code: str = "TOKEN_EXPIRED"):
        super().__init__(message=message, error_code=error_code, status_code=400)


class AuthError(ServiceError):
    """Bad credentials (401) or a login gate refusal (403)."""

    def __init__(self, message: str, reason: str, status_code: int = 403):
        self.reason = reason
        super().__init__(message=message, error_code=reason.upper(), status_code=status_code)

    def to_detail(self) -> dict[str, Any]:
        detail = super().to_detail()
        detail["reason"] = self.reason
        return detail


class UpstreamError(ServiceError):
    """Blob store or mail transport failure, including timeouts."""

    def __init__(self, message: str, error_code: str = "UPSTREAM_ERROR", status_code: int = 500):
        super().__init__(message=message, error_code=error_code, status_code=status_code)


def to_http_exception(e: ServiceError) -> HTTPException:
    """Convert a service error into an HTTPException."""
    return HTTPException(status_code=e.status_code, detail=e.to_detail())


__all__ = [
    "ServiceError",
    "ValidationError",
    "InvalidTokenError",
    "NotFoundError",
    "ConflictError",
    "ExpiredTokenError",
    "AuthError",
    "UpstreamError",
    "to_http_exception",
]

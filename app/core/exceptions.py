"""
Application error hierarchy and the API error renderer.

Every error that leaves the API has the same shape:

    {"message": "Conversation not found"}

Domain errors carry a machine-readable ``error_code`` which maps onto an
HTTP status. Services usually report expected failures through
``ServiceResult`` (see core.services) using the same codes, so a view can
turn either form into a response.

Exception Hierarchy:
    BaseApplicationError (base)
    ├── ValidationError - Missing or malformed input (400)
    ├── InvalidOperationError - Action not valid for this resource (400)
    ├── PermissionDeniedError - Authenticated but not allowed (403)
    ├── NotFoundError - Resource absent (404)
    ├── ConflictError - Duplicate membership or identity (409)
    └── ExternalServiceError - Storage or other collaborator failed (502)

Usage:
    from core.exceptions import NotFoundError

    raise NotFoundError("Conversation not found")

Related:
    - core.services: ServiceResult and error codes
    - core.views.error_response: ServiceResult -> Response
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

if TYPE_CHECKING:
    from typing import Any

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Internal server error"


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (field errors, metadata, etc.)
    """

    default_error_code: str = "APPLICATION_ERROR"
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to the API error body."""
        return {"message": self.message}

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class ValidationError(BaseApplicationError):
    """
    Raised when a required field or field combination is missing.

    Example:
        raise ValidationError("Message must have content or an image")
    """

    default_error_code: str = "VALIDATION_ERROR"
    status_code: int = status.HTTP_400_BAD_REQUEST


class InvalidOperationError(BaseApplicationError):
    """
    Raised when an action does not apply to the target resource.

    Renaming a direct conversation or force-removing a group admin are
    well-formed requests that the resource cannot accept.
    """

    default_error_code: str = "INVALID_OPERATION"
    status_code: int = status.HTTP_400_BAD_REQUEST


class PermissionDeniedError(BaseApplicationError):
    """
    Raised when an authenticated user may not perform an operation.

    Note:
        Missing or invalid tokens are DRF's AuthenticationFailed (401).
        Use this for authorization failures.
    """

    default_error_code: str = "PERMISSION_DENIED"
    status_code: int = status.HTTP_403_FORBIDDEN


class NotFoundError(BaseApplicationError):
    """Raised when a requested resource does not exist."""

    default_error_code: str = "NOT_FOUND"
    status_code: int = status.HTTP_404_NOT_FOUND


class ConflictError(BaseApplicationError):
    """
    Raised when an operation conflicts with current state.

    Example:
        raise ConflictError("User already in group")
    """

    default_error_code: str = "CONFLICT"
    status_code: int = status.HTTP_409_CONFLICT


class ExternalServiceError(BaseApplicationError):
    """
    Raised when an external collaborator (blob storage) fails.

    Log the original error server-side; the client only sees message.
    """

    default_error_code: str = "EXTERNAL_SERVICE_ERROR"
    status_code: int = status.HTTP_502_BAD_GATEWAY


# Error code -> HTTP status, shared by ServiceResult-based views
ERROR_STATUS_MAP: dict[str, int] = {
    cls.default_error_code: cls.status_code
    for cls in (
        ValidationError,
        InvalidOperationError,
        PermissionDeniedError,
        NotFoundError,
        ConflictError,
        ExternalServiceError,
    )
}


def status_for_error_code(error_code: str | None) -> int:
    """Return the HTTP status for a service error code (400 if unknown)."""
    return ERROR_STATUS_MAP.get(error_code or "", status.HTTP_400_BAD_REQUEST)


# =============================================================================
# DRF Exception Handler
# =============================================================================


def _first_message(detail: Any) -> str:
    """Flatten DRF error detail (dict/list/str) to its first message."""
    if isinstance(detail, dict):
        for key, value in detail.items():
            message = _first_message(value)
            if key in ("detail", "non_field_errors"):
                return message
            return f"{key}: {message}"
        return "Invalid request"
    if isinstance(detail, (list, tuple)):
        return _first_message(detail[0]) if detail else "Invalid request"
    return str(detail)


def api_exception_handler(exc: Exception, context: dict) -> Response:
    """
    Render every API error as ``{"message": ...}``.

    Configured as REST_FRAMEWORK["EXCEPTION_HANDLER"]. Application errors
    use their own status; DRF errors keep DRF's status; anything else is
    logged with traceback and hidden behind a generic 500.
    """
    if isinstance(exc, BaseApplicationError):
        return Response(exc.to_dict(), status=exc.status_code)

    response = drf_exception_handler(exc, context)
    if response is not None:
        response.data = {"message": _first_message(response.data)}
        return response

    view = context.get("view")
    logger.error(
        f"Unhandled error in {view.__class__.__name__ if view else 'unknown view'}: {exc}",
        exc_info=exc,
    )
    return Response(
        {"message": GENERIC_ERROR_MESSAGE},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )

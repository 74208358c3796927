"""
Shared error handling for the Venue service.

Every failure the service can surface is a ``VenueServiceException`` carrying a
stable ``code``. Each subclass also pins the HTTP status the boundary answers with;
nothing inspects exception messages.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel

from shared.logging import request_id_var


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = {}


class VenueServiceException(Exception):
    """Base exception for Venue service errors."""

    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None, code: Optional[str] = None):
        if code is not None:
            self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            request_id=request_id_var.get(),
            code=self.code,
            message=self.message,
            details=self.details
        )


class NotFoundError(VenueServiceException):
    """Entity does not exist."""

    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, message: str = "Not found", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class ConflictError(VenueServiceException):
    """Entity violates a uniqueness constraint."""

    code = "CONFLICT"
    status_code = 409

    def __init__(self, message: str = "Already exists", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class AccessDeniedError(VenueServiceException):
    """Caller is authenticated but not allowed to see the resource."""

    code = "ACCESS_DENIED"
    status_code = 403

    def __init__(self, message: str = "Access denied", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class AuthenticationError(VenueServiceException):
    """Missing or invalid credential on a protected route."""

    code = "AUTHENTICATION_ERROR"
    status_code = 401

    def __init__(self, message: str = "Authentication required", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class ValidationError(VenueServiceException):
    """Request is well-formed but refers to invalid data."""

    code = "VALIDATION_ERROR"
    status_code = 400

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class StorageError(VenueServiceException):
    """Opaque storage failure."""

    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str = "Storage error", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class IdentityServiceError(VenueServiceException):
    """Identity service call failed (transport, status or decode)."""

    code = "IDENTITY_SERVICE_ERROR"
    status_code = 502

    def __init__(self, message: str = "Identity service error",
                 status_code: Optional[int] = None, body: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        self.upstream_status = status_code
        self.body = body
        merged = dict(details or {})
        if status_code is not None:
            merged["status_code"] = status_code
        if body:
            merged["body"] = body
        super().__init__(f"identity service: {message}", merged)

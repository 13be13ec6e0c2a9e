"""
Shared error handling for the Records Service.
"""

from datetime import datetime, timezone
from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    timestamp: datetime
    code: str
    message: str
    path: Optional[str] = None
    details: Dict[str, Any] = {}


class RecordServiceException(Exception):
    """Base exception for Records Service faults."""

    status_code = 500

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None,
                 path: Optional[str] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        self.path = path
        self.timestamp = datetime.now(timezone.utc)
        super().__init__(message)

    def to_response(self, path: Optional[str] = None) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            timestamp=self.timestamp,
            code=self.code,
            message=self.message,
            path=path or self.path,
            details=self.details
        )


class NotFoundError(RecordServiceException):
    """Requested entity does not exist, locally or remotely."""

    status_code = 404

    def __init__(self, message: str = "Resource not found", details: Optional[Dict[str, Any]] = None,
                 path: Optional[str] = None):
        super().__init__("NOT_FOUND", message, details, path)


class ValidationError(RecordServiceException):
    """Validation-related errors."""

    status_code = 400

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None,
                 path: Optional[str] = None):
        super().__init__("BAD_REQUEST", message, details, path)


class AuthorizationError(RecordServiceException):
    """Authorization-related errors."""

    status_code = 403

    def __init__(self, message: str = "Access Denied: You do not have permission to perform this action.",
                 details: Optional[Dict[str, Any]] = None, path: Optional[str] = None):
        super().__init__("FORBIDDEN", message, details, path)


class ServiceUnavailableError(RecordServiceException):
    """Remote service could not be reached (no response received)."""

    status_code = 503

    def __init__(self, service: str, message: str = "Unable to access external API",
                 details: Optional[Dict[str, Any]] = None, path: Optional[str] = None):
        self.service = service
        super().__init__("SERVICE_UNAVAILABLE", f"{service}: {message}", details, path)


class RemoteServiceError(RecordServiceException):
    """Remote service answered with an error status."""

    def __init__(self, service: str, status_code: int, message: str = "External service error",
                 details: Optional[Dict[str, Any]] = None, path: Optional[str] = None):
        self.service = service
        self.remote_status = status_code
        details = {"status_code": status_code, **(details or {})}
        super().__init__("INTERNAL", f"{service}: {message}", details, path)


class InternalError(RecordServiceException):
    """Unclassified failure."""

    def __init__(self, message: str = "An internal server error occurred",
                 details: Optional[Dict[str, Any]] = None, path: Optional[str] = None):
        super().__init__("INTERNAL", message, details, path)

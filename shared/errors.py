"""
Shared error handling for the Products Service.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Error description as it is written to logs."""

    code: str
    message: str
    details: Dict[str, Any] = {}


class ServiceLayerException(Exception):
    """Base exception for Products Service components."""

    status_code = 500

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            code=self.code,
            message=self.message,
            details=self.details
        )

    def public_message(self) -> str:
        """Message safe to return to a caller."""
        if self.status_code >= 500:
            return "internal server error"
        return self.message


class ValidationError(ServiceLayerException):
    """Client-caused errors: bad payloads, invalid fields, malformed ids."""

    status_code = 400

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class StoreError(ServiceLayerException):
    """Relational store failures."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(code, message, details)


class StoreUnavailable(StoreError):
    """The store could not be reached (pool closed, connection lost, timeout)."""

    def __init__(self, message: str = "Store unavailable", details: Optional[Dict[str, Any]] = None):
        super().__init__("STORE_UNAVAILABLE", message, details)


class StatementFailed(StoreError):
    """The store rejected or failed to run a statement."""

    def __init__(self, message: str = "Statement failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("STATEMENT_FAILED", message, details)


class CacheError(ServiceLayerException):
    """Cache failures. Only surfaced while the service is starting."""

    def __init__(self, message: str = "Cache error", details: Optional[Dict[str, Any]] = None):
        super().__init__("CACHE_ERROR", message, details)

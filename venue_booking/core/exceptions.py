"""
Custom Exceptions for the Venue Booking Core

This module defines custom exception classes used throughout the application
for better error handling and debugging.
"""

from typing import Any, Dict, List, Optional
from enum import Enum


class ErrorCode(str, Enum):
    """Standard error codes for the application"""
    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    OPERATION_FAILED = "OPERATION_FAILED"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"
    INVALID_FORMAT = "INVALID_FORMAT"

    # State machine errors
    INVALID_STATE = "INVALID_STATE"
    INVALID_REFUND_AMOUNT = "INVALID_REFUND_AMOUNT"

    # Database errors
    DATABASE_ERROR = "DATABASE_ERROR"
    CONCURRENT_MODIFICATION = "CONCURRENT_MODIFICATION"

    # Business logic errors
    BOOKING_CONFLICT = "BOOKING_CONFLICT"

    # Configuration errors
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"


class BaseAppException(Exception):
    """
    Base exception class for all application exceptions.

    Provides consistent error handling across the application with
    structured error information.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary format"""
        return {
            "error": {
                "message": self.message,
                "code": self.error_code.value,
                "details": self.details,
                "type": self.__class__.__name__
            }
        }

    def __str__(self) -> str:
        return f"{self.error_code.value}: {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message='{self.message}', error_code='{self.error_code.value}')"


# ========================================
# General Application Exceptions
# ========================================

class ValidationError(BaseAppException):
    """Exception raised when input is malformed or out of range"""

    def __init__(
        self,
        message: str = "Validation failed",
        field_errors: Optional[Dict[str, List[str]]] = None,
        error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
        status_code: int = 422
    ):
        details = {"field_errors": field_errors} if field_errors else {}
        super().__init__(message, error_code, details, status_code)

    @classmethod
    def from_pydantic(cls, exc: Any, message: str = "Validation failed") -> "ValidationError":
        """Build from a ``pydantic.ValidationError`` keeping per-field messages."""
        field_errors: Dict[str, List[str]] = {}
        for error in exc.errors():
            location = ".".join(str(part) for part in error.get("loc", ())) or "__root__"
            field_errors.setdefault(location, []).append(error.get("msg", "invalid"))
        return cls(message, field_errors=field_errors)


class ResourceNotFoundError(BaseAppException):
    """Exception raised when a requested resource is not found"""

    def __init__(
        self,
        resource_type: str = "Resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None
    ):
        if not message:
            message = f"{resource_type} not found"
            if resource_id:
                message += f" (ID: {resource_id})"

        details = {
            "resource_type": resource_type,
            "resource_id": resource_id
        }
        super().__init__(message, ErrorCode.RESOURCE_NOT_FOUND, details, 404)


class StateError(BaseAppException):
    """Exception raised when an operation is not valid for the entity's current state"""

    def __init__(
        self,
        message: str = "Operation not allowed in current state",
        entity_type: Optional[str] = None,
        entity_id: Optional[str] = None,
        operation: Optional[str] = None,
        current_state: Optional[Dict[str, Any]] = None,
        error_code: ErrorCode = ErrorCode.INVALID_STATE,
    ):
        details = {
            "entity_type": entity_type,
            "entity_id": entity_id,
            "operation": operation,
            "current_state": current_state or {},
        }
        super().__init__(message, error_code, details, 409)


# ========================================
# Database Exceptions
# ========================================

class RepositoryError(BaseAppException):
    """Exception raised when the backing store fails"""

    def __init__(
        self,
        message: str = "Repository operation failed",
        operation: Optional[str] = None
    ):
        details = {"operation": operation} if operation else {}
        super().__init__(message, ErrorCode.DATABASE_ERROR, details, 500)


class OptimisticLockError(RepositoryError):
    """Exception raised when a compare-and-set keeps losing to concurrent writers"""

    def __init__(
        self,
        message: str = "Concurrent modification detected",
        resource: Optional[str] = None,
        attempts: Optional[int] = None,
        operation: str = "reserve"
    ):
        super().__init__(message, operation=operation)
        self.error_code = ErrorCode.CONCURRENT_MODIFICATION
        self.status_code = 409
        self.details.update({"resource": resource, "attempts": attempts})


# ========================================
# Business Logic Exceptions
# ========================================

class BookingConflictError(BaseAppException):
    """Exception raised when booking conflicts with existing bookings"""

    def __init__(
        self,
        message: str = "Booking conflict detected",
        venue_id: Optional[str] = None,
        event_date: Optional[str] = None,
        conflicting_booking_id: Optional[str] = None
    ):
        details = {
            "venue_id": venue_id,
            "event_date": event_date,
            "conflicting_booking_id": conflicting_booking_id
        }
        super().__init__(message, ErrorCode.BOOKING_CONFLICT, details, 409)


ConflictError = BookingConflictError


# ========================================
# Configuration Exceptions
# ========================================

class ConfigurationError(BaseAppException):
    """Exception raised for configuration errors"""

    def __init__(
        self,
        message: str = "Configuration error",
        config_key: Optional[str] = None
    ):
        details = {"config_key": config_key} if config_key else {}
        super().__init__(message, ErrorCode.CONFIGURATION_ERROR, details, 500)


__all__ = [
    'ErrorCode',
    'BaseAppException',
    'ValidationError',
    'ResourceNotFoundError',
    'StateError',
    'RepositoryError',
    'OptimisticLockError',
    'BookingConflictError',
    'ConflictError',
    'ConfigurationError',
]

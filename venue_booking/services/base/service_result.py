"""
Service result patterns for standardized response handling.

Booking and payment services never let domain exceptions escape; they
return a ``ServiceResult`` carrying either the new snapshot or a
``ServiceError`` built from the exception.
"""

from typing import TypeVar, Generic, Optional, Any, Dict, List
from dataclasses import dataclass
from enum import Enum
from datetime import datetime, timezone

from venue_booking.core.exceptions import (
    BaseAppException,
    BookingConflictError,
    OptimisticLockError,
    RepositoryError,
    ResourceNotFoundError,
    StateError,
    ValidationError,
)


class ErrorCode(str, Enum):
    """Error codes surfaced by service operations."""

    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    INVALID_STATE = "INVALID_STATE"
    CONFLICT = "CONFLICT"
    CONCURRENT_MODIFICATION = "CONCURRENT_MODIFICATION"
    STORAGE_ERROR = "STORAGE_ERROR"


class ErrorSeverity(str, Enum):
    """Error severity levels."""

    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


# Most specific first: OptimisticLockError is a RepositoryError.
_EXCEPTION_CODES = (
    (ValidationError, ErrorCode.VALIDATION_ERROR, ErrorSeverity.WARNING),
    (ResourceNotFoundError, ErrorCode.NOT_FOUND, ErrorSeverity.WARNING),
    (StateError, ErrorCode.INVALID_STATE, ErrorSeverity.WARNING),
    (BookingConflictError, ErrorCode.CONFLICT, ErrorSeverity.WARNING),
    (OptimisticLockError, ErrorCode.CONCURRENT_MODIFICATION, ErrorSeverity.ERROR),
    (RepositoryError, ErrorCode.STORAGE_ERROR, ErrorSeverity.CRITICAL),
)


@dataclass
class ServiceError:
    """Represents a service operation error with context."""

    code: ErrorCode
    message: str
    severity: ErrorSeverity = ErrorSeverity.ERROR
    details: Optional[Dict[str, Any]] = None
    field: Optional[str] = None
    timestamp: Optional[datetime] = None

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = datetime.now(timezone.utc)

    @classmethod
    def from_app_exception(cls, exc: BaseAppException) -> "ServiceError":
        """Map a domain exception onto a service error code."""
        for exc_type, code, severity in _EXCEPTION_CODES:
            if isinstance(exc, exc_type):
                break
        else:
            code, severity = ErrorCode.INTERNAL_ERROR, ErrorSeverity.ERROR

        details = dict(exc.details)
        details["error_code"] = exc.error_code.value
        return cls(code=code, message=exc.message, severity=severity, details=details)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code.value,
            "message": self.message,
            "severity": self.severity.value,
            "details": self.details,
            "field": self.field,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }


TData = TypeVar("TData")


@dataclass
class ServiceResult(Generic[TData]):
    """
    Standardized service operation result with success/failure pattern.

    Attributes:
        is_success: Operation success indicator
        data: Result data (if successful)
        error: Error information (if failed)
        message: Human-readable status message
        metadata: Additional context information
    """

    is_success: bool
    data: Optional[TData] = None
    error: Optional[ServiceError] = None
    message: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    @classmethod
    def success(
        cls,
        data: Optional[TData] = None,
        message: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> "ServiceResult[TData]":
        return cls(
            is_success=True,
            data=data,
            message=message,
            metadata=metadata or {},
        )

    @classmethod
    def failure(
        cls,
        error: ServiceError,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> "ServiceResult[TData]":
        return cls(
            is_success=False,
            error=error,
            message=error.message,
            metadata=metadata or {},
        )

    @classmethod
    def from_exception(cls, exception: BaseAppException) -> "ServiceResult[TData]":
        """Create a failed result from a domain exception."""
        return cls.failure(ServiceError.from_app_exception(exception))

    @classmethod
    def not_found(
        cls,
        resource_type: str,
        resource_id: Optional[str] = None,
    ) -> "ServiceResult[TData]":
        return cls.from_exception(ResourceNotFoundError(resource_type, resource_id))

    @property
    def error_code(self) -> Optional[ErrorCode]:
        return self.error.code if self.error else None

    def unwrap(self) -> TData:
        """
        Unwrap the result data or raise if failed.

        Raises:
            ValueError: If the result is not successful
        """
        if not self.is_success:
            raise ValueError(
                f"Cannot unwrap failed result: {self.error.message if self.error else 'Unknown error'}"
            )
        return self.data

    def unwrap_or(self, default: TData) -> TData:
        return self.data if self.is_success else default

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "is_success": self.is_success,
            "message": self.message,
            "metadata": self.metadata,
        }
        if self.is_success:
            result["data"] = self.data
        else:
            result["error"] = self.error.to_dict() if self.error else None
        return result

    def __bool__(self) -> bool:
        return self.is_success

    def __repr__(self) -> str:
        status = "Success" if self.is_success else "Failure"
        if self.message:
            return f"ServiceResult({status}: {self.message})"
        return f"ServiceResult({status})"


ListResult = ServiceResult[List[Any]]


__all__ = [
    "ErrorCode",
    "ErrorSeverity",
    "ServiceError",
    "ServiceResult",
    "ListResult",
]

from venue_booking.core.exceptions import (
    BaseAppException,
    BookingConflictError,
    ConfigurationError,
    ConflictError,
    ErrorCode,
    OptimisticLockError,
    RepositoryError,
    ResourceNotFoundError,
    StateError,
    ValidationError,
)

__all__ = [
    "BaseAppException",
    "BookingConflictError",
    "ConfigurationError",
    "ConflictError",
    "ErrorCode",
    "OptimisticLockError",
    "RepositoryError",
    "ResourceNotFoundError",
    "StateError",
    "ValidationError",
]

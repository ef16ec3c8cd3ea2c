"""
Base service infrastructure: result objects and status change dispatch.
"""

from venue_booking.services.base.dispatcher import (
    LoggingStatusChangeDispatcher,
    RecordingStatusChangeDispatcher,
    StatusChangeDispatcher,
    StatusChangeEvent,
)
from venue_booking.services.base.service_result import (
    ErrorCode,
    ErrorSeverity,
    ServiceError,
    ServiceResult,
)

__all__ = [
    "ErrorCode",
    "ErrorSeverity",
    "ServiceError",
    "ServiceResult",
    "StatusChangeDispatcher",
    "StatusChangeEvent",
    "LoggingStatusChangeDispatcher",
    "RecordingStatusChangeDispatcher",
]

"""
carecal exception system.

Usage:
    from carecal.core.exceptions import InvalidTimeRangeError, NotFoundError

    raise InvalidTimeRangeError(
        "End time must be after start time",
        details={"reason": "end_not_after_start", "start_time": "17:00", "end_time": "09:00"},
    )

    # Add a new type on demand
    SyncError = exception_factory("SyncError", code="SYNC_ERROR", http_status=502)
"""
from carecal.core.exceptions.base import ProjectError, exception_factory
from carecal.core.exceptions.errors import (
    AppointmentClosedError,
    ConfigurationError,
    ConflictError,
    DuplicateOverrideError,
    ExternalServiceError,
    InvalidDayIndexError,
    InvalidTimeRangeError,
    InvalidTimezoneError,
    NotFoundError,
    OverlappingAvailabilityError,
    StorageFailureError,
    ValidationError,
)

__all__ = [
    "ProjectError",
    "exception_factory",
    "ConfigurationError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "ExternalServiceError",
    "InvalidTimezoneError",
    "InvalidTimeRangeError",
    "InvalidDayIndexError",
    "DuplicateOverrideError",
    "AppointmentClosedError",
    "OverlappingAvailabilityError",
    "StorageFailureError",
]

"""
Built-in exception types. Scheduling error kinds subclass the generic ones so
callers can catch either level.
"""
from __future__ import annotations

from carecal.core.exceptions.base import ProjectError


class ConfigurationError(ProjectError):
    """Invalid or missing configuration."""

    default_code = "CONFIGURATION_ERROR"
    default_http_status = 500


class ValidationError(ProjectError):
    """Request or input validation failed."""

    default_code = "VALIDATION_ERROR"
    default_http_status = 400


class NotFoundError(ProjectError):
    """Requested record not found (or not owned by the caller's clinician)."""

    default_code = "NOT_FOUND"
    default_http_status = 404


class ConflictError(ProjectError):
    """Record state conflict (e.g. duplicate, terminal status)."""

    default_code = "CONFLICT"
    default_http_status = 409


class ExternalServiceError(ProjectError):
    """A collaborator (database, calendar provider) failed."""

    default_code = "EXTERNAL_SERVICE_ERROR"
    default_http_status = 502


class InvalidTimezoneError(ValidationError):
    """Timezone id is not a recognised IANA zone name."""

    default_code = "INVALID_TIMEZONE"


class InvalidTimeRangeError(ValidationError):
    """End time is not after start time."""

    default_code = "INVALID_TIME_RANGE"


class InvalidDayIndexError(ValidationError):
    """Day index outside 0 (Sunday) .. 6 (Saturday)."""

    default_code = "INVALID_DAY_INDEX"


class DuplicateOverrideError(ConflictError):
    """A single-day override already exists for this clinician and date."""

    default_code = "DUPLICATE_OVERRIDE"


class AppointmentClosedError(ConflictError):
    """Appointment is completed or cancelled and can no longer change."""

    default_code = "APPOINTMENT_CLOSED"


class StorageFailureError(ExternalServiceError):
    """Storage collaborator raised; the original error is kept as ``cause``."""

    default_code = "STORAGE_FAILURE"


class OverlappingAvailabilityError(ConflictError):
    """A weekly rule would overlap another active rule on the same day."""

    default_code = "OVERLAPPING_AVAILABILITY"

"""Service layer: availability reads and writes, appointments, timezone preferences."""
from carecal.services.appointment_service import AppointmentService
from carecal.services.availability_mutation_service import AvailabilityMutationService
from carecal.services.availability_service import AvailabilityService, BookableSlot, SlotSettings
from carecal.services.timezone_service import TimezoneService

__all__ = [
    "AvailabilityMutationService",
    "AvailabilityService",
    "AppointmentService",
    "TimezoneService",
    "BookableSlot",
    "SlotSettings",
]

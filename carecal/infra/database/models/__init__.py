"""
carecal.infra.database.models – SQLAlchemy 2.0 ORM models.

Exports Base, mixins, and all model classes.
"""
from carecal.infra.database.models.appointment import Appointment
from carecal.infra.database.models.availability import AvailabilityOverride, WeeklyAvailabilityRule
from carecal.infra.database.models.base import Base, TimestampMixin, _uuid_pk
from carecal.infra.database.models.profile import AvailabilitySettings, UserProfile
from carecal.infra.database.models.time_off import TimeOff

__all__ = [
    "Base",
    "TimestampMixin",
    "_uuid_pk",
    "WeeklyAvailabilityRule",
    "AvailabilityOverride",
    "Appointment",
    "UserProfile",
    "AvailabilitySettings",
    "TimeOff",
]

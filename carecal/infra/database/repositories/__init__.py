"""Repositories for the carecal database."""
from carecal.infra.database.repositories.appointment import AppointmentRepository
from carecal.infra.database.repositories.availability import OverrideRepository, WeeklyRuleRepository
from carecal.infra.database.repositories.base import BaseRepository
from carecal.infra.database.repositories.profile import (
    AvailabilitySettingsRepository,
    UserProfileRepository,
)
from carecal.infra.database.repositories.time_off import TimeOffRepository

__all__ = [
    "BaseRepository",
    "WeeklyRuleRepository",
    "OverrideRepository",
    "AppointmentRepository",
    "UserProfileRepository",
    "AvailabilitySettingsRepository",
    "TimeOffRepository",
]

"""
carecal.infra.database – PostgreSQL async engine, session, models and repositories.

Public API
──────────
  build_engine, build_session_factory, init_db, close_engine, ensure_database_exists
  storage_errors
  Base, WeeklyAvailabilityRule, AvailabilityOverride, Appointment,
  UserProfile, AvailabilitySettings, TimeOff (models)
  WeeklyRuleRepository, OverrideRepository, AppointmentRepository,
  UserProfileRepository, AvailabilitySettingsRepository, TimeOffRepository
"""
from carecal.infra.database.engine import (
    build_engine,
    build_session_factory,
    close_engine,
    ensure_database_exists,
    init_db,
)
from carecal.infra.database.errors import storage_errors
from carecal.infra.database.models import (
    Appointment,
    AvailabilityOverride,
    AvailabilitySettings,
    Base,
    TimeOff,
    UserProfile,
    WeeklyAvailabilityRule,
)
from carecal.infra.database.repositories import (
    AppointmentRepository,
    AvailabilitySettingsRepository,
    BaseRepository,
    OverrideRepository,
    TimeOffRepository,
    UserProfileRepository,
    WeeklyRuleRepository,
)

__all__ = [
    "build_engine",
    "build_session_factory",
    "init_db",
    "close_engine",
    "ensure_database_exists",
    "storage_errors",
    "Base",
    "WeeklyAvailabilityRule",
    "AvailabilityOverride",
    "Appointment",
    "UserProfile",
    "AvailabilitySettings",
    "TimeOff",
    "BaseRepository",
    "WeeklyRuleRepository",
    "OverrideRepository",
    "AppointmentRepository",
    "UserProfileRepository",
    "AvailabilitySettingsRepository",
    "TimeOffRepository",
]

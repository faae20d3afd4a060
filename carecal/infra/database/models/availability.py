"""Availability ORM: recurring weekly rules and single-day overrides, per clinician."""
from __future__ import annotations

import datetime as _dt
import uuid
from typing import Optional

from sqlalchemy import CheckConstraint, Date, Index, SmallInteger, String, Time
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from carecal.infra.database.models.base import Base, TimestampMixin, _uuid_pk


class WeeklyAvailabilityRule(Base, TimestampMixin):
    """
    Every week on day_of_week (0 = Sunday), start_time..end_time in ``timezone``.
    Never spans midnight. recurrence_rule holds the RRULE text for the same day.
    """

    __tablename__ = "weekly_availability_rules"
    __table_args__ = (
        Index("ix_weekly_availability_rules_clinician_day", "clinician_id", "day_of_week"),
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_weekly_rules_day_of_week"),
        CheckConstraint("start_time < end_time", name="ck_weekly_rules_time_order"),
    )

    id: Mapped[uuid.UUID] = _uuid_pk()
    clinician_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    day_of_week: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    start_time: Mapped[_dt.time] = mapped_column(Time, nullable=False)
    end_time: Mapped[_dt.time] = mapped_column(Time, nullable=False)
    timezone: Mapped[str] = mapped_column(String(64), nullable=False)
    recurrence_rule: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(nullable=False, default=True)


class AvailabilityOverride(Base, TimestampMixin):
    """
    Replaces all weekly windows of the clinician on ``date``.
    timezone is optional; without it the times are shown as written.
    """

    __tablename__ = "availability_overrides"
    __table_args__ = (
        # Closes the check-then-insert race in add_single_day.
        Index("ux_availability_overrides_clinician_date", "clinician_id", "date", unique=True),
        CheckConstraint("start_time < end_time", name="ck_overrides_time_order"),
    )

    id: Mapped[uuid.UUID] = _uuid_pk()
    clinician_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    date: Mapped[_dt.date] = mapped_column(Date, nullable=False)
    start_time: Mapped[_dt.time] = mapped_column(Time, nullable=False)
    end_time: Mapped[_dt.time] = mapped_column(Time, nullable=False)
    timezone: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

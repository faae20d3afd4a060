"""Clinician time-off ORM model."""
from __future__ import annotations

import datetime as _dt
import uuid
from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, DateTime, Index, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from carecal.infra.database.models.base import Base, TimestampMixin, _uuid_pk


class TimeOff(Base, TimestampMixin):
    """A period the clinician is away. Removes bookable slots, not availability rules.

    start_at / end_at are UTC instants; timezone is the zone the period was
    entered in and decides what an all-day period covers.
    """

    __tablename__ = "time_off"
    __table_args__ = (
        Index("ix_time_off_clinician_start", "clinician_id", "start_at"),
        CheckConstraint("start_at < end_at", name="ck_time_off_time_order"),
    )

    id: Mapped[uuid.UUID] = _uuid_pk()
    clinician_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    start_at: Mapped[_dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_at: Mapped[_dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    timezone: Mapped[str] = mapped_column(String(64), nullable=False)
    all_day: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

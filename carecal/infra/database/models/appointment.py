"""Appointment ORM model."""
from __future__ import annotations

import datetime as _dt
import uuid
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, Index, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from carecal.infra.database.models.base import Base, TimestampMixin, _uuid_pk


class Appointment(Base, TimestampMixin):
    """A booked session between a client and a clinician.

    start_at / end_at are the canonical instants (UTC). source_timezone records
    the zone the booking was made in; display values are always derived.
    """

    __tablename__ = "appointments"
    __table_args__ = (
        Index("ix_appointments_clinician_start", "clinician_id", "start_at"),
        CheckConstraint("start_at < end_at", name="ck_appointments_time_order"),
    )

    id: Mapped[uuid.UUID] = _uuid_pk()
    client_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    clinician_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    start_at: Mapped[_dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_at: Mapped[_dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    source_timezone: Mapped[str] = mapped_column(String(64), nullable=False)
    appointment_type: Mapped[str] = mapped_column(String(64), nullable=False, default="therapy_session")

    # scheduled | completed | cancelled
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="scheduled")

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

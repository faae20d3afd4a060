"""User profile and per-clinician availability settings."""
from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy import Integer, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from carecal.infra.database.models.base import Base, TimestampMixin, _uuid_pk


class UserProfile(Base, TimestampMixin):
    """Clinician or client. time_zone is the stored IANA preference."""

    __tablename__ = "user_profiles"

    id: Mapped[uuid.UUID] = _uuid_pk()
    display_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    time_zone: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)


class AvailabilitySettings(Base, TimestampMixin):
    __tablename__ = "availability_settings"

    id: Mapped[uuid.UUID] = _uuid_pk()
    clinician_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, unique=True)
    default_slot_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=50)
    min_notice_days: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    max_advance_days: Mapped[int] = mapped_column(Integer, nullable=False, default=60)

"""Pydantic schemas for the appointments API."""
from __future__ import annotations

from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class AppointmentCreate(BaseModel):
    """Book either from instants (start_at/end_at) or from wall-clock inputs
    (date/start_time/end_time) interpreted in ``timezone``."""

    client_id: UUID
    clinician_id: UUID
    timezone: str = Field(..., max_length=64, description="Zone the booking was made in")
    start_at: Optional[datetime] = None
    end_at: Optional[datetime] = None
    date: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    appointment_type: str = Field(default="therapy_session", max_length=64)
    notes: Optional[str] = None


class AppointmentReschedule(BaseModel):
    start_at: datetime
    end_at: datetime
    timezone: Optional[str] = Field(None, max_length=64)


class AppointmentResponse(BaseModel):
    id: UUID
    client_id: UUID
    clinician_id: UUID
    start_at: datetime
    end_at: datetime
    source_timezone: str
    appointment_type: str
    status: str
    notes: Optional[str] = None

    class Config:
        from_attributes = True


class DisplayProjectionResponse(BaseModel):
    date: date
    start_time: str
    end_time: str
    is_in_dst: bool
    timezone: str
    ends_next_day: bool = False


class AppointmentViewResponse(BaseModel):
    appointment: AppointmentResponse
    view: DisplayProjectionResponse

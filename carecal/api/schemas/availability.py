"""Pydantic schemas for the availability API.

Times travel as "HH:MM" strings and day indexes as plain ints so that the
service layer, not request parsing, decides which error kind a bad value is.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class WeeklyRuleCreate(BaseModel):
    day_of_week: int = Field(..., description="0 = Sunday .. 6 = Saturday")
    start_time: str = Field(..., examples=["09:00"])
    end_time: str = Field(..., examples=["17:00"])
    timezone: str = Field(..., max_length=64, examples=["America/New_York"])


class WeeklyRuleUpdate(BaseModel):
    start_time: str
    end_time: str


class WeeklyRuleResponse(BaseModel):
    id: UUID
    clinician_id: UUID
    day_of_week: int
    day_name: str
    start_time: str
    end_time: str
    timezone: str
    recurrence_rule: str
    is_active: bool


class SingleDayCreate(BaseModel):
    date: str = Field(..., examples=["2024-03-15"])
    start_time: str
    end_time: str
    timezone: Optional[str] = Field(
        None,
        max_length=64,
        description="Authoring zone; omit to show the times as written to every viewer.",
    )


class SingleDayResponse(BaseModel):
    id: UUID
    clinician_id: UUID
    date: date
    start_time: str
    end_time: str
    timezone: Optional[str]


class WindowResponse(BaseModel):
    date: date
    start_time: str
    end_time: str
    is_override: bool
    ends_next_day: bool = False
    start_at: datetime
    end_at: datetime
    source_id: Optional[UUID] = None


class AvailabilityResponse(BaseModel):
    clinician_id: UUID
    timezone: str
    start: date
    end: date
    windows: List[WindowResponse]


class WeeklyWindowResponse(BaseModel):
    rule_id: Optional[UUID]
    start_time: str
    end_time: str
    timezone: str


class WeeklyScheduleResponse(BaseModel):
    clinician_id: UUID
    days: Dict[int, List[WeeklyWindowResponse]]


class SettingsUpdate(BaseModel):
    default_slot_minutes: Optional[int] = None
    min_notice_days: Optional[int] = None
    max_advance_days: Optional[int] = None


class SettingsResponse(BaseModel):
    clinician_id: UUID
    default_slot_minutes: int
    min_notice_days: int
    max_advance_days: int
    is_default: bool = False


class SlotResponse(BaseModel):
    date: date
    start_time: str
    end_time: str
    start_at: datetime
    end_at: datetime
    is_override: bool


class SlotsResponse(BaseModel):
    clinician_id: UUID
    timezone: str
    slot_minutes: int
    slots: List[SlotResponse]


class TimeOffCreate(BaseModel):
    start: str = Field(..., examples=["2024-03-15T09:00"], description="Wall clock in ``timezone`` unless an offset is given")
    end: str = Field(..., examples=["2024-03-15T13:00"])
    timezone: str = Field(..., max_length=64, examples=["America/New_York"])
    all_day: bool = Field(False, description="Use only the dates of start and end; both days are covered in full.")
    reason: Optional[str] = None


class TimeOffResponse(BaseModel):
    id: UUID
    clinician_id: UUID
    start_at: datetime
    end_at: datetime
    timezone: str
    all_day: bool
    reason: Optional[str] = None


class TimeOffListResponse(BaseModel):
    clinician_id: UUID
    periods: List[TimeOffResponse]

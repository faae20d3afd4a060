"""Availability API: materialized availability, weekly rules, single-day overrides, time off, settings and slots."""
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from carecal.api.dependencies import get_availability_service, get_mutation_service
from carecal.api.schemas.availability import (
    AvailabilityResponse,
    SettingsResponse,
    SettingsUpdate,
    SingleDayCreate,
    SingleDayResponse,
    SlotResponse,
    SlotsResponse,
    TimeOffCreate,
    TimeOffListResponse,
    TimeOffResponse,
    WeeklyRuleCreate,
    WeeklyRuleResponse,
    WeeklyRuleUpdate,
    WeeklyScheduleResponse,
    WeeklyWindowResponse,
    WindowResponse,
)
from carecal.infra.database.models.availability import AvailabilityOverride, WeeklyAvailabilityRule
from carecal.infra.database.models.time_off import TimeOff
from carecal.scheduling.civil_time import format_civil_time
from carecal.scheduling.recurrence import day_name
from carecal.scheduling.types import MaterializedWindow
from carecal.services import AvailabilityMutationService, AvailabilityService, SlotSettings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/clinicians/{clinician_id}/availability", tags=["availability"])


def _rule_response(r: WeeklyAvailabilityRule) -> WeeklyRuleResponse:
    return WeeklyRuleResponse(
        id=r.id,
        clinician_id=r.clinician_id,
        day_of_week=r.day_of_week,
        day_name=day_name(r.day_of_week),
        start_time=format_civil_time(r.start_time),
        end_time=format_civil_time(r.end_time),
        timezone=r.timezone,
        recurrence_rule=r.recurrence_rule,
        is_active=r.is_active,
    )


def _override_response(o: AvailabilityOverride) -> SingleDayResponse:
    return SingleDayResponse(
        id=o.id,
        clinician_id=o.clinician_id,
        date=o.date,
        start_time=format_civil_time(o.start_time),
        end_time=format_civil_time(o.end_time),
        timezone=o.timezone,
    )


def _time_off_response(t: TimeOff) -> TimeOffResponse:
    return TimeOffResponse(
        id=t.id,
        clinician_id=t.clinician_id,
        start_at=t.start_at,
        end_at=t.end_at,
        timezone=t.timezone,
        all_day=t.all_day,
        reason=t.reason,
    )


def _window_response(w: MaterializedWindow) -> WindowResponse:
    source_id = w.source.override_id if w.is_override else w.source.rule_id
    return WindowResponse(
        date=w.date,
        start_time=format_civil_time(w.start_time),
        end_time=format_civil_time(w.end_time),
        is_override=w.is_override,
        ends_next_day=w.ends_next_day,
        start_at=w.start_at,
        end_at=w.end_at,
        source_id=source_id,
    )


def _settings_response(clinician_id: UUID, s: SlotSettings) -> SettingsResponse:
    return SettingsResponse(
        clinician_id=clinician_id,
        default_slot_minutes=s.default_slot_minutes,
        min_notice_days=s.min_notice_days,
        max_advance_days=s.max_advance_days,
        is_default=s.is_default,
    )


@router.get("", response_model=AvailabilityResponse)
async def get_availability(
    clinician_id: UUID,
    start: date,
    end: date,
    timezone: Optional[str] = Query(None, description="Viewer zone; defaults to the viewer's stored preference"),
    viewer_id: Optional[UUID] = None,
    svc: AvailabilityService = Depends(get_availability_service),
):
    schedule = await svc.materialize(clinician_id, start, end, timezone, viewer_id)
    return AvailabilityResponse(
        clinician_id=clinician_id,
        timezone=schedule.viewer_timezone_id,
        start=start,
        end=end,
        windows=[_window_response(w) for w in schedule],
    )


@router.get("/weekly", response_model=WeeklyScheduleResponse)
async def get_weekly_schedule(
    clinician_id: UUID,
    svc: AvailabilityService = Depends(get_availability_service),
):
    """Weekly rules grouped by day index, in the zone each rule was authored in."""
    schedule = await svc.weekly_schedule(clinician_id)
    days = {
        day: [
            WeeklyWindowResponse(
                rule_id=w.rule_id,
                start_time=format_civil_time(w.start_time),
                end_time=format_civil_time(w.end_time),
                timezone=w.timezone_id,
            )
            for w in windows
        ]
        for day, windows in schedule.items()
    }
    return WeeklyScheduleResponse(clinician_id=clinician_id, days=days)


@router.post("/weekly", response_model=WeeklyRuleResponse, status_code=status.HTTP_201_CREATED)
async def add_weekly_rule(
    clinician_id: UUID,
    body: WeeklyRuleCreate,
    svc: AvailabilityMutationService = Depends(get_mutation_service),
):
    rule = await svc.add_weekly(clinician_id, body.day_of_week, body.start_time, body.end_time, body.timezone)
    return _rule_response(rule)


@router.patch("/weekly/{rule_id}", response_model=WeeklyRuleResponse)
async def update_weekly_rule(
    clinician_id: UUID,
    rule_id: UUID,
    body: WeeklyRuleUpdate,
    svc: AvailabilityMutationService = Depends(get_mutation_service),
):
    rule = await svc.update_weekly(rule_id, body.start_time, body.end_time, clinician_id=clinician_id)
    return _rule_response(rule)


@router.delete("/weekly/{rule_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_weekly_rule(
    clinician_id: UUID,
    rule_id: UUID,
    svc: AvailabilityMutationService = Depends(get_mutation_service),
):
    await svc.remove_weekly(rule_id, clinician_id=clinician_id)


@router.post("/single-day", response_model=SingleDayResponse, status_code=status.HTTP_201_CREATED)
async def add_single_day_override(
    clinician_id: UUID,
    body: SingleDayCreate,
    svc: AvailabilityMutationService = Depends(get_mutation_service),
):
    override = await svc.add_single_day(
        clinician_id, body.date, body.start_time, body.end_time, body.timezone
    )
    return _override_response(override)


@router.delete("/single-day/{override_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_single_day_override(
    clinician_id: UUID,
    override_id: UUID,
    svc: AvailabilityMutationService = Depends(get_mutation_service),
):
    await svc.remove_single_day(override_id, clinician_id=clinician_id)


@router.get("/time-off", response_model=TimeOffListResponse)
async def list_time_off(
    clinician_id: UUID,
    start: datetime,
    end: datetime,
    svc: AvailabilityService = Depends(get_availability_service),
):
    periods = await svc.list_time_off(clinician_id, start, end)
    return TimeOffListResponse(clinician_id=clinician_id, periods=[_time_off_response(t) for t in periods])


@router.post("/time-off", response_model=TimeOffResponse, status_code=status.HTTP_201_CREATED)
async def add_time_off(
    clinician_id: UUID,
    body: TimeOffCreate,
    svc: AvailabilityMutationService = Depends(get_mutation_service),
):
    period = await svc.add_time_off(
        clinician_id, body.start, body.end, body.timezone, reason=body.reason, all_day=body.all_day
    )
    return _time_off_response(period)


@router.delete("/time-off/{time_off_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_time_off(
    clinician_id: UUID,
    time_off_id: UUID,
    svc: AvailabilityMutationService = Depends(get_mutation_service),
):
    await svc.remove_time_off(time_off_id, clinician_id=clinician_id)


@router.get("/settings", response_model=SettingsResponse)
async def get_settings(
    clinician_id: UUID,
    svc: AvailabilityService = Depends(get_availability_service),
):
    return _settings_response(clinician_id, await svc.get_settings(clinician_id))


@router.put("/settings", response_model=SettingsResponse)
async def update_settings(
    clinician_id: UUID,
    body: SettingsUpdate,
    svc: AvailabilityService = Depends(get_availability_service),
):
    settings = await svc.update_settings(clinician_id, **body.model_dump(exclude_none=True))
    return _settings_response(clinician_id, settings)


@router.get("/slots", response_model=SlotsResponse)
async def get_bookable_slots(
    clinician_id: UUID,
    start: date,
    end: date,
    timezone: Optional[str] = None,
    viewer_id: Optional[UUID] = None,
    svc: AvailabilityService = Depends(get_availability_service),
):
    viewer_tz = await svc.resolve_viewer_timezone(timezone, viewer_id)
    settings = await svc.get_settings(clinician_id)
    slots = await svc.bookable_slots(clinician_id, start, end, viewer_tz, settings=settings)
    return SlotsResponse(
        clinician_id=clinician_id,
        timezone=viewer_tz,
        slot_minutes=settings.default_slot_minutes,
        slots=[
            SlotResponse(
                date=s.date,
                start_time=format_civil_time(s.start_time),
                end_time=format_civil_time(s.end_time),
                start_at=s.start_at,
                end_at=s.end_at,
                is_override=s.is_override,
            )
            for s in slots
        ],
    )

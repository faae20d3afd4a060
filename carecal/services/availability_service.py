"""AvailabilityService: load a clinician's rules and overrides, materialize them for a viewer,
and cut the result into bookable slots minus booked appointments and time off."""
from __future__ import annotations

import datetime as _dt
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from carecal.config import SchedulingConfig, load_scheduling_config
from carecal.core.exceptions import InvalidTimezoneError, ValidationError
from carecal.infra.database.errors import storage_errors
from carecal.infra.database.models.time_off import TimeOff
from carecal.infra.database.repositories import (
    AppointmentRepository,
    AvailabilitySettingsRepository,
    OverrideRepository,
    TimeOffRepository,
    WeeklyRuleRepository,
)
from carecal.scheduling.civil_time import UTC, as_utc, validate_timezone
from carecal.scheduling.materializer import (
    SHIFT_MARGIN_DAYS,
    AvailabilityMaterializer,
    MaterializedSchedule,
    check_range,
    split_into_slots,
)
from carecal.scheduling.projector import project_interval
from carecal.scheduling.types import APPOINTMENT_SCHEDULED, OverrideWindow, WeeklyWindow
from carecal.services.timezone_service import TimezoneService

logger = logging.getLogger(__name__)

_SETTINGS_FIELDS = ("default_slot_minutes", "min_notice_days", "max_advance_days")


@dataclass(frozen=True)
class SlotSettings:
    """Effective booking settings for one clinician (stored row or config defaults)."""

    default_slot_minutes: int
    min_notice_days: int
    max_advance_days: int
    is_default: bool = False


@dataclass(frozen=True)
class BookableSlot:
    date: _dt.date
    start_time: _dt.time
    end_time: _dt.time
    start_at: _dt.datetime
    end_at: _dt.datetime
    is_override: bool
    timezone_id: str


class AvailabilityService:
    def __init__(self, session: AsyncSession, config: Optional[SchedulingConfig] = None) -> None:
        self._config = config or load_scheduling_config()
        self._rule_repo = WeeklyRuleRepository(session)
        self._override_repo = OverrideRepository(session)
        self._appt_repo = AppointmentRepository(session)
        self._settings_repo = AvailabilitySettingsRepository(session)
        self._time_off_repo = TimeOffRepository(session)
        self._timezones = TimezoneService(session)

    async def resolve_viewer_timezone(
        self,
        viewer_timezone_id: Optional[str] = None,
        viewer_user_id: Optional[UUID] = None,
    ) -> str:
        """An explicit zone wins; otherwise the viewer's stored preference is used."""
        if viewer_timezone_id:
            return validate_timezone(viewer_timezone_id)
        if viewer_user_id is not None:
            return await self._timezones.get_timezone_for(viewer_user_id)
        raise InvalidTimezoneError(
            "A viewer timezone or viewer id is required",
            details={"reason": "missing_timezone"},
        )

    async def materialize(
        self,
        clinician_id: UUID,
        range_start: _dt.date,
        range_end: _dt.date,
        viewer_timezone_id: Optional[str] = None,
        viewer_user_id: Optional[UUID] = None,
    ) -> MaterializedSchedule:
        """Availability for ``clinician_id`` over viewer-local dates [range_start, range_end]."""
        check_range(range_start, range_end, self._config.max_range_days)
        viewer_tz = await self.resolve_viewer_timezone(viewer_timezone_id, viewer_user_id)

        margin = _dt.timedelta(days=SHIFT_MARGIN_DAYS)
        with storage_errors("materialize"):
            rules = await self._rule_repo.list_for_clinician(clinician_id)
            overrides = await self._override_repo.list_for_range(
                clinician_id, range_start - margin, range_end + margin
            )
        logger.debug(
            "AvailabilityService: clinician %s has %d rules, %d overrides near %s..%s",
            clinician_id, len(rules), len(overrides), range_start, range_end,
        )
        materializer = AvailabilityMaterializer(
            [WeeklyWindow.from_record(r) for r in rules],
            [OverrideWindow.from_record(o) for o in overrides],
            max_range_days=self._config.max_range_days,
        )
        return materializer.materialize(range_start, range_end, viewer_tz)

    async def weekly_schedule(self, clinician_id: UUID) -> Dict[int, List[WeeklyWindow]]:
        """Active weekly rules grouped by day index (0 = Sunday), in authoring time."""
        with storage_errors("weekly_schedule"):
            rules = await self._rule_repo.list_for_clinician(clinician_id)
        schedule: Dict[int, List[WeeklyWindow]] = {day: [] for day in range(7)}
        for rule in rules:
            schedule[rule.day_of_week].append(WeeklyWindow.from_record(rule))
        return schedule

    # ── Settings ──────────────────────────────────────────────────────────────

    async def get_settings(self, clinician_id: UUID) -> SlotSettings:
        with storage_errors("get_settings"):
            row = await self._settings_repo.get_for_clinician(clinician_id)
        if row is None:
            return SlotSettings(
                default_slot_minutes=self._config.default_slot_minutes,
                min_notice_days=self._config.min_notice_days,
                max_advance_days=self._config.max_advance_days,
                is_default=True,
            )
        return SlotSettings(
            default_slot_minutes=row.default_slot_minutes,
            min_notice_days=row.min_notice_days,
            max_advance_days=row.max_advance_days,
        )

    async def update_settings(self, clinician_id: UUID, **values: Any) -> SlotSettings:
        """Partial update; unspecified fields keep their current (or default) value."""
        unknown = set(values) - set(_SETTINGS_FIELDS)
        if unknown:
            raise ValidationError(
                f"Unknown settings: {', '.join(sorted(unknown))}",
                details={"reason": "unknown_setting", "fields": sorted(unknown)},
            )
        current = await self.get_settings(clinician_id)
        merged = {field: getattr(current, field) for field in _SETTINGS_FIELDS}
        merged.update({k: v for k, v in values.items() if v is not None})
        _validate_settings(merged)

        with storage_errors("update_settings"):
            await self._settings_repo.save_for_clinician(clinician_id, merged)
        logger.info("AvailabilityService: settings for clinician %s updated: %s", clinician_id, merged)
        return SlotSettings(**merged)

    # ── Time off ──────────────────────────────────────────────────────────────

    async def list_time_off(
        self,
        clinician_id: UUID,
        start_at: _dt.datetime,
        end_at: _dt.datetime,
    ) -> List[TimeOff]:
        """Time-off periods overlapping [start_at, end_at), ordered by start."""
        with storage_errors("list_time_off"):
            return await self._time_off_repo.list_overlapping(clinician_id, as_utc(start_at), as_utc(end_at))

    # ── Slots ─────────────────────────────────────────────────────────────────

    async def bookable_slots(
        self,
        clinician_id: UUID,
        range_start: _dt.date,
        range_end: _dt.date,
        viewer_timezone_id: Optional[str] = None,
        viewer_user_id: Optional[UUID] = None,
        *,
        now: Optional[_dt.datetime] = None,
        settings: Optional[SlotSettings] = None,
    ) -> List[BookableSlot]:
        """Free slots of the clinician's default length inside the booking horizon.

        Slots starting before ``now + min_notice_days`` or after
        ``now + max_advance_days`` are dropped, as are slots overlapping a
        scheduled appointment or a time-off period. Pass ``settings`` when the
        caller already loaded them.
        """
        if settings is None:
            settings = await self.get_settings(clinician_id)
        schedule = await self.materialize(
            clinician_id, range_start, range_end, viewer_timezone_id, viewer_user_id
        )
        windows = schedule.to_list()
        if not windows:
            return []

        now = as_utc(now) if now is not None else _dt.datetime.now(UTC).replace(microsecond=0)
        earliest = now + _dt.timedelta(days=settings.min_notice_days)
        latest = now + _dt.timedelta(days=settings.max_advance_days)

        span_start = min(w.start_at for w in windows)
        span_end = max(w.end_at for w in windows)
        with storage_errors("bookable_slots"):
            booked = await self._appt_repo.list_for_clinician(
                clinician_id, span_start, span_end, statuses=[APPOINTMENT_SCHEDULED]
            )
            away = await self._time_off_repo.list_overlapping(clinician_id, span_start, span_end)
        busy: List[Tuple[_dt.datetime, _dt.datetime]] = [
            (as_utc(r.start_at), as_utc(r.end_at)) for r in [*booked, *away]
        ]

        slots: List[BookableSlot] = []
        for window in windows:
            for start_at, end_at in split_into_slots(window, settings.default_slot_minutes):
                if start_at < earliest or start_at > latest:
                    continue
                if any(start_at < b_end and b_start < end_at for b_start, b_end in busy):
                    continue
                shown = project_interval(start_at, end_at, schedule.viewer_timezone_id)
                slots.append(BookableSlot(
                    date=shown.date,
                    start_time=shown.start_time,
                    end_time=shown.end_time,
                    start_at=start_at,
                    end_at=end_at,
                    is_override=window.is_override,
                    timezone_id=schedule.viewer_timezone_id,
                ))
        return slots


def _validate_settings(values: Dict[str, Any]) -> None:
    for field in _SETTINGS_FIELDS:
        value = values[field]
        minimum = 0 if field == "min_notice_days" else 1
        if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
            raise ValidationError(
                f"{field} must be an integer >= {minimum}",
                details={"reason": "invalid_setting", "field": field, "value": value},
            )
    if values["default_slot_minutes"] > 24 * 60:
        raise ValidationError(
            "default_slot_minutes must not exceed one day",
            details={"reason": "invalid_setting", "field": "default_slot_minutes"},
        )
    if values["min_notice_days"] > values["max_advance_days"]:
        raise ValidationError(
            "min_notice_days must not exceed max_advance_days",
            details={"reason": "invalid_setting", "field": "min_notice_days"},
        )

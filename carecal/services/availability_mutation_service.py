"""AvailabilityMutationService: validated writes of weekly rules, single-day overrides and time off.

Every operation validates its inputs before touching storage and raises the
first violation in this order: day index, time format, time range, timezone.
Weekly rules must not overlap another active rule of the clinician on the same day.
"""
from __future__ import annotations

import datetime as _dt
import logging
from typing import Any, Iterable, Optional, Union
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from carecal.core.exceptions import (
    DuplicateOverrideError,
    InvalidTimeRangeError,
    NotFoundError,
    OverlappingAvailabilityError,
    ValidationError,
)
from carecal.infra.database.errors import storage_errors
from carecal.infra.database.models.availability import AvailabilityOverride, WeeklyAvailabilityRule
from carecal.infra.database.models.time_off import TimeOff
from carecal.infra.database.repositories.availability import OverrideRepository, WeeklyRuleRepository
from carecal.infra.database.repositories.time_off import TimeOffRepository
from carecal.scheduling.civil_time import as_utc, parse_civil_time, to_instant, validate_timezone
from carecal.scheduling.recurrence import check_day_index, encode_weekly
from carecal.scheduling.types import CivilDateTime

logger = logging.getLogger(__name__)

TimeInput = Union[str, _dt.time]
InstantInput = Union[str, _dt.datetime, _dt.date]


class AvailabilityMutationService:
    def __init__(self, session: AsyncSession) -> None:
        self._rule_repo = WeeklyRuleRepository(session)
        self._override_repo = OverrideRepository(session)
        self._time_off_repo = TimeOffRepository(session)

    # ── Weekly rules ──────────────────────────────────────────────────────────

    async def add_weekly(
        self,
        clinician_id: UUID,
        day_index: int,
        start_time: TimeInput,
        end_time: TimeInput,
        authoring_timezone_id: str,
    ) -> WeeklyAvailabilityRule:
        day_index = check_day_index(day_index)
        start, end = _parse_range(start_time, end_time)
        timezone_id = validate_timezone(authoring_timezone_id)

        with storage_errors("add_weekly"):
            existing = await self._rule_repo.list_for_clinician(clinician_id)
            _check_no_overlap(existing, day_index, start, end)
            rule = await self._rule_repo.create({
                "clinician_id": clinician_id,
                "day_of_week": day_index,
                "start_time": start,
                "end_time": end,
                "timezone": timezone_id,
                "recurrence_rule": encode_weekly({day_index}),
                "is_active": True,
            })
        logger.info(
            "AvailabilityMutationService: added weekly rule %s for clinician %s (day=%d %s-%s %s)",
            rule.id, clinician_id, day_index, start, end, timezone_id,
        )
        return rule

    async def update_weekly(
        self,
        rule_id: UUID,
        start_time: TimeInput,
        end_time: TimeInput,
        *,
        clinician_id: Optional[UUID] = None,
    ) -> WeeklyAvailabilityRule:
        """Change the window of an existing rule. Day and authoring zone stay as stored."""
        start, end = _parse_range(start_time, end_time)

        with storage_errors("update_weekly"):
            rule = await self._rule_repo.get_by_id(rule_id)
            _check_owned(rule, clinician_id, "weekly_rule", rule_id)
            siblings = await self._rule_repo.list_for_clinician(rule.clinician_id)
            _check_no_overlap(siblings, rule.day_of_week, start, end, skip_id=rule.id)
            updated = await self._rule_repo.update(rule_id, {"start_time": start, "end_time": end})
        _check_owned(updated, clinician_id, "weekly_rule", rule_id)
        logger.info("AvailabilityMutationService: updated weekly rule %s (%s-%s)", rule_id, start, end)
        return updated

    async def remove_weekly(self, rule_id: UUID, *, clinician_id: Optional[UUID] = None) -> None:
        with storage_errors("remove_weekly"):
            rule = await self._rule_repo.get_by_id(rule_id)
            _check_owned(rule, clinician_id, "weekly_rule", rule_id)
            deleted = await self._rule_repo.delete(rule_id)
        if not deleted:
            raise _not_found("weekly_rule", rule_id)
        logger.info("AvailabilityMutationService: removed weekly rule %s", rule_id)

    # ── Single-day overrides ──────────────────────────────────────────────────

    async def add_single_day(
        self,
        clinician_id: UUID,
        date: Union[str, _dt.date],
        start_time: TimeInput,
        end_time: TimeInput,
        authoring_timezone_id: Optional[str] = None,
    ) -> AvailabilityOverride:
        """Create the override for ``date``. A second override for the same date is a conflict.

        ``authoring_timezone_id`` of None stores the times as written; they are
        then shown verbatim to every viewer.
        """
        date = _parse_date(date)
        start, end = _parse_range(start_time, end_time)
        timezone_id = validate_timezone(authoring_timezone_id) if authoring_timezone_id is not None else None

        with storage_errors("add_single_day"):
            existing = await self._override_repo.get_for_date(clinician_id, date)
            if existing is not None:
                raise _duplicate(clinician_id, date, existing.id)
            try:
                override = await self._override_repo.create({
                    "clinician_id": clinician_id,
                    "date": date,
                    "start_time": start,
                    "end_time": end,
                    "timezone": timezone_id,
                })
            except IntegrityError as exc:
                # Lost the race against a concurrent insert for the same date.
                raise _duplicate(clinician_id, date, None) from exc
        logger.info(
            "AvailabilityMutationService: added override %s for clinician %s on %s (%s-%s %s)",
            override.id, clinician_id, date, start, end, timezone_id or "verbatim",
        )
        return override

    async def remove_single_day(self, override_id: UUID, *, clinician_id: Optional[UUID] = None) -> None:
        with storage_errors("remove_single_day"):
            override = await self._override_repo.get_by_id(override_id)
            _check_owned(override, clinician_id, "override", override_id)
            deleted = await self._override_repo.delete(override_id)
        if not deleted:
            raise _not_found("override", override_id)
        logger.info("AvailabilityMutationService: removed override %s", override_id)



    # ── Time off ──────────────────────────────────────────────────────────────

    async def add_time_off(
        self,
        clinician_id: UUID,
        start: InstantInput,
        end: InstantInput,
        timezone_id: str,
        *,
        reason: Optional[str] = None,
        all_day: bool = False,
    ) -> TimeOff:
        """Record a period away. Naive or string inputs are wall-clock times in ``timezone_id``.

        With ``all_day`` only the dates count: the period runs from local
        midnight of the start date to local midnight after the end date. The zone
        is checked first because it decides what the other inputs mean.
        """
        timezone_id = validate_timezone(timezone_id)
        if all_day:
            first, last = _parse_date(start), _parse_date(end)
            if last < first:
                raise InvalidTimeRangeError(
                    f"End date {last} is before start date {first}",
                    details={"reason": "end_before_start", "start": first.isoformat(), "end": last.isoformat()},
                )
            start_at = to_instant(CivilDateTime.from_parts(first, _dt.time(0, 0), timezone_id))
            end_at = to_instant(
                CivilDateTime.from_parts(last + _dt.timedelta(days=1), _dt.time(0, 0), timezone_id)
            )
        else:
            start_at = _parse_instant(start, timezone_id)
            end_at = _parse_instant(end, timezone_id)
            if end_at <= start_at:
                raise InvalidTimeRangeError(
                    "Time off must end after it starts",
                    details={
                        "reason": "end_not_after_start",
                        "start_at": start_at.isoformat(),
                        "end_at": end_at.isoformat(),
                    },
                )

        with storage_errors("add_time_off"):
            period = await self._time_off_repo.create({
                "clinician_id": clinician_id,
                "start_at": start_at,
                "end_at": end_at,
                "timezone": timezone_id,
                "all_day": all_day,
                "reason": reason,
            })
        logger.info(
            "AvailabilityMutationService: added time off %s for clinician %s (%s..%s %s)",
            period.id, clinician_id, start_at.isoformat(), end_at.isoformat(), timezone_id,
        )
        return period

    async def remove_time_off(self, time_off_id: UUID, *, clinician_id: Optional[UUID] = None) -> None:
        with storage_errors("remove_time_off"):
            period = await self._time_off_repo.get_by_id(time_off_id)
            _check_owned(period, clinician_id, "time_off", time_off_id)
            deleted = await self._time_off_repo.delete(time_off_id)
        if not deleted:
            raise _not_found("time_off", time_off_id)
        logger.info("AvailabilityMutationService: removed time off %s", time_off_id)


def _parse_range(start_time: TimeInput, end_time: TimeInput) -> tuple[_dt.time, _dt.time]:
    start = parse_civil_time(start_time)
    end = parse_civil_time(end_time)
    if end <= start:
        raise InvalidTimeRangeError(
            f"End time {end:%H:%M} must be after start time {start:%H:%M}",
            details={
                "reason": "end_not_after_start",
                "start_time": start.strftime("%H:%M"),
                "end_time": end.strftime("%H:%M"),
            },
        )
    return start, end


def _parse_date(value: Union[str, _dt.date]) -> _dt.date:
    if isinstance(value, _dt.datetime):
        return value.date()
    if isinstance(value, _dt.date):
        return value
    if isinstance(value, str):
        try:
            return _dt.date.fromisoformat(value.strip())
        except ValueError as exc:
            raise ValidationError(
                f"Date must be YYYY-MM-DD, got {value!r}",
                details={"reason": "malformed_date", "value": value},
                cause=exc,
            ) from exc
    raise ValidationError(
        f"Date must be YYYY-MM-DD, got {value!r}",
        details={"reason": "malformed_date", "value": str(value)},
    )


def _parse_instant(value: InstantInput, timezone_id: str) -> _dt.datetime:
    """Aware datetimes are instants; naive ones and ISO strings are wall clock in ``timezone_id``."""
    parsed: Any = value
    if isinstance(value, str):
        try:
            parsed = _dt.datetime.fromisoformat(value.strip())
        except ValueError as exc:
            raise ValidationError(
                f"Date-time must be ISO 8601, got {value!r}",
                details={"reason": "malformed_datetime", "value": value},
                cause=exc,
            ) from exc
    if not isinstance(parsed, _dt.datetime):
        raise ValidationError(
            f"Date-time must be ISO 8601, got {value!r}",
            details={"reason": "malformed_datetime", "value": str(value)},
        )
    if parsed.tzinfo is not None:
        return as_utc(parsed)
    return to_instant(CivilDateTime.from_parts(parsed.date(), parsed.time(), timezone_id))


def _check_no_overlap(
    rules: Iterable[Any],
    day_index: int,
    start: _dt.time,
    end: _dt.time,
    *,
    skip_id: Optional[UUID] = None,
) -> None:
    for rule in rules:
        if rule.day_of_week != day_index or rule.id == skip_id or not rule.is_active:
            continue
        if start < rule.end_time and end > rule.start_time:
            raise OverlappingAvailabilityError(
                f"{start:%H:%M}-{end:%H:%M} overlaps rule {rule.id} "
                f"({rule.start_time:%H:%M}-{rule.end_time:%H:%M})",
                details={
                    "reason": "overlapping_rule",
                    "day_of_week": day_index,
                    "existing_id": str(rule.id),
                    "existing_start_time": rule.start_time.strftime("%H:%M"),
                    "existing_end_time": rule.end_time.strftime("%H:%M"),
                },
            )


def _check_owned(record: Any, clinician_id: Optional[UUID], kind: str, record_id: UUID) -> None:
    """Foreign-owned records are reported exactly like missing ones."""
    if record is None or (clinician_id is not None and record.clinician_id != clinician_id):
        raise _not_found(kind, record_id)


def _not_found(kind: str, record_id: UUID) -> NotFoundError:
    return NotFoundError(
        f"{kind} {record_id} not found",
        details={"reason": f"{kind}_not_found", "id": str(record_id)},
    )


def _duplicate(clinician_id: UUID, date: _dt.date, existing_id: Optional[UUID]) -> DuplicateOverrideError:
    details: dict[str, Any] = {
        "reason": "override_exists",
        "clinician_id": str(clinician_id),
        "date": date.isoformat(),
    }
    if existing_id is not None:
        details["existing_id"] = str(existing_id)
    return DuplicateOverrideError(f"An override already exists for {date.isoformat()}", details=details)

"""Value types shared by the scheduling core.

Nothing here touches storage. Records coming out of the database are turned
into ``WeeklyWindow`` / ``OverrideWindow`` before the materializer sees them,
so the core never has to sniff attributes to tell the two apart.
"""
from __future__ import annotations

import datetime as _dt
from dataclasses import dataclass
from typing import Any, ClassVar, Optional, Union
from uuid import UUID

from carecal.core.exceptions import ValidationError

APPOINTMENT_SCHEDULED = "scheduled"
APPOINTMENT_COMPLETED = "completed"
APPOINTMENT_CANCELLED = "cancelled"
APPOINTMENT_STATUSES = (APPOINTMENT_SCHEDULED, APPOINTMENT_COMPLETED, APPOINTMENT_CANCELLED)
TERMINAL_STATUSES = frozenset({APPOINTMENT_COMPLETED, APPOINTMENT_CANCELLED})


@dataclass(frozen=True)
class CivilDateTime:
    """A wall-clock moment in a named IANA zone, to the minute.

    Not comparable across zones; convert to an instant first.
    """

    year: int
    month: int
    day: int
    hour: int
    minute: int
    timezone_id: str

    def __post_init__(self) -> None:
        try:
            _dt.datetime(self.year, self.month, self.day, self.hour, self.minute)
        except (TypeError, ValueError) as exc:
            raise ValidationError(
                f"Invalid civil date/time: {exc}",
                details={"reason": "invalid_civil_datetime"},
                cause=exc,
            ) from exc

    @classmethod
    def from_parts(cls, date: _dt.date, time: _dt.time, timezone_id: str) -> CivilDateTime:
        return cls(date.year, date.month, date.day, time.hour, time.minute, timezone_id)

    def naive(self) -> _dt.datetime:
        return _dt.datetime(self.year, self.month, self.day, self.hour, self.minute)

    def date(self) -> _dt.date:
        return _dt.date(self.year, self.month, self.day)

    def time(self) -> _dt.time:
        return _dt.time(self.hour, self.minute)

    @property
    def weekday_index(self) -> int:
        """0 = Sunday .. 6 = Saturday."""
        return (self.date().weekday() + 1) % 7

    def __str__(self) -> str:
        return f"{self.naive().isoformat(timespec='minutes')}[{self.timezone_id}]"


@dataclass(frozen=True)
class WeeklyWindow:
    """Recurring availability: every week on ``day_of_week``, in the authoring zone."""

    kind: ClassVar[str] = "weekly"

    day_of_week: int
    start_time: _dt.time
    end_time: _dt.time
    timezone_id: str
    rule_id: Optional[UUID] = None
    clinician_id: Optional[UUID] = None

    @classmethod
    def from_record(cls, rule: Any) -> WeeklyWindow:
        return cls(
            day_of_week=rule.day_of_week,
            start_time=rule.start_time,
            end_time=rule.end_time,
            timezone_id=rule.timezone,
            rule_id=rule.id,
            clinician_id=rule.clinician_id,
        )


@dataclass(frozen=True)
class OverrideWindow:
    """Single-day availability that replaces every weekly window on ``date``.

    ``timezone_id`` of None means the times are shown as written, in whatever
    zone the viewer uses.
    """

    kind: ClassVar[str] = "override"

    date: _dt.date
    start_time: _dt.time
    end_time: _dt.time
    timezone_id: Optional[str] = None
    override_id: Optional[UUID] = None
    clinician_id: Optional[UUID] = None

    @classmethod
    def from_record(cls, override: Any) -> OverrideWindow:
        return cls(
            date=override.date,
            start_time=override.start_time,
            end_time=override.end_time,
            timezone_id=override.timezone,
            override_id=override.id,
            clinician_id=override.clinician_id,
        )


AvailabilityWindow = Union[WeeklyWindow, OverrideWindow]


@dataclass(frozen=True)
class DisplayProjection:
    """Read-only rendering of an interval for one viewer zone."""

    date: _dt.date
    start_time: _dt.time
    end_time: _dt.time
    is_in_dst: bool
    timezone_id: str
    ends_next_day: bool = False


@dataclass(frozen=True)
class MaterializedWindow:
    """A concrete availability window, dated in the viewer's zone."""

    date: _dt.date
    start_time: _dt.time
    end_time: _dt.time
    is_override: bool
    start_at: _dt.datetime
    end_at: _dt.datetime
    source: AvailabilityWindow
    ends_next_day: bool = False

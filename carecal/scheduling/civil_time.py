"""Conversion between civil (wall-clock) time in an IANA zone and UTC instants.

DST resolution policy for ``to_instant``:

* spring-forward gap (the wall-clock time never happens): shift forward by the
  size of the gap, so 02:30 on a US DST start day becomes 03:30 daylight time;
* fall-back overlap (the wall-clock time happens twice): take the earlier
  occurrence, i.e. the one still on daylight time.

Both fall out of resolving with ``fold=0`` (PEP 495). ``is_nonexistent`` and
``is_ambiguous`` let callers detect when the policy kicked in.
"""
from __future__ import annotations

import datetime as _dt
from typing import Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from carecal.core.exceptions import InvalidTimeRangeError, InvalidTimezoneError, ValidationError
from carecal.scheduling.types import CivilDateTime

UTC = _dt.timezone.utc

_TIME_FORMATS = ("%H:%M", "%H:%M:%S")
_END_OF_DAY = ("24:00", "24:00:00")


def resolve_zone(timezone_id: str) -> ZoneInfo:
    """Return the ZoneInfo for an IANA id. Abbreviations such as "EST" are rejected."""
    if not isinstance(timezone_id, str) or not timezone_id.strip():
        raise InvalidTimezoneError(
            "Timezone id is required",
            details={"reason": "missing_timezone", "timezone_id": timezone_id},
        )
    # tzdata ships legacy keys like "EST" and "PST8PDT"; only "UTC" and Area/Location
    # names are accepted.
    if timezone_id != "UTC" and "/" not in timezone_id:
        raise InvalidTimezoneError(
            f"{timezone_id!r} is not an IANA Area/Location timezone",
            details={"reason": "not_iana_name", "timezone_id": timezone_id},
        )
    try:
        return ZoneInfo(timezone_id)
    except (ZoneInfoNotFoundError, ValueError, OSError) as exc:
        raise InvalidTimezoneError(
            f"Unknown timezone {timezone_id!r}",
            details={"reason": "unknown_timezone", "timezone_id": timezone_id},
            cause=exc,
        ) from exc


def validate_timezone(timezone_id: str) -> str:
    resolve_zone(timezone_id)
    return timezone_id


def as_utc(instant: _dt.datetime) -> _dt.datetime:
    """Normalise an instant to aware UTC, whole seconds. Naive values are taken as UTC."""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=UTC)
    return instant.astimezone(UTC).replace(microsecond=0)


def to_instant(civil: CivilDateTime) -> _dt.datetime:
    zone = resolve_zone(civil.timezone_id)
    local = civil.naive().replace(tzinfo=zone, fold=0)
    return local.astimezone(UTC)


def to_civil(instant: _dt.datetime, timezone_id: str) -> CivilDateTime:
    zone = resolve_zone(timezone_id)
    local = as_utc(instant).astimezone(zone)
    return CivilDateTime(local.year, local.month, local.day, local.hour, local.minute, timezone_id)


def is_in_dst(instant: _dt.datetime, timezone_id: str) -> bool:
    zone = resolve_zone(timezone_id)
    return bool(as_utc(instant).astimezone(zone).dst())


def utc_offset(instant: _dt.datetime, timezone_id: str) -> _dt.timedelta:
    zone = resolve_zone(timezone_id)
    return as_utc(instant).astimezone(zone).utcoffset()


def is_nonexistent(civil: CivilDateTime) -> bool:
    """True when the wall-clock time falls in a spring-forward gap."""
    zone = resolve_zone(civil.timezone_id)
    naive = civil.naive()
    round_trip = naive.replace(tzinfo=zone).astimezone(UTC).astimezone(zone)
    return round_trip.replace(tzinfo=None) != naive


def is_ambiguous(civil: CivilDateTime) -> bool:
    """True when the wall-clock time occurs twice (fall-back overlap)."""
    if is_nonexistent(civil):
        return False
    zone = resolve_zone(civil.timezone_id)
    naive = civil.naive()
    return (
        naive.replace(tzinfo=zone, fold=0).utcoffset()
        != naive.replace(tzinfo=zone, fold=1).utcoffset()
    )


def parse_civil_time(value: Union[str, _dt.time]) -> _dt.time:
    """Accept "HH:MM", "HH:MM:SS" or a time; return a naive time truncated to the minute.

    Times run 00:00..23:59. "24:00" is refused with its own reason so callers
    can tell users to end a midnight window at 23:59.
    """
    if isinstance(value, _dt.time):
        return _dt.time(value.hour, value.minute)
    if isinstance(value, str):
        if value.strip() in _END_OF_DAY:
            raise InvalidTimeRangeError(
                "24:00 is not a valid time; end a window that runs to midnight at 23:59",
                details={"reason": "end_of_day_not_supported", "value": value, "latest": "23:59"},
            )
        for fmt in _TIME_FORMATS:
            try:
                parsed = _dt.datetime.strptime(value.strip(), fmt).time()
            except ValueError:
                continue
            return _dt.time(parsed.hour, parsed.minute)
    raise ValidationError(
        f"Time must be HH:MM, got {value!r}",
        details={"reason": "malformed_time", "value": str(value)},
    )


def format_civil_time(value: _dt.time) -> str:
    return value.strftime("%H:%M")


def weekday_index(date: _dt.date) -> int:
    """0 = Sunday .. 6 = Saturday."""
    return (date.weekday() + 1) % 7

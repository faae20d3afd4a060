"""Weekly recurrence rules in iCalendar (RFC 5545) RRULE form.

Only one shape is recognised: "every week on these days", e.g.
``RRULE:FREQ=WEEKLY;INTERVAL=1;BYDAY=MO,WE,FR``. Anything else decodes to
None so callers treat it as "no recurrence".
"""
from __future__ import annotations

import datetime as _dt
from typing import Dict, FrozenSet, Iterable, Optional, Set

from dateutil.rrule import rrulestr

from carecal.core.exceptions import InvalidDayIndexError

DAY_CODES = ("SU", "MO", "TU", "WE", "TH", "FR", "SA")
DAY_NAMES = ("sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday")

# 2023-01-01 is a Sunday; expansion starts here so week offsets line up with day indices.
_ANCHOR = _dt.datetime(2023, 1, 1)
_ALLOWED_PARTS = frozenset({"FREQ", "INTERVAL", "BYDAY", "WKST"})


def check_day_index(index: object) -> int:
    if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index <= 6:
        raise InvalidDayIndexError(
            f"Day index must be 0 (Sunday) .. 6 (Saturday), got {index!r}",
            details={"reason": "day_index_out_of_range", "day_index": index},
        )
    return index


def day_code(index: int) -> str:
    return DAY_CODES[check_day_index(index)]


def day_name(index: int) -> str:
    return DAY_NAMES[check_day_index(index)]


def encode_weekly(day_indices: Iterable[int]) -> str:
    days = {check_day_index(i) for i in day_indices}
    if not days:
        raise InvalidDayIndexError(
            "At least one day is required for a weekly rule",
            details={"reason": "no_days"},
        )
    return "RRULE:FREQ=WEEKLY;INTERVAL=1;BYDAY=" + ",".join(DAY_CODES[i] for i in sorted(days))


def decode_weekly(rule: Optional[str]) -> Optional[FrozenSet[int]]:
    if not isinstance(rule, str):
        return None
    line = _rrule_line(rule)
    if line is None:
        return None
    parts = _parse_parts(line)
    if parts is None or not _is_plain_weekly(parts):
        return None

    try:
        parsed = rrulestr(line, dtstart=_ANCHOR)
    except (ValueError, TypeError):
        return None

    weeks: Dict[int, Set[int]] = {0: set(), 1: set()}
    for occurrence in parsed.between(_ANCHOR, _ANCHOR + _dt.timedelta(days=14), inc=True):
        week = (occurrence - _ANCHOR).days // 7
        if week in weeks:
            weeks[week].add((occurrence.weekday() + 1) % 7)
    if not weeks[0] or weeks[0] != weeks[1]:
        return None
    return frozenset(weeks[0])


def _rrule_line(text: str) -> Optional[str]:
    """Pick the single RRULE line; DTSTART lines are tolerated, EXDATE/RDATE are not."""
    rule_lines = []
    for raw in text.strip().splitlines():
        line = raw.strip().upper()
        if not line:
            continue
        if line.startswith("DTSTART"):
            continue
        if line.startswith("RRULE:"):
            rule_lines.append(line)
        elif ":" not in line and "FREQ=" in line:
            rule_lines.append("RRULE:" + line)
        else:
            return None
    return rule_lines[0] if len(rule_lines) == 1 else None


def _parse_parts(line: str) -> Optional[Dict[str, str]]:
    parts: Dict[str, str] = {}
    for token in line[len("RRULE:"):].split(";"):
        if not token:
            continue
        key, sep, value = token.partition("=")
        if not sep or not key or not value or key in parts:
            return None
        parts[key] = value
    return parts


def _is_plain_weekly(parts: Dict[str, str]) -> bool:
    if set(parts) - _ALLOWED_PARTS:
        return False
    if parts.get("FREQ") != "WEEKLY" or parts.get("INTERVAL", "1") != "1":
        return False
    codes = parts.get("BYDAY", "").split(",")
    return bool(codes) and all(code in DAY_CODES for code in codes)

"""AvailabilityMaterializer: weekly rules + single-day overrides -> dated windows.

For every authoring date D, an override for D replaces all weekly windows for
D; otherwise each weekly rule whose day matches D yields one window. Windows
are converted {D, start, end, authoring zone} -> instants -> viewer civil time
and dated by the viewer-local date of their start.

The requested range is in viewer-local dates. UTC offsets differ by at most
26 hours, so a window can move at most two dates under conversion; authoring
dates are scanned with that margin and results are released through a small
heap once no later authoring date can produce an earlier window.
"""
from __future__ import annotations

import datetime as _dt
import heapq
import itertools
import logging
from collections import defaultdict
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from carecal.core.exceptions import ValidationError
from carecal.scheduling.civil_time import resolve_zone, to_instant, weekday_index
from carecal.scheduling.projector import project_interval
from carecal.scheduling.types import (
    AvailabilityWindow,
    CivilDateTime,
    MaterializedWindow,
    OverrideWindow,
    WeeklyWindow,
)

logger = logging.getLogger(__name__)

SHIFT_MARGIN_DAYS = 2
_ONE_DAY = _dt.timedelta(days=1)


class MaterializedSchedule:
    """Lazy, finite, restartable sequence of MaterializedWindow.

    Every iteration recomputes from the materializer's inputs, so iterating
    twice yields the same windows in the same order.
    """

    def __init__(
        self,
        materializer: AvailabilityMaterializer,
        range_start: _dt.date,
        range_end: _dt.date,
        viewer_timezone_id: str,
    ) -> None:
        self._materializer = materializer
        self.range_start = range_start
        self.range_end = range_end
        self.viewer_timezone_id = viewer_timezone_id

    def __iter__(self) -> Iterator[MaterializedWindow]:
        return self._materializer._generate(self.range_start, self.range_end, self.viewer_timezone_id)

    def to_list(self) -> List[MaterializedWindow]:
        return list(self)

    def for_date(self, date: _dt.date) -> List[MaterializedWindow]:
        return [w for w in self if w.date == date]


class AvailabilityMaterializer:
    def __init__(
        self,
        weekly_windows: Iterable[WeeklyWindow],
        override_windows: Iterable[OverrideWindow] = (),
        *,
        max_range_days: Optional[int] = None,
    ) -> None:
        self._weekly_by_day: Dict[int, List[WeeklyWindow]] = defaultdict(list)
        for window in weekly_windows:
            self._weekly_by_day[window.day_of_week].append(window)
        for windows in self._weekly_by_day.values():
            windows.sort(key=lambda w: (w.start_time, w.end_time))

        self._overrides: Dict[_dt.date, OverrideWindow] = {}
        for override in override_windows:
            if override.date in self._overrides:
                # Storage enforces one override per (clinician, date); keep the first if it slipped.
                logger.warning(
                    "AvailabilityMaterializer: duplicate override for %s ignored (%s)",
                    override.date, override.override_id,
                )
                continue
            self._overrides[override.date] = override

        self._max_range_days = max_range_days

    def materialize(
        self,
        range_start: _dt.date,
        range_end: _dt.date,
        viewer_timezone_id: str,
    ) -> MaterializedSchedule:
        check_range(range_start, range_end, self._max_range_days)
        # Fail fast on bad zones instead of halfway through iteration.
        resolve_zone(viewer_timezone_id)
        for windows in self._weekly_by_day.values():
            for window in windows:
                resolve_zone(window.timezone_id)
        for override in self._overrides.values():
            if override.timezone_id is not None:
                resolve_zone(override.timezone_id)
        return MaterializedSchedule(self, range_start, range_end, viewer_timezone_id)

    def windows_for_authoring_date(
        self,
        date: _dt.date,
        viewer_timezone_id: str,
    ) -> Iterator[MaterializedWindow]:
        override = self._overrides.get(date)
        if override is not None:
            window = _convert(date, override, override.timezone_id or viewer_timezone_id, viewer_timezone_id)
            if window is not None:
                yield window
            return
        for rule in self._weekly_by_day.get(weekday_index(date), ()):
            window = _convert(date, rule, rule.timezone_id, viewer_timezone_id)
            if window is not None:
                yield window

    def _generate(
        self,
        range_start: _dt.date,
        range_end: _dt.date,
        viewer_timezone_id: str,
    ) -> Iterator[MaterializedWindow]:
        margin = _dt.timedelta(days=SHIFT_MARGIN_DAYS)
        heap: List[Tuple[_dt.date, _dt.time, _dt.datetime, int, MaterializedWindow]] = []
        seq = itertools.count()

        day = range_start - margin
        last = range_end + margin
        while day <= last:
            for window in self.windows_for_authoring_date(day, viewer_timezone_id):
                if range_start <= window.date <= range_end:
                    heapq.heappush(heap, (window.date, window.start_time, window.start_at, next(seq), window))
            # Later authoring dates only produce viewer dates >= day + 1 - margin.
            release_before = day + _ONE_DAY - margin
            while heap and heap[0][0] < release_before:
                yield heapq.heappop(heap)[-1]
            day += _ONE_DAY

        while heap:
            yield heapq.heappop(heap)[-1]


def check_range(range_start: _dt.date, range_end: _dt.date, max_range_days: Optional[int] = None) -> int:
    """Validate an inclusive date range and return its length in days."""
    if range_end < range_start:
        raise ValidationError(
            "Range end must not be before range start",
            details={
                "reason": "range_end_before_start",
                "range_start": range_start.isoformat(),
                "range_end": range_end.isoformat(),
            },
        )
    days = (range_end - range_start).days + 1
    if max_range_days is not None and days > max_range_days:
        raise ValidationError(
            f"Range covers {days} days, limit is {max_range_days}",
            details={"reason": "range_too_long", "days": days, "max_days": max_range_days},
        )
    return days


def _convert(
    date: _dt.date,
    window: AvailabilityWindow,
    authoring_timezone_id: str,
    viewer_timezone_id: str,
) -> Optional[MaterializedWindow]:
    start_at = to_instant(CivilDateTime.from_parts(date, window.start_time, authoring_timezone_id))
    end_at = to_instant(CivilDateTime.from_parts(date, window.end_time, authoring_timezone_id))
    if end_at <= start_at:
        # Only possible when the start sits in a DST gap that swallows the whole window.
        logger.debug(
            "AvailabilityMaterializer: window %s-%s on %s collapses in %s, skipped",
            window.start_time, window.end_time, date, authoring_timezone_id,
        )
        return None
    shown = project_interval(start_at, end_at, viewer_timezone_id)
    return MaterializedWindow(
        date=shown.date,
        start_time=shown.start_time,
        end_time=shown.end_time,
        is_override=isinstance(window, OverrideWindow),
        start_at=start_at,
        end_at=end_at,
        source=window,
        ends_next_day=shown.ends_next_day,
    )


def split_into_slots(
    window: MaterializedWindow,
    slot_minutes: int,
    *,
    step_minutes: Optional[int] = None,
) -> Iterator[Tuple[_dt.datetime, _dt.datetime]]:
    """Yield (start, end) instants of fixed-length slots that fit inside the window."""
    if slot_minutes <= 0 or (step_minutes is not None and step_minutes <= 0):
        raise ValidationError(
            "Slot length and step must be positive",
            details={"reason": "invalid_slot_length", "slot_minutes": slot_minutes},
        )
    length = _dt.timedelta(minutes=slot_minutes)
    step = _dt.timedelta(minutes=step_minutes or slot_minutes)
    cursor = window.start_at
    while cursor + length <= window.end_at:
        yield cursor, cursor + length
        cursor += step

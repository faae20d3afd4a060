"""Per-viewer display projection of stored instants."""
from __future__ import annotations

import datetime as _dt
from typing import Any

from carecal.scheduling.civil_time import is_in_dst, to_civil
from carecal.scheduling.types import DisplayProjection


def project_interval(
    start_at: _dt.datetime,
    end_at: _dt.datetime,
    viewer_timezone_id: str,
) -> DisplayProjection:
    """Render an instant pair as civil date/times in the viewer's zone.

    The date is the viewer-local date of the start; ``ends_next_day`` is set
    when the end lands on a later viewer-local date.
    """
    start = to_civil(start_at, viewer_timezone_id)
    end = to_civil(end_at, viewer_timezone_id)
    return DisplayProjection(
        date=start.date(),
        start_time=start.time(),
        end_time=end.time(),
        is_in_dst=is_in_dst(start_at, viewer_timezone_id),
        timezone_id=viewer_timezone_id,
        ends_next_day=end.date() > start.date(),
    )


def project(appointment: Any, viewer_timezone_id: str) -> DisplayProjection:
    """Project an appointment (``start_at`` / ``end_at`` instants) for one viewer."""
    return project_interval(appointment.start_at, appointment.end_at, viewer_timezone_id)

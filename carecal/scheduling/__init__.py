"""
carecal.scheduling – pure, synchronous scheduling core (no I/O).

Public API
──────────
  civil time:  to_instant, to_civil, is_in_dst, resolve_zone, parse_civil_time
  recurrence:  encode_weekly, decode_weekly
  availability: AvailabilityMaterializer, MaterializedSchedule, split_into_slots
  display:     project, project_interval
  types:       CivilDateTime, WeeklyWindow, OverrideWindow, AvailabilityWindow,
               MaterializedWindow, DisplayProjection
"""
from carecal.scheduling.civil_time import (
    format_civil_time,
    is_ambiguous,
    is_in_dst,
    is_nonexistent,
    parse_civil_time,
    resolve_zone,
    to_civil,
    to_instant,
    utc_offset,
    validate_timezone,
    weekday_index,
)
from carecal.scheduling.materializer import (
    AvailabilityMaterializer,
    MaterializedSchedule,
    check_range,
    split_into_slots,
)
from carecal.scheduling.projector import project, project_interval
from carecal.scheduling.recurrence import decode_weekly, encode_weekly
from carecal.scheduling.types import (
    AvailabilityWindow,
    CivilDateTime,
    DisplayProjection,
    MaterializedWindow,
    OverrideWindow,
    WeeklyWindow,
)

__all__ = [
    "to_instant",
    "to_civil",
    "is_in_dst",
    "is_nonexistent",
    "is_ambiguous",
    "utc_offset",
    "resolve_zone",
    "validate_timezone",
    "parse_civil_time",
    "format_civil_time",
    "weekday_index",
    "encode_weekly",
    "decode_weekly",
    "AvailabilityMaterializer",
    "MaterializedSchedule",
    "split_into_slots",
    "check_range",
    "project",
    "project_interval",
    "CivilDateTime",
    "WeeklyWindow",
    "OverrideWindow",
    "AvailabilityWindow",
    "MaterializedWindow",
    "DisplayProjection",
]

"""
carecal.config.scheduling – limits and defaults for availability materialization.

Env vars: SCHEDULING_MAX_RANGE_DAYS, SCHEDULING_DEFAULT_SLOT_MINUTES,
SCHEDULING_MIN_NOTICE_DAYS, SCHEDULING_MAX_ADVANCE_DAYS.
"""
from __future__ import annotations

import os
from dataclasses import dataclass

from carecal.config.validators import validate_nonnegative_int, validate_positive_int


@dataclass(frozen=True)
class SchedulingConfig:
    """Materializer bounds and the defaults used when a clinician has no settings row."""

    max_range_days: int = 92
    """Longest date range a single materialize call may cover (inclusive)."""

    default_slot_minutes: int = 50
    min_notice_days: int = 1
    max_advance_days: int = 60

    def __post_init__(self) -> None:
        validate_positive_int(self.max_range_days, "max_range_days")
        validate_positive_int(self.default_slot_minutes, "default_slot_minutes")
        if self.default_slot_minutes > 24 * 60:
            raise ValueError("default_slot_minutes must not exceed one day")
        validate_nonnegative_int(self.min_notice_days, "min_notice_days")
        validate_positive_int(self.max_advance_days, "max_advance_days")
        if self.min_notice_days > self.max_advance_days:
            raise ValueError("min_notice_days must not exceed max_advance_days")

    @classmethod
    def from_env(cls) -> SchedulingConfig:
        return cls(
            max_range_days=int(os.environ.get("SCHEDULING_MAX_RANGE_DAYS", 92)),
            default_slot_minutes=int(os.environ.get("SCHEDULING_DEFAULT_SLOT_MINUTES", 50)),
            min_notice_days=int(os.environ.get("SCHEDULING_MIN_NOTICE_DAYS", 1)),
            max_advance_days=int(os.environ.get("SCHEDULING_MAX_ADVANCE_DAYS", 60)),
        )


def load_scheduling_config() -> SchedulingConfig:
    return SchedulingConfig.from_env()

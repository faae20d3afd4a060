"""Availability repositories: weekly rules and single-day overrides."""
from __future__ import annotations

import datetime as _dt
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select

from carecal.infra.database.models.availability import AvailabilityOverride, WeeklyAvailabilityRule
from carecal.infra.database.repositories.base import BaseRepository


class WeeklyRuleRepository(BaseRepository[WeeklyAvailabilityRule]):
    model = WeeklyAvailabilityRule

    async def list_for_clinician(
        self,
        clinician_id: UUID,
        *,
        active_only: bool = True,
    ) -> List[WeeklyAvailabilityRule]:
        stmt = (
            select(WeeklyAvailabilityRule)
            .where(WeeklyAvailabilityRule.clinician_id == clinician_id)
            .order_by(WeeklyAvailabilityRule.day_of_week, WeeklyAvailabilityRule.start_time)
        )
        if active_only:
            stmt = stmt.where(WeeklyAvailabilityRule.is_active.is_(True))
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class OverrideRepository(BaseRepository[AvailabilityOverride]):
    model = AvailabilityOverride

    async def get_for_date(self, clinician_id: UUID, date: _dt.date) -> Optional[AvailabilityOverride]:
        stmt = (
            select(AvailabilityOverride)
            .where(AvailabilityOverride.clinician_id == clinician_id)
            .where(AvailabilityOverride.date == date)
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_for_range(
        self,
        clinician_id: UUID,
        start_date: _dt.date,
        end_date: _dt.date,
    ) -> List[AvailabilityOverride]:
        stmt = (
            select(AvailabilityOverride)
            .where(AvailabilityOverride.clinician_id == clinician_id)
            .where(AvailabilityOverride.date >= start_date)
            .where(AvailabilityOverride.date <= end_date)
            .order_by(AvailabilityOverride.date)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

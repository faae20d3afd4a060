"""Time-off repository."""
from __future__ import annotations

import datetime as _dt
from typing import List
from uuid import UUID

from sqlalchemy import select

from carecal.infra.database.models.time_off import TimeOff
from carecal.infra.database.repositories.base import BaseRepository


class TimeOffRepository(BaseRepository[TimeOff]):
    model = TimeOff

    async def list_overlapping(
        self,
        clinician_id: UUID,
        start_at: _dt.datetime,
        end_at: _dt.datetime,
    ) -> List[TimeOff]:
        """Time-off periods overlapping [start_at, end_at), ordered by start."""
        stmt = (
            select(TimeOff)
            .where(TimeOff.clinician_id == clinician_id)
            .where(TimeOff.start_at < end_at)
            .where(TimeOff.end_at > start_at)
            .order_by(TimeOff.start_at)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

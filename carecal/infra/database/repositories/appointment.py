"""Appointment repository."""
from __future__ import annotations

import datetime as _dt
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy import select

from carecal.infra.database.models.appointment import Appointment
from carecal.infra.database.repositories.base import BaseRepository


class AppointmentRepository(BaseRepository[Appointment]):
    model = Appointment

    async def list_for_clinician(
        self,
        clinician_id: UUID,
        start_at: _dt.datetime,
        end_at: _dt.datetime,
        *,
        statuses: Optional[Sequence[str]] = None,
    ) -> List[Appointment]:
        """Appointments overlapping [start_at, end_at), ordered by start."""
        stmt = (
            select(Appointment)
            .where(Appointment.clinician_id == clinician_id)
            .where(Appointment.start_at < end_at)
            .where(Appointment.end_at > start_at)
            .order_by(Appointment.start_at)
        )
        if statuses:
            stmt = stmt.where(Appointment.status.in_(list(statuses)))
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def update_status(self, id: UUID, status: str) -> Optional[Appointment]:
        return await self.update(id, {"status": status})

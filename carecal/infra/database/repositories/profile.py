"""User profile and availability settings repositories."""
from __future__ import annotations

from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy import select

from carecal.infra.database.models.profile import AvailabilitySettings, UserProfile
from carecal.infra.database.repositories.base import BaseRepository


class UserProfileRepository(BaseRepository[UserProfile]):
    model = UserProfile

    async def set_time_zone(self, user_id: UUID, time_zone: str) -> Optional[UserProfile]:
        return await self.update(user_id, {"time_zone": time_zone})


class AvailabilitySettingsRepository(BaseRepository[AvailabilitySettings]):
    model = AvailabilitySettings

    async def get_for_clinician(self, clinician_id: UUID) -> Optional[AvailabilitySettings]:
        stmt = select(AvailabilitySettings).where(AvailabilitySettings.clinician_id == clinician_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def save_for_clinician(self, clinician_id: UUID, values: Dict[str, Any]) -> AvailabilitySettings:
        settings, _ = await self.upsert({"clinician_id": clinician_id}, values)
        return settings

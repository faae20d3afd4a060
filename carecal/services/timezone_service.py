"""TimezoneService: look up and change a user's preferred IANA timezone."""
from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from carecal.core.exceptions import InvalidTimezoneError, NotFoundError
from carecal.infra.database.errors import storage_errors
from carecal.infra.database.models.profile import UserProfile
from carecal.infra.database.repositories.profile import UserProfileRepository
from carecal.scheduling.civil_time import validate_timezone

logger = logging.getLogger(__name__)


class TimezoneService:
    def __init__(self, session: AsyncSession) -> None:
        self._repo = UserProfileRepository(session)

    async def get_timezone_for(self, user_id: UUID) -> str:
        """Return the stored timezone id.

        Raises NotFoundError when the profile does not exist and
        InvalidTimezoneError when it holds no usable IANA id.
        """
        with storage_errors("get_timezone_for"):
            profile = await self._repo.get_by_id(user_id)
        if profile is None:
            raise NotFoundError(
                f"User profile {user_id} not found",
                details={"reason": "profile_not_found", "user_id": str(user_id)},
            )
        stored = (profile.time_zone or "").strip()
        if not stored:
            raise InvalidTimezoneError(
                f"User {user_id} has no timezone set",
                details={"reason": "missing_timezone", "user_id": str(user_id)},
            )
        return validate_timezone(stored)

    async def set_timezone_for(self, user_id: UUID, timezone_id: str) -> UserProfile:
        timezone_id = validate_timezone(timezone_id.strip() if isinstance(timezone_id, str) else timezone_id)
        with storage_errors("set_timezone_for"):
            profile = await self._repo.set_time_zone(user_id, timezone_id)
        if profile is None:
            raise NotFoundError(
                f"User profile {user_id} not found",
                details={"reason": "profile_not_found", "user_id": str(user_id)},
            )
        logger.info("TimezoneService: user %s timezone set to %s", user_id, timezone_id)
        return profile

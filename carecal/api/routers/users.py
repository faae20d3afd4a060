"""User timezone preference API."""
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends

from carecal.api.dependencies import get_timezone_service
from carecal.api.schemas.users import TimezoneResponse, TimezoneUpdate
from carecal.services import TimezoneService

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/{user_id}/timezone", response_model=TimezoneResponse)
async def get_user_timezone(
    user_id: UUID,
    svc: TimezoneService = Depends(get_timezone_service),
):
    return TimezoneResponse(user_id=user_id, timezone=await svc.get_timezone_for(user_id))


@router.put("/{user_id}/timezone", response_model=TimezoneResponse)
async def set_user_timezone(
    user_id: UUID,
    body: TimezoneUpdate,
    svc: TimezoneService = Depends(get_timezone_service),
):
    profile = await svc.set_timezone_for(user_id, body.timezone)
    return TimezoneResponse(user_id=user_id, timezone=profile.time_zone)

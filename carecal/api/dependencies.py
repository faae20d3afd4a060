"""FastAPI dependency providers."""
from __future__ import annotations

from collections.abc import AsyncGenerator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from carecal.services import (
    AppointmentService,
    AvailabilityMutationService,
    AvailabilityService,
    TimezoneService,
)


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Yield a transactional AsyncSession from the app-level session factory."""
    session_factory = request.app.state.session_factory
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_availability_service(
    request: Request,
    session: AsyncSession = Depends(get_session),
) -> AvailabilityService:
    return AvailabilityService(session, getattr(request.app.state, "scheduling_config", None))


def get_mutation_service(session: AsyncSession = Depends(get_session)) -> AvailabilityMutationService:
    return AvailabilityMutationService(session)


def get_appointment_service(session: AsyncSession = Depends(get_session)) -> AppointmentService:
    return AppointmentService(session)


def get_timezone_service(session: AsyncSession = Depends(get_session)) -> TimezoneService:
    return TimezoneService(session)

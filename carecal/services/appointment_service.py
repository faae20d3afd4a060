"""AppointmentService: book, reschedule and close appointments; project them for viewers."""
from __future__ import annotations

import datetime as _dt
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from carecal.core.exceptions import (
    AppointmentClosedError,
    InvalidTimeRangeError,
    InvalidTimezoneError,
    NotFoundError,
)
from carecal.infra.database.errors import storage_errors
from carecal.infra.database.models.appointment import Appointment
from carecal.infra.database.repositories.appointment import AppointmentRepository
from carecal.scheduling.civil_time import as_utc, parse_civil_time, to_instant, validate_timezone
from carecal.scheduling.projector import project
from carecal.scheduling.types import (
    APPOINTMENT_CANCELLED,
    APPOINTMENT_COMPLETED,
    APPOINTMENT_SCHEDULED,
    TERMINAL_STATUSES,
    CivilDateTime,
    DisplayProjection,
)
from carecal.services.timezone_service import TimezoneService

logger = logging.getLogger(__name__)

DEFAULT_APPOINTMENT_TYPE = "therapy_session"


class AppointmentService:
    def __init__(self, session: AsyncSession) -> None:
        self._repo = AppointmentRepository(session)
        self._timezones = TimezoneService(session)

    async def book(
        self,
        client_id: UUID,
        clinician_id: UUID,
        start_at: _dt.datetime,
        end_at: _dt.datetime,
        source_timezone_id: str,
        *,
        appointment_type: str = DEFAULT_APPOINTMENT_TYPE,
        notes: Optional[str] = None,
    ) -> Appointment:
        """Store an appointment from instants. ``source_timezone_id`` records where it was booked."""
        start_at, end_at = _check_instants(start_at, end_at)
        source_timezone_id = validate_timezone(source_timezone_id)

        with storage_errors("book"):
            appt = await self._repo.create({
                "client_id": client_id,
                "clinician_id": clinician_id,
                "start_at": start_at,
                "end_at": end_at,
                "source_timezone": source_timezone_id,
                "appointment_type": appointment_type,
                "status": APPOINTMENT_SCHEDULED,
                "notes": notes,
            })
        logger.info(
            "AppointmentService: booked appointment %s clinician=%s client=%s %s..%s (%s)",
            appt.id, clinician_id, client_id, start_at.isoformat(), end_at.isoformat(), source_timezone_id,
        )
        return appt

    async def book_local(
        self,
        client_id: UUID,
        clinician_id: UUID,
        date: _dt.date,
        start_time: Union[str, _dt.time],
        end_time: Union[str, _dt.time],
        source_timezone_id: str,
        **kwargs: Any,
    ) -> Appointment:
        """Book from wall-clock inputs in ``source_timezone_id``.

        The times are converted with the DST policy of ``to_instant``; a start
        in a spring-forward gap moves forward with the gap.
        """
        start = parse_civil_time(start_time)
        end = parse_civil_time(end_time)
        if end <= start:
            raise InvalidTimeRangeError(
                f"End time {end:%H:%M} must be after start time {start:%H:%M}",
                details={"reason": "end_not_after_start"},
            )
        start_at = to_instant(CivilDateTime.from_parts(date, start, source_timezone_id))
        end_at = to_instant(CivilDateTime.from_parts(date, end, source_timezone_id))
        return await self.book(client_id, clinician_id, start_at, end_at, source_timezone_id, **kwargs)

    async def reschedule(
        self,
        appointment_id: UUID,
        start_at: _dt.datetime,
        end_at: _dt.datetime,
        *,
        source_timezone_id: Optional[str] = None,
        clinician_id: Optional[UUID] = None,
    ) -> Appointment:
        start_at, end_at = _check_instants(start_at, end_at)
        if source_timezone_id is not None:
            source_timezone_id = validate_timezone(source_timezone_id)

        with storage_errors("reschedule"):
            appt = await self._load_open(appointment_id, clinician_id)
            updates: Dict[str, Any] = {"start_at": start_at, "end_at": end_at}
            if source_timezone_id is not None:
                updates["source_timezone"] = source_timezone_id
            updated = await self._repo.update(appt.id, updates)
        logger.info(
            "AppointmentService: rescheduled appointment %s to %s..%s",
            appointment_id, start_at.isoformat(), end_at.isoformat(),
        )
        return updated

    async def cancel(self, appointment_id: UUID, *, clinician_id: Optional[UUID] = None) -> Appointment:
        return await self._transition(appointment_id, APPOINTMENT_CANCELLED, clinician_id)

    async def complete(self, appointment_id: UUID, *, clinician_id: Optional[UUID] = None) -> Appointment:
        return await self._transition(appointment_id, APPOINTMENT_COMPLETED, clinician_id)

    async def get(self, appointment_id: UUID, *, clinician_id: Optional[UUID] = None) -> Appointment:
        with storage_errors("get_appointment"):
            appt = await self._repo.get_by_id(appointment_id)
        return _check_owned(appt, appointment_id, clinician_id)

    async def list_for_clinician(
        self,
        clinician_id: UUID,
        start_at: _dt.datetime,
        end_at: _dt.datetime,
        *,
        statuses: Optional[Sequence[str]] = None,
    ) -> List[Appointment]:
        start_at, end_at = _check_instants(start_at, end_at)
        with storage_errors("list_appointments"):
            return await self._repo.list_for_clinician(clinician_id, start_at, end_at, statuses=statuses)

    async def project_for_viewer(
        self,
        appointment_id: UUID,
        viewer_timezone_id: Optional[str] = None,
        viewer_user_id: Optional[UUID] = None,
    ) -> Tuple[Appointment, DisplayProjection]:
        """Return the appointment together with its rendering in the viewer's zone."""
        if viewer_timezone_id:
            viewer_tz = validate_timezone(viewer_timezone_id)
        elif viewer_user_id is not None:
            viewer_tz = await self._timezones.get_timezone_for(viewer_user_id)
        else:
            raise InvalidTimezoneError(
                "A viewer timezone or viewer id is required",
                details={"reason": "missing_timezone"},
            )
        appt = await self.get(appointment_id)
        return appt, project(appt, viewer_tz)

    async def _load_open(self, appointment_id: UUID, clinician_id: Optional[UUID]) -> Appointment:
        appt = _check_owned(await self._repo.get_by_id(appointment_id), appointment_id, clinician_id)
        if appt.status in TERMINAL_STATUSES:
            raise AppointmentClosedError(
                f"Appointment {appointment_id} is {appt.status}",
                details={"reason": f"appointment_{appt.status}", "status": appt.status},
            )
        return appt

    async def _transition(
        self,
        appointment_id: UUID,
        status: str,
        clinician_id: Optional[UUID],
    ) -> Appointment:
        with storage_errors(f"set_status_{status}"):
            appt = await self._load_open(appointment_id, clinician_id)
            updated = await self._repo.update_status(appt.id, status)
        logger.info("AppointmentService: appointment %s -> %s", appointment_id, status)
        return updated


def _check_instants(start_at: _dt.datetime, end_at: _dt.datetime) -> Tuple[_dt.datetime, _dt.datetime]:
    start_at, end_at = as_utc(start_at), as_utc(end_at)
    if end_at <= start_at:
        raise InvalidTimeRangeError(
            "Appointment end must be after its start",
            details={
                "reason": "end_not_after_start",
                "start_at": start_at.isoformat(),
                "end_at": end_at.isoformat(),
            },
        )
    return start_at, end_at


def _check_owned(appt: Optional[Appointment], appointment_id: UUID, clinician_id: Optional[UUID]) -> Appointment:
    if appt is None or (clinician_id is not None and appt.clinician_id != clinician_id):
        raise NotFoundError(
            f"Appointment {appointment_id} not found",
            details={"reason": "appointment_not_found", "id": str(appointment_id)},
        )
    return appt

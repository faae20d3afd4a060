"""Appointments API: book, reschedule, close and view appointments in any viewer zone."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from carecal.api.dependencies import get_appointment_service
from carecal.api.schemas.appointments import (
    AppointmentCreate,
    AppointmentReschedule,
    AppointmentResponse,
    AppointmentViewResponse,
    DisplayProjectionResponse,
)
from carecal.core.exceptions import ValidationError
from carecal.infra.database.models.appointment import Appointment
from carecal.scheduling.civil_time import format_civil_time
from carecal.services import AppointmentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["appointments"])
clinician_router = APIRouter(prefix="/clinicians", tags=["appointments"])


def _to_response(a: Appointment) -> AppointmentResponse:
    return AppointmentResponse(
        id=a.id,
        client_id=a.client_id,
        clinician_id=a.clinician_id,
        start_at=a.start_at,
        end_at=a.end_at,
        source_timezone=a.source_timezone,
        appointment_type=a.appointment_type,
        status=a.status,
        notes=a.notes,
    )


@router.post("", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
async def book_appointment(
    body: AppointmentCreate,
    svc: AppointmentService = Depends(get_appointment_service),
):
    extra = {"appointment_type": body.appointment_type, "notes": body.notes}
    if body.start_at is not None and body.end_at is not None:
        appt = await svc.book(
            body.client_id, body.clinician_id, body.start_at, body.end_at, body.timezone, **extra
        )
    elif body.date and body.start_time and body.end_time:
        try:
            day = datetime.strptime(body.date, "%Y-%m-%d").date()
        except ValueError as exc:
            raise ValidationError(
                f"Date must be YYYY-MM-DD, got {body.date!r}",
                details={"reason": "malformed_date", "value": body.date},
                cause=exc,
            ) from exc
        appt = await svc.book_local(
            body.client_id, body.clinician_id, day, body.start_time, body.end_time, body.timezone, **extra
        )
    else:
        raise ValidationError(
            "Provide start_at and end_at, or date, start_time and end_time",
            details={"reason": "missing_times"},
        )
    return _to_response(appt)


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: UUID,
    svc: AppointmentService = Depends(get_appointment_service),
):
    return _to_response(await svc.get(appointment_id))


@router.get("/{appointment_id}/view", response_model=AppointmentViewResponse)
async def view_appointment(
    appointment_id: UUID,
    timezone: Optional[str] = Query(None, description="Viewer zone; defaults to the viewer's stored preference"),
    viewer_id: Optional[UUID] = None,
    svc: AppointmentService = Depends(get_appointment_service),
):
    appt, view = await svc.project_for_viewer(appointment_id, timezone, viewer_id)
    return AppointmentViewResponse(
        appointment=_to_response(appt),
        view=DisplayProjectionResponse(
            date=view.date,
            start_time=format_civil_time(view.start_time),
            end_time=format_civil_time(view.end_time),
            is_in_dst=view.is_in_dst,
            timezone=view.timezone_id,
            ends_next_day=view.ends_next_day,
        ),
    )


@router.post("/{appointment_id}/reschedule", response_model=AppointmentResponse)
async def reschedule_appointment(
    appointment_id: UUID,
    body: AppointmentReschedule,
    svc: AppointmentService = Depends(get_appointment_service),
):
    appt = await svc.reschedule(appointment_id, body.start_at, body.end_at, source_timezone_id=body.timezone)
    return _to_response(appt)


@router.post("/{appointment_id}/cancel", response_model=AppointmentResponse)
async def cancel_appointment(
    appointment_id: UUID,
    svc: AppointmentService = Depends(get_appointment_service),
):
    return _to_response(await svc.cancel(appointment_id))


@router.post("/{appointment_id}/complete", response_model=AppointmentResponse)
async def complete_appointment(
    appointment_id: UUID,
    svc: AppointmentService = Depends(get_appointment_service),
):
    return _to_response(await svc.complete(appointment_id))


@clinician_router.get("/{clinician_id}/appointments", response_model=List[AppointmentResponse])
async def list_clinician_appointments(
    clinician_id: UUID,
    start: datetime,
    end: datetime,
    status_filter: Optional[str] = Query(None, alias="status"),
    svc: AppointmentService = Depends(get_appointment_service),
):
    statuses = [status_filter] if status_filter else None
    items = await svc.list_for_clinician(clinician_id, start, end, statuses=statuses)
    return [_to_response(a) for a in items]

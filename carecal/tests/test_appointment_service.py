"""Unit tests for AppointmentService with a mocked repository."""
from __future__ import annotations

import asyncio
import datetime as _dt
import unittest
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

from carecal.core.exceptions import (
    AppointmentClosedError,
    InvalidTimeRangeError,
    InvalidTimezoneError,
    NotFoundError,
)
from carecal.scheduling.civil_time import UTC
from carecal.services.appointment_service import AppointmentService


def _run(coro):
    return asyncio.run(coro)


def _fake_appointment(**kwargs):
    defaults = {
        "id": uuid4(),
        "client_id": uuid4(),
        "clinician_id": uuid4(),
        "start_at": _dt.datetime(2024, 1, 15, 3, 0, tzinfo=UTC),
        "end_at": _dt.datetime(2024, 1, 15, 4, 0, tzinfo=UTC),
        "source_timezone": "America/New_York",
        "appointment_type": "therapy_session",
        "status": "scheduled",
        "notes": None,
    }
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


def _service():
    svc = AppointmentService(MagicMock())
    svc._repo = MagicMock()
    svc._repo.create = AsyncMock(side_effect=lambda data: _fake_appointment(**data))
    svc._timezones = MagicMock()
    return svc


class TestBook(unittest.TestCase):
    def test_book_from_instants(self):
        svc = _service()
        client_id, clinician_id = uuid4(), uuid4()
        start = _dt.datetime(2024, 1, 15, 14, 0, tzinfo=UTC)

        appt = _run(svc.book(client_id, clinician_id, start, start + _dt.timedelta(minutes=50), "America/New_York"))

        data = svc._repo.create.await_args.args[0]
        self.assertEqual(data["status"], "scheduled")
        self.assertEqual(data["source_timezone"], "America/New_York")
        self.assertEqual(data["appointment_type"], "therapy_session")
        self.assertEqual(appt.start_at, start)

    def test_naive_instants_stored_as_utc(self):
        svc = _service()
        _run(svc.book(uuid4(), uuid4(), _dt.datetime(2024, 1, 15, 14, 0), _dt.datetime(2024, 1, 15, 15, 0), "UTC"))
        data = svc._repo.create.await_args.args[0]
        self.assertEqual(data["start_at"], _dt.datetime(2024, 1, 15, 14, 0, tzinfo=UTC))
        self.assertIsNotNone(data["end_at"].tzinfo)

    def test_end_must_follow_start(self):
        svc = _service()
        start = _dt.datetime(2024, 1, 15, 14, 0, tzinfo=UTC)
        with self.assertRaises(InvalidTimeRangeError):
            _run(svc.book(uuid4(), uuid4(), start, start, "UTC"))
        svc._repo.create.assert_not_awaited()

    def test_bad_source_zone(self):
        svc = _service()
        start = _dt.datetime(2024, 1, 15, 14, 0, tzinfo=UTC)
        with self.assertRaises(InvalidTimezoneError):
            _run(svc.book(uuid4(), uuid4(), start, start + _dt.timedelta(hours=1), "PST"))
        svc._repo.create.assert_not_awaited()

    def test_book_local_converts_through_source_zone(self):
        svc = _service()
        _run(svc.book_local(uuid4(), uuid4(), _dt.date(2024, 1, 15), "09:00", "09:50", "America/New_York", notes="intake"))
        data = svc._repo.create.await_args.args[0]
        self.assertEqual(data["start_at"], _dt.datetime(2024, 1, 15, 14, 0, tzinfo=UTC))
        self.assertEqual(data["end_at"], _dt.datetime(2024, 1, 15, 14, 50, tzinfo=UTC))
        self.assertEqual(data["notes"], "intake")

    def test_book_local_in_dst_gap_shifts_forward(self):
        svc = _service()
        _run(svc.book_local(uuid4(), uuid4(), _dt.date(2024, 3, 10), "02:30", "04:00", "America/New_York"))
        data = svc._repo.create.await_args.args[0]
        self.assertEqual(data["start_at"], _dt.datetime(2024, 3, 10, 7, 30, tzinfo=UTC))
        self.assertEqual(data["end_at"], _dt.datetime(2024, 3, 10, 8, 0, tzinfo=UTC))

    def test_book_local_bad_range(self):
        svc = _service()
        with self.assertRaises(InvalidTimeRangeError):
            _run(svc.book_local(uuid4(), uuid4(), _dt.date(2024, 1, 15), "10:00", "09:00", "UTC"))


class TestLifecycle(unittest.TestCase):
    def test_reschedule(self):
        svc = _service()
        appt = _fake_appointment()
        svc._repo.get_by_id = AsyncMock(return_value=appt)
        svc._repo.update = AsyncMock(return_value=appt)
        start = _dt.datetime(2024, 1, 16, 14, 0, tzinfo=UTC)

        _run(svc.reschedule(appt.id, start, start + _dt.timedelta(hours=1), source_timezone_id="Europe/Paris"))

        svc._repo.update.assert_awaited_once_with(
            appt.id,
            {"start_at": start, "end_at": start + _dt.timedelta(hours=1), "source_timezone": "Europe/Paris"},
        )

    def test_reschedule_cancelled_is_closed(self):
        svc = _service()
        appt = _fake_appointment(status="cancelled")
        svc._repo.get_by_id = AsyncMock(return_value=appt)
        svc._repo.update = AsyncMock()
        start = _dt.datetime(2024, 1, 16, 14, 0, tzinfo=UTC)

        with self.assertRaises(AppointmentClosedError) as ctx:
            _run(svc.reschedule(appt.id, start, start + _dt.timedelta(hours=1)))

        self.assertEqual(ctx.exception.http_status, 409)
        self.assertEqual(ctx.exception.reason, "appointment_cancelled")
        svc._repo.update.assert_not_awaited()

    def test_cancel_and_complete(self):
        for method, status in (("cancel", "cancelled"), ("complete", "completed")):
            with self.subTest(method=method):
                svc = _service()
                appt = _fake_appointment()
                svc._repo.get_by_id = AsyncMock(return_value=appt)
                svc._repo.update_status = AsyncMock(return_value=_fake_appointment(id=appt.id, status=status))

                result = _run(getattr(svc, method)(appt.id))

                svc._repo.update_status.assert_awaited_once_with(appt.id, status)
                self.assertEqual(result.status, status)

    def test_terminal_states_are_final(self):
        for status in ("cancelled", "completed"):
            with self.subTest(status=status):
                svc = _service()
                svc._repo.get_by_id = AsyncMock(return_value=_fake_appointment(status=status))
                svc._repo.update_status = AsyncMock()
                with self.assertRaises(AppointmentClosedError):
                    _run(svc.complete(uuid4()))
                svc._repo.update_status.assert_not_awaited()

    def test_get_missing(self):
        svc = _service()
        svc._repo.get_by_id = AsyncMock(return_value=None)
        with self.assertRaises(NotFoundError):
            _run(svc.get(uuid4()))

    def test_get_foreign_clinician(self):
        svc = _service()
        svc._repo.get_by_id = AsyncMock(return_value=_fake_appointment())
        with self.assertRaises(NotFoundError):
            _run(svc.get(uuid4(), clinician_id=uuid4()))

    def test_list_for_clinician(self):
        svc = _service()
        svc._repo.list_for_clinician = AsyncMock(return_value=[])
        clinician_id = uuid4()
        start = _dt.datetime(2024, 1, 1, tzinfo=UTC)
        end = _dt.datetime(2024, 2, 1, tzinfo=UTC)
        _run(svc.list_for_clinician(clinician_id, start, end, statuses=["scheduled"]))
        svc._repo.list_for_clinician.assert_awaited_once_with(clinician_id, start, end, statuses=["scheduled"])


class TestProjectForViewer(unittest.TestCase):
    def test_explicit_zone(self):
        svc = _service()
        appt = _fake_appointment()
        svc._repo.get_by_id = AsyncMock(return_value=appt)

        result, view = _run(svc.project_for_viewer(appt.id, "America/New_York"))

        self.assertIs(result, appt)
        self.assertEqual((view.date, view.start_time), (_dt.date(2024, 1, 14), _dt.time(22, 0)))

    def test_viewer_preference(self):
        svc = _service()
        appt = _fake_appointment()
        svc._repo.get_by_id = AsyncMock(return_value=appt)
        svc._timezones.get_timezone_for = AsyncMock(return_value="Asia/Tokyo")

        _, view = _run(svc.project_for_viewer(appt.id, viewer_user_id=uuid4()))

        self.assertEqual((view.date, view.start_time, view.timezone_id), (_dt.date(2024, 1, 15), _dt.time(12, 0), "Asia/Tokyo"))

    def test_no_viewer_zone(self):
        svc = _service()
        with self.assertRaises(InvalidTimezoneError):
            _run(svc.project_for_viewer(uuid4()))


if __name__ == "__main__":
    unittest.main()

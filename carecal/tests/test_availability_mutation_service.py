"""Unit tests for AvailabilityMutationService with mocked repositories."""
from __future__ import annotations

import asyncio
import datetime as _dt
import unittest
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

from sqlalchemy.exc import IntegrityError, OperationalError

from carecal.core.exceptions import (
    DuplicateOverrideError,
    InvalidDayIndexError,
    InvalidTimeRangeError,
    InvalidTimezoneError,
    NotFoundError,
    OverlappingAvailabilityError,
    StorageFailureError,
    ValidationError,
)
from carecal.scheduling.civil_time import UTC
from carecal.services.availability_mutation_service import AvailabilityMutationService


def _run(coro):
    return asyncio.run(coro)


def _fake_rule(**kwargs):
    defaults = {
        "id": uuid4(),
        "clinician_id": uuid4(),
        "day_of_week": 1,
        "start_time": _dt.time(9, 0),
        "end_time": _dt.time(17, 0),
        "timezone": "America/New_York",
        "recurrence_rule": "RRULE:FREQ=WEEKLY;INTERVAL=1;BYDAY=MO",
        "is_active": True,
    }
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


def _fake_override(**kwargs):
    defaults = {
        "id": uuid4(),
        "clinician_id": uuid4(),
        "date": _dt.date(2024, 3, 15),
        "start_time": _dt.time(10, 0),
        "end_time": _dt.time(12, 0),
        "timezone": None,
    }
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


def _service():
    svc = AvailabilityMutationService(MagicMock())
    svc._rule_repo = MagicMock()
    svc._rule_repo.list_for_clinician = AsyncMock(return_value=[])
    svc._override_repo = MagicMock()
    svc._time_off_repo = MagicMock()
    return svc


class TestAddWeekly(unittest.TestCase):
    def test_creates_rule_with_encoded_recurrence(self):
        svc = _service()
        clinician_id = uuid4()
        svc._rule_repo.create = AsyncMock(side_effect=lambda data: _fake_rule(**data))

        rule = _run(svc.add_weekly(clinician_id, 1, "09:00", "17:00", "America/New_York"))

        data = svc._rule_repo.create.await_args.args[0]
        self.assertEqual(data["clinician_id"], clinician_id)
        self.assertEqual(data["day_of_week"], 1)
        self.assertEqual(data["start_time"], _dt.time(9, 0))
        self.assertEqual(data["end_time"], _dt.time(17, 0))
        self.assertEqual(data["timezone"], "America/New_York")
        self.assertEqual(data["recurrence_rule"], "RRULE:FREQ=WEEKLY;INTERVAL=1;BYDAY=MO")
        self.assertEqual(rule.day_of_week, 1)

    def test_accepts_time_objects(self):
        svc = _service()
        svc._rule_repo.create = AsyncMock(side_effect=lambda data: _fake_rule(**data))
        _run(svc.add_weekly(uuid4(), 0, _dt.time(8, 30), _dt.time(12, 0), "UTC"))
        self.assertEqual(svc._rule_repo.create.await_args.args[0]["start_time"], _dt.time(8, 30))

    def test_end_before_start(self):
        svc = _service()
        svc._rule_repo.create = AsyncMock()
        with self.assertRaises(InvalidTimeRangeError) as ctx:
            _run(svc.add_weekly(uuid4(), 1, "17:00", "09:00", "America/New_York"))
        self.assertEqual(ctx.exception.reason, "end_not_after_start")
        svc._rule_repo.create.assert_not_awaited()

    def test_equal_times_rejected(self):
        svc = _service()
        svc._rule_repo.create = AsyncMock()
        with self.assertRaises(InvalidTimeRangeError):
            _run(svc.add_weekly(uuid4(), 1, "09:00", "09:00", "UTC"))

    def test_first_violation_wins(self):
        svc = _service()
        svc._rule_repo.create = AsyncMock()
        # Bad day beats bad times and bad zone.
        with self.assertRaises(InvalidDayIndexError):
            _run(svc.add_weekly(uuid4(), 7, "17:00", "09:00", "EST"))
        # Malformed time beats bad range and bad zone.
        with self.assertRaises(ValidationError) as ctx:
            _run(svc.add_weekly(uuid4(), 1, "9am", "08:00", "EST"))
        self.assertEqual(ctx.exception.reason, "malformed_time")
        # Range beats zone.
        with self.assertRaises(InvalidTimeRangeError):
            _run(svc.add_weekly(uuid4(), 1, "17:00", "09:00", "EST"))
        svc._rule_repo.create.assert_not_awaited()

    def test_bad_timezone(self):
        svc = _service()
        svc._rule_repo.create = AsyncMock()
        with self.assertRaises(InvalidTimezoneError):
            _run(svc.add_weekly(uuid4(), 1, "09:00", "17:00", "EST"))
        svc._rule_repo.create.assert_not_awaited()

    def test_storage_failure_is_wrapped(self):
        svc = _service()
        db_error = OperationalError("INSERT", {}, Exception("connection lost"))
        svc._rule_repo.create = AsyncMock(side_effect=db_error)
        with self.assertRaises(StorageFailureError) as ctx:
            _run(svc.add_weekly(uuid4(), 1, "09:00", "17:00", "UTC"))
        self.assertIs(ctx.exception.cause, db_error)
        self.assertEqual(ctx.exception.reason, "storage_failure")
        self.assertEqual(ctx.exception.http_status, 502)


class TestUpdateRemoveWeekly(unittest.TestCase):
    def test_update_changes_window(self):
        svc = _service()
        rule = _fake_rule()
        svc._rule_repo.get_by_id = AsyncMock(return_value=rule)
        svc._rule_repo.update = AsyncMock(return_value=_fake_rule(id=rule.id, clinician_id=rule.clinician_id, start_time=_dt.time(10, 0)))

        updated = _run(svc.update_weekly(rule.id, "10:00", "16:00", clinician_id=rule.clinician_id))

        svc._rule_repo.update.assert_awaited_once_with(rule.id, {"start_time": _dt.time(10, 0), "end_time": _dt.time(16, 0)})
        self.assertEqual(updated.start_time, _dt.time(10, 0))

    def test_update_validates_before_storage(self):
        svc = _service()
        svc._rule_repo.get_by_id = AsyncMock()
        with self.assertRaises(InvalidTimeRangeError):
            _run(svc.update_weekly(uuid4(), "16:00", "10:00"))
        svc._rule_repo.get_by_id.assert_not_awaited()

    def test_update_missing_rule(self):
        svc = _service()
        svc._rule_repo.get_by_id = AsyncMock(return_value=None)
        svc._rule_repo.update = AsyncMock()
        with self.assertRaises(NotFoundError):
            _run(svc.update_weekly(uuid4(), "10:00", "16:00"))
        svc._rule_repo.update.assert_not_awaited()

    def test_update_foreign_rule_looks_missing(self):
        svc = _service()
        svc._rule_repo.get_by_id = AsyncMock(return_value=_fake_rule())
        svc._rule_repo.update = AsyncMock()
        with self.assertRaises(NotFoundError):
            _run(svc.update_weekly(uuid4(), "10:00", "16:00", clinician_id=uuid4()))
        svc._rule_repo.update.assert_not_awaited()

    def test_remove(self):
        svc = _service()
        rule = _fake_rule()
        svc._rule_repo.get_by_id = AsyncMock(return_value=rule)
        svc._rule_repo.delete = AsyncMock(return_value=True)

        self.assertIsNone(_run(svc.remove_weekly(rule.id, clinician_id=rule.clinician_id)))
        svc._rule_repo.delete.assert_awaited_once_with(rule.id)

    def test_remove_missing(self):
        svc = _service()
        svc._rule_repo.get_by_id = AsyncMock(return_value=None)
        svc._rule_repo.delete = AsyncMock()
        with self.assertRaises(NotFoundError):
            _run(svc.remove_weekly(uuid4()))
        svc._rule_repo.delete.assert_not_awaited()


class TestSingleDay(unittest.TestCase):
    def test_creates_override(self):
        svc = _service()
        clinician_id = uuid4()
        svc._override_repo.get_for_date = AsyncMock(return_value=None)
        svc._override_repo.create = AsyncMock(side_effect=lambda data: _fake_override(**data))

        override = _run(svc.add_single_day(clinician_id, "2024-03-15", "10:00", "12:00", "Europe/Berlin"))

        svc._override_repo.get_for_date.assert_awaited_once_with(clinician_id, _dt.date(2024, 3, 15))
        self.assertEqual(override.timezone, "Europe/Berlin")
        self.assertEqual(override.date, _dt.date(2024, 3, 15))

    def test_timezone_is_optional(self):
        svc = _service()
        svc._override_repo.get_for_date = AsyncMock(return_value=None)
        svc._override_repo.create = AsyncMock(side_effect=lambda data: _fake_override(**data))
        override = _run(svc.add_single_day(uuid4(), _dt.date(2024, 3, 15), "10:00", "12:00"))
        self.assertIsNone(override.timezone)

    def test_existing_override_is_duplicate(self):
        svc = _service()
        existing = _fake_override()
        svc._override_repo.get_for_date = AsyncMock(return_value=existing)
        svc._override_repo.create = AsyncMock()

        with self.assertRaises(DuplicateOverrideError) as ctx:
            _run(svc.add_single_day(existing.clinician_id, existing.date, "13:00", "15:00"))

        self.assertEqual(ctx.exception.http_status, 409)
        self.assertEqual(ctx.exception.details["existing_id"], str(existing.id))
        svc._override_repo.create.assert_not_awaited()

    def test_unique_violation_is_duplicate(self):
        svc = _service()
        svc._override_repo.get_for_date = AsyncMock(return_value=None)
        svc._override_repo.create = AsyncMock(
            side_effect=IntegrityError("INSERT", {}, Exception("duplicate key value"))
        )
        with self.assertRaises(DuplicateOverrideError):
            _run(svc.add_single_day(uuid4(), "2024-03-15", "10:00", "12:00"))

    def test_malformed_date(self):
        svc = _service()
        svc._override_repo.get_for_date = AsyncMock()
        with self.assertRaises(ValidationError) as ctx:
            _run(svc.add_single_day(uuid4(), "15/03/2024", "10:00", "12:00"))
        self.assertEqual(ctx.exception.reason, "malformed_date")
        svc._override_repo.get_for_date.assert_not_awaited()

    def test_bad_range_and_zone(self):
        svc = _service()
        svc._override_repo.get_for_date = AsyncMock()
        with self.assertRaises(InvalidTimeRangeError):
            _run(svc.add_single_day(uuid4(), "2024-03-15", "12:00", "10:00", "Mars/Base"))
        with self.assertRaises(InvalidTimezoneError):
            _run(svc.add_single_day(uuid4(), "2024-03-15", "10:00", "12:00", "Mars/Base"))
        svc._override_repo.get_for_date.assert_not_awaited()

    def test_lookup_failure_is_wrapped(self):
        svc = _service()
        svc._override_repo.get_for_date = AsyncMock(side_effect=OperationalError("SELECT", {}, Exception("down")))
        with self.assertRaises(StorageFailureError):
            _run(svc.add_single_day(uuid4(), "2024-03-15", "10:00", "12:00"))

    def test_remove(self):
        svc = _service()
        override = _fake_override()
        svc._override_repo.get_by_id = AsyncMock(return_value=override)
        svc._override_repo.delete = AsyncMock(return_value=True)
        _run(svc.remove_single_day(override.id, clinician_id=override.clinician_id))
        svc._override_repo.delete.assert_awaited_once_with(override.id)

    def test_remove_foreign(self):
        svc = _service()
        svc._override_repo.get_by_id = AsyncMock(return_value=_fake_override())
        svc._override_repo.delete = AsyncMock()
        with self.assertRaises(NotFoundError):
            _run(svc.remove_single_day(uuid4(), clinician_id=uuid4()))
        svc._override_repo.delete.assert_not_awaited()


class TestWeeklyOverlap(unittest.TestCase):
    def test_add_overlapping_rule_rejected(self):
        svc = _service()
        existing = _fake_rule(day_of_week=1, start_time=_dt.time(9, 0), end_time=_dt.time(17, 0))
        svc._rule_repo.list_for_clinician = AsyncMock(return_value=[existing])
        svc._rule_repo.create = AsyncMock()

        with self.assertRaises(OverlappingAvailabilityError) as ctx:
            _run(svc.add_weekly(existing.clinician_id, 1, "10:00", "12:00", "America/New_York"))

        self.assertEqual(ctx.exception.http_status, 409)
        self.assertEqual(ctx.exception.code, "OVERLAPPING_AVAILABILITY")
        self.assertEqual(ctx.exception.details["existing_id"], str(existing.id))
        svc._rule_repo.list_for_clinician.assert_awaited_once_with(existing.clinician_id)
        svc._rule_repo.create.assert_not_awaited()

    def test_adjacent_and_other_day_rules_allowed(self):
        svc = _service()
        svc._rule_repo.list_for_clinician = AsyncMock(return_value=[
            _fake_rule(day_of_week=1, start_time=_dt.time(9, 0), end_time=_dt.time(12, 0)),
            _fake_rule(day_of_week=2, start_time=_dt.time(12, 0), end_time=_dt.time(17, 0)),
            _fake_rule(day_of_week=1, start_time=_dt.time(12, 0), end_time=_dt.time(17, 0), is_active=False),
        ])
        svc._rule_repo.create = AsyncMock(side_effect=lambda data: _fake_rule(**data))

        rule = _run(svc.add_weekly(uuid4(), 1, "12:00", "17:00", "UTC"))

        self.assertEqual(rule.start_time, _dt.time(12, 0))

    def test_update_into_sibling_rejected(self):
        svc = _service()
        rule = _fake_rule(day_of_week=3, start_time=_dt.time(8, 0), end_time=_dt.time(10, 0))
        sibling = _fake_rule(clinician_id=rule.clinician_id, day_of_week=3, start_time=_dt.time(13, 0), end_time=_dt.time(15, 0))
        svc._rule_repo.get_by_id = AsyncMock(return_value=rule)
        svc._rule_repo.list_for_clinician = AsyncMock(return_value=[rule, sibling])
        svc._rule_repo.update = AsyncMock()

        with self.assertRaises(OverlappingAvailabilityError):
            _run(svc.update_weekly(rule.id, "09:00", "14:00"))

        svc._rule_repo.list_for_clinician.assert_awaited_once_with(rule.clinician_id)
        svc._rule_repo.update.assert_not_awaited()

    def test_update_ignores_its_own_window(self):
        svc = _service()
        rule = _fake_rule(day_of_week=3, start_time=_dt.time(8, 0), end_time=_dt.time(12, 0))
        svc._rule_repo.get_by_id = AsyncMock(return_value=rule)
        svc._rule_repo.list_for_clinician = AsyncMock(return_value=[rule])
        svc._rule_repo.update = AsyncMock(return_value=_fake_rule(id=rule.id, start_time=_dt.time(9, 0)))

        _run(svc.update_weekly(rule.id, "09:00", "11:00"))

        svc._rule_repo.update.assert_awaited_once()


class TestTimeOff(unittest.TestCase):
    def _create(self, svc):
        svc._time_off_repo.create = AsyncMock(side_effect=lambda data: SimpleNamespace(id=uuid4(), **data))

    def test_wall_clock_converted_in_zone(self):
        svc = _service()
        self._create(svc)
        clinician_id = uuid4()

        period = _run(svc.add_time_off(clinician_id, "2024-03-15T09:00", "2024-03-15T13:00", "America/New_York", reason="dentist"))

        self.assertEqual(period.start_at, _dt.datetime(2024, 3, 15, 13, 0, tzinfo=UTC))
        self.assertEqual(period.end_at, _dt.datetime(2024, 3, 15, 17, 0, tzinfo=UTC))
        data = svc._time_off_repo.create.await_args.args[0]
        self.assertEqual(data["clinician_id"], clinician_id)
        self.assertEqual(data["timezone"], "America/New_York")
        self.assertEqual(data["reason"], "dentist")
        self.assertFalse(data["all_day"])

    def test_aware_datetimes_kept_as_instants(self):
        svc = _service()
        self._create(svc)
        start = _dt.datetime(2024, 3, 15, 9, 0, tzinfo=_dt.timezone(_dt.timedelta(hours=1)))
        period = _run(svc.add_time_off(uuid4(), start, start + _dt.timedelta(hours=2), "Europe/Berlin"))
        self.assertEqual(period.start_at, _dt.datetime(2024, 3, 15, 8, 0, tzinfo=UTC))

    def test_all_day_covers_local_days(self):
        svc = _service()
        self._create(svc)
        # Spans the US spring-forward day, which is 23 hours long.
        period = _run(svc.add_time_off(uuid4(), "2024-03-09", "2024-03-10", "America/New_York", all_day=True))
        self.assertEqual(period.start_at, _dt.datetime(2024, 3, 9, 5, 0, tzinfo=UTC))
        self.assertEqual(period.end_at, _dt.datetime(2024, 3, 11, 4, 0, tzinfo=UTC))
        self.assertTrue(period.all_day)

    def test_invalid_inputs_rejected_before_storage(self):
        svc = _service()
        svc._time_off_repo.create = AsyncMock()
        with self.assertRaises(InvalidTimezoneError):
            _run(svc.add_time_off(uuid4(), "2024-03-15T09:00", "2024-03-15T13:00", "EST"))
        with self.assertRaises(InvalidTimeRangeError) as ctx:
            _run(svc.add_time_off(uuid4(), "2024-03-15T13:00", "2024-03-15T09:00", "UTC"))
        self.assertEqual(ctx.exception.reason, "end_not_after_start")
        with self.assertRaises(InvalidTimeRangeError):
            _run(svc.add_time_off(uuid4(), "2024-03-15", "2024-03-14", "UTC", all_day=True))
        with self.assertRaises(ValidationError) as ctx:
            _run(svc.add_time_off(uuid4(), "tomorrow", "2024-03-15T13:00", "UTC"))
        self.assertEqual(ctx.exception.reason, "malformed_datetime")
        svc._time_off_repo.create.assert_not_awaited()

    def test_remove(self):
        svc = _service()
        period = SimpleNamespace(id=uuid4(), clinician_id=uuid4())
        svc._time_off_repo.get_by_id = AsyncMock(return_value=period)
        svc._time_off_repo.delete = AsyncMock(return_value=True)
        _run(svc.remove_time_off(period.id, clinician_id=period.clinician_id))
        svc._time_off_repo.delete.assert_awaited_once_with(period.id)

    def test_remove_foreign_looks_missing(self):
        svc = _service()
        svc._time_off_repo.get_by_id = AsyncMock(return_value=SimpleNamespace(id=uuid4(), clinician_id=uuid4()))
        svc._time_off_repo.delete = AsyncMock()
        with self.assertRaises(NotFoundError) as ctx:
            _run(svc.remove_time_off(uuid4(), clinician_id=uuid4()))
        self.assertEqual(ctx.exception.reason, "time_off_not_found")
        svc._time_off_repo.delete.assert_not_awaited()


if __name__ == "__main__":
    unittest.main()

"""Tests for civil time <-> instant conversion and the DST resolution policy."""
from __future__ import annotations

import datetime as _dt
import unittest

from carecal.core.exceptions import InvalidTimeRangeError, InvalidTimezoneError, ValidationError
from carecal.scheduling.civil_time import (
    UTC,
    as_utc,
    is_ambiguous,
    is_in_dst,
    is_nonexistent,
    parse_civil_time,
    resolve_zone,
    to_civil,
    to_instant,
    utc_offset,
    weekday_index,
)
from carecal.scheduling.types import CivilDateTime


def _utc(*args) -> _dt.datetime:
    return _dt.datetime(*args, tzinfo=UTC)


class TestRoundTrip(unittest.TestCase):
    def test_regular_times_round_trip(self):
        cases = [
            CivilDateTime(2024, 1, 15, 9, 0, "America/New_York"),
            CivilDateTime(2024, 7, 4, 23, 45, "Asia/Tokyo"),
            CivilDateTime(2024, 12, 31, 0, 0, "Europe/London"),
            CivilDateTime(2024, 2, 29, 12, 30, "Australia/Sydney"),
            CivilDateTime(2024, 6, 1, 18, 15, "UTC"),
        ]
        for civil in cases:
            with self.subTest(civil=str(civil)):
                self.assertEqual(to_civil(to_instant(civil), civil.timezone_id), civil)

    def test_instant_is_utc_aware(self):
        instant = to_instant(CivilDateTime(2024, 1, 15, 9, 0, "America/New_York"))
        self.assertEqual(instant, _utc(2024, 1, 15, 14, 0))
        self.assertEqual(instant.utcoffset(), _dt.timedelta(0))

    def test_same_instant_different_zones(self):
        instant = _utc(2024, 1, 15, 3, 0)
        self.assertEqual(to_civil(instant, "America/New_York"), CivilDateTime(2024, 1, 14, 22, 0, "America/New_York"))
        self.assertEqual(to_civil(instant, "Asia/Tokyo"), CivilDateTime(2024, 1, 15, 12, 0, "Asia/Tokyo"))


class TestDstPolicy(unittest.TestCase):
    def test_spring_forward_gap_shifts_forward(self):
        civil = CivilDateTime(2024, 3, 10, 2, 30, "America/New_York")
        self.assertTrue(is_nonexistent(civil))
        instant = to_instant(civil)
        self.assertEqual(instant, _utc(2024, 3, 10, 7, 30))
        self.assertEqual(to_civil(instant, "America/New_York"), CivilDateTime(2024, 3, 10, 3, 30, "America/New_York"))

    def test_gap_resolution_is_deterministic(self):
        civil = CivilDateTime(2024, 3, 10, 2, 30, "America/New_York")
        self.assertEqual({to_instant(civil) for _ in range(5)}, {to_instant(civil)})

    def test_fall_back_takes_earlier_occurrence(self):
        civil = CivilDateTime(2024, 11, 3, 1, 30, "America/New_York")
        self.assertTrue(is_ambiguous(civil))
        self.assertFalse(is_nonexistent(civil))
        # 01:30 EDT (UTC-4); the later 01:30 EST would be 06:30 UTC.
        self.assertEqual(to_instant(civil), _utc(2024, 11, 3, 5, 30))

    def test_regular_time_is_neither_gap_nor_overlap(self):
        civil = CivilDateTime(2024, 1, 15, 9, 0, "America/New_York")
        self.assertFalse(is_nonexistent(civil))
        self.assertFalse(is_ambiguous(civil))

    def test_is_in_dst_march_vs_july(self):
        self.assertFalse(is_in_dst(_utc(2024, 3, 1, 17, 0), "America/New_York"))
        self.assertTrue(is_in_dst(_utc(2024, 7, 1, 16, 0), "America/New_York"))
        self.assertFalse(is_in_dst(_utc(2024, 7, 1, 16, 0), "Asia/Tokyo"))

    def test_utc_offset_follows_dst(self):
        self.assertEqual(utc_offset(_utc(2024, 1, 15, 12, 0), "America/New_York"), _dt.timedelta(hours=-5))
        self.assertEqual(utc_offset(_utc(2024, 7, 15, 12, 0), "America/New_York"), _dt.timedelta(hours=-4))


class TestZones(unittest.TestCase):
    def test_valid_iana_names(self):
        for name in ("UTC", "America/New_York", "Europe/Berlin", "America/Argentina/Buenos_Aires"):
            with self.subTest(name=name):
                self.assertEqual(resolve_zone(name).key, name)

    def test_unknown_zone_rejected(self):
        with self.assertRaises(InvalidTimezoneError) as ctx:
            resolve_zone("Mars/Olympus_Mons")
        self.assertEqual(ctx.exception.reason, "unknown_timezone")
        self.assertEqual(ctx.exception.http_status, 400)

    def test_abbreviations_rejected(self):
        for name in ("EST", "PST8PDT", "CET", "GMT"):
            with self.subTest(name=name):
                with self.assertRaises(InvalidTimezoneError) as ctx:
                    resolve_zone(name)
                self.assertEqual(ctx.exception.reason, "not_iana_name")

    def test_empty_zone_rejected(self):
        for name in ("", "   ", None):
            with self.subTest(name=name):
                with self.assertRaises(InvalidTimezoneError):
                    resolve_zone(name)

    def test_to_instant_with_bad_zone(self):
        with self.assertRaises(InvalidTimezoneError):
            to_instant(CivilDateTime(2024, 1, 15, 9, 0, "Not/AZone"))


class TestHelpers(unittest.TestCase):
    def test_parse_civil_time(self):
        self.assertEqual(parse_civil_time("09:00"), _dt.time(9, 0))
        self.assertEqual(parse_civil_time(" 17:30 "), _dt.time(17, 30))
        self.assertEqual(parse_civil_time("08:15:59"), _dt.time(8, 15))
        self.assertEqual(parse_civil_time(_dt.time(10, 5, 30)), _dt.time(10, 5))

    def test_parse_civil_time_rejects_garbage(self):
        for value in ("25:00", "9am", "", "12:60", None, 900):
            with self.subTest(value=value):
                with self.assertRaises(ValidationError) as ctx:
                    parse_civil_time(value)
                self.assertEqual(ctx.exception.reason, "malformed_time")

    def test_midnight_end_points_to_2359(self):
        for value in ("24:00", "24:00:00", " 24:00 "):
            with self.subTest(value=value):
                with self.assertRaises(InvalidTimeRangeError) as ctx:
                    parse_civil_time(value)
                self.assertEqual(ctx.exception.reason, "end_of_day_not_supported")
                self.assertEqual(ctx.exception.details["latest"], "23:59")
                self.assertIn("23:59", str(ctx.exception))

    def test_naive_instants_are_utc(self):
        self.assertEqual(as_utc(_dt.datetime(2024, 1, 15, 14, 0, 0, 500)), _utc(2024, 1, 15, 14, 0))
        self.assertEqual(
            to_civil(_dt.datetime(2024, 1, 15, 14, 0), "America/New_York"),
            CivilDateTime(2024, 1, 15, 9, 0, "America/New_York"),
        )

    def test_weekday_index_sunday_is_zero(self):
        self.assertEqual(weekday_index(_dt.date(2024, 3, 10)), 0)
        self.assertEqual(weekday_index(_dt.date(2024, 3, 11)), 1)
        self.assertEqual(weekday_index(_dt.date(2024, 3, 16)), 6)
        self.assertEqual(CivilDateTime(2024, 3, 16, 0, 0, "UTC").weekday_index, 6)

    def test_invalid_calendar_fields(self):
        with self.assertRaises(ValidationError):
            CivilDateTime(2023, 2, 29, 9, 0, "UTC")
        with self.assertRaises(ValidationError):
            CivilDateTime(2024, 1, 1, 24, 0, "UTC")


if __name__ == "__main__":
    unittest.main()

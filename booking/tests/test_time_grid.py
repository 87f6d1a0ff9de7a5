# booking/tests/test_time_grid.py

from datetime import date, datetime

from django.test import SimpleTestCase, TestCase, override_settings

from booking.services.time_grid import (
    BusinessHours,
    checkpoints,
    default_business_hours,
    format_hhmm,
    generate_slots,
    get_business_hours,
    parse_booking_date,
    parse_hhmm,
    within_business_hours,
)
from configmgr.models import SystemSetting

from .helpers import HOURS


class ParseTimeTests(SimpleTestCase):
    def test_parses_hours_and_minutes(self):
        self.assertEqual(parse_hhmm("09:00"), 540)
        self.assertEqual(parse_hhmm("14:30"), 870)
        self.assertEqual(parse_hhmm("7:05"), 425)

    def test_accepts_seconds_suffix_from_time_fields(self):
        self.assertEqual(parse_hhmm("10:15:00"), 615)

    def test_rejects_malformed_values(self):
        for raw in ("", "10", "10:5", "25:00", "10:60", "ten", None, "10:15:30"):
            with self.subTest(raw=raw):
                with self.assertRaises(ValueError):
                    parse_hhmm(raw)

    def test_format_pads(self):
        self.assertEqual(format_hhmm(545), "09:05")
        self.assertEqual(format_hhmm(1140), "19:00")


class ParseDateTests(SimpleTestCase):
    def test_accepts_date_datetime_and_iso_string(self):
        self.assertEqual(parse_booking_date(date(2026, 11, 2)), date(2026, 11, 2))
        self.assertEqual(parse_booking_date(datetime(2026, 11, 2, 10, 0)), date(2026, 11, 2))
        self.assertEqual(parse_booking_date("2026-11-02"), date(2026, 11, 2))

    def test_trims_time_part(self):
        self.assertEqual(parse_booking_date("2026-11-02T10:00:00Z"), date(2026, 11, 2))

    def test_rejects_garbage(self):
        with self.assertRaises(ValueError):
            parse_booking_date("02/11/2026")


class GridTests(SimpleTestCase):
    def test_checkpoints_cover_half_open_interval(self):
        self.assertEqual(checkpoints(600, 45), [600, 615, 630])
        self.assertEqual(checkpoints(600, 5), [600])

    def test_booking_may_end_exactly_at_close(self):
        self.assertTrue(within_business_hours(18 * 60 + 30, 30, HOURS))
        self.assertFalse(within_business_hours(18 * 60 + 45, 30, HOURS))
        self.assertFalse(within_business_hours(8 * 60 + 45, 30, HOURS))

    def test_generate_slots_stop_when_service_would_overrun(self):
        slots = generate_slots(60, HOURS)
        self.assertEqual(slots[0], 540)
        self.assertEqual(slots[-1], 18 * 60)
        self.assertEqual(len(slots), 37)

    def test_business_hours_must_be_ordered(self):
        with self.assertRaises(ValueError):
            BusinessHours.from_strings("19:00", "09:00")

    @override_settings(BOOKING_ENGINE={"BUSINESS_OPEN": "10:00", "BUSINESS_CLOSE": "18:00"})
    def test_defaults_come_from_settings(self):
        self.assertEqual(default_business_hours(), BusinessHours(600, 1080))


class BusinessHoursSettingTests(TestCase):
    def test_falls_back_without_rows(self):
        self.assertEqual(get_business_hours(), default_business_hours())

    def test_system_settings_override_defaults(self):
        SystemSetting.objects.create(key="BUSINESS_OPEN", value="08:00")
        SystemSetting.objects.create(key="BUSINESS_CLOSE", value="17:00")
        self.assertEqual(get_business_hours(), BusinessHours(480, 1020))

    def test_malformed_rows_are_ignored(self):
        SystemSetting.objects.create(key="BUSINESS_OPEN", value="late")
        SystemSetting.objects.create(key="BUSINESS_CLOSE", value="17:00")
        with self.assertLogs("booking.services.time_grid", level="WARNING"):
            self.assertEqual(get_business_hours(), default_business_hours())

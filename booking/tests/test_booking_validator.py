# booking/tests/test_booking_validator.py

from datetime import datetime, timedelta

from django.test import SimpleTestCase

from booking.services.booking_validator import BookingValidator
from booking.services.domain import BookingRequest

from .helpers import HOURS, MONDAY, TUESDAY, booked, scrub_service, service, spa_rooms, staff

NO_TUE_THU = ("mon", "wed", "fri", "sat", "sun")


def codes(result):
    return [e.code for e in result.errors]


class BookingValidatorTests(SimpleTestCase):
    def setUp(self):
        self.validator = BookingValidator(hours=HOURS)
        self.room1, self.room2, self.room3 = spa_rooms()
        self.selma = staff(1, "Selma", can=("facial",), days_on=NO_TUE_THU, default_room_id=1)
        self.robyn = staff(2, "Robyn", can=("facial", "body_scrub", "massage"), default_room_id=3)

    def test_valid_facial(self):
        result = self.validator.validate(service(), self.selma, self.room1, MONDAY, "10:00")
        self.assertTrue(result.is_valid)
        self.assertEqual(result.errors, [])
        self.assertEqual(result.warnings, [])

    def test_body_scrub_in_room_without_equipment(self):
        result = self.validator.validate(scrub_service(), self.robyn, self.room1, MONDAY, "10:00")
        self.assertFalse(result.is_valid)
        self.assertEqual(codes(result), ["room_not_capable"])
        self.assertIn("body scrub equipment", result.error_messages[0])

    def test_day_off_names_weekday(self):
        result = self.validator.validate(service(), self.selma, self.room1, TUESDAY, "10:00")
        self.assertFalse(result.is_valid)
        self.assertEqual(codes(result), ["staff_unavailable"])
        self.assertIn("Tuesday", result.error_messages[0])

    def test_collects_every_error(self):
        massage = service(id=5, name="Balinese Body Massage", duration=60, category="massage")
        result = self.validator.validate(massage, self.selma, self.room1, TUESDAY, "18:30")
        self.assertEqual(
            codes(result),
            ["outside_business_hours", "staff_not_qualified", "staff_unavailable", "room_not_capable"],
        )

    def test_room_and_staff_conflicts(self):
        existing = [
            booked(10, room_id=1, staff_id=9, on_date=MONDAY, start=600, duration=30),
            booked(11, room_id=2, staff_id=1, on_date=MONDAY, start=615, duration=30),
        ]
        result = self.validator.validate(service(), self.selma, self.room1, MONDAY, "10:00", existing)
        self.assertEqual(codes(result), ["room_conflict", "staff_conflict"])
        self.assertEqual(result.error_messages[0], "Room 1 is already booked from 10:00 to 10:30")
        self.assertEqual(result.error_messages[1], "Selma is already booked from 10:15 to 10:45")
        self.assertEqual([r.id for r in result.conflicts], [10, 11])

    def test_back_to_back_is_valid(self):
        existing = [booked(10, 1, 1, MONDAY, 570, 30)]
        result = self.validator.validate(service(), self.selma, self.room1, MONDAY, "10:00", existing)
        self.assertTrue(result.is_valid)

    def test_same_input_same_verdict(self):
        existing = [booked(10, 1, 1, MONDAY, 600, 30)]
        first = self.validator.validate(service(), self.selma, self.room1, MONDAY, "10:00", existing)
        second = self.validator.validate(service(), self.selma, self.room1, MONDAY, "10:00", existing)
        self.assertEqual(first.as_dict(), second.as_dict())

    def test_malformed_time_is_an_error_not_an_exception(self):
        result = self.validator.validate(service(), self.selma, self.room1, MONDAY, "10am")
        self.assertEqual(codes(result), ["invalid_time"])

    def test_ends_exactly_at_close(self):
        self.assertTrue(self.validator.validate(service(), self.selma, self.room1, MONDAY, "18:30").is_valid)
        late = self.validator.validate(service(), self.selma, self.room1, MONDAY, "18:45")
        self.assertIn("outside_business_hours", codes(late))
        early = self.validator.validate(service(), self.selma, self.room1, MONDAY, "08:45")
        self.assertIn("outside_business_hours", codes(early))

    def test_zero_duration(self):
        result = self.validator.validate(service(duration=0), self.selma, self.room1, MONDAY, "10:00")
        self.assertIn("invalid_duration", codes(result))

    def test_unknown_category(self):
        result = self.validator.validate(service(category="yoga"), self.selma, self.room1, MONDAY, "10:00")
        self.assertEqual(codes(result), ["unknown_category"])

    def test_missing_service_is_programmer_error(self):
        with self.assertRaises(ValueError):
            self.validator.validate(None, self.selma, self.room1, MONDAY, "10:00")

    def test_suboptimal_room_is_a_warning(self):
        result = self.validator.validate(
            service(), self.selma, self.room3, MONDAY, "10:00", candidate_rooms=spa_rooms()
        )
        self.assertTrue(result.is_valid)
        self.assertEqual([w.code for w in result.warnings], ["suboptimal_room"])
        self.assertIn("recommended: Room 1", result.warning_messages[0])

    def test_validate_request(self):
        request = BookingRequest(service(), self.selma, self.room1, MONDAY, "10:00")
        self.assertTrue(self.validator.validate_request(request).is_valid)

    def test_inactive_staff_is_reported_once(self):
        retired = staff(1, "Selma", can=("facial",), days_on=NO_TUE_THU, is_active=False)
        result = self.validator.validate(service(), retired, self.room1, MONDAY, "10:00")
        self.assertEqual(codes(result), ["staff_not_qualified"])
        self.assertEqual(result.error_messages, ["Selma is currently inactive"])


class BookingWindowTests(SimpleTestCase):
    def setUp(self):
        now = datetime(2026, 11, 2, 10, 0)
        self.validator = BookingValidator(hours=HOURS, clock=lambda: now, max_advance_days=30)
        self.room1 = spa_rooms()[0]
        self.tanisha = staff(3, "Tanisha", can=("facial", "waxing"), min_notice_minutes=120)

    def test_past_date(self):
        result = self.validator.validate(service(), self.tanisha, self.room1, MONDAY - timedelta(days=1), "10:00")
        self.assertEqual(codes(result), ["past_date"])

    def test_time_already_passed_today(self):
        result = self.validator.validate(service(), self.tanisha, self.room1, MONDAY, "09:30")
        self.assertEqual(codes(result), ["past_time"])

    def test_too_far_ahead(self):
        result = self.validator.validate(service(), self.tanisha, self.room1, MONDAY + timedelta(days=31), "10:00")
        self.assertEqual(codes(result), ["too_far_ahead"])

    def test_short_notice_is_a_warning(self):
        result = self.validator.validate(service(), self.tanisha, self.room1, MONDAY, "11:00")
        self.assertTrue(result.is_valid)
        self.assertEqual([w.code for w in result.warnings], ["short_notice"])
        self.assertIn("120 minutes", result.warning_messages[0])

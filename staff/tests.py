# staff/tests.py

from datetime import timedelta
from io import StringIO

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.core.management import call_command
from django.test import TestCase
from django.utils import timezone
from rest_framework.test import APIClient

from booking.services.domain import StaffInfo
from staff.models import Staff, default_schedule


def next_weekday(weekday):
    day = timezone.localdate() + timedelta(days=1)
    while day.weekday() != weekday:
        day += timedelta(days=1)
    return day


class StaffModelTests(TestCase):
    def test_default_schedule_covers_the_week(self):
        self.assertEqual(len(default_schedule()), 7)
        self.assertTrue(all(day["available"] for day in default_schedule().values()))

    def test_clean_rejects_unknown_categories(self):
        member = Staff(name="Kai", email="kai@spa.local", can_perform_services=["yoga"])
        with self.assertRaises(ValidationError):
            member.clean()

    def test_snapshot_from_row(self):
        member = Staff.objects.create(
            name="Kai", email="kai@spa.local", can_perform_services=["facial"],
            schedule={"sun": {"available": True, "start_time": "10:00", "end_time": "16:00"}},
            min_notice_minutes=45,
        )
        info = StaffInfo.from_model(member)
        self.assertEqual(info.can_perform_services, frozenset({"facial"}))
        self.assertTrue(info.schedule["sun"].available)
        self.assertEqual(info.schedule["sun"].start_time, "10:00")
        self.assertEqual(info.min_notice_minutes, 45)


class StaffApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        call_command("seed_spa", stdout=StringIO())
        self.selma = Staff.objects.get(name="Selma")
        self.leonel = Staff.objects.get(name="Leonel")

    def test_list_hides_inactive_staff_from_public(self):
        Staff.objects.filter(pk=self.leonel.pk).update(is_active=False)
        names = [s["name"] for s in self.client.get("/api/staff/").json()]
        self.assertIn("Selma", names)
        self.assertNotIn("Leonel", names)

    def test_schedule_on_day_off(self):
        tuesday = next_weekday(1)
        resp = self.client.get(f"/api/staff/{self.selma.id}/schedule/", {"date": tuesday.isoformat()})
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertFalse(body["available"])
        self.assertEqual(body["day"], "Tuesday")
        self.assertEqual(body["summary"], "Selma is off on Tuesdays and Thursdays")
        self.assertIn("Tuesday", body["reasons"][0])

    def test_weekly_pattern_without_date(self):
        body = self.client.get(f"/api/staff/{self.leonel.id}/schedule/").json()
        self.assertEqual(body["working_days"], ["Sunday"])
        self.assertEqual(body["summary"], "Leonel works Sundays only")
        self.assertNotIn("available", body)

    def test_schedule_bad_date(self):
        resp = self.client.get(f"/api/staff/{self.selma.id}/schedule/", {"date": "someday"})
        self.assertEqual(resp.status_code, 400)

    def test_writes_are_staff_only(self):
        payload = {"name": "Kai", "email": "kai@spa.local", "can_perform_services": ["facial"]}
        self.assertEqual(self.client.post("/api/staff/", payload, format="json").status_code, 403)

        admin = get_user_model().objects.create_user("front", password="x", is_staff=True)
        self.client.force_authenticate(admin)
        self.assertEqual(self.client.post("/api/staff/", payload, format="json").status_code, 201)

    def test_invalid_capabilities_and_schedule(self):
        admin = get_user_model().objects.create_user("front", password="x", is_staff=True)
        self.client.force_authenticate(admin)
        bad_category = {"name": "Kai", "email": "kai@spa.local", "can_perform_services": ["yoga"]}
        self.assertEqual(self.client.post("/api/staff/", bad_category, format="json").status_code, 400)

        bad_shift = {
            "name": "Kai", "email": "kai@spa.local", "can_perform_services": ["facial"],
            "schedule": {"mon": {"available": True, "start_time": "17:00", "end_time": "09:00"}},
        }
        resp = self.client.post("/api/staff/", bad_shift, format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertIn("schedule", resp.json())

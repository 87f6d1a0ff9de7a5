# booking/tests/test_api.py

from io import StringIO
from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.test import TestCase
from rest_framework.test import APIClient

from booking.models import Customer, Reservation, Room, Service
from booking.services.booking_store import DjangoBookingStore
from booking.services.errors import CommitConflictError, CommitTransportError
from staff.models import Staff

from .helpers import next_weekday


class BookingApiTests(TestCase):
    def setUp(self):
        # DRF test client
        self.client = APIClient()
        call_command("seed_spa", stdout=StringIO())

        self.customer = Customer.objects.create(name="Ana", email="ana@example.com", phone="555")
        self.monday = next_weekday(0).isoformat()
        self.tuesday = next_weekday(1).isoformat()

        self.facial = Service.objects.get(name="Basic Facial")
        self.scrub = Service.objects.get(name="Dead Sea Salt Body Scrub")
        self.massage = Service.objects.get(name="Balinese Body Massage")
        self.selma = Staff.objects.get(name="Selma")
        self.robyn = Staff.objects.get(name="Robyn")
        self.tanisha = Staff.objects.get(name="Tanisha")
        self.leonel = Staff.objects.get(name="Leonel")
        self.room1 = Room.objects.get(name="Room 1")
        self.room3 = Room.objects.get(name="Room 3")

    def booking_payload(self, **overrides):
        data = {
            "customer": self.customer.id,
            "service": self.facial.id,
            "staff": self.selma.id,
            "room": self.room1.id,
            "date": self.monday,
            "time": "10:00",
        }
        data.update(overrides)
        return data

    # ---- catalog ----

    def test_public_sees_only_active_services(self):
        Service.objects.filter(pk=self.massage.pk).update(active=False)
        resp = self.client.get("/api/services/")
        self.assertEqual(resp.status_code, 200)
        names = [s["name"] for s in resp.json()]
        self.assertIn("Basic Facial", names)
        self.assertNotIn("Balinese Body Massage", names)

    def test_service_writes_are_staff_only(self):
        resp = self.client.post("/api/services/", {"name": "Foot Spa", "duration_minutes": 30,
                                                   "price": "40.00", "category": "facial"}, format="json")
        self.assertEqual(resp.status_code, 403)

        admin = get_user_model().objects.create_user("front", password="x", is_staff=True)
        self.client.force_authenticate(admin)
        resp = self.client.post("/api/services/", {"name": "Foot Spa", "duration_minutes": 30,
                                                   "price": "40.00", "category": "facial"}, format="json")
        self.assertEqual(resp.status_code, 201)

    def test_room_capabilities_are_checked(self):
        admin = get_user_model().objects.create_user("front", password="x", is_staff=True)
        self.client.force_authenticate(admin)
        resp = self.client.post("/api/rooms/", {"name": "Room 9", "capabilities": ["yoga"]}, format="json")
        self.assertEqual(resp.status_code, 400)

    def test_customer_create_or_reuse(self):
        payload = {"name": " Bea ", "email": "bea@example.com", "phone": "777"}
        first = self.client.post("/api/customers/", payload, format="json")
        self.assertEqual(first.status_code, 201)
        again = self.client.post("/api/customers/", {**payload, "name": "BEA"}, format="json")
        self.assertEqual(again.status_code, 200)
        self.assertEqual(again.json()["id"], first.json()["id"])

    # ---- validate / create ----

    def test_validate_reports_missing_equipment(self):
        resp = self.client.post(
            "/api/bookings/validate/",
            self.booking_payload(service=self.scrub.id, staff=self.robyn.id),
            format="json",
        )
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertFalse(body["is_valid"])
        self.assertEqual([e["code"] for e in body["errors"]], ["room_not_capable"])

    def test_validate_valid_request(self):
        resp = self.client.post("/api/bookings/validate/", self.booking_payload(), format="json")
        self.assertEqual(resp.json(), {"is_valid": True, "errors": [], "warnings": [], "conflicts": []})

    def test_create_then_double_book(self):
        resp = self.client.post("/api/bookings/", self.booking_payload(), format="json")
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.json()["start_time"], "10:00")
        self.assertEqual(resp.json()["warnings"], [])

        clash = self.client.post("/api/bookings/", self.booking_payload(time="10:15"), format="json")
        self.assertEqual(clash.status_code, 400)
        codes = [e["code"] for e in clash.json()["errors"]]
        self.assertEqual(codes, ["room_conflict", "staff_conflict"])

    def test_create_with_any_staff_and_room(self):
        resp = self.client.post(
            "/api/bookings/", self.booking_payload(staff=None, room=None, service=self.scrub.id),
            format="json",
        )
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.json()["staff"], self.robyn.id)
        self.assertEqual(resp.json()["room"], self.room3.id)

    def test_create_lost_race_is_409(self):
        lost = CommitConflictError("The room was booked by someone else from 10:00 to 10:30", resource="room")
        with patch.object(DjangoBookingStore, "commit_single_booking", side_effect=lost):
            resp = self.client.post("/api/bookings/", self.booking_payload(), format="json")
        self.assertEqual(resp.status_code, 409)
        self.assertIn("booked by someone else", resp.json()["detail"])
        self.assertEqual(Reservation.objects.count(), 0)

    def test_create_store_unreachable_is_503(self):
        with patch.object(DjangoBookingStore, "commit_single_booking",
                          side_effect=CommitTransportError("connection refused")):
            resp = self.client.post("/api/bookings/", self.booking_payload(), format="json")
        self.assertEqual(resp.status_code, 503)
        self.assertNotIn("connection refused", resp.json()["detail"])

    def test_create_day_off(self):
        resp = self.client.post("/api/bookings/", self.booking_payload(date=self.tuesday), format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertIn("Tuesday", resp.json()["detail"])

    def test_create_malformed_time(self):
        resp = self.client.post("/api/bookings/", self.booking_payload(time="10am"), format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual([e["code"] for e in resp.json()["errors"]], ["invalid_time"])

    def test_create_requires_customer(self):
        payload = self.booking_payload()
        del payload["customer"]
        self.assertEqual(self.client.post("/api/bookings/", payload, format="json").status_code, 400)

    # ---- couples ----

    def test_couples_booking(self):
        resp = self.client.post("/api/bookings/couples/", {
            "customer": self.customer.id,
            "primary_service": self.facial.id,
            "primary_staff": self.selma.id,
            "secondary_staff": self.tanisha.id,
            "date": self.monday,
            "time": "11:00",
        }, format="json")
        self.assertEqual(resp.status_code, 201)
        body = resp.json()
        self.assertEqual(body["state"], "succeeded")
        self.assertEqual(len(body["booking_ids"]), 2)
        self.assertEqual(Reservation.objects.filter(group_id__isnull=False).count(), 2)

    def test_couples_secondary_unavailable(self):
        resp = self.client.post("/api/bookings/couples/", {
            "customer": self.customer.id,
            "primary_service": self.facial.id,
            "secondary_service": self.massage.id,
            "primary_staff": self.selma.id,
            "secondary_staff": self.leonel.id,
            "date": self.monday,
            "time": "11:00",
        }, format="json")
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.json()["state"], "failed")
        self.assertEqual(Reservation.objects.count(), 0)

    def test_couples_room_fits_the_longer_leg(self):
        room2 = Room.objects.get(name="Room 2")
        self.client.post("/api/bookings/", self.booking_payload(staff=self.tanisha.id, room=room2.id, time="10:30"),
                         format="json")
        resp = self.client.post("/api/bookings/couples/", {
            "customer": self.customer.id,
            "primary_service": self.facial.id,
            "secondary_service": self.massage.id,
            "primary_staff": self.selma.id,
            "secondary_staff": self.robyn.id,
            "date": self.monday,
            "time": "10:00",
        }, format="json")
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.json()["room_id"], self.room3.id)

    def test_couples_store_unreachable(self):
        with patch.object(DjangoBookingStore, "commit_couples_booking",
                          side_effect=CommitTransportError("connection refused")):
            resp = self.client.post("/api/bookings/couples/", {
                "customer": self.customer.id,
                "primary_service": self.facial.id,
                "primary_staff": self.selma.id,
                "secondary_staff": self.tanisha.id,
                "date": self.monday,
                "time": "11:00",
            }, format="json")
        self.assertEqual(resp.status_code, 503)
        self.assertIn("detail", resp.json())

    # ---- read endpoints ----

    def test_availability(self):
        self.client.post("/api/bookings/", self.booking_payload(), format="json")
        resp = self.client.get("/api/bookings/availability/", {
            "service": self.facial.id, "date": self.monday, "staff": self.selma.id,
        })
        self.assertEqual(resp.status_code, 200)
        times = [s["time"] for s in resp.json()["slots"]]
        self.assertIn("09:00", times)
        self.assertNotIn("10:00", times)

    def test_availability_bad_input(self):
        self.assertEqual(self.client.get("/api/bookings/availability/").status_code, 400)
        resp = self.client.get("/api/bookings/availability/", {"service": self.facial.id, "date": "soon"})
        self.assertEqual(resp.status_code, 400)

    def test_room_assignment(self):
        resp = self.client.get("/api/bookings/room-assignment/", {
            "service": self.scrub.id, "date": self.monday, "time": "10:00",
        })
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["room_name"], "Room 3")
        self.assertEqual(resp.json()["errors"], [])

    def test_list_by_date(self):
        self.client.post("/api/bookings/", self.booking_payload(), format="json")
        resp = self.client.get("/api/bookings/", {"date": self.monday})
        self.assertEqual(len(resp.json()), 1)
        self.assertEqual(len(self.client.get("/api/bookings/", {"date": self.tuesday}).json()), 0)

    # ---- cancel ----

    def test_cancel(self):
        booking_id = self.client.post("/api/bookings/", self.booking_payload(), format="json").json()["id"]
        resp = self.client.post(f"/api/bookings/{booking_id}/cancel/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(Reservation.objects.get(pk=booking_id).status, "cancelled")

        again = self.client.post(f"/api/bookings/{booking_id}/cancel/")
        self.assertEqual(again.status_code, 400)

    # ---- reschedule ----

    def test_reschedule_is_staff_only(self):
        booking_id = self.client.post("/api/bookings/", self.booking_payload(), format="json").json()["id"]
        resp = self.client.post(f"/api/bookings/{booking_id}/reschedule/",
                                {"date": self.monday, "time": "10:15"}, format="json")
        self.assertEqual(resp.status_code, 403)

        admin = get_user_model().objects.create_user("front", password="x", is_staff=True)
        self.client.force_authenticate(admin)
        resp = self.client.post(f"/api/bookings/{booking_id}/reschedule/",
                                {"date": self.monday, "time": "10:15"}, format="json")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["id"], booking_id)
        self.assertEqual(resp.json()["start_time"], "10:15")

    def test_reschedule_onto_another_booking(self):
        self.client.post("/api/bookings/", self.booking_payload(), format="json")
        later = self.client.post("/api/bookings/", self.booking_payload(time="11:00"), format="json").json()["id"]
        admin = get_user_model().objects.create_user("front", password="x", is_staff=True)
        self.client.force_authenticate(admin)
        resp = self.client.post(f"/api/bookings/{later}/reschedule/",
                                {"date": self.monday, "time": "10:15", "room": self.room1.id}, format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual([e["code"] for e in resp.json()["errors"]], ["room_conflict", "staff_conflict"])

    def test_reschedule_cancelled_booking(self):
        booking_id = self.client.post("/api/bookings/", self.booking_payload(), format="json").json()["id"]
        self.client.post(f"/api/bookings/{booking_id}/cancel/")
        admin = get_user_model().objects.create_user("front", password="x", is_staff=True)
        self.client.force_authenticate(admin)
        resp = self.client.post(f"/api/bookings/{booking_id}/reschedule/",
                                {"date": self.monday, "time": "12:00"}, format="json")
        self.assertEqual(resp.status_code, 400)
        self.assertIn("cancelled", resp.json()["detail"])

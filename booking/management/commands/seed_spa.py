"""
seed_spa.py
-----------
Seeds (creates or updates) the spa: treatment rooms, the service catalog and
the therapist roster. Safe to run any time; rows are upserted by unique name
(rooms, services) or email (staff).

Usage:
    python manage.py seed_spa
"""

from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from booking.models import Room, Service
from staff.models import Staff

ROOMS = [
    {"name": "Room 1", "capabilities": ["facial", "waxing"],
     "has_body_scrub_equipment": False, "is_couples_room": False, "capacity": 1},
    {"name": "Room 2", "capabilities": ["facial", "waxing", "massage", "body_treatment", "package"],
     "has_body_scrub_equipment": False, "is_couples_room": True, "capacity": 2},
    {"name": "Room 3", "capabilities": ["facial", "waxing", "massage", "body_treatment", "body_scrub", "package"],
     "has_body_scrub_equipment": True, "is_couples_room": True, "capacity": 2},
]

CATALOG = [
    # Facials
    {"name": "Basic Facial",             "category": "facial", "duration_minutes": 30, "price": Decimal("65.00")},
    {"name": "Deep Cleansing Facial",    "category": "facial", "duration_minutes": 60, "price": Decimal("79.00")},
    {"name": "Placenta/Collagen Facial", "category": "facial", "duration_minutes": 60, "price": Decimal("90.00")},
    {"name": "Microderm Facial",         "category": "facial", "duration_minutes": 60, "price": Decimal("99.00")},
    {"name": "Vitamin C Facial",         "category": "facial", "duration_minutes": 60, "price": Decimal("120.00")},

    # Massages
    {"name": "Balinese Body Massage",        "category": "massage", "duration_minutes": 60, "price": Decimal("80.00")},
    {"name": "Deep Tissue Body Massage",     "category": "massage", "duration_minutes": 60, "price": Decimal("90.00")},
    {"name": "Hot Stone Massage",            "category": "massage", "duration_minutes": 60, "price": Decimal("90.00")},
    {"name": "Hot Stone Massage 90 Minutes", "category": "massage", "duration_minutes": 90, "price": Decimal("120.00")},

    # Body treatments and scrubs (scrubs need the equipped room)
    {"name": "Back Treatment",            "category": "body_treatment", "duration_minutes": 30, "price": Decimal("99.00")},
    {"name": "Mud Mask Body Wrap",        "category": "body_treatment", "duration_minutes": 30, "price": Decimal("65.00")},
    {"name": "Dead Sea Salt Body Scrub",  "category": "body_scrub", "duration_minutes": 30, "price": Decimal("65.00"),
     "requires_body_scrub_room": True},

    # Waxing
    {"name": "Eyebrow Waxing",   "category": "waxing", "duration_minutes": 15, "price": Decimal("20.00")},
    {"name": "Full Leg Waxing",  "category": "waxing", "duration_minutes": 60, "price": Decimal("80.00")},
    {"name": "Bikini Waxing",    "category": "waxing", "duration_minutes": 30, "price": Decimal("35.00")},

    # Packages (couples rooms only)
    {"name": "Balinese Body Massage + Basic Facial", "category": "package", "duration_minutes": 90,
     "price": Decimal("130.00"), "is_package": True, "requires_couples_room": True},
    {"name": "Deep Tissue Body Massage + 3Face", "category": "package", "duration_minutes": 120,
     "price": Decimal("180.00"), "is_package": True, "requires_couples_room": True},
    {"name": "Hot Stone Body Massage + Microderm Facial", "category": "package", "duration_minutes": 150,
     "price": Decimal("200.00"), "is_package": True, "requires_couples_room": True},
]


def _week(days_on, start="09:00", end="19:00"):
    keys = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")
    return {
        key: ({"available": True, "start_time": start, "end_time": end} if key in days_on
              else {"available": False})
        for key in keys
    }


EVERY_DAY = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")
NO_TUE_THU = ("mon", "wed", "fri", "sat", "sun")

ROSTER = [
    {"name": "Selma", "email": "selma@spa.local", "can_perform_services": ["facial"],
     "schedule": _week(NO_TUE_THU), "default_room": "Room 1", "min_notice_minutes": 30},
    {"name": "Robyn", "email": "robyn@spa.local",
     "can_perform_services": ["facial", "massage", "body_treatment", "body_scrub", "waxing", "package"],
     "schedule": _week(EVERY_DAY), "default_room": "Room 3", "min_notice_minutes": 0},
    {"name": "Tanisha", "email": "tanisha@spa.local", "can_perform_services": ["facial", "waxing"],
     "schedule": _week(NO_TUE_THU), "default_room": "Room 2", "min_notice_minutes": 120},
    {"name": "Leonel", "email": "leonel@spa.local", "can_perform_services": ["massage", "body_treatment"],
     "schedule": _week(("sun",)), "default_room": None, "min_notice_minutes": 0},
]


class Command(BaseCommand):
    help = "Seed or update rooms, services and staff for the spa."

    @transaction.atomic
    def handle(self, *args, **options):
        rooms = {}
        for item in ROOMS:
            fields = {k: v for k, v in item.items() if k != "name"}
            room, _ = Room.objects.update_or_create(name=item["name"], defaults={**fields, "is_active": True})
            rooms[room.name] = room

        created = updated = 0
        for item in CATALOG:
            defaults = {
                "description": item.get("description", ""),
                "category": item["category"],
                "duration_minutes": item["duration_minutes"],
                "price": item["price"],
                "requires_couples_room": item.get("requires_couples_room", False),
                "requires_body_scrub_room": item.get("requires_body_scrub_room", False),
                "is_package": item.get("is_package", False),
                "active": True,
            }
            _, is_created = Service.objects.update_or_create(name=item["name"], defaults=defaults)
            if is_created:
                created += 1
            else:
                updated += 1

        for item in ROSTER:
            Staff.objects.update_or_create(
                email=item["email"],
                defaults={
                    "name": item["name"],
                    "can_perform_services": item["can_perform_services"],
                    "schedule": item["schedule"],
                    "default_room": rooms.get(item["default_room"]),
                    "min_notice_minutes": item["min_notice_minutes"],
                    "is_active": True,
                },
            )

        self.stdout.write(self.style.SUCCESS(
            f"Rooms: {len(ROOMS)}. Services created: {created}, updated: {updated}. Staff: {len(ROSTER)}."
        ))

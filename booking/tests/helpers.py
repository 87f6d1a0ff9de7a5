# booking/tests/helpers.py
#
# Builders for engine snapshots and ORM rows shared by the booking tests.

from datetime import date, timedelta

from django.utils import timezone

from booking.services.domain import (
    WEEKDAY_KEYS,
    DaySchedule,
    ReservationInfo,
    RoomInfo,
    ServiceInfo,
    StaffInfo,
)
from booking.services.time_grid import BusinessHours

# Fixed calendar for the pure engine tests (2026-11-02 is a Monday)
MONDAY = date(2026, 11, 2)
TUESDAY = MONDAY + timedelta(days=1)
WEDNESDAY = MONDAY + timedelta(days=2)
THURSDAY = MONDAY + timedelta(days=3)
SUNDAY = MONDAY + timedelta(days=6)

HOURS = BusinessHours(9 * 60, 19 * 60)


def week(days_on=WEEKDAY_KEYS, start="09:00", end="19:00"):
    return {
        key: DaySchedule(True, start, end) if key in days_on else DaySchedule(False)
        for key in WEEKDAY_KEYS
    }


def service(id=1, name="Basic Facial", duration=30, category="facial", **kwargs):
    return ServiceInfo(id=id, name=name, duration=duration, category=category, **kwargs)


def scrub_service(id=2):
    return ServiceInfo(id=id, name="Dead Sea Salt Body Scrub", duration=30,
                       category="body_scrub", requires_body_scrub_room=True)


def package_service(id=3):
    return ServiceInfo(id=id, name="Balinese Body Massage + Basic Facial", duration=90,
                       category="package", is_package=True, requires_couples_room=True)


def staff(id=1, name="Selma", can=("facial",), days_on=WEEKDAY_KEYS, **kwargs):
    return StaffInfo(id=id, name=name, can_perform_services=frozenset(can),
                     schedule=week(days_on), **kwargs)


def room(id=1, name="Room 1", capabilities=("facial", "waxing"), **kwargs):
    return RoomInfo(id=id, name=name, capabilities=frozenset(capabilities), **kwargs)


def spa_rooms():
    """Room 1 single, Room 2 couples, Room 3 couples with scrub equipment."""
    return [
        room(1, "Room 1", ("facial", "waxing")),
        room(2, "Room 2", ("facial", "waxing", "massage", "body_treatment", "package"),
             is_couples_room=True),
        room(3, "Room 3", ("facial", "waxing", "massage", "body_treatment", "body_scrub", "package"),
             is_couples_room=True, has_body_scrub_equipment=True),
    ]


def booked(id, room_id, staff_id, on_date, start, duration, **kwargs):
    return ReservationInfo(id=id, room_id=room_id, staff_id=staff_id, date=on_date,
                           start=start, duration=duration, **kwargs)


def next_weekday(weekday, min_days=2):
    """The first date with ``weekday`` (Monday == 0) at least ``min_days`` from today."""
    day = timezone.localdate() + timedelta(days=min_days)
    while day.weekday() != weekday:
        day += timedelta(days=1)
    return day

"""
domain.py
---------
Immutable snapshots the booking engine works on.

The engine never touches the ORM: callers build these values from model rows
(see the ``from_model`` helpers) or construct them directly in tests. Times of
day are plain ints, minutes since midnight.
"""

from dataclasses import dataclass, field
from datetime import date as date_type
from typing import Mapping, Optional

CATEGORY_CHOICES = [
    ("facial", "Facial Treatments"),
    ("massage", "Body Massages"),
    ("body_treatment", "Body Treatments"),
    ("body_scrub", "Body Scrubs"),
    ("waxing", "Waxing Services"),
    ("package", "Package Deals"),
    ("membership", "Memberships"),
]
CATEGORIES = frozenset(code for code, _label in CATEGORY_CHOICES)

STATUS_CHOICES = [
    ("confirmed", "Confirmed"),
    ("in_progress", "In progress"),
    ("completed", "Completed"),
    ("cancelled", "Cancelled"),
    ("no_show", "No show"),
]
CANCELLED = "cancelled"

# Schedule map keys, indexed by date.weekday() (Monday == 0)
WEEKDAY_KEYS = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")
WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


@dataclass(frozen=True)
class ServiceInfo:
    id: object
    name: str
    duration: int
    category: str
    price: object = None
    requires_couples_room: bool = False
    requires_body_scrub_room: bool = False
    is_package: bool = False

    @classmethod
    def from_model(cls, service):
        return cls(
            id=service.pk,
            name=service.name,
            duration=service.duration_minutes,
            category=service.category,
            price=service.price,
            requires_couples_room=service.requires_couples_room,
            requires_body_scrub_room=service.requires_body_scrub_room,
            is_package=service.is_package,
        )


@dataclass(frozen=True)
class DaySchedule:
    available: bool
    start_time: Optional[str] = None
    end_time: Optional[str] = None


@dataclass(frozen=True)
class StaffInfo:
    id: object
    name: str
    can_perform_services: frozenset
    schedule: Mapping[str, DaySchedule] = field(default_factory=dict)
    default_room_id: object = None
    min_notice_minutes: int = 0
    is_active: bool = True

    @classmethod
    def from_model(cls, staff):
        return cls(
            id=staff.pk,
            name=staff.name,
            can_perform_services=frozenset(staff.can_perform_services or ()),
            schedule=parse_schedule(staff.schedule),
            default_room_id=staff.default_room_id,
            min_notice_minutes=staff.min_notice_minutes or 0,
            is_active=staff.is_active,
        )


@dataclass(frozen=True)
class RoomInfo:
    id: object
    name: str
    capabilities: frozenset
    has_body_scrub_equipment: bool = False
    is_couples_room: bool = False
    is_active: bool = True

    @classmethod
    def from_model(cls, room):
        return cls(
            id=room.pk,
            name=room.name,
            capabilities=frozenset(room.capabilities or ()),
            has_body_scrub_equipment=room.has_body_scrub_equipment,
            is_couples_room=room.is_couples_room,
            is_active=room.is_active,
        )


@dataclass(frozen=True)
class ReservationInfo:
    id: object
    room_id: object
    staff_id: object
    date: date_type
    start: int
    duration: int
    status: str = "confirmed"
    group_id: object = None

    @property
    def end(self) -> int:
        return self.start + self.duration

    @property
    def is_cancelled(self) -> bool:
        return self.status == CANCELLED

    @classmethod
    def from_model(cls, reservation):
        start = reservation.start_time
        return cls(
            id=reservation.pk,
            room_id=reservation.room_id,
            staff_id=reservation.staff_id,
            date=reservation.date,
            start=start.hour * 60 + start.minute,
            duration=reservation.duration_minutes,
            status=reservation.status,
            group_id=reservation.group_id,
        )


@dataclass(frozen=True)
class BookingRequest:
    """A candidate single booking. ``time`` is the caller's "HH:MM" string."""

    service: ServiceInfo
    staff: StaffInfo
    room: RoomInfo
    date: date_type
    time: str


@dataclass(frozen=True)
class CouplesBookingRequest:
    """
    Two participants sharing one date/time and one couples room.
    A leg's staff may be None, meaning "any available staff member".
    """

    primary_service: ServiceInfo
    secondary_service: ServiceInfo
    primary_staff: Optional[StaffInfo]
    secondary_staff: Optional[StaffInfo]
    date: date_type
    time: str
    customer: object = None
    notes: str = ""


def parse_schedule(raw) -> dict:
    """
    Convert the JSON schedule stored on a Staff row into DaySchedule values.

    Accepts {"mon": {"available": true, "start_time": "09:00", "end_time": "19:00"}, ...}.
    A day mapped to false/None (or missing) is treated as unavailable.
    """
    schedule = {}
    for key, value in (raw or {}).items():
        key = str(key).lower()[:3]
        if isinstance(value, dict):
            schedule[key] = DaySchedule(
                available=bool(value.get("available")),
                start_time=value.get("start_time"),
                end_time=value.get("end_time"),
            )
        else:
            schedule[key] = DaySchedule(available=bool(value))
    return schedule

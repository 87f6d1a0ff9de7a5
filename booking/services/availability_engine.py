"""
availability_engine.py
----------------------
Computes availability for a service on one day by checking candidate slots on
the 15-minute grid against:
1) staff capability, schedule and existing bookings, and
2) room capability and existing bookings (via the room resolver).

Also resolves "any available staff" requests to a concrete staff member.
Inputs are engine snapshots (see domain.py); nothing here touches the ORM.
"""

from . import room_resolver, schedule_validator
from .capability_matcher import staff_can_perform
from .conflict_detector import STAFF, find_overlap
from .time_grid import default_business_hours, format_hhmm, generate_slots, parse_hhmm


class AvailabilityEngine:
    def __init__(self, hours=None):
        self.hours = hours if hours is not None else default_business_hours()

    def is_slot_available_for_staff(self, staff, service, on_date, start: int, reservations=()) -> bool:
        if not staff_can_perform(staff, service).ok:
            return False
        if not schedule_validator.is_available_at(staff, on_date, start, service.duration).ok:
            return False
        hit = find_overlap(reservations, staff.id, start, service.duration,
                           resource=STAFF, on_date=on_date)
        return hit is None

    def find_available_staff(self, service, staff_list, on_date, time, reservations=(), exclude_ids=()):
        """First qualified, on-shift, free staff member by id, or None."""
        start = time if isinstance(time, int) else parse_hhmm(time)
        for staff in sorted(staff_list, key=lambda s: s.id):
            if staff.id in exclude_ids:
                continue
            if self.is_slot_available_for_staff(staff, service, on_date, start, reservations):
                return staff
        return None

    def find_available_slots(self, service, on_date, staff_list, rooms, reservations=()):
        staff_list = sorted(staff_list, key=lambda s: s.id)
        reservations = list(reservations)

        results = []
        for start in generate_slots(service.duration, self.hours):
            free_staff_ids = []
            room_id = None
            for staff in staff_list:
                if not self.is_slot_available_for_staff(staff, service, on_date, start, reservations):
                    continue
                assignment = room_resolver.resolve(service, staff, rooms, on_date, start, reservations)
                if assignment.room is None:
                    continue
                free_staff_ids.append(staff.id)
                if room_id is None:
                    room_id = assignment.room.id
            if free_staff_ids:
                results.append({
                    "time": format_hhmm(start),
                    "staff_ids": free_staff_ids,
                    "room_id": room_id,
                })

        return {"slots": results}

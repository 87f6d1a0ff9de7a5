"""
booking_validator.py
--------------------
One pass/fail verdict for a candidate booking.

Checks run in a fixed order and every failure is collected, so the caller gets
the full list in one round trip:

    business hours -> booking window (clock only) -> staff capability
    -> staff schedule -> room capability -> room / staff conflicts

Blocking problems go to ``errors``; advisory ones (room differs from the
resolver's recommendation, on-call notice for same-day requests) go to
``warnings``. Rule violations are returned, never raised. ValueError is kept
for programmer errors such as a missing service.

Without a clock the validator is a pure function of its arguments. Pass
``clock`` (a callable returning the local datetime) to enable the past-date,
advance-window and notice checks.
"""

from datetime import timedelta

from . import room_resolver, schedule_validator
from .capability_matcher import room_can_host, staff_can_perform
from .conflict_detector import ROOM, STAFF, find_all_overlaps
from .domain import CATEGORIES
from .results import ValidationResult
from .time_grid import (
    default_business_hours,
    end_time,
    format_hhmm,
    parse_booking_date,
    parse_hhmm,
    within_business_hours,
)

DEFAULT_MAX_ADVANCE_DAYS = 30


class BookingValidator:
    def __init__(self, hours=None, clock=None, max_advance_days: int = DEFAULT_MAX_ADVANCE_DAYS):
        self.hours = hours if hours is not None else default_business_hours()
        self.clock = clock
        self.max_advance_days = max_advance_days

    def validate_request(self, request, existing_reservations=(), candidate_rooms=None, **kwargs):
        return self.validate(
            request.service, request.staff, request.room, request.date, request.time,
            existing_reservations, candidate_rooms=candidate_rooms, **kwargs
        )

    def validate(
        self,
        service,
        staff,
        room,
        date,
        time,
        existing_reservations=(),
        candidate_rooms=None,
        exclude_id=None,
        exclude_group=None,
    ) -> ValidationResult:
        for label, value in (("service", service), ("staff", staff), ("room", room), ("date", date)):
            if value is None:
                raise ValueError(f"{label} is required")

        result = ValidationResult()
        reservations = list(existing_reservations)

        try:
            on_date = parse_booking_date(date)
        except ValueError as e:
            result.error("invalid_date", str(e))
            on_date = None

        try:
            start = parse_hhmm(time)
        except ValueError as e:
            result.error("invalid_time", str(e))
            start = None

        duration = service.duration
        if not isinstance(duration, int) or duration <= 0:
            result.error("invalid_duration", f"{service.name} has no valid duration")
            start = None

        now = self.clock() if self.clock is not None else None

        # 1) business hours
        if start is not None:
            self._check_business_hours(result, start, duration)

        # 2) booking window
        if now is not None and on_date is not None:
            self._check_booking_window(result, on_date, start, now)

        # 3) staff capability / 4) schedule / 5) room capability
        if service.category not in CATEGORIES:
            result.error("unknown_category", f"Unknown service category '{service.category}'")
            category_ok = False
        else:
            category_ok = True
            staff_check = staff_can_perform(staff, service)
            for reason in staff_check.reasons:
                result.error("staff_not_qualified", reason)

        if on_date is not None:
            if start is not None:
                schedule = schedule_validator.is_available_at(staff, on_date, start, duration)
            else:
                schedule = schedule_validator.is_available(staff, on_date)
            # an inactive staff member is already reported by the capability check
            for reason in schedule.reasons:
                if reason not in result.error_messages:
                    result.error("staff_unavailable", reason)

        room_ok = False
        if category_ok:
            room_check = room_can_host(room, service)
            room_ok = room_check.ok
            for reason in room_check.reasons:
                result.error("room_not_capable", reason)

        # 6) conflicts against the room's and the staff member's reservations
        if on_date is None or start is None:
            return result

        room_hits = find_all_overlaps(
            reservations, room.id, start, duration, exclude_id=exclude_id,
            resource=ROOM, on_date=on_date, exclude_group=exclude_group,
        )
        staff_hits = find_all_overlaps(
            reservations, staff.id, start, duration, exclude_id=exclude_id,
            resource=STAFF, on_date=on_date,
        )
        for r in room_hits:
            result.error(
                "room_conflict",
                f"{room.name} is already booked from {format_hhmm(r.start)} to {format_hhmm(r.end)}",
            )
        for r in staff_hits:
            result.error(
                "staff_conflict",
                f"{staff.name} is already booked from {format_hhmm(r.start)} to {format_hhmm(r.end)}",
            )
        seen = set()
        for r in room_hits + staff_hits:
            if r.id not in seen:
                seen.add(r.id)
                result.conflicts.append(r)

        # warnings
        if candidate_rooms is not None and room_ok and not room_hits:
            assignment = room_resolver.resolve(
                service, staff, candidate_rooms, on_date, start, reservations,
                exclude_id=exclude_id, exclude_group=exclude_group,
            )
            if room_resolver.is_suboptimal(room, assignment):
                result.warn(
                    "suboptimal_room",
                    f"{room.name} may not be optimal for this service; "
                    f"recommended: {assignment.room.name} ({assignment.reason})",
                )

        if now is not None:
            shortfall = schedule_validator.notice_shortfall(staff, on_date, start, now)
            if shortfall:
                result.warn(
                    "short_notice",
                    f"{staff.name} is on call and needs {staff.min_notice_minutes} minutes' "
                    f"notice for same-day bookings",
                )

        return result

    def _check_business_hours(self, result, start: int, duration: int) -> None:
        if within_business_hours(start, duration, self.hours):
            return
        if start < self.hours.open:
            result.error(
                "outside_business_hours",
                f"Appointment cannot start before business hours ({format_hhmm(self.hours.open)})",
            )
        else:
            result.error(
                "outside_business_hours",
                f"Appointment would end at {format_hhmm(end_time(start, duration))}, "
                f"after business hours ({format_hhmm(self.hours.close)})",
            )

    def _check_booking_window(self, result, on_date, start, now) -> None:
        today = now.date()
        if on_date < today:
            result.error("past_date", "Cannot book appointments for past dates")
        elif on_date == today and start is not None and start < now.hour * 60 + now.minute:
            result.error("past_time", "Cannot book appointments for times that have already passed today")
        if on_date > today + timedelta(days=self.max_advance_days):
            result.error(
                "too_far_ahead",
                f"Cannot book more than {self.max_advance_days} days in advance",
            )

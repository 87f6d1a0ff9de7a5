"""
booking_manager.py
------------------
Coordinates booking creation, rescheduling and cancellation on top of the engine.

- Single bookings: validate against a fresh snapshot, then commit through the
  store (which re-checks overlap under lock).
- Couples bookings: delegated to CouplesBookingOrchestrator.
- Rescheduling: same checks as a new booking, ignoring the reservation being
  moved; the new slot needs the same 2 hours of notice as a cancellation.
- Cancellation: 2-hour cutoff (CANCEL_CUTOFF_MINUTES).

Model instances come in from the views; they are turned into engine snapshots
here so the engine itself never touches the ORM.
"""

import logging
from datetime import datetime, timedelta
from datetime import time as time_of_day

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from ..models import Reservation, Room
from .availability_engine import AvailabilityEngine
from .booking_store import DjangoBookingStore
from .booking_validator import BookingValidator
from .capability_matcher import room_can_host
from .conflict_detector import find_overlap
from .couples_orchestrator import CouplesBookingOrchestrator
from .domain import CANCELLED, CouplesBookingRequest, RoomInfo, ServiceInfo, StaffInfo
from .room_resolver import resolve
from .time_grid import get_business_hours, parse_booking_date, parse_hhmm

logger = logging.getLogger(__name__)


def engine_settings() -> dict:
    return getattr(settings, "BOOKING_ENGINE", {})


def _starts_at(on_date, start_time, now):
    """Appointment start as a datetime comparable with ``now``."""
    starts_at = datetime.combine(on_date, start_time)
    if timezone.is_aware(now):
        starts_at = timezone.make_aware(starts_at, now.tzinfo)
    return starts_at


class BookingRejected(ValueError):
    """A booking failed validation; ``result`` carries the full error list."""

    def __init__(self, result):
        super().__init__("; ".join(result.error_messages) or "Booking is not valid")
        self.result = result


class BookingManager:
    def __init__(self, store=None, clock=None, sleep=None):
        self.store = store if store is not None else DjangoBookingStore()
        self.clock = clock if clock is not None else timezone.localtime
        self.sleep = sleep

    def build_validator(self) -> BookingValidator:
        return BookingValidator(
            hours=get_business_hours(),
            clock=self.clock,
            max_advance_days=engine_settings().get("MAX_ADVANCE_DAYS", 30),
        )

    def validate(self, service, staff, room, date, time, exclude_id=None):
        """
        Validate a candidate booking given model instances.
        All active rooms are passed as candidates so a suboptimal room choice is flagged.
        """
        on_date = parse_booking_date(date)
        reservations = self.store.fetch_day_reservations(on_date)
        return self.build_validator().validate(
            ServiceInfo.from_model(service),
            StaffInfo.from_model(staff),
            RoomInfo.from_model(room),
            on_date,
            time,
            reservations,
            candidate_rooms=self.store.list_rooms(),
            exclude_id=exclude_id,
        )

    def resolve_room(self, service, staff, date, time):
        on_date = parse_booking_date(date)
        return resolve(
            ServiceInfo.from_model(service),
            StaffInfo.from_model(staff) if staff is not None else None,
            self.store.list_rooms(),
            on_date,
            time,
            self.store.fetch_day_reservations(on_date),
        )

    def create_booking(self, customer, service, staff, room, date, time, notes=""):
        """
        Validate and commit a single booking.

        Args:
            customer: Customer instance
            service: Service instance
            staff: Staff instance, or None for any available staff member
            room: Room instance, or None to use the recommended room
            date: date or 'YYYY-MM-DD'
            time: 'HH:MM'

        Raises:
            BookingRejected: the request breaks a business rule.
            CommitConflictError: another booking won the race at commit time.
        """
        on_date = parse_booking_date(date)
        service_info = ServiceInfo.from_model(service)
        reservations = self.store.fetch_day_reservations(on_date)
        rooms = self.store.list_rooms()
        hours = get_business_hours()

        if staff is None:
            staff_info = AvailabilityEngine(hours=hours).find_available_staff(
                service_info, self.store.list_staff(), on_date, time, reservations
            )
            if staff_info is None:
                raise ValueError("No staff available for that time.")
        else:
            staff_info = StaffInfo.from_model(staff)

        if room is None:
            assignment = resolve(service_info, staff_info, rooms, on_date, time, reservations)
            if assignment.room is None:
                raise ValueError("; ".join(assignment.errors))
            room_info = assignment.room
        else:
            room_info = RoomInfo.from_model(room)

        result = self.build_validator().validate(
            service_info, staff_info, room_info, on_date, time, reservations, candidate_rooms=rooms
        )
        if not result.is_valid:
            raise BookingRejected(result)

        committed = self.store.commit_single_booking(
            service_info, staff_info, room_info, customer, on_date, time, notes=notes
        )
        reservation = Reservation.objects.get(pk=committed["booking_id"])
        reservation.warnings = result.warning_messages
        return reservation

    def book_couples(self, customer, primary_service, secondary_service, primary_staff,
                     secondary_staff, date, time, notes=""):
        conf = engine_settings()
        orchestrator = CouplesBookingOrchestrator(
            self.store,
            validator=self.build_validator(),
            max_attempts=conf.get("COUPLES_MAX_ATTEMPTS", 3),
            backoff_ms=conf.get("COUPLES_BACKOFF_MS", 1000),
            **({"sleep": self.sleep} if self.sleep is not None else {}),
        )
        request = CouplesBookingRequest(
            primary_service=ServiceInfo.from_model(primary_service),
            secondary_service=ServiceInfo.from_model(secondary_service),
            primary_staff=StaffInfo.from_model(primary_staff) if primary_staff is not None else None,
            secondary_staff=StaffInfo.from_model(secondary_staff) if secondary_staff is not None else None,
            date=parse_booking_date(date),
            time=time,
            customer=customer,
            notes=notes,
        )
        return orchestrator.book(request)

    def reschedule_booking(self, reservation, date, time, staff=None, room=None):
        """
        Move a reservation to a new date/time, optionally with new staff or room.

        - staff None keeps the current staff member.
        - room None keeps the current room while it is free, otherwise the
          recommended room is used.
        - The reservation's own old slot is ignored by the conflict checks.

        Raises:
            ValueError: cancelled, already started, couples leg, or under 2 hours' notice.
            BookingRejected: the new slot breaks a business rule.
            CommitConflictError: another booking won the race at commit time.
        """
        if reservation.status == CANCELLED:
            raise ValueError("Cannot reschedule a cancelled booking.")
        if reservation.group_id:
            raise ValueError(
                "Couples bookings cannot be moved one appointment at a time; cancel and rebook both."
            )
        now = self.clock()
        if _starts_at(reservation.date, reservation.start_time, now) <= now:
            raise ValueError("Cannot reschedule a booking that has already started.")

        on_date = parse_booking_date(date)
        staff = staff if staff is not None else reservation.staff
        if room is None:
            room = self._room_for_move(reservation, staff, on_date, time)

        result = self.validate(reservation.service, staff, room, on_date, time, exclude_id=reservation.pk)
        if not result.is_valid:
            raise BookingRejected(result)

        cutoff_minutes = engine_settings().get("CANCEL_CUTOFF_MINUTES", 120)
        start = parse_hhmm(time)
        new_start = _starts_at(on_date, time_of_day(start // 60, start % 60), now)
        if new_start - now < timedelta(minutes=cutoff_minutes):
            raise ValueError(f"The new time needs at least {cutoff_minutes // 60} hours' notice.")

        self.store.commit_reschedule(
            reservation.pk,
            ServiceInfo.from_model(reservation.service),
            StaffInfo.from_model(staff),
            RoomInfo.from_model(room),
            on_date,
            time,
        )
        reservation.refresh_from_db()
        reservation.warnings = result.warning_messages
        return reservation

    def _room_for_move(self, reservation, staff, on_date, time):
        try:
            start = parse_hhmm(time)
        except ValueError:
            # the validator reports the malformed time
            return reservation.room
        service = ServiceInfo.from_model(reservation.service)
        reservations = self.store.fetch_day_reservations(on_date)
        current = RoomInfo.from_model(reservation.room)
        if room_can_host(current, service).ok and find_overlap(
            reservations, current.id, start, service.duration,
            exclude_id=reservation.pk, on_date=on_date,
        ) is None:
            return reservation.room

        assignment = resolve(service, StaffInfo.from_model(staff), self.store.list_rooms(),
                             on_date, start, reservations, exclude_id=reservation.pk)
        if assignment.room is None:
            raise ValueError("; ".join(assignment.errors))
        return Room.objects.get(pk=assignment.room.id)

    @transaction.atomic
    def cancel_booking(self, reservation, cutoff_minutes=None) -> bool:
        """
        Cancel a reservation if outside the cutoff window.
        Cancelling one leg of a couples booking cancels its partner too.
        """
        if cutoff_minutes is None:
            cutoff_minutes = engine_settings().get("CANCEL_CUTOFF_MINUTES", 120)
        if reservation.status == CANCELLED:
            raise ValueError("This booking is already cancelled.")

        now = self.clock()
        if _starts_at(reservation.date, reservation.start_time, now) - now <= timedelta(minutes=cutoff_minutes):
            raise ValueError(
                f"Cannot cancel within {cutoff_minutes // 60} hours of appointment start."
            )

        qs = Reservation.objects.filter(pk=reservation.pk)
        if reservation.group_id:
            qs = Reservation.objects.filter(group_id=reservation.group_id)
        cancelled_at = timezone.now()
        count = qs.exclude(status=CANCELLED).update(status=CANCELLED, cancellation_time=cancelled_at)
        reservation.status = CANCELLED
        reservation.cancellation_time = cancelled_at
        logger.info("Cancelled %d reservation(s) starting from #%s", count, reservation.pk)
        return True

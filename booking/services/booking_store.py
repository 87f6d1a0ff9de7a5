"""
booking_store.py
----------------
Django implementation of the data-store boundary the engine talks to:

- fetch_reservations(resource_type, resource_id, date)
- commit_single_booking(...)      authoritative, atomic, re-checks overlap
- commit_reschedule(...)          moves one reservation, same locks and re-check
- commit_couples_booking(...)     authoritative, all-or-nothing, per-leg results
- check_availability_advisory(...) non-authoritative pre-check

Commit-time exclusion: inside transaction.atomic the room and staff rows are
locked with select_for_update, the day's reservations are re-read and the
conflict detector is run again. A clash raises CommitConflictError.
"""

import logging
import uuid
from datetime import time as time_of_day

from django.db import DatabaseError, transaction

from staff.models import Staff

from ..models import Reservation, Room, Service
from . import room_resolver
from .capability_matcher import room_can_host
from .conflict_detector import ROOM, STAFF, find_overlap
from .domain import CANCELLED, ReservationInfo, RoomInfo, StaffInfo
from .errors import CommitConflictError, CommitTransportError
from .results import AdvisoryResult, LegResult
from .time_grid import format_hhmm, parse_hhmm

logger = logging.getLogger(__name__)


def _to_time(minutes: int) -> time_of_day:
    return time_of_day(minutes // 60, minutes % 60)


def _pk(obj):
    return getattr(obj, "pk", None) or getattr(obj, "id", None) or obj


class DjangoBookingStore:
    # ---- read path ----

    def list_rooms(self) -> list:
        return [RoomInfo.from_model(r) for r in Room.objects.filter(is_active=True).order_by("id")]

    def list_staff(self) -> list:
        return [StaffInfo.from_model(s) for s in Staff.objects.filter(is_active=True).order_by("id")]

    def fetch_reservations(self, resource_type: str, resource_id, on_date) -> list:
        if resource_type == ROOM:
            qs = Reservation.objects.filter(room_id=resource_id)
        elif resource_type == STAFF:
            qs = Reservation.objects.filter(staff_id=resource_id)
        else:
            raise ValueError(f"Unknown resource type '{resource_type}'")
        qs = qs.filter(date=on_date).exclude(status=CANCELLED).order_by("start_time")
        return [ReservationInfo.from_model(r) for r in qs]

    def fetch_day_reservations(self, on_date) -> list:
        qs = Reservation.objects.filter(date=on_date).exclude(status=CANCELLED).order_by("start_time")
        return [ReservationInfo.from_model(r) for r in qs]

    # ---- commit path ----

    def commit_single_booking(self, service, staff, room, customer, on_date, time, notes="") -> dict:
        """
        Create one reservation atomically.

        Returns:
            {"booking_id": <pk>}
        Raises:
            CommitConflictError: the room or staff member was taken concurrently.
            CommitTransportError: the database failed for another reason.
        """
        start = parse_hhmm(time)
        try:
            with transaction.atomic():
                self._lock(room_ids=[_pk(room)], staff_ids=[_pk(staff)])
                self._ensure_free(ROOM, _pk(room), on_date, start, service.duration)
                self._ensure_free(STAFF, _pk(staff), on_date, start, service.duration)
                reservation = Reservation.objects.create(
                    customer_id=_pk(customer),
                    service_id=_pk(service),
                    staff_id=_pk(staff),
                    room_id=_pk(room),
                    date=on_date,
                    start_time=_to_time(start),
                    duration_minutes=service.duration,
                    notes=notes or "",
                )
        except DatabaseError as e:
            logger.exception("Single booking commit failed")
            raise CommitTransportError(str(e)) from e

        logger.info("Committed reservation %s (room %s, staff %s, %s %s)",
                    reservation.pk, _pk(room), _pk(staff), on_date, format_hhmm(start))
        return {"booking_id": reservation.pk}

    def commit_reschedule(self, reservation_id, service, staff, room, on_date, time) -> dict:
        """
        Move an existing reservation under the same locks as a new booking.
        The reservation's own old slot never conflicts with its new one.

        Raises:
            CommitConflictError: the new room or staff slot was taken concurrently.
            CommitTransportError: the database failed for another reason.
        """
        start = parse_hhmm(time)
        try:
            with transaction.atomic():
                self._lock(room_ids=[_pk(room)], staff_ids=[_pk(staff)])
                self._ensure_free(ROOM, _pk(room), on_date, start, service.duration, reservation_id)
                self._ensure_free(STAFF, _pk(staff), on_date, start, service.duration, reservation_id)
                updated = (
                    Reservation.objects.filter(pk=reservation_id)
                    .exclude(status=CANCELLED)
                    .update(
                        staff_id=_pk(staff),
                        room_id=_pk(room),
                        date=on_date,
                        start_time=_to_time(start),
                        duration_minutes=service.duration,
                    )
                )
        except DatabaseError as e:
            logger.exception("Reschedule commit failed")
            raise CommitTransportError(str(e)) from e

        if not updated:
            raise CommitConflictError(
                f"Reservation {reservation_id} was cancelled before it could be moved",
                reservation_id=reservation_id,
            )
        logger.info("Rescheduled reservation %s to room %s, staff %s, %s %s",
                    reservation_id, _pk(room), _pk(staff), on_date, format_hhmm(start))
        return {"booking_id": reservation_id}

    def commit_couples_booking(self, primary_service, secondary_service, primary_staff,
                               secondary_staff, on_date, time, customer, room=None, notes="") -> list:
        """
        Create both legs of a couples booking in one transaction, sharing a room
        and a group id. Either both rows are saved or neither is.

        Returns:
            [LegResult, LegResult] in (primary, secondary) order.
        """
        start = parse_hhmm(time)
        legs = ((primary_service, primary_staff), (secondary_service, secondary_staff))

        try:
            with transaction.atomic():
                if room is None:
                    room = self._pick_couples_room(
                        primary_service, secondary_service, primary_staff, on_date, start
                    )
                room_id = _pk(room)
                self._lock(room_ids=[room_id], staff_ids=[_pk(s) for _, s in legs])

                longest = max(primary_service.duration, secondary_service.duration)
                self._ensure_free(ROOM, room_id, on_date, start, longest)

                group_id = uuid.uuid4()
                results = []
                for service, staff in legs:
                    self._ensure_free(STAFF, _pk(staff), on_date, start, service.duration)
                    problem = self._leg_problem(service, staff)
                    if problem:
                        results.append(LegResult(None, room_id, False, problem))
                        continue
                    reservation = Reservation.objects.create(
                        customer_id=_pk(customer),
                        service_id=_pk(service),
                        staff_id=_pk(staff),
                        room_id=room_id,
                        date=on_date,
                        start_time=_to_time(start),
                        duration_minutes=service.duration,
                        group_id=group_id,
                        notes=notes or "",
                    )
                    results.append(LegResult(reservation.pk, room_id, True))

                if not all(leg.success for leg in results):
                    transaction.set_rollback(True)
                    results = [
                        leg if not leg.success else LegResult(
                            None, room_id, False, "Not saved because the other appointment failed"
                        )
                        for leg in results
                    ]
        except DatabaseError as e:
            logger.exception("Couples booking commit failed")
            raise CommitTransportError(str(e)) from e

        return results

    def check_availability_advisory(self, primary_service, secondary_service, primary_staff,
                                    secondary_staff, on_date, time) -> AdvisoryResult:
        """Best-effort check without locks; a race is still possible afterwards."""
        start = parse_hhmm(time)
        day = self.fetch_day_reservations(on_date)
        for service, staff in ((primary_service, primary_staff), (secondary_service, secondary_staff)):
            hit = find_overlap(day, _pk(staff), start, service.duration, resource=STAFF, on_date=on_date)
            if hit is not None:
                return AdvisoryResult(
                    False, f"{staff.name} is already booked at {format_hhmm(hit.start)}"
                )
        longest = max(primary_service.duration, secondary_service.duration)
        rooms = [
            r for r in self.list_rooms()
            if r.is_couples_room and room_can_host(r, primary_service).ok
            and room_can_host(r, secondary_service).ok
        ]
        if not any(find_overlap(day, r.id, start, longest, resource=ROOM, on_date=on_date) is None
                   for r in rooms):
            return AdvisoryResult(False, "No couples room is free at the requested time")
        return AdvisoryResult(True)

    # ---- helpers ----

    def _lock(self, room_ids, staff_ids) -> None:
        list(Room.objects.select_for_update().filter(pk__in=room_ids).order_by("pk"))
        list(Staff.objects.select_for_update().filter(pk__in=staff_ids).order_by("pk"))

    def _ensure_free(self, resource, resource_id, on_date, start, duration, exclude_id=None) -> None:
        existing = self.fetch_reservations(resource, resource_id, on_date)
        hit = find_overlap(existing, resource_id, start, duration, exclude_id=exclude_id,
                           resource=resource, on_date=on_date)
        if hit is not None:
            logger.warning("Commit conflict on %s %s at %s %s (reservation %s)",
                           resource, resource_id, on_date, format_hhmm(start), hit.id)
            raise CommitConflictError(
                f"The {resource} was booked by someone else from "
                f"{format_hhmm(hit.start)} to {format_hhmm(hit.end)}",
                resource=resource,
                reservation_id=hit.id,
            )

    def _leg_problem(self, service, staff):
        if not Service.objects.filter(pk=_pk(service), active=True).exists():
            return f"{service.name} is not currently available"
        if not Staff.objects.filter(pk=_pk(staff), is_active=True).exists():
            return f"{staff.name} is no longer active"
        return None

    def _pick_couples_room(self, primary_service, secondary_service, staff, on_date, start):
        rooms = [
            r for r in self.list_rooms()
            if r.is_couples_room and room_can_host(r, secondary_service).ok
        ]
        longest = max(primary_service.duration, secondary_service.duration)
        assignment = room_resolver.resolve(primary_service, staff, rooms, on_date, start,
                                           self.fetch_day_reservations(on_date), duration=longest)
        if assignment.room is None:
            raise CommitConflictError("; ".join(assignment.errors), resource=ROOM)
        return assignment.room

"""
couples_orchestrator.py
-----------------------
Books two participants (primary + secondary leg) as one logical operation.

State machine:

    PREPARING -> AVAILABILITY_CHECKED -> COMMITTING -> SUCCEEDED
         |                |                   |
         +----------------+-------------------+------> FAILED

Each attempt re-reads reservations, re-resolves staff and room and
re-validates both legs before committing. Only CommitConflictError (a race lost
at commit time) is retried, up to ``max_attempts`` commits with a linear
backoff of attempt x ``backoff_ms``. Any other failure is terminal.

Success is reported only when the store confirms both legs. A partial commit
result is a failure; undoing partial state is the store's job, not ours.
"""

import enum
import logging
import time as time_module
from dataclasses import dataclass, field

from . import room_resolver
from .availability_engine import AvailabilityEngine
from .booking_validator import BookingValidator
from .capability_matcher import room_can_host
from .conflict_detector import ROOM, STAFF
from .errors import CommitConflictError
from .time_grid import parse_hhmm

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BACKOFF_MS = 1000


class CouplesState(str, enum.Enum):
    PREPARING = "preparing"
    AVAILABILITY_CHECKED = "availability_checked"
    COMMITTING = "committing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class CouplesBookingOutcome:
    state: CouplesState = CouplesState.PREPARING
    booking_ids: tuple = ()
    room_id: object = None
    primary_staff_id: object = None
    secondary_staff_id: object = None
    errors: list = field(default_factory=list)
    warnings: list = field(default_factory=list)
    attempts: int = 0
    history: list = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.state == CouplesState.SUCCEEDED

    def move_to(self, state: CouplesState) -> None:
        self.state = state
        self.history.append(state)

    def as_dict(self) -> dict:
        return {
            "state": self.state.value,
            "succeeded": self.succeeded,
            "booking_ids": list(self.booking_ids),
            "room_id": self.room_id,
            "primary_staff_id": self.primary_staff_id,
            "secondary_staff_id": self.secondary_staff_id,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "attempts": self.attempts,
        }


class _Terminal(Exception):
    """Internal: ends the current run with FAILED and the given errors."""

    def __init__(self, errors):
        super().__init__("; ".join(errors))
        self.errors = list(errors)


class CouplesBookingOrchestrator:
    def __init__(self, store, validator=None, sleep=time_module.sleep,
                 max_attempts: int = DEFAULT_MAX_ATTEMPTS, backoff_ms: int = DEFAULT_BACKOFF_MS):
        self.store = store
        self.validator = validator if validator is not None else BookingValidator()
        self.availability = AvailabilityEngine(hours=self.validator.hours)
        self.sleep = sleep
        self.max_attempts = max_attempts
        self.backoff_ms = backoff_ms

    def book(self, request) -> CouplesBookingOutcome:
        outcome = CouplesBookingOutcome()
        outcome.history.append(CouplesState.PREPARING)

        while True:
            try:
                plan = self._prepare(request, outcome)
                self._advisory_check(request, plan)
                outcome.move_to(CouplesState.AVAILABILITY_CHECKED)

                outcome.move_to(CouplesState.COMMITTING)
                outcome.attempts += 1
                legs = self.store.commit_couples_booking(
                    request.primary_service,
                    request.secondary_service,
                    plan["primary_staff"],
                    plan["secondary_staff"],
                    request.date,
                    request.time,
                    request.customer,
                    room=plan["room"],
                    notes=request.notes,
                )
            except _Terminal as e:
                outcome.errors = e.errors
                outcome.move_to(CouplesState.FAILED)
                logger.info("Couples booking on %s %s failed: %s", request.date, request.time, e)
                return outcome
            except CommitConflictError as e:
                logger.warning(
                    "Couples commit attempt %d/%d lost a race (%s): %s",
                    outcome.attempts, self.max_attempts, e.resource or "resource", e,
                )
                if outcome.attempts >= self.max_attempts:
                    outcome.errors = [
                        f"Could not reserve both appointments after {outcome.attempts} attempts: {e}"
                    ]
                    outcome.move_to(CouplesState.FAILED)
                    return outcome
                self.sleep(outcome.attempts * self.backoff_ms / 1000.0)
                outcome.move_to(CouplesState.PREPARING)
                continue

            return self._finish(outcome, legs, plan)

    # ---- steps ----

    def _prepare(self, request, outcome) -> dict:
        try:
            start = parse_hhmm(request.time)
        except ValueError as e:
            raise _Terminal([str(e)])

        rooms = [r for r in self.store.list_rooms() if r.is_couples_room]
        staff_pool = self.store.list_staff()
        requested = [s for s in (request.primary_staff, request.secondary_staff) if s is not None]
        reservations = self._snapshot(request.date, rooms, list(staff_pool) + requested)

        primary_staff = request.primary_staff
        secondary_staff = request.secondary_staff
        if primary_staff is None:
            primary_staff = self._any_staff(request.primary_service, staff_pool, request, start,
                                            reservations, secondary_staff)
        if secondary_staff is None:
            secondary_staff = self._any_staff(request.secondary_service, staff_pool, request, start,
                                              reservations, primary_staff)
        if primary_staff.id == secondary_staff.id:
            raise _Terminal([
                f"Cannot book the same staff member ({primary_staff.name}) for both people"
            ])

        room = self._pick_room(request, primary_staff, rooms, start, reservations)

        errors = []
        for label, service, staff in (
            ("Primary", request.primary_service, primary_staff),
            ("Secondary", request.secondary_service, secondary_staff),
        ):
            result = self.validator.validate(service, staff, room, request.date, request.time, reservations)
            errors.extend(f"{label}: {message}" for message in result.error_messages)
            outcome.warnings.extend(f"{label}: {message}" for message in result.warning_messages)
        if errors:
            raise _Terminal(errors)

        outcome.room_id = room.id
        outcome.primary_staff_id = primary_staff.id
        outcome.secondary_staff_id = secondary_staff.id
        return {"primary_staff": primary_staff, "secondary_staff": secondary_staff, "room": room}

    def _snapshot(self, on_date, rooms, staff_pool) -> list:
        seen = {}
        for room in rooms:
            for r in self.store.fetch_reservations(ROOM, room.id, on_date):
                seen[r.id] = r
        for staff in staff_pool:
            for r in self.store.fetch_reservations(STAFF, staff.id, on_date):
                seen[r.id] = r
        return list(seen.values())

    def _any_staff(self, service, staff_pool, request, start, reservations, other):
        exclude = (other.id,) if other is not None else ()
        staff = self.availability.find_available_staff(
            service, staff_pool, request.date, start, reservations, exclude_ids=exclude
        )
        if staff is None:
            raise _Terminal([f"No available staff member can perform {service.name} at {request.time}"])
        return staff

    def _pick_room(self, request, primary_staff, rooms, start, reservations):
        """Best couples room that hosts both services and is free for the longer leg."""
        both = [
            r for r in rooms
            if room_can_host(r, request.primary_service).ok
            and room_can_host(r, request.secondary_service).ok
        ]
        if not both:
            raise _Terminal([
                f"No couples room can host both {request.primary_service.name} "
                f"and {request.secondary_service.name}"
            ])
        longest = max(request.primary_service.duration, request.secondary_service.duration)
        ranked = room_resolver.rank(
            request.primary_service, primary_staff, both, request.date, start, reservations,
            duration=longest,
        )
        if not ranked:
            raise _Terminal([
                f"Every couples room able to host both appointments is already booked "
                f"at {request.time} on {request.date.isoformat()}"
            ])
        return ranked[0]

    def _advisory_check(self, request, plan) -> None:
        check = getattr(self.store, "check_availability_advisory", None)
        if check is None:
            return
        advisory = check(
            request.primary_service,
            request.secondary_service,
            plan["primary_staff"],
            plan["secondary_staff"],
            request.date,
            request.time,
        )
        if not advisory.is_available:
            raise _Terminal([advisory.error_message or "Requested time is no longer available"])

    def _finish(self, outcome, legs, plan) -> CouplesBookingOutcome:
        legs = list(legs or [])
        failed = [leg for leg in legs if not leg.success]
        if len(legs) != 2 or failed:
            outcome.errors = [leg.error_message or "Booking failed" for leg in failed] or [
                "Couples booking failed - the store did not confirm both appointments"
            ]
            outcome.move_to(CouplesState.FAILED)
            logger.error("Couples commit returned a partial result: %s", outcome.errors)
            return outcome

        outcome.booking_ids = tuple(leg.booking_id for leg in legs)
        outcome.room_id = legs[0].room_id if legs[0].room_id is not None else plan["room"].id
        outcome.move_to(CouplesState.SUCCEEDED)
        logger.info("Couples booking committed: %s", outcome.booking_ids)
        return outcome

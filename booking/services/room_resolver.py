"""
room_resolver.py
----------------
Picks the best room for a (service, staff, date, time) tuple.

1) keep rooms that can host the service (capability_matcher.room_can_host),
2) drop rooms with a conflicting reservation at that time,
3) order what is left by
   (a) the staff member's default room,
   (b) tightest capability match (fewest extra capabilities, so flexible
       rooms stay free for flexible services),
   (c) lowest room id.

A human may pick a different room than the top choice; that is reported as
suboptimal by the validator, not as invalid.
"""

import logging

from .capability_matcher import (
    BODY_SCRUB,
    COUPLES,
    needs_body_scrub_room,
    needs_couples_room,
    required_room_class,
    room_can_host,
)
from .conflict_detector import ROOM, find_overlap
from .results import RoomAssignment
from .time_grid import format_hhmm, parse_hhmm

logger = logging.getLogger(__name__)


def _as_minutes(value) -> int:
    if isinstance(value, int):
        return value
    return parse_hhmm(value)


def extra_capabilities(room, service) -> int:
    """How much more a room can do than this service needs."""
    extras = len(set(room.capabilities) - {service.category})
    if room.has_body_scrub_equipment and not needs_body_scrub_room(service):
        extras += 1
    if room.is_couples_room and not needs_couples_room(service):
        extras += 1
    return extras


def _no_capable_room_error(service) -> str:
    room_class = required_room_class(service)
    if room_class == BODY_SCRUB:
        return (f"{service.name} requires the room with body scrub equipment, "
                f"and no such room is available")
    if room_class == COUPLES:
        return (f"{service.name} requires a couples room; "
                f"single-occupancy rooms cannot host it")
    return f"No room can host {service.category} services"


def _reason(room, service, staff, viable_count: int) -> str:
    if staff is not None and staff.default_room_id == room.id:
        return f"{room.name} is {staff.name}'s default room"
    scrub = needs_body_scrub_room(service)
    couples = needs_couples_room(service)
    if scrub and couples and viable_count == 1:
        return f"{room.name} is the only couples-capable, scrub-equipped room available"
    if scrub:
        return f"{room.name} has the body scrub equipment this service requires"
    if couples:
        return f"{room.name} is an available couples room"
    return f"{room.name} is the closest capability match for {service.category} services"


def rank(service, staff, candidate_rooms, on_date, time, reservations=(),
         exclude_id=None, exclude_group=None, duration=None) -> list:
    """
    All viable rooms, best first. Raises ValueError on a malformed time.
    ``duration`` overrides the service duration when the room is held longer
    (the longer leg of a couples booking).
    """
    start = _as_minutes(time)
    duration = service.duration if duration is None else duration
    capable = [r for r in candidate_rooms if room_can_host(r, service).ok]
    free = [
        r for r in capable
        if find_overlap(
            reservations, r.id, start, duration,
            exclude_id=exclude_id, resource=ROOM, on_date=on_date,
            exclude_group=exclude_group,
        ) is None
    ]
    default_room_id = staff.default_room_id if staff is not None else None
    return sorted(
        free,
        key=lambda r: (
            0 if default_room_id is not None and r.id == default_room_id else 1,
            extra_capabilities(r, service),
            r.id,
        ),
    )


def resolve(service, staff, candidate_rooms, on_date, time, reservations=(),
            exclude_id=None, exclude_group=None, duration=None) -> RoomAssignment:
    try:
        start = _as_minutes(time)
    except ValueError as e:
        return RoomAssignment(None, "invalid start time", (str(e),))

    candidate_rooms = list(candidate_rooms)
    if not any(room_can_host(r, service).ok for r in candidate_rooms):
        error = _no_capable_room_error(service)
        return RoomAssignment(None, f"no {required_room_class(service)} room qualifies", (error,))

    ranked = rank(service, staff, candidate_rooms, on_date, start, reservations,
                  exclude_id=exclude_id, exclude_group=exclude_group, duration=duration)
    if not ranked:
        error = (f"Every room able to host {service.name} is already booked "
                 f"at {format_hhmm(start)} on {on_date.isoformat()}")
        return RoomAssignment(None, "all qualifying rooms are booked", (error,))

    best = ranked[0]
    reason = _reason(best, service, staff, len(ranked))
    logger.debug("Resolved room %s for service %s: %s", best.id, service.id, reason)
    return RoomAssignment(best, reason)


def is_suboptimal(chosen_room, assignment: RoomAssignment) -> bool:
    return assignment.room is not None and assignment.room.id != chosen_room.id

"""
capability_matcher.py
---------------------
Who may deliver a service, and where.

Room rules, in priority order:
1) body-scrub services need a room with body scrub equipment
   (a couples body-scrub additionally needs that room to be a couples room),
2) couples-flagged services and packages need a couples room,
3) anything else needs a room whose capabilities include the category.
"""

from .domain import CATEGORIES
from .results import CapabilityCheck

BODY_SCRUB = "body_scrub"
COUPLES = "couples"
GENERIC = "generic"


def needs_body_scrub_room(service) -> bool:
    return bool(service.requires_body_scrub_room) or service.category == BODY_SCRUB


def needs_couples_room(service) -> bool:
    return bool(service.requires_couples_room) or bool(service.is_package)


def required_room_class(service) -> str:
    if needs_body_scrub_room(service):
        return BODY_SCRUB
    if needs_couples_room(service):
        return COUPLES
    return GENERIC


def staff_can_perform(staff, service) -> CapabilityCheck:
    if service.category not in CATEGORIES:
        return CapabilityCheck(False, (f"Unknown service category '{service.category}'",))
    if not staff.is_active:
        return CapabilityCheck(False, (f"{staff.name} is currently inactive",))
    if service.category not in staff.can_perform_services:
        return CapabilityCheck(
            False, (f"{staff.name} is not qualified to perform {service.category} services",)
        )
    return CapabilityCheck(True)


def room_can_host(room, service) -> CapabilityCheck:
    if service.category not in CATEGORIES:
        return CapabilityCheck(False, (f"Unknown service category '{service.category}'",))
    if not room.is_active:
        return CapabilityCheck(False, (f"{room.name} is currently inactive",))

    if needs_body_scrub_room(service):
        if not room.has_body_scrub_equipment:
            return CapabilityCheck(
                False,
                (f"{service.name} requires the room with body scrub equipment; "
                 f"{room.name} has none",),
            )
        if needs_couples_room(service) and not room.is_couples_room:
            return CapabilityCheck(
                False, (f"{service.name} requires a couples room with body scrub equipment",)
            )
        return CapabilityCheck(True)

    if needs_couples_room(service):
        if not room.is_couples_room:
            return CapabilityCheck(
                False, (f"{service.name} requires a couples room; {room.name} is single occupancy",)
            )
        return CapabilityCheck(True)

    if service.category not in room.capabilities:
        return CapabilityCheck(
            False, (f"{room.name} cannot host {service.category} services",)
        )
    return CapabilityCheck(True)

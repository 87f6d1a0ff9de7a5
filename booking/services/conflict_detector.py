"""
conflict_detector.py
--------------------
Interval overlap detection for one resource (room or staff member) on one day.

All intervals are half-open: [start, start + duration). A booking that ends at
10:00 and one that starts at 10:00 never conflict.

The scan walks the candidate interval tick by tick on the 15-minute grid and
returns the first live reservation containing a tick. Reservations are
same-day and few per resource, so no interval tree is needed.
"""

from .time_grid import checkpoints, end_time

ROOM = "room"
STAFF = "staff"


def overlaps(a_start: int, a_duration: int, b_start: int, b_duration: int) -> bool:
    """Symmetric half-open overlap test."""
    return a_start < end_time(b_start, b_duration) and b_start < end_time(a_start, a_duration)


def _resource_of(reservation, resource: str):
    if resource == ROOM:
        return reservation.room_id
    if resource == STAFF:
        return reservation.staff_id
    raise ValueError(f"Unknown resource type '{resource}'")


def _live_candidates(reservations, resource_id, resource, on_date, exclude_id, exclude_group):
    out = []
    for r in reservations:
        if r.is_cancelled:
            continue
        if _resource_of(r, resource) != resource_id:
            continue
        if on_date is not None and r.date != on_date:
            continue
        if exclude_id is not None and r.id == exclude_id:
            continue
        if exclude_group is not None and r.group_id == exclude_group:
            continue
        out.append(r)
    return out


def find_overlap(
    reservations,
    resource_id,
    start: int,
    duration: int,
    exclude_id=None,
    resource: str = ROOM,
    on_date=None,
    exclude_group=None,
):
    """
    Return the first reservation for ``resource_id`` overlapping [start, start+duration),
    or None.

    Args:
        reservations: iterable of ReservationInfo (any day; pass ``on_date`` to filter)
        exclude_id: reservation being rescheduled, ignored
        resource: "room" or "staff"
        exclude_group: couples group whose legs share the room legitimately
    """
    candidates = _live_candidates(
        reservations, resource_id, resource, on_date, exclude_id, exclude_group
    )
    if not candidates:
        return None

    for tick in checkpoints(start, duration):
        for r in candidates:
            if r.start <= tick < r.end:
                return r

    # Reservations that begin between two ticks of the candidate interval
    end = end_time(start, duration)
    for r in sorted(candidates, key=lambda r: r.start):
        if start <= r.start < end:
            return r
    return None


def find_all_overlaps(
    reservations,
    resource_id,
    start: int,
    duration: int,
    exclude_id=None,
    resource: str = ROOM,
    on_date=None,
    exclude_group=None,
) -> list:
    """Every live reservation for the resource overlapping the interval, by start time."""
    candidates = _live_candidates(
        reservations, resource_id, resource, on_date, exclude_id, exclude_group
    )
    hits = [r for r in candidates if overlaps(start, duration, r.start, r.duration)]
    return sorted(hits, key=lambda r: (r.start, str(r.id)))

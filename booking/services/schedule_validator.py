"""
schedule_validator.py
---------------------
Is a staff member on shift on a given date (and for a given time window)?

Everything here is driven by the staff member's schedule map and notice
period. Explanatory text ("works Sundays only", "is off on Tuesdays and
Thursdays") is derived from the same map, so there is a single source of truth.
"""

from .domain import WEEKDAY_KEYS, WEEKDAY_NAMES
from .results import ScheduleCheck
from .time_grid import end_time, format_hhmm, parse_hhmm


def day_key(on_date) -> str:
    return WEEKDAY_KEYS[on_date.weekday()]


def day_name(on_date) -> str:
    return WEEKDAY_NAMES[on_date.weekday()]


def _join(words) -> str:
    words = list(words)
    if len(words) <= 1:
        return "".join(words)
    return ", ".join(words[:-1]) + " and " + words[-1]


def working_days(staff) -> list:
    return [
        WEEKDAY_NAMES[i]
        for i, key in enumerate(WEEKDAY_KEYS)
        if key in staff.schedule and staff.schedule[key].available
    ]


def describe_schedule(staff) -> str:
    """Human-readable summary of the weekly schedule, e.g. 'works Sundays only'."""
    days = working_days(staff)
    if not days:
        return "has no working days configured"
    if len(days) == 1:
        return f"works {days[0]}s only"
    off = [name for name in WEEKDAY_NAMES if name not in days]
    if not off:
        return "works every day"
    return f"is off on {_join(n + 's' for n in off)}"


def is_available(staff, on_date) -> ScheduleCheck:
    name = day_name(on_date)
    if not staff.is_active:
        return ScheduleCheck(False, (f"{staff.name} is currently inactive",), name)

    day = staff.schedule.get(day_key(on_date))
    if day is None or not day.available:
        return ScheduleCheck(
            False,
            (f"{staff.name} is not available on {name} ({staff.name} {describe_schedule(staff)})",),
            name,
        )
    return ScheduleCheck(True, (), name)


def is_available_at(staff, on_date, start: int, duration: int) -> ScheduleCheck:
    """Day availability plus the day's shift window, when one is configured."""
    check = is_available(staff, on_date)
    if not check.ok:
        return check

    day = staff.schedule[day_key(on_date)]
    if not (day.start_time and day.end_time):
        return check
    try:
        shift_start = parse_hhmm(day.start_time)
        shift_end = parse_hhmm(day.end_time)
    except ValueError:
        return ScheduleCheck(
            False,
            (f"{staff.name} has a malformed shift configured for {check.day_name}",),
            check.day_name,
        )

    finish = end_time(start, duration)
    if start < shift_start or finish > shift_end:
        return ScheduleCheck(
            False,
            (f"{staff.name} works {day.start_time}-{day.end_time} on {check.day_name}, "
             f"but the service runs {format_hhmm(start)}-{format_hhmm(finish)}",),
            check.day_name,
        )
    return check


def notice_shortfall(staff, on_date, start: int, now) -> int:
    """
    Minutes of on-call notice still missing for a same-day request (0 when none).
    ``now`` is a local datetime.
    """
    if not staff.min_notice_minutes or now is None or now.date() != on_date:
        return 0
    lead = start - (now.hour * 60 + now.minute)
    if lead >= staff.min_notice_minutes:
        return 0
    return staff.min_notice_minutes - max(lead, 0)

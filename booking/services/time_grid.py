"""
time_grid.py
------------
Fixed-granularity (15-minute) model of one business day.

Times of day are ints (minutes since midnight). Caller-supplied start times
are never snapped to the grid: malformed values are rejected with ValueError
so the validator can report them instead of guessing.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime

from django.conf import settings
from django.db import DatabaseError

logger = logging.getLogger(__name__)

SLOT_MINUTES = 15
MINUTES_PER_DAY = 24 * 60

_HHMM_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::00)?$")


def parse_hhmm(value: str) -> int:
    """
    Parse 'HH:MM' (optionally 'HH:MM:00') into minutes since midnight.

    Raises:
        ValueError: for anything that is not a valid time of day.
    """
    match = _HHMM_RE.match((value or "").strip()) if isinstance(value, str) else None
    if not match:
        raise ValueError(f"Invalid time '{value}'. Use HH:MM.")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise ValueError(f"Invalid time '{value}'. Use HH:MM.")
    return hours * 60 + minutes


def format_hhmm(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def parse_booking_date(value) -> date:
    """Accept a date, a datetime, or 'YYYY-MM-DD' (anything after a 'T' or space is dropped)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raw = (value or "").strip() if isinstance(value, str) else ""
    for sep in ("T", " "):
        if sep in raw:
            raw = raw.split(sep, 1)[0]
    try:
        return date.fromisoformat(raw)
    except ValueError:
        raise ValueError(f"Invalid date '{value}'. Use YYYY-MM-DD.") from None


@dataclass(frozen=True)
class BusinessHours:
    open: int
    close: int

    @classmethod
    def from_strings(cls, open_str: str, close_str: str) -> "BusinessHours":
        hours = cls(parse_hhmm(open_str), parse_hhmm(close_str))
        if hours.close <= hours.open:
            raise ValueError(f"Closing time {close_str} must be after opening time {open_str}")
        return hours

    def describe(self) -> str:
        return f"{format_hhmm(self.open)}-{format_hhmm(self.close)}"


def default_business_hours() -> BusinessHours:
    conf = getattr(settings, "BOOKING_ENGINE", {})
    return BusinessHours.from_strings(
        conf.get("BUSINESS_OPEN", "09:00"),
        conf.get("BUSINESS_CLOSE", "19:00"),
    )


def get_business_hours() -> BusinessHours:
    """
    Return the configured opening hours.
    SystemSetting rows BUSINESS_OPEN / BUSINESS_CLOSE override settings.BOOKING_ENGINE.
    """
    fallback = default_business_hours()
    try:
        from configmgr.models import SystemSetting

        open_row = SystemSetting.objects.filter(key="BUSINESS_OPEN").first()
        close_row = SystemSetting.objects.filter(key="BUSINESS_CLOSE").first()
    except DatabaseError:
        logger.warning("Could not read business hours from SystemSetting; using defaults")
        return fallback

    if not (open_row and close_row):
        return fallback
    try:
        return BusinessHours.from_strings(open_row.value, close_row.value)
    except ValueError as e:
        logger.warning("Ignoring malformed business hours setting: %s", e)
        return fallback


def end_time(start: int, duration: int) -> int:
    return start + int(duration)


def within_business_hours(start: int, duration: int, hours: BusinessHours) -> bool:
    # A booking may finish exactly at closing time
    return start >= hours.open and end_time(start, duration) <= hours.close


def checkpoints(start: int, duration: int, step: int = SLOT_MINUTES) -> list:
    """Grid ticks covering [start, start + duration): start, start+15, ..."""
    end = end_time(start, duration)
    ticks = []
    current = start
    while current < end:
        ticks.append(current)
        current += step
    return ticks


def generate_slots(duration: int, hours: BusinessHours, step: int = SLOT_MINUTES) -> list:
    """Candidate start times from opening on the grid where the service still ends by closing."""
    slots = []
    current = hours.open
    while current + duration <= hours.close:
        slots.append(current)
        current += step
    return slots

# staff/models.py
#
# Purpose:
# - Staff roster used by the booking engine.
#
# Design:
# - Individual exceptions ("works Sundays only", "off Tuesdays and Thursdays",
#   "facials only", "on call with 2 hours' notice") are plain data on the row:
#   schedule, can_perform_services and min_notice_minutes.
# - default_room is only a tie-break preference for room assignment.
#
from django.core.exceptions import ValidationError
from django.db import models

from booking.services.domain import CATEGORY_CHOICES, WEEKDAY_KEYS


def default_schedule():
    return {key: {"available": True, "start_time": "09:00", "end_time": "19:00"} for key in WEEKDAY_KEYS}


class Staff(models.Model):
    """
    A therapist who can be assigned to reservations.

    schedule example:
        {"sun": {"available": true, "start_time": "09:00", "end_time": "19:00"},
         "mon": {"available": false}, ...}
    """
    name = models.CharField(max_length=200)
    email = models.EmailField(unique=True)
    can_perform_services = models.JSONField(default=list, blank=True)
    default_room = models.ForeignKey(
        "booking.Room",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="default_staff",
    )
    schedule = models.JSONField(default=default_schedule, blank=True)
    min_notice_minutes = models.PositiveIntegerField(
        default=0,
        help_text="On-call notice needed for same-day bookings (0 = none).",
    )
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["id"]
        verbose_name_plural = "staff"

    def __str__(self):
        return self.name

    def clean(self):
        unknown = set(self.can_perform_services or ()) - {code for code, _ in CATEGORY_CHOICES}
        if unknown:
            raise ValidationError(f"Unknown service categories: {', '.join(sorted(unknown))}")
        bad_days = set(self.schedule or {}) - set(WEEKDAY_KEYS)
        if bad_days:
            raise ValidationError(f"Unknown schedule days: {', '.join(sorted(bad_days))}")

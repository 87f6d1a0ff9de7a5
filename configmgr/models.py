from django.core.exceptions import ValidationError
from django.db import models

from booking.services.time_grid import parse_hhmm

TIME_KEYS = ("BUSINESS_OPEN", "BUSINESS_CLOSE")


class SystemSetting(models.Model):
    """
    Simple key/value settings store, editable from the admin at runtime.
    Keys read by the booking engine:
      - BUSINESS_OPEN (e.g., '09:00')
      - BUSINESS_CLOSE (e.g., '19:00')
    Missing keys fall back to settings.BOOKING_ENGINE.
    """
    key = models.CharField(max_length=100, unique=True)
    value = models.CharField(max_length=200)

    def __str__(self):
        return f"{self.key}={self.value}"

    def clean(self):
        self.key = (self.key or "").strip().upper()
        self.value = (self.value or "").strip()
        if self.key in TIME_KEYS:
            try:
                parse_hhmm(self.value)
            except ValueError:
                raise ValidationError({"value": f"{self.key} must be a time in HH:MM format."})

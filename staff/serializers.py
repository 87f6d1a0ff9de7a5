from rest_framework import serializers

from booking.services.domain import CATEGORIES, WEEKDAY_KEYS
from booking.services.time_grid import parse_hhmm

from .models import Staff


class StaffSerializer(serializers.ModelSerializer):
    class Meta:
        model = Staff
        fields = [
            "id",
            "name",
            "email",
            "can_perform_services",
            "default_room",
            "schedule",
            "min_notice_minutes",
            "is_active",
        ]

    def validate_can_perform_services(self, value):
        if not isinstance(value, list):
            raise serializers.ValidationError("can_perform_services must be a list of categories.")
        unknown = sorted(set(value) - CATEGORIES)
        if unknown:
            raise serializers.ValidationError(f"Unknown categories: {', '.join(unknown)}")
        return value

    def validate_schedule(self, value):
        if not isinstance(value, dict):
            raise serializers.ValidationError("schedule must map weekday keys to day entries.")
        for key, day in value.items():
            if key not in WEEKDAY_KEYS:
                raise serializers.ValidationError(f"Unknown schedule day '{key}'.")
            if not isinstance(day, dict):
                raise serializers.ValidationError(f"Schedule entry for '{key}' must be an object.")
            if not day.get("available"):
                continue
            try:
                start = parse_hhmm(day.get("start_time", "09:00"))
                end = parse_hhmm(day.get("end_time", "19:00"))
            except ValueError as e:
                raise serializers.ValidationError(f"{key}: {e}")
            if end <= start:
                raise serializers.ValidationError(f"{key}: end_time must be after start_time.")
        return value

from rest_framework import serializers

from staff.models import Staff

from .models import Customer, Reservation, Room, Service
from .services.domain import CATEGORIES


class CustomerSerializer(serializers.ModelSerializer):
    class Meta:
        model = Customer
        fields = ["id", "name", "email", "phone"]


class ServiceSerializer(serializers.ModelSerializer):
    class Meta:
        model = Service
        fields = [
            "id",
            "name",
            "description",
            "duration_minutes",
            "price",
            "category",
            "requires_couples_room",
            "requires_body_scrub_room",
            "is_package",
            "active",
        ]


class RoomSerializer(serializers.ModelSerializer):
    class Meta:
        model = Room
        fields = ["id", "name", "capabilities", "has_body_scrub_equipment", "is_couples_room", "capacity", "is_active"]

    def validate_capabilities(self, value):
        if not isinstance(value, list):
            raise serializers.ValidationError("capabilities must be a list of categories.")
        unknown = sorted(set(value) - CATEGORIES)
        if unknown:
            raise serializers.ValidationError(f"Unknown categories: {', '.join(unknown)}")
        return value


class ReservationSerializer(serializers.ModelSerializer):
    start_time = serializers.TimeField(format="%H:%M")

    class Meta:
        model = Reservation
        fields = [
            "id",
            "customer",
            "service",
            "staff",
            "room",
            "date",
            "start_time",
            "duration_minutes",
            "status",
            "group_id",
            "notes",
            "created_at",
        ]
        read_only_fields = fields


class BookingRequestSerializer(serializers.Serializer):
    """
    Payload for validate/create. The time stays a raw string: the engine
    reports malformed times as validation errors.
    """
    customer = serializers.PrimaryKeyRelatedField(queryset=Customer.objects.all(), required=False)
    service = serializers.PrimaryKeyRelatedField(queryset=Service.objects.all())
    staff = serializers.PrimaryKeyRelatedField(queryset=Staff.objects.all(), allow_null=True, required=False)
    room = serializers.PrimaryKeyRelatedField(queryset=Room.objects.all(), allow_null=True, required=False)
    date = serializers.DateField()
    time = serializers.CharField(max_length=8)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class CouplesBookingSerializer(serializers.Serializer):
    customer = serializers.PrimaryKeyRelatedField(queryset=Customer.objects.all())
    primary_service = serializers.PrimaryKeyRelatedField(queryset=Service.objects.all())
    secondary_service = serializers.PrimaryKeyRelatedField(
        queryset=Service.objects.all(), allow_null=True, required=False
    )
    primary_staff = serializers.PrimaryKeyRelatedField(
        queryset=Staff.objects.all(), allow_null=True, required=False
    )
    secondary_staff = serializers.PrimaryKeyRelatedField(
        queryset=Staff.objects.all(), allow_null=True, required=False
    )
    date = serializers.DateField()
    time = serializers.CharField(max_length=8)
    notes = serializers.CharField(required=False, allow_blank=True, default="")

    def validate(self, attrs):
        # Same treatment for both people unless a second one is given
        if attrs.get("secondary_service") is None:
            attrs["secondary_service"] = attrs["primary_service"]
        for key in ("primary_service", "secondary_service"):
            if not attrs[key].active:
                raise serializers.ValidationError(f"{attrs[key].name} is not currently available.")
        return attrs


class RescheduleSerializer(serializers.Serializer):
    """Omitted staff/room keep the reservation's current ones."""
    date = serializers.DateField()
    time = serializers.CharField(max_length=8)
    staff = serializers.PrimaryKeyRelatedField(queryset=Staff.objects.all(), allow_null=True, required=False)
    room = serializers.PrimaryKeyRelatedField(queryset=Room.objects.all(), allow_null=True, required=False)

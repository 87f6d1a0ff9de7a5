# booking/models.py
#
# Purpose:
# - Core domain models for the spa booking system.
#
# Design highlights:
# - Customer: person who books; clean() prevents duplicates by
#   (name/email case-insensitive + phone exact).
# - Service: duration, price and category; room requirements are flags
#   (couples room, body scrub room, package) rather than room identifiers.
# - Room: capability list plus the two hard-equipment flags the engine uses
#   (has_body_scrub_equipment, is_couples_room).
# - Reservation:
#   • customer, service, staff, room, date, start_time, duration_minutes
#   • duration is copied from the service at booking time
#   • status: confirmed / in_progress / completed / cancelled / no_show
#   • group_id ties together the two legs of a couples booking
#
# Notes for developers:
# - Staff lives in the staff app (staff.Staff).
# - The engine never reads these models directly; booking.services.domain
#   converts rows into immutable snapshots first.
#

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from .services.domain import CATEGORY_CHOICES, STATUS_CHOICES


# -------------------------
# Customer (person who books)
# -------------------------
class Customer(models.Model):
    """
    A customer who books an appointment.
    Duplicate prevention: case-insensitive match on name and email,
    exact match on phone (see clean()).
    """
    name = models.CharField(max_length=200)
    email = models.EmailField()
    phone = models.CharField(max_length=20, blank=True)

    def __str__(self):
        return self.name

    def clean(self):
        name = (self.name or "").strip()
        email = (self.email or "").strip()
        phone = (self.phone or "").strip()

        # If key fields are missing, let the form/serializer handle "required".
        if not name or not email:
            return

        qs = Customer.objects.filter(name__iexact=name, email__iexact=email, phone=phone)
        if self.pk:
            qs = qs.exclude(pk=self.pk)

        if qs.exists():
            raise ValidationError(
                "A customer with the same name, email, and phone already exists."
            )


# -------------------------
# Service catalog item
# -------------------------
class Service(models.Model):
    """
    A treatment offered by the spa.

    Rules:
    - duration_minutes must be > 0
    - category decides which staff and rooms qualify
    - active controls visibility and bookability
    """
    name = models.CharField(max_length=200, unique=True)
    description = models.TextField(blank=True)
    duration_minutes = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    price = models.DecimalField(max_digits=8, decimal_places=2, validators=[MinValueValidator(0)])
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES)
    requires_couples_room = models.BooleanField(default=False)
    requires_body_scrub_room = models.BooleanField(default=False)
    is_package = models.BooleanField(default=False)
    active = models.BooleanField(default=True)

    def __str__(self):
        return f"{self.name} ({self.duration_minutes} min)"


# -------------------------
# Treatment room
# -------------------------
class Room(models.Model):
    """
    A treatment room.
    capabilities: list of service categories the room can host.
    """
    name = models.CharField(max_length=100, unique=True)
    capabilities = models.JSONField(default=list, blank=True)
    has_body_scrub_equipment = models.BooleanField(default=False)
    is_couples_room = models.BooleanField(default=False)
    capacity = models.PositiveSmallIntegerField(default=1)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["id"]

    def __str__(self):
        return self.name

    def clean(self):
        unknown = set(self.capabilities or ()) - {code for code, _ in CATEGORY_CHOICES}
        if unknown:
            raise ValidationError(f"Unknown capability categories: {', '.join(sorted(unknown))}")
        if self.is_couples_room and self.capacity < 2:
            raise ValidationError("A couples room needs capacity for at least 2 people.")


# -------------------------
# Reservation record
# -------------------------
class Reservation(models.Model):
    """
    A committed appointment for one person.
    Cancelled reservations stay for history and are ignored by conflict checks.
    """
    customer = models.ForeignKey(Customer, on_delete=models.CASCADE, related_name="reservations")
    service = models.ForeignKey(Service, on_delete=models.PROTECT)
    staff = models.ForeignKey("staff.Staff", on_delete=models.PROTECT, related_name="reservations")
    room = models.ForeignKey(Room, on_delete=models.PROTECT, related_name="reservations")
    date = models.DateField()
    start_time = models.TimeField()
    duration_minutes = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    status = models.CharField(
        max_length=12,
        choices=STATUS_CHOICES,
        default="confirmed",
        help_text="Reservation lifecycle status",
    )
    group_id = models.UUIDField(
        null=True,
        blank=True,
        db_index=True,
        help_text="Shared by the two legs of a couples booking.",
    )
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    cancellation_time = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the reservation was cancelled (if applicable).",
    )

    class Meta:
        ordering = ["date", "start_time"]
        indexes = [
            models.Index(fields=["room", "date"]),
            models.Index(fields=["staff", "date"]),
        ]

    def __str__(self):
        return f"{self.customer.name} → {self.service.name} on {self.date} {self.start_time:%H:%M}"

from django.contrib import admin

from .models import Customer, Reservation, Room, Service


@admin.register(Service)
class ServiceAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "category", "price", "duration_minutes", "active")
    list_filter = ("active", "category", "requires_couples_room", "requires_body_scrub_room")
    search_fields = ("name",)
    list_editable = ("price", "duration_minutes", "active")


@admin.register(Room)
class RoomAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "is_couples_room", "has_body_scrub_equipment", "is_active")
    list_filter = ("is_active", "is_couples_room")


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "email", "phone")
    search_fields = ("name", "email")


@admin.register(Reservation)
class ReservationAdmin(admin.ModelAdmin):
    list_display = ("id", "customer", "service", "staff", "room", "date", "start_time", "status")
    list_filter = ("status", "date", "room")
    search_fields = ("customer__name", "service__name", "staff__name")

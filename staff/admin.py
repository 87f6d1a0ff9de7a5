# staff/admin.py
from django.contrib import admin

from .models import Staff


@admin.register(Staff)
class StaffAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "email", "default_room", "min_notice_minutes", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name", "email")

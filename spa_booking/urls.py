# spa_booking/urls.py
#
# Purpose:
# - Project URL router.
# - JSON APIs live under /api/ (booking app) and /api/staff/ (staff app).
#
from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/staff/", include("staff.urls")),
    path("api/", include("booking.urls")),
]

# booking/urls.py
#
# Purpose:
# - Expose REST API endpoints for the booking app via DRF router.
#
# Notes for developers:
# - Engine-backed actions (validate, couples, availability, room-assignment,
#   cancel) are @action routes on BookingViewSet.

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import BookingViewSet, CustomerViewSet, RoomViewSet, ServiceViewSet

router = DefaultRouter()
router.register(r"customers", CustomerViewSet, basename="customer")
router.register(r"services", ServiceViewSet, basename="service")
router.register(r"rooms", RoomViewSet, basename="room")
router.register(r"bookings", BookingViewSet, basename="booking")

urlpatterns = [
    path("", include(router.urls)),
]

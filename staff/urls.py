from django.urls import include, path
from rest_framework.routers import SimpleRouter

from .views import StaffViewSet

# Mounted at /api/staff/, so the viewset sits at the router root.
# SimpleRouter has no API root view to shadow the list route.
router = SimpleRouter()
router.register(r"", StaffViewSet, basename="staff")

urlpatterns = [path("", include(router.urls))]

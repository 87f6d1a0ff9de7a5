from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from booking.services.domain import StaffInfo
from booking.services.schedule_validator import describe_schedule, is_available, working_days
from booking.services.time_grid import parse_booking_date
from booking.views import IsStaffOrReadOnly

from .models import Staff
from .serializers import StaffSerializer


class StaffViewSet(viewsets.ModelViewSet):
    """
    Therapist roster. Anyone can read it (the booking form needs names);
    only staff users can change it.
    """
    serializer_class = StaffSerializer
    permission_classes = [IsStaffOrReadOnly]

    def get_queryset(self):
        user = getattr(self.request, "user", None)
        qs = Staff.objects.all().order_by("id")
        if user and user.is_authenticated and user.is_staff:
            return qs
        return qs.filter(is_active=True)

    @action(detail=True, methods=["get"])
    def schedule(self, request, pk=None):
        """
        GET /api/staff/{id}/schedule/?date=YYYY-MM-DD
        Without a date only the weekly pattern is returned.
        """
        info = StaffInfo.from_model(self.get_object())
        data = {
            "staff_id": info.id,
            "name": info.name,
            "working_days": working_days(info),
            "summary": f"{info.name} {describe_schedule(info)}",
        }

        date_raw = (request.query_params.get("date") or "").strip()
        if date_raw:
            try:
                on_date = parse_booking_date(date_raw)
            except ValueError:
                return Response(
                    {"detail": "Invalid date format. Use YYYY-MM-DD."},
                    status=status.HTTP_400_BAD_REQUEST,
                )
            check = is_available(info, on_date)
            data.update({
                "date": on_date.isoformat(),
                "day": check.day_name,
                "available": check.ok,
                "reasons": list(check.reasons),
            })
        return Response(data)

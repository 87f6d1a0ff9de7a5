# booking/views.py
#
# Purpose:
# - CRUD APIs for Customers, Services and Rooms.
# - Booking endpoints built on the booking engine:
#   * POST /api/bookings/validate/          full verdict (errors + warnings)
#   * POST /api/bookings/                   single booking (validate + commit)
#   * POST /api/bookings/couples/           couples booking (two legs, retried on races)
#   * POST /api/bookings/{id}/cancel/       cancel with 2h cutoff
#   * POST /api/bookings/{id}/reschedule/   move a booking (staff only)
#   * GET  /api/bookings/availability/      open slots for a service/date
#   * GET  /api/bookings/room-assignment/   recommended room
# - Permissions:
#   * Service and room writes and rescheduling are staff-only.
#   * Booking creation requires NO login. Public flow: create customer -> create booking.
#
import logging

from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import BasePermission
from rest_framework.response import Response

from staff.models import Staff

from .models import Customer, Reservation, Room, Service
from .serializers import (
    BookingRequestSerializer,
    CouplesBookingSerializer,
    CustomerSerializer,
    ReservationSerializer,
    RescheduleSerializer,
    RoomSerializer,
    ServiceSerializer,
)
from .services.availability_engine import AvailabilityEngine
from .services.booking_manager import BookingManager, BookingRejected
from .services.domain import ServiceInfo, StaffInfo
from .services.errors import CommitConflictError, CommitTransportError
from .services.time_grid import get_business_hours, parse_booking_date, parse_hhmm

logger = logging.getLogger(__name__)

STORE_UNAVAILABLE = {"detail": "Bookings are temporarily unavailable. Please try again shortly."}


# -------------------- Permissions --------------------
class IsStaffOrReadOnly(BasePermission):
    """
    Read: anyone
    Write: staff only
    """
    def has_permission(self, request, view):
        if request.method in ("GET", "HEAD", "OPTIONS"):
            return True
        return bool(request.user and request.user.is_staff)


class IsStaffOnly(BasePermission):
    def has_permission(self, request, view):
        return bool(request.user and request.user.is_staff)


# -------------------- ViewSets --------------------
class CustomerViewSet(viewsets.ModelViewSet):
    queryset = Customer.objects.all().order_by("id")
    serializer_class = CustomerSerializer

    def create(self, request, *args, **kwargs):
        """
        Create-or-reuse a Customer with normalized (trimmed) fields.
        Existing match (case-insensitive name/email, exact phone) -> 200 with that record.
        """
        name = (request.data.get("name") or "").strip()
        email = (request.data.get("email") or "").strip()
        phone = (request.data.get("phone") or "").strip()

        if not name or not email:
            return Response({"detail": "name and email are required."}, status=400)

        existing = Customer.objects.filter(name__iexact=name, email__iexact=email, phone=phone).first()
        if existing:
            return Response(self.get_serializer(existing).data, status=200)

        serializer = self.get_serializer(data={"name": name, "email": email, "phone": phone})
        serializer.is_valid(raise_exception=True)
        self.perform_create(serializer)
        headers = self.get_success_headers(serializer.data)
        return Response(serializer.data, status=201, headers=headers)


class ServiceViewSet(viewsets.ModelViewSet):
    """
    Service catalog:
    - Anyone can list active services.
    - Only staff can create/update/delete services.
    """
    serializer_class = ServiceSerializer
    permission_classes = [IsStaffOrReadOnly]

    def get_queryset(self):
        user = getattr(self.request, "user", None)
        qs = Service.objects.all().order_by("category", "name")
        if user and user.is_authenticated and user.is_staff:
            return qs
        return qs.filter(active=True)


class RoomViewSet(viewsets.ModelViewSet):
    queryset = Room.objects.all().order_by("id")
    serializer_class = RoomSerializer
    permission_classes = [IsStaffOrReadOnly]


class BookingViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """
    Reservations are only created through the engine (create / couples),
    never written directly.
    """
    queryset = Reservation.objects.all().order_by("-date", "-start_time")
    serializer_class = ReservationSerializer

    def get_manager(self):
        return BookingManager()

    def get_queryset(self):
        qs = super().get_queryset()
        date_raw = (self.request.query_params.get("date") or "").strip()
        if date_raw:
            try:
                qs = qs.filter(date=parse_booking_date(date_raw))
            except ValueError:
                return qs.none()
        return qs

    @action(detail=False, methods=["post"], url_path="validate")
    def validate(self, request):
        """
        POST /api/bookings/validate/
        Body: service, staff, room, date, time
        Always 200 for a well-formed request; the verdict is in the body.
        """
        serializer = BookingRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        if data.get("staff") is None or data.get("room") is None:
            return Response({"detail": "staff and room are required."}, status=status.HTTP_400_BAD_REQUEST)

        result = self.get_manager().validate(
            data["service"], data["staff"], data["room"], data["date"], data["time"]
        )
        return Response(result.as_dict())

    def create(self, request, *args, **kwargs):
        """
        Create a single booking:
        - Requires: customer, service, date, time.
        - Optional: staff (any available if missing), room (recommended if missing), notes.
        - 400 with the full error list if the request breaks a rule,
          409 if a concurrent booking took the slot at commit time.
        """
        serializer = BookingRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        if data.get("customer") is None:
            return Response({"detail": "customer is required."}, status=status.HTTP_400_BAD_REQUEST)
        if not data["service"].active:
            return Response(
                {"detail": "This service is not currently available."},
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            reservation = self.get_manager().create_booking(
                customer=data["customer"],
                service=data["service"],
                staff=data.get("staff"),
                room=data.get("room"),
                date=data["date"],
                time=data["time"],
                notes=data.get("notes", ""),
            )
        except BookingRejected as e:
            return Response(
                {"detail": str(e), **e.result.as_dict()},
                status=status.HTTP_400_BAD_REQUEST,
            )
        except CommitConflictError as e:
            logger.info("Booking lost a race at commit time: %s", e)
            return Response({"detail": str(e)}, status=status.HTTP_409_CONFLICT)
        except CommitTransportError as e:
            logger.error("Booking store unreachable: %s", e)
            return Response(STORE_UNAVAILABLE, status=status.HTTP_503_SERVICE_UNAVAILABLE)
        except ValueError as e:
            return Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)

        out = dict(ReservationSerializer(reservation).data)
        out["warnings"] = getattr(reservation, "warnings", [])
        return Response(out, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["post"], url_path="couples")
    def couples(self, request):
        """
        POST /api/bookings/couples/
        Body: customer, primary_service, [secondary_service], [primary_staff],
              [secondary_staff], date, time, [notes]
        """
        serializer = CouplesBookingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            outcome = self.get_manager().book_couples(
            customer=data["customer"],
            primary_service=data["primary_service"],
            secondary_service=data["secondary_service"],
            primary_staff=data.get("primary_staff"),
            secondary_staff=data.get("secondary_staff"),
            date=data["date"],
            time=data["time"],
            notes=data.get("notes", ""),
            )
        except CommitTransportError as e:
            logger.error("Booking store unreachable: %s", e)
            return Response(STORE_UNAVAILABLE, status=status.HTTP_503_SERVICE_UNAVAILABLE)
        code = status.HTTP_201_CREATED if outcome.succeeded else status.HTTP_409_CONFLICT
        return Response(outcome.as_dict(), status=code)

    @action(detail=True, methods=["post"], permission_classes=[IsStaffOnly])
    def reschedule(self, request, pk=None):
        """
        POST /api/bookings/{id}/reschedule/   (staff only)
        Body: date, time, [staff], [room]
        Same status codes as create; the booking keeps its id.
        """
        reservation = get_object_or_404(Reservation, pk=pk)
        serializer = RescheduleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            reservation = self.get_manager().reschedule_booking(
                reservation,
                date=data["date"],
                time=data["time"],
                staff=data.get("staff"),
                room=data.get("room"),
            )
        except BookingRejected as e:
            return Response(
                {"detail": str(e), **e.result.as_dict()},
                status=status.HTTP_400_BAD_REQUEST,
            )
        except CommitConflictError as e:
            logger.info("Reschedule of #%s lost a race at commit time: %s", pk, e)
            return Response({"detail": str(e)}, status=status.HTTP_409_CONFLICT)
        except CommitTransportError as e:
            logger.error("Booking store unreachable: %s", e)
            return Response(STORE_UNAVAILABLE, status=status.HTTP_503_SERVICE_UNAVAILABLE)
        except ValueError as e:
            return Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)

        out = dict(ReservationSerializer(reservation).data)
        out["warnings"] = getattr(reservation, "warnings", [])
        return Response(out)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        """Cancel a booking (public). Respects the 2-hour cutoff."""
        reservation = get_object_or_404(Reservation, pk=pk)
        try:
            self.get_manager().cancel_booking(reservation)
        except ValueError as e:
            return Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response({"detail": "Booking cancelled."}, status=status.HTTP_200_OK)

    @action(detail=False, methods=["get"], url_path="availability")
    def availability(self, request):
        """
        GET /api/bookings/availability/?service=ID&date=YYYY-MM-DD[&staff=ID]
        Also accepts inputs that include time; we trim to the date part.
        Filters out past slots when the date is today.
        """
        service_id = (request.query_params.get("service") or "").strip()
        date_raw = (request.query_params.get("date") or "").strip()
        staff_id = (request.query_params.get("staff") or "").strip()

        if not service_id or not date_raw:
            return Response({"detail": "Missing 'service' or 'date'."}, status=status.HTTP_400_BAD_REQUEST)
        try:
            on_date = parse_booking_date(date_raw)
        except ValueError:
            return Response(
                {"detail": "Invalid date format. Use YYYY-MM-DD."},
                status=status.HTTP_400_BAD_REQUEST,
            )

        service = get_object_or_404(Service, pk=service_id)
        manager = self.get_manager()
        staff_list = manager.store.list_staff()
        if staff_id:
            staff_list = [StaffInfo.from_model(get_object_or_404(Staff, pk=staff_id))]

        engine = AvailabilityEngine(hours=get_business_hours())
        data = engine.find_available_slots(
            ServiceInfo.from_model(service),
            on_date,
            staff_list,
            manager.store.list_rooms(),
            manager.store.fetch_day_reservations(on_date),
        )

        now = timezone.localtime()
        if on_date == now.date():
            current = now.hour * 60 + now.minute
            data["slots"] = [s for s in data["slots"] if parse_hhmm(s["time"]) > current]
        elif on_date < now.date():
            data["slots"] = []

        return Response(data)

    @action(detail=False, methods=["get"], url_path="room-assignment")
    def room_assignment(self, request):
        """GET /api/bookings/room-assignment/?service=ID&date=YYYY-MM-DD&time=HH:MM[&staff=ID]"""
        service_id = (request.query_params.get("service") or "").strip()
        date_raw = (request.query_params.get("date") or "").strip()
        time_raw = (request.query_params.get("time") or "").strip()
        staff_id = (request.query_params.get("staff") or "").strip()

        if not service_id or not date_raw or not time_raw:
            return Response(
                {"detail": "Missing 'service', 'date' or 'time'."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        try:
            on_date = parse_booking_date(date_raw)
        except ValueError as e:
            return Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)

        service = get_object_or_404(Service, pk=service_id)
        staff = get_object_or_404(Staff, pk=staff_id) if staff_id else None
        assignment = self.get_manager().resolve_room(service, staff, on_date, time_raw)
        return Response({
            "room_id": assignment.room.id if assignment.room else None,
            "room_name": assignment.room.name if assignment.room else None,
            "reason": assignment.reason,
            "errors": list(assignment.errors),
        })

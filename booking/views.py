# booking/views.py
#
# Purpose:
# - Public booking API (no login):
#   * GET  /api/booking/{professional_id}/                          info + active services
#   * GET  /api/booking/{professional_id}/availability/?serviceId=  annotated slots
#   * POST /api/booking/{professional_id}/create/                   create booking (201)
# - Dashboard API (logged-in professional, always tenant-scoped):
#   * /api/bookings/      list / retrieve / PATCH / DELETE, PATCH {id}/status/
#   * /api/services/      catalog CRUD
#   * /api/clients/       client list with spend, PATCH {id}/notes/
#
# Notes for developers:
# - Views only parse input and shape output. Rules live in
#   services/availability_engine.py, services/booking_manager.py and
#   services/catalog.py; their AppErrors become the JSON error envelope
#   through booking.exceptions.api_exception_handler.
# - Availability returns every candidate with available true/false; the
#   booking page must filter on available itself.
#
import logging

from django.db import connection
from django.db.models import F
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from .exceptions import NotFoundError, ValidationError
from .models import Booking, Client, Professional, Service
from .permissions import IsProfessional, current_professional
from .serializers import (
    BookingConfirmationSerializer,
    BookingCreateSerializer,
    BookingListQuerySerializer,
    BookingSerializer,
    BookingStatusSerializer,
    BookingUpdateSerializer,
    ClientNotesSerializer,
    ClientSerializer,
    PublicProfessionalSerializer,
    PublicServiceSerializer,
    ServiceSerializer,
)
from .services.availability_engine import AvailabilityEngine
from .services.booking_manager import BookingManager
from .services.catalog import ServiceCatalog

logger = logging.getLogger(__name__)


# -------------------- Public booking page --------------------

class PublicBookingInfoView(APIView):
    permission_classes = [AllowAny]

    def get(self, request, professional_id):
        professional = Professional.objects.filter(pk=professional_id).first()
        if professional is None:
            raise NotFoundError("Professional", professional_id)

        services = Service.objects.filter(professional=professional, active=True).order_by("price", "id")
        return Response({
            "professional": PublicProfessionalSerializer(professional).data,
            "services": PublicServiceSerializer(services, many=True).data,
        })


class PublicAvailabilityView(APIView):
    """
    GET /api/booking/{professional_id}/availability/?serviceId=ID
    (service_id is accepted too)
    """
    permission_classes = [AllowAny]

    def get(self, request, professional_id):
        raw = (request.query_params.get("serviceId") or request.query_params.get("service_id") or "").strip()
        if not raw:
            raise ValidationError("Missing 'serviceId'", details={"serviceId": ["This parameter is required."]})
        try:
            service_id = int(raw)
        except ValueError:
            raise ValidationError("Invalid 'serviceId'", details={"serviceId": ["Must be an integer."]})

        return Response(AvailabilityEngine().find_slots(professional_id, service_id))


class PublicBookingCreateView(APIView):
    """
    POST /api/booking/{professional_id}/create/

    Body: service_id, client_name, client_email, client_phone?, date (YYYY-MM-DD),
          time (HH:MM), notes?
    The slot is re-validated at write time; a slot taken since the
    availability read answers 409 BOOKING_CONFLICT.
    """
    permission_classes = [AllowAny]

    def post(self, request, professional_id):
        serializer = BookingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        booking = BookingManager().create_booking(
            professional_id=professional_id,
            service_id=data["service_id"],
            client_name=data["client_name"],
            client_email=data["client_email"],
            client_phone=data.get("client_phone", ""),
            date=data["date"],
            time=data["time"],
            notes=data.get("notes", ""),
        )
        return Response(
            {
                "message": "Booking created",
                "booking": BookingConfirmationSerializer(booking).data,
            },
            status=status.HTTP_201_CREATED,
        )


# -------------------- Dashboard --------------------

class BookingViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """
    Endpoints:
    - GET    /api/bookings/?status=&start_date=&end_date=&limit=
    - GET    /api/bookings/{id}/
    - PATCH  /api/bookings/{id}/          notes, payment_status, reschedule (date+time)
    - PATCH  /api/bookings/{id}/status/   lifecycle transition
    - DELETE /api/bookings/{id}/
    """
    serializer_class = BookingSerializer
    permission_classes = [IsProfessional]
    lookup_value_regex = r"\d+"

    @property
    def manager(self):
        return BookingManager()

    def get_queryset(self):
        professional = current_professional(self.request)
        return (
            Booking.objects.for_professional(professional)
            .select_related("service", "client")
            .order_by("-start_time")
        )

    def get_object(self):
        booking = self.get_queryset().filter(pk=self.kwargs["pk"]).first()
        if booking is None:
            raise NotFoundError("Booking", self.kwargs["pk"])
        return booking

    def list(self, request, *args, **kwargs):
        query = BookingListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        filters = query.validated_data

        qs = self.get_queryset()
        if filters.get("status"):
            qs = qs.filter(status=filters["status"])
        # Each bound applies on its own; both give a closed range.
        if filters.get("start_date"):
            qs = qs.filter(start_time__gte=filters["start_date"])
        if filters.get("end_date"):
            qs = qs.filter(start_time__lte=filters["end_date"])
        if filters.get("limit"):
            qs = qs[: filters["limit"]]
        return Response(self.get_serializer(qs, many=True).data)

    def partial_update(self, request, pk=None):
        serializer = BookingUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        professional = current_professional(request)
        booking = self.manager.update_booking(professional.pk, pk, serializer.validated_data)
        return Response(BookingSerializer(booking).data)

    def destroy(self, request, pk=None):
        professional = current_professional(request)
        self.manager.delete_booking(professional.pk, pk)
        return Response({"message": "Booking deleted"}, status=status.HTTP_200_OK)

    @action(detail=True, methods=["patch"], url_path="status")
    def set_status(self, request, pk=None):
        serializer = BookingStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        professional = current_professional(request)
        booking = self.manager.update_status(
            professional.pk, pk, serializer.validated_data["status"].strip().upper()
        )
        return Response(BookingSerializer(booking).data)


class ServiceViewSet(viewsets.ModelViewSet):
    """
    Service catalog of the logged-in professional.
    - Delete or deactivate is refused while future PENDING/CONFIRMED bookings exist.
    """
    serializer_class = ServiceSerializer
    permission_classes = [IsProfessional]
    lookup_value_regex = r"\d+"

    def get_queryset(self):
        return Service.objects.filter(professional=current_professional(self.request)).order_by("-created_at", "-id")

    def get_serializer_context(self):
        context = super().get_serializer_context()
        if self.request.user and self.request.user.is_authenticated:
            context["professional"] = current_professional(self.request)
        return context

    def get_object(self):
        service = self.get_queryset().filter(pk=self.kwargs["pk"]).first()
        if service is None:
            raise NotFoundError("Service", self.kwargs["pk"])
        return service

    def perform_create(self, serializer):
        serializer.save(professional=current_professional(self.request))

    def perform_update(self, serializer):
        service = serializer.instance
        if service.active and serializer.validated_data.get("active") is False:
            ServiceCatalog.ensure_can_retire(service)
        serializer.save()

    def destroy(self, request, *args, **kwargs):
        ServiceCatalog.delete_service(self.get_object())
        return Response({"message": "Service deleted"}, status=status.HTTP_200_OK)


class ClientViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Endpoints:
    - GET   /api/clients/              highest total_spent first
    - GET   /api/clients/{id}/
    - PATCH /api/clients/{id}/notes/   {"notes": "..."}; null or "" clears
    """
    serializer_class = ClientSerializer
    permission_classes = [IsProfessional]
    lookup_value_regex = r"\d+"

    def get_queryset(self):
        return (
            Client.objects.filter(professional=current_professional(self.request))
            .with_spend()
            .order_by("-total_spent", F("last_booking_at").desc(nulls_last=True), "name")
        )

    def get_object(self):
        client = self.get_queryset().filter(pk=self.kwargs["pk"]).first()
        if client is None:
            raise NotFoundError("Client", self.kwargs["pk"])
        return client

    @action(detail=True, methods=["patch"], url_path="notes")
    def update_notes(self, request, pk=None):
        serializer = ClientNotesSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        client = self.get_object()
        client.notes = serializer.validated_data["notes"] or ""
        client.save(update_fields=["notes", "updated_at"])
        logger.info("Updated notes for client %s", client.pk)
        return Response(ClientSerializer(client).data)


@api_view(["GET"])
@permission_classes([AllowAny])
def health_check(request):
    """Liveness + database reachability."""
    with connection.cursor() as cursor:
        cursor.execute("SELECT 1")
    return Response({"status": "healthy", "service": "booking-api"})

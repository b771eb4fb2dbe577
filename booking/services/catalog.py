# booking/services/catalog.py
#
# Purpose:
# - Business rules around a professional's service catalog:
#   * unique service names per professional
#   * a service cannot be deleted or deactivated while future
#     PENDING/CONFIRMED bookings still reference it
#   * default catalog + weekly availability seeded for new professionals
#
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from availability.models import AvailabilityRule

from ..exceptions import BusinessLogicError, DuplicateError
from ..models import Booking, Service

DEFAULT_SERVICE = {
    "name": "Consultation",
    "description": "Standard consultation",
    "duration_minutes": 60,
    "price": Decimal("50.00"),
}

# Monday..Friday, 09:00-17:00 (0 = Sunday)
DEFAULT_WORKING_DAYS = [
    {"day_of_week": day, "start_time": "09:00", "end_time": "17:00"}
    for day in (1, 2, 3, 4, 5)
]


class ServiceCatalog:
    """
    Catalog operations shared by the dashboard API and the registration hook.
    """

    @staticmethod
    def active_future_bookings(service, now=None):
        """
        Future bookings that still hold a slot for this service.

        Returns:
            QuerySet of PENDING/CONFIRMED bookings starting at or after now.
        """
        now = now or timezone.now()
        return Booking.objects.filter(service=service, start_time__gte=now).blocking()

    @staticmethod
    def ensure_can_retire(service, now=None):
        """
        Raise BusinessLogicError if the service may not be deleted/deactivated.
        """
        count = ServiceCatalog.active_future_bookings(service, now).count()
        if count:
            raise BusinessLogicError(
                "Cannot delete or deactivate a service with upcoming bookings",
                details={"service_id": service.pk, "active_bookings": count},
                code="SERVICE_HAS_ACTIVE_BOOKINGS",
            )

    @staticmethod
    def ensure_unique_name(professional, name, exclude_id=None):
        qs = Service.objects.filter(professional=professional, name__iexact=name.strip())
        if exclude_id is not None:
            qs = qs.exclude(pk=exclude_id)
        if qs.exists():
            raise DuplicateError("Service", "name", name.strip())

    @staticmethod
    def delete_service(service, now=None):
        with transaction.atomic():
            ServiceCatalog.ensure_can_retire(service, now)
            service.delete()

    @staticmethod
    def seed_defaults(professional):
        """
        Create the default service and Mon-Fri availability for a new professional.
        Safe to call twice: existing rows are left alone.
        """
        Service.objects.get_or_create(
            professional=professional,
            name=DEFAULT_SERVICE["name"],
            defaults={k: v for k, v in DEFAULT_SERVICE.items() if k != "name"},
        )
        if not AvailabilityRule.objects.filter(professional=professional).exists():
            AvailabilityRule.objects.bulk_create([
                AvailabilityRule(professional=professional, **day)
                for day in DEFAULT_WORKING_DAYS
            ])

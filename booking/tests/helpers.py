# booking/tests/helpers.py
#
# Small builders shared by the booking test modules.
#
from datetime import timedelta

from django.contrib.auth.models import User
from django.utils import timezone

from availability.models import AvailabilityRule
from booking.models import Booking, Professional, Service


def make_professional(email="pro@example.com", business_name="Studio One"):
    """User + Professional. The post_save hook seeds Consultation + Mon-Fri 09-17."""
    user = User.objects.create_user(username=email, email=email, password="S3cure-pass-123")
    return Professional.objects.create(user=user, name="Pat Pro", business_name=business_name)


def default_service(professional):
    return Service.objects.get(professional=professional, name="Consultation")


def only_rule(professional, day_of_week, start_time, end_time):
    """Replace the seeded weekly pattern with a single window."""
    AvailabilityRule.objects.filter(professional=professional).delete()
    return AvailabilityRule.objects.create(
        professional=professional,
        day_of_week=day_of_week,
        start_time=start_time,
        end_time=end_time,
    )


def make_booking(professional, service, start, status=Booking.CONFIRMED, email="client@example.com", client=None):
    return Booking.objects.create(
        professional=professional,
        service=service,
        client=client,
        client_name="Casey Client",
        client_email=email,
        client_phone="+15550100",
        start_time=start,
        end_time=start + timedelta(minutes=service.duration_minutes),
        status=status,
    )


def next_weekday(day_of_week):
    """Next local date (strictly after today) falling on day_of_week (0 = Sunday)."""
    day = timezone.localdate() + timedelta(days=1)
    while (day.weekday() + 1) % 7 != day_of_week:
        day += timedelta(days=1)
    return day

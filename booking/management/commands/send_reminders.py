"""
send_reminders.py
-----------------
Django management command to enqueue 48h/24h reminders.

Usage:
    python manage.py send_reminders --when 48
    python manage.py send_reminders --when 24

Behavior:
- Finds PENDING/CONFIRMED bookings whose start_time is within the next
  N hours and that have not had this reminder yet.
- Enqueues a "remind" notification per booking; delivery happens after
  commit (and through dispatch_notifications for retries).
"""

from datetime import timedelta

from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from booking.models import Booking
from notifications.models import Notification
from notifications.outbox import enqueue


class Command(BaseCommand):
    help = "Enqueue appointment reminders for bookings starting within N hours (48 or 24)."

    def add_arguments(self, parser):
        parser.add_argument(
            "--when",
            type=int,
            choices=[48, 24],
            required=True,
            help="Reminder window in hours (choose 48 or 24).",
        )

    def handle(self, *args, **options):
        hours = options["when"]
        now = timezone.now()
        window_end = now + timedelta(hours=hours)

        reminded = Notification.objects.filter(
            action="remind", payload__hours_before=hours
        ).values("booking_id")
        qs = (
            Booking.objects.blocking()
            .filter(start_time__gt=now, start_time__lte=window_end)
            .exclude(pk__in=reminded)
            .select_related("service", "professional")
        )

        count = 0
        with transaction.atomic():
            for booking in qs:
                enqueue(booking, "remind", extra={"hours_before": hours})
                count += 1

        self.stdout.write(self.style.SUCCESS(f"Queued {count} reminder(s) for {hours}h window."))

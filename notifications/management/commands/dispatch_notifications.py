"""
dispatch_notifications.py
-------------------------
Retry outbox notifications that are still pending or failed.

Usage:
    python manage.py dispatch_notifications
    python manage.py dispatch_notifications --max-attempts 3

Run it from cron; rows at or above the attempt ceiling are left for inspection.
"""

from django.core.management.base import BaseCommand

from notifications.outbox import dispatch


class Command(BaseCommand):
    help = "Deliver pending/failed booking notifications."

    def add_arguments(self, parser):
        parser.add_argument(
            "--max-attempts",
            type=int,
            default=None,
            help="Skip rows that already reached this many attempts (default: NOTIFICATIONS_MAX_ATTEMPTS).",
        )

    def handle(self, *args, **options):
        counts = dispatch(max_attempts=options["max_attempts"])
        self.stdout.write(self.style.SUCCESS(
            f"Dispatch complete. Sent={counts['sent']}, Skipped={counts['skipped']}, Failed={counts['failed']}"
        ))

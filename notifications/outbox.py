"""
outbox.py
---------
Enqueue and dispatch booking notifications.

enqueue() is called from Booking signals while the booking transaction is
still open, so the rows commit or roll back with the booking. After commit
the new row ids are handed to a small thread pool, so the request that
created the booking returns without waiting on webhooks or SMTP. Delivery is
best-effort: failures are logged and recorded on the row, never raised to
the caller. Rows left pending or failed are retried by
`manage.py dispatch_notifications`.

NOTIFICATIONS_DISPATCH_INLINE=True delivers in the committing thread instead
(tests, single-shot scripts).
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from functools import partial

import requests
from django.conf import settings
from django.db import connection, transaction
from django.utils import timezone

from .models import Notification
from .senders import NotificationError, get_sender

logger = logging.getLogger(__name__)

_executor = None
_executor_lock = threading.Lock()


def get_executor():
    """Process-wide pool for post-commit delivery, created on first use."""
    global _executor
    with _executor_lock:
        if _executor is None:
            _executor = ThreadPoolExecutor(
                max_workers=getattr(settings, "NOTIFICATIONS_WORKERS", 2),
                thread_name_prefix="notifications",
            )
    return _executor


def booking_snapshot(booking) -> dict:
    """JSON-safe copy of what senders need, taken at enqueue time."""
    service = booking.service
    professional = booking.professional
    return {
        "booking_id": booking.pk,
        "status": booking.status,
        "start_time": booking.start_time.isoformat(),
        "end_time": booking.end_time.isoformat(),
        "client_name": booking.client_name,
        "client_email": booking.client_email,
        "client_phone": booking.client_phone,
        "service_name": service.name,
        "price": str(service.price),
        "business_name": professional.business_name,
    }


def enqueue(booking, action, extra=None):
    """
    Record one outbox row per configured channel for this booking event.
    extra is merged into the payload snapshot.

    Returns:
        list of created Notification rows.
    """
    channels = getattr(settings, "NOTIFICATION_CHANNELS", ["sms", "calendar", "email"])
    payload = booking_snapshot(booking)
    payload.update(extra or {})
    rows = [
        Notification.objects.create(
            professional_id=booking.professional_id,
            booking_id=booking.pk,
            channel=channel,
            action=action,
            payload=payload,
        )
        for channel in channels
    ]
    if rows and getattr(settings, "NOTIFICATIONS_DISPATCH_ON_COMMIT", True):
        transaction.on_commit(partial(schedule_dispatch, [row.pk for row in rows]), robust=True)
    logger.debug("Enqueued %s for booking %s on %s", action, booking.pk, channels)
    return rows


def _dispatch_in_background(ids):
    try:
        dispatch(ids)
    except Exception:
        logger.exception("Background dispatch failed for notifications %s", ids)
    finally:
        # Pool threads outlive the request; don't leak their connection.
        connection.close()


def schedule_dispatch(ids):
    """on_commit hook: deliver ids off the request thread."""
    if getattr(settings, "NOTIFICATIONS_DISPATCH_INLINE", False):
        dispatch(ids)
        return
    get_executor().submit(_dispatch_in_background, ids)


def deliver(notification) -> bool:
    """Attempt one send. Returns True when the row ends up sent or skipped."""
    notification.attempts += 1
    try:
        delivered = get_sender(notification.channel).send(notification)
    except (NotificationError, requests.RequestException, OSError) as exc:
        notification.status = Notification.FAILED
        notification.last_error = str(exc)[:1000]
        notification.save(update_fields=["status", "attempts", "last_error"])
        logger.warning(
            "Notification %s (%s/%s) for booking %s failed: %s",
            notification.pk, notification.channel, notification.action,
            notification.booking_id, exc,
        )
        return False

    notification.status = Notification.SENT if delivered else Notification.SKIPPED
    notification.sent_at = timezone.now() if delivered else None
    notification.last_error = ""
    notification.save(update_fields=["status", "attempts", "last_error", "sent_at"])
    return True


def dispatch(ids=None, max_attempts=None):
    """
    Deliver pending/failed rows under the attempt ceiling.

    Args:
        ids: restrict to these notification ids (post-commit hook).
        max_attempts: defaults to settings.NOTIFICATIONS_MAX_ATTEMPTS.

    Returns:
        {"sent": n, "skipped": n, "failed": n}
    """
    max_attempts = max_attempts or getattr(settings, "NOTIFICATIONS_MAX_ATTEMPTS", 5)
    qs = Notification.objects.filter(
        status__in=[Notification.PENDING, Notification.FAILED],
        attempts__lt=max_attempts,
    ).order_by("created_at", "id")
    if ids is not None:
        qs = qs.filter(pk__in=ids)

    counts = {"sent": 0, "skipped": 0, "failed": 0}
    for notification in qs:
        if not deliver(notification):
            counts["failed"] += 1
        elif notification.status == Notification.SENT:
            counts["sent"] += 1
        else:
            counts["skipped"] += 1
    return counts

"""
senders.py
----------
Channel senders for the notification outbox.

Each sender exposes send(notification) -> bool:
- True: delivered
- False: nothing to do (channel not configured, no recipient)
- raises NotificationError / requests.RequestException / OSError on failure

SMS and calendar sync are external collaborators reached through webhooks
(SMS_WEBHOOK_URL, CALENDAR_SYNC_URL). Email uses Django's configured backend
(console in dev, SMTP in prod).
"""

import logging

import requests
from django.conf import settings
from django.core.mail import send_mail

logger = logging.getLogger(__name__)


class NotificationError(Exception):
    pass


SMS_MESSAGE_TYPES = {
    "create": "confirmation",
    "confirm": "confirmation",
    "update": "update",
    "delete": "cancellation",
    "remind": "reminder",
}


def describe(payload: dict) -> str:
    return f"{payload.get('service_name', 'Appointment')} on {payload.get('start_time', '?')}"


class WebhookSender:
    setting_name = None

    def __init__(self, url=None, timeout=None):
        self.url = url if url is not None else getattr(settings, self.setting_name, "")
        self.timeout = timeout or getattr(settings, "NOTIFICATION_TIMEOUT_SECONDS", 5)

    def build_payload(self, notification):
        raise NotImplementedError

    def send(self, notification) -> bool:
        if not self.url:
            logger.debug("%s not configured; skipping notification %s", self.setting_name, notification.pk)
            return False
        body = self.build_payload(notification)
        if body is None:
            return False

        resp = requests.post(self.url, json=body, timeout=self.timeout)
        if resp.status_code >= 400:
            raise NotificationError(f"{self.setting_name} answered HTTP {resp.status_code}")
        return True


class SmsSender(WebhookSender):
    setting_name = "SMS_WEBHOOK_URL"

    def build_payload(self, notification):
        payload = notification.payload
        phone = payload.get("client_phone")
        if not phone:
            return None
        message_type = SMS_MESSAGE_TYPES.get(notification.action, notification.action)
        return {
            "booking_id": notification.booking_id,
            "message_type": message_type,
            "to": phone,
            "body": f"Hi {payload.get('client_name', '')}, {message_type}: {describe(payload)}",
        }


class CalendarSender(WebhookSender):
    setting_name = "CALENDAR_SYNC_URL"

    def build_payload(self, notification):
        payload = notification.payload
        return {
            "booking_id": notification.booking_id,
            "action": notification.action,
            "start_time": payload.get("start_time"),
            "end_time": payload.get("end_time"),
            "summary": f"{payload.get('service_name', 'Appointment')} - {payload.get('client_name', '')}",
        }


class EmailSender:
    """
    Plain-text emails to the client. Reminders and cancellations included.
    """

    SUBJECTS = {
        "create": "Booking received #{id}",
        "confirm": "Booking confirmed #{id}",
        "update": "Booking updated #{id}",
        "delete": "Booking cancelled #{id}",
        "remind": "Reminder: upcoming appointment #{id}",
    }

    def send(self, notification) -> bool:
        payload = notification.payload
        recipient = payload.get("client_email")
        if not recipient:
            return False

        subject = self.SUBJECTS.get(notification.action, "Booking #{id}").format(id=notification.booking_id)
        body = (
            f"Hi {payload.get('client_name', '')},\n\n"
            f"{subject}\n"
            f"- Service: {payload.get('service_name', '')}\n"
            f"- Price: {payload.get('price', '')}\n"
            f"- Date/Time: {payload.get('start_time', '')}\n\n"
            f"{payload.get('business_name', '')}"
        )
        send_mail(
            subject=subject,
            message=body,
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[recipient],
            fail_silently=False,  # raise so the outbox records the failure
        )
        return True


SENDERS = {
    "sms": SmsSender,
    "calendar": CalendarSender,
    "email": EmailSender,
}


def get_sender(channel):
    try:
        return SENDERS[channel]()
    except KeyError:
        raise NotificationError(f"Unknown notification channel '{channel}'")

# notifications/models.py
#
# Purpose:
# - Outbox of booking notifications (SMS, calendar sync, email).
#
# Design:
# - Rows are written in the same transaction as the booking change, then
#   dispatched after commit. A rolled-back booking never notifies anyone.
# - booking_id is a plain integer and payload a snapshot, so "delete"
#   notifications survive the booking row itself.
# - status/attempts/last_error make failed sends retryable
#   (manage.py dispatch_notifications).
#
from django.db import models


class Notification(models.Model):
    SMS = "sms"
    CALENDAR = "calendar"
    EMAIL = "email"
    CHANNEL_CHOICES = [
        (SMS, "SMS"),
        (CALENDAR, "Calendar"),
        (EMAIL, "Email"),
    ]

    ACTION_CHOICES = [
        ("create", "Create"),
        ("update", "Update"),
        ("delete", "Delete"),
        ("confirm", "Confirm"),
        ("remind", "Remind"),
    ]

    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"
    SKIPPED = "skipped"
    STATUS_CHOICES = [
        (PENDING, "Pending"),
        (SENT, "Sent"),
        (FAILED, "Failed"),
        (SKIPPED, "Skipped"),
    ]

    professional = models.ForeignKey(
        "booking.Professional",
        on_delete=models.CASCADE,
        related_name="notifications",
    )
    booking_id = models.PositiveBigIntegerField(db_index=True)
    channel = models.CharField(max_length=10, choices=CHANNEL_CHOICES)
    action = models.CharField(max_length=10, choices=ACTION_CHOICES)
    payload = models.JSONField(default=dict)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=PENDING)
    attempts = models.PositiveIntegerField(default=0)
    last_error = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    sent_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["created_at", "id"]
        indexes = [models.Index(fields=["status", "attempts"], name="notification_status_idx")]

    def __str__(self) -> str:
        return f"{self.action} via {self.channel} for booking #{self.booking_id} ({self.status})"

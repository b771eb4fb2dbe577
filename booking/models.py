# booking/models.py
#
# Purpose:
# - Core domain models for the multi-tenant booking API.
#
# Design highlights:
# - Professional: the tenant. One-to-one with auth.User (authentication is
#   delegated to Django). Every other model carries a FK to it and every
#   query in the API is scoped by that FK.
# - Service: bookable offering with duration (15..480 min) and price (0..10000).
# - Client: person who booked; unique per (professional, email). Free-form notes
#   kept by the professional; total_spent comes from ClientQuerySet.with_spend().
# - Booking: [start_time, end_time) interval with status/payment_status.
#   • PENDING and CONFIRMED bookings "block" their interval.
#   • end_time is always start_time + service.duration_minutes at write time.
#
# Notes for developers:
# - The no-overlap rule for blocking bookings is enforced by BookingManager
#   (tenant row lock + recheck) and, on PostgreSQL, by the exclusion
#   constraint added in migration 0002.
#
from decimal import Decimal

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import Q, Sum, Value
from django.db.models.functions import Coalesce


# -------------------------
# Professional (tenant)
# -------------------------
class Professional(models.Model):
    """
    A business account. Owns services, availability rules, clients and bookings.

    subscription_status is driven by the billing collaborator; the booking
    engine never reads it.
    """
    SUBSCRIPTION_CHOICES = [
        ("trial", "Trial"),
        ("starter", "Starter"),
        ("pro", "Pro"),
        ("premium", "Premium"),
        ("past_due", "Past due"),
        ("unpaid", "Unpaid"),
        ("cancelled", "Cancelled"),
    ]

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="professional",
    )
    name = models.CharField(max_length=200)
    business_name = models.CharField(max_length=200)
    phone = models.CharField(max_length=30, blank=True)
    subscription_status = models.CharField(
        max_length=20,
        choices=SUBSCRIPTION_CHOICES,
        default="trial",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.business_name or self.name


# -------------------------
# Service catalog item
# -------------------------
class Service(models.Model):
    """
    A service offered by a professional.

    Rules:
    - duration_minutes in [15, 480]
    - price in [0, 10000]
    - active controls visibility and bookability
    """
    MIN_DURATION = 15
    MAX_DURATION = 480
    MIN_PRICE = 0
    MAX_PRICE = 10000

    professional = models.ForeignKey(
        Professional,
        on_delete=models.CASCADE,
        related_name="services",
    )
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    duration_minutes = models.PositiveIntegerField(
        validators=[MinValueValidator(MIN_DURATION), MaxValueValidator(MAX_DURATION)]
    )
    price = models.DecimalField(
        max_digits=8,
        decimal_places=2,
        validators=[MinValueValidator(MIN_PRICE), MaxValueValidator(MAX_PRICE)],
    )
    active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["price", "id"]

    def __str__(self):
        return f"{self.name} ({self.duration_minutes} min)"


# -------------------------
# Client (person who books)
# -------------------------
class ClientQuerySet(models.QuerySet):
    def with_spend(self):
        """Annotate total_spent: service price summed over COMPLETED bookings (0 when none)."""
        return self.annotate(
            total_spent=Coalesce(
                Sum("bookings__service__price", filter=Q(bookings__status="COMPLETED")),
                Value(Decimal("0.00")),
                output_field=models.DecimalField(max_digits=12, decimal_places=2),
            )
        )


class Client(models.Model):
    """
    A client of one professional. Created on first booking, then reused by email.
    """
    professional = models.ForeignKey(
        Professional,
        on_delete=models.CASCADE,
        related_name="clients",
    )
    name = models.CharField(max_length=200)
    email = models.EmailField()
    phone = models.CharField(max_length=30, blank=True)
    total_bookings = models.PositiveIntegerField(default=0)
    last_booking_at = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ClientQuerySet.as_manager()

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["professional", "email"],
                name="uniq_client_professional_email",
            ),
        ]

    def __str__(self):
        return f"{self.name} <{self.email}>"


# -------------------------
# Booking record
# -------------------------
class BookingQuerySet(models.QuerySet):
    def for_professional(self, professional):
        return self.filter(professional=professional)

    def blocking(self):
        """Bookings that occupy their interval (PENDING or CONFIRMED)."""
        return self.filter(status__in=Booking.BLOCKING_STATUSES)

    def overlapping(self, start, end):
        """Half-open overlap with [start, end): start < b.end AND end > b.start."""
        return self.filter(start_time__lt=end, end_time__gt=start)


class Booking(models.Model):
    """
    Appointment booking.

    Lifecycle:
        PENDING --confirm--> CONFIRMED --complete--> COMPLETED
        PENDING | CONFIRMED --cancel--> CANCELLED
    CANCELLED and COMPLETED are terminal.
    """
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"

    STATUS_CHOICES = [
        (PENDING, "Pending"),
        (CONFIRMED, "Confirmed"),
        (CANCELLED, "Cancelled"),
        (COMPLETED, "Completed"),
    ]
    BLOCKING_STATUSES = (PENDING, CONFIRMED)
    TERMINAL_STATUSES = (CANCELLED, COMPLETED)
    TRANSITIONS = {
        PENDING: (CONFIRMED, CANCELLED),
        CONFIRMED: (COMPLETED, CANCELLED),
        CANCELLED: (),
        COMPLETED: (),
    }

    PAYMENT_CHOICES = [
        ("PENDING", "Pending"),
        ("PAID", "Paid"),
        ("REFUNDED", "Refunded"),
        ("FAILED", "Failed"),
    ]

    professional = models.ForeignKey(
        Professional,
        on_delete=models.CASCADE,
        related_name="bookings",
    )
    service = models.ForeignKey(Service, on_delete=models.CASCADE, related_name="bookings")
    client = models.ForeignKey(
        Client,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="bookings",
    )
    # Denormalized so the booking survives client deletion
    client_name = models.CharField(max_length=200)
    client_email = models.EmailField()
    client_phone = models.CharField(max_length=30, blank=True)

    start_time = models.DateTimeField()
    end_time = models.DateTimeField()
    status = models.CharField(
        max_length=10,
        choices=STATUS_CHOICES,
        default=PENDING,
        help_text="Booking lifecycle status",
    )
    payment_status = models.CharField(max_length=10, choices=PAYMENT_CHOICES, default="PENDING")
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = BookingQuerySet.as_manager()

    class Meta:
        ordering = ["-start_time"]
        indexes = [
            models.Index(fields=["professional", "start_time"], name="booking_prof_start_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_time__gt=models.F("start_time")),
                name="booking_end_after_start",
            ),
        ]

    def __str__(self):
        return f"{self.client_name} → {self.service.name} on {self.start_time}"

    @property
    def is_terminal(self):
        return self.status in self.TERMINAL_STATUSES

    def can_transition_to(self, new_status):
        return new_status in self.TRANSITIONS.get(self.status, ())

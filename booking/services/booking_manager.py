"""
booking_manager.py
------------------
Coordinates booking creation, rescheduling, status changes and deletion.

Concurrency:
- Every write that can create or move a blocking interval first locks the
  professional's row (SELECT ... FOR UPDATE). Concurrent writers for the same
  tenant therefore run check-then-insert one at a time; other tenants are not
  affected.
- SQLite has no row locks. Its connections open atomic blocks with
  BEGIN IMMEDIATE (settings.py), which serializes every writer instead. A
  writer that gives up waiting ("database is locked") is reported as
  BookingConflictError, never as a server error.
- On PostgreSQL the booking_no_overlap exclusion constraint is the final
  guard. Its IntegrityError is translated into BookingConflictError, same as
  the application-level recheck.

Notifications are not sent from here: Booking post_save/post_delete signals
(notifications/signals.py) enqueue outbox rows inside the same transaction.
"""

import logging
from datetime import timedelta

from django.db import IntegrityError, OperationalError, transaction
from django.db.models import F
from django.utils import timezone

from ..exceptions import (
    BookingConflictError,
    BusinessLogicError,
    InvalidStatusTransitionError,
    InvalidTimeSlotError,
    NotFoundError,
    ValidationError,
)
from ..models import Booking, Client, Professional
from .availability_engine import AvailabilityEngine
from .slot_utils import combine

logger = logging.getLogger(__name__)

OVERLAP_CONSTRAINT = "booking_no_overlap"


def _is_overlap_violation(exc: IntegrityError) -> bool:
    return OVERLAP_CONSTRAINT in str(exc)


def _is_lock_timeout(exc: OperationalError) -> bool:
    # SQLite: another writer held the database past the busy timeout.
    return "database is locked" in str(exc)


class BookingManager:
    def __init__(self, availability=None):
        self.availability = availability or AvailabilityEngine()

    # ---- helpers ----

    def _lock_professional(self, professional_id):
        try:
            return Professional.objects.select_for_update().get(pk=professional_id)
        except Professional.DoesNotExist:
            raise NotFoundError("Professional", professional_id)

    def _get_owned(self, professional_id, booking_id, for_update=False):
        qs = Booking.objects.filter(professional_id=professional_id).select_related("service")
        if for_update:
            qs = qs.select_for_update(of=("self",))
        booking = qs.filter(pk=booking_id).first()
        if booking is None:
            raise NotFoundError("Booking", booking_id)
        return booking

    def _upsert_client(self, professional_id, name, email, phone, now):
        client, created = Client.objects.get_or_create(
            professional_id=professional_id,
            email=email,
            defaults={"name": name, "phone": phone},
        )
        Client.objects.filter(pk=client.pk).update(
            total_bookings=F("total_bookings") + 1,
            last_booking_at=now,
        )
        client.refresh_from_db(fields=["total_bookings", "last_booking_at"])
        if created:
            logger.info("Created client %s for professional=%s", client.pk, professional_id)
        return client

    @staticmethod
    def _check_future(start, now):
        if start <= now:
            raise InvalidTimeSlotError(start, "start time must be in the future")

    # ---- operations ----

    def create_booking(
        self,
        professional_id,
        service_id,
        client_name,
        client_email,
        date,
        time,
        client_phone="",
        notes="",
        now=None,
    ):
        """
        Create a PENDING booking after re-validating the slot.

        Args:
            professional_id: tenant owning the booking
            service_id: must be an active service of that tenant
            date, time: local wall-clock start (datetime.date / datetime.time)

        Raises:
            NotFoundError: service missing, inactive or owned by another tenant.
            InvalidTimeSlotError: start is not strictly in the future.
            BookingConflictError: slot overlaps a PENDING/CONFIRMED booking.
        """
        now = now or timezone.now()
        service = self.availability.get_bookable_service(professional_id, service_id)

        start = combine(date, time)
        end = start + timedelta(minutes=service.duration_minutes)
        self._check_future(start, now)

        email = client_email.strip().lower()
        try:
            with transaction.atomic():
                self._lock_professional(professional_id)

                conflict = self.availability.find_conflict(professional_id, start, end)
                if conflict is not None:
                    logger.info(
                        "Booking conflict professional=%s start=%s with booking=%s",
                        professional_id, start.isoformat(), conflict.pk,
                    )
                    raise BookingConflictError(start, end, conflict.pk)

                client = self._upsert_client(
                    professional_id, client_name.strip(), email, client_phone or "", now
                )
                booking = Booking.objects.create(
                    professional_id=professional_id,
                    service=service,
                    client=client,
                    client_name=client_name.strip(),
                    client_email=email,
                    client_phone=client_phone or "",
                    start_time=start,
                    end_time=end,
                    status=Booking.PENDING,
                    payment_status="PENDING",
                    notes=notes or "",
                )
        except IntegrityError as exc:
            if _is_overlap_violation(exc):
                logger.info("Overlap constraint rejected booking professional=%s", professional_id)
                raise BookingConflictError(start, end) from exc
            raise
        except OperationalError as exc:
            if _is_lock_timeout(exc):
                logger.warning("Write lock timeout creating booking professional=%s", professional_id)
                raise BookingConflictError(start, end) from exc
            raise

        logger.info(
            "Created booking %s professional=%s service=%s start=%s",
            booking.pk, professional_id, service.pk, start.isoformat(),
        )
        return booking

    def update_status(self, professional_id, booking_id, new_status):
        """
        Apply a lifecycle transition. Same status again is a no-op.

        Raises:
            ValidationError: unknown status value.
            InvalidStatusTransitionError: transition not allowed (terminal states).
        """
        valid = [choice for choice, _label in Booking.STATUS_CHOICES]
        if new_status not in valid:
            raise ValidationError("Invalid status", details={"status": [f"Must be one of {valid}"]})

        with transaction.atomic():
            booking = self._get_owned(professional_id, booking_id, for_update=True)
            if booking.status == new_status:
                return booking
            if not booking.can_transition_to(new_status):
                raise InvalidStatusTransitionError(booking.status, new_status)

            old_status = booking.status
            booking.status = new_status
            booking.save(update_fields=["status", "updated_at"])

        logger.info("Booking %s status %s -> %s", booking.pk, old_status, new_status)
        return booking

    def update_booking(self, professional_id, booking_id, changes, now=None):
        """
        Partial update: notes, payment_status and/or a reschedule (date + time).

        A reschedule recomputes end_time from the service duration and re-runs
        the conflict check, ignoring the booking being moved.
        """
        now = now or timezone.now()
        update_fields = []
        reschedule = "date" in changes and "time" in changes
        start = end = None
        if reschedule:
            # Resolved before the write lock so a lock timeout can still report the window.
            current = self._get_owned(professional_id, booking_id)
            start = combine(changes["date"], changes["time"])
            end = start + timedelta(minutes=current.service.duration_minutes)

        try:
            with transaction.atomic():
                self._lock_professional(professional_id)
                booking = self._get_owned(professional_id, booking_id, for_update=True)

                if reschedule:
                    if booking.is_terminal:
                        raise BusinessLogicError(
                            f"Cannot reschedule a {booking.status.lower()} booking",
                            code="BOOKING_NOT_RESCHEDULABLE",
                        )
                    end = start + timedelta(minutes=booking.service.duration_minutes)
                    self._check_future(start, now)

                    conflict = self.availability.find_conflict(
                        professional_id, start, end, exclude_booking_id=booking.pk
                    )
                    if conflict is not None:
                        raise BookingConflictError(start, end, conflict.pk)

                    booking.start_time = start
                    booking.end_time = end
                    update_fields += ["start_time", "end_time"]

                if "notes" in changes:
                    booking.notes = changes["notes"] or ""
                    update_fields.append("notes")

                if "payment_status" in changes:
                    booking.payment_status = changes["payment_status"]
                    update_fields.append("payment_status")

                if update_fields:
                    booking.save(update_fields=update_fields + ["updated_at"])
        except IntegrityError as exc:
            if reschedule and _is_overlap_violation(exc):
                raise BookingConflictError(start, end) from exc
            raise
        except OperationalError as exc:
            if reschedule and _is_lock_timeout(exc):
                logger.warning("Write lock timeout moving booking %s", booking_id)
                raise BookingConflictError(start, end) from exc
            raise

        if update_fields:
            logger.info("Updated booking %s fields=%s", booking.pk, update_fields)
        return booking

    def delete_booking(self, professional_id, booking_id):
        """Delete a booking in any state. Owned bookings only."""
        with transaction.atomic():
            booking = self._get_owned(professional_id, booking_id, for_update=True)
            booking.delete()
        logger.info("Deleted booking %s professional=%s", booking_id, professional_id)

"""
availability_engine.py
----------------------
Conflict detection and the public availability query.

Overlap rule (half-open intervals):
    [start, end) conflicts with [b_start, b_end) iff start < b_end AND end > b_start

Only PENDING/CONFIRMED bookings block. The same predicate serves the read
path (find_slots, annotating every candidate) and the write path
(find_conflict, used by BookingManager right before insert), so the two can
never disagree about what "taken" means.
"""

import logging
from datetime import timedelta

from django.conf import settings
from django.utils import timezone

from availability.models import AvailabilityRule

from ..exceptions import NotFoundError
from ..models import Booking, Service
from .slot_utils import DEFAULT_HORIZON_DAYS, format_hhmm, generate_candidate_slots

logger = logging.getLogger(__name__)


def intervals_overlap(start, end, other_start, other_end) -> bool:
    return start < other_end and end > other_start


def first_conflict(start, end, bookings):
    """Return the first blocking booking overlapping [start, end), or None."""
    for booking in bookings:
        if booking.status not in Booking.BLOCKING_STATUSES:
            continue
        if intervals_overlap(start, end, booking.start_time, booking.end_time):
            return booking
    return None


class AvailabilityEngine:
    def __init__(self, horizon_days=None):
        self.horizon_days = horizon_days or getattr(
            settings, "BOOKING_HORIZON_DAYS", DEFAULT_HORIZON_DAYS
        )

    def get_bookable_service(self, professional_id, service_id):
        """Active service owned by the professional, or NotFoundError."""
        service = Service.objects.filter(
            pk=service_id,
            professional_id=professional_id,
            active=True,
        ).first()
        if service is None:
            raise NotFoundError("Service", service_id)
        return service

    def find_conflict(self, professional_id, start, end, exclude_booking_id=None):
        """
        Write-time check: blocking booking of this professional overlapping
        [start, end). The SQL filter narrows candidates; first_conflict decides.
        """
        qs = (
            Booking.objects.filter(professional_id=professional_id)
            .blocking()
            .overlapping(start, end)
            .order_by("start_time")
        )
        if exclude_booking_id is not None:
            qs = qs.exclude(pk=exclude_booking_id)
        return first_conflict(start, end, qs)

    def find_slots(self, professional_id, service_id, now=None):
        """
        Every candidate slot over the horizon, annotated with availability.

        Returns:
            [{"date": "YYYY-MM-DD", "time": "HH:MM", "available": bool}, ...]
        Callers showing bookable slots must filter on available themselves.
        """
        now = now or timezone.now()
        service = self.get_bookable_service(professional_id, service_id)

        rules = AvailabilityRule.objects.filter(
            professional_id=professional_id,
            is_recurring=True,
        )
        horizon_end = now + timedelta(days=self.horizon_days)

        # end_time > now keeps bookings already in progress
        bookings = list(
            Booking.objects.filter(professional_id=professional_id)
            .blocking()
            .overlapping(now, horizon_end)
            .order_by("start_time")
        )

        duration = timedelta(minutes=service.duration_minutes)
        results = []
        for start in generate_candidate_slots(
            rules,
            service.duration_minutes,
            horizon_days=self.horizon_days,
            now=now,
        ):
            local = timezone.localtime(start)
            results.append({
                "date": local.date().isoformat(),
                "time": format_hhmm(local.time()),
                "available": first_conflict(start, start + duration, bookings) is None,
            })

        logger.debug(
            "Computed %d slots for professional=%s service=%s",
            len(results), professional_id, service_id,
        )
        return results

# booking/tests/test_availability_engine.py

from datetime import datetime, timedelta, timezone as dt_timezone
from types import SimpleNamespace

from django.test import SimpleTestCase, TestCase, override_settings

from booking.exceptions import NotFoundError
from booking.models import Booking
from booking.services.availability_engine import AvailabilityEngine, first_conflict, intervals_overlap
from booking.services.slot_utils import combine, parse_hhmm

from .helpers import default_service, make_booking, make_professional, only_rule

UTC = dt_timezone.utc
MONDAY = 1
SUNDAY_NOON = datetime(2030, 1, 6, 12, 0, tzinfo=UTC)


def at(hour, minute=0, day=7):
    return datetime(2030, 1, day, hour, minute, tzinfo=UTC)


class ConflictPredicateTests(SimpleTestCase):
    booked = (at(10), at(11))

    def test_symmetric(self):
        candidates = [
            (at(9), at(10)), (at(9, 30), at(10, 30)), (at(10), at(11)),
            (at(10, 15), at(10, 45)), (at(9), at(12)), (at(11), at(12)),
        ]
        for start, end in candidates:
            self.assertEqual(
                intervals_overlap(start, end, *self.booked),
                intervals_overlap(*self.booked, start, end),
            )

    def test_overlaps_flagged(self):
        self.assertTrue(intervals_overlap(at(10, 15), at(10, 45), *self.booked))  # inside
        self.assertTrue(intervals_overlap(at(9), at(12), *self.booked))  # containing
        self.assertTrue(intervals_overlap(at(9, 30), at(10, 30), *self.booked))  # partial, before
        self.assertTrue(intervals_overlap(at(10, 30), at(11, 30), *self.booked))  # partial, after

    def test_adjacent_not_flagged(self):
        self.assertFalse(intervals_overlap(at(9), at(10), *self.booked))
        self.assertFalse(intervals_overlap(at(11), at(12), *self.booked))

    def test_only_blocking_statuses_conflict(self):
        bookings = [
            SimpleNamespace(status=status, start_time=at(10), end_time=at(11))
            for status in (Booking.CANCELLED, Booking.COMPLETED)
        ]
        self.assertIsNone(first_conflict(at(10), at(11), bookings))

        pending = SimpleNamespace(status=Booking.PENDING, start_time=at(10), end_time=at(11))
        self.assertIs(first_conflict(at(10), at(11), bookings + [pending]), pending)


@override_settings(TIME_ZONE="UTC", BOOKING_HORIZON_DAYS=14)
class FindSlotsTests(TestCase):
    def setUp(self):
        self.pro = make_professional()
        self.service = default_service(self.pro)  # 60 minutes
        only_rule(self.pro, MONDAY, "09:00", "17:00")
        self.engine = AvailabilityEngine()

    def monday(self, slots, day="2030-01-07"):
        return {s["time"]: s["available"] for s in slots if s["date"] == day}

    def test_all_slots_available_without_bookings(self):
        slots = self.engine.find_slots(self.pro.pk, self.service.pk, now=SUNDAY_NOON)
        first_monday = self.monday(slots)
        self.assertEqual(list(first_monday)[0], "09:00")
        self.assertEqual(list(first_monday)[-1], "16:00")
        self.assertEqual(len(first_monday), 15)
        self.assertTrue(all(first_monday.values()))
        # Two Mondays inside the 14-day horizon
        self.assertEqual(len(slots), 30)

    def test_confirmed_booking_marks_overlapping_slots(self):
        make_booking(self.pro, self.service, at(10), status=Booking.CONFIRMED)
        first_monday = self.monday(self.engine.find_slots(self.pro.pk, self.service.pk, now=SUNDAY_NOON))

        self.assertTrue(first_monday["09:00"])
        self.assertFalse(first_monday["09:30"])
        self.assertFalse(first_monday["10:00"])
        self.assertFalse(first_monday["10:30"])
        self.assertTrue(first_monday["11:00"])

    def test_cancelled_booking_does_not_block(self):
        make_booking(self.pro, self.service, at(10), status=Booking.CANCELLED)
        first_monday = self.monday(self.engine.find_slots(self.pro.pk, self.service.pk, now=SUNDAY_NOON))
        self.assertTrue(all(first_monday.values()))

    def test_other_professionals_bookings_do_not_block(self):
        other = make_professional(email="other@example.com")
        make_booking(other, default_service(other), at(10))
        first_monday = self.monday(self.engine.find_slots(self.pro.pk, self.service.pk, now=SUNDAY_NOON))
        self.assertTrue(first_monday["10:00"])

    def test_booking_in_progress_still_blocks(self):
        # Booked 08:30-09:30; "now" is 08:45 on the Monday
        make_booking(self.pro, self.service, at(8, 30))
        slots = self.engine.find_slots(self.pro.pk, self.service.pk, now=at(8, 45))
        first_monday = self.monday(slots)
        self.assertFalse(first_monday["09:00"])
        self.assertTrue(first_monday["09:30"])

    def test_idempotent_without_writes(self):
        make_booking(self.pro, self.service, at(13))
        first = self.engine.find_slots(self.pro.pk, self.service.pk, now=SUNDAY_NOON)
        second = self.engine.find_slots(self.pro.pk, self.service.pk, now=SUNDAY_NOON)
        self.assertEqual(first, second)

    def test_read_and_write_paths_agree(self):
        make_booking(self.pro, self.service, at(10))
        make_booking(self.pro, self.service, at(14, 30), status=Booking.PENDING, email="b@example.com")
        duration = timedelta(minutes=self.service.duration_minutes)

        for slot in self.engine.find_slots(self.pro.pk, self.service.pk, now=SUNDAY_NOON):
            start = combine(datetime.fromisoformat(slot["date"]).date(), parse_hhmm(slot["time"]))
            conflict = self.engine.find_conflict(self.pro.pk, start, start + duration)
            self.assertEqual(slot["available"], conflict is None, slot)

    def test_unknown_inactive_or_foreign_service_is_not_found(self):
        with self.assertRaises(NotFoundError):
            self.engine.find_slots(self.pro.pk, 999999, now=SUNDAY_NOON)

        self.service.active = False
        self.service.save()
        with self.assertRaises(NotFoundError):
            self.engine.find_slots(self.pro.pk, self.service.pk, now=SUNDAY_NOON)

        other = make_professional(email="other@example.com")
        with self.assertRaises(NotFoundError):
            self.engine.find_slots(self.pro.pk, default_service(other).pk, now=SUNDAY_NOON)

    def test_no_rules_no_slots(self):
        self.pro.availability_rules.all().delete()
        self.assertEqual(self.engine.find_slots(self.pro.pk, self.service.pk, now=SUNDAY_NOON), [])

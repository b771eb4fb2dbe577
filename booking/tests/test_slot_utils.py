# booking/tests/test_slot_utils.py

from collections import namedtuple
from datetime import date, datetime, time, timedelta, timezone as dt_timezone

from django.test import SimpleTestCase, override_settings

from booking.services.slot_utils import (
    day_of_week,
    format_hhmm,
    generate_candidate_slots,
    parse_hhmm,
    windows_for_day,
)

Rule = namedtuple("Rule", "day_of_week start_time end_time")

UTC = dt_timezone.utc
MONDAY = 1
TUESDAY = 2

# 2030-01-06 is a Sunday
SUNDAY_NOON = datetime(2030, 1, 6, 12, 0, tzinfo=UTC)


def hhmm(dt):
    return format_hhmm(dt.time())


@override_settings(TIME_ZONE="UTC")
class TimeParsingTests(SimpleTestCase):
    def test_parse_valid(self):
        self.assertEqual(parse_hhmm("09:00"), time(9, 0))
        self.assertEqual(parse_hhmm("23:59"), time(23, 59))

    def test_parse_rejects_malformed(self):
        for bad in ["9:00", "24:00", "12:60", "noon", "", None]:
            with self.assertRaises(ValueError):
                parse_hhmm(bad)

    def test_day_of_week_is_sunday_first(self):
        self.assertEqual(day_of_week(date(2030, 1, 6)), 0)  # Sunday
        self.assertEqual(day_of_week(date(2030, 1, 7)), 1)  # Monday
        self.assertEqual(day_of_week(date(2030, 1, 12)), 6)  # Saturday


@override_settings(TIME_ZONE="UTC")
class WindowMergeTests(SimpleTestCase):
    def test_touching_windows_merge(self):
        rules = [Rule(MONDAY, "12:00", "14:00"), Rule(MONDAY, "09:00", "12:00")]
        self.assertEqual(windows_for_day(rules, MONDAY), [(540, 840)])

    def test_overlapping_windows_merge(self):
        rules = [Rule(MONDAY, "09:00", "12:00"), Rule(MONDAY, "11:00", "13:00")]
        self.assertEqual(windows_for_day(rules, MONDAY), [(540, 780)])

    def test_disjoint_windows_stay_apart(self):
        rules = [Rule(MONDAY, "09:00", "12:00"), Rule(MONDAY, "14:00", "17:00")]
        self.assertEqual(windows_for_day(rules, MONDAY), [(540, 720), (840, 1020)])

    def test_other_days_ignored(self):
        self.assertEqual(windows_for_day([Rule(TUESDAY, "09:00", "17:00")], MONDAY), [])


@override_settings(TIME_ZONE="UTC")
class GenerateCandidateSlotsTests(SimpleTestCase):
    def test_monday_nine_to_five_hour_service(self):
        slots = generate_candidate_slots(
            [Rule(MONDAY, "09:00", "17:00")], 60, horizon_days=7, now=SUNDAY_NOON
        )
        self.assertEqual(len(slots), 15)
        self.assertEqual(slots[0], datetime(2030, 1, 7, 9, 0, tzinfo=UTC))
        self.assertEqual(hhmm(slots[-1]), "16:00")
        self.assertEqual([hhmm(s) for s in slots[:3]], ["09:00", "09:30", "10:00"])

    def test_horizon_includes_today(self):
        monday_early = datetime(2030, 1, 7, 6, 0, tzinfo=UTC)
        slots = generate_candidate_slots(
            [Rule(MONDAY, "09:00", "10:00")], 30, horizon_days=1, now=monday_early
        )
        self.assertEqual([hhmm(s) for s in slots], ["09:00", "09:30"])

    def test_two_week_horizon_covers_two_mondays(self):
        slots = generate_candidate_slots([Rule(MONDAY, "09:00", "17:00")], 60, now=SUNDAY_NOON)
        self.assertEqual(sorted({s.date() for s in slots}), [date(2030, 1, 7), date(2030, 1, 14)])

    def test_now_mid_window_only_later_slots(self):
        now = datetime(2030, 1, 7, 10, 15, tzinfo=UTC)
        slots = generate_candidate_slots(
            [Rule(MONDAY, "09:00", "17:00")], 60, horizon_days=1, now=now
        )
        self.assertEqual(hhmm(slots[0]), "10:30")
        self.assertEqual(len(slots), 12)

    def test_slot_starting_exactly_now_is_excluded(self):
        now = datetime(2030, 1, 7, 10, 0, tzinfo=UTC)
        slots = generate_candidate_slots(
            [Rule(MONDAY, "09:00", "17:00")], 60, horizon_days=1, now=now
        )
        self.assertEqual(hhmm(slots[0]), "10:30")

    def test_day_without_rule_has_no_slots(self):
        slots = generate_candidate_slots(
            [Rule(TUESDAY, "09:00", "17:00")], 60, horizon_days=1,
            now=datetime(2030, 1, 7, 0, 0, tzinfo=UTC),
        )
        self.assertEqual(slots, [])

    def test_duration_longer_than_window(self):
        rules = [Rule(MONDAY, "09:00", "17:00")]
        self.assertEqual(generate_candidate_slots(rules, 481, horizon_days=7, now=SUNDAY_NOON), [])
        exact = generate_candidate_slots(rules, 480, horizon_days=7, now=SUNDAY_NOON)
        self.assertEqual([hhmm(s) for s in exact], ["09:00"])

    def test_merged_rules_allow_slot_across_seam(self):
        rules = [Rule(MONDAY, "09:00", "12:00"), Rule(MONDAY, "12:00", "14:00")]
        slots = generate_candidate_slots(rules, 120, horizon_days=7, now=SUNDAY_NOON)
        self.assertIn("11:00", [hhmm(s) for s in slots])
        self.assertEqual(hhmm(slots[-1]), "12:00")

    def test_every_slot_fits_and_is_in_future(self):
        rules = [
            Rule(MONDAY, "09:00", "12:15"),
            Rule(TUESDAY, "13:00", "17:00"),
            Rule(5, "08:30", "11:00"),
        ]
        now = datetime(2030, 1, 7, 9, 40, tzinfo=UTC)
        duration = timedelta(minutes=45)
        for start in generate_candidate_slots(rules, 45, now=now):
            closes = [
                parse_hhmm(r.end_time) for r in rules if r.day_of_week == day_of_week(start.date())
            ]
            window_end = datetime.combine(start.date(), max(closes), tzinfo=UTC)
            self.assertGreater(start, now)
            self.assertLessEqual(start + duration, window_end)

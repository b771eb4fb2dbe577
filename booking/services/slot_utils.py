"""
slot_utils.py
-------------
Time-slot generation from a professional's weekly availability pattern.

- Rules are recurring weekly windows: day_of_week (0=Sunday .. 6=Saturday)
  plus "HH:MM" wall-clock start/end, read in Django's current timezone.
- Candidates step by a fixed 30-minute granularity inside each window.
- A candidate is emitted only if it starts strictly after "now" and the
  service still fits before the window closes.
- Several rules on the same day are merged (union of windows).

Everything here is pure: no queries, "now" is a parameter.
"""

import re
from datetime import datetime, time, timedelta

from django.utils import timezone

SLOT_GRANULARITY_MINUTES = 30
DEFAULT_HORIZON_DAYS = 14

_HHMM_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def parse_hhmm(value: str) -> time:
    """Parse a strict 24h "HH:MM" string. Raises ValueError on anything else."""
    match = _HHMM_RE.match((value or "").strip())
    if not match:
        raise ValueError(f"Invalid time '{value}'. Use HH:MM (24h).")
    return time(int(match.group(1)), int(match.group(2)))


def format_hhmm(value: time) -> str:
    return f"{value.hour:02d}:{value.minute:02d}"


def day_of_week(day) -> int:
    """0=Sunday .. 6=Saturday (Python's weekday() is 0=Monday)."""
    return (day.weekday() + 1) % 7


def _make_aware(dt_naive: datetime):
    """
    Convert a naive datetime to an aware one using Django's current timezone.
    This works with zoneinfo-based timezones (Django 4+).
    """
    if timezone.is_aware(dt_naive):
        return dt_naive
    return timezone.make_aware(dt_naive, timezone.get_current_timezone())


def combine(day, at: time):
    return _make_aware(datetime.combine(day, at))


def windows_for_day(rules, weekday: int):
    """
    Return merged [(open, close), ...] minute offsets for one weekday.

    Overlapping or touching windows collapse into one so a slot may span the
    seam between two rules.
    """
    spans = []
    for rule in rules:
        if rule.day_of_week != weekday:
            continue
        open_t = parse_hhmm(rule.start_time)
        close_t = parse_hhmm(rule.end_time)
        start = open_t.hour * 60 + open_t.minute
        end = close_t.hour * 60 + close_t.minute
        if end > start:
            spans.append((start, end))

    spans.sort()
    merged = []
    for start, end in spans:
        if merged and start <= merged[-1][1]:
            merged[-1] = (merged[-1][0], max(merged[-1][1], end))
        else:
            merged.append((start, end))
    return merged


def generate_candidate_slots(
    rules,
    service_duration_minutes: int,
    horizon_days: int = DEFAULT_HORIZON_DAYS,
    now=None,
    granularity_minutes: int = SLOT_GRANULARITY_MINUTES,
):
    """
    Enumerate candidate slot start times over [today, today + horizon_days).

    Args:
        rules: iterable of objects with day_of_week, start_time, end_time.
        service_duration_minutes: length of the service being booked.
        horizon_days: number of calendar days to scan, today included.
        now: aware datetime; defaults to timezone.now().

    Returns:
        list of timezone-aware datetimes in ascending order.
    """
    now = now or timezone.now()
    today = timezone.localtime(now).date()
    rules = list(rules)
    duration = timedelta(minutes=service_duration_minutes)

    slots = []
    for offset in range(horizon_days):
        day = today + timedelta(days=offset)
        for open_min, close_min in windows_for_day(rules, day_of_week(day)):
            window_close = combine(day, time(close_min // 60, close_min % 60))
            minutes = open_min
            while minutes < close_min:
                start = combine(day, time(minutes // 60, minutes % 60))
                if start > now and start + duration <= window_close:
                    slots.append(start)
                minutes += granularity_minutes
    return slots

"""Recurrence rules: which habits are due on which calendar days."""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional

from ..models.habit import Frequency, Habit

# ISO weekday numbers (1 = Monday .. 7 = Sunday) to short labels
WEEKDAY_LABELS = {
    1: "Mon",
    2: "Tue",
    3: "Wed",
    4: "Thu",
    5: "Fri",
    6: "Sat",
    7: "Sun",
}

_REMINDER_FORMATS = ("%H:%M:%S", "%H:%M")


def iso_weekday(day: date) -> int:
    """Return the ISO weekday of ``day`` (1 = Monday .. 7 = Sunday).

    Every weekday used for recurrence matching must come from here; never
    use ``date.weekday()`` (0 = Monday) or a Sunday-first index.
    """

    return as_local_date(day).isoweekday()


def as_local_date(value: date) -> date:
    """Drop the time-of-day from ``value``.

    Aware datetimes are converted to the local wall clock before truncation.
    """

    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone()
        return value.date()
    return value


def is_scheduled_on(frequency: Optional[Frequency], day: date) -> bool:
    """Return True when the recurrence rule alone matches ``day``.

    A missing rule, or one with an unknown type, behaves as daily.
    """

    if frequency is None or not frequency.is_specific_days:
        return True
    return iso_weekday(day) in frequency.days


def is_expected(habit: Habit, day: date) -> bool:
    """Return True when ``habit`` is due on ``day``."""

    if habit.is_archived:
        return False
    day = as_local_date(day)
    if day < as_local_date(habit.created_at):
        return False
    return is_scheduled_on(habit.frequency, day)


def parse_reminder_time(raw: object) -> Optional[time]:
    """Parse a ``HH:MM`` or ``HH:MM:SS`` value into a ``time``.

    Returns None for empty or invalid values instead of raising.
    """

    if raw is None:
        return None
    if isinstance(raw, time):
        return raw
    if not isinstance(raw, str) or not raw.strip():
        return None
    for fmt in _REMINDER_FORMATS:
        try:
            return datetime.strptime(raw.strip(), fmt).time()
        except ValueError:
            continue
    return None


def describe_frequency(habit: Habit) -> str:
    """Return a short human label such as ``Daily`` or ``Days: Mon, Wed``."""

    frequency = habit.frequency
    if frequency is None or not frequency.is_specific_days:
        return "Daily"
    labels = [WEEKDAY_LABELS[d] for d in sorted(set(frequency.days)) if d in WEEKDAY_LABELS]
    if not labels:
        return "Days: none"
    return "Days: " + ", ".join(labels)


def describe_reminder(habit: Habit) -> Optional[str]:
    """Return the reminder as ``HH:MM`` or None when unset or unparseable."""

    parsed = parse_reminder_time(habit.reminder_time)
    if parsed is None:
        return None
    return parsed.strftime("%H:%M")


__all__ = [
    "WEEKDAY_LABELS",
    "as_local_date",
    "describe_frequency",
    "describe_reminder",
    "is_expected",
    "is_scheduled_on",
    "iso_weekday",
    "parse_reminder_time",
]

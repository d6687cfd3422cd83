"""Per-day progress derived from habits and checkins."""

from __future__ import annotations

from calendar import monthrange
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Hashable, Iterable, Optional, Sequence, Union

from ..models.habit import Checkin, Habit
from .checkins import CheckinIndex
from .recurrence import as_local_date, is_expected


class DayStatus(str, Enum):
    """Aggregate completion state of the habits expected on one day."""

    NO_EXPECTATION = "no_expectation"
    NONE_COMPLETED = "none_completed"
    PARTIALLY_COMPLETED = "partially_completed"
    FULLY_COMPLETED = "fully_completed"

    @property
    def css_class(self) -> Optional[str]:
        """Calendar tile class; days without completions stay unstyled."""
        if self is DayStatus.FULLY_COMPLETED:
            return "highlight-completed"
        if self is DayStatus.PARTIALLY_COMPLETED:
            return "highlight-partial"
        return None


@dataclass(frozen=True, slots=True)
class DayDetail:
    """One expected habit on a selected day."""

    habit_id: Hashable
    name: str
    category_color: Optional[str]
    completed: bool


def classify(day: date, habits: Iterable[Habit], index: CheckinIndex) -> DayStatus:
    """Classify ``day`` for calendar rendering."""

    day = as_local_date(day)
    expected = [habit for habit in habits if is_expected(habit, day)]
    if not expected:
        return DayStatus.NO_EXPECTATION

    done = index.get(day, frozenset())
    completed_count = sum(1 for habit in expected if habit.id in done)

    if completed_count == 0:
        return DayStatus.NONE_COMPLETED
    if completed_count == len(expected):
        return DayStatus.FULLY_COMPLETED
    return DayStatus.PARTIALLY_COMPLETED


def month_statuses(
    year: int, month: int, habits: Sequence[Habit], index: CheckinIndex
) -> dict[date, DayStatus]:
    """Return the status of every day in the given month, in calendar order."""

    _, days_in_month = monthrange(year, month)
    first = date(year, month, 1)
    statuses: dict[date, DayStatus] = {}
    for offset in range(days_in_month):
        day = first + timedelta(days=offset)
        statuses[day] = classify(day, habits, index)
    return statuses


def expand_day(
    day: date,
    habits: Iterable[Habit],
    checkins: Union[Iterable[Checkin], CheckinIndex],
) -> list[DayDetail]:
    """List the habits expected on ``day`` with their completion flag.

    Input habit order is preserved. ``checkins`` may be a raw checkin list or
    an index built by :func:`~habitpulse.services.checkins.build_index`.
    """

    day = as_local_date(day)
    if isinstance(checkins, Mapping):
        done = checkins.get(day, frozenset())
    else:
        done = {c.habit_id for c in checkins if as_local_date(c.occurred_on) == day}

    return [
        DayDetail(
            habit_id=habit.id,
            name=habit.name,
            category_color=habit.category_color,
            completed=habit.id in done,
        )
        for habit in habits
        if is_expected(habit, day)
    ]


def split_for_day(habits: Iterable[Habit], day: date) -> tuple[list[Habit], list[Habit]]:
    """Partition habits into (due on ``day``, everything else), order preserved."""

    due: list[Habit] = []
    other: list[Habit] = []
    for habit in habits:
        (due if is_expected(habit, day) else other).append(habit)
    return due, other


__all__ = [
    "DayDetail",
    "DayStatus",
    "classify",
    "expand_day",
    "month_statuses",
    "split_for_day",
]

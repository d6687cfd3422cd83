"""Checkin aggregation by calendar day."""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from types import MappingProxyType
from typing import Hashable, Iterable, Mapping

from ..models.habit import Checkin
from .recurrence import as_local_date

CheckinIndex = Mapping[date, frozenset]


def build_index(checkins: Iterable[Checkin]) -> CheckinIndex:
    """Group checkins into ``{day: frozenset(habit_ids)}``.

    Duplicate checkins for the same habit and day collapse into a single
    membership. The returned mapping is read-only.
    """

    grouped: dict[date, set[Hashable]] = defaultdict(set)
    for checkin in checkins:
        grouped[as_local_date(checkin.occurred_on)].add(checkin.habit_id)
    return MappingProxyType({day: frozenset(ids) for day, ids in grouped.items()})


def completed_on(index: CheckinIndex, habit_id: Hashable, day: date) -> bool:
    """Return True when ``habit_id`` has at least one checkin on ``day``."""

    return habit_id in index.get(as_local_date(day), frozenset())


__all__ = ["CheckinIndex", "build_index", "completed_on"]

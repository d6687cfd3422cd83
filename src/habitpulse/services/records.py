"""Conversion of raw backend records into Habit and Checkin models.

The tracker backend serves habits and checkins as JSON. This module is the
only place where loosely shaped input is interpreted; everything past it
works on validated models with local ``date`` values.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import date, datetime, time
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional

from pydantic import ValidationError

from ..logging_config import get_logger
from ..models.habit import Checkin, Frequency, Habit
from .recurrence import as_local_date

logger = get_logger("records")


class RecordError(ValueError):
    """Raised when a backend record cannot be interpreted."""


@dataclass(slots=True)
class Snapshot:
    """Habits and checkins loaded together from one source."""

    habits: list[Habit] = field(default_factory=list)
    checkins: list[Checkin] = field(default_factory=list)


def _pick(record: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in record:
            return record[key]
    return default


def parse_local_date(value: Any, *, field_name: str = "date") -> date:
    """Interpret ``value`` as a local calendar date.

    Accepts ``date``/``datetime`` objects and ISO strings. Timestamps with an
    offset are converted to the local wall clock before the date is taken.
    """

    if isinstance(value, date):
        return as_local_date(value)
    if not isinstance(value, str) or not value.strip():
        raise RecordError(f"{field_name} is missing or not a date: {value!r}")

    raw = value.strip()
    try:
        if len(raw) == 10:
            return date.fromisoformat(raw)
        return as_local_date(datetime.fromisoformat(raw.replace("Z", "+00:00")))
    except ValueError as exc:
        raise RecordError(f"{field_name} is not an ISO date: {value!r}") from exc


def parse_frequency(raw: Any) -> Optional[Frequency]:
    """Build a Frequency, treating missing or malformed input as daily.

    A ``specific_days`` rule without a usable day list keeps an empty list,
    which means the habit is never expected.
    """

    if raw is None:
        return None
    if isinstance(raw, Frequency):
        return raw
    if isinstance(raw, str):
        raw = {"type": raw}
    if not isinstance(raw, Mapping):
        logger.debug("Ignoring malformed frequency %r; treating as daily", raw)
        return None

    kind = raw.get("type")
    if kind == Frequency.SPECIFIC_DAYS:
        return Frequency.specific_days(_parse_days(raw.get("days")))
    if kind not in (None, Frequency.DAILY):
        logger.debug("Unknown frequency type %r; treating as daily", kind)
    return Frequency.daily()


def _parse_days(raw: Any) -> list[int]:
    if not isinstance(raw, (list, tuple, set, frozenset)):
        return []
    days: list[int] = []
    for value in raw:
        try:
            day = int(value)
        except (TypeError, ValueError):
            continue
        if 1 <= day <= 7:
            days.append(day)
    return days


def _parse_reminder(raw: Any) -> Optional[str]:
    if raw is None or raw == "":
        return None
    if isinstance(raw, time):
        return raw.strftime("%H:%M:%S")
    return str(raw)


def _parse_flag(raw: Any) -> bool:
    if isinstance(raw, str):
        return raw.strip().lower() in {"1", "true", "yes", "on"}
    return bool(raw)


def parse_habit(record: Mapping[str, Any]) -> Habit:
    """Convert one backend habit record (snake or camel case keys)."""

    habit_id = _pick(record, "id", "habit_id", "habitId")
    if habit_id is None:
        raise RecordError(f"Habit record has no id: {record!r}")

    try:
        return Habit(
            id=habit_id,
            name=_pick(record, "name", default="") or "",
            description=_pick(record, "description", default="") or "",
            category_id=_pick(record, "category_id", "categoryId"),
            category_name=_pick(record, "category_name", "categoryName"),
            category_color=_pick(record, "category_color", "categoryColor"),
            frequency=parse_frequency(_pick(record, "frequency")),
            reminder_time=_parse_reminder(_pick(record, "reminder_time", "reminderTime")),
            created_at=parse_local_date(
                _pick(record, "created_at", "createdAt"), field_name="created_at"
            ),
            is_archived=_parse_flag(_pick(record, "is_archived", "isArchived", default=False)),
        )
    except ValidationError as exc:
        raise RecordError(f"Invalid habit record {habit_id!r}: {exc}") from exc


def parse_checkin(record: Mapping[str, Any]) -> Checkin:
    """Convert one backend checkin record."""

    habit_id = _pick(record, "habit_id", "habitId")
    if habit_id is None:
        raise RecordError(f"Checkin record has no habit_id: {record!r}")
    occurred_on = parse_local_date(
        _pick(record, "date", "checkin_date", "occurred_on"), field_name="checkin date"
    )
    try:
        return Checkin(habit_id=habit_id, occurred_on=occurred_on)
    except ValidationError as exc:
        raise RecordError(f"Invalid checkin record for habit {habit_id!r}: {exc}") from exc


def parse_habits(records: Iterable[Mapping[str, Any]]) -> list[Habit]:
    return [parse_habit(record) for record in records]


def parse_checkins(records: Iterable[Mapping[str, Any]]) -> list[Checkin]:
    return [parse_checkin(record) for record in records]


def load_snapshot(path: Path) -> Snapshot:
    """Load ``{"habits": [...], "checkins": [...]}`` from a JSON file."""

    path = Path(path)
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise RecordError(f"{path} is not valid JSON: {exc}") from exc
    if not isinstance(payload, Mapping):
        raise RecordError(f"{path} must contain a JSON object")

    snapshot = Snapshot(
        habits=parse_habits(payload.get("habits") or []),
        checkins=parse_checkins(payload.get("checkins") or []),
    )
    logger.info(
        "Loaded snapshot",
        extra={
            "path": str(path),
            "habits": len(snapshot.habits),
            "checkins": len(snapshot.checkins),
        },
    )
    return snapshot


__all__ = [
    "RecordError",
    "Snapshot",
    "load_snapshot",
    "parse_checkin",
    "parse_checkins",
    "parse_frequency",
    "parse_habit",
    "parse_habits",
    "parse_local_date",
]

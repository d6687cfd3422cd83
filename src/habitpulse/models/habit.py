"""Habit and checkin data structures supplied by the tracker backend."""

from __future__ import annotations

from datetime import date
from typing import ClassVar, Iterable, Optional

from sqlmodel import Field, SQLModel


class Frequency(SQLModel):
    """Recurrence rule of a habit.

    ``days`` uses ISO numbering: 1 is Monday and 7 is Sunday.
    """

    DAILY: ClassVar[str] = "daily"
    SPECIFIC_DAYS: ClassVar[str] = "specific_days"

    type: str = Field(default="daily", max_length=32)
    days: list[int] = Field(default_factory=list)

    @classmethod
    def daily(cls) -> "Frequency":
        return cls(type=cls.DAILY)

    @classmethod
    def specific_days(cls, days: Iterable[int]) -> "Frequency":
        return cls(type=cls.SPECIFIC_DAYS, days=sorted(set(days)))

    @property
    def is_specific_days(self) -> bool:
        return self.type == self.SPECIFIC_DAYS


class Habit(SQLModel):
    """A recurring activity with an optional same-day reminder."""

    id: int
    name: str = ""
    description: str = ""
    category_id: Optional[int] = None
    category_name: Optional[str] = None
    category_color: Optional[str] = None
    frequency: Optional[Frequency] = None
    # Raw "HH:MM" or "HH:MM:SS" wall-clock value as stored by the backend.
    reminder_time: Optional[str] = None
    created_at: date
    is_archived: bool = False


class Checkin(SQLModel):
    """Record that a habit was performed on a local calendar day."""

    habit_id: int
    occurred_on: date

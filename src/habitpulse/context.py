"""Session context tying the habit snapshot to derived views and reminders."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Iterable, Optional

from .config import BaseConfig
from .logging_config import get_logger
from .models.habit import Checkin, Habit
from .scheduler import ReminderScheduler
from .services.checkins import CheckinIndex, build_index
from .services.progress import (
    DayDetail,
    DayStatus,
    classify,
    expand_day,
    month_statuses,
    split_for_day,
)
from .services.recurrence import is_expected

logger = get_logger("context")


@dataclass
class TrackerContext:
    """Holds the current habits/checkins and the reminder scheduler.

    The checkin index is rebuilt only when the checkins change; the reminder
    schedule is rebuilt whenever the habit list is replaced.
    """

    config: BaseConfig
    reminders: ReminderScheduler
    today: Callable[[], date] = date.today
    habits: list[Habit] = field(default_factory=list)
    checkins: list[Checkin] = field(default_factory=list)
    index: CheckinIndex = field(default_factory=lambda: build_index([]))

    def set_habits(self, habits: Iterable[Habit]) -> None:
        self.habits = list(habits)
        self.reminders.rebuild(self.habits)

    def set_checkins(self, checkins: Iterable[Checkin]) -> None:
        self.checkins = list(checkins)
        self.index = build_index(self.checkins)
        logger.debug(f"Indexed {len(self.checkins)} checkins over {len(self.index)} days")

    def add_checkin(self, checkin: Checkin) -> bool:
        """Record today's checkin for a habit due today.

        Returns False, leaving the checkins untouched, when the habit is
        unknown, not expected today or the checkin is dated another day.
        On success the reminder highlight for the habit is dropped.
        """
        today = self.today()
        habit = next((h for h in self.habits if h.id == checkin.habit_id), None)
        if habit is None:
            logger.warning(f"Rejected checkin for unknown habit {checkin.habit_id}")
            return False
        if checkin.occurred_on != today:
            logger.warning(
                f"Rejected checkin for habit {habit.id} dated {checkin.occurred_on}, today is {today}"
            )
            return False
        if not is_expected(habit, today):
            logger.warning(f"Rejected checkin for habit {habit.id}: not due on {today}")
            return False

        self.set_checkins([*self.checkins, checkin])
        self.reminders.acknowledge(checkin.habit_id)
        return True

    def day_status(self, day: date) -> DayStatus:
        return classify(day, self.habits, self.index)

    def month(self, year: int, month: int) -> dict[date, DayStatus]:
        return month_statuses(year, month, self.habits, self.index)

    def day_details(self, day: date) -> list[DayDetail]:
        return expand_day(day, self.habits, self.index)

    def habits_for_today(self) -> tuple[list[Habit], list[Habit]]:
        return split_for_day(self.habits, self.today())

    def close(self) -> None:
        self.reminders.shutdown()


def create_tracker_context(
    config: Optional[BaseConfig] = None,
    *,
    reminders: Optional[ReminderScheduler] = None,
    start_reminders: bool = True,
) -> TrackerContext:
    """Create a tracker context with a reminder scheduler built from ``config``."""

    if config is None:
        config = BaseConfig()

    if reminders is None:
        reminders = ReminderScheduler(
            highlight_seconds=config.HIGHLIGHT_SECONDS,
            misfire_grace_seconds=config.MISFIRE_GRACE_SECONDS,
        )
    if start_reminders:
        reminders.start()

    return TrackerContext(config=config, reminders=reminders)

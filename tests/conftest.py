"""Pytest configuration and shared fixtures for HabitPulse tests.

Provides habit/checkin factories, a controllable wall clock and a paused
APScheduler so reminder jobs can be inspected and triggered by hand.
"""

from __future__ import annotations

import itertools
import logging
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

import pytest
from apscheduler.schedulers.background import BackgroundScheduler

from habitpulse.models import Checkin, Frequency, Habit
from habitpulse.scheduler import ReminderScheduler


@pytest.fixture(autouse=True)
def isolated_data_dir(tmp_path, monkeypatch):
    """Point every configuration at a throwaway data directory."""

    data_dir = tmp_path / "data"
    monkeypatch.setenv("HABITPULSE_DATA_DIR", str(data_dir))
    monkeypatch.delenv("HABITPULSE_ENV", raising=False)
    monkeypatch.delenv("HABITPULSE_DEV_MODE", raising=False)
    monkeypatch.delenv("HABITPULSE_HIGHLIGHT_SECONDS", raising=False)
    monkeypatch.delenv("HABITPULSE_MISFIRE_GRACE_SECONDS", raising=False)
    return data_dir


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def habit_factory():
    """Factory for building Habit instances with sequential ids.

    Returns:
        Callable: Function that creates Habit instances
    """

    ids = itertools.count(1)

    def _create_habit(
        name: str = "Test Habit",
        *,
        habit_id: Optional[int] = None,
        created_at: date = date(2024, 1, 1),
        days: Optional[Iterable[int]] = None,
        frequency: Optional[Frequency] = None,
        reminder_time: Optional[str] = None,
        is_archived: bool = False,
        category_color: Optional[str] = "#FF5733",
    ) -> Habit:
        """Create a habit; ``days`` switches the rule to specific weekdays."""
        if frequency is None:
            frequency = Frequency.specific_days(days) if days is not None else Frequency.daily()
        return Habit(
            id=habit_id if habit_id is not None else next(ids),
            name=name,
            category_color=category_color,
            frequency=frequency,
            reminder_time=reminder_time,
            created_at=created_at,
            is_archived=is_archived,
        )

    return _create_habit


@pytest.fixture
def checkin_factory():
    """Factory for building Checkin instances."""

    def _create_checkin(habit: Habit | int, occurred_on: date) -> Checkin:
        habit_id = habit.id if isinstance(habit, Habit) else habit
        return Checkin(habit_id=habit_id, occurred_on=occurred_on)

    return _create_checkin


# =============================================================================
# Reminder Fixtures
# =============================================================================


class FakeClock:
    """Wall clock that only moves when told to."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set(self, **parts: int) -> None:
        self.now = self.now.replace(**parts)

    def advance(self, **delta: float) -> None:
        self.now = self.now + timedelta(**delta)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 1, 3, 8, 0, 0))


@pytest.fixture
def aps():
    """A started but paused APScheduler: jobs are stored, never executed."""

    scheduler = BackgroundScheduler()
    scheduler.start(paused=True)
    yield scheduler
    if scheduler.running:
        scheduler.shutdown(wait=False)


@pytest.fixture
def reminders(aps, clock):
    scheduler = ReminderScheduler(scheduler=aps, clock=clock)
    yield scheduler
    scheduler.shutdown()


@pytest.fixture
def events(reminders) -> list:
    received: list = []
    reminders.subscribe(received.append)
    return received



@pytest.fixture(autouse=True)
def reset_habitpulse_logger():
    """Drop handlers installed by setup_logging so tests stay independent."""

    yield
    logger = logging.getLogger("habitpulse")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)

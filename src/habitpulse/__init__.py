"""HabitPulse habit recurrence and progress engine."""

from __future__ import annotations

from .config import BaseConfig, DevConfig, TestingConfig
from .context import TrackerContext, create_tracker_context
from .models import Checkin, Frequency, Habit
from .scheduler import ReminderScheduler
from .services.checkins import build_index
from .services.progress import DayDetail, DayStatus, classify, expand_day
from .services.recurrence import is_expected

__all__ = [
    "BaseConfig",
    "Checkin",
    "DayDetail",
    "DayStatus",
    "DevConfig",
    "Frequency",
    "Habit",
    "ReminderScheduler",
    "TestingConfig",
    "TrackerContext",
    "build_index",
    "classify",
    "create_tracker_context",
    "expand_day",
    "is_expected",
]

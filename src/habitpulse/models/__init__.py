"""Model exports."""

from .habit import Checkin, Frequency, Habit

__all__ = [
    "Checkin",
    "Frequency",
    "Habit",
]

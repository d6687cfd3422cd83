"""Service module exports."""

from . import checkins, progress, records, recurrence

__all__ = [
    "checkins",
    "progress",
    "records",
    "recurrence",
]

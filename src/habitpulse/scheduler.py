"""Same-day habit reminders backed by APScheduler."""

from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Callable, Hashable, Iterable, Optional, Union

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.date import DateTrigger

from .logging_config import get_logger
from .models.habit import Habit
from .services.recurrence import parse_reminder_time

logger = get_logger("scheduler")

HIGHLIGHT_SECONDS = 10
REMINDER_JOB_PREFIX = "reminder:"
HIGHLIGHT_JOB_PREFIX = "highlight:"


@dataclass(frozen=True, slots=True)
class ReminderDue:
    """A habit's reminder time has been reached."""

    habit_id: Hashable
    habit_name: str


@dataclass(frozen=True, slots=True)
class HabitHighlighted:
    habit_id: Hashable


@dataclass(frozen=True, slots=True)
class HabitHighlightCleared:
    habit_id: Hashable


ReminderEvent = Union[ReminderDue, HabitHighlighted, HabitHighlightCleared]
ReminderListener = Callable[[ReminderEvent], None]


@dataclass(frozen=True, slots=True)
class ReminderTimer:
    """An armed reminder for one habit in one schedule generation."""

    habit_id: Hashable
    habit_name: str
    delay: timedelta
    run_at: datetime
    job_id: str
    generation: int


def delay_until(reminder: time, now: datetime) -> Optional[timedelta]:
    """Return the wait from ``now`` until ``reminder`` today.

    Seconds of the reminder are ignored. Returns None when the time has
    already passed today; reminders never roll over to tomorrow.
    """

    target = datetime.combine(
        now.date(), time(reminder.hour, reminder.minute), tzinfo=now.tzinfo
    )
    delay = target - now
    if delay <= timedelta(0):
        return None
    return delay


class ReminderScheduler:
    """Owns the reminder timers and the highlighted habit of one session.

    Every :meth:`rebuild` cancels all armed reminders before arming the new
    set, and each fire callback carries the generation it was armed in, so a
    reminder from an older habit list can never be delivered.
    """

    def __init__(
        self,
        *,
        scheduler: Optional[BackgroundScheduler] = None,
        clock: Optional[Callable[[], datetime]] = None,
        highlight_seconds: int = HIGHLIGHT_SECONDS,
        misfire_grace_seconds: int = 30,
    ) -> None:
        self._scheduler = scheduler if scheduler is not None else BackgroundScheduler()
        self._owns_scheduler = scheduler is None
        self._clock = clock or datetime.now
        self._highlight_seconds = highlight_seconds
        self._misfire_grace_seconds = misfire_grace_seconds

        self._lock = threading.RLock()
        self._timers: dict[Hashable, ReminderTimer] = {}
        self._highlight_jobs: set[str] = set()
        self._highlight_seq = itertools.count(1)
        self._generation = 0
        self._highlighted_id: Optional[Hashable] = None
        self._listeners: list[ReminderListener] = []
        self._closed = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def start(self, *, paused: bool = False) -> None:
        """Start the underlying APScheduler if it is not running yet."""
        if self._closed:
            raise RuntimeError("Reminder scheduler has been shut down")
        if not self._scheduler.running:
            self._scheduler.start(paused=paused)
            logger.info("Reminder scheduler started")

    def shutdown(self) -> None:
        """Cancel every pending timer and stop the owned APScheduler."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._cancel_timers()
            for job_id in list(self._highlight_jobs):
                self._remove_job(job_id)
            self._highlight_jobs.clear()
            self._highlighted_id = None
            self._generation += 1

        if self._owns_scheduler and self._scheduler.running:
            self._scheduler.shutdown(wait=False)
        logger.info("Reminder scheduler stopped")

    def __enter__(self) -> "ReminderScheduler":
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown()

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------
    def subscribe(self, listener: ReminderListener) -> Callable[[], None]:
        """Register ``listener`` for reminder events; returns an unsubscribe callable."""
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    def _emit(self, event: ReminderEvent) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(event)
            except Exception as exc:
                logger.error(f"Reminder listener failed on {event!r}: {exc}", exc_info=True)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    @property
    def highlighted_id(self) -> Optional[Hashable]:
        with self._lock:
            return self._highlighted_id

    @property
    def highlight_seconds(self) -> int:
        return self._highlight_seconds

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    @property
    def timers(self) -> dict[Hashable, ReminderTimer]:
        """Snapshot of the currently armed reminders keyed by habit id."""
        with self._lock:
            return dict(self._timers)

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------
    def rebuild(self, habits: Iterable[Habit]) -> list[ReminderTimer]:
        """Discard all armed reminders and arm one per habit due later today."""
        with self._lock:
            if self._closed:
                raise RuntimeError("Reminder scheduler has been shut down")

            cancelled = self._cancel_timers()
            self._generation += 1
            generation = self._generation
            now = self._clock()

            armed: list[ReminderTimer] = []
            for habit in habits:
                if habit.id in self._timers:
                    logger.warning(
                        f"Skipping reminder for {habit.name!r}: habit id {habit.id} already armed"
                    )
                    continue
                timer = self._arm(habit, now, generation)
                if timer is not None:
                    self._timers[habit.id] = timer
                    armed.append(timer)

        logger.info(
            "Rebuilt reminder schedule",
            extra={"generation": generation, "armed": len(armed), "cancelled": cancelled},
        )
        return armed

    def cancel_all(self) -> int:
        """Cancel every armed reminder; returns how many were cancelled."""
        with self._lock:
            cancelled = self._cancel_timers()
            self._generation += 1
        if cancelled:
            logger.info(f"Cancelled {cancelled} reminder(s)")
        return cancelled

    def acknowledge(self, habit_id: Hashable) -> bool:
        """Clear the highlight right away when ``habit_id`` holds it (e.g. on check-in)."""
        with self._lock:
            if self._highlighted_id != habit_id:
                return False
            self._highlighted_id = None
        self._emit(HabitHighlightCleared(habit_id))
        return True

    def _arm(self, habit: Habit, now: datetime, generation: int) -> Optional[ReminderTimer]:
        if not habit.reminder_time:
            return None

        reminder = parse_reminder_time(habit.reminder_time)
        if reminder is None:
            logger.warning(
                f"Skipping reminder for habit {habit.id}: unparseable time {habit.reminder_time!r}"
            )
            return None

        delay = delay_until(reminder, now)
        if delay is None:
            logger.debug(f"Reminder for habit {habit.id} already passed today")
            return None

        run_at = now + delay
        job_id = f"{REMINDER_JOB_PREFIX}{habit.id}"
        self._scheduler.add_job(
            func=self._fire,
            trigger=DateTrigger(run_date=run_at),
            args=[habit.id, habit.name, generation],
            id=job_id,
            name=f"Reminder: {habit.name}",
            replace_existing=True,
            misfire_grace_time=self._misfire_grace_seconds,
        )
        return ReminderTimer(
            habit_id=habit.id,
            habit_name=habit.name,
            delay=delay,
            run_at=run_at,
            job_id=job_id,
            generation=generation,
        )

    def _cancel_timers(self) -> int:
        count = len(self._timers)
        for timer in self._timers.values():
            self._remove_job(timer.job_id)
        self._timers.clear()
        return count

    def _remove_job(self, job_id: str) -> None:
        try:
            self._scheduler.remove_job(job_id)
        except JobLookupError:
            # Already fired or already removed.
            logger.debug(f"Job {job_id} no longer scheduled")

    # ------------------------------------------------------------------
    # Job callbacks
    # ------------------------------------------------------------------
    def _fire(self, habit_id: Hashable, habit_name: str, generation: int) -> None:
        with self._lock:
            if self._closed or generation != self._generation:
                logger.debug(f"Dropping stale reminder for habit {habit_id} (gen {generation})")
                return
            timer = self._timers.pop(habit_id, None)
            if timer is None or timer.generation != generation:
                return
            # APScheduler drops date jobs once run; direct calls must too.
            self._remove_job(timer.job_id)
            self._highlighted_id = habit_id
            self._arm_highlight_clear(habit_id)

        logger.info(f"Reminder due for habit {habit_id}", extra={"habit_name": habit_name})
        self._emit(ReminderDue(habit_id=habit_id, habit_name=habit_name))
        self._emit(HabitHighlighted(habit_id=habit_id))

    def _arm_highlight_clear(self, habit_id: Hashable) -> None:
        job_id = f"{HIGHLIGHT_JOB_PREFIX}{habit_id}:{next(self._highlight_seq)}"
        self._scheduler.add_job(
            func=self._clear_highlight,
            trigger=DateTrigger(run_date=self._clock() + timedelta(seconds=self._highlight_seconds)),
            args=[habit_id, job_id],
            id=job_id,
            name=f"Clear highlight: {habit_id}",
            misfire_grace_time=None,
        )
        self._highlight_jobs.add(job_id)

    def _clear_highlight(self, habit_id: Hashable, job_id: str) -> None:
        with self._lock:
            self._highlight_jobs.discard(job_id)
            if self._closed or self._highlighted_id != habit_id:
                return
            self._highlighted_id = None
        self._emit(HabitHighlightCleared(habit_id=habit_id))


__all__ = [
    "HIGHLIGHT_SECONDS",
    "HabitHighlightCleared",
    "HabitHighlighted",
    "ReminderDue",
    "ReminderEvent",
    "ReminderScheduler",
    "ReminderTimer",
    "delay_until",
]

"""Integration tests for the tracker context workflow."""

from __future__ import annotations

import logging
from datetime import date

import pytest

from habitpulse.config import TestingConfig
from habitpulse.context import create_tracker_context
from habitpulse.scheduler import HabitHighlightCleared, ReminderDue, ReminderScheduler
from habitpulse.services.progress import DayStatus


@pytest.fixture
def tracker(reminders):
    ctx = create_tracker_context(TestingConfig(), reminders=reminders)
    ctx.today = lambda: date(2024, 1, 3)
    yield ctx
    ctx.close()


def test_defaults_come_from_config(monkeypatch):
    monkeypatch.setenv("HABITPULSE_HIGHLIGHT_SECONDS", "3")
    ctx = create_tracker_context(TestingConfig(), start_reminders=False)
    try:
        assert ctx.reminders.highlight_seconds == 3
        assert ctx.habits == []
        assert ctx.day_status(date(2024, 1, 3)) is DayStatus.NO_EXPECTATION
    finally:
        ctx.close()


def test_set_habits_rebuilds_reminders(tracker, aps, habit_factory):
    habit = habit_factory("Read", reminder_time="09:00")

    tracker.set_habits([habit])

    assert list(tracker.reminders.timers) == [habit.id]
    tracker.set_habits([])
    assert tracker.reminders.timers == {}
    assert aps.get_jobs() == []


def test_set_checkins_rebuilds_index(tracker, habit_factory, checkin_factory):
    read = habit_factory("Read")
    run = habit_factory("Run", days=[1, 3, 5])
    tracker.set_habits([read, run])

    tracker.set_checkins([checkin_factory(read, date(2024, 1, 3))])

    assert tracker.day_status(date(2024, 1, 3)) is DayStatus.PARTIALLY_COMPLETED
    assert [(d.name, d.completed) for d in tracker.day_details(date(2024, 1, 3))] == [
        ("Read", True),
        ("Run", False),
    ]
    assert tracker.month(2024, 1)[date(2024, 1, 4)] is DayStatus.NONE_COMPLETED


def test_add_checkin_completes_day_and_acknowledges(tracker, aps, events, habit_factory, checkin_factory):
    habit = habit_factory("Read", reminder_time="09:00")
    tracker.set_habits([habit])
    timer = tracker.reminders.timers[habit.id]
    job = aps.get_job(timer.job_id)
    job.func(*job.args)

    assert tracker.add_checkin(checkin_factory(habit, date(2024, 1, 3))) is True

    assert tracker.day_status(date(2024, 1, 3)) is DayStatus.FULLY_COMPLETED
    assert isinstance(events[0], ReminderDue)
    assert events[-1] == HabitHighlightCleared(habit.id)


def test_habits_for_today(tracker, habit_factory):
    daily = habit_factory("daily")
    weekend = habit_factory("weekend", days=[6, 7])
    tracker.set_habits([weekend, daily])

    due, other = tracker.habits_for_today()

    assert due == [daily]
    assert other == [weekend]


def test_caller_lists_are_not_mutated(tracker, habit_factory, checkin_factory):
    habits = [habit_factory("Read")]
    checkins = [checkin_factory(1, date(2024, 1, 2))]
    tracker.set_habits(habits)
    tracker.set_checkins(checkins)

    assert tracker.add_checkin(checkin_factory(1, date(2024, 1, 3))) is True

    assert len(checkins) == 1
    assert len(tracker.checkins) == 2


class TestAddCheckinGuards:
    """Checkins are only accepted for today's due habits."""

    def test_archived_habit_is_rejected(self, tracker, habit_factory, checkin_factory):
        habit = habit_factory("Old", is_archived=True)
        tracker.set_habits([habit])

        assert tracker.add_checkin(checkin_factory(habit, date(2024, 1, 3))) is False
        assert tracker.checkins == []

    def test_habit_not_due_today_is_rejected(self, tracker, habit_factory, checkin_factory):
        tuesdays = habit_factory("Swim", days=[2])
        tracker.set_habits([tuesdays])

        assert tracker.add_checkin(checkin_factory(tuesdays, date(2024, 1, 3))) is False
        assert tracker.checkins == []
        assert tracker.day_status(date(2024, 1, 3)) is DayStatus.NO_EXPECTATION

    def test_other_date_is_rejected(self, tracker, habit_factory, checkin_factory, caplog):
        habit = habit_factory("Read")
        tracker.set_habits([habit])

        with caplog.at_level(logging.WARNING, logger="habitpulse.context"):
            accepted = tracker.add_checkin(checkin_factory(habit, date(2030, 1, 1)))

        assert accepted is False
        assert tracker.checkins == []
        assert "Rejected checkin" in caplog.text

    def test_unknown_habit_is_rejected(self, tracker, habit_factory, checkin_factory):
        tracker.set_habits([habit_factory("Read", habit_id=1)])

        assert tracker.add_checkin(checkin_factory(99, date(2024, 1, 3))) is False
        assert tracker.checkins == []

    def test_rejected_checkin_keeps_highlight(self, tracker, aps, habit_factory, checkin_factory):
        due = habit_factory("Read", reminder_time="09:00")
        archived = habit_factory("Old", habit_id=due.id + 1, is_archived=True)
        tracker.set_habits([due, archived])
        job = aps.get_job(tracker.reminders.timers[due.id].job_id)
        job.func(*job.args)

        tracker.add_checkin(checkin_factory(due, date(2024, 1, 4)))

        assert tracker.reminders.highlighted_id == due.id


def test_close_shuts_down_reminders(clock, habit_factory):
    reminders = ReminderScheduler(clock=clock)
    ctx = create_tracker_context(TestingConfig(), reminders=reminders, start_reminders=False)
    ctx.set_habits([habit_factory(reminder_time="09:00")])

    ctx.close()

    assert reminders.timers == {}
    with pytest.raises(RuntimeError):
        ctx.set_habits([])

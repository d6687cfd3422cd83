"""Command line views over a habit snapshot."""

from __future__ import annotations

from datetime import date, datetime
from pathlib import Path

import click

from .config import get_config
from .context import TrackerContext, create_tracker_context
from .logging_config import setup_logging
from .services.records import RecordError, load_snapshot
from .services.recurrence import WEEKDAY_LABELS, describe_frequency, describe_reminder, iso_weekday


def _parse_month(value: str) -> tuple[int, int]:
    try:
        parsed = datetime.strptime(value.strip(), "%Y-%m")
    except ValueError as exc:
        raise click.BadParameter("Use YYYY-MM format") from exc
    return parsed.year, parsed.month


def _parse_day(value: str) -> date:
    try:
        return date.fromisoformat(value.strip())
    except ValueError as exc:
        raise click.BadParameter("Use YYYY-MM-DD format") from exc


@click.group()
@click.option(
    "--snapshot",
    "snapshot_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help='JSON file with {"habits": [...], "checkins": [...]}',
)
@click.option("--env", "env_name", default=None, help="Configuration name (development, testing)")
@click.pass_context
def cli(ctx: click.Context, snapshot_path: Path, env_name: str | None) -> None:
    """Inspect habit progress for a snapshot of habits and checkins."""

    config = get_config(env_name)
    setup_logging(config)

    try:
        snapshot = load_snapshot(snapshot_path)
    except RecordError as exc:
        raise click.ClickException(str(exc)) from exc

    tracker = create_tracker_context(config, start_reminders=False)
    tracker.set_habits(snapshot.habits)
    tracker.set_checkins(snapshot.checkins)
    ctx.obj = tracker
    ctx.call_on_close(tracker.close)


@cli.command("calendar")
@click.argument("month")
@click.pass_obj
def calendar_cmd(tracker: TrackerContext, month: str) -> None:
    """Print the completion status of every day in MONTH (YYYY-MM)."""

    year, month_number = _parse_month(month)
    for day, status in tracker.month(year, month_number).items():
        click.echo(f"{day.isoformat()} {WEEKDAY_LABELS[iso_weekday(day)]}  {status.value}")


@cli.command("day")
@click.argument("day")
@click.pass_obj
def day_cmd(tracker: TrackerContext, day: str) -> None:
    """Print the habits expected on DAY (YYYY-MM-DD) and whether they were done."""

    selected = _parse_day(day)
    details = tracker.day_details(selected)
    click.echo(f"History: {selected.isoformat()}")
    if not details:
        click.echo("No habits expected.")
        return
    for item in details:
        mark = "x" if item.completed else " "
        color = f" ({item.category_color})" if item.category_color else ""
        click.echo(f"[{mark}] {item.name}{color}")


@cli.command("today")
@click.option("--date", "on_date", default=None, help="Override today (YYYY-MM-DD)")
@click.pass_obj
def today_cmd(tracker: TrackerContext, on_date: str | None) -> None:
    """Print today's habits followed by the ones not due today."""

    if on_date is not None:
        selected = _parse_day(on_date)
        tracker.today = lambda: selected
    due, other = tracker.habits_for_today()
    done = tracker.index.get(tracker.today(), frozenset())

    click.echo("Today:")
    for habit in due:
        mark = "x" if habit.id in done else " "
        reminder = describe_reminder(habit)
        suffix = f" - {describe_frequency(habit)}"
        if reminder:
            suffix += f" - reminder {reminder}"
        click.echo(f"[{mark}] {habit.name}{suffix}")
    if other:
        click.echo("Other habits:")
        for habit in other:
            click.echo(f"    {habit.name} - {describe_frequency(habit)}")


def main() -> None:
    cli()


if __name__ == "__main__":  # pragma: no cover
    main()

"""Command-line front end for DailyDeclare."""

from __future__ import annotations

import functools
import time as _time

import click

from .context import AppContext, create_app_context
from .errors import DailyDeclareError
from .logging_config import setup_logging
from .models.counter import CounterScope
from .services.reminders import KEY_REMINDERS
from .services.time_format import format_time, parse_time


def _app(ctx: click.Context) -> AppContext:
    return ctx.find_object(AppContext)


def handle_errors(func):
    """Turn core errors into a clean CLI failure message."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except DailyDeclareError as exc:
            raise click.ClickException(exc.message) from exc

    return wrapper


@click.group()
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Track declarations and keep daily reminders scheduled."""

    if not isinstance(ctx.obj, AppContext):
        ctx.obj = create_app_context()
    setup_logging(ctx.obj.config)


@cli.command()
@click.pass_context
@handle_errors
def status(ctx: click.Context) -> None:
    """Show today's count, lifetime total and streaks."""

    app = _app(ctx)
    state = app.counter.load_state()
    click.echo(f"Today:        {state.daily_count}")
    click.echo(f"Total:        {state.total_count}")
    click.echo(f"Streak:       {state.current_streak} (best {state.best_streak})")
    click.echo(f"Days tracked: {app.counter.days_tracked(state)}")
    click.echo(f"Daily average: {app.counter.daily_average(state)}")


@cli.command()
@click.option("--times", "-n", default=1, show_default=True, type=click.IntRange(min=1))
@click.pass_context
@handle_errors
def declare(ctx: click.Context, times: int) -> None:
    """Record one or more declarations."""

    app = _app(ctx)
    for _ in range(times):
        state = app.counter.record_action()
    click.echo(f"Recorded {times}. Today: {state.daily_count}, total: {state.total_count}")


@cli.command()
@click.argument("scope", type=click.Choice([scope.value for scope in CounterScope]))
@click.option("--yes", is_flag=True, help="Skip the confirmation prompt for 'all'.")
@click.pass_context
@handle_errors
def reset(ctx: click.Context, scope: str, yes: bool) -> None:
    """Reset the daily count, the total count, or all counter data."""

    if scope == CounterScope.ALL.value and not yes:
        click.confirm("Reset all counter data, streaks included?", abort=True)
    state = _app(ctx).counter.reset_counter(scope)
    click.echo(f"Reset {scope}. Today: {state.daily_count}, total: {state.total_count}")


@cli.group()
def reminders() -> None:
    """Manage daily reminders."""


@reminders.command("list")
@click.pass_context
@handle_errors
def list_reminders(ctx: click.Context) -> None:
    """List reminders with their next firing time."""

    app = _app(ctx)
    items = app.reminders.list_reminders()
    if not items:
        click.echo("No reminders.")
        return
    now = app.clock.now()
    for reminder in items:
        flag = "on " if reminder.enabled else "off"
        next_at = reminder.time.next_occurrence(now).strftime("%a %H:%M")
        click.echo(
            f"{reminder.id}  [{flag}]  {format_time(reminder.time):>8}  "
            f"{reminder.title}  (next {next_at})"
        )


@reminders.command("add")
@click.argument("when")
@click.argument("title")
@click.option("--body", default="", help="Notification body text.")
@click.option("--sound/--no-sound", default=True, show_default=True)
@click.pass_context
@handle_errors
def add_reminder(ctx: click.Context, when: str, title: str, body: str, sound: bool) -> None:
    """Add a reminder at WHEN (e.g. "8:00 AM" or 20:30)."""

    app = _app(ctx)
    reminder = app.reminders.add_reminder(parse_time(when), title, body, sound=sound)
    click.echo(f"Added {reminder.id} at {format_time(reminder.time)}")
    _report(app.reminders.reconcile())


@reminders.command("edit")
@click.argument("reminder_id")
@click.option("--time", "when", default=None, help="New time of day.")
@click.option("--title", default=None)
@click.option("--body", default=None)
@click.pass_context
@handle_errors
def edit_reminder(ctx, reminder_id: str, when, title, body) -> None:
    """Change a reminder's time or text."""

    app = _app(ctx)
    reminder = app.reminders.get_reminder(reminder_id)
    if when is not None:
        reminder.time = parse_time(when)
    if title is not None:
        reminder.title = title
    if body is not None:
        reminder.body = body
    app.reminders.update_reminder(reminder)
    click.echo(f"Updated {reminder.id}")
    _report(app.reminders.reconcile())


@reminders.command("remove")
@click.argument("reminder_id")
@click.pass_context
@handle_errors
def remove_reminder(ctx: click.Context, reminder_id: str) -> None:
    """Delete a reminder."""

    app = _app(ctx)
    app.reminders.delete_reminder(reminder_id)
    click.echo(f"Removed {reminder_id}")
    _report(app.reminders.reconcile())


def _toggle(ctx: click.Context, reminder_id: str | None, enabled: bool) -> None:
    app = _app(ctx)
    if reminder_id is None:
        _report(app.reminders.set_all_enabled(enabled))
        return
    reminder = app.reminders.get_reminder(reminder_id)
    reminder.enabled = enabled
    app.reminders.update_reminder(reminder)
    _report(app.reminders.reconcile())


@reminders.command("enable")
@click.argument("reminder_id", required=False)
@click.pass_context
@handle_errors
def enable_reminder(ctx: click.Context, reminder_id: str | None) -> None:
    """Enable one reminder, or all of them when no id is given."""

    _toggle(ctx, reminder_id, True)


@reminders.command("disable")
@click.argument("reminder_id", required=False)
@click.pass_context
@handle_errors
def disable_reminder(ctx: click.Context, reminder_id: str | None) -> None:
    """Disable one reminder, or all of them when no id is given."""

    _toggle(ctx, reminder_id, False)


@reminders.command("sync")
@click.pass_context
@handle_errors
def sync_reminders(ctx: click.Context) -> None:
    """Reconcile live notifications with the stored reminders."""

    _report(_app(ctx).reminders.reconcile())


@cli.command()
@click.option(
    "--poll",
    default=5.0,
    show_default=True,
    type=click.FloatRange(min=0.1),
    help="Seconds between checks for reminder changes made by other commands.",
)
@click.pass_context
@handle_errors
def run(ctx: click.Context, poll: float) -> None:
    """Keep reminders firing until interrupted."""

    app = _app(ctx)
    app.reminders.ensure_default_reminders()
    _report(app.reminders.reconcile(), live=True)
    start = getattr(app.notifications, "start", None)
    stop = getattr(app.notifications, "stop", None)
    if start is None:
        raise click.ClickException("Notification backend cannot run in the foreground")
    start()
    click.echo("Reminders running. Press Ctrl+C to stop.")
    seen = app.settings_repo.get(KEY_REMINDERS)
    try:
        while True:
            _time.sleep(poll)
            current = app.settings_repo.get(KEY_REMINDERS)
            if current != seen:
                seen = current
                click.echo("Reminders changed; rescheduling.")
                _report(app.reminders.reconcile(), live=True)
    except KeyboardInterrupt:
        click.echo("Stopping.")
    finally:
        if stop is not None:
            stop()


@cli.command()
@click.option("--yes", is_flag=True, help="Skip the confirmation prompt.")
@click.pass_context
@handle_errors
def wipe(ctx: click.Context, yes: bool) -> None:
    """Delete all stored data and cancel scheduled reminders."""

    if not yes:
        click.confirm("This removes all counts, streaks and reminders. Continue?", abort=True)
    _app(ctx).wipe_all_data()
    click.echo("All data removed.")


def _report(result, *, live: bool = False) -> None:
    if not result.ok:
        raise click.ClickException(
            "Notification permission denied. Enable notifications and run 'reminders sync'."
        )
    message = f"{result.scheduled} reminder(s) scheduled"
    if result.failed:
        message += f", {len(result.failed)} failed: {', '.join(result.failed)}"
    if not live:
        message += " (reminders fire only while 'dailydeclare run' is active)"
    click.echo(message)


def main() -> None:
    cli(prog_name="dailydeclare")


if __name__ == "__main__":
    main()

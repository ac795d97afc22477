from __future__ import annotations

import json
import logging
import os
from collections import Counter
from dataclasses import asdict
from datetime import date, datetime
from typing import Any, Optional

import typer

from zenremind.core.actions.habits import add_habit, delete_habit, habit_timeline, toggle_habit_date
from zenremind.core.actions.reminders import (
    delete_reminder,
    new_reminder_id,
    save_reminder,
    toggle_complete,
)
from zenremind.core.agenda.agenda import (
    ALL_VIEWS,
    dashboard_stats,
    display_reminders,
    important_events,
    total_cost,
    upcoming_birthdays,
    visible_occurrences,
)
from zenremind.core.agenda.category_config import CategoryConfigError, load_and_merge
from zenremind.core.agenda.dates import format_nice_date, is_overdue
from zenremind.core.errors import ReminderError, StoreLoadError, StoreValidationError
from zenremind.core.expand.recurrence import expand_occurrences
from zenremind.core.io.load_store import load_store, save_store
from zenremind.core.lint.lint_store import lint_store
from zenremind.core.model import (
    OCCURRENCE_SEPARATOR,
    Habit,
    OccurrenceId,
    Recurrence,
    Reminder,
    StoreSnapshot,
    template_id_of,
)
from zenremind.core.validate.validate_store import (
    ALLOWED_PRIORITIES,
    ALLOWED_RECURRENCE_KINDS,
    format_timestamp,
    parse_timestamp,
    snapshot_to_store,
    validate_store,
)

logger = logging.getLogger("zenremind")

app = typer.Typer(add_completion=False, no_args_is_help=True)
habits_app = typer.Typer(add_completion=False, no_args_is_help=True, help="Habit tracking.")
app.add_typer(habits_app, name="habits")

STORE_ARG_HELP = "Path to a store file (.yaml/.yml/.json); defaults to $ZENREMIND_STORE"


@app.callback()
def _callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output to stderr"),
) -> None:
    """Reminder CLI."""
    level_name = "DEBUG" if verbose else os.getenv("ZENREMIND_LOG_LEVEL", "WARNING")
    level = getattr(logging, level_name.upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logging.getLogger("zenremind").setLevel(level)


@app.command("validate")
def validate(
    store: str = typer.Argument(..., envvar="ZENREMIND_STORE", help=STORE_ARG_HELP),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Validate a store file."""
    _check_format(format, "E_VALIDATE_UNKNOWN_FORMAT")

    def _emit_json(
        ok: bool, *, exit_code: int, errors: list[ReminderError], summary: dict | None
    ) -> None:
        payload = {
            "tool": "zenremind",
            "command": "validate",
            "ok": ok,
            "error_count": len(errors),
            "errors": [_to_item(e) for e in errors],
            "summary": summary,
        }
        typer.echo(json.dumps(payload, indent=2, sort_keys=True))
        raise typer.Exit(code=exit_code)

    try:
        raw = load_store(store)
    except StoreLoadError as e:
        if format == "json":
            _emit_json(False, exit_code=1, errors=[e], summary=None)
        _print_errors([e])
        raise typer.Exit(code=1)

    snapshot, errors = validate_store(raw)
    if errors or snapshot is None:
        if format == "json":
            _emit_json(False, exit_code=2, errors=list(errors), summary=None)
        _print_errors(list(errors))
        raise typer.Exit(code=2)

    summary = _summary(snapshot)
    if format == "text":
        parts = [f"{k}={v}" for k, v in sorted(summary["recurrence_counts"].items())]
        typer.echo(
            f"OK: {summary['reminder_count']} reminders ("
            + ", ".join(parts)
            + f"), {summary['habit_count']} habits"
        )
        return

    _emit_json(True, exit_code=0, errors=[], summary=summary)


@app.command("lint")
def lint(
    store: str = typer.Argument(..., envvar="ZENREMIND_STORE", help=STORE_ARG_HELP),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Lint a store file (consistency rules beyond validation)."""
    _check_format(format, "E_LINT_UNKNOWN_FORMAT")

    def _emit_json(ok: bool, errors: list[ReminderError], exit_code: int) -> None:
        payload = {
            "tool": "zenremind",
            "command": "lint",
            "ok": ok,
            "error_count": len(errors),
            "errors": [_to_item(e) for e in errors],
        }
        typer.echo(json.dumps(payload, indent=2, sort_keys=True))
        raise typer.Exit(code=exit_code)

    try:
        raw = load_store(store)
    except StoreLoadError as e:
        if format == "json":
            _emit_json(False, [e], 1)
        _print_errors([e])
        raise typer.Exit(code=1)

    lint_errors = lint_store(raw)
    _, validation_errors = validate_store(raw)
    errors: list[ReminderError] = [*lint_errors, *validation_errors]

    if format == "text":
        if errors:
            _print_errors(errors)
            raise typer.Exit(code=2)
        typer.echo("OK: lint passed")
        return

    if errors:
        _emit_json(False, errors, 2)
    _emit_json(True, [], 0)


@app.command("occurrences")
def occurrences(
    reminder_id: str = typer.Argument(..., help="Template id"),
    start: str = typer.Option(..., "--start", help="Range start (ISO-8601)"),
    end: str = typer.Option(..., "--end", help="Range end (ISO-8601)"),
    store: str = typer.Option(..., "--store", envvar="ZENREMIND_STORE", help=STORE_ARG_HELP),
    include_completed: bool = typer.Option(
        False, "--include-completed", help="Keep occurrences listed in completedInstances"
    ),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Expand one reminder over [start, end]."""
    _check_format(format, "E_OCCURRENCES_UNKNOWN_FORMAT")
    snapshot = _load_snapshot(store)
    range_start = _parse_option_timestamp(start, "start")
    range_end = _parse_option_timestamp(end, "end")

    reminder = _find_reminder(snapshot, reminder_id)
    if include_completed:
        found = expand_occurrences(reminder, range_start, range_end)
    else:
        found = visible_occurrences(reminder, range_start, range_end)

    if format == "json":
        typer.echo(json.dumps([_occurrence_item(o) for o in found], indent=2, sort_keys=True))
        return

    for o in found:
        typer.echo(f"{o.id}\t{o.due_date.isoformat()}\t{o.title}")
    typer.echo(f"OK: {len(found)} occurrences")


@app.command("agenda")
def agenda(
    store: str = typer.Argument(..., envvar="ZENREMIND_STORE", help=STORE_ARG_HELP),
    view: str = typer.Option("today", "--view", help="today|week|month|todo|shopping|works|outstanding"),
    now: Optional[str] = typer.Option(None, "--now", help="Reference time (ISO-8601); defaults to now"),
    category_file: Optional[str] = typer.Option(
        None, "--category-file", help="Optional YAML file to add/override category groups"
    ),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """List reminders for a view, recurring ones expanded into occurrences."""
    _check_format(format, "E_AGENDA_UNKNOWN_FORMAT")
    view_key = view.upper()
    if view_key not in ALL_VIEWS or view_key in ("DASHBOARD", "HABITS"):
        _print_errors(
            [
                StoreValidationError(
                    code="E_AGENDA_UNKNOWN_VIEW",
                    message=f"unknown view: {view} (choose one of: today, week, month, todo, shopping, works, outstanding)",
                    file=None,
                    path="view",
                )
            ]
        )
        raise typer.Exit(code=2)

    snapshot = _load_snapshot(store)
    groups = _load_groups(category_file)
    ref = _parse_option_timestamp(now, "now") if now else datetime.now()

    items = display_reminders(snapshot.reminders, view_key, ref, groups)

    if format == "json":
        payload = {
            "tool": "zenremind",
            "command": "agenda",
            "view": view_key,
            "now": format_timestamp(ref),
            "items": [_occurrence_item(o) for o in items],
            "total_cost": round(total_cost(items), 2),
        }
        typer.echo(json.dumps(payload, indent=2, sort_keys=True))
        return

    typer.echo(view_key.replace("_", " "))
    for o in items:
        flag = "!" if is_overdue(o.due_date, o.completed, ref) else "-"
        typer.echo(f"{flag} {format_nice_date(o.due_date)}  {o.title}  [{o.category}]  ({o.id})")
    if view_key in ("SHOPPING", "WORKS"):
        typer.echo(f"Total: ${total_cost(items):.2f}")
    typer.echo(f"OK: {len(items)} items")


@app.command("dashboard")
def dashboard(
    store: str = typer.Argument(..., envvar="ZENREMIND_STORE", help=STORE_ARG_HELP),
    now: Optional[str] = typer.Option(None, "--now", help="Reference time (ISO-8601); defaults to now"),
    category_file: Optional[str] = typer.Option(
        None, "--category-file", help="Optional YAML file to add/override category groups"
    ),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
) -> None:
    """Counts per view plus upcoming birthdays and important events."""
    _check_format(format, "E_DASHBOARD_UNKNOWN_FORMAT")
    snapshot = _load_snapshot(store)
    groups = _load_groups(category_file)
    ref = _parse_option_timestamp(now, "now") if now else datetime.now()

    stats = dashboard_stats(snapshot.reminders, snapshot.habits, ref, groups)
    birthdays = upcoming_birthdays(snapshot.reminders, ref, groups)
    events = important_events(snapshot.reminders, groups)

    if format == "json":
        payload = {
            "tool": "zenremind",
            "command": "dashboard",
            "stats": asdict(stats),
            "upcoming_birthdays": [_occurrence_item(o) for o in birthdays],
            "important_events": [_occurrence_item(o) for o in events],
        }
        typer.echo(json.dumps(payload, indent=2, sort_keys=True))
        return

    typer.echo(", ".join(f"{k}={v}" for k, v in asdict(stats).items()))
    typer.echo("Upcoming birthdays:")
    for o in birthdays:
        typer.echo(f"- {format_nice_date(o.due_date)}  {o.title}")
    typer.echo("Important events:")
    for o in events:
        typer.echo(f"- {format_nice_date(o.due_date)}  {o.title}")


@app.command("add")
def add(
    store: str = typer.Argument(..., envvar="ZENREMIND_STORE", help=STORE_ARG_HELP),
    title: str = typer.Option(..., "--title"),
    due: str = typer.Option(..., "--due", help="Due date/anchor (ISO-8601)"),
    description: str = typer.Option("", "--description"),
    category: str = typer.Option("Personal", "--category"),
    priority: str = typer.Option("MEDIUM", "--priority", help="LOW|MEDIUM|HIGH"),
    recurrence: str = typer.Option(
        "NONE", "--recurrence", help="NONE|DAILY|WEEKLY|MONTHLY|YEARLY|CUSTOM"
    ),
    days: Optional[str] = typer.Option(
        None, "--days", help="CUSTOM weekdays, comma separated (0=Sunday..6=Saturday)"
    ),
    until: Optional[str] = typer.Option(None, "--until", help="Recurrence end date (ISO-8601)"),
    cost: Optional[float] = typer.Option(None, "--cost"),
) -> None:
    """Add a reminder template."""
    raw = _load_raw(store, missing_ok=True)
    snapshot = _validated(raw)

    priority = priority.upper()
    if priority not in ALLOWED_PRIORITIES:
        _usage_error("E_ADD_INVALID_PRIORITY", f"unknown priority: {priority}", "priority")
    kind = recurrence.upper()
    if kind not in ALLOWED_RECURRENCE_KINDS:
        _usage_error("E_ADD_INVALID_RECURRENCE", f"unknown recurrence: {recurrence}", "recurrence")

    days_of_week: Optional[tuple[int, ...]] = None
    if days is not None:
        try:
            days_of_week = tuple(int(d) for d in days.split(",") if d.strip())
        except ValueError:
            _usage_error("E_ADD_INVALID_DAYS", f"days must be integers: {days}", "days")
        assert days_of_week is not None
        if any(d < 0 or d > 6 for d in days_of_week):
            _usage_error("E_ADD_INVALID_DAYS", "days must be between 0 and 6", "days")

    rec: Optional[Recurrence] = None
    if kind != "NONE":
        rec = Recurrence(
            kind=kind,  # type: ignore[arg-type]
            days_of_week=days_of_week,
            end_date=_parse_option_timestamp(until, "until") if until else None,
        )

    reminder = Reminder(
        id=new_reminder_id(),
        title=title,
        due_date=_parse_option_timestamp(due, "due"),
        description=description,
        category=category,
        priority=priority,  # type: ignore[arg-type]
        created_at=datetime.now(),
        cost=cost,
        recurrence=rec,
    )
    reminders = save_reminder(snapshot.reminders, reminder)
    _write(store, StoreSnapshot(reminders=tuple(reminders), habits=snapshot.habits))
    typer.echo(f"OK: added {reminder.id}")


@app.command("complete")
def complete(
    instance_id: str = typer.Argument(..., help="Reminder id or occurrence id (<id>::<millis>)"),
    store: str = typer.Option(..., "--store", envvar="ZENREMIND_STORE", help=STORE_ARG_HELP),
) -> None:
    """Complete a one-off reminder (removes it) or one occurrence of a recurring one."""
    snapshot = _load_snapshot(store)
    _find_reminder(snapshot, template_id_of(instance_id))
    if OCCURRENCE_SEPARATOR in instance_id and OccurrenceId.parse(instance_id) is None:
        _usage_error(
            "E_INVALID_ID",
            f"occurrence id must be <id>::<epoch millis>: {instance_id}",
            "instance_id",
        )
    reminders = toggle_complete(snapshot.reminders, instance_id)
    _write(store, StoreSnapshot(reminders=tuple(reminders), habits=snapshot.habits))
    typer.echo(f"OK: completed {instance_id}")


@app.command("delete")
def delete(
    reminder_id: str = typer.Argument(..., help="Reminder id (occurrence ids delete their template)"),
    store: str = typer.Option(..., "--store", envvar="ZENREMIND_STORE", help=STORE_ARG_HELP),
) -> None:
    """Delete a reminder template."""
    snapshot = _load_snapshot(store)
    _find_reminder(snapshot, template_id_of(reminder_id))
    reminders = delete_reminder(snapshot.reminders, reminder_id)
    _write(store, StoreSnapshot(reminders=tuple(reminders), habits=snapshot.habits))
    typer.echo(f"OK: deleted {template_id_of(reminder_id)}")


@app.command("categories")
def categories(
    category_file: Optional[str] = typer.Option(
        None, "--category-file", help="Optional YAML file to add/override category groups"
    ),
) -> None:
    """List category groups used by the views."""
    groups = _load_groups(category_file)
    typer.echo("Category groups:")
    for name in sorted(groups.keys()):
        typer.echo(f"- {name}: {', '.join(groups[name])}")


@habits_app.command("list")
def habits_list(
    store: str = typer.Argument(..., envvar="ZENREMIND_STORE", help=STORE_ARG_HELP),
    today: Optional[str] = typer.Option(None, "--today", help="Reference day (YYYY-MM-DD)"),
) -> None:
    """Show each habit against the 28-day timeline."""
    snapshot = _load_snapshot(store)
    ref = _parse_day(today) if today else date.today()
    timeline = habit_timeline(ref)

    typer.echo("".ljust(24) + "".join(d.weekday for d in timeline))
    for h in snapshot.habits:
        marks = "".join(
            ("x" if d.full in h.completed_dates else ("o" if d.is_today else "."))
            for d in timeline
        )
        typer.echo(f"{h.title[:22]:<22}  {marks}  ({h.id})")
    typer.echo(f"OK: {len(snapshot.habits)} habits")


@habits_app.command("add")
def habits_add(
    title: str = typer.Argument(...),
    store: str = typer.Option(..., "--store", envvar="ZENREMIND_STORE", help=STORE_ARG_HELP),
) -> None:
    """Start tracking a habit."""
    raw = _load_raw(store, missing_ok=True)
    snapshot = _validated(raw)
    if not title.strip():
        _usage_error("E_HABIT_EMPTY_TITLE", "habit title must be a non-empty string", "title")
    habit_id = new_reminder_id()
    habits = add_habit(snapshot.habits, title, habit_id=habit_id, created_at=datetime.now())
    _write(store, StoreSnapshot(reminders=snapshot.reminders, habits=tuple(habits)))
    typer.echo(f"OK: added habit {habit_id}")


@habits_app.command("toggle")
def habits_toggle(
    habit_id: str = typer.Argument(...),
    day: str = typer.Argument(..., help="Day to toggle (YYYY-MM-DD)"),
    store: str = typer.Option(..., "--store", envvar="ZENREMIND_STORE", help=STORE_ARG_HELP),
) -> None:
    """Mark a day done for a habit, or undo it."""
    snapshot = _load_snapshot(store)
    _find_habit(snapshot, habit_id)
    _parse_day(day)
    habits = toggle_habit_date(snapshot.habits, habit_id, day)
    _write(store, StoreSnapshot(reminders=snapshot.reminders, habits=tuple(habits)))
    typer.echo(f"OK: toggled {habit_id} on {day}")


@habits_app.command("delete")
def habits_delete(
    habit_id: str = typer.Argument(...),
    store: str = typer.Option(..., "--store", envvar="ZENREMIND_STORE", help=STORE_ARG_HELP),
) -> None:
    """Stop tracking a habit."""
    snapshot = _load_snapshot(store)
    _find_habit(snapshot, habit_id)
    habits = delete_habit(snapshot.habits, habit_id)
    _write(store, StoreSnapshot(reminders=snapshot.reminders, habits=tuple(habits)))
    typer.echo(f"OK: deleted habit {habit_id}")


def _load_raw(store: str, *, missing_ok: bool = False) -> dict[str, Any]:
    try:
        return load_store(store, missing_ok=missing_ok)
    except StoreLoadError as e:
        _print_errors([e])
        raise typer.Exit(code=1)


def _validated(raw: dict[str, Any]) -> StoreSnapshot:
    snapshot, errors = validate_store(raw)
    if errors or snapshot is None:
        _print_errors(list(errors))
        raise typer.Exit(code=2)
    return snapshot


def _load_snapshot(store: str) -> StoreSnapshot:
    return _validated(_load_raw(store))


def _write(store: str, snapshot: StoreSnapshot) -> None:
    save_store(store, snapshot_to_store(snapshot))
    logger.info("wrote %d reminders, %d habits to %s", len(snapshot.reminders), len(snapshot.habits), store)


def _load_groups(category_file: Optional[str]) -> dict[str, list[str]]:
    try:
        return load_and_merge(category_file)
    except FileNotFoundError:
        _print_errors(
            [
                StoreLoadError(
                    code="E_CATEGORY_FILE_NOT_FOUND",
                    message=f"category file not found: {category_file}",
                    file=None,
                    path="category_file",
                )
            ]
        )
        raise typer.Exit(code=1)
    except CategoryConfigError as e:
        _print_errors(
            [
                StoreValidationError(
                    code="E_CATEGORY_FILE_INVALID",
                    message=str(e),
                    file=None,
                    path="category_file",
                )
            ]
        )
        raise typer.Exit(code=2)


def _find_reminder(snapshot: StoreSnapshot, reminder_id: str) -> Reminder:
    for r in snapshot.reminders:
        if r.id == reminder_id:
            return r
    _usage_error("E_UNKNOWN_REMINDER", f"no reminder with id: {reminder_id}", "reminder_id")
    raise AssertionError("unreachable")


def _find_habit(snapshot: StoreSnapshot, habit_id: str) -> Habit:
    for h in snapshot.habits:
        if h.id == habit_id:
            return h
    _usage_error("E_UNKNOWN_HABIT", f"no habit with id: {habit_id}", "habit_id")
    raise AssertionError("unreachable")


def _parse_option_timestamp(value: Optional[str], name: str) -> datetime:
    parsed = parse_timestamp(value)
    if parsed is None:
        _usage_error("E_INVALID_DATE", f"--{name} must be an ISO-8601 timestamp: {value}", name)
    assert parsed is not None
    return parsed


def _parse_day(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        _usage_error("E_INVALID_DATE", f"day must be YYYY-MM-DD: {value}", "day")
        raise


def _check_format(format: str, code: str) -> None:
    if format not in ("text", "json"):
        _usage_error(code, f"unknown format: {format} (choose one of: text, json)", "format")


def _usage_error(code: str, message: str, path: str) -> None:
    _print_errors([StoreValidationError(code=code, message=message, file=None, path=path)])
    raise typer.Exit(code=2)


def _summary(snapshot: StoreSnapshot) -> dict[str, Any]:
    counts = Counter(
        (r.recurrence.kind if r.recurrence is not None else "NONE") for r in snapshot.reminders
    )
    return {
        "reminder_count": len(snapshot.reminders),
        "recurrence_counts": {k: int(v) for k, v in counts.items()},
        "habit_count": len(snapshot.habits),
    }


def _occurrence_item(o: Reminder) -> dict[str, Any]:
    return {
        "id": o.id,
        "title": o.title,
        "category": o.category,
        "priority": o.priority,
        "dueDate": format_timestamp(o.due_date),
        "cost": o.cost,
    }


def _to_item(e: ReminderError) -> dict:
    code = getattr(e, "code", "E_UNKNOWN")
    source = (
        "load"
        if isinstance(e, StoreLoadError)
        else "lint"
        if code.startswith("L_")
        else "validate"
    )
    return {
        "code": e.code,
        "message": e.message,
        "file": e.file,
        "path": e.path,
        "severity": "error",
        "source": source,
    }


def _print_errors(errors: list[ReminderError]) -> None:
    errors_sorted = sorted(errors, key=lambda e: (e.file or "", e.path or "", e.code))
    for e in errors_sorted:
        typer.echo(str(e), err=True)


def main() -> None:
    app(prog_name="zenremind")


cli = typer.main.get_command(app)

if __name__ == "__main__":
    main()

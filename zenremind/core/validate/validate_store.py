from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Iterable, Optional, cast

from zenremind.core.errors import StoreValidationError
from zenremind.core.io.load_store import HABITS_STORAGE_KEY, STORAGE_KEY
from zenremind.core.model import (
    OCCURRENCE_SEPARATOR,
    Habit,
    Priority,
    Recurrence,
    RecurrenceKind,
    Reminder,
    StoreSnapshot,
)


ALLOWED_PRIORITIES: set[str] = {"LOW", "MEDIUM", "HIGH"}
ALLOWED_RECURRENCE_KINDS: set[str] = {"NONE", "DAILY", "WEEKLY", "MONTHLY", "YEARLY", "CUSTOM"}


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp into host-local naive wall time.

    Accepts strings (a trailing ``Z`` included) and the datetime/date objects a
    YAML loader produces for unquoted timestamps. Returns None when unparseable.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z") or text.endswith("z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if dt.tzinfo is not None:
        dt = dt.astimezone().replace(tzinfo=None)
    return dt


def format_timestamp(value: datetime) -> str:
    """UTC ISO-8601 with millisecond precision and a ``Z`` suffix."""
    utc = value.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def _is_list_of_str(v: Any) -> bool:
    return isinstance(v, list) and all(isinstance(x, str) for x in v)


def _is_weekday_list(v: Any) -> bool:
    return isinstance(v, list) and all(
        isinstance(x, int) and not isinstance(x, bool) and 0 <= x <= 6 for x in v
    )


def validate_store(
    store: dict[str, Any],
) -> tuple[Optional[StoreSnapshot], list[StoreValidationError]]:
    """Validate a loaded store document.

    Returns (snapshot, errors). Snapshot is None when errors exist.
    """

    file = cast(Optional[str], store.get("__file__"))
    errors: list[StoreValidationError] = []

    records = store.get(STORAGE_KEY)
    if not isinstance(records, list):
        errors.append(
            StoreValidationError(
                code="E_INVALID_TYPE",
                message=f"{STORAGE_KEY} must be an array",
                file=file,
                path=STORAGE_KEY,
            )
        )
        records = []

    habit_records = store.get(HABITS_STORAGE_KEY)
    if not isinstance(habit_records, list):
        errors.append(
            StoreValidationError(
                code="E_INVALID_TYPE",
                message=f"{HABITS_STORAGE_KEY} must be an array",
                file=file,
                path=HABITS_STORAGE_KEY,
            )
        )
        habit_records = []

    reminders: list[Reminder] = []
    seen_ids: set[str] = set()
    for i, raw in enumerate(records):
        reminder = _validate_reminder(raw, f"{STORAGE_KEY}[{i}]", file, seen_ids, errors)
        if reminder is not None:
            reminders.append(reminder)

    habits: list[Habit] = []
    seen_habit_ids: set[str] = set()
    for i, raw in enumerate(habit_records):
        habit = _validate_habit(raw, f"{HABITS_STORAGE_KEY}[{i}]", file, seen_habit_ids, errors)
        if habit is not None:
            habits.append(habit)

    if errors:
        return None, _sorted(errors)

    return StoreSnapshot(reminders=tuple(reminders), habits=tuple(habits)), []


def _validate_reminder(
    raw: Any,
    rec_path: str,
    file: Optional[str],
    seen_ids: set[str],
    errors: list[StoreValidationError],
) -> Optional[Reminder]:
    if not isinstance(raw, dict):
        errors.append(
            StoreValidationError(
                code="E_INVALID_TYPE",
                message="reminder must be an object",
                file=file,
                path=rec_path,
            )
        )
        return None

    # Required fields.
    rid = raw.get("id")
    if not isinstance(rid, str) or not rid.strip():
        errors.append(
            StoreValidationError(
                code="E_REQUIRED_FIELD",
                message="id is required and must be a non-empty string",
                file=file,
                path=f"{rec_path}.id",
            )
        )
        return None

    if OCCURRENCE_SEPARATOR in rid:
        errors.append(
            StoreValidationError(
                code="E_INVALID_ID",
                message=f"id must not contain '{OCCURRENCE_SEPARATOR}': {rid}",
                file=file,
                path=f"{rec_path}.id",
            )
        )
        return None

    if rid in seen_ids:
        errors.append(
            StoreValidationError(
                code="E_DUPLICATE_ID",
                message=f"duplicate reminder id: {rid}",
                file=file,
                path=f"{rec_path}.id",
            )
        )
        return None
    seen_ids.add(rid)

    title = raw.get("title")
    if not isinstance(title, str) or not title.strip():
        errors.append(
            StoreValidationError(
                code="E_REQUIRED_FIELD",
                message="title is required and must be a non-empty string",
                file=file,
                path=f"{rec_path}.title",
            )
        )
        return None

    due_date = parse_timestamp(raw.get("dueDate"))
    if due_date is None:
        errors.append(
            StoreValidationError(
                code="E_INVALID_DATE",
                message="dueDate is required and must be an ISO-8601 timestamp",
                file=file,
                path=f"{rec_path}.dueDate",
            )
        )
        return None

    ok = True

    description = raw.get("description", "")
    if description is None:
        description = ""
    if not isinstance(description, str):
        errors.append(
            StoreValidationError(
                code="E_INVALID_TYPE",
                message="description must be a string",
                file=file,
                path=f"{rec_path}.description",
            )
        )
        ok = False

    category = raw.get("category", "")
    if category is None:
        category = ""
    if not isinstance(category, str):
        errors.append(
            StoreValidationError(
                code="E_INVALID_TYPE",
                message="category must be a string",
                file=file,
                path=f"{rec_path}.category",
            )
        )
        ok = False

    priority = raw.get("priority", "MEDIUM")
    if not isinstance(priority, str) or priority not in ALLOWED_PRIORITIES:
        errors.append(
            StoreValidationError(
                code="E_INVALID_ENUM",
                message=f"priority must be one of {sorted(ALLOWED_PRIORITIES)}",
                file=file,
                path=f"{rec_path}.priority",
            )
        )
        ok = False

    completed = raw.get("completed", False)
    if not isinstance(completed, bool):
        errors.append(
            StoreValidationError(
                code="E_INVALID_TYPE",
                message="completed must be a boolean",
                file=file,
                path=f"{rec_path}.completed",
            )
        )
        ok = False

    completed_instances = raw.get("completedInstances")
    if completed_instances is None:
        completed_instances = []
    if not _is_list_of_str(completed_instances):
        errors.append(
            StoreValidationError(
                code="E_INVALID_TYPE",
                message="completedInstances must be an array of strings",
                file=file,
                path=f"{rec_path}.completedInstances",
            )
        )
        ok = False

    created_at: Optional[datetime] = None
    if raw.get("createdAt") is not None:
        created_at = parse_timestamp(raw.get("createdAt"))
        if created_at is None:
            errors.append(
                StoreValidationError(
                    code="E_INVALID_DATE",
                    message="createdAt must be an ISO-8601 timestamp",
                    file=file,
                    path=f"{rec_path}.createdAt",
                )
            )
            ok = False

    cost = raw.get("cost")
    if cost is not None and (isinstance(cost, bool) or not isinstance(cost, (int, float))):
        errors.append(
            StoreValidationError(
                code="E_INVALID_TYPE",
                message="cost must be a number",
                file=file,
                path=f"{rec_path}.cost",
            )
        )
        ok = False

    recurrence: Optional[Recurrence] = None
    if raw.get("recurrence") is not None:
        recurrence = _validate_recurrence(raw["recurrence"], f"{rec_path}.recurrence", file, errors)
        if recurrence is None:
            ok = False

    if not ok:
        return None

    # De-duplicate while keeping the order instances were completed in.
    instances = tuple(dict.fromkeys(cast(list[str], completed_instances)))

    return Reminder(
        id=rid,
        title=title,
        due_date=due_date,
        description=cast(str, description),
        category=cast(str, category),
        priority=cast(Priority, priority),
        completed=completed,
        completed_instances=instances,
        created_at=created_at,
        cost=float(cost) if cost is not None else None,
        recurrence=recurrence,
    )


def _validate_recurrence(
    raw: Any, rec_path: str, file: Optional[str], errors: list[StoreValidationError]
) -> Optional[Recurrence]:
    if not isinstance(raw, dict):
        errors.append(
            StoreValidationError(
                code="E_INVALID_TYPE",
                message="recurrence must be an object",
                file=file,
                path=rec_path,
            )
        )
        return None

    kind = raw.get("type")
    if not isinstance(kind, str) or kind not in ALLOWED_RECURRENCE_KINDS:
        errors.append(
            StoreValidationError(
                code="E_INVALID_ENUM",
                message=f"type must be one of {sorted(ALLOWED_RECURRENCE_KINDS)}",
                file=file,
                path=f"{rec_path}.type",
            )
        )
        return None

    days = raw.get("daysOfWeek")
    if days is not None and not _is_weekday_list(days):
        errors.append(
            StoreValidationError(
                code="E_INVALID_TYPE",
                message="daysOfWeek must be an array of integers 0 (Sunday) .. 6 (Saturday)",
                file=file,
                path=f"{rec_path}.daysOfWeek",
            )
        )
        return None

    end_date: Optional[datetime] = None
    if raw.get("endDate") is not None:
        end_date = parse_timestamp(raw.get("endDate"))
        if end_date is None:
            errors.append(
                StoreValidationError(
                    code="E_INVALID_DATE",
                    message="endDate must be an ISO-8601 timestamp",
                    file=file,
                    path=f"{rec_path}.endDate",
                )
            )
            return None

    return Recurrence(
        kind=cast(RecurrenceKind, kind),
        days_of_week=tuple(days) if days is not None else None,
        end_date=end_date,
    )


def _validate_habit(
    raw: Any,
    rec_path: str,
    file: Optional[str],
    seen_ids: set[str],
    errors: list[StoreValidationError],
) -> Optional[Habit]:
    if not isinstance(raw, dict):
        errors.append(
            StoreValidationError(
                code="E_INVALID_TYPE",
                message="habit must be an object",
                file=file,
                path=rec_path,
            )
        )
        return None

    hid = raw.get("id")
    if not isinstance(hid, str) or not hid.strip():
        errors.append(
            StoreValidationError(
                code="E_REQUIRED_FIELD",
                message="id is required and must be a non-empty string",
                file=file,
                path=f"{rec_path}.id",
            )
        )
        return None

    if hid in seen_ids:
        errors.append(
            StoreValidationError(
                code="E_DUPLICATE_ID",
                message=f"duplicate habit id: {hid}",
                file=file,
                path=f"{rec_path}.id",
            )
        )
        return None
    seen_ids.add(hid)

    title = raw.get("title")
    if not isinstance(title, str) or not title.strip():
        errors.append(
            StoreValidationError(
                code="E_REQUIRED_FIELD",
                message="title is required and must be a non-empty string",
                file=file,
                path=f"{rec_path}.title",
            )
        )
        return None

    dates = raw.get("completedDates")
    if dates is None:
        dates = []
    # YAML turns unquoted YYYY-MM-DD into date objects.
    if isinstance(dates, list):
        dates = [d.isoformat() if isinstance(d, date) else d for d in dates]
    if not _is_list_of_str(dates):
        errors.append(
            StoreValidationError(
                code="E_INVALID_TYPE",
                message="completedDates must be an array of YYYY-MM-DD strings",
                file=file,
                path=f"{rec_path}.completedDates",
            )
        )
        return None

    created_at: Optional[datetime] = None
    if raw.get("createdAt") is not None:
        created_at = parse_timestamp(raw.get("createdAt"))
        if created_at is None:
            errors.append(
                StoreValidationError(
                    code="E_INVALID_DATE",
                    message="createdAt must be an ISO-8601 timestamp",
                    file=file,
                    path=f"{rec_path}.createdAt",
                )
            )
            return None

    return Habit(
        id=hid,
        title=title,
        completed_dates=tuple(dict.fromkeys(cast(list[str], dates))),
        created_at=created_at,
    )


def reminder_to_record(reminder: Reminder) -> dict[str, Any]:
    record: dict[str, Any] = {
        "id": reminder.id,
        "title": reminder.title,
        "description": reminder.description,
        "dueDate": format_timestamp(reminder.due_date),
        "priority": reminder.priority,
        "category": reminder.category,
        "completed": reminder.completed,
        "completedInstances": list(reminder.completed_instances),
    }
    if reminder.created_at is not None:
        record["createdAt"] = format_timestamp(reminder.created_at)
    if reminder.cost is not None:
        record["cost"] = reminder.cost
    if reminder.recurrence is not None:
        rec: dict[str, Any] = {"type": reminder.recurrence.kind}
        if reminder.recurrence.days_of_week is not None:
            rec["daysOfWeek"] = list(reminder.recurrence.days_of_week)
        if reminder.recurrence.end_date is not None:
            rec["endDate"] = format_timestamp(reminder.recurrence.end_date)
        record["recurrence"] = rec
    return record


def habit_to_record(habit: Habit) -> dict[str, Any]:
    record: dict[str, Any] = {
        "id": habit.id,
        "title": habit.title,
        "completedDates": list(habit.completed_dates),
    }
    if habit.created_at is not None:
        record["createdAt"] = format_timestamp(habit.created_at)
    return record


def snapshot_to_store(snapshot: StoreSnapshot) -> dict[str, Any]:
    return {
        STORAGE_KEY: [reminder_to_record(r) for r in snapshot.reminders],
        HABITS_STORAGE_KEY: [habit_to_record(h) for h in snapshot.habits],
    }


def _sorted(errors: Iterable[StoreValidationError]) -> list[StoreValidationError]:
    return sorted(
        list(errors),
        key=lambda e: (
            e.file or "",
            e.path or "",
            e.code,
        ),
    )

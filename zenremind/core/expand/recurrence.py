from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timedelta, timezone

from zenremind.core.model import OccurrenceId, Recurrence, Reminder


logger = logging.getLogger(__name__)

# Ceiling on cursor steps per expansion call, counted from the anchor.
MAX_STEPS = 400

ALWAYS_QUALIFY: set[str] = {"DAILY", "WEEKLY", "MONTHLY", "YEARLY"}

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_DAY = timedelta(days=1)


def epoch_millis(when: datetime) -> int:
    """Exact milliseconds since the epoch. Naive values are host-local wall time."""
    aware = when if when.tzinfo is not None else when.astimezone()
    return (aware - _EPOCH) // timedelta(milliseconds=1)


def occurrence_id(template_id: str, when: datetime) -> OccurrenceId:
    return OccurrenceId(template_id=template_id, epoch_millis=epoch_millis(when))


def sunday_weekday(when: datetime) -> int:
    """Weekday index with 0=Sunday..6=Saturday."""
    return (when.weekday() + 1) % 7


def add_months(when: datetime, months: int) -> datetime:
    """Calendar-field month arithmetic.

    The day-of-month is kept; when the target month is too short the surplus
    days roll into the following month (Jan 31 + 1 month -> Mar 2 or Mar 3).
    Time of day and tzinfo are preserved.
    """
    total = when.month - 1 + months
    year, month = when.year + total // 12, total % 12 + 1
    return when.replace(year=year, month=month, day=1) + timedelta(days=when.day - 1)


def next_cursor(
    recurrence: Recurrence, cursor: datetime, anchor: datetime, effective_end: datetime
) -> datetime:
    """Return the next candidate position after ``cursor``. Never mutates its inputs."""
    kind = recurrence.kind
    if kind in ("DAILY", "CUSTOM"):
        return cursor + _ONE_DAY
    if kind == "WEEKLY":
        nxt = cursor + _ONE_DAY
        target = sunday_weekday(anchor)
        while sunday_weekday(nxt) != target and nxt <= effective_end:
            nxt += _ONE_DAY
        return nxt
    if kind == "MONTHLY":
        return add_months(cursor, 1)
    if kind == "YEARLY":
        return add_months(cursor, 12)
    return effective_end + _ONE_DAY


def _qualifies(recurrence: Recurrence, cursor: datetime) -> bool:
    if recurrence.kind in ALWAYS_QUALIFY:
        return True
    if recurrence.kind == "CUSTOM":
        if recurrence.days_of_week is None:
            return True
        return sunday_weekday(cursor) in recurrence.days_of_week
    return False


def expand_occurrences(
    reminder: Reminder, range_start: datetime, range_end: datetime
) -> list[Reminder]:
    """Materialize the occurrences of ``reminder`` inside ``[range_start, range_end]``.

    Non-recurring templates come back as ``[reminder]`` (the same object) when
    their due date is in range. Recurring templates are walked from the anchor
    one cadence step at a time; every produced occurrence is a copy of the
    template with ``id`` set to ``<template id>::<epoch millis>`` and
    ``due_date`` set to the occurrence time. Output is in ascending order.

    An inverted range yields ``[]``. Unknown cadences yield ``[]``.
    """
    if not reminder.is_recurring:
        if range_start <= reminder.due_date <= range_end:
            return [reminder]
        return []

    if range_start > range_end:
        return []

    recurrence = reminder.recurrence
    assert recurrence is not None

    effective_end = range_end
    if recurrence.end_date is not None and recurrence.end_date < range_end:
        effective_end = recurrence.end_date

    if recurrence.kind not in ALWAYS_QUALIFY and recurrence.kind != "CUSTOM":
        logger.debug("unknown cadence %r on reminder %s", recurrence.kind, reminder.id)

    anchor = reminder.due_date
    cursor = anchor
    steps = 0
    out: list[Reminder] = []

    while cursor <= effective_end and steps < MAX_STEPS:
        if cursor >= range_start and _qualifies(recurrence, cursor):
            out.append(
                replace(
                    reminder,
                    id=str(occurrence_id(reminder.id, cursor)),
                    due_date=cursor,
                )
            )
        cursor = next_cursor(recurrence, cursor, anchor, effective_end)
        steps += 1

    if steps >= MAX_STEPS and cursor <= effective_end:
        logger.debug(
            "safety cap of %d steps hit expanding reminder %s (stopped at %s)",
            MAX_STEPS,
            reminder.id,
            cursor.isoformat(),
        )

    return out

"""Task aggregation over a reminder collection.

Sits on the caller side of the expander: applies category filters to
templates *before* expansion, drops completed occurrences after it, and merges
every template's occurrences into one time-sorted sequence per view.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Literal, Optional

from zenremind.core.agenda.category_config import DEFAULT_CATEGORY_GROUPS, in_group
from zenremind.core.agenda.dates import end_of_day, is_this_month, is_this_week, is_today
from zenremind.core.expand.recurrence import add_months, expand_occurrences
from zenremind.core.model import Habit, Reminder


logger = logging.getLogger(__name__)

ViewType = Literal[
    "DASHBOARD", "TODAY", "WEEK", "MONTH", "TODO", "SHOPPING", "OUTSTANDING", "HABITS", "WORKS"
]

ALL_VIEWS: list[str] = [
    "DASHBOARD",
    "TODAY",
    "WEEK",
    "MONTH",
    "TODO",
    "SHOPPING",
    "OUTSTANDING",
    "HABITS",
    "WORKS",
]

WINDOWED_VIEWS: set[str] = {"TODAY", "WEEK", "MONTH", "TODO"}


@dataclass(frozen=True)
class DashboardStats:
    today: int
    week: int
    month: int
    shopping: int
    works: int
    outstanding: int
    habits: int


def visible_occurrences(
    reminder: Reminder, range_start: datetime, range_end: datetime
) -> list[Reminder]:
    """Expansion minus the occurrences the user already dismissed."""
    done = set(reminder.completed_instances)
    return [o for o in expand_occurrences(reminder, range_start, range_end) if o.id not in done]


def merge_sorted(groups: Iterable[list[Reminder]]) -> list[Reminder]:
    merged: list[Reminder] = []
    for g in groups:
        merged.extend(g)
    # sort is stable: same-instant occurrences keep collection order
    return sorted(merged, key=lambda r: r.due_date)


def view_window(view: str, now: datetime) -> tuple[datetime, datetime]:
    """Return (range_start, range_end) for a windowed view.

    Windows open at local midnight of ``now``'s day, so items due earlier
    today stay listed (and show as overdue) until completed.
    """
    start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if view == "TODAY":
        return start, end_of_day(start)
    if view == "WEEK":
        return start, start + timedelta(days=7)
    if view == "MONTH":
        return start, add_months(start, 1)
    # TODO has no horizon of its own; the window collapses to midnight.
    return start, start


def display_reminders(
    reminders: Iterable[Reminder],
    view: str,
    now: datetime,
    groups: Optional[dict[str, list[str]]] = None,
) -> list[Reminder]:
    """Reminders (or occurrences) to list for ``view``."""
    groups = groups if groups is not None else DEFAULT_CATEGORY_GROUPS

    if view in ("DASHBOARD", "HABITS"):
        return []

    base = [r for r in reminders if not r.completed]

    if view == "OUTSTANDING":
        return [r for r in base if r.recurrence is not None and r.recurrence.kind == "YEARLY"]
    if view == "SHOPPING":
        return [r for r in base if in_group(r.category, groups, "shopping")]
    if view == "WORKS":
        return [r for r in base if in_group(r.category, groups, "works")]

    if view not in WINDOWED_VIEWS:
        raise ValueError(f"unknown view: {view}")

    range_start, range_end = view_window(view, now)
    candidates = [
        r
        for r in base
        if not in_group(r.category, groups, "shopping") and not in_group(r.category, groups, "works")
    ]
    logger.debug(
        "expanding %d templates for %s window %s .. %s",
        len(candidates),
        view,
        range_start.isoformat(),
        range_end.isoformat(),
    )
    return merge_sorted(visible_occurrences(r, range_start, range_end) for r in candidates)


def dashboard_stats(
    reminders: Iterable[Reminder],
    habits: Iterable[Habit],
    now: datetime,
    groups: Optional[dict[str, list[str]]] = None,
) -> DashboardStats:
    groups = groups if groups is not None else DEFAULT_CATEGORY_GROUPS
    open_items = [r for r in reminders if not r.completed]
    return DashboardStats(
        today=sum(1 for r in open_items if is_today(r.due_date, now)),
        week=sum(1 for r in open_items if is_this_week(r.due_date, now)),
        month=sum(1 for r in open_items if is_this_month(r.due_date, now)),
        shopping=sum(1 for r in open_items if in_group(r.category, groups, "shopping")),
        works=sum(1 for r in open_items if in_group(r.category, groups, "works")),
        outstanding=sum(
            1
            for r in open_items
            if r.recurrence is not None and r.recurrence.kind == "YEARLY"
        ),
        habits=len(list(habits)),
    )


def upcoming_birthdays(
    reminders: Iterable[Reminder],
    now: datetime,
    groups: Optional[dict[str, list[str]]] = None,
    *,
    months: int = 3,
    limit: int = 3,
) -> list[Reminder]:
    groups = groups if groups is not None else DEFAULT_CATEGORY_GROUPS
    range_end = add_months(now, months)
    found = merge_sorted(
        expand_occurrences(r, now, range_end)
        for r in reminders
        if not r.completed and in_group(r.category, groups, "birthdays")
    )
    return found[:limit]


def important_events(
    reminders: Iterable[Reminder],
    groups: Optional[dict[str, list[str]]] = None,
    *,
    limit: int = 3,
) -> list[Reminder]:
    groups = groups if groups is not None else DEFAULT_CATEGORY_GROUPS
    picked = [
        r
        for r in reminders
        if not r.completed and (r.priority == "HIGH" or in_group(r.category, groups, "events"))
    ]
    return sorted(picked, key=lambda r: r.due_date)[:limit]


def total_cost(reminders: Iterable[Reminder]) -> float:
    return sum((r.cost or 0.0) for r in reminders)

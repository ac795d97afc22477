from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from zenremind.core.model import Habit


@dataclass(frozen=True)
class TimelineDay:
    full: str  # YYYY-MM-DD
    weekday: str  # narrow weekday letter, e.g. "M"
    date: int
    is_today: bool


def add_habit(
    habits: Iterable[Habit], title: str, *, habit_id: str, created_at: Optional[datetime] = None
) -> list[Habit]:
    title = title.strip()
    if not title:
        raise ValueError("habit title must be a non-empty string")
    return list(habits) + [Habit(id=habit_id, title=title, created_at=created_at)]


def delete_habit(habits: Iterable[Habit], habit_id: str) -> list[Habit]:
    return [h for h in habits if h.id != habit_id]


def toggle_habit_date(habits: Iterable[Habit], habit_id: str, day: str) -> list[Habit]:
    """Mark ``day`` done for the habit, or undo it when already marked."""
    date.fromisoformat(day)  # raises ValueError on a malformed day

    out: list[Habit] = []
    for h in habits:
        if h.id == habit_id:
            if day in h.completed_dates:
                h = replace(h, completed_dates=tuple(d for d in h.completed_dates if d != day))
            else:
                h = replace(h, completed_dates=h.completed_dates + (day,))
        out.append(h)
    return out


def habit_timeline(today: date, *, days: int = 28, lead: int = 3) -> list[TimelineDay]:
    """Consecutive days ending ``lead`` days after ``today``."""
    first = today - timedelta(days=days - lead - 1)
    out: list[TimelineDay] = []
    for i in range(days):
        d = first + timedelta(days=i)
        out.append(
            TimelineDay(
                full=d.isoformat(),
                weekday=f"{d:%a}"[0],
                date=d.day,
                is_today=d == today,
            )
        )
    return out

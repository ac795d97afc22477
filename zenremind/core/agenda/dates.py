from __future__ import annotations

from datetime import datetime, timedelta


def is_today(when: datetime, now: datetime) -> bool:
    return when.date() == now.date()


def is_this_week(when: datetime, now: datetime) -> bool:
    """Within the next seven days, counting from ``now``."""
    return now <= when <= now + timedelta(days=7)


def is_this_month(when: datetime, now: datetime) -> bool:
    return when.year == now.year and when.month == now.month


def is_overdue(when: datetime, completed: bool, now: datetime) -> bool:
    if completed:
        return False
    return when < now


def end_of_day(when: datetime) -> datetime:
    return when.replace(hour=23, minute=59, second=59, microsecond=999000)


def format_nice_date(when: datetime) -> str:
    # e.g. "Mon, Jan 1, 09:00 AM"
    return f"{when:%a}, {when:%b} {when.day}, {when:%I:%M %p}"

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal, Optional


RecurrenceKind = Literal["NONE", "DAILY", "WEEKLY", "MONTHLY", "YEARLY", "CUSTOM"]
Priority = Literal["LOW", "MEDIUM", "HIGH"]

OCCURRENCE_SEPARATOR = "::"


@dataclass(frozen=True)
class Recurrence:
    kind: RecurrenceKind
    days_of_week: Optional[tuple[int, ...]] = None  # 0=Sunday..6=Saturday, CUSTOM only
    end_date: Optional[datetime] = None


@dataclass(frozen=True)
class Reminder:
    id: str
    title: str
    due_date: datetime

    description: str = ""
    category: str = ""
    priority: Priority = "MEDIUM"
    completed: bool = False
    completed_instances: tuple[str, ...] = ()
    created_at: Optional[datetime] = None
    cost: Optional[float] = None
    recurrence: Optional[Recurrence] = None

    @property
    def is_recurring(self) -> bool:
        return self.recurrence is not None and self.recurrence.kind != "NONE"


@dataclass(frozen=True)
class Habit:
    id: str
    title: str
    completed_dates: tuple[str, ...] = ()  # YYYY-MM-DD
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class OccurrenceId:
    """Compound identity of one materialized occurrence.

    Flattens to ``<template_id>::<epoch_millis>``; that string is what ends up in
    ``Reminder.completed_instances`` and must stay byte-compatible.
    """

    template_id: str
    epoch_millis: int

    def __str__(self) -> str:
        return f"{self.template_id}{OCCURRENCE_SEPARATOR}{self.epoch_millis}"

    @classmethod
    def parse(cls, value: str) -> Optional["OccurrenceId"]:
        """Return the compound id, or None when ``value`` is a plain template id."""
        if OCCURRENCE_SEPARATOR not in value:
            return None
        template_id, _, millis = value.partition(OCCURRENCE_SEPARATOR)
        try:
            return cls(template_id=template_id, epoch_millis=int(millis))
        except ValueError:
            return None


def template_id_of(value: str) -> str:
    """Map an occurrence id (or a plain template id) to its template id."""
    return value.split(OCCURRENCE_SEPARATOR, 1)[0]


@dataclass(frozen=True)
class StoreSnapshot:
    reminders: tuple[Reminder, ...]
    habits: tuple[Habit, ...]

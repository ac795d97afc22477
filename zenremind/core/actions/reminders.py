from __future__ import annotations

import logging
import secrets
from dataclasses import replace
from typing import Iterable

from zenremind.core.model import OCCURRENCE_SEPARATOR, Reminder, template_id_of


logger = logging.getLogger(__name__)

_ID_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"


def new_reminder_id(length: int = 9) -> str:
    """Random base-36 id; never contains the occurrence separator."""
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(length))


def toggle_complete(reminders: Iterable[Reminder], instance_id: str) -> list[Reminder]:
    """Complete a reminder or a single occurrence of one.

    A plain template id completes a non-recurring reminder, which removes it.
    An occurrence id (``<template>::<millis>``) is recorded in the owning
    template's ``completed_instances`` so that one occurrence stops showing up.
    Returns a new list; unknown ids leave the collection unchanged.
    """
    items = list(reminders)

    if OCCURRENCE_SEPARATOR not in instance_id:
        kept = [r for r in items if r.id != instance_id]
        if len(kept) == len(items):
            logger.info("complete: no reminder with id %s", instance_id)
        return kept

    base_id = template_id_of(instance_id)
    out: list[Reminder] = []
    for r in items:
        if r.id == base_id and instance_id not in r.completed_instances:
            r = replace(r, completed_instances=r.completed_instances + (instance_id,))
        out.append(r)
    return out


def delete_reminder(reminders: Iterable[Reminder], reminder_id: str) -> list[Reminder]:
    """Remove a template. Occurrence ids resolve to their template."""
    base_id = template_id_of(reminder_id)
    return [r for r in reminders if r.id != base_id]


def save_reminder(reminders: Iterable[Reminder], reminder: Reminder) -> list[Reminder]:
    """Replace the reminder with the same id, or append it when new."""
    items = list(reminders)
    for i, r in enumerate(items):
        if r.id == reminder.id:
            items[i] = reminder
            return items
    items.append(reminder)
    return items

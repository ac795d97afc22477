from __future__ import annotations

from collections import Counter
from typing import Any, Optional

from zenremind.core.errors import StoreValidationError
from zenremind.core.io.load_store import STORAGE_KEY
from zenremind.core.model import OCCURRENCE_SEPARATOR, template_id_of
from zenremind.core.validate.validate_store import parse_timestamp


# Store lint rules:
# - L_DUPLICATE_ID: duplicate reminder ids
# - L_END_BEFORE_ANCHOR: recurrence.endDate earlier than dueDate (expands to nothing)
# - L_CUSTOM_WITHOUT_DAYS: CUSTOM cadence with missing/empty daysOfWeek
# - L_DAYS_IGNORED: daysOfWeek on a non-CUSTOM cadence
# - L_FOREIGN_INSTANCE: completedInstances entry that belongs to another template
# - L_COMPLETED_RECURRING: completed flag on a recurring template (has no effect)


def lint_store(store: dict[str, Any]) -> list[StoreValidationError]:
    """Lint a store document.

    Lint runs *in addition to* validation. It is allowed to operate on
    partially-invalid inputs (best effort) and flags records that validate but
    will not behave the way their author probably meant.
    """

    file = _cast_optional_str(store.get("__file__"))

    records = store.get(STORAGE_KEY)
    if not isinstance(records, list):
        # Let validator handle shape.
        return []

    errors: list[StoreValidationError] = []

    ids: list[str] = []
    for raw in records:
        if isinstance(raw, dict) and isinstance(raw.get("id"), str):
            ids.append(raw["id"])

    # Rule: duplicate IDs (first occurrence is fine, later ones are flagged)
    counts = Counter(ids)
    dupes = {k: v for k, v in counts.items() if v > 1}
    seen: set[str] = set()

    for i, raw in enumerate(records):
        if not isinstance(raw, dict):
            continue
        rec_path = f"{STORAGE_KEY}[{i}]"
        rid = raw.get("id")
        if not isinstance(rid, str):
            continue

        if rid in dupes:
            if rid in seen:
                errors.append(
                    StoreValidationError(
                        code="L_DUPLICATE_ID",
                        message=f"duplicate reminder id: {rid} (count={dupes[rid]})",
                        file=file,
                        path=f"{rec_path}.id",
                    )
                )
            seen.add(rid)

        recurrence = raw.get("recurrence")
        kind = recurrence.get("type") if isinstance(recurrence, dict) else None
        recurring = isinstance(kind, str) and kind != "NONE"

        if recurring:
            assert isinstance(recurrence, dict)
            due = parse_timestamp(raw.get("dueDate"))
            end = parse_timestamp(recurrence.get("endDate"))
            if due is not None and end is not None and end < due:
                errors.append(
                    StoreValidationError(
                        code="L_END_BEFORE_ANCHOR",
                        message="recurrence.endDate is earlier than dueDate; no occurrences will be produced",
                        file=file,
                        path=f"{rec_path}.recurrence.endDate",
                    )
                )

            days = recurrence.get("daysOfWeek")
            if kind == "CUSTOM" and (not isinstance(days, list) or len(days) == 0):
                errors.append(
                    StoreValidationError(
                        code="L_CUSTOM_WITHOUT_DAYS",
                        message="CUSTOM recurrence should list at least one day in daysOfWeek",
                        file=file,
                        path=f"{rec_path}.recurrence.daysOfWeek",
                    )
                )
            elif kind != "CUSTOM" and isinstance(days, list) and days:
                errors.append(
                    StoreValidationError(
                        code="L_DAYS_IGNORED",
                        message=f"daysOfWeek is ignored for {kind} recurrence",
                        file=file,
                        path=f"{rec_path}.recurrence.daysOfWeek",
                    )
                )

            if raw.get("completed") is True:
                errors.append(
                    StoreValidationError(
                        code="L_COMPLETED_RECURRING",
                        message="completed has no effect on a recurring reminder; use completedInstances",
                        file=file,
                        path=f"{rec_path}.completed",
                    )
                )

        instances = raw.get("completedInstances")
        if isinstance(instances, list):
            for ii, inst in enumerate(instances):
                if not isinstance(inst, str):
                    continue
                if OCCURRENCE_SEPARATOR not in inst or template_id_of(inst) != rid:
                    errors.append(
                        StoreValidationError(
                            code="L_FOREIGN_INSTANCE",
                            message=f"completed instance does not belong to {rid}: {inst}",
                            file=file,
                            path=f"{rec_path}.completedInstances[{ii}]",
                        )
                    )

    return _sorted(errors)


def _sorted(errors: list[StoreValidationError]) -> list[StoreValidationError]:
    return sorted(errors, key=lambda e: (e.file or "", e.path or "", e.code))


def _cast_optional_str(v: Any) -> Optional[str]:
    return v if isinstance(v, str) else None

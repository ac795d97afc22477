from pathlib import Path

from zenremind.core.io.load_store import STORAGE_KEY, load_store
from zenremind.core.lint.lint_store import lint_store
from zenremind.core.validate.validate_store import validate_store

EXAMPLES = Path(__file__).resolve().parent.parent / "examples"


def test_lint_clean_store():
    assert lint_store(load_store(str(EXAMPLES / "basic-store.yaml"))) == []


def test_lint_issues_validate_but_are_flagged():
    store = load_store(str(EXAMPLES / "lint-issues.yaml"))
    _, validation_errors = validate_store(store)
    assert validation_errors == []

    by_code = {e.code: e.path for e in lint_store(store)}
    assert by_code == {
        "L_CUSTOM_WITHOUT_DAYS": f"{STORAGE_KEY}[0].recurrence.daysOfWeek",
        "L_END_BEFORE_ANCHOR": f"{STORAGE_KEY}[1].recurrence.endDate",
        "L_FOREIGN_INSTANCE": f"{STORAGE_KEY}[2].completedInstances[0]",
        "L_DAYS_IGNORED": f"{STORAGE_KEY}[3].recurrence.daysOfWeek",
        "L_COMPLETED_RECURRING": f"{STORAGE_KEY}[4].completed",
    }


def test_lint_duplicate_ids_flags_later_records():
    store = {
        STORAGE_KEY: [
            {"id": "a", "title": "A", "dueDate": "2024-01-01T09:00:00"},
            {"id": "a", "title": "B", "dueDate": "2024-01-02T09:00:00"},
        ]
    }
    errors = lint_store(store)
    assert [(e.code, e.path) for e in errors] == [("L_DUPLICATE_ID", f"{STORAGE_KEY}[1].id")]


def test_lint_ignores_bad_shape():
    assert lint_store({STORAGE_KEY: None}) == []

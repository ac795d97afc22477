import json
from datetime import datetime
from pathlib import Path

from typer.testing import CliRunner

from zenremind.cli import app
from zenremind.core.expand.recurrence import epoch_millis


runner = CliRunner()
EXAMPLES = Path(__file__).resolve().parent.parent / "examples"
STORE = str(EXAMPLES / "basic-store.yaml")


def test_cli_occurrences_json():
    r = runner.invoke(
        app,
        [
            "occurrences",
            "standup",
            "--start",
            "2024-01-01T00:00:00",
            "--end",
            "2024-01-03T23:59:59",
            "--store",
            STORE,
            "--format",
            "json",
        ],
    )
    assert r.exit_code == 0, r.stdout + r.stderr
    items = json.loads(r.stdout)
    assert [i["id"] for i in items] == [
        f"standup::{epoch_millis(datetime(2024, 1, d, 9, 0))}" for d in (1, 2, 3)
    ]


def test_cli_occurrences_text_is_deterministic():
    args = [
        "occurrences",
        "gym",
        "--start",
        "2024-01-01T00:00:00",
        "--end",
        "2024-01-14T23:59:59",
        "--store",
        STORE,
    ]
    r1 = runner.invoke(app, args)
    r2 = runner.invoke(app, args)
    assert r1.exit_code == 0, r1.stdout + r1.stderr
    assert r1.stdout == r2.stdout
    assert "OK: 6 occurrences" in r1.stdout


def test_cli_occurrences_unknown_reminder():
    r = runner.invoke(
        app,
        ["occurrences", "ghost", "--start", "2024-01-01", "--end", "2024-01-02", "--store", STORE],
    )
    assert r.exit_code == 2
    assert "E_UNKNOWN_REMINDER" in (r.stdout + r.stderr)


def test_cli_occurrences_bad_date():
    r = runner.invoke(
        app,
        ["occurrences", "standup", "--start", "yesterday", "--end", "2024-01-02", "--store", STORE],
    )
    assert r.exit_code == 2
    assert "E_INVALID_DATE" in (r.stdout + r.stderr)


def test_cli_agenda_week_json():
    r = runner.invoke(
        app, ["agenda", STORE, "--view", "week", "--now", "2024-01-01T08:00:00", "--format", "json"]
    )
    assert r.exit_code == 0, r.stdout + r.stderr
    payload = json.loads(r.stdout)
    assert payload["view"] == "WEEK"
    assert len(payload["items"]) == 12


def test_cli_agenda_shopping_total():
    r = runner.invoke(app, ["agenda", STORE, "--view", "shopping", "--now", "2024-01-01T08:00:00"])
    assert r.exit_code == 0, r.stdout + r.stderr
    assert "Total: $1203.50" in r.stdout
    assert "OK: 2 items" in r.stdout


def test_cli_agenda_flags_items_already_due_today():
    r = runner.invoke(app, ["agenda", STORE, "--view", "today", "--now", "2024-01-01T14:00:00"])
    assert r.exit_code == 0, r.stdout + r.stderr
    lines = r.stdout.splitlines()
    assert any(line.startswith("! ") and "Team standup" in line for line in lines)
    assert any(line.startswith("- ") and "Gym" in line for line in lines)
    assert "OK: 2 items" in r.stdout


def test_cli_agenda_unknown_view():
    r = runner.invoke(app, ["agenda", STORE, "--view", "yesterday"])
    assert r.exit_code == 2
    assert "E_AGENDA_UNKNOWN_VIEW" in (r.stdout + r.stderr)


def test_cli_agenda_category_file():
    r = runner.invoke(
        app,
        [
            "agenda",
            STORE,
            "--view",
            "shopping",
            "--now",
            "2024-01-01T08:00:00",
            "--category-file",
            str(EXAMPLES / "categories.yaml"),
        ],
    )
    assert r.exit_code == 0, r.stdout + r.stderr
    assert "Milk" in r.stdout
    assert "New laptop" not in r.stdout


def test_cli_dashboard_json():
    r = runner.invoke(app, ["dashboard", STORE, "--now", "2024-01-01T08:00:00", "--format", "json"])
    assert r.exit_code == 0, r.stdout + r.stderr
    payload = json.loads(r.stdout)
    assert payload["stats"]["today"] == 2
    assert payload["stats"]["habits"] == 1
    assert [e["id"] for e in payload["important_events"]] == ["dentist", "concert"]
    assert payload["upcoming_birthdays"][0]["id"].startswith("mom-birthday::")


def test_cli_categories():
    r = runner.invoke(app, ["categories", "--category-file", str(EXAMPLES / "categories.yaml")])
    assert r.exit_code == 0, r.stdout + r.stderr
    assert "Category groups:" in r.stdout
    assert "- chores: cleaning, laundry" in r.stdout


def test_cli_categories_missing_file():
    r = runner.invoke(app, ["categories", "--category-file", "nope.yaml"])
    assert r.exit_code == 1
    assert "E_CATEGORY_FILE_NOT_FOUND" in (r.stdout + r.stderr)

from dataclasses import replace
from datetime import datetime, timedelta, timezone

from zenremind.core.expand.recurrence import epoch_millis, expand_occurrences, sunday_weekday
from zenremind.core.model import Recurrence, Reminder


def _reminder(kind: str = "NONE", **kw) -> Reminder:
    due = kw.pop("due_date", datetime(2024, 1, 1, 9, 0))
    recurrence = Recurrence(
        kind=kind,  # type: ignore[arg-type]
        days_of_week=kw.pop("days_of_week", None),
        end_date=kw.pop("end_date", None),
    )
    return Reminder(
        id=kw.pop("id", "r1"),
        title="Standup",
        due_date=due,
        category="Personal",
        cost=2.5,
        recurrence=recurrence if kind != "NONE" else kw.pop("recurrence", None),
        **kw,
    )


def test_non_recurring_in_range_returns_template_itself():
    r = _reminder()
    got = expand_occurrences(r, datetime(2024, 1, 1), datetime(2024, 1, 2))
    assert got == [r]
    assert got[0] is r


def test_non_recurring_out_of_range_is_empty():
    r = _reminder()
    assert expand_occurrences(r, datetime(2024, 1, 2), datetime(2024, 1, 3)) == []
    assert expand_occurrences(r, datetime(2023, 12, 1), datetime(2024, 1, 1, 8, 59)) == []


def test_non_recurring_range_bounds_are_inclusive():
    r = _reminder()
    assert expand_occurrences(r, r.due_date, r.due_date) == [r]


def test_recurrence_kind_none_is_non_recurring():
    r = _reminder(recurrence=Recurrence(kind="NONE"))
    assert expand_occurrences(r, datetime(2024, 1, 1), datetime(2024, 1, 31)) == [r]


def test_daily_produces_each_day_with_stable_ids():
    r = _reminder("DAILY")
    got = expand_occurrences(r, datetime(2024, 1, 1), datetime(2024, 1, 5, 23, 59))

    expected_dates = [datetime(2024, 1, d, 9, 0) for d in range(1, 6)]
    assert [o.due_date for o in got] == expected_dates
    assert [o.id for o in got] == [f"r1::{epoch_millis(d)}" for d in expected_dates]

    millis = [int(o.id.split("::")[1]) for o in got]
    assert millis == sorted(set(millis))


def test_daily_window_after_anchor_starts_mid_series():
    r = _reminder("DAILY")
    got = expand_occurrences(r, datetime(2024, 1, 10), datetime(2024, 1, 12, 23, 0))
    assert [o.due_date.day for o in got] == [10, 11, 12]
    assert all(o.due_date.time() == r.due_date.time() for o in got)


def test_occurrences_copy_every_other_field():
    r = _reminder("DAILY", priority="HIGH", description="notes")
    occ = expand_occurrences(r, datetime(2024, 1, 2), datetime(2024, 1, 2, 23))[0]
    assert occ.id != r.id
    assert replace(occ, id=r.id, due_date=r.due_date) == r


def test_occurrence_id_uses_epoch_millis_of_aware_time():
    due = datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)
    r = _reminder("DAILY", due_date=due)
    got = expand_occurrences(r, due, due + timedelta(hours=1))
    assert [o.id for o in got] == ["r1::1704099600000"]


def test_expansion_is_idempotent_and_leaves_template_alone():
    r = _reminder("CUSTOM", days_of_week=(0, 2, 4))
    before = replace(r)
    first = expand_occurrences(r, datetime(2024, 1, 1), datetime(2024, 2, 1))
    second = expand_occurrences(r, datetime(2024, 1, 1), datetime(2024, 2, 1))
    assert first == second
    assert r == before


def test_weekly_stays_on_anchor_weekday_across_months():
    # 2024-01-29 is a Monday.
    r = _reminder("WEEKLY", due_date=datetime(2024, 1, 29, 9, 0))
    got = expand_occurrences(r, datetime(2024, 1, 1), datetime(2024, 4, 30, 23, 59))
    assert len(got) == 14
    assert all(o.due_date.weekday() == 0 for o in got)
    assert all(o.due_date.time() == r.due_date.time() for o in got)
    assert got[-1].due_date == datetime(2024, 4, 29, 9, 0)


def test_custom_mon_wed_fri_over_two_weeks():
    r = _reminder("CUSTOM", days_of_week=(1, 3, 5))
    got = expand_occurrences(r, datetime(2024, 1, 1), datetime(2024, 1, 14, 23, 59))
    assert len(got) == 6
    assert [o.due_date.day for o in got] == [1, 3, 5, 8, 10, 12]
    assert {sunday_weekday(o.due_date) for o in got} == {1, 3, 5}


def test_custom_with_empty_days_matches_nothing():
    r = _reminder("CUSTOM", days_of_week=())
    assert expand_occurrences(r, datetime(2024, 1, 1), datetime(2024, 1, 14)) == []


def test_custom_without_days_matches_every_day():
    r = _reminder("CUSTOM")
    got = expand_occurrences(r, datetime(2024, 1, 1), datetime(2024, 1, 7, 23))
    assert len(got) == 7


def test_end_date_truncates_the_walk():
    r = _reminder("DAILY", end_date=datetime(2024, 1, 5, 12, 0))
    got = expand_occurrences(r, datetime(2024, 1, 1), datetime(2024, 1, 31))
    assert [o.due_date.day for o in got] == [1, 2, 3, 4, 5]
    assert all(o.due_date <= datetime(2024, 1, 5, 12, 0) for o in got)


def test_end_date_after_range_end_does_not_extend_it():
    r = _reminder("DAILY", end_date=datetime(2025, 1, 1))
    got = expand_occurrences(r, datetime(2024, 1, 1), datetime(2024, 1, 3, 23))
    assert len(got) == 3


def test_yearly_keeps_month_and_day():
    r = _reminder("YEARLY", due_date=datetime(2020, 7, 4, 12, 0))
    got = expand_occurrences(r, datetime(2022, 1, 1), datetime(2024, 12, 31))
    assert [o.due_date for o in got] == [
        datetime(2022, 7, 4, 12, 0),
        datetime(2023, 7, 4, 12, 0),
        datetime(2024, 7, 4, 12, 0),
    ]

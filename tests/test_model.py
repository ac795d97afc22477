from datetime import datetime

from zenremind.core.model import OccurrenceId, Recurrence, Reminder, template_id_of


def test_occurrence_id_flattens_with_double_colon():
    assert str(OccurrenceId("abc123", 1704099600000)) == "abc123::1704099600000"


def test_occurrence_id_parse_round_trips():
    occ = OccurrenceId.parse("abc123::1704099600000")
    assert occ == OccurrenceId(template_id="abc123", epoch_millis=1704099600000)


def test_occurrence_id_parse_plain_or_garbage():
    assert OccurrenceId.parse("abc123") is None
    assert OccurrenceId.parse("abc123::soon") is None


def test_template_id_of():
    assert template_id_of("abc::123") == "abc"
    assert template_id_of("abc") == "abc"


def test_is_recurring():
    due = datetime(2024, 1, 1)
    assert not Reminder(id="a", title="A", due_date=due).is_recurring
    assert not Reminder(id="a", title="A", due_date=due, recurrence=Recurrence("NONE")).is_recurring
    assert Reminder(id="a", title="A", due_date=due, recurrence=Recurrence("DAILY")).is_recurring

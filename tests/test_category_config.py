from pathlib import Path

import pytest

from zenremind.core.agenda.category_config import (
    DEFAULT_CATEGORY_GROUPS,
    CategoryConfigError,
    in_group,
    load_and_merge,
    load_category_file,
)

EXAMPLES = Path(__file__).resolve().parent.parent / "examples"


def test_defaults_when_no_file():
    assert load_and_merge(None) == DEFAULT_CATEGORY_GROUPS


def test_file_overrides_and_adds_groups():
    groups = load_and_merge(str(EXAMPLES / "categories.yaml"))
    assert groups["shopping"] == ["groceries", "shopping"]
    assert groups["chores"] == ["cleaning", "laundry"]
    assert groups["works"] == ["work"]


def test_invalid_file(tmp_path):
    p = tmp_path / "bad.yaml"
    p.write_text("shopping: []\n", encoding="utf-8")
    with pytest.raises(CategoryConfigError):
        load_category_file(p)


def test_in_group_is_case_insensitive():
    assert in_group(" Things To Buy ", DEFAULT_CATEGORY_GROUPS, "shopping")
    assert not in_group("Work", DEFAULT_CATEGORY_GROUPS, "shopping")
    assert not in_group("Work", DEFAULT_CATEGORY_GROUPS, "missing-group")

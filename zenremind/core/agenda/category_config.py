from __future__ import annotations

from pathlib import Path

import yaml


DEFAULT_CATEGORY_GROUPS: dict[str, list[str]] = {
    # Purchases; shown in their own list with a cost total, never on the calendar views.
    "shopping": ["shopping", "things to buy"],
    # Work items; own list, never on the calendar views.
    "works": ["work"],
    # Feeds the dashboard's upcoming-birthdays panel.
    "birthdays": ["birthday"],
    # Feeds the dashboard's important-events panel (together with HIGH priority).
    "events": ["event", "classes"],
}


class CategoryConfigError(ValueError):
    pass


def load_category_file(path: str | Path) -> dict[str, list[str]]:
    """Load category groups from a YAML file.

    Format:
      <group>: ["Category1", "Category2", ...]

    Returns a mapping of group name -> list of lower-cased category names.
    """
    p = Path(path)
    raw = yaml.safe_load(p.read_text(encoding="utf-8"))
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise CategoryConfigError("category file must be a mapping of group -> list[str]")

    out: dict[str, list[str]] = {}
    for k, v in raw.items():
        if not isinstance(k, str) or not k.strip():
            raise CategoryConfigError("group names must be non-empty strings")
        if not isinstance(v, list) or not v:
            raise CategoryConfigError(f"group '{k}' must be a non-empty list")
        names: list[str] = []
        for item in v:
            if not isinstance(item, str) or not item.strip():
                raise CategoryConfigError(f"group '{k}' items must be non-empty strings")
            names.append(item.strip().lower())
        out[k.strip()] = names
    return out


def merged_groups(overrides: dict[str, list[str]] | None = None) -> dict[str, list[str]]:
    """Return DEFAULT_CATEGORY_GROUPS merged with optional overrides.

    Overrides replace groups of the same name, and may add new ones.
    """
    merged = {k: list(v) for k, v in DEFAULT_CATEGORY_GROUPS.items()}
    if overrides:
        for k, v in overrides.items():
            merged[k] = list(v)
    return merged


def load_and_merge(category_file: str | None) -> dict[str, list[str]]:
    if not category_file:
        return merged_groups()
    overrides = load_category_file(category_file)
    return merged_groups(overrides)


def in_group(category: str, groups: dict[str, list[str]], group: str) -> bool:
    return category.strip().lower() in groups.get(group, [])

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from zenremind.core.errors import StoreLoadError


# Fixed storage identifiers; kept identical to the keys older stores were written with.
STORAGE_KEY = "zenremind_pro_v1"
HABITS_STORAGE_KEY = "zenremind_habits_pro_v1"


def empty_store() -> dict[str, Any]:
    return {STORAGE_KEY: [], HABITS_STORAGE_KEY: []}


def load_store(path: str, *, missing_ok: bool = False) -> dict[str, Any]:
    """Load a YAML/JSON store document.

    Returns a dict with keys STORAGE_KEY and HABITS_STORAGE_KEY.
    Does not coerce records; the validator owns shape checking.
    """

    p = Path(path)
    suffix = p.suffix.lower()
    if suffix not in {".yaml", ".yml", ".json"}:
        raise StoreLoadError(
            code="E_UNSUPPORTED_FORMAT",
            message="supported formats are .yaml/.yml and .json",
            file=str(p),
        )

    if not p.exists():
        if missing_ok:
            store = empty_store()
            store["__file__"] = str(p)
            return store
        raise StoreLoadError(
            code="E_FILE_NOT_FOUND",
            message="file does not exist",
            file=str(p),
        )

    try:
        raw_text = p.read_text(encoding="utf-8")
    except Exception as e:  # pragma: no cover
        raise StoreLoadError(code="E_FILE_READ", message=str(e), file=str(p)) from e

    try:
        if suffix == ".json":
            data = json.loads(raw_text) if raw_text.strip() else None
        else:
            data = yaml.safe_load(raw_text)
    except Exception as e:
        code = "E_JSON_PARSE" if suffix == ".json" else "E_YAML_PARSE"
        raise StoreLoadError(code=code, message=str(e), file=str(p)) from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise StoreLoadError(
            code="E_INVALID_TOP_LEVEL",
            message="top-level document must be a mapping/object",
            file=str(p),
        )

    # Normalize: keep only the storage keys; missing ones load as empty collections.
    normalized: dict[str, Any] = {
        STORAGE_KEY: data.get(STORAGE_KEY, []),
        HABITS_STORAGE_KEY: data.get(HABITS_STORAGE_KEY, []),
    }
    normalized["__file__"] = str(p)
    return normalized


def save_store(path: str, store: dict[str, Any]) -> None:
    p = Path(path)
    if str(p.parent) not in (".", ""):
        p.parent.mkdir(parents=True, exist_ok=True)

    out = {
        STORAGE_KEY: store.get(STORAGE_KEY, []),
        HABITS_STORAGE_KEY: store.get(HABITS_STORAGE_KEY, []),
    }
    if p.suffix.lower() == ".json":
        text = json.dumps(out, indent=2, sort_keys=True) + "\n"
    else:
        text = yaml.safe_dump(out, sort_keys=True, allow_unicode=True)
    p.write_text(text, encoding="utf-8")

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ReminderError(Exception):
    """A store problem with a stable code, located by file and record path.

    Loaders raise these; validation and lint collect them into lists so the
    CLI can print every problem in one pass.
    """

    code: str
    message: str
    file: Optional[str] = None
    path: Optional[str] = None

    def __str__(self) -> str:
        parts: list[str] = []
        if self.file:
            parts.append(self.file)
        if self.path:
            parts.append(self.path)
        loc = ":".join(parts) if parts else "<store>"
        return f"{loc}: {self.code}: {self.message}"


class StoreLoadError(ReminderError):
    pass


class StoreValidationError(ReminderError):
    pass

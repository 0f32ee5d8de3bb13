from __future__ import annotations

"""Needs-practice backlog sources.

The scheduling policy that decides which items still need practice lives
outside the round engine; the engine only surfaces its numbers.
"""

from dataclasses import dataclass
from typing import Dict, Protocol

from ..config.settings_store import SettingsStore

NEEDS_PRACTICE_KEY_PREFIX = "needsPractice:"


class NeedsPracticeSource(Protocol):
    def count(self) -> int:
        """Number of items not yet mastered."""
        ...

    def total(self) -> int:
        """Summed severity across those items."""
        ...


@dataclass(frozen=True)
class StaticNeedsPractice:
    """Fixed numbers; interval comparison keeps no backlog, so both default to 0."""

    items: int = 0
    severity: int = 0

    def count(self) -> int:
        return self.items

    def total(self) -> int:
        return self.severity


class StoredNeedsPractice:
    """Reads an `{item: severity}` mapping that an external policy keeps in the settings store."""

    def __init__(self, store: SettingsStore, exercise_type: str) -> None:
        self.store = store
        self.key = f"{NEEDS_PRACTICE_KEY_PREFIX}{exercise_type}"

    def _mapping(self) -> Dict[str, int]:
        raw = self.store.get(self.key, {}) or {}
        if not isinstance(raw, dict):
            return {}
        out: Dict[str, int] = {}
        for item, severity in raw.items():
            try:
                value = int(severity)
            except (TypeError, ValueError):
                continue
            if value > 0:
                out[str(item)] = value
        return out

    def count(self) -> int:
        return len(self._mapping())

    def total(self) -> int:
        return sum(self._mapping().values())

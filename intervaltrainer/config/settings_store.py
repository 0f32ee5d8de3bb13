from __future__ import annotations

"""Small JSON key-value store for settings that outlive a session.

Holds named (saved) configurations, the last-used configuration per
exercise type, favourite instruments, and any needs-practice mappings
kept by external policies.

File layout:
{
  "saved-practice-configurations": [ {id, name, settings, created_at}, ... ],
  "current-practice-configuration-<exercise type>": {settings},
  "favourite-instruments": ["violin", ...]
}
"""

from datetime import datetime, timezone
import json
from pathlib import Path
from typing import Any, Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, ValidationError

from .exercise import ExerciseConfig

SAVED_KEY = "saved-practice-configurations"
CURRENT_KEY_PREFIX = "current-practice-configuration"
FAVOURITES_KEY = "favourite-instruments"


class SavedConfiguration(BaseModel):
    id: str
    name: str
    settings: ExerciseConfig
    created_at: datetime


class SettingsStore:
    """Read/write named records in a single JSON file."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    # --- raw key-value access ---

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError):
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, default=str)

    def get(self, key: str, default: Any = None) -> Any:
        return self._load().get(key, default)

    def set(self, key: str, value: Any) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def delete(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)

    # --- saved configurations ---

    def get_saved_configurations(self) -> List[SavedConfiguration]:
        """Return saved configurations sorted by name; malformed entries are skipped."""
        out: List[SavedConfiguration] = []
        for raw in self.get(SAVED_KEY, []) or []:
            try:
                out.append(SavedConfiguration.model_validate(raw))
            except ValidationError:
                continue
        return sorted(out, key=lambda c: c.name.lower())

    def _write_saved(self, configs: List[SavedConfiguration]) -> None:
        self.set(SAVED_KEY, [c.model_dump(mode="json") for c in configs])

    def save_configuration(self, name: str, settings: ExerciseConfig) -> SavedConfiguration:
        """Save under `name`, replacing the settings of an existing entry with that name."""
        configs = self.get_saved_configurations()
        now = datetime.now(timezone.utc)
        for i, existing in enumerate(configs):
            if existing.name == name:
                updated = existing.model_copy(update={"settings": settings.model_copy(), "created_at": now})
                configs[i] = updated
                self._write_saved(configs)
                return updated
        new = SavedConfiguration(id=str(uuid4()), name=name, settings=settings.model_copy(), created_at=now)
        configs.append(new)
        self._write_saved(configs)
        return new

    def delete_configuration(self, config_id: str) -> None:
        configs = [c for c in self.get_saved_configurations() if c.id != config_id]
        self._write_saved(configs)

    def load_configuration(self, config_id: str) -> Optional[ExerciseConfig]:
        for c in self.get_saved_configurations():
            if c.id == config_id:
                return c.settings.model_copy()
        return None

    # --- current configuration per exercise ---

    @staticmethod
    def _current_key(exercise_type: str) -> str:
        return f"{CURRENT_KEY_PREFIX}-{exercise_type}"

    def save_current_configuration(self, settings: ExerciseConfig) -> None:
        self.set(self._current_key(settings.exercise_type), settings.model_dump(mode="json"))

    def get_current_configuration(self, exercise_type: str) -> Optional[ExerciseConfig]:
        raw = self.get(self._current_key(exercise_type))
        if raw is None:
            return None
        try:
            return ExerciseConfig.model_validate(raw)
        except ValidationError as e:
            print(f"WARNING: Ignoring stored configuration for '{exercise_type}': {e.error_count()} error(s)")
            return None

    # --- favourite instruments ---

    def get_favourite_instruments(self) -> List[str]:
        favs = self.get(FAVOURITES_KEY, []) or []
        return [str(f) for f in favs]

    def set_favourite_instruments(self, slugs: List[str]) -> None:
        self.set(FAVOURITES_KEY, list(dict.fromkeys(slugs)))

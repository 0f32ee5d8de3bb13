from __future__ import annotations

"""Typed exercise configuration using Pydantic.

`ExerciseConfig` is validated once, when settings are edited or loaded, so
the round generator can assume its preconditions hold.
"""

import json
import random
from typing import Any, Dict, List, Literal, Optional, Sequence, Tuple

from pydantic import BaseModel, Field, field_validator, model_validator

from ..audio.instruments import is_known_instrument
from ..theory.keys import note_str_to_midi


EXERCISE_INTERVAL_COMPARISON = "Interval comparison"

# Constraints on valid values, also used by settings editors.
CONSTRAINTS: Dict[str, Dict[str, int]] = {
    "sequence_length": {"min": 2, "max": 9},
    "tempo": {"min": 40, "max": 400, "step": 10},
    "comparison_intervals": {"min": 1, "max": 12},
}

# Settings that are not worth reporting when comparing sessions.
_OMIT_FROM_CHANGES = {"instrument", "instrument_mode", "reference_type", "preview_delay_ms"}

# Base gap between notes as a fraction of the base note duration.
NOTE_GAP_RATIO = 0.15


class ExerciseConfig(BaseModel):
    """Settings for one interval comparison exercise.

    - comparison_intervals: the two interval sizes (semitones) being compared
    - sequence_length: number of interval steps per round (notes = steps + 1)
    - tempo: BPM; one beat is the base note duration
    - tempo_jitter: multiplicative band for the per-round duration draw
    - start_window: rounds start up to this many semitones away from the root
    """

    exercise_type: str = EXERCISE_INTERVAL_COMPARISON
    comparison_intervals: Tuple[int, int] = (2, 3)
    sequence_length: int = Field(5, ge=2, le=9)
    tempo: int = Field(200, ge=40, le=400)
    tempo_jitter: Tuple[float, float] = (0.8, 1.2)
    root_note: str = "C4"
    start_window: int = Field(6, ge=0, le=24)
    direction: Literal["random", "ascending", "descending"] = "random"
    reference_type: Literal["root", "arpeggio"] = "root"
    instrument: str = "acoustic_grand_piano"
    instrument_mode: Literal["single", "random"] = "single"
    preview_delay_ms: int = Field(100, ge=0)

    @field_validator("comparison_intervals")
    @classmethod
    def _interval_sizes(cls, v: Tuple[int, int]) -> Tuple[int, int]:
        lo = CONSTRAINTS["comparison_intervals"]["min"]
        hi = CONSTRAINTS["comparison_intervals"]["max"]
        for size in v:
            if not (lo <= int(size) <= hi):
                raise ValueError(f"comparison intervals must be in {lo}..{hi} semitones")
        return v

    @field_validator("tempo_jitter")
    @classmethod
    def _jitter_band(cls, v: Tuple[float, float]) -> Tuple[float, float]:
        lo, hi = v
        if lo <= 0 or hi < lo:
            raise ValueError("tempo_jitter must be a positive (low, high) band")
        return v

    @field_validator("root_note")
    @classmethod
    def _root_parses(cls, v: str) -> str:
        note_str_to_midi(v)
        return v

    @field_validator("instrument")
    @classmethod
    def _known_instrument(cls, v: str) -> str:
        if not is_known_instrument(v):
            raise ValueError(f"unknown instrument: {v}")
        return v

    @model_validator(mode="after")
    def _intervals_differ(self) -> "ExerciseConfig":
        a, b = self.comparison_intervals
        if a == b:
            raise ValueError("comparison intervals must differ")
        return self

    @property
    def root_pitch(self) -> int:
        return note_str_to_midi(self.root_note)

    @property
    def note_duration(self) -> float:
        """Base note duration in seconds (one beat)."""
        return 60.0 / self.tempo

    @property
    def note_gap(self) -> float:
        return self.note_duration * NOTE_GAP_RATIO

    def pick_instrument(self, favourites: Sequence[str], rng: Optional[random.Random] = None) -> str:
        """Pick the instrument for a session based on `instrument_mode`."""
        known = [f for f in favourites if is_known_instrument(f)]
        if self.instrument_mode == "random" and known:
            return (rng or random).choice(known)
        return self.instrument

    def to_json(self) -> str:
        return json.dumps(self.model_dump(), separators=(",", ":"))


def exercise_from_config(cfg: Dict[str, Any]) -> ExerciseConfig:
    """Build the typed exercise settings from the `exercise` config section."""
    return ExerciseConfig.model_validate(dict(cfg.get("exercise", {})))


def _serialize(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return ",".join(str(v) for v in value)
    return str(value)


def settings_changes(current: Optional[ExerciseConfig], previous: Optional[ExerciseConfig]) -> List[str]:
    """Return human-readable `key: old → new` lines for changed settings."""
    if current is None or previous is None:
        return []
    changes: List[str] = []
    cur = current.model_dump()
    prev = previous.model_dump()
    for key in ExerciseConfig.model_fields:
        if key in _OMIT_FROM_CHANGES:
            continue
        old, new = _serialize(prev.get(key)), _serialize(cur.get(key))
        if old != new:
            changes.append(f"{key}: {old} → {new}")
    return changes

from __future__ import annotations

"""Interval comparison drill: which step of a note walk uses a different interval?

A round is a walk of `sequence_length` interval steps from a randomly offset
start pitch. Every step moves by the "main" interval except one, which moves
by the "different" interval. The listener names that step.
"""

from dataclasses import dataclass
from enum import Enum
import random
from typing import Tuple

from ..config.exercise import ExerciseConfig

ARPEGGIO_OFFSETS: Tuple[int, ...] = (0, 4, 7, 12, 7, 4, 0)  # do mi sol do' sol mi do
ARPEGGIO_GAP_S = 0.03
ROOT_REFERENCE_S = 2.0


class Direction(str, Enum):
    ASCENDING = "ascending"
    DESCENDING = "descending"

    @property
    def sign(self) -> int:
        return 1 if self is Direction.ASCENDING else -1


@dataclass(frozen=True)
class NoteEvent:
    """One scheduled note: MIDI pitch, seconds sounding, seconds of silence after."""

    pitch: int
    duration: float
    gap_after: float


@dataclass(frozen=True)
class RoundDescriptor:
    notes: Tuple[NoteEvent, ...]
    different_index: int
    different_interval: int
    main_interval: int
    direction: Direction

    @property
    def sequence_length(self) -> int:
        """Number of interval steps (one less than the number of notes)."""
        return len(self.notes) - 1

    @property
    def pitches(self) -> Tuple[int, ...]:
        return tuple(n.pitch for n in self.notes)

    @property
    def steps(self) -> Tuple[int, ...]:
        """Signed semitone movement of each step."""
        p = self.pitches
        return tuple(b - a for a, b in zip(p, p[1:]))

    def interval_at(self, index: int) -> int:
        return self.different_interval if index == self.different_index else self.main_interval

    def is_correct(self, selected_index: int) -> bool:
        return selected_index == self.different_index


def _draw_direction(config: ExerciseConfig, rng: random.Random) -> Direction:
    if config.direction == "ascending":
        return Direction.ASCENDING
    if config.direction == "descending":
        return Direction.DESCENDING
    return Direction.ASCENDING if rng.random() < 0.5 else Direction.DESCENDING


def generate_round(config: ExerciseConfig, rng: random.Random) -> RoundDescriptor:
    """Generate one round from validated settings.

    Draw order: different index, direction, which interval is the main one,
    start offset, tempo multiplier. Assumes the two comparison intervals
    differ (checked when `ExerciseConfig` is built).
    """
    length = config.sequence_length
    diff_index = rng.randrange(length)
    direction = _draw_direction(config, rng)

    first, second = config.comparison_intervals
    if rng.random() < 0.5:
        main_interval, diff_interval = first, second
    else:
        main_interval, diff_interval = second, first

    window = config.start_window
    current = config.root_pitch + rng.randint(-window, window)

    lo, hi = config.tempo_jitter
    duration = config.note_duration * rng.uniform(lo, hi)
    gap = config.note_gap

    notes = []
    for i in range(length):
        notes.append(NoteEvent(pitch=current, duration=duration, gap_after=gap))
        step = diff_interval if i == diff_index else main_interval
        current += direction.sign * step
    notes.append(NoteEvent(pitch=current, duration=duration, gap_after=0.0))

    return RoundDescriptor(
        notes=tuple(notes),
        different_index=diff_index,
        different_interval=diff_interval,
        main_interval=main_interval,
        direction=direction,
    )


def build_reference(config: ExerciseConfig) -> Tuple[NoteEvent, ...]:
    """Reference audio: the root held, or a do-mi-sol-do arpeggio and back."""
    root = config.root_pitch
    if config.reference_type == "arpeggio":
        offsets = ARPEGGIO_OFFSETS
        out = [NoteEvent(pitch=root + off, duration=config.note_duration, gap_after=ARPEGGIO_GAP_S) for off in offsets]
        out[-1] = NoteEvent(pitch=out[-1].pitch, duration=out[-1].duration, gap_after=0.0)
        return tuple(out)
    return (NoteEvent(pitch=root, duration=ROOT_REFERENCE_S, gap_after=0.0),)

from __future__ import annotations

"""Abstract-ish audio synthesis interface.

The round engine treats audio as a black box of potentially slow,
suspending operations. Concrete implementations provide note triggering;
sequencing with gaps is shared here.
"""

import asyncio
from typing import Callable, Optional, Sequence

from ..drills.interval_comparison import NoteEvent


class Synth:
    """Abstract-like synth interface for playback engines."""

    def __init__(self, sample_rate: int = 44100, gain: float = 0.5) -> None:
        self.sample_rate = sample_rate
        self.gain = gain
        self.instrument: Optional[str] = None

    async def set_instrument(self, instrument_id: str) -> None:
        """Select an instrument; resolves when it is ready to sound."""
        raise NotImplementedError

    async def play_note(self, pitch: int, duration: float) -> None:
        """Sound one note; resolves once `duration` seconds have elapsed."""
        raise NotImplementedError

    async def play_sequence(
        self,
        notes: Sequence[NoteEvent],
        on_note: Optional[Callable[[int], None]] = None,
    ) -> None:
        """Play notes in order, waiting each note's `gap_after` before the next."""
        for i, note in enumerate(notes):
            if on_note is not None:
                on_note(i)
            await self.play_note(note.pitch, note.duration)
            if note.gap_after > 0:
                await self.sleep(note.gap_after)

    def stop_sounds(self) -> None:
        """Silence anything currently sounding."""
        raise NotImplementedError

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)

    def close(self) -> None:
        """Release resources."""
        pass


class SilentSynth(Synth):
    """Keeps real timing but produces no sound (no audio device needed)."""

    async def set_instrument(self, instrument_id: str) -> None:
        self.instrument = instrument_id

    async def play_note(self, pitch: int, duration: float) -> None:
        await self.sleep(duration)

    def stop_sounds(self) -> None:
        pass

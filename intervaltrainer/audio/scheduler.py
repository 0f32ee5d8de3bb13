from __future__ import annotations

"""Playback scheduling on top of a `Synth`.

There is one playback slot for the whole application. Round playback,
reference playback and instrument previews each need to hold it, so at most
one of them sounds at a time. Whoever holds the slot owns a `SlotLease`;
stopping the scheduler cancels the lease's task and frees the slot at once,
so a superseded playback can never release a slot it no longer owns.

Previews are debounced: a request waits `preview_delay` seconds before it
tries to take the slot, and a newer request made during that wait cancels
the older one.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from ..app.events import NOTE_PLAYING, EventBus
from ..app.explain import trace as xtrace
from ..drills.interval_comparison import NoteEvent, RoundDescriptor
from .synthesis import Synth

PREVIEW_PITCH = 60  # middle C
PREVIEW_DURATION_S = 0.6


class SlotState(str, Enum):
    IDLE = "idle"
    PLAYING_ROUND = "playing_round"
    PLAYING_REFERENCE = "playing_reference"
    PLAYING_PREVIEW = "playing_preview"


class PlaybackOutcome(str, Enum):
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REJECTED = "rejected"


class PlaybackError(RuntimeError):
    """The audio collaborator failed while a sequence was playing."""


@dataclass(eq=False)
class SlotLease:
    state: SlotState
    task: Optional[asyncio.Future] = None

    def cancel(self) -> None:
        if self.task is not None and not self.task.done():
            self.task.cancel()


class PlaybackSlot:
    """Single-owner slot; `state` is IDLE exactly when nobody holds a lease."""

    def __init__(self) -> None:
        self._lease: Optional[SlotLease] = None

    @property
    def lease(self) -> Optional[SlotLease]:
        return self._lease

    @property
    def state(self) -> SlotState:
        return self._lease.state if self._lease is not None else SlotState.IDLE

    def acquire(self, state: SlotState) -> Optional[SlotLease]:
        if state is SlotState.IDLE:
            raise ValueError("cannot acquire the slot for IDLE")
        if self._lease is not None:
            return None
        self._lease = SlotLease(state)
        return self._lease

    def release(self, lease: SlotLease) -> bool:
        if self._lease is lease:
            self._lease = None
            return True
        return False


class PlaybackScheduler:
    """Turns round descriptors and reference sequences into timed synth calls."""

    def __init__(
        self,
        synth: Synth,
        *,
        preview_delay: float = 0.1,
        events: Optional[EventBus] = None,
    ) -> None:
        self._synth = synth
        self._slot = PlaybackSlot()
        self._events = events
        self.preview_delay = preview_delay
        self._pending_preview: Optional[asyncio.Task] = None
        self._current_index = -1

    @property
    def synth(self) -> Synth:
        return self._synth

    @property
    def slot(self) -> PlaybackSlot:
        return self._slot

    @property
    def state(self) -> SlotState:
        return self._slot.state

    @property
    def is_playing(self) -> bool:
        """True while a round sequence is sounding."""
        return self._slot.state is SlotState.PLAYING_ROUND

    @property
    def is_playing_reference(self) -> bool:
        return self._slot.state is SlotState.PLAYING_REFERENCE

    @property
    def is_busy(self) -> bool:
        return self._slot.state is not SlotState.IDLE

    @property
    def current_index(self) -> int:
        """Index of the round note currently sounding, -1 when none."""
        return self._current_index

    @property
    def pending_preview(self) -> Optional[asyncio.Task]:
        return self._pending_preview

    async def play(self, descriptor: RoundDescriptor) -> PlaybackOutcome:
        """Play a round; suspends until every note has sounded or playback is stopped."""
        return await self._play(SlotState.PLAYING_ROUND, descriptor.notes, track=True)

    async def play_reference(self, notes: Sequence[NoteEvent]) -> PlaybackOutcome:
        return await self._play(SlotState.PLAYING_REFERENCE, notes, track=False)

    async def _sequence(self, notes: Sequence[NoteEvent], track: bool) -> None:
        self._synth.stop_sounds()
        await self._synth.play_sequence(notes, on_note=self._mark_note if track else None)

    async def _play(self, state: SlotState, notes: Sequence[NoteEvent], *, track: bool) -> PlaybackOutcome:
        lease = self._slot.acquire(state)
        if lease is None:
            xtrace("playback_rejected", {"requested": state.value, "busy": self._slot.state.value})
            return PlaybackOutcome.REJECTED

        xtrace("playback_started", {"kind": state.value, "notes": len(notes)})
        lease.task = asyncio.ensure_future(self._sequence(notes, track))
        try:
            await asyncio.wait({lease.task})
        finally:
            lease.cancel()
            if self._slot.release(lease) and track:
                self._mark_note(-1)

        if lease.task.cancelled():
            xtrace("playback_cancelled", {"kind": state.value})
            return PlaybackOutcome.CANCELLED
        exc = lease.task.exception()
        if exc is not None:
            xtrace("playback_failed", {"kind": state.value, "error": repr(exc)})
            raise PlaybackError(f"{state.value} failed: {exc}") from exc
        xtrace("playback_completed", {"kind": state.value})
        return PlaybackOutcome.COMPLETED

    def _mark_note(self, index: int) -> None:
        self._current_index = index
        if self._events is not None:
            self._events.emit(NOTE_PLAYING, index)

    def stop(self) -> None:
        """Stop whatever holds the slot and drop any pending preview."""
        self.cancel_preview()
        lease = self._slot.lease
        if lease is not None:
            lease.cancel()
            self._slot.release(lease)
            if lease.state is SlotState.PLAYING_ROUND:
                self._mark_note(-1)
            xtrace("playback_stopped", {"kind": lease.state.value})
        self._synth.stop_sounds()

    # --- instrument preview channel ---

    def request_preview(
        self,
        instrument_id: str,
        pitch: int = PREVIEW_PITCH,
        duration: float = PREVIEW_DURATION_S,
    ) -> asyncio.Task:
        """Schedule a debounced preview, replacing one that has not fired yet."""
        self.cancel_preview()
        task = asyncio.ensure_future(self._run_preview(instrument_id, pitch, duration))
        self._pending_preview = task
        xtrace("preview_scheduled", {"instrument": instrument_id})
        return task

    def cancel_preview(self) -> bool:
        task = self._pending_preview
        self._pending_preview = None
        if task is None or task.done():
            return False
        task.cancel()
        xtrace("preview_cancelled", {})
        return True

    async def _run_preview(self, instrument_id: str, pitch: int, duration: float) -> bool:
        await asyncio.sleep(self.preview_delay)
        # Fired: a newer request no longer cancels this one
        if self._pending_preview is asyncio.current_task():
            self._pending_preview = None

        lease = self._slot.acquire(SlotState.PLAYING_PREVIEW)
        if lease is None:
            xtrace("preview_dropped", {"instrument": instrument_id, "busy": self._slot.state.value})
            return False
        lease.task = asyncio.current_task()
        previous = self._synth.instrument
        try:
            await self._synth.set_instrument(instrument_id)
            await self._synth.play_note(pitch, duration)
        except Exception as e:
            xtrace("preview_failed", {"instrument": instrument_id, "error": repr(e)})
            return False
        finally:
            try:
                await self._restore_instrument(previous)
            finally:
                self._slot.release(lease)
        return True

    async def _restore_instrument(self, previous: Optional[str]) -> None:
        # A preview only auditions; the session instrument stays selected
        if previous is None or self._synth.instrument == previous:
            return
        try:
            await self._synth.set_instrument(previous)
        except Exception as e:
            xtrace("preview_restore_failed", {"instrument": previous, "error": repr(e)})

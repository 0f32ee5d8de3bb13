from __future__ import annotations

"""Round lifecycle: generate, play, await an answer, score, advance.

States move Idle → Generating → Playing → AwaitingAnswer → Answered and,
on "next", back to Generating. Every trigger is a synchronous method that
either starts the transition (returning the playback task where audio is
involved) or returns None when the current state does not allow it. Input
arriving in the wrong state is dropped, never queued.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
import random
import time
from typing import Callable, Optional

from ..audio.scheduler import PlaybackError, PlaybackOutcome, PlaybackScheduler
from ..config.exercise import ExerciseConfig
from ..drills.interval_comparison import RoundDescriptor, build_reference, generate_round
from ..stats.stats import ProgressTracker
from .events import ANSWER_RECORDED, PLAYBACK_FAILED, ROUND_GENERATED, STATE_CHANGED, EventBus
from .explain import trace as xtrace


class RoundState(str, Enum):
    IDLE = "idle"
    GENERATING = "generating"
    PLAYING = "playing"
    AWAITING_ANSWER = "awaiting_answer"
    ANSWERED = "answered"


@dataclass(frozen=True)
class AnswerResult:
    selected_index: int
    correct: bool
    different_index: int
    latency_ms: float


class RoundStateMachine:
    def __init__(
        self,
        config: ExerciseConfig,
        scheduler: PlaybackScheduler,
        tracker: ProgressTracker,
        *,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.monotonic,
        events: Optional[EventBus] = None,
    ) -> None:
        self.config = config
        self._scheduler = scheduler
        self._tracker = tracker
        self._rng = rng or random.Random()
        self._clock = clock
        self._events = events or EventBus()
        self._state = RoundState.IDLE
        self._descriptor: Optional[RoundDescriptor] = None
        self._answer: Optional[AnswerResult] = None
        self._awaiting_since: Optional[float] = None
        self._playback: Optional[asyncio.Task] = None
        self._reference: Optional[asyncio.Task] = None

    @property
    def state(self) -> RoundState:
        return self._state

    @property
    def descriptor(self) -> Optional[RoundDescriptor]:
        return self._descriptor

    @property
    def last_answer(self) -> Optional[AnswerResult]:
        return self._answer

    @property
    def scheduler(self) -> PlaybackScheduler:
        return self._scheduler

    @property
    def tracker(self) -> ProgressTracker:
        return self._tracker

    @property
    def events(self) -> EventBus:
        return self._events

    @property
    def playback_task(self) -> Optional[asyncio.Task]:
        return self._playback

    @property
    def reference_task(self) -> Optional[asyncio.Task]:
        return self._reference

    def _set_state(self, new: RoundState) -> None:
        old = self._state
        self._state = new
        if old is not new:
            self._events.emit(STATE_CHANGED, {"from": old, "to": new})

    # --- transitions ---

    def start_round(self) -> Optional[asyncio.Task]:
        """Idle → Generating: first round of a session."""
        if self._state is not RoundState.IDLE:
            return None
        return self._begin_round()

    def next_round(self) -> Optional[asyncio.Task]:
        """Answered → Generating."""
        if self._state is not RoundState.ANSWERED:
            return None
        return self._begin_round()

    def replay(self) -> Optional[asyncio.Task]:
        """Play the current round again without regenerating it."""
        if self._descriptor is None or self._scheduler.is_busy:
            return None
        if self._state not in (RoundState.AWAITING_ANSWER, RoundState.ANSWERED):
            return None
        return self._start_playback(resume=self._state)

    def submit_answer(self, selected_index: int) -> Optional[AnswerResult]:
        """AwaitingAnswer → Answered; returns None when no answer is expected.

        Answers are also ignored while reference audio holds the playback slot.
        """
        descriptor = self._descriptor
        if self._state is not RoundState.AWAITING_ANSWER or descriptor is None:
            return None
        if self._scheduler.is_busy:
            return None
        if not 0 <= selected_index < descriptor.sequence_length:
            return None

        since = self._awaiting_since if self._awaiting_since is not None else self._clock()
        latency_ms = (self._clock() - since) * 1000.0
        correct = self._tracker.record_answer(selected_index, descriptor, latency_ms)
        result = AnswerResult(
            selected_index=selected_index,
            correct=correct,
            different_index=descriptor.different_index,
            latency_ms=latency_ms,
        )
        self._answer = result
        xtrace("answer_recorded", {"selected": selected_index, "truth": descriptor.different_index, "correct": correct})
        self._set_state(RoundState.ANSWERED)
        self._events.emit(ANSWER_RECORDED, result)
        return result

    def play_reference(self) -> Optional[asyncio.Task]:
        """Orientation audio; allowed whenever nothing else is sounding."""
        if self._scheduler.is_busy or self._state in (RoundState.GENERATING, RoundState.PLAYING):
            return None
        self._reference = asyncio.ensure_future(self._run_reference())
        return self._reference

    def stop(self) -> None:
        """Leave the exercise: silence audio and forget the current round."""
        self._scheduler.stop()
        self._descriptor = None
        self._answer = None
        self._awaiting_since = None
        self._set_state(RoundState.IDLE)

    # --- internals ---

    def _begin_round(self) -> asyncio.Task:
        self._scheduler.stop()
        self._set_state(RoundState.GENERATING)
        descriptor = generate_round(self.config, self._rng)
        self._descriptor = descriptor
        self._answer = None
        self._awaiting_since = None
        xtrace(
            "round_generated",
            {
                "pitches": list(descriptor.pitches),
                "different_index": descriptor.different_index,
                "direction": descriptor.direction.value,
            },
        )
        self._events.emit(ROUND_GENERATED, descriptor)
        return self._start_playback(resume=RoundState.AWAITING_ANSWER)

    def _start_playback(self, resume: RoundState) -> asyncio.Task:
        descriptor = self._descriptor
        assert descriptor is not None
        self._set_state(RoundState.PLAYING)
        self._playback = asyncio.ensure_future(self._run_playback(descriptor, resume))
        return self._playback

    async def _run_playback(self, descriptor: RoundDescriptor, resume: RoundState) -> Optional[PlaybackOutcome]:
        outcome: Optional[PlaybackOutcome]
        try:
            outcome = await self._scheduler.play(descriptor)
        except PlaybackError as e:
            # Leave the user able to answer or replay rather than stuck in Playing
            self._events.emit(PLAYBACK_FAILED, e)
            outcome = None

        if outcome is PlaybackOutcome.CANCELLED or self._descriptor is not descriptor:
            return outcome
        if resume is RoundState.AWAITING_ANSWER and self._awaiting_since is None:
            self._awaiting_since = self._clock()
        self._set_state(resume)
        return outcome

    async def _run_reference(self) -> Optional[PlaybackOutcome]:
        try:
            return await self._scheduler.play_reference(build_reference(self.config))
        except PlaybackError as e:
            self._events.emit(PLAYBACK_FAILED, e)
            return None

from __future__ import annotations

"""Session Manager: wires the round engine together and owns session lifecycle.

A session starts by choosing and loading the instrument and then plays the
first round. Finishing stops audio, remembers the settings, and appends a
history row when at least one round was answered.
"""

import asyncio
from datetime import datetime, timezone
from pathlib import Path
import random
import time
from typing import Any, Callable, Dict, Optional
from uuid import uuid4

from ..audio.scheduler import PlaybackScheduler
from ..audio.synthesis import Synth
from ..config.exercise import ExerciseConfig
from ..config.settings_store import SettingsStore
from ..policy.needs_practice import NeedsPracticeSource, StaticNeedsPractice
from ..stats.stats import ProgressTracker
from ..storage.schema import SessionHistoryRow
from ..storage.store import append_session_history, init_store, validate_records
from .events import EventBus
from .explain import trace as xtrace
from .input_dispatcher import InputDispatcher
from .round_machine import RoundStateMachine


class PracticeSession:
    def __init__(
        self,
        config: ExerciseConfig,
        synth: Synth,
        *,
        settings_store: Optional[SettingsStore] = None,
        data_dir: Optional[Path] = None,
        needs_practice: Optional[NeedsPracticeSource] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.monotonic,
        events: Optional[EventBus] = None,
    ) -> None:
        self.config = config
        self.synth = synth
        self.settings_store = settings_store
        self.data_dir = Path(data_dir) if data_dir is not None else None
        self.rng = rng or random.Random()
        self.events = events or EventBus()
        self.scheduler = PlaybackScheduler(synth, preview_delay=config.preview_delay_ms / 1000.0, events=self.events)
        self.tracker = ProgressTracker(needs_practice or StaticNeedsPractice())
        self.machine = RoundStateMachine(
            config, self.scheduler, self.tracker, rng=self.rng, clock=clock, events=self.events
        )
        self.dispatcher = InputDispatcher(self.machine)
        self.session_id: Optional[str] = None
        self.started_at: Optional[datetime] = None
        self.instrument: Optional[str] = None

    @property
    def started(self) -> bool:
        return self.started_at is not None

    async def start(self) -> Optional[asyncio.Task]:
        """Load the session instrument and play the first round."""
        if self.started:
            return None
        favourites = self.settings_store.get_favourite_instruments() if self.settings_store else []
        self.instrument = self.config.pick_instrument(favourites, self.rng)
        await self.synth.set_instrument(self.instrument)
        if self.settings_store is not None:
            self.settings_store.save_current_configuration(self.config)

        self.tracker.reset()
        self.session_id = str(uuid4())
        self.started_at = datetime.now(timezone.utc)
        self.dispatcher.focus()
        xtrace("session_started", {"exercise": self.config.exercise_type, "instrument": self.instrument})
        return self.machine.start_round()

    def finish(self) -> Optional[SessionHistoryRow]:
        """Stop the session; returns the history row written, if any."""
        self.machine.stop()
        self.dispatcher.blur()
        if self.settings_store is not None:
            self.settings_store.save_current_configuration(self.config)

        row: Optional[SessionHistoryRow] = None
        c = self.tracker.counters
        if self.started and c.sequences_answered > 0:
            row = SessionHistoryRow(
                session_id=self.session_id or str(uuid4()),
                session_date=self.started_at or datetime.now(timezone.utc),
                exercise_name=self.config.exercise_type,
                score=self.tracker.score_percent,
                total_attempts=c.total_attempts,
                correct_attempts=c.correct_attempts,
                avg_secs_per_answer=self.tracker.avg_secs_per_answer,
                total_seconds=c.elapsed_seconds,
                needs_practice_count=self.tracker.needs_practice_count or 0,
                needs_practice_total_severity=self.tracker.needs_practice_total or 0,
                settings=self.config.to_json(),
            )
            if self.data_dir is not None:
                init_store(self.data_dir)
                append_session_history(validate_records([row]), self.data_dir)

        xtrace("session_finished", self.tracker.snapshot())
        self.started_at = None
        return row

    def summary(self) -> Dict[str, Any]:
        data = self.tracker.snapshot()
        data["exercise"] = self.config.exercise_type
        data["instrument"] = self.instrument
        return data

from __future__ import annotations

"""CLI entry point: interval comparison practice in the terminal.

Type one key per line: 1..N to pick the different interval, `n` or an empty
line for the next round, `a` to hear the round again, `e` for the reference,
`q` to finish.
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError

from . import __version__
from .app import explain
from .app.events import ANSWER_RECORDED, PLAYBACK_FAILED, STATE_CHANGED
from .app.round_machine import AnswerResult, RoundState
from .app.session_manager import PracticeSession
from .audio.playback import make_synth_from_config
from .config.config import load_config, validate_config
from .config.exercise import exercise_from_config
from .config.settings_store import SettingsStore
from .stats.stats import format_summary
from .theory.keys import interval_name, midi_to_note_str
from .util.randomness import make_rng, seed_if_needed

QUIT_KEYS = {"q", "quit", "stop"}


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="IntervalTrainer CLI")
    p.add_argument("--config", type=str, default=None, help="Path to YAML config")
    p.add_argument("--version", action="store_true", help="Print version and exit")
    p.add_argument("--explain", action="store_true", help="Print engine trace lines")
    p.add_argument("--silent", action="store_true", help="Run without an audio device")
    return p.parse_args(argv)


def _attach_console(session: PracticeSession, inform: Callable[[str], None]) -> None:
    machine = session.machine
    n = session.config.sequence_length

    def on_state(change: Dict[str, Any]) -> None:
        descriptor = machine.descriptor
        if change["to"] is RoundState.AWAITING_ANSWER and descriptor is not None:
            inform(
                f"Which {descriptor.direction.value} interval is different? [1-{n}]"
                "  (a: again, e: reference, q: finish)"
            )

    def on_answer(result: AnswerResult) -> None:
        descriptor = machine.descriptor
        if descriptor is None:
            return
        if result.correct:
            inform("Correct!")
        else:
            inform(f"Not quite: it was {result.different_index + 1}.")
        inform(
            f"The different interval was {descriptor.direction.value} {interval_name(descriptor.different_interval)}"
            f" (among {interval_name(descriptor.main_interval)}s),"
            f" starting on {midi_to_note_str(descriptor.pitches[0])}.  n/Enter: next"
        )

    def on_failure(err: Exception) -> None:
        print(f"[WARN] Playback failed: {err}")

    session.events.subscribe(STATE_CHANGED, on_state)
    session.events.subscribe(ANSWER_RECORDED, on_answer)
    session.events.subscribe(PLAYBACK_FAILED, on_failure)


async def run_session(session: PracticeSession, ask: Callable[[str], str] = input) -> Dict[str, Any]:
    """Drive a session from line input until a quit key or end of input."""
    loop = asyncio.get_running_loop()
    await session.start()
    while True:
        try:
            line = await loop.run_in_executor(None, ask, "")
        except EOFError:
            break
        key = line.strip().lower()
        if key in QUIT_KEYS:
            break
        session.dispatcher.dispatch(key or "enter")
    session.finish()
    return session.summary()


def cli(argv: Optional[List[str]] = None) -> None:
    args = _parse_args(argv)
    if args.version:
        print(f"intervaltrainer {__version__}")
        sys.exit(0)

    explain.enable(args.explain)
    seed = seed_if_needed()

    cfg = load_config(args.config)
    if args.silent:
        cfg.setdefault("audio", {})["backend"] = "silent"
    cfg = validate_config(cfg)
    try:
        exercise = exercise_from_config(cfg)
    except ValidationError as e:
        print(f"ERROR: Invalid exercise settings:\n{e}", file=sys.stderr)
        sys.exit(1)

    storage = cfg["storage"]
    settings_store = SettingsStore(storage["settings_path"])
    synth = make_synth_from_config(cfg)
    session = PracticeSession(
        exercise,
        synth,
        settings_store=settings_store,
        data_dir=Path(storage["data_dir"]),
        rng=make_rng(seed),
    )
    _attach_console(session, print)

    a, b = exercise.comparison_intervals
    print(f"Interval comparison: {interval_name(a)} vs {interval_name(b)}, {exercise.sequence_length} steps.")
    try:
        summary = asyncio.run(run_session(session))
    finally:
        synth.close()

    print("\nSession Summary:")
    print(format_summary(summary))


if __name__ == "__main__":
    cli()

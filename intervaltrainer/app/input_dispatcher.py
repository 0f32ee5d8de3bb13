from __future__ import annotations

"""Keyboard input → round transitions.

Keys are first parsed into an `InputEvent`, then looked up in a table keyed
by (round state, event). A pair missing from the table means the key does
nothing in that state; the press is dropped, not buffered.
"""

from enum import Enum
from typing import Callable, Dict, Optional, Tuple

from .explain import trace as xtrace
from .round_machine import RoundState, RoundStateMachine


class InputEvent(str, Enum):
    ANSWER = "answer"
    NEXT = "next"
    REPLAY = "replay"
    REFERENCE = "reference"


_KEY_EVENTS: Dict[str, InputEvent] = {
    "n": InputEvent.NEXT,
    "enter": InputEvent.NEXT,
    "return": InputEvent.NEXT,
    "a": InputEvent.REPLAY,
    "e": InputEvent.REFERENCE,
}

Action = Callable[[RoundStateMachine, Optional[int]], object]

TRANSITIONS: Dict[Tuple[RoundState, InputEvent], Action] = {
    (RoundState.AWAITING_ANSWER, InputEvent.ANSWER): lambda m, i: m.submit_answer(i),
    (RoundState.ANSWERED, InputEvent.NEXT): lambda m, _i: m.next_round(),
    (RoundState.AWAITING_ANSWER, InputEvent.REPLAY): lambda m, _i: m.replay(),
    (RoundState.ANSWERED, InputEvent.REPLAY): lambda m, _i: m.replay(),
    (RoundState.IDLE, InputEvent.REFERENCE): lambda m, _i: m.play_reference(),
    (RoundState.AWAITING_ANSWER, InputEvent.REFERENCE): lambda m, _i: m.play_reference(),
    (RoundState.ANSWERED, InputEvent.REFERENCE): lambda m, _i: m.play_reference(),
}

# Events that need the playback slot to be free before they do anything.
_NEEDS_SILENCE = {InputEvent.ANSWER, InputEvent.REPLAY, InputEvent.REFERENCE}


def parse_key(key: str, sequence_length: int) -> Optional[Tuple[InputEvent, Optional[int]]]:
    """Map a key name to an event; digits 1..sequence_length answer step index key-1."""
    k = key.strip().lower()
    if len(k) == 1 and k.isdigit():
        digit = int(k)
        if 1 <= digit <= sequence_length:
            return InputEvent.ANSWER, digit - 1
        return None
    event = _KEY_EVENTS.get(k)
    if event is None:
        return None
    return event, None


class InputDispatcher:
    """Routes key presses to a round machine while the hosting view has focus."""

    def __init__(self, machine: RoundStateMachine) -> None:
        self.machine = machine
        self.focused = True

    def focus(self) -> None:
        self.focused = True

    def blur(self) -> None:
        self.focused = False

    def lookup(self, event: InputEvent) -> Optional[Action]:
        if event in _NEEDS_SILENCE and self.machine.scheduler.is_busy:
            return None
        return TRANSITIONS.get((self.machine.state, event))

    def dispatch(self, key: str) -> object:
        """Handle one key press; returns the triggered transition's result or None."""
        if not self.focused:
            return None
        parsed = parse_key(key, self.machine.config.sequence_length)
        if parsed is None:
            return None
        event, index = parsed
        action = self.lookup(event)
        if action is None:
            xtrace("input_dropped", {"key": key, "state": self.machine.state.value})
            return None
        return action(self.machine, index)

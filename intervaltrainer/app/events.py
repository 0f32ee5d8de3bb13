from __future__ import annotations

"""Tiny pub/sub event bus used to publish engine changes to UI collaborators."""

from typing import Any, Callable, Dict, List

from .explain import trace as xtrace

STATE_CHANGED = "state_changed"
ROUND_GENERATED = "round_generated"
NOTE_PLAYING = "note_playing"
ANSWER_RECORDED = "answer_recorded"
PLAYBACK_FAILED = "playback_failed"


class EventBus:
    def __init__(self) -> None:
        self._subs: Dict[str, List[Callable[[Any], None]]] = {}

    def subscribe(self, event: str, handler: Callable[[Any], None]) -> None:
        self._subs.setdefault(event, []).append(handler)

    def unsubscribe(self, event: str, handler: Callable[[Any], None]) -> None:
        handlers = self._subs.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event: str, payload: Any = None) -> None:
        for h in list(self._subs.get(event, [])):
            try:
                h(payload)
            except Exception as e:
                # A broken display handler must not stall the engine
                xtrace("subscriber_failed", {"event": event, "error": repr(e)})

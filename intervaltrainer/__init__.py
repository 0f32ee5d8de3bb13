"""IntervalTrainer package initialization.

Exposes the round engine pieces most callers need so a host application can
simply `import intervaltrainer`.
"""

from __future__ import annotations

__version__ = "0.1.0"

from .app.round_machine import RoundState, RoundStateMachine
from .app.session_manager import PracticeSession
from .config.exercise import ExerciseConfig
from .drills.interval_comparison import Direction, NoteEvent, RoundDescriptor, generate_round
from .stats.stats import ProgressTracker

__all__ = [
    "__version__",
    "Direction",
    "ExerciseConfig",
    "NoteEvent",
    "PracticeSession",
    "ProgressTracker",
    "RoundDescriptor",
    "RoundState",
    "RoundStateMachine",
    "generate_round",
]

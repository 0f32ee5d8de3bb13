from __future__ import annotations

"""Configuration loading and validation for IntervalTrainer.

This module loads YAML configuration, applies defaults, and validates
that enumerations and paths are sane for the CLI.
"""

from pathlib import Path
from typing import Any, Dict, Optional

import sys

import yaml

from ..audio.instruments import is_known_instrument


ALLOWED_BACKENDS = {"fluidsynth", "silent"}
ALLOWED_DIRECTIONS = {"random", "ascending", "descending"}
ALLOWED_REFERENCE_TYPES = {"root", "arpeggio"}
ALLOWED_INSTRUMENT_MODES = {"single", "random"}
DEFAULT_INSTRUMENT = "acoustic_grand_piano"


def _load_yaml(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    except FileNotFoundError:
        print(f"ERROR: Config file not found: {path}", file=sys.stderr)
        sys.exit(1)


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from YAML or defaults.

    Args:
        path: Optional path to a YAML config. If None, use package defaults.

    Returns:
        A dictionary with configuration values.
    """
    if path:
        cfg = _load_yaml(Path(path))
    else:
        default_path = Path(__file__).with_name("defaults.yml")
        cfg = _load_yaml(default_path)
    return cfg


def validate_config(cfg: Dict[str, Any], *, require_soundfont: bool = True) -> Dict[str, Any]:
    """Apply defaults and validate configuration values.

    Performs sanity checks on enums and ensures the soundfont path exists
    when using the FluidSynth backend. Exercise values with numeric
    constraints are checked later by `ExerciseConfig`.

    Args:
        cfg: The raw configuration dictionary.
        require_soundfont: Exit when the FluidSynth soundfont is missing.

    Returns:
        The validated and merged configuration dictionary.
    """
    # Shallow defaults for missing sections
    cfg.setdefault("audio", {})
    cfg.setdefault("exercise", {})
    cfg.setdefault("storage", {})

    audio = cfg["audio"]
    exercise = cfg["exercise"]
    storage = cfg["storage"]

    audio.setdefault("backend", "fluidsynth")
    audio.setdefault("soundfont_path", "./soundfonts/FluidR3_GM.sf2")
    audio.setdefault("sample_rate", 44100)
    audio.setdefault("gain", 0.5)

    exercise.setdefault("comparison_intervals", [2, 3])
    exercise.setdefault("sequence_length", 5)
    exercise.setdefault("tempo", 200)
    exercise.setdefault("tempo_jitter", [0.8, 1.2])
    exercise.setdefault("root_note", "C4")
    exercise.setdefault("start_window", 6)
    exercise.setdefault("direction", "random")
    exercise.setdefault("reference_type", "root")
    exercise.setdefault("instrument", DEFAULT_INSTRUMENT)
    exercise.setdefault("instrument_mode", "single")
    exercise.setdefault("preview_delay_ms", 100)

    storage.setdefault("data_dir", "./storage/data")
    storage.setdefault("settings_path", "./storage/settings.json")

    # Enum validations
    backend = audio.get("backend")
    if backend not in ALLOWED_BACKENDS:
        print(f"WARNING: Unsupported audio backend '{backend}', falling back to 'fluidsynth'.")
        audio["backend"] = "fluidsynth"

    direction = exercise.get("direction")
    if direction not in ALLOWED_DIRECTIONS:
        print(f"WARNING: Unsupported direction '{direction}', using 'random'.")
        exercise["direction"] = "random"

    reference_type = exercise.get("reference_type")
    if reference_type not in ALLOWED_REFERENCE_TYPES:
        print(f"WARNING: Unsupported reference_type '{reference_type}', using 'root'.")
        exercise["reference_type"] = "root"

    mode = exercise.get("instrument_mode")
    if mode not in ALLOWED_INSTRUMENT_MODES:
        print(f"WARNING: Unsupported instrument_mode '{mode}', using 'single'.")
        exercise["instrument_mode"] = "single"

    instrument = exercise.get("instrument")
    if not is_known_instrument(str(instrument)):
        print(f"WARNING: Unknown instrument '{instrument}', using '{DEFAULT_INSTRUMENT}'.")
        exercise["instrument"] = DEFAULT_INSTRUMENT

    # Ensure soundfont exists for FluidSynth
    if require_soundfont and audio["backend"] == "fluidsynth":
        sf_path = Path(audio.get("soundfont_path", ""))
        if not sf_path.exists():
            print(
                f"ERROR: SoundFont not found at '{sf_path}'. Place a .sf2 in ./soundfonts and update the path.",
                file=sys.stderr,
            )
            sys.exit(1)

    # Normalize interval pair to ints
    exercise["comparison_intervals"] = [int(v) for v in exercise.get("comparison_intervals", [])]

    return cfg

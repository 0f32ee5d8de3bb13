from __future__ import annotations

"""Key and pitch utilities for mapping to MIDI.

Includes pitch-class names, enharmonic handling, and the names of the
intervals (in semitones) the comparison drills work with.
"""

from typing import Dict, List


PITCH_CLASS_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

_ENHARMONIC: Dict[str, str] = {
    "Db": "C#",
    "Eb": "D#",
    "Gb": "F#",
    "Ab": "G#",
    "Bb": "A#",
    # common edge enharmonics
    "B#": "C",
    "E#": "F",
    "Cb": "B",
    "Fb": "E",
}

INTERVAL_NAMES: List[str] = [
    "unison",
    "minor 2nd",
    "major 2nd",
    "minor 3rd",
    "major 3rd",
    "perfect 4th",
    "tritone",
    "perfect 5th",
    "minor 6th",
    "major 6th",
    "minor 7th",
    "major 7th",
    "octave",
]


def _normalize_name(name: str) -> str:
    return _ENHARMONIC.get(name, name)


def note_name_to_midi(name: str, octave: int) -> int:
    """Convert note name and octave to MIDI number.

    Uses C4 = 60 (MIDI middle C). Supports sharps and flats.

    Args:
        name: Pitch name like "C", "C#", "Db", etc.
        octave: Integer octave number (e.g., 4 => 60 for C).

    Returns:
        MIDI note number (0..127).
    """
    norm = _normalize_name(name)
    if norm not in PITCH_CLASS_NAMES:
        raise ValueError(f"Unsupported note name: {name}")
    pc = PITCH_CLASS_NAMES.index(norm)
    midi = (octave + 1) * 12 + pc  # C4 -> 60
    if midi < 0 or midi > 127:
        raise ValueError("MIDI out of range")
    return midi


def note_str_to_midi(note: str) -> int:
    """Parse a note string like 'C4', 'Db3', 'G#5' into a MIDI number."""
    if not note or len(note) < 2:
        raise ValueError(f"Invalid note string: {note}")
    name = note[0].upper()
    idx = 1
    if idx < len(note) and note[idx] in ("#", "b"):
        name += note[idx]
        idx += 1
    try:
        octave = int(note[idx:])
    except ValueError as e:
        raise ValueError(f"Invalid octave in note string: {note}") from e
    return note_name_to_midi(name, octave)


def midi_to_note_str(midi: int) -> str:
    """Inverse of note_str_to_midi using sharp names, e.g. 61 -> 'C#4'."""
    if midi < 0 or midi > 127:
        raise ValueError("MIDI out of range")
    return f"{PITCH_CLASS_NAMES[midi % 12]}{midi // 12 - 1}"


def interval_name(semitones: int) -> str:
    """Human name for an interval size; compound intervals get an octave suffix."""
    size = abs(int(semitones))
    if size <= 12:
        return INTERVAL_NAMES[size]
    octaves, rest = divmod(size, 12)
    return f"{INTERVAL_NAMES[rest]} + {octaves} octave{'s' if octaves > 1 else ''}"

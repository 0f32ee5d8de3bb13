"""Pitch helpers: note names, MIDI numbers and interval names."""

from .keys import interval_name, midi_to_note_str, note_name_to_midi, note_str_to_midi  # noqa: F401

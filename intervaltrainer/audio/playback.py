from __future__ import annotations

"""FluidSynth-based audio playback implementation."""

from typing import Dict
import sys

from .instruments import GM_PROGRAMS, format_instrument_name  # noqa: F401
from .synthesis import SilentSynth, Synth


class FluidSynthSynth(Synth):
    """Concrete Synth using pyfluidsynth."""

    def __init__(self, soundfont_path: str, sample_rate: int = 44100, gain: float = 0.5, velocity: int = 100) -> None:
        super().__init__(sample_rate=sample_rate, gain=gain)
        try:
            import fluidsynth  # type: ignore
        except Exception as e:  # pragma: no cover - runtime dependency
            raise RuntimeError("pyfluidsynth is not installed") from e

        self.velocity = velocity
        self._fs = fluidsynth.Synth(samplerate=sample_rate, gain=gain)
        # Start audio driver; prefer CoreAudio on macOS to avoid SDL warnings
        driver = None
        if sys.platform == "darwin":
            driver = "coreaudio"
        try:
            if driver:
                self._fs.start(driver=driver)
            else:
                self._fs.start()
        except Exception:
            # Fallback to default driver if preferred one fails
            self._fs.start()
        self._sfid = self._fs.sfload(soundfont_path)
        self._fs.program_select(0, self._sfid, 0, 0)  # channel 0 = Acoustic Grand

    async def set_instrument(self, instrument_id: str) -> None:
        if instrument_id not in GM_PROGRAMS:
            raise ValueError(f"Unknown instrument: {instrument_id}")
        self._fs.program_select(0, self._sfid, 0, GM_PROGRAMS[instrument_id])
        self.instrument = instrument_id

    async def play_note(self, pitch: int, duration: float) -> None:
        self._fs.noteon(0, int(pitch), self.velocity)
        try:
            await self.sleep(duration)
        finally:
            self._fs.noteoff(0, int(pitch))

    def stop_sounds(self) -> None:
        # CC#123 = All Notes Off
        self._fs.cc(0, 123, 0)

    def close(self) -> None:
        self._fs.delete()


def make_synth_from_config(cfg: Dict) -> Synth:
    """Factory for Synth from config dict."""
    audio = cfg.get("audio", {})
    backend = audio.get("backend", "fluidsynth")
    if backend == "fluidsynth":
        return FluidSynthSynth(
            soundfont_path=audio.get("soundfont_path"),
            sample_rate=int(audio.get("sample_rate", 44100)),
            gain=float(audio.get("gain", 0.5)),
        )
    if backend == "silent":
        return SilentSynth(sample_rate=int(audio.get("sample_rate", 44100)), gain=float(audio.get("gain", 0.5)))
    raise ValueError(f"Unsupported backend: {backend}")

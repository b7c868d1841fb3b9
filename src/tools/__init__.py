"""Low-level audio utilities."""

from .audio import AudioData, load_audio, probe_duration
from .mixdown import MixSource, render_mix
from .waveform import waveform_peaks

__all__ = ["AudioData", "load_audio", "probe_duration", "MixSource", "render_mix", "waveform_peaks"]

"""Offline mixdown of composition tracks into a single signal."""

import io
from dataclasses import dataclass
from typing import Optional

import numpy as np
import soundfile as sf


@dataclass
class MixSource:
    """One placed track: mono samples at the mix sample rate."""

    samples: np.ndarray
    start_time: float
    volume: float = 1.0
    loop_region: Optional[tuple[float, float]] = None


def mix_length(sources: list[MixSource], duration: float, sample_rate: int) -> int:
    """
    Number of output frames.

    A positive duration wins. Otherwise the mix runs to the end of the last
    source, counting a looping source once.
    """
    if duration > 0:
        return int(round(duration * sample_rate))
    end = 0
    for source in sources:
        start = int(round(max(source.start_time, 0.0) * sample_rate))
        end = max(end, start + len(_region(source, sample_rate)))
    return end


def _region(source: MixSource, sample_rate: int) -> np.ndarray:
    if source.loop_region is None:
        return source.samples
    total = len(source.samples)
    start = min(max(int(source.loop_region[0] * sample_rate), 0), total)
    end = min(max(int(source.loop_region[1] * sample_rate), start), total)
    return source.samples[start:end]


def render_mix(sources: list[MixSource], duration: float, sample_rate: int) -> np.ndarray:
    """
    Sum sources into one float32 buffer clipped to [-1, 1].

    Non-looping sources play once from their start time and are cut at the
    end of the mix. Looping sources repeat their region back to back until the
    end of the mix.
    """
    total = mix_length(sources, duration, sample_rate)
    out = np.zeros(total, dtype=np.float64)

    for source in sources:
        segment = np.asarray(_region(source, sample_rate), dtype=np.float64) * source.volume
        if segment.size == 0:
            continue
        cursor = int(round(max(source.start_time, 0.0) * sample_rate))
        repeat = source.loop_region is not None and duration > 0
        while cursor < total:
            n = min(segment.size, total - cursor)
            out[cursor:cursor + n] += segment[:n]
            if not repeat:
                break
            cursor += segment.size

    return np.clip(out, -1.0, 1.0).astype(np.float32)


def encode_wav(samples: np.ndarray, sample_rate: int) -> io.BytesIO:
    buffer = io.BytesIO()
    sf.write(buffer, samples, sample_rate, format="WAV", subtype="PCM_16")
    buffer.seek(0)
    return buffer

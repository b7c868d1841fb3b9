"""Waveform overview data for the loop editor and timeline."""

import logging

import numpy as np

from .audio import load_audio

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_COUNT = 100


def waveform_peaks(samples: np.ndarray, sample_count: int = DEFAULT_SAMPLE_COUNT) -> list[float]:
    """
    Reduce samples to `sample_count` bins of mean absolute amplitude.

    Trailing samples that do not fill a whole bin are ignored. Signals shorter
    than `sample_count` use one sample per bin and pad with zeros.
    """
    if sample_count <= 0:
        return []
    magnitudes = np.abs(np.asarray(samples, dtype=np.float64))
    if magnitudes.size == 0:
        return [0.0] * sample_count

    per_bin = max(1, magnitudes.size // sample_count)
    peaks = []
    for i in range(sample_count):
        chunk = magnitudes[i * per_bin:(i + 1) * per_bin]
        peaks.append(float(chunk.mean()) if chunk.size else 0.0)
    return peaks


def stored_waveform(storage_path: str, sample_count: int = DEFAULT_SAMPLE_COUNT) -> list[float]:
    """Waveform of a stored file; zeros when the file cannot be decoded."""
    try:
        audio = load_audio(storage_path)
    except Exception as e:
        logger.warning(f"Waveform unavailable for {storage_path}: {e}")
        return [0.0] * max(sample_count, 0)
    return waveform_peaks(audio.samples, sample_count)

"""Rhythm agent - tempo and feel of a loop."""

import numpy as np

from .base import BaseAgent, AnalysisResult
from .registry import register_agent


@register_agent
class RhythmAgent(BaseAgent):
    """Estimates BPM and the rhythmic feel used for loop tags."""

    name = "rhythm"
    description = (
        "Estimate the tempo of a loop in BPM together with beat positions, "
        "swing (0 straight to 1 triplet), steadiness (0 loose to 1 steady) "
        "and whether the loop starts on an upbeat."
    )

    def analyse(self, samples: np.ndarray, sample_rate: int) -> AnalysisResult:
        try:
            import librosa

            tempo, beat_frames = librosa.beat.beat_track(y=samples, sr=sample_rate)
            # Newer librosa returns a one-element array
            tempo = float(np.atleast_1d(tempo)[0]) if np.size(tempo) else 0.0

            beat_times = librosa.frames_to_time(beat_frames, sr=sample_rate)
            onset_times = librosa.frames_to_time(
                librosa.onset.onset_detect(y=samples, sr=sample_rate), sr=sample_rate
            )

            return AnalysisResult(
                agent=self.name,
                success=True,
                data={
                    "tempo_bpm": tempo,
                    "beat_times": [float(t) for t in beat_times],
                    "onset_times": [float(t) for t in onset_times],
                    "swing": swing(beat_times, onset_times),
                    "steadiness": steadiness(beat_times),
                    "upbeat": starts_on_upbeat(beat_times, onset_times),
                },
            )
        except Exception as e:
            return self.failure(e)


def steadiness(beat_times: np.ndarray) -> float:
    """1.0 for perfectly even beats, falling to 0 at a 50% interval spread."""
    if len(beat_times) < 2:
        return 0.0
    intervals = np.diff(beat_times)
    mean = float(np.mean(intervals))
    if mean <= 0:
        return 0.0
    cv = float(np.std(intervals)) / mean
    return round(max(0.0, min(1.0, 1.0 - cv / 0.5)), 3)


def swing(beat_times: np.ndarray, onset_times: np.ndarray) -> float:
    """Median lateness of the off-beat onset, 0.0 straight to 1.0 triplet."""
    if len(beat_times) < 3 or len(onset_times) < 2:
        return 0.0

    onset_times = np.asarray(onset_times)
    ratios = []
    for start, end in zip(beat_times[:-1], beat_times[1:]):
        span = end - start
        if span <= 0:
            continue
        inner = onset_times[(onset_times > start + 0.1 * span) & (onset_times < end - 0.1 * span)]
        if inner.size == 0:
            continue
        position = (inner[0] - start) / span
        if 0.3 < position < 0.85:
            ratios.append(min(1.0, max(0.0, (position - 0.5) / 0.167)))

    return round(float(np.median(ratios)), 3) if ratios else 0.0


def starts_on_upbeat(beat_times: np.ndarray, onset_times: np.ndarray) -> bool:
    """True when something sounds clearly before the first beat."""
    if len(beat_times) < 2 or len(onset_times) == 0:
        return False
    lead = float(beat_times[1] - beat_times[0]) * 0.25
    return bool(onset_times[0] < beat_times[0] - lead)

"""Key agent - tonal centre of a loop."""

import numpy as np

from .base import BaseAgent, AnalysisResult
from .registry import register_agent

PITCH_CLASSES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

# Krumhansl-Kessler key profiles, tonic first
MAJOR_PROFILE = np.array([6.35, 2.23, 3.48, 2.33, 4.38, 4.09, 2.52, 5.19, 2.39, 3.66, 2.29, 2.88])
MINOR_PROFILE = np.array([6.33, 2.68, 3.52, 5.38, 2.60, 3.53, 2.54, 4.75, 3.98, 2.69, 3.34, 3.17])


def key_name(tonic: int, minor: bool) -> str:
    """'A' for A major, 'Am' for A minor."""
    return PITCH_CLASSES[tonic % 12] + ("m" if minor else "")


def estimate_key(chroma_mean: np.ndarray) -> tuple[str, float]:
    """
    Correlate a 12-bin pitch-class profile against every major and minor key.

    Returns:
        (key name, correlation of the best match)
    """
    best_key, best_score = "C", -np.inf
    for tonic in range(12):
        for profile, minor in ((MAJOR_PROFILE, False), (MINOR_PROFILE, True)):
            score = float(np.corrcoef(chroma_mean, np.roll(profile, tonic))[0, 1])
            if score > best_score:
                best_key, best_score = key_name(tonic, minor), score
    return best_key, best_score


@register_agent
class KeyAgent(BaseAgent):
    """Estimates the musical key from averaged chroma."""

    name = "key"
    description = (
        "Estimate the musical key of a loop (e.g. 'G' or 'Em') from its "
        "pitch-class energy, with a 0-1 confidence."
    )

    def analyse(self, samples: np.ndarray, sample_rate: int) -> AnalysisResult:
        try:
            import librosa

            chroma = librosa.feature.chroma_stft(y=samples, sr=sample_rate)
            chroma_mean = np.mean(chroma, axis=1)
            if not np.any(chroma_mean) or np.allclose(chroma_mean, chroma_mean[0]):
                return AnalysisResult(agent=self.name, success=True, data={"key": None, "confidence": 0.0})

            key, score = estimate_key(chroma_mean)
            return AnalysisResult(
                agent=self.name,
                success=True,
                data={
                    "key": key,
                    "confidence": round(max(0.0, score), 3),
                    "chroma": [float(v) for v in chroma_mean],
                },
            )
        except Exception as e:
            return self.failure(e)

"""Spectral agent - brightness and texture of a loop."""

import numpy as np

from .base import BaseAgent, AnalysisResult
from .registry import register_agent


@register_agent
class SpectralAgent(BaseAgent):
    """Agent for frequency domain features used as loop tags."""

    name = "spectral"
    description = (
        "Measure spectral centroid (brightness) and flatness (tonal versus "
        "noisy) of a loop."
    )

    def analyse(self, samples: np.ndarray, sample_rate: int) -> AnalysisResult:
        try:
            import librosa

            centroid = librosa.feature.spectral_centroid(y=samples, sr=sample_rate)[0]
            flatness = librosa.feature.spectral_flatness(y=samples)[0]

            return AnalysisResult(
                agent=self.name,
                success=True,
                data={
                    "spectral_centroid": {
                        "mean": float(np.mean(centroid)),
                        "std": float(np.std(centroid)),
                    },
                    "spectral_flatness": {
                        "mean": float(np.mean(flatness)),
                        "interpretation": "tonal" if np.mean(flatness) < 0.1 else "noisy",
                    },
                },
            )
        except Exception as e:
            return self.failure(e)

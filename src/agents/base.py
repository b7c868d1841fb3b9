"""Base agent class and common types."""

from abc import ABC, abstractmethod
from typing import Any

import numpy as np
from pydantic import BaseModel


class AnalysisResult(BaseModel):
    """Result from an analysis agent."""

    agent: str
    success: bool
    data: dict[str, Any] = {}
    error: str | None = None


class BaseAgent(ABC):
    """Base class for analysis agents run over loop audio."""

    name: str
    description: str

    def __init__(self):
        if not getattr(self, "name", None):
            raise TypeError(f"{self.__class__.__name__} must define 'name'")
        if not getattr(self, "description", None):
            raise TypeError(f"{self.__class__.__name__} must define 'description'")

    @abstractmethod
    def analyse(self, samples: np.ndarray, sample_rate: int) -> AnalysisResult:
        """
        Perform analysis on mono audio.

        Args:
            samples: Audio samples as numpy array
            sample_rate: Sample rate in Hz

        Returns:
            AnalysisResult containing the analysis output
        """

    def failure(self, error: Exception | str) -> AnalysisResult:
        return AnalysisResult(agent=self.name, success=False, error=str(error))

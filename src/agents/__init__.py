"""Audio analysis agents that fill in loop metadata."""

from .base import BaseAgent, AnalysisResult
from .registry import register_agent, get_all_agents, get_agent, AGENT_REGISTRY
from .key import KeyAgent
from .rhythm import RhythmAgent
from .spectral import SpectralAgent

__all__ = [
    "BaseAgent",
    "AnalysisResult",
    "register_agent",
    "get_all_agents",
    "get_agent",
    "AGENT_REGISTRY",
    "KeyAgent",
    "RhythmAgent",
    "SpectralAgent",
]

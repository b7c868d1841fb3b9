# tests/test_agents/test_registry.py
import numpy as np
import pytest
from src.agents.base import AnalysisResult, BaseAgent
from src.agents.registry import AGENT_REGISTRY, get_agent, get_all_agents, register_agent


class TestRegistry:

    def test_builtin_agents_are_registered(self):
        names = {a.name for a in get_all_agents()}
        assert {"rhythm", "key", "spectral"} <= names

    def test_get_agent_by_name(self):
        assert get_agent("key").name == "key"
        assert get_agent("nope") is None

    def test_every_agent_has_a_description(self):
        for agent in get_all_agents():
            assert len(agent.description) > 20

    def test_register_agent_decorator(self):

        @register_agent
        class LoudnessAgent(BaseAgent):
            name = "loudness-test"
            description = "Peak level of a loop, used only in this test"

            def analyse(self, samples, sample_rate):
                return AnalysisResult(agent=self.name, success=True, data={"peak": float(np.max(np.abs(samples)))})

        try:
            assert get_agent("loudness-test").analyse(np.array([0.5, -0.8]), 10).data["peak"] == 0.8
        finally:
            AGENT_REGISTRY.pop("loudness-test", None)


class TestBaseAgent:

    def test_requires_description(self):

        class IncompleteAgent(BaseAgent):
            name = "incomplete"

            def analyse(self, samples, sample_rate):
                return AnalysisResult(agent=self.name, success=True, data={})

        with pytest.raises(TypeError, match="description"):
            IncompleteAgent()

    def test_failure_helper(self):
        result = get_agent("spectral").failure(ValueError("bad input"))
        assert not result.success
        assert result.error == "bad input"

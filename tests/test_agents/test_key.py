# tests/test_agents/test_key.py
import numpy as np
import pytest

from src.agents.key import MAJOR_PROFILE, MINOR_PROFILE, KeyAgent, estimate_key, key_name


class TestKeyName:
    def test_major_and_minor_names(self):
        assert key_name(9, minor=False) == "A"
        assert key_name(9, minor=True) == "Am"
        assert key_name(13, minor=False) == "C#"


class TestEstimateKey:
    def test_profile_matches_its_own_key(self):
        key, score = estimate_key(np.roll(MAJOR_PROFILE, 7))
        assert key == "G"
        assert score == pytest.approx(1.0)

    def test_minor_profile(self):
        key, _ = estimate_key(np.roll(MINOR_PROFILE, 4))
        assert key == "Em"


class TestKeyAgent:
    def test_a_major_triad(self):
        sr = 22050
        t = np.arange(int(sr * 2.0)) / sr
        # A4, C#5, E5
        samples = sum(np.sin(2 * np.pi * f * t) for f in (440.0, 554.37, 659.25)).astype(np.float32) / 3

        result = KeyAgent().analyse(samples, sr)

        assert result.success
        assert result.data["key"] in ("A", "E", "F#m", "C#m")
        assert 0.0 <= result.data["confidence"] <= 1.0
        assert len(result.data["chroma"]) == 12

    def test_silence_has_no_key(self):
        result = KeyAgent().analyse(np.zeros(22050, dtype=np.float32), 22050)
        assert result.success
        assert result.data["key"] is None

"""Tests for the rhythm agent and its feel measures: swing, steadiness, upbeat."""

import numpy as np
import pytest
from src.agents.rhythm import RhythmAgent, starts_on_upbeat, steadiness, swing


@pytest.fixture
def agent():
    return RhythmAgent()


@pytest.fixture
def click_track_120bpm():
    """Generate a synthetic click track at 120 BPM, 4/4, straight, steady."""
    sr = 22050
    duration = 4.0
    samples = np.zeros(int(sr * duration), dtype=np.float32)
    beat_interval = 0.5
    for i in range(int(duration / beat_interval)):
        pos = int(i * beat_interval * sr)
        click_len = min(200, len(samples) - pos)
        samples[pos : pos + click_len] = 0.8 * np.sin(
            2 * np.pi * 1000 * np.arange(click_len) / sr
        )
    return samples, sr


class TestRhythmAgent:

    def test_result_contains_feel_measures(self, agent, click_track_120bpm):
        samples, sr = click_track_120bpm
        result = agent.analyse(samples, sr)
        assert result.success
        for key in ("tempo_bpm", "beat_times", "onset_times", "swing", "steadiness", "upbeat"):
            assert key in result.data
        assert 0.0 <= result.data["swing"] <= 1.0
        assert 0.0 <= result.data["steadiness"] <= 1.0
        assert isinstance(result.data["upbeat"], bool)

    def test_tempo_is_positive(self, agent, click_track_120bpm):
        samples, sr = click_track_120bpm
        result = agent.analyse(samples, sr)
        assert result.data["tempo_bpm"] > 0

    def test_failure_is_reported_not_raised(self, agent):
        result = agent.analyse(np.array([], dtype=np.float32), 22050)
        if not result.success:
            assert result.error


class TestFeelMeasures:

    def test_even_beats_are_steady(self):
        assert steadiness(np.arange(0, 4, 0.5)) == pytest.approx(1.0)

    def test_uneven_beats_are_loose(self):
        beats = np.array([0.0, 0.3, 1.0, 1.2, 2.1, 2.3])
        assert steadiness(beats) < 0.4

    def test_too_few_beats(self):
        assert steadiness(np.array([0.5])) == 0.0
        assert swing(np.array([0.0, 0.5]), np.array([0.1, 0.2])) == 0.0

    def test_straight_eighths_have_no_swing(self):
        beats = np.arange(0, 4, 0.5)
        onsets = np.sort(np.concatenate([beats, beats[:-1] + 0.25]))
        assert swing(beats, onsets) == pytest.approx(0.0)

    def test_triplet_feel_is_fully_swung(self):
        beats = np.arange(0, 4, 0.5)
        onsets = np.sort(np.concatenate([beats, beats[:-1] + 0.5 * 0.667]))
        assert swing(beats, onsets) == pytest.approx(1.0, abs=0.01)

    def test_pickup_note_starts_on_upbeat(self):
        beats = np.array([1.0, 1.5, 2.0])
        assert starts_on_upbeat(beats, np.array([0.6, 1.0, 1.5]))
        assert not starts_on_upbeat(beats, np.array([1.0, 1.5]))

"""Tests for rule-based loop tags."""

import pytest
from src.loops.descriptors import generate_descriptors, rhythm_descriptors, spectral_descriptors


class TestRhythmDescriptors:

    def test_fast_tempo_returns_driving(self):
        dims = {"tempo_bpm": 150, "swing": 0.0, "steadiness": 0.5, "upbeat": False}
        assert "driving" in rhythm_descriptors(dims)

    def test_slow_tempo_returns_laid_back(self):
        dims = {"tempo_bpm": 80, "swing": 0.0, "steadiness": 0.5, "upbeat": False}
        assert "laid-back" in rhythm_descriptors(dims)

    def test_moderate_tempo(self):
        dims = {"tempo_bpm": 110, "swing": 0.0, "steadiness": 0.5, "upbeat": False}
        assert "moderate-tempo" in rhythm_descriptors(dims)

    def test_high_swing_returns_swung(self):
        dims = {"tempo_bpm": 110, "swing": 0.6, "steadiness": 0.5, "upbeat": False}
        assert "swung" in rhythm_descriptors(dims)

    def test_low_swing_returns_straight(self):
        dims = {"tempo_bpm": 110, "swing": 0.05, "steadiness": 0.5, "upbeat": False}
        assert "straight" in rhythm_descriptors(dims)

    def test_high_steadiness_returns_steady(self):
        dims = {"tempo_bpm": 110, "swing": 0.0, "steadiness": 0.9, "upbeat": False}
        assert "steady" in rhythm_descriptors(dims)

    def test_low_steadiness_returns_loose(self):
        dims = {"tempo_bpm": 110, "swing": 0.0, "steadiness": 0.3, "upbeat": False}
        assert "loose" in rhythm_descriptors(dims)

    def test_upbeat_returns_upbeat_start(self):
        dims = {"tempo_bpm": 110, "swing": 0.0, "steadiness": 0.5, "upbeat": True}
        assert "upbeat-start" in rhythm_descriptors(dims)


class TestSpectralDescriptors:

    def test_bright(self):
        assert spectral_descriptors({"spectral_centroid": {"mean": 4000}}) == ["bright"]

    def test_warm_and_noisy(self):
        data = {
            "spectral_centroid": {"mean": 900},
            "spectral_flatness": {"interpretation": "noisy"},
        }
        assert spectral_descriptors(data) == ["warm", "noisy"]

    def test_middle_of_the_road(self):
        assert spectral_descriptors({"spectral_centroid": {"mean": 2000}}) == []


def test_generate_descriptors_combines_both():
    tags = generate_descriptors(
        {"tempo_bpm": 150, "swing": 0.0, "steadiness": 0.9, "upbeat": False},
        {"spectral_centroid": {"mean": 4000}},
    )
    assert tags == ["driving", "straight", "steady", "bright"]


def test_generate_descriptors_without_spectral():
    assert generate_descriptors({"tempo_bpm": 100, "swing": 0.2, "steadiness": 0.6}, None) == ["moderate-tempo"]

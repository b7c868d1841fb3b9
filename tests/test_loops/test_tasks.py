"""Tests for the analyse_loop Celery task."""

from unittest.mock import MagicMock, patch

from django.contrib.auth.models import User
from django.test import TestCase

from src.agents.base import AnalysisResult
from src.loops.models import Loop
from src.loops.tasks import analyse_loop


def rhythm_result(tempo=119.6):
    return AnalysisResult(agent="rhythm", success=True, data={
        "tempo_bpm": tempo, "swing": 0.05, "steadiness": 0.9, "upbeat": False,
        "beat_times": [0.5, 1.0], "onset_times": [0.1, 0.5],
    })


def key_result(key="Am"):
    return AnalysisResult(agent="key", success=True, data={"key": key, "confidence": 0.8})


def spectral_result():
    return AnalysisResult(agent="spectral", success=True, data={"spectral_centroid": {"mean": 4000}})


@patch("src.loops.tasks.notify_job")
@patch("src.loops.tasks.SpectralAgent")
@patch("src.loops.tasks.KeyAgent")
@patch("src.loops.tasks.RhythmAgent")
@patch("src.loops.tasks.load_audio")
class TestAnalyseLoopTask(TestCase):

    def setUp(self):
        self.user = User.objects.create_user(username="test", password="test")
        self.loop = Loop.objects.create(
            user=self.user,
            song_title="Wonderwall",
            song_artist="Oasis",
            part_type="Intro",
            length_seconds=8.0,
            file_path="loops/intro.wav",
            is_imported=True,
        )

    def configure(self, mock_load, mock_rhythm, mock_key, mock_spectral):
        mock_load.return_value = MagicMock(samples=MagicMock(), sample_rate=22050)
        mock_rhythm.return_value.analyse.return_value = rhythm_result()
        mock_key.return_value.analyse.return_value = key_result()
        mock_spectral.return_value.analyse.return_value = spectral_result()

    def test_stores_bpm_key_and_tags(self, mock_load, mock_rhythm, mock_key, mock_spectral, mock_notify):
        self.configure(mock_load, mock_rhythm, mock_key, mock_spectral)

        analyse_loop(str(self.loop.id))

        self.loop.refresh_from_db()
        assert self.loop.analysis_status == Loop.AnalysisStatus.COMPLETE
        assert self.loop.bpm == 120
        assert self.loop.key == "Am"
        assert self.loop.tags == ["moderate-tempo", "straight", "steady", "bright"]
        assert self.loop.analyzed_at is not None
        statuses = [c.args[3] for c in mock_notify.call_args_list]
        assert statuses == [Loop.AnalysisStatus.ANALYZING, Loop.AnalysisStatus.COMPLETE]

    def test_keeps_values_the_user_set(self, mock_load, mock_rhythm, mock_key, mock_spectral, mock_notify):
        self.configure(mock_load, mock_rhythm, mock_key, mock_spectral)
        self.loop.update_metadata(bpm=87, tags=["acoustic", "bright"])

        analyse_loop(str(self.loop.id))

        self.loop.refresh_from_db()
        assert self.loop.bpm == 87
        assert self.loop.key == "Am"
        assert self.loop.tags == ["acoustic", "bright", "moderate-tempo", "straight", "steady"]

    def test_zero_tempo_leaves_bpm_unknown(self, mock_load, mock_rhythm, mock_key, mock_spectral, mock_notify):
        self.configure(mock_load, mock_rhythm, mock_key, mock_spectral)
        mock_rhythm.return_value.analyse.return_value = rhythm_result(tempo=0)

        analyse_loop(str(self.loop.id))

        self.loop.refresh_from_db()
        assert self.loop.bpm is None
        assert self.loop.analysis_status == Loop.AnalysisStatus.COMPLETE

    def test_missing_audio_marks_failed(self, mock_load, mock_rhythm, mock_key, mock_spectral, mock_notify):
        mock_load.side_effect = FileNotFoundError("audio not found")

        analyse_loop(str(self.loop.id))

        self.loop.refresh_from_db()
        assert self.loop.analysis_status == Loop.AnalysisStatus.FAILED
        assert "audio not found" in self.loop.analysis_error
        assert mock_notify.call_args.args[3] == Loop.AnalysisStatus.FAILED

    def test_failed_agent_marks_failed(self, mock_load, mock_rhythm, mock_key, mock_spectral, mock_notify):
        self.configure(mock_load, mock_rhythm, mock_key, mock_spectral)
        mock_key.return_value.analyse.return_value = AnalysisResult(
            agent="key", success=False, data={}, error="no chroma"
        )

        analyse_loop(str(self.loop.id))

        self.loop.refresh_from_db()
        assert self.loop.analysis_status == Loop.AnalysisStatus.FAILED
        assert "no chroma" in self.loop.analysis_error
        assert self.loop.bpm is None

    def test_unknown_loop_is_ignored(self, mock_load, mock_rhythm, mock_key, mock_spectral, mock_notify):
        analyse_loop("00000000-0000-0000-0000-000000000000")
        mock_load.assert_not_called()
        mock_notify.assert_not_called()

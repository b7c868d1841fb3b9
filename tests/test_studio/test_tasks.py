"""Tests for the export_composition Celery task."""

import io
from unittest.mock import patch

import numpy as np
import soundfile as sf
from django.contrib.auth.models import User
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage
from django.test import TestCase

from src.library.models import Song
from src.studio.models import Composition
from src.studio.tasks import build_sources, export_composition
from tests.conftest import make_wav_bytes

SR = 8000


def read_export(path):
    with default_storage.open(path, "rb") as f:
        return sf.read(io.BytesIO(f.read()))


@patch("src.studio.tasks.notify_job")
class TestExportComposition(TestCase):

    def setUp(self):
        self.user = User.objects.create_user(username="test", password="test")
        song = Song.objects.add_song(self.user, "Wonderwall", "Oasis", "Intro")
        self.part = song.parts.get()
        self.composition = Composition.objects.create(user=self.user, title="Jam")

    def add_recording(self, samples=None):
        path = default_storage.save("recordings/mix.wav", ContentFile(make_wav_bytes(samples, SR)))
        with patch("src.loops.tasks.analyse_loop.delay"):
            return self.part.add_recording(file_path=path, duration_seconds=1.0)

    def test_renders_to_storage(self, mock_notify):
        track = self.composition.add_track(self.add_recording())
        track.start_time = 0.5
        track.save()

        export_composition(str(self.composition.id))

        self.composition.refresh_from_db()
        assert self.composition.export_status == Composition.ExportStatus.COMPLETE
        assert self.composition.export_path.startswith("mixdowns/")
        assert self.composition.exported_at is not None
        samples, sample_rate = read_export(self.composition.export_path)
        assert sample_rate == SR
        assert len(samples) == int(1.5 * SR)
        assert np.max(np.abs(samples[: SR // 2])) == 0.0
        statuses = [c.args[3] for c in mock_notify.call_args_list]
        assert statuses == [Composition.ExportStatus.RENDERING, Composition.ExportStatus.COMPLETE]

    def test_fixed_duration_repeats_loop(self, mock_notify):
        recording = self.add_recording(np.full(SR, 0.25))
        recording.set_loop_region(0.0, 0.5)
        self.composition.add_track(recording)
        self.composition.duration = 2.0
        self.composition.save()

        export_composition(str(self.composition.id))

        self.composition.refresh_from_db()
        samples, _ = read_export(self.composition.export_path)
        assert len(samples) == 2 * SR
        assert np.allclose(samples, 0.25, atol=1e-3)

    def test_muted_tracks_are_silent(self, mock_notify):
        loud = self.composition.add_track(self.add_recording(np.full(SR, 0.5)))
        quiet = self.composition.add_track(self.add_recording(np.full(SR, 0.5)))
        loud.is_muted = True
        loud.save()
        quiet.volume = 0.5
        quiet.save()

        sources = build_sources(self.composition, SR)

        assert len(sources) == 1
        assert sources[0].volume == 0.5

    def test_only_muted_tracks_fails(self, mock_notify):
        track = self.composition.add_track(self.add_recording())
        track.is_muted = True
        track.save()

        export_composition(str(self.composition.id))

        self.composition.refresh_from_db()
        assert self.composition.export_status == Composition.ExportStatus.FAILED
        assert "no audible tracks" in self.composition.export_error
        assert mock_notify.call_args.args[3] == Composition.ExportStatus.FAILED

    def test_missing_audio_fails(self, mock_notify):
        recording = self.add_recording()
        default_storage.delete(recording.file_path)
        self.composition.add_track(recording)

        export_composition(str(self.composition.id))

        self.composition.refresh_from_db()
        assert self.composition.export_status == Composition.ExportStatus.FAILED
        assert "not found" in self.composition.export_error

    def test_unknown_composition_is_ignored(self, mock_notify):
        export_composition("00000000-0000-0000-0000-000000000000")
        mock_notify.assert_not_called()

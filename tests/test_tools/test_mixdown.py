# tests/test_tools/test_mixdown.py
import io

import numpy as np
import pytest
import soundfile as sf

from src.tools.mixdown import MixSource, encode_wav, mix_length, render_mix

SR = 10


class TestMixLength:
    def test_positive_duration_wins(self):
        sources = [MixSource(samples=np.ones(50), start_time=0)]
        assert mix_length(sources, 2.0, SR) == 20

    def test_zero_duration_ends_with_last_source(self):
        sources = [
            MixSource(samples=np.ones(10), start_time=0),
            MixSource(samples=np.ones(10), start_time=2.0),
        ]
        assert mix_length(sources, 0, SR) == 30

    def test_zero_duration_counts_loop_region_once(self):
        sources = [MixSource(samples=np.ones(40), start_time=0, loop_region=(0.0, 1.0))]
        assert mix_length(sources, 0, SR) == 10


class TestRenderMix:
    def test_sources_are_summed_at_their_offsets(self):
        sources = [
            MixSource(samples=np.full(10, 0.25), start_time=0),
            MixSource(samples=np.full(10, 0.25), start_time=0.5),
        ]
        mix = render_mix(sources, 2.0, SR)
        assert len(mix) == 20
        assert mix[0] == pytest.approx(0.25)
        assert mix[7] == pytest.approx(0.5)
        assert mix[12] == pytest.approx(0.25)
        assert mix[16] == pytest.approx(0.0)

    def test_volume_scales_track(self):
        mix = render_mix([MixSource(samples=np.full(10, 0.8), start_time=0, volume=0.5)], 0, SR)
        assert np.allclose(mix, 0.4)

    def test_output_is_clipped(self):
        sources = [MixSource(samples=np.full(10, 0.9), start_time=0) for _ in range(3)]
        mix = render_mix(sources, 0, SR)
        assert mix.max() == pytest.approx(1.0)
        assert mix.dtype == np.float32

    def test_loop_repeats_until_duration(self):
        samples = np.concatenate([np.full(5, 0.1), np.full(5, 0.2)])
        mix = render_mix([MixSource(samples=samples, start_time=0, loop_region=(0.5, 1.0))], 2.0, SR)
        assert np.allclose(mix, 0.2)

    def test_non_loop_is_cut_at_duration(self):
        mix = render_mix([MixSource(samples=np.full(50, 0.3), start_time=0)], 1.0, SR)
        assert len(mix) == 10

    def test_empty_loop_region_is_skipped(self):
        mix = render_mix([MixSource(samples=np.ones(10), start_time=0, loop_region=(0.5, 0.5))], 1.0, SR)
        assert np.allclose(mix, 0.0)


def test_encode_wav_roundtrips_length():
    buf = encode_wav(np.zeros(800, dtype=np.float32), 8000)
    data, sr = sf.read(io.BytesIO(buf.read()))
    assert sr == 8000
    assert len(data) == 800

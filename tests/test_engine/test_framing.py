"""Tests for frame windowing and the spectral transformer."""

import numpy as np
import pytest

from cratetagger.core.framing import frame_count, frame_rms, frame_starts, iter_frames
from cratetagger.core.spectrum import (
    bin_frequencies,
    lower_half,
    magnitude_spectrum,
    mean_magnitude_spectrum,
)


class TestFrameCount:
    @pytest.mark.parametrize(
        "n_samples,expected",
        [(0, 1), (1000, 1), (1024, 1), (1535, 1), (1536, 2), (2047, 2), (2048, 3)],
    )
    def test_counts_full_windows(self, n_samples, expected):
        assert frame_count(n_samples, 1024, 512) == expected

    def test_rejects_non_positive_sizes(self):
        with pytest.raises(ValueError):
            frame_count(100, 0, 512)
        with pytest.raises(ValueError):
            frame_count(100, 1024, -1)


class TestIterFrames:
    def test_windows_start_at_hop_multiples(self):
        samples = np.arange(4096, dtype=np.float64)
        frames = list(iter_frames(samples, 1024, 512))

        assert len(frames) == frame_count(4096, 1024, 512)
        assert [int(f[0]) for f in frames] == list(frame_starts(4096, 1024, 512))
        assert all(len(f) == 1024 for f in frames)

    def test_windows_are_views(self):
        samples = np.ones(4096)
        frame = next(iter_frames(samples, 1024, 512))
        assert np.shares_memory(frame, samples)

    def test_short_buffer_yields_one_padded_window(self):
        frames = list(iter_frames(np.array([1.0, 2.0, 3.0]), 8, 4))

        assert len(frames) == 1
        assert list(frames[0]) == [1.0, 2.0, 3.0, 0.0, 0.0, 0.0, 0.0, 0.0]

    def test_empty_buffer_yields_zero_window(self):
        frames = list(iter_frames(np.zeros(0), 16, 8))
        assert len(frames) == 1
        assert not frames[0].any()

    def test_invalid_hop_raises_on_iteration(self):
        with pytest.raises(ValueError):
            list(iter_frames(np.zeros(10), 4, 0))


class TestFrameRms:
    def test_constant_signal(self):
        rms = frame_rms(np.full(4096, 0.5), 1024, 512)
        assert np.allclose(rms, 0.5)

    def test_normalized_by_full_window_length(self):
        # 512 loud samples in a 1024 window
        samples = np.zeros(1024)
        samples[:512] = 1.0
        assert frame_rms(samples, 1024, 512)[0] == pytest.approx(np.sqrt(0.5))


class TestSpectrum:
    def test_silence_has_zero_magnitude(self):
        assert not magnitude_spectrum(np.zeros(64)).any()

    def test_impulse_is_flat(self):
        spectrum = magnitude_spectrum(np.array([1.0, 0.0, 0.0, 0.0]))
        assert np.allclose(spectrum, 1.0)

    def test_length_matches_window(self):
        assert len(magnitude_spectrum(np.ones(2048))) == 2048
        assert len(magnitude_spectrum(np.ones(1000))) == 1000

    def test_empty_window(self):
        assert len(magnitude_spectrum(np.zeros(0))) == 0

    def test_bin_frequencies(self):
        assert list(bin_frequencies(4, 8)) == [0.0, 2.0, 4.0, 6.0]

    def test_lower_half_excludes_nyquist_bin(self):
        assert len(lower_half(np.arange(2048))) == 1024
        assert len(lower_half(np.arange(5))) == 2

    def test_mean_spectrum_of_constant_windows(self):
        samples = np.zeros(4096)
        mean = mean_magnitude_spectrum(samples, 2048, 512)
        assert mean.shape == (2048,)
        assert not mean.any()

"""Tests for FeatureExtractor."""

import numpy as np
import pytest

from cratetagger.core.features import FeatureExtractor
from cratetagger.core.models import PcmBuffer
from cratetagger.core.spectrum import mean_magnitude_spectrum
from cratetagger.utils.config import AnalysisSettings

SR = 44100
BIN_20_FREQ = 20 * SR / 2048
BIN_30_FREQ = 30 * SR / 2048


def sine(freq, seconds=1.0, amplitude=0.5):
    t = np.arange(int(seconds * SR)) / SR
    return amplitude * np.sin(2 * np.pi * freq * t)


class TestExtractSilence:
    def test_silent_buffer_gives_documented_defaults(self, silence):
        features = FeatureExtractor.extract(silence)

        assert features.spectral_centroid == 0.0
        assert features.spectral_rolloff == SR / 2
        assert features.zero_crossing_rate == 0.0
        assert features.mel_bands == (0.0,) * 13
        assert features.chroma == (0.0,) * 12
        assert features.tempo_bpm == 120
        assert features.energy == 0.0
        assert (features.attack, features.sustain, features.decay) == (0.0, 0.0, 0.0)
        assert features.onset_count == 0
        assert features.duration == pytest.approx(2.0)

    def test_empty_buffer(self):
        features = FeatureExtractor.extract(PcmBuffer(np.zeros(0), SR))

        assert features.energy == 0.0
        assert features.tempo_bpm == 120
        assert features.duration == 0.0

    def test_shorter_than_one_window(self):
        features = FeatureExtractor.extract(PcmBuffer(sine(1000, seconds=0.01), SR))
        assert features.spectral_centroid > 0.0


class TestExtractSine:
    def test_centroid_and_rolloff_at_tone(self, bin_sine):
        features = FeatureExtractor.extract(bin_sine)

        assert features.spectral_centroid == pytest.approx(BIN_20_FREQ, rel=1e-3)
        assert features.spectral_rolloff == pytest.approx(BIN_20_FREQ)

    def test_energy_is_rms(self, bin_sine):
        features = FeatureExtractor.extract(bin_sine)
        assert features.energy == pytest.approx(0.5 / np.sqrt(2), rel=1e-3)

    def test_deterministic(self, bin_sine):
        assert FeatureExtractor.extract(bin_sine) == FeatureExtractor.extract(bin_sine)

    def test_settings_are_respected(self, bin_sine):
        settings = AnalysisSettings(rolloff_fraction=1.0)
        features = FeatureExtractor.extract(bin_sine, settings)
        assert features.spectral_rolloff >= BIN_20_FREQ

    def test_constant_tone_reports_measured_tempo(self, bin_sine):
        # Every envelope window is above threshold, so the tempo clamps high
        features = FeatureExtractor.extract(bin_sine)
        assert features.tempo_measured
        assert features.tempo_bpm == 200


class TestZeroCrossingRate:
    def test_alternating_signal(self):
        assert FeatureExtractor.zero_crossing_rate(np.array([1.0, -1.0, 1.0, -1.0])) == 0.75

    def test_zero_counts_as_non_negative(self):
        assert FeatureExtractor.zero_crossing_rate(np.array([0.0, 0.0, 0.0])) == 0.0
        assert FeatureExtractor.zero_crossing_rate(np.array([0.0, -0.5])) == 0.5

    def test_empty(self):
        assert FeatureExtractor.zero_crossing_rate(np.zeros(0)) == 0.0


class TestEnergy:
    def test_rms(self):
        assert FeatureExtractor.energy(np.array([1.0, -1.0, 1.0, -1.0])) == 1.0
        assert FeatureExtractor.energy(np.array([3.0, 4.0])) == pytest.approx(np.sqrt(12.5))

    def test_empty(self):
        assert FeatureExtractor.energy(np.zeros(0)) == 0.0


class TestSpectralShape:
    def test_rolloff_of_silence_is_nyquist(self):
        assert FeatureExtractor.spectral_rolloff(np.zeros(2048), 48000) == 24000.0

    def test_centroid_of_silence(self):
        assert FeatureExtractor.spectral_centroid(np.zeros(2048), SR) == 0.0

    def test_mel_bands_silent(self):
        assert FeatureExtractor.mel_bands(np.zeros(2048)) == (0.0,) * 13

    def test_mel_bands_low_tone_fills_first_band(self):
        spectrum = mean_magnitude_spectrum(sine(BIN_20_FREQ), 2048, 512)
        bands = FeatureExtractor.mel_bands(spectrum)

        assert len(bands) == 13
        assert int(np.argmax(bands)) == 0


class TestChroma:
    def test_silent(self):
        assert FeatureExtractor.chroma(np.zeros(SR), SR) == (0.0,) * 12

    @pytest.mark.parametrize("freq,pitch_class", [(BIN_20_FREQ, 0), (BIN_30_FREQ, 7)])
    def test_tone_lands_in_its_pitch_class(self, freq, pitch_class):
        chroma = FeatureExtractor.chroma(sine(freq), SR)

        assert len(chroma) == 12
        assert int(np.argmax(chroma)) == pitch_class

    def test_out_of_range_tone_is_ignored(self):
        chroma = FeatureExtractor.chroma(sine(BIN_20_FREQ), SR, min_freq=1000.0)
        assert max(chroma) < 1e-6

"""
Feature extractor for cratetagger.

Computes the spectral and temporal descriptors every analyzer reads.
Spectral descriptors come from the mean magnitude spectrum across all
analysis windows; zero-crossing rate and energy come from the raw buffer.
"""

from typing import Optional, Tuple

import numpy as np

from cratetagger.core.framing import iter_frames
from cratetagger.core.models import N_CHROMA, N_MEL_BANDS, AudioFeatures, PcmBuffer
from cratetagger.core.spectrum import (
    bin_frequencies,
    lower_half,
    magnitude_spectrum,
    mean_magnitude_spectrum,
)
from cratetagger.utils.config import AnalysisSettings

MEL_EPSILON = 1e-10


class FeatureExtractor:
    """
    Stateless feature extraction.

    All methods are static; ``extract`` runs the whole numeric pipeline and
    the remaining methods compute one descriptor each.
    """

    @staticmethod
    def extract(buffer: PcmBuffer, settings: Optional[AnalysisSettings] = None) -> AudioFeatures:
        """
        Extract the full feature snapshot from a PCM buffer.

        Silent or empty buffers are valid input and produce the documented
        zero/default values.
        """
        from cratetagger.analyzers.envelope import EnvelopeEstimator
        from cratetagger.analyzers.tempo import TempoEstimator

        settings = settings or AnalysisSettings()
        samples = buffer.samples
        sr = buffer.sample_rate

        spectrum = mean_magnitude_spectrum(
            samples, settings.spectral_window, settings.spectral_hop
        )
        envelope = EnvelopeEstimator(
            window_size=settings.envelope_window,
            hop_size=settings.envelope_hop,
        ).estimate(samples, sr)
        tempo = TempoEstimator(
            window_size=settings.envelope_window,
            hop_size=settings.envelope_hop,
            threshold=settings.onset_threshold,
            min_bpm=settings.min_bpm,
            max_bpm=settings.max_bpm,
            default_bpm=settings.default_bpm,
        ).estimate(samples, sr)

        return AudioFeatures(
            spectral_centroid=FeatureExtractor.spectral_centroid(spectrum, sr),
            spectral_rolloff=FeatureExtractor.spectral_rolloff(
                spectrum, sr, settings.rolloff_fraction
            ),
            zero_crossing_rate=FeatureExtractor.zero_crossing_rate(samples),
            mel_bands=FeatureExtractor.mel_bands(spectrum),
            chroma=FeatureExtractor.chroma(
                samples,
                sr,
                window_size=settings.spectral_window,
                hop_size=settings.spectral_hop,
                min_freq=settings.chroma_min_freq,
                max_freq=settings.chroma_max_freq,
            ),
            tempo_bpm=tempo.bpm,
            energy=FeatureExtractor.energy(samples),
            attack=envelope.attack,
            sustain=envelope.sustain,
            decay=envelope.decay,
            onset_count=tempo.onset_count,
            sample_rate=sr,
            duration=buffer.duration,
        )

    @staticmethod
    def spectral_centroid(spectrum: np.ndarray, sample_rate: int) -> float:
        """
        Magnitude-weighted mean frequency over bins 0 .. N/2.

        Args:
            spectrum: Full N-bin magnitude spectrum
            sample_rate: Sample rate in Hz

        Returns:
            float: Centroid in Hz, 0.0 when the spectrum is empty or silent
        """
        half = lower_half(spectrum)
        total = float(np.sum(half))
        if total <= 0.0:
            return 0.0
        freqs = bin_frequencies(len(spectrum), sample_rate)[: len(half)]
        return float(np.sum(freqs * half) / total)

    @staticmethod
    def spectral_rolloff(
        spectrum: np.ndarray,
        sample_rate: int,
        fraction: float = 0.85,
    ) -> float:
        """
        Frequency of the first bin where cumulative magnitude reaches
        ``fraction`` of the lower-half total.

        Returns:
            float: Rolloff in Hz; the Nyquist frequency when the threshold
            is never reached (silent input)
        """
        half = lower_half(spectrum)
        total = float(np.sum(half))
        nyquist = sample_rate / 2.0
        if total <= 0.0:
            return nyquist

        cumulative = np.cumsum(half)
        reached = np.nonzero(cumulative >= fraction * total)[0]
        if reached.size == 0:
            return nyquist
        return float(reached[0] * sample_rate / len(spectrum))

    @staticmethod
    def zero_crossing_rate(samples: np.ndarray) -> float:
        """Fraction of adjacent-sample sign changes over the raw buffer."""
        n = len(samples)
        if n == 0:
            return 0.0
        non_negative = samples >= 0
        crossings = int(np.count_nonzero(non_negative[1:] != non_negative[:-1]))
        return crossings / n

    @staticmethod
    def chroma(
        samples: np.ndarray,
        sample_rate: int,
        window_size: int = 2048,
        hop_size: int = 512,
        min_freq: float = 80.0,
        max_freq: float = 5000.0,
    ) -> Tuple[float, ...]:
        """
        Pitch-class energy summed over every window of the buffer.

        Each lower-half bin with frequency in [min_freq, max_freq] adds its
        magnitude to class ``round(12 * log2(f / 440)) mod 12``.

        Returns:
            Tuple of 12 floats (all zero for silent input)
        """
        freqs = lower_half(bin_frequencies(window_size, sample_rate))
        in_range = (freqs >= min_freq) & (freqs <= max_freq)
        if not np.any(in_range):
            return tuple(0.0 for _ in range(N_CHROMA))

        semitones = np.floor(12.0 * np.log2(freqs[in_range] / 440.0) + 0.5).astype(np.int64)
        pitch_classes = np.mod(semitones, N_CHROMA)

        chroma = np.zeros(N_CHROMA, dtype=np.float64)
        for frame in iter_frames(samples, window_size, hop_size):
            magnitudes = lower_half(magnitude_spectrum(frame))[in_range]
            chroma += np.bincount(pitch_classes, weights=magnitudes, minlength=N_CHROMA)

        return tuple(float(v) for v in chroma)

    @staticmethod
    def mel_bands(spectrum: np.ndarray, n_bands: int = N_MEL_BANDS) -> Tuple[float, ...]:
        """
        Log energy in ``n_bands`` linearly spaced bands over [0, Nyquist].

        Simplified pseudo-mel: band i spans bins floor(i*N/(2*n_bands)) up
        to floor((i+1)*N/(2*n_bands)).

        Returns:
            Tuple of ``n_bands`` floats; all zero when the spectrum is silent
        """
        n = len(spectrum)
        if n == 0 or float(np.sum(spectrum)) <= 0.0:
            return tuple(0.0 for _ in range(n_bands))

        bands = []
        for i in range(n_bands):
            start = (i * n) // (2 * n_bands)
            end = ((i + 1) * n) // (2 * n_bands)
            bands.append(float(np.log(np.sum(spectrum[start:end]) + MEL_EPSILON)))
        return tuple(bands)

    @staticmethod
    def energy(samples: np.ndarray) -> float:
        """Root-mean-square of the raw buffer (0.0 when empty)."""
        if len(samples) == 0:
            return 0.0
        return float(np.sqrt(np.mean(samples * samples)))

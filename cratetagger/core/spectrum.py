"""
Spectral transformer: time-domain window to magnitude spectrum.

Uses numpy's FFT (pocketfft, mixed radix, O(N log N)) for any window
length. Every function here is a pure function of its arguments.
"""

import numpy as np

from cratetagger.core.framing import iter_frames


def magnitude_spectrum(window: np.ndarray) -> np.ndarray:
    """
    Magnitude of the discrete Fourier transform of one window.

    Args:
        window: Time-domain samples, length N

    Returns:
        np.ndarray: N magnitudes; bin k corresponds to k * sr / N Hz
    """
    window = np.asarray(window, dtype=np.float64)
    if window.size == 0:
        return np.zeros(0, dtype=np.float64)
    return np.abs(np.fft.fft(window))


def bin_frequencies(n_bins: int, sample_rate: int) -> np.ndarray:
    """Center frequency in Hz of each of ``n_bins`` FFT bins."""
    return np.arange(n_bins, dtype=np.float64) * sample_rate / n_bins


def lower_half(spectrum: np.ndarray) -> np.ndarray:
    """Bins 0 .. N/2 (exclusive), the non-mirrored half of a real spectrum."""
    return spectrum[: len(spectrum) // 2]


def mean_magnitude_spectrum(samples: np.ndarray, window_size: int, hop_size: int) -> np.ndarray:
    """Average magnitude spectrum over every analysis window of a buffer."""
    total = np.zeros(window_size, dtype=np.float64)
    count = 0
    for frame in iter_frames(samples, window_size, hop_size):
        total += magnitude_spectrum(frame)
        count += 1
    return total / count

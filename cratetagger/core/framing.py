"""
Frame windowing for the numeric pipeline.

Windows are numpy views into the sample buffer; only a buffer shorter than
one window gets copied (into a zero-padded window).
"""

from typing import Iterator

import numpy as np


def frame_count(n_samples: int, window_size: int, hop_size: int) -> int:
    """Number of windows ``iter_frames`` yields for a buffer of this length."""
    _check_sizes(window_size, hop_size)
    if n_samples < window_size:
        return 1
    return (n_samples - window_size) // hop_size + 1


def iter_frames(samples: np.ndarray, window_size: int, hop_size: int) -> Iterator[np.ndarray]:
    """
    Lazily slice ``samples`` into fixed-length analysis windows.

    Windows start at 0, H, 2H, ... and only full windows are produced. A
    buffer shorter than one window (including an empty one) yields exactly
    one zero-padded window so downstream extractors always see input.

    Raises:
        ValueError: If window or hop size is not positive
    """
    _check_sizes(window_size, hop_size)
    n_samples = len(samples)

    if n_samples < window_size:
        padded = np.zeros(window_size, dtype=np.float64)
        padded[:n_samples] = samples
        yield padded
        return

    for start in range(0, n_samples - window_size + 1, hop_size):
        yield samples[start:start + window_size]


def frame_starts(n_samples: int, window_size: int, hop_size: int) -> np.ndarray:
    """Start offset (in samples) of each window ``iter_frames`` yields."""
    count = frame_count(n_samples, window_size, hop_size)
    return np.arange(count, dtype=np.int64) * hop_size


def frame_rms(samples: np.ndarray, window_size: int, hop_size: int) -> np.ndarray:
    """RMS of every window, normalized by the full window length."""
    return np.array(
        [np.sqrt(np.sum(frame * frame) / window_size)
         for frame in iter_frames(samples, window_size, hop_size)],
        dtype=np.float64,
    )


def _check_sizes(window_size: int, hop_size: int) -> None:
    if window_size <= 0:
        raise ValueError(f"window_size must be positive, got {window_size}")
    if hop_size <= 0:
        raise ValueError(f"hop_size must be positive, got {hop_size}")

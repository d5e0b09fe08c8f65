"""
Onset and tempo estimator.

A coarse energy proxy rather than beat tracking: any envelope window whose
RMS exceeds a fixed threshold counts as an onset, and the tempo follows
from the mean spacing between onsets.
"""

import math
from typing import List, NamedTuple

import numpy as np

from cratetagger.core.framing import frame_rms, frame_starts


class TempoEstimate(NamedTuple):
    bpm: int
    onset_count: int

    @property
    def measured(self) -> bool:
        return self.onset_count >= 2


class TempoEstimator:
    """Threshold onset detector plus mean inter-onset-interval tempo."""

    def __init__(
        self,
        window_size: int = 1024,
        hop_size: int = 512,
        threshold: float = 0.1,
        min_bpm: int = 60,
        max_bpm: int = 200,
        default_bpm: int = 120,
    ):
        self.window_size = window_size
        self.hop_size = hop_size
        self.threshold = threshold
        self.min_bpm = min_bpm
        self.max_bpm = max_bpm
        self.default_bpm = default_bpm

    def onset_times(self, samples: np.ndarray, sample_rate: int) -> List[float]:
        """Start time in seconds of every window whose RMS exceeds the threshold."""
        rms = frame_rms(samples, self.window_size, self.hop_size)
        starts = frame_starts(len(samples), self.window_size, self.hop_size)
        return [float(start) / sample_rate for start in starts[rms > self.threshold]]

    def estimate(self, samples: np.ndarray, sample_rate: int) -> TempoEstimate:
        onsets = self.onset_times(samples, sample_rate)
        if len(onsets) < 2:
            return TempoEstimate(bpm=self.default_bpm, onset_count=len(onsets))

        mean_interval = float(np.mean(np.diff(onsets)))
        bpm = math.floor(60.0 / mean_interval + 0.5)
        bpm = max(self.min_bpm, min(self.max_bpm, bpm))
        return TempoEstimate(bpm=int(bpm), onset_count=len(onsets))

"""
Envelope estimator: attack, sustain and decay from a windowed RMS envelope.
"""

from typing import NamedTuple

import numpy as np

from cratetagger.core.framing import frame_rms

ATTACK_LEVEL = 0.9
DECAY_LEVEL = 0.5
SUSTAIN_END = 0.8


class Envelope(NamedTuple):
    attack: float  # seconds
    sustain: float  # [0.0, 1.0]
    decay: float  # seconds


SILENT_ENVELOPE = Envelope(attack=0.0, sustain=0.0, decay=0.0)


class EnvelopeEstimator:
    """
    Measures attack/sustain/decay over per-window RMS values.

    Attack is the time of the first window reaching 90% of the peak; decay
    the time of the first window at or below 50% of the peak (counted from
    the start, so a sound that begins quietly reports decay 0). Window index
    is converted to seconds with ``index * hop / sample_rate``.
    """

    def __init__(self, window_size: int = 1024, hop_size: int = 512):
        self.window_size = window_size
        self.hop_size = hop_size

    def envelope(self, samples: np.ndarray) -> np.ndarray:
        """RMS value of each envelope window."""
        return frame_rms(samples, self.window_size, self.hop_size)

    def estimate(self, samples: np.ndarray, sample_rate: int) -> Envelope:
        env = self.envelope(samples)
        peak = float(np.max(env))

        # Silent or flat: nothing to measure
        if peak <= 0.0 or peak == float(np.min(env)):
            return SILENT_ENVELOPE

        attack_idx = int(np.argmax(env >= ATTACK_LEVEL * peak))

        below = np.nonzero(env <= DECAY_LEVEL * peak)[0]
        decay_idx = int(below[0]) if below.size else 0

        sustain_end = int(SUSTAIN_END * len(env))
        if sustain_end > attack_idx:
            sustain = float(np.mean(env[attack_idx:sustain_end]) / peak)
        else:
            sustain = 0.0

        seconds_per_window = self.hop_size / sample_rate
        return Envelope(
            attack=attack_idx * seconds_per_window,
            sustain=min(1.0, max(0.0, sustain)),
            decay=decay_idx * seconds_per_window,
        )

"""
Key estimator.

Root from the strongest chroma bin, mode from comparing chroma[3] with
chroma[0]. Pass a different ``scorer`` to KeyEstimator for profile-based
estimation.
"""

from typing import Callable, Optional, Sequence, Tuple

MAJOR_KEYS: Tuple[str, ...] = (
    "C", "G", "D", "A", "E", "B", "F#", "C#", "F", "Bb", "Eb", "Ab",
)
MINOR_KEYS: Tuple[str, ...] = (
    "Am", "Em", "Bm", "F#m", "C#m", "G#m", "D#m", "A#m", "Dm", "Gm", "Cm", "Fm",
)

# (chroma) -> (root index, is_minor)
KeyScorer = Callable[[Sequence[float]], Tuple[int, bool]]


def argmax_scorer(chroma: Sequence[float]) -> Tuple[int, bool]:
    """First index of the maximum wins; minor when chroma[3] > chroma[0]."""
    root = 0
    for i, value in enumerate(chroma):
        if value > chroma[root]:
            root = i
    return root, chroma[3] > chroma[0]


def mode_of(key: str) -> str:
    """'minor' if the key name contains 'm', else 'major'."""
    return "minor" if "m" in key else "major"


class KeyEstimator:
    """Maps a 12-bin chroma vector onto a key name."""

    def __init__(self, scorer: Optional[KeyScorer] = None):
        self.scorer = scorer or argmax_scorer

    def estimate(self, chroma: Sequence[float]) -> str:
        if len(chroma) != 12:
            raise ValueError(f"chroma must have 12 elements, got {len(chroma)}")
        root, is_minor = self.scorer(chroma)
        table = MINOR_KEYS if is_minor else MAJOR_KEYS
        return table[root % 12]

"""
Tag synthesizer.

Builds descriptive tag lists in layers: label, frequency band, energy,
envelope shape and a fixed per-instrument bundle. Tempo and mode tags are
shared with the track tagger and the filename fallback.
"""

from typing import Dict, Iterable, List, Tuple

from cratetagger.analyzers.key import mode_of
from cratetagger.core.models import AudioFeatures

INSTRUMENT_BUNDLES: Dict[str, Tuple[str, ...]] = {
    "kick": ("drum", "percussion", "rhythm"),
    "snare": ("drum", "percussion", "rhythm", "crack"),
    "hihat": ("drum", "percussion", "rhythm", "cymbal"),
    "bass": ("low-end", "foundation"),
    "lead": ("melody", "synthesizer", "synth"),
    "pad": ("atmospheric", "ambient", "texture"),
    "vocal": ("voice", "human", "melody"),
    "piano": ("keys", "acoustic", "melody"),
    "guitar": ("string", "acoustic", "melody"),
    "string": ("orchestral", "melody", "acoustic"),
    "brass": ("horn", "orchestral", "melody"),
}


class TagSet:
    """Insertion-ordered set of tags; adding a duplicate is a no-op."""

    def __init__(self, tags: Iterable[str] = ()):
        self._tags: Dict[str, None] = {}
        self.extend(tags)

    def add(self, tag: str) -> None:
        self._tags.setdefault(tag, None)

    def extend(self, tags: Iterable[str]) -> None:
        for tag in tags:
            self.add(tag)

    def __contains__(self, tag: object) -> bool:
        return tag in self._tags

    def __iter__(self):
        return iter(self._tags)

    def __len__(self) -> int:
        return len(self._tags)

    def to_list(self) -> List[str]:
        return list(self._tags)


def frequency_tags(centroid: float) -> Tuple[str, ...]:
    if centroid < 200:
        return ("low-frequency", "sub-bass")
    if centroid < 500:
        return ("bass-range",)
    if centroid < 1000:
        return ("mid-range",)
    if centroid < 3000:
        return ("high-mid",)
    return ("high-frequency", "bright")


def energy_tags(energy: float) -> Tuple[str, ...]:
    if energy > 0.7:
        return ("high-energy", "punchy")
    if energy < 0.3:
        return ("low-energy", "soft")
    return ()


def envelope_tags(attack: float, sustain: float, decay: float) -> List[str]:
    tags = []
    if attack < 0.01:
        tags.extend(("fast-attack", "punchy"))
    if sustain > 0.6:
        tags.extend(("sustained", "long"))
    if decay < 0.3:
        tags.extend(("short-decay", "tight"))
    return tags


def tempo_tags(bpm: int) -> Tuple[str, ...]:
    """Tempo bucket tags for a measured or filename-declared BPM."""
    if bpm < 80:
        return ("slow", "downtempo")
    if bpm < 120:
        return ("mid-tempo",)
    if bpm < 140:
        return ("up-tempo",)
    return ("fast", "high-energy")


def mode_tags(key: str) -> Tuple[str, ...]:
    return (mode_of(key),)


class TagSynthesizer:
    """Layered, duplicate-free tag construction for one classified sound."""

    def instrument_tags(self, label: str, features: AudioFeatures) -> List[str]:
        tags = TagSet([label])
        tags.extend(frequency_tags(features.spectral_centroid))
        tags.extend(energy_tags(features.energy))
        tags.extend(envelope_tags(features.attack, features.sustain, features.decay))
        tags.extend(INSTRUMENT_BUNDLES.get(label, ()))
        return tags.to_list()

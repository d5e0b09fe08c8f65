"""
Core data models for cratetagger.

Immutable input buffers and feature snapshots, plus the result structures
handed back to cataloging code.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np


INSTRUMENT_TYPES: Tuple[str, ...] = (
    "kick", "snare", "hihat", "bass", "lead", "pad", "vocal",
    "piano", "guitar", "string", "brass", "percussion", "unknown",
)

MOODS: Tuple[str, ...] = (
    "Dark", "Happy", "Sad", "Energetic", "Chill", "Mysterious",
    "Romantic", "Dreamy", "Aggressive", "Peaceful", "Neutral",
)

N_CHROMA = 12
N_MEL_BANDS = 13


@dataclass(frozen=True, eq=False)
class PcmBuffer:
    """
    One channel of floating-point samples plus its sample rate.

    Only the first channel of multi-channel audio is ever analyzed; use
    ``from_channels`` to build a buffer from decoder output.
    """

    samples: np.ndarray
    sample_rate: int

    def __post_init__(self) -> None:
        data = np.array(self.samples, dtype=np.float64, copy=True)
        if data.ndim != 1:
            raise ValueError(
                f"PcmBuffer expects 1-D samples, got shape {data.shape}; "
                "use PcmBuffer.from_channels for multi-channel audio"
            )
        if int(self.sample_rate) <= 0:
            raise ValueError(f"Sample rate must be positive, got {self.sample_rate}")
        data.setflags(write=False)
        object.__setattr__(self, "samples", data)
        object.__setattr__(self, "sample_rate", int(self.sample_rate))

    @classmethod
    def from_channels(
        cls,
        data: Any,
        sample_rate: int,
        channels_last: bool = True,
    ) -> "PcmBuffer":
        """
        Build a buffer from decoder output, keeping channel 0 only.

        Args:
            data: 1-D mono samples, or 2-D (frames, channels) when
                ``channels_last`` else (channels, frames)
            sample_rate: Sample rate in Hz
            channels_last: Layout of 2-D input (soundfile uses frames-first,
                librosa channels-first)
        """
        array = np.asarray(data)
        if array.ndim == 2:
            array = array[:, 0] if channels_last else array[0]
        return cls(samples=array, sample_rate=sample_rate)

    @property
    def duration(self) -> float:
        """Duration in seconds."""
        return len(self.samples) / self.sample_rate

    def __len__(self) -> int:
        return len(self.samples)


@dataclass(frozen=True)
class AudioFeatures:
    """
    Per-file feature snapshot produced by the numeric pipeline.

    Sequences are tuples of plain floats so two extractions of the same
    buffer compare equal.
    """

    spectral_centroid: float  # Hz
    spectral_rolloff: float  # Hz
    zero_crossing_rate: float  # crossings per sample
    mel_bands: Tuple[float, ...]  # 13 log-energies
    chroma: Tuple[float, ...]  # 12 pitch-class energies
    tempo_bpm: int  # [60, 200]
    energy: float  # RMS
    attack: float  # seconds
    sustain: float  # [0.0, 1.0]
    decay: float  # seconds
    onset_count: int = 0
    sample_rate: int = 0
    duration: float = 0.0

    def __post_init__(self) -> None:
        if len(self.chroma) != N_CHROMA:
            raise ValueError(f"chroma must have {N_CHROMA} elements, got {len(self.chroma)}")
        if len(self.mel_bands) != N_MEL_BANDS:
            raise ValueError(
                f"mel_bands must have {N_MEL_BANDS} elements, got {len(self.mel_bands)}"
            )
        validate_bpm(self.tempo_bpm)
        validate_ratio(self.sustain, "sustain")

    @property
    def tempo_measured(self) -> bool:
        """True when the tempo came from at least two onsets, not the default."""
        return self.onset_count >= 2

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'spectral_centroid': self.spectral_centroid,
            'spectral_rolloff': self.spectral_rolloff,
            'zero_crossing_rate': self.zero_crossing_rate,
            'mel_bands': list(self.mel_bands),
            'chroma': list(self.chroma),
            'tempo_bpm': self.tempo_bpm,
            'energy': self.energy,
            'attack': self.attack,
            'sustain': self.sustain,
            'decay': self.decay,
            'onset_count': self.onset_count,
            'sample_rate': self.sample_rate,
            'duration': self.duration,
        }


@dataclass
class InstrumentDetectionResult:
    """Instrument-class label produced by the rule-table classifier."""

    instrument_type: str
    confidence: float  # [0.0, 1.0]
    characteristics: Dict[str, float]
    tags: List[str]

    def __post_init__(self) -> None:
        validate_instrument_type(self.instrument_type)
        validate_confidence(self.confidence)
        validate_tags(self.tags)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'instrument_type': self.instrument_type,
            'confidence': self.confidence,
            'characteristics': dict(self.characteristics),
            'tags': list(self.tags),
        }


@dataclass
class AudioAnalysisResult:
    """Track-level tagging output (tempo, key, genre, mood, tags)."""

    bpm: int
    key: str  # e.g. "C", "Am", "F#m"
    genre: str
    mood: str
    tags: List[str]
    source: str = "audio"  # "audio" or "filename"
    instrument: Optional[InstrumentDetectionResult] = None

    def __post_init__(self) -> None:
        validate_bpm(self.bpm)
        validate_tags(self.tags)
        if self.mood not in MOODS:
            raise ValueError(f"Invalid mood: {self.mood}. Must be one of {MOODS}")
        if self.source not in ("audio", "filename"):
            raise ValueError(f"Invalid source: {self.source}")

    @property
    def used_fallback(self) -> bool:
        return self.source == "filename"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'bpm': self.bpm,
            'key': self.key,
            'genre': self.genre,
            'mood': self.mood,
            'tags': list(self.tags),
            'source': self.source,
            'instrument': self.instrument.to_dict() if self.instrument else None,
        }

    def to_json(self, indent: int = 2) -> str:
        """Export as JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    def get_summary(self) -> str:
        """Get human-readable one-line summary."""
        parts = [
            f"BPM: {self.bpm}",
            f"Key: {self.key}",
            f"Genre: {self.genre}",
            f"Mood: {self.mood}",
        ]
        if self.instrument is not None:
            parts.append(
                f"Instrument: {self.instrument.instrument_type} "
                f"({self.instrument.confidence:.0%})"
            )
        if self.used_fallback:
            parts.append("(filename only)")
        return " | ".join(parts)


@dataclass
class CorpusAnalysis:
    """Batch summary: histograms plus coverage gaps and suggestions."""

    instruments: Dict[str, int]
    genres: Dict[str, int]
    tempos: Dict[str, int]
    keys: Dict[str, int]
    time_signatures: Dict[str, int]
    total_files: int
    average_tempo: float
    most_common_instrument: str
    most_common_genre: str
    learning_gaps: List[str]
    recommendations: List[str]
    file_categories: Dict[str, List[str]] = field(default_factory=dict)
    failed_files: Dict[str, str] = field(default_factory=dict)

    @property
    def analyzed_files(self) -> int:
        return self.total_files - len(self.failed_files)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'instruments': dict(self.instruments),
            'genres': dict(self.genres),
            'tempos': dict(self.tempos),
            'keys': dict(self.keys),
            'time_signatures': dict(self.time_signatures),
            'file_categories': {k: list(v) for k, v in self.file_categories.items()},
            'total_files': self.total_files,
            'average_tempo': self.average_tempo,
            'most_common_instrument': self.most_common_instrument,
            'most_common_genre': self.most_common_genre,
            'learning_gaps': list(self.learning_gaps),
            'recommendations': list(self.recommendations),
            'failed_files': dict(self.failed_files),
        }

    def to_json(self, indent: int = 2) -> str:
        """Export as JSON string."""
        return json.dumps(self.to_dict(), indent=indent)


# Validation helpers

def validate_confidence(confidence: float) -> None:
    """Validate confidence score is in valid range."""
    if not (0.0 <= confidence <= 1.0):
        raise ValueError(f"Confidence must be in [0.0, 1.0], got {confidence}")


def validate_ratio(value: float, name: str) -> None:
    if not (0.0 <= value <= 1.0):
        raise ValueError(f"{name} must be in [0.0, 1.0], got {value}")


def validate_bpm(bpm: int) -> None:
    if not (60 <= bpm <= 200):
        raise ValueError(f"BPM must be in [60, 200], got {bpm}")


def validate_instrument_type(instrument_type: str) -> None:
    """Validate instrument type is one of the closed taxonomy."""
    if instrument_type not in INSTRUMENT_TYPES:
        raise ValueError(
            f"Invalid instrument type: {instrument_type}. Must be one of {INSTRUMENT_TYPES}"
        )


def validate_tags(tags: Sequence[str]) -> None:
    """Validate a tag list carries no duplicates."""
    if len(set(tags)) != len(tags):
        raise ValueError(f"Tags must be unique, got {list(tags)}")

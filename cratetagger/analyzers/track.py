"""
Track tagger: tempo, key, genre, mood and tags for one decoded buffer.

Numeric features supply tempo and key; genre, mood and keyword tags still
come from the filename tables, as audio alone carries no genre signal here.
"""

from typing import Any, Dict, Optional

from cratetagger.analyzers.base import BaseAnalyzer
from cratetagger.analyzers.filename import FilenameTagger
from cratetagger.analyzers.key import KeyEstimator
from cratetagger.core.models import AudioAnalysisResult, AudioFeatures


class TrackTagger(BaseAnalyzer[AudioAnalysisResult]):
    """
    Builds an ``AudioAnalysisResult`` from features plus filename.

    Tempo precedence: measured tempo (two or more onsets), then an explicit
    BPM marker in the filename, then the estimator default. Tempo-bucket
    tags are added only for the first two.
    """

    def __init__(
        self,
        key_estimator: Optional[KeyEstimator] = None,
        filename_tagger: Optional[FilenameTagger] = None,
    ):
        super().__init__("track_tagger", "1.0.0")
        self.key_estimator = key_estimator or KeyEstimator()
        self.filename_tagger = filename_tagger or FilenameTagger()

    def _analyze_impl(self, features: AudioFeatures, filename: str) -> AudioAnalysisResult:
        tagger = self.filename_tagger

        if features.tempo_measured:
            bpm = features.tempo_bpm
            tagged_bpm: Optional[int] = bpm
        else:
            tagged_bpm = tagger.bpm(filename) if filename else None
            bpm = features.tempo_bpm if tagged_bpm is None else max(60, min(200, tagged_bpm))

        key = self.key_estimator.estimate(features.chroma)

        return AudioAnalysisResult(
            bpm=bpm,
            key=key,
            genre=tagger.genre(filename),
            mood=tagger.mood(filename),
            tags=tagger.tags(filename, tagged_bpm, key),
            source="audio",
        )


def create_track_tagger(config: Optional[Dict[str, Any]] = None) -> TrackTagger:
    """Factory function to create the track tagger."""
    return TrackTagger()

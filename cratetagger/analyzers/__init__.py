"""
Analyzer implementations: envelope, tempo, key, instrument classification,
tag synthesis and filename heuristics.
"""

from cratetagger.analyzers.base import Analyzer, BaseAnalyzer
from cratetagger.analyzers.envelope import Envelope, EnvelopeEstimator
from cratetagger.analyzers.filename import FilenameTagger
from cratetagger.analyzers.instrument import (
    RULES,
    InstrumentClassifier,
    InstrumentRule,
    create_instrument_classifier,
)
from cratetagger.analyzers.key import MAJOR_KEYS, MINOR_KEYS, KeyEstimator, mode_of
from cratetagger.analyzers.tags import TagSet, TagSynthesizer
from cratetagger.analyzers.tempo import TempoEstimate, TempoEstimator
from cratetagger.analyzers.track import TrackTagger, create_track_tagger

__all__ = [
    "Analyzer",
    "BaseAnalyzer",
    "Envelope",
    "EnvelopeEstimator",
    "FilenameTagger",
    "RULES",
    "InstrumentClassifier",
    "InstrumentRule",
    "create_instrument_classifier",
    "MAJOR_KEYS",
    "MINOR_KEYS",
    "KeyEstimator",
    "mode_of",
    "TagSet",
    "TagSynthesizer",
    "TempoEstimate",
    "TempoEstimator",
    "TrackTagger",
    "create_track_tagger",
]

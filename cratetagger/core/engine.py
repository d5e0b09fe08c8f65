"""
Analysis engine for cratetagger.

Facade that routes each file either through the numeric pipeline (decoded
buffer -> features -> analyzers) or, when no buffer is available or
analysis fails, through the filename heuristics.
"""

import logging
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from cratetagger.analyzers.filename import FilenameTagger
from cratetagger.analyzers.instrument import InstrumentClassifier, create_instrument_classifier
from cratetagger.analyzers.track import TrackTagger, create_track_tagger
from cratetagger.core.corpus import (
    CorpusAggregator,
    CorpusItem,
    FileOutcome,
    create_corpus_aggregator,
)
from cratetagger.core.features import FeatureExtractor
from cratetagger.core.loader import AudioLoader, create_audio_loader
from cratetagger.core.models import (
    AudioAnalysisResult,
    AudioFeatures,
    CorpusAnalysis,
    InstrumentDetectionResult,
    PcmBuffer,
)
from cratetagger.utils.config import AnalysisSettings
from cratetagger.utils.errors import (
    AnalysisError,
    DecodeError,
    DecoderUnavailableError,
    FeatureExtractionError,
)


class AudioAnalysisEngine:
    """
    Main analysis engine - orchestrates all components.

    Design:
    - Dependency Injection: loader and analyzers are injected (testable)
    - Explicit buffers: callers may pass a decoded PcmBuffer directly; the
      loader is only needed for ``analyze_file``
    - Error Handling: per-file problems degrade to filename heuristics
    """

    def __init__(
        self,
        loader: Optional[AudioLoader] = None,
        settings: Optional[AnalysisSettings] = None,
        instrument_classifier: Optional[InstrumentClassifier] = None,
        track_tagger: Optional[TrackTagger] = None,
        filename_tagger: Optional[FilenameTagger] = None,
        corpus_aggregator: Optional[CorpusAggregator] = None,
    ):
        """
        Initialize analysis engine.

        Args:
            loader: Optional AudioLoader; without one every file is tagged
                from its name only
            settings: Signal-processing parameters
            instrument_classifier: Rule-table instrument classifier
            track_tagger: Tempo/key/genre/mood tagger
            filename_tagger: Filename heuristics used for fallback
            corpus_aggregator: Batch summarizer
        """
        self.loader = loader
        self.settings = settings or AnalysisSettings()
        self.instrument_classifier = instrument_classifier or InstrumentClassifier()
        self.filename_tagger = filename_tagger or FilenameTagger()
        self.track_tagger = track_tagger or TrackTagger(filename_tagger=self.filename_tagger)
        self.corpus_aggregator = corpus_aggregator or CorpusAggregator(
            settings=self.settings,
            classifier=self.instrument_classifier,
            filename_tagger=self.filename_tagger,
        )
        self.logger = logging.getLogger('engine')

    def extract_features(self, buffer: PcmBuffer) -> AudioFeatures:
        """
        Run the numeric feature pipeline on one buffer.

        Raises:
            FeatureExtractionError: If extraction fails unexpectedly
        """
        try:
            return FeatureExtractor.extract(buffer, self.settings)
        except Exception as e:
            raise FeatureExtractionError(f"Feature extraction failed: {e}") from e

    def detect_instrument(self, buffer: PcmBuffer, filename: str = "") -> InstrumentDetectionResult:
        """Classify the instrument of one buffer."""
        features = self.extract_features(buffer)
        return self.instrument_classifier.analyze(features, filename)

    def analyze(self, buffer: Optional[PcmBuffer], filename: str = "") -> AudioAnalysisResult:
        """
        Tag one sound.

        Never raises for a per-file problem: a missing buffer, a decode
        failure or an analysis failure all yield the filename result.

        Args:
            buffer: Decoded audio, or None when decoding was not possible
            filename: Original file name, used for keyword tables

        Returns:
            AudioAnalysisResult: ``source`` is "audio" on the numeric path
            and "filename" on the fallback path
        """
        result, _ = self.analyze_with_features(buffer, filename)
        return result

    def analyze_with_features(
        self, buffer: Optional[PcmBuffer], filename: str = ""
    ) -> Tuple[AudioAnalysisResult, Optional[AudioFeatures]]:
        """
        Same as ``analyze``, also returning the extracted features.

        Features are None when no buffer was given or extraction failed.
        """
        if buffer is None:
            self.logger.info(f"No audio buffer for {filename or '<unnamed>'}; using filename")
            return self.filename_tagger.analyze(filename), None

        start_time = time.time()
        features = None
        try:
            features = self.extract_features(buffer)
            result = self.track_tagger.analyze(features, filename)
            result.instrument = self.instrument_classifier.analyze(features, filename)
        except (DecodeError, AnalysisError) as e:
            self.logger.warning(f"Analysis failed for {filename or '<buffer>'}, using filename: {e}")
            return self.filename_tagger.analyze(filename), features

        self.logger.info(
            f"Analyzed {filename or '<buffer>'} in {time.time() - start_time:.3f}s"
        )
        return result, features

    def categorize_samples(self, filenames: Sequence[str]) -> Dict[str, List[str]]:
        """Group file names by the instrument their name suggests."""
        categories: Dict[str, List[str]] = {}
        for filename in filenames:
            label = self.filename_tagger.infer_instrument(filename)
            categories.setdefault(label, []).append(filename)
        return categories

    def load(self, file_path: Path) -> PcmBuffer:
        """
        Decode a file with the configured loader.

        Raises:
            DecoderUnavailableError: No loader is configured
            DecodeError: Decoding failed
        """
        if self.loader is None:
            raise DecoderUnavailableError(
                "No audio decoder configured", file_path=str(file_path)
            )
        return self.loader.load(Path(file_path))

    def try_load(self, file_path: Path) -> Optional[PcmBuffer]:
        """Decode a file, returning None (and logging why) on any decode problem."""
        try:
            return self.load(file_path)
        except DecodeError as e:
            self.logger.warning(f"Cannot decode {Path(file_path).name}: {e.message}")
            return None

    def analyze_file(self, file_path: Path) -> AudioAnalysisResult:
        """Decode and tag one file, falling back to its name when decoding fails."""
        file_path = Path(file_path)
        self.logger.info(f"Loading audio: {file_path}")
        return self.analyze(self.try_load(file_path), file_path.name)

    def analyze_batch(self, file_paths: Sequence[Path]) -> List[AudioAnalysisResult]:
        """Tag several files; results are in input order."""
        self.logger.info(f"Analyzing batch of {len(file_paths)} files")
        return [self.analyze_file(path) for path in file_paths]

    def corpus_items(self, file_paths: Sequence[Path]) -> List[CorpusItem]:
        """Decode what can be decoded; everything else becomes a filename-only item."""
        return [
            CorpusItem(filename=Path(path).name, buffer=self.try_load(path))
            for path in file_paths
        ]

    def analyze_corpus(self, items: Sequence[CorpusItem]) -> CorpusAnalysis:
        """Summarize a batch of items."""
        return self.corpus_aggregator.aggregate(items)

    def corpus_outcome(
        self, filename: str, features: Optional[AudioFeatures] = None
    ) -> FileOutcome:
        """Profile one already-tagged file for the corpus summary."""
        return self.corpus_aggregator.outcome(CorpusItem(filename=filename, features=features))

    def summarize_corpus(self, outcomes: Sequence[FileOutcome]) -> CorpusAnalysis:
        """Summarize per-file outcomes collected during a batch."""
        return self.corpus_aggregator.reduce(outcomes)


def create_analysis_engine(config: Optional[Dict[str, Any]] = None) -> AudioAnalysisEngine:
    """
    Factory function to create fully configured analysis engine.

    Args:
        config: Configuration dict (see ``get_default_config``)

    Returns:
        AudioAnalysisEngine: Configured engine
    """
    config = config or {}

    loader = create_audio_loader(config.get('audio', {}))
    settings = AnalysisSettings.from_config(config)
    instrument_classifier = create_instrument_classifier(config)
    track_tagger = create_track_tagger(config)

    corpus_aggregator = create_corpus_aggregator(config)
    corpus_aggregator.classifier = instrument_classifier

    return AudioAnalysisEngine(
        loader=loader,
        settings=settings,
        instrument_classifier=instrument_classifier,
        track_tagger=track_tagger,
        filename_tagger=track_tagger.filename_tagger,
        corpus_aggregator=corpus_aggregator,
    )

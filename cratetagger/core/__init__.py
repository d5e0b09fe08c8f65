"""
Core module containing data models, the numeric pipeline and the engine.

Uses lazy imports for modules that pull in decoders (soundfile, librosa).
"""

# Models are lightweight - import directly
from cratetagger.core.models import (
    INSTRUMENT_TYPES,
    MOODS,
    AudioAnalysisResult,
    AudioFeatures,
    CorpusAnalysis,
    InstrumentDetectionResult,
    PcmBuffer,
    validate_confidence,
    validate_instrument_type,
)

__all__ = [
    # Models (always available)
    "INSTRUMENT_TYPES",
    "MOODS",
    "AudioAnalysisResult",
    "AudioFeatures",
    "CorpusAnalysis",
    "InstrumentDetectionResult",
    "PcmBuffer",
    "validate_confidence",
    "validate_instrument_type",
    # Lazy loaded
    "FeatureExtractor",
    "AudioLoader",
    "create_audio_loader",
    "AudioAnalysisEngine",
    "create_analysis_engine",
    "CorpusAggregator",
    "CorpusItem",
    "BatchProcessor",
    "BatchResult",
    "ResultWriter",
    "TextResultWriter",
    "JSONResultWriter",
    "create_result_writer",
]


def __getattr__(name: str):
    """Lazy load modules with heavy dependencies."""
    if name == "FeatureExtractor":
        from cratetagger.core.features import FeatureExtractor
        return FeatureExtractor
    elif name in ("AudioLoader", "create_audio_loader"):
        from cratetagger.core.loader import AudioLoader, create_audio_loader
        return AudioLoader if name == "AudioLoader" else create_audio_loader
    elif name in ("AudioAnalysisEngine", "create_analysis_engine"):
        from cratetagger.core.engine import AudioAnalysisEngine, create_analysis_engine
        return AudioAnalysisEngine if name == "AudioAnalysisEngine" else create_analysis_engine
    elif name in ("CorpusAggregator", "CorpusItem"):
        from cratetagger.core.corpus import CorpusAggregator, CorpusItem
        return CorpusAggregator if name == "CorpusAggregator" else CorpusItem
    elif name in ("BatchProcessor", "BatchResult"):
        from cratetagger.core.batch_processor import BatchProcessor, BatchResult
        return BatchProcessor if name == "BatchProcessor" else BatchResult
    elif name in ("ResultWriter", "TextResultWriter", "JSONResultWriter", "create_result_writer"):
        from cratetagger.core import result_writer
        return getattr(result_writer, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

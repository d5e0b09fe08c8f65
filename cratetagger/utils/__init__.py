"""
Utility modules for configuration, logging, and error handling.
"""

from cratetagger.utils.errors import (
    CrateTaggerError,
    DecodeError,
    DecoderUnavailableError,
    UnsupportedFormatError,
    FileTooLargeError,
    AnalysisError,
    FeatureExtractionError,
    ConfigurationError,
)
from cratetagger.utils.logging import get_logger, setup_logging, JSONFormatter
from cratetagger.utils.config import AnalysisSettings, ConfigManager, load_config

__all__ = [
    "CrateTaggerError",
    "DecodeError",
    "DecoderUnavailableError",
    "UnsupportedFormatError",
    "FileTooLargeError",
    "AnalysisError",
    "FeatureExtractionError",
    "ConfigurationError",
    "get_logger",
    "setup_logging",
    "JSONFormatter",
    "AnalysisSettings",
    "ConfigManager",
    "load_config",
]

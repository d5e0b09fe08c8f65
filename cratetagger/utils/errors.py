"""
Custom exceptions for cratetagger.

Decode problems, analysis problems and configuration problems each have
their own branch so callers can route on them (e.g. decode failures send a
file down the filename fallback path).
"""

from typing import Any, Optional


class CrateTaggerError(Exception):
    """Base exception for all cratetagger errors."""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message


class DecodeError(CrateTaggerError):
    """Raised when a file could not be decoded into a PCM buffer."""

    def __init__(self, message: str, file_path: Optional[str] = None):
        super().__init__(message, details={"file_path": file_path})
        self.file_path = file_path


class DecoderUnavailableError(DecodeError):
    """Raised when no audio decoder is configured for the numeric path."""


class UnsupportedFormatError(DecodeError):
    """Raised when the container format has no decoder."""

    def __init__(
        self,
        message: str,
        format: Optional[str] = None,
        file_path: Optional[str] = None,
    ):
        super().__init__(message, file_path=file_path)
        self.format = format
        self.details = {"format": format, "file_path": file_path}


class FileTooLargeError(DecodeError):
    """Raised when an audio file exceeds the configured size limit."""

    def __init__(
        self,
        message: str,
        file_size: Optional[int] = None,
        max_size: Optional[int] = None,
    ):
        super().__init__(message)
        self.file_size = file_size
        self.max_size = max_size
        self.details = {"file_size": file_size, "max_size": max_size}


class AnalysisError(CrateTaggerError):
    """Raised when an analyzer fails on otherwise valid input."""

    def __init__(
        self,
        message: str,
        analyzer_name: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.analyzer_name = analyzer_name
        self.original_error = original_error
        self.details = {
            "analyzer_name": analyzer_name,
            "original_error": str(original_error) if original_error else None,
        }


class FeatureExtractionError(AnalysisError):
    """Raised when feature extraction fails."""

    def __init__(self, message: str, feature_name: Optional[str] = None):
        super().__init__(message, analyzer_name="feature_extractor")
        self.feature_name = feature_name
        self.details["feature_name"] = feature_name


class ConfigurationError(CrateTaggerError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, config_key: Optional[str] = None):
        super().__init__(message)
        self.config_key = config_key
        self.details = {"config_key": config_key}

"""
Audio loader for cratetagger.

Decodes audio files into single-channel ``PcmBuffer`` instances. Formats
libsndfile reads natively go through soundfile; compressed containers it
does not cover are handed to librosa. Sample rate is preserved as decoded.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Set

import numpy as np
import soundfile as sf

from cratetagger.core.models import PcmBuffer
from cratetagger.utils.errors import (
    DecodeError,
    DecoderUnavailableError,
    FileTooLargeError,
    UnsupportedFormatError,
)


# Suffix -> decoder backend
SUPPORTED_FORMATS: Dict[str, str] = {
    '.wav': 'soundfile',
    '.aif': 'soundfile',
    '.aiff': 'soundfile',
    '.flac': 'soundfile',
    '.ogg': 'soundfile',
    '.mp3': 'librosa',
}

MIDI_FORMATS: Set[str] = {'.mid', '.midi'}

MAX_FILE_SIZE: int = 524288000  # 500 MB

logger = logging.getLogger("loader")


class AudioLoader:
    """
    Loads audio files and creates PcmBuffer instances.

    Stateless, so one loader can be shared across threads.
    """

    def __init__(
        self,
        max_file_size: int = MAX_FILE_SIZE,
        supported_formats: Optional[Set[str]] = None,
    ):
        """
        Initialize loader with configuration.

        Args:
            max_file_size: Maximum file size in bytes
            supported_formats: Suffixes to accept (subset of SUPPORTED_FORMATS)
        """
        self.max_file_size = max_file_size
        if supported_formats is None:
            self.supported_suffixes: Set[str] = set(SUPPORTED_FORMATS)
        else:
            self.supported_suffixes = {
                s.lower() for s in supported_formats if s.lower() in SUPPORTED_FORMATS
            }

    def can_decode(self, file_path: Path) -> bool:
        return Path(file_path).suffix.lower() in self.supported_suffixes

    def load(self, file_path: Path) -> PcmBuffer:
        """
        Decode an audio file, keeping only its first channel.

        Raises:
            DecodeError: File is missing or the decoder failed
            UnsupportedFormatError: No decoder for this suffix (including MIDI)
            FileTooLargeError: File exceeds size limit
        """
        file_path = Path(file_path)
        self._validate_file(file_path)

        backend = SUPPORTED_FORMATS[file_path.suffix.lower()]
        if backend == 'soundfile':
            buffer = self._load_soundfile(file_path)
        else:
            buffer = self._load_librosa(file_path)

        logger.debug(
            f"Decoded {file_path.name}: {buffer.sample_rate} Hz, {buffer.duration:.2f}s"
        )
        if len(buffer) and float(np.max(np.abs(buffer.samples))) < 1e-6:
            logger.warning(f"Audio appears to be silent: {file_path}")

        return buffer

    def _validate_file(self, file_path: Path) -> None:
        """Validate file exists, has supported format, and is within size limit."""
        if not file_path.exists():
            raise DecodeError(f"Audio file not found: {file_path}", file_path=str(file_path))

        suffix = file_path.suffix.lower()
        if suffix in MIDI_FORMATS:
            raise UnsupportedFormatError(
                "MIDI files carry no audio to decode",
                format=suffix,
                file_path=str(file_path),
            )
        if suffix not in self.supported_suffixes:
            raise UnsupportedFormatError(
                f"Format {suffix} not supported. "
                f"Supported formats: {', '.join(sorted(self.supported_suffixes))}",
                format=suffix,
                file_path=str(file_path),
            )

        file_size = file_path.stat().st_size
        if file_size > self.max_file_size:
            raise FileTooLargeError(
                f"File too large: {file_size / 1024 / 1024:.1f} MB. "
                f"Maximum: {self.max_file_size / 1024 / 1024:.1f} MB",
                file_size=file_size,
                max_size=self.max_file_size
            )

    def _load_soundfile(self, file_path: Path) -> PcmBuffer:
        try:
            data, sample_rate = sf.read(str(file_path), dtype='float64', always_2d=True)
        except Exception as e:
            raise DecodeError(
                f"Failed to decode {file_path}: {e}", file_path=str(file_path)
            ) from e
        # soundfile returns (frames, channels)
        return PcmBuffer.from_channels(data, sample_rate, channels_last=True)

    def _load_librosa(self, file_path: Path) -> PcmBuffer:
        try:
            import librosa
        except ImportError as e:
            raise DecoderUnavailableError(
                f"librosa is required to decode {file_path.suffix} files",
                file_path=str(file_path),
            ) from e

        try:
            data, sample_rate = librosa.load(str(file_path), sr=None, mono=False)
        except Exception as e:
            raise DecodeError(
                f"Failed to decode {file_path}: {e}", file_path=str(file_path)
            ) from e
        # librosa returns (channels, frames) for multi-channel audio
        return PcmBuffer.from_channels(data, int(sample_rate), channels_last=False)


def create_audio_loader(config: Optional[Dict[str, Any]] = None) -> Optional[AudioLoader]:
    """
    Factory function to create AudioLoader from the ``audio`` config section.

    Returns:
        AudioLoader, or None when decoding is disabled
    """
    if config is None:
        config = {}

    if not config.get('decode_enabled', True):
        logger.info("Audio decoding disabled; filename heuristics only")
        return None

    return AudioLoader(
        max_file_size=config.get('max_file_size', MAX_FILE_SIZE),
        supported_formats=config.get('supported_formats'),
    )

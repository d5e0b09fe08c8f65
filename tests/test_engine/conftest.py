"""Shared fixtures for the tagging pipeline tests."""

import logging
from logging.handlers import RotatingFileHandler

import numpy as np
import pytest

from cratetagger.core.models import AudioFeatures, PcmBuffer

SAMPLE_RATE = 44100

# Bin 20 of a 2048-point FFT: every analysis window holds a whole number
# of periods, so the spectrum has a single non-zero bin.
BIN_20_FREQ = 20 * SAMPLE_RATE / 2048


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def sine(freq: float, seconds: float = 1.0, amplitude: float = 0.5, sr: int = SAMPLE_RATE):
    t = np.arange(int(seconds * sr)) / sr
    return amplitude * np.sin(2 * np.pi * freq * t)


def make_features(**overrides) -> AudioFeatures:
    """Feature snapshot that matches no instrument rule unless overridden."""
    values = dict(
        spectral_centroid=0.0,
        spectral_rolloff=0.0,
        zero_crossing_rate=0.0,
        mel_bands=(0.0,) * 13,
        chroma=(0.0,) * 12,
        tempo_bpm=120,
        energy=0.0,
        attack=1.0,
        sustain=0.0,
        decay=1.0,
    )
    values.update(overrides)
    return AudioFeatures(**values)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def silence():
    """Two seconds of digital silence at 44.1 kHz."""
    return PcmBuffer(np.zeros(2 * SAMPLE_RATE), SAMPLE_RATE)


@pytest.fixture
def bin_sine():
    """One second of a bin-centered sine (about 430.7 Hz) at half scale."""
    return PcmBuffer(sine(BIN_20_FREQ), SAMPLE_RATE)


@pytest.fixture
def two_bursts():
    """
    Blocks 0 and 3 of a 1024 Hz buffer are loud.

    With 1024-sample windows and a 512 hop, windows 0, 2 and 3 cross the
    onset threshold: onsets at 0.0, 1.0 and 1.5 seconds.
    """
    samples = np.zeros(2560)
    samples[0:512] = 0.5
    samples[1536:2048] = 0.5
    return PcmBuffer(samples, 1024)


@pytest.fixture
def features_factory():
    return make_features


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Drop the handlers setup_logging installs on the root logger."""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in root.handlers[:]:
        if type(handler) in (logging.StreamHandler, RotatingFileHandler):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)

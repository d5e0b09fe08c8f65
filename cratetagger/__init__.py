"""
cratetagger - deterministic audio auto-tagging

Extracts spectral and temporal features from PCM audio and turns them into
catalog metadata (tempo, key, instrument class, mood, tags) using fixed
rule tables, with a filename-keyword fallback when audio is unavailable.
"""

__version__ = "1.0.0"
__author__ = "Audio Analysis Team"

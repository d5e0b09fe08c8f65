"""
Filename heuristic tagger.

The lower-fidelity path used when no decoded audio is available. All
lookups are lower-cased substring checks against fixed, ordered keyword
tables; explicit BPM, key and time-signature markers are read with regular
expressions.
"""

import logging
import re
from pathlib import Path
from typing import List, Optional, Tuple

from cratetagger.analyzers.tags import INSTRUMENT_BUNDLES, TagSet, mode_tags, tempo_tags
from cratetagger.core.models import AudioAnalysisResult, InstrumentDetectionResult

logger = logging.getLogger("analyzer.filename")

DEFAULT_BPM = 120
DEFAULT_KEY = "C"
DEFAULT_GENRE = "Unknown"
DEFAULT_MOOD = "Neutral"
DEFAULT_TIME_SIGNATURE = "4/4"
FILENAME_INSTRUMENT_CONFIDENCE = 0.3

# First match wins
GENRE_KEYWORDS: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("bass", "808", "trap"), "Hip Hop"),
    (("kick", "drum", "perc"), "Electronic"),
    (("guitar", "acoustic"), "Rock"),
    (("piano", "keys"), "Classical"),
    (("synth", "pad"), "Electronic"),
    (("vocal", "voice"), "Vocal"),
    (("ambient", "atmospheric"), "Ambient"),
    (("jazz", "blues"), "Jazz"),
    (("reggae", "ska"), "Reggae"),
    (("metal", "heavy"), "Metal"),
    (("country", "folk"), "Country"),
    (("funk", "soul"), "Funk"),
    (("disco", "dance"), "Disco"),
    (("techno", "house"), "Techno"),
    (("lo-fi", "lofi"), "Lo-fi"),
    (("chill", "relax"), "Chill"),
)

MOOD_KEYWORDS: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("dark", "heavy", "aggressive"), "Dark"),
    (("happy", "bright", "uplifting"), "Happy"),
    (("sad", "melancholy", "depressed"), "Sad"),
    (("energetic", "pump", "intense"), "Energetic"),
    (("chill", "relax", "calm"), "Chill"),
    (("mysterious", "haunting", "eerie"), "Mysterious"),
    (("romantic", "love", "passionate"), "Romantic"),
    (("dreamy", "ethereal", "floating"), "Dreamy"),
    (("aggressive", "angry", "fierce"), "Aggressive"),
    (("peaceful", "serene", "tranquil"), "Peaceful"),
)

# Every matching row contributes its tags
INSTRUMENT_TAGS: Tuple[Tuple[Tuple[str, ...], Tuple[str, ...]], ...] = (
    (("kick",), ("kick", "drum")),
    (("snare",), ("snare", "drum")),
    (("hihat", "hi-hat"), ("hihat", "drum")),
    (("crash",), ("crash", "cymbal")),
    (("bass",), ("bass",)),
    (("808",), ("808", "sub-bass")),
    (("guitar",), ("guitar",)),
    (("piano", "keys"), ("piano", "keys")),
    (("synth",), ("synthesizer", "synth")),
    (("pad",), ("pad", "atmospheric")),
    (("lead",), ("lead", "melody")),
    (("vocal", "voice"), ("vocal", "voice")),
    (("choir",), ("choir", "vocal")),
    (("string",), ("strings", "orchestral")),
    (("brass",), ("brass", "horn")),
    (("flute",), ("flute", "woodwind")),
    (("sax",), ("saxophone", "brass")),
)

STYLE_TAGS: Tuple[Tuple[Tuple[str, ...], Tuple[str, ...]], ...] = (
    (("trap",), ("trap",)),
    (("house",), ("house",)),
    (("techno",), ("techno",)),
    (("dubstep",), ("dubstep",)),
    (("ambient",), ("ambient",)),
    (("lo-fi", "lofi"), ("lo-fi",)),
    (("jazz",), ("jazz",)),
    (("funk",), ("funk",)),
    (("reggae",), ("reggae",)),
    (("rock",), ("rock",)),
    (("metal",), ("metal",)),
    (("country",), ("country",)),
    (("blues",), ("blues",)),
)

PROCESSING_TAGS: Tuple[Tuple[Tuple[str, ...], Tuple[str, ...]], ...] = (
    (("distorted", "dist"), ("distorted",)),
    (("reverb",), ("reverb",)),
    (("delay",), ("delay",)),
    (("chorus",), ("chorus",)),
    (("flanger",), ("flanger",)),
    (("phaser",), ("phaser",)),
    (("compressed", "comp"), ("compressed",)),
    (("saturated", "sat"), ("saturated",)),
    (("filtered", "filter"), ("filtered",)),
    (("sidechain",), ("sidechain",)),
)

QUALITY_TAGS: Tuple[Tuple[Tuple[str, ...], Tuple[str, ...]], ...] = (
    (("clean",), ("clean",)),
    (("dirty", "gritty"), ("dirty", "gritty")),
    (("punchy",), ("punchy",)),
    (("soft",), ("soft",)),
    (("hard",), ("hard",)),
    (("warm",), ("warm",)),
    (("cold",), ("cold",)),
    (("bright",), ("bright",)),
    (("dark",), ("dark",)),
)

# First match wins; values are instrument taxonomy labels
INSTRUMENT_LABELS: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("kick",), "kick"),
    (("snare",), "snare"),
    (("hihat", "hi-hat"), "hihat"),
    (("crash",), "percussion"),
    (("bass", "808"), "bass"),
    (("guitar",), "guitar"),
    (("piano", "keys"), "piano"),
    (("synth",), "lead"),
    (("pad",), "pad"),
    (("lead",), "lead"),
    (("vocal", "voice"), "vocal"),
    (("string",), "string"),
    (("brass",), "brass"),
    (("flute",), "unknown"),
    (("sax",), "brass"),
)

BPM_PATTERN = re.compile(r'(\d{2,3})\s*bpm|bpm\s*(\d{2,3})')
KEY_PATTERN = re.compile(
    r'(?:^|[_\-\s])([a-g](?:#|b)?)(?:[_\-\s]?(m|min|minor|maj|major))?(?=$|[_\-\s.])'
)
TIME_SIGNATURE_PATTERN = re.compile(r'(?<!\d)(2|3|4|5|6|7|9|12)-(4|8)(?!\d)')

MIN_FILENAME_BPM = 40
MAX_FILENAME_BPM = 200


def contains_any(name: str, keywords: Tuple[str, ...]) -> bool:
    return any(keyword in name for keyword in keywords)


def first_match(name: str, table, default: str) -> str:
    for keywords, value in table:
        if contains_any(name, keywords):
            return value
    return default


def all_matches(name: str, table) -> TagSet:
    tags = TagSet()
    for keywords, values in table:
        if contains_any(name, keywords):
            tags.extend(values)
    return tags


def normalize_name(filename: str) -> str:
    """Lower-cased base name (directories stripped, extension kept)."""
    return Path(filename).name.lower()


class FilenameTagger:
    """
    Filename-only analogue of the numeric pipeline.

    ``analyze`` never raises: any internal failure yields the default
    result (BPM 120, key C, genre Unknown, mood Neutral).
    """

    def genre(self, filename: str) -> str:
        return first_match(normalize_name(filename), GENRE_KEYWORDS, DEFAULT_GENRE)

    def mood(self, filename: str) -> str:
        return first_match(normalize_name(filename), MOOD_KEYWORDS, DEFAULT_MOOD)

    def infer_instrument(self, filename: str) -> str:
        return first_match(normalize_name(filename), INSTRUMENT_LABELS, "unknown")

    def instrument(self, filename: str) -> InstrumentDetectionResult:
        """Instrument guess from the name, at a flat low confidence."""
        label = self.infer_instrument(filename)
        return filename_instrument(label)

    def bpm(self, filename: str) -> Optional[int]:
        """Explicit BPM marker in 40..200, or None."""
        match = BPM_PATTERN.search(normalize_name(filename))
        if not match:
            return None
        value = int(match.group(1) or match.group(2))
        if MIN_FILENAME_BPM <= value <= MAX_FILENAME_BPM:
            return value
        return None

    def key(self, filename: str) -> Optional[str]:
        """Token-delimited key marker normalized to e.g. 'C', 'Am', 'F#m', or None."""
        match = KEY_PATTERN.search(normalize_name(filename))
        if not match:
            return None
        root = match.group(1)
        name = root[0].upper() + root[1:]
        if match.group(2) in ("m", "min", "minor"):
            name += "m"
        return name

    def time_signature(self, filename: str) -> str:
        match = TIME_SIGNATURE_PATTERN.search(normalize_name(filename))
        if not match:
            return DEFAULT_TIME_SIGNATURE
        return f"{match.group(1)}/{match.group(2)}"

    def keyword_tags(self, filename: str) -> TagSet:
        """Instrument, style and processing tags (quality descriptors excluded)."""
        name = normalize_name(filename)
        tags = all_matches(name, INSTRUMENT_TAGS)
        tags.extend(all_matches(name, STYLE_TAGS))
        if "drum" in name and "bass" in name:
            tags.extend(("drum and bass", "dnb"))
        tags.extend(all_matches(name, PROCESSING_TAGS))
        return tags

    def quality_tags(self, filename: str) -> TagSet:
        return all_matches(normalize_name(filename), QUALITY_TAGS)

    def tags(self, filename: str, bpm: Optional[int], key: str) -> List[str]:
        """
        Full filename tag list.

        Args:
            filename: File name or path
            bpm: Measured or declared tempo; None adds no tempo bucket
            key: Key name, contributes 'major' or 'minor'
        """
        tags = self.keyword_tags(filename)
        if bpm is not None:
            tags.extend(tempo_tags(bpm))
        tags.extend(mode_tags(key))
        tags.extend(self.quality_tags(filename))
        return tags.to_list()

    def analyze(self, filename: str) -> AudioAnalysisResult:
        try:
            declared_bpm = self.bpm(filename)
            key = self.key(filename) or DEFAULT_KEY
            bpm = DEFAULT_BPM if declared_bpm is None else max(60, min(200, declared_bpm))
            return AudioAnalysisResult(
                bpm=bpm,
                key=key,
                genre=self.genre(filename),
                mood=self.mood(filename),
                tags=self.tags(filename, declared_bpm, key),
                instrument=self.instrument(filename),
                source="filename",
            )
        except Exception as e:
            logger.error(f"Filename tagging failed for {filename!r}: {e}")
            return default_result()


def default_result() -> AudioAnalysisResult:
    return AudioAnalysisResult(
        bpm=DEFAULT_BPM,
        key=DEFAULT_KEY,
        genre=DEFAULT_GENRE,
        mood=DEFAULT_MOOD,
        tags=list(mode_tags(DEFAULT_KEY)),
        instrument=filename_instrument("unknown"),
        source="filename",
    )


def filename_instrument(label: str) -> InstrumentDetectionResult:
    tags = TagSet([label])
    tags.extend(INSTRUMENT_BUNDLES.get(label, ()))
    return InstrumentDetectionResult(
        instrument_type=label,
        confidence=FILENAME_INSTRUMENT_CONFIDENCE,
        characteristics={},
        tags=tags.to_list(),
    )

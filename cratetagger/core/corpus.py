"""
Corpus aggregator for cratetagger.

Summarizes a batch of files into frequency tables, then derives coverage
gaps and recommendations. Each item is mapped to a ``FileOutcome``; the
successful ones are reduced into a ``CorpusTally`` with an associative
merge, so one bad file never aborts the batch.
"""

import logging
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from cratetagger.analyzers.filename import FilenameTagger, contains_any
from cratetagger.analyzers.instrument import InstrumentClassifier
from cratetagger.analyzers.key import KeyEstimator
from cratetagger.core.features import FeatureExtractor
from cratetagger.core.models import AudioFeatures, CorpusAnalysis, PcmBuffer
from cratetagger.utils.config import AnalysisSettings

DEFAULT_TEMPO = 120
DEFAULT_KEY = "C"
DEFAULT_GENRE = "Unknown"
DEFAULT_CATEGORY = "General"

GENRE_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("Jazz", ("jazz", "swing", "blues", "bebop", "fusion", "smooth", "lounge")),
    ("Classical", ("classical", "symphony", "orchestra", "chamber", "concerto", "sonata", "fugue")),
    ("Rock", ("rock", "metal", "punk", "grunge", "alternative", "indie", "garage")),
    ("Electronic", ("electronic", "techno", "house", "trance", "ambient", "synth", "dance", "edm")),
    ("Pop", ("pop", "mainstream", "radio", "hit", "chart", "commercial")),
    ("Funk", ("funk", "disco", "soul", "r&b", "motown")),
    ("Latin", ("latin", "salsa", "bossa", "samba", "tango", "flamenco")),
    ("Country", ("country", "folk", "bluegrass", "western", "americana")),
    ("Hip-Hop", ("hip", "hop", "rap", "urban", "trap", "drill")),
    ("Reggae", ("reggae", "ska", "dub", "dancehall")),
    ("World", ("world", "ethnic", "traditional", "cultural", "tribal")),
)

INSTRUMENT_KEYWORDS: Tuple[Tuple[str, str], ...] = (
    ("piano", "Piano"),
    ("guitar", "Guitar"),
    ("bass", "Bass"),
    ("drums", "Drums"),
    ("sax", "Saxophone"),
    ("trumpet", "Trumpet"),
    ("violin", "Violin"),
    ("flute", "Flute"),
    ("organ", "Organ"),
    ("synth", "Synthesizer"),
)

# Classifier label -> catalog instrument name ("unknown" maps to nothing)
LABEL_INSTRUMENTS: Dict[str, str] = {
    "kick": "Drums",
    "snare": "Drums",
    "hihat": "Drums",
    "percussion": "Drums",
    "bass": "Bass",
    "piano": "Piano",
    "guitar": "Guitar",
    "brass": "Brass",
    "lead": "Synthesizer",
    "pad": "Synthesizer",
    "vocal": "Vocals",
    "string": "Strings",
}

# Inclusive ranges, first match wins
TEMPO_BUCKETS: Tuple[Tuple[str, float, float], ...] = (
    ("Very Slow", 40, 60),
    ("Slow", 60, 80),
    ("Moderate", 80, 100),
    ("Medium", 100, 120),
    ("Fast", 120, 140),
    ("Very Fast", 140, 200),
)

CATEGORY_KEYWORDS: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("jazz", "swing"), "Jazz"),
    (("classical", "orchestra"), "Classical"),
    (("rock", "metal"), "Rock"),
    (("electronic", "techno"), "Electronic"),
    (("pop", "mainstream"), "Pop"),
    (("funk", "disco"), "Funk"),
    (("latin", "salsa"), "Latin"),
    (("country", "folk"), "Country"),
    (("hip", "rap"), "Hip-Hop"),
    (("reggae", "ska"), "Reggae"),
)

COMMON_INSTRUMENTS = ("Piano", "Guitar", "Bass", "Drums", "Saxophone", "Trumpet")

MIN_TEMPO_BUCKETS = 3
MIN_GENRES = 3
MIN_KEYS = 5
SMALL_CORPUS = 10
LARGE_CORPUS = 50


def tempo_bucket(tempo: float) -> str:
    for name, low, high in TEMPO_BUCKETS:
        if low <= tempo <= high:
            return name
    return "Unknown"


def categorize(filename: str) -> str:
    name = filename.lower()
    for keywords, category in CATEGORY_KEYWORDS:
        if contains_any(name, keywords):
            return category
    return DEFAULT_CATEGORY


def most_common(counts: Dict[str, int]) -> str:
    """Highest count, first-seen wins ties; 'None' for an empty table."""
    best, best_count = "", 0
    for name, count in counts.items():
        if count > best_count:
            best, best_count = name, count
    return best or "None"


def top_n(counts: Dict[str, int], n: int) -> List[str]:
    ranked = sorted(counts.items(), key=lambda item: -item[1])
    return [name for name, _ in ranked[:n]]


@dataclass(frozen=True)
class CorpusItem:
    """
    One batch member.

    ``features`` takes precedence over ``buffer`` when both are set; with
    neither (MIDI, undecodable files) the item is profiled from its name.
    """

    filename: str
    buffer: Optional[PcmBuffer] = None
    features: Optional[AudioFeatures] = None


@dataclass(frozen=True)
class FileProfile:
    """Per-file contribution to the corpus tables."""

    filename: str
    instruments: Tuple[str, ...]
    genres: Tuple[str, ...]
    tempo: float
    key: str
    time_signature: str
    category: str

    @property
    def tempo_bucket(self) -> str:
        return tempo_bucket(self.tempo)


@dataclass(frozen=True)
class FileOutcome:
    """Success (profile set) or failure (error set) for one item."""

    filename: str
    profile: Optional[FileProfile] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.profile is not None


@dataclass
class CorpusTally:
    """
    Running counts over successful files.

    ``merge`` is associative and commutative in every count, so tallies
    built on separate workers can be combined in any grouping.
    """

    instruments: Counter = field(default_factory=Counter)
    genres: Counter = field(default_factory=Counter)
    tempos: Counter = field(default_factory=Counter)
    keys: Counter = field(default_factory=Counter)
    time_signatures: Counter = field(default_factory=Counter)
    categories: Dict[str, List[str]] = field(default_factory=dict)
    tempo_total: float = 0.0
    file_count: int = 0

    @classmethod
    def from_profile(cls, profile: FileProfile) -> "CorpusTally":
        return cls(
            instruments=Counter(profile.instruments),
            genres=Counter(profile.genres),
            tempos=Counter([profile.tempo_bucket]),
            keys=Counter([profile.key]),
            time_signatures=Counter([profile.time_signature]),
            categories={profile.category: [profile.filename]},
            tempo_total=float(profile.tempo),
            file_count=1,
        )

    def merge(self, other: "CorpusTally") -> "CorpusTally":
        categories = {name: list(files) for name, files in self.categories.items()}
        for name, files in other.categories.items():
            categories.setdefault(name, []).extend(files)

        return CorpusTally(
            instruments=self.instruments + other.instruments,
            genres=self.genres + other.genres,
            tempos=self.tempos + other.tempos,
            keys=self.keys + other.keys,
            time_signatures=self.time_signatures + other.time_signatures,
            categories=categories,
            tempo_total=self.tempo_total + other.tempo_total,
            file_count=self.file_count + other.file_count,
        )

    @property
    def average_tempo(self) -> float:
        if self.file_count == 0:
            return 0.0
        return self.tempo_total / self.file_count


class CorpusAggregator:
    """
    Builds a ``CorpusAnalysis`` from a sequence of ``CorpusItem``.

    Items carrying features (or a buffer to extract them from) go through
    the instrument classifier; the rest are profiled from the filename alone.
    """

    def __init__(
        self,
        settings: Optional[AnalysisSettings] = None,
        classifier: Optional[InstrumentClassifier] = None,
        key_estimator: Optional[KeyEstimator] = None,
        filename_tagger: Optional[FilenameTagger] = None,
        max_workers: int = 1,
    ):
        self.settings = settings or AnalysisSettings()
        self.classifier = classifier or InstrumentClassifier()
        self.key_estimator = key_estimator or KeyEstimator()
        self.filename_tagger = filename_tagger or FilenameTagger()
        self.max_workers = max(1, max_workers)
        self.logger = logging.getLogger("corpus")

    def aggregate(self, items: Sequence[CorpusItem]) -> CorpusAnalysis:
        items = list(items)
        self.logger.info(f"Aggregating corpus of {len(items)} files")

        return self.reduce(self._map(items))

    def reduce(self, outcomes: Sequence[FileOutcome]) -> CorpusAnalysis:
        """Fold per-file outcomes into the summary; failures are listed, not counted."""
        tally = CorpusTally()
        failed: Dict[str, str] = {}
        for outcome in outcomes:
            if outcome.success:
                tally = tally.merge(CorpusTally.from_profile(outcome.profile))
            else:
                failed[outcome.filename] = outcome.error

        if failed:
            self.logger.warning(f"{len(failed)} of {len(outcomes)} files failed")

        return self.summarize(tally, total_files=len(outcomes), failed=failed)

    def _map(self, items: List[CorpusItem]) -> List[FileOutcome]:
        if self.max_workers > 1 and len(items) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                return list(executor.map(self.outcome, items))
        return [self.outcome(item) for item in items]

    def outcome(self, item: CorpusItem) -> FileOutcome:
        """Profile one item, turning any exception into a failure outcome."""
        try:
            return FileOutcome(filename=item.filename, profile=self.profile(item))
        except Exception as e:
            self.logger.error(f"Failed to analyze {item.filename}: {e}")
            return FileOutcome(filename=item.filename, error=str(e))

    def profile(self, item: CorpusItem) -> FileProfile:
        tagger = self.filename_tagger
        name = item.filename.lower()

        instruments = [catalog for keyword, catalog in INSTRUMENT_KEYWORDS if keyword in name]
        declared_bpm = tagger.bpm(item.filename)

        features = item.features
        if features is None and item.buffer is not None:
            features = FeatureExtractor.extract(item.buffer, self.settings)

        if features is not None:
            label, _ = self.classifier.classify(features)
            catalog = LABEL_INSTRUMENTS.get(label)
            if catalog and catalog not in instruments:
                instruments.append(catalog)

            if features.tempo_measured or declared_bpm is None:
                tempo = features.tempo_bpm
            else:
                tempo = declared_bpm
            key = self.key_estimator.estimate(features.chroma)
        else:
            tempo = DEFAULT_TEMPO if declared_bpm is None else declared_bpm
            key = tagger.key(item.filename) or DEFAULT_KEY

        genres = [genre for genre, keywords in GENRE_KEYWORDS if contains_any(name, keywords)]

        return FileProfile(
            filename=item.filename,
            instruments=tuple(instruments),
            genres=tuple(genres) or (DEFAULT_GENRE,),
            tempo=tempo,
            key=key,
            time_signature=tagger.time_signature(item.filename),
            category=categorize(item.filename),
        )

    def summarize(
        self,
        tally: CorpusTally,
        total_files: int,
        failed: Optional[Dict[str, str]] = None,
    ) -> CorpusAnalysis:
        instruments = dict(tally.instruments)
        genres = dict(tally.genres)
        tempos = dict(tally.tempos)
        keys = dict(tally.keys)

        return CorpusAnalysis(
            instruments=instruments,
            genres=genres,
            tempos=tempos,
            keys=keys,
            time_signatures=dict(tally.time_signatures),
            total_files=total_files,
            average_tempo=tally.average_tempo,
            most_common_instrument=most_common(instruments),
            most_common_genre=most_common(genres),
            learning_gaps=learning_gaps(instruments, genres, tempos, keys),
            recommendations=recommendations(
                instruments, genres, tally.average_tempo, tally.file_count, total_files
            ),
            file_categories={name: list(files) for name, files in tally.categories.items()},
            failed_files=dict(failed or {}),
        )


def learning_gaps(
    instruments: Dict[str, int],
    genres: Dict[str, int],
    tempos: Dict[str, int],
    keys: Dict[str, int],
) -> List[str]:
    gaps = [
        f"Missing {instrument} training data"
        for instrument in COMMON_INSTRUMENTS
        if not instruments.get(instrument)
    ]
    if len(tempos) < MIN_TEMPO_BUCKETS:
        gaps.append("Limited tempo diversity - add more varied BPM ranges")
    if len(genres) < MIN_GENRES:
        gaps.append("Limited genre diversity - add more musical styles")
    if len(keys) < MIN_KEYS:
        gaps.append("Limited key diversity - add more key signatures")
    return gaps


def recommendations(
    instruments: Dict[str, int],
    genres: Dict[str, int],
    average_tempo: float,
    analyzed_files: int,
    total_files: int,
) -> List[str]:
    result = []

    top_instruments = top_n(instruments, 3)
    if top_instruments:
        result.append(f"Strong in: {', '.join(top_instruments)}")

    top_genres = top_n(genres, 2)
    if top_genres:
        result.append(f"Primary genres: {', '.join(top_genres)}")

    # An empty or all-failed batch has no meaningful average
    if analyzed_files > 0:
        if average_tempo < 80:
            result.append("Consider adding faster tempo training data")
        elif average_tempo > 140:
            result.append("Consider adding slower tempo training data")

    if total_files < SMALL_CORPUS:
        result.append("Add more training files for better model performance")
    elif total_files > LARGE_CORPUS:
        result.append("Good training data size - consider organizing into specialized banks")

    return result


def create_corpus_aggregator(config: Optional[Dict[str, Any]] = None) -> CorpusAggregator:
    """Factory function to create a corpus aggregator from a config dict."""
    config = config or {}
    return CorpusAggregator(
        settings=AnalysisSettings.from_config(config),
        max_workers=config.get("corpus", {}).get("max_workers", 1),
    )

"""
Result writers for tagging reports.

Strategy pattern: one writer per output format, chosen through
``create_result_writer``. Both writers accept the per-file results and an
optional corpus summary.
"""

import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from cratetagger.core.models import AudioAnalysisResult, CorpusAnalysis

RULE = "=" * 70
THIN_RULE = "-" * 70


class ResultWriter(ABC):
    """Abstract base class for result writers (Strategy Pattern)."""

    @abstractmethod
    def write(
        self,
        results: Dict[Path, AudioAnalysisResult],
        output_path: Path,
        corpus: Optional[CorpusAnalysis] = None,
    ) -> None:
        """Write results to the specified path."""
        pass


def format_result(file_path: Path, result: AudioAnalysisResult) -> List[str]:
    """Human-readable lines for one tagged file."""
    lines = [
        THIN_RULE,
        f"FILE: {file_path.name}",
        f"PATH: {file_path}",
        THIN_RULE,
        f"Summary: {result.get_summary()}",
        f"Tags: {', '.join(result.tags) if result.tags else '(none)'}",
    ]

    if result.instrument is not None:
        inst = result.instrument
        lines.append("")
        lines.append("Instrument:")
        lines.append(f"  Type: {inst.instrument_type}")
        lines.append(f"  Confidence: {inst.confidence:.2%}")
        lines.append(f"  Centroid: {inst.characteristics.get('spectral_centroid', 0.0):.1f} Hz")
        lines.append(f"  Tags: {', '.join(inst.tags)}")

    lines.append("")
    return lines


def _format_table(title: str, counts: Dict[str, int]) -> List[str]:
    lines = [f"{title}:"]
    if not counts:
        lines.append("  (none)")
    for name, count in sorted(counts.items(), key=lambda item: -item[1]):
        lines.append(f"  {name}: {count}")
    return lines


def format_corpus(corpus: CorpusAnalysis) -> List[str]:
    """Human-readable lines for a corpus summary."""
    lines = [
        RULE,
        "CORPUS SUMMARY",
        RULE,
        f"Total Files: {corpus.total_files}",
        f"Analyzed: {corpus.analyzed_files}",
        f"Average Tempo: {corpus.average_tempo:.1f} BPM",
        f"Most Common Instrument: {corpus.most_common_instrument}",
        f"Most Common Genre: {corpus.most_common_genre}",
        "",
    ]
    lines += _format_table("Instruments", corpus.instruments)
    lines += _format_table("Genres", corpus.genres)
    lines += _format_table("Tempos", corpus.tempos)
    lines += _format_table("Keys", corpus.keys)
    lines += _format_table("Time Signatures", corpus.time_signatures)

    lines.append("")
    lines.append("Learning Gaps:")
    lines += [f"  - {gap}" for gap in corpus.learning_gaps] or ["  (none)"]
    lines.append("Recommendations:")
    lines += [f"  - {rec}" for rec in corpus.recommendations] or ["  (none)"]

    if corpus.failed_files:
        lines.append("Failed Files:")
        lines += [f"  {name}: {error}" for name, error in corpus.failed_files.items()]

    lines.append("")
    return lines


class TextResultWriter(ResultWriter):
    """Writes tagging results to a human-readable text file."""

    def __init__(self, include_timestamp: bool = True):
        """
        Initialize text writer.

        Args:
            include_timestamp: Whether to include timestamp in output
        """
        self.include_timestamp = include_timestamp
        self.logger = logging.getLogger("result_writer.text")

    def write(
        self,
        results: Dict[Path, AudioAnalysisResult],
        output_path: Path,
        corpus: Optional[CorpusAnalysis] = None,
    ) -> None:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        lines = [RULE, "CRATETAGGER RESULTS", RULE]
        if self.include_timestamp:
            lines.append(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        lines.append(f"Total Files Tagged: {len(results)}")
        lines.append(RULE)
        lines.append("")

        for file_path, result in results.items():
            lines += format_result(Path(file_path), result)

        if corpus is not None:
            lines += format_corpus(corpus)

        lines += [RULE, "END OF REPORT", RULE]

        with open(output_path, 'w', encoding='utf-8') as f:
            f.write("\n".join(lines) + "\n")

        self.logger.info(f"Results written to: {output_path}")


class JSONResultWriter(ResultWriter):
    """Writes tagging results to a JSON file."""

    def __init__(self, indent: int = 2):
        self.indent = indent
        self.logger = logging.getLogger("result_writer.json")

    def write(
        self,
        results: Dict[Path, AudioAnalysisResult],
        output_path: Path,
        corpus: Optional[CorpusAnalysis] = None,
    ) -> None:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        output_data = {
            "generated": datetime.now().isoformat(),
            "total_files": len(results),
            "results": {
                str(path): result.to_dict()
                for path, result in results.items()
            },
        }
        if corpus is not None:
            output_data["corpus"] = corpus.to_dict()

        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(output_data, f, indent=self.indent, default=str)

        self.logger.info(f"Results written to: {output_path}")


def create_result_writer(format: str = "text", **kwargs) -> ResultWriter:
    """
    Factory function to create appropriate result writer.

    Args:
        format: Output format ("text" or "json")
        **kwargs: Additional arguments for the writer

    Raises:
        ValueError: Unknown format
    """
    writers = {
        "text": TextResultWriter,
        "txt": TextResultWriter,
        "json": JSONResultWriter,
    }

    writer_class = writers.get(format.lower())
    if writer_class is None:
        raise ValueError(f"Unknown format: {format}. Supported: {list(writers.keys())}")

    return writer_class(**kwargs)

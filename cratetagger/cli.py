"""
cratetagger - command-line interface

Tags audio samples and MIDI files with tempo, key, instrument, mood and
descriptive tags, and optionally summarizes the whole set as a corpus.

Example usage:
    cratetagger kick_808_hard.wav
    cratetagger --recursive samples/
    cratetagger --corpus --output-json crate.json samples/ loops/
    cratetagger --no-decode --corpus midi/
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from cratetagger import __version__
from cratetagger.core.batch_processor import BatchProcessor
from cratetagger.core.engine import create_analysis_engine
from cratetagger.core.models import AudioAnalysisResult
from cratetagger.core.result_writer import (
    JSONResultWriter,
    TextResultWriter,
    format_corpus,
    format_result,
)
from cratetagger.utils.config import load_config
from cratetagger.utils.errors import ConfigurationError
from cratetagger.utils.logging import setup_logging_from_config


def print_single_result(file_path: Path, result: AudioAnalysisResult) -> None:
    """Print tagging results for a single file to console."""
    print("\n".join(format_result(file_path, result)))


def analyze_inputs(
    inputs: List[Path],
    config: dict,
    recursive: bool = False,
    corpus: bool = False,
    output_txt: Optional[Path] = None,
    output_json: Optional[Path] = None,
    verbose: bool = False,
) -> int:
    """
    Tag files and directories, optionally summarizing them as a corpus.

    Returns:
        Exit code (0 for success, 1 when nothing was found or processing failed)
    """
    engine = create_analysis_engine(config)

    def progress_callback(current: int, total: int, file_path: Path) -> None:
        if verbose:
            print(f"[{current}/{total}] Processing: {file_path.name}", file=sys.stderr)

    processor = BatchProcessor(engine=engine, progress_callback=progress_callback)

    try:
        files = processor.collect_files(inputs, recursive=recursive)
        if not files:
            print("Error: no audio or MIDI files found", file=sys.stderr)
            return 1

        batch_result = processor.process_files(files, corpus=corpus)

        for file_path, result in batch_result.successful.items():
            print_single_result(file_path, result)

        if batch_result.failed:
            print("Failed Files:")
            for path, error in batch_result.failed.items():
                print(f"  {path.name}: {error}")

        if batch_result.corpus is not None:
            print("\n".join(format_corpus(batch_result.corpus)))

        if output_txt:
            TextResultWriter().write(batch_result.successful, output_txt, batch_result.corpus)
            print(f"Text results saved to: {output_txt}")

        if output_json:
            JSONResultWriter().write(batch_result.successful, output_json, batch_result.corpus)
            print(f"JSON results saved to: {output_json}")

        return 0 if batch_result.failure_count == 0 else 1

    except Exception as e:
        print(f"Error during analysis: {e}", file=sys.stderr)
        if verbose:
            import traceback
            traceback.print_exc()
        return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cratetagger",
        description="Tag audio samples with tempo, key, instrument and mood using fixed rules",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  cratetagger kick_808_hard.wav
  cratetagger --recursive samples/
  cratetagger --corpus --output-json crate.json samples/
  cratetagger --no-decode --corpus midi/
        """
    )

    parser.add_argument(
        "inputs",
        type=Path,
        nargs="+",
        help="Audio/MIDI file(s) or directories to tag"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file"
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose output"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"cratetagger {__version__}"
    )
    parser.add_argument(
        "--corpus",
        action="store_true",
        help="Also print a corpus summary with coverage gaps and recommendations"
    )
    parser.add_argument(
        "--recursive",
        "-r",
        action="store_true",
        help="Search directories recursively"
    )
    parser.add_argument(
        "--output-json",
        type=Path,
        default=None,
        help="Path to save JSON results"
    )
    parser.add_argument(
        "--output-file",
        "-o",
        type=Path,
        default=None,
        help="Path to save text results (.txt)"
    )
    parser.add_argument(
        "--no-decode",
        action="store_true",
        help="Skip audio decoding and tag from filenames only"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the cratetagger console script."""
    args = build_parser().parse_args(argv)

    config_path = str(args.config) if args.config else None
    try:
        config = load_config(config_path)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.no_decode:
        config.setdefault("audio", {})["decode_enabled"] = False

    setup_logging_from_config(config, verbose=args.verbose)

    return analyze_inputs(
        inputs=args.inputs,
        config=config,
        recursive=args.recursive,
        corpus=args.corpus,
        output_txt=args.output_file,
        output_json=args.output_json,
        verbose=args.verbose,
    )


if __name__ == "__main__":
    sys.exit(main())

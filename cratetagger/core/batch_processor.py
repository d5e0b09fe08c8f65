"""
Batch processor for tagging many files.

Collects audio and MIDI files from paths and directories, then drives the
analysis engine per file or over the whole batch as a corpus.
"""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

from cratetagger.core.corpus import FileOutcome
from cratetagger.core.models import AudioAnalysisResult, CorpusAnalysis


@dataclass
class BatchResult:
    """Result of a batch processing operation."""
    successful: Dict[Path, AudioAnalysisResult] = field(default_factory=dict)
    failed: Dict[Path, str] = field(default_factory=dict)
    total_files: int = 0
    total_time: float = 0.0
    corpus: Optional[CorpusAnalysis] = None

    @property
    def success_count(self) -> int:
        """Number of successfully processed files."""
        return len(self.successful)

    @property
    def failure_count(self) -> int:
        """Number of failed files."""
        return len(self.failed)

    @property
    def fallback_count(self) -> int:
        """Number of files tagged from their name only."""
        return sum(1 for result in self.successful.values() if result.used_fallback)

    @property
    def success_rate(self) -> float:
        """Success rate as percentage."""
        if self.total_files == 0:
            return 0.0
        return (self.success_count / self.total_files) * 100


class BatchProcessor:
    """
    Processes multiple files using an analysis engine.

    Only orchestrates; decoding and tagging are delegated to the engine.
    """

    AUDIO_EXTENSIONS = {'.wav', '.aif', '.aiff', '.flac', '.ogg', '.mp3'}
    MIDI_EXTENSIONS = {'.mid', '.midi'}

    def __init__(
        self,
        engine,
        progress_callback: Optional[Callable[[int, int, Path], None]] = None
    ):
        """
        Initialize batch processor.

        Args:
            engine: Analysis engine instance (dependency injection)
            progress_callback: Optional callback(current, total, file_path) for progress updates
        """
        self.engine = engine
        self.progress_callback = progress_callback
        self.logger = logging.getLogger("batch_processor")

    def process(
        self,
        inputs: Union[Path, List[Path]],
        recursive: bool = False,
        corpus: bool = False
    ) -> BatchResult:
        """
        Tag one or more files or directories.

        Args:
            inputs: Single path or list of paths (files or directories)
            recursive: If True, search directories recursively
            corpus: If True, also summarize the batch into result.corpus

        Returns:
            BatchResult containing all results and any errors
        """
        return self.process_files(self.collect_files(inputs, recursive), corpus)

    def process_files(self, files: List[Path], corpus: bool = False) -> BatchResult:
        """Tag an already collected file list (see ``collect_files``)."""
        start_time = time.time()

        if not files:
            self.logger.warning("No audio or MIDI files found to process")
            return BatchResult(total_files=0, total_time=0.0)

        self.logger.info(f"Processing {len(files)} files")

        result = self._process_files(files, corpus)
        result.total_time = time.time() - start_time

        self.logger.info(
            f"Batch complete: {result.success_count}/{result.total_files} succeeded "
            f"({result.fallback_count} from filename only) in {result.total_time:.2f}s"
        )

        return result

    def collect_files(
        self,
        inputs: Union[Path, List[Path]],
        recursive: bool
    ) -> List[Path]:
        """Collect all supported files from inputs, sorted and de-duplicated."""
        if isinstance(inputs, (str, Path)):
            inputs = [inputs]

        files = []
        for path in inputs:
            path = Path(path)
            if path.is_file():
                if self._is_supported_file(path):
                    files.append(path)
                else:
                    self.logger.warning(f"Skipping unsupported file: {path}")
            elif path.is_dir():
                files.extend(self._scan_directory(path, recursive))
            else:
                self.logger.warning(f"Path not found: {path}")

        return sorted(set(files))

    def _scan_directory(self, directory: Path, recursive: bool) -> List[Path]:
        """Scan directory for supported files."""
        pattern = "**/*" if recursive else "*"
        files = []

        for path in directory.glob(pattern):
            if path.is_file() and self._is_supported_file(path):
                files.append(path)

        return files

    def _is_supported_file(self, path: Path) -> bool:
        suffix = path.suffix.lower()
        return suffix in self.AUDIO_EXTENSIONS or suffix in self.MIDI_EXTENSIONS

    def _process_files(self, files: List[Path], corpus: bool) -> BatchResult:
        """
        Decode and tag each file once.

        In corpus mode the file is profiled from the features its tagging
        already produced; only the profile outlives the iteration.
        """
        result = BatchResult(total_files=len(files))
        outcomes: List[FileOutcome] = []

        for processed, file_path in enumerate(files, start=1):
            if self.progress_callback:
                self.progress_callback(processed, len(files), file_path)

            try:
                buffer = self.engine.try_load(file_path)
                tagged, features = self.engine.analyze_with_features(buffer, file_path.name)
                result.successful[file_path] = tagged
                if corpus:
                    outcomes.append(self.engine.corpus_outcome(file_path.name, features))
                self.logger.debug(f"Successfully processed: {file_path}")
            except Exception as e:
                error_msg = str(e)
                result.failed[file_path] = error_msg
                self.logger.error(f"Failed to process {file_path}: {error_msg}")
                if corpus:
                    outcomes.append(self.engine.corpus_outcome(file_path.name))

        if corpus:
            result.corpus = self.engine.summarize_corpus(outcomes)

        return result

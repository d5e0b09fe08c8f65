"""
Analyzer base interface for cratetagger.

Defines the contract for all feature-driven analyzers using Protocol
(structural subtyping).
"""

import logging
import time
from abc import abstractmethod
from typing import Generic, Protocol, TypeVar

from cratetagger.core.models import AudioFeatures
from cratetagger.utils.errors import AnalysisError

# Type variable for result types
T = TypeVar('T')


class Analyzer(Protocol[T]):
    """
    Base protocol for all analyzers.

    All analyzers must implement:
    - analyze(features, filename) -> T
    - name property
    - version property

    A class doesn't need to inherit from Analyzer to be compatible, it
    just needs the required methods.
    """

    @property
    def name(self) -> str:
        """Analyzer name (e.g., 'instrument_rules', 'track_tagger')."""
        ...

    @property
    def version(self) -> str:
        """Analyzer version for result tracking."""
        ...

    def analyze(self, features: AudioFeatures, filename: str = "") -> T:
        """
        Analyze a feature snapshot and return a typed result.

        Raises:
            AnalysisError: If analysis fails
        """
        ...


class BaseAnalyzer(Generic[T]):
    """
    Optional base class providing logging, timing and error wrapping.

    Uses Template Method pattern - analyze() provides the template,
    subclasses implement _analyze_impl().
    """

    def __init__(self, name: str, version: str):
        self._name = name
        self._version = version
        self.logger = logging.getLogger(f"analyzer.{name}")

    @property
    def name(self) -> str:
        """Return analyzer name."""
        return self._name

    @property
    def version(self) -> str:
        """Return analyzer version."""
        return self._version

    def analyze(self, features: AudioFeatures, filename: str = "") -> T:
        """
        Template method with timing and error handling.

        Args:
            features: Feature snapshot of one buffer
            filename: Original filename, for analyzers that also read it

        Returns:
            T: Analysis result

        Raises:
            AnalysisError: If analysis fails
        """
        start_time = time.time()

        try:
            self.logger.debug(f"Starting analysis: {filename or '<buffer>'}")

            result = self._analyze_impl(features, filename)

            elapsed = time.time() - start_time
            self.logger.debug(f"Analysis complete in {elapsed:.3f}s")

            return result

        except AnalysisError:
            raise

        except Exception as e:
            self.logger.error(f"Analysis failed: {e}")
            raise AnalysisError(
                f"{self.name} analysis failed: {e}",
                analyzer_name=self.name,
                original_error=e
            ) from e

    @abstractmethod
    def _analyze_impl(self, features: AudioFeatures, filename: str) -> T:
        """Subclasses implement actual analysis logic."""
        raise NotImplementedError

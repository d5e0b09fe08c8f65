"""
Rule-based instrument classifier for cratetagger.

Classifies a sound into a closed instrument taxonomy from six scalar
features using an ordered decision table. The first rule whose predicate
holds wins; its bonuses are added to a base confidence of 0.5.
"""

from typing import Any, Callable, Dict, Optional, Tuple

from cratetagger.analyzers.base import BaseAnalyzer
from cratetagger.analyzers.tags import TagSynthesizer
from cratetagger.core.models import AudioFeatures, InstrumentDetectionResult

BASE_CONFIDENCE = 0.5
UNKNOWN_CONFIDENCE = 0.3

Condition = Callable[[AudioFeatures], bool]


def _band(low: float, high: float) -> Condition:
    return lambda f: low < f.spectral_centroid < high


class InstrumentRule:
    """
    One row of the decision table.

    Args:
        label: Instrument type produced when the predicate holds
        predicate: Conditions that must all hold for the rule to match
        bonuses: (condition, amount) pairs added to the base confidence
    """

    def __init__(
        self,
        label: str,
        predicate: Tuple[Condition, ...],
        bonuses: Tuple[Tuple[Condition, float], ...],
    ):
        self.label = label
        self.predicate = predicate
        self.bonuses = bonuses

    def matches(self, features: AudioFeatures) -> bool:
        return all(condition(features) for condition in self.predicate)

    def confidence(self, features: AudioFeatures) -> float:
        score = BASE_CONFIDENCE + sum(
            amount for condition, amount in self.bonuses if condition(features)
        )
        return min(1.0, max(0.0, score))

    def __repr__(self) -> str:
        return f"InstrumentRule({self.label!r})"


RULES: Tuple[InstrumentRule, ...] = (
    InstrumentRule(
        "kick",
        (lambda f: f.spectral_centroid < 200, lambda f: f.energy > 0.7, lambda f: f.attack < 0.01),
        ((lambda f: f.spectral_centroid < 200, 0.2),
         (lambda f: f.energy > 0.7, 0.2),
         (lambda f: f.attack < 0.01, 0.1)),
    ),
    InstrumentRule(
        "snare",
        (_band(1000, 4000), lambda f: f.zero_crossing_rate > 0.1, lambda f: f.energy > 0.5),
        ((_band(1000, 4000), 0.2),
         (lambda f: f.zero_crossing_rate > 0.1, 0.2),
         (lambda f: f.energy > 0.5, 0.1)),
    ),
    InstrumentRule(
        "hihat",
        (lambda f: f.spectral_centroid > 3000, lambda f: f.zero_crossing_rate > 0.15,
         lambda f: f.energy < 0.4),
        ((lambda f: f.spectral_centroid > 3000, 0.2),
         (lambda f: f.zero_crossing_rate > 0.15, 0.2),
         (lambda f: f.energy < 0.4, 0.1)),
    ),
    InstrumentRule(
        "bass",
        (lambda f: f.spectral_centroid < 300, lambda f: f.energy > 0.6, lambda f: f.sustain > 0.3),
        ((lambda f: f.spectral_centroid < 300, 0.2),
         (lambda f: f.energy > 0.6, 0.2),
         (lambda f: f.sustain > 0.3, 0.1)),
    ),
    InstrumentRule(
        "lead",
        (_band(1000, 3000), lambda f: f.sustain > 0.5),
        ((_band(1000, 3000), 0.2),
         (lambda f: f.sustain > 0.5, 0.2)),
    ),
    InstrumentRule(
        "pad",
        (_band(500, 2000), lambda f: f.sustain > 0.7, lambda f: f.energy < 0.6),
        ((_band(500, 2000), 0.2),
         (lambda f: f.sustain > 0.7, 0.2),
         (lambda f: f.energy < 0.6, 0.1)),
    ),
    InstrumentRule(
        "vocal",
        (_band(1000, 3000), lambda f: 0.05 < f.zero_crossing_rate < 0.15),
        ((_band(1000, 3000), 0.2),
         (lambda f: 0.05 < f.zero_crossing_rate < 0.15, 0.2)),
    ),
    InstrumentRule(
        "piano",
        (_band(500, 2000), lambda f: f.attack < 0.05, lambda f: f.sustain > 0.3),
        ((_band(500, 2000), 0.2),
         (lambda f: f.attack < 0.05, 0.1),
         (lambda f: f.sustain > 0.3, 0.1)),
    ),
    InstrumentRule(
        "guitar",
        (_band(200, 1500), lambda f: f.zero_crossing_rate > 0.08, lambda f: f.energy > 0.4),
        ((_band(200, 1500), 0.2),
         (lambda f: f.zero_crossing_rate > 0.08, 0.1),
         (lambda f: f.energy > 0.4, 0.1)),
    ),
    InstrumentRule(
        "string",
        (_band(500, 2000), lambda f: f.sustain > 0.6, lambda f: f.attack < 0.1),
        ((_band(500, 2000), 0.1),
         (lambda f: f.sustain > 0.6, 0.1),
         (lambda f: f.attack < 0.1, 0.1)),
    ),
    InstrumentRule(
        "brass",
        (_band(300, 1500), lambda f: f.energy > 0.5, lambda f: f.sustain > 0.4),
        ((_band(300, 1500), 0.1),
         (lambda f: f.energy > 0.5, 0.1),
         (lambda f: f.sustain > 0.4, 0.1)),
    ),
    InstrumentRule(
        "percussion",
        (lambda f: f.attack < 0.05, lambda f: f.decay < 0.5, lambda f: f.energy > 0.6),
        ((lambda f: f.attack < 0.05, 0.1),
         (lambda f: f.decay < 0.5, 0.1),
         (lambda f: f.energy > 0.6, 0.1)),
    ),
)


class InstrumentClassifier(BaseAnalyzer[InstrumentDetectionResult]):
    """
    Ordered decision-table classifier.

    Deterministic: the same features always give the same label,
    confidence and tags.
    """

    def __init__(
        self,
        rules: Tuple[InstrumentRule, ...] = RULES,
        tag_synthesizer: Optional[TagSynthesizer] = None,
    ):
        super().__init__("instrument_rules", "1.0.0")
        self.rules = rules
        self.tag_synthesizer = tag_synthesizer or TagSynthesizer()

    def classify(self, features: AudioFeatures) -> Tuple[str, float]:
        """Return (label, confidence) of the first matching rule."""
        for rule in self.rules:
            if rule.matches(features):
                return rule.label, rule.confidence(features)
        return "unknown", UNKNOWN_CONFIDENCE

    def _analyze_impl(self, features: AudioFeatures, filename: str) -> InstrumentDetectionResult:
        label, confidence = self.classify(features)
        self.logger.debug(f"Classified as {label} ({confidence:.2f})")

        return InstrumentDetectionResult(
            instrument_type=label,
            confidence=confidence,
            characteristics=self._characteristics(features),
            tags=self.tag_synthesizer.instrument_tags(label, features),
        )

    @staticmethod
    def _characteristics(features: AudioFeatures) -> Dict[str, float]:
        return {
            'frequency': features.spectral_centroid,
            'attack': features.attack,
            'sustain': features.sustain,
            'decay': features.decay,
            'spectral_centroid': features.spectral_centroid,
            'zero_crossing_rate': features.zero_crossing_rate,
        }


def create_instrument_classifier(config: Optional[Dict[str, Any]] = None) -> InstrumentClassifier:
    """Factory function to create the instrument classifier."""
    return InstrumentClassifier()

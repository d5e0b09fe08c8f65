"""Tests for the rule-table instrument classifier and tag synthesis."""

import pytest

from cratetagger.analyzers.instrument import RULES, InstrumentClassifier, InstrumentRule
from cratetagger.analyzers.tags import (
    TagSet,
    TagSynthesizer,
    energy_tags,
    envelope_tags,
    frequency_tags,
    tempo_tags,
)
from cratetagger.utils.errors import AnalysisError

# label -> (feature overrides, expected confidence)
CASES = {
    "kick": (dict(spectral_centroid=100, energy=0.8, attack=0.005), 1.0),
    "snare": (dict(spectral_centroid=2000, zero_crossing_rate=0.2, energy=0.6), 1.0),
    "hihat": (dict(spectral_centroid=5000, zero_crossing_rate=0.3, energy=0.2), 1.0),
    "bass": (dict(spectral_centroid=250, energy=0.7, sustain=0.5, attack=0.5), 1.0),
    "lead": (dict(spectral_centroid=1500, sustain=0.6, energy=0.1), 0.9),
    "pad": (dict(spectral_centroid=800, sustain=0.8, energy=0.3), 1.0),
    "vocal": (dict(spectral_centroid=1500, zero_crossing_rate=0.1, sustain=0.2, energy=0.2), 0.9),
    "piano": (dict(spectral_centroid=800, attack=0.01, sustain=0.4, energy=0.2), 0.9),
    "guitar": (dict(spectral_centroid=400, zero_crossing_rate=0.1, energy=0.5, attack=0.5), 0.9),
    "string": (dict(spectral_centroid=800, sustain=0.65, attack=0.08, energy=0.2), 0.8),
    "brass": (dict(spectral_centroid=400, energy=0.6, sustain=0.5, attack=0.5), 0.8),
    "percussion": (dict(spectral_centroid=5000, attack=0.01, decay=0.2, energy=0.9), 0.8),
}


@pytest.fixture
def classifier():
    return InstrumentClassifier()


class TestRuleTable:
    def test_rule_order(self):
        assert [rule.label for rule in RULES] == [
            "kick", "snare", "hihat", "bass", "lead", "pad", "vocal",
            "piano", "guitar", "string", "brass", "percussion",
        ]

    @pytest.mark.parametrize("label", sorted(CASES))
    def test_each_rule_is_reachable(self, classifier, features_factory, label):
        overrides, confidence = CASES[label]
        result_label, result_confidence = classifier.classify(features_factory(**overrides))

        assert result_label == label
        assert result_confidence == pytest.approx(confidence)

    def test_no_match_is_unknown(self, classifier, features_factory):
        assert classifier.classify(features_factory()) == ("unknown", 0.3)

    def test_kick_wins_over_later_matches(self, classifier, features_factory):
        features = features_factory(
            spectral_centroid=100, energy=0.8, attack=0.005, decay=0.1, sustain=0.5
        )
        later = [rule.label for rule in RULES[1:] if rule.matches(features)]

        assert "bass" in later
        assert "percussion" in later
        assert classifier.classify(features)[0] == "kick"

    def test_confidence_is_clamped(self, features_factory):
        rule = InstrumentRule("kick", (), ((lambda f: True, 0.4), (lambda f: True, 0.4)))
        assert rule.confidence(features_factory()) == 1.0


class TestInstrumentClassifier:
    def test_result_fields(self, classifier, features_factory):
        features = features_factory(spectral_centroid=100, energy=0.8, attack=0.005)
        result = classifier.analyze(features)

        assert result.instrument_type == "kick"
        assert set(result.characteristics) == {
            "frequency", "attack", "sustain", "decay",
            "spectral_centroid", "zero_crossing_rate",
        }
        assert result.characteristics["frequency"] == 100
        assert result.tags == [
            "kick", "low-frequency", "sub-bass", "high-energy", "punchy",
            "fast-attack", "drum", "percussion", "rhythm",
        ]

    def test_deterministic(self, classifier, features_factory):
        features = features_factory(**CASES["pad"][0])
        assert classifier.analyze(features).to_dict() == classifier.analyze(features).to_dict()

    def test_failing_rule_raises_analysis_error(self, features_factory):
        broken = InstrumentRule("kick", (lambda f: 1 / 0,), ())
        classifier = InstrumentClassifier(rules=(broken,))

        with pytest.raises(AnalysisError) as exc_info:
            classifier.analyze(features_factory())

        assert exc_info.value.analyzer_name == "instrument_rules"
        assert isinstance(exc_info.value.original_error, ZeroDivisionError)

    def test_name_and_version(self, classifier):
        assert classifier.name == "instrument_rules"
        assert classifier.version == "1.0.0"


class TestTagSet:
    def test_keeps_first_occurrence_order(self):
        tags = TagSet(["b", "a", "b"])
        tags.extend(["c", "a"])

        assert tags.to_list() == ["b", "a", "c"]
        assert "c" in tags
        assert len(tags) == 3


class TestTagLayers:
    @pytest.mark.parametrize(
        "centroid,expected",
        [
            (199, ("low-frequency", "sub-bass")),
            (200, ("bass-range",)),
            (999, ("mid-range",)),
            (1000, ("high-mid",)),
            (3000, ("high-frequency", "bright")),
        ],
    )
    def test_frequency_tags(self, centroid, expected):
        assert frequency_tags(centroid) == expected

    def test_energy_tags(self):
        assert energy_tags(0.8) == ("high-energy", "punchy")
        assert energy_tags(0.5) == ()
        assert energy_tags(0.1) == ("low-energy", "soft")

    def test_envelope_tags(self):
        assert envelope_tags(0.001, 0.7, 0.1) == [
            "fast-attack", "punchy", "sustained", "long", "short-decay", "tight",
        ]
        assert envelope_tags(0.5, 0.5, 0.5) == []

    @pytest.mark.parametrize(
        "bpm,expected",
        [
            (79, ("slow", "downtempo")),
            (80, ("mid-tempo",)),
            (120, ("up-tempo",)),
            (140, ("fast", "high-energy")),
        ],
    )
    def test_tempo_tags(self, bpm, expected):
        assert tempo_tags(bpm) == expected

    def test_unknown_label_has_no_bundle(self, features_factory):
        tags = TagSynthesizer().instrument_tags("unknown", features_factory())
        assert tags == ["unknown", "low-frequency", "sub-bass", "low-energy", "soft"]

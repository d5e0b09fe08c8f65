"""Tests for result models, result writers, batch processing and the CLI."""

import json
from pathlib import Path

import numpy as np
import pytest
import soundfile as sf

from cratetagger.cli import build_parser, main
from cratetagger.core.batch_processor import BatchProcessor
from cratetagger.core.corpus import CorpusAggregator, CorpusItem
from cratetagger.core.engine import AudioAnalysisEngine
from cratetagger.core.features import FeatureExtractor
from cratetagger.core.loader import AudioLoader
from cratetagger.core.models import AudioAnalysisResult, InstrumentDetectionResult
from cratetagger.core.result_writer import (
    JSONResultWriter,
    TextResultWriter,
    create_result_writer,
    format_corpus,
)


def make_result(**overrides):
    values = dict(bpm=120, key="C", genre="Unknown", mood="Neutral", tags=["major"])
    values.update(overrides)
    return AudioAnalysisResult(**values)


@pytest.fixture
def sample_dir(tmp_path):
    directory = tmp_path / "samples"
    (directory / "nested").mkdir(parents=True)
    sf.write(str(directory / "kick_trap_hard.wav"), np.zeros(4410), 44100, subtype="FLOAT")
    (directory / "lead_c#m_120bpm.mid").write_bytes(b"MThd")
    (directory / "readme.txt").write_text("skip me")
    (directory / "nested" / "pad_dark.mid").write_bytes(b"MThd")
    return directory


class TestModels:
    def test_result_validation(self):
        with pytest.raises(ValueError):
            make_result(bpm=300)
        with pytest.raises(ValueError):
            make_result(mood="Grumpy")
        with pytest.raises(ValueError):
            make_result(tags=["a", "a"])
        with pytest.raises(ValueError):
            make_result(source="guess")

    def test_instrument_validation(self):
        with pytest.raises(ValueError):
            InstrumentDetectionResult("theremin", 0.5, {}, [])
        with pytest.raises(ValueError):
            InstrumentDetectionResult("kick", 1.5, {}, [])

    def test_features_validation(self, features_factory):
        with pytest.raises(ValueError):
            features_factory(chroma=(0.0,) * 11)
        with pytest.raises(ValueError):
            features_factory(mel_bands=(0.0,) * 12)
        with pytest.raises(ValueError):
            features_factory(sustain=1.5)

    def test_features_to_dict(self, features_factory):
        data = features_factory(onset_count=2).to_dict()
        assert data["chroma"] == [0.0] * 12
        assert data["onset_count"] == 2
        assert features_factory(onset_count=2).tempo_measured
        assert not features_factory(onset_count=1).tempo_measured

    def test_result_json(self):
        instrument = InstrumentDetectionResult("kick", 0.9, {"frequency": 80.0}, ["kick"])
        result = make_result(instrument=instrument)

        data = json.loads(result.to_json())

        assert data["instrument"]["instrument_type"] == "kick"
        assert data["source"] == "audio"
        assert "Instrument: kick (90%)" in result.get_summary()

    def test_fallback_summary(self):
        assert "(filename only)" in make_result(source="filename").get_summary()


class TestResultWriters:
    def test_text_writer(self, tmp_path):
        corpus = CorpusAggregator().aggregate([CorpusItem("bass_jazz.mid")])
        output = tmp_path / "out" / "results.txt"

        TextResultWriter(include_timestamp=False).write(
            {Path("bass_jazz.mid"): make_result()}, output, corpus
        )
        text = output.read_text()

        assert "CRATETAGGER RESULTS" in text
        assert "FILE: bass_jazz.mid" in text
        assert "CORPUS SUMMARY" in text
        assert "Generated:" not in text

    def test_json_writer(self, tmp_path):
        output = tmp_path / "results.json"
        corpus = CorpusAggregator().aggregate([CorpusItem("bass_jazz.mid")])

        JSONResultWriter().write({Path("a.wav"): make_result()}, output, corpus)
        data = json.loads(output.read_text())

        assert data["total_files"] == 1
        assert data["results"]["a.wav"]["bpm"] == 120
        assert data["corpus"]["instruments"] == {"Bass": 1}

    def test_json_writer_without_corpus(self, tmp_path):
        output = tmp_path / "results.json"
        JSONResultWriter().write({}, output)
        assert "corpus" not in json.loads(output.read_text())

    def test_factory(self):
        assert isinstance(create_result_writer("TXT"), TextResultWriter)
        assert isinstance(create_result_writer("json", indent=4), JSONResultWriter)
        with pytest.raises(ValueError):
            create_result_writer("xml")

    def test_format_corpus_lists_failures(self):
        corpus = CorpusAggregator().aggregate([])
        corpus.failed_files["x.wav"] = "boom"

        lines = format_corpus(corpus)

        assert "Failed Files:" in lines
        assert "  x.wav: boom" in lines


class TestBatchProcessor:
    def test_collect_files(self, sample_dir):
        processor = BatchProcessor(engine=AudioAnalysisEngine())

        flat = processor.collect_files(sample_dir, recursive=False)
        deep = processor.collect_files([str(sample_dir)], recursive=True)

        assert [p.name for p in flat] == ["kick_trap_hard.wav", "lead_c#m_120bpm.mid"]
        assert len(deep) == 3

    def test_process_with_corpus(self, sample_dir):
        progress = []
        engine = AudioAnalysisEngine(loader=AudioLoader())
        processor = BatchProcessor(
            engine=engine,
            progress_callback=lambda current, total, path: progress.append((current, total)),
        )

        result = processor.process(sample_dir, recursive=True, corpus=True)

        assert result.total_files == 3
        assert result.success_count == 3
        assert result.fallback_count == 2
        assert result.success_rate == 100.0
        assert progress == [(1, 3), (2, 3), (3, 3)]
        assert result.corpus.total_files == 3

    def test_failures_are_recorded(self, sample_dir, monkeypatch):
        engine = AudioAnalysisEngine()

        def broken(buffer, filename=""):
            raise RuntimeError("tagger offline")

        monkeypatch.setattr(engine, "analyze_with_features", broken)
        result = BatchProcessor(engine=engine).process(sample_dir, corpus=True)

        assert result.failure_count == 2
        assert result.success_count == 0
        assert "tagger offline" in next(iter(result.failed.values()))
        # filename-only items still reach the summary
        assert result.corpus.total_files == 2

    def test_corpus_mode_extracts_each_file_once(self, tmp_path, monkeypatch):
        for name in ("a.wav", "b.wav", "c.wav"):
            sf.write(str(tmp_path / name), np.zeros(4410), 44100, subtype="FLOAT")

        calls = []
        extract = FeatureExtractor.extract

        def counting(buffer, settings=None):
            calls.append(buffer)
            return extract(buffer, settings)

        monkeypatch.setattr(FeatureExtractor, "extract", counting)
        engine = AudioAnalysisEngine(loader=AudioLoader())

        result = BatchProcessor(engine=engine).process(tmp_path, corpus=True)

        assert len(calls) == 3
        assert result.fallback_count == 0
        assert result.corpus.total_files == 3
        assert result.corpus.keys == {"C": 3}

    def test_process_files_skips_collection(self, sample_dir, monkeypatch):
        processor = BatchProcessor(engine=AudioAnalysisEngine())
        files = processor.collect_files(sample_dir, recursive=False)

        def unexpected(inputs, recursive):
            raise AssertionError("files were collected twice")

        monkeypatch.setattr(processor, "collect_files", unexpected)
        result = processor.process_files(files)

        assert result.total_files == 2
        assert result.corpus is None

    def test_empty_input(self, tmp_path):
        result = BatchProcessor(engine=AudioAnalysisEngine()).process(tmp_path)
        assert result.total_files == 0
        assert result.success_rate == 0.0


class TestCli:
    def test_parser_flags(self):
        args = build_parser().parse_args(["--corpus", "-r", "--no-decode", "a.wav"])
        assert args.corpus and args.recursive and args.no_decode
        assert args.inputs == [Path("a.wav")]

    def test_empty_directory_fails(self, tmp_path, capsys):
        assert main([str(tmp_path)]) == 1
        assert "no audio or MIDI files" in capsys.readouterr().err

    def test_tags_files_and_writes_reports(self, sample_dir, tmp_path, capsys):
        out_json = tmp_path / "crate.json"
        out_txt = tmp_path / "crate.txt"

        code = main([
            "--corpus", "-r", "--no-decode",
            "--output-json", str(out_json), "-o", str(out_txt),
            str(sample_dir),
        ])

        assert code == 0
        stdout = capsys.readouterr().out
        assert "FILE: kick_trap_hard.wav" in stdout
        assert "CORPUS SUMMARY" in stdout
        data = json.loads(out_json.read_text())
        assert data["total_files"] == 3
        assert all(r["source"] == "filename" for r in data["results"].values())
        assert out_txt.exists()

    def test_bad_config(self, sample_dir, tmp_path):
        assert main(["--config", str(tmp_path / "missing.yaml"), str(sample_dir)]) == 1

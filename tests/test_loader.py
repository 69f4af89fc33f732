"""Tests for pulsemetrics.loader -- JSON Lines sample-set files."""

from datetime import datetime

import pytest

from pulsemetrics.loader import load_sample_set, parse_sample, parse_sleep
from pulsemetrics.samples import SampleKind, SleepStage

from tests.conftest import sample_entry, write_jsonl


class TestParseEntries:
    def test_sample(self):
        s = parse_sample(sample_entry("hrv", "2026-02-13T04:00:00", 48))
        assert s.kind == SampleKind.HRV
        assert s.value == 48.0
        assert s.timestamp == datetime(2026, 2, 13, 4)

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            parse_sample(sample_entry("caffeine", "2026-02-13T04:00:00", 1))

    def test_sleep(self):
        iv = parse_sleep({"stage": "rem", "start": "2026-02-13T02:00:00", "end": "2026-02-13T02:30:00"})
        assert iv.stage == SleepStage.REM
        assert iv.minutes == 30.0

    def test_sleep_reversed(self):
        with pytest.raises(ValueError):
            parse_sleep({"stage": "rem", "start": "2026-02-13T03:00:00", "end": "2026-02-13T02:30:00"})


class TestLoadSampleSet:
    def test_empty_file(self, tmp_path):
        f = tmp_path / "empty.jsonl"
        f.write_text("")
        sample_set = load_sample_set(f)
        assert sample_set.samples == []
        assert not sample_set.synthetic

    def test_mixed_entries(self, tmp_path):
        f = write_jsonl(tmp_path / "day.jsonl", [
            sample_entry("heart_rate", "2026-02-13T08:00:00", 62),
            sample_entry("heart_rate", "2026-02-13T08:05:00", 64),
            {"type": "sleep", "stage": "deep", "start": "2026-02-13T01:00:00", "end": "2026-02-13T02:00:00"},
            {"type": "workout", "uuid": "W1", "workoutActivityType": 52,
             "startDate": "2026-02-13T12:00:00", "endDate": "2026-02-13T12:47:36"},
            {"type": "meta", "synthetic": True},
        ])
        sample_set = load_sample_set(f)
        assert len(sample_set.of_kind(SampleKind.HEART_RATE)) == 2
        assert len(sample_set.sleep) == 1
        assert sample_set.workouts[0].id == "W1"
        assert sample_set.workouts[0].activity_type == "walking"
        assert sample_set.workouts[0].duration_minutes == 48
        assert sample_set.synthetic

    def test_type_defaults_to_sample(self, tmp_path):
        entry = sample_entry("steps", "2026-02-13T08:00:00", 1200)
        del entry["type"]
        f = write_jsonl(tmp_path / "day.jsonl", [entry])
        assert load_sample_set(f).samples[0].kind == SampleKind.STEPS

    def test_invalid_json_skipped(self, tmp_path, capsys):
        f = tmp_path / "day.jsonl"
        f.write_text("not json\n" + '{"kind": "hrv", "timestamp": "2026-02-13T04:00:00", "value": 50}\n')
        sample_set = load_sample_set(f)
        assert len(sample_set.samples) == 1
        assert capsys.readouterr().err == ""

    def test_invalid_json_verbose(self, tmp_path, capsys):
        f = tmp_path / "day.jsonl"
        f.write_text("not json\n")
        load_sample_set(f, verbose=True)
        err = capsys.readouterr().err
        assert "Invalid JSON" in err
        assert "1 skipped" in err

    def test_bad_entries_skipped(self, tmp_path, capsys):
        f = write_jsonl(tmp_path / "day.jsonl", [
            sample_entry("heart_rate", "not a time", 60),
            {"type": "sample", "kind": "heart_rate", "timestamp": "2026-02-13T08:00:00"},
            {"type": "workout", "workoutActivityType": 37},
            {"type": "blood_pressure"},
            [1, 2, 3],
            sample_entry("heart_rate", "2026-02-13T08:00:00", 60),
        ])
        sample_set = load_sample_set(f, verbose=True)
        assert len(sample_set.samples) == 1
        assert sample_set.workouts == []
        err = capsys.readouterr().err
        assert "Unknown entry type" in err
        assert "5 skipped" in err

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_sample_set(tmp_path / "nope.jsonl")

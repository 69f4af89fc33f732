"""Tests for the pulsemetrics CLI."""

import json

import pytest
from click.testing import CliRunner

from pulsemetrics.cli import main

from tests.conftest import sample_entry, write_jsonl


@pytest.fixture
def sample_file(tmp_path):
    entries = [
        sample_entry("heart_rate", f"2026-02-13T{h:02d}:00:00", 60 + h)
        for h in range(6, 22)
    ]
    entries += [
        sample_entry("hrv", f"2026-02-{d:02d}T04:00:00", 45 + d % 5)
        for d in range(1, 14)
    ]
    entries += [
        {"type": "sleep", "stage": "core", "start": "2026-02-12T23:00:00", "end": "2026-02-13T03:00:00"},
        {"type": "sleep", "stage": "deep", "start": "2026-02-13T03:00:00", "end": "2026-02-13T05:00:00"},
        {"type": "workout", "uuid": "R1", "workoutActivityType": 37,
         "startDate": "2026-02-13T07:00:00", "endDate": "2026-02-13T07:30:00", "totalEnergyBurned": 300},
        {"type": "workout", "uuid": "Y1", "workoutActivityType": 57,
         "startDate": "2026-02-10T18:00:00", "endDate": "2026-02-10T19:00:00"},
    ]
    return str(write_jsonl(tmp_path / "samples.jsonl", entries))


class TestDayCommand:
    def test_outputs_metrics(self, sample_file):
        result = CliRunner().invoke(main, ["day", sample_file, "-d", "2026-02-13"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["date"] == "2026-02-13"
        assert data["workout_count"] == 1
        assert data["workout_minutes"] == 30
        assert 0.0 <= data["recovery_score"] <= 100.0

    def test_output_file(self, sample_file, tmp_path):
        out = tmp_path / "metrics.json"
        result = CliRunner().invoke(main, ["day", sample_file, "-d", "2026-02-13", "-o", str(out)])
        assert result.exit_code == 0
        assert "Output written to" in result.output
        assert json.loads(out.read_text())["date"] == "2026-02-13"

    def test_config(self, sample_file, tmp_path):
        config = tmp_path / "config.json"
        config.write_text(json.dumps({"defaults": {"sleep_efficiency": 77}}))
        empty = write_jsonl(tmp_path / "empty.jsonl", [])
        result = CliRunner().invoke(main, ["day", str(empty), "-d", "2026-02-13", "-c", str(config)])
        assert result.exit_code == 0
        assert json.loads(result.output)["sleep_efficiency"] == 77

    def test_bad_config(self, sample_file, tmp_path):
        config = tmp_path / "config.json"
        config.write_text(json.dumps({"user": {"fitness_level": "olympian"}}))
        result = CliRunner().invoke(main, ["day", sample_file, "-c", str(config)])
        assert result.exit_code == 2
        assert "--config" in result.output

    @pytest.mark.parametrize("user", [
        {"alcohol_weight_sensitivity": {"bogus": 1}},
        {"strain_guidance_thresholds": {"bogus": 1}},
        {"strain_thresholds": {"beginner": {"high": 700}, "intermediate": [500, 1000],
                               "advanced": [600, 1200], "elite": [700, 1400]}},
    ])
    def test_bad_nested_config(self, sample_file, tmp_path, user):
        config = tmp_path / "config.json"
        config.write_text(json.dumps({"user": user}))
        result = CliRunner().invoke(main, ["day", sample_file, "-c", str(config)])
        assert result.exit_code == 2
        assert "--config" in result.output
        assert not isinstance(result.exception, (TypeError, KeyError))

    def test_missing_file(self, tmp_path):
        result = CliRunner().invoke(main, ["day", str(tmp_path / "nope.jsonl")])
        assert result.exit_code == 2


class TestBaselineCommand:
    def test_window(self, sample_file):
        result = CliRunner().invoke(main, ["baseline", sample_file, "-d", "2026-02-13", "--window", "7"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["window_days"] == 7
        assert data["hrv_count"] > 0


class TestPeriodCommand:
    @pytest.mark.parametrize("days", ["14", "30"])
    def test_lengths(self, sample_file, days):
        result = CliRunner().invoke(main, ["period", sample_file, "-d", "2026-02-13", "--days", days])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["days"] == int(days)
        assert len(data["daily_data"]) == int(days)

    def test_rejects_other_lengths(self, sample_file):
        result = CliRunner().invoke(main, ["period", sample_file, "--days", "7"])
        assert result.exit_code == 2


class TestWorkoutsCommand:
    def test_recent_first(self, sample_file):
        result = CliRunner().invoke(main, ["workouts", sample_file])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert [w["id"] for w in data["workouts"]] == ["R1", "Y1"]
        assert data["by_type"] == {"running": 1, "yoga": 1}

    def test_date_filter(self, sample_file):
        result = CliRunner().invoke(main, ["workouts", sample_file, "--start", "2026-02-11", "--end", "2026-02-13"])
        data = json.loads(result.output)
        assert data["count"] == 1
        assert data["workouts"][0]["activity_type"] == "running"

"""Tests for pulsemetrics.analytics.pipeline and summary -- one full day."""

import json
from datetime import timedelta

from pulsemetrics.analytics.pipeline import DayContext, baseline_for, compute_daily_metrics, values_on
from pulsemetrics.analytics.stress import EnhancedStress, FallbackStress
from pulsemetrics.analytics.summary import DailyMetrics, build_daily_metrics, data_quality
from pulsemetrics.analytics.workouts import WorkoutData
from pulsemetrics.config import DefaultsTable, UserParams
from pulsemetrics.samples import DataQuality, SampleKind

from tests.conftest import DAY, at, hr_samples, make_night, make_sample_set, make_samples

CONTEXT = DayContext(day=DAY)


def _full_day():
    hr = hr_samples([55 + (i * 7) % 30 for i in range(72)], at(DAY, 6), step_min=10)
    hrv = []
    for offset in range(8):
        hrv += make_samples(SampleKind.HRV, [48.0 + offset], at(DAY - timedelta(days=offset), 4))
    resp = make_samples(SampleKind.RESPIRATORY_RATE, [14.5], at(DAY, 4))
    workout = WorkoutData("w1", "running", at(DAY, 17), 40, 350.0)
    return make_sample_set(hr + hrv + resp, make_night(DAY), [workout])


class TestDayContext:
    def test_defaults(self):
        assert CONTEXT.params == UserParams()
        assert CONTEXT.defaults == DefaultsTable()

    def test_for_day_keeps_configuration(self):
        ctx = DayContext(day=DAY, params=UserParams(age=50))
        moved = ctx.for_day(DAY - timedelta(days=1))
        assert moved.day == DAY - timedelta(days=1)
        assert moved.params.age == 50


class TestComputeDailyMetrics:
    def test_empty_day_is_complete(self):
        metrics = compute_daily_metrics(make_sample_set(), CONTEXT)
        assert metrics.date == "2026-02-13"
        assert metrics.sleep_efficiency == DefaultsTable().sleep_efficiency
        assert metrics.strain_score == 0.0
        assert metrics.stress_mode == "fallback"
        assert metrics.stress_level == DefaultsTable().default_stress_level
        assert 0.0 <= metrics.recovery_score <= 100.0
        assert metrics.quality == DataQuality.DEGRADED
        assert "sleep_stage" in metrics.defaults_used

    def test_synthetic_tagged(self):
        metrics = compute_daily_metrics(make_sample_set(synthetic=True), CONTEXT)
        assert metrics.quality == DataQuality.SYNTHETIC

    def test_full_day_is_real(self):
        metrics = compute_daily_metrics(_full_day(), CONTEXT)
        assert metrics.quality == DataQuality.REAL
        assert metrics.defaults_used == ["alcohol", "water", "calories_consumed"]
        assert metrics.sleep_performance == 100.0
        assert metrics.stress_mode == "enhanced"
        assert isinstance(metrics.stress, EnhancedStress)
        assert metrics.workout_count == 1
        assert metrics.workout_minutes == 40
        assert metrics.calories == 350.0
        assert metrics.strain_score > 0.0

    def test_precomputed_baseline_used(self):
        samples = _full_day()
        baseline = baseline_for(samples, CONTEXT)
        assert compute_daily_metrics(samples, CONTEXT, baseline) == compute_daily_metrics(samples, CONTEXT)

    def test_scores_bounded(self):
        metrics = compute_daily_metrics(_full_day(), CONTEXT)
        assert 0.0 <= metrics.sleep_performance <= 100.0
        assert 0.0 <= metrics.sleep_consistency <= 100.0
        assert 0.0 <= metrics.recovery_score <= 100.0
        assert 0.0 <= metrics.strain_score <= 21.0
        assert 0.0 <= metrics.stress_level <= 3.0

    def test_idempotent(self):
        samples = _full_day()
        assert compute_daily_metrics(samples, CONTEXT).to_dict() == compute_daily_metrics(samples, CONTEXT).to_dict()

    def test_to_json(self):
        data = json.loads(compute_daily_metrics(_full_day(), CONTEXT).to_json())
        assert data["quality"] == "real"
        assert data["stress_detail"]["hourly"]
        assert "stress_detail" not in compute_daily_metrics(make_sample_set(), CONTEXT).to_dict()

    def test_values_on(self):
        samples = hr_samples([60, 70], at(DAY, 23, 55), step_min=10)
        assert values_on(samples, DAY) == [60.0]


class TestDataQuality:
    def test_real(self):
        assert data_quality([]) == DataQuality.REAL

    def test_lifestyle_defaults_do_not_degrade(self):
        assert data_quality([SampleKind.ALCOHOL, SampleKind.WATER]) == DataQuality.REAL

    def test_physiological_default_degrades(self):
        assert data_quality([SampleKind.HRV]) == DataQuality.DEGRADED

    def test_synthetic_wins(self):
        assert data_quality([SampleKind.HRV], synthetic=True) == DataQuality.SYNTHETIC


class TestBuildDailyMetrics:
    def test_fallback_default_stress_degrades(self):
        base = compute_daily_metrics(_full_day(), CONTEXT)
        metrics = build_daily_metrics(
            DAY, base.sleep, base.recovery, base.strain,
            FallbackStress(level=2.0, defaulted=True),
        )
        assert isinstance(metrics, DailyMetrics)
        assert metrics.quality == DataQuality.DEGRADED
        assert metrics.stress_mode == "fallback"
        assert "DailyMetrics(2026-02-13" in repr(metrics)

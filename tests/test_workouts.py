"""Tests for pulsemetrics.analytics.workouts -- workout normalization."""

from datetime import date, datetime, timedelta, timezone

import pytest

from pulsemetrics.analytics.workouts import (
    UNKNOWN_ACTIVITY,
    WorkoutData,
    filter_workouts,
    normalize_workout,
    normalize_workouts,
    parse_timestamp,
    round_minutes,
    sort_recent_first,
    summarize_workouts,
    workouts_on,
)

from tests.conftest import DAY, at

T = datetime(2026, 2, 13, 7, 0)


def _record(**overrides) -> dict:
    record = {
        "uuid": "A1B2",
        "workoutActivityType": 37,
        "startDate": T.isoformat(),
        "endDate": (T + timedelta(minutes=30)).isoformat(),
        "totalEnergyBurned": 250.0,
    }
    record.update(overrides)
    return record


class TestParseTimestamp:
    def test_iso(self):
        assert parse_timestamp("2026-02-13T07:00:00") == T

    def test_zulu(self):
        assert parse_timestamp("2026-02-13T07:00:00Z") == datetime(2026, 2, 13, 7, tzinfo=timezone.utc)

    def test_epoch_seconds_and_millis(self):
        assert parse_timestamp(1770966000) == parse_timestamp(1770966000000)

    def test_datetime_passthrough(self):
        assert parse_timestamp(T) is T

    def test_garbage(self):
        with pytest.raises(ValueError):
            parse_timestamp("yesterday-ish")


class TestNormalizeWorkout:
    def test_healthkit_record(self):
        w = normalize_workout(_record())
        assert w == WorkoutData("A1B2", "running", T, 30, 250.0)
        assert w.end_time == T + timedelta(minutes=30)
        assert w.timestamp == T

    def test_duration_rounded(self):
        end = T + timedelta(minutes=47.6)
        assert normalize_workout(_record(endDate=end.isoformat())).duration_minutes == 48

    def test_duration_rounds_down(self):
        end = T + timedelta(minutes=47.4)
        assert normalize_workout(_record(endDate=end.isoformat())).duration_minutes == 47

    def test_half_minute_rounds_up(self):
        assert round_minutes(46.5) == 47
        assert round_minutes(47.5) == 48

    def test_duration_seconds_field(self):
        record = _record(duration=1800)
        del record["endDate"]
        assert normalize_workout(record).duration_minutes == 30

    def test_calories_default_zero(self):
        record = _record()
        del record["totalEnergyBurned"]
        assert normalize_workout(record).calories == 0.0

    def test_quantity_energy(self):
        w = normalize_workout(_record(totalEnergyBurned={"quantity": 312.5, "unit": "kcal"}))
        assert w.calories == 312.5

    def test_alternate_keys(self):
        record = {
            "id": 99,
            "type": "yoga",
            "start": "2026-02-13T18:00:00",
            "end": "2026-02-13T19:00:00",
            "calories": 120,
        }
        w = normalize_workout(record)
        assert (w.id, w.activity_type, w.duration_minutes, w.calories) == ("99", "yoga", 60, 120.0)

    def test_positional_id_only_without_source_id(self):
        record = _record()
        del record["uuid"]
        assert normalize_workout(record, 3).id == "workout-3"

    def test_stable_id(self):
        records = [_record(uuid="X"), _record(uuid="Y")]
        first = [w.id for w in normalize_workouts(records)]
        second = [w.id for w in normalize_workouts(list(reversed(records)))]
        assert sorted(first) == sorted(second) == ["X", "Y"]

    def test_unknown_activity_code(self):
        assert normalize_workout(_record(workoutActivityType=3000)).activity_type == "activity_3000"

    def test_missing_activity(self):
        record = _record()
        del record["workoutActivityType"]
        assert normalize_workout(record).activity_type == UNKNOWN_ACTIVITY

    def test_missing_start(self):
        record = _record()
        del record["startDate"]
        with pytest.raises(ValueError, match="no start time"):
            normalize_workout(record)

    def test_missing_end_and_duration(self):
        record = _record()
        del record["endDate"]
        with pytest.raises(ValueError):
            normalize_workout(record)

    def test_strength_flag(self):
        assert normalize_workout(_record(workoutActivityType=50)).is_strength
        assert not normalize_workout(_record()).is_strength


class TestFilterAndSort:
    WORKOUTS = [
        WorkoutData("a", "running", at(DAY - timedelta(days=2), 7), 30),
        WorkoutData("b", "cycling", at(DAY, 18), 45),
        WorkoutData("c", "yoga", at(DAY - timedelta(days=1), 23, 59), 20),
    ]

    def test_inclusive_dates(self):
        ids = [w.id for w in filter_workouts(self.WORKOUTS, DAY - timedelta(days=1), DAY)]
        assert ids == ["b", "c"]

    def test_single_day(self):
        assert [w.id for w in filter_workouts(self.WORKOUTS, DAY, DAY)] == ["b"]

    def test_datetime_bounds(self):
        ids = [w.id for w in filter_workouts(self.WORKOUTS, at(DAY, 0), at(DAY, 18))]
        assert ids == ["b"]

    def test_empty_range(self):
        assert filter_workouts(self.WORKOUTS, date(2020, 1, 1), date(2020, 1, 2)) == []

    def test_recent_first(self):
        assert [w.id for w in sort_recent_first(self.WORKOUTS)] == ["b", "c", "a"]

    def test_workouts_on(self):
        assert [w.id for w in workouts_on(self.WORKOUTS, DAY - timedelta(days=2))] == ["a"]


class TestSummarize:
    def test_totals(self):
        workouts = [
            WorkoutData("a", "running", T, 30, 300.0),
            WorkoutData("b", "running", T, 20, 150.5),
            WorkoutData("c", "yoga", T, 60),
        ]
        summary = summarize_workouts(workouts)
        assert summary.count == 3
        assert summary.total_minutes == 110
        assert summary.total_calories == 450.5
        assert summary.by_type == {"running": 2, "yoga": 1}

    def test_empty(self):
        summary = summarize_workouts([])
        assert summary.count == 0
        assert summary.by_type == {}

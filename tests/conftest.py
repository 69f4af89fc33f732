"""Shared fixtures and helpers for the pulsemetrics test suite."""

from __future__ import annotations

import json
from datetime import date, datetime, timedelta
from pathlib import Path

from pulsemetrics.samples import Sample, SampleKind, SampleSet, SleepInterval, SleepStage

DAY = date(2026, 2, 13)


# ---------------------------------------------------------------------------
# Sample-building helpers
# ---------------------------------------------------------------------------


def at(day: date, hour: int, minute: int = 0) -> datetime:
    """Naive local timestamp on *day*."""
    return datetime(day.year, day.month, day.day, hour, minute)


def make_samples(
    kind: SampleKind,
    values: list[float],
    start: datetime,
    step_min: float = 5.0,
) -> list[Sample]:
    """One sample per value, *step_min* minutes apart from *start*."""
    return [
        Sample(timestamp=start + timedelta(minutes=i * step_min), value=float(v), kind=kind)
        for i, v in enumerate(values)
    ]


def hr_samples(values: list[float], start: datetime, step_min: float = 5.0) -> list[Sample]:
    return make_samples(SampleKind.HEART_RATE, values, start, step_min)


def hrv_samples(values: list[float], start: datetime, step_min: float = 60.0) -> list[Sample]:
    return make_samples(SampleKind.HRV, values, start, step_min)


def make_night(
    day: date,
    bedtime: tuple[int, int] = (23, 0),
    stages: list[tuple[SleepStage, float]] | None = None,
) -> list[SleepInterval]:
    """Back-to-back sleep intervals for the night ending on *day*.

    *bedtime* is on the previous evening when its hour is >= 12, else on
    *day* itself.  Default stages total 8 h asleep and 30 min awake.
    """
    if stages is None:
        stages = [
            (SleepStage.AWAKE, 15),
            (SleepStage.CORE, 180),
            (SleepStage.DEEP, 90),
            (SleepStage.REM, 120),
            (SleepStage.AWAKE, 15),
            (SleepStage.CORE, 90),
        ]
    hour, minute = bedtime
    night_of = day - timedelta(days=1) if hour >= 12 else day
    t = at(night_of, hour, minute)
    intervals = []
    for stage, minutes in stages:
        end = t + timedelta(minutes=minutes)
        intervals.append(SleepInterval(start=t, end=end, stage=stage))
        t = end
    return intervals


def make_sample_set(
    samples: list[Sample] | None = None,
    sleep: list[SleepInterval] | None = None,
    workouts: list | None = None,
    synthetic: bool = False,
) -> SampleSet:
    return SampleSet(
        samples=list(samples or []),
        sleep=list(sleep or []),
        workouts=list(workouts or []),
        synthetic=synthetic,
    )


# ---------------------------------------------------------------------------
# JSONL sample-set file helpers
# ---------------------------------------------------------------------------


def write_jsonl(path: Path, entries: list) -> Path:
    """Write a list of dicts as JSONL to the given path."""
    with open(path, "w") as f:
        for entry in entries:
            f.write(json.dumps(entry) + "\n")
    return path


def sample_entry(kind: str, timestamp: str, value: float) -> dict:
    """Create a single JSONL sample entry."""
    return {"type": "sample", "kind": kind, "timestamp": timestamp, "value": value}

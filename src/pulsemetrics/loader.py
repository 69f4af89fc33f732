"""Load sample-set files for offline analysis.

A sample-set file is JSON Lines, one entry per line::

    {"type": "sample", "kind": "heart_rate", "timestamp": "2026-02-13T08:00:00", "value": 62}
    {"type": "sleep", "stage": "deep", "start": "...", "end": "..."}
    {"type": "workout", "uuid": "...", "workoutActivityType": 37, "startDate": "...", "endDate": "..."}
    {"type": "meta", "synthetic": true}

Workout entries are raw workout records and go through
:func:`~pulsemetrics.analytics.workouts.normalize_workout`.  Entries that
cannot be read are skipped; with ``verbose`` each one is reported.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

from pulsemetrics.analytics.workouts import normalize_workout, parse_timestamp
from pulsemetrics.samples import Sample, SampleKind, SampleSet, SleepInterval, SleepStage


def _report(verbose: bool, message: str) -> None:
    if verbose:
        print(message, file=sys.stderr)


def parse_sample(entry: dict) -> Sample:
    return Sample(
        timestamp=parse_timestamp(entry["timestamp"]),
        value=float(entry["value"]),
        kind=SampleKind(entry["kind"]),
    )


def parse_sleep(entry: dict) -> SleepInterval:
    interval = SleepInterval(
        start=parse_timestamp(entry["start"]),
        end=parse_timestamp(entry["end"]),
        stage=SleepStage(entry["stage"]),
    )
    if interval.end < interval.start:
        raise ValueError("sleep interval ends before it starts")
    return interval


def load_sample_set(path: str | Path, verbose: bool = False) -> SampleSet:
    """Read a JSON Lines sample-set file.

    Args:
        path: Path to the ``.jsonl`` file.
        verbose: If True, report every skipped line on stderr.

    Returns:
        The SampleSet; workouts are normalized.
    """
    path = Path(path)
    sample_set = SampleSet()
    skipped = 0

    with open(path) as f:
        for line_num, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue

            try:
                entry = json.loads(line)
            except json.JSONDecodeError:
                _report(verbose, f"  [line {line_num}] Invalid JSON, skipping")
                skipped += 1
                continue
            if not isinstance(entry, dict):
                _report(verbose, f"  [line {line_num}] Not an object, skipping")
                skipped += 1
                continue

            kind = entry.get("type", "sample")
            try:
                if kind == "sample":
                    sample_set.samples.append(parse_sample(entry))
                elif kind == "sleep":
                    sample_set.sleep.append(parse_sleep(entry))
                elif kind == "workout":
                    record = {k: v for k, v in entry.items() if k != "type"}
                    sample_set.workouts.append(normalize_workout(record, len(sample_set.workouts)))
                elif kind == "meta":
                    sample_set.synthetic = bool(entry.get("synthetic", False))
                else:
                    _report(verbose, f"  [line {line_num}] Unknown entry type {kind!r}, skipping")
                    skipped += 1
            except (KeyError, TypeError, ValueError) as e:
                _report(verbose, f"  [line {line_num}] {kind}: {e}, skipping")
                skipped += 1

    _report(
        verbose,
        f"Loaded {path.name}: {len(sample_set.samples)} samples, "
        f"{len(sample_set.sleep)} sleep intervals, "
        f"{len(sample_set.workouts)} workouts, {skipped} skipped",
    )
    return sample_set

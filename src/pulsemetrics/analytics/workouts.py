"""Workout normalization.

Raw workout records arrive in several shapes (HealthKit exports, other
wearables, hand-written JSON).  :func:`normalize_workout` maps any of them
onto :class:`WorkoutData`; the remaining helpers filter, sort and total
normalized workouts for presentation and for the strain calculator.
"""

from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Any, Iterable, Mapping, Sequence

from pulsemetrics.analytics.bucketing import local_date, wall_clock

# HealthKit HKWorkoutActivityType raw values seen in exports
HK_ACTIVITY_TYPES = {
    6: "basketball",
    8: "boxing",
    9: "climbing",
    11: "crossTraining",
    13: "cycling",
    16: "elliptical",
    20: "functionalStrengthTraining",
    21: "golf",
    24: "hiking",
    28: "martialArts",
    29: "mindAndBody",
    35: "rowing",
    37: "running",
    41: "soccer",
    44: "stairClimbing",
    46: "swimming",
    48: "tennis",
    50: "traditionalStrengthTraining",
    52: "walking",
    57: "yoga",
    63: "highIntensityIntervalTraining",
    73: "mixedCardio",
    80: "cooldown",
}

STRENGTH_TYPES = frozenset({
    "functionalStrengthTraining",
    "traditionalStrengthTraining",
    "crossTraining",
})

UNKNOWN_ACTIVITY = "other"

_ID_KEYS = ("uuid", "id", "workout_id")
_TYPE_KEYS = ("workoutActivityType", "activity_type", "activityType", "type")
_START_KEYS = ("startDate", "start_time", "start")
_END_KEYS = ("endDate", "end_time", "end")
_ENERGY_KEYS = ("totalEnergyBurned", "calories", "energy", "active_energy")


@dataclass(frozen=True)
class WorkoutData:
    """A workout in canonical form."""

    id: str
    activity_type: str
    start_time: datetime
    duration_minutes: int
    calories: float = 0.0

    @property
    def timestamp(self) -> datetime:
        return self.start_time

    @property
    def end_time(self) -> datetime:
        return self.start_time + timedelta(minutes=self.duration_minutes)

    @property
    def is_strength(self) -> bool:
        return self.activity_type in STRENGTH_TYPES

    def __repr__(self) -> str:
        return (
            f"WorkoutData({self.activity_type}, "
            f"{self.start_time.isoformat()}, "
            f"{self.duration_minutes}min, "
            f"cal={self.calories:.0f})"
        )


@dataclass
class WorkoutSummary:
    """Totals over a list of workouts."""

    count: int = 0
    total_minutes: int = 0
    total_calories: float = 0.0
    by_type: dict[str, int] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Field parsing
# ---------------------------------------------------------------------------


def _first(record: Mapping[str, Any], keys: Sequence[str]) -> Any:
    for key in keys:
        value = record.get(key)
        if value is not None and value != "":
            return value
    return None


def parse_timestamp(value: Any) -> datetime:
    """Accept a datetime, an ISO-8601 string, or Unix seconds/milliseconds."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)):
        seconds = value / 1000.0 if value > 1e12 else float(value)
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            raise ValueError(f"Unparseable timestamp: {value!r}") from None
    raise ValueError(f"Unsupported timestamp type: {type(value).__name__}")


def _activity_type(value: Any) -> str:
    if value is None:
        return UNKNOWN_ACTIVITY
    if isinstance(value, bool):
        return UNKNOWN_ACTIVITY
    if isinstance(value, (int, float)):
        return HK_ACTIVITY_TYPES.get(int(value), f"activity_{int(value)}")
    return str(value)


def _energy(value: Any) -> float:
    if isinstance(value, Mapping):
        value = value.get("quantity")
    if value is None:
        return 0.0
    try:
        kcal = float(value)
    except (TypeError, ValueError):
        return 0.0
    return kcal if math.isfinite(kcal) and kcal > 0 else 0.0


def round_minutes(minutes: float) -> int:
    """Round half up to a whole minute."""
    return int(math.floor(minutes + 0.5))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def normalize_workout(record: Mapping[str, Any], index: int = 0) -> WorkoutData:
    """Map one raw workout record onto :class:`WorkoutData`.

    Args:
        record: Raw record.  Recognized keys: ``uuid``/``id``,
            ``workoutActivityType``/``activity_type``/``type``,
            ``startDate``/``start``, ``endDate``/``end`` (or ``duration`` in
            seconds, or ``duration_minutes``), ``totalEnergyBurned``/``calories``.
        index: Position in the source list; used for the id only when the
            record has no identifier of its own.

    Raises:
        ValueError: if the record has no start time, or neither an end time
            nor a duration.
    """
    start_raw = _first(record, _START_KEYS)
    if start_raw is None:
        raise ValueError(f"Workout record {index} has no start time")
    start = parse_timestamp(start_raw)

    end_raw = _first(record, _END_KEYS)
    if end_raw is not None:
        minutes = (parse_timestamp(end_raw) - start).total_seconds() / 60.0
    elif record.get("duration_minutes") is not None:
        minutes = float(record["duration_minutes"])
    elif record.get("duration") is not None:
        minutes = float(record["duration"]) / 60.0
    else:
        raise ValueError(f"Workout record {index} has neither an end time nor a duration")

    source_id = _first(record, _ID_KEYS)
    return WorkoutData(
        id=str(source_id) if source_id is not None else f"workout-{index}",
        activity_type=_activity_type(_first(record, _TYPE_KEYS)),
        start_time=start,
        duration_minutes=max(0, round_minutes(minutes)),
        calories=_energy(_first(record, _ENERGY_KEYS)),
    )


def normalize_workouts(records: Iterable[Mapping[str, Any]]) -> list[WorkoutData]:
    return [normalize_workout(record, i) for i, record in enumerate(records)]


def filter_workouts(
    workouts: Iterable[WorkoutData],
    start: date | datetime,
    end: date | datetime,
    tz: tzinfo | None = None,
) -> list[WorkoutData]:
    """Workouts starting within ``[start, end]`` (inclusive).

    Plain dates compare against the workout's local calendar date;
    datetimes compare against its local start time.
    """
    if isinstance(start, datetime) or isinstance(end, datetime):
        lo = wall_clock(start, tz) if isinstance(start, datetime) else datetime.combine(start, datetime.min.time())
        hi = wall_clock(end, tz) if isinstance(end, datetime) else datetime.combine(end, datetime.max.time())
        return [w for w in workouts if lo <= wall_clock(w.start_time, tz) <= hi]
    return [w for w in workouts if start <= local_date(w.start_time, tz) <= end]


def workouts_on(workouts: Iterable[WorkoutData], day: date, tz: tzinfo | None = None) -> list[WorkoutData]:
    return [w for w in workouts if local_date(w.start_time, tz) == day]


def sort_recent_first(workouts: Iterable[WorkoutData], tz: tzinfo | None = None) -> list[WorkoutData]:
    return sorted(workouts, key=lambda w: wall_clock(w.start_time, tz), reverse=True)


def summarize_workouts(workouts: Iterable[WorkoutData]) -> WorkoutSummary:
    workouts = list(workouts)
    counts = Counter(w.activity_type for w in workouts)
    return WorkoutSummary(
        count=len(workouts),
        total_minutes=sum(w.duration_minutes for w in workouts),
        total_calories=round(sum(w.calories for w in workouts), 1),
        by_type=dict(counts),
    )

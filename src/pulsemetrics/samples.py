"""Sample data model shared by every analytics module.

Samples are produced by the caller (a health-data store client) and are
never mutated after creation.  Every sample-like object exposes a
``timestamp`` so the bucketer can group it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pulsemetrics.analytics.workouts import WorkoutData


class SampleKind(str, Enum):
    """Category of a single reading."""

    HEART_RATE = "heart_rate"
    HRV = "hrv"
    RESTING_HEART_RATE = "resting_heart_rate"
    RESPIRATORY_RATE = "respiratory_rate"
    ACTIVE_ENERGY = "active_energy"
    STEPS = "steps"
    SLEEP_STAGE = "sleep_stage"
    WATER = "water"
    ALCOHOL = "alcohol"
    CALORIES_CONSUMED = "calories_consumed"


class SleepStage(str, Enum):
    """Sleep-analysis interval label."""

    IN_BED = "in_bed"
    AWAKE = "awake"
    CORE = "core"
    DEEP = "deep"
    REM = "rem"
    ASLEEP = "asleep"  # asleep, stage unspecified


ASLEEP_STAGES = frozenset({
    SleepStage.CORE,
    SleepStage.DEEP,
    SleepStage.REM,
    SleepStage.ASLEEP,
})


class DataQuality(str, Enum):
    """Provenance tag carried on every computed day."""

    REAL = "real"
    DEGRADED = "degraded"  # at least one physiological input was defaulted
    SYNTHETIC = "synthetic"  # caller substituted a fabricated sample set


@dataclass(frozen=True)
class Sample:
    """One timestamped reading."""

    timestamp: datetime
    value: float
    kind: SampleKind


@dataclass(frozen=True)
class SleepInterval:
    """A sleep-stage interval (start inclusive, end exclusive)."""

    start: datetime
    end: datetime
    stage: SleepStage

    @property
    def timestamp(self) -> datetime:
        return self.start

    @property
    def minutes(self) -> float:
        return max(0.0, (self.end - self.start).total_seconds() / 60.0)

    @property
    def asleep(self) -> bool:
        return self.stage in ASLEEP_STAGES


@dataclass
class SampleSet:
    """Everything the caller fetched for one computation."""

    samples: list[Sample] = field(default_factory=list)
    sleep: list[SleepInterval] = field(default_factory=list)
    workouts: list[WorkoutData] = field(default_factory=list)
    synthetic: bool = False

    def of_kind(self, kind: SampleKind) -> list[Sample]:
        """Return the samples of one kind, in input order."""
        return [s for s in self.samples if s.kind == kind]

    def __repr__(self) -> str:
        return (
            f"SampleSet(samples={len(self.samples)}, "
            f"sleep={len(self.sleep)}, "
            f"workouts={len(self.workouts)}"
            f"{', synthetic' if self.synthetic else ''})"
        )

"""Sleep performance, efficiency and consistency.

A "night" belongs to the day it ends on: the night of day D is every
sleep-stage interval starting between noon of D-1 and noon of D.

  - Performance -- asleep hours versus an age/fitness-adjusted need.
  - Efficiency  -- asleep time versus time in bed.
  - Consistency -- night-to-night spread of sleep onset and duration over
    the trailing week.

A night with no intervals at all is missing data, not zero sleep: every
metric falls back to the configured default sleep efficiency.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Sequence

from pulsemetrics.analytics.bucketing import clamp, mean, population_sd, wall_clock
from pulsemetrics.config import DefaultsTable, UserParams
from pulsemetrics.samples import SampleKind, SleepInterval, SleepStage

# Onset / duration standard deviation (hours) that maps to 0 consistency
CONSISTENCY_MAX_SD_HOURS = 2.5
CONSISTENCY_NIGHTS = 7

# Awake share of the night tolerated before it counts as sleep stress (%)
AWAKE_STRESS_THRESHOLD = 10.0

TEEN_AGE = 18
SENIOR_AGE = 65
TEEN_EXTRA_HOURS = 1.0
SENIOR_REDUCTION_HOURS = 0.5


@dataclass
class NightTotals:
    """Minutes per stage for one night."""

    stage_minutes: dict[str, float]
    asleep_min: float = 0.0
    awake_min: float = 0.0
    in_bed_min: float = 0.0
    onset: datetime | None = None  # first asleep (or in-bed) start, wall clock

    @property
    def time_in_bed_min(self) -> float:
        if self.in_bed_min > 0:
            return self.in_bed_min
        return self.asleep_min + self.awake_min


@dataclass
class SleepResult:
    """Sleep metrics for one night."""

    performance: float  # 0-100
    efficiency: float  # 0-100
    consistency: float  # 0-100
    hours_needed: float
    asleep_min: float = 0.0
    awake_min: float = 0.0
    time_in_bed_min: float = 0.0
    restorative_min: float = 0.0  # deep + REM
    high_sleep_stress: float = 0.0  # awake % above the tolerated share
    stage_minutes: dict[str, float] = field(default_factory=dict)
    stage_percentages: dict[str, float] = field(default_factory=dict)
    defaults_used: list[SampleKind] = field(default_factory=list)

    @property
    def has_data(self) -> bool:
        return SampleKind.SLEEP_STAGE not in self.defaults_used

    def __repr__(self) -> str:
        flag = "" if self.has_data else ", defaulted"
        return (
            f"SleepResult(perf={self.performance:.0f}, "
            f"eff={self.efficiency:.0f}, "
            f"cons={self.consistency:.0f}, "
            f"asleep={self.asleep_min:.0f}min{flag})"
        )


# ---------------------------------------------------------------------------
# Night selection
# ---------------------------------------------------------------------------


def night_window(day: date) -> tuple[datetime, datetime]:
    """[noon of the previous day, noon of *day*) on the wall clock."""
    end = datetime.combine(day, time(12, 0))
    return end - timedelta(days=1), end


def night_intervals(
    intervals: Sequence[SleepInterval],
    day: date,
    tz: tzinfo | None = None,
) -> list[SleepInterval]:
    start, end = night_window(day)
    return [iv for iv in intervals if start <= wall_clock(iv.start, tz) < end]


def night_totals(intervals: Sequence[SleepInterval], tz: tzinfo | None = None) -> NightTotals:
    totals = NightTotals(stage_minutes={stage.value: 0.0 for stage in SleepStage})
    asleep_starts: list[datetime] = []
    bed_starts: list[datetime] = []

    for iv in intervals:
        minutes = iv.minutes
        totals.stage_minutes[iv.stage.value] += minutes
        if iv.asleep:
            totals.asleep_min += minutes
            asleep_starts.append(wall_clock(iv.start, tz))
        elif iv.stage == SleepStage.AWAKE:
            totals.awake_min += minutes
        elif iv.stage == SleepStage.IN_BED:
            totals.in_bed_min += minutes
            bed_starts.append(wall_clock(iv.start, tz))

    if asleep_starts:
        totals.onset = min(asleep_starts)
    elif bed_starts:
        totals.onset = min(bed_starts)
    return totals


# ---------------------------------------------------------------------------
# Component metrics
# ---------------------------------------------------------------------------


def hours_needed(params: UserParams) -> float:
    """Nightly sleep need adjusted for fitness level and age."""
    need = params.sleep_need_hours + params.sleep_need_fitness_adjustments[params.fitness_level]
    if params.age:
        if params.age < TEEN_AGE:
            need += TEEN_EXTRA_HOURS
        elif params.age >= SENIOR_AGE:
            need -= SENIOR_REDUCTION_HOURS
    return need


def _consistency(
    intervals: Sequence[SleepInterval],
    day: date,
    tz: tzinfo | None,
    nights: int,
) -> float:
    """Mean of onset and duration regularity scores over trailing nights."""
    onsets_h: list[float] = []
    durations_h: list[float] = []
    for offset in range(nights):
        night = day - timedelta(days=offset)
        totals = night_totals(night_intervals(intervals, night, tz), tz)
        if totals.onset is None or totals.asleep_min <= 0:
            continue
        # Onset measured from the previous noon so 23:30 and 00:30 stay close
        noon_before, _ = night_window(night)
        onsets_h.append((totals.onset - noon_before).total_seconds() / 3600.0)
        durations_h.append(totals.asleep_min / 60.0)

    if len(onsets_h) < 2:
        return 100.0

    def regularity(sd_hours: float) -> float:
        return max(0.0, 100.0 - sd_hours / CONSISTENCY_MAX_SD_HOURS * 100.0)

    return mean([regularity(population_sd(onsets_h)), regularity(population_sd(durations_h))])


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def score_sleep(
    intervals: Sequence[SleepInterval],
    day: date,
    params: UserParams,
    defaults: DefaultsTable,
    tz: tzinfo | None = None,
    consistency_nights: int = CONSISTENCY_NIGHTS,
) -> SleepResult:
    """Score the night ending on *day*.

    Args:
        intervals: Sleep-stage intervals; may span many nights (the trailing
            week is used for consistency).
        day: Calendar day the night ends on.
        params: User parameters (age, fitness level, sleep need).
        defaults: Fallback constants.
        tz: Optional zone for aware timestamps.
        consistency_nights: Number of trailing nights for consistency.

    Returns:
        SleepResult.  With no intervals for the night, performance,
        efficiency and consistency all equal ``defaults.sleep_efficiency``.
    """
    need = hours_needed(params)
    tonight = night_intervals(intervals, day, tz)

    if not tonight:
        fallback = clamp(defaults.fallback_for(SampleKind.SLEEP_STAGE), 0.0, 100.0)
        return SleepResult(
            performance=fallback,
            efficiency=fallback,
            consistency=fallback,
            hours_needed=need,
            stage_minutes={stage.value: 0.0 for stage in SleepStage},
            stage_percentages={stage.value: 0.0 for stage in SleepStage if stage != SleepStage.IN_BED},
            defaults_used=[SampleKind.SLEEP_STAGE],
        )

    totals = night_totals(tonight, tz)
    asleep_h = totals.asleep_min / 60.0
    performance = clamp(asleep_h / need * 100.0, 0.0, 100.0) if need > 0 else 100.0

    in_bed = totals.time_in_bed_min
    efficiency = clamp(totals.asleep_min / in_bed * 100.0, 0.0, 100.0) if in_bed > 0 else 0.0

    consistency = _consistency(intervals, day, tz, consistency_nights)

    tracked = totals.asleep_min + totals.awake_min
    percentages = {
        stage.value: round(totals.stage_minutes[stage.value] / tracked * 100.0, 0) if tracked > 0 else 0.0
        for stage in SleepStage
        if stage != SleepStage.IN_BED
    }
    awake_pct = totals.awake_min / tracked * 100.0 if totals.asleep_min > 0 else 0.0
    high_stress = max(0.0, awake_pct - AWAKE_STRESS_THRESHOLD)

    return SleepResult(
        performance=round(performance, 1),
        efficiency=round(efficiency, 1),
        consistency=round(consistency, 1),
        hours_needed=need,
        asleep_min=round(totals.asleep_min, 1),
        awake_min=round(totals.awake_min, 1),
        time_in_bed_min=round(in_bed, 1),
        restorative_min=round(
            totals.stage_minutes[SleepStage.DEEP.value] + totals.stage_minutes[SleepStage.REM.value], 1
        ),
        high_sleep_stress=round(high_stress, 1),
        stage_minutes={k: round(v, 1) for k, v in totals.stage_minutes.items()},
        stage_percentages=percentages,
    )

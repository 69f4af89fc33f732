"""Stress level on a 0-3 scale.

Two modes, returned as distinct types:

  - :class:`EnhancedStress` when the trailing window holds enough HRV
    readings and the day has heart-rate data.  Each hour's mean HR and
    HRV are compared with the personal baseline, adjusted for time of
    day, and averaged over the whole day, over sleep hours, and over
    hours outside sleep and workouts.
  - :class:`FallbackStress` otherwise: a single level from the ratio of
    resting HR to HRV, or the configured default stress level when even
    that cannot be formed.

0 = no stress, 1 = low, 2 = moderate, 3 = high.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, tzinfo
from typing import Sequence, Union

from pulsemetrics.analytics.baseline import BaselineVitals
from pulsemetrics.analytics.bucketing import bucket_by, clamp, day_end, day_start, mean, wall_clock
from pulsemetrics.analytics.workouts import WorkoutData
from pulsemetrics.config import DefaultsTable, UserParams
from pulsemetrics.samples import Sample, SampleKind, SleepInterval

MAX_STRESS = 3.0

# HR this far above resting (as a fraction of resting) counts as full HR stress
HR_STRESS_SPAN = 0.5

# RHR / HRV ratio mapped linearly onto [0, MAX_STRESS]
RATIO_LOW = 0.5
RATIO_HIGH = 3.0


@dataclass(frozen=True)
class HourlyStress:
    hour_start: datetime
    hr: float
    hrv: float
    stress: float


@dataclass(frozen=True)
class EnhancedStress:
    """Baseline-relative stress with the hourly breakdown."""

    total_day_stress: float
    sleep_stress: float
    non_activity_stress: float
    baseline_hrv: float
    baseline_rhr: float
    hourly: list[HourlyStress] = field(default_factory=list)

    mode = "enhanced"

    @property
    def level(self) -> float:
        return self.total_day_stress

    def __repr__(self) -> str:
        return (
            f"EnhancedStress(day={self.total_day_stress:.2f}, "
            f"sleep={self.sleep_stress:.2f}, "
            f"non_activity={self.non_activity_stress:.2f}, "
            f"hours={len(self.hourly)})"
        )


@dataclass(frozen=True)
class FallbackStress:
    """A single coarse stress level."""

    level: float
    defaulted: bool = False  # True when the default stress level was used

    mode = "fallback"

    def __repr__(self) -> str:
        flag = ", defaulted" if self.defaulted else ""
        return f"FallbackStress(level={self.level:.2f}{flag})"


StressResult = Union[EnhancedStress, FallbackStress]


# ---------------------------------------------------------------------------
# Moments
# ---------------------------------------------------------------------------


def adjust_for_time_of_day(stress: float, hour: int) -> float:
    """Weight an hourly value by when it happened."""
    if hour >= 22 or hour < 6:
        return stress * 1.2
    if 14 <= hour < 16:
        return stress * 0.9
    if 6 <= hour < 9:
        return stress * 0.95
    return stress


def compute_stress_moment(
    hr: float,
    hrv: float,
    baseline_rhr: float,
    baseline_hrv: float,
    hour: int | None = None,
) -> float:
    """Stress for one moment from its HR and HRV versus baseline.

    HRV stress is the fractional drop below baseline HRV; HR stress is the
    rise above resting HR as a share of half the resting HR, capped at 1.
    Their mean is scaled to 0-3.
    """
    hrv_stress = max(0.0, 1.0 - hrv / baseline_hrv) if baseline_hrv > 0 else 0.0
    hr_stress = (
        clamp((hr - baseline_rhr) / (baseline_rhr * HR_STRESS_SPAN), 0.0, 1.0)
        if baseline_rhr > 0
        else 0.0
    )
    raw = (hrv_stress + hr_stress) / 2.0 * MAX_STRESS
    if hour is not None:
        raw = adjust_for_time_of_day(raw, hour)
    return round(clamp(raw, 0.0, MAX_STRESS), 2)


def is_in_intervals(t: datetime, intervals: Sequence[tuple[datetime, datetime]]) -> bool:
    return any(start <= t < end for start, end in intervals)


def hourly_heart_data(
    hr_samples: Sequence[Sample],
    hrv_samples: Sequence[Sample],
    fallback_hrv: float,
    tz: tzinfo | None = None,
) -> list[tuple[datetime, float, float]]:
    """``(hour_start, mean_hr, mean_hrv)`` for each hour with HR data.

    Hours without an HRV reading use *fallback_hrv*.
    """
    hr_by_hour = bucket_by(hr_samples, "hour", tz)
    hrv_by_hour = bucket_by(hrv_samples, "hour", tz)
    rows = []
    for key, bucket in hr_by_hour.items():
        hrv_bucket = hrv_by_hour.get(key, [])
        hrv = mean([s.value for s in hrv_bucket]) if hrv_bucket else fallback_hrv
        rows.append((
            datetime.strptime(key, "%Y-%m-%dT%H:00"),
            round(mean([s.value for s in bucket]), 1),
            round(hrv, 1),
        ))
    rows.sort(key=lambda row: row[0])
    return rows


def stress_from_ratio(resting_hr: float, hrv: float) -> float:
    """Map RHR / HRV from [0.5, 3.0] onto [0, 3]."""
    ratio = resting_hr / hrv
    return round(clamp((ratio - RATIO_LOW) / (RATIO_HIGH - RATIO_LOW) * MAX_STRESS, 0.0, MAX_STRESS), 2)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def score_stress(
    hr_samples: Sequence[Sample],
    hrv_samples: Sequence[Sample],
    day: date,
    baseline: BaselineVitals,
    params: UserParams,
    defaults: DefaultsTable,
    sleep: Sequence[SleepInterval] = (),
    workouts: Sequence[WorkoutData] = (),
    resting_hr: float | None = None,
    tz: tzinfo | None = None,
) -> StressResult:
    """Compute the stress level for one local day.

    Args:
        hr_samples: Heart-rate samples (only *day* is used).
        hrv_samples: HRV samples (only *day* is used).
        day: Local calendar day.
        baseline: Trailing baseline; its HRV pool size selects the mode.
        params: User parameters (``hrv_data_minimum_samples``).
        defaults: Fallback constants.
        sleep: Sleep intervals; asleep hours feed ``sleep_stress``.
        workouts: The day's workouts, excluded from ``non_activity_stress``.
        resting_hr: Today's resting HR for the fallback ratio.
        tz: Optional zone for aware timestamps.

    Returns:
        EnhancedStress or FallbackStress, every level within [0, 3].
    """
    start, end = day_start(day), day_end(day)
    todays_hr = [s for s in hr_samples if start <= wall_clock(s.timestamp, tz) <= end]
    todays_hrv = [s for s in hrv_samples if start <= wall_clock(s.timestamp, tz) <= end]

    if baseline.hrv_count >= params.hrv_data_minimum_samples and todays_hr:
        baseline_hrv = baseline.hrv_mean
        baseline_rhr = (
            baseline.hr_mean if baseline.hr_count > 0
            else defaults.fallback_for(SampleKind.RESTING_HEART_RATE)
        )
        sleep_ivs = [(wall_clock(iv.start, tz), wall_clock(iv.end, tz)) for iv in sleep if iv.asleep]
        workout_ivs = [(wall_clock(w.start_time, tz), wall_clock(w.end_time, tz)) for w in workouts]

        hourly = [
            HourlyStress(
                hour_start=hour_start,
                hr=hr,
                hrv=hrv,
                stress=compute_stress_moment(hr, hrv, baseline_rhr, baseline_hrv, hour_start.hour),
            )
            for hour_start, hr, hrv in hourly_heart_data(todays_hr, todays_hrv, baseline_hrv, tz)
        ]
        asleep = [h.stress for h in hourly if is_in_intervals(h.hour_start, sleep_ivs)]
        resting = [
            h.stress for h in hourly
            if not is_in_intervals(h.hour_start, sleep_ivs)
            and not is_in_intervals(h.hour_start, workout_ivs)
        ]
        return EnhancedStress(
            total_day_stress=round(mean([h.stress for h in hourly]), 2),
            sleep_stress=round(mean(asleep), 2),
            non_activity_stress=round(mean(resting), 2),
            baseline_hrv=round(baseline_hrv, 1),
            baseline_rhr=round(baseline_rhr, 1),
            hourly=hourly,
        )

    hrv = baseline.hrv_mean if baseline.hrv_count > 0 else mean([s.value for s in todays_hrv])
    if resting_hr and resting_hr > 0 and hrv > 0:
        return FallbackStress(level=stress_from_ratio(resting_hr, hrv))
    return FallbackStress(level=clamp(defaults.default_stress_level, 0.0, MAX_STRESS), defaulted=True)

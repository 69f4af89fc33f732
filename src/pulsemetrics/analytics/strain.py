"""Strain / training load scoring (heart-rate-reserve zone variant).

Each heart-rate sample is held until the next one (at most
MAX_SAMPLE_GAP) and classified into a heart-rate-reserve zone.  Zone
minutes times zone weights give cardio points; strength workouts add
muscle points; the largest of recorded active energy, workout energy and
the step estimate adds its kilocalories.  The resulting load is mapped
onto the 0-21 scale with a saturating curve anchored so that the user's
high threshold lands at strain 14.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, tzinfo
from typing import Sequence

import numpy as np

from pulsemetrics.analytics.baseline import BaselineVitals
from pulsemetrics.analytics.bucketing import clamp, day_end, day_start, wall_clock
from pulsemetrics.analytics.workouts import WorkoutData
from pulsemetrics.config import DefaultsTable, UserParams
from pulsemetrics.samples import Sample, SampleKind

# Strain ceiling
MAX_STRAIN = 21.0

# Load equal to the high threshold maps to 2/3 of MAX_STRAIN
CURVE_RATE = math.log(3.0)

# Strain from which a day counts as all out
ALL_OUT_STRAIN = 18.0

# A sample never stands for more than this much time
MAX_SAMPLE_GAP = timedelta(minutes=10)

# kcal per step when only a step count is available
KCAL_PER_STEP = 0.04

ZONE_LABELS = ["Zone 1", "Zone 2", "Zone 3", "Zone 4", "Zone 5"]

CATEGORY_LIGHT = "light"
CATEGORY_MODERATE = "moderate"
CATEGORY_HIGH = "high"
CATEGORY_ALL_OUT = "all_out"
CATEGORIES = (CATEGORY_LIGHT, CATEGORY_MODERATE, CATEGORY_HIGH, CATEGORY_ALL_OUT)


@dataclass
class StrainResult:
    """Strain score and breakdown."""

    score: float  # 0-21
    load: float  # kcal-equivalent points
    cardio_points: float
    muscle_points: float
    active_calories: float
    peak_hr: float
    avg_hr: float
    max_hr: float
    resting_hr: float
    zone_minutes: dict[str, float]  # label -> minutes in zone
    category: str = CATEGORY_LIGHT
    defaults_used: list[SampleKind] = field(default_factory=list)

    @property
    def high_intensity_minutes(self) -> float:
        return self.zone_minutes.get("Zone 4", 0.0) + self.zone_minutes.get("Zone 5", 0.0)

    @property
    def moderate_intensity_minutes(self) -> float:
        return self.zone_minutes.get("Zone 2", 0.0) + self.zone_minutes.get("Zone 3", 0.0)

    @property
    def active_minutes(self) -> float:
        return sum(self.zone_minutes.values())

    def __repr__(self) -> str:
        return (
            f"StrainResult(score={self.score:.1f}/21, "
            f"load={self.load:.0f}, "
            f"peak={self.peak_hr:.0f}bpm, "
            f"cal={self.active_calories:.0f})"
        )


# ---------------------------------------------------------------------------
# Scale
# ---------------------------------------------------------------------------


def strain_at(load: float, params: UserParams) -> float:
    """Map a kcal-equivalent load onto [0, MAX_STRAIN]."""
    if load <= 0:
        return 0.0
    _, high = params.strain_range()
    return clamp(MAX_STRAIN * (1.0 - float(np.exp(-CURVE_RATE * load / high))), 0.0, MAX_STRAIN)


def category_bounds(params: UserParams) -> tuple[float, float]:
    """Strain values of the user's low and high load thresholds."""
    low, high = params.strain_range()
    return round(strain_at(low, params), 1), round(strain_at(high, params), 1)


def strain_category(score: float, params: UserParams) -> str:
    low, high = category_bounds(params)
    if score >= ALL_OUT_STRAIN:
        return CATEGORY_ALL_OUT
    if score >= high:
        return CATEGORY_HIGH
    if score >= low:
        return CATEGORY_MODERATE
    return CATEGORY_LIGHT


def is_high_strain(score: float, params: UserParams) -> bool:
    return strain_category(score, params) in (CATEGORY_HIGH, CATEGORY_ALL_OUT)


def strain_guidance(result: StrainResult, params: UserParams) -> str:
    """One-line coaching message from the day's intensity minutes."""
    targets = params.strain_guidance_thresholds
    if result.category == CATEGORY_ALL_OUT:
        return "All-out day. Prioritize sleep and an easy day tomorrow."
    if result.high_intensity_minutes >= targets.high_intensity_minutes:
        return "High-intensity target reached. Focus on recovery."
    if result.moderate_intensity_minutes >= targets.moderate_intensity_minutes:
        return "Solid aerobic work today."
    if result.active_minutes >= targets.total_active_minutes:
        return "Active day at low intensity."
    if result.active_minutes < targets.light_activity_threshold:
        return "Light day. A walk or easy session would add some strain."
    return "Moderate activity so far."


# ---------------------------------------------------------------------------
# Components
# ---------------------------------------------------------------------------


def heart_rate_bounds(
    hr_values: Sequence[float],
    baseline: BaselineVitals,
    params: UserParams,
    defaults: DefaultsTable,
) -> tuple[float, float, bool]:
    """Return ``(resting_hr, max_hr, resting_defaulted)`` for zone math.

    Max HR is the age-predicted value, raised to the observed peak; when it
    does not exceed resting HR the reserve is widened by
    ``min_hrr_fallback_adjustment``.
    """
    if baseline.hr_count > 0:
        resting, defaulted = baseline.hr_mean, False
    else:
        resting, defaulted = defaults.fallback_for(SampleKind.RESTING_HEART_RATE), True

    max_hr = params.max_heart_rate(defaults.max_heart_rate)
    if len(hr_values):
        max_hr = max(max_hr, float(np.max(hr_values)))
    if max_hr <= resting:
        max_hr = resting + defaults.min_hrr_fallback_adjustment
    return resting, max_hr, defaulted


def _classify_zone(hrr_pct: float, lower_bounds: Sequence[float]) -> int:
    """Return 0-based zone index, or -1 below the first zone."""
    zone = -1
    for i, lower in enumerate(lower_bounds):
        if hrr_pct >= lower:
            zone = i
    return zone


def zone_minutes(
    hr_samples: Sequence[Sample],
    day: date,
    resting_hr: float,
    max_hr: float,
    defaults: DefaultsTable,
    tz: tzinfo | None = None,
) -> list[float]:
    """Minutes per heart-rate-reserve zone for one local day."""
    start, end = day_start(day), day_end(day)
    points = sorted(
        (wall_clock(s.timestamp, tz), s.value)
        for s in hr_samples
        if start <= wall_clock(s.timestamp, tz) <= end
    )
    minutes = [0.0] * len(defaults.hrr_zone_lower_bounds)
    reserve = max_hr - resting_hr
    if reserve <= 0:
        return minutes
    for i, (ts, hr) in enumerate(points):
        nxt: datetime = points[i + 1][0] if i + 1 < len(points) else end
        held = min(nxt - ts, MAX_SAMPLE_GAP).total_seconds() / 60.0
        zone = _classify_zone((hr - resting_hr) / reserve, defaults.hrr_zone_lower_bounds)
        if zone >= 0:
            minutes[zone] += held
    return minutes


def muscle_points(workouts: Sequence[WorkoutData], defaults: DefaultsTable) -> float:
    """Points for strength workouts: per kcal when known, else per minute."""
    points = 0.0
    for w in workouts:
        if not w.is_strength:
            continue
        if w.calories > 0:
            points += w.calories * defaults.muscle_points_per_kcal
        else:
            points += w.duration_minutes * defaults.muscle_points_per_minute
    return points


def active_calories(
    energy_values: Sequence[float],
    step_values: Sequence[float],
    workouts: Sequence[WorkoutData],
    defaults: DefaultsTable,
) -> float:
    """Active kcal: the largest of the energy, workout and step estimates.

    Recorded active energy already contains workout energy, so the three
    sources are alternatives rather than addends.  Taking the largest keeps
    strain from dropping when another source reports a smaller figure.
    Strength workout energy counts here and again as muscle points.
    """
    energy = defaults.resolve(SampleKind.ACTIVE_ENERGY, energy_values, reducer=sum)
    steps = defaults.resolve(SampleKind.STEPS, step_values, reducer=sum)
    workout_kcal = sum(w.calories for w in workouts)
    return max(0.0, energy.value, workout_kcal, steps.value * KCAL_PER_STEP)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def score_strain(
    hr_samples: Sequence[Sample],
    workouts: Sequence[WorkoutData],
    day: date,
    baseline: BaselineVitals,
    params: UserParams,
    defaults: DefaultsTable,
    energy_values: Sequence[float] = (),
    step_values: Sequence[float] = (),
    tz: tzinfo | None = None,
) -> StrainResult:
    """Compute the strain score for one local day.

    Args:
        hr_samples: Heart-rate samples; only those on *day* are used.
        workouts: The day's normalized workouts.
        day: Local calendar day.
        baseline: Trailing baseline (its HR mean is the resting HR).
        params: User parameters (age, fitness level thresholds).
        defaults: Zone tables and fallback constants.
        energy_values: Active-energy readings (kcal) for the day.
        step_values: Step counts for the day.
        tz: Optional zone for aware timestamps.

    Returns:
        StrainResult with the score in [0, 21].  No activity gives 0.
    """
    start, end = day_start(day), day_end(day)
    todays = [s for s in hr_samples if start <= wall_clock(s.timestamp, tz) <= end]
    hr_values = np.asarray([s.value for s in todays], dtype=np.float64)

    resting, max_hr, resting_defaulted = heart_rate_bounds(hr_values, baseline, params, defaults)
    used = [SampleKind.RESTING_HEART_RATE] if resting_defaulted and len(todays) else []

    zones = zone_minutes(todays, day, resting, max_hr, defaults, tz)
    cardio = sum(m * w for m, w in zip(zones, defaults.heart_rate_zone_weights))
    muscle = muscle_points(workouts, defaults)
    kcal = active_calories(energy_values, step_values, workouts, defaults)

    load = max(0.0, cardio + muscle + kcal)
    score = round(strain_at(load, params), 1)

    labels = ZONE_LABELS if len(zones) == len(ZONE_LABELS) else [f"Zone {i + 1}" for i in range(len(zones))]
    return StrainResult(
        score=score,
        load=round(load, 1),
        cardio_points=round(cardio, 1),
        muscle_points=round(muscle, 1),
        active_calories=round(kcal, 0),
        peak_hr=round(float(np.max(hr_values)), 1) if len(hr_values) else 0.0,
        avg_hr=round(float(np.mean(hr_values)), 1) if len(hr_values) else 0.0,
        max_hr=round(max_hr, 1),
        resting_hr=round(resting, 1),
        zone_minutes={label: round(m, 1) for label, m in zip(labels, zones)},
        category=strain_category(score, params),
        defaults_used=used,
    )

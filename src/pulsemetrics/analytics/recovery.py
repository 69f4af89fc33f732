"""Recovery score computation (baseline-relative, HRV-driven).

Recovery is primarily determined by how today's HRV and resting heart
rate compare with the user's own trailing baseline, with adjustments for
sleep performance, respiratory rate and the lifestyle inputs: alcohol,
water, calories eaten and the day's active energy.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from pulsemetrics.analytics.baseline import MIN_SD, BaselineVitals, restful_subset
from pulsemetrics.analytics.bucketing import clamp, mean
from pulsemetrics.config import DefaultsTable, UserParams
from pulsemetrics.samples import SampleKind


@dataclass
class RecoveryResult:
    """Recovery score and its components."""

    score: float  # 0-100 composite recovery score
    hrv_ms: float  # today's HRV (or the substituted default)
    resting_hr: float  # today's resting HR (or the substituted default)
    hrv_z: float  # (hrv - reference) / sd
    rhr_z: float
    breakdown: dict  # individual component scores
    defaults_used: list[SampleKind] = field(default_factory=list)

    def __repr__(self) -> str:
        return (
            f"RecoveryResult(score={self.score:.0f}, "
            f"hrv={self.hrv_ms:.1f}ms, "
            f"rhr={self.resting_hr:.0f}bpm)"
        )


# ---------------------------------------------------------------------------
# Composite scoring
# ---------------------------------------------------------------------------

# Weights for the composite recovery score
W_HRV = 0.30
W_RHR = 0.20
W_SLEEP = 0.20
W_RESP = 0.05
W_ALCOHOL = 0.10
W_HYDRATION = 0.05
W_NUTRITION = 0.05
W_ACTIVITY_LOAD = 0.05

# Component points per standard deviation away from baseline
Z_POINTS = 25.0
NEUTRAL = 50.0


def alcohol_component(drinks: float, params: UserParams) -> float:
    """100 with no drinks, decreasing per drink, scaled by body weight.

    Lighter users get a larger multiplier (bounded by the sensitivity curve).
    At ``max_alcohol_for_zero_score`` drinks or more the component is 0.
    """
    if drinks <= 0:
        return 100.0
    if drinks >= params.max_alcohol_for_zero_score:
        return 0.0
    multiplier = params.alcohol_weight_sensitivity.multiplier(params.weight)
    return clamp(100.0 - drinks * params.alcohol_penalty_per_drink * multiplier, 0.0, 100.0)


def respiratory_component(rate: float, baseline_rate: float) -> float:
    """100 at or below the ideal rate, proportionally lower above it."""
    if rate <= baseline_rate:
        return 100.0
    return clamp(baseline_rate / rate * 100.0, 0.0, 100.0)


def intake_component(amount: float, target: float) -> float:
    """Percent of a daily intake target (water, calories), capped at 100."""
    if target <= 0:
        return 100.0
    return clamp(amount * 100.0 / target, 0.0, 100.0)


def activity_load_component(active_kcal: float, low: float, high: float) -> float:
    """100 up to *low* active kcal, 0 from *high*, linear in between."""
    if active_kcal <= low:
        return 100.0
    if active_kcal >= high:
        return 0.0
    return clamp(100.0 - (active_kcal - low) / (high - low) * 100.0, 0.0, 100.0)


def day_resting_hr(
    resting_values: Sequence[float],
    hr_values: Sequence[float],
    defaults: DefaultsTable,
) -> tuple[float, bool]:
    """Today's resting HR: explicit readings, else the restful HR subset.

    Returns ``(value, defaulted)``.
    """
    if len(resting_values) > 0:
        return mean(resting_values), False
    resolved = defaults.resolve(SampleKind.HEART_RATE, restful_subset(hr_values) if len(hr_values) else [])
    return resolved.value, resolved.defaulted


def score_recovery(
    hrv_values: Sequence[float],
    hr_values: Sequence[float],
    baseline: BaselineVitals,
    sleep_performance: float,
    params: UserParams,
    defaults: DefaultsTable,
    resting_hr_values: Sequence[float] = (),
    respiratory_values: Sequence[float] = (),
    alcohol_values: Sequence[float] = (),
    water_values: Sequence[float] = (),
    calories_consumed_values: Sequence[float] = (),
    energy_values: Sequence[float] = (),
) -> RecoveryResult:
    """Compute the recovery score for one day.

    Args:
        hrv_values: Today's HRV readings (ms).
        hr_values: Today's heart-rate readings (bpm).
        baseline: Trailing personal baseline.
        sleep_performance: Last night's sleep performance (0-100).
        params: User parameters.
        defaults: Fallback constants.
        resting_hr_values: Explicit resting-HR readings, preferred over the
            restful subset of *hr_values*.
        respiratory_values: Today's respiratory-rate readings.
        alcohol_values: Self-reported drinks (summed).
        water_values: Water intake entries in ml (summed).
        calories_consumed_values: Food energy entries in kcal (summed).
        energy_values: Active-energy readings in kcal (summed).

    Returns:
        RecoveryResult with the composite score clamped to [0, 100].
    """
    used: list[SampleKind] = []

    # --- HRV ---
    hrv = defaults.resolve(SampleKind.HRV, hrv_values)
    if hrv.defaulted:
        used.append(SampleKind.HRV)
    if baseline.hrv_count > 0:
        hrv_ref = baseline.hrv_mean
    else:
        hrv_ref = params.expected_hrv(defaults.normative_hrv)
        if SampleKind.HRV not in used:
            used.append(SampleKind.HRV)
    hrv_z = (hrv.value - hrv_ref) / max(MIN_SD, baseline.hrv_sd)
    hrv_component = clamp(NEUTRAL + Z_POINTS * hrv_z, 0.0, 100.0)

    # --- Resting HR (higher than baseline lowers recovery) ---
    rhr, rhr_defaulted = day_resting_hr(resting_hr_values, hr_values, defaults)
    if rhr_defaulted:
        used.append(SampleKind.HEART_RATE)
    if baseline.hr_count > 0:
        rhr_ref = baseline.hr_mean
    else:
        rhr_ref = params.expected_resting_hr(defaults.resting_heart_rate)
        if SampleKind.HEART_RATE not in used:
            used.append(SampleKind.HEART_RATE)
    rhr_z = (rhr - rhr_ref) / max(MIN_SD, baseline.hr_sd)
    rhr_component = clamp(NEUTRAL - Z_POINTS * rhr_z, 0.0, 100.0)

    # --- Sleep ---
    sleep_component = clamp(sleep_performance, 0.0, 100.0)

    # --- Respiratory rate ---
    resp = defaults.resolve(SampleKind.RESPIRATORY_RATE, respiratory_values)
    resp_component = respiratory_component(resp.value, defaults.respiratory_baseline)
    if resp.defaulted:
        used.append(SampleKind.RESPIRATORY_RATE)
        resp_component = min(resp_component, params.respiratory_penalty_for_missing)

    # --- Alcohol ---
    drinks = defaults.resolve(SampleKind.ALCOHOL, alcohol_values, reducer=sum)
    if drinks.defaulted:
        used.append(SampleKind.ALCOHOL)
    alc_component = alcohol_component(drinks.value, params)

    # --- Hydration and nutrition ---
    water = defaults.resolve(SampleKind.WATER, water_values, reducer=sum)
    if water.defaulted:
        used.append(SampleKind.WATER)
    hydration = intake_component(water.value, defaults.water_target)

    eaten = defaults.resolve(SampleKind.CALORIES_CONSUMED, calories_consumed_values, reducer=sum)
    if eaten.defaulted:
        used.append(SampleKind.CALORIES_CONSUMED)
    calorie_target = params.daily_energy_need(defaults.calorie_target)
    nutrition = intake_component(eaten.value, calorie_target)

    # --- Activity load (a missing reading means a rest day) ---
    energy = defaults.resolve(SampleKind.ACTIVE_ENERGY, energy_values, reducer=sum)
    load_component = activity_load_component(
        energy.value, defaults.strain_low_threshold, defaults.strain_high_threshold
    )

    raw_score = (
        W_HRV * hrv_component
        + W_RHR * rhr_component
        + W_SLEEP * sleep_component
        + W_RESP * resp_component
        + W_ALCOHOL * alc_component
        + W_HYDRATION * hydration
        + W_NUTRITION * nutrition
        + W_ACTIVITY_LOAD * load_component
    )
    composite = clamp(raw_score, 0.0, 100.0)

    return RecoveryResult(
        score=round(composite, 1),
        hrv_ms=round(hrv.value, 1),
        resting_hr=round(rhr, 1),
        hrv_z=round(hrv_z, 2),
        rhr_z=round(rhr_z, 2),
        breakdown={
            "hrv_component": round(hrv_component, 1),
            "rhr_component": round(rhr_component, 1),
            "sleep_component": round(sleep_component, 1),
            "respiratory_component": round(resp_component, 1),
            "alcohol_component": round(alc_component, 1),
            "alcohol_drinks": drinks.value,
            "hydration_component": round(hydration, 1),
            "nutrition_component": round(nutrition, 1),
            "activity_load_component": round(load_component, 1),
            "calorie_target": round(calorie_target, 0),
        },
        defaults_used=used,
    )

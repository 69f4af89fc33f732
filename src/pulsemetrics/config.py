"""User parameters, fallback constants, and the defaulting policy.

Two immutable records drive every computation:

  - :class:`UserParams` -- the user's profile plus the coefficient tables
    (max-HR formula, per-fitness-level strain thresholds, age adjustments,
    alcohol sensitivity curve, ...).
  - :class:`DefaultsTable` -- the constants substituted when a class of
    input samples is missing for a day.

Missing *data* is never an error: calculators call
:meth:`DefaultsTable.resolve` and get a named default back.  Malformed
*configuration* (an unknown fitness level, a table missing a level, an
unknown key in a config file) raises :class:`ConfigError` immediately.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Any, Callable, NamedTuple, Sequence

import numpy as np

from pulsemetrics.samples import SampleKind


class ConfigError(ValueError):
    """Raised for malformed user parameters or defaults."""


class FitnessLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    ELITE = "elite"


def _fitness_level(value: Any) -> FitnessLevel:
    try:
        return FitnessLevel(value)
    except ValueError:
        choices = ", ".join(level.value for level in FitnessLevel)
        raise ConfigError(
            f"Unknown fitness level {value!r} (expected one of: {choices})"
        ) from None


def _level_table(name: str, table: dict) -> dict:
    """Re-key a per-fitness-level table by :class:`FitnessLevel`."""
    keyed = {_fitness_level(k): v for k, v in table.items()}
    missing = [level.value for level in FitnessLevel if level not in keyed]
    if missing:
        raise ConfigError(f"{name} has no entry for: {', '.join(missing)}")
    return keyed


# ---------------------------------------------------------------------------
# User parameters
# ---------------------------------------------------------------------------

MAX_HR_FORMULAS = ("tanaka", "classic")

# Mifflin-St Jeor resting energy: kcal per kg, per cm, per year, constant
MIFFLIN_WEIGHT_COEFFICIENT = 10.0
MIFFLIN_HEIGHT_COEFFICIENT = 6.25
MIFFLIN_AGE_COEFFICIENT = 5.0
MIFFLIN_CONSTANT = -78.0  # midpoint of +5 (male) and -161 (female)


@dataclass(frozen=True)
class AlcoholSensitivity:
    """Weight-sensitivity curve bounding the alcohol penalty multiplier."""

    base_weight: float = 70.0  # kg at which the multiplier is 1.0
    min_multiplier: float = 0.5
    max_multiplier: float = 1.5

    def multiplier(self, weight_kg: float | None) -> float:
        if not weight_kg or weight_kg <= 0:
            return 1.0
        ratio = self.base_weight / weight_kg
        return float(np.clip(ratio, self.min_multiplier, self.max_multiplier))


@dataclass(frozen=True)
class StrainGuidanceThresholds:
    """Minute targets used to phrase strain guidance."""

    high_intensity_minutes: float = 20.0
    moderate_intensity_minutes: float = 30.0
    total_active_minutes: float = 60.0
    light_activity_threshold: float = 30.0


@dataclass(frozen=True)
class UserParams:
    """A snapshot of the user's profile and coefficient tables."""

    age: int | None = 30
    weight: float | None = 70.0  # kg
    height: float | None = 175.0  # cm
    fitness_level: FitnessLevel = FitnessLevel.INTERMEDIATE

    # Max heart rate
    max_hr_formula: str = "tanaka"
    max_hr_age_coefficient: float = 0.7
    max_hr_constant: float = 208.0

    bmr_activity_multipliers: dict = field(default_factory=lambda: {
        FitnessLevel.BEGINNER: 1.2,
        FitnessLevel.INTERMEDIATE: 1.375,
        FitnessLevel.ADVANCED: 1.55,
        FitnessLevel.ELITE: 1.725,
    })

    # (low, high) daily load in kcal-equivalent points
    strain_thresholds: dict = field(default_factory=lambda: {
        FitnessLevel.BEGINNER: (400.0, 800.0),
        FitnessLevel.INTERMEDIATE: (500.0, 1000.0),
        FitnessLevel.ADVANCED: (600.0, 1200.0),
        FitnessLevel.ELITE: (700.0, 1400.0),
    })

    # Age / fitness adjustments to population norms
    hrv_age_decline_rate: float = 0.5  # ms per year above 25
    rhr_age_increase_rate: float = 0.2  # bpm per year above the reference age
    hr_baseline_age_reference: int = 30
    fitness_rhr_adjustments: dict = field(default_factory=lambda: {
        FitnessLevel.BEGINNER: 0.0,
        FitnessLevel.INTERMEDIATE: -5.0,
        FitnessLevel.ADVANCED: -10.0,
        FitnessLevel.ELITE: -15.0,
    })

    # Recovery
    alcohol_penalty_per_drink: float = 50.0
    max_alcohol_for_zero_score: float = 2.0
    alcohol_weight_sensitivity: AlcoholSensitivity = field(
        default_factory=AlcoholSensitivity,
    )
    respiratory_penalty_for_missing: float = 75.0
    hrv_data_minimum_samples: int = 7

    # Sleep need
    sleep_need_hours: float = 8.0
    sleep_need_fitness_adjustments: dict = field(default_factory=lambda: {
        FitnessLevel.BEGINNER: 0.0,
        FitnessLevel.INTERMEDIATE: 0.0,
        FitnessLevel.ADVANCED: 0.25,
        FitnessLevel.ELITE: 0.5,
    })

    strain_guidance_thresholds: StrainGuidanceThresholds = field(
        default_factory=StrainGuidanceThresholds,
    )

    def __post_init__(self) -> None:
        object.__setattr__(self, "fitness_level", _fitness_level(self.fitness_level))
        for name in (
            "bmr_activity_multipliers",
            "strain_thresholds",
            "fitness_rhr_adjustments",
            "sleep_need_fitness_adjustments",
        ):
            object.__setattr__(self, name, _level_table(name, getattr(self, name)))
        if self.max_hr_formula not in MAX_HR_FORMULAS:
            raise ConfigError(
                f"Unknown max HR formula {self.max_hr_formula!r} "
                f"(expected one of: {', '.join(MAX_HR_FORMULAS)})"
            )
        for level, pair in self.strain_thresholds.items():
            low, high = pair
            if not 0 < low < high:
                raise ConfigError(
                    f"strain_thresholds[{level.value}] must satisfy 0 < low < high, "
                    f"got ({low}, {high})"
                )
            self.strain_thresholds[level] = (float(low), float(high))
        if self.hrv_data_minimum_samples < 1:
            raise ConfigError("hrv_data_minimum_samples must be at least 1")

    # -- lookups ------------------------------------------------------------

    def strain_range(self) -> tuple[float, float]:
        """(low, high) load thresholds for the user's fitness level."""
        return self.strain_thresholds[self.fitness_level]

    def bmr_multiplier(self) -> float:
        return self.bmr_activity_multipliers[self.fitness_level]

    def daily_energy_need(self, fallback: float) -> float:
        """Mifflin-St Jeor BMR times the activity multiplier, in kcal.

        Uses the sex-neutral midpoint of the formula's constant.  Returns
        *fallback* unless age, weight and height are all known.
        """
        if not (self.age and self.weight and self.height):
            return fallback
        bmr = (
            MIFFLIN_WEIGHT_COEFFICIENT * self.weight
            + MIFFLIN_HEIGHT_COEFFICIENT * self.height
            - MIFFLIN_AGE_COEFFICIENT * self.age
            + MIFFLIN_CONSTANT
        )
        return max(0.0, bmr * self.bmr_multiplier())

    def max_heart_rate(self, fallback: float) -> float:
        """Age-predicted max HR, or *fallback* when age is unknown."""
        if not self.age or self.age <= 0:
            return fallback
        if self.max_hr_formula == "classic":
            return 220.0 - self.age
        return float(round(self.max_hr_constant - self.max_hr_age_coefficient * self.age))

    def expected_resting_hr(self, population_rhr: float) -> float:
        """Population resting HR adjusted for age and fitness."""
        years = max(0, (self.age or 0) - self.hr_baseline_age_reference)
        return (
            population_rhr
            + self.rhr_age_increase_rate * years
            + self.fitness_rhr_adjustments[self.fitness_level]
        )

    def expected_hrv(self, normative_hrv: float) -> float:
        """Normative HRV adjusted for age (never below 10 ms)."""
        years = max(0, (self.age or 0) - 25)
        return max(10.0, normative_hrv - self.hrv_age_decline_rate * years)

    @classmethod
    def from_dict(cls, data: dict) -> UserParams:
        """Build from a plain (JSON) mapping; unknown keys are rejected."""
        data = dict(_mapping(data, "user"))
        _reject_unknown(cls, data, "user")
        if "alcohol_weight_sensitivity" in data:
            data["alcohol_weight_sensitivity"] = _nested(
                AlcoholSensitivity, data["alcohol_weight_sensitivity"], "alcohol_weight_sensitivity"
            )
        if "strain_guidance_thresholds" in data:
            data["strain_guidance_thresholds"] = _nested(
                StrainGuidanceThresholds, data["strain_guidance_thresholds"], "strain_guidance_thresholds"
            )
        if "strain_thresholds" in data:
            table = _mapping(data["strain_thresholds"], "strain_thresholds")
            data["strain_thresholds"] = {k: _threshold_pair(k, v) for k, v in table.items()}
        return cls(**data)


def _mapping(value: Any, name: str) -> dict:
    if not isinstance(value, dict):
        raise ConfigError(f"{name} must be an object, got {type(value).__name__}")
    return value


def _nested(cls: type, value: Any, name: str) -> Any:
    _reject_unknown(cls, _mapping(value, name), name)
    return cls(**value)


def _threshold_pair(level: str, value: Any) -> tuple[float, float]:
    try:
        if isinstance(value, dict):
            low, high = value["low"], value["high"]
        else:
            low, high = value
        return (float(low), float(high))
    except (KeyError, TypeError, ValueError) as e:
        raise ConfigError(
            f"strain_thresholds[{level}] must be [low, high] or "
            f"{{\"low\": ..., \"high\": ...}}, got {value!r}"
        ) from e


# ---------------------------------------------------------------------------
# Defaults table and the defaulting policy
# ---------------------------------------------------------------------------


class Resolved(NamedTuple):
    """A value drawn from samples, or the default substituted for them."""

    value: float
    defaulted: bool


# Which DefaultsTable field stands in for each sample kind.
FALLBACK_FIELDS: dict[SampleKind, str] = {
    SampleKind.HEART_RATE: "resting_heart_rate",
    SampleKind.RESTING_HEART_RATE: "resting_heart_rate",
    SampleKind.HRV: "hrv_baseline",
    SampleKind.RESPIRATORY_RATE: "respiratory_rate",
    SampleKind.SLEEP_STAGE: "sleep_efficiency",
    SampleKind.ACTIVE_ENERGY: "active_energy",
    SampleKind.STEPS: "steps",
    SampleKind.WATER: "daily_water_intake",
    SampleKind.ALCOHOL: "daily_alcohol_drinks",
    SampleKind.CALORIES_CONSUMED: "daily_calories_consumed",
}

# Defaults for these kinds mark a day as degraded; lifestyle entries
# (water, alcohol, ...) are routinely absent and do not.
PHYSIOLOGICAL_KINDS = frozenset({
    SampleKind.HEART_RATE,
    SampleKind.RESTING_HEART_RATE,
    SampleKind.HRV,
    SampleKind.RESPIRATORY_RATE,
    SampleKind.SLEEP_STAGE,
})


def _mean(values: Sequence[float]) -> float:
    return float(np.mean(values))


@dataclass(frozen=True)
class DefaultsTable:
    """Fallback constants, one per missing-input situation."""

    respiratory_rate: float = 15.0  # breaths/min
    resting_heart_rate: float = 60.0  # bpm
    sleep_efficiency: float = 85.0  # %
    default_stress_level: float = 2.0  # 0-3 stress scale
    hrv_baseline: float = 45.0  # ms
    daily_water_intake: float = 2000.0  # ml
    daily_alcohol_drinks: float = 0.0
    daily_calories_consumed: float = 2000.0  # kcal
    active_energy: float = 0.0  # kcal
    steps: float = 0.0
    normative_hrv: float = 45.0  # ms
    water_target: float = 2500.0  # ml
    calorie_target: float = 1800.0  # kcal, when the profile has no energy need
    strain_low_threshold: float = 500.0  # active kcal with no recovery cost
    strain_high_threshold: float = 1000.0  # active kcal with the full cost
    respiratory_baseline: float = 16.0  # breaths/min
    max_heart_rate: float = 190.0  # bpm
    heart_rate_zone_weights: tuple[float, ...] = (1.0, 2.0, 3.0, 4.0, 5.0)
    hrr_zone_lower_bounds: tuple[float, ...] = (0.5, 0.6, 0.7, 0.8, 0.9)
    muscle_points_per_kcal: float = 0.5
    muscle_points_per_minute: float = 1.0
    min_hrr_fallback_adjustment: float = 40.0  # bpm

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "heart_rate_zone_weights", tuple(self.heart_rate_zone_weights)
        )
        object.__setattr__(
            self, "hrr_zone_lower_bounds", tuple(self.hrr_zone_lower_bounds)
        )
        if len(self.heart_rate_zone_weights) != len(self.hrr_zone_lower_bounds):
            raise ConfigError(
                "heart_rate_zone_weights and hrr_zone_lower_bounds must have "
                "the same length"
            )
        if list(self.hrr_zone_lower_bounds) != sorted(self.hrr_zone_lower_bounds):
            raise ConfigError("hrr_zone_lower_bounds must be ascending")
        if not 0 < self.strain_low_threshold < self.strain_high_threshold:
            raise ConfigError("strain thresholds must satisfy 0 < low < high")

    def fallback_for(self, kind: SampleKind) -> float:
        """The constant substituted when no *kind* samples exist."""
        try:
            name = FALLBACK_FIELDS[kind]
        except KeyError:
            raise ConfigError(f"No default defined for sample kind {kind!r}") from None
        return float(getattr(self, name))

    def resolve(
        self,
        kind: SampleKind,
        values: Sequence[float],
        reducer: Callable[[Sequence[float]], float] = _mean,
    ) -> Resolved:
        """Reduce *values*, or substitute the default for *kind* if empty."""
        if len(values) == 0:
            return Resolved(self.fallback_for(kind), True)
        return Resolved(float(reducer(values)), False)

    @classmethod
    def from_dict(cls, data: dict) -> DefaultsTable:
        _reject_unknown(cls, _mapping(data, "defaults"), "defaults")
        return cls(**data)


def _reject_unknown(cls: type, data: dict, section: str) -> None:
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown {section} key(s): {', '.join(unknown)}")


# ---------------------------------------------------------------------------
# Config files
# ---------------------------------------------------------------------------


def load_config(path: str | Path) -> tuple[UserParams, DefaultsTable]:
    """Read a JSON config file with optional ``user`` and ``defaults`` sections."""
    with open(path) as f:
        try:
            raw = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"{path}: invalid JSON ({e})") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"{path}: expected a JSON object at the top level")
    _reject_unknown_sections(raw, path)
    params = UserParams.from_dict(raw.get("user", {}))
    defaults = DefaultsTable.from_dict(raw.get("defaults", {}))
    return params, defaults


def _reject_unknown_sections(raw: dict, path: str | Path) -> None:
    unknown = sorted(set(raw) - {"user", "defaults"})
    if unknown:
        raise ConfigError(f"{path}: unknown section(s): {', '.join(unknown)}")

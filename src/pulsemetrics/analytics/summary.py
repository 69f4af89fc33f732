"""Daily metrics aggregator.

Pulls the calculator results for one day into a single DailyMetrics
record that is JSON-serializable and carries its data-quality tag.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Sequence

from pulsemetrics.analytics.recovery import RecoveryResult
from pulsemetrics.analytics.sleep import SleepResult
from pulsemetrics.analytics.strain import StrainResult
from pulsemetrics.analytics.stress import EnhancedStress, FallbackStress, StressResult
from pulsemetrics.analytics.workouts import WorkoutData
from pulsemetrics.config import PHYSIOLOGICAL_KINDS
from pulsemetrics.samples import DataQuality, SampleKind


@dataclass
class DailyMetrics:
    """A single day's composite scores."""

    date: str  # ISO date string, e.g. "2026-02-13"

    # Sleep (0-100)
    sleep_performance: float = 0.0
    sleep_consistency: float = 0.0
    sleep_efficiency: float = 0.0

    # Recovery (0-100)
    recovery_score: float = 0.0

    # Strain (0-21)
    strain_score: float = 0.0
    strain_category: str = "light"
    calories: float = 0.0

    # Stress (0-3)
    stress_level: float = 0.0
    stress_mode: str = "fallback"

    # Workouts
    workout_count: int = 0
    workout_minutes: int = 0

    quality: DataQuality = DataQuality.REAL
    defaults_used: list[str] = field(default_factory=list)

    # Full calculator outputs
    sleep: SleepResult | None = field(default=None, repr=False, compare=False)
    recovery: RecoveryResult | None = field(default=None, repr=False, compare=False)
    strain: StrainResult | None = field(default=None, repr=False, compare=False)
    stress: StressResult | None = field(default=None, repr=False, compare=False)

    @property
    def stress_detail(self) -> EnhancedStress | None:
        return self.stress if isinstance(self.stress, EnhancedStress) else None

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dict (JSON-friendly)."""
        out: dict[str, Any] = {
            "date": self.date,
            "sleep_performance": self.sleep_performance,
            "sleep_consistency": self.sleep_consistency,
            "sleep_efficiency": self.sleep_efficiency,
            "recovery_score": self.recovery_score,
            "strain_score": self.strain_score,
            "strain_category": self.strain_category,
            "calories": self.calories,
            "stress_level": self.stress_level,
            "stress_mode": self.stress_mode,
            "workout_count": self.workout_count,
            "workout_minutes": self.workout_minutes,
            "quality": self.quality.value,
            "defaults_used": list(self.defaults_used),
        }
        detail = self.stress_detail
        if detail is not None:
            out["stress_detail"] = {
                "total_day_stress": detail.total_day_stress,
                "sleep_stress": detail.sleep_stress,
                "non_activity_stress": detail.non_activity_stress,
                "baseline_hrv": detail.baseline_hrv,
                "baseline_rhr": detail.baseline_rhr,
                "hourly": [
                    {"hour_start": h.hour_start.isoformat(), "stress": h.stress}
                    for h in detail.hourly
                ],
            }
        return out

    def to_json(self, indent: int = 2) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    def __repr__(self) -> str:
        return (
            f"DailyMetrics({self.date}: "
            f"sleep={self.sleep_performance:.0f}, "
            f"recovery={self.recovery_score:.0f}, "
            f"strain={self.strain_score:.1f}/21, "
            f"stress={self.stress_level:.2f}/3, "
            f"{self.quality.value})"
        )


def data_quality(defaults_used: Sequence[SampleKind], synthetic: bool = False) -> DataQuality:
    """Synthetic input wins; any physiological default degrades the day."""
    if synthetic:
        return DataQuality.SYNTHETIC
    if any(kind in PHYSIOLOGICAL_KINDS for kind in defaults_used):
        return DataQuality.DEGRADED
    return DataQuality.REAL


def build_daily_metrics(
    day: date | str,
    sleep: SleepResult,
    recovery: RecoveryResult,
    strain: StrainResult,
    stress: StressResult,
    workouts: Sequence[WorkoutData] = (),
    synthetic: bool = False,
) -> DailyMetrics:
    """Build the daily record from individual calculator results.

    Args:
        day: The date for this record.
        sleep: Sleep result for the night ending on *day*.
        recovery: Recovery result.
        strain: Strain result.
        stress: Enhanced or fallback stress result.
        workouts: The day's workouts.
        synthetic: Whether the caller substituted a synthetic sample set.

    Returns:
        A populated DailyMetrics.
    """
    date_str = day if isinstance(day, str) else day.isoformat()

    used: list[SampleKind] = []
    for kinds in (sleep.defaults_used, recovery.defaults_used, strain.defaults_used):
        for kind in kinds:
            if kind not in used:
                used.append(kind)
    if isinstance(stress, FallbackStress) and stress.defaulted:
        if SampleKind.HRV not in used:
            used.append(SampleKind.HRV)

    return DailyMetrics(
        date=date_str,
        sleep_performance=sleep.performance,
        sleep_consistency=sleep.consistency,
        sleep_efficiency=sleep.efficiency,
        recovery_score=recovery.score,
        strain_score=strain.score,
        strain_category=strain.category,
        calories=strain.active_calories,
        stress_level=stress.level,
        stress_mode=stress.mode,
        workout_count=len(workouts),
        workout_minutes=sum(w.duration_minutes for w in workouts),
        quality=data_quality(used, synthetic),
        defaults_used=[kind.value for kind in used],
        sleep=sleep,
        recovery=recovery,
        strain=strain,
        stress=stress,
    )

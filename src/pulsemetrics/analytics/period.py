"""Multi-day aggregation for trend views.

Runs the daily pipeline for every calendar day of a trailing window
(oldest first, each day with its own trailing baseline), tags each day
with its strain category, and reduces the window into aggregations and
trends.  Days without any samples still get a full DailyMetrics through
the usual default substitution, so the window is never shorter than
requested.
"""

from __future__ import annotations

import json
from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Mapping

from pulsemetrics.analytics.bucketing import date_range, mean, population_sd
from pulsemetrics.analytics.pipeline import DayContext, compute_daily_metrics
from pulsemetrics.analytics.strain import CATEGORIES, CATEGORY_LIGHT, is_high_strain
from pulsemetrics.analytics.summary import DailyMetrics
from pulsemetrics.analytics.workouts import filter_workouts
from pulsemetrics.samples import SampleSet

TOP_WORKOUT_TYPES = 6

# Change in mean strain between window halves that counts as a trend
TREND_THRESHOLD = 1.0


@dataclass
class DayEntry:
    date: date
    metrics: DailyMetrics
    category: str

    @property
    def workout_count(self) -> int:
        return self.metrics.workout_count

    @property
    def calories(self) -> float:
        return self.metrics.calories

    @property
    def workout_minutes(self) -> int:
        return self.metrics.workout_minutes


@dataclass
class PeriodAggregations:
    avg_strain_score: float = 0.0
    high_strain_days: int = 0
    workout_days: int = 0
    total_calories: float = 0.0
    total_workout_time: int = 0  # minutes
    workouts_by_type: dict[str, int] = field(default_factory=dict)
    strain_by_category: dict[str, int] = field(default_factory=dict)
    recovery_days: int = 0
    avg_recovery_score: float = 0.0


@dataclass
class PeriodTrends:
    strain_trend: str = "stable"  # increasing / decreasing / stable
    workload_consistency: float = 0.0  # 0-1, 1 = identical strain every day
    average_rest_days_between_high_strain: float = 0.0


@dataclass
class PeriodStats:
    """Per-day metrics and reductions for one trailing window."""

    days: int
    daily_data: list[DayEntry]
    aggregations: PeriodAggregations
    trends: PeriodTrends

    @property
    def top_workout_types(self) -> list[tuple[str, int]]:
        return top_workout_types(self.aggregations.workouts_by_type)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dict (JSON-friendly)."""
        agg = self.aggregations
        return {
            "days": self.days,
            "daily_data": [
                {
                    "date": entry.date.isoformat(),
                    "category": entry.category,
                    "metrics": entry.metrics.to_dict(),
                }
                for entry in self.daily_data
            ],
            "aggregations": {
                "avg_strain_score": agg.avg_strain_score,
                "high_strain_days": agg.high_strain_days,
                "workout_days": agg.workout_days,
                "total_calories": agg.total_calories,
                "total_workout_time": agg.total_workout_time,
                "workouts_by_type": dict(agg.workouts_by_type),
                "strain_by_category": dict(agg.strain_by_category),
                "recovery_days": agg.recovery_days,
                "avg_recovery_score": agg.avg_recovery_score,
            },
            "trends": {
                "strain_trend": self.trends.strain_trend,
                "workload_consistency": self.trends.workload_consistency,
                "average_rest_days_between_high_strain": self.trends.average_rest_days_between_high_strain,
            },
            "top_workout_types": [[name, count] for name, count in self.top_workout_types],
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def __repr__(self) -> str:
        return (
            f"PeriodStats({self.days}d, "
            f"avg_strain={self.aggregations.avg_strain_score:.1f}, "
            f"workout_days={self.aggregations.workout_days})"
        )


# ---------------------------------------------------------------------------
# Reductions
# ---------------------------------------------------------------------------


def top_workout_types(histogram: Mapping[str, int], limit: int = TOP_WORKOUT_TYPES) -> list[tuple[str, int]]:
    """The *limit* most frequent activity types, by descending count.

    Ties are broken by name.  An empty histogram gives an empty list.
    """
    ranked = sorted(histogram.items(), key=lambda item: (-item[1], item[0]))
    return ranked[:limit]


def _strain_trend(strains: list[float]) -> str:
    if len(strains) < 2:
        return "stable"
    half = len(strains) // 2
    delta = mean(strains[half:]) - mean(strains[:half])
    if delta > TREND_THRESHOLD:
        return "increasing"
    if delta < -TREND_THRESHOLD:
        return "decreasing"
    return "stable"


def _workload_consistency(strains: list[float]) -> float:
    avg = mean(strains)
    if avg <= 0:
        return 0.0
    return round(max(0.0, 1.0 - population_sd(strains) / avg), 2)


def _rest_days_between(high_flags: list[bool]) -> float:
    """Mean number of days between consecutive high-strain days."""
    positions = [i for i, high in enumerate(high_flags) if high]
    if len(positions) < 2:
        return 0.0
    gaps = [b - a - 1 for a, b in zip(positions, positions[1:])]
    return round(mean(gaps), 1)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def compute_period_stats(
    samples: SampleSet,
    today: date,
    days: int,
    context: DayContext,
) -> PeriodStats:
    """Aggregate the *days* calendar days ending on *today*.

    Args:
        samples: Sample set covering the window plus the baseline lead-in.
        today: Last day of the window.
        days: Window length in days.
        context: Supplies user parameters, defaults and time zone.

    Raises:
        ValueError: if *days* is less than 1.
    """
    if days < 1:
        raise ValueError(f"Period length must be at least 1 day, got {days}")

    params = context.params
    daily_data: list[DayEntry] = []
    for day in date_range(today, days):
        metrics = compute_daily_metrics(samples, context.for_day(day))
        daily_data.append(DayEntry(date=day, metrics=metrics, category=metrics.strain_category))

    window = filter_workouts(samples.workouts, daily_data[0].date, today, context.tz)
    strains = [entry.metrics.strain_score for entry in daily_data]
    high_flags = [is_high_strain(s, params) for s in strains]
    by_category = Counter(entry.category for entry in daily_data)

    aggregations = PeriodAggregations(
        avg_strain_score=round(mean(strains), 1),
        high_strain_days=sum(high_flags),
        workout_days=sum(1 for entry in daily_data if entry.workout_count > 0),
        total_calories=round(sum(entry.calories for entry in daily_data), 0),
        total_workout_time=sum(entry.workout_minutes for entry in daily_data),
        workouts_by_type=dict(Counter(w.activity_type for w in window)),
        strain_by_category={category: by_category.get(category, 0) for category in CATEGORIES},
        recovery_days=by_category.get(CATEGORY_LIGHT, 0),
        avg_recovery_score=round(mean([entry.metrics.recovery_score for entry in daily_data]), 1),
    )
    trends = PeriodTrends(
        strain_trend=_strain_trend(strains),
        workload_consistency=_workload_consistency(strains),
        average_rest_days_between_high_strain=_rest_days_between(high_flags),
    )
    return PeriodStats(days=days, daily_data=daily_data, aggregations=aggregations, trends=trends)


def last_14_days_stats(samples: SampleSet, context: DayContext) -> PeriodStats:
    return compute_period_stats(samples, context.day, 14, context)


def last_30_days_stats(samples: SampleSet, context: DayContext) -> PeriodStats:
    return compute_period_stats(samples, context.day, 30, context)

"""Analytics engine for computing daily health metrics from raw samples.

Modules:
    bucketing -- Calendar bucketing (hour/day/month/year) and basic statistics
    baseline  -- Trailing 14-day resting-HR and HRV baselines
    sleep     -- Sleep performance, efficiency and consistency
    recovery  -- Baseline-relative recovery scoring
    strain    -- Heart-rate-reserve zone strain scoring
    stress    -- Enhanced (hourly) or fallback stress level
    workouts  -- Workout record normalization
    summary   -- Daily metrics aggregation
    pipeline  -- Per-day orchestration
    period    -- 14/30-day aggregation
"""

from pulsemetrics.analytics.bucketing import (
    Granularity,
    bucket_by,
    bucket_key,
    mean,
    population_sd,
)
from pulsemetrics.analytics.baseline import (
    compute_baseline,
    restful_subset,
    restful_subset_size,
    BaselineVitals,
)
from pulsemetrics.analytics.sleep import score_sleep, SleepResult
from pulsemetrics.analytics.recovery import score_recovery, RecoveryResult
from pulsemetrics.analytics.strain import (
    score_strain,
    strain_at,
    strain_category,
    strain_guidance,
    StrainResult,
)
from pulsemetrics.analytics.stress import (
    score_stress,
    compute_stress_moment,
    EnhancedStress,
    FallbackStress,
)
from pulsemetrics.analytics.workouts import (
    normalize_workout,
    normalize_workouts,
    filter_workouts,
    sort_recent_first,
    summarize_workouts,
    WorkoutData,
)
from pulsemetrics.analytics.summary import build_daily_metrics, DailyMetrics
from pulsemetrics.analytics.pipeline import compute_daily_metrics, DayContext
from pulsemetrics.analytics.period import (
    compute_period_stats,
    last_14_days_stats,
    last_30_days_stats,
    top_workout_types,
    PeriodStats,
)

__all__ = [
    # bucketing
    "Granularity",
    "bucket_by",
    "bucket_key",
    "mean",
    "population_sd",
    # baseline
    "compute_baseline",
    "restful_subset",
    "restful_subset_size",
    "BaselineVitals",
    # sleep
    "score_sleep",
    "SleepResult",
    # recovery
    "score_recovery",
    "RecoveryResult",
    # strain
    "score_strain",
    "strain_at",
    "strain_category",
    "strain_guidance",
    "StrainResult",
    # stress
    "score_stress",
    "compute_stress_moment",
    "EnhancedStress",
    "FallbackStress",
    # workouts
    "normalize_workout",
    "normalize_workouts",
    "filter_workouts",
    "sort_recent_first",
    "summarize_workouts",
    "WorkoutData",
    # summary
    "build_daily_metrics",
    "DailyMetrics",
    # pipeline
    "compute_daily_metrics",
    "DayContext",
    # period
    "compute_period_stats",
    "last_14_days_stats",
    "last_30_days_stats",
    "top_workout_types",
    "PeriodStats",
]

"""Analytics pipeline: run every calculator for one day.

This module takes an already-fetched :class:`~pulsemetrics.samples.SampleSet`
and a :class:`DayContext` and produces a :class:`DailyMetrics`.  The
context replaces any notion of a "currently selected" day or profile;
nothing here reads global state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, tzinfo
from typing import Sequence

from pulsemetrics.analytics.baseline import BaselineVitals, compute_baseline
from pulsemetrics.analytics.bucketing import day_end, local_date
from pulsemetrics.analytics.recovery import day_resting_hr, score_recovery
from pulsemetrics.analytics.sleep import score_sleep
from pulsemetrics.analytics.strain import score_strain
from pulsemetrics.analytics.stress import score_stress
from pulsemetrics.analytics.summary import DailyMetrics, build_daily_metrics
from pulsemetrics.analytics.workouts import workouts_on
from pulsemetrics.config import DefaultsTable, UserParams
from pulsemetrics.samples import Sample, SampleKind, SampleSet


@dataclass(frozen=True)
class DayContext:
    """The day being computed and the configuration to compute it with."""

    day: date
    params: UserParams = field(default_factory=UserParams)
    defaults: DefaultsTable = field(default_factory=DefaultsTable)
    tz: tzinfo | None = None

    def for_day(self, day: date) -> DayContext:
        return DayContext(day=day, params=self.params, defaults=self.defaults, tz=self.tz)


def values_on(samples: Sequence[Sample], day: date, tz: tzinfo | None = None) -> list[float]:
    """Values of the samples whose local date is *day*."""
    return [s.value for s in samples if local_date(s.timestamp, tz) == day]


def baseline_for(samples: SampleSet, context: DayContext) -> BaselineVitals:
    """Trailing baseline ending at the close of the context day."""
    return compute_baseline(
        samples.of_kind(SampleKind.HEART_RATE),
        samples.of_kind(SampleKind.HRV),
        day_end(context.day),
        tz=context.tz,
    )


def compute_daily_metrics(
    samples: SampleSet,
    context: DayContext,
    baseline: BaselineVitals | None = None,
) -> DailyMetrics:
    """Run sleep, recovery, strain and stress for ``context.day``.

    Args:
        samples: Everything fetched by the caller; may span many days.
        context: Day, user parameters, defaults and time zone.
        baseline: Precomputed baseline for the day.  Computed from
            *samples* when omitted.

    Returns:
        A complete DailyMetrics, even for a day without any samples.
    """
    day, params, defaults, tz = context.day, context.params, context.defaults, context.tz
    if baseline is None:
        baseline = baseline_for(samples, context)

    hr = samples.of_kind(SampleKind.HEART_RATE)
    hrv = samples.of_kind(SampleKind.HRV)
    day_hr = values_on(hr, day, tz)
    day_hrv = values_on(hrv, day, tz)
    day_rhr = values_on(samples.of_kind(SampleKind.RESTING_HEART_RATE), day, tz)
    todays_workouts = workouts_on(samples.workouts, day, tz)
    day_energy = values_on(samples.of_kind(SampleKind.ACTIVE_ENERGY), day, tz)

    sleep = score_sleep(samples.sleep, day, params, defaults, tz=tz)

    recovery = score_recovery(
        day_hrv,
        day_hr,
        baseline,
        sleep.performance,
        params,
        defaults,
        resting_hr_values=day_rhr,
        respiratory_values=values_on(samples.of_kind(SampleKind.RESPIRATORY_RATE), day, tz),
        alcohol_values=values_on(samples.of_kind(SampleKind.ALCOHOL), day, tz),
        water_values=values_on(samples.of_kind(SampleKind.WATER), day, tz),
        calories_consumed_values=values_on(samples.of_kind(SampleKind.CALORIES_CONSUMED), day, tz),
        energy_values=day_energy,
    )

    strain = score_strain(
        hr,
        todays_workouts,
        day,
        baseline,
        params,
        defaults,
        energy_values=day_energy,
        step_values=values_on(samples.of_kind(SampleKind.STEPS), day, tz),
        tz=tz,
    )

    resting, resting_defaulted = day_resting_hr(day_rhr, day_hr, defaults)
    stress = score_stress(
        hr,
        hrv,
        day,
        baseline,
        params,
        defaults,
        sleep=samples.sleep,
        workouts=todays_workouts,
        resting_hr=None if resting_defaulted else resting,
        tz=tz,
    )

    return build_daily_metrics(
        day,
        sleep,
        recovery,
        strain,
        stress,
        workouts=todays_workouts,
        synthetic=samples.synthetic,
    )

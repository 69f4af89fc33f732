"""Trailing-window personal baselines for resting HR and HRV.

Resting heart rate is approximated per day by the lowest 20 % of that
day's heart-rate samples (the "restful subset"), which avoids having to
correlate HR with sleep state.  HRV samples are pooled across the window
as-is.  Both pools reduce to a mean and a population standard deviation;
the standard deviation is floored at 1 so callers can always normalize
with ``(x - mean) / sd``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta, tzinfo
from typing import Sequence

import numpy as np

from pulsemetrics.analytics.bucketing import bucket_by, mean, population_sd, wall_clock
from pulsemetrics.samples import Sample

BASELINE_WINDOW_DAYS = 14
RESTFUL_FRACTION = 0.2
MIN_SD = 1.0


@dataclass(frozen=True)
class BaselineVitals:
    """Personal baseline over the trailing window."""

    hr_mean: float
    hr_sd: float
    hrv_mean: float
    hrv_sd: float
    hr_count: int = 0  # size of the pooled restful-HR set
    hrv_count: int = 0  # number of HRV samples in the window

    def __repr__(self) -> str:
        return (
            f"BaselineVitals(hr={self.hr_mean:.1f}±{self.hr_sd:.1f}bpm, "
            f"hrv={self.hrv_mean:.1f}±{self.hrv_sd:.1f}ms)"
        )


EMPTY_BASELINE = BaselineVitals(hr_mean=0.0, hr_sd=MIN_SD, hrv_mean=0.0, hrv_sd=MIN_SD)


def restful_subset_size(n: int) -> int:
    """``max(1, floor(0.2 * n))`` for a non-empty bucket, 0 for an empty one."""
    if n <= 0:
        return 0
    return max(1, math.floor(RESTFUL_FRACTION * n))


def restful_subset(values: Sequence[float]) -> list[float]:
    """Lowest 20 % of a day's HR values (at least one), ascending."""
    arr = np.sort(np.asarray(values, dtype=np.float64))
    return [float(v) for v in arr[: restful_subset_size(len(arr))]]


def in_window(
    samples: Sequence[Sample],
    now: datetime,
    window_days: int = BASELINE_WINDOW_DAYS,
    tz: tzinfo | None = None,
) -> list[Sample]:
    """Samples with ``now - window_days <= timestamp <= now`` (wall clock)."""
    end = wall_clock(now, tz)
    start = end - timedelta(days=window_days)
    return [s for s in samples if start <= wall_clock(s.timestamp, tz) <= end]


def compute_baseline(
    hr_samples: Sequence[Sample],
    hrv_samples: Sequence[Sample],
    now: datetime,
    window_days: int = BASELINE_WINDOW_DAYS,
    tz: tzinfo | None = None,
) -> BaselineVitals:
    """Compute the trailing baseline ending at *now*.

    Args:
        hr_samples: Heart-rate samples (bpm); may cover more than the window.
        hrv_samples: HRV samples (ms).
        now: Window end.
        window_days: Window length in days.
        tz: Optional zone for local-day boundaries of aware timestamps.

    Returns:
        BaselineVitals.  An empty pool yields mean 0 and sd 1.
    """
    restful: list[float] = []
    for day_samples in bucket_by(in_window(hr_samples, now, window_days, tz), "day", tz).values():
        restful.extend(restful_subset([s.value for s in day_samples]))

    hrv = [s.value for s in in_window(hrv_samples, now, window_days, tz)]

    return BaselineVitals(
        hr_mean=mean(restful),
        hr_sd=max(MIN_SD, population_sd(restful)),
        hrv_mean=mean(hrv),
        hrv_sd=max(MIN_SD, population_sd(hrv)),
        hr_count=len(restful),
        hrv_count=len(hrv),
    )

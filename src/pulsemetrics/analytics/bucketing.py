"""Calendar bucketing and basic statistics.

This is the shared foundation for all analytics modules.  It provides:
  - Local wall-clock conversion for naive and aware timestamps
  - Grouping of samples into hour / day / month / year buckets
  - Guarded mean and population standard deviation
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, tzinfo
from enum import Enum
from typing import Iterable, Sequence, TypeVar

import numpy as np

T = TypeVar("T")


class Granularity(str, Enum):
    HOUR = "hour"
    DAY = "day"
    MONTH = "month"
    YEAR = "year"


# ---------------------------------------------------------------------------
# Wall clock
# ---------------------------------------------------------------------------


def wall_clock(ts: datetime, tz: tzinfo | None = None) -> datetime:
    """Return *ts* as a naive local datetime.

    Aware timestamps are converted to *tz* when given, otherwise their own
    offset is kept.  Naive timestamps are assumed to be local already.
    """
    if ts.tzinfo is not None:
        if tz is not None:
            ts = ts.astimezone(tz)
        return ts.replace(tzinfo=None)
    return ts


def local_date(ts: datetime, tz: tzinfo | None = None) -> date:
    return wall_clock(ts, tz).date()


def day_start(day: date) -> datetime:
    return datetime.combine(day, time.min)


def day_end(day: date) -> datetime:
    """Last representable instant of *day* (naive wall clock)."""
    return datetime.combine(day, time.max)


def date_range(end: date, days: int) -> list[date]:
    """The *days* calendar days ending at *end*, oldest first."""
    return [end - timedelta(days=offset) for offset in range(days - 1, -1, -1)]


# ---------------------------------------------------------------------------
# Bucketing
# ---------------------------------------------------------------------------


def bucket_key(ts: datetime, granularity: Granularity | str, tz: tzinfo | None = None) -> str:
    """Bucket key for one timestamp.

    Keys are ``YYYY-MM-DDTHH:00``, ``YYYY-MM-DD``, ``YYYY-MM`` or ``YYYY``.
    """
    try:
        granularity = Granularity(granularity)
    except ValueError:
        raise ValueError(f"Unsupported bucket granularity: {granularity!r}") from None

    local = wall_clock(ts, tz)
    if granularity is Granularity.HOUR:
        return local.strftime("%Y-%m-%dT%H:00")
    if granularity is Granularity.DAY:
        return local.date().isoformat()
    if granularity is Granularity.MONTH:
        return local.strftime("%Y-%m")
    return local.strftime("%Y")


def bucket_by(
    items: Iterable[T],
    granularity: Granularity | str,
    tz: tzinfo | None = None,
) -> dict[str, list[T]]:
    """Group items by the calendar bucket of their ``timestamp``.

    Every input item lands in exactly one bucket, in input order.  The input
    does not need to be sorted.

    Raises:
        ValueError: if *granularity* is not hour, day, month or year.
    """
    try:
        granularity = Granularity(granularity)
    except ValueError:
        raise ValueError(f"Unsupported bucket granularity: {granularity!r}") from None

    buckets: dict[str, list[T]] = {}
    for item in items:
        key = bucket_key(item.timestamp, granularity, tz)  # type: ignore[attr-defined]
        buckets.setdefault(key, []).append(item)
    return buckets


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean; 0.0 for an empty input."""
    if len(values) == 0:
        return 0.0
    return float(np.mean(np.asarray(values, dtype=np.float64)))


def population_sd(values: Sequence[float]) -> float:
    """Population standard deviation (ddof=0); 0.0 for an empty input."""
    if len(values) == 0:
        return 0.0
    return float(np.std(np.asarray(values, dtype=np.float64), ddof=0))


def clamp(value: float, low: float, high: float) -> float:
    return float(min(high, max(low, value)))

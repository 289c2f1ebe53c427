"""
Time bucketing and series transforms.

counts_by_day turns timestamped records into a zero-filled daily count
series over a trailing UTC window; the transforms reshape such a series
for trend charts.
"""

import logging
from collections import Counter
from datetime import datetime
from typing import Iterable, List, Optional, Sequence

import pandas as pd

from src.models.review import ReviewRecord
from src.utils.dates import date_range, utc_date, utc_now
import config.settings as settings

logger = logging.getLogger(__name__)

TREND_MODES = ("raw", "smoothed", "weekly", "cumulative")


def counts_by_day(
    records: Iterable[ReviewRecord],
    window_days: int,
    now: Optional[datetime] = None
) -> List[int]:
    """
    Count records per UTC calendar day for the last window_days days.

    Args:
        records: Reviews to count (need not be pre-filtered)
        window_days: Number of days, ending on the UTC date of now (inclusive)
        now: Reference time (default: current UTC time)

    Returns:
        List of window_days non-negative ints, oldest day first
    """
    if window_days <= 0:
        return []

    days = date_range(utc_date(utc_now(now)), window_days)
    counts = Counter()
    for record in records:
        counts[utc_date(record.submitted_at).strftime("%Y-%m-%d")] += 1

    return [counts.get(day, 0) for day in days]


def moving_average(series: Sequence[float], window: int) -> List[float]:
    """
    Trailing simple moving average.

    The first window-1 positions average the values seen so far, so a
    constant series stays constant. window <= 1 or an empty series is
    returned unchanged.
    """
    if window <= 1 or not series:
        return list(series)
    return pd.Series(series, dtype="float64").rolling(window, min_periods=1).mean().tolist()


def cumulative(series: Sequence[float]) -> List[float]:
    """Running sum, same length as the input."""
    if not series:
        return []
    return pd.Series(series).cumsum().tolist()


def bucket_counts(series: Sequence[float], bucket_size: int) -> List[float]:
    """
    Sum consecutive groups of bucket_size values; the last group may be
    shorter. bucket_size <= 1 returns the input unchanged.
    """
    if bucket_size <= 1 or not series:
        return list(series)
    values = pd.Series(series)
    return values.groupby(values.index // bucket_size).sum().tolist()


def smoothing_window(length: int) -> int:
    """Window used for "smoothed" trends: 7, but never below 3."""
    return min(settings.MAX_SMOOTHING_WINDOW, max(settings.MIN_SMOOTHING_WINDOW, length))


def transform_series(series: Sequence[float], mode: str = settings.DEFAULT_TREND_MODE) -> List[float]:
    """
    Reshape a daily count series for display.

    Modes: "raw", "smoothed" (moving average), "weekly" (7-day buckets),
    "cumulative". Unknown modes are treated as "smoothed".
    """
    if mode == "raw":
        return list(series)
    if mode == "weekly":
        return bucket_counts(series, settings.WEEKLY_BUCKET_SIZE)
    if mode == "cumulative":
        return cumulative(series)
    if mode != "smoothed":
        logger.warning(f"Unknown trend mode '{mode}', using smoothed")
    return moving_average(series, smoothing_window(len(series)))

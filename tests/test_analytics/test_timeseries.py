"""
Unit tests for time bucketing and series transforms.
"""

from datetime import datetime, timezone

import pytest

from src.analytics.timeseries import (
    bucket_counts,
    counts_by_day,
    cumulative,
    moving_average,
    smoothing_window,
    transform_series,
)


def test_counts_by_day_zero_fills_window(make_review, now):
    """Counts land on their UTC day; empty days are 0; oldest first."""
    records = [
        make_review(days_ago=0),
        make_review(days_ago=0),
        make_review(days_ago=2),
    ]
    counts = counts_by_day(records, 3, now)
    assert counts == [1, 0, 2]


def test_counts_by_day_ignores_out_of_window(make_review, now):
    """Records outside the window are not counted."""
    records = [make_review(days_ago=10), make_review(days_ago=1)]
    counts = counts_by_day(records, 5, now)
    assert len(counts) == 5
    assert sum(counts) == 1


def test_counts_by_day_uses_utc_calendar_day(make_review, now):
    """23:30 UTC the previous day counts for the previous day."""
    late = datetime(2024, 6, 29, 23, 30, tzinfo=timezone.utc)
    counts = counts_by_day([make_review(submitted_at=late)], 2, now)
    assert counts == [1, 0]


def test_counts_by_day_empty_window(make_review, now):
    assert counts_by_day([make_review()], 0, now) == []


def test_moving_average_warm_up():
    """Leading positions average what has been seen so far."""
    assert moving_average([3, 6, 9, 12], 3) == pytest.approx([3.0, 4.5, 6.0, 9.0])


def test_moving_average_constant_series():
    assert moving_average([5] * 10, 7) == pytest.approx([5.0] * 10)


def test_moving_average_identity_cases():
    assert moving_average([1, 2, 3], 1) == [1, 2, 3]
    assert moving_average([], 7) == []


def test_cumulative():
    assert cumulative([1, 0, 2, 3]) == [1, 1, 3, 6]
    assert cumulative([]) == []


def test_bucket_counts_short_tail():
    """Last bucket may be shorter; total is preserved."""
    series = list(range(10))
    buckets = bucket_counts(series, 7)
    assert buckets == [21, 24]
    assert sum(buckets) == sum(series)


def test_bucket_counts_identity():
    assert bucket_counts([4, 5], 1) == [4, 5]


def test_smoothing_window_bounds():
    assert smoothing_window(30) == 7
    assert smoothing_window(5) == 5
    assert smoothing_window(1) == 3


def test_transform_modes():
    series = [1, 2, 3, 4, 5, 6, 7, 8]
    assert transform_series(series, "raw") == series
    assert transform_series(series, "weekly") == [28, 8]
    assert transform_series(series, "cumulative")[-1] == 36
    smoothed = transform_series(series, "smoothed")
    assert len(smoothed) == len(series)
    assert smoothed[-1] == pytest.approx(5.0)


def test_unknown_mode_falls_back_to_smoothed():
    series = [2, 4, 6, 8]
    assert transform_series(series, "sparkline") == transform_series(series, "smoothed")


def test_bucket_counts_pairs():
    assert bucket_counts([1, 1, 1, 1, 1], 2) == [2, 2, 1]


def test_counts_by_day_length_and_total(make_review, now):
    """Always exactly N non-negative slots summing to the in-window count."""
    records = [make_review(days_ago=d) for d in (0, 1, 1, 6, 7, 40)]
    counts = counts_by_day(records, 7, now)
    assert len(counts) == 7
    assert all(c >= 0 for c in counts)
    assert sum(counts) == 4

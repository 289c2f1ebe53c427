"""
Unit tests for the KPI aggregator and week-over-week deltas.
"""

import pytest

from src.analytics.kpis import delta, kpis_for, kpis_with_deltas
from src.models.metrics import WoWDelta


def test_empty_record_set():
    """No records: count 0, rating stats None, approval 0%."""
    snapshot = kpis_for([])
    assert snapshot.count == 0
    assert snapshot.avg_rating is None
    assert snapshot.percent_positive is None
    assert snapshot.percent_approved == 0


def test_kpis_mixed_records(make_review):
    """Unratable records count towards count and approval only."""
    records = [
        make_review(rating=10, approved=True),
        make_review(rating=8),
        make_review(rating=4),
        make_review(),
    ]
    snapshot = kpis_for(records)
    assert snapshot.count == 4
    assert snapshot.avg_rating == pytest.approx(22 / 3)
    assert snapshot.percent_positive == 67
    assert snapshot.percent_approved == 25


def test_positive_threshold_is_inclusive(make_review):
    snapshot = kpis_for([make_review(rating=8), make_review(rating=7.9)])
    assert snapshot.percent_positive == 50


def test_unapproved_state_is_not_approved(make_review):
    snapshot = kpis_for([make_review(rating=9, approved=False)])
    assert snapshot.percent_approved == 0


def test_only_unratable_records(make_review):
    snapshot = kpis_for([make_review(), make_review()])
    assert snapshot.count == 2
    assert snapshot.avg_rating is None
    assert snapshot.percent_positive is None


def test_delta_down():
    result = delta(4.0, 4.2)
    assert result.direction == "down"
    assert result.percent_change == -4.8
    assert result.absolute_change == pytest.approx(-0.2)
    assert result.color_hint == "unfavorable"


def test_delta_up():
    result = delta(3, 2)
    assert result.direction == "up"
    assert result.percent_change == 50.0
    assert result.color_hint == "favorable"


def test_small_change_is_flat():
    """Under 1% after rounding is flat."""
    result = delta(100, 100.5)
    assert result.direction == "flat"
    assert result.color_hint == "neutral"


def test_delta_undefined():
    """Missing side or zero previous -> no delta."""
    assert delta(None, 3) is None
    assert delta(3, None) is None
    assert delta(5, 0) is None


def test_wow_direction_validation():
    with pytest.raises(ValueError):
        WoWDelta(absolute_change=1, direction="sideways", percent_change=1, color_hint="neutral")


def test_kpis_with_deltas(make_review):
    """Each headline metric is compared independently."""
    this_week = [make_review(rating=10), make_review(rating=8), make_review(rating=6)]
    last_week = [make_review(rating=8), make_review(rating=8)]

    result = kpis_with_deltas(this_week, last_week)

    assert result.count == 3
    assert result.count_delta.direction == "up"
    assert result.count_delta.percent_change == 50.0
    assert result.avg_delta.direction == "flat"
    assert result.pos_pct_delta.direction == "down"
    assert result.pos_pct_delta.percent_change == -33.0

    data = result.to_dict()
    assert data["avg_delta"]["direction"] == "flat"


def test_kpis_with_deltas_empty_previous(make_review):
    result = kpis_with_deltas([make_review(rating=9)], [])
    assert result.count_delta is None
    assert result.avg_delta is None
    assert result.pos_pct_delta is None
    assert result.to_dict()["count_delta"] is None


def test_delta_ten_percent():
    result = delta(110, 100)
    assert result.absolute_change == 10
    assert result.percent_change == 10.0
    assert result.direction == "up"


def test_delta_deadband():
    assert delta(100.4, 100).direction == "flat"


def test_kpis_idempotent(make_review):
    records = [make_review(rating=7), make_review(categories={"cleanliness": 9})]
    assert kpis_for(records) == kpis_for(records)

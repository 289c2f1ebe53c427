"""
KPI aggregation and week-over-week deltas.
"""

from typing import Optional, Sequence

from src.analytics.rating import ratable_values
from src.models.metrics import KpiSnapshot, KpiSnapshotWithDeltas, WoWDelta
from src.models.review import ReviewRecord
from src.utils.numeric import is_number, mean, percentage, round_half_up
import config.settings as settings

COLOR_HINTS = {
    "up": "favorable",
    "down": "unfavorable",
    "flat": "neutral",
}


def kpis_for(records: Sequence[ReviewRecord]) -> KpiSnapshot:
    """
    Compute count, average rating, % positive and % approved.

    Unratable records count towards count and % approved only.
    """
    values = ratable_values(records)

    percent_positive = None
    if values:
        positive = sum(1 for v in values if v >= settings.POSITIVE_THRESHOLD)
        percent_positive = percentage(positive, len(values))

    approved = sum(1 for r in records if r.is_approved)

    return KpiSnapshot(
        count=len(records),
        avg_rating=mean(values),
        percent_positive=percent_positive,
        percent_approved=percentage(approved, len(records)),
    )


def color_hint(direction: str) -> str:
    """Display hint for a direction; "up" is always the raw numeric increase."""
    return COLOR_HINTS[direction]


def delta(current: Optional[float], previous: Optional[float]) -> Optional[WoWDelta]:
    """
    Change from previous to current.

    Returns None when either side is missing or previous is zero, since
    the percent change is undefined there. Changes under 1% (after
    rounding to one decimal) are "flat".
    """
    if not is_number(current) or not is_number(previous) or previous == 0:
        return None

    absolute_change = current - previous
    percent_change = round_half_up(absolute_change / abs(previous) * 100, 1)

    if abs(percent_change) < settings.WOW_FLAT_THRESHOLD_PCT:
        direction = "flat"
    elif percent_change > 0:
        direction = "up"
    else:
        direction = "down"

    return WoWDelta(
        absolute_change=absolute_change,
        direction=direction,
        percent_change=percent_change,
        color_hint=color_hint(direction),
    )


def kpis_with_deltas(
    current: Sequence[ReviewRecord],
    previous: Sequence[ReviewRecord]
) -> KpiSnapshotWithDeltas:
    """KPIs for current, with each headline metric compared to previous independently."""
    now = kpis_for(current)
    before = kpis_for(previous)

    return KpiSnapshotWithDeltas(
        count=now.count,
        avg_rating=now.avg_rating,
        percent_positive=now.percent_positive,
        percent_approved=now.percent_approved,
        avg_delta=delta(now.avg_rating, before.avg_rating),
        count_delta=delta(now.count, before.count),
        pos_pct_delta=delta(now.percent_positive, before.percent_positive),
    )

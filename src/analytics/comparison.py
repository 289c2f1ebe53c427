"""
Property comparison.

Per-property rollup of volume, rating, approval activity, worst-rated
categories and rating trend, ranked by review volume.
"""

import logging
from collections import OrderedDict
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from src.analytics.rating import ratable_values
from src.models.issue import DetectedIssue
from src.models.property import CategoryTally, PropertySummary, RecentSummary
from src.models.review import PropertyRef, ReviewRecord
from src.utils.dates import days_between, format_timestamp, utc_now
from src.utils.numeric import is_number, mean, percentage, round_half_up
import config.settings as settings

logger = logging.getLogger(__name__)


def group_by_property(
    records: Iterable[ReviewRecord]
) -> List[Tuple[PropertyRef, List[ReviewRecord]]]:
    """Group a flat record list into (property, records) pairs, in first-seen order."""
    groups: Dict[str, Tuple[PropertyRef, List[ReviewRecord]]] = OrderedDict()
    for record in records:
        slug = record.property.slug
        if slug not in groups:
            groups[slug] = (record.property, [])
        groups[slug][1].append(record)
    return list(groups.values())


def newest_first(records: Iterable[ReviewRecord]) -> List[ReviewRecord]:
    return sorted(records, key=lambda r: r.submitted_at, reverse=True)


def classify_trend(records: Sequence[ReviewRecord]) -> str:
    """
    Compare the mean rating of the newer half of records with the older half.

    records must be newest-first. The split is by position, not by
    calendar time, so uneven review frequency skews which dates fall in
    each half.
    """
    if len(records) < settings.TREND_MIN_REVIEWS:
        return "stable"

    half = len(records) // 2
    recent_avg = mean(ratable_values(records[:half]))
    older_avg = mean(ratable_values(records[half:]))
    if recent_avg is None or older_avg is None:
        return "stable"

    difference = recent_avg - older_avg
    if difference > settings.TREND_DELTA_THRESHOLD:
        return "up"
    if difference < -settings.TREND_DELTA_THRESHOLD:
        return "down"
    return "stable"


def category_tally(records: Iterable[ReviewRecord]) -> List[CategoryTally]:
    """Count and mean rating per category, worst-rated first."""
    totals: Dict[str, list] = OrderedDict()
    for record in records:
        for category in record.categories:
            if not is_number(category.rating):
                continue
            entry = totals.setdefault(category.category, [0, 0.0])
            entry[0] += 1
            entry[1] += category.rating

    tallies = [
        CategoryTally(category=name, count=count, avg_rating=total / count)
        for name, (count, total) in totals.items()
    ]
    tallies.sort(key=lambda t: t.avg_rating)
    return tallies


def average_response_days(records: Iterable[ReviewRecord]) -> Optional[float]:
    """Mean days from submission to approval over approved records with a timestamp."""
    return mean(
        days_between(r.submitted_at, r.approval.approved_at)
        for r in records
        if r.is_approved and r.approval.approved_at is not None
    )


def summarize_property(
    property_ref: PropertyRef,
    records: Sequence[ReviewRecord],
    now: Optional[datetime] = None
) -> PropertySummary:
    """Build one comparison row. Does not modify records."""
    now = utc_now(now)
    ordered = newest_first(records)
    approved_count = sum(1 for r in ordered if r.is_approved)

    cutoff = now - timedelta(days=settings.RECENT_SUMMARY_DAYS)
    recent = [r for r in ordered if r.submitted_at >= cutoff]

    return PropertySummary(
        property=property_ref,
        total_reviews=len(ordered),
        avg_rating=round_half_up(mean(ratable_values(ordered)), 1),
        approved_count=approved_count,
        approval_rate=percentage(approved_count, len(ordered)),
        avg_response_time=round_half_up(average_response_days(ordered), 1),
        top_issues=category_tally(ordered)[:settings.TOP_ISSUES_LIMIT],
        recent_trend=classify_trend(ordered),
        last_30_days=RecentSummary(
            reviews=len(recent),
            avg_rating=round_half_up(mean(ratable_values(recent)), 1),
        ),
    )


def compare_properties(
    properties_with_records: Iterable[Tuple[PropertyRef, Sequence[ReviewRecord]]],
    now: Optional[datetime] = None
) -> List[PropertySummary]:
    """
    Summarize every property and rank by total review count (descending).

    Args:
        properties_with_records: (property, records) pairs
        now: Reference time for the trailing 30-day summary

    Returns:
        PropertySummary list, busiest property first
    """
    summaries = [
        summarize_property(property_ref, records, now)
        for property_ref, records in properties_with_records
    ]
    summaries.sort(key=lambda s: s.total_reviews, reverse=True)

    logger.info(f"Compared {len(summaries)} properties")
    return summaries


def comparison_meta(summaries: Sequence[PropertySummary], now: Optional[datetime] = None) -> dict:
    """Aggregate metadata that accompanies the comparison table."""
    avg_approval = mean(s.approval_rate for s in summaries)
    return {
        "total_properties": len(summaries),
        "total_reviews": sum(s.total_reviews for s in summaries),
        "avg_approval_rate": round_half_up(avg_approval) if avg_approval is not None else 0,
        "generated_at": format_timestamp(utc_now(now)),
    }


def fleet_metrics(summaries: Sequence[PropertySummary], issues: Sequence[DetectedIssue] = ()) -> dict:
    """Fleet-wide headline numbers for the analytics overview."""
    avg_approval = mean(s.approval_rate for s in summaries)
    return {
        "total_properties": len(summaries),
        "total_reviews": sum(s.total_reviews for s in summaries),
        "avg_rating": round_half_up(mean(s.avg_rating for s in summaries), 1),
        "avg_approval_rate": round_half_up(avg_approval) if avg_approval is not None else 0,
        "avg_response_time": round_half_up(mean(s.avg_response_time for s in summaries), 1),
        "active_issues": sum(1 for i in issues if i.severity == "high"),
    }

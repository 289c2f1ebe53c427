"""
Issue spike detection.

Compares how many low category ratings each category received in a recent
window (typically the last 7 days) with its weekly average over a baseline
window (typically the prior ~90 days).
"""

import logging
import math
from collections import Counter
from typing import Iterable, List

from src.models.issue import IssueSpike
from src.models.review import ReviewRecord
from src.utils.numeric import is_number
import config.settings as settings

logger = logging.getLogger(__name__)


def low_rating_counts(records: Iterable[ReviewRecord]) -> Counter:
    """Number of category ratings below the low-rating threshold, per category."""
    counts = Counter()
    for record in records:
        for category in record.categories:
            if is_number(category.rating) and category.rating < settings.SPIKE_LOW_RATING_THRESHOLD:
                counts[category.category] += 1
    return counts


def _severity_for_lift(lift: float) -> str:
    if lift >= settings.SPIKE_HIGH_LIFT:
        return "high"
    if lift >= settings.SPIKE_MEDIUM_LIFT:
        return "medium"
    return "low"


def detect_issue_spikes(
    recent: Iterable[ReviewRecord],
    baseline: Iterable[ReviewRecord],
    baseline_days: int = settings.LONG_WINDOW_DAYS
) -> List[IssueSpike]:
    """
    Flag categories whose low ratings jumped against their baseline rate.

    Args:
        recent: Reviews in the recent window
        baseline: Reviews in the baseline window
        baseline_days: Length of the baseline window in days

    Returns:
        Up to 8 spikes: "new issue" spikes (no baseline) first by recent
        count, then the rest by descending lift
    """
    now_counts = low_rating_counts(recent)
    base_counts = low_rating_counts(baseline)
    baseline_weeks = max(1, math.ceil(baseline_days / 7))

    spikes = []
    for category, now_count in now_counts.items():
        base_avg = base_counts.get(category, 0) / baseline_weeks

        if base_avg >= 1 and now_count > 0:
            lift = now_count / base_avg
            if lift < settings.SPIKE_MIN_LIFT:
                continue
            severity = _severity_for_lift(lift)
        elif base_avg < 1 and now_count >= settings.SPIKE_NEW_ISSUE_MIN_COUNT:
            lift = math.inf
            severity = "medium"
        else:
            continue

        spikes.append(IssueSpike(
            category=category,
            recent_count=now_count,
            baseline_weekly_avg=base_avg,
            lift=lift,
            severity=severity,
        ))

    new_issues = sorted(
        (s for s in spikes if s.is_new_issue),
        key=lambda s: -s.recent_count
    )
    rising = sorted(
        (s for s in spikes if not s.is_new_issue),
        key=lambda s: -s.lift
    )
    result = (new_issues + rising)[:settings.SPIKE_MAX_RESULTS]

    logger.info(f"Detected {len(result)} issue spikes ({len(new_issues)} new issues)")
    return result

"""
Approval response time metrics.

How long reviews waited between submission and manager approval.
"""

from typing import Dict, List, Sequence

from src.models.metrics import DailyResponse, ResponseTimeMetrics
from src.models.review import ReviewRecord
from src.utils.dates import days_between, utc_date
from src.utils.numeric import percentage, round_half_up


def _approval_events(records: Sequence[ReviewRecord]) -> List[ReviewRecord]:
    """Approved records that also carry an approval timestamp."""
    return [
        r for r in records
        if r.approval is not None and r.approval.approved and r.approval.approved_at is not None
    ]


def calculate_response_time_metrics(records: Sequence[ReviewRecord]) -> ResponseTimeMetrics:
    """
    Summarize approval turnaround over records.

    Returns:
        ResponseTimeMetrics with durations in days rounded to 1 decimal;
        all None (and approval_rate 0) if nothing was approved
    """
    approved = _approval_events(records)
    if not approved:
        return ResponseTimeMetrics()

    durations = sorted(days_between(r.submitted_at, r.approval.approved_at) for r in approved)

    # Running average per approval day
    by_day: Dict[str, dict] = {}
    for record in approved:
        day = utc_date(record.approval.approved_at).strftime("%Y-%m-%d")
        duration = days_between(record.submitted_at, record.approval.approved_at)
        entry = by_day.setdefault(day, {"avg_time": 0.0, "count": 0})
        entry["avg_time"] = (entry["avg_time"] * entry["count"] + duration) / (entry["count"] + 1)
        entry["count"] += 1

    return ResponseTimeMetrics(
        avg_response_time=round_half_up(sum(durations) / len(durations), 1),
        median_response_time=round_half_up(durations[len(durations) // 2], 1),
        fastest_response=round_half_up(durations[0], 1),
        slowest_response=round_half_up(durations[-1], 1),
        responses_by_day=[
            DailyResponse(day=day, avg_time=entry["avg_time"], count=entry["count"])
            for day, entry in sorted(by_day.items())
        ],
        approval_rate=percentage(len(approved), len(records)),
    )

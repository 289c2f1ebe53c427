"""
KPI and delta data models.

Outputs of the KPI aggregator, the week-over-week delta rule and the
response time metrics.
"""

from dataclasses import dataclass, field
from typing import List, Optional

DIRECTIONS = ("up", "down", "flat")


@dataclass(frozen=True)
class KpiSnapshot:
    """
    Headline KPIs for a record set.
    None means "no ratable records", never zero.
    """
    count: int
    avg_rating: Optional[float]
    percent_positive: Optional[int]
    percent_approved: int

    def to_dict(self) -> dict:
        return {
            "count": self.count,
            "avg_rating": self.avg_rating,
            "percent_positive": self.percent_positive,
            "percent_approved": self.percent_approved,
        }


@dataclass(frozen=True)
class WoWDelta:
    """Change of one metric between two periods."""
    absolute_change: float
    direction: str  # "up", "down" or "flat"
    percent_change: float
    color_hint: str  # "favorable", "unfavorable" or "neutral"

    def __post_init__(self):
        if self.direction not in DIRECTIONS:
            raise ValueError(
                f"Invalid direction: {self.direction}. Must be 'up', 'down' or 'flat'"
            )

    def to_dict(self) -> dict:
        return {
            "absolute_change": self.absolute_change,
            "direction": self.direction,
            "percent_change": self.percent_change,
            "color_hint": self.color_hint,
        }


@dataclass(frozen=True)
class KpiSnapshotWithDeltas(KpiSnapshot):
    """Current-period KPIs with deltas against a previous period."""
    avg_delta: Optional[WoWDelta] = None
    count_delta: Optional[WoWDelta] = None
    pos_pct_delta: Optional[WoWDelta] = None

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({
            "avg_delta": self.avg_delta.to_dict() if self.avg_delta else None,
            "count_delta": self.count_delta.to_dict() if self.count_delta else None,
            "pos_pct_delta": self.pos_pct_delta.to_dict() if self.pos_pct_delta else None,
        })
        return data


@dataclass(frozen=True)
class DailyResponse:
    """Approval turnaround for reviews approved on one UTC day."""
    day: str  # YYYY-MM-DD
    avg_time: float  # days
    count: int

    def to_dict(self) -> dict:
        return {"day": self.day, "avg_time": self.avg_time, "count": self.count}


@dataclass(frozen=True)
class ResponseTimeMetrics:
    """Approval turnaround statistics, in days."""
    avg_response_time: Optional[float] = None
    median_response_time: Optional[float] = None
    fastest_response: Optional[float] = None
    slowest_response: Optional[float] = None
    responses_by_day: List[DailyResponse] = field(default_factory=list)
    approval_rate: int = 0

    def to_dict(self) -> dict:
        return {
            "avg_response_time": self.avg_response_time,
            "median_response_time": self.median_response_time,
            "fastest_response": self.fastest_response,
            "slowest_response": self.slowest_response,
            "responses_by_day": [r.to_dict() for r in self.responses_by_day],
            "approval_rate": self.approval_rate,
        }

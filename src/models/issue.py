"""
Issue data models.

DetectedIssue comes from the keyword scan of review text, IssueSpike from
comparing recent low category ratings against a historical baseline.
"""

import math
from dataclasses import dataclass, field
from typing import List, Optional

SEVERITIES = ("low", "medium", "high")
SEVERITY_ORDER = {"high": 3, "medium": 2, "low": 1}


def _validate_severity(severity: str) -> None:
    if severity not in SEVERITIES:
        raise ValueError(
            f"Invalid severity: {severity}. Must be 'low', 'medium' or 'high'"
        )


@dataclass(frozen=True)
class DetectedIssue:
    """A recurring (category, keyword) match across review texts."""
    category: str
    keyword: str
    frequency: int
    avg_rating: Optional[float]  # Rounded to 1 decimal; None if no match was ratable
    severity: str
    examples: List[str] = field(default_factory=list)

    def __post_init__(self):
        _validate_severity(self.severity)

    def to_dict(self) -> dict:
        return {
            "category": self.category,
            "keyword": self.keyword,
            "frequency": self.frequency,
            "avg_rating": self.avg_rating,
            "severity": self.severity,
            "examples": list(self.examples),
        }


@dataclass(frozen=True)
class IssueSpike:
    """
    Anomalous increase of low ratings in one category.
    lift is math.inf when there is no historical baseline ("new issue").
    """
    category: str
    recent_count: int
    baseline_weekly_avg: float
    lift: float
    severity: str

    def __post_init__(self):
        _validate_severity(self.severity)

    @property
    def is_new_issue(self) -> bool:
        return math.isinf(self.lift)

    def to_dict(self) -> dict:
        return {
            "category": self.category,
            "recent_count": self.recent_count,
            "baseline_weekly_avg": round(self.baseline_weekly_avg, 2),
            "lift": "unbounded" if self.is_new_issue else round(self.lift, 2),
            "severity": self.severity,
        }

"""
Property comparison data model.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from src.models.review import PropertyRef

TRENDS = ("up", "down", "stable")


@dataclass(frozen=True)
class CategoryTally:
    """Count and mean rating of one rating category within a property."""
    category: str
    count: int
    avg_rating: float

    def to_dict(self) -> dict:
        return {"category": self.category, "count": self.count, "avg_rating": self.avg_rating}


@dataclass(frozen=True)
class RecentSummary:
    """Trailing-window sub-summary (last 30 days by default)."""
    reviews: int
    avg_rating: Optional[float]

    def to_dict(self) -> dict:
        return {"reviews": self.reviews, "avg_rating": self.avg_rating}


@dataclass(frozen=True)
class PropertySummary:
    """One row of the property comparison table."""
    property: PropertyRef
    total_reviews: int
    avg_rating: Optional[float]
    approved_count: int
    approval_rate: int
    avg_response_time: Optional[float]  # days
    top_issues: List[CategoryTally] = field(default_factory=list)
    recent_trend: str = "stable"
    last_30_days: RecentSummary = field(default_factory=lambda: RecentSummary(0, None))

    def __post_init__(self):
        if self.recent_trend not in TRENDS:
            raise ValueError(
                f"Invalid trend: {self.recent_trend}. Must be 'up', 'down' or 'stable'"
            )

    def to_dict(self) -> dict:
        return {
            "id": self.property.id,
            "name": self.property.name,
            "slug": self.property.slug,
            "total_reviews": self.total_reviews,
            "avg_rating": self.avg_rating,
            "approved_count": self.approved_count,
            "approval_rate": self.approval_rate,
            "avg_response_time": self.avg_response_time,
            "top_issues": [t.to_dict() for t in self.top_issues],
            "recent_trend": self.recent_trend,
            "last_30_days": self.last_30_days.to_dict(),
        }

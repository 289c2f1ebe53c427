"""
Review data model.

Canonical review record produced by the normalizers and read by the
analytics engine. Hostaway and Google payloads are both mapped onto this
single shape.
"""

import re
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional, Tuple

from src.utils.dates import format_timestamp, parse_timestamp, to_utc

VALID_STATUSES = ("published", "removed")


def slugify(value: str) -> str:
    """URL-friendly property slug: "Shoreditch Loft 2B" -> "shoreditch-loft-2b"."""
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower())
    return slug.strip("-")


@dataclass(frozen=True)
class PropertyRef:
    """Property a review belongs to."""
    name: str
    slug: str = ""
    id: Optional[int] = None

    def __post_init__(self):
        if not self.slug:
            object.__setattr__(self, "slug", slugify(self.name))

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "slug": self.slug}

    @classmethod
    def from_dict(cls, data: dict) -> "PropertyRef":
        return cls(name=data["name"], slug=data.get("slug", ""), id=data.get("id"))


@dataclass(frozen=True)
class CategoryRating:
    """Per-category guest rating (e.g. cleanliness: 9)."""
    category: str
    rating: float

    def __post_init__(self):
        if not self.category:
            raise ValueError("Category name must not be empty")


@dataclass(frozen=True)
class ApprovalState:
    """
    Manager decision on showing a review on the public website.

    approved_at may be missing even when approved is True; analytics
    treat that as "no approval event".
    """
    approved: bool
    approved_at: Optional[datetime] = None
    approved_by: Optional[str] = None

    def __post_init__(self):
        if self.approved_at is not None:
            object.__setattr__(self, "approved_at", to_utc(self.approved_at))

    def to_dict(self) -> dict:
        return {
            "approved": self.approved,
            "approved_at": format_timestamp(self.approved_at) if self.approved_at else None,
            "approved_by": self.approved_by,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ApprovalState":
        approved_at = data.get("approved_at")
        return cls(
            approved=bool(data.get("approved", False)),
            approved_at=parse_timestamp(approved_at) if approved_at else None,
            approved_by=data.get("approved_by"),
        )


@dataclass(frozen=True)
class ReviewRecord:
    """
    A guest review in the canonical internal shape.
    Read-only to the analytics engine.
    """
    review_id: str
    text: str
    submitted_at: datetime
    property: PropertyRef
    overall_rating: Optional[float] = None
    categories: Tuple[CategoryRating, ...] = field(default_factory=tuple)
    approval: Optional[ApprovalState] = None
    channel: Optional[str] = None
    status: str = "published"
    source: str = "hostaway"
    review_type: Optional[str] = None
    guest_name: Optional[str] = None

    def __post_init__(self):
        if self.status not in VALID_STATUSES:
            raise ValueError(
                f"Invalid status: {self.status}. Must be 'published' or 'removed'"
            )
        object.__setattr__(self, "submitted_at", to_utc(self.submitted_at))
        object.__setattr__(self, "categories", tuple(self.categories))
        if self.text is None:
            object.__setattr__(self, "text", "")

    @property
    def is_approved(self) -> bool:
        return bool(self.approval and self.approval.approved)

    def with_approval(self, approval: Optional[ApprovalState]) -> "ReviewRecord":
        """Copy of this record with a different approval state."""
        return replace(self, approval=approval)

    @classmethod
    def from_dict(cls, data: dict) -> "ReviewRecord":
        """Create ReviewRecord from JSON dict."""
        approval = data.get("approval")
        return cls(
            review_id=str(data["review_id"]),
            text=data.get("text") or "",
            submitted_at=parse_timestamp(data["submitted_at"]),
            property=PropertyRef.from_dict(data["property"]),
            overall_rating=data.get("overall_rating"),
            categories=tuple(
                CategoryRating(c["category"], c["rating"])
                for c in data.get("categories", [])
            ),
            approval=ApprovalState.from_dict(approval) if approval else None,
            channel=data.get("channel"),
            status=data.get("status", "published"),
            source=data.get("source", "hostaway"),
            review_type=data.get("review_type"),
            guest_name=data.get("guest_name"),
        )

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        return {
            "review_id": self.review_id,
            "text": self.text,
            "submitted_at": format_timestamp(self.submitted_at),
            "property": self.property.to_dict(),
            "overall_rating": self.overall_rating,
            "categories": [
                {"category": c.category, "rating": c.rating} for c in self.categories
            ],
            "approval": self.approval.to_dict() if self.approval else None,
            "channel": self.channel,
            "status": self.status,
            "source": self.source,
            "review_type": self.review_type,
            "guest_name": self.guest_name,
        }

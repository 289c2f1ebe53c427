"""
Review Store - JSON-backed persistence for normalized reviews.

Answers filtered queries for the analytics layer, lists distinct filter
values and records manager approval decisions.
"""

import json
import os
import shutil
import logging
from dataclasses import dataclass, field
from datetime import datetime, time, timezone
from typing import Dict, Iterable, List, Optional

from src.models.review import ApprovalState, PropertyRef, ReviewRecord
from src.utils.dates import to_utc, utc_now
from src.utils.numeric import is_number
import config.settings as settings

logger = logging.getLogger(__name__)


class ApprovalError(ValueError):
    """Raised when an approval decision cannot be recorded."""


@dataclass
class ReviewFilter:
    """
    Query predicates. Unset fields do not filter.

    status defaults to "published"; pass "all" to include removed reviews.
    min_rating / max_rating apply to the overall rating only.
    """
    property_slug: Optional[str] = None
    min_rating: Optional[float] = None
    max_rating: Optional[float] = None
    text: str = ""
    channel: Optional[str] = None
    status: str = "published"
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    categories: List[str] = field(default_factory=list)
    approved: Optional[bool] = None

    @staticmethod
    def day_start(value: str) -> datetime:
        """YYYY-MM-DD -> 00:00:00.000 UTC."""
        day = datetime.strptime(value, "%Y-%m-%d").date()
        return datetime.combine(day, time.min, tzinfo=timezone.utc)

    @staticmethod
    def day_end(value: str) -> datetime:
        """YYYY-MM-DD -> 23:59:59.999 UTC."""
        day = datetime.strptime(value, "%Y-%m-%d").date()
        return datetime.combine(day, time(23, 59, 59, 999000), tzinfo=timezone.utc)

    def matches(self, record: ReviewRecord) -> bool:
        if self.property_slug and record.property.slug != self.property_slug:
            return False
        if self.min_rating is not None or self.max_rating is not None:
            rating = record.overall_rating
            if not is_number(rating):
                return False
            if self.min_rating is not None and rating < self.min_rating:
                return False
            if self.max_rating is not None and rating > self.max_rating:
                return False
        if self.text and self.text.lower() not in record.text.lower():
            return False
        if self.channel and record.channel != self.channel:
            return False
        if self.status != "all" and record.status != self.status:
            return False
        if self.date_from and record.submitted_at < to_utc(self.date_from):
            return False
        if self.date_to and record.submitted_at > to_utc(self.date_to):
            return False
        if self.categories:
            names = {c.category for c in record.categories}
            if not names.intersection(self.categories):
                return False
        if self.approved is not None and record.is_approved != self.approved:
            return False
        return True


class ReviewStore:
    """
    Single source of truth for ingested reviews.

    Stored as one JSON document:
    {"version": ..., "last_updated": ..., "reviews": [...]}
    """

    def __init__(self, store_path: str):
        """
        Initialize store from disk or create a new empty store.

        Args:
            store_path: Path to reviews.json
        """
        self.store_path = store_path
        self.reviews: Dict[str, ReviewRecord] = {}  # review_id -> ReviewRecord
        self.version = "1.0.0"
        self.last_updated = None

        if os.path.exists(store_path):
            self._load()
        else:
            logger.info(f"No existing review store at {store_path}, starting empty")

    def _load(self) -> None:
        """Load reviews from disk."""
        try:
            with open(self.store_path, 'r') as f:
                data = json.load(f)

            self.version = data.get("version", "1.0.0")
            self.last_updated = data.get("last_updated")

            self.reviews = {}
            for review_data in data.get("reviews", []):
                record = ReviewRecord.from_dict(review_data)
                self.reviews[record.review_id] = record

            logger.info(f"Loaded {len(self.reviews)} reviews from {self.store_path}")

        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse review store JSON: {e}")
            self._try_restore_from_backup()
        except (OSError, KeyError, TypeError, ValueError, AttributeError) as e:
            logger.error(f"Failed to load review store: {e}")
            self._try_restore_from_backup()

    def _try_restore_from_backup(self) -> None:
        """Attempt to restore from backup file if the main store is corrupted."""
        backup_path = f"{self.store_path}.backup"
        if os.path.exists(backup_path):
            logger.warning(f"Attempting to restore from backup: {backup_path}")
            try:
                with open(backup_path, 'r') as f:
                    data = json.load(f)
                self.reviews = {}
                for review_data in data.get("reviews", []):
                    record = ReviewRecord.from_dict(review_data)
                    self.reviews[record.review_id] = record
                shutil.copy(backup_path, self.store_path)
                logger.info(f"Restored {len(self.reviews)} reviews from backup")
            except (OSError, KeyError, TypeError, ValueError, AttributeError) as e:
                logger.error(f"Backup restoration failed: {e}. Starting with empty store.")
                self.reviews = {}
        else:
            logger.warning("No backup file found. Starting with empty store.")
            self.reviews = {}

    def upsert_many(self, records: Iterable[ReviewRecord]) -> int:
        """
        Insert or replace reviews by review_id.

        An existing approval decision is kept when the incoming record has
        none, so re-ingesting an export does not wipe approvals.

        Returns:
            Number of records written
        """
        written = 0
        for record in records:
            existing = self.reviews.get(record.review_id)
            if existing is not None and record.approval is None and existing.approval is not None:
                record = record.with_approval(existing.approval)
            self.reviews[record.review_id] = record
            written += 1

        logger.info(f"Upserted {written} reviews (store size: {len(self.reviews)})")
        return written

    def get(self, review_id: str) -> Optional[ReviewRecord]:
        """Retrieve review by ID. Returns None if not found."""
        return self.reviews.get(review_id)

    def query(
        self,
        review_filter: Optional[ReviewFilter] = None,
        limit: Optional[int] = None
    ) -> List[ReviewRecord]:
        """
        Return reviews matching review_filter, newest first.

        Args:
            review_filter: Predicates (default: published reviews only)
            limit: Maximum number of reviews to return
        """
        review_filter = review_filter or ReviewFilter()
        matches = [r for r in self.reviews.values() if review_filter.matches(r)]
        matches.sort(key=lambda r: r.submitted_at, reverse=True)
        if limit is not None:
            matches = matches[:limit]
        logger.debug(f"Query matched {len(matches)} reviews")
        return matches

    def distinct_categories(self) -> List[str]:
        """All category names across reviews, sorted."""
        return sorted({c.category for r in self.reviews.values() for c in r.categories})

    def distinct_channels(self) -> List[str]:
        """All non-empty channel names across reviews, sorted."""
        return sorted({r.channel for r in self.reviews.values() if r.channel})

    def properties(self) -> List[PropertyRef]:
        """Distinct properties, sorted by name."""
        by_slug = {}
        for record in self.reviews.values():
            by_slug.setdefault(record.property.slug, record.property)
        return sorted(by_slug.values(), key=lambda p: p.name)

    def set_approval(
        self,
        review_id: str,
        approved: bool,
        now: Optional[datetime] = None
    ) -> ReviewRecord:
        """
        Approve or unapprove a review for the public website.

        Only published reviews can be approved; unapproving is always allowed.

        Raises:
            KeyError: If review_id doesn't exist
            ApprovalError: If approving a review that is not published
        """
        record = self.reviews.get(review_id)
        if record is None:
            raise KeyError(f"Review not found: {review_id}")

        if approved and record.status != "published":
            raise ApprovalError("Only published reviews can be approved")

        approval = ApprovalState(
            approved=approved,
            approved_at=utc_now(now) if approved else None,
            approved_by=settings.APPROVED_BY if approved else None,
        )
        updated = record.with_approval(approval)
        self.reviews[review_id] = updated

        logger.info(f"Review {review_id} {'approved' if approved else 'unapproved'}")
        return updated

    def all_reviews(self) -> List[ReviewRecord]:
        """Every stored review (any status), newest first."""
        return self.query(ReviewFilter(status="all"))

    def save(self) -> None:
        """
        Persist store to disk with atomic write pattern.
        Creates backup before write.
        """
        self.last_updated = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")

        store_dir = os.path.dirname(self.store_path)
        if store_dir:
            os.makedirs(store_dir, exist_ok=True)

        if os.path.exists(self.store_path):
            backup_path = f"{self.store_path}.backup"
            shutil.copy(self.store_path, backup_path)
            logger.debug(f"Created backup: {backup_path}")

        data = {
            "version": self.version,
            "last_updated": self.last_updated,
            "reviews": [r.to_dict() for r in self.all_reviews()]
        }

        temp_path = f"{self.store_path}.tmp"
        try:
            with open(temp_path, 'w') as f:
                json.dump(data, f, indent=2)

            os.replace(temp_path, self.store_path)
            logger.info(f"Review store saved: {len(self.reviews)} reviews")

        except Exception as e:
            logger.error(f"Failed to save review store: {e}")
            if os.path.exists(temp_path):
                os.remove(temp_path)
            raise

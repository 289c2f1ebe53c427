"""
Shared fixtures for the test suite.
"""

from datetime import datetime, timedelta, timezone
from itertools import count

import pytest

from src.models.review import ApprovalState, CategoryRating, PropertyRef, ReviewRecord

NOW = datetime(2024, 6, 30, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    """Fixed reference time: 2024-06-30 12:00 UTC."""
    return NOW


@pytest.fixture
def make_review():
    """
    Factory for ReviewRecords.

    days_ago is measured from NOW; categories is a {name: rating} dict;
    approved_after_days sets an approval that many days after submission.
    """
    ids = count(1)

    def _make(
        rating=None,
        categories=None,
        text="",
        days_ago=0,
        property_name="Shoreditch Heights",
        status="published",
        approved=None,
        approved_after_days=None,
        submitted_at=None,
        channel="hostaway",
    ):
        submitted = submitted_at or NOW - timedelta(days=days_ago)
        approval = None
        if approved_after_days is not None:
            approval = ApprovalState(
                approved=True,
                approved_at=submitted + timedelta(days=approved_after_days),
                approved_by="manager",
            )
        elif approved is not None:
            approval = ApprovalState(approved=approved)

        return ReviewRecord(
            review_id=str(next(ids)),
            text=text,
            submitted_at=submitted,
            property=PropertyRef(name=property_name),
            overall_rating=rating,
            categories=tuple(
                CategoryRating(name, value) for name, value in (categories or {}).items()
            ),
            approval=approval,
            channel=channel,
            status=status,
        )

    return _make

"""
Review list ordering for the dashboard.
"""

import logging
import math
from typing import Iterable, List

from src.analytics.rating import effective_rating
from src.models.review import ReviewRecord

logger = logging.getLogger(__name__)

SORT_MODES = ("date_desc", "date_asc", "rating_desc", "rating_asc", "attention")

# Unratable reviews sort after every real rating in "attention" order
UNRATED_ATTENTION_RANK = 11


def _attention_key(record: ReviewRecord):
    status_rank = 0 if record.status == "removed" else 1
    rating = effective_rating(record)
    return (status_rank, UNRATED_ATTENTION_RANK if rating is None else rating)


def _rating_key(record: ReviewRecord) -> float:
    rating = effective_rating(record)
    return -math.inf if rating is None else rating


def sort_reviews(records: Iterable[ReviewRecord], mode: str = "date_desc") -> List[ReviewRecord]:
    """
    Return records in dashboard order.

    Modes:
        date_desc / date_asc: by submission time
        rating_desc / rating_asc: by effective rating, unratable lowest
        attention: removed reviews first, then worst rating first
    """
    records = list(records)

    if mode == "date_asc":
        return sorted(records, key=lambda r: r.submitted_at)
    if mode == "rating_desc":
        return sorted(records, key=_rating_key, reverse=True)
    if mode == "rating_asc":
        return sorted(records, key=_rating_key)
    if mode == "attention":
        return sorted(records, key=_attention_key)
    if mode != "date_desc":
        logger.warning(f"Unknown sort mode '{mode}', using date_desc")
    return sorted(records, key=lambda r: r.submitted_at, reverse=True)

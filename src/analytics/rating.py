"""
Rating derivation.

The effective rating of a review is its overall rating when present,
else the unweighted mean of its category ratings, else None.
"""

from typing import Iterable, List, Optional

from src.models.review import ReviewRecord
from src.utils.numeric import is_number, mean


def effective_rating(record: ReviewRecord) -> Optional[float]:
    """
    Resolve the single rating used by every downstream statistic.

    Zero is a valid rating; only absence (or a non-finite value) falls
    through to the category mean. Computed fresh on each call.
    """
    if is_number(record.overall_rating):
        return record.overall_rating
    return mean(c.rating for c in record.categories)


def ratable_values(records: Iterable[ReviewRecord]) -> List[float]:
    """Effective ratings of the records that have one."""
    values = []
    for record in records:
        rating = effective_rating(record)
        if rating is not None:
            values.append(rating)
    return values

"""
Recurring issue detection.

Scans review text for a fixed dictionary of hospitality complaint keywords,
tallies each (category, keyword) pair and grades its severity from how often
it appears and how badly the matching reviews were rated. Matching is a
literal, case-insensitive substring test; no stemming or fuzzy matching.
"""

import logging
from typing import Dict, List, Mapping, Sequence

from src.analytics.rating import effective_rating
from src.models.issue import DetectedIssue, SEVERITY_ORDER
from src.models.review import ReviewRecord
from src.utils.numeric import mean, round_half_up
import config.settings as settings

logger = logging.getLogger(__name__)

ISSUE_KEYWORDS: Dict[str, List[str]] = {
    "cleanliness": ["dirty", "unclean", "messy", "filthy", "stained", "smell", "odor"],
    "maintenance": ["broken", "damaged", "repair", "fix", "not working", "faulty", "leak"],
    "noise": ["loud", "noisy", "noise", "sound", "music", "party", "quiet"],
    "amenities": ["wifi", "internet", "tv", "air conditioning", "heating", "hot water"],
    "service": ["rude", "unhelpful", "slow response", "poor service", "unfriendly"],
    "location": ["far", "distance", "transport", "parking", "access", "unsafe"],
}


def _excerpt(text: str) -> str:
    return text[:settings.ISSUE_EXCERPT_LENGTH] + "..."


def classify_severity(frequency: int, total_reviews: int, avg_rating) -> str:
    """
    Grade a keyword group.

    high: more than 15% of reviews and mean rating below 3
    medium: more than 8% of reviews or mean rating below 3.5
    The rating thresholds are literal, whatever the rating scale.
    """
    share = frequency / total_reviews if total_reviews else 0.0
    has_rating = avg_rating is not None

    if share > settings.ISSUE_HIGH_FREQUENCY_RATIO and has_rating \
            and avg_rating < settings.ISSUE_HIGH_MAX_RATING:
        return "high"
    if share > settings.ISSUE_MEDIUM_FREQUENCY_RATIO or \
            (has_rating and avg_rating < settings.ISSUE_MEDIUM_MAX_RATING):
        return "medium"
    return "low"


def detect_recurring_issues(
    records: Sequence[ReviewRecord],
    keywords: Mapping[str, Sequence[str]] = ISSUE_KEYWORDS
) -> List[DetectedIssue]:
    """
    Find keyword groups mentioned in at least two reviews.

    Args:
        records: Reviews to scan
        keywords: category -> lowercase keyword substrings

    Returns:
        DetectedIssues sorted by severity (high first), then frequency
    """
    groups: Dict[tuple, dict] = {}

    for record in records:
        text = record.text.lower()
        if not text:
            continue
        rating = effective_rating(record)

        for category, words in keywords.items():
            for keyword in words:
                if keyword not in text:
                    continue
                group = groups.setdefault(
                    (category, keyword),
                    {"count": 0, "ratings": [], "examples": []}
                )
                group["count"] += 1
                if rating is not None:
                    group["ratings"].append(rating)
                if len(group["examples"]) < settings.ISSUE_MAX_EXAMPLES:
                    group["examples"].append(_excerpt(record.text))

    total = len(records)
    issues = []
    for (category, keyword), group in groups.items():
        if group["count"] < settings.ISSUE_MIN_FREQUENCY:
            continue
        avg_rating = mean(group["ratings"])
        issues.append(DetectedIssue(
            category=category,
            keyword=keyword,
            frequency=group["count"],
            avg_rating=round_half_up(avg_rating, 1),
            severity=classify_severity(group["count"], total, avg_rating),
            examples=group["examples"],
        ))

    issues.sort(key=lambda i: (-SEVERITY_ORDER[i.severity], -i.frequency))

    logger.info(
        f"Detected {len(issues)} recurring issues across {total} reviews "
        f"({sum(1 for i in issues if i.severity == 'high')} high severity)"
    )
    return issues

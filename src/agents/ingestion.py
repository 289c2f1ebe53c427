"""
Ingestion Agent.

Loads Hostaway review exports and Google Place Details payloads and
normalizes both into canonical ReviewRecords. Supports deterministic mock
Hostaway data for demos and tests.
"""

import json
import logging
from datetime import datetime, timedelta
from typing import List, Optional

from src.models.review import CategoryRating, PropertyRef, ReviewRecord
from src.utils.dates import parse_timestamp, utc_now
from src.utils.numeric import is_number
import config.settings as settings

logger = logging.getLogger(__name__)


def _optional_number(value) -> Optional[float]:
    return value if is_number(value) else None


def _normalize_hostaway_item(item: dict) -> ReviewRecord:
    """
    Map one raw Hostaway review onto ReviewRecord.

    Raises:
        ValueError: If a required field is missing or has the wrong type
    """
    if not isinstance(item, dict):
        raise ValueError(f"Review must be an object, got {type(item).__name__}")

    review_id = item.get("id")
    if isinstance(review_id, bool) or not isinstance(review_id, int):
        raise ValueError(f"Invalid review id: {review_id!r}")
    for key in ("type", "submittedAt", "listingName"):
        if not isinstance(item.get(key), str):
            raise ValueError(f"Review {review_id}: missing or invalid '{key}'")

    categories = []
    for entry in item.get("reviewCategory") or []:
        if not isinstance(entry, dict) or not isinstance(entry.get("category"), str):
            raise ValueError(f"Review {review_id}: invalid reviewCategory entry {entry!r}")
        if not is_number(entry.get("rating")):
            raise ValueError(f"Review {review_id}: invalid rating for '{entry['category']}'")
        categories.append(CategoryRating(entry["category"], entry["rating"]))

    return ReviewRecord(
        review_id=str(review_id),
        text=item.get("publicReview") or "",
        submitted_at=parse_timestamp(item["submittedAt"]),
        property=PropertyRef(name=item["listingName"]),
        overall_rating=_optional_number(item.get("rating")),
        categories=tuple(categories),
        channel="hostaway",
        status=item.get("status") or "published",
        source="hostaway",
        review_type=item["type"],
        guest_name=item.get("guestName"),
    )


def normalize_hostaway(payload: dict) -> List[ReviewRecord]:
    """
    Normalize a Hostaway reviews response: {"status": ..., "result": [...]}.

    Malformed reviews are skipped with a warning.

    Raises:
        ValueError: If the response envelope itself is malformed
    """
    if not isinstance(payload, dict) or not isinstance(payload.get("status"), str):
        raise ValueError("Hostaway payload must be an object with a 'status' string")
    if not isinstance(payload.get("result"), list):
        raise ValueError("Hostaway payload must contain a 'result' list")

    records = []
    for item in payload["result"]:
        try:
            records.append(_normalize_hostaway_item(item))
        except ValueError as e:
            logger.warning(f"Skipping Hostaway review: {e}")

    logger.info(f"Normalized {len(records)}/{len(payload['result'])} Hostaway reviews")
    return records


def normalize_google(
    payload: dict,
    property_ref: PropertyRef,
    limit: int = settings.GOOGLE_REVIEWS_LIMIT
) -> List[ReviewRecord]:
    """
    Normalize a Google Place Details response into read-only records.

    A non-OK status (ZERO_RESULTS, OVER_QUERY_LIMIT, ...) yields no reviews.
    """
    if not isinstance(payload, dict) or payload.get("status") != "OK":
        status = payload.get("status") if isinstance(payload, dict) else None
        logger.warning(f"Google Places returned status {status!r}, no reviews")
        return []

    result = payload.get("result") or {}
    place_id = result.get("place_id", property_ref.slug)
    raw_reviews = result.get("reviews")
    if not isinstance(raw_reviews, list):
        return []

    records = []
    for review in raw_reviews[:limit]:
        try:
            timestamp = review["time"]
            records.append(ReviewRecord(
                review_id=f"google:{place_id}:{timestamp}",
                text=str(review.get("text") or ""),
                submitted_at=parse_timestamp(int(timestamp)),
                property=property_ref,
                overall_rating=_optional_number(review.get("rating")),
                channel="google",
                source="google",
                review_type="guest-to-host",
                guest_name=review.get("author_name"),
            ))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping Google review for {property_ref.slug}: {e}")

    logger.info(f"Normalized {len(records)} Google reviews for {property_ref.slug}")
    return records


class IngestionAgent:
    """
    Fetches reviews from Hostaway exports.

    Hostaway reviews arrive as JSON exports of the reviews endpoint; this
    agent reads them from disk. In mock mode it generates a realistic,
    deterministic payload instead.
    """

    def __init__(self, use_mock_data: bool = False):
        """
        Initialize ingestion agent.

        Args:
            use_mock_data: If True, generate mock reviews instead of reading exports
        """
        self.use_mock_data = use_mock_data

        if use_mock_data:
            logger.info("Initialized IngestionAgent in MOCK mode")
        else:
            logger.info("Initialized IngestionAgent in FILE mode")

    def fetch_reviews(
        self,
        path: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> List[ReviewRecord]:
        """
        Load and normalize Hostaway reviews.

        Args:
            path: Hostaway JSON export (ignored in mock mode)
            now: Reference time for mock data

        Returns:
            List of ReviewRecord objects

        Raises:
            ValueError: If no path is given outside mock mode, or the file is malformed
        """
        if self.use_mock_data:
            payload = self.generate_mock_payload(now=now)
        else:
            if not path:
                raise ValueError("A Hostaway export path is required outside mock mode")
            with open(path, "r") as f:
                try:
                    payload = json.load(f)
                except json.JSONDecodeError as e:
                    raise ValueError(f"Invalid JSON in {path}: {e}") from e
            logger.info(f"Loaded Hostaway export from {path}")

        return normalize_hostaway(payload)

    def load_google_reviews(self, path: str, property_ref: PropertyRef) -> List[ReviewRecord]:
        """Load a saved Google Place Details response for one property."""
        with open(path, "r") as f:
            payload = json.load(f)
        return normalize_google(payload, property_ref)

    def generate_mock_payload(
        self,
        now: Optional[datetime] = None,
        per_property: int = settings.MOCK_REVIEWS_PER_PROPERTY
    ) -> dict:
        """
        Generate a synthetic Hostaway response.

        Creates realistic patterns:
        - Several listings with different volumes
        - Mix of praise and recurring complaints
        - Some reviews without an overall rating (category ratings only)
        """
        now = utc_now(now)

        listings = [
            "2B N1 A - 29 Shoreditch Heights",
            "1B Camden Lock Studio",
            "3B Notting Hill Garden Flat",
        ]

        templates = [
            ("Spotless flat, great host and perfect location.", 10,
             {"cleanliness": 10, "communication": 10, "respect_house_rules": 10}),
            ("Lovely stay, the check-in was smooth.", 9,
             {"cleanliness": 9, "communication": 9, "respect_house_rules": 10}),
            ("The bathroom was dirty and there was a smell in the kitchen.", 4,
             {"cleanliness": 3, "communication": 7, "respect_house_rules": 9}),
            ("Wifi kept dropping and the tv was broken.", 5,
             {"cleanliness": 8, "communication": 6, "respect_house_rules": 9}),
            ("Street was very noisy at night, hard to sleep.", 6,
             {"cleanliness": 8, "communication": 8, "respect_house_rules": 10}),
            ("Host was rude when we asked about parking.", None,
             {"cleanliness": 7, "communication": 3, "respect_house_rules": 8}),
            ("Cosy apartment, would book again.", 10,
             {"cleanliness": 10, "communication": 9, "respect_house_rules": 10}),
            ("Shower had no hot water for two days, leak under the sink.", 3,
             {"cleanliness": 6, "communication": 5, "respect_house_rules": 9}),
        ]

        result = []
        review_id = 7000
        for listing_idx, listing in enumerate(listings):
            # Busier listings first
            count = max(1, per_property - listing_idx * (per_property // 3))
            for i in range(count):
                text, rating, categories = templates[(i + listing_idx) % len(templates)]
                submitted = now - timedelta(days=(i * 3 + listing_idx) % 120, hours=i % 24)
                review_id += 1
                result.append({
                    "id": review_id,
                    "type": "guest-to-host",
                    "status": "published",
                    "rating": rating,
                    "publicReview": text,
                    "reviewCategory": [
                        {"category": name, "rating": value}
                        for name, value in categories.items()
                    ],
                    "submittedAt": submitted.strftime("%Y-%m-%d %H:%M:%S"),
                    "guestName": f"Guest {review_id}",
                    "listingName": listing,
                })

        logger.info(f"Generated {len(result)} mock Hostaway reviews")
        return {"status": "success", "result": result}

"""
Configuration settings for Guestbook Analytics.

Centralized thresholds, windows and paths for the analytics engine,
the review store and the CLI.
"""

import os
from pathlib import Path

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent
DATA_ROOT = PROJECT_ROOT / "data"
OUTPUT_ROOT = PROJECT_ROOT / "output"
REVIEW_STORE_PATH = os.getenv("REVIEW_STORE_PATH", str(DATA_ROOT / "reviews.json"))

# Rating scale (Hostaway ratings are 0-10)
POSITIVE_THRESHOLD = 8  # Effective rating >= 8 counts as positive

# Week-over-week deltas
WOW_FLAT_THRESHOLD_PCT = 1.0  # |percent change| below this is "flat"

# Recurring issue detection
ISSUE_HIGH_FREQUENCY_RATIO = 0.15
ISSUE_HIGH_MAX_RATING = 3.0
ISSUE_MEDIUM_FREQUENCY_RATIO = 0.08
ISSUE_MEDIUM_MAX_RATING = 3.5
ISSUE_MIN_FREQUENCY = 2  # Single mentions are noise
ISSUE_MAX_EXAMPLES = 3
ISSUE_EXCERPT_LENGTH = 100

# Issue spike detection
SPIKE_LOW_RATING_THRESHOLD = 7  # Category rating below this is "low"
SPIKE_MIN_LIFT = 1.5
SPIKE_MEDIUM_LIFT = 2.0
SPIKE_HIGH_LIFT = 3.0
SPIKE_NEW_ISSUE_MIN_COUNT = 3  # Needed when there is no historical baseline
SPIKE_MAX_RESULTS = 8

# Property comparison
TREND_DELTA_THRESHOLD = 0.3
TREND_MIN_REVIEWS = 4
TOP_ISSUES_LIMIT = 5
TOP_CATEGORIES_LIMIT = 8
RECENT_SUMMARY_DAYS = 30

# Windows
DEFAULT_WINDOW_DAYS = 30
LONG_WINDOW_DAYS = 90
WOW_WINDOW_DAYS = 7
DASHBOARD_FETCH_LIMIT = 2000
ISSUE_REPORT_LIMIT = 500
DEFAULT_TREND_MODE = "smoothed"  # "raw", "smoothed", "weekly" or "cumulative"
MAX_SMOOTHING_WINDOW = 7
MIN_SMOOTHING_WINDOW = 3
WEEKLY_BUCKET_SIZE = 7

# Approval workflow
APPROVED_BY = "manager"

# Ingestion
USE_MOCK_DATA = os.getenv("USE_MOCK_DATA", "false").lower() in ("1", "true", "yes")
MOCK_REVIEWS_PER_PROPERTY = 24
GOOGLE_REVIEWS_LIMIT = 5

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")  # DEBUG, INFO, WARNING, ERROR
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE = "guestbook.log"

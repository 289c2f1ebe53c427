"""
Analytics Orchestrator.

Wires the review store to the analytics functions and builds the
dashboard, property comparison, issue and trend reports.
"""

import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import List, Optional

from src.agents.aggregation import ComparisonExporter, TrendAggregator
from src.analytics.comparison import (
    compare_properties,
    comparison_meta,
    fleet_metrics,
    group_by_property,
)
from src.analytics.issues import detect_recurring_issues
from src.analytics.kpis import kpis_for, kpis_with_deltas
from src.analytics.rating import effective_rating
from src.analytics.response_time import calculate_response_time_metrics
from src.analytics.sorting import sort_reviews
from src.analytics.spikes import detect_issue_spikes
from src.analytics.timeseries import counts_by_day, transform_series
from src.models.review import ReviewRecord
from src.registry.review_store import ReviewFilter, ReviewStore
from src.utils.dates import format_timestamp, utc_date, utc_now
from src.utils.storage import StorageManager
import config.settings as settings

logger = logging.getLogger(__name__)

REPORTS = ("dashboard", "comparison", "issues", "trend", "reviews")


def _within(records: List[ReviewRecord], start: datetime, end: Optional[datetime] = None) -> List[ReviewRecord]:
    """Records submitted in [start, end)."""
    return [
        r for r in records
        if r.submitted_at >= start and (end is None or r.submitted_at < end)
    ]


class AnalyticsOrchestrator:
    """
    Builds reports from the review store.

    The store is injected; the analytics functions only ever see plain
    record lists.
    """

    def __init__(self, store: ReviewStore, storage: Optional[StorageManager] = None):
        """
        Initialize orchestrator.

        Args:
            store: Review store answering record queries
            storage: Report storage (needed only by run())
        """
        self.store = store
        self.storage = storage
        self.trend_aggregator = TrendAggregator()
        self.comparison_exporter = ComparisonExporter()

    def dashboard(
        self,
        property_slug: Optional[str] = None,
        trend_mode: str = settings.DEFAULT_TREND_MODE,
        now: Optional[datetime] = None
    ) -> dict:
        """
        KPIs, trends, top categories and issue spikes for one property (or all).

        Only the property filter applies; the numbers describe the
        property as a whole.
        """
        now = utc_now(now)
        long_start = now - timedelta(days=settings.LONG_WINDOW_DAYS)
        short_start = now - timedelta(days=settings.DEFAULT_WINDOW_DAYS)
        week_start = now - timedelta(days=settings.WOW_WINDOW_DAYS)
        prev_week_start = week_start - timedelta(days=settings.WOW_WINDOW_DAYS)
        baseline_start = week_start - timedelta(days=settings.LONG_WINDOW_DAYS)

        # Spike baseline reaches further back than the 90-day window
        history = self.store.query(
            ReviewFilter(property_slug=property_slug, status="all", date_from=baseline_start),
            limit=settings.DASHBOARD_FETCH_LIMIT
        )
        last90 = _within(history, long_start)
        last30 = _within(last90, short_start)
        this_week = _within(history, week_start)
        prev_week = _within(history, prev_week_start, week_start)
        baseline = _within(history, baseline_start, week_start)

        daily30 = counts_by_day(last30, settings.DEFAULT_WINDOW_DAYS, now)
        daily90 = counts_by_day(last90, settings.LONG_WINDOW_DAYS, now)

        category_counts = Counter(
            c.category for r in last90 for c in r.categories
        )
        top_categories = [
            {"category": name, "count": count}
            for name, count in sorted(category_counts.items(), key=lambda kv: -kv[1])
        ][:settings.TOP_CATEGORIES_LIMIT]

        spikes = detect_issue_spikes(this_week, baseline, settings.LONG_WINDOW_DAYS)

        logger.info(
            f"Dashboard for {property_slug or 'all properties'}: "
            f"{len(last90)} reviews in 90 days, {len(spikes)} spikes"
        )

        return {
            "property": property_slug,
            "trend_mode": trend_mode,
            "k30": kpis_for(last30).to_dict(),
            "k90": kpis_for(last90).to_dict(),
            "week_over_week": kpis_with_deltas(this_week, prev_week).to_dict(),
            "trend30": transform_series(daily30, trend_mode),
            "trend90": transform_series(daily90, trend_mode),
            "top_categories": top_categories,
            "issue_spikes": [s.to_dict() for s in spikes],
            "generated_at": format_timestamp(now),
        }

    def _comparison(self, now: datetime):
        records = self.store.all_reviews()
        summaries = compare_properties(group_by_property(records), now)
        return summaries, comparison_meta(summaries, now)

    def property_comparison(self, now: Optional[datetime] = None) -> dict:
        """Property comparison payload: {"status", "data", "meta"}."""
        now = utc_now(now)
        summaries, meta = self._comparison(now)
        return {
            "status": "success",
            "data": [s.to_dict() for s in summaries],
            "meta": meta,
        }

    def issue_report(
        self,
        limit: int = settings.ISSUE_REPORT_LIMIT,
        now: Optional[datetime] = None
    ) -> dict:
        """Recurring issues, approval response times and fleet metrics."""
        now = utc_now(now)
        recent = self.store.query(ReviewFilter(status="all"), limit=limit)
        issues = detect_recurring_issues(recent)
        summaries, _ = self._comparison(now)

        return {
            "reviews_analyzed": len(recent),
            "issues": [i.to_dict() for i in issues],
            "response_times": calculate_response_time_metrics(recent).to_dict(),
            "fleet": fleet_metrics(summaries, issues),
            "generated_at": format_timestamp(now),
        }

    def review_listing(
        self,
        property_slug: Optional[str] = None,
        sort: str = "date_desc",
        status: str = "all",
        limit: Optional[int] = settings.DASHBOARD_FETCH_LIMIT,
        now: Optional[datetime] = None
    ) -> dict:
        """
        Reviews for one property (or all) in dashboard order.

        Each review carries its effective rating; "attention" puts removed
        reviews and the worst ratings first.
        """
        now = utc_now(now)
        records = self.store.query(
            ReviewFilter(property_slug=property_slug, status=status),
            limit=limit
        )
        ordered = sort_reviews(records, sort)

        reviews = []
        for record in ordered:
            data = record.to_dict()
            data["effective_rating"] = effective_rating(record)
            reviews.append(data)

        return {
            "property": property_slug,
            "sort": sort,
            "count": len(ordered),
            "approved_count": sum(1 for r in ordered if r.is_approved),
            "reviews": reviews,
            "generated_at": format_timestamp(now),
        }

    def run(
        self,
        report: str,
        output_dir: str = str(settings.OUTPUT_ROOT),
        property_slug: Optional[str] = None,
        trend_mode: str = settings.DEFAULT_TREND_MODE,
        window_days: int = settings.DEFAULT_WINDOW_DAYS,
        sort: str = "date_desc",
        now: Optional[datetime] = None
    ) -> str:
        """
        Build one report and write it to disk.

        Args:
            report: "dashboard", "comparison", "issues", "trend" or "reviews"
            output_dir: Directory for CSV exports
            property_slug: Property filter for the dashboard and review listing
            trend_mode: Series transform for the dashboard
            window_days: Window for the trend table
            sort: Review order for the review listing
            now: Reference time

        Returns:
            Path of the main written file

        Raises:
            ValueError: If report is unknown or no report storage is configured
        """
        if report not in REPORTS:
            raise ValueError(f"Unknown report: {report}. Must be one of {', '.join(REPORTS)}")

        now = utc_now(now)
        target_date = utc_date(now).strftime("%Y-%m-%d")
        logger.info(f"Building {report} report for {target_date}")

        if report == "trend":
            return self.trend_aggregator.generate_trend_table(
                group_by_property(self.store.all_reviews()),
                window_days=window_days,
                output_dir=output_dir,
                now=now
            )

        if report == "comparison":
            summaries, meta = self._comparison(now)
            return self.comparison_exporter.export(summaries, meta, output_dir, now)

        if self.storage is None:
            raise ValueError("Report storage is not configured")

        if report == "dashboard":
            data = self.dashboard(property_slug, trend_mode, now)
            name = f"dashboard_{property_slug or 'all'}_{target_date}"
        elif report == "reviews":
            data = self.review_listing(property_slug, sort, now=now)
            name = f"reviews_{property_slug or 'all'}_{target_date}"
        else:
            data = self.issue_report(now=now)
            name = f"issues_{target_date}"

        return self.storage.save_report(name, data)

"""
Trend Table Aggregator and Comparison Exporter.

Writes the per-property daily review trend table and the property
comparison table as CSV, each with a JSON metadata sidecar.
"""

import json
import logging
import os
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

import pandas as pd

from src.analytics.timeseries import counts_by_day
from src.models.property import PropertySummary
from src.models.review import PropertyRef, ReviewRecord
from src.utils.dates import date_range, format_timestamp, utc_date, utc_now

logger = logging.getLogger(__name__)


class TrendAggregator:
    """
    Aggregates daily review counts per property into a trend table.
    """

    def generate_trend_table(
        self,
        properties_with_records: Sequence[Tuple[PropertyRef, Sequence[ReviewRecord]]],
        window_days: int = 30,
        output_dir: str = "output",
        now: Optional[datetime] = None
    ) -> str:
        """
        Generate a window_days trend table ending on the UTC date of now.

        Args:
            properties_with_records: (property, records) pairs
            window_days: Number of days to include (default: 30)
            output_dir: Directory to save CSV output
            now: Reference time (default: current UTC time)

        Returns:
            Path to generated CSV file
        """
        now = utc_now(now)
        target_date = utc_date(now).strftime("%Y-%m-%d")
        days = date_range(utc_date(now), window_days)

        logger.info(f"Generating {window_days}-day trend table for {target_date}")

        rows = []
        empty_properties = []
        for property_ref, records in properties_with_records:
            counts = counts_by_day(records, window_days, now)
            if not any(counts):
                empty_properties.append(property_ref.slug)

            row = {
                'Property': property_ref.name,
                'Slug': property_ref.slug,
            }
            row.update(dict(zip(days, counts)))
            rows.append(row)

        df = pd.DataFrame(rows)

        if df.empty:
            logger.warning("No properties found, creating empty trend table")
            df = pd.DataFrame(columns=['Property', 'Slug'] + days + ['Total'])
        else:
            df['Total'] = df[days].sum(axis=1)
            df = df.sort_values('Total', ascending=False, kind='stable')

        os.makedirs(output_dir, exist_ok=True)
        output_path = os.path.join(output_dir, f"trend_{target_date}.csv")
        df.to_csv(output_path, index=False)

        logger.info(
            f"Trend table saved to {output_path} "
            f"({len(df)} properties, {len(days)} days, "
            f"{len(empty_properties)} without reviews)"
        )

        metadata_path = os.path.join(output_dir, f"trend_{target_date}_metadata.json")
        metadata = {
            "target_date": target_date,
            "window_days": window_days,
            "date_range": {
                "start": days[0] if days else None,
                "end": days[-1] if days else None
            },
            "properties_without_reviews": empty_properties,
            "total_properties": len(df),
            "total_reviews": int(df['Total'].sum()) if not df.empty else 0,
            "generated_at": format_timestamp(now)
        }

        with open(metadata_path, 'w') as f:
            json.dump(metadata, f, indent=2)

        logger.info(f"Metadata saved to {metadata_path}")

        return output_path


class ComparisonExporter:
    """
    Flattens the property comparison into a CSV table plus a JSON payload.
    """

    @staticmethod
    def to_frame(summaries: Sequence[PropertySummary]) -> pd.DataFrame:
        """One row per property; top issues collapsed into a single column."""
        rows: List[Dict] = []
        for summary in summaries:
            rows.append({
                'Property': summary.property.name,
                'Slug': summary.property.slug,
                'Total Reviews': summary.total_reviews,
                'Avg Rating': summary.avg_rating,
                'Approved': summary.approved_count,
                'Approval Rate %': summary.approval_rate,
                'Avg Response Days': summary.avg_response_time,
                'Trend': summary.recent_trend,
                'Last 30d Reviews': summary.last_30_days.reviews,
                'Last 30d Avg Rating': summary.last_30_days.avg_rating,
                'Top Issues': "; ".join(
                    f"{t.category} ({t.avg_rating:.1f})" for t in summary.top_issues
                ),
            })
        return pd.DataFrame(rows)

    def export(
        self,
        summaries: Sequence[PropertySummary],
        meta: Dict,
        output_dir: str = "output",
        now: Optional[datetime] = None
    ) -> str:
        """
        Write property_comparison_<date>.csv and .json.

        Returns:
            Path to generated CSV file
        """
        target_date = utc_date(utc_now(now)).strftime("%Y-%m-%d")
        os.makedirs(output_dir, exist_ok=True)

        csv_path = os.path.join(output_dir, f"property_comparison_{target_date}.csv")
        self.to_frame(summaries).to_csv(csv_path, index=False)

        json_path = os.path.join(output_dir, f"property_comparison_{target_date}.json")
        with open(json_path, 'w') as f:
            json.dump(
                {"status": "success", "data": [s.to_dict() for s in summaries], "meta": meta},
                f,
                indent=2
            )

        logger.info(f"Property comparison saved to {csv_path} ({len(summaries)} properties)")
        return csv_path

"""
Guestbook Analytics - Property Review Analytics

CLI entry point for ingesting reviews, recording approvals and building
analytics reports.
"""

import argparse
import logging
import sys
from datetime import datetime, time, timezone

from src.agents.ingestion import IngestionAgent
from src.analytics.sorting import SORT_MODES
from src.models.review import PropertyRef
from src.orchestrator import AnalyticsOrchestrator, REPORTS
from src.registry.review_store import ApprovalError, ReviewStore
from src.analytics.timeseries import TREND_MODES
from src.utils.storage import StorageManager
import config.settings as settings


def setup_logging(log_level: str = "INFO"):
    """Configure logging for the entire application."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format=settings.LOG_FORMAT,
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(settings.LOG_FILE)
        ]
    )


def parse_as_of(value: str) -> datetime:
    """YYYY-MM-DD -> end of that UTC day."""
    day = datetime.strptime(value, "%Y-%m-%d").date()
    return datetime.combine(day, time(23, 59, 59), tzinfo=timezone.utc)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Guestbook Analytics - Property Review Analytics",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Load a Hostaway export into the store
  python main.py ingest --hostaway mock_data/hostaway_reviews.json

  # Approve a review for the public website
  python main.py approve 7453

  # Property comparison as of a given day
  python main.py report comparison --as-of 2024-06-30

  # Weekly-bucketed dashboard for one property
  python main.py report dashboard --property shoreditch-heights --trend-mode weekly

  # Google reviews for one property
  python main.py ingest --google place_details.json --property "Camden Studio"

  # Reviews needing attention first
  python main.py report reviews --sort attention
        """
    )

    parser.add_argument(
        "--store",
        default=settings.REVIEW_STORE_PATH,
        help=f"Review store JSON (default: {settings.REVIEW_STORE_PATH})"
    )

    parser.add_argument(
        "--log-level",
        default=settings.LOG_LEVEL,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help=f"Logging level (default: {settings.LOG_LEVEL})"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    ingest = subparsers.add_parser("ingest", help="Normalize reviews into the store")
    source = ingest.add_mutually_exclusive_group(required=True)
    source.add_argument("--hostaway", help="Hostaway reviews JSON export")
    source.add_argument("--mock", action="store_true", help="Generate mock Hostaway reviews")
    source.add_argument("--google", help="Saved Google Place Details JSON response")
    ingest.add_argument("--property", help="Property name the Google reviews belong to")

    for name, help_text in (("approve", "Approve a review"), ("unapprove", "Unapprove a review")):
        command = subparsers.add_parser(name, help=help_text)
        command.add_argument("review_id", help="Review ID")

    report = subparsers.add_parser("report", help="Build an analytics report")
    report.add_argument("report", choices=REPORTS)
    report.add_argument("--property", help="Property slug (dashboard and reviews)")
    report.add_argument(
        "--sort",
        default="date_desc",
        choices=SORT_MODES,
        help="Review order for the reviews report (default: date_desc)"
    )
    report.add_argument(
        "--trend-mode",
        default=settings.DEFAULT_TREND_MODE,
        choices=TREND_MODES,
        help=f"Trend transform (default: {settings.DEFAULT_TREND_MODE})"
    )
    report.add_argument(
        "--window-days",
        type=int,
        default=settings.DEFAULT_WINDOW_DAYS,
        help=f"Trend table window (default: {settings.DEFAULT_WINDOW_DAYS})"
    )
    report.add_argument("--as-of", help="Reference date (YYYY-MM-DD), defaults to now")
    report.add_argument(
        "--output-dir",
        default=str(settings.OUTPUT_ROOT),
        help=f"Output directory (default: {settings.OUTPUT_ROOT})"
    )

    return parser


def run_command(args, logger) -> str:
    """Execute the parsed command and return a one-line result."""
    store = ReviewStore(args.store)

    if args.command == "ingest":
        agent = IngestionAgent(use_mock_data=args.mock or settings.USE_MOCK_DATA)
        if args.google:
            if not args.property:
                raise ValueError("--property is required with --google")
            records = agent.load_google_reviews(args.google, PropertyRef(name=args.property))
        else:
            records = agent.fetch_reviews(path=args.hostaway)
        written = store.upsert_many(records)
        store.save()
        return f"Ingested {written} reviews into {args.store}"

    if args.command in ("approve", "unapprove"):
        try:
            store.set_approval(args.review_id, approved=args.command == "approve")
        except KeyError as e:
            raise ApprovalError(f"Review not found: {args.review_id}") from e
        store.save()
        return f"Review {args.review_id} {args.command}d"

    now = parse_as_of(args.as_of) if args.as_of else None
    orchestrator = AnalyticsOrchestrator(store, StorageManager(args.output_dir))
    path = orchestrator.run(
        report=args.report,
        output_dir=args.output_dir,
        property_slug=args.property,
        trend_mode=args.trend_mode,
        window_days=args.window_days,
        sort=args.sort,
        now=now
    )
    logger.info(f"Report written to {path}")
    return f"Report: {path}"


def main(argv=None):
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    setup_logging(args.log_level)
    logger = logging.getLogger(__name__)

    try:
        message = run_command(args, logger)
        print(message)
        sys.exit(0)

    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        print("\nInterrupted")
        sys.exit(1)

    except ApprovalError as e:
        logger.error(f"Approval failed: {e}")
        print(f"Approval failed: {e}")
        sys.exit(1)

    except Exception as e:
        logger.error(f"Command failed: {e}", exc_info=True)
        print(f"\nCommand failed: {e}")
        print(f"Check {settings.LOG_FILE} for details")
        sys.exit(1)


if __name__ == "__main__":
    main()

"""
Tests for the Analytics Orchestrator and the CLI entry point.
"""

import json
import os
import tempfile
from unittest.mock import Mock, patch

import pytest

import main
from src.orchestrator import AnalyticsOrchestrator
from src.registry.review_store import ReviewFilter, ReviewStore
from src.utils.storage import StorageManager


@pytest.fixture
def store(make_review):
    """Store with two properties and a fresh wifi complaint cluster."""
    with tempfile.TemporaryDirectory() as tmpdir:
        review_store = ReviewStore(os.path.join(tmpdir, "reviews.json"))
        records = [
            make_review(rating=2, text="Wifi kept dropping", categories={"wifi": 3}, days_ago=d)
            for d in (1, 2, 3)
        ]
        records += [make_review(rating=9, text="Lovely stay", days_ago=d) for d in (8, 9)]
        records += [
            make_review(rating=8, text="Lovely stay", days_ago=40, approved_after_days=2),
            make_review(rating=7, text="Lovely stay", days_ago=200),
            make_review(rating=10, text="Lovely stay", property_name="Camden Studio", days_ago=5),
        ]
        review_store.upsert_many(records)
        yield review_store


def test_dashboard(store, now):
    dashboard = AnalyticsOrchestrator(store).dashboard(trend_mode="raw", now=now)

    assert dashboard["k30"]["count"] == 6
    assert dashboard["k90"]["count"] == 7
    assert dashboard["k90"]["percent_approved"] == 14
    assert len(dashboard["trend30"]) == 30
    assert len(dashboard["trend90"]) == 90
    assert sum(dashboard["trend30"]) == 6

    wow = dashboard["week_over_week"]
    assert wow["count"] == 4
    assert wow["count_delta"]["direction"] == "up"
    assert wow["avg_delta"]["direction"] == "down"

    assert dashboard["top_categories"] == [{"category": "wifi", "count": 3}]
    assert dashboard["issue_spikes"] == [{
        "category": "wifi",
        "recent_count": 3,
        "baseline_weekly_avg": 0.0,
        "lift": "unbounded",
        "severity": "medium",
    }]
    assert dashboard["generated_at"] == "2024-06-30T12:00:00Z"


def test_dashboard_single_property(store, now):
    dashboard = AnalyticsOrchestrator(store).dashboard("camden-studio", "weekly", now)

    assert dashboard["k90"]["count"] == 1
    assert dashboard["k90"]["avg_rating"] == 10
    assert len(dashboard["trend90"]) == 13
    assert dashboard["issue_spikes"] == []


def test_dashboard_empty_store(now):
    with tempfile.TemporaryDirectory() as tmpdir:
        empty = ReviewStore(os.path.join(tmpdir, "reviews.json"))
        dashboard = AnalyticsOrchestrator(empty).dashboard(now=now)

    assert dashboard["k30"] == {
        "count": 0, "avg_rating": None, "percent_positive": None, "percent_approved": 0
    }
    assert dashboard["week_over_week"]["count_delta"] is None
    assert dashboard["trend30"] == [0.0] * 30


def test_property_comparison(store, now):
    payload = AnalyticsOrchestrator(store).property_comparison(now)

    assert payload["status"] == "success"
    assert [p["slug"] for p in payload["data"]] == ["shoreditch-heights", "camden-studio"]
    assert payload["meta"]["total_reviews"] == 8


def test_issue_report(store, now):
    report = AnalyticsOrchestrator(store).issue_report(now=now)

    assert report["reviews_analyzed"] == 8
    wifi = [i for i in report["issues"] if i["keyword"] == "wifi"]
    assert wifi[0]["frequency"] == 3
    assert wifi[0]["severity"] == "high"
    assert report["response_times"]["avg_response_time"] == 2.0
    assert report["fleet"]["total_properties"] == 2
    assert report["fleet"]["active_issues"] == 1


def test_reports_are_idempotent(store, now):
    orchestrator = AnalyticsOrchestrator(store)
    assert orchestrator.dashboard(now=now) == orchestrator.dashboard(now=now)
    assert orchestrator.issue_report(now=now) == orchestrator.issue_report(now=now)


def test_run_writes_reports(store, now):
    with tempfile.TemporaryDirectory() as tmpdir:
        orchestrator = AnalyticsOrchestrator(store, StorageManager(tmpdir))

        trend = orchestrator.run("trend", output_dir=tmpdir, window_days=7, now=now)
        comparison = orchestrator.run("comparison", output_dir=tmpdir, now=now)
        dashboard = orchestrator.run("dashboard", output_dir=tmpdir, now=now)
        issues = orchestrator.run("issues", output_dir=tmpdir, now=now)

        assert trend.endswith("trend_2024-06-30.csv")
        assert comparison.endswith("property_comparison_2024-06-30.csv")
        assert dashboard.endswith(os.path.join("reports", "dashboard_all_2024-06-30.json"))
        assert issues.endswith(os.path.join("reports", "issues_2024-06-30.json"))
        for path in (trend, comparison, dashboard, issues):
            assert os.path.exists(path)

        assert orchestrator.storage.load_report("issues_2024-06-30")["reviews_analyzed"] == 8
        assert orchestrator.storage.list_reports() == ["dashboard_all_2024-06-30", "issues_2024-06-30"]


def test_run_rejects_unknown_report(store):
    with pytest.raises(ValueError, match="Unknown report"):
        AnalyticsOrchestrator(store).run("forecast")


def test_run_requires_storage_for_json_reports(store, now):
    with pytest.raises(ValueError, match="storage"):
        AnalyticsOrchestrator(store).run("dashboard", now=now)


def test_cli_ingest_approve_report():
    """End-to-end: mock ingest, approve, comparison report."""
    with tempfile.TemporaryDirectory() as tmpdir:
        store_path = os.path.join(tmpdir, "reviews.json")
        output_dir = os.path.join(tmpdir, "output")

        with pytest.raises(SystemExit) as exc:
            main.main(["--store", store_path, "ingest", "--mock"])
        assert exc.value.code == 0

        review_id = next(iter(ReviewStore(store_path).reviews))
        with pytest.raises(SystemExit) as exc:
            main.main(["--store", store_path, "approve", review_id])
        assert exc.value.code == 0
        assert ReviewStore(store_path).get(review_id).is_approved

        with pytest.raises(SystemExit) as exc:
            main.main([
                "--store", store_path, "report", "comparison",
                "--as-of", "2024-06-30", "--output-dir", output_dir
            ])
        assert exc.value.code == 0

        with open(os.path.join(output_dir, "property_comparison_2024-06-30.json")) as f:
            payload = json.load(f)
        assert payload["meta"]["total_properties"] == 3


def test_cli_unknown_review_fails():
    with tempfile.TemporaryDirectory() as tmpdir:
        store_path = os.path.join(tmpdir, "reviews.json")
        with pytest.raises(SystemExit) as exc:
            main.main(["--store", store_path, "approve", "nope"])
        assert exc.value.code == 1


def test_dashboard_queries_injected_store(make_review, now):
    """The orchestrator only talks to the store through query()."""
    mock_store = Mock(spec=ReviewStore)
    mock_store.query.return_value = [make_review(rating=9, days_ago=1)]

    dashboard = AnalyticsOrchestrator(mock_store).dashboard("shoreditch-heights", now=now)

    review_filter = mock_store.query.call_args[0][0]
    assert isinstance(review_filter, ReviewFilter)
    assert review_filter.property_slug == "shoreditch-heights"
    assert review_filter.status == "all"
    assert dashboard["k30"]["count"] == 1


def test_cli_report_failure_exits_nonzero():
    with tempfile.TemporaryDirectory() as tmpdir:
        with patch("main.AnalyticsOrchestrator") as mock_orchestrator:
            mock_orchestrator.return_value.run.side_effect = OSError("disk full")

            with pytest.raises(SystemExit) as exc:
                main.main([
                    "--store", os.path.join(tmpdir, "reviews.json"),
                    "report", "trend", "--output-dir", tmpdir
                ])

        assert exc.value.code == 1


def test_review_listing_attention_order(store, now):
    listing = AnalyticsOrchestrator(store).review_listing(sort="attention", now=now)

    assert listing["count"] == 8
    assert listing["approved_count"] == 1
    ratings = [r["effective_rating"] for r in listing["reviews"]]
    assert ratings == [2, 2, 2, 7, 8, 9, 9, 10]


def test_review_listing_for_property(store, now):
    listing = AnalyticsOrchestrator(store).review_listing("camden-studio", "rating_asc", now=now)

    assert listing["count"] == 1
    assert listing["reviews"][0]["property"]["slug"] == "camden-studio"


def test_run_writes_review_listing(store, now):
    with tempfile.TemporaryDirectory() as tmpdir:
        orchestrator = AnalyticsOrchestrator(store, StorageManager(tmpdir))

        path = orchestrator.run("reviews", output_dir=tmpdir, sort="rating_desc", now=now)

        assert path.endswith(os.path.join("reports", "reviews_all_2024-06-30.json"))
        saved = orchestrator.storage.load_report("reviews_all_2024-06-30")
        assert saved["sort"] == "rating_desc"
        assert saved["reviews"][0]["effective_rating"] == 10


def test_cli_ingest_google_reviews():
    with tempfile.TemporaryDirectory() as tmpdir:
        store_path = os.path.join(tmpdir, "reviews.json")
        place_path = os.path.join(tmpdir, "place.json")
        with open(place_path, "w") as f:
            json.dump({"status": "OK", "result": {"place_id": "ChIJ123", "reviews": [
                {"author_name": "Ana", "rating": 5, "text": "Lovely", "time": 1717236000},
                {"author_name": "Ben", "rating": 4, "text": "Nice", "time": 1717322400},
            ]}}, f)

        with pytest.raises(SystemExit) as exc:
            main.main([
                "--store", store_path, "ingest",
                "--google", place_path, "--property", "Camden Studio"
            ])
        assert exc.value.code == 0

        stored = ReviewStore(store_path).query(ReviewFilter(property_slug="camden-studio"))
        assert [r.review_id for r in stored] == ["google:ChIJ123:1717322400", "google:ChIJ123:1717236000"]
        assert all(r.source == "google" for r in stored)


def test_cli_google_requires_property():
    with tempfile.TemporaryDirectory() as tmpdir:
        with pytest.raises(SystemExit) as exc:
            main.main([
                "--store", os.path.join(tmpdir, "reviews.json"),
                "ingest", "--google", os.path.join(tmpdir, "place.json")
            ])
        assert exc.value.code == 1


def test_cli_unknown_review_reports_approval_failure(capsys):
    with tempfile.TemporaryDirectory() as tmpdir:
        with pytest.raises(SystemExit):
            main.main(["--store", os.path.join(tmpdir, "reviews.json"), "unapprove", "nope"])

    assert "Approval failed" in capsys.readouterr().out


def test_cli_report_key_error_is_not_an_approval_failure(capsys):
    with tempfile.TemporaryDirectory() as tmpdir:
        with patch("main.AnalyticsOrchestrator") as mock_orchestrator:
            mock_orchestrator.return_value.run.side_effect = KeyError("avg_rating")

            with pytest.raises(SystemExit) as exc:
                main.main([
                    "--store", os.path.join(tmpdir, "reviews.json"),
                    "report", "dashboard", "--output-dir", tmpdir
                ])

    assert exc.value.code == 1
    output = capsys.readouterr().out
    assert "Command failed" in output
    assert "Approval failed" not in output

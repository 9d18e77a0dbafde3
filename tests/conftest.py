"""Shared test fixtures for crimewatch."""

from __future__ import annotations

import json
from datetime import date, timedelta
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient

from crimewatch.core import (
    CategoryClassifier,
    ReportFilter,
    SummaryStatistics,
    TimeBucketAggregator,
)
from crimewatch.models import IncidentReport, ReportSeverity, ReportStatus
from crimewatch.store import ReportStore

# ---------------------------------------------------------------------------
# Date helpers
# ---------------------------------------------------------------------------

TODAY = date.today()
FIXED_TODAY = date(2024, 1, 15)


def days_ago(n: int, today: date = TODAY) -> str:
    """Return the ISO date N days before ``today``."""
    return (today - timedelta(days=n)).isoformat()


# ---------------------------------------------------------------------------
# Canonical report factory
# ---------------------------------------------------------------------------


def make_report(
    id: int = 1,
    date: str = "2024-01-01",
    time: str = "12:00:00",
    incident_type: str = "Theft",
    severity: ReportSeverity | None = ReportSeverity.medium,
    status: ReportStatus = ReportStatus.new,
    details: str = "Personal belongings stolen from apartment.",
    latitude: float | None = 21.17,
    longitude: float | None = 72.83,
    report_type: str = "Citizen Report",
) -> IncidentReport:
    """Factory for creating IncidentReport objects with sensible defaults."""
    location = None
    if latitude is not None or longitude is not None:
        location = {"latitude": latitude, "longitude": longitude}
    return IncidentReport(
        id=id,
        date=date,
        time=time,
        incident_type=incident_type,
        severity=severity,
        status=status,
        details=details,
        location=location,
        report_type=report_type,
        perpetrator="Unknown",
        user_id=1,
    )


# ---------------------------------------------------------------------------
# Fixtures: collections
# ---------------------------------------------------------------------------


@pytest.fixture()
def scenario_reports() -> list[IncidentReport]:
    """Three reports over two days: two thefts (New) and one assault (Resolved)."""
    return [
        make_report(id=1, date="2024-01-01", incident_type="Theft", status=ReportStatus.new),
        make_report(
            id=2,
            date="2024-01-01",
            incident_type="Assault",
            status=ReportStatus.resolved,
            severity=ReportSeverity.high,
            details="Verbal altercation escalated to physical assault.",
        ),
        make_report(id=3, date="2024-01-08", incident_type="Theft", status=ReportStatus.new),
    ]


@pytest.fixture()
def recent_reports() -> list[IncidentReport]:
    """Reports dated relative to the real current date."""
    return [
        make_report(id=1, date=days_ago(0), incident_type="Theft", time="01:15:00"),
        make_report(id=2, date=days_ago(0), incident_type="Robbery", time="23:40:00"),
        make_report(
            id=3,
            date=days_ago(3),
            incident_type="Theft",
            status=ReportStatus.under_investigation,
            severity=ReportSeverity.critical,
        ),
        make_report(id=4, date=days_ago(10), incident_type="Fraud", status=ReportStatus.resolved),
        make_report(
            id=5,
            date=days_ago(20),
            incident_type="Drug Offense",
            status=ReportStatus.false_report,
            severity=ReportSeverity.low,
            latitude=None,
            longitude=None,
        ),
        make_report(id=6, date=days_ago(45), incident_type="Theft"),
    ]


@pytest.fixture()
def populated_store(scenario_reports: list[IncidentReport]) -> ReportStore:
    """A ReportStore pre-loaded with the scenario reports."""
    store = ReportStore()
    store.bulk_load(scenario_reports)
    return store


# ---------------------------------------------------------------------------
# Fixtures: core components
# ---------------------------------------------------------------------------


@pytest.fixture()
def classifier() -> CategoryClassifier:
    return CategoryClassifier()


@pytest.fixture()
def report_filter() -> ReportFilter:
    return ReportFilter()


@pytest.fixture()
def aggregator() -> TimeBucketAggregator:
    return TimeBucketAggregator()


@pytest.fixture()
def statistics() -> SummaryStatistics:
    """SummaryStatistics pinned to a fixed current date."""
    return SummaryStatistics(today=FIXED_TODAY)


@pytest.fixture()
def store() -> ReportStore:
    return ReportStore()


# ---------------------------------------------------------------------------
# Fixtures: FastAPI test client
# ---------------------------------------------------------------------------


@pytest.fixture()
def api_client(recent_reports: list[IncidentReport]) -> TestClient:
    """A TestClient backed by a freshly-seeded dashboard app."""
    from crimewatch.dashboard import create_app

    return TestClient(create_app(initial_reports=recent_reports))


@pytest.fixture()
def empty_api_client() -> TestClient:
    """A TestClient backed by an empty dashboard app."""
    from crimewatch.dashboard import create_app

    return TestClient(create_app())


# ---------------------------------------------------------------------------
# Fixtures: JSON / file helpers
# ---------------------------------------------------------------------------


def report_to_dict(report: IncidentReport) -> dict[str, Any]:
    """Serialize an IncidentReport to a JSON-compatible dict."""
    return json.loads(report.model_dump_json())


@pytest.fixture()
def reports_json_file(
    tmp_path: Path, recent_reports: list[IncidentReport]
) -> Path:
    """A temporary JSON file containing the recent reports."""
    file = tmp_path / "reports.json"
    file.write_text(
        json.dumps([report_to_dict(r) for r in recent_reports]), encoding="utf-8"
    )
    return file


@pytest.fixture()
def invalid_json_file(tmp_path: Path) -> Path:
    """A temporary JSON file containing an object (not an array)."""
    file = tmp_path / "invalid.json"
    file.write_text(json.dumps({"not": "an array"}), encoding="utf-8")
    return file

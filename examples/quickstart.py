"""Quickstart examples for crimewatch.

Demonstrates the core API: mock report generation, filtering, date and
hour bucketing, the incident-type breakdown, KPI values, and table
pagination.

Run this file directly to verify your installation:

    python examples/quickstart.py

No external network access or running server is required.
"""

from __future__ import annotations

import asyncio
from datetime import date, timedelta

from crimewatch.core import (
    ReportFilter,
    SummaryStatistics,
    TimeBucketAggregator,
    classify,
)
from crimewatch.models import FilterCriteria, Granularity, ReportStatus
from crimewatch.sources import MockReportSource
from crimewatch.store import ReportStore, paginate


def demo_classification() -> None:
    """Map free-text incident types onto the five categories."""
    print("\n=== Category classifier ===")
    for label in ("Armed Robbery", "Bicycle Theft", "Drug Offense", "Noise Complaint", "Jaywalking"):
        print(f"  {label:18s} -> {classify(label).value}")


def demo_aggregations(store: ReportStore) -> None:
    """Bucket the last two weeks of open reports by week and hour."""
    print("\n=== Aggregations (open reports, last 14 days) ===")
    criteria = FilterCriteria(
        status=ReportStatus.new,
        date_from=date.today() - timedelta(days=14),
    )
    reports = ReportFilter().apply(store.all(), criteria)
    aggregator = TimeBucketAggregator()

    for bucket in aggregator.by_date(reports, Granularity.week):
        print(f"  week of {bucket.date}: {bucket.count}")

    busiest = max(aggregator.by_hour(reports), key=lambda h: h.count)
    print(f"  busiest hour: {busiest.hour:02d}:00 ({busiest.count} reports)")

    counts = aggregator.collapse_top_n(aggregator.by_incident_type(store.all()))
    print("  incident types:")
    for entry in counts:
        print(f"    {entry.type:20s} {entry.count}")


def demo_statistics(store: ReportStore) -> None:
    """Print the dashboard KPI values."""
    print("\n=== KPI values ===")
    stats = SummaryStatistics().build_dashboard_stats(store.all())
    print(f"  today={stats.today_count} last7={stats.last_week_count} "
          f"last30={stats.last_month_count} change={stats.weekly_change}%")
    print(f"  most frequent type: {stats.most_frequent_type}")


def demo_table(store: ReportStore) -> None:
    """Search, paginate, and update a status in place."""
    print("\n=== Table ===")
    page = paginate(store.query(search="theft"), page_size=5, page=1)
    print(f"  page {page.page}/{page.total_pages} of {page.total} theft reports")
    for report in page.items:
        print(f"    #{report.id:<4d} {report.date} {report.incident_type:18s} {report.status.value}")

    if page.items:
        updated = store.update_status(page.items[0].id, ReportStatus.resolved)
        assert updated is not None
        print(f"  report #{updated.id} is now {updated.status.value}")


def main() -> None:
    reports = asyncio.run(MockReportSource(count=100, seed=2024).fetch_reports())
    store = ReportStore()
    store.bulk_load(reports)

    demo_classification()
    demo_aggregations(store)
    demo_statistics(store)
    demo_table(store)


if __name__ == "__main__":
    main()

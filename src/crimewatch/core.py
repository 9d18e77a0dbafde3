"""Core logic: classification, filtering, bucketing, and summary statistics."""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable, Sequence
from datetime import date, datetime, timedelta
from typing import Protocol

from crimewatch.models import (
    DashboardStats,
    DateCount,
    FilterCriteria,
    Granularity,
    HourCount,
    IncidentCategory,
    IncidentReport,
    MapPoint,
    ReportSeverity,
    ReportStatus,
    SeverityCount,
    StatusCount,
    TypeCount,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Keyword rule table used by CategoryClassifier, in priority order
# ---------------------------------------------------------------------------

_CATEGORY_KEYWORDS: dict[IncidentCategory, list[str]] = {
    IncidentCategory.violent: ["assault", "robbery", "homicide", "shooting"],
    IncidentCategory.property: [
        "theft", "burglary", "vandalism", "fraud", "property",
    ],
    IncidentCategory.drugs: ["drug", "narcotic"],
    IncidentCategory.public: [
        "disturbance", "public", "disorder", "noise", "traffic", "harassment",
    ],
}

OTHER_LABEL = "Other"
DEFAULT_TOP_N = 7


def parse_report_date(value: str) -> date | None:
    """Parse a ``YYYY-MM-DD`` value, returning None when it is malformed.

    A full ISO timestamp is accepted and truncated to its calendar date.
    """
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(value).date()
    except ValueError:
        return None


def parse_report_hour(value: str) -> int | None:
    """Return the hour component of ``HH:MM[:SS]`` or None if invalid."""
    if not value:
        return None
    head = value.split(":", 1)[0].strip()
    if not (head.isascii() and head.isdigit()):
        return None
    hour = int(head)
    if 0 <= hour <= 23:
        return hour
    return None


class CategoryClassifier:
    """Map a free-text incident type onto one of five fixed categories."""

    def classify(self, incident_type: str) -> IncidentCategory:
        """Return the first category whose keyword appears in the label."""
        text = incident_type.lower()
        for category, keywords in _CATEGORY_KEYWORDS.items():
            for keyword in keywords:
                if keyword in text:
                    return category
        return IncidentCategory.other


_classifier = CategoryClassifier()


def classify(incident_type: str) -> IncidentCategory:
    """Module-level shortcut for :meth:`CategoryClassifier.classify`."""
    return _classifier.classify(incident_type)


class ReportFilter:
    """Evaluate :class:`FilterCriteria` against incident reports."""

    def matches(self, report: IncidentReport, criteria: FilterCriteria) -> bool:
        """Return True when every set criterion holds for the report."""
        if criteria.incident_types and report.incident_type not in criteria.incident_types:
            return False
        if criteria.severity is not None and report.severity != criteria.severity:
            return False
        if criteria.status is not None and report.status != criteria.status:
            return False

        if criteria.has_date_range:
            # Comparing calendar dates makes date_to inclusive through end of day.
            report_date = parse_report_date(report.date)
            if report_date is None:
                return False
            if criteria.date_from is not None and report_date < criteria.date_from:
                return False
            if criteria.date_to is not None and report_date > criteria.date_to:
                return False

        return True

    def apply(
        self, reports: Iterable[IncidentReport], criteria: FilterCriteria
    ) -> list[IncidentReport]:
        """Return the reports matching the criteria, order preserved."""
        return [r for r in reports if self.matches(r, criteria)]


class ReportAggregator(Protocol):
    """Aggregation contract shared by every execution strategy."""

    def by_date(
        self, reports: Sequence[IncidentReport], granularity: Granularity
    ) -> list[DateCount]: ...

    def by_hour(self, reports: Sequence[IncidentReport]) -> list[HourCount]: ...

    def by_incident_type(
        self, reports: Sequence[IncidentReport]
    ) -> list[TypeCount]: ...

    def by_status(self, reports: Sequence[IncidentReport]) -> list[StatusCount]: ...

    def by_severity(
        self, reports: Sequence[IncidentReport]
    ) -> list[SeverityCount]: ...


def bucket_key(report_date: date, granularity: Granularity) -> str:
    """Return the bucket key a calendar date falls into."""
    if granularity is Granularity.week:
        monday = report_date - timedelta(days=report_date.weekday())
        return monday.isoformat()
    if granularity is Granularity.month:
        return f"{report_date.year:04d}-{report_date.month:02d}"
    return report_date.isoformat()


class TimeBucketAggregator:
    """In-process implementation of :class:`ReportAggregator`."""

    def __init__(self, classifier: CategoryClassifier | None = None) -> None:
        self._classifier = classifier or _classifier

    def by_date(
        self,
        reports: Iterable[IncidentReport],
        granularity: Granularity = Granularity.day,
    ) -> list[DateCount]:
        """Count reports per date bucket, sorted ascending by key.

        Buckets with no reports are not emitted. Reports whose date cannot
        be parsed are skipped.
        """
        granularity = Granularity(granularity)
        counts: Counter[str] = Counter()
        for report in reports:
            report_date = parse_report_date(report.date)
            if report_date is None:
                logger.debug(f"Skipping report {report.id}: unparseable date {report.date!r}")
                continue
            counts[bucket_key(report_date, granularity)] += 1
        return [DateCount(date=key, count=n) for key, n in sorted(counts.items())]

    def by_hour(self, reports: Iterable[IncidentReport]) -> list[HourCount]:
        """Count reports per hour of day; always returns 24 entries.

        A missing or malformed time is counted in hour 0.
        """
        counts = [0] * 24
        for report in reports:
            hour = parse_report_hour(report.time)
            if hour is None:
                logger.debug(f"Report {report.id} has invalid time {report.time!r}; using hour 0")
                hour = 0
            counts[hour] += 1
        return [HourCount(hour=h, count=n) for h, n in enumerate(counts)]

    def by_incident_type(self, reports: Iterable[IncidentReport]) -> list[TypeCount]:
        """Count reports per literal incident type, most frequent first."""
        counts: Counter[str] = Counter(r.incident_type for r in reports)
        return [TypeCount(type=t, count=n) for t, n in counts.most_common()]

    def collapse_top_n(
        self,
        counts: Sequence[TypeCount],
        top_n: int = DEFAULT_TOP_N,
        other_label: str = OTHER_LABEL,
    ) -> list[TypeCount]:
        """Keep the first ``top_n`` buckets and fold the rest into one."""
        top = list(counts[:top_n])
        if len(counts) <= top_n:
            return top
        rest = sum(c.count for c in counts[top_n:])
        if rest > 0:
            top.append(TypeCount(type=other_label, count=rest))
        return top

    def by_status(self, reports: Iterable[IncidentReport]) -> list[StatusCount]:
        """Tally reports over the fixed status enumeration."""
        counts: dict[ReportStatus, int] = dict.fromkeys(ReportStatus, 0)
        for report in reports:
            counts[report.status or ReportStatus.new] += 1
        return [StatusCount(status=s, count=n) for s, n in counts.items()]

    def by_severity(self, reports: Iterable[IncidentReport]) -> list[SeverityCount]:
        """Tally reports over the fixed severity enumeration.

        Reports without a severity are counted as Medium.
        """
        counts: dict[ReportSeverity, int] = dict.fromkeys(ReportSeverity, 0)
        for report in reports:
            counts[report.severity or ReportSeverity.medium] += 1
        return [SeverityCount(severity=s, count=n) for s, n in counts.items()]

    def by_category(self, reports: Iterable[IncidentReport]) -> dict[str, int]:
        """Tally reports over the five classifier categories."""
        counts: dict[str, int] = {c.value: 0 for c in IncidentCategory}
        for report in reports:
            counts[self._classifier.classify(report.incident_type).value] += 1
        return counts

    def map_points(self, reports: Iterable[IncidentReport]) -> list[MapPoint]:
        """Reduce mappable reports to map points; others are left out."""
        points: list[MapPoint] = []
        for report in reports:
            location = report.location
            if location is None or not location.is_mappable:
                continue
            points.append(
                MapPoint(
                    id=report.id,
                    latitude=location.latitude,
                    longitude=location.longitude,
                    incident_type=report.incident_type,
                    category=self._classifier.classify(report.incident_type),
                    severity=report.severity,
                    status=report.status,
                )
            )
        return points


class SummaryStatistics:
    """Derived KPI values over a report collection.

    ``today`` may be pinned for reproducible results; otherwise the current
    local date is used on every call.
    """

    def __init__(self, today: date | None = None) -> None:
        self._today = today
        self._aggregator = TimeBucketAggregator()

    @property
    def current_date(self) -> date:
        return self._today or date.today()

    def today(self, reports: Iterable[IncidentReport]) -> list[IncidentReport]:
        """Reports dated today."""
        key = self.current_date.isoformat()
        return [r for r in reports if r.date == key]

    def last_n_days(
        self, reports: Iterable[IncidentReport], days: int
    ) -> list[IncidentReport]:
        """Reports dated on or after ``today - days``."""
        cutoff = self.current_date - timedelta(days=days)
        recent: list[IncidentReport] = []
        for report in reports:
            report_date = parse_report_date(report.date)
            if report_date is not None and report_date >= cutoff:
                recent.append(report)
        return recent

    def most_frequent_type(self, reports: Iterable[IncidentReport]) -> str:
        """Most common incident type; ties go to the first one seen."""
        counts: Counter[str] = Counter(r.incident_type for r in reports)
        if not counts:
            return ""
        return counts.most_common(1)[0][0]

    def weekly_change(self, last_week_count: int, last_month_count: int) -> float:
        """Percentage change of the last week against a rough weekly baseline.

        The baseline spreads the remaining 23 days of the month over three
        week-equivalents. This is a display heuristic, not a rate estimate.
        """
        baseline = (last_month_count - last_week_count) / 3
        if baseline == 0 or last_week_count == 0:
            return 0.0
        return round((last_week_count - baseline) / baseline * 100, 1)

    def build_dashboard_stats(
        self, reports: Sequence[IncidentReport]
    ) -> DashboardStats:
        """Aggregate all KPI values for the dashboard."""
        last_week = len(self.last_n_days(reports, 7))
        last_month = len(self.last_n_days(reports, 30))
        return DashboardStats(
            total_reports=len(reports),
            today_count=len(self.today(reports)),
            last_week_count=last_week,
            last_month_count=last_month,
            weekly_change=self.weekly_change(last_week, last_month),
            most_frequent_type=self.most_frequent_type(reports),
            by_status=self._aggregator.by_status(reports),
            by_severity=self._aggregator.by_severity(reports),
        )


__all__ = [
    "CategoryClassifier",
    "ReportAggregator",
    "ReportFilter",
    "SummaryStatistics",
    "TimeBucketAggregator",
    "bucket_key",
    "classify",
    "parse_report_date",
    "parse_report_hour",
]

"""Search, pagination, and the in-memory report cache."""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Iterable, Sequence

from crimewatch.core import ReportFilter
from crimewatch.models import (
    FilterCriteria,
    IncidentReport,
    ReportPage,
    ReportStatus,
)

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10


def search_reports(
    reports: Iterable[IncidentReport], term: str
) -> list[IncidentReport]:
    """Case-insensitive substring search over type, id, and details."""
    if not term:
        return list(reports)
    pattern = re.compile(re.escape(term), re.IGNORECASE)
    return [
        r
        for r in reports
        if pattern.search(r.incident_type)
        or pattern.search(str(r.id))
        or pattern.search(r.details)
    ]


def paginate(
    reports: Sequence[IncidentReport],
    page_size: int = DEFAULT_PAGE_SIZE,
    page: int = 1,
) -> ReportPage:
    """Slice one 1-indexed page out of ``reports``.

    Out-of-range page numbers are clamped to the first or last page.
    """
    if page_size < 1:
        raise ValueError(f"page_size must be at least 1, got {page_size}")

    total = len(reports)
    total_pages = math.ceil(total / page_size)
    page = max(1, min(page, total_pages or 1))
    start = (page - 1) * page_size
    return ReportPage(
        items=list(reports[start : start + page_size]),
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages,
    )


class ReportStore:
    """In-memory cache of the dashboard's report collection."""

    def __init__(self) -> None:
        self._data: dict[int, IncidentReport] = {}
        self._filter = ReportFilter()

    def add(self, report: IncidentReport) -> None:
        """Insert or overwrite a report."""
        self._data[report.id] = report

    def bulk_load(self, reports: Iterable[IncidentReport]) -> int:
        """Add many reports; return how many new ids were stored."""
        before = len(self._data)
        for report in reports:
            self.add(report)
        return len(self._data) - before

    def get(self, report_id: int) -> IncidentReport | None:
        """Retrieve a single report by id."""
        return self._data.get(report_id)

    def all(self) -> list[IncidentReport]:
        """Return all stored reports in insertion order."""
        return list(self._data.values())

    def clear(self) -> None:
        self._data.clear()

    def incident_types(self) -> list[str]:
        """Distinct incident types in first-seen order."""
        return list(dict.fromkeys(r.incident_type for r in self._data.values()))

    def query(
        self,
        criteria: FilterCriteria | None = None,
        search: str = "",
    ) -> list[IncidentReport]:
        """Return reports matching the criteria and the search term."""
        items = self.all()
        if criteria is not None:
            items = self._filter.apply(items, criteria)
        return search_reports(items, search)

    def update_status(
        self, report_id: int, status: ReportStatus
    ) -> IncidentReport | None:
        """Replace the cached report with a copy carrying the new status.

        Returns the updated report, or None if the id is unknown.
        """
        current = self._data.get(report_id)
        if current is None:
            return None
        updated = current.model_copy(update={"status": ReportStatus(status)})
        self._data[report_id] = updated
        logger.info(f"Report {report_id} status: {current.status.value} -> {updated.status.value}")
        return updated

    @property
    def count(self) -> int:
        """Total number of stored reports."""
        return len(self._data)


__all__ = [
    "DEFAULT_PAGE_SIZE",
    "ReportStore",
    "paginate",
    "search_reports",
]

"""FastAPI dashboard for crime incident reports."""

from __future__ import annotations

import logging
from datetime import date
from typing import Annotated, Any

from fastapi import Depends, FastAPI, HTTPException, Query
from pydantic import BaseModel

from crimewatch.config import get_settings
from crimewatch.core import SummaryStatistics, TimeBucketAggregator
from crimewatch.models import (
    DashboardStats,
    DateCount,
    FilterCriteria,
    Granularity,
    HourCount,
    IncidentReport,
    MapPoint,
    ReportPage,
    ReportSeverity,
    ReportStatus,
    SeverityCount,
    StatusCount,
    TypeCount,
)
from crimewatch.sources import ReportRetrievalError, ReportSource, parse_reports
from crimewatch.store import ReportStore, paginate

logger = logging.getLogger(__name__)
settings = get_settings()

# ---------------------------------------------------------------------------
# Shared application state
# ---------------------------------------------------------------------------

_store = ReportStore()
_source: ReportSource | None = None
_aggregator = TimeBucketAggregator()

app = FastAPI(
    title="Crimewatch Dashboard",
    description="Crime incident aggregation API",
    version="0.1.0",
)


def get_store() -> ReportStore:
    """FastAPI dependency that returns the global report store."""
    return _store


def get_criteria(
    incident_type: Annotated[list[str] | None, Query()] = None,
    severity: Annotated[ReportSeverity | None, Query()] = None,
    status: Annotated[ReportStatus | None, Query()] = None,
    date_from: Annotated[date | None, Query()] = None,
    date_to: Annotated[date | None, Query()] = None,
) -> FilterCriteria:
    """Build per-request filter criteria from query parameters."""
    return FilterCriteria(
        incident_types=frozenset(incident_type or ()),
        severity=severity,
        status=status,
        date_from=date_from,
        date_to=date_to,
    )


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class StatusUpdateRequest(BaseModel):
    """Request body for changing a report's status."""

    status: ReportStatus


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@app.get(
    "/api/reports",
    response_model=ReportPage,
    summary="List reports with filters, search, and pagination",
)
def list_reports(
    criteria: Annotated[FilterCriteria, Depends(get_criteria)],
    q: Annotated[str, Query()] = "",
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=100)] = settings.page_size,
    store: ReportStore = Depends(get_store),  # noqa: B008
) -> ReportPage:
    """Return one page of reports; out-of-range pages clamp to the last page."""
    return paginate(store.query(criteria, search=q), page_size=page_size, page=page)


@app.get(
    "/api/reports/{report_id}",
    response_model=IncidentReport,
    summary="Get a single report by ID",
)
def get_report(
    report_id: int,
    store: ReportStore = Depends(get_store),  # noqa: B008
) -> IncidentReport:
    report = store.get(report_id)
    if report is None:
        raise HTTPException(status_code=404, detail=f"Report {report_id} not found")
    return report


@app.patch(
    "/api/reports/{report_id}/status",
    response_model=IncidentReport,
    summary="Update the status of a report",
)
async def update_report_status(
    report_id: int,
    request: StatusUpdateRequest,
    store: ReportStore = Depends(get_store),  # noqa: B008
) -> IncidentReport:
    """Write the new status through the source, then patch the local copy."""
    if store.get(report_id) is None:
        raise HTTPException(status_code=404, detail=f"Report {report_id} not found")

    if _source is not None:
        try:
            await _source.update_status(report_id, request.status)
        except ReportRetrievalError as e:
            logger.error(f"Status update for report {report_id} failed: {e}")
            raise HTTPException(status_code=502, detail="Failed to update report status") from e

    updated = store.update_status(report_id, request.status)
    if updated is None:
        raise HTTPException(status_code=404, detail=f"Report {report_id} not found")
    return updated


@app.get(
    "/api/incident-types",
    response_model=list[str],
    summary="Distinct incident types for filter pickers",
)
def list_incident_types(
    store: ReportStore = Depends(get_store),  # noqa: B008
) -> list[str]:
    return store.incident_types()


@app.get(
    "/api/stats",
    response_model=DashboardStats,
    summary="Dashboard KPI values",
)
def get_stats(
    criteria: Annotated[FilterCriteria, Depends(get_criteria)],
    store: ReportStore = Depends(get_store),  # noqa: B008
) -> DashboardStats:
    """Return KPI values over the filtered collection."""
    return SummaryStatistics().build_dashboard_stats(store.query(criteria))


@app.get(
    "/api/charts/trend",
    response_model=list[DateCount],
    summary="Report counts per day, week, or month",
)
def get_trend(
    criteria: Annotated[FilterCriteria, Depends(get_criteria)],
    granularity: Annotated[Granularity, Query()] = Granularity.day,
    store: ReportStore = Depends(get_store),  # noqa: B008
) -> list[DateCount]:
    return _aggregator.by_date(store.query(criteria), granularity)


@app.get(
    "/api/charts/hours",
    response_model=list[HourCount],
    summary="Report counts per hour of day",
)
def get_hours(
    criteria: Annotated[FilterCriteria, Depends(get_criteria)],
    store: ReportStore = Depends(get_store),  # noqa: B008
) -> list[HourCount]:
    return _aggregator.by_hour(store.query(criteria))


@app.get(
    "/api/charts/types",
    response_model=list[TypeCount],
    summary="Top incident types with the remainder grouped as Other",
)
def get_types(
    criteria: Annotated[FilterCriteria, Depends(get_criteria)],
    top: Annotated[int, Query(ge=1, le=50)] = settings.top_incident_types,
    store: ReportStore = Depends(get_store),  # noqa: B008
) -> list[TypeCount]:
    counts = _aggregator.by_incident_type(store.query(criteria))
    return _aggregator.collapse_top_n(counts, top_n=top)


@app.get(
    "/api/charts/status",
    response_model=list[StatusCount],
    summary="Report counts per status",
)
def get_status_counts(
    criteria: Annotated[FilterCriteria, Depends(get_criteria)],
    store: ReportStore = Depends(get_store),  # noqa: B008
) -> list[StatusCount]:
    return _aggregator.by_status(store.query(criteria))


@app.get(
    "/api/charts/severity",
    response_model=list[SeverityCount],
    summary="Report counts per severity",
)
def get_severity_counts(
    criteria: Annotated[FilterCriteria, Depends(get_criteria)],
    store: ReportStore = Depends(get_store),  # noqa: B008
) -> list[SeverityCount]:
    return _aggregator.by_severity(store.query(criteria))


@app.get(
    "/api/map",
    response_model=list[MapPoint],
    summary="Mappable reports with their category",
)
def get_map_points(
    criteria: Annotated[FilterCriteria, Depends(get_criteria)],
    store: ReportStore = Depends(get_store),  # noqa: B008
) -> list[MapPoint]:
    """Reports without valid coordinates are left out of the map feed."""
    return _aggregator.map_points(store.query(criteria))


def create_app(
    initial_reports: list[IncidentReport] | None = None,
    source: ReportSource | None = None,
) -> FastAPI:
    """Factory to create a dashboard app with optional seed data.

    ``source`` receives status writes; without one, updates stay local.
    """
    global _store, _source  # noqa: PLW0603
    _store = ReportStore()
    _source = source
    if initial_reports:
        _store.bulk_load(initial_reports)
    logger.info(f"Dashboard ready with {_store.count} reports")
    return app


def load_into_store(reports: list[dict[str, Any]]) -> int:
    """Helper: deserialize and load raw dicts into the global store."""
    return _store.bulk_load(parse_reports(reports))


__all__ = [
    "app",
    "create_app",
    "get_criteria",
    "load_into_store",
]

"""crimewatch: aggregation and filtering backend for a crime incident dashboard."""

from crimewatch.models import (
    DashboardStats,
    FilterCriteria,
    Granularity,
    IncidentCategory,
    IncidentReport,
    ReportSeverity,
    ReportStatus,
)

__version__ = "0.1.0"

__all__ = [
    "DashboardStats",
    "FilterCriteria",
    "Granularity",
    "IncidentCategory",
    "IncidentReport",
    "ReportSeverity",
    "ReportStatus",
]

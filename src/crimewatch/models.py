"""Pydantic models for crimewatch."""

from __future__ import annotations

import math
from datetime import UTC, date, datetime
from enum import Enum
from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    Field,
    ValidationError,
    ValidatorFunctionWrapHandler,
    field_validator,
    model_validator,
)


class ReportSeverity(str, Enum):
    """Severity levels assigned to an incident report."""

    low = "Low"
    medium = "Medium"
    high = "High"
    critical = "Critical"


class ReportStatus(str, Enum):
    """Workflow status of an incident report."""

    new = "New"
    under_investigation = "Under Investigation"
    resolved = "Resolved"
    false_report = "False Report"


class IncidentCategory(str, Enum):
    """Coarse grouping derived from the free-text incident type."""

    violent = "violent"
    property = "property"
    drugs = "drugs"
    public = "public"
    other = "other"


class Granularity(str, Enum):
    """Resolution used when bucketing reports by date."""

    day = "day"
    week = "week"
    month = "month"


class GeoPoint(BaseModel):
    """A latitude/longitude pair.

    Accepts either explicit ``latitude``/``longitude`` keys or a GeoJSON
    point (``{"type": "Point", "coordinates": [lng, lat]}``).
    """

    latitude: float | None = None
    longitude: float | None = None

    @model_validator(mode="before")
    @classmethod
    def _from_geojson(cls, value: Any) -> Any:
        if isinstance(value, dict) and "coordinates" in value:
            coords = value.get("coordinates")
            if not isinstance(coords, (list, tuple)):
                coords = []
            lng = coords[0] if len(coords) > 0 else None
            lat = coords[1] if len(coords) > 1 else None
            return {"latitude": lat, "longitude": lng}
        return value

    @property
    def is_mappable(self) -> bool:
        """True when both components are present and finite."""
        if self.latitude is None or self.longitude is None:
            return False
        return math.isfinite(self.latitude) and math.isfinite(self.longitude)


class IncidentReport(BaseModel):
    """A single crime incident report."""

    id: int = Field(..., description="Unique identifier, immutable once created")
    created_at: datetime = Field(default_factory=lambda: datetime.now(tz=UTC))
    location: GeoPoint | None = None
    date: str = Field(..., description="Incident calendar date, YYYY-MM-DD")
    time: str = Field(default="", description="Incident time of day, HH:MM:SS")
    incident_type: str = Field(..., description="Free-text incident label")
    severity: ReportSeverity | None = Field(
        default=None,
        validation_alias=AliasChoices("severity", "incident_severity"),
    )
    status: ReportStatus = ReportStatus.new
    report_type: str = ""
    perpetrator: str = ""
    details: str = ""
    user_id: int | None = None

    @field_validator("location", mode="wrap")
    @classmethod
    def _lenient_location(cls, value: Any, handler: ValidatorFunctionWrapHandler) -> Any:
        # A bad location only keeps the report off the map.
        try:
            return handler(value)
        except ValidationError:
            return None

    @field_validator("status", mode="before")
    @classmethod
    def _default_status(cls, value: Any) -> Any:
        if value is None or value == "":
            return ReportStatus.new
        return value

    @field_validator("severity", mode="before")
    @classmethod
    def _blank_severity(cls, value: Any) -> Any:
        if value == "":
            return None
        return value

    @property
    def is_mappable(self) -> bool:
        """True when the report can be placed on a map."""
        return self.location is not None and self.location.is_mappable


class FilterCriteria(BaseModel):
    """Independent, optional filter predicates.

    An empty ``incident_types`` set or a ``None`` field imposes no constraint.
    """

    incident_types: frozenset[str] = Field(default_factory=frozenset)
    severity: ReportSeverity | None = None
    status: ReportStatus | None = None
    date_from: date | None = None
    date_to: date | None = None

    @property
    def has_date_range(self) -> bool:
        return self.date_from is not None or self.date_to is not None


class DateCount(BaseModel):
    """Report count for one date bucket (day, ISO week start, or month)."""

    date: str
    count: int = 0


class HourCount(BaseModel):
    hour: int = Field(..., ge=0, le=23)
    count: int = 0


class TypeCount(BaseModel):
    type: str
    count: int = 0


class StatusCount(BaseModel):
    status: ReportStatus
    count: int = 0


class SeverityCount(BaseModel):
    severity: ReportSeverity
    count: int = 0


class MapPoint(BaseModel):
    """A mappable report reduced to what a map layer needs."""

    id: int
    latitude: float
    longitude: float
    incident_type: str
    category: IncidentCategory
    severity: ReportSeverity | None = None
    status: ReportStatus


class ReportPage(BaseModel):
    """One page of reports for tabular display."""

    items: list[IncidentReport] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 10
    total_pages: int = 0


class DashboardStats(BaseModel):
    """Headline figures shown on the dashboard KPI cards."""

    total_reports: int = 0
    today_count: int = 0
    last_week_count: int = 0
    last_month_count: int = 0
    weekly_change: float = 0.0
    most_frequent_type: str = ""
    by_status: list[StatusCount] = Field(default_factory=list)
    by_severity: list[SeverityCount] = Field(default_factory=list)

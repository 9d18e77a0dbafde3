"""Record sources: a seeded mock generator and a REST query client."""

from __future__ import annotations

import asyncio
import json
import logging
import random
from datetime import UTC, date, datetime, timedelta
from pathlib import Path
from typing import Any, Protocol

import httpx
from pydantic import ValidationError

from crimewatch.config import Settings
from crimewatch.models import IncidentReport, ReportSeverity, ReportStatus

logger = logging.getLogger(__name__)


class ReportRetrievalError(Exception):
    """Raised when a source cannot supply or update reports."""


class ReportSource(Protocol):
    """Anything that can supply reports and persist a status change."""

    async def fetch_reports(self) -> list[IncidentReport]: ...

    async def update_status(self, report_id: int, status: ReportStatus) -> None: ...


def parse_reports(raw: list[dict[str, Any]]) -> list[IncidentReport]:
    """Validate raw dicts into reports, dropping the ones that don't fit."""
    reports: list[IncidentReport] = []
    for item in raw:
        try:
            reports.append(IncidentReport.model_validate(item))
        except ValidationError as e:
            logger.warning(f"Skipping invalid report {item.get('id')!r}: {e.error_count()} error(s)")
    return reports


def load_reports_json(path: Path) -> list[IncidentReport]:
    """Load reports from a JSON file holding an array of objects."""
    raw = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(raw, list):
        raise ValueError(f"{path.name} must contain a JSON array of reports")
    return parse_reports(raw)


# ---------------------------------------------------------------------------
# Mock generator
# ---------------------------------------------------------------------------

INCIDENT_TYPES = [
    "Theft",
    "Vehicle Theft",
    "Burglary",
    "Robbery",
    "Assault",
    "Harassment",
    "Fraud",
    "Public Disturbance",
    "Drug Offense",
    "Traffic Violation",
    "Property Damage",
    "Eve Teasing",
]

INCIDENT_DETAILS = [
    "Victim reported their mobile phone was snatched by two individuals on a motorcycle.",
    "Store owner reported break-in and theft of cash and electronics.",
    "Complainant reported harassment while walking home from work.",
    "Vehicle parked outside residence was damaged overnight.",
    "Resident reported suspicious activity in the neighborhood.",
    "Personal belongings stolen from apartment.",
    "Victim reported being followed by unknown individuals.",
    "Shop owner reported counterfeit currency used for purchase.",
    "Verbal altercation escalated to physical assault.",
    "Complainant reported online fraud and money loss.",
]

_FIRST_NAMES = ["Raj", "Amit", "Rahul", "Vikram", "Sunil", "Ajay", "Unknown", "Unidentified"]
_LAST_NAMES = ["Sharma", "Patel", "Singh", "Kumar", "Verma", "Shah", "Suspect"]

# Surat, Gujarat city center
DEFAULT_CENTER = (21.1702, 72.8311)


class MockReportSource:
    """Generate plausible reports around a city center.

    Dates fall within the last ``days`` days, locations within roughly
    3 km of ``center``. Pass ``seed`` for a reproducible collection.
    """

    def __init__(
        self,
        count: int = 100,
        seed: int | None = None,
        days: int = 30,
        center: tuple[float, float] = DEFAULT_CENTER,
    ) -> None:
        self.count = count
        self.days = days
        self.center = center
        self._rng = random.Random(seed)

    def generate(self) -> list[IncidentReport]:
        rng = self._rng
        now = datetime.now(tz=UTC)
        today = date.today()
        center_lat, center_lng = self.center
        reports: list[IncidentReport] = []

        for i in range(self.count):
            age = timedelta(days=rng.randrange(self.days))
            created = now - age
            if rng.random() > 0.6:
                perpetrator = "Unknown"
            else:
                perpetrator = f"{rng.choice(_FIRST_NAMES)} {rng.choice(_LAST_NAMES)}"

            reports.append(
                IncidentReport(
                    id=i + 1,
                    created_at=created,
                    location={
                        "latitude": center_lat + (rng.random() - 0.5) * 0.05,
                        "longitude": center_lng + (rng.random() - 0.5) * 0.05,
                    },
                    date=(today - age).isoformat(),
                    time=f"{rng.randrange(24):02d}:{rng.randrange(60):02d}:00",
                    incident_type=rng.choice(INCIDENT_TYPES),
                    severity=rng.choice(list(ReportSeverity)),
                    status=rng.choice(list(ReportStatus)),
                    report_type="Citizen Report" if rng.random() > 0.3 else "Police Report",
                    perpetrator=perpetrator,
                    details=rng.choice(INCIDENT_DETAILS),
                    user_id=rng.randrange(20) + 1,
                )
            )
        return reports

    async def fetch_reports(self) -> list[IncidentReport]:
        reports = self.generate()
        logger.info(f"Generated {len(reports)} mock reports")
        return reports

    async def update_status(self, report_id: int, status: ReportStatus) -> None:
        # Mock data lives only in the caller's cache.
        logger.debug(f"Mock status update for report {report_id}: {status.value}")


# ---------------------------------------------------------------------------
# Remote query client
# ---------------------------------------------------------------------------


class RemoteReportSource:
    """
    Thin client for a PostgREST-style ``/rest/v1/<table>`` endpoint.

    Features:
    - Offset pagination until an empty or short batch is returned
    - Exponential backoff retry on 429, 5xx, and transport errors
    - Single-field PATCH for status updates
    """

    def __init__(
        self,
        base_url: str,
        table: str = "crime_report",
        api_key: str | None = None,
        timeout: float = 30.0,
        max_retries: int = 3,
        batch_size: int = 1000,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.table = table
        self.api_key = api_key
        self.timeout = timeout
        self.max_retries = max_retries
        self.batch_size = batch_size
        self._transport = transport

        self.headers: dict[str, str] = {
            "Accept": "application/json",
        }
        if api_key:
            self.headers["apikey"] = api_key

    @property
    def url(self) -> str:
        return f"{self.base_url}/rest/v1/{self.table}"

    async def _request_with_retry(
        self,
        method: str,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> Any:
        """Make HTTP request with exponential backoff retry."""
        last_error: Exception | None = None

        for attempt in range(self.max_retries):
            try:
                async with httpx.AsyncClient(
                    timeout=self.timeout, transport=self._transport
                ) as client:
                    response = await client.request(
                        method, self.url, headers=self.headers, params=params, json=json_body
                    )
                    response.raise_for_status()
                    if not response.content:
                        return None
                    try:
                        return response.json()
                    except ValueError as e:
                        raise ReportRetrievalError(f"Invalid JSON from {self.url}: {e}") from e

            except httpx.HTTPStatusError as e:
                last_error = e
                status_code = e.response.status_code
                if status_code == 429 or status_code >= 500:
                    await self._backoff(attempt, f"HTTP {status_code} from {self.url}")
                else:
                    raise ReportRetrievalError(f"HTTP error: {e}") from e

            except httpx.RequestError as e:
                last_error = e
                await self._backoff(attempt, f"Request error: {e}")

        raise ReportRetrievalError(f"Failed after {self.max_retries} retries: {last_error}")

    async def _backoff(self, attempt: int, reason: str) -> None:
        if attempt >= self.max_retries - 1:
            logger.warning(f"{reason}, giving up")
            return
        wait_time = 2**attempt
        logger.warning(f"{reason}, retry in {wait_time}s")
        await asyncio.sleep(wait_time)

    async def fetch_batch(self, limit: int, offset: int = 0) -> list[dict[str, Any]]:
        """Fetch one page of raw report rows."""
        params = {
            "select": "*",
            "order": "date.desc",
            "limit": limit,
            "offset": offset,
        }
        rows = await self._request_with_retry("GET", params=params)
        if not isinstance(rows, list):
            raise ReportRetrievalError(f"Expected a JSON array from {self.url}")
        return rows

    async def fetch_reports(self) -> list[IncidentReport]:
        """Fetch and validate every report row."""
        rows: list[dict[str, Any]] = []
        offset = 0

        while True:
            batch = await self.fetch_batch(limit=self.batch_size, offset=offset)
            rows.extend(batch)
            if len(batch) < self.batch_size:
                break
            offset += self.batch_size

        reports = parse_reports(rows)
        logger.info(f"Fetched {len(reports)} reports ({len(rows) - len(reports)} skipped)")
        return reports

    async def update_status(self, report_id: int, status: ReportStatus) -> None:
        """Write a new status for one report."""
        status = ReportStatus(status)
        await self._request_with_retry(
            "PATCH",
            params={"id": f"eq.{report_id}"},
            json_body={"status": status.value},
        )
        logger.info(f"Updated status of report {report_id} to {status.value}")


def build_source(settings: Settings) -> ReportSource:
    """Create the source selected by ``settings.data_source``."""
    if settings.data_source == "remote":
        return RemoteReportSource(
            base_url=settings.backend_url,
            table=settings.reports_table,
            api_key=settings.backend_api_key,
            timeout=settings.request_timeout,
            max_retries=settings.max_retries,
        )
    return MockReportSource(count=settings.mock_report_count, seed=settings.mock_seed)


__all__ = [
    "MockReportSource",
    "RemoteReportSource",
    "ReportRetrievalError",
    "ReportSource",
    "build_source",
    "load_reports_json",
    "parse_reports",
]

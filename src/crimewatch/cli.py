"""CLI entry point for crimewatch."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path

import click

from crimewatch.models import Granularity, IncidentReport

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _load_file(input_file: Path) -> list[IncidentReport]:
    from crimewatch.sources import load_reports_json

    try:
        return load_reports_json(input_file)
    except ValueError as e:
        click.echo(str(e), err=True)
        sys.exit(1)


@click.group()
@click.version_option(package_name="crimewatch")
@click.option(
    "--log-level",
    default=None,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging verbosity. Defaults to CRIMEWATCH_LOG_LEVEL.",
)
def main(log_level: str | None) -> None:
    """Crimewatch: crime incident report dashboard."""
    from crimewatch.config import get_settings

    level = log_level or get_settings().log_level
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


@main.command("serve")
@click.option("--port", default=8000, show_default=True, type=int, help="HTTP port.")
@click.option("--host", default="0.0.0.0", show_default=True, help="Bind host.")  # noqa: S104
@click.option(
    "--seed",
    "seed_file",
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="JSON file with initial reports; the configured source is used otherwise.",
)
def serve(port: int, host: str, seed_file: Path | None) -> None:
    """Start the FastAPI dashboard server."""
    import uvicorn

    from crimewatch.config import get_settings
    from crimewatch.dashboard import create_app
    from crimewatch.sources import ReportRetrievalError, build_source

    source = build_source(get_settings())
    if seed_file:
        reports = _load_file(seed_file)
        click.echo(f"Loaded {len(reports)} reports from {seed_file.name}")
    else:
        try:
            reports = asyncio.run(source.fetch_reports())
        except ReportRetrievalError as e:
            click.echo(f"Failed to fetch reports: {e}", err=True)
            sys.exit(1)
        click.echo(f"Loaded {len(reports)} reports from the configured source")

    create_app(initial_reports=reports, source=source)
    uvicorn.run("crimewatch.dashboard:app", host=host, port=port, reload=False)


@main.command("generate")
@click.option("--count", default=100, show_default=True, type=click.IntRange(min=0))
@click.option("--seed", default=None, type=int, help="Random seed for reproducible output.")
@click.option(
    "--days",
    default=30,
    show_default=True,
    type=click.IntRange(min=1),
    help="Spread report dates over this many past days.",
)
@click.option(
    "--output",
    "output_file",
    default=None,
    type=click.Path(dir_okay=False, writable=True, path_type=Path),
    help="Write to this file instead of stdout.",
)
def generate(count: int, seed: int | None, days: int, output_file: Path | None) -> None:
    """Generate mock incident reports as a JSON array."""
    from crimewatch.sources import MockReportSource

    reports = MockReportSource(count=count, seed=seed, days=days).generate()
    payload = json.dumps(
        [json.loads(r.model_dump_json()) for r in reports], indent=2
    )
    if output_file is None:
        click.echo(payload)
    else:
        output_file.write_text(payload, encoding="utf-8")
        click.echo(f"Wrote {len(reports)} reports to {output_file.name}")


@main.command("stats")
@click.option(
    "--file",
    "input_file",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="JSON file containing an array of report objects.",
)
def stats(input_file: Path) -> None:
    """Print dashboard KPI values to the console."""
    from crimewatch.core import SummaryStatistics

    reports = _load_file(input_file)
    dashboard = SummaryStatistics().build_dashboard_stats(reports)

    click.echo(f"Total reports      : {dashboard.total_reports}")
    click.echo(f"Today              : {dashboard.today_count}")
    click.echo(f"Last 7 days        : {dashboard.last_week_count}")
    click.echo(f"Last 30 days       : {dashboard.last_month_count}")
    click.echo(f"Weekly change      : {dashboard.weekly_change:.1f}%")
    click.echo(f"Most frequent type : {dashboard.most_frequent_type or '-'}")
    click.echo("\nBy status:")
    for entry in dashboard.by_status:
        click.echo(f"  {entry.status.value:20s}: {entry.count}")
    click.echo("\nBy severity:")
    for entry in dashboard.by_severity:
        click.echo(f"  {entry.severity.value:20s}: {entry.count}")


@main.command("trend")
@click.option(
    "--file",
    "input_file",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--granularity",
    default=Granularity.day.value,
    show_default=True,
    type=click.Choice([g.value for g in Granularity]),
)
def trend(input_file: Path, granularity: str) -> None:
    """Print report counts per date bucket."""
    from crimewatch.core import TimeBucketAggregator

    reports = _load_file(input_file)
    buckets = TimeBucketAggregator().by_date(reports, Granularity(granularity))
    if not buckets:
        click.echo("No dated reports.")
        return
    for bucket in buckets:
        click.echo(f"  {bucket.date:12s}: {bucket.count}")


@main.command("types")
@click.option(
    "--file",
    "input_file",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option("--top", default=7, show_default=True, type=click.IntRange(min=1))
def types(input_file: Path, top: int) -> None:
    """Print the most frequent incident types, the rest grouped as Other."""
    from crimewatch.core import TimeBucketAggregator

    aggregator = TimeBucketAggregator()
    reports = _load_file(input_file)
    counts = aggregator.collapse_top_n(aggregator.by_incident_type(reports), top_n=top)
    for entry in counts:
        click.echo(f"  {entry.type:20s}: {entry.count}")


if __name__ == "__main__":
    main()

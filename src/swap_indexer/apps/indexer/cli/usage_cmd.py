"""CLI command for showing swap counts for a day."""

import asyncio
from typing import Annotated

import typer

from swap_indexer.apps.indexer.cli._helpers import resolve_db_url
from swap_indexer.core.models import Granularity
from swap_indexer.core.timestamps import bucket_id, bucket_start, parse_timestamp
from swap_indexer.store.models import UsageMetricsDailySnapshot, UsageMetricsHourlySnapshot
from swap_indexer.store.repository import EntityStore

_HOURS_PER_DAY = 24


def usage(
    day: Annotated[str, typer.Argument(help="Day as YYYY-MM-DD or a Unix timestamp")],
    db_url: Annotated[
        str, typer.Option(help="SQLAlchemy async DB URL (defaults to settings)")
    ] = "",
) -> None:
    """Show the daily swap count and its hourly breakdown."""
    try:
        timestamp = parse_timestamp(day)
    except ValueError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    asyncio.run(_usage(timestamp, resolve_db_url(db_url)))


async def _usage(timestamp: int, db_url: str) -> None:
    """Load and print the usage snapshots of the day containing ``timestamp``."""
    day_bucket = bucket_id(timestamp, Granularity.DAILY)
    first_hour = bucket_id(bucket_start(day_bucket, Granularity.DAILY), Granularity.HOURLY)

    store = EntityStore(db_url)
    try:
        daily = await store.get(UsageMetricsDailySnapshot, str(day_bucket))
        hourly = [
            await store.get(UsageMetricsHourlySnapshot, str(first_hour + offset))
            for offset in range(_HOURS_PER_DAY)
        ]
    finally:
        await store.close()

    typer.echo(f"Day {day_bucket}: {daily.daily_swap_count if daily else 0} swaps")
    for offset, snapshot in enumerate(hourly):
        if snapshot is not None:
            typer.echo(f"  {offset:02d}:00  {snapshot.hourly_swap_count:>6}")

"""CLI command for listing every indexed pool."""

import asyncio
from typing import Annotated

import typer

from swap_indexer.apps.indexer.cli._helpers import resolve_db_url
from swap_indexer.store.models import LiquidityPool, Swap
from swap_indexer.store.repository import EntityStore


def pools(
    db_url: Annotated[
        str, typer.Option(help="SQLAlchemy async DB URL (defaults to settings)")
    ] = "",
) -> None:
    """List indexed pools ordered by TVL, with the total swap count."""
    asyncio.run(_pools(resolve_db_url(db_url)))


async def _pools(db_url: str) -> None:
    """Load every pool and print one line per pool."""
    store = EntityStore(db_url)
    try:
        records = await store.list_all(LiquidityPool)
        swap_count = await store.count(Swap)
    finally:
        await store.close()

    if not records:
        typer.echo("No pools indexed")
        return

    records.sort(key=lambda record: record.total_value_locked_usd, reverse=True)
    typer.echo(f"{'Pool':<44} {'Symbol':<16} {'TVL (USD)':>18} {'Volume (USD)':>18}")
    typer.echo("-" * 99)
    for record in records:
        typer.echo(
            f"{record.id:<44} {record.symbol:<16} "
            f"{record.total_value_locked_usd:>18,.2f} {record.cumulative_volume_usd:>18,.2f}"
        )
    typer.echo(f"\n{len(records)} pools, {swap_count} swaps")

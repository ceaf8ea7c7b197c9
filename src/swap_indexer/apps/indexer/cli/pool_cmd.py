"""CLI command for inspecting a pool's aggregates.

Print the pool's coins with balances and weights, followed by its TVL,
cumulative volume, and cumulative revenue.
"""

import asyncio
from typing import Annotated

import typer

from swap_indexer.apps.indexer.cli._helpers import resolve_db_url
from swap_indexer.store.models import LiquidityPool, Token
from swap_indexer.store.repository import EntityStore


def pool(
    address: Annotated[str, typer.Argument(help="Pool address")],
    db_url: Annotated[
        str, typer.Option(help="SQLAlchemy async DB URL (defaults to settings)")
    ] = "",
) -> None:
    """Show the stored state of a liquidity pool."""
    found = asyncio.run(_pool(address.lower(), resolve_db_url(db_url)))
    if not found:
        typer.echo(f"Pool {address} not found", err=True)
        raise typer.Exit(code=1)


async def _pool(address: str, db_url: str) -> bool:
    """Load and print the pool; return False when it does not exist.

    Args:
        address: Lowercase pool address.
        db_url: SQLAlchemy async DB URL.

    """
    store = EntityStore(db_url)
    try:
        record = await store.get(LiquidityPool, address)
        if record is None:
            return False
        symbols = []
        for coin in record.input_tokens_ordered:
            token = await store.get(Token, coin)
            symbols.append(token.symbol if token else coin)
    finally:
        await store.close()

    typer.echo(f"{record.name} ({record.id})")
    typer.echo(f"\n{'Coin':<12} {'Balance':>30} {'Weight':>10}")
    typer.echo("-" * 54)
    for symbol, balance, weight in zip(
        symbols, record.input_token_balances, record.input_token_weights, strict=True
    ):
        typer.echo(f"{symbol:<12} {balance:>30} {weight:>10.4f}")
    typer.echo("")
    typer.echo(f"TVL (USD):               {record.total_value_locked_usd:,.2f}")
    typer.echo(f"Cumulative volume (USD): {record.cumulative_volume_usd:,.2f}")
    typer.echo(f"Cumulative revenue (USD): {record.cumulative_total_revenue_usd:,.2f}")
    return True

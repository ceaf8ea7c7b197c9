"""CLI command for applying a single swap event to the store.

Read pool and token state from the configured node, value both legs with
the static price table (plus any ``--price`` overrides), and fold the
trade into every aggregate.
"""

import asyncio
from dataclasses import replace
from decimal import Decimal, InvalidOperation
from typing import Annotated

import typer

from swap_indexer.apps.indexer.cli._helpers import (
    build_processor,
    configure_logging,
    resolve_db_url,
)
from swap_indexer.core.config import ConfigError, IndexerConfig, get_config
from swap_indexer.core.models import BlockContext, SwapEvent, TransactionContext
from swap_indexer.core.timestamps import parse_timestamp
from swap_indexer.indexer.exceptions import SwapIndexerError
from swap_indexer.indexer.valuation import truncate
from swap_indexer.store.repository import EntityStore


def parse_price_overrides(values: list[str]) -> dict[str, Decimal]:
    """Parse ``TOKEN=USD`` pairs into a price mapping.

    Args:
        values: Raw option values such as ``0xabc...=1.0001``.

    Returns:
        USD prices keyed by lowercase token address.

    Raises:
        ValueError: If a value is not a ``TOKEN=USD`` pair with a numeric price.

    """
    prices: dict[str, Decimal] = {}
    for value in values:
        token, sep, price = value.partition("=")
        if not sep or not token.strip():
            msg = f"Expected TOKEN=USD, got {value!r}"
            raise ValueError(msg)
        try:
            prices[token.strip().lower()] = Decimal(price.strip())
        except InvalidOperation as exc:
            msg = f"Invalid price for {token}: {price!r}"
            raise ValueError(msg) from exc
    return prices


def swap(  # noqa: PLR0913
    pool_address: Annotated[str, typer.Argument(help="Pool that emitted the swap")],
    sold_id: Annotated[int, typer.Option(help="Index of the coin sold")],
    bought_id: Annotated[int, typer.Option(help="Index of the coin bought")],
    amount_in: Annotated[int, typer.Option(help="Raw amount sold")],
    amount_out: Annotated[int, typer.Option(help="Raw amount bought")],
    buyer: Annotated[str, typer.Option(help="Account that made the trade")],
    tx_hash: Annotated[str, typer.Option(help="Transaction hash")],
    block: Annotated[int, typer.Option(help="Block number")],
    timestamp: Annotated[str, typer.Option(help="Block time as YYYY-MM-DD or Unix seconds")],
    log_index: Annotated[int, typer.Option(help="Log index within the transaction")] = 0,
    underlying: Annotated[  # noqa: FBT002
        bool, typer.Option("--underlying", help="Indices refer to underlying coins")
    ] = False,
    price: Annotated[
        list[str] | None, typer.Option(help="Extra USD price as TOKEN=USD (repeatable)")
    ] = None,
    db_url: Annotated[
        str, typer.Option(help="SQLAlchemy async DB URL (defaults to settings)")
    ] = "",
    verbose: Annotated[  # noqa: FBT002
        bool, typer.Option("--verbose", "-v", help="Enable debug logging")
    ] = False,
) -> None:
    """Apply one swap event and print the recorded values."""
    configure_logging(verbose=verbose)
    try:
        block_time = parse_timestamp(timestamp)
        overrides = parse_price_overrides(price or [])
    except ValueError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    event = SwapEvent(
        pool_address=pool_address.lower(),
        sold_id=sold_id,
        amount_in=amount_in,
        bought_id=bought_id,
        amount_out=amount_out,
        buyer=buyer.lower(),
        transaction=TransactionContext(hash=tx_hash.lower(), log_index=log_index),
        block=BlockContext(number=block, timestamp=block_time),
        underlying=underlying,
    )
    config = replace(get_config().get_indexer_config(), db_url=resolve_db_url(db_url))
    asyncio.run(_swap(config, event, overrides))


async def _swap(config: IndexerConfig, event: SwapEvent, overrides: dict[str, Decimal]) -> None:
    """Process ``event`` and print the outcome, exiting non-zero on failure."""
    store = EntityStore(config.db_url)
    try:
        await store.init_db()
        processor = build_processor(config, store, price_overrides=overrides)
        record = await processor.process_swap(event)
    except (ConfigError, SwapIndexerError) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    finally:
        await store.close()

    if record is None:
        typer.echo(f"Skipped: pool {event.pool_address} lists no underlying coins")
        return
    places = config.display_precision
    typer.echo(f"Recorded {record.id}")
    typer.echo(f"  In:  {record.amount_in} of {record.token_in}")
    typer.echo(f"       ${truncate(record.amount_in_usd, places)}")
    typer.echo(f"  Out: {record.amount_out} of {record.token_out}")
    typer.echo(f"       ${truncate(record.amount_out_usd, places)}")

"""CLI command for creating the indexer database schema."""

import asyncio
from typing import Annotated

import typer

from swap_indexer.apps.indexer.cli._helpers import configure_logging, resolve_db_url
from swap_indexer.store.repository import EntityStore


def init_db(
    db_url: Annotated[
        str, typer.Option(help="SQLAlchemy async DB URL (defaults to settings)")
    ] = "",
    verbose: Annotated[  # noqa: FBT002
        bool, typer.Option("--verbose", "-v", help="Enable debug logging")
    ] = False,
) -> None:
    """Create every indexer table that does not exist yet."""
    configure_logging(verbose=verbose)
    url = resolve_db_url(db_url)
    asyncio.run(_init_db(url))
    typer.echo(f"Database ready ({url})")


async def _init_db(db_url: str) -> None:
    """Create the schema and dispose the engine."""
    store = EntityStore(db_url)
    try:
        await store.init_db()
    finally:
        await store.close()

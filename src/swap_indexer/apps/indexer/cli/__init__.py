"""CLI subpackage for the swap indexer app.

Create the Typer application and register all command modules.
"""

import typer

from swap_indexer.apps.indexer.cli.init_db_cmd import init_db
from swap_indexer.apps.indexer.cli.pool_cmd import pool
from swap_indexer.apps.indexer.cli.pools_cmd import pools
from swap_indexer.apps.indexer.cli.swap_cmd import swap
from swap_indexer.apps.indexer.cli.usage_cmd import usage

app = typer.Typer(help="Swap indexer tools")

app.command(name="init-db")(init_db)
app.command()(pool)
app.command()(pools)
app.command()(swap)
app.command()(usage)

__all__ = ["app"]

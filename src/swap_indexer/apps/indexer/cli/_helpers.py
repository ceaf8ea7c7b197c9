"""Shared helpers for swap indexer CLI commands.

Centralise logging setup, database URL resolution, and construction of
a processor wired to the live chain, reused by every command module.
"""

import logging
from collections.abc import Mapping
from decimal import Decimal

from swap_indexer.clients.chain import Web3ChainReader
from swap_indexer.clients.pricing.static import StaticPriceOracle
from swap_indexer.core.config import ConfigError, IndexerConfig, get_config
from swap_indexer.indexer.processor import SwapProcessor
from swap_indexer.store.repository import EntityStore


def configure_logging(*, verbose: bool) -> None:
    """Configure root logging, at DEBUG level when ``verbose`` is set."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def resolve_db_url(db_url: str) -> str:
    """Return ``db_url`` if given, otherwise the configured database URL."""
    if db_url:
        return db_url
    return get_config().get_indexer_config().db_url


def build_processor(
    config: IndexerConfig,
    store: EntityStore,
    *,
    price_overrides: Mapping[str, Decimal] | None = None,
) -> SwapProcessor:
    """Build a SwapProcessor that reads the chain over JSON-RPC.

    Connect a ``Web3ChainReader`` to the configured node and price tokens
    from the static table in the settings, with ``price_overrides``
    taking precedence.

    Args:
        config: Indexer settings carrying the RPC URL, registry, and prices.
        store: Entity store the processor writes to.
        price_overrides: Extra USD prices keyed by token address.

    Returns:
        A processor ready to apply swap events.

    Raises:
        ConfigError: If no RPC URL is configured.
        ChainReaderError: If the node cannot be reached.

    """
    if not config.rpc_url:
        msg = "chain.rpc_url must be set to read pool state"
        raise ConfigError(msg)

    chain = Web3ChainReader(config.rpc_url, config.registry_address)
    oracle = StaticPriceOracle(config.prices)
    for token, price in (price_overrides or {}).items():
        oracle.set_price(token, price)
    return SwapProcessor(store, chain, oracle, config)

"""Resolve the assets traded by a swap from pool-local indices.

A ``TokenExchange`` event names its legs by index. In direct mode the
indices point into the pool's own coin list. ``TokenExchangeUnderlying``
events index the underlying coins instead, which are listed by the
registry that tracks the pool.
"""

import logging

from swap_indexer.core.models import TradeTokens
from swap_indexer.core.protocols import ChainReader
from swap_indexer.indexer.exceptions import TradeIndexError
from swap_indexer.store.models import LiquidityPool

logger = logging.getLogger(__name__)

# Only this out-index triggers the override below.
_LAST_COIN_OVERRIDE_INDEX = 0


def _coin_at(coins: list[str], index: int, pool_id: str) -> str:
    """Return ``coins[index]``, rejecting negative and out-of-range indices."""
    if not 0 <= index < len(coins):
        raise TradeIndexError(index, len(coins), pool_id)
    return coins[index]


def _apply_last_coin_override(pool: LiquidityPool, bought_id: int, token_in: str) -> str:
    """Return the in-asset after the underlying index-0 override.

    One pool implementation reports underlying swaps that buy coin 0 with
    the in-asset taken from its own last coin rather than the registry's
    underlying list. See
    https://etherscan.io/address/0x06cb22615ba53e60d67bf6c341a0fd5e718e1655#code#L750
    """
    if bought_id != _LAST_COIN_OVERRIDE_INDEX:
        return token_in
    return pool.input_tokens_ordered[-1]


async def resolve_trade_tokens(
    pool: LiquidityPool,
    sold_id: int,
    bought_id: int,
    *,
    underlying: bool,
    chain: ChainReader,
) -> TradeTokens | None:
    """Map the event's sold/bought indices to token addresses.

    Args:
        pool: Pool the event was emitted by.
        sold_id: Index of the coin sent into the pool.
        bought_id: Index of the coin sent out of the pool.
        underlying: Whether the indices address underlying coins.
        chain: Reader used to list underlying coins from the registry.

    Returns:
        The resolved ``TradeTokens``, or ``None`` when the pool exposes no
        underlying coins and the event must be skipped.

    Raises:
        TradeIndexError: If an index falls outside the list it addresses.

    """
    if not underlying:
        coins = pool.input_tokens_ordered
        return TradeTokens(
            token_in=_coin_at(coins, sold_id, pool.id),
            token_out=_coin_at(coins, bought_id, pool.id),
        )

    underlying_coins = [
        coin.lower() for coin in await chain.get_underlying_coins(pool.id, pool.registry_address)
    ]
    if not underlying_coins:
        logger.debug("Pool %s exposes no underlying coins, skipping swap", pool.id)
        return None

    token_in = _coin_at(underlying_coins, sold_id, pool.id)
    token_out = _coin_at(underlying_coins, bought_id, pool.id)
    return TradeTokens(
        token_in=_apply_last_coin_override(pool, bought_id, token_in),
        token_out=token_out,
    )

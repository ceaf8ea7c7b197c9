"""Refresh a pool's balances, weights, TVL, and cumulative volume after a swap.

Balances are re-read from the chain on every swap instead of applying the
event's deltas, so a missed event never leaves the pool permanently off.
"""

import logging
from collections.abc import Sequence
from decimal import Decimal

from swap_indexer.core.models import ZERO, BlockContext
from swap_indexer.core.protocols import ChainReader, PriceOracle
from swap_indexer.indexer.exceptions import PoolStateError
from swap_indexer.indexer.initializers import get_or_create_token
from swap_indexer.indexer.valuation import add_usd, scale_amount, usd_precision
from swap_indexer.store.models import LiquidityPool, Token
from swap_indexer.store.repository import UnitOfWork

logger = logging.getLogger(__name__)


def token_value_usd(balance: int, token: Token) -> Decimal:
    """Return a balance's USD value, counting unpriced tokens as zero."""
    if token.last_price_usd is None:
        return ZERO
    units = scale_amount(balance, token.decimals)
    with usd_precision():
        return units * token.last_price_usd


def compute_token_weights(
    tokens: Sequence[Token], balances: Sequence[int]
) -> tuple[list[Decimal], Decimal]:
    """Return each coin's share of pool value and the pool's total value.

    Args:
        tokens: Token records in pool-index order.
        balances: Raw balances aligned with ``tokens``.

    Returns:
        ``(weights, total_value_usd)``. Weights sum to 1 when the total is
        positive and are all zero otherwise.

    Raises:
        PoolStateError: If the two sequences differ in length.

    """
    if len(tokens) != len(balances):
        msg = f"{len(balances)} balances for {len(tokens)} tokens"
        raise PoolStateError(msg)

    values = [token_value_usd(balance, token) for token, balance in zip(tokens, balances, strict=True)]
    with usd_precision():
        total = sum(values, ZERO)
        if total == ZERO:
            return [ZERO] * len(values), ZERO
        return [value / total for value in values], total


async def refresh_pool_balances(
    uow: UnitOfWork,
    pool: LiquidityPool,
    chain: ChainReader,
    oracle: PriceOracle,
    block: BlockContext,
) -> None:
    """Re-read balances from the chain and recompute weights and TVL.

    Raises:
        PoolStateError: If the chain returns a balance list that is not
            aligned with the pool's coins.

    """
    size = len(pool.input_tokens_ordered)
    balances = [int(balance) for balance in await chain.get_pool_balances(pool.id, size)]
    if len(balances) != size:
        msg = f"Pool {pool.id} returned {len(balances)} balances for {size} coins"
        raise PoolStateError(msg)

    tokens = [
        await get_or_create_token(uow, coin, chain, oracle, block)
        for coin in pool.input_tokens_ordered
    ]
    weights, total_value = compute_token_weights(tokens, balances)

    pool.input_token_balances = balances
    pool.input_token_weights = weights
    pool.total_value_locked_usd = total_value


async def update_pool_after_swap(  # noqa: PLR0913
    uow: UnitOfWork,
    pool: LiquidityPool,
    volume_usd: Decimal,
    chain: ChainReader,
    oracle: PriceOracle,
    block: BlockContext,
) -> LiquidityPool:
    """Apply a swap's effect on the pool record and save it.

    Args:
        uow: Active unit of work.
        pool: Pool the swap happened in.
        volume_usd: Average of the two legs' USD values.
        chain: Source of current balances.
        oracle: Source of prices used for the weights.
        block: Block of the event being processed.

    Returns:
        The updated pool.

    """
    if volume_usd < ZERO:
        msg = f"volume must be non-negative, got {volume_usd}"
        raise ValueError(msg)

    await refresh_pool_balances(uow, pool, chain, oracle, block)
    pool.cumulative_volume_usd = add_usd(pool.cumulative_volume_usd, volume_usd)
    await uow.save(pool)
    logger.debug(
        "Pool %s TVL %s cumulative volume %s",
        pool.id,
        pool.total_value_locked_usd,
        pool.cumulative_volume_usd,
    )
    return pool

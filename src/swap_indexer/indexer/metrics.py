"""Roll a swap up into token volume, revenue, snapshots, and protocol TVL.

Pool and financials snapshots accumulate volume and revenue inside their
bucket and copy the running cumulative figures, so the latest snapshot in
a series always reflects the pool or protocol as of its last event.
"""

import logging
from decimal import Decimal

from swap_indexer.core.models import ZERO, BlockContext, Granularity
from swap_indexer.indexer.initializers import (
    get_or_create_financials_daily_snapshot,
    get_or_create_pool_snapshot,
    get_or_create_usage_daily_snapshot,
    get_or_create_usage_hourly_snapshot,
)
from swap_indexer.indexer.valuation import add_usd, usd_precision
from swap_indexer.store.models import DexAmmProtocol, LiquidityPool
from swap_indexer.store.repository import UnitOfWork

logger = logging.getLogger(__name__)

SNAPSHOT_GRANULARITIES = (Granularity.HOURLY, Granularity.DAILY)

_CUMULATIVE_REVENUE_FIELDS = (
    "cumulative_supply_side_revenue_usd",
    "cumulative_protocol_side_revenue_usd",
    "cumulative_total_revenue_usd",
)
_SNAPSHOT_REVENUE_FIELDS = (
    "supply_side_revenue_usd",
    "protocol_side_revenue_usd",
    "total_revenue_usd",
)
_DAILY_REVENUE_FIELDS = (
    "daily_supply_side_revenue_usd",
    "daily_protocol_side_revenue_usd",
    "daily_total_revenue_usd",
)


def _add_at(values: list[int] | list[Decimal], index: int, delta: int | Decimal) -> list:
    """Return a copy of ``values`` with ``delta`` added at ``index``."""
    updated = list(values)
    with usd_precision():
        updated[index] = updated[index] + delta
    return updated


def _accrue(record: object, fields: tuple[str, ...], amounts: tuple[Decimal, ...]) -> None:
    """Add each amount to the matching USD field of ``record``."""
    for name, amount in zip(fields, amounts, strict=True):
        setattr(record, name, add_usd(getattr(record, name), amount))


async def update_token_volume(  # noqa: PLR0913
    uow: UnitOfWork,
    pool: LiquidityPool,
    token_id: str,
    amount: int,
    amount_usd: Decimal,
    block: BlockContext,
) -> None:
    """Attribute one swap leg's volume to its token within the pool.

    Update the pool's cumulative per-token volume and the per-token volume
    of the current hourly and daily pool snapshots. A token that is not
    one of the pool's own coins (an underlying asset) is skipped.

    Args:
        uow: Active unit of work.
        pool: Pool the swap happened in.
        token_id: Address of the leg's token.
        amount: Raw amount of the leg.
        amount_usd: USD value of the leg.
        block: Block of the event being processed.

    """
    try:
        index = pool.input_tokens_ordered.index(token_id)
    except ValueError:
        logger.debug("Token %s is not a coin of pool %s, volume not attributed", token_id, pool.id)
        return

    pool.cumulative_volume_by_token_amount = _add_at(
        pool.cumulative_volume_by_token_amount, index, amount
    )
    pool.cumulative_volume_by_token_usd = _add_at(
        pool.cumulative_volume_by_token_usd, index, amount_usd
    )
    await uow.save(pool)

    for granularity in SNAPSHOT_GRANULARITIES:
        snapshot = await get_or_create_pool_snapshot(uow, pool, granularity, block)
        snapshot.volume_by_token_amount = _add_at(snapshot.volume_by_token_amount, index, amount)
        snapshot.volume_by_token_usd = _add_at(snapshot.volume_by_token_usd, index, amount_usd)
        await uow.save(snapshot)


def split_revenue(pool: LiquidityPool, volume_usd: Decimal) -> tuple[Decimal, Decimal, Decimal]:
    """Split the fee earned on ``volume_usd`` between LPs and the protocol.

    Returns:
        ``(supply_side, protocol_side, total)`` in USD.

    """
    with usd_precision():
        total = volume_usd * pool.trading_fee
        protocol_side = total * pool.admin_fee
        return total - protocol_side, protocol_side, total


async def update_protocol_revenue(
    uow: UnitOfWork,
    protocol: DexAmmProtocol,
    pool: LiquidityPool,
    volume_usd: Decimal,
    block: BlockContext,
) -> None:
    """Add the fee revenue of a swap to pool, protocol, and snapshots."""
    revenue = split_revenue(pool, volume_usd)

    _accrue(pool, _CUMULATIVE_REVENUE_FIELDS, revenue)
    await uow.save(pool)

    _accrue(protocol, _CUMULATIVE_REVENUE_FIELDS, revenue)
    await uow.save(protocol)

    for granularity in SNAPSHOT_GRANULARITIES:
        snapshot = await get_or_create_pool_snapshot(uow, pool, granularity, block)
        _accrue(snapshot, _SNAPSHOT_REVENUE_FIELDS, revenue)
        await uow.save(snapshot)

    financials = await get_or_create_financials_daily_snapshot(uow, protocol, block)
    _accrue(financials, _DAILY_REVENUE_FIELDS, revenue)
    financials.cumulative_supply_side_revenue_usd = protocol.cumulative_supply_side_revenue_usd
    financials.cumulative_protocol_side_revenue_usd = protocol.cumulative_protocol_side_revenue_usd
    financials.cumulative_total_revenue_usd = protocol.cumulative_total_revenue_usd
    await uow.save(financials)


async def update_snapshots_volume(
    uow: UnitOfWork,
    protocol: DexAmmProtocol,
    pool: LiquidityPool,
    volume_usd: Decimal,
    block: BlockContext,
) -> None:
    """Add a swap's volume to pool and protocol snapshots of every granularity."""
    protocol.cumulative_volume_usd = add_usd(protocol.cumulative_volume_usd, volume_usd)
    await uow.save(protocol)

    for granularity in SNAPSHOT_GRANULARITIES:
        snapshot = await get_or_create_pool_snapshot(uow, pool, granularity, block)
        snapshot.volume_usd = add_usd(snapshot.volume_usd, volume_usd)
        snapshot.cumulative_volume_usd = pool.cumulative_volume_usd
        snapshot.total_value_locked_usd = pool.total_value_locked_usd
        snapshot.input_token_balances = list(pool.input_token_balances)
        snapshot.input_token_weights = list(pool.input_token_weights)
        snapshot.timestamp = block.timestamp
        snapshot.block_number = block.number
        await uow.save(snapshot)

    financials = await get_or_create_financials_daily_snapshot(uow, protocol, block)
    financials.daily_volume_usd = add_usd(financials.daily_volume_usd, volume_usd)
    financials.cumulative_volume_usd = protocol.cumulative_volume_usd
    financials.timestamp = block.timestamp
    financials.block_number = block.number
    await uow.save(financials)


async def record_swap_occurred(
    uow: UnitOfWork, protocol: DexAmmProtocol, block: BlockContext
) -> None:
    """Count one swap in the hourly and daily usage snapshots."""
    daily = await get_or_create_usage_daily_snapshot(uow, protocol, block)
    hourly = await get_or_create_usage_hourly_snapshot(uow, protocol, block)

    daily.daily_swap_count += 1
    daily.total_pool_count = protocol.total_pool_count
    daily.block_number = block.number
    daily.timestamp = block.timestamp
    hourly.hourly_swap_count += 1
    hourly.block_number = block.number
    hourly.timestamp = block.timestamp

    await uow.save(daily)
    await uow.save(hourly)
    await uow.save(protocol)


async def update_protocol_total_value_locked(
    uow: UnitOfWork, protocol: DexAmmProtocol, block: BlockContext
) -> Decimal:
    """Recompute protocol TVL as the sum of every pool's TVL.

    Returns:
        The new protocol TVL in USD.

    """
    pools = await uow.all(LiquidityPool)
    with usd_precision():
        total = sum((pool.total_value_locked_usd for pool in pools), ZERO)
    protocol.total_value_locked_usd = total
    await uow.save(protocol)

    financials = await get_or_create_financials_daily_snapshot(uow, protocol, block)
    financials.total_value_locked_usd = total
    await uow.save(financials)
    return total

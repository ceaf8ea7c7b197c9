"""Get-or-create helpers for every keyed record the indexer touches.

Each helper loads a record by its deterministic key and, on first
reference, builds it with zeroed aggregates and saves it. Snapshot records
open lazily on the first event inside their time bucket.
"""

import logging

from swap_indexer.core.config import IndexerConfig
from swap_indexer.core.models import ZERO, BlockContext, Granularity
from swap_indexer.core.protocols import ChainReader, PriceOracle
from swap_indexer.core.timestamps import bucket_id
from swap_indexer.store.models import (
    DexAmmProtocol,
    FinancialsDailySnapshot,
    LiquidityPool,
    LiquidityPoolDailySnapshot,
    LiquidityPoolHourlySnapshot,
    Token,
    UsageMetricsDailySnapshot,
    UsageMetricsHourlySnapshot,
)
from swap_indexer.store.repository import UnitOfWork

logger = logging.getLogger(__name__)

PoolSnapshot = LiquidityPoolDailySnapshot | LiquidityPoolHourlySnapshot


async def get_or_create_protocol(uow: UnitOfWork, config: IndexerConfig) -> DexAmmProtocol:
    """Return the protocol singleton, creating it on first use."""
    protocol = await uow.load(DexAmmProtocol, config.protocol_id)
    if protocol is None:
        protocol = DexAmmProtocol(
            id=config.protocol_id,
            name=config.protocol_name,
            slug=config.protocol_slug,
            network=config.network,
            total_value_locked_usd=ZERO,
            cumulative_volume_usd=ZERO,
            cumulative_supply_side_revenue_usd=ZERO,
            cumulative_protocol_side_revenue_usd=ZERO,
            cumulative_total_revenue_usd=ZERO,
            total_pool_count=0,
        )
        await uow.save(protocol)
        logger.info("Created protocol record %s", config.protocol_id)
    return protocol


async def get_or_create_token(
    uow: UnitOfWork,
    address: str,
    chain: ChainReader,
    oracle: PriceOracle,
    block: BlockContext,
) -> Token:
    """Return the token record for an address and refresh its price.

    Metadata is read from the chain only when the record is first created.
    The oracle is asked for a price on every lookup; a ``None`` answer
    keeps the previously stored price.

    Args:
        uow: Active unit of work.
        address: Token address (any case).
        chain: Source of token metadata.
        oracle: Source of USD prices.
        block: Block of the event being processed.

    Returns:
        The persisted ``Token``.

    """
    token_id = address.lower()
    token = await uow.load(Token, token_id)
    if token is None:
        metadata = await chain.get_token_metadata(token_id)
        token = Token(
            id=token_id,
            name=metadata.name,
            symbol=metadata.symbol,
            decimals=metadata.decimals,
            last_price_usd=None,
            last_price_block_number=None,
        )

    price = oracle.get_price_usd(token_id, block)
    if price is not None:
        token.last_price_usd = price
        token.last_price_block_number = block.number

    await uow.save(token)
    return token


async def get_or_create_pool(  # noqa: PLR0913
    uow: UnitOfWork,
    address: str,
    protocol: DexAmmProtocol,
    chain: ChainReader,
    oracle: PriceOracle,
    block: BlockContext,
    default_registry: str | None = None,
) -> LiquidityPool:
    """Return the pool record for an address, creating it on first reference.

    Creation reads the ordered coin list, fees, and registry from the
    chain, creates a token record per coin, and increments the protocol's
    pool count.

    Args:
        uow: Active unit of work.
        address: Pool address (any case).
        protocol: Protocol singleton the pool belongs to.
        chain: Source of pool and token state.
        oracle: Source of USD prices for the pool's coins.
        block: Block of the event being processed.
        default_registry: Registry used when the chain reports none.

    Returns:
        The persisted ``LiquidityPool``.

    """
    pool_id = address.lower()
    pool = await uow.load(LiquidityPool, pool_id)
    if pool is not None:
        return pool

    coins = [coin.lower() for coin in await chain.get_pool_coins(pool_id)]
    tokens = [await get_or_create_token(uow, coin, chain, oracle, block) for coin in coins]
    trading_fee, admin_fee = await chain.get_pool_fees(pool_id)
    registry = await chain.get_registry_address(pool_id) or default_registry
    symbol = "/".join(token.symbol for token in tokens)
    size = len(coins)

    pool = LiquidityPool(
        id=pool_id,
        protocol=protocol.id,
        name=f"{protocol.name} {symbol}",
        symbol=symbol,
        input_tokens_ordered=coins,
        input_token_balances=[0] * size,
        input_token_weights=[ZERO] * size,
        total_value_locked_usd=ZERO,
        cumulative_volume_usd=ZERO,
        cumulative_volume_by_token_amount=[0] * size,
        cumulative_volume_by_token_usd=[ZERO] * size,
        cumulative_supply_side_revenue_usd=ZERO,
        cumulative_protocol_side_revenue_usd=ZERO,
        cumulative_total_revenue_usd=ZERO,
        trading_fee=trading_fee,
        admin_fee=admin_fee,
        registry_address=registry.lower() if registry else None,
        created_timestamp=block.timestamp,
        created_block_number=block.number,
    )
    await uow.save(pool)

    protocol.total_pool_count += 1
    await uow.save(protocol)
    logger.info("Created pool %s with %d coins (%s)", pool_id, size, symbol)
    return pool


async def get_or_create_usage_daily_snapshot(
    uow: UnitOfWork, protocol: DexAmmProtocol, block: BlockContext
) -> UsageMetricsDailySnapshot:
    """Return the usage snapshot for the block's day."""
    key = str(bucket_id(block.timestamp, Granularity.DAILY))
    snapshot = await uow.load(UsageMetricsDailySnapshot, key)
    if snapshot is None:
        snapshot = UsageMetricsDailySnapshot(
            id=key,
            protocol=protocol.id,
            daily_swap_count=0,
            daily_deposit_count=0,
            daily_withdraw_count=0,
            total_pool_count=protocol.total_pool_count,
            timestamp=block.timestamp,
            block_number=block.number,
        )
        await uow.save(snapshot)
    return snapshot


async def get_or_create_usage_hourly_snapshot(
    uow: UnitOfWork, protocol: DexAmmProtocol, block: BlockContext
) -> UsageMetricsHourlySnapshot:
    """Return the usage snapshot for the block's hour."""
    key = str(bucket_id(block.timestamp, Granularity.HOURLY))
    snapshot = await uow.load(UsageMetricsHourlySnapshot, key)
    if snapshot is None:
        snapshot = UsageMetricsHourlySnapshot(
            id=key,
            protocol=protocol.id,
            hourly_swap_count=0,
            hourly_deposit_count=0,
            hourly_withdraw_count=0,
            timestamp=block.timestamp,
            block_number=block.number,
        )
        await uow.save(snapshot)
    return snapshot


async def get_or_create_pool_snapshot(
    uow: UnitOfWork,
    pool: LiquidityPool,
    granularity: Granularity,
    block: BlockContext,
) -> PoolSnapshot:
    """Return the pool snapshot for the block's hour or day.

    Args:
        uow: Active unit of work.
        pool: Pool the snapshot belongs to.
        granularity: Which snapshot series to use.
        block: Block of the event being processed.

    Returns:
        The hourly or daily snapshot keyed ``<pool>-<bucket>``.

    """
    model: type[PoolSnapshot] = (
        LiquidityPoolDailySnapshot
        if granularity is Granularity.DAILY
        else LiquidityPoolHourlySnapshot
    )
    key = f"{pool.id}-{bucket_id(block.timestamp, granularity)}"
    snapshot = await uow.load(model, key)
    if snapshot is None:
        size = len(pool.input_tokens_ordered)
        snapshot = model(
            id=key,
            pool=pool.id,
            protocol=pool.protocol,
            volume_usd=ZERO,
            volume_by_token_amount=[0] * size,
            volume_by_token_usd=[ZERO] * size,
            supply_side_revenue_usd=ZERO,
            protocol_side_revenue_usd=ZERO,
            total_revenue_usd=ZERO,
            cumulative_volume_usd=pool.cumulative_volume_usd,
            total_value_locked_usd=pool.total_value_locked_usd,
            input_token_balances=list(pool.input_token_balances),
            input_token_weights=list(pool.input_token_weights),
            timestamp=block.timestamp,
            block_number=block.number,
        )
        await uow.save(snapshot)
    return snapshot


async def get_or_create_financials_daily_snapshot(
    uow: UnitOfWork, protocol: DexAmmProtocol, block: BlockContext
) -> FinancialsDailySnapshot:
    """Return the financials snapshot for the block's day."""
    key = str(bucket_id(block.timestamp, Granularity.DAILY))
    snapshot = await uow.load(FinancialsDailySnapshot, key)
    if snapshot is None:
        snapshot = FinancialsDailySnapshot(
            id=key,
            protocol=protocol.id,
            total_value_locked_usd=protocol.total_value_locked_usd,
            daily_volume_usd=ZERO,
            cumulative_volume_usd=protocol.cumulative_volume_usd,
            daily_supply_side_revenue_usd=ZERO,
            cumulative_supply_side_revenue_usd=protocol.cumulative_supply_side_revenue_usd,
            daily_protocol_side_revenue_usd=ZERO,
            cumulative_protocol_side_revenue_usd=protocol.cumulative_protocol_side_revenue_usd,
            daily_total_revenue_usd=ZERO,
            cumulative_total_revenue_usd=protocol.cumulative_total_revenue_usd,
            timestamp=block.timestamp,
            block_number=block.number,
        )
        await uow.save(snapshot)
    return snapshot

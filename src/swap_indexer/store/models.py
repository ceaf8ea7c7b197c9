"""SQLAlchemy ORM models for the swap indexer entity store.

Every record is keyed by a deterministic string identifier so that the
indexer can load-or-create it from event data alone: addresses for tokens,
pools, and the protocol; ``swap-<hash>-<logIndex>`` for swaps; bucket
numbers for time-bucketed snapshots. Records reference each other by id
only, without ORM relationships, so they can be used freely outside an
active async session.
"""

from decimal import Decimal

from sqlalchemy import JSON, BigInteger, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from swap_indexer.store.types import BigIntList, BigIntString, DecimalList, DecimalString


class Base(DeclarativeBase):
    """Declarative base class for all swap indexer ORM models."""


class Token(Base):
    """An ERC-20 asset referenced by at least one pool or swap.

    Attributes:
        id: Lowercase token address.
        name: Token name from chain metadata.
        symbol: Token symbol from chain metadata.
        decimals: Decimal scale of raw amounts.
        last_price_usd: Last-known USD price, ``None`` until an oracle
            provides one.
        last_price_block_number: Block at which the price was recorded.

    """

    __tablename__ = "tokens"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String)
    symbol: Mapped[str] = mapped_column(String)
    decimals: Mapped[int] = mapped_column(Integer)
    last_price_usd: Mapped[Decimal | None] = mapped_column(DecimalString, nullable=True)
    last_price_block_number: Mapped[int | None] = mapped_column(BigInteger, nullable=True)


class DexAmmProtocol(Base):
    """Singleton aggregate for the whole deployment."""

    __tablename__ = "protocols"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String)
    slug: Mapped[str] = mapped_column(String)
    network: Mapped[str] = mapped_column(String)
    total_value_locked_usd: Mapped[Decimal] = mapped_column(DecimalString)
    cumulative_volume_usd: Mapped[Decimal] = mapped_column(DecimalString)
    cumulative_supply_side_revenue_usd: Mapped[Decimal] = mapped_column(DecimalString)
    cumulative_protocol_side_revenue_usd: Mapped[Decimal] = mapped_column(DecimalString)
    cumulative_total_revenue_usd: Mapped[Decimal] = mapped_column(DecimalString)
    total_pool_count: Mapped[int] = mapped_column(Integer)


class LiquidityPool(Base):
    """A pool holding a fixed, ordered set of coins.

    Every per-token list column is index-aligned with
    ``input_tokens_ordered`` and always has the same length.

    Attributes:
        id: Lowercase pool address.
        input_tokens_ordered: Coin addresses in pool-index order.
        input_token_balances: Raw balances, refreshed after every swap.
        input_token_weights: USD value share of each coin (sum ~ 1).
        trading_fee: Swap fee as a decimal fraction of volume.
        admin_fee: Share of the trading fee kept by the protocol.
        registry_address: Registry used to expand underlying coins.

    """

    __tablename__ = "liquidity_pools"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    protocol: Mapped[str] = mapped_column(String, index=True)
    name: Mapped[str] = mapped_column(String)
    symbol: Mapped[str] = mapped_column(String)
    input_tokens_ordered: Mapped[list[str]] = mapped_column(JSON)
    input_token_balances: Mapped[list[int]] = mapped_column(BigIntList)
    input_token_weights: Mapped[list[Decimal]] = mapped_column(DecimalList)
    total_value_locked_usd: Mapped[Decimal] = mapped_column(DecimalString)
    cumulative_volume_usd: Mapped[Decimal] = mapped_column(DecimalString)
    cumulative_volume_by_token_amount: Mapped[list[int]] = mapped_column(BigIntList)
    cumulative_volume_by_token_usd: Mapped[list[Decimal]] = mapped_column(DecimalList)
    cumulative_supply_side_revenue_usd: Mapped[Decimal] = mapped_column(DecimalString)
    cumulative_protocol_side_revenue_usd: Mapped[Decimal] = mapped_column(DecimalString)
    cumulative_total_revenue_usd: Mapped[Decimal] = mapped_column(DecimalString)
    trading_fee: Mapped[Decimal] = mapped_column(DecimalString)
    admin_fee: Mapped[Decimal] = mapped_column(DecimalString)
    registry_address: Mapped[str | None] = mapped_column(String, nullable=True)
    created_timestamp: Mapped[int] = mapped_column(BigInteger)
    created_block_number: Mapped[int] = mapped_column(BigInteger)


class Swap(Base):
    """Immutable record of one swap event, unique per transaction log."""

    __tablename__ = "swaps"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    hash: Mapped[str] = mapped_column(String, index=True)
    log_index: Mapped[int] = mapped_column(Integer)
    protocol: Mapped[str] = mapped_column(String)
    pool: Mapped[str] = mapped_column(String, index=True)
    to_address: Mapped[str] = mapped_column("to", String)
    from_address: Mapped[str] = mapped_column("from", String)
    token_in: Mapped[str] = mapped_column(String)
    amount_in: Mapped[int] = mapped_column(BigIntString)
    amount_in_usd: Mapped[Decimal] = mapped_column(DecimalString)
    token_out: Mapped[str] = mapped_column(String)
    amount_out: Mapped[int] = mapped_column(BigIntString)
    amount_out_usd: Mapped[Decimal] = mapped_column(DecimalString)
    timestamp: Mapped[int] = mapped_column(BigInteger, index=True)
    block_number: Mapped[int] = mapped_column(BigInteger)


class UsageMetricsDailySnapshot(Base):
    """Per-day usage counters for the protocol, keyed by day number."""

    __tablename__ = "usage_metrics_daily_snapshots"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    protocol: Mapped[str] = mapped_column(String)
    daily_swap_count: Mapped[int] = mapped_column(Integer)
    daily_deposit_count: Mapped[int] = mapped_column(Integer)
    daily_withdraw_count: Mapped[int] = mapped_column(Integer)
    total_pool_count: Mapped[int] = mapped_column(Integer)
    timestamp: Mapped[int] = mapped_column(BigInteger)
    block_number: Mapped[int] = mapped_column(BigInteger)


class UsageMetricsHourlySnapshot(Base):
    """Per-hour usage counters for the protocol, keyed by hour number."""

    __tablename__ = "usage_metrics_hourly_snapshots"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    protocol: Mapped[str] = mapped_column(String)
    hourly_swap_count: Mapped[int] = mapped_column(Integer)
    hourly_deposit_count: Mapped[int] = mapped_column(Integer)
    hourly_withdraw_count: Mapped[int] = mapped_column(Integer)
    timestamp: Mapped[int] = mapped_column(BigInteger)
    block_number: Mapped[int] = mapped_column(BigInteger)


class LiquidityPoolSnapshotMixin:
    """Columns shared by the hourly and daily pool snapshots.

    ``volume_*`` and ``*_revenue_usd`` accumulate within the bucket only;
    the remaining fields copy the pool's state as of the latest event in
    the bucket.
    """

    id: Mapped[str] = mapped_column(String, primary_key=True)
    pool: Mapped[str] = mapped_column(String, index=True)
    protocol: Mapped[str] = mapped_column(String)
    volume_usd: Mapped[Decimal] = mapped_column(DecimalString)
    volume_by_token_amount: Mapped[list[int]] = mapped_column(BigIntList)
    volume_by_token_usd: Mapped[list[Decimal]] = mapped_column(DecimalList)
    supply_side_revenue_usd: Mapped[Decimal] = mapped_column(DecimalString)
    protocol_side_revenue_usd: Mapped[Decimal] = mapped_column(DecimalString)
    total_revenue_usd: Mapped[Decimal] = mapped_column(DecimalString)
    cumulative_volume_usd: Mapped[Decimal] = mapped_column(DecimalString)
    total_value_locked_usd: Mapped[Decimal] = mapped_column(DecimalString)
    input_token_balances: Mapped[list[int]] = mapped_column(BigIntList)
    input_token_weights: Mapped[list[Decimal]] = mapped_column(DecimalList)
    timestamp: Mapped[int] = mapped_column(BigInteger)
    block_number: Mapped[int] = mapped_column(BigInteger)


class LiquidityPoolDailySnapshot(LiquidityPoolSnapshotMixin, Base):
    """Per-day pool aggregates, keyed by ``<pool>-<day>``."""

    __tablename__ = "liquidity_pool_daily_snapshots"


class LiquidityPoolHourlySnapshot(LiquidityPoolSnapshotMixin, Base):
    """Per-hour pool aggregates, keyed by ``<pool>-<hour>``."""

    __tablename__ = "liquidity_pool_hourly_snapshots"


class FinancialsDailySnapshot(Base):
    """Per-day protocol financials, keyed by day number."""

    __tablename__ = "financials_daily_snapshots"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    protocol: Mapped[str] = mapped_column(String)
    total_value_locked_usd: Mapped[Decimal] = mapped_column(DecimalString)
    daily_volume_usd: Mapped[Decimal] = mapped_column(DecimalString)
    cumulative_volume_usd: Mapped[Decimal] = mapped_column(DecimalString)
    daily_supply_side_revenue_usd: Mapped[Decimal] = mapped_column(DecimalString)
    cumulative_supply_side_revenue_usd: Mapped[Decimal] = mapped_column(DecimalString)
    daily_protocol_side_revenue_usd: Mapped[Decimal] = mapped_column(DecimalString)
    cumulative_protocol_side_revenue_usd: Mapped[Decimal] = mapped_column(DecimalString)
    daily_total_revenue_usd: Mapped[Decimal] = mapped_column(DecimalString)
    cumulative_total_revenue_usd: Mapped[Decimal] = mapped_column(DecimalString)
    timestamp: Mapped[int] = mapped_column(BigInteger)
    block_number: Mapped[int] = mapped_column(BigInteger)

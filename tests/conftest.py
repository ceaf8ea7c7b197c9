"""Shared test configuration and fixtures."""

from collections.abc import AsyncIterator
from decimal import Decimal

import pytest
import pytest_asyncio

from swap_indexer.clients.chain.exceptions import ChainReaderError
from swap_indexer.clients.pricing.static import StaticPriceOracle
from swap_indexer.core.config import IndexerConfig
from swap_indexer.core.models import TokenMetadata
from swap_indexer.indexer.processor import SwapProcessor
from swap_indexer.store.repository import EntityStore

_DEFAULT_FEE = Decimal("0.0004")
_DEFAULT_ADMIN_FEE = Decimal("0.5")
_DEFAULT_REGISTRY = "0x" + "9" * 40


class FakeChainReader:
    """In-memory ``ChainReader`` populated by each test.

    Unknown tokens report 18 decimals. Unknown pools raise
    ``ChainReaderError`` when their coins are read. Pools registered with
    ``underlying=None`` expose no underlying coins.
    """

    def __init__(self) -> None:
        """Initialize an empty chain."""
        self.coins: dict[str, list[str]] = {}
        self.balances: dict[str, list[int]] = {}
        self.fees: dict[str, tuple[Decimal, Decimal]] = {}
        self.underlying: dict[str, list[str]] = {}
        self.tokens: dict[str, TokenMetadata] = {}
        self.registry: str | None = _DEFAULT_REGISTRY
        self.balance_reads = 0

    def add_pool(  # noqa: PLR0913
        self,
        pool: str,
        coins: list[str],
        balances: list[int],
        *,
        fee: Decimal = _DEFAULT_FEE,
        admin_fee: Decimal = _DEFAULT_ADMIN_FEE,
        underlying: list[str] | None = None,
    ) -> None:
        """Register a pool with its coins, balances, fees, and underlying coins."""
        self.coins[pool] = coins
        self.balances[pool] = balances
        self.fees[pool] = (fee, admin_fee)
        self.underlying[pool] = underlying or []

    def add_token(self, token: str, symbol: str, decimals: int = 18) -> None:
        """Register token metadata."""
        self.tokens[token] = TokenMetadata(name=symbol, symbol=symbol, decimals=decimals)

    async def get_pool_coins(self, pool: str) -> list[str]:
        """Return the registered coins, failing like a node for unknown pools."""
        if pool not in self.coins:
            msg = f"Pool {pool} exposes no coins"
            raise ChainReaderError(msg)
        return list(self.coins[pool])

    async def get_registry_address(self, pool: str) -> str | None:
        """Return the shared registry."""
        return self.registry

    async def get_pool_fees(self, pool: str) -> tuple[Decimal, Decimal]:
        """Return the registered fees."""
        return self.fees[pool]

    async def get_underlying_coins(self, pool: str, registry: str | None) -> list[str]:
        """Return the registered underlying coins."""
        return list(self.underlying.get(pool, []))

    async def get_pool_balances(self, pool: str, count: int) -> list[int]:
        """Return the registered balances."""
        self.balance_reads += 1
        return list(self.balances[pool])

    async def get_token_metadata(self, token: str) -> TokenMetadata:
        """Return registered metadata, or an 18-decimal placeholder."""
        return self.tokens.get(token, TokenMetadata(name="Token", symbol="TKN", decimals=18))


@pytest.fixture
def chain() -> FakeChainReader:
    """Return an empty fake chain."""
    return FakeChainReader()


@pytest.fixture
def oracle() -> StaticPriceOracle:
    """Return a price oracle with no prices."""
    return StaticPriceOracle({})


@pytest.fixture
def config() -> IndexerConfig:
    """Return default indexer settings."""
    return IndexerConfig(protocol_id="test-protocol", registry_address=_DEFAULT_REGISTRY)


@pytest_asyncio.fixture
async def store() -> AsyncIterator[EntityStore]:
    """Create an in-memory SQLite entity store with the schema in place."""
    entity_store = EntityStore("sqlite+aiosqlite:///:memory:")
    await entity_store.init_db()
    yield entity_store
    await entity_store.close()


@pytest.fixture
def processor(
    store: EntityStore,
    chain: FakeChainReader,
    oracle: StaticPriceOracle,
    config: IndexerConfig,
) -> SwapProcessor:
    """Return a processor wired to the fake collaborators."""
    return SwapProcessor(store, chain, oracle, config)

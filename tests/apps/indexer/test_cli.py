"""Tests for swap indexer CLI commands."""

import asyncio
from collections.abc import Iterator
from decimal import Decimal
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from typer.testing import CliRunner

from swap_indexer.apps.indexer.cli import app
from swap_indexer.apps.indexer.cli._helpers import build_processor
from swap_indexer.apps.indexer.cli.swap_cmd import parse_price_overrides
from swap_indexer.clients.chain import ChainReaderError
from swap_indexer.core.config import ConfigError, IndexerConfig
from swap_indexer.core.models import TokenMetadata
from swap_indexer.store.models import (
    LiquidityPool,
    Swap,
    Token,
    UsageMetricsDailySnapshot,
    UsageMetricsHourlySnapshot,
)
from swap_indexer.store.repository import EntityStore

_POOL = "0x" + "1" * 40
_TOKEN_A = "0x" + "a" * 40
_TOKEN_B = "0x" + "b" * 40
_BUYER = "0x" + "e" * 40
_REGISTRY = "0x" + "9" * 40
_RPC_URL = "http://node.example.com:8545"
_READER_PATH = "swap_indexer.apps.indexer.cli._helpers.Web3ChainReader"
_METADATA = {
    _TOKEN_A: TokenMetadata(name="A", symbol="AAA", decimals=18),
    _TOKEN_B: TokenMetadata(name="B", symbol="BBB", decimals=6),
}
_JAN_1_2024_UTC = 1704067200
_JAN_1_2024_DAY = 19723
_JAN_1_2024_HOUR = 473352
_EXIT_ERROR = 1


@pytest.fixture
def runner() -> CliRunner:
    """Create a Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def db_url(tmp_path: Path) -> str:
    """Return a file-backed SQLite URL inside the test's temp directory."""
    return f"sqlite+aiosqlite:///{tmp_path}/indexer.db"


def _make_pool() -> LiquidityPool:
    """Create a two-coin pool record with some history."""
    return LiquidityPool(
        id=_POOL,
        protocol="curve-finance",
        name="Curve Finance AAA/BBB",
        symbol="AAA/BBB",
        input_tokens_ordered=[_TOKEN_A, _TOKEN_B],
        input_token_balances=[100 * 10**18, 200 * 10**6],
        input_token_weights=[Decimal("0.2"), Decimal("0.8")],
        total_value_locked_usd=Decimal(500),
        cumulative_volume_usd=Decimal("1234.5"),
        cumulative_volume_by_token_amount=[0, 0],
        cumulative_volume_by_token_usd=[Decimal(0), Decimal(0)],
        cumulative_supply_side_revenue_usd=Decimal("0.25"),
        cumulative_protocol_side_revenue_usd=Decimal("0.25"),
        cumulative_total_revenue_usd=Decimal("0.5"),
        trading_fee=Decimal("0.0004"),
        admin_fee=Decimal("0.5"),
        registry_address=None,
        created_timestamp=_JAN_1_2024_UTC,
        created_block_number=1,
    )


async def _seed(db_url: str) -> None:
    """Write a pool, its tokens, and one day of usage snapshots."""
    store = EntityStore(db_url)
    await store.init_db()
    async with store.unit_of_work() as uow:
        await uow.save(Token(id=_TOKEN_A, name="A", symbol="AAA", decimals=18))
        await uow.save(Token(id=_TOKEN_B, name="B", symbol="BBB", decimals=6))
        await uow.save(_make_pool())
        await uow.save(
            UsageMetricsDailySnapshot(
                id=str(_JAN_1_2024_DAY),
                protocol="curve-finance",
                daily_swap_count=3,
                daily_deposit_count=0,
                daily_withdraw_count=0,
                total_pool_count=1,
                timestamp=_JAN_1_2024_UTC + 5 * 3600,
                block_number=1,
            )
        )
        await uow.save(
            UsageMetricsHourlySnapshot(
                id=str(_JAN_1_2024_HOUR + 5),
                protocol="curve-finance",
                hourly_swap_count=3,
                hourly_deposit_count=0,
                hourly_withdraw_count=0,
                timestamp=_JAN_1_2024_UTC + 5 * 3600,
                block_number=1,
            )
        )
    await store.close()


class TestInitDb:
    """Tests for the init-db command."""

    def test_creates_database(self, runner: CliRunner, db_url: str, tmp_path: Path) -> None:
        """Create the schema and report the URL."""
        result = runner.invoke(app, ["init-db", "--db-url", db_url])

        assert result.exit_code == 0
        assert "Database ready" in result.output
        assert (tmp_path / "indexer.db").exists()

    def test_is_idempotent(self, runner: CliRunner, db_url: str) -> None:
        """Succeed when the schema already exists."""
        runner.invoke(app, ["init-db", "--db-url", db_url])
        result = runner.invoke(app, ["init-db", "--db-url", db_url])

        assert result.exit_code == 0


class TestPoolCommand:
    """Tests for the pool command."""

    def test_prints_pool_state(self, runner: CliRunner, db_url: str) -> None:
        """Show coins, TVL, volume, and revenue of a stored pool."""
        asyncio.run(_seed(db_url))

        result = runner.invoke(app, ["pool", _POOL, "--db-url", db_url])

        assert result.exit_code == 0
        assert "Curve Finance AAA/BBB" in result.output
        assert "AAA" in result.output
        assert "0.8000" in result.output
        assert "500.00" in result.output
        assert "1,234.50" in result.output

    def test_missing_pool_exits_with_error(self, runner: CliRunner, db_url: str) -> None:
        """Exit non-zero when the pool was never indexed."""
        asyncio.run(_seed(db_url))

        result = runner.invoke(app, ["pool", "0x" + "2" * 40, "--db-url", db_url])

        assert result.exit_code == _EXIT_ERROR
        assert "not found" in result.output


class TestUsageCommand:
    """Tests for the usage command."""

    def test_prints_daily_and_hourly_counts(self, runner: CliRunner, db_url: str) -> None:
        """Show the day's swap count and the non-empty hours."""
        asyncio.run(_seed(db_url))

        result = runner.invoke(app, ["usage", "2024-01-01", "--db-url", db_url])

        assert result.exit_code == 0
        assert f"Day {_JAN_1_2024_DAY}: 3 swaps" in result.output
        assert "05:00" in result.output
        assert "04:00" not in result.output

    def test_empty_day_reports_zero(self, runner: CliRunner, db_url: str) -> None:
        """Report zero swaps for a day with no snapshot."""
        asyncio.run(_seed(db_url))

        result = runner.invoke(app, ["usage", "2024-02-01", "--db-url", db_url])

        assert result.exit_code == 0
        assert "0 swaps" in result.output

    def test_invalid_day_exits_with_error(self, runner: CliRunner, db_url: str) -> None:
        """Exit non-zero for an unparseable day."""
        result = runner.invoke(app, ["usage", "yesterday", "--db-url", db_url])

        assert result.exit_code == _EXIT_ERROR
        assert "Cannot parse timestamp" in result.output


def _fake_reader() -> AsyncMock:
    """Return an async chain reader that serves one two-coin pool."""
    reader = AsyncMock()
    reader.get_pool_coins.return_value = [_TOKEN_A, _TOKEN_B]
    reader.get_registry_address.return_value = None
    reader.get_pool_fees.return_value = (Decimal("0.0004"), Decimal("0.5"))
    reader.get_underlying_coins.return_value = []
    reader.get_pool_balances.return_value = [100 * 10**18, 200 * 10**6]
    reader.get_token_metadata.side_effect = lambda token: _METADATA[token]
    return reader


@pytest.fixture
def reader_cls() -> Iterator[MagicMock]:
    """Patch the web3 reader the CLI builds with an in-memory fake."""
    with patch(_READER_PATH) as cls:
        cls.return_value = _fake_reader()
        yield cls


def _swap_args(db_url: str, *extra: str) -> list[str]:
    """Build ``swap`` arguments for selling 10 AAA for 20 BBB."""
    return [
        "swap",
        _POOL,
        "--sold-id",
        "0",
        "--bought-id",
        "1",
        "--amount-in",
        str(10 * 10**18),
        "--amount-out",
        str(20 * 10**6),
        "--buyer",
        _BUYER,
        "--tx-hash",
        "0xABC",
        "--block",
        "19000000",
        "--timestamp",
        "2024-01-01",
        "--db-url",
        db_url,
        *extra,
    ]


async def _load_swap(db_url: str, key: str) -> Swap | None:
    """Read one swap record back from the database."""
    store = EntityStore(db_url)
    try:
        return await store.get(Swap, key)
    finally:
        await store.close()


class TestBuildProcessor:
    """Tests for wiring a processor to the configured node and prices."""

    @pytest.mark.asyncio
    async def test_connects_reader_to_configured_node(self, reader_cls: MagicMock) -> None:
        """Pass the RPC URL and registry from the settings to the reader."""
        config = IndexerConfig(rpc_url=_RPC_URL, registry_address=_REGISTRY)
        store = EntityStore("sqlite+aiosqlite:///:memory:")

        build_processor(config, store)

        reader_cls.assert_called_once_with(_RPC_URL, _REGISTRY)
        await store.close()

    @pytest.mark.asyncio
    async def test_missing_rpc_url_raises(self, reader_cls: MagicMock) -> None:
        """Refuse to build a processor with no node to read from."""
        store = EntityStore("sqlite+aiosqlite:///:memory:")

        with pytest.raises(ConfigError, match="rpc_url"):
            build_processor(IndexerConfig(), store)

        reader_cls.assert_not_called()
        await store.close()


class TestParsePriceOverrides:
    """Tests for ``--price`` value parsing."""

    def test_parses_pairs(self) -> None:
        """Key prices by lowercase token address."""
        prices = parse_price_overrides([f"0x{'A' * 40}=1.0001", f"{_TOKEN_B} = 2"])

        assert prices == {_TOKEN_A: Decimal("1.0001"), _TOKEN_B: Decimal(2)}

    @pytest.mark.parametrize("value", [_TOKEN_A, f"{_TOKEN_A}=cheap", "=1"])
    def test_rejects_malformed_values(self, value: str) -> None:
        """Raise ValueError for anything but TOKEN=number."""
        with pytest.raises(ValueError, match=r"TOKEN=USD|Invalid price"):
            parse_price_overrides([value])


class TestSwapCommand:
    """Tests for the swap command."""

    def test_records_swap_with_price_overrides(
        self, runner: CliRunner, db_url: str, reader_cls: MagicMock
    ) -> None:
        """Value both legs with the overrides and persist the swap."""
        result = runner.invoke(
            app,
            _swap_args(db_url, "--price", f"{_TOKEN_A}=1", "--price", f"{_TOKEN_B}=0.5"),
        )

        assert result.exit_code == 0, result.output
        assert "Recorded swap-0xabc-0" in result.output
        assert "$10.00" in result.output
        swap = asyncio.run(_load_swap(db_url, "swap-0xabc-0"))
        assert swap is not None
        assert swap.amount_in_usd == Decimal(10)
        assert swap.amount_out_usd == Decimal(10)
        assert swap.from_address == _BUYER

    def test_missing_price_exits_with_error(
        self, runner: CliRunner, db_url: str, reader_cls: MagicMock
    ) -> None:
        """Exit non-zero and store nothing when a leg cannot be valued."""
        result = runner.invoke(app, _swap_args(db_url, "--price", f"{_TOKEN_A}=1"))

        assert result.exit_code == _EXIT_ERROR
        assert "No USD price available" in result.output
        assert asyncio.run(_load_swap(db_url, "swap-0xabc-0")) is None

    def test_unreachable_node_exits_with_error(
        self, runner: CliRunner, db_url: str, reader_cls: MagicMock
    ) -> None:
        """Report a node that cannot be reached instead of crashing."""
        reader_cls.side_effect = ChainReaderError(f"Cannot connect to RPC at {_RPC_URL}")

        result = runner.invoke(app, _swap_args(db_url))

        assert result.exit_code == _EXIT_ERROR
        assert "Cannot connect" in result.output

    def test_malformed_price_exits_with_error(self, runner: CliRunner, db_url: str) -> None:
        """Reject a ``--price`` value before touching the chain."""
        result = runner.invoke(app, _swap_args(db_url, "--price", "cheap"))

        assert result.exit_code == _EXIT_ERROR
        assert "TOKEN=USD" in result.output


class TestPoolsCommand:
    """Tests for the pools command."""

    def test_lists_pools_and_swap_count(self, runner: CliRunner, db_url: str) -> None:
        """Show each stored pool with its TVL and the number of swaps."""
        asyncio.run(_seed(db_url))

        result = runner.invoke(app, ["pools", "--db-url", db_url])

        assert result.exit_code == 0
        assert _POOL in result.output
        assert "AAA/BBB" in result.output
        assert "1,234.50" in result.output
        assert "1 pools, 0 swaps" in result.output

    def test_empty_database(self, runner: CliRunner, db_url: str) -> None:
        """Say so when nothing has been indexed."""
        runner.invoke(app, ["init-db", "--db-url", db_url])

        result = runner.invoke(app, ["pools", "--db-url", db_url])

        assert result.exit_code == 0
        assert "No pools indexed" in result.output

    def test_counts_swaps_applied_through_cli(
        self, runner: CliRunner, db_url: str, reader_cls: MagicMock
    ) -> None:
        """Include a pool created by the swap command."""
        runner.invoke(
            app,
            _swap_args(db_url, "--price", f"{_TOKEN_A}=1", "--price", f"{_TOKEN_B}=0.5"),
        )

        result = runner.invoke(app, ["pools", "--db-url", db_url])

        assert result.exit_code == 0
        assert "1 pools, 1 swaps" in result.output

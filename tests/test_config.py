"""Tests for configuration management."""

import os
from decimal import Decimal
from pathlib import Path
from unittest.mock import patch

import pytest

import swap_indexer.core.config as config_module
from swap_indexer.core.config import ConfigError, ConfigLoader, IndexerConfig, get_config

_REGISTRY = "0x90e00ace148ca3b23ac1bc8c240c2a7dd9c2d7f5"
_USDC = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"
EXPECTED_PRECISION = 4


class TestConfigLoader:
    """Test suite for ConfigLoader."""

    def test_load_default_config(self) -> None:
        """Load the packaged settings file."""
        loader = ConfigLoader()
        assert loader.get("environment") is not None
        assert loader.get("chain.registry_address") == _REGISTRY

    def test_get_with_dot_notation(self, tmp_path: Path) -> None:
        """Resolve nested keys with dot notation."""
        config_file = tmp_path / "settings.yaml"
        config_file.write_text("""
database:
  url: sqlite+aiosqlite:///test.db
environment: test
""")

        loader = ConfigLoader(config_dir=tmp_path)
        assert loader.get("database.url") == "sqlite+aiosqlite:///test.db"
        assert loader.get("environment") == "test"

    def test_get_with_default(self, tmp_path: Path) -> None:
        """Return the default for a missing key."""
        config_file = tmp_path / "settings.yaml"
        config_file.write_text("environment: test")

        loader = ConfigLoader(config_dir=tmp_path)
        assert loader.get("nonexistent.key", "default_value") == "default_value"

    def test_env_var_substitution(self, tmp_path: Path) -> None:
        """Substitute environment variables and their defaults."""
        config_file = tmp_path / "settings.yaml"
        config_file.write_text("""
chain:
  rpc_url: ${TEST_SWAP_INDEXER_RPC}
database:
  url: ${TEST_SWAP_INDEXER_DB:sqlite+aiosqlite:///default.db}
""")

        with patch.dict(os.environ, {"TEST_SWAP_INDEXER_RPC": "http://node:8545"}):
            loader = ConfigLoader(config_dir=tmp_path)
            assert loader.get("chain.rpc_url") == "http://node:8545"
            assert loader.get("database.url") == "sqlite+aiosqlite:///default.db"

    def test_local_settings_override(self, tmp_path: Path) -> None:
        """Let settings.local.yaml override the base file key by key."""
        (tmp_path / "settings.yaml").write_text("""
protocol:
  name: Curve Finance
  network: MAINNET
environment: production
""")
        (tmp_path / "settings.local.yaml").write_text("""
protocol:
  network: ARBITRUM
environment: development
""")

        loader = ConfigLoader(config_dir=tmp_path)
        assert loader.get("protocol.network") == "ARBITRUM"
        assert loader.get("protocol.name") == "Curve Finance"
        assert loader.get("environment") == "development"

    def test_full_string_unresolved_env_var_raises_config_error(self, tmp_path: Path) -> None:
        """Raise ConfigError when env var is unset and has no default."""
        config_file = tmp_path / "settings.yaml"
        config_file.write_text("""
chain:
  rpc_url: ${NONEXISTENT_SWAP_INDEXER_VAR}
""")

        with pytest.raises(ConfigError, match="Required environment variable"):
            ConfigLoader(config_dir=tmp_path)

    def test_embedded_env_var_reference_raises_config_error(self, tmp_path: Path) -> None:
        """Raise ConfigError when an env var reference is embedded in a larger string."""
        config_file = tmp_path / "settings.yaml"
        config_file.write_text("""
chain:
  rpc_url: https://node.example.com/${NONEXISTENT_PATH_VAR}/rpc
""")

        with pytest.raises(ConfigError, match="Unresolved environment variable reference"):
            ConfigLoader(config_dir=tmp_path)


class TestPrices:
    """Test suite for the static price table."""

    def test_prices_are_decimal_and_lowercase(self, tmp_path: Path) -> None:
        """Parse prices into Decimals keyed by lowercase address."""
        (tmp_path / "settings.yaml").write_text("""
prices:
  "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48": "0.9998"
""")

        loader = ConfigLoader(config_dir=tmp_path)
        assert loader.get_prices() == {_USDC: Decimal("0.9998")}

    def test_unquoted_address_key(self, tmp_path: Path) -> None:
        """Recover an address that YAML parsed as a hex integer."""
        (tmp_path / "settings.yaml").write_text(f"prices:\n  {_USDC}: 1\n")

        loader = ConfigLoader(config_dir=tmp_path)
        assert loader.get_prices() == {_USDC: Decimal(1)}

    def test_invalid_price_raises(self, tmp_path: Path) -> None:
        """Reject a price that is not a number."""
        (tmp_path / "settings.yaml").write_text(f'prices:\n  "{_USDC}": cheap\n')

        loader = ConfigLoader(config_dir=tmp_path)
        with pytest.raises(ConfigError, match="Invalid price"):
            loader.get_prices()

    def test_non_mapping_raises(self, tmp_path: Path) -> None:
        """Reject a prices section that is not a mapping."""
        (tmp_path / "settings.yaml").write_text("prices:\n  - 1\n")

        loader = ConfigLoader(config_dir=tmp_path)
        with pytest.raises(ConfigError, match="must be a dict"):
            loader.get_prices()


class TestIndexerConfig:
    """Test suite for building IndexerConfig."""

    def test_defaults_for_empty_file(self, tmp_path: Path) -> None:
        """Fall back to defaults for every missing key."""
        (tmp_path / "settings.yaml").write_text("environment: test")

        config = ConfigLoader(config_dir=tmp_path).get_indexer_config()
        assert config == IndexerConfig()
        assert config.gate_duplicate_events is True

    def test_reads_every_section(self, tmp_path: Path) -> None:
        """Map each settings section onto the config fields."""
        (tmp_path / "settings.yaml").write_text(f"""
database:
  url: sqlite+aiosqlite:///custom.db
chain:
  rpc_url: http://node:8545
  registry_address: "0x90E00ACE148CA3B23AC1BC8C240C2A7DD9C2D7F5"
protocol:
  id: Curve-Finance
  network: MAINNET
indexer:
  gate_duplicate_events: "false"
  display_precision: {EXPECTED_PRECISION}
""")

        config = ConfigLoader(config_dir=tmp_path).get_indexer_config()
        assert config.db_url == "sqlite+aiosqlite:///custom.db"
        assert config.rpc_url == "http://node:8545"
        assert config.registry_address == _REGISTRY
        assert config.protocol_id == "curve-finance"
        assert config.gate_duplicate_events is False
        assert config.display_precision == EXPECTED_PRECISION

    def test_invalid_precision_raises(self, tmp_path: Path) -> None:
        """Reject a non-integer display precision."""
        (tmp_path / "settings.yaml").write_text("indexer:\n  display_precision: two\n")

        with pytest.raises(ConfigError, match="display_precision"):
            ConfigLoader(config_dir=tmp_path).get_indexer_config()


class TestGetConfig:
    """Test suite for the lazy singleton get_config() function."""

    def test_returns_config_loader_instance(self) -> None:
        """Return a ConfigLoader instance on first call."""
        config_module._config = None
        try:
            result = get_config()
            assert isinstance(result, ConfigLoader)
        finally:
            config_module._config = None

    def test_returns_same_instance(self) -> None:
        """Return the same ConfigLoader on subsequent calls."""
        config_module._config = None
        try:
            first = get_config()
            second = get_config()
            assert first is second
        finally:
            config_module._config = None

"""Configuration management for the swap indexer."""

import os
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, cast

import yaml
from dotenv import load_dotenv

_DEFAULT_DB_URL = "sqlite+aiosqlite:///swap_indexer.db"
_DEFAULT_DISPLAY_PRECISION = 2


class ConfigError(Exception):
    """Raise when configuration loading or validation fails."""


def _empty_prices() -> dict[str, Decimal]:
    """Create an empty price mapping."""
    return {}


@dataclass(frozen=True)
class IndexerConfig:
    """Immutable settings for one indexer deployment.

    Attributes:
        db_url: SQLAlchemy async connection string
            (e.g. ``sqlite+aiosqlite:///swap_indexer.db``).
        rpc_url: JSON-RPC endpoint used by the web3 chain reader.
        registry_address: Registry consulted for underlying coins when a
            pool has no registry of its own.
        protocol_id: Key of the protocol singleton record.
        protocol_name: Display name stored on the protocol record.
        protocol_slug: Slug stored on the protocol record.
        network: Network name stored on the protocol record.
        gate_duplicate_events: Skip every aggregate update when the swap
            record for an event already exists.
        display_precision: Decimal places kept for USD values in log lines.
        prices: Static USD prices keyed by lowercase token address.

    """

    db_url: str = _DEFAULT_DB_URL
    rpc_url: str = ""
    registry_address: str | None = None
    protocol_id: str = "curve-finance"
    protocol_name: str = "Curve Finance"
    protocol_slug: str = "curve-finance"
    network: str = "MAINNET"
    gate_duplicate_events: bool = True
    display_precision: int = _DEFAULT_DISPLAY_PRECISION
    prices: dict[str, Decimal] = field(default_factory=_empty_prices)


def _as_bool(value: Any) -> bool:
    """Interpret YAML or env-substituted values as a boolean."""
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


class ConfigLoader:
    """Load and manage configuration from YAML files with environment variable substitution."""

    def __init__(self, config_dir: Path | None = None) -> None:
        """Initialize the config loader.

        Load environment variables from a ``.env`` file (if present) and
        then read YAML configuration from the given directory.

        Args:
            config_dir: Directory containing config files. Defaults to src/swap_indexer/config.

        """
        load_dotenv()
        if config_dir is None:
            config_dir = Path(__file__).parent.parent / "config"
        self.config_dir = Path(config_dir)
        self._config: dict[str, Any] = {}
        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from YAML files."""
        settings_file = self.config_dir / "settings.yaml"
        if settings_file.exists():
            with settings_file.open() as f:
                self._config = yaml.safe_load(f) or {}

        # Override with local settings if exists
        local_settings = self.config_dir / "settings.local.yaml"
        if local_settings.exists():
            with local_settings.open() as f:
                local_config = cast("dict[str, Any]", yaml.safe_load(f) or {})
                self._deep_merge(self._config, local_config)

        self._config = self._substitute_env_vars(self._config)

    def _deep_merge(self, base: dict[str, Any], override: dict[str, Any]) -> None:
        """Deep merge override dict into base dict.

        Args:
            base: Base dictionary to merge into (modified in place).
            override: Dictionary with values to override.

        """
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._deep_merge(base[key], cast("dict[str, Any]", value))
            else:
                base[key] = value

    def _substitute_env_vars(self, config: Any) -> Any:
        """Recursively substitute environment variables in config.

        Supports format: ${VAR_NAME:default_value} or ${VAR_NAME}

        Args:
            config: Configuration value (dict, list, or str).

        Returns:
            Configuration with environment variables substituted.

        """
        if isinstance(config, dict):
            return {
                k: self._substitute_env_vars(v)
                for k, v in config.items()  # pyright: ignore[reportUnknownVariableType]
            }
        if isinstance(config, list):
            return [
                self._substitute_env_vars(item)
                for item in config  # pyright: ignore[reportUnknownVariableType]
            ]
        if isinstance(config, str) and config.startswith("${") and config.endswith("}"):
            var_expr = config[2:-1]
            if ":" in var_expr:
                var_name, default = var_expr.split(":", 1)
            else:
                var_name, default = var_expr, None

            value = os.getenv(var_name, default)
            if value is None:
                msg = f"Required environment variable ${{{var_name}}} is not set and has no default"
                raise ConfigError(msg)
            return value

        if isinstance(config, str) and re.search(r"\$\{[^}]+\}", config):
            msg = f"Unresolved environment variable reference in: {config}"
            raise ConfigError(msg)

        return config

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by dot-notation key.

        Args:
            key: Configuration key in dot notation (e.g., 'database.url').
            default: Default value if key not found.

        Returns:
            Configuration value.

        """
        keys = key.split(".")
        current: Any = self._config
        for k in keys:
            if isinstance(current, dict):
                current = cast("dict[str, Any]", current).get(k)
                if current is None:
                    return default
            else:
                return default
        return current  # pyright: ignore[reportReturnType]

    def get_prices(self) -> dict[str, Decimal]:
        """Return the static price table keyed by lowercase token address.

        Returns:
            Mapping of token address to USD price.

        Raises:
            ConfigError: If the prices section is not a mapping or holds a
                value that is not a number.

        """
        raw: Any = self.get("prices", {})
        if not isinstance(raw, dict):
            msg = f"prices config must be a dict, got {type(raw).__name__}"
            raise ConfigError(msg)
        prices: dict[str, Decimal] = {}
        for token, price in cast("dict[Any, Any]", raw).items():
            # YAML reads an unquoted 0x... key as an int
            address = f"0x{token:040x}" if isinstance(token, int) else str(token).lower()
            try:
                prices[address] = Decimal(str(price))
            except InvalidOperation as exc:
                msg = f"Invalid price for {token}: {price!r}"
                raise ConfigError(msg) from exc
        return prices

    def get_indexer_config(self) -> IndexerConfig:
        """Build the immutable indexer settings from the loaded files.

        Returns:
            An ``IndexerConfig`` with defaults for every missing key.

        Raises:
            ConfigError: If a numeric setting cannot be parsed.

        """
        registry = self.get("chain.registry_address")
        try:
            precision = int(self.get("indexer.display_precision", _DEFAULT_DISPLAY_PRECISION))
        except (TypeError, ValueError) as exc:
            msg = "indexer.display_precision must be an integer"
            raise ConfigError(msg) from exc

        return IndexerConfig(
            db_url=str(self.get("database.url", _DEFAULT_DB_URL)),
            rpc_url=str(self.get("chain.rpc_url", "")),
            registry_address=str(registry).lower() if registry else None,
            protocol_id=str(self.get("protocol.id", "curve-finance")).lower(),
            protocol_name=str(self.get("protocol.name", "Curve Finance")),
            protocol_slug=str(self.get("protocol.slug", "curve-finance")),
            network=str(self.get("protocol.network", "MAINNET")),
            gate_duplicate_events=_as_bool(self.get("indexer.gate_duplicate_events", True)),
            display_precision=precision,
            prices=self.get_prices(),
        )


_config: ConfigLoader | None = None


def get_config() -> ConfigLoader:
    """Return the global ``ConfigLoader`` singleton, creating it on first use.

    Lazy initialisation avoids side effects (file I/O, ``load_dotenv``)
    at import time and makes testing easier.

    Returns:
        The shared ``ConfigLoader`` instance.

    """
    global _config  # noqa: PLW0603
    if _config is None:
        _config = ConfigLoader()
    return _config

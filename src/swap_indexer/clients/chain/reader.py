"""Read Curve pool, registry, and ERC-20 state over JSON-RPC with web3.

Implement the ``ChainReader`` protocol against a live node. Only the
minimal ABI fragments the indexer needs are declared. Every address is
returned lowercase to match record keys in the entity store.

web3's HTTP provider is synchronous, so each read runs in
``asyncio.to_thread()`` to avoid blocking the event loop. Transport and
RPC failures are raised as ``ChainReaderError``.
"""

import asyncio
import logging
from collections.abc import Callable
from decimal import Decimal
from typing import Any, TypeVar

from web3 import Web3
from web3.exceptions import BadFunctionCallOutput, ContractLogicError, Web3Exception

from swap_indexer.clients.chain.exceptions import ChainReaderError
from swap_indexer.core.models import ZERO, ZERO_ADDRESS, TokenMetadata

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Placeholder Curve pools use for native ETH
ETH_ADDRESS = "0xeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeee"
_ETH_METADATA = TokenMetadata(name="Ether", symbol="ETH", decimals=18)

_MAX_COINS = 8
_FEE_PRECISION = Decimal(10) ** 10

# requests' connection errors derive from OSError
_TRANSPORT_ERRORS = (Web3Exception, OSError)


def _uint_view(name: str, *, arg: str | None = None, output: str = "uint256") -> dict[str, Any]:
    """Build the ABI entry of a view function with at most one argument."""
    inputs = [{"name": "arg0", "type": arg}] if arg else []
    return {
        "name": name,
        "type": "function",
        "stateMutability": "view",
        "inputs": inputs,
        "outputs": [{"name": "", "type": output}],
    }


_POOL_ABI: list[dict[str, Any]] = [
    _uint_view("coins", arg="uint256", output="address"),
    _uint_view("balances", arg="uint256"),
    _uint_view("fee"),
    _uint_view("admin_fee"),
]

_REGISTRY_ABI: list[dict[str, Any]] = [
    _uint_view("get_underlying_coins", arg="address", output="address[8]"),
]

_ERC20_ABI: list[dict[str, Any]] = [
    _uint_view("decimals", output="uint8"),
    _uint_view("symbol", output="string"),
    _uint_view("name", output="string"),
]


class Web3ChainReader:
    """Chain reader backed by a web3 HTTP provider.

    Args:
        rpc_url: JSON-RPC endpoint URL.
        registry_address: Registry that lists the pools being indexed.

    """

    def __init__(self, rpc_url: str, registry_address: str | None = None) -> None:
        """Connect to the node.

        Args:
            rpc_url: JSON-RPC endpoint URL.
            registry_address: Registry that lists the pools being indexed.

        Raises:
            ChainReaderError: When the RPC connection cannot be established.

        """
        self._w3 = Web3(Web3.HTTPProvider(rpc_url))
        if not self._w3.is_connected():
            msg = f"Cannot connect to RPC at {rpc_url}"
            raise ChainReaderError(msg)
        self._registry_address = registry_address.lower() if registry_address else None

    async def _call(self, func: Callable[..., T], *args: Any) -> T:
        """Run a blocking read in a worker thread, wrapping node failures.

        Raises:
            ChainReaderError: When the node or the transport fails.

        """
        try:
            return await asyncio.to_thread(func, *args)
        except _TRANSPORT_ERRORS as exc:
            msg = f"Chain read {func.__name__}{args} failed: {exc}"
            raise ChainReaderError(msg) from exc

    def _contract(self, address: str, abi: list[dict[str, Any]]) -> Any:
        """Return a contract handle for ``address``."""
        return self._w3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)

    async def get_pool_coins(self, pool: str) -> list[str]:
        """Return the pool's coins, reading ``coins(i)`` until it reverts."""
        coins = await self._call(self._read_pool_coins, pool)
        if not coins:
            msg = f"Pool {pool} exposes no coins"
            raise ChainReaderError(msg)
        return coins

    def _read_pool_coins(self, pool: str) -> list[str]:
        contract = self._contract(pool, _POOL_ABI)
        coins: list[str] = []
        for index in range(_MAX_COINS):
            try:
                coin = contract.functions.coins(index).call()
            except ContractLogicError:
                break
            coins.append(str(coin).lower())
        return coins

    async def get_registry_address(self, pool: str) -> str | None:
        """Return the configured registry; every indexed pool is listed there."""
        return self._registry_address

    async def get_pool_fees(self, pool: str) -> tuple[Decimal, Decimal]:
        """Return ``(fee, admin_fee)`` scaled down from 1e10 precision."""
        return await self._call(self._read_pool_fees, pool)

    def _read_pool_fees(self, pool: str) -> tuple[Decimal, Decimal]:
        contract = self._contract(pool, _POOL_ABI)
        fee = Decimal(contract.functions.fee().call()) / _FEE_PRECISION
        try:
            admin_fee = Decimal(contract.functions.admin_fee().call()) / _FEE_PRECISION
        except ContractLogicError:
            logger.debug("Pool %s has no admin_fee(), assuming zero", pool)
            admin_fee = ZERO
        return fee, admin_fee

    async def get_underlying_coins(self, pool: str, registry: str | None) -> list[str]:
        """Return the registry's underlying coins for the pool, zero slots dropped.

        A missing registry or a reverting registry call yields an empty list.
        """
        if registry is None:
            return []
        return await self._call(self._read_underlying_coins, pool, registry)

    def _read_underlying_coins(self, pool: str, registry: str) -> list[str]:
        contract = self._contract(registry, _REGISTRY_ABI)
        try:
            coins = contract.functions.get_underlying_coins(Web3.to_checksum_address(pool)).call()
        except ContractLogicError:
            logger.debug("Registry %s has no underlying coins for %s", registry, pool)
            return []
        return [str(coin).lower() for coin in coins if str(coin).lower() != ZERO_ADDRESS]

    async def get_pool_balances(self, pool: str, count: int) -> list[int]:
        """Return ``balances(i)`` for the first ``count`` coins."""
        return await self._call(self._read_pool_balances, pool, count)

    def _read_pool_balances(self, pool: str, count: int) -> list[int]:
        contract = self._contract(pool, _POOL_ABI)
        return [int(contract.functions.balances(index).call()) for index in range(count)]

    async def get_token_metadata(self, token: str) -> TokenMetadata:
        """Return the token's ERC-20 name, symbol, and decimals."""
        if token.lower() == ETH_ADDRESS:
            return _ETH_METADATA
        return await self._call(self._read_token_metadata, token)

    def _read_token_metadata(self, token: str) -> TokenMetadata:
        contract = self._contract(token, _ERC20_ABI)
        decimals = int(contract.functions.decimals().call())
        try:
            symbol = str(contract.functions.symbol().call())
            name = str(contract.functions.name().call())
        except (BadFunctionCallOutput, ContractLogicError, ValueError):
            # bytes32 symbols (e.g. MKR) fail to decode as string
            logger.debug("Token %s has non-standard metadata", token)
            symbol = name = "UNKNOWN"
        return TokenMetadata(name=name, symbol=symbol, decimals=decimals)

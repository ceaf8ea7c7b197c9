"""Structural protocols for the collaborators the indexer reads from.

Define the ``ChainReader`` and ``PriceOracle`` interfaces that decouple the
swap pipeline from concrete ledger and pricing backends. Any class whose
shape matches these protocols can be used without explicit inheritance
(structural subtyping), which keeps tests free of network access.
"""

from decimal import Decimal
from typing import Protocol, runtime_checkable

from swap_indexer.core.models import BlockContext, TokenMetadata


@runtime_checkable
class ChainReader(Protocol):
    """Async view of pool, registry, and token state on the ledger.

    All addresses are accepted and returned as lowercase hex strings.
    Implementations signal transport or decoding failures with a
    ``SwapIndexerError`` subclass so a batch can skip the failing event.
    """

    async def get_pool_coins(self, pool: str) -> list[str]:
        """Return the pool's coins in pool-index order."""
        ...

    async def get_registry_address(self, pool: str) -> str | None:
        """Return the registry that lists the pool, or None if unknown."""
        ...

    async def get_pool_fees(self, pool: str) -> tuple[Decimal, Decimal]:
        """Return ``(trading_fee, admin_fee)`` as decimal fractions."""
        ...

    async def get_underlying_coins(self, pool: str, registry: str | None) -> list[str]:
        """Return the pool's underlying coins, or an empty list if none are exposed."""
        ...

    async def get_pool_balances(self, pool: str, count: int) -> list[int]:
        """Return the pool's current raw balances for its first ``count`` coins."""
        ...

    async def get_token_metadata(self, token: str) -> TokenMetadata:
        """Return name, symbol, and decimals for a token."""
        ...


@runtime_checkable
class PriceOracle(Protocol):
    """Source of last-known USD prices.

    Implementors decide freshness. Return ``None`` when no price is known;
    the indexer keeps whatever price it stored previously.
    """

    def get_price_usd(self, token: str, block: BlockContext) -> Decimal | None:
        """Return the token's USD price at the given block, or None."""
        ...

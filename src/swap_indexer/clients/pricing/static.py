"""Price oracle serving a fixed table of USD prices.

Useful for stablecoin-only deployments and for tests. Prices come from the
``prices`` section of the settings file and never change with the block.
"""

from collections.abc import Mapping
from decimal import Decimal

from swap_indexer.core.models import BlockContext


class StaticPriceOracle:
    """``PriceOracle`` answering from an in-memory mapping.

    Args:
        prices: USD prices keyed by token address (any case).

    """

    def __init__(self, prices: Mapping[str, Decimal]) -> None:
        """Initialize the oracle with a price table.

        Args:
            prices: USD prices keyed by token address (any case).

        """
        self._prices = {token.lower(): price for token, price in prices.items()}

    def get_price_usd(self, token: str, block: BlockContext) -> Decimal | None:
        """Return the configured price for ``token``, or None if it is not listed."""
        return self._prices.get(token.lower())

    def set_price(self, token: str, price: Decimal) -> None:
        """Add or replace the price of ``token``."""
        self._prices[token.lower()] = price

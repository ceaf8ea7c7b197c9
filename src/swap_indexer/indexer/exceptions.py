"""Exception hierarchy for swap processing errors.

A base exception class with specialised errors that carry the offending
values as attributes, so the host can log or route a failed event without
parsing messages.
"""


class SwapIndexerError(Exception):
    """Base exception for all swap processing errors."""


class MissingPriceError(SwapIndexerError):
    """A token has no last-known USD price when a swap leg is valued.

    Args:
        token_id: Address of the token without a price.

    """

    def __init__(self, token_id: str) -> None:
        """Initialize the missing price error.

        Args:
            token_id: Address of the token without a price.

        """
        super().__init__(f"No USD price available for token {token_id}")
        self.token_id = token_id


class TradeIndexError(SwapIndexerError):
    """A trade index falls outside the coin list it addresses.

    Args:
        index: The offending index.
        size: Length of the list being indexed.
        pool_id: Pool the event belongs to.

    """

    def __init__(self, index: int, size: int, pool_id: str) -> None:
        """Initialize the trade index error.

        Args:
            index: The offending index.
            size: Length of the list being indexed.
            pool_id: Pool the event belongs to.

        """
        super().__init__(f"Trade index {index} out of range for {size} coins in pool {pool_id}")
        self.index = index
        self.size = size
        self.pool_id = pool_id


class PoolStateError(SwapIndexerError):
    """Ground-truth pool state does not line up with the stored pool."""

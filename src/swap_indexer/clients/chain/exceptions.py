"""Exceptions raised by the chain reader."""

from swap_indexer.indexer.exceptions import SwapIndexerError


class ChainReaderError(SwapIndexerError):
    """Raise when the node is unreachable or a pool cannot be read."""

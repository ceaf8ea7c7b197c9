"""Web3-backed chain reader for Curve pools and registries."""

from swap_indexer.clients.chain.exceptions import ChainReaderError
from swap_indexer.clients.chain.reader import ETH_ADDRESS, Web3ChainReader

__all__ = [
    "ETH_ADDRESS",
    "ChainReaderError",
    "Web3ChainReader",
]

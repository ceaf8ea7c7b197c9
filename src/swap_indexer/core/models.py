"""Core value objects shared across the swap indexer.

Define the immutable event context (BlockContext, TransactionContext,
SwapEvent) delivered by the host, the resolved trade identity
(TradeTokens), token metadata read from the chain, and the snapshot
granularities the rollup layer maintains.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

ZERO = Decimal(0)
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

_SECONDS_PER_HOUR = 3600
_SECONDS_PER_DAY = 86400


class Granularity(Enum):
    """Time bucket widths for snapshot records, valued in seconds."""

    HOURLY = _SECONDS_PER_HOUR
    DAILY = _SECONDS_PER_DAY


@dataclass(frozen=True)
class BlockContext:
    """Block in which an event was emitted.

    Attributes:
        number: Block height.
        timestamp: Block timestamp in Unix seconds.

    """

    number: int
    timestamp: int


@dataclass(frozen=True)
class TransactionContext:
    """Position of an event within the ledger.

    Attributes:
        hash: Transaction hash as a ``0x``-prefixed hex string.
        log_index: Position of the event log within the transaction.

    """

    hash: str
    log_index: int


@dataclass(frozen=True)
class SwapEvent:
    """A decoded ``TokenExchange`` event as delivered by the event source.

    ``sold_id`` and ``bought_id`` index into the pool's own coin list, or
    into the registry's underlying coin list when ``underlying`` is set.
    Amounts are raw integers in each token's smallest unit.
    """

    pool_address: str
    sold_id: int
    amount_in: int
    bought_id: int
    amount_out: int
    buyer: str
    transaction: TransactionContext
    block: BlockContext
    underlying: bool = False


@dataclass(frozen=True)
class TradeTokens:
    """Asset identities resolved for the two legs of a swap."""

    token_in: str
    token_out: str


@dataclass(frozen=True)
class TokenMetadata:
    """ERC-20 metadata read from the chain for a token address."""

    name: str
    symbol: str
    decimals: int

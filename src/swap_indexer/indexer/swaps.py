"""Persist the canonical record of a swap event exactly once."""

import logging
from decimal import Decimal

from swap_indexer.core.models import BlockContext, TransactionContext
from swap_indexer.store.models import LiquidityPool, Swap, Token
from swap_indexer.store.repository import UnitOfWork

logger = logging.getLogger(__name__)


def swap_id(transaction: TransactionContext) -> str:
    """Return the record key ``swap-<txHash>-<logIndex>`` for an event."""
    return f"swap-{transaction.hash.lower()}-{transaction.log_index}"


async def create_swap_transaction(  # noqa: PLR0913
    uow: UnitOfWork,
    pool: LiquidityPool,
    token_in: Token,
    amount_in: int,
    amount_in_usd: Decimal,
    token_out: Token,
    amount_out: int,
    amount_out_usd: Decimal,
    buyer: str,
    transaction: TransactionContext,
    block: BlockContext,
) -> tuple[Swap, bool]:
    """Return the swap record for an event, creating it if it does not exist.

    An existing record is returned unchanged, whatever values were passed
    this time.

    Returns:
        The record and whether it was created by this call.

    """
    key = swap_id(transaction)
    existing = await uow.load(Swap, key)
    if existing is not None:
        logger.debug("Swap %s already recorded", key)
        return existing, False

    swap = Swap(
        id=key,
        hash=transaction.hash.lower(),
        log_index=transaction.log_index,
        protocol=pool.protocol,
        pool=pool.id,
        to_address=pool.id,
        from_address=buyer.lower(),
        token_in=token_in.id,
        amount_in=amount_in,
        amount_in_usd=amount_in_usd,
        token_out=token_out.id,
        amount_out=amount_out,
        amount_out_usd=amount_out_usd,
        timestamp=block.timestamp,
        block_number=block.number,
    )
    await uow.save(swap)
    return swap, True

"""Entry point that folds one swap event into every aggregate.

``SwapProcessor.process_swap`` resolves the traded tokens, values both
legs, records the swap, refreshes the pool, and rolls the trade up into
revenue, volume and usage snapshots and protocol TVL. The whole sequence
runs in one store transaction, so an event either lands completely or not
at all.
"""

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass

from swap_indexer.core.config import IndexerConfig
from swap_indexer.core.models import BlockContext, SwapEvent
from swap_indexer.core.protocols import ChainReader, PriceOracle
from swap_indexer.indexer.exceptions import SwapIndexerError
from swap_indexer.indexer.initializers import (
    get_or_create_pool,
    get_or_create_protocol,
    get_or_create_token,
)
from swap_indexer.indexer.metrics import (
    record_swap_occurred,
    update_protocol_revenue,
    update_protocol_total_value_locked,
    update_snapshots_volume,
    update_token_volume,
)
from swap_indexer.indexer.pool_state import update_pool_after_swap
from swap_indexer.indexer.resolver import resolve_trade_tokens
from swap_indexer.indexer.swaps import create_swap_transaction
from swap_indexer.indexer.valuation import amount_to_usd, calculate_average, truncate
from swap_indexer.store.models import Swap
from swap_indexer.store.repository import EntityStore

logger = logging.getLogger(__name__)


@dataclass
class ProcessingReport:
    """Outcome counts for a sequence of events.

    Attributes:
        processed: Events folded into the aggregates.
        skipped: Events that resolved to no trade because the pool
            exposes no underlying coins.
        failed: Events rejected with a ``SwapIndexerError``.

    """

    processed: int = 0
    skipped: int = 0
    failed: int = 0


class SwapProcessor:
    """Apply swap events to the entity store one at a time.

    Calls are serialised by an internal lock, so concurrent callers never
    interleave the read-modify-write of shared pool, protocol, and
    snapshot records.

    Args:
        store: Entity store holding every record.
        chain: Reader for pool, registry, and token state.
        oracle: Source of last-known USD prices.
        config: Deployment settings.

    """

    def __init__(
        self,
        store: EntityStore,
        chain: ChainReader,
        oracle: PriceOracle,
        config: IndexerConfig,
    ) -> None:
        """Initialize the processor with its collaborators.

        Args:
            store: Entity store holding every record.
            chain: Reader for pool, registry, and token state.
            oracle: Source of last-known USD prices.
            config: Deployment settings.

        """
        self._store = store
        self._chain = chain
        self._oracle = oracle
        self._config = config
        self._lock = asyncio.Lock()

    async def process_swap(self, event: SwapEvent) -> Swap | None:
        """Fold a single swap event into the store.

        Steps:
            1. Load or create the protocol and the pool.
            2. Resolve the in and out tokens; stop if the pool exposes no
               underlying coins.
            3. Value both legs in USD.
            4. Record the swap (no-op if already recorded).
            5. Refresh pool balances, weights, TVL, and cumulative volume.
            6. Update token volume, revenue, volume snapshots, usage
               counters, and protocol TVL.

        Args:
            event: The decoded swap event.

        Returns:
            The swap record, or ``None`` when the event was skipped
            because no underlying coins could be resolved.

        Raises:
            MissingPriceError: If either leg's token has no USD price.
            TradeIndexError: If an index is outside its coin list.
            PoolStateError: If the chain's balances do not match the pool.

        """
        async with self._lock, self._store.unit_of_work() as uow:
            block = event.block
            protocol = await get_or_create_protocol(uow, self._config)
            pool = await get_or_create_pool(
                uow,
                event.pool_address,
                protocol,
                self._chain,
                self._oracle,
                block,
                default_registry=self._config.registry_address,
            )

            trade = await resolve_trade_tokens(
                pool,
                event.sold_id,
                event.bought_id,
                underlying=event.underlying,
                chain=self._chain,
            )
            if trade is None:
                uow.discard()
                return None

            token_in = await get_or_create_token(
                uow, trade.token_in, self._chain, self._oracle, block
            )
            amount_in_usd = amount_to_usd(event.amount_in, token_in)
            token_out = await get_or_create_token(
                uow, trade.token_out, self._chain, self._oracle, block
            )
            amount_out_usd = amount_to_usd(event.amount_out, token_out)

            swap, created = await create_swap_transaction(
                uow,
                pool,
                token_in,
                event.amount_in,
                amount_in_usd,
                token_out,
                event.amount_out,
                amount_out_usd,
                event.buyer,
                event.transaction,
                block,
            )
            if not created and self._config.gate_duplicate_events:
                logger.warning("Duplicate swap event %s, aggregates left unchanged", swap.id)
                return swap

            volume_usd = calculate_average([amount_in_usd, amount_out_usd])
            await update_pool_after_swap(uow, pool, volume_usd, self._chain, self._oracle, block)

            await update_token_volume(
                uow, pool, token_in.id, event.amount_in, amount_in_usd, block
            )
            await update_token_volume(
                uow, pool, token_out.id, event.amount_out, amount_out_usd, block
            )
            await update_protocol_revenue(uow, protocol, pool, volume_usd, block)
            await update_snapshots_volume(uow, protocol, pool, volume_usd, block)
            await record_swap_occurred(uow, protocol, block)
            await update_protocol_total_value_locked(uow, protocol, block)

        places = self._config.display_precision
        logger.info(
            "Swap in pool %s: %s -> %s (in $%s, out $%s, underlying=%s, tx %s)",
            pool.id,
            token_in.id,
            token_out.id,
            truncate(amount_in_usd, places),
            truncate(amount_out_usd, places),
            event.underlying,
            event.transaction.hash,
        )
        return swap

    async def record_swap_occurred(self, block: BlockContext) -> None:
        """Count one swap in the usage snapshots without touching any pool."""
        async with self._lock, self._store.unit_of_work() as uow:
            protocol = await get_or_create_protocol(uow, self._config)
            await record_swap_occurred(uow, protocol, block)

    async def process_events(self, events: Iterable[SwapEvent]) -> ProcessingReport:
        """Process events in the given order, isolating failures per event.

        A ``SwapIndexerError``, including a ``ChainReaderError`` from the
        node, rolls back only the failing event. It is logged and counted
        and the remaining events are still processed.

        Args:
            events: Events in ledger order.

        Returns:
            A ``ProcessingReport`` with outcome counts.

        """
        report = ProcessingReport()
        for event in events:
            try:
                swap = await self.process_swap(event)
            except SwapIndexerError:
                logger.warning(
                    "Failed to process swap %s-%d",
                    event.transaction.hash,
                    event.transaction.log_index,
                    exc_info=True,
                )
                report.failed += 1
                continue
            if swap is None:
                report.skipped += 1
            else:
                report.processed += 1
        return report

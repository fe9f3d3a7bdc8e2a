"""
Block ingestion orchestrator: the only writer of the cursor and the ledger.

One pass fetches "latest", resolves the start height from the cursor and walks
start..latest ascending. Each block records subscribed endpoints into the
ledger and then advances the cursor to that block. Any failure aborts the pass with the
cursor left at the last fully recorded height, so the next pass re-walks from
there; per-address dedup makes the re-walk harmless.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass

from backend_txwatch.core.exceptions import GatewayProtocolError, IngestionError
from backend_txwatch.database.base import AddressRegistry, BlockCursorStore, TransactionLedger
from backend_txwatch.eth_listener.gateway import ChainGateway
from backend_txwatch.eth_listener.models import TAG_LATEST, format_block_tag, parse_hex_height
from backend_txwatch.txwatch_logging import get_logger

logger = get_logger(__name__)


@dataclass
class PassResult:
    """Summary of one ingestion pass."""

    start_height: int
    latest_height: int
    last_recorded_height: int | None
    """Cursor value when the pass returned."""
    blocks_processed: int = 0
    transactions_recorded: int = 0
    cancelled: bool = False

    def to_dict(self) -> dict[str, int | bool | None]:
        return {
            "start_height": self.start_height,
            "latest_height": self.latest_height,
            "last_recorded_height": self.last_recorded_height,
            "blocks_processed": self.blocks_processed,
            "transactions_recorded": self.transactions_recorded,
            "cancelled": self.cancelled,
        }


class IngestionOrchestrator:
    """
    Walks new blocks and files matching transactions per subscribed address.

    Passes are serialized by an internal lock held for the whole pass, so two
    callers invoking run_ingestion_pass() concurrently run one after the other
    instead of racing on the cursor.
    """

    def __init__(
        self,
        gateway: ChainGateway,
        registry: AddressRegistry,
        cursor: BlockCursorStore,
        ledger: TransactionLedger,
    ) -> None:
        self._gateway = gateway
        self._registry = registry
        self._cursor = cursor
        self._ledger = ledger
        self._pass_lock = threading.Lock()

    def run_ingestion_pass(self, stop_event: threading.Event | None = None) -> PassResult:
        """
        Run one pass from the cursor (inclusive) through the current chain head.

        stop_event is checked before each block fetch; when set, the pass returns
        early with cancelled=True and the cursor at the last recorded block.

        Raises:
            IngestionError: fetching/parsing "latest" failed (height="latest") or
                block `height` could not be fetched or recorded. The underlying
                gateway or storage error is chained as __cause__.
        """
        with self._pass_lock:
            latest = self._resolve_latest()
            start = self.get_start_height(latest)
            result = PassResult(
                start_height=start,
                latest_height=latest,
                last_recorded_height=self._cursor.get_current_height(),
            )

            for height in range(start, latest + 1):
                if stop_event is not None and stop_event.is_set():
                    result.cancelled = True
                    logger.info(
                        "ingestion_pass_cancelled",
                        next_block=height,
                        last_recorded_block=result.last_recorded_height,
                    )
                    break
                try:
                    saved = self.process_block(height)
                except Exception as e:
                    logger.error(
                        "block_processing_failed",
                        block_number=height,
                        error=str(e),
                    )
                    raise IngestionError(
                        f"error processing block {height}: {e}", height=height
                    ) from e
                self._advance_cursor(height)
                result.last_recorded_height = height
                result.blocks_processed += 1
                result.transactions_recorded += saved

            logger.info(
                "new_blocks_processed",
                start_block=start,
                end_block=latest,
                blocks_processed=result.blocks_processed,
                transactions_recorded=result.transactions_recorded,
                cancelled=result.cancelled,
            )
            return result

    def get_start_height(self, default_if_empty: int) -> int:
        """Cursor height (re-walked inclusively), or default_if_empty on first run."""
        current = self._cursor.get_current_height()
        if current is None:
            logger.info("current_block_number_not_set", start_block=default_if_empty)
            return default_if_empty
        return current

    def process_block(self, height: int) -> int:
        """
        Fetch block `height` and record each transaction for every subscribed
        endpoint not already queued under that address. Returns the number of
        queue entries added.
        """
        tag = format_block_tag(height)
        block = self._gateway.fetch_block(tag)
        if block.height != height:
            raise GatewayProtocolError(
                f"requested block {tag}, node returned {block.number}", tag=tag
            )

        saved = 0
        for tx in block.transactions:
            for address in tx.endpoints():
                if not self._registry.is_subscribed(address):
                    continue
                if self._ledger.record_if_absent(address, tx):
                    saved += 1
                    logger.info(
                        "block_transaction_saved",
                        block_number=height,
                        address=address,
                        transaction_hash=tx.hash,
                    )

        logger.info(
            "block_transactions_processed",
            block_number=height,
            transaction_count=len(block.transactions),
            saved=saved,
        )
        return saved

    def _resolve_latest(self) -> int:
        try:
            block = self._gateway.fetch_block(TAG_LATEST)
            return parse_hex_height(block.number, tag=TAG_LATEST)
        except Exception as e:
            logger.error("latest_block_fetch_failed", block_number=TAG_LATEST, error=str(e))
            raise IngestionError(
                f"error fetching latest block for monitoring: {e}", height=TAG_LATEST
            ) from e

    def _advance_cursor(self, height: int) -> None:
        previous = self._cursor.get_current_height()
        if previous is not None and height < previous:
            # Never move backwards; the stored start height makes this unreachable in a pass.
            return
        self._cursor.set_current_height(height)

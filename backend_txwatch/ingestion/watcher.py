"""
TransactionWatcher: consumer-facing surface over the stores and orchestrator.

Subscribe addresses, poll the current block, drain per-address queues and run
ingestion passes. All state is injected; build_watcher() wires the gateway and
storage engine from Settings.
"""

from __future__ import annotations

import threading

from backend_txwatch.config.settings import Settings
from backend_txwatch.database import Storage, get_storage
from backend_txwatch.database.base import AddressRegistry, BlockCursorStore, TransactionLedger
from backend_txwatch.eth_listener.gateway import ChainGateway, EthereumRPCGateway
from backend_txwatch.eth_listener.models import Transaction
from backend_txwatch.ingestion.orchestrator import IngestionOrchestrator, PassResult
from backend_txwatch.txwatch_logging import get_logger

logger = get_logger(__name__)


class TransactionWatcher:
    """
    Facade used by the worker, the HTTP API and tests.

    Reads (subscribe, drain, current block) may run from any thread while a
    pass is in progress; each store has its own lock.
    """

    def __init__(
        self,
        orchestrator: IngestionOrchestrator,
        registry: AddressRegistry,
        cursor: BlockCursorStore,
        ledger: TransactionLedger,
    ) -> None:
        self._orchestrator = orchestrator
        self._registry = registry
        self._cursor = cursor
        self._ledger = ledger

    @classmethod
    def from_components(cls, gateway: ChainGateway, storage: Storage) -> "TransactionWatcher":
        orchestrator = IngestionOrchestrator(gateway, storage.registry, storage.cursor, storage.ledger)
        return cls(orchestrator, storage.registry, storage.cursor, storage.ledger)

    def subscribe(self, address: str) -> bool:
        added = self._registry.subscribe(address)
        if added:
            logger.info("address_subscribed", address=address)
        else:
            logger.warning("address_already_subscribed", address=address)
        return added

    def is_subscribed(self, address: str) -> bool:
        return self._registry.is_subscribed(address)

    def subscriptions(self) -> list[str]:
        return self._registry.addresses()

    def current_height(self) -> int:
        """Last fully ingested block, or 0 if nothing was ingested yet (see cursor_height)."""
        height = self._cursor.get_current_height()
        return 0 if height is None else height

    def cursor_height(self) -> int | None:
        """Last fully ingested block, or None if the cursor was never set."""
        return self._cursor.get_current_height()

    def drain_transactions(self, address: str) -> list[Transaction]:
        """Return and forget every queued transaction for address, oldest first."""
        transactions = self._ledger.fetch_and_clear(address)
        logger.info("transactions_drained", address=address, count=len(transactions))
        return transactions

    def pending_count(self, address: str) -> int:
        return self._ledger.pending_count(address)

    def run_ingestion_pass(self, stop_event: threading.Event | None = None) -> PassResult:
        return self._orchestrator.run_ingestion_pass(stop_event)


def build_watcher(settings: Settings, *, gateway: ChainGateway | None = None) -> TransactionWatcher:
    """Build a watcher from settings; subscribes settings.watch_addresses."""
    if gateway is None:
        gateway = EthereumRPCGateway(settings.rpc_url, request_timeout_sec=settings.rpc_timeout_sec)
    storage = get_storage(settings.storage_backend, settings.db_path)
    watcher = TransactionWatcher.from_components(gateway, storage)
    for address in settings.watch_addresses:
        watcher.subscribe(address)
    return watcher

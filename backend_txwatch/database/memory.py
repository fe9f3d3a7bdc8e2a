"""
In-memory storage engine: lock-guarded dict/list structures.

State is lost on restart; a fresh process starts with no cursor and therefore
begins at the chain head.
"""

from __future__ import annotations

import threading

from backend_txwatch.database.base import AddressRegistry, BlockCursorStore, TransactionLedger
from backend_txwatch.eth_listener.models import Transaction
from backend_txwatch.txwatch_logging import get_logger

logger = get_logger(__name__)


class InMemoryAddressRegistry(AddressRegistry):
    def __init__(self) -> None:
        # dict keeps insertion order and gives O(1) membership
        self._addresses: dict[str, None] = {}
        self._lock = threading.Lock()

    def subscribe(self, address: str) -> bool:
        with self._lock:
            if address in self._addresses:
                return False
            self._addresses[address] = None
            return True

    def is_subscribed(self, address: str) -> bool:
        with self._lock:
            return address in self._addresses

    def addresses(self) -> list[str]:
        with self._lock:
            return list(self._addresses)


class InMemoryBlockCursorStore(BlockCursorStore):
    def __init__(self) -> None:
        self._height: int | None = None
        self._lock = threading.Lock()

    def get_current_height(self) -> int | None:
        with self._lock:
            return self._height

    def set_current_height(self, height: int) -> None:
        with self._lock:
            self._height = height
        logger.debug("current_block_number_set", block_number=height)


class InMemoryTransactionLedger(TransactionLedger):
    """Single coarse lock over the address -> queue mapping; queues are expected to stay small."""

    def __init__(self) -> None:
        self._queues: dict[str, list[Transaction]] = {}
        self._lock = threading.Lock()

    def record_for_address(self, address: str, transaction: Transaction) -> None:
        with self._lock:
            self._queues.setdefault(address, []).append(transaction)

    def exists(self, address: str, tx_hash: str) -> bool:
        with self._lock:
            return self._exists_locked(address, tx_hash)

    def record_if_absent(self, address: str, transaction: Transaction) -> bool:
        with self._lock:
            if self._exists_locked(address, transaction.hash):
                return False
            self._queues.setdefault(address, []).append(transaction)
            return True

    def fetch_and_clear(self, address: str) -> list[Transaction]:
        with self._lock:
            return self._queues.pop(address, [])

    def pending_count(self, address: str) -> int:
        with self._lock:
            return len(self._queues.get(address, ()))

    def _exists_locked(self, address: str, tx_hash: str) -> bool:
        return any(tx.hash == tx_hash for tx in self._queues.get(address, ()))

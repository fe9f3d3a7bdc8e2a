"""
Storage contracts for the three pieces of watcher state.

Address registry (subscription set), block cursor (last fully ingested height)
and transaction ledger (per-address queues of undelivered transactions). Each
implementation guards its own state with its own lock; no lock spans two stores.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from backend_txwatch.eth_listener.models import Transaction


class AddressRegistry(ABC):
    """Set of subscribed addresses. Addresses are opaque and case-sensitive."""

    @abstractmethod
    def subscribe(self, address: str) -> bool:
        """Add address if absent. Return True if newly added, False if already subscribed."""
        ...

    @abstractmethod
    def is_subscribed(self, address: str) -> bool:
        """Membership test; no side effects."""
        ...

    @abstractmethod
    def addresses(self) -> list[str]:
        """Snapshot of subscribed addresses in subscription order."""
        ...


class BlockCursorStore(ABC):
    """Height of the last block whose transactions are fully recorded."""

    @abstractmethod
    def get_current_height(self) -> int | None:
        """Return the stored height, or None if nothing has been ingested yet."""
        ...

    @abstractmethod
    def set_current_height(self, height: int) -> None:
        """Overwrite the stored height. Monotonicity is the caller's responsibility."""
        ...


class TransactionLedger(ABC):
    """Per-address FIFO queues of ingested, not yet drained transactions."""

    @abstractmethod
    def record_for_address(self, address: str, transaction: Transaction) -> None:
        """Append to the address queue. Does not dedup; see record_if_absent."""
        ...

    @abstractmethod
    def exists(self, address: str, tx_hash: str) -> bool:
        """True if a transaction with tx_hash is still queued for address."""
        ...

    @abstractmethod
    def record_if_absent(self, address: str, transaction: Transaction) -> bool:
        """
        Atomically append unless a queued entry for address already has the same
        hash. Returns True when appended. Drained hashes are forgotten, so the
        same transaction may be queued again after a drain.
        """
        ...

    @abstractmethod
    def fetch_and_clear(self, address: str) -> list[Transaction]:
        """Atomically return the address queue (insertion order) and empty it."""
        ...

    @abstractmethod
    def pending_count(self, address: str) -> int:
        """Number of queued transactions for address; non-destructive."""
        ...

"""
Storage layer: address registry, block cursor and transaction ledger.

Two engines share the contracts in base.py: in-memory (default) and SQLite
(durable cursor across restarts). get_storage() builds the three stores.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from backend_txwatch.database.base import AddressRegistry, BlockCursorStore, TransactionLedger
from backend_txwatch.database.memory import (
    InMemoryAddressRegistry,
    InMemoryBlockCursorStore,
    InMemoryTransactionLedger,
)
from backend_txwatch.database.sqlite import (
    SQLiteAddressRegistry,
    SQLiteBlockCursorStore,
    SQLiteTransactionLedger,
)

STORAGE_MEMORY = "memory"
STORAGE_SQLITE = "sqlite"


@dataclass
class Storage:
    """The three independently locked stores a watcher is built from."""

    registry: AddressRegistry
    cursor: BlockCursorStore
    ledger: TransactionLedger


def get_storage(backend: str = STORAGE_MEMORY, path: str | Path | None = None) -> Storage:
    """
    Return fresh stores for `backend` ("memory" or "sqlite").

    path: SQLite file (e.g. "data/txwatch.db"); default "txwatch.db" in cwd.
    Each call to the memory backend returns independent, empty state.
    """
    if backend == STORAGE_MEMORY:
        return Storage(
            registry=InMemoryAddressRegistry(),
            cursor=InMemoryBlockCursorStore(),
            ledger=InMemoryTransactionLedger(),
        )
    if backend == STORAGE_SQLITE:
        db_path = Path(path) if path is not None else Path("txwatch.db")
        return Storage(
            registry=SQLiteAddressRegistry(db_path),
            cursor=SQLiteBlockCursorStore(db_path),
            ledger=SQLiteTransactionLedger(db_path),
        )
    raise ValueError(f"unknown storage backend: {backend!r}")


__all__ = [
    "AddressRegistry",
    "BlockCursorStore",
    "InMemoryAddressRegistry",
    "InMemoryBlockCursorStore",
    "InMemoryTransactionLedger",
    "SQLiteAddressRegistry",
    "SQLiteBlockCursorStore",
    "SQLiteTransactionLedger",
    "STORAGE_MEMORY",
    "STORAGE_SQLITE",
    "Storage",
    "TransactionLedger",
    "get_storage",
]

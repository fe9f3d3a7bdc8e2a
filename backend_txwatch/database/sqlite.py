"""
SQLite storage engine: subscriptions, block cursor and ledger queues in one file.

One connection per operation (WAL journal), schema created on construction.
The cursor table holds at most one row; no row means "not set", which keeps
genesis height 0 distinct from a fresh database. An in-process lock per store
serializes compound operations (check-and-insert, read-and-delete).
"""

from __future__ import annotations

import sqlite3
import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from backend_txwatch.database.base import AddressRegistry, BlockCursorStore, TransactionLedger
from backend_txwatch.eth_listener.models import Transaction
from backend_txwatch.txwatch_logging import get_logger

logger = get_logger(__name__)

# -----------------------------------------------------------------------------
# Schema
# -----------------------------------------------------------------------------

SCHEMA_SUBSCRIPTIONS = """
CREATE TABLE IF NOT EXISTS subscriptions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    address TEXT NOT NULL UNIQUE,
    created_at INTEGER
);
"""

SCHEMA_BLOCK_CURSOR = """
CREATE TABLE IF NOT EXISTS block_cursor (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    height INTEGER NOT NULL,
    updated_at INTEGER
);
"""

SCHEMA_LEDGER = """
CREATE TABLE IF NOT EXISTS ledger (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    address TEXT NOT NULL,
    tx_hash TEXT NOT NULL,
    sender TEXT NOT NULL,
    receiver TEXT,
    value TEXT NOT NULL,
    created_at INTEGER
);
CREATE INDEX IF NOT EXISTS ix_ledger_address ON ledger(address);
CREATE INDEX IF NOT EXISTS ix_ledger_address_hash ON ledger(address, tx_hash);
"""


class _SQLiteFile:
    """Connection helper shared by the three stores."""

    def __init__(self, path: str | Path, *, timeout_sec: float = 5.0) -> None:
        self._path = Path(path)
        self._timeout_sec = timeout_sec

    def _connect(self) -> sqlite3.Connection:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self._path), timeout=self._timeout_sec)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode = WAL")
        return conn

    @contextmanager
    def cursor(self, *, immediate: bool = False) -> Iterator[sqlite3.Cursor]:
        conn = self._connect()
        try:
            if immediate:
                conn.execute("BEGIN IMMEDIATE")
            cur = conn.cursor()
            yield cur
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def ensure_schema(self) -> None:
        conn = self._connect()
        try:
            for stmt in (SCHEMA_SUBSCRIPTIONS, SCHEMA_BLOCK_CURSOR, SCHEMA_LEDGER):
                conn.executescript(stmt)
            conn.commit()
        finally:
            conn.close()


class SQLiteAddressRegistry(AddressRegistry):
    def __init__(self, path: str | Path) -> None:
        self._db = _SQLiteFile(path)
        self._db.ensure_schema()
        self._lock = threading.Lock()

    def subscribe(self, address: str) -> bool:
        with self._lock, self._db.cursor() as cur:
            cur.execute(
                "INSERT OR IGNORE INTO subscriptions (address, created_at) VALUES (?, ?)",
                (address, int(time.time())),
            )
            return cur.rowcount == 1

    def is_subscribed(self, address: str) -> bool:
        with self._lock, self._db.cursor() as cur:
            cur.execute("SELECT 1 FROM subscriptions WHERE address = ?", (address,))
            return cur.fetchone() is not None

    def addresses(self) -> list[str]:
        with self._lock, self._db.cursor() as cur:
            cur.execute("SELECT address FROM subscriptions ORDER BY id")
            return [row["address"] for row in cur.fetchall()]


class SQLiteBlockCursorStore(BlockCursorStore):
    def __init__(self, path: str | Path) -> None:
        self._db = _SQLiteFile(path)
        self._db.ensure_schema()
        self._lock = threading.Lock()

    def get_current_height(self) -> int | None:
        with self._lock, self._db.cursor() as cur:
            cur.execute("SELECT height FROM block_cursor WHERE id = 1")
            row = cur.fetchone()
        return None if row is None else int(row["height"])

    def set_current_height(self, height: int) -> None:
        with self._lock, self._db.cursor() as cur:
            cur.execute(
                """
                INSERT INTO block_cursor (id, height, updated_at) VALUES (1, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    height = excluded.height,
                    updated_at = excluded.updated_at
                """,
                (height, int(time.time())),
            )
        logger.debug("current_block_number_set", block_number=height)


class SQLiteTransactionLedger(TransactionLedger):
    def __init__(self, path: str | Path) -> None:
        self._db = _SQLiteFile(path)
        self._db.ensure_schema()
        self._lock = threading.Lock()

    def record_for_address(self, address: str, transaction: Transaction) -> None:
        with self._lock, self._db.cursor() as cur:
            self._insert(cur, address, transaction)

    def exists(self, address: str, tx_hash: str) -> bool:
        with self._lock, self._db.cursor() as cur:
            cur.execute(
                "SELECT 1 FROM ledger WHERE address = ? AND tx_hash = ? LIMIT 1",
                (address, tx_hash),
            )
            return cur.fetchone() is not None

    def record_if_absent(self, address: str, transaction: Transaction) -> bool:
        with self._lock, self._db.cursor(immediate=True) as cur:
            cur.execute(
                "SELECT 1 FROM ledger WHERE address = ? AND tx_hash = ? LIMIT 1",
                (address, transaction.hash),
            )
            if cur.fetchone() is not None:
                return False
            self._insert(cur, address, transaction)
            return True

    def fetch_and_clear(self, address: str) -> list[Transaction]:
        with self._lock, self._db.cursor(immediate=True) as cur:
            cur.execute(
                "SELECT tx_hash, sender, receiver, value FROM ledger WHERE address = ? ORDER BY id",
                (address,),
            )
            rows = cur.fetchall()
            cur.execute("DELETE FROM ledger WHERE address = ?", (address,))
        return [
            Transaction(
                hash=row["tx_hash"],
                sender=row["sender"],
                receiver=row["receiver"],
                value=row["value"],
            )
            for row in rows
        ]

    def pending_count(self, address: str) -> int:
        with self._lock, self._db.cursor() as cur:
            cur.execute("SELECT COUNT(*) AS n FROM ledger WHERE address = ?", (address,))
            return int(cur.fetchone()["n"])

    @staticmethod
    def _insert(cur: sqlite3.Cursor, address: str, transaction: Transaction) -> None:
        cur.execute(
            """
            INSERT INTO ledger (address, tx_hash, sender, receiver, value, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                address,
                transaction.hash,
                transaction.sender,
                transaction.receiver,
                transaction.value,
                int(time.time()),
            ),
        )

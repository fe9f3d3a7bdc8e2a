"""
Pytest fixtures for TxWatch tests: scripted fake gateway, in-memory watcher,
temporary SQLite path.
"""

from __future__ import annotations

from typing import Any

import pytest

from backend_txwatch.core.exceptions import GatewayUnavailableError
from backend_txwatch.database import get_storage
from backend_txwatch.eth_listener.models import TAG_LATEST, Block, format_block_tag
from backend_txwatch.ingestion.watcher import TransactionWatcher

ADDR_1 = "0xa1a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1a1"
ADDR_2 = "0xa2a2a2a2a2a2a2a2a2a2a2a2a2a2a2a2a2a2a2a2"
ADDR_3 = "0xa3a3a3a3a3a3a3a3a3a3a3a3a3a3a3a3a3a3a3a3"


def rpc_tx(tx_hash: str, sender: str, receiver: str | None, value: str = "0x0") -> dict[str, Any]:
    """Build a transaction object as eth_getBlockByNumber returns it."""
    return {"hash": tx_hash, "from": sender, "to": receiver, "value": value}


def rpc_block(height: int, txs: list[dict[str, Any]] | None = None) -> dict[str, Any]:
    return {"number": format_block_tag(height), "transactions": list(txs or [])}


class FakeGateway:
    """
    Serves scripted blocks. `latest` is the chain head; blocks without a script
    are empty. Heights in `failures` raise the mapped exception once per entry.
    """

    def __init__(self, latest: int, blocks: dict[int, list[dict[str, Any]]] | None = None) -> None:
        self.latest = latest
        self.blocks = dict(blocks or {})
        self.failures: dict[int | str, Exception] = {}
        self.calls: list[str] = []

    def fetch_block(self, height_or_tag: str) -> Block:
        self.calls.append(height_or_tag)
        key: int | str = TAG_LATEST if height_or_tag == TAG_LATEST else int(height_or_tag, 16)
        if key in self.failures:
            raise self.failures.pop(key)
        height = self.latest if key == TAG_LATEST else key
        return Block.from_rpc_result(rpc_block(height, self.blocks.get(height)), tag=height_or_tag)

    def fail_at(self, height: int | str, exc: Exception | None = None) -> None:
        self.failures[height] = exc or GatewayUnavailableError("ethereum server is unavailable")

    def fetched_heights(self) -> list[int]:
        return [int(c, 16) for c in self.calls if c != TAG_LATEST]


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway(latest=0)


@pytest.fixture
def storage():
    return get_storage("memory")


@pytest.fixture
def watcher(gateway, storage) -> TransactionWatcher:
    return TransactionWatcher.from_components(gateway, storage)


@pytest.fixture
def sqlite_path(tmp_path):
    return tmp_path / "txwatch.db"


@pytest.fixture
def client(watcher):
    """TestClient over an app bound to the in-memory watcher; passes are driven by the test."""
    from fastapi.testclient import TestClient

    from backend_txwatch.api_server.server import create_app
    from backend_txwatch.config import Settings

    app = create_app(watcher, settings=Settings(), start_ingestion=False)
    with TestClient(app) as c:
        yield c

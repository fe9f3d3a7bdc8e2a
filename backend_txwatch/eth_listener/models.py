"""
Data models for Ethereum gateway output.

Blocks and transactions as returned by eth_getBlockByNumber with full
transaction objects. Hex strings (hash, value, block number) are preserved
verbatim; only the block number is decoded, and only where the walk needs it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from backend_txwatch.core.exceptions import BlockHeightParseError, GatewayProtocolError

TAG_LATEST = "latest"

_HEX_QUANTITY = re.compile(r"0x[0-9a-fA-F]+")


def parse_hex_height(value: Any, *, tag: str | None = None) -> int:
    """Decode a 0x-prefixed hex quantity (e.g. "0x1b4") into a non-negative int."""
    if not isinstance(value, str) or not _HEX_QUANTITY.fullmatch(value):
        raise BlockHeightParseError(value, tag=tag)
    return int(value[2:], 16)


def format_block_tag(height: int) -> str:
    """Encode a height as an RPC block tag: lowercase hex, 0x prefix, no leading zeros."""
    if height < 0:
        raise ValueError(f"block height must be non-negative, got {height}")
    return hex(height)


@dataclass(frozen=True)
class Transaction:
    """
    Transaction as seen by subscribers.

    `receiver` is None for contract-creation transactions; such a transaction
    is never attributed to any address on the receiving side.
    """

    hash: str
    sender: str
    receiver: str | None
    value: str

    @classmethod
    def from_rpc_item(cls, item: dict[str, Any]) -> "Transaction":
        """Build from one entry of a block's `transactions` array."""
        to = item.get("to")
        return cls(
            hash=item["hash"],
            sender=item["from"],
            receiver=to or None,
            value=item["value"],
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-RPC shaped dict (from / to keys)."""
        return {
            "hash": self.hash,
            "from": self.sender,
            "to": self.receiver,
            "value": self.value,
        }

    def endpoints(self) -> tuple[str, ...]:
        """Present endpoint addresses in (from, to) order; absent `to` is skipped."""
        if self.receiver is None:
            return (self.sender,)
        return (self.sender, self.receiver)


@dataclass(frozen=True)
class Block:
    """Block header number plus its full transaction list, in node order."""

    number: str
    transactions: tuple[Transaction, ...] = ()

    @property
    def height(self) -> int:
        return parse_hex_height(self.number, tag=self.number)

    @classmethod
    def from_rpc_result(cls, result: Any, *, tag: str | None = None) -> "Block":
        """
        Build from an eth_getBlockByNumber result. A null result (block not yet
        produced) and transaction hashes in place of objects are protocol errors.
        """
        if not isinstance(result, dict):
            raise GatewayProtocolError(f"block {tag} not found or malformed: {result!r}", tag=tag)
        number = result.get("number")
        if not isinstance(number, str):
            raise GatewayProtocolError(f"block {tag} has no number field", tag=tag)
        raw_txs = result.get("transactions") or []
        if not isinstance(raw_txs, list):
            raise GatewayProtocolError(f"block {tag} transactions is not a list", tag=tag)
        txs: list[Transaction] = []
        for item in raw_txs:
            if not isinstance(item, dict):
                raise GatewayProtocolError(
                    f"block {tag} returned transaction hashes instead of objects", tag=tag
                )
            try:
                txs.append(Transaction.from_rpc_item(item))
            except KeyError as e:
                raise GatewayProtocolError(
                    f"block {tag} transaction missing field {e}", tag=tag
                ) from e
        return cls(number=number, transactions=tuple(txs))

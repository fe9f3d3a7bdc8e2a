"""
Application-level exceptions.

Gateway failures fall into three kinds: transport (node unreachable or non-200),
protocol (body or hex value does not decode into the expected shape) and remote
application errors (the node's JSON-RPC error envelope). All three are fatal to
the current ingestion pass, which re-raises them as IngestionError with the
height being processed attached.
"""

from __future__ import annotations

from typing import Any


class TxWatchError(Exception):
    """Base class for all TxWatch errors."""


class GatewayError(TxWatchError):
    """Chain gateway failure while fetching `tag` (a hex height or "latest")."""

    def __init__(self, message: str, *, tag: str | None = None) -> None:
        super().__init__(message)
        self.tag = tag


class GatewayUnavailableError(GatewayError):
    """Ethereum node is unreachable or answered with a non-success HTTP status."""

    def __init__(self, message: str, *, tag: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message, tag=tag)
        self.status_code = status_code


class GatewayProtocolError(GatewayError):
    """Response body does not decode into the expected JSON-RPC / block shape."""


class BlockHeightParseError(GatewayProtocolError):
    """A block number is not a valid 0x-prefixed hex integer."""

    def __init__(self, value: Any, *, tag: str | None = None) -> None:
        super().__init__(f"invalid hex block number: {value!r}", tag=tag)
        self.value = value


class GatewayRPCError(GatewayError):
    """Node returned a JSON-RPC error envelope."""

    def __init__(self, code: Any, message: str, *, tag: str | None = None) -> None:
        super().__init__(f"RPC error: code {code}, message {message}", tag=tag)
        self.code = code
        self.rpc_message = message


class IngestionError(TxWatchError):
    """An ingestion pass aborted at `height` (int, or "latest" while resolving the target)."""

    def __init__(self, message: str, *, height: int | str) -> None:
        super().__init__(message)
        self.height = height

"""
Ethereum chain gateway: eth_getBlockByNumber over JSON-RPC/HTTP.

Responsibilities:
- Build JSON-RPC 2.0 request bodies with a per-gateway request id counter.
- POST to the node with httpx and classify failures: transport / non-200
  (GatewayUnavailableError), undecodable body or block shape
  (GatewayProtocolError), and the node's error envelope (GatewayRPCError).
- Return blocks with full transaction objects as Block models.
"""

from __future__ import annotations

import itertools
import time
from typing import Any, Protocol

import httpx

from backend_txwatch.core.exceptions import (
    GatewayProtocolError,
    GatewayRPCError,
    GatewayUnavailableError,
)
from backend_txwatch.eth_listener.models import Block
from backend_txwatch.txwatch_logging import get_logger

logger = get_logger(__name__)

RPC_VERSION = "2.0"
METHOD_GET_BLOCK_BY_NUMBER = "eth_getBlockByNumber"
DEFAULT_REQUEST_TIMEOUT_SEC = 15.0


class ChainGateway(Protocol):
    """Anything that can fetch a block by hex height or the "latest" tag."""

    def fetch_block(self, height_or_tag: str) -> Block: ...


def _build_rpc_body(method: str, params: list[Any], request_id: int) -> dict[str, Any]:
    return {
        "jsonrpc": RPC_VERSION,
        "method": method,
        "params": params,
        "id": request_id,
    }


class EthereumRPCGateway:
    """
    Synchronous JSON-RPC client for one Ethereum node.

    Every fetch is one blocking HTTP round trip; nothing is retried here.
    Pass an existing httpx.Client (e.g. with a MockTransport in tests) or let
    the gateway create and own one.
    """

    def __init__(
        self,
        rpc_url: str,
        *,
        client: httpx.Client | None = None,
        request_timeout_sec: float = DEFAULT_REQUEST_TIMEOUT_SEC,
    ) -> None:
        if not rpc_url.strip():
            raise ValueError("rpc_url must be non-empty")
        self._rpc_url = rpc_url
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=httpx.Timeout(request_timeout_sec))
        self._ids = itertools.count(1)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "EthereumRPCGateway":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def fetch_block(self, height_or_tag: str) -> Block:
        """Fetch block `height_or_tag` ("latest" or 0x-hex) with full transaction objects."""
        result = self._call(METHOD_GET_BLOCK_BY_NUMBER, [height_or_tag, True], tag=height_or_tag)
        return Block.from_rpc_result(result, tag=height_or_tag)

    def _call(self, method: str, params: list[Any], *, tag: str) -> Any:
        """Perform one JSON-RPC call; raise on transport, decode or RPC error."""
        body = _build_rpc_body(method, params, next(self._ids))
        log = logger.bind(method=method, params=params, request_id=body["id"])
        start = time.monotonic()
        log.debug("rpc_request_sending")

        try:
            resp = self._client.post(self._rpc_url, json=body)
        except httpx.HTTPError as e:
            raise GatewayUnavailableError(
                f"error sending {method} request: {e}", tag=tag
            ) from e

        if resp.status_code != 200:
            raise GatewayUnavailableError(
                f"ethereum server is unavailable (HTTP {resp.status_code})",
                tag=tag,
                status_code=resp.status_code,
            )

        try:
            data = resp.json()
        except ValueError as e:
            raise GatewayProtocolError(f"error decoding {method} response: {e}", tag=tag) from e
        if not isinstance(data, dict):
            raise GatewayProtocolError(f"{method} response is not a JSON object", tag=tag)

        err = data.get("error")
        if err:
            code = err.get("code") if isinstance(err, dict) else None
            message = err.get("message", str(err)) if isinstance(err, dict) else str(err)
            log.error("rpc_error_response", error_code=code, error_message=message)
            raise GatewayRPCError(code, message, tag=tag)

        if "result" not in data:
            raise GatewayProtocolError(f"{method} response has no result", tag=tag)

        log.debug("rpc_request_done", duration_ms=round((time.monotonic() - start) * 1000, 1))
        return data["result"]

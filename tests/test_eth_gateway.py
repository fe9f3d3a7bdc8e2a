"""
Tests for the Ethereum JSON-RPC gateway and block/transaction models.

Uses httpx.MockTransport to script node responses: full blocks, contract
creation, transport failure, non-200 status, undecodable body and the JSON-RPC
error envelope.
"""

from __future__ import annotations

import json

import httpx
import pytest

from backend_txwatch.core.exceptions import (
    BlockHeightParseError,
    GatewayError,
    GatewayProtocolError,
    GatewayRPCError,
    GatewayUnavailableError,
)
from backend_txwatch.eth_listener.gateway import EthereumRPCGateway
from backend_txwatch.eth_listener.models import Block, format_block_tag, parse_hex_height

from conftest import ADDR_1, ADDR_2, rpc_block, rpc_tx

RPC_URL = "https://node.example/rpc"


def _gateway(handler) -> EthereumRPCGateway:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return EthereumRPCGateway(RPC_URL, client=client)


def _ok(result, request_id: int = 1) -> httpx.Response:
    return httpx.Response(200, json={"jsonrpc": "2.0", "id": request_id, "result": result})


# -----------------------------------------------------------------------------
# Hex helpers
# -----------------------------------------------------------------------------


@pytest.mark.parametrize(
    "value,expected",
    [("0x0", 0), ("0x2", 2), ("0x1b4", 436), ("0xABC", 2748), ("0x12a05f200", 5_000_000_000)],
)
def test_parse_hex_height(value, expected):
    assert parse_hex_height(value) == expected


@pytest.mark.parametrize("value", ["", "0x", "12", "0xzz", "latest", None, 7, " 0x1", "0x_1"])
def test_parse_hex_height_rejects_garbage(value):
    with pytest.raises(BlockHeightParseError):
        parse_hex_height(value)


def test_format_block_tag():
    assert format_block_tag(0) == "0x0"
    assert format_block_tag(255) == "0xff"
    with pytest.raises(ValueError):
        format_block_tag(-1)


# -----------------------------------------------------------------------------
# Gateway
# -----------------------------------------------------------------------------


def test_fetch_block_sends_get_block_by_number_with_full_txs():
    seen: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        seen.append(body)
        return _ok(rpc_block(2, [rpc_tx("0x1", ADDR_1, ADDR_2, "0xde0b6b3a7640000")]), body["id"])

    block = _gateway(handler).fetch_block("0x2")

    assert seen[0]["jsonrpc"] == "2.0"
    assert seen[0]["method"] == "eth_getBlockByNumber"
    assert seen[0]["params"] == ["0x2", True]
    assert block.number == "0x2"
    assert block.height == 2
    (tx,) = block.transactions
    assert tx.hash == "0x1"
    assert tx.sender == ADDR_1
    assert tx.receiver == ADDR_2
    assert tx.value == "0xde0b6b3a7640000"


def test_request_ids_increase():
    ids: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        ids.append(json.loads(request.content)["id"])
        return _ok(rpc_block(1))

    gw = _gateway(handler)
    gw.fetch_block("latest")
    gw.fetch_block("0x1")
    assert ids == [1, 2]


def test_rpc_url_posted_exactly_as_configured():
    """Provider token URLs may end in '/'; the gateway must not rewrite them."""
    url = "https://node.example/v3/0123456789abcdef/"
    posted: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        posted.append(str(request.url))
        return _ok(rpc_block(1))

    client = httpx.Client(transport=httpx.MockTransport(handler))
    EthereumRPCGateway(url, client=client).fetch_block("0x1")
    assert posted == [url]


def test_contract_creation_has_no_receiver():
    def handler(request: httpx.Request) -> httpx.Response:
        tx = {"hash": "0xc", "from": ADDR_1, "value": "0x0"}
        return _ok({"number": "0x5", "transactions": [tx, rpc_tx("0xd", ADDR_1, None)]})

    block = _gateway(handler).fetch_block("0x5")
    assert [t.receiver for t in block.transactions] == [None, None]
    assert [t.endpoints() for t in block.transactions] == [(ADDR_1,), (ADDR_1,)]


def test_transport_failure_is_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(GatewayUnavailableError) as exc_info:
        _gateway(handler).fetch_block("latest")
    assert exc_info.value.tag == "latest"


def test_non_200_is_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="upstream busy")

    with pytest.raises(GatewayUnavailableError) as exc_info:
        _gateway(handler).fetch_block("0x1")
    assert exc_info.value.status_code == 503


def test_undecodable_body_is_protocol_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>not json</html>")

    with pytest.raises(GatewayProtocolError):
        _gateway(handler).fetch_block("0x1")


def test_rpc_error_envelope():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={"jsonrpc": "2.0", "id": 1, "error": {"code": -32000, "message": "header not found"}},
        )

    with pytest.raises(GatewayRPCError) as exc_info:
        _gateway(handler).fetch_block("0x1")
    assert exc_info.value.code == -32000
    assert exc_info.value.rpc_message == "header not found"
    assert isinstance(exc_info.value, GatewayError)


def test_null_result_is_protocol_error():
    """Node returns result: null for a block it has not produced yet."""

    def handler(request: httpx.Request) -> httpx.Response:
        return _ok(None)

    with pytest.raises(GatewayProtocolError, match="not found"):
        _gateway(handler).fetch_block("0x99")


def test_hash_only_transactions_are_protocol_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return _ok({"number": "0x1", "transactions": ["0xaaa", "0xbbb"]})

    with pytest.raises(GatewayProtocolError, match="hashes"):
        _gateway(handler).fetch_block("0x1")


def test_missing_transaction_field_is_protocol_error():
    with pytest.raises(GatewayProtocolError, match="missing field"):
        Block.from_rpc_result({"number": "0x1", "transactions": [{"hash": "0x1", "value": "0x0"}]})


def test_empty_rpc_url_rejected():
    with pytest.raises(ValueError):
        EthereumRPCGateway("   ")

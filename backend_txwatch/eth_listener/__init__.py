"""
Ethereum listener package.

Fetches blocks from an Ethereum JSON-RPC node and exposes them as immutable
Block / Transaction models for the ingestion orchestrator.
"""

from backend_txwatch.eth_listener.gateway import ChainGateway, EthereumRPCGateway
from backend_txwatch.eth_listener.models import (
    TAG_LATEST,
    Block,
    Transaction,
    format_block_tag,
    parse_hex_height,
)

__all__ = [
    "TAG_LATEST",
    "Block",
    "ChainGateway",
    "EthereumRPCGateway",
    "Transaction",
    "format_block_tag",
    "parse_hex_height",
]

"""
Core utilities: exception taxonomy shared by the gateway, ingestion and API layers.
"""

from backend_txwatch.core.exceptions import (
    BlockHeightParseError,
    GatewayError,
    GatewayProtocolError,
    GatewayRPCError,
    GatewayUnavailableError,
    IngestionError,
    TxWatchError,
)

__all__ = [
    "BlockHeightParseError",
    "GatewayError",
    "GatewayProtocolError",
    "GatewayRPCError",
    "GatewayUnavailableError",
    "IngestionError",
    "TxWatchError",
]

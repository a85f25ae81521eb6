"""Block source adapters."""

from vigie.infrastructure.blockchain.json_rpc_block_source import JsonRpcBlockSource
from vigie.infrastructure.blockchain.subscription import QueuedSubscription
from vigie.infrastructure.blockchain.websocket_block_source import (
    WebSocketBlockSource,
    WebSocketSubscription,
)

__all__ = [
    "JsonRpcBlockSource",
    "QueuedSubscription",
    "WebSocketBlockSource",
    "WebSocketSubscription",
]

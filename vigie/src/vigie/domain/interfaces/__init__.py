"""
Domain interfaces (ports) implemented by infrastructure adapters.
"""

from vigie.domain.interfaces.i_block_source import (
    NEW_HEADS,
    IBlockSource,
    ISubscription,
    SubscriptionHandler,
)
from vigie.domain.interfaces.i_event_emitter import IEventEmitter

__all__ = [
    "NEW_HEADS",
    "IBlockSource",
    "ISubscription",
    "SubscriptionHandler",
    "IEventEmitter",
]

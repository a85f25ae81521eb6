"""
Vigie - Transaction confirmation watcher.

Watches a mined transaction and emits one "confirmation" event per new
block until the configured threshold is reached, by newHeads subscription
(falling back to polling on stream errors) or by polling.
"""

from vigie.application.context import WatchContext
from vigie.application.use_cases import (
    ConfirmationTracker,
    ConfirmationWatch,
    watch_transaction_for_confirmations,
)
from vigie.application.watchers import WatchStatus
from vigie.domain.entities import BlockHeader, ConfirmationEvent, TransactionReceipt
from vigie.domain.exceptions import (
    SubscriptionError,
    TransactionMissingReceiptOrBlockHashError,
    TransactionReceiptMissingBlockNumberError,
    VigieException,
)
from vigie.domain.value_objects import BytesFormat, NumberFormat, ReturnFormat

__version__ = "0.1.0"

__all__ = [
    "WatchContext",
    "ConfirmationTracker",
    "ConfirmationWatch",
    "watch_transaction_for_confirmations",
    "WatchStatus",
    "BlockHeader",
    "ConfirmationEvent",
    "TransactionReceipt",
    "SubscriptionError",
    "TransactionMissingReceiptOrBlockHashError",
    "TransactionReceiptMissingBlockNumberError",
    "VigieException",
    "BytesFormat",
    "NumberFormat",
    "ReturnFormat",
]

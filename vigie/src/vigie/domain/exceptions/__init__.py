"""
Domain exceptions.
"""

from vigie.domain.exceptions.block_source_exceptions import (
    BlockSourceException,
    RPCException,
    SubscriptionError,
)
from vigie.domain.exceptions.watch_exceptions import (
    TransactionMissingReceiptOrBlockHashError,
    TransactionReceiptMissingBlockNumberError,
    VigieException,
    WatchValidationException,
)

__all__ = [
    "VigieException",
    "WatchValidationException",
    "TransactionMissingReceiptOrBlockHashError",
    "TransactionReceiptMissingBlockNumberError",
    "BlockSourceException",
    "RPCException",
    "SubscriptionError",
]

"""
Confirmation watch exceptions.
"""

from typing import Any, Optional


class VigieException(Exception):
    """Base exception for all Vigie errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class WatchValidationException(VigieException):
    """Watch preconditions not met. Raised before any background work."""


class TransactionMissingReceiptOrBlockHashError(WatchValidationException):
    """Receipt is absent or has no containing block hash."""

    def __init__(
        self,
        receipt: Any = None,
        block_hash: Any = None,
        transaction_hash: Any = None,
    ):
        super().__init__(
            "Receipt missing or blockHash null",
            details={
                "receipt": receipt,
                "block_hash": block_hash,
                "transaction_hash": transaction_hash,
            },
        )


class TransactionReceiptMissingBlockNumberError(WatchValidationException):
    """Receipt has no containing block number."""

    def __init__(self, receipt: Any = None):
        super().__init__(
            "Receipt missing block number",
            details={"receipt": receipt},
        )

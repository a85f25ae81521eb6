"""
Domain entities.
"""

from vigie.domain.entities.block_header import BlockHeader
from vigie.domain.entities.confirmation_event import ConfirmationEvent
from vigie.domain.entities.transaction_receipt import TransactionReceipt

__all__ = [
    "BlockHeader",
    "ConfirmationEvent",
    "TransactionReceipt",
]

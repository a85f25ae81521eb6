"""
ConfirmationEvent entity - Payload of the ``confirmation`` event.
"""

from dataclasses import dataclass
from typing import Any, Dict, Union

from vigie.domain.entities.transaction_receipt import TransactionReceipt


@dataclass(frozen=True)
class ConfirmationEvent:
    """
    One confirmation of a watched transaction.

    confirmation_number and latest_block_hash are already rendered with the
    caller's ReturnFormat, so their type depends on it (int/str, str/bytes).
    """

    confirmation_number: Union[int, str]
    receipt: TransactionReceipt
    latest_block_hash: Union[str, bytes]

    def to_dict(self) -> Dict[str, Any]:
        """Serialize event for logging and transport."""
        latest = self.latest_block_hash
        if isinstance(latest, bytes):
            latest = "0x" + latest.hex()
        return {
            "confirmation_number": self.confirmation_number,
            "receipt": self.receipt.to_dict(),
            "latest_block_hash": latest,
        }

"""
TransactionReceipt entity - Outcome of a transaction included in a block.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from vigie.utils.hex import hex_to_int


@dataclass(frozen=True)
class TransactionReceipt:
    """
    Receipt of a transaction already included in a block.

    Business rules:
    - Immutable once created (supplied by the caller, never modified)
    - Watching requires both block_hash and block_number; the tracker
      enforces this, so a partial receipt can still be represented here
    """

    transaction_hash: str
    block_hash: Optional[str] = None
    block_number: Optional[int] = None
    transaction_index: Optional[int] = None
    status: Optional[int] = None
    from_address: Optional[str] = None
    to_address: Optional[str] = None
    gas_used: Optional[int] = None

    @property
    def succeeded(self) -> Optional[bool]:
        """Execution status (None when the node did not report one)."""
        if self.status is None:
            return None
        return self.status == 1

    @classmethod
    def from_rpc(cls, data: Dict[str, Any]) -> "TransactionReceipt":
        """
        Build receipt from an ``eth_getTransactionReceipt`` result.

        Args:
            data: JSON-RPC receipt object (hex quantities)

        Returns:
            TransactionReceipt instance
        """
        return cls(
            transaction_hash=data.get("transactionHash", ""),
            block_hash=data.get("blockHash"),
            block_number=hex_to_int(data.get("blockNumber")),
            transaction_index=hex_to_int(data.get("transactionIndex")),
            status=hex_to_int(data.get("status")),
            from_address=data.get("from"),
            to_address=data.get("to"),
            gas_used=hex_to_int(data.get("gasUsed")),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize receipt for logging and event payloads."""
        return {
            "transaction_hash": self.transaction_hash,
            "block_hash": self.block_hash,
            "block_number": self.block_number,
            "transaction_index": self.transaction_index,
            "status": self.status,
            "from_address": self.from_address,
            "to_address": self.to_address,
            "gas_used": self.gas_used,
        }

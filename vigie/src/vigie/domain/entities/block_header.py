"""
BlockHeader entity - Minimal view of a block used for confirmations.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from vigie.utils.hex import hex_to_int


@dataclass(frozen=True)
class BlockHeader:
    """
    Block header as returned by ``eth_getBlockByNumber`` or a ``newHeads``
    notification.

    Pending blocks may lack number and hash; watchers skip those.
    """

    number: Optional[int] = None
    hash: Optional[str] = None
    parent_hash: Optional[str] = None
    timestamp: Optional[int] = None

    @classmethod
    def from_rpc(cls, data: Dict[str, Any]) -> "BlockHeader":
        """
        Build header from a JSON-RPC block object.

        Args:
            data: Block or header object (hex quantities)

        Returns:
            BlockHeader instance
        """
        return cls(
            number=hex_to_int(data.get("number")),
            hash=data.get("hash"),
            parent_hash=data.get("parentHash"),
            timestamp=hex_to_int(data.get("timestamp")),
        )

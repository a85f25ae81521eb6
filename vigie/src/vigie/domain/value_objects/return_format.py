"""
ReturnFormat value object - How emitted numbers and hashes are rendered.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from vigie.utils.hex import hex_to_int


class NumberFormat(str, Enum):
    """Rendering of unsigned integers."""

    INT = "int"
    HEX = "hex"
    STR = "str"


class BytesFormat(str, Enum):
    """Rendering of 32-byte hashes."""

    HEX = "hex"
    BYTES = "bytes"


@dataclass(frozen=True)
class ReturnFormat:
    """
    Value object describing the caller's preferred data format.

    Business rules:
    - Immutable once created
    - Numbers default to int, hashes to 0x-prefixed lowercase hex
    """

    number_format: NumberFormat = NumberFormat.INT
    bytes_format: BytesFormat = BytesFormat.HEX

    def format_uint(self, value: Union[int, str, None]) -> Union[int, str, None]:
        """
        Render an unsigned integer.

        Examples:
            >>> ReturnFormat(number_format=NumberFormat.HEX).format_uint(6)
            '0x6'
        """
        number = hex_to_int(value)
        if number is None:
            return None
        if number < 0:
            raise ValueError(f"Expected unsigned integer, got {number}")
        if self.number_format == NumberFormat.HEX:
            return hex(number)
        if self.number_format == NumberFormat.STR:
            return str(number)
        return number

    def format_bytes32(
        self, value: Union[str, bytes, None]
    ) -> Optional[Union[str, bytes]]:
        """
        Render a 32-byte hash.

        Examples:
            >>> ReturnFormat().format_bytes32(b"\\x01" * 32)[:6]
            '0x0101'
        """
        if value is None:
            return None
        if isinstance(value, str):
            raw = bytes.fromhex(value[2:] if value[:2].lower() == "0x" else value)
        else:
            raw = bytes(value)
        if self.bytes_format == BytesFormat.BYTES:
            return raw
        return "0x" + raw.hex()


DEFAULT_RETURN_FORMAT = ReturnFormat()

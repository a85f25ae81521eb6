"""
Hex quantity helpers for Ethereum JSON-RPC payloads.

JSON-RPC encodes quantities as ``0x``-prefixed hex strings without
leading zeros ("0x0", "0x64"). Block tags ("latest", "pending") pass
through untouched.
"""

from typing import Optional, Union

BLOCK_TAGS = ("latest", "earliest", "pending", "safe", "finalized")


def is_hex_string(value: object) -> bool:
    """
    Check whether value is a 0x-prefixed hex string.

    Examples:
        >>> is_hex_string("0x64")
        True
        >>> is_hex_string("100")
        False
    """
    if not isinstance(value, str) or not value[:2].lower() == "0x":
        return False
    try:
        int(value, 16)
    except ValueError:
        return False
    return True


def hex_to_int(value: Union[str, int, None]) -> Optional[int]:
    """
    Convert JSON-RPC quantity to int.

    Accepts hex strings, decimal strings and ints. Returns None for None
    and empty strings.

    Examples:
        >>> hex_to_int("0x64")
        100
        >>> hex_to_int(7)
        7
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"Invalid quantity: {value!r}")
    if isinstance(value, int):
        return value
    if not value:
        return None
    if value[:2].lower() == "0x":
        return int(value, 16)
    return int(value)


def int_to_hex(value: Union[int, str]) -> str:
    """
    Convert int (or block tag) to JSON-RPC quantity.

    Examples:
        >>> int_to_hex(100)
        '0x64'
        >>> int_to_hex("latest")
        'latest'
    """
    if isinstance(value, str):
        if value in BLOCK_TAGS or is_hex_string(value):
            return value
        value = int(value)
    if value < 0:
        raise ValueError(f"Block number must be non-negative: {value}")
    return hex(value)

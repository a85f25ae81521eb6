"""Utility modules for Vigie."""

from vigie.utils.hex import hex_to_int, int_to_hex, is_hex_string

__all__ = [
    "hex_to_int",
    "int_to_hex",
    "is_hex_string",
]

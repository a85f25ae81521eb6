"""
Domain value objects.
"""

from vigie.domain.value_objects.return_format import (
    DEFAULT_RETURN_FORMAT,
    BytesFormat,
    NumberFormat,
    ReturnFormat,
)

__all__ = [
    "DEFAULT_RETURN_FORMAT",
    "BytesFormat",
    "NumberFormat",
    "ReturnFormat",
]

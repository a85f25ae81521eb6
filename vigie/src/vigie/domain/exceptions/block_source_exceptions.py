"""
Block source exceptions.
"""

from vigie.domain.exceptions.watch_exceptions import VigieException


class BlockSourceException(VigieException):
    """Base exception for block source operations."""


class RPCException(BlockSourceException):
    """RPC call failed or returned an error object."""


class SubscriptionError(BlockSourceException):
    """Subscribing to the new block header stream failed."""

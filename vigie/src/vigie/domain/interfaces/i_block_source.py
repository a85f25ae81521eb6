"""
Block source interface.

Defines block lookup and the new block header subscription protocol
consumed by the confirmation watchers.
"""

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Optional, Union

from vigie.domain.entities import BlockHeader

NEW_HEADS = "newHeads"

SubscriptionHandler = Callable[[Any], Union[None, Awaitable[None]]]


class ISubscription(ABC):
    """
    Stateful push channel: active until unsubscribed.

    Events:
        "data": called with a BlockHeader for every new header
        "error": called with the exception that broke the stream
    """

    @property
    @abstractmethod
    def id(self) -> Optional[str]:
        """Node-assigned subscription id."""

    @property
    @abstractmethod
    def active(self) -> bool:
        """True until unsubscribe() completes."""

    @abstractmethod
    def on(self, event: str, handler: SubscriptionHandler) -> None:
        """
        Register handler for "data" or "error".

        Handlers may be plain functions or coroutine functions.

        Raises:
            ValueError: If event name is unknown
        """

    @abstractmethod
    async def unsubscribe(self) -> bool:
        """
        Stop delivery and release the subscription.

        Returns:
            True if the node acknowledged the unsubscribe
        """


class IBlockSource(ABC):
    """
    Abstract interface for reading blocks from a chain node.
    """

    @abstractmethod
    async def get_block_by_number(
        self,
        block_number: Union[int, str],
        include_transactions: bool = False,
    ) -> Optional[BlockHeader]:
        """
        Get block by height or tag.

        Args:
            block_number: Block height or tag ("latest", ...)
            include_transactions: Request full transaction objects

        Returns:
            BlockHeader, or None if the block is not produced yet

        Raises:
            RPCException: On transport or node error
        """

    @abstractmethod
    async def subscribe(self, event: str = NEW_HEADS) -> ISubscription:
        """
        Subscribe to a push stream.

        Args:
            event: Stream name (only "newHeads" is used)

        Returns:
            Active subscription

        Raises:
            SubscriptionError: If the node rejects the request
        """

    @abstractmethod
    def supports_subscriptions(self) -> bool:
        """Capability probe: True if subscribe() can be used."""

"""
Subscription base with ordered, queued handler dispatch.
"""

import asyncio
import inspect
from abc import abstractmethod
from typing import Any, Dict, List, Optional

from shared.reporter import SystemReporter
from shared.reporter.emojis import Emoji

from vigie.domain.interfaces import ISubscription, SubscriptionHandler

DATA = "data"
ERROR = "error"

_STOP = object()


class QueuedSubscription(ISubscription):
    """
    Subscription delivering events through a single dispatcher task.

    Events are queued by the transport and handed to handlers one at a
    time, in arrival order; coroutine handlers are awaited before the next
    event is dispatched. Events delivered before the first handler is
    registered are kept until the dispatcher starts. Nothing is dispatched
    once unsubscribe() has been called.
    """

    EVENTS = (DATA, ERROR)

    def __init__(
        self,
        subscription_id: Optional[str],
        event: str,
        reporter: Optional[SystemReporter] = None,
    ):
        self._id = subscription_id
        self.event = event
        self.reporter = reporter
        self._active = True
        self._handlers: Dict[str, List[SubscriptionHandler]] = {
            DATA: [],
            ERROR: [],
        }
        self._queue: "asyncio.Queue[Any]" = asyncio.Queue()
        self._dispatcher: Optional[asyncio.Task] = None

    @property
    def id(self) -> Optional[str]:
        """Node-assigned subscription id."""
        return self._id

    @property
    def active(self) -> bool:
        """True until unsubscribe() is called."""
        return self._active

    def on(self, event: str, handler: SubscriptionHandler) -> None:
        """Register handler for "data" or "error"."""
        if event not in self.EVENTS:
            raise ValueError(
                f"Unknown subscription event '{event}'. "
                f"Must be one of: {list(self.EVENTS)}"
            )
        self._handlers[event].append(handler)

        if self._dispatcher is None and self._active:
            self._dispatcher = asyncio.get_running_loop().create_task(
                self._dispatch_loop()
            )

    def deliver(self, event: str, payload: Any) -> None:
        """Queue an event for dispatch (called by the transport)."""
        if self._active:
            self._queue.put_nowait((event, payload))

    async def unsubscribe(self) -> bool:
        """
        Stop delivery and release the subscription on the transport.

        Returns:
            True if the transport acknowledged the release; False if the
            subscription was already inactive
        """
        if not self._active:
            return False

        self._active = False
        self._queue.put_nowait(_STOP)
        return await self._release()

    @abstractmethod
    async def _release(self) -> bool:
        """Transport-specific unsubscribe."""

    async def _dispatch_loop(self) -> None:
        """Hand queued events to handlers, one at a time."""
        while True:
            item = await self._queue.get()
            if item is _STOP or not self._active:
                return

            event, payload = item
            for handler in list(self._handlers[event]):
                if not self._active:
                    return
                await self._invoke(event, handler, payload)

    async def _invoke(
        self, event: str, handler: SubscriptionHandler, payload: Any
    ) -> None:
        """Call handler, reporting (not propagating) its failure."""
        try:
            result = handler(payload)
            if inspect.isawaitable(result):
                await result
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if self.reporter:
                self.reporter.error(
                    f"{Emoji.FAILURE} Subscription {self._id} '{event}' "
                    f"handler failed: {type(e).__name__}: {e}",
                    context="Subscription",
                    exc_info=True,
                )

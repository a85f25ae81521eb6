"""
Subscription watcher: derives confirmations from ``newHeads`` headers.
"""

import asyncio
from typing import Any, Optional

from shared.reporter.emojis import Emoji

from vigie.application.watchers.base_watcher import (
    ERROR_EVENT,
    WatchStatus,
    WatchStrategy,
)
from vigie.application.watchers.polling_watcher import PollingWatcher
from vigie.domain.entities import BlockHeader
from vigie.domain.exceptions import SubscriptionError
from vigie.domain.interfaces import NEW_HEADS, ISubscription


class SubscriptionWatcher(WatchStrategy):
    """
    Confirmation watching by new block header subscription.

    State machine:
        INIT -> SUBSCRIBING -> ACTIVE -> CONFIRMED
                                      -> ERRORED -> FALLBACK_POLLING
                            -> REJECTED

    For a header at height H the confirmation number is
    ``H - receipt.block_number + 1`` and the reported latest_block_hash is
    the header's parent hash. A stream error hands the watch over to a
    PollingWatcher (one way). A rejected subscribe request is fatal: it is
    emitted as an "error" event and exposed on the watch handle.
    """

    name = "subscription"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._subscribe_task: Optional[asyncio.Task] = None
        self._subscription: Optional[ISubscription] = None

    @property
    def subscription(self) -> Optional[ISubscription]:
        """Active subscription handle (None until subscribed)."""
        return self._subscription

    def start(self) -> None:
        """Subscribe on the next event loop turn. Idempotent."""
        if self._subscribe_task is not None or self.is_finished:
            return

        self.state.status = WatchStatus.SUBSCRIBING
        self._subscribe_task = asyncio.get_running_loop().create_task(
            self._subscribe()
        )

    async def _subscribe(self) -> None:
        """Subscribe to newHeads and register the stream handlers."""
        try:
            subscription = await self.context.block_source.subscribe(NEW_HEADS)
        except Exception as e:
            if self.is_finished:
                return
            error = SubscriptionError(
                "Failed to subscribe to new newBlockHeaders to confirmation. "
                f"{type(e).__name__}: {e}",
                details={
                    "receipt": self.receipt.to_dict(),
                    "transaction_hash": self.transaction_hash,
                },
            )
            error.__cause__ = e
            self._finish(WatchStatus.REJECTED, error)
            self.emitter.emit(ERROR_EVENT, error)
            return

        self._subscription = subscription

        # Cancelled while subscribing: _release() unsubscribes
        if self.is_finished:
            return

        subscription.on("data", self._on_data)
        subscription.on("error", self._on_error)
        self.state.status = WatchStatus.ACTIVE

        if self.reporter:
            self.reporter.info(
                f"{Emoji.NETWORK.SUBSCRIBE} Watching {self._short_hash()} via "
                f"newHeads (block {self.receipt.block_number}, threshold "
                f"{self.state.threshold})",
                context=self.log_context,
                verbose_level=2,
            )

    async def _on_data(self, header: Any) -> None:
        """Handle one new block header."""
        if self.is_finished:
            return

        if isinstance(header, dict):
            header = BlockHeader.from_rpc(header)

        number = getattr(header, "number", None)
        if number is None:
            return

        confirmation_number = number - self.receipt.block_number + 1
        if not self._emit_confirmation(confirmation_number, header.parent_hash):
            return

        if confirmation_number >= self.state.threshold:
            self._finish(WatchStatus.CONFIRMED)
            await self._ensure_release()

    async def _on_error(self, error: Any) -> None:
        """Unsubscribe, then continue the watch by polling."""
        if self.is_finished:
            return

        self.state.status = WatchStatus.ERRORED
        if self.reporter:
            self.reporter.warning(
                f"{Emoji.WARNING} newHeads stream for {self._short_hash()} "
                f"failed: {error}",
                context=self.log_context,
            )

        await self._ensure_release()

        # Cancelled while unsubscribing
        if self.is_finished:
            return

        initial = 1
        if self.context.config.resume_confirmations_on_fallback:
            initial = self.state.confirmation_number

        self.successor = PollingWatcher(
            self.context,
            self.emitter,
            self.receipt,
            self.transaction_hash,
            self.return_format,
            initial_confirmation=initial,
        )
        self._finish(WatchStatus.FALLBACK_POLLING)
        self.successor.start()

    async def _release(self) -> None:
        """Unsubscribe once the subscribe request has settled."""
        task = self._subscribe_task
        if task is not None and not task.done():
            await asyncio.wait({task})

        subscription = self._subscription
        if subscription is not None and subscription.active:
            await subscription.unsubscribe()

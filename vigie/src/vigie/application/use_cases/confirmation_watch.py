"""
ConfirmationWatch - Caller-side handle of one confirmation watch.
"""

import asyncio
from typing import List, Optional

from vigie.application.watchers import WatchStatus, WatchStrategy
from vigie.domain.entities import TransactionReceipt


class ConfirmationWatch:
    """
    Handle returned by the confirmation tracker.

    Follows the watch across the subscription -> polling fallback, so
    status, confirmation_number and cancel() always refer to the strategy
    currently in charge.

    Examples:
        watch = tracker.watch(emitter, receipt, tx_hash)
        ...
        status = await watch.wait()   # raises SubscriptionError if rejected
    """

    def __init__(self, receipt: TransactionReceipt, transaction_hash: str):
        self.receipt = receipt
        self.transaction_hash = transaction_hash
        self.strategies: List[WatchStrategy] = []
        self._done = asyncio.Event()

    @property
    def current(self) -> WatchStrategy:
        """Strategy currently in charge of the watch."""
        if not self.strategies:
            raise RuntimeError("No strategy attached to this watch")
        return self.strategies[-1]

    @property
    def strategy(self) -> str:
        """Name of the current strategy ("polling" or "subscription")."""
        return self.current.name

    @property
    def status(self) -> WatchStatus:
        """Status of the current strategy."""
        return self.current.status

    @property
    def confirmation_number(self) -> int:
        """Counter of the current strategy."""
        return self.current.state.confirmation_number

    @property
    def error(self) -> Optional[BaseException]:
        """Fatal error (subscribe request rejected), if any."""
        return self.current.error

    @property
    def done(self) -> bool:
        """True once the watch is over (no fallback pending)."""
        return self._done.is_set()

    def attach(self, strategy: WatchStrategy) -> None:
        """Make strategy the current one and follow its handover."""
        self.strategies.append(strategy)
        strategy.add_done_callback(self._on_strategy_done)

    def cancel(self) -> bool:
        """
        Cancel the watch. Idempotent.

        Returns:
            True if this call cancelled the watch
        """
        if not self.strategies:
            return False
        return self.current.cancel()

    async def stop(self) -> bool:
        """Cancel and wait until the transport handle is released."""
        cancelled = self.cancel()
        await self.wait_closed()
        return cancelled

    async def wait_closed(self) -> None:
        """Wait for the final strategy to release its transport handle."""
        await self._done.wait()
        await self.current.wait_closed()

    async def wait(self) -> WatchStatus:
        """
        Wait for the end of the watch.

        Returns:
            Final status (CONFIRMED or CANCELLED)

        Raises:
            SubscriptionError: If the subscribe request was rejected
        """
        await self.wait_closed()
        if self.error is not None:
            raise self.error
        return self.status

    def _on_strategy_done(self, strategy: WatchStrategy) -> None:
        """Follow a fallback or mark the watch done."""
        if strategy.successor is not None:
            self.attach(strategy.successor)
            return
        self._done.set()

    def __repr__(self) -> str:
        return (
            f"ConfirmationWatch(tx={self.transaction_hash!r}, "
            f"strategy={self.strategy if self.strategies else None!r}, "
            f"status={self.status.value if self.strategies else None!r}, "
            f"confirmation_number="
            f"{self.confirmation_number if self.strategies else None})"
        )

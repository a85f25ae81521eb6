"""
Watch strategy base shared by the polling and subscription watchers.

A strategy owns one WatchState and one transport handle (polling task or
subscription). It reaches a terminal status exactly once; the transport
handle is released exactly once, by a release task started on that
terminal transition.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Union

from shared.reporter.emojis import Emoji

from vigie.application.context import WatchContext
from vigie.domain.entities import ConfirmationEvent, TransactionReceipt
from vigie.domain.interfaces import IEventEmitter
from vigie.domain.value_objects import DEFAULT_RETURN_FORMAT, ReturnFormat

CONFIRMATION_EVENT = "confirmation"
ERROR_EVENT = "error"


class WatchStatus(str, Enum):
    """Lifecycle of a watch strategy."""

    INIT = "init"
    SUBSCRIBING = "subscribing"
    ACTIVE = "active"
    ERRORED = "errored"
    CONFIRMED = "confirmed"
    FALLBACK_POLLING = "fallback_polling"
    REJECTED = "rejected"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        """True for statuses a strategy never leaves."""
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset(
    {
        WatchStatus.CONFIRMED,
        WatchStatus.FALLBACK_POLLING,
        WatchStatus.REJECTED,
        WatchStatus.CANCELLED,
    }
)


@dataclass
class WatchState:
    """
    Mutable per-watch state. Never shared across watches.

    confirmation_number starts at 1: the receipt's own block counts.
    """

    threshold: int
    polling_interval: float
    confirmation_number: int = 1
    status: WatchStatus = WatchStatus.INIT

    @property
    def threshold_reached(self) -> bool:
        """True once confirmation_number >= threshold."""
        return self.confirmation_number >= self.threshold


DoneCallback = Callable[["WatchStrategy"], None]


class WatchStrategy(ABC):
    """
    Interchangeable confirmation watching strategy (start / cancel).

    Subclasses implement start() and _release(); emission, threshold and
    terminal bookkeeping live here.
    """

    name = "strategy"

    def __init__(
        self,
        context: WatchContext,
        emitter: IEventEmitter,
        receipt: TransactionReceipt,
        transaction_hash: str,
        return_format: ReturnFormat = DEFAULT_RETURN_FORMAT,
        initial_confirmation: int = 1,
    ):
        self.context = context
        self.emitter = emitter
        self.receipt = receipt
        self.transaction_hash = transaction_hash
        self.return_format = return_format
        self.reporter = context.reporter

        self.state = WatchState(
            threshold=context.config.transaction_confirmation_blocks,
            polling_interval=context.config.polling_interval,
            confirmation_number=initial_confirmation,
        )

        self.error: Optional[BaseException] = None
        self.successor: Optional["WatchStrategy"] = None

        self._finished = False
        self._done_callbacks: List[DoneCallback] = []
        self._release_task: Optional[asyncio.Task] = None
        self._closed = asyncio.Event()

    @property
    def status(self) -> WatchStatus:
        """Current lifecycle status."""
        return self.state.status

    @property
    def is_finished(self) -> bool:
        """True once a terminal status has been reached."""
        return self._finished

    @property
    def log_context(self) -> str:
        """Reporter context tag."""
        return type(self).__name__

    @abstractmethod
    def start(self) -> None:
        """Begin watching in the background (requires a running loop)."""

    @abstractmethod
    async def _release(self) -> None:
        """Release the transport handle (runs exactly once)."""

    def add_done_callback(self, callback: DoneCallback) -> None:
        """Call callback(strategy) on the terminal transition."""
        if self._finished:
            callback(self)
        else:
            self._done_callbacks.append(callback)

    def cancel(self) -> bool:
        """
        External cancellation. Idempotent.

        Handlers and ticks observe the cancellation immediately; the
        transport handle is released in the background (see wait_closed).

        Returns:
            True if this call cancelled the watch
        """
        return self._finish(WatchStatus.CANCELLED)

    async def stop(self) -> bool:
        """Cancel and wait until the transport handle is released."""
        cancelled = self.cancel()
        await self.wait_closed()
        return cancelled

    async def wait_closed(self) -> None:
        """Wait until the strategy is terminal and its handle released."""
        await self._closed.wait()

    def _finish(
        self, status: WatchStatus, error: Optional[BaseException] = None
    ) -> bool:
        """
        Move to a terminal status. Only the first call has any effect.

        Returns:
            True if this call performed the transition
        """
        if self._finished:
            return False

        self._finished = True
        self.state.status = status
        self.error = error
        self._ensure_release()

        self._report_terminal(status)

        callbacks, self._done_callbacks = self._done_callbacks, []
        for callback in callbacks:
            callback(self)
        return True

    def _ensure_release(self) -> "asyncio.Task[None]":
        """Start (once) and return the release task."""
        if self._release_task is None:
            self._release_task = asyncio.get_running_loop().create_task(
                self._run_release()
            )
        return self._release_task

    async def _run_release(self) -> None:
        """Run _release() once, reporting failures."""
        try:
            await self._release()
        except Exception as e:
            if self.reporter:
                self.reporter.warning(
                    f"{Emoji.WARNING} Releasing {self.name} watch for "
                    f"{self._short_hash()} failed: {type(e).__name__}: {e}",
                    context=self.log_context,
                )
        finally:
            self._closed.set()

    def _emit_confirmation(
        self, confirmation_number: int, latest_block_hash: Union[str, bytes, None]
    ) -> bool:
        """
        Emit a confirmation event and advance the counter.

        Numbers lower than the current counter are dropped so the emitted
        sequence never decreases. A failing emitter is reported; the
        confirmation still counts.

        Returns:
            True if the event was emitted

        Raises:
            ValueError: If latest_block_hash is not valid hex (the counter
                is left unchanged)
        """
        if self._finished:
            return False

        if confirmation_number < self.state.confirmation_number:
            if self.reporter:
                self.reporter.debug(
                    f"Skipping confirmation {confirmation_number} for "
                    f"{self._short_hash()} (already at "
                    f"{self.state.confirmation_number})",
                    context=self.log_context,
                )
            return False

        event = ConfirmationEvent(
            confirmation_number=self.return_format.format_uint(confirmation_number),
            receipt=self.receipt,
            latest_block_hash=self.return_format.format_bytes32(latest_block_hash),
        )
        self.state.confirmation_number = confirmation_number

        if self.reporter:
            self.reporter.info(
                f"{Emoji.WATCH.CONFIRMATION} {self._short_hash()} confirmation "
                f"{confirmation_number}/{self.state.threshold}",
                context=self.log_context,
                verbose_level=2,
            )

        try:
            self.emitter.emit(CONFIRMATION_EVENT, event)
        except Exception as e:
            if self.reporter:
                self.reporter.warning(
                    f"{Emoji.WARNING} Emitting confirmation {confirmation_number} "
                    f"for {self._short_hash()} failed: {type(e).__name__}: {e}",
                    context=self.log_context,
                )
        return True

    def _report_terminal(self, status: WatchStatus) -> None:
        """Log the terminal transition."""
        if not self.reporter:
            return

        tx = self._short_hash()
        if status == WatchStatus.CONFIRMED:
            self.reporter.info(
                f"{Emoji.WATCH.THRESHOLD} {tx} reached "
                f"{self.state.confirmation_number} confirmations",
                context=self.log_context,
            )
        elif status == WatchStatus.CANCELLED:
            self.reporter.info(
                f"{Emoji.STATE.CANCELLED} {self.name} watch for {tx} cancelled",
                context=self.log_context,
                verbose_level=2,
            )
        elif status == WatchStatus.REJECTED:
            self.reporter.error(
                f"{Emoji.STATE.REJECTED} {self.name} watch for {tx} rejected: "
                f"{self.error}",
                context=self.log_context,
            )
        elif status == WatchStatus.FALLBACK_POLLING:
            self.reporter.warning(
                f"{Emoji.STATE.FALLBACK} {tx} falling back to polling at "
                f"confirmation {self.state.confirmation_number}",
                context=self.log_context,
            )

    def _short_hash(self) -> str:
        """Truncated transaction hash for logs."""
        tx = str(self.transaction_hash or self.receipt.transaction_hash or "")
        return f"{tx[:10]}..." if len(tx) > 10 else tx

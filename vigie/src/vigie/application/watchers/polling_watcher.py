"""
Polling watcher: asks for the next block by height on a fixed interval.
"""

import asyncio
from typing import Optional

from shared.reporter.emojis import Emoji

from vigie.application.watchers.base_watcher import WatchStatus, WatchStrategy


class PollingWatcher(WatchStrategy):
    """
    Confirmation watching by periodic block-by-number queries.

    Each tick looks for block ``receipt.block_number + confirmation_number``.
    When it exists, the counter advances and a confirmation is emitted with
    that block's hash. Ticks are serialized by a lock, so an overlapping
    tick waits and then re-reads the state. Fetch errors, and any other
    failure of a step, are reported and retried on the next tick.
    """

    name = "polling"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._lock = asyncio.Lock()
        self._task: Optional[asyncio.Task] = None

    @property
    def interval(self) -> float:
        """Seconds between ticks."""
        return self.state.polling_interval

    def start(self) -> None:
        """Start the periodic task. Calling start() twice is a no-op."""
        if self._task is not None or self.is_finished:
            return

        self.state.status = WatchStatus.ACTIVE
        self._task = asyncio.get_running_loop().create_task(self._run())

        if self.reporter:
            self.reporter.info(
                f"{Emoji.WATCH.POLL} Polling for {self._short_hash()} every "
                f"{self.interval}s (block {self.receipt.block_number}, "
                f"confirmation {self.state.confirmation_number}/"
                f"{self.state.threshold})",
                context=self.log_context,
                verbose_level=2,
            )

    async def _run(self) -> None:
        """Tick until a terminal status is reached."""
        while not self.is_finished:
            try:
                await self.tick()
            except Exception as e:
                if self.reporter:
                    self.reporter.warning(
                        f"{Emoji.WARNING} Polling step for {self._short_hash()} "
                        f"failed, retrying next tick: {type(e).__name__}: {e}",
                        context=self.log_context,
                    )
            if self.is_finished:
                break
            await asyncio.sleep(self.interval)

    async def tick(self) -> bool:
        """
        Run one polling step.

        Returns:
            True if a confirmation was emitted
        """
        async with self._lock:
            if self.is_finished:
                return False

            if self.state.threshold_reached:
                self._finish(WatchStatus.CONFIRMED)
                return False

            height = self.receipt.block_number + self.state.confirmation_number

            try:
                block = await self.context.block_source.get_block_by_number(
                    height, False
                )
            except Exception as e:
                if self.reporter:
                    self.reporter.warning(
                        f"{Emoji.WARNING} Fetching block {height} for "
                        f"{self._short_hash()} failed, retrying next tick: "
                        f"{type(e).__name__}: {e}",
                        context=self.log_context,
                    )
                return False

            # Cancelled while the request was outstanding
            if self.is_finished:
                return False

            if block is None or not block.hash:
                if self.reporter:
                    self.reporter.debug(
                        f"{Emoji.WATCH.WAITING} Block {height} not produced yet",
                        context=self.log_context,
                    )
                return False

            emitted = self._emit_confirmation(
                self.state.confirmation_number + 1, block.hash
            )

            if self.state.threshold_reached:
                self._finish(WatchStatus.CONFIRMED)

            return emitted

    async def _release(self) -> None:
        """Stop the periodic task."""
        task = self._task
        if task is None or task.done():
            return
        task.cancel()
        await asyncio.wait({task})

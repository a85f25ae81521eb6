"""
In-process event emitter with sync and async listeners.
"""

import asyncio
import inspect
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from shared.reporter import SystemReporter
from shared.reporter.emojis import Emoji

from vigie.domain.interfaces import IEventEmitter

Listener = Callable[[Any], Any]


class EventEmitter(IEventEmitter):
    """
    Registry of listeners keyed by event name.

    Listeners run in registration order. Coroutine listeners are scheduled
    as tasks on the running loop; a failing listener is reported and does
    not prevent delivery to the others.
    """

    def __init__(self, reporter: Optional[SystemReporter] = None):
        self._listeners: Dict[str, List[Listener]] = {}
        self._once: Set[Tuple[str, Listener]] = set()
        self._tasks: Set[asyncio.Task] = set()
        self.reporter = reporter

    def on(self, event: str, listener: Listener) -> Listener:
        """
        Register listener for event.

        Returns:
            The listener (allows use as decorator)
        """
        self._listeners.setdefault(event, []).append(listener)
        return listener

    def once(self, event: str, listener: Listener) -> Listener:
        """Register listener removed after its first call."""
        self.on(event, listener)
        self._once.add((event, listener))
        return listener

    def off(self, event: str, listener: Optional[Listener] = None) -> None:
        """Remove one listener, or all listeners of event if None."""
        if listener is None:
            for registered in self._listeners.pop(event, []):
                self._once.discard((event, registered))
            return

        listeners = self._listeners.get(event, [])
        if listener in listeners:
            listeners.remove(listener)
            self._once.discard((event, listener))
        if not listeners:
            self._listeners.pop(event, None)

    def listener_count(self, event: str) -> int:
        """Number of listeners registered for event."""
        return len(self._listeners.get(event, []))

    def emit(self, event: str, payload: Any = None) -> bool:
        """
        Deliver payload to every listener of event.

        Returns:
            True if at least one listener was registered
        """
        listeners = list(self._listeners.get(event, []))
        if not listeners:
            return False

        for listener in listeners:
            if (event, listener) in self._once:
                self.off(event, listener)
            self._call(event, listener, payload)

        return True

    async def drain(self) -> None:
        """Wait for scheduled async listeners to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _call(self, event: str, listener: Listener, payload: Any) -> None:
        """Invoke listener, isolating its failures."""
        try:
            result = listener(payload)
        except Exception as e:
            self._report_failure(event, e)
            return

        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._tasks.add(task)
            task.add_done_callback(lambda t: self._on_task_done(event, t))

    def _on_task_done(self, event: str, task: asyncio.Task) -> None:
        """Forget finished listener task and report its failure."""
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self._report_failure(event, error)

    def _report_failure(self, event: str, error: BaseException) -> None:
        """Report listener failure."""
        if self.reporter:
            self.reporter.error(
                f"{Emoji.FAILURE} Listener for '{event}' failed: "
                f"{type(error).__name__}: {error}",
                context="EventEmitter",
            )

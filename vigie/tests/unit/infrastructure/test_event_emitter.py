"""
Unit tests for EventEmitter.

Usage:
    pytest vigie/tests/unit/infrastructure/test_event_emitter.py
"""

import asyncio
from unittest.mock import MagicMock

from vigie.infrastructure.events import EventEmitter


class TestEventEmitter:
    """Unit tests for EventEmitter."""

    def test_emit_without_listeners(self):
        assert EventEmitter().emit("confirmation", 1) is False

    def test_listeners_called_in_order(self):
        emitter = EventEmitter()
        calls = []
        emitter.on("confirmation", lambda payload: calls.append(("a", payload)))
        emitter.on("confirmation", lambda payload: calls.append(("b", payload)))

        assert emitter.emit("confirmation", 2) is True
        assert calls == [("a", 2), ("b", 2)]

    def test_once(self):
        emitter = EventEmitter()
        calls = []
        emitter.once("error", calls.append)

        emitter.emit("error", "first")
        emitter.emit("error", "second")

        assert calls == ["first"]
        assert emitter.listener_count("error") == 0

    def test_once_is_scoped_to_its_event(self):
        emitter = EventEmitter()
        calls = []
        emitter.once("error", calls.append)
        emitter.on("confirmation", calls.append)

        emitter.emit("error", "failed")
        emitter.emit("confirmation", 2)
        emitter.emit("confirmation", 3)

        assert calls == ["failed", 2, 3]
        assert emitter.listener_count("error") == 0
        assert emitter.listener_count("confirmation") == 1

    def test_off(self):
        emitter = EventEmitter()
        first, second = MagicMock(), MagicMock()
        emitter.on("confirmation", first)
        emitter.on("confirmation", second)

        emitter.off("confirmation", first)
        emitter.emit("confirmation", 1)

        first.assert_not_called()
        second.assert_called_once_with(1)

        emitter.off("confirmation")
        assert emitter.listener_count("confirmation") == 0

    def test_failing_listener_is_isolated(self):
        reporter = MagicMock()
        emitter = EventEmitter(reporter=reporter)
        survivor = MagicMock()

        def broken(payload):
            raise RuntimeError("listener bug")

        emitter.on("confirmation", broken)
        emitter.on("confirmation", survivor)
        emitter.emit("confirmation", 3)

        survivor.assert_called_once_with(3)
        reporter.error.assert_called_once()
        assert "listener bug" in reporter.error.call_args[0][0]

    async def test_async_listener(self):
        emitter = EventEmitter()
        received = []

        async def listener(payload):
            await asyncio.sleep(0)
            received.append(payload)

        emitter.on("confirmation", listener)
        emitter.emit("confirmation", 4)
        await emitter.drain()

        assert received == [4]

    async def test_failing_async_listener_is_reported(self):
        reporter = MagicMock()
        emitter = EventEmitter(reporter=reporter)

        async def listener(payload):
            raise ValueError("async bug")

        emitter.on("confirmation", listener)
        emitter.emit("confirmation", 5)
        await emitter.drain()
        await asyncio.sleep(0)

        reporter.error.assert_called_once()

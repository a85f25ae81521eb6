"""
Unit tests for SubscriptionWatcher.

Tests newHeads confirmations, threshold unsubscribe, fallback to polling
and subscribe rejection.

Usage:
    pytest vigie/tests/unit/application/test_subscription_watcher.py
"""

import asyncio

import pytest

from vigie.application.watchers import (
    PollingWatcher,
    SubscriptionWatcher,
    WatchStatus,
)
from vigie.domain.exceptions import RPCException, SubscriptionError
from vigie.domain.interfaces import IEventEmitter


@pytest.fixture
def make_watcher(
    subscription_source, make_settings, make_context, emitter, receipt, tx_hash
):
    """Build an unstarted SubscriptionWatcher."""

    def _make(**overrides):
        context = make_context(subscription_source, make_settings(**overrides))
        return SubscriptionWatcher(context, emitter, receipt, tx_hash)

    return _make


class FailingEmitter(IEventEmitter):
    """Emitter whose every emit() raises after recording the payload."""

    def __init__(self):
        self.payloads = []

    def emit(self, event, payload=None):
        self.payloads.append(payload)
        raise RuntimeError("listener exploded")


async def _started(watcher, helpers):
    """Start watcher and wait for the subscription to be active."""
    watcher.start()
    await helpers.wait_until(lambda: watcher.status == WatchStatus.ACTIVE)
    return watcher.subscription


class TestSubscriptionWatcher:
    """Unit tests for SubscriptionWatcher."""

    # ================================================================
    # Subscribe
    # ================================================================

    async def test_subscribes_on_next_loop_turn(
        self, make_watcher, subscription_source, helpers
    ):
        """start() returns before the subscribe request is sent."""
        watcher = make_watcher()

        watcher.start()
        assert watcher.status == WatchStatus.SUBSCRIBING
        assert subscription_source.subscriptions == []

        await helpers.wait_until(lambda: watcher.status == WatchStatus.ACTIVE)
        assert watcher.subscription is subscription_source.subscription
        assert watcher.subscription.event == "newHeads"
        await watcher.stop()

    async def test_rejected_subscribe_is_fatal(
        self, make_watcher, subscription_source, confirmations, errors
    ):
        """Rejection surfaces as SubscriptionError, with no fallback."""
        subscription_source.subscribe_error = RPCException("method not found")
        watcher = make_watcher()

        watcher.start()
        await asyncio.wait_for(watcher.wait_closed(), 2)

        assert watcher.status == WatchStatus.REJECTED
        assert isinstance(watcher.error, SubscriptionError)
        assert isinstance(watcher.error.__cause__, RPCException)
        assert "Failed to subscribe" in watcher.error.message
        assert errors == [watcher.error]
        assert watcher.successor is None
        assert subscription_source.requested == []
        assert confirmations == []

    # ================================================================
    # Data handler
    # ================================================================

    async def test_scenario_b_uses_parent_hash(
        self, make_watcher, confirmations, receipt, helpers
    ):
        """Header 105 for a block-100 receipt is confirmation 6."""
        parent = "0x" + "ee" * 32
        watcher = make_watcher(transaction_confirmation_blocks=10)
        subscription = await _started(watcher, helpers)

        subscription.push_header(105, parent_hash=parent)
        await helpers.wait_until(lambda: len(confirmations) == 1)

        assert confirmations[0].confirmation_number == 6
        assert confirmations[0].latest_block_hash == parent
        assert confirmations[0].receipt is receipt
        assert watcher.status == WatchStatus.ACTIVE
        await watcher.stop()

    async def test_threshold_unsubscribes_once(
        self, make_watcher, confirmations, helpers
    ):
        """Reaching the threshold unsubscribes exactly once."""
        watcher = make_watcher()
        subscription = await _started(watcher, helpers)

        subscription.push_header(101)
        subscription.push_header(102)
        await asyncio.wait_for(watcher.wait_closed(), 2)

        subscription.push_header(103)
        subscription.push_header(104)
        await asyncio.sleep(0.01)

        assert watcher.status == WatchStatus.CONFIRMED
        assert [c.confirmation_number for c in confirmations] == [2, 3]
        assert subscription.release_calls == 1
        assert not subscription.active

    async def test_malformed_parent_hash_is_skipped(
        self, make_watcher, confirmations, helpers
    ):
        """A header whose hash cannot be formatted leaves the counter alone."""
        watcher = make_watcher(transaction_confirmation_blocks=10)
        subscription = await _started(watcher, helpers)

        subscription.push_header(102, parent_hash="0xabc")
        subscription.push_header(103)
        await helpers.wait_until(lambda: len(confirmations) == 1)

        assert [c.confirmation_number for c in confirmations] == [4]
        assert watcher.status == WatchStatus.ACTIVE
        await watcher.stop()

    async def test_failing_emitter_still_reaches_threshold(
        self, subscription_source, settings, make_context, receipt, tx_hash, helpers
    ):
        """The watch confirms even when the consumer's emitter raises."""
        emitter = FailingEmitter()
        watcher = SubscriptionWatcher(
            make_context(subscription_source, settings), emitter, receipt, tx_hash
        )
        subscription = await _started(watcher, helpers)

        subscription.push_header(101)
        subscription.push_header(102)
        await asyncio.wait_for(watcher.wait_closed(), 2)

        assert watcher.status == WatchStatus.CONFIRMED
        assert [p.confirmation_number for p in emitter.payloads] == [2, 3]
        assert subscription.release_calls == 1

    async def test_header_beyond_threshold_confirms(
        self, make_watcher, confirmations, helpers
    ):
        """A header past the threshold emits once and stops."""
        watcher = make_watcher()
        subscription = await _started(watcher, helpers)

        subscription.push_header(110)
        await asyncio.wait_for(watcher.wait_closed(), 2)

        assert [c.confirmation_number for c in confirmations] == [11]
        assert watcher.status == WatchStatus.CONFIRMED
        assert subscription.release_calls == 1

    async def test_header_without_number_is_ignored(
        self, make_watcher, confirmations, helpers
    ):
        """Pending headers carry no height and are skipped."""
        watcher = make_watcher(transaction_confirmation_blocks=10)
        subscription = await _started(watcher, helpers)

        subscription.push_header(None)
        subscription.push_header(102)
        await helpers.wait_until(lambda: len(confirmations) == 1)

        assert [c.confirmation_number for c in confirmations] == [3]
        await watcher.stop()

    async def test_lower_header_is_skipped(
        self, make_watcher, confirmations, helpers
    ):
        """The emitted sequence never decreases."""
        watcher = make_watcher(transaction_confirmation_blocks=10)
        subscription = await _started(watcher, helpers)

        subscription.push_header(103)
        subscription.push_header(102)
        subscription.push_header(103)
        subscription.push_header(104)
        await helpers.wait_until(lambda: watcher.state.confirmation_number == 5)

        assert [c.confirmation_number for c in confirmations] == [4, 4, 5]
        await watcher.stop()

    async def test_dict_headers_are_parsed(
        self, make_watcher, confirmations, helpers
    ):
        """Raw JSON-RPC header payloads are accepted."""
        parent = "0x" + "12" * 32
        watcher = make_watcher(transaction_confirmation_blocks=10)
        subscription = await _started(watcher, helpers)

        subscription.deliver("data", {"number": "0x66", "parentHash": parent})
        await helpers.wait_until(lambda: len(confirmations) == 1)

        assert confirmations[0].confirmation_number == 3
        assert confirmations[0].latest_block_hash == parent
        await watcher.stop()

    # ================================================================
    # Fallback
    # ================================================================

    async def test_scenario_c_falls_back_restarting_at_one(
        self, make_watcher, subscription_source, confirmations, errors, helpers
    ):
        """After a stream error polling restarts its counter at 1."""
        for number in range(101, 105):
            subscription_source.produce(number)
        watcher = make_watcher(transaction_confirmation_blocks=5)
        subscription = await _started(watcher, helpers)

        subscription.push_header(101)
        subscription.push_header(102)
        subscription.push_error()
        await helpers.wait_until(lambda: watcher.successor is not None)

        successor = watcher.successor
        assert isinstance(successor, PollingWatcher)
        assert watcher.status == WatchStatus.FALLBACK_POLLING
        assert subscription.release_calls == 1

        await asyncio.wait_for(successor.wait_closed(), 2)

        numbers = [c.confirmation_number for c in confirmations]
        assert numbers == [2, 3, 2, 3, 4, 5]
        assert successor.status == WatchStatus.CONFIRMED
        assert subscription_source.requested == [101, 102, 103, 104]
        assert errors == []

    async def test_fallback_resumes_counter_when_configured(
        self, make_watcher, subscription_source, confirmations, helpers
    ):
        """resume_confirmations_on_fallback continues from the last number."""
        for number in range(101, 105):
            subscription_source.produce(number)
        watcher = make_watcher(
            transaction_confirmation_blocks=5,
            resume_confirmations_on_fallback=True,
        )
        subscription = await _started(watcher, helpers)

        subscription.push_header(101)
        subscription.push_header(102)
        subscription.push_error()
        await helpers.wait_until(lambda: watcher.successor is not None)
        await asyncio.wait_for(watcher.successor.wait_closed(), 2)

        assert [c.confirmation_number for c in confirmations] == [2, 3, 4, 5]
        assert subscription_source.requested == [103, 104]

    async def test_data_after_error_is_not_dispatched(
        self, make_watcher, confirmations, helpers
    ):
        """Headers queued behind an error never reach the watcher."""
        watcher = make_watcher(transaction_confirmation_blocks=10)
        subscription = await _started(watcher, helpers)

        subscription.push_error()
        subscription.push_header(105)
        await helpers.wait_until(lambda: watcher.successor is not None)
        await asyncio.sleep(0.01)

        assert confirmations == []
        await watcher.successor.stop()

    # ================================================================
    # Cancellation
    # ================================================================

    async def test_cancel_before_subscribe_completes(
        self, make_watcher, subscription_source, confirmations
    ):
        """A subscription acquired after cancel() is released."""
        watcher = make_watcher()
        watcher.start()

        assert watcher.cancel() is True
        await asyncio.wait_for(watcher.wait_closed(), 2)

        assert watcher.status == WatchStatus.CANCELLED
        assert len(subscription_source.subscriptions) == 1
        assert subscription_source.subscription.release_calls == 1
        assert confirmations == []

    async def test_cancel_while_active(self, make_watcher, confirmations, helpers):
        """Cancellation unsubscribes and drops later headers."""
        watcher = make_watcher()
        subscription = await _started(watcher, helpers)

        await watcher.stop()
        subscription.push_header(102)
        await asyncio.sleep(0.01)

        assert watcher.status == WatchStatus.CANCELLED
        assert subscription.release_calls == 1
        assert confirmations == []

    async def test_cancel_rejected_watch_is_noop(
        self, make_watcher, subscription_source
    ):
        """Terminal status is reached exactly once."""
        subscription_source.subscribe_error = RPCException("denied")
        watcher = make_watcher()
        watcher.start()
        await asyncio.wait_for(watcher.wait_closed(), 2)

        assert watcher.cancel() is False
        assert watcher.status == WatchStatus.REJECTED

"""
Test fixtures and configuration.

In-memory block source and subscription used by the watcher tests.
"""

import asyncio
from typing import Any, Callable, Dict, List, Optional

import pytest

from vigie.application.context import WatchContext
from vigie.config.settings import VigieConfig
from vigie.domain.entities import BlockHeader, TransactionReceipt
from vigie.domain.interfaces import NEW_HEADS, IBlockSource
from vigie.infrastructure.blockchain.subscription import (
    DATA,
    ERROR,
    QueuedSubscription,
)
from vigie.infrastructure.events import EventEmitter

TX_HASH = "0x" + "ab" * 32
RECEIPT_BLOCK_HASH = "0x" + "cd" * 32


def block_hash(number: int) -> str:
    """Deterministic 32-byte hash for block number."""
    return "0x" + f"{number:064x}"


class FakeSubscription(QueuedSubscription):
    """Subscription driven by the test through push_header / push_error."""

    def __init__(self, subscription_id: str, event: str = NEW_HEADS):
        super().__init__(subscription_id, event)
        self.release_calls = 0

    def push_header(self, number: Optional[int], parent_hash: Optional[str] = None):
        """Deliver a newHeads header."""
        header = BlockHeader(
            number=number,
            hash=block_hash(number) if number is not None else None,
            parent_hash=parent_hash
            or (block_hash(number - 1) if number is not None else None),
        )
        self.deliver(DATA, header)

    def push_error(self, error: Optional[Exception] = None):
        """Break the stream."""
        self.deliver(ERROR, error or ConnectionError("stream closed"))

    async def _release(self) -> bool:
        self.release_calls += 1
        return True


class FakeBlockSource(IBlockSource):
    """
    In-memory chain.

    Blocks are produced with produce(); get_block_by_number() returns None
    for heights not produced yet.
    """

    def __init__(self, subscriptions: bool = False):
        self.subscriptions_supported = subscriptions
        self.blocks: Dict[int, BlockHeader] = {}
        self.requested: List[int] = []
        self.subscriptions: List[FakeSubscription] = []
        self.subscribe_error: Optional[Exception] = None
        self.fetch_errors: List[Exception] = []
        self.fetch_delay = 0.0

    def produce(self, number: int, hash_: Optional[str] = None) -> BlockHeader:
        """Make block number available."""
        header = BlockHeader(
            number=number,
            hash=hash_ or block_hash(number),
            parent_hash=block_hash(number - 1),
        )
        self.blocks[number] = header
        return header

    @property
    def subscription(self) -> FakeSubscription:
        """Latest subscription."""
        return self.subscriptions[-1]

    def supports_subscriptions(self) -> bool:
        return self.subscriptions_supported

    async def get_block_by_number(self, block_number, include_transactions=False):
        self.requested.append(block_number)
        if self.fetch_delay:
            await asyncio.sleep(self.fetch_delay)
        if self.fetch_errors:
            raise self.fetch_errors.pop(0)
        return self.blocks.get(block_number)

    async def subscribe(self, event: str = NEW_HEADS) -> FakeSubscription:
        await asyncio.sleep(0)
        if self.subscribe_error is not None:
            raise self.subscribe_error
        subscription = FakeSubscription(f"0x{len(self.subscriptions) + 1:x}", event)
        self.subscriptions.append(subscription)
        return subscription


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Yield to the loop until predicate() holds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("Condition not reached before timeout")
        await asyncio.sleep(0.001)


@pytest.fixture
def settings() -> VigieConfig:
    """Fast watch settings: threshold 3, 10ms polling."""
    return VigieConfig(
        transaction_confirmation_blocks=3,
        transaction_polling_interval=0.01,
        rpc_url="http://127.0.0.1:8545",
    )


@pytest.fixture
def make_settings() -> Callable[..., VigieConfig]:
    """Build settings with overrides."""

    def _make(**overrides: Any) -> VigieConfig:
        values = {
            "transaction_confirmation_blocks": 3,
            "transaction_polling_interval": 0.01,
        }
        values.update(overrides)
        return VigieConfig(**values)

    return _make


@pytest.fixture
def polling_source() -> FakeBlockSource:
    """Block source without subscription support."""
    return FakeBlockSource(subscriptions=False)


@pytest.fixture
def subscription_source() -> FakeBlockSource:
    """Block source with newHeads subscriptions."""
    return FakeBlockSource(subscriptions=True)


@pytest.fixture
def receipt() -> TransactionReceipt:
    """Receipt of a transaction mined in block 100."""
    return TransactionReceipt(
        transaction_hash=TX_HASH,
        block_hash=RECEIPT_BLOCK_HASH,
        block_number=100,
        transaction_index=0,
        status=1,
    )


@pytest.fixture
def tx_hash() -> str:
    return TX_HASH


@pytest.fixture
def make_context() -> Callable[..., WatchContext]:
    """Build a WatchContext around a block source."""

    def _make(block_source: IBlockSource, config: VigieConfig) -> WatchContext:
        return WatchContext(block_source=block_source, config=config)

    return _make


@pytest.fixture
def emitter() -> EventEmitter:
    return EventEmitter()


@pytest.fixture
def confirmations(emitter: EventEmitter) -> List[Any]:
    """Every "confirmation" payload emitted on the emitter fixture."""
    received: List[Any] = []
    emitter.on("confirmation", received.append)
    return received


@pytest.fixture
def errors(emitter: EventEmitter) -> List[Any]:
    """Every "error" payload emitted on the emitter fixture."""
    received: List[Any] = []
    emitter.on("error", received.append)
    return received


@pytest.fixture
def helpers():
    """Module-free access to test helpers."""

    class Helpers:
        block_hash = staticmethod(block_hash)
        wait_until = staticmethod(wait_until)
        FakeBlockSource = FakeBlockSource

    return Helpers

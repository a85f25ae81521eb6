"""
Watch transaction for confirmations use case.

Validates the receipt, then picks the subscription watcher when the block
source can push new headers and the polling watcher otherwise.
"""

from typing import Any, Mapping, Optional, Union

from vigie.application.context import WatchContext
from vigie.application.use_cases.confirmation_watch import ConfirmationWatch
from vigie.application.watchers import PollingWatcher, SubscriptionWatcher
from vigie.domain.entities import TransactionReceipt
from vigie.domain.exceptions import (
    TransactionMissingReceiptOrBlockHashError,
    TransactionReceiptMissingBlockNumberError,
)
from vigie.domain.interfaces import IEventEmitter
from vigie.domain.value_objects import DEFAULT_RETURN_FORMAT, ReturnFormat

ReceiptLike = Union[TransactionReceipt, Mapping[str, Any], None]


class ConfirmationTracker:
    """
    Entry point of confirmation watching.

    Validation is synchronous and happens before any background work; the
    watch itself runs on the current event loop.
    """

    def __init__(self, context: WatchContext):
        """
        Initialize tracker.

        Args:
            context: Block source, config and reporter
        """
        self.context = context

    def watch(
        self,
        emitter: IEventEmitter,
        receipt: ReceiptLike,
        transaction_hash: str,
        return_format: ReturnFormat = DEFAULT_RETURN_FORMAT,
    ) -> ConfirmationWatch:
        """
        Start watching a mined transaction.

        Args:
            emitter: Receives "confirmation" (and fatal "error") events
            receipt: Receipt of the mined transaction (entity or RPC dict)
            transaction_hash: Hash of the watched transaction
            return_format: Rendering of emitted numbers and hashes

        Returns:
            Handle of the running watch

        Raises:
            TransactionMissingReceiptOrBlockHashError: No receipt or no block hash
            TransactionReceiptMissingBlockNumberError: No block number
        """
        if isinstance(receipt, Mapping):
            receipt = TransactionReceipt.from_rpc(receipt)

        if receipt is None or not receipt.block_hash:
            raise TransactionMissingReceiptOrBlockHashError(
                receipt=receipt.to_dict() if receipt is not None else None,
                block_hash=self._format_hash(
                    receipt.block_hash if receipt is not None else None,
                    return_format,
                ),
                transaction_hash=self._format_hash(transaction_hash, return_format),
            )

        if not receipt.block_number:
            raise TransactionReceiptMissingBlockNumberError(receipt=receipt.to_dict())

        if self.context.block_source.supports_subscriptions():
            strategy_class = SubscriptionWatcher
        else:
            strategy_class = PollingWatcher

        strategy = strategy_class(
            self.context, emitter, receipt, transaction_hash, return_format
        )

        watch = ConfirmationWatch(receipt, transaction_hash)
        watch.attach(strategy)
        strategy.start()
        return watch

    @staticmethod
    def _format_hash(value: Any, return_format: ReturnFormat) -> Optional[Any]:
        """Render a hash for error details, keeping malformed values as-is."""
        try:
            return return_format.format_bytes32(value)
        except (TypeError, ValueError):
            return value


def watch_transaction_for_confirmations(
    context: WatchContext,
    emitter: IEventEmitter,
    receipt: ReceiptLike,
    transaction_hash: str,
    return_format: ReturnFormat = DEFAULT_RETURN_FORMAT,
) -> ConfirmationWatch:
    """Shortcut for ConfirmationTracker(context).watch(...)."""
    return ConfirmationTracker(context).watch(
        emitter, receipt, transaction_hash, return_format
    )

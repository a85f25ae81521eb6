"""Application use cases."""

from vigie.application.use_cases.confirmation_watch import ConfirmationWatch
from vigie.application.use_cases.watch_transaction_for_confirmations import (
    ConfirmationTracker,
    watch_transaction_for_confirmations,
)

__all__ = [
    "ConfirmationTracker",
    "ConfirmationWatch",
    "watch_transaction_for_confirmations",
]

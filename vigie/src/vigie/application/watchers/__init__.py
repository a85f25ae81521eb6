"""Confirmation watch strategies."""

from vigie.application.watchers.base_watcher import (
    CONFIRMATION_EVENT,
    ERROR_EVENT,
    TERMINAL_STATUSES,
    WatchState,
    WatchStatus,
    WatchStrategy,
)
from vigie.application.watchers.polling_watcher import PollingWatcher
from vigie.application.watchers.subscription_watcher import SubscriptionWatcher

__all__ = [
    "CONFIRMATION_EVENT",
    "ERROR_EVENT",
    "TERMINAL_STATUSES",
    "WatchState",
    "WatchStatus",
    "WatchStrategy",
    "PollingWatcher",
    "SubscriptionWatcher",
]

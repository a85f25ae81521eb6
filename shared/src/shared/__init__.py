"""
Shared utilities for Vigie components.

Provides the system reporter (logging) and resilience patterns used by
the confirmation watcher and its block sources.
"""

from shared.reporter import SystemReporter
from shared.resilience import Retry, RetryConfig, RetryError

__all__ = [
    "SystemReporter",
    "Retry",
    "RetryConfig",
    "RetryError",
]

"""
Resilience patterns for block source access.

This module provides:
- Retry: Automatic retry with exponential backoff and a retry hook
"""

from shared.resilience.retry import (
    BackoffStrategy,
    Retry,
    RetryConfig,
    RetryError,
    RetryHook,
)

__all__ = [
    "Retry",
    "RetryConfig",
    "RetryError",
    "RetryHook",
    "BackoffStrategy",
]

"""
Retry with backoff for transient block source failures.

A node that drops a request, returns 5xx or times out usually answers the
next attempt. Retry re-runs the coroutine with a growing pause and gives
up with RetryError once the attempt budget is spent.
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

# on_retry(attempt, error, delay), called before sleeping
RetryHook = Callable[[int, BaseException, float], None]


class BackoffStrategy(str, Enum):
    """How the pause grows between attempts."""

    EXPONENTIAL = "exponential"
    LINEAR = "linear"
    CONSTANT = "constant"


@dataclass
class RetryConfig:
    """
    Retry budget and backoff shape.

    Attributes:
        max_attempts: Total attempts, the first call included
        initial_delay: Pause after the first failure (seconds)
        max_delay: Upper bound of any pause (seconds)
        backoff_strategy: Growth of the pause
        backoff_multiplier: Factor (exponential) or step (linear)
        jitter: Randomize each pause by +/- jitter_factor
        jitter_factor: Relative jitter amplitude (0.0-1.0)
        retry_on: Exception types worth another attempt
    """

    max_attempts: int = 3
    initial_delay: float = 0.5
    max_delay: float = 5.0
    backoff_strategy: BackoffStrategy = BackoffStrategy.EXPONENTIAL
    backoff_multiplier: float = 2.0
    jitter: bool = True
    jitter_factor: float = 0.1
    retry_on: tuple = (Exception,)

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.initial_delay < 0 or self.max_delay < 0:
            raise ValueError("Retry delays must be non-negative")

    def base_delay(self, failures: int) -> float:
        """Pause after the given number of failures, before jitter."""
        step = failures - 1
        if self.backoff_strategy == BackoffStrategy.EXPONENTIAL:
            delay = self.initial_delay * self.backoff_multiplier**step
        elif self.backoff_strategy == BackoffStrategy.LINEAR:
            delay = self.initial_delay + self.backoff_multiplier * step
        else:
            delay = self.initial_delay
        return min(delay, self.max_delay)


class RetryError(Exception):
    """Every attempt failed."""

    def __init__(
        self,
        message: str,
        attempts: int,
        last_exception: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.attempts = attempts
        self.last_exception = last_exception


class Retry:
    """
    Async retry runner.

    Example:
        retry = Retry("rpc_query", RetryConfig(max_attempts=5))

        block = await retry.execute_async(
            source.call_rpc, "eth_getBlockByNumber", ["0x64", False]
        )
    """

    def __init__(
        self,
        name: str = "retry",
        config: Optional[RetryConfig] = None,
        on_retry: Optional[RetryHook] = None,
    ):
        """
        Initialize retry runner.

        Args:
            name: Tag used in log lines and errors
            config: Budget and backoff (defaults to RetryConfig())
            on_retry: Optional hook called before each pause
        """
        self.name = name
        self.config = config or RetryConfig()
        self.on_retry = on_retry

    def calculate_delay(self, attempt: int) -> float:
        """
        Pause before the next attempt.

        Args:
            attempt: Index of the attempt that just failed (0-based)

        Returns:
            Delay in seconds
        """
        delay = self.config.base_delay(attempt + 1)
        if self.config.jitter and delay:
            spread = delay * self.config.jitter_factor
            delay = max(0.0, delay + random.uniform(-spread, spread))
        return delay

    def should_retry(self, exception: BaseException) -> bool:
        """True if exception is one of config.retry_on."""
        return isinstance(exception, self.config.retry_on)

    async def execute_async(
        self, func: Callable[..., Awaitable[Any]], *args, **kwargs
    ) -> Any:
        """
        Await func(*args, **kwargs) until it succeeds or the budget is spent.

        Returns:
            Result of the first successful attempt

        Raises:
            RetryError: When all attempts failed with retryable errors
            Exception: A non-retryable error, unchanged, on first occurrence
        """
        budget = self.config.max_attempts
        attempt = 0

        while True:
            attempt += 1
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                if not self.should_retry(e):
                    raise

                if attempt >= budget:
                    raise RetryError(
                        f"[{self.name}] gave up after {attempt} attempts: "
                        f"{type(e).__name__}: {e}",
                        attempts=attempt,
                        last_exception=e,
                    ) from e

                delay = self.calculate_delay(attempt - 1)
                logger.warning(
                    f"[{self.name}] attempt {attempt}/{budget} failed "
                    f"({type(e).__name__}: {e}), next in {delay:.2f}s"
                )
                if self.on_retry is not None:
                    self.on_retry(attempt, e, delay)
                await asyncio.sleep(delay)
                continue

            if attempt > 1:
                logger.info(f"[{self.name}] recovered on attempt {attempt}/{budget}")
            return result


__all__ = [
    "BackoffStrategy",
    "Retry",
    "RetryConfig",
    "RetryError",
    "RetryHook",
]

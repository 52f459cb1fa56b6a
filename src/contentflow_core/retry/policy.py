"""Exponential-backoff retry for remote calls."""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from contentflow_core.types import RetryConfig

T = TypeVar("T")

# Called after a failed attempt: (attempt, max_attempts, delay_seconds, error)
RetryCallback = Callable[[int, int, float, Exception], None]


def backoff_delay(base_delay: float, attempt: int) -> float:
    """Delay before the attempt following ``attempt`` (1-indexed)."""
    return base_delay * (2**attempt)


async def call_with_retry(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    base_delay: float = 0.5,
    on_retry: RetryCallback | None = None,
) -> T:
    """Run ``operation`` up to ``max_attempts`` times.

    After failed attempt ``n`` the call sleeps ``base_delay * 2**n``
    seconds. The last attempt's exception propagates unchanged.

    Args:
        operation: Zero-argument coroutine factory
        max_attempts: Total number of attempts (at least 1)
        base_delay: Base delay in seconds
        on_retry: Optional hook invoked before each sleep

    Returns:
        The first successful result
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    attempt = 0
    while True:
        try:
            return await operation()
        except Exception as e:
            attempt += 1
            if attempt >= max_attempts:
                raise

            delay = backoff_delay(base_delay, attempt)
            if on_retry:
                on_retry(attempt, max_attempts, delay, e)
            await asyncio.sleep(delay)


@dataclass
class RetryPolicy:
    """Reusable retry settings bound to an optional callback."""

    config: RetryConfig
    on_retry: RetryCallback | None = None

    async def run(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Run ``operation`` under this policy."""
        return await call_with_retry(
            operation,
            max_attempts=self.config.max_attempts,
            base_delay=self.config.delay_seconds,
            on_retry=self.on_retry,
        )

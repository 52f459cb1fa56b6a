"""Retry helpers for remote tool calls."""

from .policy import RetryCallback, RetryPolicy, backoff_delay, call_with_retry

__all__ = [
    "RetryPolicy",
    "RetryCallback",
    "backoff_delay",
    "call_with_retry",
]

"""Shared configuration types for Contentflow."""

from dataclasses import dataclass


@dataclass
class RetryConfig:
    """Retry configuration for remote calls."""

    max_attempts: int = 3
    delay_seconds: float = 1.0

"""Shared types for Contentflow.

Import from here rather than submodules:
    from contentflow_core.types import LogLevel, RetryConfig, StepName
"""

from .config import RetryConfig
from .enums import (
    CallbackState,
    ConnectionStatus,
    ErrorType,
    LogFormat,
    LogLevel,
    PipelineState,
    StepName,
)
from .validation import ValidationIssue, ValidationResult

__all__ = [
    # Enums
    "LogLevel",
    "LogFormat",
    "ConnectionStatus",
    "CallbackState",
    "StepName",
    "PipelineState",
    "ErrorType",
    # Config
    "RetryConfig",
    # Validation
    "ValidationIssue",
    "ValidationResult",
]

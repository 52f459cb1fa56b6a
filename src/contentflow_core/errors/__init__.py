"""Contentflow error handling - Structured errors with context."""

from .classifier import ErrorClassification, classify_error
from .errors import (
    ContentflowError,
    ErrorCategory,
    ErrorMatcher,
    ErrorTemplate,
    MatchResult,
    find_error,
)
from .factory import ErrorFactory, create_error, get_error_factory
from .matchers import ErrorMatcherChain
from .registry import ErrorRegistry

__all__ = [
    # Core error types
    "ContentflowError",
    "ErrorCategory",
    "ErrorTemplate",
    "MatchResult",
    # Registry and factory
    "ErrorRegistry",
    "ErrorFactory",
    "ErrorMatcherChain",
    "ErrorMatcher",
    # Classification
    "ErrorClassification",
    "classify_error",
    # Convenience functions
    "get_error_factory",
    "create_error",
    "find_error",
]

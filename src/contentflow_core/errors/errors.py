"""Contentflow error types."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Error source categories."""

    AUTH = "AUTH"
    TRANSPORT = "TRANSPORT"
    TOOL = "TOOL"
    PIPELINE = "PIPELINE"
    SYSTEM = "SYSTEM"


@dataclass
class ContentflowError(Exception):
    """Structured error with context. Base exception for all Contentflow errors."""

    # Identity
    code: str  # e.g., "UNAUTHORIZED"
    category: ErrorCategory

    # Messages
    message: str  # Human-readable summary
    detail: str | None = None  # Extended explanation
    suggestion: str | None = None  # Actionable fix

    # Context
    retryable: bool = False
    server_name: str | None = None  # Which remote server
    tool_name: str | None = None  # Which tool failed
    step: str | None = None  # Which pipeline step

    # Error chain (max depth 3)
    cause: "ContentflowError | None" = None

    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        """Set Exception message."""
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.detail:
            return f"{self.message}: {self.detail}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Serialize for CLI and JSON output.

        Returns:
            Dictionary representation of the error
        """
        return {
            "code": self.code,
            "category": self.category.value,
            "message": self.message,
            "detail": self.detail,
            "suggestion": self.suggestion,
            "retryable": self.retryable,
            "server_name": self.server_name,
            "tool_name": self.tool_name,
            "step": self.step,
            "timestamp": self.timestamp.isoformat(),
            "cause": self.cause.to_dict() if self.cause else None,
        }

    def with_context(
        self,
        server_name: str | None = None,
        tool_name: str | None = None,
        step: str | None = None,
    ) -> "ContentflowError":
        """Return copy with additional context.

        Args:
            server_name: Optional server name
            tool_name: Optional tool name
            step: Optional pipeline step

        Returns:
            New ContentflowError instance with updated context
        """
        return ContentflowError(
            code=self.code,
            category=self.category,
            message=self.message,
            detail=self.detail,
            suggestion=self.suggestion,
            retryable=self.retryable,
            server_name=server_name or self.server_name,
            tool_name=tool_name or self.tool_name,
            step=step or self.step,
            cause=self.cause,
            timestamp=self.timestamp,
        )


@dataclass
class ErrorTemplate:
    """Template for creating errors."""

    code: str
    category: ErrorCategory
    message_template: str  # "Tool '{tool_name}' failed"
    detail_template: str | None = None
    suggestion_template: str | None = None
    default_retryable: bool = False


@dataclass
class MatchResult:
    """Result of matching an exception."""

    code: str
    context: dict[str, Any]
    retryable: bool | None = None  # None = use template default


class ErrorMatcher(ABC):
    """Base class for exception matchers."""

    @abstractmethod
    def matches(self, error: Exception) -> bool:
        """Check if this matcher handles the error.

        Args:
            error: Exception to check

        Returns:
            True if this matcher can handle the error
        """

    @abstractmethod
    def extract(self, error: Exception) -> MatchResult:
        """Extract error info from the exception.

        Args:
            error: Exception to extract from

        Returns:
            MatchResult with error code and context
        """


def find_error(error: BaseException, code: str) -> "ContentflowError | None":
    """Search an exception, its chain and any exception groups for a code.

    Transports running inside task groups wrap failures in
    ``ExceptionGroup`` or re-raise them from other exceptions, so the
    error we care about may sit a few levels down.

    Args:
        error: Exception to inspect
        code: Error code to look for

    Returns:
        The first matching ContentflowError, or None
    """
    seen: set[int] = set()
    pending: list[BaseException] = [error]
    while pending:
        current = pending.pop()
        if id(current) in seen:
            continue
        seen.add(id(current))
        if isinstance(current, ContentflowError) and current.code == code:
            return current
        if isinstance(current, BaseExceptionGroup):
            pending.extend(current.exceptions)
        if current.__cause__ is not None:
            pending.append(current.__cause__)
        if current.__context__ is not None:
            pending.append(current.__context__)
    return None

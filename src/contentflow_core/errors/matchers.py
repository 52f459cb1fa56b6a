"""Error matchers for converting exceptions to ContentflowErrors."""

import asyncio
from typing import Any

import httpx
from fastmcp.exceptions import ToolError
from mcp import McpError
from mcp.client.auth import OAuthFlowError, OAuthTokenError

from .errors import ErrorMatcher, MatchResult


class TimeoutErrorMatcher(ErrorMatcher):
    """Matches timeout errors from asyncio and httpx."""

    def matches(self, error: Exception) -> bool:
        """Check if error is a timeout error."""
        return isinstance(error, (asyncio.TimeoutError, TimeoutError, httpx.TimeoutException))

    def extract(self, error: Exception) -> MatchResult:
        """Extract timeout error info."""
        return MatchResult(
            code="TOOL_TIMEOUT",
            context={"timeout_seconds": "unknown"},
        )


class ToolErrorMatcher(ErrorMatcher):
    """Matches tool-side failures reported by the remote server."""

    def matches(self, error: Exception) -> bool:
        """Check if the server reported the tool call as an error."""
        return isinstance(error, ToolError)

    def extract(self, error: Exception) -> MatchResult:
        """Extract tool error info."""
        return MatchResult(
            code="REMOTE_TOOL_ERROR",
            context={"detail": str(error)},
            retryable=False,
        )


class McpErrorMatcher(ErrorMatcher):
    """Matches JSON-RPC errors answered by the remote server."""

    def matches(self, error: Exception) -> bool:
        """Check if the server answered with a JSON-RPC error."""
        return isinstance(error, McpError)

    def extract(self, error: Exception) -> MatchResult:
        """Extract JSON-RPC error info."""
        return MatchResult(
            code="REMOTE_TOOL_ERROR",
            context={"detail": str(error)},
            retryable=False,
        )


class OAuthErrorMatcher(ErrorMatcher):
    """Matches failures of the OAuth client provider."""

    def matches(self, error: Exception) -> bool:
        """Check if the OAuth flow itself failed."""
        return isinstance(error, OAuthFlowError)

    def extract(self, error: Exception) -> MatchResult:
        """Extract OAuth error info."""
        if isinstance(error, OAuthTokenError):
            return MatchResult(
                code="TOKEN_EXCHANGE_FAILED",
                context={"detail": str(error)},
                retryable=False,
            )
        return MatchResult(
            code="AUTHORIZATION_FAILED",
            context={"reason": str(error)},
            retryable=False,
        )


class TransportErrorMatcher(ErrorMatcher):
    """Matches network and HTTP status failures."""

    def matches(self, error: Exception) -> bool:
        """Check if error came from the HTTP layer."""
        return isinstance(error, (httpx.TransportError, httpx.HTTPStatusError))

    def extract(self, error: Exception) -> MatchResult:
        """Extract transport error info."""
        context: dict[str, Any] = {"detail": str(error)}
        if isinstance(error, httpx.HTTPStatusError):
            status_code = error.response.status_code
            if status_code == 401:
                return MatchResult(code="UNAUTHORIZED", context=context, retryable=False)
            context["status_code"] = status_code
        return MatchResult(
            code="TRANSPORT_ERROR",
            context=context,
        )


class GenericErrorMatcher(ErrorMatcher):
    """Fallback matcher for any exception."""

    def matches(self, error: Exception) -> bool:
        """Always matches."""
        return True

    def extract(self, error: Exception) -> MatchResult:
        """Extract generic error info."""
        return MatchResult(
            code="INTERNAL_ERROR",
            context={"detail": str(error), "error_type": type(error).__name__},
            retryable=False,
        )


class ErrorMatcherChain:
    """Ordered chain of matchers. First match wins."""

    def __init__(self) -> None:
        """Initialize matcher chain with built-in matchers."""
        self.matchers: list[ErrorMatcher] = []
        self._load_builtin_matchers()

    def match(self, error: Exception) -> MatchResult:
        """Find first matching matcher and extract result.

        Args:
            error: Exception to match

        Returns:
            MatchResult from first matching matcher
        """
        for matcher in self.matchers:
            if matcher.matches(error):
                return matcher.extract(error)

        # Should never reach here due to GenericErrorMatcher
        return MatchResult(
            code="INTERNAL_ERROR",
            context={"detail": str(error)},
            retryable=False,
        )

    def _load_builtin_matchers(self) -> None:
        """Load built-in matchers in priority order."""
        # httpx.TimeoutException is a TransportError, so timeouts go first
        self.matchers = [
            TimeoutErrorMatcher(),
            ToolErrorMatcher(),
            McpErrorMatcher(),
            OAuthErrorMatcher(),
            TransportErrorMatcher(),
            GenericErrorMatcher(),  # Fallback - must be last
        ]

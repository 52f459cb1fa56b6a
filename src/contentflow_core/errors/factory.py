"""Error factory for creating ContentflowErrors from any exception type."""

from typing import Any

from .errors import ContentflowError
from .matchers import ErrorMatcherChain
from .registry import ErrorRegistry


class ErrorFactory:
    """Creates ContentflowErrors from any exception type."""

    def __init__(
        self,
        registry: ErrorRegistry | None = None,
        matcher_chain: ErrorMatcherChain | None = None,
    ):
        """Initialize error factory.

        Args:
            registry: Error registry (defaults to new ErrorRegistry())
            matcher_chain: Matcher chain (defaults to new ErrorMatcherChain())
        """
        self.registry = registry or ErrorRegistry()
        self.matcher_chain = matcher_chain or ErrorMatcherChain()

    def from_exception(
        self,
        error: Exception,
        server_name: str | None = None,
        tool_name: str | None = None,
        step: str | None = None,
    ) -> ContentflowError:
        """Convert any exception to ContentflowError.

        Args:
            error: Exception to convert
            server_name: Optional server name
            tool_name: Optional tool name
            step: Optional pipeline step

        Returns:
            ContentflowError instance
        """
        if isinstance(error, ContentflowError):
            return error.with_context(server_name=server_name, tool_name=tool_name, step=step)

        match_result = self.matcher_chain.match(error)

        context = match_result.context.copy()
        if server_name:
            context["server_name"] = server_name
        if tool_name:
            context["tool_name"] = tool_name
        if step:
            context["step"] = step

        converted = self.registry.create(code=match_result.code, context=context)

        if match_result.retryable is not None:
            converted.retryable = match_result.retryable

        return converted

    def create(
        self,
        code: str,
        context: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> ContentflowError:
        """Create ContentflowError directly from code.

        Args:
            code: Error code
            context: Context variables for template interpolation
            **kwargs: Additional context variables

        Returns:
            ContentflowError instance
        """
        merged_context = dict(context or {})
        merged_context.update(kwargs)

        return self.registry.create(code=code, context=merged_context)


# Convenience singleton
_default_factory: ErrorFactory | None = None


def get_error_factory() -> ErrorFactory:
    """Get default error factory singleton."""
    global _default_factory  # noqa: PLW0603
    if _default_factory is None:
        _default_factory = ErrorFactory()
    return _default_factory


def create_error(code: str, **context: Any) -> ContentflowError:
    """Convenience function to create error.

    Args:
        code: Error code
        **context: Context variables for template interpolation

    Returns:
        ContentflowError instance
    """
    return get_error_factory().create(code, context)

"""Error registry for creating errors from templates."""

from typing import Any

from .errors import ContentflowError, ErrorCategory, ErrorTemplate


class ErrorRegistry:
    """Registry of error templates. Creates errors from templates + context."""

    def __init__(self) -> None:
        """Initialize error registry with built-in templates."""
        self._templates: dict[str, ErrorTemplate] = {}
        self._load_builtin_templates()

    def get_template(self, code: str) -> ErrorTemplate | None:
        """Get template by error code.

        Args:
            code: Error code to look up

        Returns:
            ErrorTemplate if found, None otherwise
        """
        return self._templates.get(code)

    def list_codes(self) -> list[str]:
        """List all registered error codes."""
        return list(self._templates.keys())

    def register(self, template: ErrorTemplate) -> None:
        """Register or replace a template.

        Args:
            template: Template to register
        """
        self._templates[template.code] = template

    def create(
        self,
        code: str,
        context: dict[str, Any] | None = None,
        cause: ContentflowError | None = None,
    ) -> ContentflowError:
        """Create error instance from template + context.

        Args:
            code: Error code
            context: Context variables for template interpolation
            cause: Optional cause error

        Returns:
            ContentflowError instance

        Raises:
            ValueError: If error code not found
        """
        template = self.get_template(code)
        if not template:
            msg = f"Unknown error code: {code}"
            raise ValueError(msg)

        context = context or {}

        message = self._interpolate(template.message_template, context)
        detail = context.get("detail") or self._interpolate(template.detail_template, context)
        suggestion = self._interpolate(template.suggestion_template, context)

        if message is None:
            message = f"Error {code}"

        return ContentflowError(
            code=template.code,
            category=template.category,
            message=message,
            detail=detail,
            suggestion=suggestion,
            retryable=template.default_retryable,
            server_name=context.get("server_name"),
            tool_name=context.get("tool_name"),
            step=context.get("step"),
            cause=cause,
        )

    def _interpolate(
        self,
        template: str | None,
        context: dict[str, Any],
    ) -> str | None:
        """Safe string interpolation.

        Args:
            template: Template string with {var} placeholders
            context: Context variables

        Returns:
            Interpolated string or None if template is None
        """
        if template is None:
            return None

        try:
            return template.format(**context)
        except KeyError:
            # Missing context variable - return template as-is
            return template

    def _load_builtin_templates(self) -> None:
        """Load hardcoded built-in templates."""
        # AUTH Errors
        self._templates["UNAUTHORIZED"] = ErrorTemplate(
            code="UNAUTHORIZED",
            category=ErrorCategory.AUTH,
            message_template="Server '{server_name}' requires authorization",
            detail_template="The server rejected the request without a valid access token",
            suggestion_template="Complete the browser consent flow to obtain a token",
        )

        self._templates["AUTHORIZATION_FAILED"] = ErrorTemplate(
            code="AUTHORIZATION_FAILED",
            category=ErrorCategory.AUTH,
            message_template="OAuth authorization failed: {reason}",
            suggestion_template="Retry the authorization and approve the consent screen",
        )

        self._templates["NO_AUTHORIZATION_CODE"] = ErrorTemplate(
            code="NO_AUTHORIZATION_CODE",
            category=ErrorCategory.AUTH,
            message_template="No authorization code provided",
            detail_template="The OAuth redirect carried neither a code nor an error",
        )

        self._templates["AUTH_RETRY_EXHAUSTED"] = ErrorTemplate(
            code="AUTH_RETRY_EXHAUSTED",
            category=ErrorCategory.AUTH,
            message_template=(
                "Server '{server_name}' still unauthorized after {attempts} connection attempts"
            ),
            suggestion_template="Check the granted scope and the server's OAuth configuration",
        )

        self._templates["TOKEN_EXCHANGE_FAILED"] = ErrorTemplate(
            code="TOKEN_EXCHANGE_FAILED",
            category=ErrorCategory.AUTH,
            message_template="Token request to '{server_name}' failed",
            detail_template="The token endpoint rejected the grant",
        )

        # TRANSPORT Errors
        self._templates["TRANSPORT_ERROR"] = ErrorTemplate(
            code="TRANSPORT_ERROR",
            category=ErrorCategory.TRANSPORT,
            message_template="Transport error talking to '{server_name}'",
            detail_template="The request could not be delivered or the response was unusable",
            suggestion_template="Check network connectivity and the server URL",
            default_retryable=True,
        )

        self._templates["TOOL_TIMEOUT"] = ErrorTemplate(
            code="TOOL_TIMEOUT",
            category=ErrorCategory.TRANSPORT,
            message_template="Tool '{tool_name}' timed out",
            detail_template="Tool call timed out after {timeout_seconds} seconds",
            suggestion_template="Retry later or increase the server timeout",
            default_retryable=True,
        )

        # TOOL Errors
        self._templates["REMOTE_TOOL_ERROR"] = ErrorTemplate(
            code="REMOTE_TOOL_ERROR",
            category=ErrorCategory.TOOL,
            message_template="Tool '{tool_name}' failed",
            suggestion_template="Check the tool arguments",
        )

        self._templates["NOT_CONNECTED"] = ErrorTemplate(
            code="NOT_CONNECTED",
            category=ErrorCategory.SYSTEM,
            message_template="Not connected to server '{server_name}'",
            suggestion_template="Call connect() before calling tools",
        )

        # PIPELINE Errors
        self._templates["GENERATOR_UNAVAILABLE"] = ErrorTemplate(
            code="GENERATOR_UNAVAILABLE",
            category=ErrorCategory.PIPELINE,
            message_template="Content generator unavailable",
            detail_template="Environment variable {api_key_env} is not set",
            suggestion_template="Export {api_key_env} before running the pipeline",
        )

        # SYSTEM Errors
        self._templates["CONFIG_INVALID"] = ErrorTemplate(
            code="CONFIG_INVALID",
            category=ErrorCategory.SYSTEM,
            message_template="Invalid configuration",
            suggestion_template="Check the configuration file",
        )

        self._templates["INTERNAL_ERROR"] = ErrorTemplate(
            code="INTERNAL_ERROR",
            category=ErrorCategory.SYSTEM,
            message_template="Internal error",
            detail_template="{error_type}",
        )

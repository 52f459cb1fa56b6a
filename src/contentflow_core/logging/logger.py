"""Contentflow Logger - Hierarchical colored logging for pipeline runs."""

import json
import sys
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, TextIO

from contentflow_core.logging.colors import (
    CYAN,
    GREEN,
    LIGHT_BLUE,
    MAGENTA,
    ORANGE,
    RED,
    RESET,
    YELLOW,
)
from contentflow_core.types import LogFormat, LogLevel


@dataclass
class LogConfig:
    """Logger configuration."""

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.COLORED
    show_params: bool = True
    show_results: bool = True
    truncate_at: int = 200
    components: dict[str, bool] = field(default_factory=dict)
    output: TextIO = field(default=sys.stderr)

    def __post_init__(self) -> None:
        """Initialize default components if not provided."""
        if not self.components:
            self.components = {
                "pipeline": True,
                "step": True,
                "tool": True,
                "auth": True,
                "retry": True,
                "mcp": True,
            }


class FlowLogger:
    """Main logger facade. Creates component-specific loggers."""

    def __init__(self, config: LogConfig | None = None):
        """Initialize logger with configuration.

        Args:
            config: Logger configuration (defaults to LogConfig())
        """
        self.config = config or LogConfig()
        self._level_order = {
            LogLevel.DEBUG: 0,
            LogLevel.INFO: 1,
            LogLevel.WARN: 2,
            LogLevel.ERROR: 3,
        }

    def pipeline(self, query: str, run_id: str) -> "PipelineLogger":
        """Get a logger scoped to one pipeline run.

        Args:
            query: Research query driving the run
            run_id: Run identifier

        Returns:
            PipelineLogger instance
        """
        return PipelineLogger(self, query, run_id)

    def auth(self, server_name: str) -> "AuthLogger":
        """Get a logger scoped to one server's authorization handshake.

        Args:
            server_name: Remote server name

        Returns:
            AuthLogger instance
        """
        return AuthLogger(self, server_name)

    def configure(self, config: LogConfig) -> None:
        """Replace the configuration."""
        self.config = config

    def _should_log(self, level: LogLevel) -> bool:
        return self._level_order.get(level, 0) >= self._level_order.get(self.config.level, 1)

    def _log(
        self,
        level: LogLevel,
        component: str,
        message: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Internal logging method.

        Args:
            level: Log level
            component: Component name (pipeline, step, tool, auth, retry, mcp)
            message: Log message
            context: Additional context data
        """
        if not self._should_log(level):
            return

        # Components may be dotted (mcp.exa); toggles apply to the root
        root = component.split(".", 1)[0]
        if not self.config.components.get(root, True):
            return

        if self.config.format == LogFormat.JSON:
            self._log_json(level, component, message, context)
        else:
            self._log_colored(level, component, message, context)

    def _log_json(
        self,
        level: LogLevel,
        component: str,
        message: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        log_entry = {
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "level": level.value,
            "component": component,
            "message": message,
        }
        if context:
            log_entry.update(context)

        print(json.dumps(log_entry, default=str), file=self.config.output)

    def _log_colored(
        self,
        level: LogLevel,
        component: str,
        message: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        level_colors = {
            LogLevel.DEBUG: LIGHT_BLUE,
            LogLevel.INFO: CYAN,
            LogLevel.WARN: YELLOW,
            LogLevel.ERROR: RED,
        }

        color = level_colors.get(level, RESET)
        component_color = {
            "pipeline": MAGENTA,
            "step": CYAN,
            "tool": GREEN,
            "auth": ORANGE,
            "retry": YELLOW,
        }.get(component.split(".", 1)[0], RESET)

        # Format: [COMPONENT] message
        output = f"{component_color}[{component.upper()}]{RESET} {color}{message}{RESET}"

        if context and self.config.show_params:
            context_str = str(context)
            if len(context_str) > self.config.truncate_at:
                context_str = context_str[: self.config.truncate_at] + "..."
            output += f" {LIGHT_BLUE}{context_str}{RESET}"

        print(output, file=self.config.output)


class PipelineLogger:
    """Logger for pipeline-level events."""

    def __init__(self, parent: FlowLogger, query: str, run_id: str):
        self.parent = parent
        self.query = query
        self.run_id = run_id

    def _context(self, event: str, **extra: Any) -> dict[str, Any]:
        context: dict[str, Any] = {"run_id": self.run_id, "event": event}
        context.update(extra)
        return context

    def started(self, target_language: str) -> None:
        """Log pipeline start.

        Args:
            target_language: Requested translation language
        """
        context = self._context(
            "pipeline_started", query=self.query, target_language=target_language
        )
        self.parent._log(
            LogLevel.INFO,
            "pipeline",
            f"Starting research → draft → translate for '{self.query}' ({target_language})",
            context,
        )

    def completed(self, duration_ms: int, step_count: int) -> None:
        """Log pipeline completion with summary.

        Args:
            duration_ms: Run duration in milliseconds
            step_count: Number of steps executed
        """
        context = self._context("pipeline_completed", duration_ms=duration_ms)
        duration_s = duration_ms / 1000
        message = f"Pipeline completed ({step_count} steps, {duration_s:.2f}s) ✓"
        self.parent._log(LogLevel.INFO, "pipeline", message, context)

    def failed(self, step: str, error: str, duration_ms: int) -> None:
        """Log pipeline failure.

        Args:
            step: Step that halted the run
            error: Error message
            duration_ms: Run duration in milliseconds
        """
        context = self._context("pipeline_failed", step=step, error=error, duration_ms=duration_ms)
        duration_s = duration_ms / 1000
        message = f"Pipeline failed at '{step}' ({duration_s:.2f}s): {error}"
        self.parent._log(LogLevel.ERROR, "pipeline", message, context)

    def step(self, step_name: str) -> "StepLogger":
        """Get a logger scoped to a step.

        Args:
            step_name: Step identifier

        Returns:
            StepLogger instance
        """
        return StepLogger(self, step_name)


class StepLogger:
    """Logger for step-level events."""

    def __init__(self, parent: PipelineLogger, step_name: str):
        self.parent = parent
        self.step_name = step_name

    @property
    def root(self) -> FlowLogger:
        return self.parent.parent

    def _context(self, event: str, **extra: Any) -> dict[str, Any]:
        context: dict[str, Any] = {
            "run_id": self.parent.run_id,
            "step": self.step_name,
            "event": event,
        }
        context.update(extra)
        return context

    def started(self, tool_name: str | None = None) -> None:
        """Log step start.

        Args:
            tool_name: Optional tool name for tool-backed steps
        """
        context = self._context("step_started")
        message = f"Step '{self.step_name}' started"
        if tool_name:
            context["tool_name"] = tool_name
            message += f" (tool: {tool_name})"
        self.root._log(LogLevel.INFO, "step", message, context)

    def completed(self, duration_ms: int) -> None:
        """Log step completion.

        Args:
            duration_ms: Step duration in milliseconds
        """
        context = self._context("step_completed", duration_ms=duration_ms)
        duration_s = duration_ms / 1000
        message = f"Step '{self.step_name}' completed ({duration_s:.2f}s) ✓"
        self.root._log(LogLevel.INFO, "step", message, context)

    def failed(self, error: BaseException | str, metadata: dict[str, Any] | None = None) -> None:
        """Log step failure.

        Args:
            error: Exception or message that caused failure
            metadata: Optional classification metadata
        """
        context = self._context("step_failed", error=str(error))
        if isinstance(error, BaseException):
            context["error_type"] = type(error).__name__
        if metadata:
            context.update(metadata)
        message = f"Step '{self.step_name}' failed: {error}"
        self.root._log(LogLevel.ERROR, "step", message, context)

    def retrying(self, attempt: int, max_attempts: int, delay_seconds: float) -> None:
        """Log retry attempt.

        Args:
            attempt: Attempt that just failed
            max_attempts: Maximum number of attempts
            delay_seconds: Delay before retry in seconds
        """
        context = self._context(
            "step_retrying",
            attempt=attempt,
            max_attempts=max_attempts,
            delay_seconds=delay_seconds,
        )
        message = (
            f"Step '{self.step_name}' retrying "
            f"(attempt {attempt}/{max_attempts}, delay: {delay_seconds}s)"
        )
        self.root._log(LogLevel.WARN, "step", message, context)

    def fallback(self, description: str, error: str) -> None:
        """Log a fallback path being taken.

        Args:
            description: What the step falls back to
            error: Error that triggered the fallback
        """
        context = self._context("step_fallback", fallback=description, error=error)
        message = f"Step '{self.step_name}' falling back to {description}: {error}"
        self.root._log(LogLevel.WARN, "step", message, context)

    def tool(self) -> "ToolLogger":
        """Get a logger for tool calls within this step."""
        return ToolLogger(self)


class ToolLogger:
    """Logger for tool call events."""

    def __init__(self, parent: StepLogger):
        self.parent = parent

    def _context(self, event: str, tool_name: str, **extra: Any) -> dict[str, Any]:
        return self.parent._context(event, tool_name=tool_name, **extra)

    def calling(self, tool_name: str, server_name: str, params: dict[str, Any] | None = None) -> None:
        """Log tool call start.

        Args:
            tool_name: Name of the tool being called
            server_name: Server hosting the tool
            params: Optional tool parameters
        """
        context = self._context("tool_calling", tool_name, server_name=server_name)
        if params:
            context["params"] = params
        message = f"Calling tool '{tool_name}' on '{server_name}'"
        self.parent.root._log(LogLevel.INFO, "tool", message, context)

    def result(self, tool_name: str, result: Any, duration_ms: int) -> None:
        """Log tool call result.

        Args:
            tool_name: Name of the tool
            result: Tool execution result
            duration_ms: Call duration in milliseconds
        """
        config = self.parent.root.config
        context = self._context("tool_result", tool_name, duration_ms=duration_ms)
        if config.show_results:
            result_str = str(result)
            if len(result_str) > config.truncate_at:
                result_str = result_str[: config.truncate_at] + "..."
            context["result"] = result_str

        duration_s = duration_ms / 1000
        message = f"Tool '{tool_name}' completed ({duration_s:.2f}s) ✓"
        self.parent.root._log(LogLevel.INFO, "tool", message, context)

    def error(self, tool_name: str, error: str, duration_ms: int) -> None:
        """Log tool call error.

        Args:
            tool_name: Name of the tool
            error: Error message
            duration_ms: Call duration in milliseconds
        """
        context = self._context("tool_error", tool_name, duration_ms=duration_ms, error=error)
        duration_s = duration_ms / 1000
        message = f"Tool '{tool_name}' failed ({duration_s:.2f}s): {error}"
        self.parent.root._log(LogLevel.ERROR, "tool", message, context)


class AuthLogger:
    """Logger for the OAuth loopback handshake of one server."""

    def __init__(self, parent: FlowLogger, server_name: str):
        self.parent = parent
        self.server_name = server_name

    def _emit(self, level: LogLevel, event: str, message: str, **extra: Any) -> None:
        context: dict[str, Any] = {"server_name": self.server_name, "event": event}
        context.update(extra)
        self.parent._log(level, "auth", f"[{self.server_name}] {message}", context)

    def port_selected(self, port: int) -> None:
        self._emit(LogLevel.DEBUG, "auth_port_selected", f"Callback port {port}", port=port)

    def port_fallback(self, port: int, fallback_port: int) -> None:
        self._emit(
            LogLevel.WARN,
            "auth_port_fallback",
            f"Callback port {port} in use, listening on {fallback_port}",
            port=port,
            fallback_port=fallback_port,
        )

    def authorization_required(self) -> None:
        self._emit(LogLevel.INFO, "auth_required", "Server requires authorization")

    def browser_opened(self, url: str) -> None:
        self._emit(LogLevel.INFO, "auth_browser_opened", "Opened browser for consent", url=url)

    def manual_open(self, url: str) -> None:
        self._emit(LogLevel.WARN, "auth_manual_open", f"Please manually open: {url}", url=url)

    def awaiting_callback(self, port: int) -> None:
        self._emit(
            LogLevel.INFO,
            "auth_awaiting_callback",
            f"Waiting for OAuth callback on port {port}",
            port=port,
        )

    def code_received(self) -> None:
        self._emit(LogLevel.INFO, "auth_code_received", "Authorization code received")

    def tokens_obtained(self, refreshed: bool = False) -> None:
        verb = "refreshed" if refreshed else "obtained"
        self._emit(LogLevel.INFO, "auth_tokens", f"Access token {verb} ✓", refreshed=refreshed)

"""Pipeline result types."""

from dataclasses import dataclass, field
from typing import Any, Protocol

from contentflow_core.mcp.types import ToolResult
from contentflow_core.types import PipelineState, StepName


class ToolCaller(Protocol):
    """Anything that can run a named tool on a named server."""

    async def call_tool(
        self, server_name: str, tool_name: str, arguments: dict[str, Any]
    ) -> ToolResult: ...


@dataclass
class StepResult:
    """Outcome of one pipeline step.

    A failed step always carries ``error``; a successful one always carries
    ``data`` (a fallback payload counts as data).
    """

    step: StepName
    success: bool
    data: Any = None
    error: str | None = None
    metadata: dict[str, Any] | None = None

    def __post_init__(self) -> None:
        if not self.success and not self.error:
            raise ValueError(f"Failed step '{self.step.value}' must carry an error")
        if self.success and self.data is None:
            raise ValueError(f"Successful step '{self.step.value}' must carry data")

    @classmethod
    def ok(cls, step: StepName, data: Any, **kwargs: Any) -> "StepResult":
        return cls(step=step, success=True, data=data, **kwargs)

    @classmethod
    def failed(
        cls, step: StepName, error: str, metadata: dict[str, Any] | None = None
    ) -> "StepResult":
        return cls(step=step, success=False, error=error, metadata=metadata)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"success": self.success, "step": self.step.value}
        if self.data is not None:
            result["data"] = self.data
        if self.error is not None:
            result["error"] = self.error
        if self.metadata:
            result["metadata"] = self.metadata
        return result


@dataclass
class PipelineResult:
    """Aggregate outcome of a run.

    On success ``step`` is ``workflow`` and ``data`` holds the combined
    output. On failure ``step`` names the step that halted the run.
    """

    success: bool
    step: StepName
    steps: list[StepResult] = field(default_factory=list)
    data: dict[str, Any] | None = None
    error: str | None = None
    metadata: dict[str, Any] | None = None
    state: PipelineState = PipelineState.IDLE
    duration_ms: int = 0

    def step_result(self, step: StepName) -> StepResult | None:
        """Result of a completed step, if it ran."""
        for result in self.steps:
            if result.step == step:
                return result
        return None

    def to_dict(self) -> dict[str, Any]:
        """JSON form printed by the CLI."""
        result: dict[str, Any] = {"success": self.success, "step": self.step.value}
        if self.data is not None:
            result["data"] = self.data
        if self.error is not None:
            result["error"] = self.error
        if self.metadata:
            result["metadata"] = self.metadata
        return result

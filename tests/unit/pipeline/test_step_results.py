"""Unit tests for step and pipeline result types."""

import pytest

from contentflow_core.pipeline import PipelineResult, StepResult
from contentflow_core.types import StepName


class TestStepResult:
    def test_failed_requires_error(self):
        """A failed step without an error is rejected."""
        with pytest.raises(ValueError, match="must carry an error"):
            StepResult(step=StepName.RESEARCH, success=False)

    def test_success_requires_data(self):
        with pytest.raises(ValueError, match="must carry data"):
            StepResult(step=StepName.DRAFT, success=True)

    def test_success_with_error_is_allowed(self):
        """A fallback success may still report the error it recovered from."""
        result = StepResult(
            step=StepName.TRANSLATE, success=True, data={"translated_text": "x"}, error="down"
        )
        assert result.to_dict() == {
            "success": True,
            "step": "translate",
            "data": {"translated_text": "x"},
            "error": "down",
        }

    def test_failed_to_dict(self):
        result = StepResult.failed(StepName.RESEARCH, "timed out", {"retryable": True})
        assert result.to_dict() == {
            "success": False,
            "step": "research",
            "error": "timed out",
            "metadata": {"retryable": True},
        }


class TestPipelineResult:
    def test_step_result_lookup(self):
        research = StepResult.ok(StepName.RESEARCH, {"content": []})
        result = PipelineResult(success=True, step=StepName.WORKFLOW, steps=[research])

        assert result.step_result(StepName.RESEARCH) is research
        assert result.step_result(StepName.TRANSLATE) is None

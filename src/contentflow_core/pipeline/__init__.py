"""Contentflow pipeline - research, draft and translate."""

from .drafting import (
    EMPTY_COMPLETION,
    NO_RESEARCH_DATA,
    ContentGenerator,
    OpenAIContentGenerator,
    build_prompt,
)
from .orchestrator import PipelineOrchestrator
from .types import PipelineResult, StepResult, ToolCaller

__all__ = [
    # Orchestrator
    "PipelineOrchestrator",
    # Types
    "StepResult",
    "PipelineResult",
    "ToolCaller",
    # Draft collaborator
    "ContentGenerator",
    "OpenAIContentGenerator",
    "build_prompt",
    "NO_RESEARCH_DATA",
    "EMPTY_COMPLETION",
]

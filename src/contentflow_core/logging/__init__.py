"""Contentflow Logging - Hierarchical colored logging for pipeline runs."""

from .colors import (
    CYAN,
    GREEN,
    LIGHT_BLUE,
    MAGENTA,
    ORANGE,
    RED,
    RESET,
    YELLOW,
)
from .logger import (
    AuthLogger,
    FlowLogger,
    LogConfig,
    PipelineLogger,
    StepLogger,
    ToolLogger,
)

__all__ = [
    # Logger classes
    "FlowLogger",
    "PipelineLogger",
    "StepLogger",
    "ToolLogger",
    "AuthLogger",
    "LogConfig",
    # Colors
    "RESET",
    "GREEN",
    "RED",
    "YELLOW",
    "ORANGE",
    "LIGHT_BLUE",
    "CYAN",
    "MAGENTA",
]

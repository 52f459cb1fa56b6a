"""Remote tool types for Contentflow."""

from dataclasses import dataclass, field
from typing import Any

from contentflow_core.types import ConnectionStatus


@dataclass
class ToolSchema:
    """Tool advertised by a remote server."""

    name: str
    description: str
    input_schema: dict[str, Any]
    output_schema: dict[str, Any] | None = None


@dataclass
class ServerStatus:
    """Status of one remote server client.

    Used for the CLI tools listing and diagnostics.
    """

    name: str
    status: ConnectionStatus
    tools: list[str] = field(default_factory=list)
    last_connected: str | None = None
    last_error: str | None = None


@dataclass
class ToolResult:
    """Result of a ``tools/call`` request.

    ``content`` keeps the server's content blocks as plain dicts
    (``{"type": "text", "text": ...}`` and friends) so callers can pattern
    match on them without depending on MCP model classes.
    """

    content: list[dict[str, Any]] = field(default_factory=list)
    structured_content: dict[str, Any] | None = None
    is_error: bool = False

    @property
    def text(self) -> str:
        """Text blocks joined with newlines."""
        return extract_text(self.to_dict())

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"content": list(self.content)}
        if self.structured_content is not None:
            data["structuredContent"] = self.structured_content
        if self.is_error:
            data["isError"] = True
        return data


def extract_text(payload: Any) -> str:
    """Collect the text content embedded in a tool payload.

    Accepts a ToolResult, a ``{"content": [...]}`` dict, a bare list of
    blocks or a string. Non-text blocks are skipped.

    Args:
        payload: Tool payload in any of the accepted shapes

    Returns:
        Text blocks joined with newlines ("" if there are none)
    """
    if payload is None:
        return ""
    if isinstance(payload, str):
        return payload
    if isinstance(payload, ToolResult):
        payload = payload.content
    elif isinstance(payload, dict):
        payload = payload.get("content", [])

    if not isinstance(payload, list):
        return ""

    parts = []
    for block in payload:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            text = block.get("text")
            if isinstance(text, str):
                parts.append(text)
    return "\n".join(parts)

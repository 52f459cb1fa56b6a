"""Contentflow remote tools - authorizing MCP clients and their transport."""

from .client import MAX_CONNECT_ATTEMPTS, AuthorizingToolClient, default_listener_factory
from .manager import ToolClientManager
from .protocol import JSONRPCMessage
from .transport import FastMCPTransport, ToolTransport
from .types import ServerStatus, ToolResult, ToolSchema, extract_text

__all__ = [
    # Client
    "AuthorizingToolClient",
    "MAX_CONNECT_ATTEMPTS",
    "default_listener_factory",
    # Manager
    "ToolClientManager",
    # Transport
    "ToolTransport",
    "FastMCPTransport",
    # Types
    "ToolSchema",
    "ToolResult",
    "ServerStatus",
    "extract_text",
    # Protocol
    "JSONRPCMessage",
]

"""JSON-RPC protocol helpers for MCP communication."""

import json
from typing import Any

from mcp.types import LATEST_PROTOCOL_VERSION


class JSONRPCMessage:
    """JSON-RPC 2.0 message builder and parser."""

    @staticmethod
    def request(method: str, params: dict[str, Any] | None = None, id: int = 1) -> dict[str, Any]:
        """Build a JSON-RPC request.

        Args:
            method: Method name (e.g., "initialize", "tools/list", "tools/call")
            params: Optional parameters
            id: Request ID

        Returns:
            JSON-RPC request dict
        """
        msg: dict[str, Any] = {
            "jsonrpc": "2.0",
            "method": method,
            "id": id,
        }
        if params is not None:
            msg["params"] = params
        return msg

    @staticmethod
    def initialize(client_name: str, client_version: str, id: int = 1) -> dict[str, Any]:
        """Build the MCP ``initialize`` request.

        Args:
            client_name: Name reported in clientInfo
            client_version: Version reported in clientInfo
            id: Request ID

        Returns:
            JSON-RPC request dict
        """
        return JSONRPCMessage.request(
            "initialize",
            {
                "protocolVersion": LATEST_PROTOCOL_VERSION,
                "capabilities": {},
                "clientInfo": {"name": client_name, "version": client_version},
            },
            id=id,
        )

    @staticmethod
    def tools_call(name: str, arguments: dict[str, Any], id: int = 1) -> dict[str, Any]:
        """Build a ``tools/call`` request."""
        return JSONRPCMessage.request("tools/call", {"name": name, "arguments": arguments}, id=id)

    @staticmethod
    def parse(message: str | bytes) -> dict[str, Any]:
        """Parse a JSON-RPC message.

        Args:
            message: JSON string or bytes

        Returns:
            Parsed message dict

        Raises:
            ValueError: If message is not valid JSON
        """
        if isinstance(message, bytes):
            message = message.decode("utf-8")
        parsed: dict[str, Any] = json.loads(message)
        return parsed

    @staticmethod
    def is_error(message: dict[str, Any]) -> bool:
        """Check if message is an error response."""
        return "error" in message

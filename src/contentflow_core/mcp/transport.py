"""Streamable-HTTP transport to a remote MCP tool server.

Uses the FastMCP client library for the MCP session itself. Before the
session is opened, a plain ``initialize`` POST probes the endpoint so an
authorization demand (HTTP 401) surfaces as UNAUTHORIZED instead of being
lost inside the streaming client.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any, Protocol

import httpx
from fastmcp.client import Client
from fastmcp.client.transports import StreamableHttpTransport

from contentflow_core import __version__
from contentflow_core.errors import create_error

from .protocol import JSONRPCMessage
from .types import ToolResult, ToolSchema

MCP_SESSION_HEADER = "mcp-session-id"


class ToolTransport(Protocol):
    """Connection to one remote tool server."""

    async def connect(self, auth: httpx.Auth | None) -> None: ...

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> ToolResult: ...

    async def list_tools(self) -> list[ToolSchema]: ...

    async def close(self) -> None: ...


class FastMCPTransport:
    """ToolTransport backed by ``fastmcp.Client`` over streamable HTTP."""

    def __init__(
        self,
        server_name: str,
        url: str,
        timeout: float = 30,
        client_name: str = "contentflow-agent-client",
        probe_client: httpx.AsyncClient | None = None,
    ):
        """Initialize transport.

        Args:
            server_name: Server name used in errors
            url: MCP endpoint URL
            timeout: Request timeout in seconds
            client_name: Name reported to the server
            probe_client: Optional HTTP client for the probe (tests)
        """
        self.server_name = server_name
        self.url = url
        self.timeout = timeout
        self.client_name = client_name

        self._probe_client = probe_client
        self._client: Client | None = None
        self._exit_stack: AsyncExitStack | None = None

    @property
    def connected(self) -> bool:
        return self._client is not None

    async def connect(self, auth: httpx.Auth | None) -> None:
        """Probe the endpoint, then open the MCP session.

        Raises:
            ContentflowError(UNAUTHORIZED): Server demanded authorization
            ContentflowError(TRANSPORT_ERROR): Server rejected the probe
        """
        await self.close()
        await self.probe(auth)

        client = Client(
            transport=StreamableHttpTransport(url=self.url, auth=auth),
            timeout=self.timeout,
            name=self.client_name,
        )
        exit_stack = AsyncExitStack()
        try:
            await exit_stack.enter_async_context(client)
        except BaseException:
            await exit_stack.aclose()
            raise

        self._client = client
        self._exit_stack = exit_stack

    async def probe(self, auth: httpx.Auth | None) -> None:
        """Send an ``initialize`` request and check only the HTTP status."""
        payload = JSONRPCMessage.initialize(self.client_name, __version__)
        headers = {
            "Accept": "application/json, text/event-stream",
            "Content-Type": "application/json",
        }

        async with self._http() as http:
            async with http.stream(
                "POST", self.url, json=payload, headers=headers, auth=auth
            ) as response:
                status = response.status_code
                session_id = response.headers.get(MCP_SESSION_HEADER)

            if session_id:
                # Release the probe's server-side session
                try:
                    await http.delete(
                        self.url, headers={MCP_SESSION_HEADER: session_id}, auth=auth
                    )
                except httpx.HTTPError:
                    pass

        if status == 401:
            raise create_error("UNAUTHORIZED", server_name=self.server_name)
        if status >= 400:
            raise create_error(
                "TRANSPORT_ERROR",
                server_name=self.server_name,
                detail=f"HTTP {status} from {self.url}",
            )

    @asynccontextmanager
    async def _http(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._probe_client is not None:
            yield self._probe_client
            return
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            yield client

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> ToolResult:
        """Call a tool over the open session.

        Raises:
            ContentflowError(NOT_CONNECTED): If connect() has not succeeded
        """
        client = self._require_client(name)
        result = await client.call_tool(name, arguments)
        return _to_tool_result(result)

    async def list_tools(self) -> list[ToolSchema]:
        client = self._require_client()
        tools = await client.list_tools()
        return [
            ToolSchema(
                name=tool.name,
                description=tool.description or "",
                input_schema=tool.inputSchema if hasattr(tool, "inputSchema") else {},
                output_schema=getattr(tool, "outputSchema", None),
            )
            for tool in tools
        ]

    async def close(self, timeout: float = 5.0) -> None:
        """Close the MCP session. Safe to call more than once."""
        exit_stack, self._exit_stack = self._exit_stack, None
        self._client = None
        if exit_stack is None:
            return
        try:
            await asyncio.wait_for(exit_stack.aclose(), timeout=timeout)
        except TimeoutError:
            pass

    def _require_client(self, tool_name: str | None = None) -> Client:
        if self._client is None:
            raise create_error("NOT_CONNECTED", server_name=self.server_name, tool_name=tool_name)
        return self._client


def _to_tool_result(result: Any) -> ToolResult:
    """Convert a FastMCP call result into a ToolResult."""
    # Older FastMCP releases return the content list directly
    if isinstance(result, list):
        return ToolResult(content=[_block_to_dict(block) for block in result])

    content = getattr(result, "content", None) or []
    structured = getattr(result, "structured_content", None)
    if structured is None:
        structured = getattr(result, "structuredContent", None)
    is_error = bool(getattr(result, "is_error", getattr(result, "isError", False)))

    return ToolResult(
        content=[_block_to_dict(block) for block in content],
        structured_content=structured,
        is_error=is_error,
    )


def _block_to_dict(block: Any) -> dict[str, Any]:
    if isinstance(block, dict):
        return block
    if hasattr(block, "model_dump"):
        dumped: dict[str, Any] = block.model_dump(mode="json", exclude_none=True)
        return dumped
    return {"type": "text", "text": str(block)}

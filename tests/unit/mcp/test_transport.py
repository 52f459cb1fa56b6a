"""Unit tests for the streamable-HTTP transport."""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from mcp.types import TextContent

from contentflow_core.errors import ContentflowError
from contentflow_core.mcp import FastMCPTransport, JSONRPCMessage
from contentflow_core.mcp.transport import _to_tool_result

URL = "https://tools.example.com/exa/mcp"


def probe_client(status: int, session_id: str | None = None, requests=None) -> httpx.AsyncClient:
    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        if request.method == "DELETE":
            return httpx.Response(200)
        headers = {"mcp-session-id": session_id} if session_id else {}
        return httpx.Response(status, headers=headers, json={"jsonrpc": "2.0", "id": 1})

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestProbe:
    """Authorization demand detection."""

    @pytest.mark.asyncio
    async def test_401_is_unauthorized(self):
        """HTTP 401 surfaces as UNAUTHORIZED."""
        transport = FastMCPTransport("exa", URL, probe_client=probe_client(401))

        with pytest.raises(ContentflowError) as exc_info:
            await transport.probe(None)

        assert exc_info.value.code == "UNAUTHORIZED"
        assert exc_info.value.server_name == "exa"

    @pytest.mark.asyncio
    async def test_server_error_is_transport_error(self):
        """Other HTTP errors surface as TRANSPORT_ERROR."""
        transport = FastMCPTransport("exa", URL, probe_client=probe_client(503))

        with pytest.raises(ContentflowError) as exc_info:
            await transport.probe(None)

        assert exc_info.value.code == "TRANSPORT_ERROR"
        assert exc_info.value.detail == f"HTTP 503 from {URL}"

    @pytest.mark.asyncio
    async def test_sends_initialize_and_releases_session(self):
        """The probe is an initialize request; its server session is deleted."""
        requests: list[httpx.Request] = []
        transport = FastMCPTransport(
            "exa", URL, probe_client=probe_client(200, session_id="sess-1", requests=requests)
        )

        await transport.probe(None)

        post, delete = requests
        body = json.loads(post.content)
        assert post.method == "POST"
        assert body["method"] == "initialize"
        assert body["params"]["clientInfo"]["name"] == "contentflow-agent-client"
        assert "text/event-stream" in post.headers["Accept"]
        assert delete.method == "DELETE"
        assert delete.headers["mcp-session-id"] == "sess-1"

    @pytest.mark.asyncio
    async def test_no_session_no_delete(self):
        """Without a session id nothing is deleted."""
        requests: list[httpx.Request] = []
        transport = FastMCPTransport("exa", URL, probe_client=probe_client(200, requests=requests))

        await transport.probe(None)

        assert [r.method for r in requests] == ["POST"]


class TestSession:
    """MCP session lifecycle over FastMCP."""

    @pytest.mark.asyncio
    async def test_unauthorized_probe_opens_no_session(self):
        """A rejected probe never constructs the MCP client."""
        transport = FastMCPTransport("exa", URL, probe_client=probe_client(401))

        with patch("contentflow_core.mcp.transport.Client") as client_cls:
            with pytest.raises(ContentflowError):
                await transport.connect(None)

        client_cls.assert_not_called()
        assert not transport.connected

    @pytest.mark.asyncio
    async def test_connect_call_close(self):
        """Connect opens the client; calls are converted; close releases it."""
        fastmcp_client = MagicMock()
        fastmcp_client.call_tool = AsyncMock(
            return_value=SimpleNamespace(
                content=[TextContent(type="text", text="hola")],
                structured_content=None,
                is_error=False,
            )
        )
        auth = httpx.BasicAuth("u", "p")
        transport = FastMCPTransport("exa", URL, probe_client=probe_client(200))

        with (
            patch("contentflow_core.mcp.transport.StreamableHttpTransport") as http_transport,
            patch("contentflow_core.mcp.transport.Client", return_value=fastmcp_client),
        ):
            await transport.connect(auth)

        http_transport.assert_called_once_with(url=URL, auth=auth)
        assert transport.connected

        result = await transport.call_tool("translate-text", {"text": "hello"})
        assert result.content == [{"type": "text", "text": "hola"}]
        fastmcp_client.call_tool.assert_awaited_once_with("translate-text", {"text": "hello"})

        await transport.close()
        await transport.close()
        assert not transport.connected
        fastmcp_client.__aexit__.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_call_without_session(self):
        """Calling before connect is NOT_CONNECTED."""
        transport = FastMCPTransport("exa", URL)

        with pytest.raises(ContentflowError) as exc_info:
            await transport.call_tool("translate-text", {})

        assert exc_info.value.code == "NOT_CONNECTED"
        assert exc_info.value.tool_name == "translate-text"


class TestResultConversion:
    """FastMCP results to ToolResult."""

    def test_call_tool_result(self):
        """Structured content and the error flag are carried over."""
        result = _to_tool_result(
            SimpleNamespace(
                content=[TextContent(type="text", text="x")],
                structured_content={"score": 1},
                is_error=True,
            )
        )
        assert result.content == [{"type": "text", "text": "x"}]
        assert result.structured_content == {"score": 1}
        assert result.is_error

    def test_bare_content_list(self):
        """A plain list of blocks is accepted."""
        result = _to_tool_result([TextContent(type="text", text="a"), {"type": "image"}])
        assert result.content == [{"type": "text", "text": "a"}, {"type": "image"}]
        assert not result.is_error


class TestJSONRPCMessage:
    """Request builders."""

    def test_tools_call(self):
        message = JSONRPCMessage.tools_call("web_search_exa", {"query": "ai"}, id=7)
        assert message == {
            "jsonrpc": "2.0",
            "method": "tools/call",
            "id": 7,
            "params": {"name": "web_search_exa", "arguments": {"query": "ai"}},
        }

    def test_parse_and_is_error(self):
        parsed = JSONRPCMessage.parse(b'{"jsonrpc": "2.0", "id": 1, "error": {"code": -32600}}')
        assert JSONRPCMessage.is_error(parsed)
        assert not JSONRPCMessage.is_error({"jsonrpc": "2.0", "id": 1, "result": {}})

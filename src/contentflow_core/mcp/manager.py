"""Tool client manager - owns the authorizing clients of all servers."""

import asyncio
from collections.abc import Callable
from typing import Any

from contentflow_core.config.models import AuthConfig, ServerDefinition
from contentflow_core.errors import ErrorFactory, create_error
from contentflow_core.logging import FlowLogger
from contentflow_core.types import ConnectionStatus, LogLevel

from .client import AuthorizingToolClient
from .types import ServerStatus, ToolResult, ToolSchema

# Builds the client for one server: (name, definition)
ClientFactory = Callable[[str, ServerDefinition], AuthorizingToolClient]


class ToolClientManager:
    """Manages one AuthorizingToolClient per configured server.

    Each client owns its own session and callback port, so handshakes can
    run one after another (the default, for readable console output) or
    concurrently.
    """

    def __init__(
        self,
        servers: dict[str, ServerDefinition],
        auth_config: AuthConfig | None = None,
        logger: FlowLogger | None = None,
        error_factory: ErrorFactory | None = None,
        client_factory: ClientFactory | None = None,
    ):
        """Initialize manager.

        Args:
            servers: Server definitions by name
            auth_config: OAuth loopback settings shared by all clients
            logger: Optional logger
            error_factory: Optional error factory
            client_factory: Client factory override (tests)
        """
        self._servers = servers
        self._auth_config = auth_config or AuthConfig()
        self._logger = logger
        self._error_factory = error_factory
        self._client_factory = client_factory or self._create_client
        self._clients: dict[str, AuthorizingToolClient] = {}

    def _log(self, level: LogLevel, message: str, context: dict[str, Any] | None = None) -> None:
        """Log message if logger available."""
        if self._logger:
            self._logger._log(level, "mcp.manager", message, context)

    def _create_client(self, name: str, definition: ServerDefinition) -> AuthorizingToolClient:
        return AuthorizingToolClient(
            name,
            definition,
            auth_config=self._auth_config,
            logger=self._logger,
            error_factory=self._error_factory,
        )

    async def connect_all(
        self,
        concurrent: bool = False,
        raise_on_error: bool = True,
    ) -> dict[str, ServerStatus]:
        """Connect to every configured server.

        Args:
            concurrent: Run the handshakes concurrently
            raise_on_error: Re-raise the first connection failure

        Returns:
            Dict of server name to status
        """
        if not self._servers:
            self._log(LogLevel.INFO, "No servers configured")
            return {}

        self._log(LogLevel.INFO, f"Connecting to {len(self._servers)} servers")
        for name, definition in self._servers.items():
            if name not in self._clients:
                self._clients[name] = self._client_factory(name, definition)

        if concurrent:
            results = await asyncio.gather(
                *(client.connect() for client in self._clients.values()),
                return_exceptions=True,
            )
            errors = [r for r in results if isinstance(r, Exception)]
            for name, result in zip(self._clients, results, strict=True):
                if isinstance(result, Exception):
                    self._log(LogLevel.ERROR, f"Failed to connect to '{name}': {result}")
            if errors and raise_on_error:
                raise errors[0]
        else:
            for name, client in self._clients.items():
                try:
                    await client.connect()
                except Exception as e:
                    self._log(LogLevel.ERROR, f"Failed to connect to '{name}': {e}")
                    if raise_on_error:
                        raise

        status = self.get_status()
        connected = sum(1 for s in status.values() if s.status == ConnectionStatus.CONNECTED)
        self._log(LogLevel.INFO, f"Connected to {connected}/{len(status)} servers")
        return status

    async def close_all(self, timeout: float = 10.0) -> None:
        """Close every client.

        Args:
            timeout: Maximum time to wait for all closes in seconds
        """
        try:
            await asyncio.wait_for(
                asyncio.gather(
                    *(client.close() for client in self._clients.values()),
                    return_exceptions=True,
                ),
                timeout=timeout,
            )
        except TimeoutError:
            self._log(LogLevel.WARN, f"Timeout ({timeout}s) waiting for clients to close")
        self._clients.clear()

    def get(self, name: str) -> AuthorizingToolClient:
        """Get the client for a server.

        Raises:
            ContentflowError(NOT_CONNECTED): If the server is unknown or not connected yet
        """
        client = self._clients.get(name)
        if client is None:
            raise create_error(
                "NOT_CONNECTED",
                server_name=name,
                detail=f"No client for server '{name}'",
            )
        return client

    async def call_tool(
        self, server_name: str, tool_name: str, arguments: dict[str, Any]
    ) -> ToolResult:
        """Call a tool on a specific server."""
        return await self.get(server_name).call_tool(tool_name, arguments)

    async def list_tools(self, server_name: str | None = None) -> dict[str, list[ToolSchema]]:
        """List tools of connected servers.

        Args:
            server_name: Restrict to one server

        Returns:
            Dict of server name to tool list
        """
        names = [server_name] if server_name else list(self._clients)
        tools: dict[str, list[ToolSchema]] = {}
        for name in names:
            client = self.get(name)
            if client.connected:
                tools[name] = await client.list_tools()
        return tools

    def get_status(self) -> dict[str, ServerStatus]:
        """Get status of all clients."""
        return {name: client.get_status() for name, client in self._clients.items()}

"""Authorizing tool client - one remote server behind the OAuth loopback flow.

Connecting runs the handshake transparently. The transport's requests carry
the MCP SDK's OAuthClientProvider, which refreshes an expired token on its
own and answers a 401 with a browser consent round trip through a fresh
CallbackListener before retrying the request once.
"""

import inspect
import sys
import time
from collections.abc import Callable
from datetime import datetime
from typing import Any

from contentflow_core.auth import (
    AuthSession,
    CallbackListener,
    LoopbackAuthorizer,
    RedirectHandler,
    SessionStore,
    build_client_metadata,
    find_available_port,
    open_browser,
)
from contentflow_core.config.models import AuthConfig, ServerDefinition
from contentflow_core.errors import (
    ContentflowError,
    ErrorFactory,
    create_error,
    find_error,
    get_error_factory,
)
from contentflow_core.logging import AuthLogger, FlowLogger
from contentflow_core.types import ConnectionStatus, LogLevel

from .transport import FastMCPTransport, ToolTransport
from .types import ServerStatus, ToolResult, ToolSchema

# Initial attempt plus one retry after authorizing
MAX_CONNECT_ATTEMPTS = 2

# Builds the listener for one handshake: (port, auth_config, logger)
ListenerFactory = Callable[[int, AuthConfig, AuthLogger | None], CallbackListener]


def default_listener_factory(
    port: int, auth_config: AuthConfig, logger: AuthLogger | None
) -> CallbackListener:
    return CallbackListener(
        port,
        path=auth_config.callback_path,
        shutdown_delay=auth_config.shutdown_delay,
        logger=logger,
    )


class AuthorizingToolClient:
    """Client for one remote tool server that authorizes itself on demand."""

    def __init__(
        self,
        name: str,
        config: ServerDefinition,
        auth_config: AuthConfig | None = None,
        logger: FlowLogger | None = None,
        transport: ToolTransport | None = None,
        listener_factory: ListenerFactory | None = None,
        redirect_handler: RedirectHandler | None = None,
        store: SessionStore | None = None,
        error_factory: ErrorFactory | None = None,
    ):
        """Initialize client.

        Args:
            name: Server name
            config: Server definition
            auth_config: OAuth loopback settings
            logger: Optional logger
            transport: Transport override (defaults to FastMCPTransport)
            listener_factory: CallbackListener factory override
            redirect_handler: Receives the authorization URL (defaults to the browser)
            store: Token/registration store for the session
            error_factory: Error factory for converting transport exceptions
        """
        self.name = name
        self.config = config
        self.auth_config = auth_config or AuthConfig()
        self.session: AuthSession | None = None
        self.authorizer: LoopbackAuthorizer | None = None

        self._logger = logger
        self._auth_logger = logger.auth(name) if logger else None
        self._transport = transport or FastMCPTransport(name, config.url, timeout=config.timeout)
        self._listener_factory = listener_factory or default_listener_factory
        self._redirect_handler = redirect_handler or self._open_browser
        self._store = store
        self._error_factory = error_factory or get_error_factory()

        self._status = ConnectionStatus.DISCONNECTED
        self._last_connected: datetime | None = None
        self._last_error: str | None = None
        self._tools: list[ToolSchema] = []

    def _log(self, level: LogLevel, message: str, context: dict[str, Any] | None = None) -> None:
        """Log message if logger available."""
        if self._logger:
            self._logger._log(level, f"mcp.{self.name}", message, context)

    @property
    def status(self) -> ConnectionStatus:
        """Current connection status."""
        return self._status

    @property
    def connected(self) -> bool:
        return self._status == ConnectionStatus.CONNECTED

    def get_status(self) -> ServerStatus:
        return ServerStatus(
            name=self.name,
            status=self._status,
            tools=[tool.name for tool in self._tools],
            last_connected=self._last_connected.isoformat() if self._last_connected else None,
            last_error=self._last_error,
        )

    async def connect(self) -> None:
        """Connect, running the authorization handshake if the server asks for it.

        Raises:
            ContentflowError(AUTH_RETRY_EXHAUSTED): Still unauthorized after authorizing
            ContentflowError(AUTHORIZATION_FAILED | NO_AUTHORIZATION_CODE): Consent failed
            ContentflowError: Any other connection failure, converted
        """
        if self._status == ConnectionStatus.CONNECTED:
            self._log(LogLevel.DEBUG, "Already connected")
            return

        self._status = ConnectionStatus.CONNECTING
        self._log(LogLevel.INFO, f"Connecting to {self.config.url}")
        try:
            authorizer = self._ensure_authorizer()
            await self._connect_with_authorization(authorizer)
        except ContentflowError as e:
            self._mark_failed(e)
            raise
        except Exception as e:
            converted = self._error_factory.from_exception(e, server_name=self.name)
            self._mark_failed(converted)
            raise converted from e

        self._status = ConnectionStatus.CONNECTED
        self._last_connected = datetime.now()
        self._last_error = None
        self._log(LogLevel.INFO, "Connected")

    def _mark_failed(self, error: ContentflowError) -> None:
        self._status = ConnectionStatus.ERROR
        self._last_error = str(error)
        self._log(LogLevel.ERROR, f"Connection failed: {error}")

    def _ensure_authorizer(self) -> LoopbackAuthorizer:
        if self.authorizer is not None:
            return self.authorizer

        port = find_available_port(self.config.callback_port)
        if self._auth_logger:
            self._auth_logger.port_selected(port)

        redirect_uri = (
            f"http://{self.auth_config.callback_host}:{port}{self.auth_config.callback_path}"
        )
        metadata = build_client_metadata(redirect_uri, self.config.client_name, self.config.scope)
        self.session = AuthSession(
            server_url=self.config.url,
            client_metadata=metadata,
            redirect_uri=redirect_uri,
            callback_port=port,
            store=self._store,
            server_name=self.name,
            logger=self._auth_logger,
        )
        self.authorizer = LoopbackAuthorizer(
            self.session,
            listener_factory=self._new_listener,
            redirect_handler=self._show_consent,
            callback_timeout=self.auth_config.callback_timeout,
        )
        return self.authorizer

    async def _connect_with_authorization(self, authorizer: LoopbackAuthorizer) -> None:
        for attempt in range(1, MAX_CONNECT_ATTEMPTS + 1):
            handshakes = authorizer.handshakes
            try:
                await self._transport.connect(authorizer.provider)
                return
            except Exception as e:
                # fastmcp may wrap the rejection in an exception group
                if find_error(e, "UNAUTHORIZED") is None:
                    raise
                # The provider retries by itself after a handshake
                spent = attempt + authorizer.handshakes - handshakes
                if spent >= MAX_CONNECT_ATTEMPTS:
                    raise create_error(
                        "AUTH_RETRY_EXHAUSTED",
                        server_name=self.name,
                        attempts=spent,
                    ) from e
            self._log(LogLevel.WARN, "Unauthorized without a consent round trip, retrying")

    def _new_listener(self, port: int) -> CallbackListener:
        return self._listener_factory(port, self.auth_config, self._auth_logger)

    async def _show_consent(self, url: str) -> None:
        self._status = ConnectionStatus.AUTHORIZING
        if self._auth_logger:
            self._auth_logger.authorization_required()
        outcome = self._redirect_handler(url)
        if inspect.isawaitable(outcome):
            await outcome

    async def call_tool(self, tool_name: str, arguments: dict[str, Any]) -> ToolResult:
        """Call a tool on the connected server.

        Raises:
            ContentflowError(NOT_CONNECTED): If connect() has not succeeded
            ContentflowError: Transport or tool failure, converted
        """
        if self._status != ConnectionStatus.CONNECTED:
            raise create_error("NOT_CONNECTED", server_name=self.name, tool_name=tool_name)

        start_time = time.time()
        try:
            result = await self._transport.call_tool(tool_name, arguments)
        except Exception as e:
            duration_ms = int((time.time() - start_time) * 1000)
            converted = self._error_factory.from_exception(
                e, server_name=self.name, tool_name=tool_name
            )
            self._log(LogLevel.ERROR, f"Tool '{tool_name}' failed after {duration_ms}ms: {converted}")
            raise converted from e

        if result.is_error:
            raise create_error(
                "REMOTE_TOOL_ERROR",
                server_name=self.name,
                tool_name=tool_name,
                detail=result.text or None,
            )
        return result

    async def list_tools(self) -> list[ToolSchema]:
        """List the server's tools (``tools/list``)."""
        if self._status != ConnectionStatus.CONNECTED:
            raise create_error("NOT_CONNECTED", server_name=self.name)
        try:
            self._tools = await self._transport.list_tools()
        except Exception as e:
            raise self._error_factory.from_exception(e, server_name=self.name) from e
        return list(self._tools)

    async def close(self) -> None:
        """Release local resources. Tokens are not revoked."""
        if self.authorizer:
            await self.authorizer.close()
        if self._status == ConnectionStatus.DISCONNECTED:
            return
        try:
            await self._transport.close()
        except Exception as e:
            self._log(LogLevel.WARN, f"Error during close: {e}")
        self._status = ConnectionStatus.DISCONNECTED
        self._tools = []
        self._log(LogLevel.INFO, "Disconnected")

    def _open_browser(self, url: str) -> None:
        if self.auth_config.open_browser:
            open_browser(url, self._auth_logger)
        elif self._auth_logger:
            self._auth_logger.manual_open(url)
        else:
            print(f"Please manually open: {url}", file=sys.stderr)

"""OAuth loopback authorization on top of the MCP SDK's client provider.

``OAuthClientProvider`` runs the protocol from inside the request that was
answered 401: metadata discovery, dynamic client registration, PKCE and
state, code exchange and token refresh. LoopbackAuthorizer supplies its two
interactive hooks. The redirect hook starts a fresh CallbackListener and
then shows the consent page; the callback hook waits for that listener.
"""

import asyncio
import inspect
from collections.abc import Awaitable, Callable

from mcp.client.auth import OAuthClientProvider

from contentflow_core.errors import create_error

from .callback import CallbackListener, CallbackResult
from .session import AuthSession

# Receives the authorization URL; may be sync or async
RedirectHandler = Callable[[str], Awaitable[object] | object]

# Builds the listener for one handshake from the callback port
ListenerFactory = Callable[[int], CallbackListener]


class LoopbackAuthorizer:
    """Browser consent round trips for one AuthSession."""

    def __init__(
        self,
        session: AuthSession,
        listener_factory: ListenerFactory,
        redirect_handler: RedirectHandler,
        callback_timeout: float | None = None,
    ):
        """Initialize authorizer.

        Args:
            session: Session used as the provider's token storage
            listener_factory: Builds a fresh listener for each handshake
            redirect_handler: Shows the authorization URL to the user
            callback_timeout: Seconds to wait for the redirect (None waits forever)
        """
        self.session = session
        self.callback_timeout = callback_timeout
        self.handshakes = 0

        self._listener_factory = listener_factory
        self._redirect_handler = redirect_handler
        self._listener: CallbackListener | None = None

        self.provider = OAuthClientProvider(
            server_url=session.server_url,
            client_metadata=session.client_metadata,
            storage=session,
            redirect_handler=self.redirect,
            callback_handler=self.wait_for_callback,
        )

    async def redirect(self, authorization_url: str) -> None:
        """Start listening on the callback port, then show the consent page."""
        await self.close()
        listener = self._listener_factory(self.session.callback_port)
        await listener.start()
        self._listener = listener
        self.handshakes += 1

        try:
            outcome = self._redirect_handler(authorization_url)
            if inspect.isawaitable(outcome):
                await outcome
        except BaseException:
            await self.close()
            raise

    async def wait_for_callback(self) -> tuple[str, str | None]:
        """Wait for the redirect of the pending handshake.

        Returns:
            ``(code, state)`` for the provider to check and exchange

        Raises:
            ContentflowError(AUTHORIZATION_FAILED): Nothing pending, provider error or timeout
            ContentflowError(NO_AUTHORIZATION_CODE): Redirect had no code
        """
        listener = self._listener
        if listener is None:
            raise create_error(
                "AUTHORIZATION_FAILED",
                server_name=self.session.server_name,
                reason="no authorization in progress",
            )

        try:
            result = await self._wait(listener)
        finally:
            await self.close()

        code = result.code or ""
        self.session.record_code(code)
        return code, result.state

    async def _wait(self, listener: CallbackListener) -> CallbackResult:
        if self.callback_timeout is None:
            return await listener.wait()
        try:
            return await asyncio.wait_for(listener.wait(), timeout=self.callback_timeout)
        except TimeoutError as e:
            raise create_error(
                "AUTHORIZATION_FAILED",
                server_name=self.session.server_name,
                reason=f"no callback received within {self.callback_timeout}s",
            ) from e

    async def close(self) -> None:
        """Stop the listener of an unfinished handshake, if any."""
        listener, self._listener = self._listener, None
        if listener is not None:
            await listener.close()

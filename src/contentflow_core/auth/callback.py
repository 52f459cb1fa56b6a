"""Single-use loopback HTTP listener for the OAuth redirect.

One listener handles one handshake: the first request carrying ``code`` or
``error`` (or neither) resolves the waiting caller, after which the server
shuts itself down. Later requests are answered but change nothing.
"""

import asyncio
import html
import socket
from dataclasses import dataclass

import uvicorn
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import HTMLResponse, PlainTextResponse, Response
from starlette.routing import Route

from contentflow_core.errors import ContentflowError, create_error
from contentflow_core.logging import AuthLogger
from contentflow_core.types import CallbackState

from .ports import LOOPBACK_HOST, is_address_in_use

SUCCESS_PAGE = """<html>
  <body>
    <h1>Authorization Successful!</h1>
    <p>You can close this window and return to the terminal.</p>
    <script>setTimeout(() => window.close(), 2000);</script>
  </body>
</html>
"""

FAILURE_PAGE = """<html>
  <body>
    <h1>Authorization Failed</h1>
    <p>Error: {error}</p>
  </body>
</html>
"""


@dataclass(frozen=True)
class CallbackResult:
    """Outcome of the redirect. Exactly one of code/error is set."""

    code: str | None = None
    error: str | None = None
    state: str | None = None
    error_description: str | None = None


class CallbackListener:
    """Short-lived HTTP endpoint receiving the authorization redirect."""

    def __init__(
        self,
        port: int,
        path: str = "/callback",
        host: str = LOOPBACK_HOST,
        shutdown_delay: float = 1.0,
        logger: AuthLogger | None = None,
    ):
        """Initialize listener.

        Args:
            port: Preferred port; port+1 is tried once if it is taken
            path: Redirect path
            host: Interface to bind
            shutdown_delay: Seconds between resolution and shutdown
            logger: Optional auth logger
        """
        self.port = port
        self.path = path
        self.host = host
        self.shutdown_delay = shutdown_delay
        self.bound_port: int | None = None
        self.result: CallbackResult | None = None

        self._logger = logger
        self._state = CallbackState.IDLE
        self._future: asyncio.Future[CallbackResult] | None = None
        self._app: Starlette | None = None
        self._server: uvicorn.Server | None = None
        self._serve_task: asyncio.Task[None] | None = None
        self._shutdown_handle: asyncio.TimerHandle | None = None

    @property
    def state(self) -> CallbackState:
        """Current lifecycle state."""
        return self._state

    @property
    def app(self) -> Starlette:
        """ASGI application serving the redirect route."""
        if self._app is None:
            self._app = Starlette(
                routes=[
                    Route(self.path, self._handle_callback, methods=["GET"]),
                    Route("/favicon.ico", self._handle_favicon, methods=["GET"]),
                ]
            )
        return self._app

    async def __aenter__(self) -> "CallbackListener":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def start(self) -> int:
        """Bind the socket and start serving in the background.

        Returns:
            The port actually bound

        Raises:
            RuntimeError: If the listener was already started
            ContentflowError(AUTHORIZATION_FAILED): If no port could be bound
        """
        if self._state != CallbackState.IDLE:
            raise RuntimeError("CallbackListener is single-use and was already started")

        sock = self._bind()
        self._ensure_future()

        config = uvicorn.Config(self.app, log_level="warning", lifespan="off")
        self._server = uvicorn.Server(config)
        self._serve_task = asyncio.create_task(self._server.serve(sockets=[sock]))
        self._serve_task.add_done_callback(self._on_server_stopped)

        while not self._server.started:
            if self._serve_task.done():
                raise create_error(
                    "AUTHORIZATION_FAILED", reason="callback listener failed to start"
                )
            await asyncio.sleep(0.01)
        self._state = CallbackState.LISTENING

        if self._logger:
            self._logger.awaiting_callback(self.bound_port or self.port)
        return self.bound_port or self.port

    async def wait(self) -> CallbackResult:
        """Wait for the redirect.

        Returns:
            CallbackResult carrying the authorization code

        Raises:
            ContentflowError(AUTHORIZATION_FAILED): Provider reported an error
            ContentflowError(NO_AUTHORIZATION_CODE): Redirect had no code
        """
        return await self._ensure_future()

    async def wait_for_code(self) -> str:
        """Wait for the redirect and return only the code."""
        result = await self.wait()
        return result.code or ""

    async def close(self, timeout: float = 5.0) -> None:
        """Stop serving. Safe to call more than once."""
        if self._shutdown_handle:
            self._shutdown_handle.cancel()
            self._shutdown_handle = None

        if self._server:
            self._server.should_exit = True
        if self._serve_task and not self._serve_task.done():
            try:
                await asyncio.wait_for(asyncio.shield(self._serve_task), timeout=timeout)
            except TimeoutError:
                self._serve_task.cancel()

        if self._future and not self._future.done():
            self._future.cancel()
        self._state = CallbackState.CLOSED

    def _bind(self) -> socket.socket:
        try:
            return self._bind_port(self.port)
        except OSError as e:
            if not is_address_in_use(e):
                raise create_error(
                    "AUTHORIZATION_FAILED", reason=f"cannot bind callback port {self.port}: {e}"
                ) from e

        fallback = self.port + 1
        if self._logger:
            self._logger.port_fallback(self.port, fallback)
        try:
            return self._bind_port(fallback)
        except OSError as e:
            raise create_error(
                "AUTHORIZATION_FAILED", reason=f"cannot bind callback port {fallback}: {e}"
            ) from e

    def _bind_port(self, port: int) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.bind((self.host, port))
        except OSError:
            sock.close()
            raise
        self.bound_port = sock.getsockname()[1]
        return sock

    def _ensure_future(self) -> "asyncio.Future[CallbackResult]":
        if self._future is None:
            self._future = asyncio.get_running_loop().create_future()
        return self._future

    async def _handle_favicon(self, request: Request) -> Response:
        return Response(status_code=404)

    async def _handle_callback(self, request: Request) -> Response:
        code = request.query_params.get("code")
        error = request.query_params.get("error")
        state = request.query_params.get("state")

        if code:
            self._resolve(CallbackResult(code=code, state=state))
            response: Response = HTMLResponse(SUCCESS_PAGE)
        elif error:
            description = request.query_params.get("error_description")
            self._reject(
                CallbackResult(error=error, state=state, error_description=description),
                create_error("AUTHORIZATION_FAILED", reason=error, detail=description),
            )
            response = HTMLResponse(FAILURE_PAGE.format(error=html.escape(error)), status_code=400)
        else:
            self._reject(CallbackResult(error="no_code"), create_error("NO_AUTHORIZATION_CODE"))
            response = PlainTextResponse("Bad request", status_code=400)

        self._schedule_shutdown()
        return response

    def _resolve(self, result: CallbackResult) -> None:
        future = self._ensure_future()
        if future.done():
            return
        self.result = result
        self._state = CallbackState.CODE_RECEIVED
        if self._logger:
            self._logger.code_received()
        future.set_result(result)

    def _reject(self, result: CallbackResult, error: ContentflowError) -> None:
        future = self._ensure_future()
        if future.done():
            return
        self.result = result
        self._state = CallbackState.ERROR_RECEIVED
        future.set_exception(error)

    def _schedule_shutdown(self) -> None:
        if self._server is None or self._shutdown_handle is not None:
            return
        loop = asyncio.get_running_loop()
        self._shutdown_handle = loop.call_later(self.shutdown_delay, self._request_exit)

    def _request_exit(self) -> None:
        if self._server:
            self._server.should_exit = True

    def _on_server_stopped(self, task: "asyncio.Task[None]") -> None:
        self._state = CallbackState.CLOSED
        if self._future and not self._future.done():
            reason = "callback listener stopped before a redirect arrived"
            if not task.cancelled() and task.exception() is not None:
                reason = f"callback listener crashed: {task.exception()}"
            self._future.set_exception(create_error("AUTHORIZATION_FAILED", reason=reason))

"""Unit tests for the OAuth loopback callback listener."""

import asyncio
import errno
import socket
from unittest.mock import MagicMock, patch

import httpx
import pytest

from contentflow_core.auth import CallbackListener, CallbackResult
from contentflow_core.errors import ContentflowError
from contentflow_core.types import CallbackState


@pytest.fixture
def listener() -> CallbackListener:
    return CallbackListener(8090, shutdown_delay=0.05)


def asgi_client(listener: CallbackListener) -> httpx.AsyncClient:
    """Client calling the listener's app in-process."""
    return httpx.AsyncClient(
        transport=httpx.ASGITransport(app=listener.app), base_url="http://localhost:8090"
    )


class TestCallbackRoutes:
    """Request handling, exercised in-process."""

    @pytest.mark.asyncio
    async def test_code_resolves_waiter(self, listener):
        """A code answers 200 HTML and resolves the waiter with it."""
        async with asgi_client(listener) as client:
            response = await client.get("/callback", params={"code": "X", "state": "s1"})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert "Authorization Successful!" in response.text

        result = await listener.wait()
        assert result == CallbackResult(code="X", state="s1")
        assert listener.state == CallbackState.CODE_RECEIVED

    @pytest.mark.asyncio
    async def test_error_rejects_waiter(self, listener):
        """A provider error answers 400 HTML and fails the waiter with that error."""
        async with asgi_client(listener) as client:
            response = await client.get("/callback", params={"error": "access_denied"})

        assert response.status_code == 400
        assert response.headers["content-type"].startswith("text/html")
        assert "Error: access_denied" in response.text

        with pytest.raises(ContentflowError) as exc_info:
            await listener.wait()
        assert exc_info.value.code == "AUTHORIZATION_FAILED"
        assert "access_denied" in exc_info.value.message
        assert listener.state == CallbackState.ERROR_RECEIVED

    @pytest.mark.asyncio
    async def test_error_page_escapes_html(self, listener):
        """The provider error string is not rendered as markup."""
        async with asgi_client(listener) as client:
            response = await client.get("/callback", params={"error": "<script>x</script>"})

        assert "<script>x</script>" not in response.text
        assert "&lt;script&gt;" in response.text
        with pytest.raises(ContentflowError):
            await listener.wait()

    @pytest.mark.asyncio
    async def test_missing_code_rejects_waiter(self, listener):
        """Neither code nor error is a plain 400 and a no-code failure."""
        async with asgi_client(listener) as client:
            response = await client.get("/callback")

        assert response.status_code == 400
        assert response.text == "Bad request"

        with pytest.raises(ContentflowError) as exc_info:
            await listener.wait()
        assert exc_info.value.code == "NO_AUTHORIZATION_CODE"
        assert exc_info.value.message == "No authorization code provided"

    @pytest.mark.asyncio
    async def test_favicon_is_ignored(self, listener):
        """Favicon probes get 404 and resolve nothing."""
        async with asgi_client(listener) as client:
            response = await client.get("/favicon.ico")
            assert response.status_code == 404

            waiter = asyncio.ensure_future(listener.wait())
            await asyncio.sleep(0)
            assert not waiter.done()

            await client.get("/callback", params={"code": "late"})

        assert (await waiter).code == "late"

    @pytest.mark.asyncio
    async def test_resolves_only_once(self, listener):
        """A second redirect after resolution changes nothing."""
        async with asgi_client(listener) as client:
            await client.get("/callback", params={"code": "first"})
            second = await client.get("/callback", params={"error": "access_denied"})

        assert second.status_code == 400
        result = await listener.wait()
        assert result.code == "first"
        assert listener.result == CallbackResult(code="first")
        assert listener.state == CallbackState.CODE_RECEIVED

    @pytest.mark.asyncio
    async def test_wait_for_code(self, listener):
        """wait_for_code returns the bare code."""
        async with asgi_client(listener) as client:
            await client.get("/callback", params={"code": "abc123"})
        assert await listener.wait_for_code() == "abc123"


class TestCallbackServer:
    """Binding and lifecycle."""

    @pytest.mark.asyncio
    async def test_serves_and_shuts_down(self):
        """A real redirect is received over loopback, then the server stops."""
        listener = CallbackListener(0, shutdown_delay=0.05)
        port = await listener.start()
        assert listener.state == CallbackState.LISTENING

        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(
                    f"http://127.0.0.1:{port}/callback", params={"code": "abc123"}
                )
            assert response.status_code == 200

            result = await asyncio.wait_for(listener.wait(), timeout=5)
            assert result.code == "abc123"

            for _ in range(200):
                if listener.state == CallbackState.CLOSED:
                    break
                await asyncio.sleep(0.01)
            assert listener.state == CallbackState.CLOSED
        finally:
            await listener.close()

    @pytest.mark.asyncio
    async def test_single_use(self):
        """A listener cannot be started twice."""
        listener = CallbackListener(0, shutdown_delay=0.05)
        await listener.start()
        try:
            with pytest.raises(RuntimeError, match="single-use"):
                await listener.start()
        finally:
            await listener.close()
        await listener.close()
        assert listener.state == CallbackState.CLOSED

    def test_falls_back_to_next_port_once(self):
        """A taken port falls back to port+1 with a log line."""
        logger = MagicMock()
        listener = CallbackListener(8090, logger=logger)
        fallback_socket = MagicMock(spec=socket.socket)
        in_use = OSError(errno.EADDRINUSE, "Address already in use")

        with patch.object(
            listener, "_bind_port", side_effect=[in_use, fallback_socket]
        ) as bind_port:
            assert listener._bind() is fallback_socket

        assert [c.args[0] for c in bind_port.call_args_list] == [8090, 8091]
        logger.port_fallback.assert_called_once_with(8090, 8091)

    def test_fallback_failure_is_authorization_failure(self):
        """If port+1 is taken too, binding fails with an auth error."""
        listener = CallbackListener(8090)
        in_use = OSError(errno.EADDRINUSE, "Address already in use")

        with patch.object(listener, "_bind_port", side_effect=[in_use, in_use]):
            with pytest.raises(ContentflowError) as exc_info:
                listener._bind()

        assert exc_info.value.code == "AUTHORIZATION_FAILED"
        assert "8091" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_close_before_redirect_cancels_waiter(self):
        """Closing an unresolved listener cancels the waiter."""
        listener = CallbackListener(0, shutdown_delay=0.05)
        await listener.start()
        waiter = asyncio.ensure_future(listener.wait())
        await asyncio.sleep(0)

        await listener.close()

        with pytest.raises((asyncio.CancelledError, ContentflowError)):
            await waiter

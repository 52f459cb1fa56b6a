"""OAuth client state for one remote server.

AuthSession is the ``TokenStorage`` the MCP SDK's OAuthClientProvider reads
and writes. Tokens and the client registration live in a pluggable store;
the session adds the loopback redirect details and the last received code.
"""

from mcp.client.auth import TokenStorage
from mcp.shared.auth import OAuthClientInformationFull, OAuthClientMetadata, OAuthToken
from pydantic import AnyUrl

from contentflow_core.logging import AuthLogger

# Any TokenStorage can back a session
SessionStore = TokenStorage


class InMemorySessionStore:
    """Process-lifetime storage. Nothing survives a restart."""

    def __init__(self) -> None:
        self._tokens: OAuthToken | None = None
        self._client_info: OAuthClientInformationFull | None = None

    async def get_tokens(self) -> OAuthToken | None:
        return self._tokens

    async def set_tokens(self, tokens: OAuthToken) -> None:
        self._tokens = tokens

    async def get_client_info(self) -> OAuthClientInformationFull | None:
        return self._client_info

    async def set_client_info(self, client_info: OAuthClientInformationFull) -> None:
        self._client_info = client_info


def build_client_metadata(
    callback_url: str,
    client_name: str,
    scope: str | None = None,
) -> OAuthClientMetadata:
    """Client metadata sent during dynamic registration.

    Args:
        callback_url: Loopback redirect URI
        client_name: Human-readable client name
        scope: Requested scope

    Returns:
        OAuthClientMetadata for the authorization-code grant
    """
    return OAuthClientMetadata(
        client_name=client_name,
        redirect_uris=[AnyUrl(callback_url)],
        grant_types=["authorization_code", "refresh_token"],
        response_types=["code"],
        token_endpoint_auth_method="client_secret_post",
        scope=scope,
    )


class AuthSession:
    """OAuth client state owned by exactly one AuthorizingToolClient.

    Holds the client metadata, the loopback redirect URI and port, the last
    received authorization code and, through its store, the access/refresh
    tokens and the client registration.
    """

    def __init__(
        self,
        server_url: str,
        client_metadata: OAuthClientMetadata,
        redirect_uri: str,
        callback_port: int,
        store: SessionStore | None = None,
        server_name: str | None = None,
        logger: AuthLogger | None = None,
    ):
        self.server_url = server_url
        self.server_name = server_name or server_url
        self.client_metadata = client_metadata
        self.redirect_uri = redirect_uri
        self.callback_port = callback_port
        self.store: SessionStore = store or InMemorySessionStore()

        self.authorization_code: str | None = None

        self._logger = logger
        self._code_pending = False

    async def get_tokens(self) -> OAuthToken | None:
        return await self.store.get_tokens()

    async def set_tokens(self, tokens: OAuthToken) -> None:
        await self.store.set_tokens(tokens)
        refreshed = not self._code_pending
        self._code_pending = False
        if self._logger:
            self._logger.tokens_obtained(refreshed=refreshed)

    async def get_client_info(self) -> OAuthClientInformationFull | None:
        return await self.store.get_client_info()

    async def set_client_info(self, client_info: OAuthClientInformationFull) -> None:
        await self.store.set_client_info(client_info)

    def record_code(self, code: str) -> None:
        """Remember a code received on the loopback listener."""
        self.authorization_code = code
        self._code_pending = True

    async def access_token(self) -> str | None:
        tokens = await self.store.get_tokens()
        return tokens.access_token if tokens else None

    async def refresh_token(self) -> str | None:
        tokens = await self.store.get_tokens()
        return tokens.refresh_token if tokens else None

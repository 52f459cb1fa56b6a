"""OAuth loopback authorization for remote tool servers."""

from .browser import open_browser
from .callback import CallbackListener, CallbackResult
from .oauth import ListenerFactory, LoopbackAuthorizer, RedirectHandler
from .ports import LOOPBACK_HOST, find_available_port, is_address_in_use
from .session import (
    AuthSession,
    InMemorySessionStore,
    SessionStore,
    build_client_metadata,
)

__all__ = [
    # Ports
    "LOOPBACK_HOST",
    "find_available_port",
    "is_address_in_use",
    # Callback listener
    "CallbackListener",
    "CallbackResult",
    # Session
    "AuthSession",
    "SessionStore",
    "InMemorySessionStore",
    "build_client_metadata",
    # Consent round trip
    "LoopbackAuthorizer",
    "ListenerFactory",
    "RedirectHandler",
    # Browser
    "open_browser",
]

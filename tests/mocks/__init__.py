"""Test mocks for contentflow-core.

Provides fake collaborators for testing:
- FakeToolCaller: scripted tool results per server/tool
- FakeGenerator: scripted draft collaborator
- FakeTransport: scripted ToolTransport
- FakeListener: CallbackListener stand-in answering with a canned redirect
- FakeAuthServer: OAuth-protected MCP endpoint and authorization server
- ProtectedTransport: FakeTransport connecting through a FakeAuthServer
"""

from .fakes import (
    FakeAuthServer,
    FakeGenerator,
    FakeListener,
    FakeToolCaller,
    FakeTransport,
    ProtectedTransport,
    text_result,
)

__all__ = [
    "FakeToolCaller",
    "FakeGenerator",
    "FakeTransport",
    "FakeListener",
    "FakeAuthServer",
    "ProtectedTransport",
    "text_result",
]

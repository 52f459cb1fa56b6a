"""
Pytest configuration and shared fixtures for Contentflow tests.
"""

import io
from pathlib import Path

import pytest

from contentflow_core.config import ContentflowConfig, ServerDefinition
from contentflow_core.logging import FlowLogger, LogConfig
from contentflow_core.types import LogFormat, LogLevel, RetryConfig
from tests.mocks import FakeGenerator, FakeAuthServer, FakeToolCaller

# =============================================================================
# Path Fixtures
# =============================================================================


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


# =============================================================================
# Logging Fixtures
# =============================================================================


@pytest.fixture
def log_output() -> io.StringIO:
    """Buffer receiving log lines."""
    return io.StringIO()


@pytest.fixture
def json_logger(log_output: io.StringIO) -> FlowLogger:
    """Debug-level JSON logger writing to ``log_output``."""
    return FlowLogger(LogConfig(level=LogLevel.DEBUG, format=LogFormat.JSON, output=log_output))


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def server_definition() -> ServerDefinition:
    """Server behind the OAuth flow."""
    return ServerDefinition(url="https://tools.example.com/exa/mcp", callback_port=8090)


@pytest.fixture
def fast_config() -> ContentflowConfig:
    """Default configuration with zero retry delay."""
    config = ContentflowConfig()
    config.research.retry = RetryConfig(max_attempts=3, delay_seconds=0)
    return config


# =============================================================================
# Collaborator Fixtures
# =============================================================================


@pytest.fixture
def tool_caller() -> FakeToolCaller:
    return FakeToolCaller()


@pytest.fixture
def generator() -> FakeGenerator:
    return FakeGenerator(article="# Draft article")


@pytest.fixture
def auth_server() -> FakeAuthServer:
    """In-process protected MCP endpoint and its authorization server."""
    return FakeAuthServer()


# =============================================================================
# Markers Configuration
# =============================================================================


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "property: Property-based tests")
    config.addinivalue_line("markers", "auth: OAuth handshake tests")
    config.addinivalue_line("markers", "pipeline: Pipeline orchestrator tests")
    config.addinivalue_line("markers", "cli: CLI tests")

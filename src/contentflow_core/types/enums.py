"""Shared enumerations for Contentflow."""

from enum import Enum


class LogLevel(str, Enum):
    """Log verbosity level."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"


class LogFormat(str, Enum):
    """Log output format."""

    COLORED = "colored"
    JSON = "json"


class ConnectionStatus(str, Enum):
    """Remote tool server connection status."""

    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    ERROR = "error"
    CONNECTING = "connecting"
    AUTHORIZING = "authorizing"


class CallbackState(str, Enum):
    """Lifecycle of a single-use OAuth callback listener."""

    IDLE = "idle"
    LISTENING = "listening"
    CODE_RECEIVED = "code_received"
    ERROR_RECEIVED = "error_received"
    CLOSED = "closed"


class StepName(str, Enum):
    """Pipeline step identifiers."""

    RESEARCH = "research"
    DRAFT = "draft"
    TRANSLATE = "translate"
    WORKFLOW = "workflow"


class PipelineState(str, Enum):
    """Orchestrator state machine."""

    IDLE = "idle"
    RESEARCHING = "researching"
    DRAFTING = "drafting"
    TRANSLATING = "translating"
    DONE = "done"
    FAILED = "failed"


class ErrorType(str, Enum):
    """Retry-worthiness of a failure."""

    TRANSIENT = "transient"
    PERMANENT = "permanent"

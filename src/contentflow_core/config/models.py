"""Contentflow configuration data models."""

from dataclasses import dataclass, field

from contentflow_core.types import LogFormat, LogLevel, RetryConfig

SMITHERY_BASE_URL = "https://server.smithery.ai"


@dataclass
class ServerDefinition:
    """Remote tool server to authorize against and call."""

    url: str = ""
    callback_port: int = 8090  # Preferred base for the loopback redirect
    scope: str = "mcp:tools"
    client_name: str = "Contentflow Agent Client"
    timeout: int = 30


def default_servers() -> dict[str, ServerDefinition]:
    # Distinct callback bases so handshakes never contend for a port
    return {
        "exa": ServerDefinition(url=f"{SMITHERY_BASE_URL}/exa/mcp", callback_port=8090),
        "jigsaw": ServerDefinition(
            url=f"{SMITHERY_BASE_URL}/@JigsawStack/translation/mcp", callback_port=8091
        ),
        "deepl": ServerDefinition(
            url=f"{SMITHERY_BASE_URL}/@DeepLcom/deepl-mcp-server/mcp", callback_port=8092
        ),
    }


@dataclass
class AuthConfig:
    """OAuth loopback settings."""

    callback_host: str = "localhost"
    callback_path: str = "/callback"
    shutdown_delay: float = 1.0  # Lets the browser render the result page
    open_browser: bool = True
    callback_timeout: float | None = None  # Seconds; None waits indefinitely


@dataclass
class ResearchConfig:
    """Research step settings."""

    server: str = "exa"
    tool: str = "web_search_exa"
    num_results: int = 5
    retry: RetryConfig = field(default_factory=RetryConfig)


@dataclass
class TranslationProvider:
    """One translation tool and its argument naming."""

    server: str = "deepl"
    tool: str = "translate-text"
    text_arg: str = "text"
    language_arg: str = "targetLang"


@dataclass
class TranslationConfig:
    """Translate step settings."""

    primary: TranslationProvider = field(default_factory=TranslationProvider)
    secondary: TranslationProvider | None = field(
        default_factory=lambda: TranslationProvider(
            server="jigsaw",
            tool="text-translation",
            text_arg="text",
            language_arg="target_language",
        )
    )
    default_target_language: str = "es"


@dataclass
class DraftConfig:
    """Draft step content-generation settings."""

    model: str = "gpt-3.5-turbo"
    max_tokens: int = 1500
    temperature: float = 0.7
    api_key_env: str = "OPENAI_API_KEY"


@dataclass
class LoggingComponentsConfig:
    """Per-component logging toggles."""

    pipeline: bool = True
    step: bool = True
    tool: bool = True
    auth: bool = True
    retry: bool = True
    mcp: bool = True


@dataclass
class LoggingOptionsConfig:
    """Logging output options."""

    show_params: bool = True
    show_results: bool = True
    truncate_at: int = 200


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.COLORED
    components: LoggingComponentsConfig = field(default_factory=LoggingComponentsConfig)
    options: LoggingOptionsConfig = field(default_factory=LoggingOptionsConfig)


@dataclass
class ContentflowConfig:
    """Root configuration."""

    servers: dict[str, ServerDefinition] = field(default_factory=default_servers)
    auth: AuthConfig = field(default_factory=AuthConfig)
    research: ResearchConfig = field(default_factory=ResearchConfig)
    translation: TranslationConfig = field(default_factory=TranslationConfig)
    draft: DraftConfig = field(default_factory=DraftConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

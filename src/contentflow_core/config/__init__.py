"""Contentflow Configuration - Config loading and models."""

from .loader import (
    CONFIG_PATH_ENV,
    ConfigLoader,
    get_config_loader,
    load_config,
    resolve_env_vars,
)
from .models import (
    AuthConfig,
    ContentflowConfig,
    DraftConfig,
    LoggingComponentsConfig,
    LoggingConfig,
    LoggingOptionsConfig,
    ResearchConfig,
    ServerDefinition,
    TranslationConfig,
    TranslationProvider,
    default_servers,
)

__all__ = [
    # Config models
    "ContentflowConfig",
    "ServerDefinition",
    "AuthConfig",
    "ResearchConfig",
    "TranslationConfig",
    "TranslationProvider",
    "DraftConfig",
    "LoggingConfig",
    "LoggingComponentsConfig",
    "LoggingOptionsConfig",
    "default_servers",
    # Loader
    "ConfigLoader",
    "CONFIG_PATH_ENV",
    "get_config_loader",
    "load_config",
    "resolve_env_vars",
]

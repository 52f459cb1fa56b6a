"""Contentflow configuration loader."""

import os
import re
import types
import typing
from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml

from contentflow_core.errors import create_error
from contentflow_core.types import LogLevel, ValidationIssue, ValidationResult

from .models import ContentflowConfig, default_servers

CONFIG_PATH_ENV = "CONTENTFLOW_CONFIG_PATH"

_VALID_KEYS = {"servers", "auth", "research", "translation", "draft", "logging"}


def resolve_env_vars(value: str) -> str:
    """Resolve environment variable references in string.

    Supports:
    - ${VAR} - Required, error if not set
    - ${VAR:-default} - With default value
    - ${VAR:?error message} - Required with custom error

    Args:
        value: String with potential env var references

    Returns:
        String with env vars resolved

    Raises:
        ContentflowError: If required var not set
    """
    pattern = r"\$\{([^}:]+)(?::([?-])([^}]*))?\}"

    def replacer(match: re.Match[str]) -> str:
        var_name = match.group(1)
        operator = match.group(2)  # '-' or '?' or None
        operand = match.group(3)  # default value or error message

        env_value = os.environ.get(var_name)

        if env_value is not None:
            return env_value

        if operator == "-":
            return operand or ""
        elif operator == "?":
            error_msg = operand or f"Required environment variable {var_name} not set"
            raise create_error("CONFIG_INVALID", detail=error_msg)
        else:
            raise create_error(
                "CONFIG_INVALID",
                detail=f"Required environment variable {var_name} not set",
            )

    return re.sub(pattern, replacer, value)


def _resolve_env_vars_recursive(data: Any) -> Any:
    if isinstance(data, dict):
        return {k: _resolve_env_vars_recursive(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [_resolve_env_vars_recursive(item) for item in data]
    elif isinstance(data, str):
        return resolve_env_vars(data)
    else:
        return data


class ConfigLoader:
    """Load and validate Contentflow configuration."""

    def __init__(self, logger: Any = None):
        """Initialize config loader.

        Args:
            logger: Optional FlowLogger instance
        """
        self._config: ContentflowConfig | None = None
        self._config_path: Path | None = None
        self._logger = logger
        self.last_validation: ValidationResult | None = None

    def load(self, path: str | Path | None = None, use_defaults: bool = True) -> ContentflowConfig:
        """Load configuration from file.

        Resolution order if path not specified:
        1. CONTENTFLOW_CONFIG_PATH environment variable
        2. ./contentflow.yaml
        3. ~/.contentflow/config.yaml
        4. If use_defaults=True and no file found, use default configuration

        Args:
            path: Optional path to config file
            use_defaults: If True, use default config when no file found

        Returns:
            Loaded ContentflowConfig instance

        Raises:
            ContentflowError: If file not found (when use_defaults=False) or invalid
        """
        if path is None:
            path = self._resolve_config_path()

        config_path = Path(path)

        if not config_path.exists():
            if use_defaults:
                if self._logger:
                    self._logger._log(
                        LogLevel.INFO, "config", "No config file found, using default configuration"
                    )
                return self.load_defaults()
            raise create_error(
                "CONFIG_INVALID",
                detail=f"Configuration file not found: {config_path}",
            )

        try:
            with config_path.open() as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise create_error(
                "CONFIG_INVALID",
                detail=f"Invalid YAML in config file: {e}",
            ) from e

        if not isinstance(data, dict):
            raise create_error(
                "CONFIG_INVALID",
                detail=f"Top level of {config_path} must be a mapping",
            )

        data = _resolve_env_vars_recursive(data)

        return self.load_from_dict(data, config_path)

    def load_defaults(self) -> ContentflowConfig:
        """Load default configuration without a file."""
        return self.load_from_dict({})

    def load_from_dict(
        self, data: dict[str, Any], config_path: Path | None = None
    ) -> ContentflowConfig:
        """Load configuration from dictionary.

        Args:
            data: Configuration dictionary
            config_path: Optional path to config file (for tracking)

        Returns:
            Loaded ContentflowConfig instance

        Raises:
            ContentflowError: If configuration is invalid
        """
        validation = self.validate(data)
        self.last_validation = validation
        if not validation.valid:
            error_messages = [f"- {issue.path}: {issue.message}" for issue in validation.errors]
            raise create_error(
                "CONFIG_INVALID",
                detail="Configuration validation failed:\n" + "\n".join(error_messages),
            )

        try:
            config = self._dict_to_config(data)
        except (TypeError, ValueError) as e:
            raise create_error(
                "CONFIG_INVALID",
                detail=f"Failed to parse configuration: {e}",
            ) from e

        self._config = config
        self._config_path = config_path

        if self._logger:
            self._logger._log(LogLevel.DEBUG, "config", "Configuration loaded successfully")

        return config

    def validate(self, data: dict[str, Any]) -> ValidationResult:
        """Validate config data without loading.

        Args:
            data: Configuration dictionary

        Returns:
            ValidationResult with errors and warnings
        """
        errors: list[ValidationIssue] = []
        warnings: list[ValidationIssue] = []

        for key in data:
            if key not in _VALID_KEYS:
                warnings.append(
                    ValidationIssue(
                        path=key,
                        message=f"Unknown configuration key: {key}",
                        severity="warning",
                    )
                )

        for key in _VALID_KEYS:
            if key in data and not isinstance(data[key], dict):
                errors.append(ValidationIssue(path=key, message=f"{key} must be a dictionary"))

        server_names = set(default_servers())
        servers = data.get("servers")
        if isinstance(servers, dict):
            for name, server in servers.items():
                if not isinstance(server, dict):
                    errors.append(
                        ValidationIssue(path=f"servers.{name}", message="must be a dictionary")
                    )
                    continue
                server_names.add(name)
                port = server.get("callback_port")
                if port is not None and (not isinstance(port, int) or not 0 < port < 65536):
                    errors.append(
                        ValidationIssue(
                            path=f"servers.{name}.callback_port",
                            message="callback_port must be an integer between 1 and 65535",
                        )
                    )
                if "url" in server and not str(server["url"]).startswith(("http://", "https://")):
                    errors.append(
                        ValidationIssue(
                            path=f"servers.{name}.url",
                            message="url must be an http(s) URL",
                        )
                    )

        research = data.get("research")
        if isinstance(research, dict):
            self._check_server_ref(research.get("server"), "research.server", server_names, errors)
            retry = research.get("retry")
            if isinstance(retry, dict):
                attempts = retry.get("max_attempts")
                if attempts is not None and (not isinstance(attempts, int) or attempts < 1):
                    errors.append(
                        ValidationIssue(
                            path="research.retry.max_attempts",
                            message="max_attempts must be a positive integer",
                        )
                    )

        translation = data.get("translation")
        if isinstance(translation, dict):
            for slot in ("primary", "secondary"):
                provider = translation.get(slot)
                if isinstance(provider, dict):
                    self._check_server_ref(
                        provider.get("server"), f"translation.{slot}.server", server_names, errors
                    )

        return ValidationResult(valid=True, errors=errors, warnings=warnings)

    @staticmethod
    def _check_server_ref(
        name: Any, path: str, server_names: set[str], errors: list[ValidationIssue]
    ) -> None:
        if name is not None and name not in server_names:
            errors.append(ValidationIssue(path=path, message=f"Unknown server '{name}'"))

    def get(self) -> ContentflowConfig:
        """Get current configuration.

        Raises:
            ContentflowError: If configuration not loaded
        """
        if self._config is None:
            raise create_error("CONFIG_INVALID", detail="Configuration not loaded")
        return self._config

    def _resolve_config_path(self) -> Path:
        env_path = os.environ.get(CONFIG_PATH_ENV)
        if env_path:
            return Path(env_path)

        local_path = Path("contentflow.yaml")
        if local_path.exists():
            return local_path

        home_path = Path.home() / ".contentflow" / "config.yaml"
        if home_path.exists():
            return home_path

        return local_path

    def _dict_to_config(self, data: dict[str, Any]) -> ContentflowConfig:
        kwargs: dict[str, Any] = {}

        for f in fields(ContentflowConfig):
            if f.name in data:
                kwargs[f.name] = self._convert_field(f.type, data[f.name])

        # Configured servers extend the built-in set
        if "servers" in kwargs:
            kwargs["servers"] = {**default_servers(), **kwargs["servers"]}

        return ContentflowConfig(**kwargs)

    def _convert_field(self, field_type: Any, value: Any) -> Any:
        """Convert field value to appropriate type.

        Args:
            field_type: Expected field type
            value: Value to convert

        Returns:
            Converted value
        """
        if value is None:
            return None

        origin = typing.get_origin(field_type)

        # Optional fields (X | None)
        if origin in (typing.Union, types.UnionType):
            candidates = [arg for arg in typing.get_args(field_type) if arg is not type(None)]
            if len(candidates) == 1:
                return self._convert_field(candidates[0], value)
            return value

        if origin is list:
            if not isinstance(value, list):
                return value
            args = typing.get_args(field_type)
            if args:
                return [self._convert_field(args[0], item) for item in value]
            return value

        if origin is dict:
            if not isinstance(value, dict):
                return value
            args = typing.get_args(field_type)
            if args and len(args) == 2:
                value_type = args[1]
                return {k: self._convert_field(value_type, v) for k, v in value.items()}
            return value

        if hasattr(field_type, "__dataclass_fields__"):
            if isinstance(value, dict):
                kwargs = {}
                for f in fields(field_type):
                    if f.name in value:
                        kwargs[f.name] = self._convert_field(f.type, value[f.name])
                return field_type(**kwargs)
            return value

        if hasattr(field_type, "__mro__") and any(
            base.__name__ == "Enum" for base in field_type.__mro__
        ):
            if isinstance(value, str):
                return field_type(value)
            return value

        return value


_default_loader: ConfigLoader | None = None


def get_config_loader() -> ConfigLoader:
    """Get default config loader singleton."""
    global _default_loader  # noqa: PLW0603
    if _default_loader is None:
        _default_loader = ConfigLoader()
    return _default_loader


def load_config(path: str | Path | None = None) -> ContentflowConfig:
    """Convenience function to load config.

    Args:
        path: Optional path to config file

    Returns:
        Loaded ContentflowConfig instance
    """
    return get_config_loader().load(path)

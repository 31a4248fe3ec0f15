"""
Application configuration for the update manager.

This module implements the AppConfig Pydantic model and configuration loading.
Package-manager preferences (enabled providers, ignored packages, installed
versions) are not configuration; they live in the persisted state file
managed by update_manager.state.

Configuration is loaded from multiple sources with layered precedence:
1. Built-in defaults (Pydantic model defaults)
2. YAML settings file (~/.config/update-manager/settings.yml or --config path)
3. Environment variables (UPDATE_MANAGER_* prefix, __ for nesting)
4. Explicit overrides passed by the command line (highest precedence)
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

CONFIG_DIR = Path.home() / ".config" / "update-manager"
DEFAULT_SETTINGS_PATH = CONFIG_DIR / "settings.yml"
DEFAULT_STATE_PATH = CONFIG_DIR / "config.json"
DEFAULT_CLAUDE_PACKAGE_URL = "https://registry.npmjs.org/@anthropic-ai/claude-code"

# =============================================================================
# Logging Configuration
# =============================================================================


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level.
        json_format: Emit JSON log lines instead of plain text.
        log_to_stderr: Whether to log to stderr.
    """

    level: str = Field(
        default="warning",
        description="Log level: debug, info, warning, error",
    )
    json_format: bool = Field(
        default=True,
        description="Emit JSON-formatted log lines",
    )
    log_to_stderr: bool = Field(
        default=True,
        description="Whether to log to stderr",
    )

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate and normalize log level."""
        valid_levels = {"debug", "info", "warn", "warning", "error", "critical"}
        v_lower = v.lower()
        if v_lower not in valid_levels:
            raise ValueError(
                f"Invalid log level: {v}. Must be one of: {', '.join(sorted(valid_levels))}"
            )
        if v_lower == "warn":
            return "warning"
        return v_lower


# =============================================================================
# State Configuration
# =============================================================================


class StateConfig(BaseModel):
    """Location of the persisted state file."""

    path: str = Field(
        default=str(DEFAULT_STATE_PATH),
        description="Path to the JSON state file",
    )


# =============================================================================
# Registry Configuration
# =============================================================================


class RegistryConfig(BaseModel):
    """Remote registry lookups used by providers without a listing command.

    Attributes:
        claude_package_url: npm registry document for the Claude CLI package.
        http_timeout: Timeout in seconds for registry requests.
    """

    claude_package_url: str = Field(
        default=DEFAULT_CLAUDE_PACKAGE_URL,
        description="npm registry URL queried for the latest Claude CLI version",
    )
    http_timeout: float = Field(
        default=15.0,
        description="Registry request timeout in seconds",
        gt=0,
        le=300,
    )


# =============================================================================
# Elevation Configuration
# =============================================================================


class ElevationConfig(BaseModel):
    """Elevation helper used to retry updates that need administrator rights.

    Attributes:
        helper_command: Executable that wraps a command with elevated rights.
        helper_package_id: winget package id used to install the helper.
    """

    helper_command: str = Field(
        default="gsudo",
        description="Elevation wrapper command",
    )
    helper_package_id: str = Field(
        default="gerardog.gsudo",
        description="winget package id for installing the elevation helper",
    )


# =============================================================================
# Main Application Configuration
# =============================================================================


class AppConfig(BaseModel):
    """
    Main application configuration model.

    Attributes:
        logging: Logging configuration.
        state: Persisted state location.
        registry: Remote registry settings.
        elevation: Elevation helper settings.
    """

    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging configuration",
    )
    state: StateConfig = Field(
        default_factory=StateConfig,
        description="Persisted state location",
    )
    registry: RegistryConfig = Field(
        default_factory=RegistryConfig,
        description="Remote registry settings",
    )
    elevation: ElevationConfig = Field(
        default_factory=ElevationConfig,
        description="Elevation helper settings",
    )


# =============================================================================
# Configuration Loading Functions
# =============================================================================


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two dictionaries.

    Args:
        base: The base dictionary.
        override: The dictionary with values to override.

    Returns:
        A new dictionary with merged values.
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _load_yaml_config(config_path: Path) -> dict[str, Any]:
    """
    Load configuration from a YAML file.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        yaml.YAMLError: If the YAML is invalid.
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _parse_env_value(value: str) -> Any:
    """
    Parse an environment variable value to an appropriate Python type.

    Args:
        value: String value from environment variable.

    Returns:
        Parsed value (bool, int, float, or string).
    """
    if value.lower() in ("true", "yes", "on"):
        return True
    if value.lower() in ("false", "no", "off"):
        return False

    try:
        return int(value)
    except ValueError:
        pass

    try:
        return float(value)
    except ValueError:
        pass

    return value


def _load_env_config(prefix: str = "UPDATE_MANAGER_") -> dict[str, Any]:
    """
    Load configuration from environment variables.

    Nested keys use a double underscore separator, e.g.
    UPDATE_MANAGER_LOGGING__LEVEL=debug.

    Args:
        prefix: Environment variable prefix.

    Returns:
        Dictionary with configuration values.
    """
    result: dict[str, Any] = {}

    for key, value in os.environ.items():
        if not key.startswith(prefix):
            continue

        parts = key[len(prefix) :].lower().split("__")

        current = result
        for part in parts[:-1]:
            current = current.setdefault(part, {})

        current[parts[-1]] = _parse_env_value(value)

    return result


def load_config(
    config_path: Path | str | None = None,
    env_prefix: str = "UPDATE_MANAGER_",
    overrides: dict[str, Any] | None = None,
) -> AppConfig:
    """
    Load configuration from all sources with layered precedence.

    Args:
        config_path: Path to a YAML settings file. If None, the default path
            is used when it exists.
        env_prefix: Prefix for environment variables.
        overrides: Values from the command line, applied last.

    Returns:
        Fully configured AppConfig instance.

    Raises:
        FileNotFoundError: If an explicitly given config file doesn't exist.
        ValidationError: If configuration is invalid.

    Example:
        >>> config = load_config(overrides={"logging": {"level": "debug"}})
        >>> config.logging.level
        'debug'
    """
    config_dict: dict[str, Any] = {}

    if config_path is None:
        if DEFAULT_SETTINGS_PATH.exists():
            config_path = DEFAULT_SETTINGS_PATH
    elif isinstance(config_path, str):
        config_path = Path(config_path)

    if config_path is not None:
        config_dict = _deep_merge(config_dict, _load_yaml_config(config_path))

    config_dict = _deep_merge(config_dict, _load_env_config(env_prefix))

    if overrides:
        config_dict = _deep_merge(config_dict, overrides)

    return AppConfig(**config_dict)

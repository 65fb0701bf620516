"""Configuration loader for agentshell."""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from agentshell.config.models import AgentConfig
from agentshell.errors import ConfigError

SECTIONS = ("retry", "tools", "output", "paths", "logging")


def _read_toml(path: Path) -> dict[str, Any]:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e


def _apply_override(config_dict: dict[str, Any], key: str, value: Any) -> None:
    """Set ``value`` at a dotted ``key`` such as ``tools.shell``."""
    parts = key.split(".")
    current = config_dict
    for part in parts[:-1]:
        if part not in current or not isinstance(current[part], dict):
            current[part] = {}
        current = current[part]
    current[parts[-1]] = value


def load_config(
    config_path: Optional[Path] = None,
    overrides: Optional[dict[str, Any]] = None,
) -> AgentConfig:
    """Load configuration with optional overrides.

    The TOML layout is an ``[agent]`` table for top-level settings plus one
    table per sub-configuration (``[retry]``, ``[tools]``, ``[output]``,
    ``[paths]``, ``[logging]``).

    Args:
        config_path: Optional path to a TOML config file.
        overrides: Optional dotted-key overrides (``"output.mode": "json"``).

    Returns:
        AgentConfig instance.

    Raises:
        ConfigError: if the file is missing, malformed, or fails validation.
    """
    config_dict: dict[str, Any] = {}

    if config_path is not None:
        if not config_path.exists():
            raise ConfigError(f"Config file not found: {config_path}")
        raw_config = _read_toml(config_path)

        for key, value in raw_config.get("agent", {}).items():
            config_dict[key] = value

        for section in SECTIONS:
            if section in raw_config:
                config_dict[section] = dict(raw_config[section])

    if overrides:
        for key, value in overrides.items():
            _apply_override(config_dict, key, value)

    try:
        return AgentConfig(**config_dict)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def find_config_file() -> Optional[Path]:
    """Find the configuration file in standard locations.

    Searches in order:
    1. ./agentshell.toml
    2. ./.agentshell.toml
    3. ~/.config/agentshell/config.toml

    Returns:
        Path to the config file if found, None otherwise.
    """
    search_paths = [
        Path.cwd() / "agentshell.toml",
        Path.cwd() / ".agentshell.toml",
        Path.home() / ".config" / "agentshell" / "config.toml",
    ]

    for path in search_paths:
        if path.exists():
            return path

    return None

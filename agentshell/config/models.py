"""Pydantic models for agentshell configuration."""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from agentshell.errors import MissingCredentialError


class OutputMode(str, Enum):
    """Output mode for the CLI."""

    HUMAN = "human"
    JSON = "json"


class RetryConfig(BaseModel):
    """Configuration for model-client retry logic."""

    max_attempts: int = Field(default=3, description="Maximum attempts per request")
    base_delay: float = Field(default=1.0, description="Base delay in seconds")
    max_delay: float = Field(default=30.0, description="Maximum delay in seconds")
    retry_on_status: list[int] = Field(
        default=[429, 500, 502, 503, 504], description="HTTP status codes to retry on"
    )


class ToolsConfig(BaseModel):
    """Configuration for the built-in tools."""

    shell_enabled: bool = Field(default=True, description="Enable run_shell_command")
    shell: str = Field(default="bash", description="Shell used as `<shell> -c <command>`")
    kill_grace_seconds: float = Field(
        default=5.0, description="Seconds between SIGTERM and SIGKILL on cancellation"
    )
    scrub_secrets: bool = Field(
        default=False, description="Remove KEY/TOKEN/SECRET-like variables from child env"
    )
    read_many_files_enabled: bool = Field(default=True, description="Enable read_many_files")


class OutputConfig(BaseModel):
    """Configuration for output formatting."""

    mode: OutputMode = Field(default=OutputMode.HUMAN, description="Output mode")
    colors: bool = Field(default=True, description="Enable colored output")


class PathsConfig(BaseModel):
    """Configuration for file paths."""

    project_root: str = Field(default="", description="Root that tool paths resolve against")

    @field_validator("project_root", mode="before")
    @classmethod
    def resolve_root(cls, v: Optional[str]) -> str:
        """Resolve empty root to current directory."""
        if not v:
            return os.getcwd()
        return str(Path(v).expanduser().resolve())


class LoggingConfig(BaseModel):
    """Configuration for the standard-library logging setup."""

    level: str = Field(default="WARNING", description="Root log level")
    file: Optional[str] = Field(default=None, description="Optional log file")


class AgentConfig(BaseModel):
    """Main configuration for agentshell."""

    # Model settings
    model: str = Field(default="gemini-1.5-flash", description="Model to use")
    base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Gemini API base URL",
    )
    api_key_env: str = Field(default="GEMINI_API_KEY", description="Variable holding the API key")
    timeout: float = Field(default=120.0, description="Timeout per model request in seconds")
    temperature: Optional[float] = Field(default=None, description="Generation temperature")
    system_instruction: Optional[str] = Field(default=None, description="Optional system prompt")
    max_tool_rounds: Optional[int] = Field(
        default=None, ge=1, description="Cap on tool rounds per turn (unset = unbounded)"
    )

    # Sub-configurations
    retry: RetryConfig = Field(default_factory=RetryConfig)
    tools: ToolsConfig = Field(default_factory=ToolsConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def project_root(self) -> Path:
        """Get the project root as a Path object."""
        return Path(self.paths.project_root or os.getcwd())

    def get_api_key(self) -> str:
        """Get the API key from the environment."""
        key = os.environ.get(self.api_key_env)
        if not key:
            raise MissingCredentialError(f"{self.api_key_env} environment variable not set")
        return key

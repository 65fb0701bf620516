"""Configuration models and loading."""

from agentshell.config.loader import find_config_file, load_config
from agentshell.config.models import AgentConfig, OutputMode

__all__ = ["AgentConfig", "OutputMode", "find_config_file", "load_config"]

"""Exception hierarchy shared across agentshell."""

from __future__ import annotations

from typing import Optional


class AgentShellError(Exception):
    """Base class for all agentshell errors."""


class ConfigError(AgentShellError):
    """Raised when configuration cannot be loaded or is invalid."""


class MissingCredentialError(ConfigError):
    """Raised when the model API credential is not available."""


class ToolError(AgentShellError):
    """A tool-level failure that becomes an error ToolResult.

    ``kind`` is a short machine-readable tag, ``message`` the text shown
    to the model.
    """

    kind = "tool_error"

    def __init__(self, message: str, kind: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind


class ToolInputError(ToolError):
    """A required argument is missing or has the wrong type."""

    kind = "invalid_input"


class ToolExecutionError(ToolError):
    """The tool could not carry out the request (e.g. process failed to start)."""

    kind = "execution_error"


class OperationCancelled(AgentShellError):
    """The operation's context was cancelled while it was in flight.

    Kept separate from ``ToolError`` so it is never folded into an
    ordinary error result.
    """

    def __init__(self, reason: str = "operation cancelled"):
        super().__init__(reason)
        self.reason = reason


class ModelClientError(AgentShellError):
    """Transport-level failure talking to the model endpoint."""

    def __init__(
        self,
        message: str,
        code: str = "unknown",
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code

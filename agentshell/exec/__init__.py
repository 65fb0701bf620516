"""Command execution module.

Runs shell commands in their own process group with full output capture,
cancellation and exit-status decoding.
"""

from .runner import (
    DEFAULT_KILL_GRACE,
    DEFAULT_SHELL,
    SENSITIVE_PATTERNS,
    ExecOptions,
    ExecOutput,
    ExitOutcome,
    ProcessHandle,
    build_environment,
    run_command,
    terminate_group,
)

__all__ = [
    "ExecOptions",
    "ExecOutput",
    "ExitOutcome",
    "ProcessHandle",
    "run_command",
    "terminate_group",
    "build_environment",
    "DEFAULT_SHELL",
    "DEFAULT_KILL_GRACE",
    "SENSITIVE_PATTERNS",
]

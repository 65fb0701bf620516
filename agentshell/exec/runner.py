"""Shell command execution inside a dedicated process group.

This module provides:
- Spawning ``<shell> -c <command>`` as a process-group leader
- Capture of stdout/stderr into in-memory buffers for the whole lifetime
- A race between process completion and context cancellation
- Exit-status decoding into exit code / signal / error text
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from agentshell.core.context import RunContext
from agentshell.errors import OperationCancelled, ToolExecutionError
from agentshell.exec.groups import (
    NO_ERROR,
    NO_VALUE,
    decode_returncode,
    query_group,
    signal_group,
    spawn_in_group,
)

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

DEFAULT_SHELL: str = "bash"
DEFAULT_KILL_GRACE: float = 5.0  # seconds between SIGTERM and SIGKILL
READ_CHUNK_SIZE: int = 64 * 1024

# Patterns in variable names that indicate sensitive data (case-insensitive).
# Only consulted when secret scrubbing is switched on.
SENSITIVE_PATTERNS: List[str] = [
    "KEY",
    "SECRET",
    "TOKEN",
    "PASSWORD",
    "CREDENTIAL",
    "PRIVATE",
]


# =============================================================================
# Options and Output
# =============================================================================


@dataclass
class ExecOptions:
    """Options for command execution.

    Attributes:
        cwd: Working directory for the command.
        shell: Shell used as ``<shell> -c <command>``.
        kill_grace: Seconds to wait after SIGTERM before sending SIGKILL.
        scrub_secrets: Drop sensitive-looking variables from the child env.
    """

    cwd: Path = field(default_factory=Path.cwd)
    shell: str = DEFAULT_SHELL
    kill_grace: float = DEFAULT_KILL_GRACE
    scrub_secrets: bool = False

    def __post_init__(self):
        if isinstance(self.cwd, str):
            self.cwd = Path(self.cwd)


@dataclass
class ExitOutcome:
    """Decoded terminal status of a process.

    Exit code and signal are never both meaningful: a process killed by a
    signal has ``exit_code == -1``; a process that exited has
    ``signal == -1``.
    """

    exit_code: int = NO_VALUE
    signal: int = NO_VALUE
    error: str = NO_ERROR

    @classmethod
    def from_returncode(cls, returncode: Optional[int]) -> "ExitOutcome":
        exit_code, signum, error = decode_returncode(returncode)
        return cls(exit_code=exit_code, signal=signum, error=error)

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0 and self.error == NO_ERROR


@dataclass
class ProcessHandle:
    """A running command. Owned by the ``run_command`` call that created it."""

    pid: int
    pgid: int
    process: asyncio.subprocess.Process
    stdout: bytearray = field(default_factory=bytearray)
    stderr: bytearray = field(default_factory=bytearray)
    completion: Optional["asyncio.Future[ExitOutcome]"] = None


@dataclass
class ExecOutput:
    """Output from a command that ran to completion."""

    stdout: str
    stderr: str
    outcome: ExitOutcome
    pgid: int
    duration: float


# =============================================================================
# Environment
# =============================================================================


def build_environment(scrub_secrets: bool = False) -> Optional[Dict[str, str]]:
    """Environment for the child process.

    ``None`` means "inherit unchanged". With ``scrub_secrets`` variables
    whose names contain a sensitive pattern are removed.
    """
    if not scrub_secrets:
        return None
    env: Dict[str, str] = {}
    for key, value in os.environ.items():
        key_upper = key.upper()
        if not any(pattern in key_upper for pattern in SENSITIVE_PATTERNS):
            env[key] = value
    return env


def decode_output(data: bytes) -> str:
    return bytes(data).decode("utf-8", errors="replace")


# =============================================================================
# Process lifecycle
# =============================================================================


async def start_process(command: str, options: ExecOptions) -> ProcessHandle:
    """Spawn the command in its own process group."""
    try:
        process = await spawn_in_group(
            options.shell,
            command,
            options.cwd,
            env=build_environment(options.scrub_secrets),
        )
    except OSError as e:
        raise ToolExecutionError(f"failed to start command: {e}") from e

    # setsid() makes the child the leader of a group whose id is its pid.
    handle = ProcessHandle(pid=process.pid, pgid=process.pid, process=process)
    logger.debug("started pid=%s pgid=%s cwd=%s", handle.pid, handle.pgid, options.cwd)
    return handle


async def _pump(stream: Optional[asyncio.StreamReader], buffer: bytearray) -> None:
    if stream is None:
        return
    while True:
        chunk = await stream.read(READ_CHUNK_SIZE)
        if not chunk:
            break
        buffer.extend(chunk)


async def wait_process(handle: ProcessHandle) -> ExitOutcome:
    """Drain both pipes, reap the process and decode its status."""
    process = handle.process
    pipe_error: Optional[str] = None
    # Both pumps run to completion even when one of them fails.
    results = await asyncio.gather(
        _pump(process.stdout, handle.stdout),
        _pump(process.stderr, handle.stderr),
        return_exceptions=True,
    )
    for result in results:
        if isinstance(result, OSError):
            if pipe_error is None:
                pipe_error = str(result)
        elif isinstance(result, BaseException):
            raise result

    returncode = await process.wait()
    if pipe_error is not None:
        return ExitOutcome(error=pipe_error)
    return ExitOutcome.from_returncode(returncode)


async def terminate_group(handle: ProcessHandle, grace: float = DEFAULT_KILL_GRACE) -> None:
    """SIGTERM the whole group, then join the pending wait.

    The join is unconditional so the leader is always reaped. If the group
    is still around after ``grace`` seconds it gets SIGKILL first.
    """
    if handle.completion is None:
        handle.completion = asyncio.ensure_future(wait_process(handle))

    logger.info("terminating process group %s (pid %s)", handle.pgid, handle.pid)
    signal_group(handle.pgid, signal.SIGTERM)
    try:
        await asyncio.wait_for(asyncio.shield(handle.completion), timeout=grace)
        return
    except asyncio.TimeoutError:
        logger.warning("process group %s ignored SIGTERM, sending SIGKILL", handle.pgid)

    signal_group(handle.pgid, signal.SIGKILL)
    await asyncio.shield(handle.completion)


async def run_command(
    command: str,
    options: Optional[ExecOptions] = None,
    ctx: Optional[RunContext] = None,
) -> ExecOutput:
    """Run ``command`` to completion unless ``ctx`` is cancelled first.

    Raises:
        OperationCancelled: the context was cancelled; the process group has
            been signalled and reaped before this is raised.
        ToolExecutionError: the process could not be started.
    """
    if options is None:
        options = ExecOptions()
    if ctx is None:
        ctx = RunContext()

    ctx.raise_if_cancelled()

    start_time = time.monotonic()
    handle = await start_process(command, options)
    handle.completion = asyncio.ensure_future(wait_process(handle))
    watcher = asyncio.ensure_future(ctx.wait_cancelled())

    try:
        done, _ = await asyncio.wait(
            {handle.completion, watcher},
            return_when=asyncio.FIRST_COMPLETED,
        )
    except asyncio.CancelledError:
        await terminate_group(handle, options.kill_grace)
        raise
    finally:
        watcher.cancel()

    if handle.completion not in done:
        await terminate_group(handle, options.kill_grace)
        raise OperationCancelled(ctx.reason or "operation cancelled")

    outcome = handle.completion.result()
    duration = time.monotonic() - start_time
    logger.debug(
        "pid=%s finished in %.3fs exit=%s signal=%s",
        handle.pid,
        duration,
        outcome.exit_code,
        outcome.signal,
    )

    return ExecOutput(
        stdout=decode_output(handle.stdout),
        stderr=decode_output(handle.stderr),
        outcome=outcome,
        pgid=query_group(handle.pid, handle.pgid),
        duration=duration,
    )

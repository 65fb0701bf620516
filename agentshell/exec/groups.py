"""POSIX process-group primitives.

Everything platform-specific about running a shell command lives here:
spawning into a fresh process group, signalling the whole group, and
turning a wait status into exit code / signal / error text. The runner
and the tools only talk to these functions.
"""

from __future__ import annotations

import asyncio
import os
import signal
from pathlib import Path
from typing import Optional, Tuple

NO_ERROR = "(none)"
NO_VALUE = -1


async def spawn_in_group(
    shell: str,
    command: str,
    cwd: Path,
    env: Optional[dict[str, str]] = None,
) -> asyncio.subprocess.Process:
    """Start ``<shell> -c <command>`` as the leader of a new process group.

    ``start_new_session`` runs setsid() in the child, so the child's pid is
    also its process-group id and any processes it forks join that group.
    """
    return await asyncio.create_subprocess_exec(
        shell,
        "-c",
        command,
        cwd=str(cwd),
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        env=env,
        start_new_session=True,
    )


def signal_group(pgid: int, sig: int = signal.SIGTERM) -> bool:
    """Send ``sig`` to every process in group ``pgid`` (kill -- -PGID).

    Returns False when the group no longer exists.
    """
    if pgid <= 0:
        return False
    try:
        os.killpg(pgid, sig)
    except ProcessLookupError:
        return False
    return True


def group_alive(pgid: int) -> bool:
    """True if at least one process in ``pgid`` can still be signalled."""
    if pgid <= 0:
        return False
    try:
        os.killpg(pgid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    return True


def query_group(pid: int, fallback_pgid: int = NO_VALUE) -> int:
    """Best-effort lookup of the process group id for ``pid``.

    Once the leader has been reaped ``getpgid`` fails; the group id is then
    only reported while background members keep the group alive.
    """
    try:
        return os.getpgid(pid)
    except (ProcessLookupError, PermissionError):
        pass
    if group_alive(fallback_pgid):
        return fallback_pgid
    return NO_VALUE


def signal_name(signum: int) -> str:
    description = signal.strsignal(signum)
    if description:
        return description.lower()
    return f"signal {signum}"


def decode_returncode(returncode: Optional[int]) -> Tuple[int, int, str]:
    """Decode an asyncio/subprocess return code.

    Returns ``(exit_code, signal, error_text)`` using -1 / "(none)" for
    absent values. Negative return codes mean the process was killed by
    that signal number.
    """
    if returncode is None:
        return NO_VALUE, NO_VALUE, "process status unavailable"
    if returncode == 0:
        return 0, NO_VALUE, NO_ERROR
    if returncode < 0:
        signum = -returncode
        return NO_VALUE, signum, f"signal: {signal_name(signum)}"
    return returncode, NO_VALUE, f"exit status {returncode}"

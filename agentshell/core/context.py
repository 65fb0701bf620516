"""Cancellation token threaded through a turn.

One ``RunContext`` is created per user turn and passed
orchestrator -> registry -> tool -> executor. Cancelling it aborts
whatever tool invocation is in flight; there is no partial scope.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from agentshell.errors import OperationCancelled


class RunContext:
    """An asyncio-based cancellation token.

    The underlying event is created lazily so a context can be built
    outside a running loop (e.g. in the CLI before ``asyncio.run``).
    """

    def __init__(self) -> None:
        self._event: Optional[asyncio.Event] = None
        self._reason: Optional[str] = None

    def _get_event(self) -> asyncio.Event:
        if self._event is None:
            self._event = asyncio.Event()
            if self._reason is not None:
                self._event.set()
        return self._event

    @property
    def cancelled(self) -> bool:
        return self._reason is not None

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def cancel(self, reason: str = "operation cancelled") -> None:
        """Cancel the context. Idempotent; the first reason wins."""
        if self._reason is None:
            self._reason = reason
        if self._event is not None:
            self._event.set()

    async def wait_cancelled(self) -> None:
        """Block until the context is cancelled."""
        await self._get_event().wait()

    def raise_if_cancelled(self) -> None:
        """Cooperative cancellation point."""
        if self._reason is not None:
            raise OperationCancelled(self._reason)

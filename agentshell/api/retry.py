"""Retry logic with exponential backoff for model API calls."""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TypeVar

from agentshell.config.models import RetryConfig
from agentshell.errors import ModelClientError

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_CODES = frozenset({"rate_limit", "server_error", "timeout", "connection_error"})


@dataclass
class RetryState:
    """State of a retry operation."""

    attempt: int
    last_error: Optional[Exception]
    last_status_code: Optional[int]
    total_delay: float


class RetryHandler:
    """Handles retry logic with exponential backoff."""

    def __init__(self, config: RetryConfig, sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep):
        self.config = config
        self._sleep = sleep

    def calculate_delay(self, attempt: int) -> float:
        """Calculate delay with exponential backoff and jitter.

        Args:
            attempt: Current attempt number (1-indexed)

        Returns:
            Delay in seconds with jitter
        """
        exp_delay = self.config.base_delay * (2 ** (attempt - 1))
        delay = min(exp_delay, self.config.max_delay)
        return delay * random.uniform(0.9, 1.1)

    def should_retry(self, error: Exception, attempt: int) -> bool:
        """Determine if we should retry based on the error."""
        if attempt >= self.config.max_attempts:
            return False

        if isinstance(error, ModelClientError):
            if error.status_code is not None:
                return error.status_code in self.config.retry_on_status
            return error.code in RETRYABLE_CODES

        return isinstance(error, (ConnectionError, TimeoutError))

    async def execute(
        self,
        func: Callable[..., Awaitable[T]],
        *args: Any,
        on_retry: Optional[Callable[[RetryState], None]] = None,
        **kwargs: Any,
    ) -> T:
        """Await ``func(*args, **kwargs)`` with retry logic.

        Raises:
            The last exception if all retries fail
        """
        state = RetryState(attempt=0, last_error=None, last_status_code=None, total_delay=0)

        while True:
            state.attempt += 1

            try:
                return await func(*args, **kwargs)
            except Exception as e:
                state.last_error = e
                if isinstance(e, ModelClientError):
                    state.last_status_code = e.status_code

                if not self.should_retry(e, state.attempt):
                    raise

                delay = self.calculate_delay(state.attempt)
                state.total_delay += delay
                logger.warning(
                    "model request failed (attempt %d/%d): %s; retrying in %.1fs",
                    state.attempt,
                    self.config.max_attempts,
                    e,
                    delay,
                )

                if on_retry:
                    on_retry(state)

                await self._sleep(delay)

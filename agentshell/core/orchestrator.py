"""Tool-invocation loop for one conversation turn.

This implements the turn state machine:
1. Send the user's text to the model
2. If the response asks for tools, dispatch them one by one in order
3. Send the whole batch of results back as the next message
4. Repeat until the model answers with text only (or with no candidates)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence

from agentshell.core.context import RunContext
from agentshell.errors import ModelClientError, OperationCancelled
from agentshell.llm.client import ChatSessionProtocol
from agentshell.llm.types import FunctionCall, Part
from agentshell.output.events import Event, EventSink
from agentshell.tools.base import ToolResult
from agentshell.tools.registry import ToolRegistry
from agentshell.tools.router import ToolRouter

logger = logging.getLogger(__name__)


class TurnStatus(str, Enum):
    COMPLETED = "completed"
    NO_RESPONSE = "no_response"
    CANCELLED = "cancelled"
    ROUND_LIMIT = "round_limit"


@dataclass
class ToolRound:
    """One model request for tools and the results sent back."""

    calls: List[FunctionCall]
    results: List[ToolResult] = field(default_factory=list)
    text: str = ""


@dataclass
class ConversationTurn:
    """Everything exchanged for one user input."""

    user_text: str
    status: TurnStatus = TurnStatus.COMPLETED
    text: str = ""
    rounds: List[ToolRound] = field(default_factory=list)

    @property
    def tool_calls(self) -> int:
        return sum(len(r.calls) for r in self.rounds)


class Orchestrator:
    """Drives turns between a chat session and the tool registry.

    The orchestrator itself has no side effects beyond session I/O; all
    local actions happen inside tools.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        max_tool_rounds: Optional[int] = None,
        on_event: Optional[EventSink] = None,
    ):
        self.registry = registry
        self.max_tool_rounds = max_tool_rounds
        self._on_event = on_event

    def _emit(self, event: Event) -> None:
        if self._on_event is not None:
            self._on_event(event)

    async def run_turn(
        self,
        session: ChatSessionProtocol,
        user_text: str,
        ctx: Optional[RunContext] = None,
    ) -> ConversationTurn:
        """Run one turn to completion.

        A cancelled turn or one stopped by the round limit is rolled back out
        of the session history so the next turn starts clean.

        Raises:
            ModelClientError: sending to the model failed; the turn is
                abandoned and the history rolled back.
        """
        if ctx is None:
            ctx = RunContext()

        turn = ConversationTurn(user_text=user_text)
        mark = session.checkpoint()
        self._emit(Event.turn_started(user_text))

        try:
            await self._loop(session, turn, ctx)
        except OperationCancelled as e:
            logger.info("turn cancelled: %s", e.reason)
            turn.status = TurnStatus.CANCELLED
            session.rollback(mark)
        except ModelClientError as e:
            logger.error("model request failed: %s", e.message)
            session.rollback(mark)
            self._emit(Event.turn_failed(e.message, e.code))
            raise

        if turn.status == TurnStatus.ROUND_LIMIT:
            session.rollback(mark)

        self._emit(Event.turn_completed(turn.status.value, len(turn.rounds), turn.text))
        return turn

    async def _loop(
        self,
        session: ChatSessionProtocol,
        turn: ConversationTurn,
        ctx: RunContext,
    ) -> None:
        message: Sequence[Part] = [Part.from_text(turn.user_text)]

        while True:
            response = await session.send(message)
            # A reply that arrives after cancellation is discarded with the turn.
            ctx.raise_if_cancelled()

            if response.is_empty:
                turn.status = TurnStatus.NO_RESPONSE
                self._emit(Event.no_response())
                return

            parsed = ToolRouter.parse_response(response)

            if not parsed.has_function_calls:
                turn.status = TurnStatus.COMPLETED
                turn.text = parsed.text
                self._emit(Event.message(parsed.text))
                return

            if self.max_tool_rounds is not None and len(turn.rounds) >= self.max_tool_rounds:
                logger.warning("tool round limit (%d) reached", self.max_tool_rounds)
                turn.status = TurnStatus.ROUND_LIMIT
                turn.text = parsed.text
                return

            tool_round = ToolRound(calls=list(parsed.function_calls), text=parsed.text)
            turn.rounds.append(tool_round)
            for call in tool_round.calls:
                tool_round.results.append(await self._dispatch(call, ctx))

            message = [result.to_part() for result in tool_round.results]

    async def _dispatch(self, call: FunctionCall, ctx: RunContext) -> ToolResult:
        ctx.raise_if_cancelled()
        self._emit(Event.tool_call_start(call.name, call.args))
        result = await self.registry.dispatch(ctx, call)
        self._emit(
            Event.tool_call_end(
                call.name,
                result.success,
                result=result.fields,
                error=result.error.message if result.error else None,
            )
        )
        return result

import asyncio

import pytest

from agentshell.core.context import RunContext
from agentshell.core.orchestrator import Orchestrator, TurnStatus
from agentshell.errors import ModelClientError
from agentshell.output.events import EventType
from agentshell.tools.base import BaseTool, ToolDeclaration
from agentshell.tools.registry import ToolRegistry
from agentshell.tools.schema import Schema


class NoteTool(BaseTool):
    """Appends its argument to a shared log."""

    def __init__(self, project_root, log, on_call=None):
        super().__init__(project_root)
        self.log = log
        self.on_call = on_call

    def declaration(self):
        return ToolDeclaration(
            name="note",
            description="Record a note",
            parameters=Schema.object({"text": Schema.string()}, required=("text",)),
        )

    async def execute(self, ctx, args):
        self.log.append(args["text"])
        if self.on_call is not None:
            self.on_call(ctx)
        return {"noted": args["text"]}


@pytest.fixture()
def log():
    return []


@pytest.fixture()
def events():
    return []


@pytest.fixture()
def orchestrator(project_root, log, events):
    registry = ToolRegistry([NoteTool(project_root, log)])
    return Orchestrator(registry, on_event=events.append)


def _turn(orchestrator, session, text="hello", ctx=None):
    return asyncio.run(orchestrator.run_turn(session, text, ctx))


def test_text_only_reply_needs_one_round_trip(orchestrator, make_session, replies, log, events):
    session = make_session(replies.text("hi there"))

    turn = _turn(orchestrator, session)

    assert turn.status == TurnStatus.COMPLETED
    assert turn.text == "hi there"
    assert turn.rounds == []
    assert len(session.sent) == 1
    assert session.sent[0][0].text == "hello"
    assert log == []
    assert [e.type for e in events] == [
        EventType.TURN_STARTED,
        EventType.MESSAGE,
        EventType.TURN_COMPLETED,
    ]


def test_two_calls_are_one_batch_in_call_order(orchestrator, make_session, replies, log):
    session = make_session(
        replies.calls(("note", {"text": "first"}), ("note", {"text": "second"})),
        replies.text("done"),
    )

    turn = _turn(orchestrator, session)

    assert log == ["first", "second"]
    assert turn.tool_calls == 2
    assert turn.text == "done"
    assert len(session.sent) == 2
    batch = session.sent[1]
    assert [p.function_response.name for p in batch] == ["note", "note"]
    assert [p.function_response.response for p in batch] == [
        {"output": {"noted": "first"}},
        {"output": {"noted": "second"}},
    ]
    assert [p.function_response.id for p in batch] == ["call-0", "call-1"]


def test_unknown_tool_result_goes_back_to_model(orchestrator, make_session, replies, log):
    session = make_session(replies.calls(("launch", {})), replies.text("sorry"))

    turn = _turn(orchestrator, session)

    assert turn.status == TurnStatus.COMPLETED
    response = session.sent[1][0].function_response.response
    assert response == {"error": {"kind": "unknown_tool", "message": "unknown tool: launch"}}
    assert log == []


def test_no_candidates_ends_the_turn(orchestrator, make_session, replies, events):
    session = make_session(replies.empty())

    turn = _turn(orchestrator, session)

    assert turn.status == TurnStatus.NO_RESPONSE
    assert EventType.NO_RESPONSE in [e.type for e in events]


def test_round_limit_stops_and_rolls_back(project_root, make_session, replies, log):
    registry = ToolRegistry([NoteTool(project_root, log)])
    orchestrator = Orchestrator(registry, max_tool_rounds=1)
    session = make_session(
        replies.calls(("note", {"text": "one"})),
        replies.calls(("note", {"text": "two"})),
    )

    turn = _turn(orchestrator, session)

    assert turn.status == TurnStatus.ROUND_LIMIT
    assert log == ["one"]
    assert session.history == []


def test_transport_error_abandons_turn(orchestrator, make_session, replies, events):
    session = make_session(
        replies.text("first answer"),
        replies.calls(("note", {"text": "x"})),
        ModelClientError("HTTP 500: down", code="server_error", status_code=500),
    )
    _turn(orchestrator, session, "first")
    kept = list(session.history)

    with pytest.raises(ModelClientError):
        _turn(orchestrator, session, "second")

    assert session.history == kept
    assert events[-1].type == EventType.TURN_FAILED


def test_cancellation_skips_remaining_calls(project_root, make_session, replies, log, events):
    def cancel(ctx):
        ctx.cancel("interrupted")

    registry = ToolRegistry([NoteTool(project_root, log, on_call=cancel)])
    orchestrator = Orchestrator(registry, on_event=events.append)
    session = make_session(
        replies.calls(("note", {"text": "first"}), ("note", {"text": "second"})),
    )

    turn = _turn(orchestrator, session, ctx=RunContext())

    assert turn.status == TurnStatus.CANCELLED
    assert log == ["first"]
    assert session.history == []
    assert events[-1].data["status"] == "cancelled"


def test_text_alongside_calls_is_kept_on_round(orchestrator, make_session, replies):
    session = make_session(
        replies.calls(("note", {"text": "a"}), text="let me note that"),
        replies.text("ok"),
    )

    turn = _turn(orchestrator, session)

    assert turn.rounds[0].text == "let me note that"
    assert turn.rounds[0].results[0].success


class InterruptedSession:
    """Session whose reply arrives after the turn was interrupted."""

    def __init__(self, ctx, reply):
        self.ctx = ctx
        self.reply = reply
        self.history = []

    async def send(self, parts):
        self.ctx.cancel("interrupted by user")
        self.history.append(("user", list(parts)))
        self.history.append(("model", self.reply))
        return self.reply

    def checkpoint(self):
        return len(self.history)

    def rollback(self, mark):
        del self.history[mark:]


def test_interrupt_while_waiting_for_model_abandons_turn(orchestrator, replies, events):
    ctx = RunContext()
    session = InterruptedSession(ctx, replies.text("answer after ctrl+c"))

    turn = _turn(orchestrator, session, ctx=ctx)

    assert turn.status == TurnStatus.CANCELLED
    assert turn.text == ""
    assert session.history == []
    assert EventType.MESSAGE not in [e.type for e in events]

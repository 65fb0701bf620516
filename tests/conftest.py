import os
from pathlib import Path
from types import SimpleNamespace

import pytest

from agentshell.llm.types import Candidate, Content, FunctionCall, ModelResponse, Part


class FakeSession:
    """Scripted chat session (no network).

    Each ``send`` pops the next scripted reply; an exception instance is
    raised instead of returned. History is kept the way the real session
    keeps it: message and reply are appended only on success.
    """

    def __init__(self, replies):
        self.replies = list(replies)
        self.sent: list[list[Part]] = []
        self.history: list[tuple[str, object]] = []

    async def send(self, parts):
        parts = list(parts)
        self.sent.append(parts)
        if not self.replies:
            raise AssertionError("FakeSession ran out of scripted replies")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        self.history.append(("user", parts))
        self.history.append(("model", reply))
        return reply

    def checkpoint(self):
        return len(self.history)

    def rollback(self, mark):
        del self.history[mark:]


class FakeClient:
    """Stands in for GeminiClient in CLI tests."""

    def __init__(self, session: FakeSession):
        self.session = session
        self.closed = False
        self.started_with = None

    def start_chat(self, tools=(), system_instruction=None):
        self.started_with = SimpleNamespace(tools=list(tools), system_instruction=system_instruction)
        return self.session

    async def aclose(self):
        self.closed = True


def _text(text: str) -> ModelResponse:
    return ModelResponse(candidates=[Candidate(Content("model", [Part.from_text(text)]))])


def _calls(*calls, text: str = "") -> ModelResponse:
    parts = [Part.from_text(text)] if text else []
    for i, (name, args) in enumerate(calls):
        parts.append(Part(function_call=FunctionCall(name=name, args=args, id=f"call-{i}")))
    return ModelResponse(candidates=[Candidate(Content("model", parts))])


def _empty() -> ModelResponse:
    return ModelResponse(candidates=[])


@pytest.fixture()
def replies():
    """Builders for scripted model replies."""
    return SimpleNamespace(text=_text, calls=_calls, empty=_empty)


@pytest.fixture()
def make_session():
    def _make(*scripted):
        return FakeSession(scripted)

    return _make


@pytest.fixture()
def make_client():
    def _make(session: FakeSession):
        return FakeClient(session)

    return _make


@pytest.fixture()
def project_root(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture()
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run from an empty directory with no user config and no API key."""
    home = tmp_path / "home"
    home.mkdir()
    workdir = tmp_path / "work"
    workdir.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.chdir(workdir)
    return workdir


def process_running(pid: int) -> bool:
    """True if ``pid`` exists and is not a zombie."""
    stat_path = Path(f"/proc/{pid}/stat")
    if Path("/proc/self").exists():
        try:
            stat = stat_path.read_text()
        except FileNotFoundError:
            return False
        state = stat.rsplit(")", 1)[1].split()[0]
        return state != "Z"
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    return True


@pytest.fixture()
def is_running():
    return process_running

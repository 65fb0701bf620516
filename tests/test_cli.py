import json

import pytest
from typer.testing import CliRunner

from agentshell import __version__
from agentshell import main as cli
from agentshell.errors import ModelClientError

runner = CliRunner()


@pytest.fixture(autouse=True)
def quiet_cli(monkeypatch, isolated_env):
    """Keep the CLI away from the real .env and the root logger."""
    monkeypatch.setattr(cli, "load_dotenv", lambda *args, **kwargs: False)
    monkeypatch.setattr(cli, "setup_logging", lambda *args, **kwargs: None)
    return isolated_env


def test_missing_credential_is_fatal(project_root):
    result = runner.invoke(cli.app, ["chat", "--root", str(project_root)])

    assert result.exit_code == 1
    assert "GEMINI_API_KEY environment variable not set" in result.output


def test_missing_project_root_is_fatal(tmp_path):
    result = runner.invoke(cli.app, ["chat", "--root", str(tmp_path / "gone")])

    assert result.exit_code == 1
    assert "Project root does not exist" in result.output


def test_chat_runs_turns_until_quit(monkeypatch, project_root, make_session, make_client, replies):
    session = make_session(replies.text("hi there"))
    client = make_client(session)
    monkeypatch.setattr(cli, "build_client", lambda config: client)

    result = runner.invoke(
        cli.app,
        ["chat", "--root", str(project_root)],
        input="hello\n\n   \nquit\nnever sent\n",
    )

    assert result.exit_code == 0
    assert "Gemini: hi there" in result.output
    assert len(session.sent) == 1
    assert session.sent[0][0].text == "hello"
    assert client.closed
    assert [d.name for d in client.started_with.tools] == ["run_shell_command", "read_many_files"]


def test_chat_ends_at_end_of_input(monkeypatch, project_root, make_session, make_client, replies):
    session = make_session(replies.text("one"), replies.text("two"))
    monkeypatch.setattr(cli, "build_client", lambda config: make_client(session))

    result = runner.invoke(cli.app, ["chat", "--root", str(project_root)], input="a\nb")

    assert result.exit_code == 0
    assert [sent[0].text for sent in session.sent] == ["a", "b"]


def test_transport_error_does_not_end_the_session(
    monkeypatch, project_root, make_session, make_client, replies
):
    session = make_session(
        ModelClientError("HTTP 503: busy", code="server_error", status_code=503),
        replies.text("recovered"),
    )
    monkeypatch.setattr(cli, "build_client", lambda config: make_client(session))

    result = runner.invoke(cli.app, ["chat", "--root", str(project_root)], input="first\nsecond\n")

    assert result.exit_code == 0
    assert "HTTP 503: busy" in result.output
    assert "Gemini: recovered" in result.output


def test_json_mode_emits_event_lines(monkeypatch, project_root, make_session, make_client, replies):
    session = make_session(replies.text("hi"))
    monkeypatch.setattr(cli, "build_client", lambda config: make_client(session))

    result = runner.invoke(cli.app, ["chat", "--json", "--root", str(project_root)], input="hello\n")

    assert result.exit_code == 0
    events = [json.loads(line) for line in result.output.splitlines() if line.startswith("{")]
    assert [e["type"] for e in events] == ["turn.started", "message", "turn.completed"]


def test_config_command_prints_effective_configuration():
    result = runner.invoke(cli.app, ["config"])

    assert result.exit_code == 0
    assert '"model": "gemini-1.5-flash"' in result.output


def test_version():
    result = runner.invoke(cli.app, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_zero_tool_rounds_is_rejected(project_root):
    result = runner.invoke(cli.app, ["chat", "--root", str(project_root), "--max-tool-rounds", "0"])

    assert result.exit_code == 1
    assert "Invalid configuration" in result.output

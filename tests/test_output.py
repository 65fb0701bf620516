import io
import json

from agentshell.config.models import AgentConfig, OutputConfig, OutputMode
from agentshell.output.events import Event
from agentshell.output.processor import MAX_PREVIEW_CHARS, OutputProcessor, _brief


def _processor(mode):
    stdout, stderr = io.StringIO(), io.StringIO()
    config = AgentConfig(output=OutputConfig(mode=mode, colors=False))
    return OutputProcessor(config, stdout=stdout, stderr=stderr), stdout, stderr


def test_human_mode_prints_model_text_and_tool_notices():
    processor, stdout, stderr = _processor(OutputMode.HUMAN)

    processor(Event.tool_call_start("run_shell_command", {"command": "ls"}))
    processor(Event.tool_call_end("run_shell_command", False, error="unknown tool: x"))
    processor(Event.message("all done"))
    processor(Event.no_response())

    assert stdout.getvalue() == "Gemini: all done\nNo response candidates\n"
    notices = stderr.getvalue()
    assert "> run_shell_command" in notices
    assert "FAILED unknown tool: x" in notices


def test_human_mode_reports_failures_and_unusual_endings():
    processor, stdout, stderr = _processor(OutputMode.HUMAN)

    processor(Event.turn_failed("HTTP 500: down", "server_error"))
    processor(Event.turn_completed("cancelled", 1, ""))
    processor(Event.turn_completed("completed", 0, "hi"))

    assert stdout.getvalue() == ""
    assert "Error: HTTP 500: down" in stderr.getvalue()
    assert stderr.getvalue().count("Turn ended") == 1


def test_json_mode_writes_one_event_per_line():
    processor, stdout, stderr = _processor(OutputMode.JSON)

    processor(Event.message("hi"))
    processor.notice("not shown")
    processor.prompt()

    lines = stdout.getvalue().splitlines()
    assert len(lines) == 1
    event = json.loads(lines[0])
    assert event["type"] == "message"
    assert event["content"] == "hi"
    assert stderr.getvalue() == ""


def test_long_arguments_are_truncated():
    brief = _brief({"command": "x" * 1000})

    assert len(brief) == MAX_PREVIEW_CHARS
    assert brief.endswith("...")
    assert _brief({"command": "ls"}) == '{"command": "ls"}'

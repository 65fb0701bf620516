"""Output processor for agentshell - handles JSON and human-readable output."""

from __future__ import annotations

import json
import sys
from typing import Any, Optional, TextIO

from rich.console import Console
from rich.markup import escape

from agentshell.config.models import AgentConfig, OutputMode
from agentshell.output.events import Event, EventType

MAX_PREVIEW_CHARS = 200


class OutputProcessor:
    """Processes and formats turn events.

    Human mode prints notices to stderr through ``rich`` and model text to
    stdout; JSON mode writes one event per line to stdout.
    """

    def __init__(
        self,
        config: AgentConfig,
        stdout: Optional[TextIO] = None,
        stderr: Optional[TextIO] = None,
    ):
        self.config = config
        self.stdout = stdout or sys.stdout
        self.stderr = stderr or sys.stderr

        self.console = Console(
            file=self.stderr,
            force_terminal=config.output.colors if self.stderr.isatty() else False,
            no_color=not config.output.colors,
            highlight=False,
        )

        self.json_mode = config.output.mode == OutputMode.JSON

    def __call__(self, event: Event) -> None:
        self.emit(event)

    def emit(self, event: Event) -> None:
        if self.json_mode:
            self._emit_json(event)
        else:
            self._emit_human(event)

    def _emit_json(self, event: Event) -> None:
        """Emit event as JSON line to stdout."""
        line = json.dumps(event.to_dict(), default=str)
        print(line, file=self.stdout, flush=True)

    def _emit_human(self, event: Event) -> None:
        if event.type == EventType.MESSAGE:
            content = event.data.get("content", "")
            if content:
                print(f"Gemini: {content}", file=self.stdout, flush=True)

        elif event.type == EventType.NO_RESPONSE:
            print("No response candidates", file=self.stdout, flush=True)

        elif event.type == EventType.TOOL_CALL_START:
            name = event.data.get("name", "unknown")
            arguments = event.data.get("arguments") or {}
            self.console.print(f"[yellow]> {escape(name)}[/yellow] [dim]{escape(_brief(arguments))}[/dim]")

        elif event.type == EventType.TOOL_CALL_END:
            if event.data.get("success"):
                self.console.print("[dim]  [green]OK[/green][/dim]")
            else:
                error = event.data.get("error") or "failed"
                self.console.print(f"[dim]  [red]FAILED[/red] {escape(error)}[/dim]")

        elif event.type == EventType.TURN_COMPLETED:
            status = event.data.get("status")
            if status not in (None, "completed", "no_response"):
                self.console.print(f"[yellow]Turn ended: {escape(str(status))}[/yellow]")

        elif event.type == EventType.TURN_FAILED:
            message = event.data["error"]["message"]
            self.console.print(f"[red]Error: {escape(message or 'unknown error')}[/red]")

    def notice(self, message: str) -> None:
        """Print an informational line (human mode only)."""
        if not self.json_mode:
            self.console.print(message)

    def prompt(self) -> None:
        if not self.json_mode:
            print("> ", end="", file=self.stdout, flush=True)


def _brief(arguments: dict[str, Any]) -> str:
    text = json.dumps(arguments, default=str)
    if len(text) > MAX_PREVIEW_CHARS:
        text = text[: MAX_PREVIEW_CHARS - 3] + "..."
    return text

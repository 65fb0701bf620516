"""Main CLI entry point for agentshell."""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, TextIO

import typer
from dotenv import load_dotenv
from rich.console import Console

from agentshell import __version__
from agentshell.config.loader import find_config_file, load_config
from agentshell.config.models import AgentConfig, OutputMode
from agentshell.core.context import RunContext
from agentshell.core.orchestrator import Orchestrator
from agentshell.errors import ConfigError, MissingCredentialError, ModelClientError
from agentshell.llm.client import GeminiClient
from agentshell.output.processor import OutputProcessor
from agentshell.tools.registry import ToolRegistry, build_default_registry

logger = logging.getLogger(__name__)

QUIT_KEYWORD = "quit"

app = typer.Typer(
    name="agentshell",
    help="Chat with a Gemini model that can run shell commands and read files",
    add_completion=False,
)

console = Console(stderr=True)


def version_callback(value: bool):
    if value:
        console.print(f"agentshell v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
):
    """agentshell - tool-using chat in the terminal."""
    pass


def setup_logging(config: AgentConfig, verbose: bool = False) -> None:
    """Configure the root logger once for the CLI process."""
    level = logging.DEBUG if verbose else getattr(logging, config.logging.level.upper(), logging.WARNING)
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if config.logging.file:
        log_path = Path(config.logging.file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path))
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=handlers,
        force=True,
    )


def build_client(config: AgentConfig) -> GeminiClient:
    """Construct the model client. Raises if the credential is missing."""
    return GeminiClient.from_config(config)


@contextmanager
def cancel_on_interrupt(loop: asyncio.AbstractEventLoop, ctx: RunContext) -> Iterator[None]:
    """Route Ctrl+C to ``ctx.cancel`` while a turn is running."""
    installed = True
    try:
        loop.add_signal_handler(signal.SIGINT, ctx.cancel, "interrupted by user")
    except (NotImplementedError, RuntimeError, ValueError):
        # No signal support here (non-main thread or platform).
        installed = False
    try:
        yield
    finally:
        if installed:
            loop.remove_signal_handler(signal.SIGINT)


def run_chat(
    client: GeminiClient,
    registry: ToolRegistry,
    config: AgentConfig,
    output: OutputProcessor,
    stdin: Optional[TextIO] = None,
) -> None:
    """Read lines until ``quit`` or end of input, running one turn per line.

    A failed turn is reported and the loop moves on to the next line.
    Errors reading stdin propagate to the caller.
    """
    stdin = stdin or sys.stdin
    loop = asyncio.new_event_loop()
    try:
        session = client.start_chat(
            registry.declarations(),
            system_instruction=config.system_instruction,
        )
        orchestrator = Orchestrator(
            registry,
            max_tool_rounds=config.max_tool_rounds,
            on_event=output,
        )

        output.notice(f"Enter your messages (type '{QUIT_KEYWORD}' to exit):")
        while True:
            output.prompt()
            line = stdin.readline()
            if not line:
                break
            text = line.rstrip("\r\n")
            if text == QUIT_KEYWORD:
                break
            if not text.strip():
                continue

            ctx = RunContext()
            with cancel_on_interrupt(loop, ctx):
                try:
                    loop.run_until_complete(orchestrator.run_turn(session, text, ctx))
                except ModelClientError as e:
                    logger.error("Error sending message: %s", e.message)
    finally:
        loop.run_until_complete(client.aclose())
        loop.close()


@app.command("chat")
def chat_command(
    # Model options
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Model to use"),
    # Config options
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config file",
    ),
    # Execution options
    root: Optional[Path] = typer.Option(None, "--root", "-r", help="Project root for tools"),
    shell: Optional[str] = typer.Option(None, "--shell", help="Shell for run_shell_command"),
    max_tool_rounds: Optional[int] = typer.Option(
        None, "--max-tool-rounds", help="Stop a turn after this many tool rounds"
    ),
    # Output options
    json_mode: bool = typer.Option(False, "--json", help="Output events as JSON lines"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
):
    """Start an interactive chat session."""
    load_dotenv()

    config_path = config_file or find_config_file()

    overrides = {}
    if model:
        overrides["model"] = model
    if root:
        overrides["paths.project_root"] = str(root)
    if shell:
        overrides["tools.shell"] = shell
    if max_tool_rounds is not None:
        overrides["max_tool_rounds"] = max_tool_rounds
    if json_mode:
        overrides["output.mode"] = OutputMode.JSON

    try:
        config = load_config(config_path, overrides)
    except ConfigError as e:
        console.print(f"[red]Error loading configuration: {e}[/red]")
        raise typer.Exit(1)

    setup_logging(config, verbose)

    project_root = config.project_root
    if not project_root.is_dir():
        console.print(f"[red]Project root does not exist: {project_root}[/red]")
        raise typer.Exit(1)

    output = OutputProcessor(config)

    try:
        client = build_client(config)
    except (MissingCredentialError, ValueError) as e:
        logger.critical("%s", e)
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    registry = build_default_registry(project_root, config.tools)
    logger.info("tools: %s; project root: %s", ", ".join(registry.names()), project_root)

    try:
        run_chat(client, registry, config, output)
    except OSError as e:
        logger.critical("Error reading input: %s", e)
        console.print(f"[red]Error reading input: {e}[/red]")
        raise typer.Exit(1)
    except KeyboardInterrupt:
        output.notice("\n[dim]Interrupted, exiting[/dim]")


@app.command("config")
def show_config(
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config file"),
):
    """Show current configuration."""
    path = config_file or find_config_file()
    if path:
        console.print(f"Loading config from: {path}")
    else:
        console.print("No config file found, using defaults")

    try:
        config = load_config(path)
    except ConfigError as e:
        console.print(f"[red]Error loading configuration: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"API key variable {config.api_key_env}: {'set' if os.environ.get(config.api_key_env) else 'not set'}")
    print(config.model_dump_json(indent=2))


if __name__ == "__main__":
    app()

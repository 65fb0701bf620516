"""Shell command tool for agentshell."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict

from agentshell.core.context import RunContext
from agentshell.errors import ToolInputError
from agentshell.exec.runner import (
    DEFAULT_KILL_GRACE,
    DEFAULT_SHELL,
    ExecOptions,
    run_command,
)
from agentshell.tools.base import BaseTool, ToolDeclaration, join_under_root
from agentshell.tools.schema import Schema

logger = logging.getLogger(__name__)

ROOT_MARKER = "(root)"

DESCRIPTION = (
    "Executes a shell command as `{shell} -c <command>`. The command may start background "
    "processes with `&`. It runs as a subprocess that leads its own process group; the "
    "group can be terminated with `kill -- -PGID` or signalled with "
    "`kill -s SIGNAL -- -PGID`. Returns: Command (the executed command); Directory "
    "(directory relative to the project root, or `(root)`); Stdout and Stderr (may be "
    "empty, or partial on error and for unwaited background processes); Error (error "
    "text or `(none)`); Exit Code (-1 if terminated by a signal); Signal (signal number "
    "or -1); Background PIDs (background processes started); Process Group PGID "
    "(process group started, or -1)."
)


class RunShellCommandTool(BaseTool):
    """Runs a shell command in its own process group."""

    NAME = "run_shell_command"

    def __init__(
        self,
        project_root: Path,
        shell: str = DEFAULT_SHELL,
        kill_grace: float = DEFAULT_KILL_GRACE,
        scrub_secrets: bool = False,
    ):
        super().__init__(project_root)
        self.shell = shell
        self.kill_grace = kill_grace
        self.scrub_secrets = scrub_secrets

    def declaration(self) -> ToolDeclaration:
        return ToolDeclaration(
            name=self.NAME,
            description=DESCRIPTION.format(shell=self.shell),
            parameters=Schema.object(
                {
                    "command": Schema.string(
                        f"Exact command to execute as `{self.shell} -c <command>`"
                    ),
                    "description": Schema.string(
                        "Brief description of the command for the user. One sentence, "
                        "up to three for clarity. No line breaks."
                    ),
                    "directory": Schema.string(
                        "(OPTIONAL) Directory to run the command in, if not the project "
                        "root. Relative to the project root; must already exist."
                    ),
                },
                required=("command",),
            ),
            response=Schema.object(
                {
                    "Command": Schema.string(),
                    "Directory": Schema.string(),
                    "Stdout": Schema.string(),
                    "Stderr": Schema.string(),
                    "Error": Schema.string(),
                    "Exit Code": Schema.number(),
                    "Signal": Schema.number(),
                    "Background PIDs": Schema.array(Schema.number()),
                    "Process Group PGID": Schema.number(),
                }
            ),
        )

    def resolve_directory(self, directory: str) -> Path:
        if directory:
            return join_under_root(self.project_root, directory)
        return self.project_root

    async def execute(self, ctx: RunContext, args: Dict[str, Any]) -> Dict[str, Any]:
        command = args.get("command")
        if not isinstance(command, str):
            raise ToolInputError("missing or invalid 'command' argument")

        directory = args.get("directory")
        if not isinstance(directory, str):
            directory = ""

        description = args.get("description")
        if isinstance(description, str) and description:
            logger.info("shell: %s", description)

        options = ExecOptions(
            cwd=self.resolve_directory(directory),
            shell=self.shell,
            kill_grace=self.kill_grace,
            scrub_secrets=self.scrub_secrets,
        )
        output = await run_command(command, options, ctx)

        return {
            "Command": command,
            "Directory": directory or ROOT_MARKER,
            "Stdout": output.stdout,
            "Stderr": output.stderr,
            "Error": output.outcome.error,
            "Exit Code": output.outcome.exit_code,
            "Signal": output.outcome.signal,
            "Background PIDs": [],
            "Process Group PGID": output.pgid,
        }

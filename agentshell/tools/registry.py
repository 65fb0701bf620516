"""Tool registry for agentshell - maps tool names to tools and dispatches calls."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Dict, Iterable, List, Mapping, Optional

from agentshell.core.context import RunContext
from agentshell.errors import OperationCancelled, ToolError
from agentshell.llm.types import FunctionCall
from agentshell.tools.base import BaseTool, ToolDeclaration, ToolResult
from agentshell.tools.read_many_files import ReadManyFilesTool
from agentshell.tools.router import ToolRouter
from agentshell.tools.shell import RunShellCommandTool

if TYPE_CHECKING:
    from agentshell.config.models import ToolsConfig

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Immutable name -> tool mapping, built once at startup.

    Dispatch is the single place where model-supplied arguments are
    checked against a tool's declared schema.
    """

    def __init__(self, tools: Iterable[BaseTool]):
        table: Dict[str, BaseTool] = {}
        declarations: Dict[str, ToolDeclaration] = {}
        for tool in tools:
            declaration = tool.declaration()
            if declaration.name in table:
                raise ValueError(f"duplicate tool name: {declaration.name}")
            table[declaration.name] = tool
            declarations[declaration.name] = declaration
        self._tools: Mapping[str, BaseTool] = MappingProxyType(table)
        self._declarations: Mapping[str, ToolDeclaration] = MappingProxyType(declarations)

    @property
    def tools(self) -> Mapping[str, BaseTool]:
        return self._tools

    def names(self) -> List[str]:
        return list(self._tools)

    def get(self, name: str) -> Optional[BaseTool]:
        return self._tools.get(name)

    def declarations(self) -> List[ToolDeclaration]:
        return list(self._declarations.values())

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    async def dispatch(self, ctx: RunContext, call: FunctionCall) -> ToolResult:
        """Execute one tool call and wrap the outcome in a ToolResult.

        Every failure except cancellation becomes an error result so the
        conversation can continue.

        Raises:
            OperationCancelled: if ``ctx`` was cancelled during the call
        """
        tool = self._tools.get(call.name)
        if tool is None:
            logger.warning("model requested unknown tool %r", call.name)
            return ToolResult.fail(call.name, "unknown_tool", f"unknown tool: {call.name}", call.id)

        problems = self._declarations[call.name].parameters.validate(call.args)
        if problems:
            return ToolResult.fail(
                call.name,
                "invalid_arguments",
                "; ".join(problems),
                call.id,
            )

        start = time.monotonic()
        try:
            fields = await tool.execute(ctx, call.args)
        except OperationCancelled:
            logger.info("tool %s cancelled", call.name)
            raise
        except ToolError as e:
            logger.info("tool %s failed: %s", call.name, e.message)
            return ToolResult.fail(call.name, e.kind, e.message, call.id)
        except Exception as e:
            logger.exception("tool %s raised unexpectedly", call.name)
            return ToolRouter.normalize_error(call, e)

        logger.debug("tool %s finished in %.3fs", call.name, time.monotonic() - start)
        return ToolResult.ok(call.name, fields, call.id)


def build_default_registry(
    project_root: Path,
    config: Optional["ToolsConfig"] = None,
) -> ToolRegistry:
    """Registry with the built-in tools enabled by ``config``."""
    tools: List[BaseTool] = []
    if config is None:
        tools.append(RunShellCommandTool(project_root))
        tools.append(ReadManyFilesTool(project_root))
        return ToolRegistry(tools)

    if config.shell_enabled:
        tools.append(
            RunShellCommandTool(
                project_root,
                shell=config.shell,
                kill_grace=config.kill_grace_seconds,
                scrub_secrets=config.scrub_secrets,
            )
        )
    if config.read_many_files_enabled:
        tools.append(ReadManyFilesTool(project_root))
    return ToolRegistry(tools)

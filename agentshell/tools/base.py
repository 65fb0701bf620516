"""Base tool class and result types for agentshell tools."""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from agentshell.core.context import RunContext
from agentshell.llm.types import FunctionResponse, Part
from agentshell.tools.schema import Schema


@dataclass(frozen=True)
class ToolDeclaration:
    """Calling convention published to the model."""

    name: str
    description: str
    parameters: Schema
    response: Optional[Schema] = None

    def to_dict(self) -> dict[str, Any]:
        """Serialise as a Gemini ``FunctionDeclaration``."""
        data: dict[str, Any] = {
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters.to_dict(),
        }
        if self.response is not None:
            data["response"] = self.response.to_dict()
        return data


@dataclass(frozen=True)
class ToolErrorInfo:
    kind: str
    message: str


@dataclass
class ToolResult:
    """Result of a tool call: a field mapping or an error, never both."""

    name: str
    fields: Optional[Dict[str, Any]] = None
    error: Optional[ToolErrorInfo] = None
    call_id: Optional[str] = field(default=None, compare=False)

    def __post_init__(self):
        if (self.fields is None) == (self.error is None):
            raise ValueError("ToolResult needs exactly one of fields or error")

    @classmethod
    def ok(cls, name: str, fields: Dict[str, Any], call_id: Optional[str] = None) -> "ToolResult":
        """Create a successful result."""
        return cls(name=name, fields=fields, call_id=call_id)

    @classmethod
    def fail(cls, name: str, kind: str, message: str, call_id: Optional[str] = None) -> "ToolResult":
        """Create a failed result."""
        return cls(name=name, error=ToolErrorInfo(kind, message), call_id=call_id)

    @property
    def success(self) -> bool:
        return self.error is None

    def to_part(self) -> Part:
        """Convert to a ``functionResponse`` part for the model.

        Follows the Gemini convention of an ``output`` key for results and
        an ``error`` key for failures.
        """
        if self.error is not None:
            payload: Dict[str, Any] = {
                "error": {"kind": self.error.kind, "message": self.error.message}
            }
        else:
            payload = {"output": self.fields}
        return Part.from_function_response(
            FunctionResponse(name=self.name, response=payload, id=self.call_id)
        )


def join_under_root(root: Path, relative: str) -> Path:
    """Join ``relative`` under ``root`` the way a path join does.

    A leading separator does not escape the root. ``..`` components are
    normalised but not confined.
    """
    return Path(os.path.normpath(os.path.join(str(root), relative.lstrip(os.sep))))


class BaseTool(ABC):
    """Base class for all tools."""

    def __init__(self, project_root: Path):
        """Initialize the tool.

        Args:
            project_root: Directory relative paths are resolved against
        """
        self.project_root = Path(project_root)

    @property
    def name(self) -> str:
        return self.declaration().name

    @abstractmethod
    def declaration(self) -> ToolDeclaration:
        """Return the tool's calling convention."""

    @abstractmethod
    async def execute(self, ctx: RunContext, args: Dict[str, Any]) -> Dict[str, Any]:
        """Execute the tool.

        Args:
            ctx: Cancellation context for this call
            args: Arguments supplied by the model

        Returns:
            Result field mapping

        Raises:
            ToolError: on invalid input or execution failure
            OperationCancelled: if ``ctx`` is cancelled mid-call
        """

"""Tool call parsing from model responses."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List

from agentshell.llm.types import FunctionCall, ModelResponse, Part
from agentshell.tools.base import ToolResult


@dataclass
class ParsedResponse:
    """Function calls and accumulated text of one candidate."""

    function_calls: List[FunctionCall] = field(default_factory=list)
    text: str = ""

    @property
    def has_function_calls(self) -> bool:
        return bool(self.function_calls)


class ToolRouter:
    """Splits model output into tool calls and text."""

    @staticmethod
    def split_parts(parts: Iterable[Part]) -> ParsedResponse:
        """Separate function-call parts from text parts, keeping order.

        Text is accumulated across parts; function-response echoes are
        ignored.
        """
        parsed = ParsedResponse()
        chunks: List[str] = []
        for part in parts:
            if part.function_call is not None:
                parsed.function_calls.append(part.function_call)
            elif part.text:
                chunks.append(part.text)
        parsed.text = "".join(chunks)
        return parsed

    @classmethod
    def parse_response(cls, response: ModelResponse) -> ParsedResponse:
        """Parse the first candidate, by convention the only one used."""
        if not response.candidates:
            return ParsedResponse()
        content = response.candidates[0].content
        if content is None:
            return ParsedResponse()
        return cls.split_parts(content.parts)

    @staticmethod
    def normalize_error(call: FunctionCall, err: Exception) -> ToolResult:
        return ToolResult.fail(call.name, "execution_error", f"Tool `{call.name}` failed: {err}", call.id)

"""Message shapes exchanged with the model endpoint (Gemini wire format)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class FunctionCall:
    """A tool-call request from the model."""

    name: str
    args: Dict[str, Any] = field(default_factory=dict)
    id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"name": self.name, "args": self.args}
        if self.id:
            data["id"] = self.id
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FunctionCall":
        args = data.get("args")
        return cls(
            name=data.get("name", ""),
            args=args if isinstance(args, dict) else {},
            id=data.get("id"),
        )


@dataclass
class FunctionResponse:
    """A tool result sent back to the model, correlated by ``name``."""

    name: str
    response: Dict[str, Any]
    id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"name": self.name, "response": self.response}
        if self.id:
            data["id"] = self.id
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FunctionResponse":
        return cls(
            name=data.get("name", ""),
            response=data.get("response") or {},
            id=data.get("id"),
        )


@dataclass
class Part:
    """One content part. Exactly one of the fields is set."""

    text: Optional[str] = None
    function_call: Optional[FunctionCall] = None
    function_response: Optional[FunctionResponse] = None

    @classmethod
    def from_text(cls, text: str) -> "Part":
        return cls(text=text)

    @classmethod
    def from_function_response(cls, response: FunctionResponse) -> "Part":
        return cls(function_response=response)

    def to_dict(self) -> Dict[str, Any]:
        if self.function_call is not None:
            return {"functionCall": self.function_call.to_dict()}
        if self.function_response is not None:
            return {"functionResponse": self.function_response.to_dict()}
        return {"text": self.text or ""}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Part":
        if "functionCall" in data:
            return cls(function_call=FunctionCall.from_dict(data["functionCall"] or {}))
        if "functionResponse" in data:
            return cls(function_response=FunctionResponse.from_dict(data["functionResponse"] or {}))
        return cls(text=data.get("text"))


@dataclass
class Content:
    role: str
    parts: List[Part] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"role": self.role, "parts": [p.to_dict() for p in self.parts]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Content":
        return cls(
            role=data.get("role", "model"),
            parts=[Part.from_dict(p) for p in data.get("parts") or []],
        )


@dataclass
class Candidate:
    content: Optional[Content] = None
    finish_reason: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Candidate":
        content = data.get("content")
        return cls(
            content=Content.from_dict(content) if content else None,
            finish_reason=data.get("finishReason", ""),
        )


@dataclass
class Usage:
    """Token usage reported by the endpoint."""

    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Usage":
        data = data or {}
        return cls(
            input_tokens=data.get("promptTokenCount", 0) or 0,
            output_tokens=data.get("candidatesTokenCount", 0) or 0,
            total_tokens=data.get("totalTokenCount", 0) or 0,
        )


@dataclass
class ModelResponse:
    """Response to one request: zero or more candidates."""

    candidates: List[Candidate] = field(default_factory=list)
    usage: Usage = field(default_factory=Usage)
    raw: Optional[Dict[str, Any]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ModelResponse":
        return cls(
            candidates=[Candidate.from_dict(c) for c in data.get("candidates") or []],
            usage=Usage.from_dict(data.get("usageMetadata")),
            raw=data,
        )

    @property
    def is_empty(self) -> bool:
        return not self.candidates

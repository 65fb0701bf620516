"""Event types emitted while a turn runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Optional


class EventType(str, Enum):
    """Types of events that can be emitted."""

    TURN_STARTED = "turn.started"
    TURN_COMPLETED = "turn.completed"
    TURN_FAILED = "turn.failed"

    MESSAGE = "message"
    NO_RESPONSE = "no_response"

    TOOL_CALL_START = "tool.call.start"
    TOOL_CALL_END = "tool.call.end"


@dataclass
class Event:
    """An event from the orchestrator or CLI."""

    type: EventType
    timestamp: datetime = field(default_factory=datetime.now)
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "type": self.type.value,
            "timestamp": self.timestamp.isoformat(),
            **self.data,
        }

    @classmethod
    def turn_started(cls, user_text: str) -> "Event":
        return cls(type=EventType.TURN_STARTED, data={"input": user_text})

    @classmethod
    def turn_completed(cls, status: str, rounds: int, text: str) -> "Event":
        return cls(
            type=EventType.TURN_COMPLETED,
            data={"status": status, "rounds": rounds, "final_message": text},
        )

    @classmethod
    def turn_failed(cls, message: str, code: str = "unknown") -> "Event":
        return cls(type=EventType.TURN_FAILED, data={"error": {"message": message, "code": code}})

    @classmethod
    def message(cls, content: str, role: str = "model") -> "Event":
        return cls(type=EventType.MESSAGE, data={"content": content, "role": role})

    @classmethod
    def no_response(cls) -> "Event":
        return cls(type=EventType.NO_RESPONSE)

    @classmethod
    def tool_call_start(cls, name: str, arguments: dict[str, Any]) -> "Event":
        return cls(
            type=EventType.TOOL_CALL_START,
            data={"name": name, "arguments": arguments},
        )

    @classmethod
    def tool_call_end(
        cls,
        name: str,
        success: bool,
        result: Optional[dict[str, Any]] = None,
        error: Optional[str] = None,
    ) -> "Event":
        return cls(
            type=EventType.TOOL_CALL_END,
            data={
                "name": name,
                "success": success,
                "result": result,
                "error": error,
            },
        )


EventSink = Callable[[Event], None]

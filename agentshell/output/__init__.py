"""Turn events and their console/JSON rendering."""

from agentshell.output.events import Event, EventSink, EventType

__all__ = ["Event", "EventSink", "EventType"]

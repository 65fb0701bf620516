"""agentshell - a terminal chat agent that lets a Gemini model run tools."""

__version__ = "1.0.0"

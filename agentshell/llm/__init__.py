"""Model client and message types.

Import the client directly to avoid pulling in httpx where only the
message types are needed::

    from agentshell.llm.client import GeminiClient
"""

from agentshell.llm.types import (
    Candidate,
    Content,
    FunctionCall,
    FunctionResponse,
    ModelResponse,
    Part,
    Usage,
)

__all__ = [
    "Candidate",
    "Content",
    "FunctionCall",
    "FunctionResponse",
    "ModelResponse",
    "Part",
    "Usage",
]

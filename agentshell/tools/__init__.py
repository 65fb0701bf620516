"""Tools module - tool abstraction, registry and built-in tools.

Only leaf-node symbols are re-exported here. Import the registry
directly::

    from agentshell.tools.registry import ToolRegistry, build_default_registry
"""

from agentshell.tools.base import BaseTool, ToolDeclaration, ToolErrorInfo, ToolResult
from agentshell.tools.schema import Schema, SchemaType

__all__ = [
    "BaseTool",
    "ToolDeclaration",
    "ToolErrorInfo",
    "ToolResult",
    "Schema",
    "SchemaType",
]

"""Core turn machinery.

Only the cancellation context is re-exported; import the orchestrator
directly to avoid import cycles::

    from agentshell.core.orchestrator import Orchestrator
"""

from agentshell.core.context import RunContext

__all__ = ["RunContext"]

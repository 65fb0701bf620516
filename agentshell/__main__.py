"""Allow running as ``python -m agentshell``."""

from agentshell.main import app

if __name__ == "__main__":
    app()

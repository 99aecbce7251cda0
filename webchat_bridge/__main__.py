"""
Entry point for running webchat-bridge as a module.

Enables execution via:
    python -m webchat_bridge [command] [options]

This is equivalent to running the installed CLI:
    webchat-bridge [command] [options]

Examples:
    python -m webchat_bridge --help
    python -m webchat_bridge check
    python -m webchat_bridge ask "hello" --format json
"""

from webchat_bridge.cli import app

if __name__ == "__main__":
    app()

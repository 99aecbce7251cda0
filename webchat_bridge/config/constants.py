"""
Configuration constants for webchat-bridge.

This module contains global defaults and environment variable names used
across the application to avoid tight coupling between modules.
"""

from pathlib import Path

# Chrome started with --remote-debugging-port=9222
DEFAULT_CDP_URL = "http://127.0.0.1:9222"

# Tab fallback pattern: the chat platforms with a built-in profile
DEFAULT_URL_REGEX = r"(?i)chatgpt\.com|chat\.openai\.com|claude\.ai|gemini\.google\.com"

# Bound for each of the two completion-detection phases
DEFAULT_TIMEOUT_SECONDS = 120.0

DEFAULT_TURN_LOG_PATH = Path.home() / ".webchat-bridge" / "turn-log" / "turns.sqlite"

# Environment overrides (call-time options win over these)
ENV_CDP_URL = "WEBCHAT_BRIDGE_CDP_URL"
ENV_URL_REGEX = "WEBCHAT_BRIDGE_URL_REGEX"
ENV_TIMEOUT = "WEBCHAT_BRIDGE_TIMEOUT"
ENV_TURN_LOG_ENABLED = "WEBCHAT_BRIDGE_TURN_LOG_ENABLED"
ENV_TURN_LOG_DB = "WEBCHAT_BRIDGE_TURN_LOG_DB"

TRUTHY_ENV_VALUES = frozenset(["1", "true", "yes", "on"])

# Model id reported when the chat page shows no model label
DEFAULT_MODEL_ID = "chat-tab"

# Rows shown by `webchat-bridge history`
DEFAULT_HISTORY_LIMIT = 20

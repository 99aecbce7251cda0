"""
Configuration schema models for webchat-bridge.

This module defines Pydantic models for validating bridge settings, whether
they come from call-time options, a YAML settings file, or environment
overrides. All models use Pydantic v2 field validators.

Models:
    BridgeSettings: CDP endpoint, tab URL pattern, response timeout
    TurnLogSettings: Whether and where completed turns are recorded
    SettingsFile: Root model of a YAML settings file
"""

import math
import re
from pathlib import Path

from pydantic import BaseModel, ConfigDict, field_validator

from .constants import (
    DEFAULT_CDP_URL,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_TURN_LOG_PATH,
    DEFAULT_URL_REGEX,
)

ALLOWED_CDP_SCHEMES = ("http://", "https://", "ws://", "wss://")


class BridgeSettings(BaseModel):
    """
    Settings for one browser bridge.

    Attributes:
        cdp_url: Remote debugging endpoint of the running browser
        url_regex: Pattern used to pick a tab when no page holds focus, and to
                   trust URL hints when no DOM fingerprint matches
        timeout_seconds: Bound for each completion-detection phase and for
                         clicking/filling the input control
    """

    model_config = ConfigDict(frozen=True)

    cdp_url: str = DEFAULT_CDP_URL
    url_regex: str = DEFAULT_URL_REGEX
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    @field_validator("cdp_url")
    @classmethod
    def validate_cdp_url(cls, v: str) -> str:
        """Validate cdp_url is a non-empty http(s) or ws(s) URL."""
        v = v.strip()
        if not v:
            raise ValueError("cdp_url cannot be empty")
        if not v.startswith(ALLOWED_CDP_SCHEMES):
            raise ValueError(
                f"cdp_url must start with one of {', '.join(ALLOWED_CDP_SCHEMES)}, got: {v}"
            )
        return v.rstrip("/")

    @field_validator("url_regex")
    @classmethod
    def validate_url_regex(cls, v: str) -> str:
        """Validate url_regex compiles."""
        if not v or v.isspace():
            raise ValueError("url_regex cannot be empty")
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"url_regex is not a valid regular expression: {e}") from e
        return v

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Validate timeout_seconds is a finite positive number."""
        if not math.isfinite(v) or v <= 0:
            raise ValueError(f"timeout_seconds must be positive, got: {v}")
        return v

    @property
    def url_pattern(self) -> re.Pattern[str]:
        """Compiled url_regex."""
        return re.compile(self.url_regex)


class TurnLogSettings(BaseModel):
    """
    Local turn log settings.

    Attributes:
        enabled: Record completed turns (default: False)
        db_path: SQLite database file
    """

    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    db_path: Path = DEFAULT_TURN_LOG_PATH

    @field_validator("db_path")
    @classmethod
    def expand_db_path(cls, v: Path) -> Path:
        """Expand a leading ~ in db_path."""
        return v.expanduser()


class SettingsFile(BaseModel):
    """
    Root model of a YAML settings file.

    Example:
        bridge:
          cdp_url: "http://127.0.0.1:9333"
          timeout_seconds: 300
        turn_log:
          enabled: true
          db_path: "~/chat-turns.sqlite"

    Bridge values are partial: keys left out fall through to environment
    overrides and then to the defaults.
    """

    model_config = ConfigDict(extra="forbid")

    bridge: dict = {}
    turn_log: TurnLogSettings | None = None

    @field_validator("bridge")
    @classmethod
    def validate_bridge_keys(cls, v: dict) -> dict:
        """Validate bridge only names known settings."""
        unknown = set(v) - set(BridgeSettings.model_fields)
        if unknown:
            raise ValueError(f"unknown bridge settings: {', '.join(sorted(unknown))}")
        return v

"""
Settings loader for webchat-bridge.

Every setting resolves with the same precedence:

    call-time option  >  environment override  >  built-in default

A YAML settings file (load_settings_file) is one source of call-time options;
CLI flags layered on top of it are another.

Functions:
    resolve_settings: Build BridgeSettings from options and the environment
    resolve_turn_log_settings: Build TurnLogSettings from options and the environment
    load_settings_file: Load and validate a YAML settings file
"""

import logging
import math
import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ValidationError

from webchat_bridge.exceptions import ConfigFileNotFoundError, ConfigValidationError

from .constants import (
    ENV_CDP_URL,
    ENV_TIMEOUT,
    ENV_TURN_LOG_DB,
    ENV_TURN_LOG_ENABLED,
    ENV_URL_REGEX,
    TRUTHY_ENV_VALUES,
)
from .schema import BridgeSettings, SettingsFile, TurnLogSettings

logger = logging.getLogger(__name__)


def resolve_settings(
    options: Mapping[str, Any] | None = None,
    env: Mapping[str, str] | None = None,
) -> BridgeSettings:
    """
    Resolve bridge settings from call-time options, environment, and defaults.

    Options whose value is None are treated as not given. An environment
    regex that does not compile is ignored with a warning so a stale shell
    export cannot break every call; an environment timeout that is not a
    finite positive number is ignored the same way.

    Args:
        options: Call-time options keyed by BridgeSettings field name
        env: Environment mapping (defaults to os.environ)

    Returns:
        BridgeSettings: Validated, frozen settings

    Raises:
        ConfigValidationError: If an option or the environment endpoint is invalid

    Example:
        >>> resolve_settings({"timeout_seconds": 30}, env={}).timeout_seconds
        30.0
        >>> resolve_settings(env={"WEBCHAT_BRIDGE_CDP_URL": "http://10.0.0.5:9222"}).cdp_url
        'http://10.0.0.5:9222'
    """
    env = os.environ if env is None else env
    values: dict[str, Any] = {}

    cdp_url = env.get(ENV_CDP_URL, "").strip()
    if cdp_url:
        values["cdp_url"] = cdp_url

    url_regex = _env_regex(env)
    if url_regex is not None:
        values["url_regex"] = url_regex

    timeout = _env_timeout(env)
    if timeout is not None:
        values["timeout_seconds"] = timeout

    for key, value in (options or {}).items():
        if value is not None:
            values[key] = value

    return _validate(BridgeSettings, values, "bridge settings")


def resolve_turn_log_settings(
    options: Mapping[str, Any] | None = None,
    env: Mapping[str, str] | None = None,
) -> TurnLogSettings:
    """
    Resolve turn log settings.

    The log is enabled when WEBCHAT_BRIDGE_TURN_LOG_ENABLED is truthy or
    WEBCHAT_BRIDGE_TURN_LOG_DB names a database file.

    Example:
        >>> resolve_turn_log_settings(env={}).enabled
        False
        >>> resolve_turn_log_settings(env={"WEBCHAT_BRIDGE_TURN_LOG_DB": "/tmp/t.db"}).enabled
        True
    """
    env = os.environ if env is None else env
    values: dict[str, Any] = {}

    db_path = env.get(ENV_TURN_LOG_DB, "").strip()
    enabled_flag = env.get(ENV_TURN_LOG_ENABLED, "").strip().lower()

    if enabled_flag in TRUTHY_ENV_VALUES or db_path:
        values["enabled"] = True
    if db_path:
        values["db_path"] = db_path

    for key, value in (options or {}).items():
        if value is not None:
            values[key] = value

    return _validate(TurnLogSettings, values, "turn log settings")


def load_settings_file(config_path: str | Path) -> SettingsFile:
    """
    Load a YAML settings file.

    Args:
        config_path: Path to the YAML file

    Returns:
        SettingsFile: Partial bridge options plus optional turn log settings

    Raises:
        ConfigFileNotFoundError: If the file does not exist
        ConfigValidationError: If YAML is invalid or validation fails

    Security:
        Uses yaml.safe_load() to prevent code injection
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigFileNotFoundError(f"Settings file not found: {config_path}")

    try:
        with config_path.open(encoding="utf-8") as f:
            raw_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigValidationError(f"Invalid YAML syntax in {config_path}: {e}") from e
    except OSError as e:
        raise ConfigValidationError(
            f"Failed to read settings file {config_path}: {e}"
        ) from e

    if raw_config is None:
        raise ConfigValidationError(f"Settings file is empty: {config_path}")

    settings_file = _validate(SettingsFile, raw_config, str(config_path))
    logger.debug(
        f"Loaded settings file {config_path} "
        f"(bridge keys: {sorted(settings_file.bridge)})"
    )
    return settings_file


def _env_regex(env: Mapping[str, str]) -> str | None:
    raw = env.get(ENV_URL_REGEX, "").strip()
    if not raw:
        return None
    try:
        re.compile(raw)
    except re.error as e:
        logger.warning(f"Ignoring {ENV_URL_REGEX}: invalid regular expression ({e})")
        return None
    return raw


def _env_timeout(env: Mapping[str, str]) -> float | None:
    raw = env.get(ENV_TIMEOUT, "").strip()
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"Ignoring {ENV_TIMEOUT}: not a number ({raw!r})")
        return None
    if not math.isfinite(value) or value <= 0:
        logger.warning(f"Ignoring {ENV_TIMEOUT}: not a positive number ({raw!r})")
        return None
    return value


def _validate(model: type[BaseModel], values: Any, source: str) -> Any:
    try:
        return model.model_validate(values)
    except ValidationError as e:
        error_messages = []
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            error_messages.append(f"  - {loc}: {error['msg']}")

        raise ConfigValidationError(
            f"Configuration validation failed in {source}:\n"
            + "\n".join(error_messages)
        ) from e

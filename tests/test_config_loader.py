"""
Tests for config.loader and config.schema modules.

Tests cover:
- Defaults
- Precedence: call-time option > environment > default
- Validation errors (URL scheme, regex, timeout)
- Ignored invalid environment values
- Turn log settings
- YAML settings file loading
"""

import logging

import pytest
import yaml

from webchat_bridge.config.constants import (
    DEFAULT_CDP_URL,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_TURN_LOG_PATH,
    DEFAULT_URL_REGEX,
)
from webchat_bridge.config.loader import (
    load_settings_file,
    resolve_settings,
    resolve_turn_log_settings,
)
from webchat_bridge.config.schema import BridgeSettings
from webchat_bridge.exceptions import ConfigFileNotFoundError, ConfigValidationError


class TestResolveSettings:
    """Test suite for resolve_settings()."""

    def test_defaults(self):
        settings = resolve_settings(env={})

        assert settings.cdp_url == DEFAULT_CDP_URL
        assert settings.url_regex == DEFAULT_URL_REGEX
        assert settings.timeout_seconds == DEFAULT_TIMEOUT_SECONDS

    def test_environment_overrides_defaults(self):
        env = {
            "WEBCHAT_BRIDGE_CDP_URL": "http://10.0.0.5:9333/",
            "WEBCHAT_BRIDGE_URL_REGEX": r"claude\.ai",
            "WEBCHAT_BRIDGE_TIMEOUT": "45",
        }

        settings = resolve_settings(env=env)

        assert settings.cdp_url == "http://10.0.0.5:9333"
        assert settings.url_regex == r"claude\.ai"
        assert settings.timeout_seconds == 45.0

    def test_options_override_environment(self):
        env = {"WEBCHAT_BRIDGE_CDP_URL": "http://10.0.0.5:9333", "WEBCHAT_BRIDGE_TIMEOUT": "45"}

        settings = resolve_settings(
            {"cdp_url": "ws://127.0.0.1:9222/devtools/browser/abc", "timeout_seconds": 300},
            env=env,
        )

        assert settings.cdp_url == "ws://127.0.0.1:9222/devtools/browser/abc"
        assert settings.timeout_seconds == 300.0

    def test_none_option_is_not_given(self):
        settings = resolve_settings(
            {"timeout_seconds": None}, env={"WEBCHAT_BRIDGE_TIMEOUT": "45"}
        )

        assert settings.timeout_seconds == 45.0

    def test_invalid_environment_regex_ignored(self, caplog):
        with caplog.at_level(logging.WARNING):
            settings = resolve_settings(env={"WEBCHAT_BRIDGE_URL_REGEX": "(unclosed"})

        assert settings.url_regex == DEFAULT_URL_REGEX
        assert "WEBCHAT_BRIDGE_URL_REGEX" in caplog.text

    def test_non_numeric_environment_timeout_ignored(self):
        settings = resolve_settings(env={"WEBCHAT_BRIDGE_TIMEOUT": "soon"})

        assert settings.timeout_seconds == DEFAULT_TIMEOUT_SECONDS

    @pytest.mark.parametrize("raw", ["-5", "0", "nan", "inf"])
    def test_non_positive_environment_timeout_ignored(self, raw, caplog):
        with caplog.at_level(logging.WARNING):
            settings = resolve_settings(env={"WEBCHAT_BRIDGE_TIMEOUT": raw})

        assert settings.timeout_seconds == DEFAULT_TIMEOUT_SECONDS
        assert "not a positive number" in caplog.text

    def test_invalid_regex_option_rejected(self):
        with pytest.raises(ConfigValidationError, match="url_regex"):
            resolve_settings({"url_regex": "(unclosed"}, env={})

    @pytest.mark.parametrize("timeout", [0, -5, float("nan"), float("inf")])
    def test_non_positive_timeout_rejected(self, timeout):
        with pytest.raises(ConfigValidationError, match="timeout_seconds must be positive"):
            resolve_settings({"timeout_seconds": timeout}, env={})

    def test_bad_scheme_rejected(self):
        with pytest.raises(ConfigValidationError, match="cdp_url must start with"):
            resolve_settings({"cdp_url": "127.0.0.1:9222"}, env={})

    def test_bad_environment_endpoint_rejected(self):
        with pytest.raises(ConfigValidationError, match="cdp_url"):
            resolve_settings(env={"WEBCHAT_BRIDGE_CDP_URL": "ftp://host"})

    def test_settings_are_frozen(self):
        settings = BridgeSettings()

        with pytest.raises(Exception):
            settings.timeout_seconds = 1

    def test_url_pattern_compiled(self):
        settings = resolve_settings(env={})

        assert settings.url_pattern.search("https://CLAUDE.ai/new")
        assert not settings.url_pattern.search("https://example.org/")


class TestResolveTurnLogSettings:
    """Test suite for resolve_turn_log_settings()."""

    def test_disabled_by_default(self):
        settings = resolve_turn_log_settings(env={})

        assert settings.enabled is False
        assert settings.db_path == DEFAULT_TURN_LOG_PATH

    @pytest.mark.parametrize("flag", ["1", "true", "YES", "on"])
    def test_enabled_flag(self, flag):
        assert resolve_turn_log_settings(env={"WEBCHAT_BRIDGE_TURN_LOG_ENABLED": flag}).enabled

    def test_falsy_flag(self):
        settings = resolve_turn_log_settings(env={"WEBCHAT_BRIDGE_TURN_LOG_ENABLED": "no"})

        assert settings.enabled is False

    def test_db_path_enables(self, tmp_path):
        db_path = tmp_path / "turns.sqlite"

        settings = resolve_turn_log_settings(env={"WEBCHAT_BRIDGE_TURN_LOG_DB": str(db_path)})

        assert settings.enabled is True
        assert settings.db_path == db_path

    def test_option_disables_environment(self, tmp_path):
        settings = resolve_turn_log_settings(
            {"enabled": False}, env={"WEBCHAT_BRIDGE_TURN_LOG_DB": str(tmp_path / "t.db")}
        )

        assert settings.enabled is False

    def test_home_expanded(self):
        settings = resolve_turn_log_settings({"db_path": "~/turns.sqlite"}, env={})

        assert "~" not in str(settings.db_path)


class TestLoadSettingsFile:
    """Test suite for load_settings_file()."""

    def test_valid_file(self, tmp_path):
        config_path = tmp_path / "bridge.yaml"
        config_path.write_text(
            yaml.safe_dump(
                {
                    "bridge": {"cdp_url": "http://127.0.0.1:9333", "timeout_seconds": 300},
                    "turn_log": {"enabled": True, "db_path": str(tmp_path / "t.db")},
                }
            )
        )

        settings_file = load_settings_file(config_path)

        assert settings_file.bridge == {"cdp_url": "http://127.0.0.1:9333", "timeout_seconds": 300}
        assert settings_file.turn_log.enabled is True

    def test_partial_file(self, tmp_path):
        config_path = tmp_path / "bridge.yaml"
        config_path.write_text("bridge:\n  timeout_seconds: 30\n")

        settings_file = load_settings_file(config_path)

        assert settings_file.turn_log is None
        assert resolve_settings(settings_file.bridge, env={}).timeout_seconds == 30

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigFileNotFoundError, match="Settings file not found"):
            load_settings_file(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        config_path = tmp_path / "bridge.yaml"
        config_path.write_text("bridge: [unclosed\n")

        with pytest.raises(ConfigValidationError, match="Invalid YAML syntax"):
            load_settings_file(config_path)

    def test_empty_file(self, tmp_path):
        config_path = tmp_path / "bridge.yaml"
        config_path.write_text("")

        with pytest.raises(ConfigValidationError, match="empty"):
            load_settings_file(config_path)

    def test_unknown_bridge_key(self, tmp_path):
        config_path = tmp_path / "bridge.yaml"
        config_path.write_text("bridge:\n  headless: true\n")

        with pytest.raises(ConfigValidationError, match="unknown bridge settings: headless"):
            load_settings_file(config_path)

    def test_unknown_top_level_key(self, tmp_path):
        config_path = tmp_path / "bridge.yaml"
        config_path.write_text("browser:\n  port: 9222\n")

        with pytest.raises(ConfigValidationError):
            load_settings_file(config_path)

    def test_example_settings_file(self):
        from pathlib import Path

        example = Path(__file__).parent.parent / "examples" / "bridge.settings.yaml"

        settings_file = load_settings_file(example)
        settings = resolve_settings(settings_file.bridge, env={})

        assert settings.timeout_seconds == 180
        assert settings.url_pattern.search("https://claude.ai/new")
        assert settings_file.turn_log.enabled is True
